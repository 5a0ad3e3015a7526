# dailyinterval/core/logging.py
import logging
import sys
from datetime import datetime

# Level for loggers created later; configure_level() also updates existing ones
_default_level: int = logging.INFO

# Widest component tag is [loop_runner]; the rest are scheduler, registry,
# dst, models, blocking and cli
_COMPONENT_WIDTH = len('[loop_runner]') + 1
_LEVEL_WIDTH = len('[CRITICAL]') + 1


class ColoredFormatter(logging.Formatter):
    """
    Tabular formatter: millisecond time, component, level, message.

    Fire instants land a few milliseconds after a grid point, so the time
    column keeps milliseconds.
    """

    COLORS = {
        'RESET': '\033[0m',
        'LIGHT_BLUE': '\033[94m',
        'WHITE': '\033[97m',
        'GRAY': '\033[90m',
        'GREEN': '\033[92m',
        'YELLOW': '\033[93m',
        'RED': '\033[91m',
        'BRIGHT_RED': '\033[1;91m',
    }

    LEVEL_COLORS = {
        'DEBUG': COLORS['GRAY'],
        'INFO': COLORS['GREEN'],
        'WARNING': COLORS['YELLOW'],
        'ERROR': COLORS['RED'],
        'CRITICAL': COLORS['BRIGHT_RED'],
    }

    def format(self, record: logging.LogRecord) -> str:
        time_str = datetime.fromtimestamp(record.created).strftime('%H:%M:%S.%f')[:-3]
        component = record.name.rpartition('.')[2]
        reset = self.COLORS['RESET']
        level_color = self.LEVEL_COLORS.get(record.levelname, self.COLORS['WHITE'])

        # [12:00:00.004] [scheduler]    [INFO]      Daily interval 1 started ...
        formatted = (
            f"{self.COLORS['LIGHT_BLUE']}[{time_str}]{reset} "
            f"{self.COLORS['WHITE']}{f'[{component}]'.ljust(_COMPONENT_WIDTH)}{reset}"
            f"{level_color}{f'[{record.levelname}]'.ljust(_LEVEL_WIDTH)}{reset}"
            f"{self.COLORS['WHITE']}{record.getMessage()}{reset}"
        )

        if record.exc_info:
            formatted += '\n' + self.formatException(record.exc_info)

        return formatted


def set_default_level(level: int) -> None:
    """Set the default log level for new loggers."""
    global _default_level
    _default_level = level


def get_logger(component_name: str) -> logging.Logger:
    """
    Logger named ``dailyinterval.<component_name>`` with one stdout handler.

    Repeated calls return the same logger without stacking handlers.
    """
    logger = logging.getLogger(f'dailyinterval.{component_name}')

    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(ColoredFormatter())
        handler.setLevel(_default_level)
        logger.addHandler(handler)
        logger.setLevel(_default_level)

        # The root logger would print every record a second time
        logger.propagate = False

    return logger


def configure_level(level: int) -> None:
    """Apply a log level to every dailyinterval logger created so far."""
    set_default_level(level)

    for name in logging.Logger.manager.loggerDict:
        if isinstance(name, str) and name.startswith('dailyinterval.'):
            lgr = logging.getLogger(name)
            lgr.setLevel(level)
            for handler in lgr.handlers:
                handler.setLevel(level)
