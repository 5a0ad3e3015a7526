"""dailyinterval - Fire callbacks on daily wall-clock grids that survive DST shifts"""

# Install Rust-style error handler on import
from .core.errors import install_error_handler as _install_error_handler

_install_error_handler()

from .core.scheduler.service import DailyIntervalScheduler
from .core.blocking import BlockingDailyIntervalScheduler
from .core.models.config import SchedulerConfig
from .core.models.schedule import AnchorSpec, DailyIntervalSpec
from .core.scheduler.state import ExpiryAction, ScheduleState, TimerPhase
from .core.scheduler.clock import Clock, SystemClock
from .core.scheduler.calculator import calculate_next_fire, upcoming_fire_times
from .core.scheduler.grid import next_grid_point, wall_clock_grid_point
from .core.errors import (
    ErrorCode,
    DailyIntervalError,
    ConfigurationError,
    CallbackError,
    SchedulerError,
    ValidationReport,
    MultipleValidationErrors,
)

__all__ = [
    # Core
    'DailyIntervalScheduler',
    'BlockingDailyIntervalScheduler',
    'SchedulerConfig',
    'AnchorSpec',
    'DailyIntervalSpec',
    # Runtime state
    'ExpiryAction',
    'ScheduleState',
    'TimerPhase',
    'Clock',
    'SystemClock',
    # Grid math
    'calculate_next_fire',
    'upcoming_fire_times',
    'next_grid_point',
    'wall_clock_grid_point',
    # Errors
    'ErrorCode',
    'DailyIntervalError',
    'ConfigurationError',
    'CallbackError',
    'SchedulerError',
    'ValidationReport',
    'MultipleValidationErrors',
]
