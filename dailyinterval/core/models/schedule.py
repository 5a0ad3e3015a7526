# dailyinterval/core/models/schedule.py
from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from typing_extensions import Self

from dailyinterval.core.errors import (
    ConfigurationError,
    ErrorCode,
    ValidationReport,
    raise_collected,
)
from dailyinterval.core.logging import get_logger

logger = get_logger('models')


class AnchorSpec(BaseModel):
    """
    Wall-clock point the daily grid is pinned to.

    Out-of-range components are rejected rather than carried into the
    following hour or day.

    Examples:
        - 1:00 AM -> AnchorSpec(hour=1, minute=0)
        - 22:30   -> AnchorSpec.parse('22:30')
    """

    model_config = ConfigDict(frozen=True)

    hour: int = Field(default=0, description='Hour of the day (0-23)')
    minute: int = Field(default=0, description='Minute of the hour (0-59)')

    @model_validator(mode='after')
    def validate_ranges(self) -> Self:
        """Ensure hour and minute name a real wall-clock time."""
        report = ValidationReport('anchor')
        if not 0 <= self.hour <= 23:
            report.add(
                ConfigurationError(
                    message=f'anchor hour {self.hour} is out of range',
                    code=ErrorCode.CONFIG_INVALID_STARTING_TIME,
                    notes=['hour must be between 0 and 23 (24-hour clock)'],
                    help_text='use 24-hour time, e.g. "13:30" for 1:30 PM',
                )
            )
        if not 0 <= self.minute <= 59:
            report.add(
                ConfigurationError(
                    message=f'anchor minute {self.minute} is out of range',
                    code=ErrorCode.CONFIG_INVALID_STARTING_TIME,
                    notes=['minute must be between 0 and 59'],
                    help_text='carry extra minutes into the hour yourself, e.g. "1:30" not "0:90"',
                )
            )
        raise_collected(report)
        return self

    @classmethod
    def parse(cls, starting_time: str) -> AnchorSpec:
        """
        Parse a 24-hour ``"H:M"`` string.

        Raises:
            ConfigurationError: If the string is not two integer components
                or a component is out of range
        """
        parts = starting_time.split(':')
        if len(parts) != 2:
            raise ConfigurationError(
                message=f"invalid starting time '{starting_time}'",
                code=ErrorCode.CONFIG_INVALID_STARTING_TIME,
                notes=[f'expected 2 components separated by ":", got {len(parts)}'],
                help_text='use 24-hour "H:M" format, e.g. "0:0" or "13:45"',
            )
        try:
            hour, minute = (int(part) for part in parts)
        except ValueError as e:
            raise ConfigurationError(
                message=f"invalid starting time '{starting_time}'",
                code=ErrorCode.CONFIG_INVALID_STARTING_TIME,
                notes=[f'non-numeric component: {e}'],
                help_text='use 24-hour "H:M" format, e.g. "0:0" or "13:45"',
            ) from e
        return cls(hour=hour, minute=minute)

    def minutes_of_day(self) -> int:
        return 60 * self.hour + self.minute

    def __str__(self) -> str:
        return f'{self.hour}:{self.minute:02d}'


class DailyIntervalSpec(BaseModel):
    """
    Definition of one daily-interval schedule.

    Fields:
        - anchor: Wall-clock time the grid is pinned to
        - interval_minutes: Grid spacing in minutes; values below 1 clamp to 1
        - args: Positional arguments bound to the callback
        - kwargs: Keyword arguments bound to the callback (argument slots
          for source-text callbacks)
    """

    anchor: AnchorSpec = Field(default_factory=AnchorSpec, description='Grid anchor')
    interval_minutes: int = Field(default=1, description='Minutes between grid points')
    args: tuple[Any, ...] = Field(default=(), description='Callback positional arguments')
    kwargs: dict[str, Any] = Field(
        default_factory=dict, description='Callback keyword arguments'
    )

    @field_validator('interval_minutes', mode='before')
    @classmethod
    def clamp_interval(cls, value: Any) -> Any:
        if isinstance(value, (int, float)) and value < 1:
            logger.debug(f'interval_minutes={value} clamped to 1')
            return 1
        return value

    @classmethod
    def from_starting_time(
        cls,
        interval_minutes: int = 1,
        starting_time: str = '0:0',
        args: tuple[Any, ...] = (),
        kwargs: dict[str, Any] | None = None,
    ) -> DailyIntervalSpec:
        """Build a spec from the ``create()`` call shape."""
        return cls(
            anchor=AnchorSpec.parse(starting_time),
            interval_minutes=interval_minutes,
            args=args,
            kwargs=kwargs or {},
        )
