# dailyinterval/core/models/config.py
from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field, model_validator
from typing_extensions import Self

from dailyinterval.core.defaults import (
    DEFAULT_MAX_DELAY_SECONDS,
    DEFAULT_MIN_DELAY_SECONDS,
    DEFAULT_REARM_RATE,
)
from dailyinterval.core.errors import (
    ConfigurationError,
    ErrorCode,
    ValidationReport,
    raise_collected,
)


class SchedulerConfig(BaseModel):
    """
    Scheduler configuration.

    Fields:
        - timezone: IANA zone the wall-clock grid lives in (None = host local zone)
        - rearm_rate: Fraction of the remaining wait armed per timer cycle (0 < r <= 1)
        - max_delay_seconds: Longest single timer armed per cycle
        - min_delay_seconds: Shortest single timer armed per cycle
    """

    timezone: Optional[str] = Field(
        default=None, description='Timezone for grid evaluation (None = local)'
    )
    rearm_rate: float = Field(
        default=DEFAULT_REARM_RATE, description='Re-arm safety factor'
    )
    max_delay_seconds: float = Field(
        default=DEFAULT_MAX_DELAY_SECONDS, description='Single timer ceiling'
    )
    min_delay_seconds: float = Field(
        default=DEFAULT_MIN_DELAY_SECONDS, description='Single timer floor'
    )

    @model_validator(mode='after')
    def validate_timer_bounds(self) -> Self:
        """Ensure the re-arm tuning describes a converging timer chain."""
        report = ValidationReport('scheduler')
        if not 0 < self.rearm_rate <= 1:
            report.add(
                ConfigurationError(
                    message=f'rearm_rate {self.rearm_rate} is out of range',
                    code=ErrorCode.CONFIG_INVALID_REARM,
                    notes=['each cycle arms rearm_rate * remaining wait'],
                    help_text='use a value in (0, 1]; the default is 0.9',
                )
            )
        if self.min_delay_seconds < 0:
            report.add(
                ConfigurationError(
                    message='min_delay_seconds must not be negative',
                    code=ErrorCode.CONFIG_INVALID_REARM,
                    notes=[f'min_delay_seconds={self.min_delay_seconds}'],
                )
            )
        if self.max_delay_seconds <= 0 or self.max_delay_seconds < self.min_delay_seconds:
            report.add(
                ConfigurationError(
                    message='max_delay_seconds must be positive and >= min_delay_seconds',
                    code=ErrorCode.CONFIG_INVALID_REARM,
                    notes=[
                        f'max_delay_seconds={self.max_delay_seconds}',
                        f'min_delay_seconds={self.min_delay_seconds}',
                    ],
                )
            )
        raise_collected(report)
        return self

    @model_validator(mode='after')
    def validate_timezone(self) -> Self:
        """Fail fast on unknown zone names."""
        if self.timezone is not None:
            from dailyinterval.core.scheduler.dst import load_timezone

            load_timezone(self.timezone)
        return self
