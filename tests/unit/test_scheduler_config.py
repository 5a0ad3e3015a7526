"""Tests for SchedulerConfig validation."""

from __future__ import annotations

import pytest

from dailyinterval.core.errors import (
    ConfigurationError,
    ErrorCode,
    MultipleValidationErrors,
)
from dailyinterval.core.models.config import SchedulerConfig

pytestmark = pytest.mark.unit


class TestSchedulerConfig:
    """Tests for re-arm tuning and timezone validation."""

    def test_defaults(self) -> None:
        config = SchedulerConfig()
        assert config.timezone is None
        assert config.rearm_rate == 0.9
        assert config.max_delay_seconds == 86400
        assert config.min_delay_seconds == 0.01

    def test_explicit_timezone(self) -> None:
        assert SchedulerConfig(timezone='Europe/Berlin').timezone == 'Europe/Berlin'

    def test_unknown_timezone_rejected(self) -> None:
        with pytest.raises(ConfigurationError) as exc_info:
            SchedulerConfig(timezone='Nowhere/Special')

        assert exc_info.value.code == ErrorCode.CONFIG_INVALID_TIMEZONE

    @pytest.mark.parametrize('rate', [0.0, -0.5, 1.01])
    def test_rearm_rate_out_of_range(self, rate: float) -> None:
        with pytest.raises(ConfigurationError) as exc_info:
            SchedulerConfig(rearm_rate=rate)

        assert exc_info.value.code == ErrorCode.CONFIG_INVALID_REARM

    def test_rearm_rate_of_one_allowed(self) -> None:
        assert SchedulerConfig(rearm_rate=1.0).rearm_rate == 1.0

    def test_max_below_min_rejected(self) -> None:
        with pytest.raises(ConfigurationError, match='max_delay_seconds'):
            SchedulerConfig(max_delay_seconds=1.0, min_delay_seconds=5.0)

    def test_negative_min_rejected(self) -> None:
        with pytest.raises(ConfigurationError, match='min_delay_seconds'):
            SchedulerConfig(min_delay_seconds=-1.0)

    def test_errors_collected(self) -> None:
        with pytest.raises(MultipleValidationErrors) as exc_info:
            SchedulerConfig(rearm_rate=2.0, max_delay_seconds=0.0)

        codes = {error.code for error in exc_info.value.report.errors}
        assert codes == {ErrorCode.CONFIG_INVALID_REARM}
        assert len(exc_info.value.report.errors) == 2
