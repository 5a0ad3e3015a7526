"""Tests for fire-time calculator functions (pure, deterministic)."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from zoneinfo import ZoneInfo

import pytest

from dailyinterval.core.models.schedule import AnchorSpec
from dailyinterval.core.scheduler.calculator import calculate_next_fire, upcoming_fire_times

BERLIN = ZoneInfo('Europe/Berlin')
UTC = ZoneInfo('UTC')


def _utc(year: int, month: int, day: int, hour: int = 0, minute: int = 0, second: int = 0) -> datetime:
    """Helper to construct a UTC-aware datetime."""
    return datetime(year, month, day, hour, minute, second, tzinfo=timezone.utc)


def _local(fires: list[datetime], tz: ZoneInfo) -> list[str]:
    return [f.astimezone(tz).strftime('%H:%M %Z') for f in fires]


# =============================================================================
# calculate_next_fire
# =============================================================================


@pytest.mark.unit
class TestCalculateNextFire:
    """Tests for the first fire time of a fresh schedule."""

    def test_two_hour_grid(self) -> None:
        result = calculate_next_fire(
            AnchorSpec(hour=1), timedelta(minutes=120), _utc(2025, 6, 1, 22, 34), UTC,
        )
        assert result == _utc(2025, 6, 1, 23, 0)

    def test_before_anchor_fires_at_anchor(self) -> None:
        result = calculate_next_fire(
            AnchorSpec(hour=10, minute=30), timedelta(hours=6), _utc(2025, 6, 1, 9), UTC,
        )
        assert result == _utc(2025, 6, 1, 10, 30)

    def test_exactly_on_grid_point_returns_next(self) -> None:
        result = calculate_next_fire(
            AnchorSpec(), timedelta(minutes=15), _utc(2025, 6, 1, 12, 15), UTC,
        )
        assert result == _utc(2025, 6, 1, 12, 30)

    def test_grid_in_local_time(self) -> None:
        """Grid points are local wall-clock times, not UTC ones."""
        result = calculate_next_fire(
            AnchorSpec(hour=9), timedelta(hours=24), _utc(2025, 7, 1, 12), BERLIN,
        )
        assert result.astimezone(BERLIN).replace(tzinfo=None) == datetime(2025, 7, 2, 9, 0)

    def test_non_utc_now_accepted(self) -> None:
        now = datetime(2025, 6, 1, 23, 34, tzinfo=timezone(timedelta(hours=1)))
        result = calculate_next_fire(AnchorSpec(hour=1), timedelta(minutes=120), now, UTC)
        assert result == _utc(2025, 6, 1, 23, 0)
        assert result.tzinfo == timezone.utc

    def test_naive_now_rejected(self) -> None:
        with pytest.raises(ValueError, match='timezone-aware'):
            calculate_next_fire(AnchorSpec(), timedelta(minutes=1), datetime(2025, 1, 1), UTC)

    def test_rebuild_inside_repeated_hour(self) -> None:
        result = calculate_next_fire(
            AnchorSpec(), timedelta(minutes=30), _utc(2025, 10, 26, 1, 10), BERLIN,
        )
        assert _local([result], BERLIN) == ['02:30 CET']


# =============================================================================
# upcoming_fire_times
# =============================================================================


@pytest.mark.unit
class TestUpcomingFireTimes:
    """Tests for fire-time previews."""

    def test_zero_count(self) -> None:
        assert upcoming_fire_times(AnchorSpec(), timedelta(hours=1), 0, UTC) == []

    def test_default_now_is_current_time(self) -> None:
        before = datetime.now(timezone.utc)
        fires = upcoming_fire_times(AnchorSpec(), timedelta(minutes=1), 2, UTC)
        assert len(fires) == 2
        assert before < fires[0] < fires[1]

    def test_two_hour_grid(self) -> None:
        fires = upcoming_fire_times(
            AnchorSpec(hour=1), timedelta(minutes=120), 4, UTC, now=_utc(2025, 6, 1, 20, 0),
        )
        assert _local(fires, UTC) == ['21:00 UTC', '23:00 UTC', '01:00 UTC', '03:00 UTC']

    def test_non_dividing_interval_resets_daily(self) -> None:
        fires = upcoming_fire_times(
            AnchorSpec(), timedelta(minutes=100), 3, UTC, now=_utc(2025, 1, 1, 23, 0),
        )
        assert _local(fires, UTC) == ['23:20 UTC', '00:00 UTC', '01:40 UTC']

    def test_spring_forward(self) -> None:
        fires = upcoming_fire_times(
            AnchorSpec(minute=30), timedelta(hours=1), 4, BERLIN, now=_utc(2025, 3, 29, 23, 0),
        )
        assert _local(fires, BERLIN) == ['00:30 CET', '01:30 CET', '03:30 CEST', '04:30 CEST']

    def test_spring_forward_two_hour_grid(self) -> None:
        fires = upcoming_fire_times(
            AnchorSpec(minute=30), timedelta(hours=2), 3, BERLIN, now=_utc(2025, 3, 29, 23, 0),
        )
        assert _local(fires, BERLIN) == ['00:30 CET', '03:30 CEST', '04:30 CEST']

    def test_fall_back(self) -> None:
        fires = upcoming_fire_times(
            AnchorSpec(), timedelta(hours=1), 4, BERLIN, now=_utc(2025, 10, 25, 22, 30),
        )
        assert _local(fires, BERLIN) == ['01:00 CEST', '02:00 CEST', '03:00 CET', '04:00 CET']

    def test_daily_interval_keeps_wall_time_across_transition(self) -> None:
        fires = upcoming_fire_times(
            AnchorSpec(hour=9), timedelta(days=1), 3, BERLIN, now=_utc(2025, 3, 28, 12),
        )
        assert _local(fires, BERLIN) == ['09:00 CET', '09:00 CEST', '09:00 CEST']
        assert fires[1] - fires[0] == timedelta(hours=23)
