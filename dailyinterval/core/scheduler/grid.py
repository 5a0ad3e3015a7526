# dailyinterval/core/scheduler/grid.py
"""
Pure arithmetic for the periodic wall-clock grid.

The grid is the set of points ``anchor + k * interval`` for integer ``k``.
Both helpers accept plain ``int`` minutes or ``datetime``/``timedelta``
pairs, since ``timedelta // timedelta`` yields an ``int``.
"""

from __future__ import annotations

from typing import Any, TypeVar

from dailyinterval.core.defaults import MINUTES_PER_DAY

T = TypeVar('T')


def _quotient_toward_zero(delta: Any, interval: Any) -> int:
    if delta >= delta * 0:
        return delta // interval
    return -(-delta // interval)


def next_grid_point(current: T, anchor: T, interval: Any) -> T:
    """
    Return the nearest grid point that is not in the past.

    For ``current`` at or after ``anchor`` this is the first point strictly
    after ``current``. Before the anchor the quotient is rounded toward
    zero, which lands on the grid point at or after ``current``.

    Contract: ``result >= current`` and ``result - interval <= current``.
    """
    delta = current - anchor  # type: ignore[operator]
    n = _quotient_toward_zero(delta, interval)
    if current >= anchor:  # type: ignore[operator]
        n += 1
    return n * interval + anchor  # type: ignore[no-any-return]


def wall_clock_grid_point(minutes: int, anchor_minutes: int, interval: int) -> int:
    """
    Snap a minutes-of-day value onto the day's grid.

    The interval is taken modulo one day; a whole-day interval pins the
    grid to the anchor itself. Values after the anchor snap back to the
    grid point at or before them, values before it snap forward toward
    the anchor, so the result always stays inside the same day.
    """
    day_interval = interval % MINUTES_PER_DAY
    if day_interval == 0:
        return anchor_minutes
    n = _quotient_toward_zero(minutes - anchor_minutes, day_interval)
    return n * day_interval + anchor_minutes


def minutes_of_day(hour: int, minute: int) -> int:
    return 60 * hour + minute


def split_minutes(minutes: int) -> tuple[int, int]:
    """Convert minutes-of-day into ``(hour, minute)``."""
    return divmod(minutes, 60)
