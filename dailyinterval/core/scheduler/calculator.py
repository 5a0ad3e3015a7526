# dailyinterval/core/scheduler/calculator.py
from __future__ import annotations

from datetime import datetime, timedelta, timezone, tzinfo
from typing import Optional

from dailyinterval.core.models.schedule import AnchorSpec
from dailyinterval.core.scheduler.dst import anchor_epoch, realign
from dailyinterval.core.scheduler.grid import next_grid_point


def calculate_next_fire(
    anchor: AnchorSpec,
    interval: timedelta,
    now: datetime,
    tz: tzinfo,
) -> datetime:
    """
    Calculate the next fire instant of a freshly built schedule.

    Args:
        anchor: Grid anchor
        interval: Grid spacing
        now: Current instant (must be timezone-aware)
        tz: Timezone the grid lives in

    Returns:
        Next fire time as UTC-aware datetime

    Raises:
        ValueError: If now is naive
    """
    if now.tzinfo is None:
        raise ValueError('now must be timezone-aware')

    now = now.astimezone(timezone.utc)
    epoch = anchor_epoch(anchor, now, tz)
    candidate = next_grid_point(now, epoch, interval)
    return realign(
        candidate, origin=now, now=now, anchor=anchor, interval=interval, tz=tz,
    )


def upcoming_fire_times(
    anchor: AnchorSpec,
    interval: timedelta,
    count: int,
    tz: tzinfo,
    now: Optional[datetime] = None,
) -> list[datetime]:
    """
    Preview the next ``count`` fire instants, assuming every timer is on time.

    Follows the same advance-then-realign step the scheduler takes after
    each fire, so DST transitions show up exactly as they will fire.
    """
    if now is None:
        now = datetime.now(timezone.utc)

    fires: list[datetime] = []
    if count <= 0:
        return fires

    fire_at = calculate_next_fire(anchor, interval, now, tz)
    fires.append(fire_at)
    while len(fires) < count:
        fire_at = realign(
            fire_at + interval,
            origin=fire_at,
            now=fire_at,
            anchor=anchor,
            interval=interval,
            tz=tz,
        )
        fires.append(fire_at)
    return fires
