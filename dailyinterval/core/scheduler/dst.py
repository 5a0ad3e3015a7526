# dailyinterval/core/scheduler/dst.py
"""
Daylight-saving compensation.

Absolute-time arithmetic drifts away from civil time whenever a seasonal
UTC-offset change lies between two instants. The helpers here map a coarse
absolute candidate back onto the civil grid the user asked for.

All instants are UTC-aware datetimes. Wall-clock values are naive datetimes
interpreted in the schedule's zone.
"""

from __future__ import annotations

import os
from datetime import datetime, timedelta, timezone, tzinfo
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from dailyinterval.core.defaults import MAX_COMPENSATION_STEPS
from dailyinterval.core.errors import ConfigurationError, ErrorCode, SchedulerError
from dailyinterval.core.logging import get_logger
from dailyinterval.core.models.schedule import AnchorSpec
from dailyinterval.core.scheduler.grid import (
    minutes_of_day,
    split_minutes,
    wall_clock_grid_point,
)

logger = get_logger('dst')

_LOCALTIME_PATH = '/etc/localtime'


def load_timezone(name: Optional[str]) -> tzinfo:
    """
    Resolve a timezone name into a tzinfo.

    ``None`` selects the host's local zone: ``$TZ`` first, then
    ``/etc/localtime``, and UTC when neither is usable.

    Raises:
        ConfigurationError: If an explicit name is not a known zone
    """
    if name is not None:
        try:
            return ZoneInfo(name)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ConfigurationError(
                message=f"invalid timezone '{name}'",
                code=ErrorCode.CONFIG_INVALID_TIMEZONE,
                notes=[f'zoneinfo lookup failed: {e}'],
                help_text='use an IANA zone name such as "Europe/Berlin", or None for local time',
            ) from e

    env_name = os.environ.get('TZ', '').lstrip(':')
    if env_name:
        try:
            return ZoneInfo(env_name)
        except (ZoneInfoNotFoundError, ValueError):
            logger.warning(f"Ignoring unknown TZ='{env_name}'")

    try:
        with open(_LOCALTIME_PATH, 'rb') as f:
            return ZoneInfo.from_file(f, key='localtime')
    except (OSError, ValueError):
        logger.warning('Could not determine local timezone, using UTC')
        return timezone.utc


def to_wall_clock(instant: datetime, tz: tzinfo) -> datetime:
    """Civil (naive) reading of an absolute instant in ``tz``."""
    return instant.astimezone(tz).replace(tzinfo=None)


def utc_offset(instant: datetime, tz: tzinfo) -> timedelta:
    offset = instant.astimezone(tz).utcoffset()
    return offset if offset is not None else timedelta(0)


def seasonal_offset(tz: tzinfo, year: int) -> timedelta:
    """
    Magnitude of the seasonal UTC-offset difference for ``tz`` in ``year``.

    Compares the offsets in effect on January 1 and July 1, which straddle
    the seasonal shift in both hemispheres. Zero for zones without DST.
    """
    winter = datetime(year, 1, 1, 12, tzinfo=tz).utcoffset() or timedelta(0)
    summer = datetime(year, 7, 1, 12, tzinfo=tz).utcoffset() or timedelta(0)
    return abs(summer - winter)


def resolve_wall_clock(wall: datetime, tz: tzinfo) -> Optional[datetime]:
    """
    Resolve a naive wall-clock value into a UTC instant.

    Returns None for nonexistent local times (spring-forward gaps).
    For ambiguous local times (fall-back), returns the earliest instant.
    """
    valid: list[datetime] = []
    for fold in (0, 1):
        candidate = wall.replace(tzinfo=tz, fold=fold)
        roundtrip = candidate.astimezone(timezone.utc).astimezone(tz)
        if roundtrip.replace(tzinfo=None) == wall:
            valid.append(candidate.astimezone(timezone.utc))

    if not valid:
        return None
    return min(valid)


def anchor_epoch(anchor: AnchorSpec, now: datetime, tz: tzinfo) -> datetime:
    """Absolute instant of the anchor on the civil date of ``now``."""
    wall = to_wall_clock(now, tz).replace(
        hour=anchor.hour, minute=anchor.minute, second=0, microsecond=0,
    )
    return _resolve_or_shift(wall, tz)


def _resolve_or_shift(wall: datetime, tz: tzinfo) -> datetime:
    """Resolve ``wall``, moving gap times forward by the seasonal offset."""
    resolved = resolve_wall_clock(wall, tz)
    if resolved is not None:
        return resolved

    shifted = resolve_wall_clock(wall + seasonal_offset(tz, wall.year), tz)
    if shifted is None:
        # Gap from a non-seasonal rule change; let the zone pick the mapping
        return wall.replace(tzinfo=tz).astimezone(timezone.utc)
    logger.debug(f'{wall:%Y-%m-%d %H:%M} does not exist, shifted to {shifted.astimezone(tz)}')
    return shifted


def realign(
    candidate: datetime,
    *,
    origin: datetime,
    now: datetime,
    anchor: AnchorSpec,
    interval: timedelta,
    tz: tzinfo,
) -> datetime:
    """
    Move a coarse candidate onto the civil grid.

    Args:
        candidate: Coarse instant from absolute-time grid arithmetic
        origin: Aligned instant the candidate was stepped from; its UTC
            offset is the one the absolute arithmetic implicitly assumed
        now: The true current instant
        anchor: Grid anchor
        interval: Grid spacing
        tz: Schedule timezone

    Returns:
        UTC instant strictly after ``now`` whose civil time is on the grid.
        Ambiguous civil times use their first occurrence; times skipped by
        a spring-forward shift fire once, moved forward by the shift.

    Raises:
        SchedulerError: If no future grid point is found within
            MAX_COMPENSATION_STEPS rounds
    """
    interval_minutes = int(interval / timedelta(minutes=1))

    for _ in range(MAX_COMPENSATION_STEPS):
        # Civil time as the absolute arithmetic meant it, drift removed
        civil = (candidate + utc_offset(origin, tz)).replace(tzinfo=None)

        tod = wall_clock_grid_point(
            minutes_of_day(civil.hour, civil.minute),
            anchor.minutes_of_day(),
            interval_minutes,
        )
        hour, minute = split_minutes(tod)
        wall = civil.replace(hour=hour, minute=minute, second=0, microsecond=0)
        resolved = _resolve_or_shift(wall, tz)

        if resolved < now:
            resolved += seasonal_offset(tz, wall.year)

        if resolved > now:
            if resolved != candidate:
                logger.debug(
                    f'Realigned {candidate.astimezone(tz)} -> {resolved.astimezone(tz)}'
                )
            return resolved

        origin = resolved
        candidate = resolved + interval

    raise SchedulerError(
        message='could not find a future grid point',
        code=ErrorCode.SCHEDULER_COMPENSATION_DIVERGED,
        notes=[
            f'anchor={anchor}, interval={interval}, now={now.isoformat()}',
            f'gave up after {MAX_COMPENSATION_STEPS} compensation rounds',
        ],
    )
