# dailyinterval/core/scheduler/state.py
"""
Per-schedule runtime state.

This module should not import from other dailyinterval scheduler modules.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import Any, Callable, Optional

from dailyinterval.core.models.schedule import AnchorSpec


class TimerPhase(Enum):
    """Lifecycle phase of one schedule"""

    IDLE = 'idle'  # Created, no timer armed yet.

    ARMED = 'armed'  # A low-level timer is outstanding.

    FIRING = 'firing'  # A timer expired and the expiry is being decided.

    STOPPED = 'stopped'  # Cancelled; nothing will be armed again.

    @property
    def is_terminal(self) -> bool:
        return self is TimerPhase.STOPPED


class ExpiryAction(Enum):
    """Decision taken for one timer expiry"""

    FIRED = 'fired'  # Callback invoked, next fire advanced.
    EARLY = 'early'  # Woke before the fire instant; re-arm only.
    REBUILT_BACKWARD = 'rebuilt_backward'  # Clock moved back further than one gap can span.
    REBUILT_FORWARD = 'rebuilt_forward'  # Clock moved forward past the next tick.


@dataclass
class ScheduleState:
    """Mutable record for one active schedule.

    Exactly one low-level timer (``handle``) is outstanding per state while
    the phase is ARMED.
    """

    anchor: AnchorSpec
    interval: timedelta
    callback: Callable[[], Any]
    next_fire_at: Optional[datetime] = None
    handle: Optional[asyncio.Task[None]] = None
    timer_id: int = 0
    phase: TimerPhase = TimerPhase.IDLE
    fire_count: int = 0
    last_fired_at: Optional[datetime] = None
    rebuild_count: int = 0

    @property
    def interval_minutes(self) -> int:
        return int(self.interval / timedelta(minutes=1))
