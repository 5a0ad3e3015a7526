# dailyinterval/core/scheduler/clock.py
from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from typing import Protocol


class Clock(Protocol):
    """Source of the current instant and of low-level timers."""

    def now(self) -> datetime:
        """Current instant as a UTC-aware datetime."""
        ...

    async def sleep(self, seconds: float) -> None:
        """Suspend the caller for ``seconds`` (one low-level timer)."""
        ...


class SystemClock:
    """Wall clock of the host, timers from the running event loop."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)

    async def sleep(self, seconds: float) -> None:
        await asyncio.sleep(seconds)
