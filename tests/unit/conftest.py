"""Shared fixtures for scheduler unit tests."""

from __future__ import annotations

import asyncio
from datetime import datetime, timedelta, timezone

import pytest


class FakeClock:
    """
    Deterministic clock for driving the rearm loop.

    ``sleep`` advances the clock instead of waiting. ``drift`` scales every
    sleep to simulate timers that fire early (< 1) or late (> 1).
    """

    def __init__(self, start: datetime, drift: float = 1.0) -> None:
        self.current = start
        self.drift = drift
        self.sleeps: list[float] = []

    def now(self) -> datetime:
        return self.current

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.current += timedelta(seconds=seconds * self.drift)
        await asyncio.sleep(0)

    def set(self, instant: datetime) -> None:
        self.current = instant

    def jump(self, delta: timedelta) -> None:
        """Move the wall clock (NTP step, manual change)."""
        self.current += delta


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock(datetime(2025, 1, 1, 9, 59, tzinfo=timezone.utc))


@pytest.fixture
def make_clock() -> type[FakeClock]:
    """FakeClock constructor, for tests that need their own start or drift."""
    return FakeClock
