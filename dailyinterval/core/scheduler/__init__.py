# dailyinterval/core/scheduler/__init__.py
"""
Scheduler module for daily wall-clock intervals.

Main components:
- DailyIntervalScheduler: Arms, fires and re-arms one timer per schedule
- HandleRegistry: Timer id -> low-level handle map used for cancellation
- calculate_next_fire: Next fire time calculation

Example usage:
    from dailyinterval.core.scheduler import DailyIntervalScheduler

    async with DailyIntervalScheduler() as scheduler:
        timer_id = scheduler.create(report, 120, '1:00')
"""

from dailyinterval.core.scheduler.service import DailyIntervalScheduler
from dailyinterval.core.scheduler.registry import HandleRegistry
from dailyinterval.core.scheduler.calculator import (
    calculate_next_fire,
    upcoming_fire_times,
)

__all__ = [
    'DailyIntervalScheduler',
    'HandleRegistry',
    'calculate_next_fire',
    'upcoming_fire_times',
]
