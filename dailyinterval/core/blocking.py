# dailyinterval/core/blocking.py
from __future__ import annotations

from types import TracebackType
from typing import Any, Callable, Optional

from dailyinterval.core.errors import ErrorCode, SchedulerError
from dailyinterval.core.logging import get_logger
from dailyinterval.core.models.config import SchedulerConfig
from dailyinterval.core.scheduler.clock import Clock
from dailyinterval.core.scheduler.service import DailyIntervalScheduler
from dailyinterval.core.utils.loop_runner import LoopRunner

logger = get_logger('blocking')


class BlockingDailyIntervalScheduler:
    """
    DailyIntervalScheduler for synchronous programs.

    Runs one event loop on a background thread. ``create`` and ``cancel``
    are marshalled onto that loop, so every schedule is still driven from a
    single control flow; callbacks run on the loop thread.

    Example usage:
        with BlockingDailyIntervalScheduler() as scheduler:
            timer_id = scheduler.create(report, 120, '1:00')
            ...
            scheduler.cancel(timer_id)
    """

    def __init__(
        self,
        config: Optional[SchedulerConfig] = None,
        *,
        clock: Optional[Clock] = None,
        runner: Optional[LoopRunner] = None,
    ) -> None:
        self._scheduler = DailyIntervalScheduler(config, clock=clock)
        self._runner = runner or LoopRunner()
        self._owns_runner = runner is None
        self._closed = False

    @property
    def scheduler(self) -> DailyIntervalScheduler:
        """The underlying async scheduler (touch only from the loop thread)."""
        return self._scheduler

    def create(
        self,
        callback: Callable[..., Any] | str,
        interval_minutes: int = 1,
        starting_time: str = '0:0',
        *args: Any,
        **kwargs: Any,
    ) -> int:
        """Start a daily interval; see DailyIntervalScheduler.create."""
        self._ensure_open()

        async def _create() -> int:
            return self._scheduler.create(
                callback, interval_minutes, starting_time, *args, **kwargs
            )

        timer_id: int = self._runner.call(_create)
        return timer_id

    def cancel(self, timer_id: int) -> None:
        """Stop a daily interval. Unknown or cancelled ids are ignored."""
        if self._closed:
            return

        async def _cancel() -> None:
            self._scheduler.cancel(timer_id)

        self._runner.call(_cancel)

    def active_ids(self) -> list[int]:
        if self._closed:
            return []

        async def _ids() -> list[int]:
            return self._scheduler.active_ids()

        ids: list[int] = self._runner.call(_ids)
        return ids

    def close(self) -> None:
        """Cancel every schedule and stop the owned event loop thread."""
        if self._closed:
            return
        self._closed = True
        if self._runner.is_running:
            self._runner.call(self._scheduler.aclose)
        if self._owns_runner:
            self._runner.stop()
        logger.debug('Blocking scheduler closed')

    def _ensure_open(self) -> None:
        if self._closed:
            raise SchedulerError(
                message='scheduler is closed',
                code=ErrorCode.SCHEDULER_CLOSED,
                help_text='create a new BlockingDailyIntervalScheduler',
            )

    def __enter__(self) -> BlockingDailyIntervalScheduler:
        return self

    def __exit__(
        self,
        exc_type: Optional[type[BaseException]],
        exc: Optional[BaseException],
        tb: Optional[TracebackType],
    ) -> None:
        self.close()
