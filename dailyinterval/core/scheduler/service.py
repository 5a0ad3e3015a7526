# dailyinterval/core/scheduler/service.py
from __future__ import annotations

import asyncio
import inspect
from datetime import datetime, timedelta
from types import TracebackType
from typing import Any, Callable, Optional

from dailyinterval.core.callbacks import bind_callback
from dailyinterval.core.errors import ErrorCode, SchedulerError
from dailyinterval.core.logging import get_logger
from dailyinterval.core.models.config import SchedulerConfig
from dailyinterval.core.models.schedule import DailyIntervalSpec
from dailyinterval.core.scheduler.clock import Clock, SystemClock
from dailyinterval.core.scheduler.dst import (
    anchor_epoch,
    load_timezone,
    realign,
    seasonal_offset,
)
from dailyinterval.core.scheduler.grid import next_grid_point
from dailyinterval.core.scheduler.registry import HandleRegistry
from dailyinterval.core.scheduler.state import ExpiryAction, ScheduleState, TimerPhase

logger = get_logger('scheduler')


class DailyIntervalScheduler:
    """
    Fires callbacks on daily wall-clock grids.

    Responsibilities:
    1. Compute each schedule's next grid point (grid math + DST compensation)
    2. Keep exactly one low-level timer armed per schedule
    3. Decide on every expiry whether to fire, wait longer, or rebuild after
       a clock jump
    4. Own the id -> timer registry used for cancellation

    Every schedule runs as one long-lived task on the event loop that was
    running when it was created. All state is touched only from that loop.
    """

    def __init__(
        self,
        config: Optional[SchedulerConfig] = None,
        *,
        clock: Optional[Clock] = None,
    ) -> None:
        self.config = config or SchedulerConfig()
        self.tz = load_timezone(self.config.timezone)
        self.clock: Clock = clock or SystemClock()
        self._registry: HandleRegistry[asyncio.Task[None]] = HandleRegistry()
        self._states: dict[int, ScheduleState] = {}
        self._closed = False

        logger.debug(
            f'Scheduler initialized, timezone={self.tz}, '
            f'rearm_rate={self.config.rearm_rate}'
        )

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def create(
        self,
        callback: Callable[..., Any] | str,
        interval_minutes: int = 1,
        starting_time: str = '0:0',
        *args: Any,
        **kwargs: Any,
    ) -> int:
        """
        Start a daily interval.

        Args:
            callback: Function to call at every grid point, or source text
                for an isolated function body
            interval_minutes: Minutes between grid points (values < 1 clamp to 1)
            starting_time: Grid anchor, 24-hour ``"H:M"``
            *args: Positional arguments bound to the callback
            **kwargs: Keyword arguments bound to the callback

        Returns:
            Timer id for ``cancel()``

        Raises:
            ConfigurationError: If ``starting_time`` is malformed or out of range
            CallbackError: If the callback cannot be bound
            SchedulerError: If no event loop is running or the scheduler is closed
        """
        spec = DailyIntervalSpec.from_starting_time(
            interval_minutes=interval_minutes,
            starting_time=starting_time,
            args=args,
            kwargs=kwargs,
        )
        return self.schedule(callback, spec)

    def schedule(
        self, callback: Callable[..., Any] | str, spec: DailyIntervalSpec
    ) -> int:
        """Start a daily interval from a prepared spec."""
        if self._closed:
            raise SchedulerError(
                message='scheduler is closed',
                code=ErrorCode.SCHEDULER_CLOSED,
                help_text='create a new DailyIntervalScheduler',
            )
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError as e:
            raise SchedulerError(
                message='no running event loop',
                code=ErrorCode.SCHEDULER_NO_EVENT_LOOP,
                notes=['schedules run as tasks on the current asyncio event loop'],
                help_text=(
                    'call create() from async code, or use\n'
                    'BlockingDailyIntervalScheduler from synchronous code'
                ),
            ) from e

        state = ScheduleState(
            anchor=spec.anchor,
            interval=timedelta(minutes=spec.interval_minutes),
            callback=bind_callback(callback, spec.args, spec.kwargs),
        )
        self._rebuild(state, self.clock.now())

        task = loop.create_task(self._run(state))
        state.handle = task
        state.timer_id = self._registry.create(task)
        task.set_name(f'dailyinterval-{state.timer_id}')
        self._states[state.timer_id] = state

        logger.info(
            f'Daily interval {state.timer_id} started: every '
            f'{spec.interval_minutes} min from {spec.anchor}, '
            f'next fire at {self._local(state.next_fire_at)}'
        )
        return state.timer_id

    def cancel(self, timer_id: int) -> None:
        """Stop a daily interval. Unknown or cancelled ids are ignored."""
        state = self._states.pop(timer_id, None)
        if state is not None:
            state.phase = TimerPhase.STOPPED
        if self._registry.cancel(timer_id):
            logger.info(f'Daily interval {timer_id} cancelled')

    def cancel_all(self) -> None:
        for state in self._states.values():
            state.phase = TimerPhase.STOPPED
        self._states.clear()
        cancelled = self._registry.cancel_all()
        if cancelled:
            logger.info(f'Cancelled {cancelled} daily interval(s)')

    def active_ids(self) -> list[int]:
        return self._registry.ids()

    def get_state(self, timer_id: int) -> Optional[ScheduleState]:
        return self._states.get(timer_id)

    async def aclose(self) -> None:
        """Cancel every schedule and wait for their tasks to finish."""
        self._closed = True
        tasks = [state.handle for state in self._states.values() if state.handle]
        self.cancel_all()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        logger.debug('Scheduler closed')

    async def __aenter__(self) -> DailyIntervalScheduler:
        return self

    async def __aexit__(
        self,
        exc_type: Optional[type[BaseException]],
        exc: Optional[BaseException],
        tb: Optional[TracebackType],
    ) -> None:
        await self.aclose()

    # ------------------------------------------------------------------
    # Rearm loop
    # ------------------------------------------------------------------

    def rearm_delay(self, state: ScheduleState, now: datetime) -> float:
        """Seconds to arm the next timer for: a fraction of the remaining wait."""
        assert state.next_fire_at is not None
        remaining = (state.next_fire_at - now).total_seconds()
        delay = self.config.rearm_rate * min(remaining, self.config.max_delay_seconds)
        return max(delay, self.config.min_delay_seconds)

    async def _run(self, state: ScheduleState) -> None:
        try:
            while state.timer_id in self._registry:
                state.phase = TimerPhase.ARMED
                await self.clock.sleep(self.rearm_delay(state, self.clock.now()))

                # An expiry racing a cancel() must not fire or re-arm
                if state.timer_id not in self._registry:
                    return

                state.phase = TimerPhase.FIRING
                await self.handle_expiry(state, self.clock.now())
        except Exception as e:
            logger.error(
                f'Daily interval {state.timer_id} stopped after error: {e}',
                exc_info=True,
            )
            self._states.pop(state.timer_id, None)
            self._registry.cancel(state.timer_id)
        finally:
            state.phase = TimerPhase.STOPPED

    async def handle_expiry(self, state: ScheduleState, now: datetime) -> ExpiryAction:
        """
        Decide what one timer expiry means.

        - now before the fire instant by more than an interval (plus the zone's
          seasonal shift, which a fall-back night adds to one gap): the clock
          was set back; rebuild without firing
        - fire instant reached: advance one interval; if that is still in the
          past the clock was set forward, rebuild without firing (missed ticks
          are not replayed); otherwise fire once and realign for DST
        - a callback that returns after the next tick is treated like a
          forward jump
        - otherwise: woke early, nothing to do but re-arm
        """
        assert state.next_fire_at is not None
        fire_at = state.next_fire_at
        interval = state.interval

        if now < fire_at - interval - seasonal_offset(self.tz, fire_at.year):
            logger.warning(
                f'Daily interval {state.timer_id}: clock moved backward '
                f'(now={self._local(now)}, next fire={self._local(fire_at)}), rebuilding'
            )
            self._rebuild(state, now)
            return ExpiryAction.REBUILT_BACKWARD

        if now < fire_at:
            return ExpiryAction.EARLY

        advanced = fire_at + interval
        if advanced < now:
            logger.warning(
                f'Daily interval {state.timer_id}: clock moved forward past '
                f'{self._local(advanced)}, skipping missed ticks and rebuilding'
            )
            self._rebuild(state, now)
            return ExpiryAction.REBUILT_FORWARD

        state.next_fire_at = advanced
        await self._invoke(state, now)

        after = self.clock.now()
        if advanced < after:
            logger.warning(
                f'Daily interval {state.timer_id}: callback returned after the next '
                f'tick ({self._local(advanced)}), skipping to the next grid point'
            )
            self._rebuild(state, after)
            return ExpiryAction.FIRED

        state.next_fire_at = realign(
            advanced,
            origin=fire_at,
            now=after,
            anchor=state.anchor,
            interval=interval,
            tz=self.tz,
        )
        logger.debug(
            f'Daily interval {state.timer_id} next fire at {self._local(state.next_fire_at)}'
        )
        return ExpiryAction.FIRED

    def _rebuild(self, state: ScheduleState, now: datetime) -> None:
        """Recompute the grid from a fresh anchor instant on today's date."""
        if state.next_fire_at is not None:
            state.rebuild_count += 1
        epoch = anchor_epoch(state.anchor, now, self.tz)
        candidate = next_grid_point(now, epoch, state.interval)
        state.next_fire_at = realign(
            candidate,
            origin=now,
            now=now,
            anchor=state.anchor,
            interval=state.interval,
            tz=self.tz,
        )

    async def _invoke(self, state: ScheduleState, now: datetime) -> None:
        state.fire_count += 1
        state.last_fired_at = now
        try:
            result = state.callback()
            if inspect.isawaitable(result):
                await result
        except Exception as e:
            logger.error(
                f'Callback for daily interval {state.timer_id} failed: {e}',
                exc_info=True,
            )

    def _local(self, instant: Optional[datetime]) -> str:
        if instant is None:
            return '-'
        return instant.astimezone(self.tz).strftime('%Y-%m-%d %H:%M %Z')
