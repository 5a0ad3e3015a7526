# dailyinterval/core/utils/loop_runner.py
from __future__ import annotations

import asyncio
import contextlib
import threading
from concurrent.futures import Future
from typing import Any, Awaitable, Callable, Optional

from dailyinterval.core.logging import get_logger


class LoopRunnerError(RuntimeError):
    """Infrastructure failure in the sync->async bridge."""


class LoopRunner:
    """Own one event loop on a daemon thread and run coroutines on it from sync code."""

    def __init__(self, thread_name: str = 'dailyinterval-loop') -> None:
        self.logger = get_logger('loop_runner')
        self._thread_name = thread_name
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._thread: Optional[threading.Thread] = None
        self._started = False
        self._closed = False
        self._state_lock = threading.RLock()

    @property
    def is_running(self) -> bool:
        return self._started and not self._closed

    def start(self) -> None:
        with self._state_lock:
            if self._closed:
                raise LoopRunnerError(
                    'Loop runner has been stopped and cannot be restarted'
                )
            if self._started:
                return
            self._loop = asyncio.new_event_loop()
            self._thread = threading.Thread(
                target=self._loop.run_forever, name=self._thread_name, daemon=True,
            )
            try:
                self._thread.start()
            except RuntimeError as exc:
                self._loop.close()
                self._loop = None
                self._thread = None
                raise LoopRunnerError(
                    f'Failed to start loop runner thread: {exc}',
                ) from exc
            self._started = True

    def stop(self, timeout: float = 2.0) -> None:
        with self._state_lock:
            if self._started and self._loop is not None:
                self._loop.call_soon_threadsafe(self._loop.stop)
                if self._thread is not None:
                    self._thread.join(timeout=timeout)
                    if self._thread.is_alive():
                        self.logger.warning(
                            'Loop runner thread did not stop within timeout; leaving loop open'
                        )
                        return
                self._loop.close()
                self._loop = None
                self._thread = None
                self._started = False
            self._closed = True

    def call(
        self, coro_fn: Callable[..., Awaitable[Any]], *args: Any, **kwargs: Any
    ) -> Any:
        """Run an async function on the loop thread and block until it completes."""
        if not self._started:
            self.start()
        with self._state_lock:
            loop = self._loop
            if self._closed or loop is None:
                raise LoopRunnerError('Loop runner is not running')
        if threading.current_thread() is self._thread:
            raise LoopRunnerError(
                'LoopRunner.call() from the loop thread would deadlock'
            )

        coro: Optional[Awaitable[Any]] = None
        try:
            coro = coro_fn(*args, **kwargs)
            fut: Future[Any] = asyncio.run_coroutine_threadsafe(coro, loop)  # type: ignore[arg-type]
        except Exception as exc:
            # Close the created coroutine so it is not reported as never awaited
            if asyncio.iscoroutine(coro):
                with contextlib.suppress(RuntimeError):
                    coro.close()
            raise LoopRunnerError(
                f'Failed to schedule coroutine on loop runner: {type(exc).__name__}: {exc}',
            ) from exc
        return fut.result()
