# dailyinterval/core/scheduler/registry.py
from __future__ import annotations

from typing import Generic, Protocol, TypeVar

from dailyinterval.core.logging import get_logger

logger = get_logger('registry')


class Cancellable(Protocol):
    def cancel(self) -> object: ...


H = TypeVar('H', bound=Cancellable)


class HandleRegistry(Generic[H]):
    """
    Maps timer ids to low-level timer handles.

    Ids start at 1, increase monotonically and are never reused for the
    lifetime of the registry.
    """

    def __init__(self) -> None:
        self._handles: dict[int, H] = {}
        self._next_id = 1

    def create(self, handle: H) -> int:
        """Issue the next timer id for ``handle``."""
        timer_id = self._next_id
        self._next_id += 1
        self._handles[timer_id] = handle
        return timer_id

    def cancel(self, timer_id: int) -> bool:
        """
        Cancel the handle for ``timer_id`` and forget it.

        Unknown or already-cancelled ids are a silent no-op.

        Returns:
            True if a handle was cancelled
        """
        handle = self._handles.pop(timer_id, None)
        if handle is None:
            logger.debug(f'cancel({timer_id}): no such timer')
            return False
        handle.cancel()
        return True

    def cancel_all(self) -> int:
        """Cancel every registered handle, returning how many were cancelled."""
        timer_ids = list(self._handles)
        for timer_id in timer_ids:
            self.cancel(timer_id)
        return len(timer_ids)

    def ids(self) -> list[int]:
        return sorted(self._handles)

    def __contains__(self, timer_id: object) -> bool:
        return timer_id in self._handles
