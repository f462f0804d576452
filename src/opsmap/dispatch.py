"""Marshal callbacks from worker threads onto the board's event loop.

All surface work happens on a single thread.  Fetches complete on worker
threads, so their completion handlers are posted through a dispatcher which
runs them on the owning loop.  :mod:`opsmap.qt_bridge` provides the PySide6
equivalent for Qt applications (install the ``qt`` extra).
"""

from __future__ import annotations

import logging
import queue
import time
from typing import Callable, Protocol

_LOGGER = logging.getLogger(__name__)


class Dispatcher(Protocol):
    def post(self, callback: Callable[[], None]) -> None:  # pragma: no cover - interface definition only
        ...


class ImmediateDispatcher:
    """Run callbacks synchronously in the posting thread.

    Suitable when every completion already arrives on the loop thread, e.g.
    tests that resolve futures by hand.
    """

    def post(self, callback: Callable[[], None]) -> None:
        callback()


class QueueDispatcher:
    """Thread-safe FIFO drained explicitly by the owning loop."""

    def __init__(self) -> None:
        self._queue: "queue.SimpleQueue[Callable[[], None]]" = queue.SimpleQueue()

    # ------------------------------------------------------------------
    def post(self, callback: Callable[[], None]) -> None:
        self._queue.put(callback)

    # ------------------------------------------------------------------
    def process_pending(self, timeout: float = 0.0) -> int:
        """Run queued callbacks and return how many ran.

        When the queue is empty, wait up to *timeout* seconds for the first
        callback.  A callback that raises is logged and does not stop the
        remaining ones.
        """

        processed = 0
        try:
            callback = self._queue.get(timeout=timeout) if timeout > 0 else self._queue.get_nowait()
        except queue.Empty:
            return 0
        while True:
            try:
                callback()
            except Exception:
                _LOGGER.exception("Dispatched callback %r failed", callback)
            processed += 1
            try:
                callback = self._queue.get_nowait()
            except queue.Empty:
                return processed

    # ------------------------------------------------------------------
    def run_until(self, predicate: Callable[[], bool], *, timeout: float, poll: float = 0.05) -> bool:
        """Drain the queue until *predicate* holds or *timeout* elapses."""

        deadline = time.monotonic() + timeout
        while not predicate():
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                return False
            self.process_pending(timeout=min(poll, remaining))
        return True

    def pending(self) -> int:
        return self._queue.qsize()


__all__ = ["Dispatcher", "ImmediateDispatcher", "QueueDispatcher"]
