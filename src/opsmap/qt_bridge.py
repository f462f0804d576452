"""PySide6 dispatcher that runs callbacks on the GUI thread."""

from __future__ import annotations

import logging
from typing import Callable

from PySide6.QtCore import QObject, Qt, Signal, Slot

_LOGGER = logging.getLogger(__name__)


class QtMainThreadDispatcher(QObject):
    """Post callbacks from any thread to the thread owning this object.

    ``_posted`` uses a queued connection, so emissions from loader worker
    threads are delivered by the receiving thread's event loop.  Create the
    dispatcher on the GUI thread.
    """

    _posted = Signal(object)

    def __init__(self, parent: QObject | None = None) -> None:
        super().__init__(parent)
        self._posted.connect(self._run, Qt.ConnectionType.QueuedConnection)

    # ------------------------------------------------------------------
    def post(self, callback: Callable[[], None]) -> None:
        self._posted.emit(callback)

    # ------------------------------------------------------------------
    @Slot(object)
    def _run(self, callback: Callable[[], None]) -> None:
        try:
            callback()
        except Exception:
            _LOGGER.exception("Dispatched callback %r failed", callback)


__all__ = ["QtMainThreadDispatcher"]
