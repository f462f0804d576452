"""Pure Python signals used to notify map board consumers.

``Signal`` carries observer callbacks; ``ObservableProperty`` wraps a single
value (such as the selected basemap key) and reports changes to it.
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Callable, Optional

_logger = logging.getLogger(__name__)


class Signal:
    """Observer list with Qt-like ``connect``/``emit`` semantics.

    Handler mutations and emissions are protected by a lock. A handler that
    raises is logged and skipped so the remaining handlers still run.
    """

    def __init__(self, name: str = "signal") -> None:
        self.name = name
        self._handlers: list[Callable] = []
        self._lock = threading.Lock()

    def __repr__(self) -> str:
        return f"<Signal {self.name} handlers={self.handler_count}>"

    def connect(self, handler: Callable) -> None:
        with self._lock:
            if handler not in self._handlers:
                self._handlers.append(handler)

    def disconnect(self, handler: Callable) -> None:
        with self._lock:
            self._handlers.remove(handler)

    def disconnect_all(self) -> None:
        with self._lock:
            self._handlers.clear()

    def emit(self, *args: Any, **kwargs: Any) -> None:
        with self._lock:
            handlers = list(self._handlers)
        for handler in handlers:
            try:
                handler(*args, **kwargs)
            except Exception:
                _logger.exception("Handler %r for %s failed", handler, self.name)

    @property
    def handler_count(self) -> int:
        with self._lock:
            return len(self._handlers)


class ObservableProperty:
    """Value holder that emits ``changed(new_value, old_value)``.

    An optional *coerce* callable normalises (and validates) assigned values
    before comparison, so ``"dark"`` and ``StyleKey.DARK`` count as equal.
    """

    def __init__(
        self,
        initial_value: Any = None,
        *,
        coerce: Optional[Callable[[Any], Any]] = None,
        name: str = "property",
    ) -> None:
        self._coerce = coerce
        self._value = coerce(initial_value) if coerce and initial_value is not None else initial_value
        self.changed = Signal(f"{name}.changed")

    @property
    def value(self) -> Any:
        return self._value

    @value.setter
    def value(self, new_value: Any) -> None:
        if self._coerce is not None:
            new_value = self._coerce(new_value)
        if self._value != new_value:
            old_value = self._value
            self._value = new_value
            self.changed.emit(new_value, old_value)


__all__ = ["ObservableProperty", "Signal"]
