"""BaseViewModel, pure Python with no Qt dependency.

Tracks ``EventBus`` subscriptions and :class:`~opsmap.signal.Signal`
connections so concrete view models can drop them all in :meth:`dispose`.
"""

from __future__ import annotations

from typing import Callable, Type

from ..events.bus import EventBus, Subscription
from ..signal import Signal


class BaseViewModel:
    def __init__(self) -> None:
        self._subscriptions: list[Subscription] = []
        self._connections: list[tuple[Signal, Callable]] = []
        self._disposed = False

    @property
    def disposed(self) -> bool:
        return self._disposed

    def subscribe_event(
        self,
        event_bus: EventBus,
        event_type: Type,
        handler: Callable,
    ) -> Subscription:
        """Subscribe to an event type and track the subscription."""
        sub = event_bus.subscribe(event_type, handler)
        self._subscriptions.append(sub)
        return sub

    def connect_signal(self, signal: Signal, handler: Callable) -> None:
        """Connect *handler* to *signal* until :meth:`dispose`."""
        signal.connect(handler)
        self._connections.append((signal, handler))

    def dispose(self) -> None:
        """Cancel tracked subscriptions and disconnect tracked handlers."""
        for sub in self._subscriptions:
            sub.cancel()
        self._subscriptions.clear()
        for signal, handler in self._connections:
            try:
                signal.disconnect(handler)
            except ValueError:
                pass
        self._connections.clear()
        self._disposed = True
