"""Publish/subscribe bus for board events.

Handlers subscribe to an event class and also receive its subclasses, so a
subscription to :class:`Event` sees everything.  Handlers run in the
publishing thread, which for board events is the surface's loop.
"""

import logging
import threading
import uuid
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Dict, List, Optional, Type

_LOGGER = logging.getLogger(__name__)


@dataclass(kw_only=True)
class Event:
    """Base event class."""
    timestamp: datetime = field(default_factory=datetime.now)
    event_id: str = field(default_factory=lambda: str(uuid.uuid4()))


@dataclass
class Subscription:
    """Handle returned by subscribe(); ``cancel`` stops further deliveries."""
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    event_type: Type = Event
    handler: Callable = field(default=lambda e: None)
    active: bool = True

    def cancel(self):
        self.active = False


class EventBus:
    def __init__(self, logger: Optional[logging.Logger] = None):
        self._logger = logger or _LOGGER
        self._subscriptions: Dict[Type[Event], List[Subscription]] = defaultdict(list)
        self._lock = threading.Lock()

    def subscribe(self, event_type: Type[Event], handler: Callable) -> Subscription:
        sub = Subscription(event_type=event_type, handler=handler)
        with self._lock:
            self._subscriptions[event_type].append(sub)
        return sub

    def unsubscribe(self, subscription: Subscription):
        subscription.cancel()
        with self._lock:
            subs = self._subscriptions.get(subscription.event_type, [])
            if subscription in subs:
                subs.remove(subscription)

    def subscriber_count(self, event_type: Type[Event]) -> int:
        with self._lock:
            return sum(1 for sub in self._subscriptions.get(event_type, []) if sub.active)

    def publish(self, event: Event):
        with self._lock:
            matched = [
                sub
                for cls in type(event).__mro__
                for sub in self._subscriptions.get(cls, ())
            ]

        for sub in matched:
            if not sub.active:
                continue
            try:
                sub.handler(event)
            except Exception:
                self._logger.exception("Handler %r failed for %s", sub.handler, type(event).__name__)
