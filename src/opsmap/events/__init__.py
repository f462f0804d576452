from .bus import Event, EventBus, Subscription
from .map_events import (
    CompositionCompletedEvent,
    LayerSkippedEvent,
    SurfaceDestroyedEvent,
    SurfaceReadyEvent,
)

__all__ = [
    "CompositionCompletedEvent",
    "Event",
    "EventBus",
    "LayerSkippedEvent",
    "Subscription",
    "SurfaceDestroyedEvent",
    "SurfaceReadyEvent",
]
