from dataclasses import dataclass, field

from .bus import Event


@dataclass(kw_only=True)
class SurfaceReadyEvent(Event):
    style_key: str
    generation: int


@dataclass(kw_only=True)
class SurfaceDestroyedEvent(Event):
    style_key: str
    generation: int


@dataclass(kw_only=True)
class LayerSkippedEvent(Event):
    layer: str
    reason: str


@dataclass(kw_only=True)
class CompositionCompletedEvent(Event):
    generation: int
    registered: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
