"""Capability interfaces the board expects from a rendering engine.

The engine itself (tiling, painting, hit-testing) lives outside this package.
Anything that satisfies :class:`SurfaceEngine`, :class:`Surface` and
:class:`Popup` can host the board: a MapLibre bridge inside a web view, the
:mod:`headless <opsmap.surface.headless>` surface used by the CLI, or a test
double.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Mapping, Protocol, Sequence

VISIBLE = "visible"
HIDDEN = "none"

# Engine event names.
LOAD_EVENT = "load"
MOUSEMOVE_EVENT = "mousemove"
MOUSEOUT_EVENT = "mouseout"


@dataclass(frozen=True)
class SurfaceConfig:
    """Arguments used to create a surface for one basemap style."""

    style: str
    center: tuple[float, float]
    zoom: float


@dataclass(frozen=True)
class PointerEvent:
    """Pointer position in screen pixels and geographic coordinates."""

    point: tuple[float, float]
    lnglat: tuple[float, float]


@dataclass(frozen=True)
class RenderedFeature:
    """Feature reported by :meth:`Surface.query_rendered_features`."""

    layer_id: str
    properties: Mapping[str, Any] = field(default_factory=dict)
    geometry: Mapping[str, Any] | None = None


class Popup(Protocol):
    def set_lnglat(self, lnglat: tuple[float, float]) -> "Popup":  # pragma: no cover - interface definition only
        ...

    def set_html(self, html: str) -> "Popup":  # pragma: no cover - interface definition only
        ...

    def add_to(self, surface: "Surface") -> "Popup":  # pragma: no cover - interface definition only
        ...

    def remove(self) -> None:  # pragma: no cover - interface definition only
        ...


class Surface(Protocol):
    """Live render surface bound to one style document."""

    def add_control(self, control: Mapping[str, Any], position: str | None = None) -> None:  # pragma: no cover
        ...

    def add_source(self, source_id: str, source: Mapping[str, Any]) -> None:  # pragma: no cover
        ...

    def add_layer(self, descriptor: Mapping[str, Any]) -> None:  # pragma: no cover
        ...

    def remove_layer(self, layer_id: str) -> None:  # pragma: no cover
        ...

    def remove_source(self, source_id: str) -> None:  # pragma: no cover
        ...

    def get_layer(self, layer_id: str) -> Mapping[str, Any] | None:  # pragma: no cover
        ...

    def set_layout_property(self, layer_id: str, name: str, value: Any) -> None:  # pragma: no cover
        ...

    def query_rendered_features(
        self, point: tuple[float, float], *, layers: Sequence[str]
    ) -> list[RenderedFeature]:  # pragma: no cover - interface definition only
        ...

    def on(self, event: str, handler: Callable[..., None]) -> None:  # pragma: no cover
        ...

    def off(self, event: str, handler: Callable[..., None]) -> None:  # pragma: no cover
        ...

    def set_cursor(self, cursor: str) -> None:  # pragma: no cover
        ...

    def create_popup(self, options: Mapping[str, Any]) -> Popup:  # pragma: no cover
        ...

    def remove(self) -> None:  # pragma: no cover
        ...


class SurfaceEngine(Protocol):
    """Factory for :class:`Surface` instances."""

    def create(self, config: SurfaceConfig) -> Surface:  # pragma: no cover - interface definition only
        ...


__all__ = [
    "HIDDEN",
    "LOAD_EVENT",
    "MOUSEMOVE_EVENT",
    "MOUSEOUT_EVENT",
    "PointerEvent",
    "Popup",
    "RenderedFeature",
    "Surface",
    "SurfaceConfig",
    "SurfaceEngine",
    "VISIBLE",
]
