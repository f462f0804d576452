"""In-memory surface used by the CLI and the test-suite.

The headless surface keeps the layer stack, layout properties and listeners
that a real engine would hold, without drawing anything.  Its screen space is
geographic: a pointer ``point`` is interpreted as ``(lng, lat)``, which lets
:meth:`HeadlessSurface.query_rendered_features` answer hit tests directly
against the registered GeoJSON polygons.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from typing import Any, Callable, Mapping, Sequence

from ..dispatch import Dispatcher
from .base import HIDDEN, LOAD_EVENT, VISIBLE, RenderedFeature, SurfaceConfig

_LOGGER = logging.getLogger(__name__)


class HeadlessPopup:
    """Popup double that records its label and position."""

    def __init__(self, options: Mapping[str, Any]) -> None:
        self.options = dict(options)
        self.lnglat: tuple[float, float] | None = None
        self.html = ""
        self.surface: "HeadlessSurface | None" = None
        self.remove_count = 0

    @property
    def is_open(self) -> bool:
        return self.surface is not None

    def set_lnglat(self, lnglat: tuple[float, float]) -> "HeadlessPopup":
        self.lnglat = (float(lnglat[0]), float(lnglat[1]))
        return self

    def set_html(self, html: str) -> "HeadlessPopup":
        self.html = html
        return self

    def add_to(self, surface: "HeadlessSurface") -> "HeadlessPopup":
        self.surface = surface
        return self

    def remove(self) -> None:
        self.remove_count += 1
        self.surface = None


class HeadlessSurface:
    """Record-keeping implementation of :class:`~opsmap.surface.base.Surface`."""

    def __init__(self, config: SurfaceConfig) -> None:
        self.config = config
        self.controls: list[tuple[dict[str, Any], str | None]] = []
        self.sources: dict[str, dict[str, Any]] = {}
        self.cursor = ""
        self.removed = False
        self.popups: list[HeadlessPopup] = []
        self.calls: list[tuple[Any, ...]] = []
        self._layers: list[dict[str, Any]] = []
        self._listeners: dict[str, list[Callable[..., None]]] = defaultdict(list)

    # ------------------------------------------------------------------
    # Surface capability
    # ------------------------------------------------------------------
    def add_control(self, control: Mapping[str, Any], position: str | None = None) -> None:
        self.controls.append((dict(control), position))

    def add_source(self, source_id: str, source: Mapping[str, Any]) -> None:
        self._ensure_alive()
        if source_id in self.sources:
            raise ValueError(f"Source {source_id!r} already exists")
        self.sources[source_id] = dict(source)
        self.calls.append(("add_source", source_id))

    def add_layer(self, descriptor: Mapping[str, Any]) -> None:
        self._ensure_alive()
        layer_id = descriptor["id"]
        if self.get_layer(layer_id) is not None:
            raise ValueError(f"Layer {layer_id!r} already exists")
        if descriptor.get("source") not in self.sources:
            raise ValueError(f"Layer {layer_id!r} references missing source {descriptor.get('source')!r}")
        layer = dict(descriptor)
        layer["layout"] = dict(descriptor.get("layout") or {})
        self._layers.append(layer)
        self.calls.append(("add_layer", layer_id))

    def remove_layer(self, layer_id: str) -> None:
        self._ensure_alive()
        layer = self.get_layer(layer_id)
        if layer is None:
            raise KeyError(f"Layer {layer_id!r} does not exist")
        self._layers.remove(layer)
        self.calls.append(("remove_layer", layer_id))

    def remove_source(self, source_id: str) -> None:
        self._ensure_alive()
        if source_id not in self.sources:
            raise KeyError(f"Source {source_id!r} does not exist")
        users = [layer["id"] for layer in self._layers if layer["source"] == source_id]
        if users:
            raise ValueError(f"Source {source_id!r} is still used by {', '.join(users)}")
        del self.sources[source_id]
        self.calls.append(("remove_source", source_id))

    def get_layer(self, layer_id: str) -> dict[str, Any] | None:
        for layer in self._layers:
            if layer["id"] == layer_id:
                return layer
        return None

    def set_layout_property(self, layer_id: str, name: str, value: Any) -> None:
        self._ensure_alive()
        layer = self.get_layer(layer_id)
        if layer is None:
            raise KeyError(f"Layer {layer_id!r} does not exist")
        layer["layout"][name] = value
        self.calls.append(("set_layout_property", layer_id, name, value))

    def query_rendered_features(
        self, point: tuple[float, float], *, layers: Sequence[str]
    ) -> list[RenderedFeature]:
        """Return features containing *point*, topmost layer first."""

        wanted = set(layers)
        hits: list[RenderedFeature] = []
        for layer in reversed(self._layers):
            if layer["id"] not in wanted or layer["type"] != "fill":
                continue
            if layer["layout"].get("visibility", VISIBLE) == HIDDEN:
                continue
            data = self.sources.get(layer["source"], {}).get("data") or {}
            for feature in reversed(data.get("features", [])):
                geometry = feature.get("geometry") or {}
                if contains(geometry, point):
                    hits.append(
                        RenderedFeature(
                            layer_id=layer["id"],
                            properties=dict(feature.get("properties") or {}),
                            geometry=geometry,
                        )
                    )
        return hits

    def on(self, event: str, handler: Callable[..., None]) -> None:
        self._listeners[event].append(handler)

    def off(self, event: str, handler: Callable[..., None]) -> None:
        try:
            self._listeners[event].remove(handler)
        except ValueError:
            pass

    def set_cursor(self, cursor: str) -> None:
        self.cursor = cursor

    def create_popup(self, options: Mapping[str, Any]) -> HeadlessPopup:
        popup = HeadlessPopup(options)
        self.popups.append(popup)
        return popup

    def remove(self) -> None:
        self.removed = True
        self._listeners.clear()

    # ------------------------------------------------------------------
    # Inspection helpers
    # ------------------------------------------------------------------
    def fire(self, event: str, *args: Any) -> None:
        """Deliver an engine *event* to the registered listeners."""

        for handler in list(self._listeners.get(event, ())):
            handler(*args)

    def listener_count(self, event: str | None = None) -> int:
        if event is not None:
            return len(self._listeners.get(event, ()))
        return sum(len(handlers) for handlers in self._listeners.values())

    def layer_ids(self) -> list[str]:
        return [layer["id"] for layer in self._layers]

    def visibility(self, layer_id: str) -> str:
        layer = self.get_layer(layer_id)
        if layer is None:
            raise KeyError(layer_id)
        return layer["layout"].get("visibility", VISIBLE)

    def visible_layer_ids(self) -> list[str]:
        return [layer["id"] for layer in self._layers if layer["layout"].get("visibility", VISIBLE) != HIDDEN]

    def _ensure_alive(self) -> None:
        if self.removed:
            raise RuntimeError("Surface has been removed")


class HeadlessEngine:
    """Create :class:`HeadlessSurface` instances.

    With a *dispatcher*, each new surface reports ``load`` asynchronously
    through it, like a real engine finishing its style download.  Without
    one, callers fire ``load`` themselves.
    """

    def __init__(self, dispatcher: Dispatcher | None = None) -> None:
        self._dispatcher = dispatcher
        self.surfaces: list[HeadlessSurface] = []

    def create(self, config: SurfaceConfig) -> HeadlessSurface:
        surface = HeadlessSurface(config)
        self.surfaces.append(surface)
        _LOGGER.debug("Headless surface created for %s", config.style)
        if self._dispatcher is not None:
            self._dispatcher.post(lambda: surface.fire(LOAD_EVENT) if not surface.removed else None)
        return surface

    @property
    def live_surfaces(self) -> list[HeadlessSurface]:
        return [surface for surface in self.surfaces if not surface.removed]

    @property
    def latest(self) -> HeadlessSurface | None:
        return self.surfaces[-1] if self.surfaces else None


# ----------------------------------------------------------------------
# Hit testing
# ----------------------------------------------------------------------

def contains(geometry: Mapping[str, Any], point: tuple[float, float]) -> bool:
    """Return ``True`` when a GeoJSON (Multi)Polygon contains *point*."""

    kind = geometry.get("type")
    coordinates = geometry.get("coordinates") or []
    if kind == "Polygon":
        return _polygon_contains(coordinates, point)
    if kind == "MultiPolygon":
        return any(_polygon_contains(polygon, point) for polygon in coordinates)
    return False


def _polygon_contains(rings: Sequence[Sequence[Sequence[float]]], point: tuple[float, float]) -> bool:
    if not rings or not _ring_contains(rings[0], point):
        return False
    return not any(_ring_contains(hole, point) for hole in rings[1:])


def _ring_contains(ring: Sequence[Sequence[float]], point: tuple[float, float]) -> bool:
    # Even-odd ray casting towards +x.
    x, y = point
    inside = False
    count = len(ring)
    if count < 3:
        return False
    j = count - 1
    for i in range(count):
        xi, yi = ring[i][0], ring[i][1]
        xj, yj = ring[j][0], ring[j][1]
        if (yi > y) != (yj > y):
            crossing = (xj - xi) * (y - yi) / (yj - yi) + xi
            if x < crossing:
                inside = not inside
        j = i
    return inside


__all__ = ["HeadlessEngine", "HeadlessPopup", "HeadlessSurface", "contains"]
