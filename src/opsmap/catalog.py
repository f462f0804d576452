"""Static description of the thematic layers drawn on the board.

Each :class:`LogicalLayer` owns one geometry source and one or more surface
layers.  Declaration order in the catalog is the paint order (later entries
draw on top) while :attr:`CatalogEntry.priority` decides which layer wins a
hover query when several report a feature under the pointer.
"""

from __future__ import annotations

from copy import deepcopy
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Iterable, Mapping

from . import config
from .errors import UnknownLayerError


class LogicalLayer(str, Enum):
    """Named thematic layer composed of one or more surface layers."""

    DEPARTMENTS = "departments"
    COMMUNES = "communes"
    SECTIONS = "sections"


class GeometryKind(str, Enum):
    FILL = "fill"
    OUTLINE = "outline"

    @property
    def engine_type(self) -> str:
        """Return the engine layer type used to draw this kind."""

        return "fill" if self is GeometryKind.FILL else "line"


@dataclass(frozen=True)
class SurfaceLayerSpec:
    """Describe one engine layer: its id, geometry kind and static paint."""

    id: str
    kind: GeometryKind
    paint: Mapping[str, Any] = field(default_factory=dict)

    def descriptor(self, source: str) -> dict[str, Any]:
        """Build the ``add_layer`` payload binding this spec to *source*."""

        return {
            "id": self.id,
            "type": self.kind.engine_type,
            "source": source,
            "paint": {name: deepcopy(value) for name, value in self.paint.items()},
        }


@dataclass(frozen=True)
class CatalogEntry:
    layer: LogicalLayer
    endpoint: str
    surface_layers: tuple[SurfaceLayerSpec, ...]
    priority: int
    hoverable: bool = False

    @property
    def source_id(self) -> str:
        return self.layer.value


def coerce_layer(name: LogicalLayer | str) -> LogicalLayer:
    """Return *name* as a :class:`LogicalLayer` or raise :class:`UnknownLayerError`."""

    try:
        return LogicalLayer(name)
    except ValueError:
        raise UnknownLayerError(f"Unknown logical layer: {name!r}") from None


class LayerCatalog:
    """Ordered, read-only registry of :class:`CatalogEntry` objects."""

    def __init__(self, entries: Iterable[CatalogEntry]) -> None:
        ordered: dict[LogicalLayer, CatalogEntry] = {}
        owners: dict[str, LogicalLayer] = {}
        for entry in entries:
            if entry.layer in ordered:
                raise ValueError(f"Duplicate catalog entry for {entry.layer.value!r}")
            for spec in entry.surface_layers:
                if spec.id in owners:
                    raise ValueError(f"Surface layer {spec.id!r} is declared twice")
                owners[spec.id] = entry.layer
            ordered[entry.layer] = entry
        missing = set(LogicalLayer) - set(ordered)
        if missing:
            names = ", ".join(sorted(layer.value for layer in missing))
            raise ValueError(f"Catalog is missing logical layers: {names}")
        self._entries = MappingProxyType(ordered)
        self._owners = MappingProxyType(owners)

    # ------------------------------------------------------------------
    def logical_layers(self) -> tuple[LogicalLayer, ...]:
        """Return the logical layers in declared (paint) order."""

        return tuple(self._entries)

    def entry(self, name: LogicalLayer | str) -> CatalogEntry:
        return self._entries[coerce_layer(name)]

    def layers_for(self, name: LogicalLayer | str) -> tuple[SurfaceLayerSpec, ...]:
        """Return the surface layers owned by *name*, fill before outline."""

        return self.entry(name).surface_layers

    def layer_ids(self, name: LogicalLayer | str) -> tuple[str, ...]:
        return tuple(spec.id for spec in self.layers_for(name))

    def priority_of(self, name: LogicalLayer | str) -> int:
        return self.entry(name).priority

    def owner_of(self, surface_layer_id: str) -> LogicalLayer | None:
        return self._owners.get(surface_layer_id)

    # ------------------------------------------------------------------
    def hover_layer_ids(self) -> tuple[str, ...]:
        """Return hover-target surface ids, highest priority first.

        Only ``fill`` layers take part: outlines are too thin to hover.
        """

        hoverable = [entry for entry in self._entries.values() if entry.hoverable]
        hoverable.sort(key=lambda entry: entry.priority, reverse=True)
        return tuple(
            spec.id
            for entry in hoverable
            for spec in entry.surface_layers
            if spec.kind is GeometryKind.FILL
        )


def _outline(layer_id: str, color: str, width: float, **extra: Any) -> SurfaceLayerSpec:
    paint: dict[str, Any] = {"line-color": color, "line-width": width}
    paint.update(extra)
    return SurfaceLayerSpec(layer_id, GeometryKind.OUTLINE, MappingProxyType(paint))


def _fill(layer_id: str, color: str, opacity: float) -> SurfaceLayerSpec:
    paint = {"fill-color": color, "fill-opacity": opacity}
    return SurfaceLayerSpec(layer_id, GeometryKind.FILL, MappingProxyType(paint))


def default_catalog() -> LayerCatalog:
    """Return the departments/communes/sections catalog of the board."""

    return LayerCatalog(
        [
            CatalogEntry(
                LogicalLayer.DEPARTMENTS,
                config.DEPARTMENTS_ENDPOINT,
                (
                    _fill("departments-fill", "#1f2937", 0.12),
                    _outline("departments-outline", "#f59e0b", 1.4),
                ),
                priority=10,
                hoverable=True,
            ),
            CatalogEntry(
                LogicalLayer.COMMUNES,
                config.COMMUNES_ENDPOINT,
                (_outline("communes-outline", "#2563eb", 0.9, **{"line-dasharray": [2, 2]}),),
                priority=20,
            ),
            CatalogEntry(
                LogicalLayer.SECTIONS,
                config.SECTIONS_ENDPOINT,
                (
                    _fill("sections-fill", "#a78bfa", 0.14),
                    _outline("sections-outline", "#a78bfa", 0.8),
                ),
                priority=30,
                hoverable=True,
            ),
        ]
    )


__all__ = [
    "CatalogEntry",
    "GeometryKind",
    "LayerCatalog",
    "LogicalLayer",
    "SurfaceLayerSpec",
    "coerce_layer",
    "default_catalog",
]
