"""Declarative layer visibility and its projection onto the live surface."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Iterator

from . import config
from .catalog import LayerCatalog, LogicalLayer, coerce_layer
from .errors import StaleCallback
from .lifecycle import SurfaceLifecycle
from .signal import Signal
from .surface.base import HIDDEN, VISIBLE

_LOGGER = logging.getLogger(__name__)


class VisibilityState(Mapping):
    """Immutable ``LogicalLayer -> bool`` mapping covering every layer.

    Construction rejects unknown layer names
    (:class:`~opsmap.errors.UnknownLayerError`) as well as partial mappings.
    """

    __slots__ = ("_values",)

    def __init__(self, values: Mapping) -> None:
        coerced: dict[LogicalLayer, bool] = {}
        for name, visible in values.items():
            coerced[coerce_layer(name)] = bool(visible)
        missing = [layer.value for layer in LogicalLayer if layer not in coerced]
        if missing:
            raise ValueError(f"Visibility state is missing layers: {', '.join(missing)}")
        self._values = {layer: coerced[layer] for layer in LogicalLayer}

    @classmethod
    def default(cls) -> "VisibilityState":
        return cls(config.DEFAULT_VISIBILITY)

    # ------------------------------------------------------------------
    def __getitem__(self, name: LogicalLayer | str) -> bool:
        return self._values[coerce_layer(name)]

    def __iter__(self) -> Iterator[LogicalLayer]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        body = ", ".join(f"{layer.value}={visible}" for layer, visible in self._values.items())
        return f"VisibilityState({body})"

    # ------------------------------------------------------------------
    def toggled(self, name: LogicalLayer | str) -> "VisibilityState":
        layer = coerce_layer(name)
        return self.with_value(layer, not self._values[layer])

    def with_value(self, name: LogicalLayer | str, visible: bool) -> "VisibilityState":
        values = dict(self._values)
        values[coerce_layer(name)] = bool(visible)
        return VisibilityState(values)

    def as_dict(self) -> dict[str, bool]:
        return {layer.value: visible for layer, visible in self._values.items()}


class VisibilityController:
    """Hold the toggle state and push it to the surface without rebuilding it."""

    def __init__(
        self,
        catalog: LayerCatalog,
        lifecycle: SurfaceLifecycle,
        initial: Mapping | None = None,
    ) -> None:
        self._catalog = catalog
        self._lifecycle = lifecycle
        self._state = VisibilityState(initial) if initial is not None else VisibilityState.default()
        self._pushed: dict[str, str] = {}
        self.changed = Signal("visibility.changed")
        """Emitted as ``changed(layer, visible)`` after every toggle."""

        lifecycle.on_teardown(self._forget_surface)

    # ------------------------------------------------------------------
    @property
    def state(self) -> VisibilityState:
        return self._state

    def is_visible(self, name: LogicalLayer | str) -> bool:
        return self._state[name]

    # ------------------------------------------------------------------
    def toggle(self, name: LogicalLayer | str) -> None:
        """Flip *name* and push it immediately when a surface is ready."""

        layer = coerce_layer(name)
        self._state = self._state.toggled(layer)
        visible = self._state[layer]
        _LOGGER.debug("Layer %s toggled %s", layer.value, "on" if visible else "off")
        if self._lifecycle.is_ready:
            self._push(layer)
        self.changed.emit(layer, visible)

    # ------------------------------------------------------------------
    def apply(self, state: Mapping | None = None) -> None:
        """Push the full state (optionally replacing it first) to the surface."""

        if state is not None:
            self._state = state if isinstance(state, VisibilityState) else VisibilityState(state)
        if not self._lifecycle.is_ready:
            return
        for layer in self._catalog.logical_layers():
            self._push(layer)

    # ------------------------------------------------------------------
    def _push(self, layer: LogicalLayer) -> None:
        try:
            surface = self._lifecycle.ready_surface(self._lifecycle.generation)
        except StaleCallback:
            return

        value = VISIBLE if self._state[layer] else HIDDEN
        for layer_id in self._catalog.layer_ids(layer):
            if surface.get_layer(layer_id) is None:
                # Not registered yet (or its data failed to load).
                continue
            if self._pushed.get(layer_id) == value:
                continue
            surface.set_layout_property(layer_id, "visibility", value)
            self._pushed[layer_id] = value

    def _forget_surface(self, generation: int) -> None:
        self._pushed.clear()


__all__ = ["VisibilityController", "VisibilityState"]
