"""View model wiring every board component around one surface engine."""

from __future__ import annotations

import logging
from copy import deepcopy
from typing import Any, Mapping

from jsonschema import ValidationError

from ..catalog import LayerCatalog, LogicalLayer, default_catalog
from ..composer import LayerComposer
from ..dispatch import Dispatcher
from ..errors import SettingsValidationError
from ..errors.handler import ErrorHandler
from ..events import EventBus, LayerSkippedEvent, SurfaceReadyEvent
from ..hover import HoverFeature, HoverResolver
from ..lifecycle import SurfaceLifecycle, SurfaceState
from ..loader import DataLoader, GeometryReader
from ..settings import merge_with_defaults
from ..signal import ObservableProperty, Signal
from ..styles import StyleKey, StyleRegistry
from ..surface.base import SurfaceEngine
from ..visibility import VisibilityController, VisibilityState
from .base import BaseViewModel

_LOGGER = logging.getLogger(__name__)


class MapBoardViewModel(BaseViewModel):
    """Expose ``toggle`` and ``set_base`` over the composed map board.

    The selected basemap lives in :attr:`base`, an
    :class:`~opsmap.signal.ObservableProperty` whose assignments are checked
    against the style registry.  :meth:`set_base` rebuilds the surface first
    and only then commits the new key, so :attr:`base` always names the style
    of the surface that was actually created.  Layer toggles never rebuild
    anything.
    """

    def __init__(
        self,
        engine: SurfaceEngine,
        dispatcher: Dispatcher,
        *,
        settings: Mapping[str, Any] | None = None,
        catalog: LayerCatalog | None = None,
        styles: StyleRegistry | None = None,
        reader: GeometryReader | None = None,
        event_bus: EventBus | None = None,
        error_handler: ErrorHandler | None = None,
    ) -> None:
        super().__init__()
        try:
            values = merge_with_defaults(deepcopy(dict(settings)) if settings else None)
        except ValidationError as exc:
            raise SettingsValidationError(f"Invalid board settings: {exc.message}") from exc
        self._settings = values

        self.event_bus = event_bus or EventBus()
        self.error_reported = Signal("board.error_reported")
        """Emitted as ``error_reported(message, severity)`` for ERROR and CRITICAL failures."""
        if error_handler is None:
            error_handler = ErrorHandler(_LOGGER, self.event_bus)
            error_handler.register_ui_callback(self.error_reported.emit)
        self.error_handler = error_handler

        self.catalog = catalog or default_catalog()
        self.styles = styles or StyleRegistry(base_url=values["content_base_url"])
        self.loader = DataLoader(
            self.catalog,
            reader or GeometryReader(values["content_base_url"], timeout=values["fetch_timeout"]),
        )
        self.lifecycle = SurfaceLifecycle(
            engine,
            self.styles,
            center=tuple(values["center"]),
            zoom=values["zoom"],
            error_handler=self.error_handler,
            event_bus=self.event_bus,
        )
        self.visibility = VisibilityController(self.catalog, self.lifecycle, values["initial_visibility"])
        self.composer = LayerComposer(
            self.catalog,
            self.loader,
            self.lifecycle,
            self.visibility,
            dispatcher,
            error_handler=self.error_handler,
            event_bus=self.event_bus,
        )
        self.hover = HoverResolver(self.catalog, self.lifecycle)

        self.base = ObservableProperty(values["initial_style"], coerce=self._coerce_style, name="board.base")
        self.connect_signal(self.base.changed, self._on_base_changed)

        self.failed_layers_changed = Signal("board.failed_layers_changed")
        self._failed: dict[LogicalLayer, str] = {}
        self.subscribe_event(self.event_bus, LayerSkippedEvent, self._on_layer_skipped)
        self.subscribe_event(self.event_bus, SurfaceReadyEvent, self._on_surface_ready)

    # ------------------------------------------------------------------
    # Read-only state
    # ------------------------------------------------------------------
    @property
    def settings(self) -> dict[str, Any]:
        return deepcopy(self._settings)

    @property
    def visibility_state(self) -> VisibilityState:
        return self.visibility.state

    @property
    def failed_layers(self) -> dict[LogicalLayer, str]:
        """Layers that could not be drawn on the current surface, with reasons."""
        return dict(self._failed)

    @property
    def current_hover(self) -> HoverFeature | None:
        return self.hover.current

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------
    def start(self) -> None:
        """Create a surface for the selected basemap unless one is alive.

        Also recovers a board whose last surface could not be created.
        """

        if self.disposed or self._has_surface():
            return
        self.lifecycle.reinit(self.base.value)

    def toggle(self, layer: LogicalLayer | str) -> None:
        self.visibility.toggle(layer)

    def set_base(self, key: StyleKey | str) -> None:
        """Select basemap *key* and rebuild the surface for it.

        The key already shown is a no-op.  If the engine fails to create the
        new surface the error propagates and :attr:`base` keeps the previous
        key; calling again with any key retries.
        """

        key = self._coerce_style(key)
        if self.lifecycle.state is not SurfaceState.UNINITIALIZED and not self.disposed:
            if key == self.base.value and self._has_surface():
                return
            self.lifecycle.reinit(key)
        self.base.value = key

    def dispose(self) -> None:
        if self.disposed:
            return
        super().dispose()
        self.lifecycle.teardown()
        self.loader.shutdown()
        for signal in (self.base.changed, self.failed_layers_changed, self.error_reported):
            signal.disconnect_all()

    # ------------------------------------------------------------------
    def _has_surface(self) -> bool:
        return self.lifecycle.state in (SurfaceState.CREATING, SurfaceState.READY)

    def _coerce_style(self, key: StyleKey | str) -> StyleKey:
        return self.styles.resolve(key).key

    def _on_base_changed(self, new_key: StyleKey, old_key: StyleKey) -> None:
        _LOGGER.info("Basemap %s -> %s", old_key.value, new_key.value)

    def _on_surface_ready(self, event: SurfaceReadyEvent) -> None:
        if self._failed:
            self._failed.clear()
            self.failed_layers_changed.emit(self.failed_layers)

    def _on_layer_skipped(self, event: LayerSkippedEvent) -> None:
        self._failed[LogicalLayer(event.layer)] = event.reason
        self.failed_layers_changed.emit(self.failed_layers)


__all__ = ["MapBoardViewModel"]
