"""Build the layer stack on a freshly ready surface.

All catalog layers are fetched at once, but registration happens strictly in
catalog order: a layer is only added once every layer declared before it has
been registered or skipped.  Since later layers paint on top, departments end
up beneath communes, which end up beneath sections, whatever order the
fetches finish in.
"""

from __future__ import annotations

import logging
from concurrent.futures import CancelledError, Future
from dataclasses import dataclass, field
from functools import partial

from .catalog import CatalogEntry, LayerCatalog, LogicalLayer
from .dispatch import Dispatcher
from .errors import FetchFailed, LayerDataError, StaleCallback
from .errors.handler import ErrorHandler, ErrorSeverity
from .events import CompositionCompletedEvent, EventBus, LayerSkippedEvent
from .lifecycle import SurfaceLifecycle
from .loader import DataLoader
from .signal import Signal
from .surface.base import Surface
from .visibility import VisibilityController

_LOGGER = logging.getLogger(__name__)


@dataclass
class CompositionReport:
    """Outcome of one composition pass."""

    generation: int
    registered: list[LogicalLayer] = field(default_factory=list)
    skipped: dict[LogicalLayer, str] = field(default_factory=dict)


@dataclass
class _CompositionPass:
    generation: int
    order: tuple[LogicalLayer, ...]
    results: dict[LogicalLayer, Future] = field(default_factory=dict)
    next_index: int = 0
    report: CompositionReport | None = None

    def __post_init__(self) -> None:
        self.report = CompositionReport(self.generation)


class LayerComposer:
    """Register sources and styled layers for every logical layer."""

    def __init__(
        self,
        catalog: LayerCatalog,
        loader: DataLoader,
        lifecycle: SurfaceLifecycle,
        visibility: VisibilityController,
        dispatcher: Dispatcher,
        *,
        error_handler: ErrorHandler | None = None,
        event_bus: EventBus | None = None,
    ) -> None:
        self._catalog = catalog
        self._loader = loader
        self._lifecycle = lifecycle
        self._visibility = visibility
        self._dispatcher = dispatcher
        self._errors = error_handler
        self._events = event_bus
        self._pass: _CompositionPass | None = None
        self._last_report: CompositionReport | None = None

        self.composed = Signal("composer.composed")
        """Emitted as ``composed(report)`` once every layer was processed."""

        lifecycle.on_ready(self.compose)
        lifecycle.on_teardown(self._abandon)

    # ------------------------------------------------------------------
    @property
    def in_progress(self) -> bool:
        return self._pass is not None

    @property
    def last_report(self) -> CompositionReport | None:
        return self._last_report

    # ------------------------------------------------------------------
    def compose(self, generation: int) -> None:
        """Start a composition pass for the surface of *generation*."""

        self._lifecycle.ready_surface(generation)
        self._loader.begin_pass()
        current = _CompositionPass(generation, self._catalog.logical_layers())
        self._pass = current
        _LOGGER.debug("Composing %d layers on surface #%s", len(current.order), generation)

        for layer in current.order:
            future = self._loader.load(layer)
            future.add_done_callback(partial(self._on_fetched, generation, layer))

    # ------------------------------------------------------------------
    def _on_fetched(self, generation: int, layer: LogicalLayer, future: Future) -> None:
        # Runs on a loader thread; hop back onto the surface's loop.
        self._dispatcher.post(partial(self._deliver, generation, layer, future))

    def _deliver(self, generation: int, layer: LogicalLayer, future: Future) -> None:
        current = self._pass
        try:
            if current is None or current.generation != generation:
                raise StaleCallback(f"{layer.value} data for surface #{generation}")
            self._lifecycle.ready_surface(generation)
        except StaleCallback as exc:
            _LOGGER.debug("Dropping stale callback: %s", exc)
            return

        current.results[layer] = future
        self._drain(current)

    # ------------------------------------------------------------------
    def _drain(self, current: _CompositionPass) -> None:
        while current.next_index < len(current.order):
            layer = current.order[current.next_index]
            future = current.results.get(layer)
            if future is None:
                return
            current.next_index += 1
            self._register(current, layer, future)
            if self._pass is not current:
                return
        self._finish(current)

    def _register(self, current: _CompositionPass, layer: LogicalLayer, future: Future) -> None:
        report = current.report
        try:
            collection = future.result()
        except CancelledError:
            self._skip(report, layer, FetchFailed(layer.value, "request was cancelled"))
            return
        except LayerDataError as exc:
            self._skip(report, layer, exc)
            return
        except Exception as exc:
            self._skip(report, layer, FetchFailed(layer.value, str(exc)))
            return

        entry = self._catalog.entry(layer)
        try:
            surface = self._lifecycle.ready_surface(current.generation)
        except StaleCallback as exc:
            _LOGGER.debug("Dropping stale callback: %s", exc)
            return

        # A logical layer is registered whole or not at all.
        source_added = False
        added: list[str] = []
        try:
            surface.add_source(
                entry.source_id,
                {"type": "geojson", "data": collection, "generateId": True},
            )
            source_added = True
            for spec in entry.surface_layers:
                surface.add_layer(spec.descriptor(entry.source_id))
                added.append(spec.id)
        except Exception as exc:
            self._withdraw(surface, entry, added, source_added)
            self._skip(report, layer, exc)
            return
        report.registered.append(layer)

    def _withdraw(self, surface: Surface, entry: CatalogEntry, layer_ids: list[str], source_added: bool) -> None:
        try:
            for layer_id in reversed(layer_ids):
                surface.remove_layer(layer_id)
            if source_added:
                surface.remove_source(entry.source_id)
        except Exception as exc:
            _LOGGER.warning("Could not remove partial %s registration: %s", entry.layer.value, exc)

    def _skip(self, report: CompositionReport, layer: LogicalLayer, error: Exception) -> None:
        report.skipped[layer] = str(error)
        if self._errors is not None:
            self._errors.handle(error, ErrorSeverity.WARNING, {"layer": layer.value})
        else:
            _LOGGER.warning("Skipping layer %s: %s", layer.value, error)
        if self._events is not None:
            self._events.publish(LayerSkippedEvent(layer=layer.value, reason=str(error)))

    def _finish(self, current: _CompositionPass) -> None:
        self._pass = None
        report = current.report
        self._last_report = report
        self._visibility.apply()
        _LOGGER.info(
            "Surface #%s composed: %s registered, %s skipped",
            report.generation,
            ", ".join(layer.value for layer in report.registered) or "none",
            ", ".join(layer.value for layer in report.skipped) or "none",
        )
        if self._events is not None:
            self._events.publish(
                CompositionCompletedEvent(
                    generation=report.generation,
                    registered=[layer.value for layer in report.registered],
                    skipped=[layer.value for layer in report.skipped],
                )
            )
        self.composed.emit(report)

    def _abandon(self, generation: int) -> None:
        if self._pass is not None and self._pass.generation == generation:
            _LOGGER.debug("Abandoning composition of surface #%s", generation)
        self._pass = None
        self._loader.cancel_pending()


__all__ = ["CompositionReport", "LayerComposer"]
