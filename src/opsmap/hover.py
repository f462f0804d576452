"""Resolve the feature under the pointer and drive the hover popup."""

from __future__ import annotations

import html
import logging
from dataclasses import dataclass
from typing import Sequence

from . import config
from .catalog import LayerCatalog, LogicalLayer
from .lifecycle import SurfaceLifecycle
from .signal import Signal
from .surface.base import MOUSEMOVE_EVENT, MOUSEOUT_EVENT, PointerEvent, Popup, RenderedFeature

_LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class HoverFeature:
    """Label and position shown for the current hover."""

    name: str
    lnglat: tuple[float, float]
    layer: LogicalLayer | None = None


def popup_html(label: str) -> str:
    """Render *label* into the badge markup used by the popup."""

    return config.POPUP_LABEL_TEMPLATE.format(label=html.escape(label))


class HoverResolver:
    """Pick the most relevant feature under the pointer.

    Candidates come from the hover-enabled layers only.  They are ordered by
    the owning logical layer's priority rank; the engine's topmost-first
    order breaks ties.
    """

    def __init__(self, catalog: LayerCatalog, lifecycle: SurfaceLifecycle) -> None:
        self._catalog = catalog
        self._lifecycle = lifecycle
        self._targets = catalog.hover_layer_ids()
        self._popup: Popup | None = None
        self._generation: int | None = None
        self._current: HoverFeature | None = None

        self.hover_changed = Signal("hover.changed")
        """Emitted with the new :class:`HoverFeature` or ``None``."""

        lifecycle.on_ready(self.attach)
        lifecycle.on_teardown(self._detach)

    # ------------------------------------------------------------------
    @property
    def current(self) -> HoverFeature | None:
        return self._current

    @property
    def targets(self) -> tuple[str, ...]:
        return self._targets

    # ------------------------------------------------------------------
    def attach(self, generation: int) -> None:
        """Create the popup and start listening on the surface of *generation*."""

        surface = self._lifecycle.ready_surface(generation)
        self._popup = surface.create_popup(config.POPUP_OPTIONS)
        self._generation = generation
        self._lifecycle.bind(MOUSEMOVE_EVENT, self.handle_pointer_move)
        self._lifecycle.bind(MOUSEOUT_EVENT, self.handle_pointer_leave)

    # ------------------------------------------------------------------
    def handle_pointer_move(self, event: PointerEvent) -> None:
        if self._generation is None:
            return
        surface = self._lifecycle.ready_surface(self._generation)
        features = surface.query_rendered_features(event.point, layers=self._targets)
        feature = self.pick(features)
        if feature is None:
            surface.set_cursor("")
            self._hide()
            return

        surface.set_cursor(config.HOVER_CURSOR)
        name = feature.properties.get("name") or config.UNNAMED_FEATURE_LABEL
        hover = HoverFeature(str(name), tuple(event.lnglat), self._catalog.owner_of(feature.layer_id))
        if self._popup is not None:
            self._popup.set_lnglat(hover.lnglat).set_html(popup_html(hover.name)).add_to(surface)
        self._set_current(hover)

    def handle_pointer_leave(self, *_: object) -> None:
        self._hide()

    # ------------------------------------------------------------------
    def pick(self, features: Sequence[RenderedFeature]) -> RenderedFeature | None:
        """Return the highest-priority candidate among *features*."""

        best: RenderedFeature | None = None
        best_rank: int | None = None
        for feature in features:
            if feature.layer_id not in self._targets:
                continue
            owner = self._catalog.owner_of(feature.layer_id)
            rank = self._catalog.priority_of(owner) if owner is not None else 0
            if best_rank is None or rank > best_rank:
                best, best_rank = feature, rank
        return best

    # ------------------------------------------------------------------
    def _hide(self) -> None:
        if self._popup is not None:
            self._popup.remove()
        self._set_current(None)

    def _set_current(self, hover: HoverFeature | None) -> None:
        if hover == self._current:
            return
        self._current = hover
        self.hover_changed.emit(hover)

    def _detach(self, generation: int) -> None:
        # The popup belongs to the surface being destroyed.
        if self._popup is not None:
            self._popup.remove()
        self._popup = None
        self._generation = None
        self._set_current(None)


__all__ = ["HoverFeature", "HoverResolver", "popup_html"]
