"""Own the single live render surface and its listeners.

The lifecycle is an explicit state machine::

    UNINITIALIZED -> CREATING -> READY -> DESTROYED -> CREATING -> ...

Every surface receives a new *generation* number.  Components never keep a
surface reference of their own; they remember the generation they were handed
in :meth:`SurfaceLifecycle.on_ready` and ask :meth:`surface_for` whenever they
need the surface.  Once that surface is torn down the call raises
:class:`~opsmap.errors.StaleCallback`, which turns late callbacks into no-ops.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Callable

from . import config
from .errors import StaleCallback, SurfaceStateError
from .errors.handler import ErrorHandler, ErrorSeverity
from .events import EventBus, SurfaceDestroyedEvent, SurfaceReadyEvent
from .styles import StyleKey, StyleRegistry
from .surface.base import LOAD_EVENT, Surface, SurfaceConfig, SurfaceEngine

_LOGGER = logging.getLogger(__name__)


class SurfaceState(Enum):
    UNINITIALIZED = "uninitialized"
    CREATING = "creating"
    READY = "ready"
    DESTROYED = "destroyed"


_TRANSITIONS: dict[SurfaceState, frozenset[SurfaceState]] = {
    SurfaceState.UNINITIALIZED: frozenset({SurfaceState.CREATING}),
    SurfaceState.CREATING: frozenset({SurfaceState.READY, SurfaceState.DESTROYED}),
    SurfaceState.READY: frozenset({SurfaceState.DESTROYED}),
    SurfaceState.DESTROYED: frozenset({SurfaceState.CREATING}),
}

ReadyCallback = Callable[[int], None]
TeardownCallback = Callable[[int], None]


class SurfaceLifecycle:
    """Create, track and destroy the surface for the selected basemap."""

    def __init__(
        self,
        engine: SurfaceEngine,
        styles: StyleRegistry,
        *,
        center: tuple[float, float] = config.DEFAULT_CENTER,
        zoom: float = config.DEFAULT_ZOOM,
        error_handler: ErrorHandler | None = None,
        event_bus: EventBus | None = None,
    ) -> None:
        self._engine = engine
        self._styles = styles
        self._center = center
        self._zoom = zoom
        self._errors = error_handler
        self._events = event_bus

        self._state = SurfaceState.UNINITIALIZED
        self._surface: Surface | None = None
        self._style_key: StyleKey | None = None
        self._generation = 0
        self._ready_fired = False
        self._bindings: list[tuple[str, Callable[..., None]]] = []
        self._ready_callbacks: list[ReadyCallback] = []
        self._teardown_callbacks: list[TeardownCallback] = []

    # ------------------------------------------------------------------
    @property
    def state(self) -> SurfaceState:
        return self._state

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def style_key(self) -> StyleKey | None:
        return self._style_key

    @property
    def is_ready(self) -> bool:
        return self._state is SurfaceState.READY

    # ------------------------------------------------------------------
    def on_ready(self, callback: ReadyCallback) -> None:
        """Call *callback(generation)* each time a surface becomes ready."""

        if callback not in self._ready_callbacks:
            self._ready_callbacks.append(callback)

    def on_teardown(self, callback: TeardownCallback) -> None:
        """Call *callback(generation)* while a surface is being destroyed."""

        if callback not in self._teardown_callbacks:
            self._teardown_callbacks.append(callback)

    # ------------------------------------------------------------------
    def reinit(self, style_key: StyleKey | str) -> None:
        """Replace the current surface with one bound to *style_key*.

        The key is resolved before anything is torn down, so an unknown key
        raises :class:`~opsmap.errors.UnknownStyleKey` and leaves the live
        surface untouched.
        """

        descriptor = self._styles.resolve(style_key)
        if self._state in (SurfaceState.CREATING, SurfaceState.READY):
            self.teardown()

        self._transition(SurfaceState.CREATING)
        self._generation += 1
        self._ready_fired = False
        self._style_key = descriptor.key
        generation = self._generation
        _LOGGER.debug("Creating surface #%s for style %s", generation, descriptor.url)

        try:
            surface = self._engine.create(
                SurfaceConfig(style=descriptor.url, center=self._center, zoom=self._zoom)
            )
        except Exception:
            self._transition(SurfaceState.DESTROYED)
            raise

        self._surface = surface
        surface.add_control(config.NAVIGATION_CONTROL, config.NAVIGATION_CONTROL_POSITION)
        surface.add_control(config.SCALE_CONTROL)
        self.bind(LOAD_EVENT, lambda *_: self._handle_load(generation))

    # ------------------------------------------------------------------
    def teardown(self) -> None:
        """Synchronously destroy the live surface, if any.

        Listeners are unregistered first so nothing bound to the old surface
        can fire once this returns.
        """

        if self._state not in (SurfaceState.CREATING, SurfaceState.READY):
            return

        surface = self._surface
        generation = self._generation
        style_key = self._style_key
        bindings, self._bindings = self._bindings, []
        self._transition(SurfaceState.DESTROYED)
        self._surface = None

        if surface is not None:
            for event, handler in bindings:
                try:
                    surface.off(event, handler)
                except Exception as exc:
                    self._report(exc, ErrorSeverity.WARNING, event=event, generation=generation)

        for callback in list(self._teardown_callbacks):
            try:
                callback(generation)
            except Exception as exc:
                self._report(exc, ErrorSeverity.ERROR, generation=generation)

        if surface is not None:
            try:
                surface.remove()
            except Exception as exc:
                self._report(exc, ErrorSeverity.WARNING, generation=generation)

        _LOGGER.debug("Surface #%s destroyed", generation)
        if self._events is not None and style_key is not None:
            self._events.publish(SurfaceDestroyedEvent(style_key=style_key.value, generation=generation))

    # ------------------------------------------------------------------
    def bind(self, event: str, handler: Callable[..., None]) -> None:
        """Register *handler* for an engine *event* on the current surface.

        The handler is dropped once its surface is replaced and every
        exception it raises is trapped here, so nothing escapes into the
        engine's event dispatch.
        """

        if self._surface is None:
            raise SurfaceStateError(f"Cannot bind {event!r}: no surface is alive")

        generation = self._generation

        def guarded(*args: Any, **kwargs: Any) -> None:
            try:
                if not self._is_current(generation):
                    raise StaleCallback(f"{event} for surface #{generation}")
                handler(*args, **kwargs)
            except StaleCallback as exc:
                _LOGGER.debug("Dropping stale callback: %s", exc)
            except Exception as exc:
                self._report(exc, ErrorSeverity.ERROR, event=event, generation=generation)

        self._surface.on(event, guarded)
        self._bindings.append((event, guarded))

    # ------------------------------------------------------------------
    def surface_for(self, generation: int) -> Surface:
        """Return the live surface when *generation* is still current."""

        if not self._is_current(generation) or self._surface is None:
            raise StaleCallback(f"surface #{generation} is no longer alive")
        return self._surface

    def ready_surface(self, generation: int) -> Surface:
        """Like :meth:`surface_for` but also require the ``READY`` state."""

        surface = self.surface_for(generation)
        if self._state is not SurfaceState.READY:
            raise StaleCallback(f"surface #{generation} is not ready")
        return surface

    # ------------------------------------------------------------------
    def _handle_load(self, generation: int) -> None:
        if self._ready_fired:
            _LOGGER.debug("Ignoring repeated load event for surface #%s", generation)
            return
        self._transition(SurfaceState.READY)
        self._ready_fired = True
        _LOGGER.info("Surface #%s ready (%s)", generation, self._style_key.value if self._style_key else "?")
        if self._events is not None and self._style_key is not None:
            self._events.publish(SurfaceReadyEvent(style_key=self._style_key.value, generation=generation))

        for callback in list(self._ready_callbacks):
            if not self._is_current(generation):
                # A ready observer switched styles; the rest belong to the new surface.
                break
            try:
                callback(generation)
            except StaleCallback as exc:
                _LOGGER.debug("Dropping stale callback: %s", exc)
            except Exception as exc:
                self._report(exc, ErrorSeverity.ERROR, generation=generation)

    def _is_current(self, generation: int) -> bool:
        return generation == self._generation and self._state in (SurfaceState.CREATING, SurfaceState.READY)

    def _transition(self, target: SurfaceState) -> None:
        if target not in _TRANSITIONS[self._state]:
            raise SurfaceStateError(f"Invalid surface transition {self._state.value} -> {target.value}")
        self._state = target

    def _report(self, error: Exception, severity: ErrorSeverity, **context: Any) -> None:
        if self._errors is not None:
            self._errors.handle(error, severity, context)
        else:
            _LOGGER.error("%s: %s", error.__class__.__name__, error, exc_info=error)


__all__ = ["SurfaceLifecycle", "SurfaceState"]
