import logging
from unittest.mock import Mock

import pytest

from opsmap import config
from opsmap.errors import StaleCallback, SurfaceStateError, UnknownStyleKey
from opsmap.errors.handler import ErrorHandler, ErrorOccurredEvent
from opsmap.events import SurfaceDestroyedEvent, SurfaceReadyEvent
from opsmap.lifecycle import SurfaceLifecycle, SurfaceState
from opsmap.styles import StyleKey
from opsmap.surface import LOAD_EVENT, MOUSEMOVE_EVENT, HeadlessEngine


@pytest.fixture
def lifecycle(engine, registry, event_bus):
    return SurfaceLifecycle(engine, registry, event_bus=event_bus)


def test_initial_state(lifecycle):
    assert lifecycle.state is SurfaceState.UNINITIALIZED
    assert lifecycle.generation == 0
    assert lifecycle.style_key is None
    assert not lifecycle.is_ready


def test_reinit_creates_surface_with_controls(lifecycle, engine):
    lifecycle.reinit("terrain")

    surface = engine.latest
    assert lifecycle.state is SurfaceState.CREATING
    assert lifecycle.generation == 1
    assert lifecycle.style_key is StyleKey.TERRAIN
    assert surface.config.style == "https://content.example/styles/opentopo.json"
    assert surface.config.center == config.DEFAULT_CENTER
    assert surface.config.zoom == config.DEFAULT_ZOOM
    assert surface.controls == [
        (config.NAVIGATION_CONTROL, "top-right"),
        (config.SCALE_CONTROL, None),
    ]


def test_load_moves_to_ready_once(lifecycle, engine):
    ready = []
    lifecycle.on_ready(ready.append)
    lifecycle.reinit(StyleKey.DARK)

    engine.latest.fire(LOAD_EVENT)
    engine.latest.fire(LOAD_EVENT)

    assert lifecycle.state is SurfaceState.READY
    assert ready == [1]


def test_switch_tears_down_before_creating(registry, event_bus):
    snapshots = []

    class RecordingEngine(HeadlessEngine):
        def create(self, surface_config):
            snapshots.append([(s.removed, s.listener_count()) for s in self.surfaces])
            return super().create(surface_config)

    engine = RecordingEngine()
    lifecycle = SurfaceLifecycle(engine, registry, event_bus=event_bus)
    lifecycle.reinit("terrain")
    engine.latest.fire(LOAD_EVENT)
    lifecycle.bind(MOUSEMOVE_EVENT, lambda event: None)

    lifecycle.reinit("dark")

    assert snapshots == [[], [(True, 0)]]
    assert len(engine.live_surfaces) == 1
    assert lifecycle.state is SurfaceState.CREATING
    assert lifecycle.generation == 2


def test_switch_while_creating(lifecycle, engine):
    ready = []
    lifecycle.on_ready(ready.append)
    lifecycle.reinit("terrain")
    first = engine.latest
    load_handlers = list(first._listeners[LOAD_EVENT])

    lifecycle.reinit("dark")
    for handler in load_handlers:
        handler()
    engine.latest.fire(LOAD_EVENT)

    assert first.removed
    assert ready == [2]


def test_stale_generation_raises(lifecycle, engine):
    lifecycle.reinit("terrain")
    engine.latest.fire(LOAD_EVENT)
    assert lifecycle.ready_surface(1) is engine.latest

    lifecycle.reinit("dark")

    with pytest.raises(StaleCallback):
        lifecycle.surface_for(1)
    with pytest.raises(StaleCallback):
        lifecycle.ready_surface(2)
    assert lifecycle.surface_for(2) is engine.latest


def test_unknown_key_leaves_surface_intact(lifecycle, engine):
    lifecycle.reinit("terrain")
    engine.latest.fire(LOAD_EVENT)

    with pytest.raises(UnknownStyleKey):
        lifecycle.reinit("satellite")

    assert lifecycle.is_ready
    assert lifecycle.style_key is StyleKey.TERRAIN
    assert len(engine.surfaces) == 1
    assert not engine.latest.removed


def test_teardown_runs_callbacks_and_unbinds(lifecycle, engine, event_bus):
    destroyed_events = []
    event_bus.subscribe(SurfaceDestroyedEvent, destroyed_events.append)
    teardowns = []
    lifecycle.on_teardown(teardowns.append)
    lifecycle.reinit("terrain")
    surface = engine.latest

    lifecycle.teardown()
    lifecycle.teardown()

    assert lifecycle.state is SurfaceState.DESTROYED
    assert teardowns == [1]
    assert surface.removed
    assert surface.listener_count() == 0
    assert [(e.style_key, e.generation) for e in destroyed_events] == [("terrain", 1)]


def test_failing_teardown_callback_does_not_stop_teardown(lifecycle, engine):
    def explode(generation):
        raise RuntimeError("boom")

    lifecycle.on_teardown(explode)
    lifecycle.reinit("terrain")
    surface = engine.latest

    lifecycle.teardown()

    assert surface.removed
    assert lifecycle.state is SurfaceState.DESTROYED


def test_ready_event_published(lifecycle, engine, event_bus):
    events = []
    event_bus.subscribe(SurfaceReadyEvent, events.append)

    lifecycle.reinit("dark")
    engine.latest.fire(LOAD_EVENT)

    assert [(e.style_key, e.generation) for e in events] == [("dark", 1)]


def test_bind_without_surface_raises(lifecycle):
    with pytest.raises(SurfaceStateError):
        lifecycle.bind(MOUSEMOVE_EVENT, lambda event: None)


def test_handler_errors_are_trapped(engine, registry, event_bus):
    errors = []
    event_bus.subscribe(ErrorOccurredEvent, errors.append)
    handler = ErrorHandler(Mock(spec=logging.Logger), event_bus)
    lifecycle = SurfaceLifecycle(engine, registry, error_handler=handler, event_bus=event_bus)
    lifecycle.reinit("terrain")

    def broken(event):
        raise ValueError("bad pointer")

    lifecycle.bind(MOUSEMOVE_EVENT, broken)
    engine.latest.fire(MOUSEMOVE_EVENT, object())

    assert len(errors) == 1
    assert isinstance(errors[0].error, ValueError)
    assert errors[0].context == {"event": MOUSEMOVE_EVENT, "generation": 1}


def test_ready_callback_error_does_not_block_others(lifecycle, engine):
    calls = []

    def broken(generation):
        raise RuntimeError("boom")

    lifecycle.on_ready(broken)
    lifecycle.on_ready(calls.append)
    lifecycle.reinit("terrain")
    engine.latest.fire(LOAD_EVENT)

    assert calls == [1]


def test_engine_failure_leaves_destroyed_state(registry):
    engine = Mock()
    engine.create.side_effect = RuntimeError("no GL context")
    lifecycle = SurfaceLifecycle(engine, registry)

    with pytest.raises(RuntimeError):
        lifecycle.reinit("terrain")

    assert lifecycle.state is SurfaceState.DESTROYED
    engine.create.side_effect = None
    lifecycle.reinit("terrain")
    assert lifecycle.state is SurfaceState.CREATING
