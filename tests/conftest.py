import sys
from concurrent.futures import Future
from pathlib import Path
from types import SimpleNamespace

import pytest

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"

if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from opsmap.catalog import LogicalLayer, coerce_layer, default_catalog  # noqa: E402
from opsmap.composer import LayerComposer  # noqa: E402
from opsmap.dispatch import ImmediateDispatcher  # noqa: E402
from opsmap.events import EventBus  # noqa: E402
from opsmap.hover import HoverResolver  # noqa: E402
from opsmap.lifecycle import SurfaceLifecycle  # noqa: E402
from opsmap.styles import StyleRegistry  # noqa: E402
from opsmap.surface import LOAD_EVENT, HeadlessEngine  # noqa: E402
from opsmap.visibility import VisibilityController  # noqa: E402


def square(x0: float, y0: float, x1: float, y1: float) -> dict:
    return {
        "type": "Polygon",
        "coordinates": [[[x0, y0], [x1, y0], [x1, y1], [x0, y1], [x0, y0]]],
    }


def feature(name, geometry: dict) -> dict:
    properties = {} if name is None else {"name": name}
    return {"type": "Feature", "properties": properties, "geometry": geometry}


def collection(*features: dict) -> dict:
    return {"type": "FeatureCollection", "features": list(features)}


# Ouest covers the whole test area; Turgeau sits inside Port-au-Prince.
SAMPLE_DATA = {
    LogicalLayer.DEPARTMENTS: collection(feature("Ouest", square(-74.0, 18.0, -71.0, 20.0))),
    LogicalLayer.COMMUNES: collection(feature("Port-au-Prince", square(-72.6, 18.4, -72.0, 19.0))),
    LogicalLayer.SECTIONS: collection(feature("Turgeau", square(-72.5, 18.5, -72.2, 18.8))),
}

INSIDE_SECTION = (-72.35, 18.6)
DEPARTMENT_ONLY = (-73.5, 19.5)
OUTSIDE = (-60.0, 10.0)


class FakeLoader:
    """Loader double whose futures are completed by the test."""

    def __init__(self, *, running: bool = False) -> None:
        self.futures: dict[LogicalLayer, Future] = {}
        self.requests: list[LogicalLayer] = []
        self.passes = 0
        self._running = running

    def begin_pass(self) -> None:
        self.passes += 1
        self.cancel_pending()

    def load(self, name) -> Future:
        layer = coerce_layer(name)
        future = self.futures.get(layer)
        if future is None:
            future = Future()
            if self._running:
                future.set_running_or_notify_cancel()
            self.futures[layer] = future
            self.requests.append(layer)
        return future

    def cancel_pending(self) -> None:
        futures = list(self.futures.values())
        self.futures.clear()
        for future in futures:
            future.cancel()

    def shutdown(self) -> None:
        self.cancel_pending()

    def resolve(self, layer: LogicalLayer, data: dict | None = None) -> None:
        self.futures[layer].set_result(data if data is not None else SAMPLE_DATA[layer])

    def fail(self, layer: LogicalLayer, error: Exception) -> None:
        self.futures[layer].set_exception(error)

    def resolve_all(self, order=None) -> None:
        for layer in order or list(LogicalLayer):
            self.resolve(layer)


@pytest.fixture
def catalog():
    return default_catalog()


@pytest.fixture
def registry():
    return StyleRegistry(base_url="https://content.example")


@pytest.fixture
def engine():
    return HeadlessEngine()


@pytest.fixture
def loader():
    return FakeLoader()


@pytest.fixture
def event_bus():
    return EventBus()


@pytest.fixture
def board(catalog, registry, engine, loader, event_bus):
    """Fully wired board on a headless engine; ``load`` is fired by the test."""

    lifecycle = SurfaceLifecycle(engine, registry, event_bus=event_bus)
    visibility = VisibilityController(catalog, lifecycle)
    composer = LayerComposer(
        catalog,
        loader,
        lifecycle,
        visibility,
        ImmediateDispatcher(),
        event_bus=event_bus,
    )
    hover = HoverResolver(catalog, lifecycle)

    def make_ready(style: str = "terrain", *, resolve: bool = True):
        lifecycle.reinit(style)
        surface = engine.latest
        surface.fire(LOAD_EVENT)
        if resolve:
            loader.resolve_all()
        return surface

    return SimpleNamespace(
        catalog=catalog,
        engine=engine,
        loader=loader,
        lifecycle=lifecycle,
        visibility=visibility,
        composer=composer,
        hover=hover,
        events=event_bus,
        make_ready=make_ready,
    )
