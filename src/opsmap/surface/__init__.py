"""Rendering-engine capability interfaces and the headless implementation."""

from .base import (
    HIDDEN,
    LOAD_EVENT,
    MOUSEMOVE_EVENT,
    MOUSEOUT_EVENT,
    VISIBLE,
    PointerEvent,
    Popup,
    RenderedFeature,
    Surface,
    SurfaceConfig,
    SurfaceEngine,
)
from .headless import HeadlessEngine, HeadlessPopup, HeadlessSurface

__all__ = [
    "HIDDEN",
    "HeadlessEngine",
    "HeadlessPopup",
    "HeadlessSurface",
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
