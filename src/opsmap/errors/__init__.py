"""Custom exception hierarchy for opsmap."""

from __future__ import annotations


class OpsMapError(Exception):
    """Base class for all custom errors raised by opsmap."""


# --- Programmer errors ---

class UnknownStyleKey(OpsMapError, KeyError):
    """Raised when a basemap key is outside the configured style set."""

    def __str__(self) -> str:
        # ``KeyError`` would otherwise repr() the message.
        return str(self.args[0]) if self.args else ""


class UnknownLayerError(OpsMapError, KeyError):
    """Raised when a logical layer name is not part of the catalog."""

    def __str__(self) -> str:
        return str(self.args[0]) if self.args else ""


class SurfaceStateError(OpsMapError):
    """Raised when the surface lifecycle is asked for an invalid transition."""


# --- Per-layer data errors (recoverable) ---

class LayerDataError(OpsMapError):
    """Base class for failures while loading one layer's geometry."""

    def __init__(self, layer: str, message: str) -> None:
        super().__init__(f"{layer}: {message}")
        self.layer = layer


class FetchFailed(LayerDataError):
    """Raised when a geometry collection cannot be retrieved."""


class DecodeFailed(LayerDataError):
    """Raised when retrieved geometry is not a decodable feature collection."""


# --- Lifecycle ---

class StaleCallback(OpsMapError):
    """Raised when a callback arrives after its owning surface was destroyed."""


# --- Settings ---

class SettingsError(OpsMapError):
    """Base class for settings related failures."""


class SettingsLoadError(SettingsError):
    """Raised when the settings file cannot be read or parsed."""


class SettingsValidationError(SettingsError):
    """Raised when settings data fails schema validation."""


__all__ = [
    "DecodeFailed",
    "FetchFailed",
    "LayerDataError",
    "OpsMapError",
    "SettingsError",
    "SettingsLoadError",
    "SettingsValidationError",
    "StaleCallback",
    "SurfaceStateError",
    "UnknownLayerError",
    "UnknownStyleKey",
]
