"""Operations map board: basemap switching, layer composition and hover."""

from .catalog import LayerCatalog, LogicalLayer, default_catalog
from .errors import OpsMapError
from .styles import StyleKey, StyleRegistry
from .viewmodels import MapBoardViewModel

__version__ = "0.1.0"

__all__ = [
    "LayerCatalog",
    "LogicalLayer",
    "MapBoardViewModel",
    "OpsMapError",
    "StyleKey",
    "StyleRegistry",
    "default_catalog",
]
