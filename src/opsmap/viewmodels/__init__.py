from .base import BaseViewModel
from .map_board import MapBoardViewModel

__all__ = ["BaseViewModel", "MapBoardViewModel"]
