"""
Core engine.

`list_zoom_levels` drives a dezoomer to its zoom levels, `choose_level` picks
one, and the `TileDownloader` fetches its tiles onto a `Canvas`.
"""

from .canvas import Canvas, Tile
from .orchestrator import DezoomResult, TileDownloader
from .resolver import list_zoom_levels
from .selector import choose_level, interactive_chooser

__all__ = [
    "Canvas",
    "DezoomResult",
    "Tile",
    "TileDownloader",
    "choose_level",
    "interactive_chooser",
    "list_zoom_levels",
]
