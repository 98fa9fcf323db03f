"""
Data Models Layer.

This package contains the geometry primitive, the Pydantic configuration
models and the session statistics used throughout the application.
"""

from .config import DEFAULT_HEADERS, DezoomConfig, SelectionPolicy
from .geometry import Vec2d
from .stats import TileStats

__all__ = ["DEFAULT_HEADERS", "DezoomConfig", "SelectionPolicy", "TileStats", "Vec2d"]
