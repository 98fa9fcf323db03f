"""
Dezoomers.

A dezoomer turns an URI (and the documents it asks for) into the list of zoom
levels of an image. Importing this package registers the bundled ones.
"""

# Import order is priority order for the automatic dezoomer
from . import custom_yaml  # noqa: F401, I001
from . import zoomify  # noqa: F401
from . import iiif  # noqa: F401
from .base import (
    Dezoomer,
    GridZoomLevel,
    ListZoomLevel,
    ProbeInput,
    TileReference,
    ZoomLevel,
)
from .registry import (
    AutoDezoomer,
    all_dezoomers,
    dezoomer_names,
    find_dezoomer,
    register_dezoomer,
)

__all__ = [
    "AutoDezoomer",
    "Dezoomer",
    "GridZoomLevel",
    "ListZoomLevel",
    "ProbeInput",
    "TileReference",
    "ZoomLevel",
    "all_dezoomers",
    "dezoomer_names",
    "find_dezoomer",
    "register_dezoomer",
]
