"""
Media Layer.

This package is responsible for raw byte transport (network and local files)
and for decoding tiles and encoding the final image.
"""

from .codec import decode_image, save_image
from .fetcher import Fetcher

__all__ = ["Fetcher", "decode_image", "save_image"]
