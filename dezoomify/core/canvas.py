"""
The surface on which downloaded tiles are assembled.

Tiles may arrive in any order. Where two tiles overlap, the one added last
wins, so the content of overlapping regions depends on completion order.
"""

import logging
import threading
from dataclasses import dataclass

from PIL import Image

from dezoomify.dezoomers.base import TileReference
from dezoomify.exceptions import CanvasFinalized, TileCopyError
from dezoomify.media.codec import decode_image
from dezoomify.models.geometry import Vec2d

log = logging.getLogger(__name__)

BACKGROUND = (0, 0, 0)


@dataclass(frozen=True)
class Tile:
    """A downloaded and decoded tile, ready to be placed on the canvas."""

    position: Vec2d
    image: Image.Image

    @property
    def size(self) -> Vec2d:
        return Vec2d(self.image.width, self.image.height)

    @property
    def bottom_right(self) -> Vec2d:
        return self.position + self.size

    @classmethod
    def decode(cls, ref: TileReference, data: bytes) -> "Tile":
        """Raises TileDecodeError when `data` is not an image."""
        return cls(ref.position, decode_image(data))


class Canvas:
    """
    A raster assembled from tiles.

    With a size hint, the raster is allocated once and tiles that do not fit
    are rejected. Without one, the raster is reallocated to the bounding box
    of all the tiles placed so far each time a tile extends past it, so peak
    memory is about twice the final image size.
    """

    def __init__(self, size_hint: Vec2d | None = None):
        self.size_hint = size_hint
        self._image: Image.Image | None = (
            Image.new("RGB", size_hint.as_tuple(), BACKGROUND) if size_hint else None
        )
        self._lock = threading.Lock()
        self._finalized = False

    @property
    def size(self) -> Vec2d:
        if self._image is None:
            return Vec2d(0, 0)
        return Vec2d(self._image.width, self._image.height)

    def add_tile(self, tile: Tile) -> None:
        """
        Pastes a tile at its position. Safe to call from several threads.

        Raises:
            TileCopyError: If the canvas has a known size and the tile overflows it.
            CanvasFinalized: If `finalize` was already called.
        """
        with self._lock:
            if self._finalized:
                raise CanvasFinalized("Cannot add a tile to a finalized canvas")
            if self.size_hint is not None:
                if not tile.bottom_right.fits_inside(self.size_hint):
                    raise TileCopyError(tile.position, tile.size, self.size_hint)
                self._image.paste(tile.image, tile.position.as_tuple())
                return
            self._image = self._grown_to(tile.bottom_right)
            self._image.paste(tile.image, tile.position.as_tuple())

    def _grown_to(self, corner: Vec2d) -> Image.Image:
        """Returns a raster large enough to contain `corner`, keeping the content."""
        if self._image is not None and corner.fits_inside(self.size):
            return self._image
        new_size = self.size.max(corner)
        log.debug(f"Growing canvas from {self.size.size_str()} to {new_size.size_str()}")
        grown = Image.new("RGB", new_size.as_tuple(), BACKGROUND)
        if self._image is not None:
            grown.paste(self._image, (0, 0))
        return grown

    def finalize(self) -> Image.Image:
        """Freezes the canvas and returns the assembled image."""
        with self._lock:
            self._finalized = True
            if self._image is None:
                return Image.new("RGB", (0, 0), BACKGROUND)
            return self._image.copy()

    def snapshot(self) -> Image.Image | None:
        """A copy of the current content, never a half-pasted tile."""
        with self._lock:
            return self._image.copy() if self._image is not None else None
