"""
Dezoomer for Zoomify images, described by an `ImageProperties.xml` file.
"""

import logging

from bs4 import BeautifulSoup

from dezoomify.exceptions import MalformedInput, WrongDezoomer
from dezoomify.models.geometry import Vec2d

from .base import Dezoomer, GridZoomLevel, ProbeInput, ZoomLevel
from .registry import register_dezoomer

log = logging.getLogger(__name__)

PROPERTIES_FILE = "ImageProperties.xml"
TILES_PER_GROUP = 256


def _half(size: Vec2d) -> Vec2d:
    return Vec2d(size.x // 2, size.y // 2)


def level_sizes(size: Vec2d, tile_size: int) -> list[Vec2d]:
    """Sizes of every zoom level, smallest first. Each tier halves the next one, rounding down."""
    sizes = [size]
    while sizes[-1].x > tile_size or sizes[-1].y > tile_size:
        sizes.append(_half(sizes[-1]))
    sizes.reverse()
    return sizes


class ZoomifyLevel(GridZoomLevel):
    def __init__(
        self, base_url: str, level: int, size: Vec2d, tile_size: int, tiles_before: int
    ):
        super().__init__(size, Vec2d.square(tile_size))
        self.base_url = base_url
        self.level = level
        self.tiles_before = tiles_before

    @property
    def name(self) -> str:
        return f"Zoomify level {self.level} ({self.size.size_str()})"

    def tile_url(self, x: int, y: int) -> str:
        index = self.tiles_before + y * self.grid_size.x + x
        group = index // TILES_PER_GROUP
        return f"{self.base_url}/TileGroup{group}/{self.level}-{x}-{y}.jpg"


@register_dezoomer
class ZoomifyDezoomer(Dezoomer):
    """Zoomify images, from the URL of their ImageProperties.xml."""

    name = "zoomify"

    def probe(self, data: ProbeInput) -> list[ZoomLevel]:
        if not data.uri.endswith(PROPERTIES_FILE):
            raise WrongDezoomer(self.name, f"an URL ending with {PROPERTIES_FILE}")
        contents = self.require_contents(data)

        soup = BeautifulSoup(contents, "html.parser")
        props = soup.find("image_properties")
        if props is None:
            raise MalformedInput("No IMAGE_PROPERTIES element in the Zoomify file")
        try:
            size = Vec2d(int(props["width"]), int(props["height"]))
            tile_size = int(props.get("tilesize", 256))
        except (KeyError, ValueError) as e:
            raise MalformedInput(f"Invalid Zoomify image properties: {e}") from e
        if tile_size <= 0:
            raise MalformedInput(f"Invalid Zoomify tile size: {tile_size}")

        base_url = data.uri[: -len(PROPERTIES_FILE)].rstrip("/")
        levels: list[ZoomLevel] = []
        tiles_before = 0
        for level, level_size in enumerate(level_sizes(size, tile_size)):
            zoom_level = ZoomifyLevel(base_url, level, level_size, tile_size, tiles_before)
            tiles_before += zoom_level.grid_size.area()
            levels.append(zoom_level)
        log.debug(f"Zoomify image of size {size.size_str()} has {len(levels)} levels")
        return levels
