"""
Dezoomer for the IIIF Image API (versions 2 and 3), driven by `info.json`.
"""

import json
import logging
from typing import Any

from dezoomify.exceptions import MalformedInput, NeedsData
from dezoomify.models.geometry import Vec2d

from .base import Dezoomer, GridZoomLevel, ProbeInput, ZoomLevel
from .registry import register_dezoomer

log = logging.getLogger(__name__)

INFO_FILE = "info.json"
DEFAULT_TILE_SIZE = 512


def _ceil_div(a: int, b: int) -> int:
    return -(-a // b)


def default_scale_factors(size: Vec2d, tile_size: Vec2d) -> list[int]:
    """Powers of two until the whole image fits in a single tile."""
    factors = [1]
    while _ceil_div(size.x, factors[-1]) > tile_size.x or _ceil_div(
        size.y, factors[-1]
    ) > tile_size.y:
        factors.append(factors[-1] * 2)
    return factors


class IIIFLevel(GridZoomLevel):
    """One scale factor of an IIIF image."""

    def __init__(self, base_url: str, full_size: Vec2d, tile_size: Vec2d, scale_factor: int):
        size = Vec2d(
            _ceil_div(full_size.x, scale_factor), _ceil_div(full_size.y, scale_factor)
        )
        super().__init__(size, tile_size)
        self.base_url = base_url
        self.full_size = full_size
        self.scale_factor = scale_factor

    @property
    def name(self) -> str:
        return f"IIIF {self.size.size_str()} (scale 1/{self.scale_factor})"

    def tile_url(self, x: int, y: int) -> str:
        sf = self.scale_factor
        rx, ry = x * self.tile_size.x * sf, y * self.tile_size.y * sf
        rw = min(self.tile_size.x * sf, self.full_size.x - rx)
        rh = min(self.tile_size.y * sf, self.full_size.y - ry)
        if rw <= 0 or rh <= 0:
            raise ValueError(f"Tile ({x}, {y}) lies outside of the image")
        # Width and height both given: the tile stays inside the level size
        out_w, out_h = _ceil_div(rw, sf), _ceil_div(rh, sf)
        return f"{self.base_url}/{rx},{ry},{rw},{rh}/{out_w},{out_h}/0/default.jpg"


def levels_from_info(info: dict[str, Any], uri: str) -> list[ZoomLevel]:
    """Builds the zoom levels described by a parsed info.json document."""
    try:
        full_size = Vec2d(int(info["width"]), int(info["height"]))
    except (KeyError, TypeError, ValueError) as e:
        raise MalformedInput(f"info.json has no valid width and height: {e}") from e

    base_url = info.get("@id") or info.get("id")
    if not base_url:
        base_url = uri[: -len(INFO_FILE)] if uri.endswith(INFO_FILE) else uri
    base_url = str(base_url).rstrip("/")

    tiles_info = (info.get("tiles") or [{}])[0]
    try:
        tile_width = int(tiles_info.get("width", DEFAULT_TILE_SIZE))
        tile_height = int(tiles_info.get("height", tile_width))
        scale_factors = [int(f) for f in tiles_info.get("scaleFactors", [])]
    except (AttributeError, TypeError, ValueError) as e:
        raise MalformedInput(f"info.json has an invalid 'tiles' entry: {e}") from e
    if tile_width <= 0 or tile_height <= 0 or any(f <= 0 for f in scale_factors):
        raise MalformedInput("info.json tile sizes and scale factors must be positive")

    tile_size = Vec2d(tile_width, tile_height)
    if not scale_factors:
        scale_factors = default_scale_factors(full_size, tile_size)

    return [
        IIIFLevel(base_url, full_size, tile_size, sf)
        for sf in sorted(set(scale_factors))
    ]


@register_dezoomer
class IIIFDezoomer(Dezoomer):
    """IIIF Image API servers, from an image URL or its info.json."""

    name = "iiif"

    def probe(self, data: ProbeInput) -> list[ZoomLevel]:
        contents = self.require_contents(data)
        try:
            info = json.loads(contents)
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            if not data.uri.endswith(INFO_FILE):
                raise NeedsData(f"{data.uri.rstrip('/')}/{INFO_FILE}") from e
            raise MalformedInput(f"Invalid info.json: {e}") from e
        if not isinstance(info, dict):
            raise MalformedInput("info.json must contain a JSON object")

        levels = levels_from_info(info, data.uri)
        log.debug(f"IIIF image at {data.uri} has {len(levels)} levels")
        return levels
