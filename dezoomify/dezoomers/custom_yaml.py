"""
Dezoomer for hand-written `tiles.yaml` files listing every tile explicitly.

    name: My image
    size: {width: 1000, height: 800}
    headers: {Referer: "https://example.com/"}
    tiles:
      - "0 0 https://example.com/tiles/0_0.jpg"
      - "512 0 https://example.com/tiles/1_0.jpg"
"""

import logging
from typing import Any

import yaml

from dezoomify.exceptions import MalformedInput, MalformedTileStr, WrongDezoomer
from dezoomify.models.geometry import Vec2d

from .base import Dezoomer, ListZoomLevel, ProbeInput, TileReference, TileResult, ZoomLevel
from .registry import register_dezoomer

log = logging.getLogger(__name__)


def parse_tile_str(tile_str: str) -> TileReference:
    """Parses an 'x y url' line."""
    parts = str(tile_str).split(maxsplit=2)
    if len(parts) != 3:
        raise MalformedTileStr(tile_str)
    x, y, url = parts
    try:
        return TileReference(Vec2d(int(x), int(y)), url)
    except ValueError as e:
        raise MalformedTileStr(tile_str) from e


def _parse_size(raw: Any) -> Vec2d | None:
    if raw is None:
        return None
    try:
        return Vec2d(int(raw["width"]), int(raw["height"]))
    except (KeyError, TypeError, ValueError) as e:
        raise MalformedInput(f"Invalid 'size' entry in tiles.yaml: {raw!r}") from e


@register_dezoomer
class CustomYamlDezoomer(Dezoomer):
    """Reads a tile list from a YAML document."""

    name = "custom"

    def probe(self, data: ProbeInput) -> list[ZoomLevel]:
        if not data.uri.endswith("tiles.yaml"):
            raise WrongDezoomer(self.name, "a file named tiles.yaml")
        contents = self.require_contents(data)
        try:
            doc = yaml.safe_load(contents)
        except yaml.YAMLError as e:
            raise MalformedInput(f"Invalid YAML configuration file: {e}") from e

        if not isinstance(doc, dict) or not isinstance(doc.get("tiles"), list):
            raise MalformedInput("tiles.yaml must contain a 'tiles' list")

        items: list[TileResult] = []
        for tile_str in doc["tiles"]:
            try:
                items.append(parse_tile_str(tile_str))
            except MalformedTileStr as e:
                items.append(e)

        headers = doc.get("headers") or {}
        if not isinstance(headers, dict):
            raise MalformedInput("'headers' must be a mapping of header names to values")

        level = ListZoomLevel(
            level_name=str(doc.get("name") or "Custom tiles"),
            items=items,
            size=_parse_size(doc.get("size")),
            headers={str(k): str(v) for k, v in headers.items()},
        )
        log.debug(f"Read {len(items)} tiles from {data.uri}")
        return [level]
