"""
The contract every tile-serving protocol implements to plug into the engine.

A dezoomer never performs network I/O itself. When it needs a document it
raises `NeedsData`, and the resolution loop calls it again with the bytes.
"""

import logging
from abc import ABC, abstractmethod
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field

from dezoomify.exceptions import NeedsData
from dezoomify.models.geometry import Vec2d

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProbeInput:
    """What a dezoomer currently knows: an URI and, maybe, its contents."""

    uri: str
    contents: bytes | None = None

    def with_contents(self, uri: str, contents: bytes) -> "ProbeInput":
        return ProbeInput(uri=uri, contents=contents)


@dataclass(frozen=True)
class TileReference:
    """Where a tile goes on the final canvas, and where to get it."""

    position: Vec2d
    url: str


TileResult = TileReference | Exception


class ZoomLevel(ABC):
    """A single resolution of a zoomable image."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Human-readable description shown to the user."""

    @property
    def size_hint(self) -> Vec2d | None:
        return None

    def http_headers(self) -> dict[str, str]:
        """Headers required to fetch the tiles of this level."""
        return {}

    @abstractmethod
    def tiles(self) -> Iterable[TileResult]:
        """
        Enumerates the tiles of this level.

        An item may be an exception instead of a reference; it is dropped by
        the downloader without aborting the others.
        """

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name!r}>"


@dataclass(repr=False)
class ListZoomLevel(ZoomLevel):
    """A zoom level backed by an explicit list of tiles."""

    level_name: str
    items: list[TileResult]
    size: Vec2d | None = None
    headers: dict[str, str] = field(default_factory=dict)

    @property
    def name(self) -> str:
        return self.level_name

    @property
    def size_hint(self) -> Vec2d | None:
        return self.size

    def http_headers(self) -> dict[str, str]:
        return dict(self.headers)

    def tiles(self) -> Iterator[TileResult]:
        return iter(self.items)


class GridZoomLevel(ZoomLevel):
    """
    A zoom level laid out as a regular grid of `tile_size` tiles.

    Subclasses only describe how to build the URL of the tile at grid
    coordinates (x, y).
    """

    def __init__(self, size: Vec2d, tile_size: Vec2d):
        if tile_size.x == 0 or tile_size.y == 0:
            raise ValueError("Tile size must be strictly positive")
        self.size = size
        self.tile_size = tile_size

    @property
    def size_hint(self) -> Vec2d:
        return self.size

    @property
    def grid_size(self) -> Vec2d:
        return Vec2d(
            -(-self.size.x // self.tile_size.x), -(-self.size.y // self.tile_size.y)
        )

    @property
    def name(self) -> str:
        return f"{type(self).__name__} {self.size.size_str()}"

    @abstractmethod
    def tile_url(self, x: int, y: int) -> str:
        """URL of the tile at grid coordinates (x, y)."""

    def tiles(self) -> Iterator[TileResult]:
        grid = self.grid_size
        for y in range(grid.y):
            for x in range(grid.x):
                position = Vec2d(x * self.tile_size.x, y * self.tile_size.y)
                try:
                    yield TileReference(position, self.tile_url(x, y))
                except (ValueError, KeyError) as e:
                    yield e


class Dezoomer(ABC):
    """A tile-serving protocol implementation."""

    name: str = ""

    @abstractmethod
    def probe(self, data: ProbeInput) -> list[ZoomLevel]:
        """
        Returns the zoom levels described by `data`.

        Raises:
            NeedsData: When the contents of another URI are required first.
            DezoomerError: When the input cannot be handled.
        """

    @staticmethod
    def require_contents(data: ProbeInput) -> bytes:
        """Returns the input's bytes, or asks the loop to fetch them."""
        if data.contents is None:
            raise NeedsData(data.uri)
        return data.contents

    def __repr__(self) -> str:
        return f"<Dezoomer {self.name}>"
