"""
Shared fixtures and fakes for the test suite.
"""

import asyncio
import io

import pytest
from PIL import Image

from dezoomify.dezoomers.base import ListZoomLevel, TileReference
from dezoomify.exceptions import NetworkError
from dezoomify.models.geometry import Vec2d


def make_image_bytes(width: int, height: int, color=(255, 0, 0), fmt: str = "PNG") -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", (width, height), color).save(buffer, format=fmt)
    return buffer.getvalue()


class FakeFetcher:
    """Serves bytes from a dict; values that are exceptions are raised instead."""

    def __init__(self, documents: dict, delays: dict | None = None):
        self.documents = documents
        self.delays = delays or {}
        self.calls: list[tuple[str, dict | None]] = []

    async def fetch(self, uri: str, headers: dict | None = None) -> bytes:
        self.calls.append((uri, headers))
        if uri in self.delays:
            await asyncio.sleep(self.delays[uri])
        value = self.documents.get(uri)
        if value is None:
            raise NetworkError(uri, "404 Not Found")
        if isinstance(value, Exception):
            raise value
        return value


class RecordingObserver:
    def __init__(self):
        self.total = None
        self.events: list[tuple[int, Vec2d, bool]] = []

    def start(self, total: int) -> None:
        self.total = total

    def advance(self, completed: int, position: Vec2d, success: bool) -> None:
        self.events.append((completed, position, success))


QUADRANT_COLORS = {
    (0, 0): (255, 0, 0),
    (50, 0): (0, 255, 0),
    (0, 50): (0, 0, 255),
    (50, 50): (255, 255, 0),
}


@pytest.fixture
def quadrant_level():
    """A 100x100 level made of four 50x50 tiles."""
    refs = [
        TileReference(Vec2d(x, y), f"http://tiles.example/{x}_{y}.png")
        for (x, y) in QUADRANT_COLORS
    ]
    return ListZoomLevel("quadrants", refs, size=Vec2d(100, 100))


@pytest.fixture
def quadrant_documents():
    return {
        f"http://tiles.example/{x}_{y}.png": make_image_bytes(50, 50, color)
        for (x, y), color in QUADRANT_COLORS.items()
    }
