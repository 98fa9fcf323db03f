"""
End-to-end tests of a dezoomify session, with a fake fetcher
"""

import asyncio
import json

import pytest
from PIL import Image

from dezoomify.core.session import DezoomSession
from dezoomify.exceptions import NoCompatibleDezoomer, NoTileDownloaded
from dezoomify.models.config import DezoomConfig

from .conftest import QUADRANT_COLORS, FakeFetcher, RecordingObserver

YAML_URI = "http://tiles.example/tiles.yaml"


def quadrant_yaml() -> bytes:
    lines = ["name: Quadrants", "size: {width: 100, height: 100}", "tiles:"]
    lines += [f'  - "{x} {y} http://tiles.example/{x}_{y}.png"' for x, y in QUADRANT_COLORS]
    return "\n".join(lines).encode()


@pytest.fixture
def documents(quadrant_documents):
    return {YAML_URI: quadrant_yaml(), **quadrant_documents}


class TestSession:
    def test_run_saves_the_image(self, tmp_path, documents):
        outfile = tmp_path / "out" / "image.png"
        config = DezoomConfig(outfile=str(outfile), num_threads=2)
        observer = RecordingObserver()
        session = DezoomSession(config, FakeFetcher(documents), observer)

        report = asyncio.run(session.run(YAML_URI))

        assert report.level.name == "Quadrants"
        assert report.saved_to == outfile.resolve()
        assert not report.result.is_partial
        assert observer.total == 4
        with Image.open(outfile) as image:
            assert image.size == (100, 100)
            assert image.convert("RGB").getpixel((75, 25)) == QUADRANT_COLORS[(50, 0)]

    def test_partial_image_is_saved(self, tmp_path, documents):
        del documents["http://tiles.example/0_0.png"]
        outfile = tmp_path / "partial.png"
        session = DezoomSession(DezoomConfig(outfile=str(outfile)), FakeFetcher(documents))

        report = asyncio.run(session.run(YAML_URI))

        assert report.result.summary() == "Successfully downloaded 3 tiles out of 4"
        assert outfile.exists()

    def test_nothing_is_saved_without_tiles(self, tmp_path):
        outfile = tmp_path / "none.png"
        fetcher = FakeFetcher({YAML_URI: quadrant_yaml()})
        session = DezoomSession(DezoomConfig(outfile=str(outfile)), fetcher)

        with pytest.raises(NoTileDownloaded):
            asyncio.run(session.run(YAML_URI))
        assert not outfile.exists()

    def test_unknown_input(self, tmp_path):
        fetcher = FakeFetcher(
            {
                "http://example.com/page": b"<html></html>",
                "http://example.com/page/info.json": b"<html></html>",
            }
        )
        session = DezoomSession(DezoomConfig(outfile=str(tmp_path / "x.png")), fetcher)
        with pytest.raises(NoCompatibleDezoomer):
            asyncio.run(session.run("http://example.com/page"))

    def test_chooser_runs_outside_the_event_loop(self, tmp_path):
        """Asking the user does not block the running event loop"""
        info_uri = "http://h/image/info.json"
        info = {"width": 1000, "height": 600, "tiles": [{"width": 512, "scaleFactors": [1, 2]}]}
        seen = []

        def chooser(levels):
            try:
                asyncio.get_running_loop()
                seen.append("loop")
            except RuntimeError:
                seen.append("thread")
            return levels[-1]

        config = DezoomConfig(outfile=str(tmp_path / "x.png"), dezoomer="iiif")
        fetcher = FakeFetcher({info_uri: json.dumps(info).encode()})
        session = DezoomSession(config, fetcher, chooser=chooser)

        level = asyncio.run(session.find_zoom_level(info_uri))
        assert level.size_hint.as_tuple() == (500, 300)
        assert seen == ["thread"]

    def test_forced_dezoomer(self, tmp_path, documents):
        config = DezoomConfig(outfile=str(tmp_path / "x.png"), dezoomer="custom")
        session = DezoomSession(config, FakeFetcher(documents))
        level = asyncio.run(session.find_zoom_level(YAML_URI))
        assert level.name == "Quadrants"
