"""
Unit tests for the tile downloader
"""

import asyncio

import pytest

from dezoomify.core.orchestrator import TileDownloader, enumerate_tiles
from dezoomify.dezoomers.base import ListZoomLevel, TileReference
from dezoomify.exceptions import MalformedTileStr, NoTileDownloaded
from dezoomify.models.geometry import Vec2d

from .conftest import QUADRANT_COLORS, FakeFetcher, RecordingObserver, make_image_bytes


def run(coro):
    return asyncio.run(coro)


class TestFullDownload:
    def test_all_tiles_downloaded(self, quadrant_level, quadrant_documents):
        """Four 50x50 tiles on a 100x100 canvas leave no empty region"""
        fetcher = FakeFetcher(quadrant_documents)
        result = run(TileDownloader(fetcher, num_threads=2).dezoom(quadrant_level))

        assert result.successes == 4
        assert result.total == 4
        assert not result.is_partial
        assert result.summary() == "Downloaded all tiles."
        image = result.canvas.finalize()
        assert image.size == (100, 100)
        for (x, y), color in QUADRANT_COLORS.items():
            assert image.getpixel((x + 25, y + 25)) == color

    def test_output_independent_of_completion_order(self, quadrant_level, quadrant_documents):
        """Sequential and concurrent downloads give the same pixels"""
        sequential = run(
            TileDownloader(FakeFetcher(quadrant_documents), num_threads=1).dezoom(
                quadrant_level
            )
        )
        # Delays reverse the completion order of the concurrent run
        delays = {
            url: 0.01 * (4 - i) for i, url in enumerate(sorted(quadrant_documents))
        }
        concurrent = run(
            TileDownloader(FakeFetcher(quadrant_documents, delays), num_threads=4).dezoom(
                quadrant_level
            )
        )
        assert (
            sequential.canvas.finalize().tobytes()
            == concurrent.canvas.finalize().tobytes()
        )

    def test_level_headers_are_sent(self, quadrant_documents):
        refs = [TileReference(Vec2d(0, 0), "http://tiles.example/0_0.png")]
        level = ListZoomLevel("one", refs, headers={"Referer": "http://example.com/"})
        fetcher = FakeFetcher(quadrant_documents)
        run(TileDownloader(fetcher, num_threads=1).dezoom(level))
        assert fetcher.calls == [
            ("http://tiles.example/0_0.png", {"Referer": "http://example.com/"})
        ]

    def test_unknown_size_canvas_grows(self, quadrant_documents):
        refs = [
            TileReference(Vec2d(0, 0), "http://tiles.example/0_0.png"),
            TileReference(Vec2d(50, 50), "http://tiles.example/50_50.png"),
        ]
        result = run(
            TileDownloader(FakeFetcher(quadrant_documents), 2).dezoom(
                ListZoomLevel("no hint", refs)
            )
        )
        assert result.canvas.size == Vec2d(100, 100)


class TestPartialFailure:
    def test_one_tile_fails_to_decode(self, quadrant_level, quadrant_documents):
        """3 out of 4 tiles are downloaded and the missing quadrant stays blank"""
        quadrant_documents["http://tiles.example/50_50.png"] = b"corrupted"
        result = run(
            TileDownloader(FakeFetcher(quadrant_documents), num_threads=2).dezoom(
                quadrant_level
            )
        )

        assert result.is_partial
        assert result.successes == 3
        assert result.stats.failed == 1
        assert result.summary() == "Successfully downloaded 3 tiles out of 4"
        image = result.canvas.finalize()
        assert image.getpixel((75, 75)) == (0, 0, 0)
        assert image.getpixel((25, 25)) == QUADRANT_COLORS[(0, 0)]

    def test_network_failure_is_isolated(self, quadrant_level, quadrant_documents):
        del quadrant_documents["http://tiles.example/0_0.png"]
        result = run(TileDownloader(FakeFetcher(quadrant_documents), 3).dezoom(quadrant_level))
        assert result.successes == 3

    def test_tile_outside_canvas_is_a_tile_error(self, quadrant_documents):
        refs = [
            TileReference(Vec2d(0, 0), "http://tiles.example/0_0.png"),
            TileReference(Vec2d(80, 0), "http://tiles.example/50_0.png"),
        ]
        level = ListZoomLevel("small", refs, size=Vec2d(100, 50))
        result = run(TileDownloader(FakeFetcher(quadrant_documents), 2).dezoom(level))
        assert result.successes == 1
        assert result.is_partial

    def test_all_tiles_fail(self, quadrant_level):
        with pytest.raises(NoTileDownloaded):
            run(TileDownloader(FakeFetcher({}), num_threads=2).dezoom(quadrant_level))

    def test_no_tile_at_all(self):
        with pytest.raises(NoTileDownloaded):
            run(TileDownloader(FakeFetcher({}), 1).dezoom(ListZoomLevel("empty", [])))


class TestEnumeration:
    def test_failed_references_are_dropped(self):
        good = TileReference(Vec2d(0, 0), "a.png")
        level = ListZoomLevel("mixed", [good, MalformedTileStr("oops"), ValueError("bad")])
        assert enumerate_tiles(level) == [good]

    def test_progress_counts_only_enumerated_tiles(self, quadrant_documents):
        refs = [
            TileReference(Vec2d(0, 0), "http://tiles.example/0_0.png"),
            MalformedTileStr("garbage"),
        ]
        observer = RecordingObserver()
        run(
            TileDownloader(FakeFetcher(quadrant_documents), 1, observer).dezoom(
                ListZoomLevel("one", refs)
            )
        )
        assert observer.total == 1


class TestProgress:
    def test_one_notification_per_attempt(self, quadrant_level, quadrant_documents):
        """Every tile is reported once, with a strictly increasing counter"""
        quadrant_documents["http://tiles.example/0_50.png"] = b"corrupted"
        observer = RecordingObserver()
        run(
            TileDownloader(FakeFetcher(quadrant_documents), 4, observer).dezoom(
                quadrant_level
            )
        )

        assert observer.total == 4
        assert [completed for completed, _, _ in observer.events] == [1, 2, 3, 4]
        assert sorted(p.as_tuple() for _, p, _ in observer.events) == sorted(QUADRANT_COLORS)
        failures = [p for _, p, ok in observer.events if not ok]
        assert failures == [Vec2d(0, 50)]


def test_concurrency_is_bounded():
    """No more than num_threads fetches are in flight at the same time"""
    in_flight = 0
    peak = 0
    image = make_image_bytes(10, 10)

    class CountingFetcher:
        async def fetch(self, uri, headers=None):
            nonlocal in_flight, peak
            in_flight += 1
            peak = max(peak, in_flight)
            await asyncio.sleep(0.01)
            in_flight -= 1
            return image

    refs = [TileReference(Vec2d(10 * i, 0), f"t{i}.png") for i in range(12)]
    level = ListZoomLevel("row", refs, size=Vec2d(120, 10))
    result = run(TileDownloader(CountingFetcher(), num_threads=3).dezoom(level))
    assert result.successes == 12
    assert peak == 3
