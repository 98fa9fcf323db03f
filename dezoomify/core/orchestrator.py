"""
Downloads every tile of a zoom level concurrently and assembles them on a canvas.
"""

import asyncio
import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Protocol

from rich.markup import escape

from dezoomify.dezoomers.base import TileReference, ZoomLevel
from dezoomify.exceptions import DezoomifyError, NoTileDownloaded, TileDownloadError
from dezoomify.models.config import default_num_threads
from dezoomify.models.geometry import Vec2d
from dezoomify.models.stats import TileStats

from .canvas import Canvas, Tile
from .resolver import BytesFetcher

log = logging.getLogger(__name__)


class ProgressObserver(Protocol):
    """Receives one notification per finished tile attempt."""

    def start(self, total: int) -> None: ...

    def advance(self, completed: int, position: Vec2d, success: bool) -> None: ...


class NullObserver:
    def start(self, total: int) -> None:
        pass

    def advance(self, completed: int, position: Vec2d, success: bool) -> None:
        pass


@dataclass
class DezoomResult:
    """The assembled canvas and how many of its tiles made it."""

    canvas: Canvas
    stats: TileStats

    @property
    def successes(self) -> int:
        return self.stats.succeeded

    @property
    def total(self) -> int:
        return self.stats.total

    @property
    def is_partial(self) -> bool:
        return self.successes < self.total

    def summary(self) -> str:
        if not self.is_partial:
            return "Downloaded all tiles."
        return f"Successfully downloaded {self.successes} tiles out of {self.total}"


def enumerate_tiles(level: ZoomLevel) -> list[TileReference]:
    """Lists the tiles of a level, logging and dropping the ones that failed."""
    refs = []
    for item in level.tiles():
        if isinstance(item, Exception):
            log.warning(f"[yellow]Skipping a tile: {escape(str(item))}[/yellow]")
            continue
        refs.append(item)
    return refs


class TileDownloader:
    """
    Fetches the tiles of a zoom level with at most `num_threads` downloads in
    flight, decoding and pasting them in a pool of as many worker threads.

    A tile that fails to download, decode or fit on the canvas is logged and
    counted; it never interrupts the others.
    """

    def __init__(
        self,
        fetcher: BytesFetcher,
        num_threads: int | None = None,
        observer: ProgressObserver | None = None,
    ):
        self.fetcher = fetcher
        self.num_threads = num_threads or default_num_threads()
        self.observer = observer or NullObserver()

    async def dezoom(self, level: ZoomLevel) -> DezoomResult:
        """
        Downloads the whole level.

        Raises:
            NoTileDownloaded: If not a single tile could be placed on the canvas.
        """
        refs = enumerate_tiles(level)
        stats = TileStats(total=len(refs))
        canvas = Canvas(level.size_hint)
        headers = level.http_headers()
        self.observer.start(len(refs))
        log.debug(f"Downloading {len(refs)} tiles with {self.num_threads} workers")

        semaphore = asyncio.Semaphore(self.num_threads)
        with ThreadPoolExecutor(
            max_workers=self.num_threads, thread_name_prefix="dezoomify"
        ) as executor:
            tasks = [
                self._process_tile(ref, headers, canvas, stats, semaphore, executor)
                for ref in refs
            ]
            await asyncio.gather(*tasks)

        if stats.succeeded == 0:
            raise NoTileDownloaded(stats.total)
        return DezoomResult(canvas, stats)

    async def _process_tile(
        self,
        ref: TileReference,
        headers: dict[str, str],
        canvas: Canvas,
        stats: TileStats,
        semaphore: asyncio.Semaphore,
        executor: ThreadPoolExecutor,
    ) -> bool:
        success, size = False, 0
        async with semaphore:
            try:
                data = await self.fetcher.fetch(ref.url, headers)
                size = len(data)
                loop = asyncio.get_running_loop()
                await loop.run_in_executor(executor, _place_tile, canvas, ref, data)
                success = True
            except DezoomifyError as e:
                log.warning(
                    f"[red]✗ {escape(str(TileDownloadError(ref.url, e)))}[/red]"
                )
            except Exception as e:
                log.error(
                    f"[red]✗ Unexpected error with tile {escape(ref.url)}: {e}[/red]",
                    exc_info=log.getEffectiveLevel() == logging.DEBUG,
                )
        completed = stats.record(success, size)
        self.observer.advance(completed, ref.position, success)
        return success


def _place_tile(canvas: Canvas, ref: TileReference, data: bytes) -> None:
    canvas.add_tile(Tile.decode(ref, data))
