"""
Runs a complete dezoomify session: discovery, level selection, tile download
and saving of the final image.
"""

import asyncio
import logging
import time
from dataclasses import dataclass
from pathlib import Path

from rich.markup import escape

from dezoomify.dezoomers import find_dezoomer
from dezoomify.dezoomers.base import ZoomLevel
from dezoomify.media.codec import save_image
from dezoomify.models.config import DezoomConfig

from .orchestrator import DezoomResult, ProgressObserver, TileDownloader
from .resolver import BytesFetcher, list_zoom_levels
from .selector import LevelChooser, choose_level

log = logging.getLogger(__name__)


@dataclass
class SessionReport:
    level: ZoomLevel
    result: DezoomResult
    saved_to: Path
    duration_s: float


class DezoomSession:
    """Orchestrates one run, from the user's URI to the saved image."""

    def __init__(
        self,
        config: DezoomConfig,
        fetcher: BytesFetcher,
        observer: ProgressObserver | None = None,
        chooser: LevelChooser | None = None,
    ):
        self.config = config
        self.fetcher = fetcher
        self.observer = observer
        self.chooser = chooser

    async def find_zoom_level(self, uri: str) -> ZoomLevel:
        """
        Raises:
            DiscoveryError: If no dezoomer could make sense of the input.
            TransportError: If a document needed for discovery could not be fetched.
            NoLevels: If the image has no zoom level at all.
        """
        dezoomer = find_dezoomer(self.config.dezoomer)
        log.info("Trying to locate a zoomable image...")
        levels = await list_zoom_levels(
            dezoomer, uri, self.fetcher, max_steps=self.config.probe_limit
        )
        # The chooser may block on user input
        return await asyncio.to_thread(
            choose_level, levels, self.config.selection_policy, self.chooser
        )

    async def download(self, level: ZoomLevel) -> DezoomResult:
        log.info(f"Dezooming [bold]{escape(level.name)}[/bold]")
        downloader = TileDownloader(self.fetcher, self.config.num_threads, self.observer)
        return await downloader.dezoom(level)

    async def run(self, uri: str) -> SessionReport:
        start_time = time.monotonic()
        level = await self.find_zoom_level(uri)
        result = await self.download(level)
        if result.is_partial:
            log.warning(f"[yellow]{result.summary()}[/yellow]")
        else:
            log.info(f"[green]{result.summary()}[/green]")

        log.info(f"Saving the image to [dim]{escape(self.config.outfile)}[/dim]...")
        saved_to = save_image(result.canvas.finalize(), self.config.outfile)
        log.info(f"Saved the image to [dim]{escape(str(saved_to))}[/dim]")
        return SessionReport(level, result, saved_to, time.monotonic() - start_time)
