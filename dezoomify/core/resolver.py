"""
Drives a dezoomer until it produces its zoom levels, fetching every document
it asks for along the way.
"""

import logging
from typing import Protocol

from dezoomify.dezoomers.base import Dezoomer, ProbeInput, ZoomLevel
from dezoomify.exceptions import NeedsData, TooManyProbeSteps

log = logging.getLogger(__name__)


class BytesFetcher(Protocol):
    async def fetch(self, uri: str, headers: dict[str, str] | None = None) -> bytes: ...


async def list_zoom_levels(
    dezoomer: Dezoomer,
    uri: str,
    fetcher: BytesFetcher,
    max_steps: int | None = None,
) -> list[ZoomLevel]:
    """
    Probes `dezoomer` until it returns zoom levels.

    Each `NeedsData` request is fetched (one at a time, since every document
    may depend on the previous one) and the dezoomer is probed again with it.

    Args:
        dezoomer: The dezoomer to drive.
        uri: The URI or path given by the user.
        fetcher: Provides the bytes of the requested documents.
        max_steps: Maximum number of documents to fetch; None for no limit.

    Raises:
        DezoomerError: Propagated unchanged from the dezoomer.
        TransportError: When a requested document cannot be fetched.
        TooManyProbeSteps: When more than `max_steps` documents were requested.
    """
    data = ProbeInput(uri)
    steps = 0
    while True:
        try:
            return dezoomer.probe(data)
        except NeedsData as e:
            steps += 1
            if max_steps is not None and steps > max_steps:
                raise TooManyProbeSteps(dezoomer.name, max_steps) from e
            log.info(f"Downloading [dim]{e.uri}[/dim]...")
            contents = await fetcher.fetch(e.uri)
            log.debug(f"Fetched {len(contents)} bytes from {e.uri}")
            data = data.with_contents(e.uri, contents)
