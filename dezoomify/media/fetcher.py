"""
Fetches raw bytes from HTTP(S) URLs or local files, with retries for the network.
"""

import asyncio
import logging

import aiofiles
import aiohttp

from dezoomify.exceptions import LocalFileError, NetworkError
from dezoomify.models.config import DEFAULT_HEADERS

log = logging.getLogger(__name__)


def is_remote(uri: str) -> bool:
    return uri.startswith(("http://", "https://"))


class Fetcher:
    """
    Fetches documents and tiles.

    URIs starting with http:// or https:// go through a shared aiohttp
    session; anything else is read from the local filesystem.
    """

    def __init__(
        self,
        headers: dict[str, str] | None = None,
        max_workers: int = 8,
        timeout: float = 30.0,
        max_attempts: int = 2,
        base_delay: float = 2.0,
    ):
        """
        Args:
            headers: Headers sent with every request, on top of DEFAULT_HEADERS.
            max_workers: The number of concurrent workers, used to tune the connection pool.
            timeout: Total timeout of a single request, in seconds (0 disables it).
            max_attempts: How many times a network request is tried before giving up.
            base_delay: Delay before the first retry; doubled after every attempt.
        """
        self.headers = {**DEFAULT_HEADERS, **(headers or {})}
        self.max_workers = max_workers
        self.timeout = timeout
        self.max_attempts = max(1, max_attempts)
        self.base_delay = base_delay
        self._session: aiohttp.ClientSession | None = None
        self._session_lock = asyncio.Lock()

    async def _get_session(self) -> aiohttp.ClientSession:
        """Gets or creates the shared session for this fetcher."""
        async with self._session_lock:
            if self._session is None or self._session.closed:
                connector = aiohttp.TCPConnector(
                    limit=self.max_workers * 2,
                    limit_per_host=self.max_workers,
                    ttl_dns_cache=300,
                    enable_cleanup_closed=True,
                )
                self._session = aiohttp.ClientSession(
                    connector=connector,
                    headers=self.headers,
                    timeout=aiohttp.ClientTimeout(total=self.timeout or None),
                )
                log.debug(f"Created HTTP session with limit_per_host={self.max_workers}")
        return self._session

    async def close(self) -> None:
        """Gracefully closes the aiohttp session."""
        if self._session and not self._session.closed:
            await self._session.close()
            log.debug("HTTP session closed.")

    async def __aenter__(self) -> "Fetcher":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def fetch(self, uri: str, headers: dict[str, str] | None = None) -> bytes:
        """
        Returns the contents of `uri`.

        Args:
            uri: An http(s) URL or a local path.
            headers: Extra request headers; they override the session defaults.

        Raises:
            NetworkError: For HTTP errors, connection failures and timeouts.
            LocalFileError: When a local file cannot be read.
        """
        if is_remote(uri):
            return await self._fetch_remote(uri, headers)
        return await self._read_local(uri)

    async def _fetch_remote(self, url: str, headers: dict[str, str] | None) -> bytes:
        last_exception: Exception | None = None
        for attempt in range(1, self.max_attempts + 1):
            try:
                session = await self._get_session()
                async with session.get(url, headers=headers, allow_redirects=True) as r:
                    r.raise_for_status()
                    return await r.read()
            except (aiohttp.ClientError, asyncio.TimeoutError) as e:
                last_exception = e
                log.debug(
                    f"Request attempt {attempt}/{self.max_attempts} for {url} failed: {e}"
                )
                if attempt < self.max_attempts:
                    await asyncio.sleep(self.base_delay * (2 ** (attempt - 1)))
        raise NetworkError(url, last_exception or "unknown error")

    async def _read_local(self, path: str) -> bytes:
        if path.startswith("file://"):
            path = path[len("file://") :]
        try:
            async with aiofiles.open(path, "rb") as f:
                return await f.read()
        except OSError as e:
            raise LocalFileError(path, e) from e
