"""
Defines custom exceptions for the application to allow for more specific error handling.
"""

from dezoomify.models.geometry import Vec2d


class DezoomifyError(Exception):
    """Base exception for all application-specific errors."""


class NeedsData(Exception):
    """
    Raised by a dezoomer that cannot answer yet.

    The resolution loop fetches `uri` and probes again with its contents.
    This is control flow, not a failure.
    """

    def __init__(self, uri: str):
        super().__init__(f"Needs data from {uri}")
        self.uri = uri


# --- Discovery ---


class DiscoveryError(DezoomifyError):
    """Raised when no zoom level could be found for the input."""


class DezoomerError(DiscoveryError):
    """Raised by a dezoomer that failed to interpret its input."""


class WrongDezoomer(DezoomerError):
    """Raised when the input is obviously not meant for a dezoomer."""

    def __init__(self, name: str, expected: str = ""):
        detail = f" (expected {expected})" if expected else ""
        super().__init__(f"The '{name}' dezoomer cannot handle this input{detail}")
        self.name = name


class MalformedInput(DezoomerError):
    """Raised when fetched bytes cannot be parsed by a dezoomer."""


class MalformedTileStr(DezoomerError):
    """Raised for a single tile line that does not match 'x y url'."""

    def __init__(self, tile_str: str):
        super().__init__(f"Malformed tile string: '{tile_str}' expected 'x y url'")
        self.tile_str = tile_str


class NoSuchDezoomer(DiscoveryError):
    """Raised when the requested dezoomer name is not registered."""

    def __init__(self, name: str, known: list[str] | None = None):
        msg = f"No such dezoomer: {name}"
        if known:
            msg += f" (available: {', '.join(known)})"
        super().__init__(msg)
        self.name = name


class NoCompatibleDezoomer(DiscoveryError):
    """Raised by the automatic dezoomer when every dezoomer failed."""

    def __init__(self, errors: list[tuple[str, Exception]]):
        details = "\n".join(f"  - {name}: {err}" for name, err in errors)
        super().__init__(
            "Tried all of the dezoomers, none succeeded. They returned the following "
            f"errors:\n{details}"
        )
        self.errors = errors


class TooManyProbeSteps(DiscoveryError):
    """Raised when a dezoomer keeps requesting data past the configured limit."""

    def __init__(self, name: str, max_steps: int):
        super().__init__(
            f"The '{name}' dezoomer requested more than {max_steps} documents "
            "without finding a zoom level"
        )
        self.max_steps = max_steps


# --- Selection ---


class SelectionError(DezoomifyError):
    """Raised when no zoom level can be selected."""


class NoLevels(SelectionError):
    """Raised when a zoomable image was found but it has no zoom level."""

    def __init__(self):
        super().__init__(
            "A zoomable image was found, but it did not contain any zoom level"
        )


# --- Transport ---


class TransportError(DezoomifyError):
    """Raised when raw bytes could not be fetched."""

    def __init__(self, uri: str, cause: Exception | str):
        super().__init__(f"{self.kind} while fetching {uri}: {cause}")
        self.uri = uri
        self.cause = cause

    kind = "Transport error"


class NetworkError(TransportError):
    """Raised for HTTP errors (non-2xx status, connection failures, timeouts)."""

    kind = "Network error"


class LocalFileError(TransportError):
    """Raised when a local file cannot be read."""

    kind = "Input/Output error"


# --- Tiles and canvas ---


class TileDecodeError(DezoomifyError):
    """Raised when fetched bytes are not a valid tile image."""


class TileCopyError(DezoomifyError):
    """Raised when a tile does not fit inside the canvas."""

    def __init__(self, position: Vec2d, tile_size: Vec2d, canvas_size: Vec2d):
        super().__init__(
            f"Unable to copy a {tile_size.size_str()} tile at position {position} "
            f"on a canvas of size {canvas_size.size_str()}"
        )
        self.position = position
        self.tile_size = tile_size
        self.canvas_size = canvas_size


class CanvasFinalized(DezoomifyError):
    """Raised when a tile is added to a canvas that was already finalized."""


class TileDownloadError(DezoomifyError):
    """Wraps any per-tile failure together with the offending tile URL."""

    def __init__(self, url: str, cause: Exception):
        super().__init__(f"error with tile {url}: {cause}")
        self.url = url
        self.cause = cause


class NoTileDownloaded(DezoomifyError):
    """Raised when not a single tile of the zoom level could be used."""

    def __init__(self, total: int = 0):
        super().__init__(f"Could not get any tile for the image ({total} attempted)")
        self.total = total


# --- Output and configuration ---


class ImageEncodeError(DezoomifyError):
    """Raised when the final image cannot be written."""


class ConfigurationError(DezoomifyError):
    """Raised for issues related to configuration loading or validation."""
