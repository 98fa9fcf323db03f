"""
Decoding of tile images and encoding of the final image, with Pillow.
"""

import io
import logging
from pathlib import Path

from pathvalidate import sanitize_filepath
from PIL import Image, UnidentifiedImageError

from dezoomify.exceptions import ImageEncodeError, TileDecodeError

log = logging.getLogger(__name__)

# Formats that cannot store an alpha channel
_OPAQUE_FORMATS = {".jpg", ".jpeg", ".bmp"}


def decode_image(data: bytes) -> Image.Image:
    """Decodes raw tile bytes into a fully loaded RGB image."""
    try:
        with Image.open(io.BytesIO(data)) as img:
            img.load()
            return img.convert("RGB")
    except (UnidentifiedImageError, OSError, ValueError) as e:
        raise TileDecodeError(f"invalid image: {e}") from e


def output_path(outfile: str) -> Path:
    """Returns a path that is valid on the current platform."""
    return Path(sanitize_filepath(outfile, platform="auto"))


def save_image(image: Image.Image, outfile: str | Path) -> Path:
    """
    Encodes `image` to `outfile`, choosing the format from its extension.

    Returns:
        The absolute path of the written file.
    """
    path = output_path(str(outfile))
    if path.suffix.lower() in _OPAQUE_FORMATS and image.mode != "RGB":
        image = image.convert("RGB")
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        image.save(path)
    except (OSError, ValueError, KeyError) as e:
        raise ImageEncodeError(f"Unable to save the image to {path}: {e}") from e
    log.debug(f"Wrote {image.width}x{image.height} image to {path}")
    return path.resolve()
