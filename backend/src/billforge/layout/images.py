"""
Logo decoding and fitting.

The logo is optional branding; a missing or unreadable image must never
stop a document from rendering. Decoding failures are raised here as
RenderAssetError and recovered by the layout engine.
"""

import io
import logging
from dataclasses import dataclass

from PIL import Image, UnidentifiedImageError

from billforge.domain.errors import RenderAssetError
from billforge.domain.hashing import compute_content_hash

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LogoAsset:
    """A decoded logo: original bytes plus pixel dimensions."""
    data: bytes
    width: int
    height: int
    digest: str


def load_logo(data: bytes | None) -> LogoAsset | None:
    """
    Decode logo bytes and read their dimensions.

    Args:
        data: Raw image bytes, or None when no logo is configured

    Returns:
        LogoAsset, or None when there is no logo

    Raises:
        RenderAssetError: If the bytes are not a readable raster image or
            exceed Pillow's pixel limit
    """
    if not data:
        return None
    try:
        with Image.open(io.BytesIO(data)) as image:
            image.verify()
        # verify() leaves the image unusable; reopen to read the size
        with Image.open(io.BytesIO(data)) as image:
            width, height = image.size
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, SyntaxError, ValueError) as e:
        raise RenderAssetError(f"Logo image could not be decoded: {e}") from e

    if width <= 0 or height <= 0:
        raise RenderAssetError(f"Logo image has no area: {width}x{height}")

    return LogoAsset(data=data, width=width, height=height, digest=compute_content_hash(data))


def fit_within(width: float, height: float, max_width: float, max_height: float) -> tuple[float, float]:
    """Scale (width, height) to fit the box, preserving aspect ratio."""
    ratio = min(max_width / width, max_height / height)
    return width * ratio, height * ratio
