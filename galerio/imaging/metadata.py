"""EXIF metadata extraction for JPEG images."""

import io
import logging
from pathlib import Path
from typing import Optional, Tuple

from PIL import Image, UnidentifiedImageError
from PIL.ExifTags import Base

from ..exceptions import ImageDecodeError
from .models import OrientationTag

logger = logging.getLogger(__name__)

ORIENTATION_TAG_ID = Base.Orientation.value  # 0x0112

# Pillow reports JPEGs carrying multi-picture data as MPO
JPEG_FORMATS = ("JPEG", "MPO")


def open_jpeg(data: bytes, filename: Optional[str] = None) -> Image.Image:
    """Open JPEG bytes with Pillow without decoding the pixel data.

    Args:
        data: Raw file contents
        filename: Source file name, used in error messages

    Returns:
        Lazily loaded Pillow image

    Raises:
        ImageDecodeError: If the bytes are not a JPEG container
    """
    try:
        image = Image.open(io.BytesIO(data))
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError) as e:
        raise ImageDecodeError(f"Not a valid image: {e}", filename) from e

    if image.format not in JPEG_FORMATS:
        image.close()
        raise ImageDecodeError(
            f"Unsupported image format: {image.format or 'unknown'}", filename
        )

    return image


def orientation_from_image(image: Image.Image) -> OrientationTag:
    """Read the orientation tag from an opened image.

    Missing, malformed or out-of-range metadata yields
    ``OrientationTag.NORMAL``; this function never raises.

    Args:
        image: Pillow image opened from a JPEG file

    Returns:
        OrientationTag for the stored pixels
    """
    try:
        exif = image.getexif()
        value = exif.get(ORIENTATION_TAG_ID) if exif else None
    except Exception as e:
        logger.debug(f"Unreadable EXIF block, assuming normal orientation: {e}")
        return OrientationTag.NORMAL

    if value is None:
        return OrientationTag.NORMAL

    try:
        return OrientationTag(int(value))
    except (TypeError, ValueError):
        logger.debug(f"Invalid EXIF orientation {value!r}, assuming normal orientation")
        return OrientationTag.NORMAL


def read_orientation(data: bytes) -> OrientationTag:
    """Extract the EXIF orientation from raw JPEG bytes.

    Args:
        data: Raw JPEG file contents

    Returns:
        OrientationTag, ``NORMAL`` when metadata is absent or unparsable

    Raises:
        ImageDecodeError: If the bytes are not a JPEG container

    Examples:
        >>> with open("photo.jpg", "rb") as f:
        ...     tag = read_orientation(f.read())
        >>> tag.swaps_dimensions
        False
    """
    with open_jpeg(data) as image:
        return orientation_from_image(image)


def read_header(path: Path) -> Tuple[int, int, OrientationTag]:
    """Read the upright dimensions and orientation without decoding pixels.

    Args:
        path: JPEG file

    Returns:
        Tuple of (width, height, orientation), with width and height swapped
        for orientations that rotate the image by 90 degrees

    Raises:
        ImageDecodeError: If the file is not a readable JPEG container
    """
    try:
        with Image.open(path) as image:
            if image.format not in JPEG_FORMATS:
                raise ImageDecodeError(
                    f"Unsupported image format: {image.format or 'unknown'}",
                    path.name
                )
            width, height = image.size
            orientation = orientation_from_image(image)
    except ImageDecodeError:
        raise
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError) as e:
        raise ImageDecodeError(f"Not a valid image: {e}", path.name) from e

    if orientation.swaps_dimensions:
        width, height = height, width
    return width, height, orientation
