"""Thumbnail and large-image generation."""

import logging
from pathlib import Path
from typing import Optional, Tuple

from PIL import Image

from ..exceptions import ImageIOError, ImageResizeError
from ..utils.files import atomic_copy, atomic_write
from .metadata import read_header
from .models import NormalizedImage, OutputImage, PanoramaVerdict

logger = logging.getLogger(__name__)

DEFAULT_THUMBNAIL_HEIGHT = 300
DEFAULT_JPEG_QUALITY = 90
OUTPUT_EXTENSION = ".jpg"

# Modes Pillow can write as JPEG without conversion
_JPEG_MODES = ("L", "RGB", "CMYK")


def thumbnail_path(output_dir: Path, stem: str) -> Path:
    return Path(output_dir) / f"{stem}_thumb{OUTPUT_EXTENSION}"


def large_path(output_dir: Path, stem: str) -> Path:
    return Path(output_dir) / f"{stem}_large{OUTPUT_EXTENSION}"


def thumbnail_size(width: int, height: int, max_height: int) -> Tuple[int, int]:
    """Compute thumbnail dimensions for a fixed target height.

    The width follows from the aspect ratio and is never capped, so
    panoramas become wide thumbnails. Images lower than ``max_height`` keep
    their size.

    Args:
        width: Upright width
        height: Upright height
        max_height: Configured thumbnail height

    Returns:
        Tuple of (width, height)
    """
    if width <= 0 or height <= 0:
        raise ImageResizeError(f"Invalid image dimensions {width}x{height}")

    target_height = min(max_height, height)
    if target_height == height:
        return width, height

    target_width = max(1, round(width * target_height / height))
    return target_width, target_height


def large_size(width: int, height: int, max_size: Optional[int]) -> Tuple[int, int]:
    """Compute large-image dimensions so the longest edge fits ``max_size``.

    Never upscales: images already within the bound, or any image when
    ``max_size`` is None, keep their size.

    Args:
        width: Upright width
        height: Upright height
        max_size: Maximum length of the longest edge, or None

    Returns:
        Tuple of (width, height)
    """
    if width <= 0 or height <= 0:
        raise ImageResizeError(f"Invalid image dimensions {width}x{height}")

    longest = max(width, height)
    if max_size is None or longest <= max_size:
        return width, height

    scale = max_size / longest
    if width >= height:
        return max_size, max(1, round(height * scale))
    return max(1, round(width * scale)), max_size


class Resizer:
    """Produces and writes the thumbnail and large variants of an image.

    Attributes:
        thumbnail_height: Target thumbnail height in pixels
        max_large_size: Maximum longest edge of the large image (None = keep size)
        resize_include_panorama: Whether panoramas are scaled like other images
        jpeg_quality: JPEG quality used when encoding outputs
        write_large: Whether to write the large variant at all
    """

    def __init__(
        self,
        thumbnail_height: int = DEFAULT_THUMBNAIL_HEIGHT,
        max_large_size: Optional[int] = None,
        resize_include_panorama: bool = False,
        jpeg_quality: int = DEFAULT_JPEG_QUALITY,
        write_large: bool = True
    ) -> None:
        self.thumbnail_height = thumbnail_height
        self.max_large_size = max_large_size
        self.resize_include_panorama = resize_include_panorama
        self.jpeg_quality = jpeg_quality
        self.write_large = write_large

    def large_target(self, width: int, height: int, verdict: PanoramaVerdict) -> Tuple[int, int]:
        """Dimensions of the large variant, honouring the panorama exemption."""
        if verdict.is_panorama and not self.resize_include_panorama:
            return width, height
        return large_size(width, height, self.max_large_size)

    def resize(
        self,
        normalized: NormalizedImage,
        verdict: PanoramaVerdict,
        output_dir: Path,
        stem: str,
        source_path: Optional[Path] = None
    ) -> Tuple[OutputImage, Optional[OutputImage]]:
        """Write the thumbnail and (optionally) large variant of an image.

        Args:
            normalized: Upright image
            verdict: Panorama verdict computed for this image
            output_dir: Directory receiving the outputs
            stem: Collision-free output stem
            source_path: Original file; copied verbatim as the large variant
                when no transform or scaling is needed

        Returns:
            Tuple of (thumbnail, large); large is None when disabled

        Raises:
            ImageResizeError: If resampling fails
            ImageIOError: If an output file cannot be written
        """
        width, height = normalized.width, normalized.height

        thumb_dims = thumbnail_size(width, height, self.thumbnail_height)
        thumb = self._write(
            self._scaled(normalized.image, thumb_dims),
            thumbnail_path(output_dir, stem)
        )

        if not self.write_large:
            return thumb, None

        large_dims = self.large_target(width, height, verdict)
        destination = large_path(output_dir, stem)
        if large_dims == (width, height) and normalized.is_unchanged and source_path:
            logger.debug(f"Copying original as large image: {destination.name}")
            large = self._copy(source_path, destination, width, height)
        else:
            large = self._write(self._scaled(normalized.image, large_dims), destination)

        return thumb, large

    def passthrough(
        self,
        source_path: Path,
        output_dir: Path,
        stem: str,
        size: Optional[Tuple[int, int]] = None
    ) -> Tuple[OutputImage, Optional[OutputImage]]:
        """Copy the original file to both output names without decoding it.

        The copies keep their EXIF orientation, so the reported dimensions
        are the upright ones browsers display.

        Args:
            source_path: Original file
            output_dir: Directory receiving the copies
            stem: Collision-free output stem
            size: Upright (width, height) if already known; read from the
                JPEG header otherwise

        Returns:
            Tuple of (thumbnail, large); large is None when disabled
        """
        if size is None:
            width, height, _ = read_header(source_path)
        else:
            width, height = size

        thumb = self._copy(source_path, thumbnail_path(output_dir, stem), width, height)
        large = None
        if self.write_large:
            large = self._copy(source_path, large_path(output_dir, stem), width, height)
        return thumb, large

    @staticmethod
    def _scaled(image: Image.Image, size: Tuple[int, int]) -> Image.Image:
        if size[0] <= 0 or size[1] <= 0:
            raise ImageResizeError(f"Invalid target size {size[0]}x{size[1]}")
        if size == image.size:
            return image
        try:
            return image.resize(size, Image.Resampling.LANCZOS)
        except (ValueError, OSError, MemoryError) as e:
            raise ImageResizeError(f"Resampling to {size[0]}x{size[1]} failed: {e}") from e

    def _write(self, image: Image.Image, destination: Path) -> OutputImage:
        if image.mode not in _JPEG_MODES:
            image = image.convert("RGB")
        try:
            with atomic_write(destination) as f:
                image.save(f, format="JPEG", quality=self.jpeg_quality)
            byte_size = destination.stat().st_size
        except OSError as e:
            raise ImageIOError(f"Could not write {destination.name}: {e}") from e

        logger.debug(f"Wrote {destination.name} ({image.width}x{image.height})")
        return OutputImage(
            path=destination,
            width=image.width,
            height=image.height,
            byte_size=byte_size,
        )

    @staticmethod
    def _copy(source: Path, destination: Path, width: int, height: int) -> OutputImage:
        try:
            atomic_copy(source, destination)
            byte_size = destination.stat().st_size
        except OSError as e:
            raise ImageIOError(f"Could not copy to {destination.name}: {e}") from e
        return OutputImage(path=destination, width=width, height=height, byte_size=byte_size)
