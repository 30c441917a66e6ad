"""Options consumed by the batch processor."""

from dataclasses import dataclass
from typing import Optional

from ..imaging.panorama import DEFAULT_PANORAMA_THRESHOLD
from ..imaging.resizer import DEFAULT_JPEG_QUALITY, DEFAULT_THUMBNAIL_HEIGHT


@dataclass(frozen=True)
class ProcessingOptions:
    """Settings for one batch run.

    Attributes:
        thumbnail_height: Thumbnail height in pixels
        max_large_size: Maximum longest edge of large images (None = keep size)
        resize_include_panorama: Scale panoramas like other images
        skip_processing: Copy originals through without decoding or resizing
        panorama_threshold: Aspect ratio at or above which an image is a panorama
        jpeg_quality: JPEG quality of re-encoded outputs
        workers: Worker thread count (None = CPU count)
        write_large: Whether to produce large images at all
    """
    thumbnail_height: int = DEFAULT_THUMBNAIL_HEIGHT
    max_large_size: Optional[int] = None
    resize_include_panorama: bool = False
    skip_processing: bool = False
    panorama_threshold: float = DEFAULT_PANORAMA_THRESHOLD
    jpeg_quality: int = DEFAULT_JPEG_QUALITY
    workers: Optional[int] = None
    write_large: bool = True

    def __post_init__(self):
        if self.thumbnail_height < 1:
            raise ValueError(f"thumbnail_height must be positive, got {self.thumbnail_height}")
        if self.max_large_size is not None and self.max_large_size < 1:
            raise ValueError(f"max_large_size must be positive, got {self.max_large_size}")
        if self.panorama_threshold <= 1.0:
            raise ValueError(
                f"panorama_threshold must be greater than 1.0, got {self.panorama_threshold}"
            )
        if not 1 <= self.jpeg_quality <= 95:
            raise ValueError(f"jpeg_quality must be between 1 and 95, got {self.jpeg_quality}")
        if self.workers is not None and self.workers < 1:
            raise ValueError(f"workers must be at least 1, got {self.workers}")
