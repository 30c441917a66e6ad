"""Data models for the image-processing pipeline."""

from dataclasses import dataclass
from enum import IntEnum
from pathlib import Path
from typing import Optional, Tuple

from PIL import Image

from ..exceptions import ErrorKind


class OrientationTag(IntEnum):
    """EXIF orientation of the stored pixel data.

    Values are the EXIF orientation codes. ``ROTATE_90`` means the stored
    pixels have to be turned 90 degrees clockwise to appear upright.
    """

    NORMAL = 1
    FLIP_HORIZONTAL = 2
    ROTATE_180 = 3
    FLIP_VERTICAL = 4
    TRANSPOSE = 5
    ROTATE_90 = 6
    TRANSVERSE = 7
    ROTATE_270 = 8

    @property
    def swaps_dimensions(self) -> bool:
        """Whether the upright image has width and height exchanged."""
        return self in (
            OrientationTag.TRANSPOSE,
            OrientationTag.ROTATE_90,
            OrientationTag.TRANSVERSE,
            OrientationTag.ROTATE_270,
        )


@dataclass
class SourceImage:
    """A decoded source image, owned by the worker processing it.

    Attributes:
        path: Path of the source file
        byte_size: Size of the source file in bytes
        image: Decoded Pillow image in file (natural) orientation
        orientation: Orientation read from EXIF
    """
    path: Path
    byte_size: int
    image: Image.Image
    orientation: OrientationTag = OrientationTag.NORMAL

    @property
    def width(self) -> int:
        return self.image.width

    @property
    def height(self) -> int:
        return self.image.height


@dataclass
class NormalizedImage:
    """Pixel data in upright orientation.

    Attributes:
        image: Upright Pillow image
        orientation: Tag the image was normalized from
    """
    image: Image.Image
    orientation: OrientationTag = OrientationTag.NORMAL

    @property
    def width(self) -> int:
        return self.image.width

    @property
    def height(self) -> int:
        return self.image.height

    @property
    def is_unchanged(self) -> bool:
        """Whether the pixels are exactly those stored in the file."""
        return self.orientation == OrientationTag.NORMAL


@dataclass(frozen=True)
class PanoramaVerdict:
    """Outcome of panorama classification.

    Attributes:
        is_panorama: Whether the image counts as a panorama
        aspect_ratio: Longer side divided by shorter side
        threshold: Aspect ratio threshold that was applied
    """
    is_panorama: bool
    aspect_ratio: float
    threshold: float


@dataclass(frozen=True)
class OutputImage:
    """A variant written to the output directory.

    Attributes:
        path: Path of the written file
        width: Width in pixels
        height: Height in pixels
        byte_size: File size in bytes
    """
    path: Path
    width: int
    height: int
    byte_size: int

    @property
    def filename(self) -> str:
        return self.path.name


@dataclass(frozen=True)
class ProcessedImageRecord:
    """Result of successfully processing one source image.

    Attributes:
        filename: Source file name
        source_path: Path of the source file
        byte_size: Size of the original file in bytes
        stem: Output stem used for the variants
        thumbnail: Written thumbnail
        large: Written large image (None when large output is disabled)
        panorama: Whether the image was classified as a panorama
        orientation: EXIF orientation the image was normalized from
    """
    filename: str
    source_path: Path
    byte_size: int
    stem: str
    thumbnail: OutputImage
    large: Optional[OutputImage] = None
    panorama: bool = False
    orientation: OrientationTag = OrientationTag.NORMAL


@dataclass(frozen=True)
class FailureRecord:
    """A source image that could not be processed.

    Attributes:
        filename: Source file name
        kind: Kind of error
        message: Human-readable error message
    """
    filename: str
    kind: ErrorKind
    message: str = ""


@dataclass(frozen=True)
class Manifest:
    """Aggregated result of a batch run, in discovery order.

    Attributes:
        records: Successfully processed images
        failures: Images that could not be processed
    """
    records: Tuple[ProcessedImageRecord, ...] = ()
    failures: Tuple[FailureRecord, ...] = ()

    def __len__(self) -> int:
        return len(self.records)

    def __iter__(self):
        return iter(self.records)

    @property
    def total_count(self) -> int:
        """Number of discovered source images."""
        return len(self.records) + len(self.failures)

    @property
    def original_bytes(self) -> int:
        """Total size of the successfully processed originals."""
        return sum(record.byte_size for record in self.records)

    @property
    def ok(self) -> bool:
        return not self.failures
