"""Image pipeline: EXIF orientation, normalization, panorama detection, resizing."""

from .models import (
    FailureRecord,
    Manifest,
    NormalizedImage,
    OrientationTag,
    OutputImage,
    PanoramaVerdict,
    ProcessedImageRecord,
    SourceImage,
)
from .metadata import read_header, read_orientation
from .orientation import denormalize, normalize
from .panorama import DEFAULT_PANORAMA_THRESHOLD, classify_panorama
from .resizer import Resizer, large_size, thumbnail_size

__all__ = [
    "FailureRecord",
    "Manifest",
    "NormalizedImage",
    "OrientationTag",
    "OutputImage",
    "PanoramaVerdict",
    "ProcessedImageRecord",
    "SourceImage",
    "read_header",
    "read_orientation",
    "normalize",
    "denormalize",
    "DEFAULT_PANORAMA_THRESHOLD",
    "classify_panorama",
    "Resizer",
    "large_size",
    "thumbnail_size",
]
