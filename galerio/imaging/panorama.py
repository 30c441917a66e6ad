"""Panorama detection from image dimensions."""

from ..exceptions import ImageResizeError
from .models import PanoramaVerdict

# Longer side / shorter side at or above which an image is a panorama.
DEFAULT_PANORAMA_THRESHOLD = 2.0


def classify_panorama(
    width: int,
    height: int,
    threshold: float = DEFAULT_PANORAMA_THRESHOLD
) -> PanoramaVerdict:
    """Decide whether an upright image is a panorama.

    Portrait and landscape images are treated alike: the aspect ratio is
    always the longer side over the shorter one.

    Args:
        width: Upright width in pixels
        height: Upright height in pixels
        threshold: Minimum aspect ratio of a panorama

    Returns:
        Immutable PanoramaVerdict

    Raises:
        ImageResizeError: If a dimension is not positive

    Examples:
        >>> classify_panorama(6000, 1500).is_panorama
        True
        >>> classify_panorama(4000, 3000).aspect_ratio
        1.3333333333333333
    """
    if width <= 0 or height <= 0:
        raise ImageResizeError(f"Invalid image dimensions {width}x{height}")

    aspect_ratio = max(width, height) / min(width, height)
    return PanoramaVerdict(
        is_panorama=aspect_ratio >= threshold,
        aspect_ratio=aspect_ratio,
        threshold=threshold,
    )
