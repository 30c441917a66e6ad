"""Orientation normalization based on EXIF orientation tags."""

import logging

from PIL import Image

from .models import NormalizedImage, OrientationTag

logger = logging.getLogger(__name__)

# Pillow's ROTATE_* constants turn counter-clockwise.
_UPRIGHT_TRANSFORMS = {
    OrientationTag.FLIP_HORIZONTAL: Image.Transpose.FLIP_LEFT_RIGHT,
    OrientationTag.ROTATE_180: Image.Transpose.ROTATE_180,
    OrientationTag.FLIP_VERTICAL: Image.Transpose.FLIP_TOP_BOTTOM,
    OrientationTag.TRANSPOSE: Image.Transpose.TRANSPOSE,
    OrientationTag.ROTATE_90: Image.Transpose.ROTATE_270,
    OrientationTag.TRANSVERSE: Image.Transpose.TRANSVERSE,
    OrientationTag.ROTATE_270: Image.Transpose.ROTATE_90,
}

_INVERSE_TRANSFORMS = dict(_UPRIGHT_TRANSFORMS)
_INVERSE_TRANSFORMS[OrientationTag.ROTATE_90] = Image.Transpose.ROTATE_90
_INVERSE_TRANSFORMS[OrientationTag.ROTATE_270] = Image.Transpose.ROTATE_270


def normalize(image: Image.Image, tag: OrientationTag) -> NormalizedImage:
    """Return the pixel data of an image in upright orientation.

    For ``OrientationTag.NORMAL`` the given image object is returned as is,
    without copying.

    Args:
        image: Decoded image in file orientation
        tag: Orientation read from the file's EXIF block

    Returns:
        NormalizedImage whose width/height are the visual dimensions
    """
    transform = _UPRIGHT_TRANSFORMS.get(tag)
    if transform is None:
        return NormalizedImage(image=image, orientation=OrientationTag.NORMAL)

    logger.debug(f"Normalizing orientation {tag.name} ({image.width}x{image.height})")
    return NormalizedImage(image=image.transpose(transform), orientation=tag)


def denormalize(image: Image.Image, tag: OrientationTag) -> Image.Image:
    """Apply the inverse of :func:`normalize`, restoring the stored layout.

    Args:
        image: Upright image
        tag: Orientation the image was normalized from

    Returns:
        Image with the pixel arrangement of the original file
    """
    transform = _INVERSE_TRANSFORMS.get(tag)
    if transform is None:
        return image
    return image.transpose(transform)
