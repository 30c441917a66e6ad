"""Test image helpers."""

from pathlib import Path
from typing import Optional, Tuple

from PIL import Image

ORIENTATION = 0x0112


def make_jpeg(
    path: Path,
    size: Tuple[int, int] = (400, 300),
    color: Tuple[int, int, int] = (200, 30, 30),
    orientation: Optional[int] = None,
    noise: bool = False
) -> Path:
    """Write a JPEG test image, optionally with an EXIF orientation tag."""
    if noise:
        image = Image.effect_noise(size, 80).convert("RGB")
    else:
        image = Image.new("RGB", size, color)

    kwargs = {}
    if orientation is not None:
        exif = Image.Exif()
        exif[ORIENTATION] = orientation
        kwargs["exif"] = exif.tobytes()

    image.save(path, "JPEG", quality=90, **kwargs)
    return path


def unique_pixel_image(size: Tuple[int, int] = (6, 4)) -> Image.Image:
    """Build an RGB image where every pixel has a unique colour."""
    width, height = size
    image = Image.new("RGB", size)
    for x in range(width):
        for y in range(height):
            image.putpixel((x, y), (x * 40, y * 60, 100))
    return image

