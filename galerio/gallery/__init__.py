"""Gallery output: HTML page and originals archive."""

from .archive import create_archive, slugify
from .renderer import format_size, render_gallery

__all__ = ["create_archive", "format_size", "render_gallery", "slugify"]
