"""HTML rendering of the gallery page."""

import logging
from datetime import datetime
from pathlib import Path
from typing import Optional

from jinja2 import Environment, PackageLoader, TemplateError, select_autoescape

from .._version import __version__
from ..exceptions import GalleryError
from ..imaging.models import Manifest
from ..utils.files import atomic_write

logger = logging.getLogger(__name__)

INDEX_FILENAME = "index.html"

_SIZE_UNITS = ("B", "KiB", "MiB", "GiB", "TiB")


def format_size(byte_size: int) -> str:
    """Format a byte count with binary units.

    Examples:
        >>> format_size(512)
        '512 B'
        >>> format_size(3 * 1024 * 1024)
        '3.0 MiB'
    """
    size = float(byte_size)
    for unit in _SIZE_UNITS:
        if size < 1024 or unit == _SIZE_UNITS[-1]:
            break
        size /= 1024
    if unit == "B":
        return f"{int(size)} B"
    return f"{size:.1f} {unit}"


def _environment() -> Environment:
    env = Environment(
        loader=PackageLoader("galerio", "templates"),
        autoescape=select_autoescape(["html"]),
        trim_blocks=True,
        lstrip_blocks=True,
    )
    env.filters["filesize"] = format_size
    return env


def render_gallery(
    manifest: Manifest,
    output_dir: Path,
    title: str,
    archive: Optional[Path] = None
) -> Path:
    """Render ``index.html`` for a processed gallery.

    Args:
        manifest: Manifest of the processed images
        output_dir: Directory holding the outputs; receives the page
        title: Gallery title
        archive: Path of the originals archive, if one was created

    Returns:
        Path to the written page

    Raises:
        GalleryError: If the template fails or the page cannot be written
    """
    index_path = Path(output_dir) / INDEX_FILENAME
    archive_info = None
    if archive is not None:
        archive_info = {
            "filename": archive.name,
            "byte_size": archive.stat().st_size,
        }

    try:
        html = _environment().get_template("index.html").render(
            title=title,
            images=manifest.records,
            archive=archive_info,
            generated=datetime.now().strftime("%Y-%m-%d %H:%M"),
            version=__version__,
        )
    except TemplateError as e:
        raise GalleryError(f"Could not render gallery page: {e}") from e

    try:
        with atomic_write(index_path) as f:
            f.write(html.encode("utf-8"))
    except OSError as e:
        raise GalleryError(f"Could not write {index_path.name}: {e}") from e

    logger.info(f"Wrote {index_path}")
    return index_path
