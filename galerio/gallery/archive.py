"""ZIP archive of the original images."""

import logging
import re
import unicodedata
import zipfile
from pathlib import Path

from ..exceptions import GalleryError
from ..imaging.models import Manifest
from ..utils.files import atomic_write

logger = logging.getLogger(__name__)


def slugify(text: str, fallback: str = "gallery") -> str:
    """Turn a title into a file-name friendly slug.

    Examples:
        >>> slugify("Summer in Zürich 2023")
        'summer-in-zurich-2023'
    """
    normalized = unicodedata.normalize("NFKD", text).encode("ascii", "ignore").decode("ascii")
    slug = re.sub(r"[^a-z0-9]+", "-", normalized.lower()).strip("-")
    return slug or fallback


def create_archive(manifest: Manifest, output_dir: Path, name: str) -> Path:
    """Write a ZIP file with the original images of a gallery.

    The originals are stored uncompressed (JPEG data does not compress) in
    manifest order, under their source file names.

    Args:
        manifest: Manifest of the processed images
        output_dir: Directory receiving the archive
        name: Gallery title, used to name the archive

    Returns:
        Path to the written archive

    Raises:
        GalleryError: If an original cannot be read or the archive written
    """
    archive_path = Path(output_dir) / f"{slugify(name)}.zip"
    logger.info(f"Creating archive {archive_path.name} ({len(manifest.records)} image(s))")

    try:
        with atomic_write(archive_path) as f:
            with zipfile.ZipFile(f, "w", compression=zipfile.ZIP_STORED) as archive:
                for record in manifest.records:
                    archive.write(record.source_path, arcname=record.filename)
    except OSError as e:
        raise GalleryError(f"Could not write archive {archive_path.name}: {e}") from e

    return archive_path
