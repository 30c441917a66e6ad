"""Atomic file output helpers."""

import logging
import os
import shutil
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import BinaryIO, Iterator

logger = logging.getLogger(__name__)

PARTIAL_SUFFIX = ".part"


def _current_umask() -> int:
    mask = os.umask(0)
    os.umask(mask)
    return mask


# Permissions open() would give a new file; mkstemp always uses 0600
FILE_MODE = 0o666 & ~_current_umask()


@contextmanager
def atomic_write(path: Path) -> Iterator[BinaryIO]:
    """Open a temporary file that replaces ``path`` once the block succeeds.

    The temporary file is hidden, lives next to the target (so the final
    rename stays on one filesystem) and carries the ``.part`` suffix. If the
    block raises, the temporary file is removed and ``path`` is untouched.

    Args:
        path: Final destination path

    Yields:
        Binary file object to write to

    Examples:
        >>> with atomic_write(Path("out/index.html")) as f:
        ...     f.write(b"<html></html>")
    """
    path = Path(path)
    fd, tmp_name = tempfile.mkstemp(
        dir=path.parent,
        prefix=f".{path.name}.",
        suffix=PARTIAL_SUFFIX
    )
    tmp_path = Path(tmp_name)
    try:
        with os.fdopen(fd, "wb") as f:
            yield f
            f.flush()
            os.fsync(f.fileno())
        os.chmod(tmp_path, FILE_MODE)
        os.replace(tmp_path, path)
    except BaseException:
        tmp_path.unlink(missing_ok=True)
        raise


def atomic_copy(source: Path, destination: Path) -> None:
    """Copy a file's bytes to ``destination`` through :func:`atomic_write`."""
    with open(source, "rb") as src, atomic_write(destination) as dst:
        shutil.copyfileobj(src, dst)


def remove_partial_files(directory: Path) -> int:
    """Delete temporary files left behind by an interrupted run.

    Args:
        directory: Output directory to clean

    Returns:
        Number of files removed
    """
    removed = 0
    for item in Path(directory).glob(f".*{PARTIAL_SUFFIX}"):
        if item.is_file():
            item.unlink(missing_ok=True)
            removed += 1
    if removed:
        logger.info(f"Removed {removed} stale partial file(s) from {directory}")
    return removed
