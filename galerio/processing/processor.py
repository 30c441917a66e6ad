"""Batch image processing orchestrator."""

import logging
import os
import threading
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from pathlib import Path
from typing import Callable, List, Optional, Sequence, Union

from ..exceptions import (
    ErrorKind,
    ImageDecodeError,
    ImageIOError,
    ImageProcessingError,
    InputDirectoryError,
    OutputDirectoryError,
)
from ..imaging.metadata import open_jpeg, orientation_from_image, read_header
from ..imaging.models import (
    FailureRecord,
    Manifest,
    ProcessedImageRecord,
    SourceImage,
)
from ..imaging.orientation import normalize
from ..imaging.panorama import classify_panorama
from ..imaging.resizer import Resizer, large_path, thumbnail_path
from ..utils.files import remove_partial_files
from .options import ProcessingOptions

logger = logging.getLogger(__name__)

JPEG_EXTENSIONS = (".jpg", ".jpeg")

ProgressCallback = Callable[[int, int, str], None]


def discover_images(input_dir: Path) -> List[Path]:
    """List the JPEG files of a directory in a deterministic order.

    Only regular files directly inside ``input_dir`` whose extension is
    ``.jpg`` or ``.jpeg`` (any case) are returned, sorted by file name.

    Args:
        input_dir: Directory to scan

    Returns:
        Sorted list of image paths
    """
    images = [
        entry for entry in Path(input_dir).iterdir()
        if entry.suffix.lower() in JPEG_EXTENSIONS and entry.is_file()
    ]
    return sorted(images, key=lambda p: p.name)


def assign_output_stems(paths: Sequence[Path]) -> List[str]:
    """Assign a collision-free output stem to every source file.

    A file keeps its own stem unless an earlier file already claimed it
    (compared case-insensitively). Later duplicates get ``<stem>-<n>`` with
    the smallest ``n`` that is neither assigned nor the stem of any source.

    Args:
        paths: Source files in discovery order

    Returns:
        Output stems, one per path, in the same order

    Examples:
        >>> assign_output_stems([Path("a.JPG"), Path("a.jpg"), Path("b.jpg")])
        ['a', 'a-1', 'b']
    """
    reserved = {p.stem.casefold() for p in paths}
    used = set()
    stems = []

    for path in paths:
        stem = path.stem
        if stem.casefold() in used:
            n = 1
            while (
                f"{stem}-{n}".casefold() in used
                or f"{stem}-{n}".casefold() in reserved
            ):
                n += 1
            stem = f"{stem}-{n}"
        used.add(stem.casefold())
        stems.append(stem)

    return stems


class ManifestBuilder:
    """Collects per-image results from concurrent workers.

    Each discovered image owns one slot, addressed by its discovery index.
    Workers fill slots in completion order; :meth:`build` reads them back in
    discovery order.
    """

    def __init__(self, total: int) -> None:
        self._slots: List[Union[ProcessedImageRecord, FailureRecord, None]] = [None] * total
        self._done = 0
        self._lock = threading.Lock()

    def add_record(self, index: int, record: ProcessedImageRecord) -> int:
        return self._put(index, record)

    def add_failure(self, index: int, failure: FailureRecord) -> int:
        return self._put(index, failure)

    def _put(self, index: int, entry) -> int:
        with self._lock:
            if self._slots[index] is not None:
                raise RuntimeError(f"Result for image #{index} was reported twice")
            self._slots[index] = entry
            self._done += 1
            return self._done

    def build(self) -> Manifest:
        """Assemble the final manifest.

        Raises:
            RuntimeError: If an image has no result
        """
        with self._lock:
            missing = [i for i, slot in enumerate(self._slots) if slot is None]
            if missing:
                raise RuntimeError(f"No result for image(s) {missing}")
            return Manifest(
                records=tuple(s for s in self._slots if isinstance(s, ProcessedImageRecord)),
                failures=tuple(s for s in self._slots if isinstance(s, FailureRecord)),
            )


class BatchProcessor:
    """Runs the image pipeline over a directory of JPEG files.

    For every image: read, decode, normalize orientation, classify as
    panorama or not, then write the thumbnail and large variants. Images are
    processed in parallel on a bounded thread pool; a failing image is
    recorded in the manifest and never aborts the batch.

    Attributes:
        options: Processing options
        resizer: Resizer configured from the options
    """

    def __init__(
        self,
        options: Optional[ProcessingOptions] = None,
        resizer: Optional[Resizer] = None
    ) -> None:
        """Initialize batch processor.

        Args:
            options: Processing options (defaults if not provided)
            resizer: Resizer (created from options if not provided)
        """
        self.options = options or ProcessingOptions()

        if resizer:
            self.resizer = resizer
        else:
            self.resizer = Resizer(
                thumbnail_height=self.options.thumbnail_height,
                max_large_size=self.options.max_large_size,
                resize_include_panorama=self.options.resize_include_panorama,
                jpeg_quality=self.options.jpeg_quality,
                write_large=self.options.write_large,
            )

        logger.debug(f"BatchProcessor initialized: {self.options}")

    @property
    def worker_count(self) -> int:
        return self.options.workers or os.cpu_count() or 1

    def process(
        self,
        input_dir: Union[str, Path],
        output_dir: Union[str, Path],
        progress: Optional[ProgressCallback] = None
    ) -> Manifest:
        """Process every JPEG in ``input_dir`` into ``output_dir``.

        Args:
            input_dir: Directory containing the source JPEGs
            output_dir: Directory receiving thumbnails and large images
            progress: Optional callback ``(done, total, filename)``

        Returns:
            Manifest with records and failures in discovery order

        Raises:
            InputDirectoryError: If the input directory cannot be read
            OutputDirectoryError: If the output directory cannot be written
        """
        input_dir = Path(input_dir).expanduser()
        output_dir = Path(output_dir).expanduser()
        self._check_directories(input_dir, output_dir)
        remove_partial_files(output_dir)

        try:
            paths = discover_images(input_dir)
        except OSError as e:
            raise InputDirectoryError(f"Cannot list input directory {input_dir}: {e}") from e

        total = len(paths)
        if not paths:
            logger.warning(f"No JPEG files found in {input_dir}")
            return Manifest()

        stems = assign_output_stems(paths)
        builder = ManifestBuilder(total)
        mode = "copying originals" if self.options.skip_processing else "processing"
        logger.info(f"Found {total} image(s), {mode} with {self.worker_count} worker(s)")
        start_time = time.time()

        with ThreadPoolExecutor(
            max_workers=self.worker_count,
            thread_name_prefix="galerio"
        ) as executor:
            futures = [
                executor.submit(
                    self._run_one, index, path, stem, output_dir, builder, total, progress
                )
                for index, (path, stem) in enumerate(zip(paths, stems))
            ]
            # Workers record their own failures; waiting here keeps the main
            # thread responsive to Ctrl+C
            try:
                for future in as_completed(futures):
                    future.result()
            except KeyboardInterrupt:
                logger.warning("Interrupted, cancelling pending images")
                executor.shutdown(wait=True, cancel_futures=True)
                raise

        manifest = builder.build()
        elapsed = time.time() - start_time
        logger.info(
            f"Processing complete: {len(manifest.records)} processed, "
            f"{len(manifest.failures)} failed (Total time: {elapsed:.1f}s)"
        )
        return manifest

    def process_image(self, path: Path, output_dir: Path, stem: str) -> ProcessedImageRecord:
        """Run the full pipeline for a single image.

        Args:
            path: Source JPEG
            output_dir: Directory receiving the outputs
            stem: Output stem

        Returns:
            ProcessedImageRecord

        Raises:
            ImageProcessingError: If the image cannot be processed
        """
        if self.options.skip_processing:
            return self._passthrough(path, output_dir, stem)

        try:
            data = path.read_bytes()
        except OSError as e:
            raise ImageIOError(f"Could not read file: {e}", path.name) from e

        with open_jpeg(data, path.name) as image:
            orientation = orientation_from_image(image)
            # Anything failing before the resize step is a decoding problem
            try:
                image.load()
                source = SourceImage(
                    path=path,
                    byte_size=len(data),
                    image=image,
                    orientation=orientation,
                )
                normalized = normalize(source.image, source.orientation)
            except Exception as e:
                raise ImageDecodeError(f"Could not decode image: {e}", path.name) from e

            verdict = classify_panorama(
                normalized.width,
                normalized.height,
                self.options.panorama_threshold
            )
            if verdict.is_panorama:
                logger.debug(
                    f"{path.name}: panorama (ratio {verdict.aspect_ratio:.2f})"
                )

            try:
                thumb, large = self.resizer.resize(
                    normalized, verdict, output_dir, stem, source_path=path
                )
            except ImageProcessingError as e:
                e.filename = e.filename or path.name
                raise

        return ProcessedImageRecord(
            filename=path.name,
            source_path=path,
            byte_size=source.byte_size,
            stem=stem,
            thumbnail=thumb,
            large=large,
            panorama=verdict.is_panorama,
            orientation=orientation,
        )

    def _passthrough(self, path: Path, output_dir: Path, stem: str) -> ProcessedImageRecord:
        try:
            byte_size = path.stat().st_size
        except OSError as e:
            raise ImageIOError(f"Could not read file: {e}", path.name) from e

        width, height, orientation = read_header(path)
        thumb, large = self.resizer.passthrough(path, output_dir, stem, size=(width, height))
        verdict = classify_panorama(width, height, self.options.panorama_threshold)
        return ProcessedImageRecord(
            filename=path.name,
            source_path=path,
            byte_size=byte_size,
            stem=stem,
            thumbnail=thumb,
            large=large,
            panorama=verdict.is_panorama,
            orientation=orientation,
        )

    def _run_one(
        self,
        index: int,
        path: Path,
        stem: str,
        output_dir: Path,
        builder: ManifestBuilder,
        total: int,
        progress: Optional[ProgressCallback]
    ) -> None:
        start_time = time.time()
        try:
            record = self.process_image(path, output_dir, stem)
        except ImageProcessingError as e:
            logger.warning(f"Failed to process {path.name}: {e.kind}: {e.message}")
            self._discard_outputs(output_dir, stem)
            done = builder.add_failure(
                index, FailureRecord(filename=path.name, kind=e.kind, message=e.message)
            )
        except Exception as e:
            logger.error(f"Unexpected error processing {path.name}: {e}", exc_info=True)
            kind = ErrorKind.IO if isinstance(e, OSError) else ErrorKind.RESIZE
            self._discard_outputs(output_dir, stem)
            done = builder.add_failure(
                index, FailureRecord(filename=path.name, kind=kind, message=str(e))
            )
        else:
            done = builder.add_record(index, record)
            logger.info(
                f"[{done}/{total}] {path.name} "
                f"({time.time() - start_time:.1f}s)"
            )

        if progress:
            try:
                progress(done, total, path.name)
            except Exception as e:
                logger.warning(f"Progress callback failed for {path.name}: {e}", exc_info=True)

    @staticmethod
    def _discard_outputs(output_dir: Path, stem: str) -> None:
        for path in (thumbnail_path(output_dir, stem), large_path(output_dir, stem)):
            try:
                path.unlink(missing_ok=True)
            except OSError as e:
                logger.warning(f"Could not remove {path.name}: {e}")

    @staticmethod
    def _check_directories(input_dir: Path, output_dir: Path) -> None:
        if not input_dir.exists():
            raise InputDirectoryError(f"Input directory does not exist: {input_dir}")
        if not input_dir.is_dir():
            raise InputDirectoryError(f"Input path is not a directory: {input_dir}")
        if not os.access(input_dir, os.R_OK | os.X_OK):
            raise InputDirectoryError(f"Input directory is not readable: {input_dir}")

        if output_dir.exists() and output_dir.resolve() == input_dir.resolve():
            raise OutputDirectoryError(
                "Output directory must differ from the input directory"
            )

        if not output_dir.exists():
            logger.info(f"Creating output directory {output_dir}")
        try:
            output_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise OutputDirectoryError(
                f"Cannot create output directory {output_dir}: {e}"
            ) from e

        if not os.access(output_dir, os.W_OK | os.X_OK):
            raise OutputDirectoryError(f"Output directory is not writable: {output_dir}")
