"""Tests for the batch processor."""

import stat
import threading
from pathlib import Path

import pytest
from PIL import Image

from galerio.exceptions import (
    ErrorKind,
    ImageResizeError,
    InputDirectoryError,
    OutputDirectoryError,
)
from galerio.imaging.models import FailureRecord, OrientationTag
from galerio.imaging.resizer import Resizer, thumbnail_path
from galerio.processing import BatchProcessor, ProcessingOptions
from galerio.processing import processor as processor_module
from galerio.processing.processor import (
    ManifestBuilder,
    assign_output_stems,
    discover_images,
)
from galerio.utils import files
from galerio.utils.files import atomic_write

from .helpers import ORIENTATION, make_jpeg


def names(paths):
    return [p.name for p in paths]


class TestDiscovery:

    def test_filters_and_sorts(self, input_dir):
        for name in ("b.jpg", "a.JPG", "c.jpeg", "D.JPEG", "notes.txt", "e.png"):
            (input_dir / name).write_bytes(b"x")
        (input_dir / "folder.jpg").mkdir()

        assert names(discover_images(input_dir)) == ["D.JPEG", "a.JPG", "b.jpg", "c.jpeg"]


class TestOutputStems:

    def test_distinct_stems_are_kept(self):
        assert assign_output_stems([Path("a.jpg"), Path("b.jpg")]) == ["a", "b"]

    def test_case_insensitive_duplicates_get_suffix(self):
        paths = [Path("photo.JPG"), Path("photo.jpeg"), Path("photo.jpg")]
        assert assign_output_stems(paths) == ["photo", "photo-1", "photo-2"]

    def test_suffix_skips_existing_source_stems(self):
        paths = [Path("photo-1.jpg"), Path("photo.JPG"), Path("photo.jpg")]
        stems = assign_output_stems(paths)

        assert stems == ["photo-1", "photo", "photo-2"]
        assert len({s.casefold() for s in stems}) == len(stems)


class TestManifestBuilder:

    def test_orders_by_discovery_index(self):
        builder = ManifestBuilder(3)
        builder.add_failure(2, FailureRecord("c.jpg", ErrorKind.IO))
        builder.add_failure(0, FailureRecord("a.jpg", ErrorKind.DECODE))
        builder.add_failure(1, FailureRecord("b.jpg", ErrorKind.RESIZE))

        manifest = builder.build()
        assert [f.filename for f in manifest.failures] == ["a.jpg", "b.jpg", "c.jpg"]

    def test_slot_filled_twice(self):
        builder = ManifestBuilder(1)
        builder.add_failure(0, FailureRecord("a.jpg", ErrorKind.IO))
        with pytest.raises(RuntimeError):
            builder.add_failure(0, FailureRecord("a.jpg", ErrorKind.IO))

    def test_missing_slot(self):
        builder = ManifestBuilder(2)
        builder.add_failure(0, FailureRecord("a.jpg", ErrorKind.IO))
        with pytest.raises(RuntimeError):
            builder.build()


def test_partial_success_keeps_discovery_order(input_dir, output_dir):
    for name in ("a.jpg", "b.jpg", "d.jpg", "e.jpg", "f.jpg"):
        make_jpeg(input_dir / name, size=(640, 480))
    (input_dir / "c.jpg").write_bytes(b"this is not a jpeg")

    processor = BatchProcessor(ProcessingOptions(workers=4))
    manifest = processor.process(input_dir, output_dir)

    assert [r.filename for r in manifest.records] == ["a.jpg", "b.jpg", "d.jpg", "e.jpg", "f.jpg"]
    assert len(manifest.failures) == 1
    assert manifest.failures[0].filename == "c.jpg"
    assert manifest.failures[0].kind == ErrorKind.DECODE
    assert manifest.total_count == 6
    assert not (output_dir / "c_thumb.jpg").exists()


def test_truncated_jpeg_is_a_decode_error(input_dir, output_dir):
    data = make_jpeg(input_dir / "full.jpg", size=(400, 300), noise=True).read_bytes()
    (input_dir / "truncated.jpg").write_bytes(data[: len(data) * 2 // 3])

    manifest = BatchProcessor(ProcessingOptions(workers=2)).process(input_dir, output_dir)

    assert [r.filename for r in manifest.records] == ["full.jpg"]
    assert [(f.filename, f.kind) for f in manifest.failures] == [
        ("truncated.jpg", ErrorKind.DECODE)
    ]


def test_record_contents(input_dir, output_dir):
    source = make_jpeg(input_dir / "photo.jpg", size=(800, 600))

    manifest = BatchProcessor(
        ProcessingOptions(thumbnail_height=300, max_large_size=400)
    ).process(input_dir, output_dir)

    record = manifest.records[0]
    assert record.byte_size == source.stat().st_size
    assert record.stem == "photo"
    assert record.thumbnail.path == output_dir / "photo_thumb.jpg"
    assert (record.thumbnail.width, record.thumbnail.height) == (400, 300)
    assert record.large.path == output_dir / "photo_large.jpg"
    assert (record.large.width, record.large.height) == (400, 300)
    assert record.large.byte_size == record.large.path.stat().st_size
    assert not record.panorama
    assert manifest.original_bytes == source.stat().st_size


def test_exif_rotation_is_applied_before_resizing(input_dir, output_dir):
    make_jpeg(input_dir / "sideways.jpg", size=(400, 200), orientation=6)

    manifest = BatchProcessor(ProcessingOptions(thumbnail_height=300)).process(
        input_dir, output_dir
    )

    record = manifest.records[0]
    assert record.orientation == OrientationTag.ROTATE_90
    assert (record.thumbnail.width, record.thumbnail.height) == (150, 300)
    assert (record.large.width, record.large.height) == (200, 400)
    with Image.open(record.large.path) as large:
        assert large.size == (200, 400)
        assert large.getexif().get(ORIENTATION) is None


def test_rotation_decides_panorama(input_dir, output_dir):
    # Stored 300x900, upright 900x300: still a panorama, regardless of encoding order
    make_jpeg(input_dir / "pano.jpg", size=(300, 900), orientation=8)

    manifest = BatchProcessor(
        ProcessingOptions(thumbnail_height=100, max_large_size=450)
    ).process(input_dir, output_dir)

    record = manifest.records[0]
    assert record.panorama
    assert (record.large.width, record.large.height) == (900, 300)
    assert (record.thumbnail.width, record.thumbnail.height) == (300, 100)


@pytest.mark.parametrize("include,expected", [(False, (1200, 300)), (True, (600, 150))])
def test_panorama_large_image(input_dir, output_dir, include, expected):
    make_jpeg(input_dir / "pano.jpg", size=(1200, 300))

    manifest = BatchProcessor(
        ProcessingOptions(max_large_size=600, resize_include_panorama=include)
    ).process(input_dir, output_dir)

    large = manifest.records[0].large
    assert (large.width, large.height) == expected


def test_small_image_is_never_upscaled(input_dir, output_dir):
    source = make_jpeg(input_dir / "small.jpg", size=(200, 100))

    manifest = BatchProcessor(ProcessingOptions(max_large_size=4000)).process(
        input_dir, output_dir
    )

    record = manifest.records[0]
    assert (record.large.width, record.large.height) == (200, 100)
    assert (record.thumbnail.width, record.thumbnail.height) == (200, 100)
    assert record.large.path.read_bytes() == source.read_bytes()


def test_skip_processing_copies_originals(input_dir, output_dir, monkeypatch):
    sources = [
        make_jpeg(input_dir / "a.jpg", size=(640, 480)),
        make_jpeg(input_dir / "b.jpg", size=(480, 640), orientation=6),
    ]

    def no_resampling(*args, **kwargs):
        raise AssertionError("resampling must not run in skip mode")

    monkeypatch.setattr(Image.Image, "resize", no_resampling)
    monkeypatch.setattr(Image.Image, "transpose", no_resampling)

    manifest = BatchProcessor(ProcessingOptions(skip_processing=True)).process(
        input_dir, output_dir
    )

    assert manifest.ok
    for source, record in zip(sources, manifest.records):
        assert record.thumbnail.path.read_bytes() == source.read_bytes()
        assert record.large.path.read_bytes() == source.read_bytes()
    assert (manifest.records[0].thumbnail.width, manifest.records[0].thumbnail.height) == (640, 480)

    rotated = manifest.records[1]
    assert rotated.orientation == OrientationTag.ROTATE_90
    assert (rotated.thumbnail.width, rotated.thumbnail.height) == (640, 480)
    assert (rotated.large.width, rotated.large.height) == (640, 480)


def test_colliding_stems_do_not_overwrite(input_dir, output_dir):
    make_jpeg(input_dir / "IMG.JPG", size=(300, 200), color=(255, 0, 0))
    make_jpeg(input_dir / "img.jpg", size=(200, 300), color=(0, 0, 255))

    manifest = BatchProcessor(ProcessingOptions()).process(input_dir, output_dir)

    stems = [r.stem for r in manifest.records]
    assert stems == ["IMG", "img-1"]
    paths = {r.thumbnail.path for r in manifest.records} | {r.large.path for r in manifest.records}
    assert len(paths) == 4
    assert all(p.exists() for p in paths)


def test_progress_callback(input_dir, output_dir):
    for i in range(3):
        make_jpeg(input_dir / f"{i}.jpg", size=(64, 48))
    calls = []

    BatchProcessor(ProcessingOptions(workers=2)).process(
        input_dir, output_dir, progress=lambda done, total, name: calls.append((done, total))
    )

    assert sorted(calls) == [(1, 3), (2, 3), (3, 3)]


def test_failing_progress_callback_does_not_abort(input_dir, output_dir):
    for i in range(3):
        make_jpeg(input_dir / f"{i}.jpg", size=(64, 48))

    def broken(done, total, name):
        raise ValueError("callback")

    manifest = BatchProcessor(ProcessingOptions(workers=2)).process(
        input_dir, output_dir, progress=broken
    )

    assert manifest.ok
    assert len(manifest.records) == 3


def test_outputs_follow_umask(input_dir, output_dir, monkeypatch):
    monkeypatch.setattr(files, "FILE_MODE", 0o644)
    make_jpeg(input_dir / "photo.jpg", size=(640, 480))

    manifest = BatchProcessor(ProcessingOptions(max_large_size=320)).process(
        input_dir, output_dir
    )

    record = manifest.records[0]
    assert stat.S_IMODE(record.thumbnail.path.stat().st_mode) == 0o644
    assert stat.S_IMODE(record.large.path.stat().st_mode) == 0o644


def test_unexpected_error_before_resize_is_a_decode_error(input_dir, output_dir, monkeypatch):
    make_jpeg(input_dir / "photo.jpg", size=(64, 48))

    def broken_normalize(image, tag):
        raise RuntimeError("bad pixel data")

    monkeypatch.setattr(processor_module, "normalize", broken_normalize)

    manifest = BatchProcessor(ProcessingOptions()).process(input_dir, output_dir)

    assert [(f.filename, f.kind) for f in manifest.failures] == [("photo.jpg", ErrorKind.DECODE)]


def test_interrupt_cancels_pending_images(input_dir, output_dir):
    for name in ("a.jpg", "b.jpg", "c.jpg"):
        make_jpeg(input_dir / name, size=(64, 48))
    started = []
    gate = threading.Event()

    class InterruptedResizer(Resizer):
        def resize(self, normalized, verdict, output_dir, stem, source_path=None):
            started.append(stem)
            if stem == "a":
                with atomic_write(thumbnail_path(output_dir, stem)) as f:
                    f.write(b"half")
                    raise KeyboardInterrupt
            # Hold the next image until the batch has been cancelled
            gate.wait(timeout=1)
            return super().resize(normalized, verdict, output_dir, stem, source_path)

    processor = BatchProcessor(ProcessingOptions(workers=1), resizer=InterruptedResizer())
    with pytest.raises(KeyboardInterrupt):
        processor.process(input_dir, output_dir)

    assert "c" not in started
    assert not list(output_dir.glob("a_*.jpg"))
    assert not list(output_dir.glob("*.part"))
    assert not list(output_dir.glob(".*.part"))


def test_failed_image_leaves_no_outputs(input_dir, output_dir):
    make_jpeg(input_dir / "photo.jpg", size=(64, 48))
    output_dir.mkdir()
    stale = output_dir / "photo_thumb.jpg"
    stale.write_bytes(b"old")

    class FailingResizer(Resizer):
        def resize(self, *args, **kwargs):
            raise ImageResizeError("boom")

    manifest = BatchProcessor(ProcessingOptions(), resizer=FailingResizer()).process(
        input_dir, output_dir
    )

    assert [(f.filename, f.kind) for f in manifest.failures] == [("photo.jpg", ErrorKind.RESIZE)]
    assert not stale.exists()


def test_stale_partial_files_are_removed(input_dir, output_dir):
    output_dir.mkdir()
    partial = output_dir / ".photo_thumb.jpg.x1y2.part"
    partial.write_bytes(b"half")

    BatchProcessor().process(input_dir, output_dir)

    assert not partial.exists()


def test_empty_directory(input_dir, output_dir):
    manifest = BatchProcessor().process(input_dir, output_dir)

    assert manifest.total_count == 0
    assert output_dir.is_dir()


class TestFatalErrors:

    def test_missing_input_directory(self, tmp_path, output_dir):
        with pytest.raises(InputDirectoryError):
            BatchProcessor().process(tmp_path / "missing", output_dir)

    def test_input_is_a_file(self, tmp_path, output_dir):
        path = tmp_path / "file.jpg"
        path.write_bytes(b"x")
        with pytest.raises(InputDirectoryError):
            BatchProcessor().process(path, output_dir)

    def test_output_is_a_file(self, tmp_path, input_dir):
        path = tmp_path / "taken"
        path.write_bytes(b"x")
        with pytest.raises(OutputDirectoryError):
            BatchProcessor().process(input_dir, path)

    def test_output_equals_input(self, input_dir):
        with pytest.raises(OutputDirectoryError):
            BatchProcessor().process(input_dir, input_dir)


@pytest.mark.parametrize("kwargs", [
    {"thumbnail_height": 0},
    {"max_large_size": 0},
    {"panorama_threshold": 1.0},
    {"jpeg_quality": 100},
    {"workers": 0},
])
def test_invalid_options(kwargs):
    with pytest.raises(ValueError):
        ProcessingOptions(**kwargs)
