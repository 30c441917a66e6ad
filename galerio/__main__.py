#!/usr/bin/env python3
"""galerio - generate a static HTML gallery from a directory of JPEGs.

This is the main CLI entry point for galerio. It resizes the images of the
input directory into the output directory and renders a lightbox gallery
page, optionally with a ZIP download of the originals.

Usage:
    python -m galerio <input_dir> <output_dir>
    python -m galerio <input_dir> <output_dir> --title "Summer 2023"
    python -m galerio <input_dir> <output_dir> --max-large-size 2000
    python -m galerio <input_dir> <output_dir> --skip-processing
"""

import sys
import logging
import argparse
from pathlib import Path
from typing import List, Optional

from ._version import __version__
from .config import ConfigManager
from .config.manager import ConfigError
from .exceptions import GalerioError
from .gallery import create_archive, render_gallery
from .processing import BatchProcessor


def setup_logging(
    verbose: bool = False,
    quiet: bool = False,
    config: Optional[ConfigManager] = None
) -> None:
    """Configure logging for the application.

    Args:
        verbose: If True, enable DEBUG level logging
        quiet: If True, only log errors to the console
        config: Configuration providing the optional log file
    """
    if quiet:
        level = logging.ERROR
    elif verbose:
        level = logging.DEBUG
    else:
        level = logging.getLevelName(
            str(config.get("logging.level", "INFO")).upper() if config else "INFO"
        )
        if not isinstance(level, int):
            level = logging.INFO

    # Console handler with simpler format
    console_handler = logging.StreamHandler()
    console_handler.setLevel(level)
    console_handler.setFormatter(
        logging.Formatter('%(levelname)s - %(name)s - %(message)s')
    )

    log_file = config.get("logging.file") if config else None

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG if log_file else level)
    root_logger.addHandler(console_handler)

    # Also log to file if configured
    if log_file:
        log_path = Path(log_file).expanduser()
        try:
            log_path.parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(log_path)
        except OSError as e:
            logging.getLogger(__name__).warning(f"Cannot log to {log_path}: {e}")
            return
        file_handler.setLevel(logging.DEBUG)  # Always DEBUG in file
        file_handler.setFormatter(
            logging.Formatter(
                config.get(
                    "logging.format",
                    "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
                )
            )
        )
        root_logger.addHandler(file_handler)


def positive_int(value: str) -> int:
    """argparse type for strictly positive integers."""
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not an integer: {value!r}")
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be positive: {value}")
    return number


def parse_arguments(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments.

    Args:
        argv: Argument list (defaults to sys.argv[1:])

    Returns:
        Parsed arguments
    """
    parser = argparse.ArgumentParser(
        prog="galerio",
        description="galerio - generate static HTML galleries from a directory containing JPEGs",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Build a gallery with default settings
  galerio photos/ public/

  # Set the title and limit large images to 2000px
  galerio photos/ public/ --title "Summer 2023" --max-large-size 2000

  # Scale panoramas like all other images
  galerio photos/ public/ --max-large-size 2000 --resize-include-panorama

  # Preview the layout quickly without resizing anything
  galerio photos/ public/ --skip-processing

Settings can also be given in ~/.galerio/config.yaml or ./galerio.yaml;
command-line options take precedence.
"""
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"galerio {__version__}"
    )

    parser.add_argument("input_dir", type=Path, help="Directory containing the JPEG files")
    parser.add_argument("output_dir", type=Path, help="Directory receiving the gallery")

    # Gallery options
    parser.add_argument(
        "--title", "-t",
        help="Gallery title (default: Gallery)"
    )
    parser.add_argument(
        "--no-download",
        action="store_true",
        help="Do not create a ZIP archive of the originals"
    )

    # Processing options
    parser.add_argument(
        "--height",
        type=positive_int,
        metavar="PX",
        help="Thumbnail height in pixels (default: 300)"
    )
    parser.add_argument(
        "--max-large-size",
        type=positive_int,
        metavar="PX",
        help="Longest edge of large images in pixels (default: keep original size)"
    )
    parser.add_argument(
        "--resize-include-panorama",
        action="store_true",
        default=None,
        help="Resize panoramas like other images (default: keep their size)"
    )
    parser.add_argument(
        "--skip-processing",
        action="store_true",
        default=None,
        help="Copy originals instead of resizing them (fast layout preview)"
    )
    parser.add_argument(
        "--workers", "-j",
        type=positive_int,
        metavar="N",
        help="Number of worker threads (default: number of CPUs)"
    )

    # Configuration
    parser.add_argument(
        "--config",
        metavar="PATH",
        help="Path to config file (default: ~/.galerio/config.yaml)"
    )

    # Output control
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose debug logging"
    )
    parser.add_argument(
        "--quiet", "-q",
        action="store_true",
        help="Suppress all output except errors"
    )

    return parser.parse_args(argv)


def apply_arguments(config: ConfigManager, args: argparse.Namespace) -> None:
    """Override configuration values with the given command-line options."""
    overrides = {
        "gallery.title": args.title,
        "processing.thumbnail_height": args.height,
        "processing.max_large_size": args.max_large_size,
        "processing.resize_include_panorama": args.resize_include_panorama,
        "processing.skip_processing": args.skip_processing,
        "processing.workers": args.workers,
    }
    for key, value in overrides.items():
        if value is not None:
            config.set(key, value)
    if args.no_download:
        config.set("gallery.download_archive", False)


def print_banner() -> None:
    """Print galerio banner."""
    print()
    print("=" * 70)
    print("  galerio - Static HTML Gallery Generator")
    print(f"  Version {__version__}")
    print("=" * 70)
    print()


def print_summary(manifest, index_path: Path) -> None:
    """Print processing summary.

    Args:
        manifest: Manifest of the batch run
        index_path: Path of the rendered gallery page
    """
    print()
    print("=" * 70)
    print("Gallery Summary")
    print("=" * 70)
    print()
    print(f"Total images:     {manifest.total_count}")
    print(f"Processed:        {len(manifest.records)} ✓")

    if manifest.failures:
        print(f"Failed:           {len(manifest.failures)} ✗")
        for failure in manifest.failures:
            print(f"  - {failure.filename}: {failure.kind} ({failure.message})")

    print()
    print(f"Gallery page:     {index_path}")
    print()

    if manifest.failures:
        print("⚠️  Some images failed to process. Check logs for details.")
    else:
        print("✓ Gallery complete!")
    print()


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for galerio CLI.

    Args:
        argv: Argument list (defaults to sys.argv[1:])

    Returns:
        Exit code (0 for success, non-zero for errors)
    """
    args = parse_arguments(argv)
    logger = logging.getLogger(__name__)

    try:
        config = ConfigManager.load(config_path=args.config)
    except ConfigError as e:
        setup_logging(args.verbose, args.quiet)
        logger.error(f"Configuration error: {e}")
        return 2

    setup_logging(args.verbose, args.quiet, config)

    try:
        if not args.quiet:
            print_banner()

        apply_arguments(config, args)
        options = config.processing_options()
        title = str(config.get("gallery.title", "Gallery"))

        if not args.quiet:
            if config.config_path:
                print(f"✓ Configuration loaded from: {config.config_path}")
            print(f"Input dir:  {args.input_dir}")
            print(f"Output dir: {args.output_dir}")
            if options.skip_processing:
                print("⚠️  SKIP PROCESSING - originals are copied without resizing")
            print()

        processor = BatchProcessor(options)
        manifest = processor.process(args.input_dir, args.output_dir)

        archive = None
        if config.get("gallery.download_archive", True) and manifest.records:
            archive = create_archive(manifest, args.output_dir, title)

        index_path = render_gallery(manifest, args.output_dir, title, archive=archive)

        if not args.quiet:
            print_summary(manifest, index_path)

        return 1 if manifest.failures else 0

    except ConfigError as e:
        logger.error(f"Configuration error: {e}")
        if not args.quiet:
            print()
            print(f"✗ Configuration Error: {e}")
        return 2

    except GalerioError as e:
        logger.error(f"{e}", exc_info=args.verbose)
        if not args.quiet:
            print()
            print(f"✗ Error: {e}")
        return 3

    except KeyboardInterrupt:
        if not args.quiet:
            print()
            print()
            print("Processing interrupted by user")
        return 130


if __name__ == "__main__":
    sys.exit(main())
