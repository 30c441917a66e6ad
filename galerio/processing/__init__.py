"""Processing module for running the image pipeline over a directory."""

from .options import ProcessingOptions
from .processor import BatchProcessor, assign_output_stems, discover_images

__all__ = ["BatchProcessor", "ProcessingOptions", "assign_output_stems", "discover_images"]
