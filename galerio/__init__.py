"""galerio - static HTML galleries from a directory of JPEGs.

Generates thumbnails and display-size images with EXIF-aware orientation,
leaves panoramas at full width, and renders a lightbox gallery page with an
optional ZIP download of the originals.
"""

from galerio._version import __version__, __version_info__
from galerio.config import ConfigManager
from galerio.processing import BatchProcessor, ProcessingOptions

__license__ = "MIT OR Apache-2.0"
__all__ = [
    "__version__",
    "__version_info__",
    "ConfigManager",
    "BatchProcessor",
    "ProcessingOptions",
]
