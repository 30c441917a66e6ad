"""Default configuration values for galerio."""

# Default configuration dictionary
DEFAULT_CONFIG = {
    # Gallery page and download archive
    "gallery": {
        "title": "Gallery",
        "download_archive": True,
    },
    
    # Image pipeline
    "processing": {
        "thumbnail_height": 300,
        "max_large_size": None,  # Keep original size when unset
        "resize_include_panorama": False,
        "skip_processing": False,
        "panorama_threshold": 2.0,
        "jpeg_quality": 90,
        "workers": None,  # One per CPU
    },
    
    # Logging Configuration
    "logging": {
        "level": "INFO",
        "file": None,
        "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    },
}
