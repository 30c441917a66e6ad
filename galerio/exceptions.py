"""Custom exceptions for galerio."""

from enum import Enum


class ErrorKind(str, Enum):
    """Kind of a per-image processing failure."""

    DECODE = "DecodeError"
    IO = "IoError"
    RESIZE = "ResizeError"

    def __str__(self) -> str:
        return self.value


class GalerioError(Exception):
    """Base exception for galerio errors."""
    pass


class ImageProcessingError(GalerioError):
    """Exception raised when a single image cannot be processed.
    
    These errors are isolated per image: the batch records them as a
    failure and continues with the next image.
    
    Attributes:
        message: Error message
        filename: Name of the source file (if known)
        kind: ErrorKind of the failure
    """
    
    kind = ErrorKind.RESIZE
    
    def __init__(self, message: str, filename: str = None):
        """Initialize image processing error.
        
        Args:
            message: Error message
            filename: Name of the source file
        """
        super().__init__(message)
        self.message = message
        self.filename = filename
    
    def __str__(self) -> str:
        """Return string representation of error."""
        if self.filename:
            return f"{self.kind}: {self.filename}: {self.message}"
        return f"{self.kind}: {self.message}"


class ImageDecodeError(ImageProcessingError):
    """Raised when a file is not a valid JPEG container or cannot be decoded."""
    kind = ErrorKind.DECODE


class ImageIOError(ImageProcessingError):
    """Raised when reading a source or writing an output file fails."""
    kind = ErrorKind.IO


class ImageResizeError(ImageProcessingError):
    """Raised when resampling fails (zero-dimension image, bad pixel data)."""
    kind = ErrorKind.RESIZE


class InputDirectoryError(GalerioError):
    """Raised when the input directory is missing or unreadable."""
    pass


class OutputDirectoryError(GalerioError):
    """Raised when the output directory cannot be created or written."""
    pass


class GalleryError(GalerioError):
    """Raised when the HTML page or the download archive cannot be written."""
    pass
