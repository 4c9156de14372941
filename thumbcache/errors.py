"""
Exception types raised by the thumbnail pipeline.

Provides:
- ThumbnailError: Base class for everything raised by this package
- ValidationError: Bad parameter map (unknown operation, missing field)
- SourceNotFoundError: Source image absent or unreadable
- NoImageLoadedError: ImageEditor used before an image was opened
- StorageError: Cache directory or cache file could not be written
"""

from typing import Optional


class ThumbnailError(Exception):
    """Base class for thumbnail pipeline errors."""


class ValidationError(ThumbnailError):
    """Raised when a parameter map cannot be interpreted."""

    def __init__(
        self,
        operation: str,
        field: Optional[str] = None,
        message: Optional[str] = None,
    ):
        self.operation = operation
        self.field = field
        if message is None:
            if field is None:
                message = f'Action "{operation}" is not found'
            else:
                message = f'Param "{field}" is required for action "{operation}"'
        super().__init__(message)


class SourceNotFoundError(ThumbnailError):
    """Raised when a source image does not exist or cannot be decoded."""

    def __init__(self, path: str, reason: Optional[str] = None):
        self.path = str(path)
        self.reason = reason
        message = f"Source image not available: {self.path}"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message)


class NoImageLoadedError(ThumbnailError):
    """Raised when an image operation runs without a loaded image."""

    def __init__(self, message: str = "Don't have image"):
        super().__init__(message)


class StorageError(ThumbnailError):
    """Raised when the cache tree cannot be created or written."""

    def __init__(self, path: str, reason: Optional[str] = None):
        self.path = str(path)
        self.reason = reason
        message = f"Failed to write {self.path}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)
