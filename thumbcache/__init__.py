"""
thumbcache - caching image thumbnails.

Provides:
- Thumbnailer: Get-or-build thumbnails for (source, params, version)
- ImageEditor: Chainable image operations on one image
- OperationInterpreter: Runs declarative parameter maps
- ThumbHash / CacheStore: Cache keys and the sharded on-disk cache
- create_backend: Image backend factory ('pillow', 'mock')
"""

from thumbcache.caching import CacheStore, FingerprintLocks, ThumbHash
from thumbcache.editor import ImageEditor
from thumbcache.errors import (
    NoImageLoadedError,
    SourceNotFoundError,
    StorageError,
    ThumbnailError,
    ValidationError,
)
from thumbcache.imaging import (
    FlipDirection,
    ImageBackend,
    ImageHandle,
    Master,
    create_backend,
    register_backend,
)
from thumbcache.operations import OperationInterpreter
from thumbcache.settings import Settings, ThumbnailSettings
from thumbcache.thumbnailer import Thumbnailer
from thumbcache.types import ThumbnailRequest, ThumbnailResult, ThumbnailStatus

__version__ = "1.0.0"

__all__ = [
    "Thumbnailer",
    "ImageEditor",
    "OperationInterpreter",
    "ThumbHash",
    "CacheStore",
    "FingerprintLocks",
    "ImageBackend",
    "ImageHandle",
    "Master",
    "FlipDirection",
    "create_backend",
    "register_backend",
    "Settings",
    "ThumbnailSettings",
    "ThumbnailRequest",
    "ThumbnailResult",
    "ThumbnailStatus",
    "ThumbnailError",
    "ValidationError",
    "SourceNotFoundError",
    "NoImageLoadedError",
    "StorageError",
]
