"""
Core data structures for the thumbnail cache.

Defines:
- ThumbHash: Deterministic cache key generation
- CachePaths: Where a fingerprint lives on disk and on the web
- serialize_params: Order-preserving canonical form of a parameter map
"""

import hashlib
import json
import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Mapping, Optional

from thumbcache.imaging.base import ImageHandle

logger = logging.getLogger(__name__)


def _encode_handle(handle: ImageHandle) -> str:
    """Source path plus current size, so a resized copy keys differently."""
    width = getattr(handle.image, "width", None)
    height = getattr(handle.image, "height", None)
    if width is None or height is None:
        return f"<image:{handle.source}>"
    return f"<image:{handle.source}:{width}x{height}>"


def _encode_value(value: Any) -> Any:
    """Stable JSON stand-in for values json cannot encode natively."""
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, ImageHandle):
        return _encode_handle(value)
    if isinstance(value, Path):
        return str(value)
    # ImageEditor and friends expose the handle they wrap
    handle = getattr(value, "handle", None)
    if isinstance(handle, ImageHandle):
        return _encode_handle(handle)
    return str(value)


def serialize_params(params: Optional[Mapping[str, Any]]) -> str:
    """
    Serialize a parameter map in insertion order.

    Keys keep insertion order: the map is an ordered program, so
    {"resize": ..., "crop": ...} and {"crop": ..., "resize": ...} are
    different thumbnails.

    Args:
        params: Parameter map (may be None or empty)

    Returns:
        str: Compact JSON text
    """
    return json.dumps(
        dict(params or {}),
        separators=(",", ":"),
        ensure_ascii=False,
        sort_keys=False,
        default=_encode_value,
    )


class ThumbHash:
    """
    Generates deterministic cache keys for thumbnails.

    Cache key format: 32 hex characters, the MD5 of
    source_path + serialized params + version.
    """

    # MD5 is used for uniform, fixed-length keys, not for security
    ALGORITHM = "md5"

    @classmethod
    def fingerprint(
        cls,
        source_path: str,
        params: Optional[Mapping[str, Any]] = None,
        version: Optional[Any] = None,
    ) -> str:
        """
        Generate deterministic cache key for a thumbnail request.

        Args:
            source_path: Path of the source image, exactly as requested
            params: Ordered parameter map
            version: Optional cache version modifier

        Returns:
            str: Cache key (e.g., '3f1c9e0a...')
        """
        seed = f"{source_path}{serialize_params(params)}{'' if version is None else version}"
        cache_key = hashlib.new(cls.ALGORITHM, seed.encode("utf-8")).hexdigest()

        logger.debug(f"Generated cache key: {cache_key}")
        return cache_key

    @staticmethod
    def shard(cache_key: str) -> str:
        """Directory shard for a cache key (its first character)."""
        return cache_key[0]


@dataclass(frozen=True)
class CachePaths:
    """Resolved locations of one cache entry."""

    cache_dir: Path
    cache_file: Path
    public_url: str
