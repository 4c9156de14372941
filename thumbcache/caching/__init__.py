"""
Caching system for thumbnails.

Provides:
- ThumbHash: Deterministic cache key generation
- CacheStore: Sharded on-disk store with freshness checks and atomic writes
- CachePaths: Resolved locations of a cache entry
- FingerprintLocks: Per-key build locks
"""

from thumbcache.caching.core import CachePaths, ThumbHash, serialize_params
from thumbcache.caching.locks import FingerprintLocks
from thumbcache.caching.store import CacheStore

__all__ = [
    "ThumbHash",
    "CachePaths",
    "CacheStore",
    "FingerprintLocks",
    "serialize_params",
]
