"""
Request/response models for thumbnail callers.

Pydantic models for the results handed back by Thumbnailer and for
thumbnail requests read from job input.
"""

from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field


class ThumbnailStatus(str, Enum):
    """Outcome of a thumbnail request."""

    HIT = "hit"  # fresh cache entry served
    BUILT = "built"  # cache miss, thumbnail built and stored
    UNAVAILABLE = "unavailable"  # source missing or unreadable


class ThumbnailResult(BaseModel):
    """Result of Thumbnailer.thumbnail."""

    status: ThumbnailStatus
    source: str
    fingerprint: str
    url: Optional[str] = None
    path: Optional[str] = None
    retina_url: Optional[str] = None
    retina_path: Optional[str] = None
    width: Optional[int] = None
    height: Optional[int] = None
    reason: Optional[str] = None

    @property
    def available(self) -> bool:
        return self.status != ThumbnailStatus.UNAVAILABLE

    @property
    def cached(self) -> bool:
        return self.status == ThumbnailStatus.HIT


class ThumbnailRequest(BaseModel):
    """One thumbnail to build: source, ordered params and version."""

    source: str = Field(min_length=1)
    params: Dict[str, Any] = Field(default_factory=dict)
    version: Optional[str] = None
