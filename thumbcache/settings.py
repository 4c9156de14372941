"""
Configuration settings for thumbcache.

Manages the image driver, cache location, cache lifetime, output quality,
retina support and file permissions via environment variables with
sensible defaults.
"""

import os
from dataclasses import dataclass
from typing import Optional

from thumbcache.imaging import BACKENDS


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in ("1", "true", "yes", "on")


def _env_mode(name: str, default: str) -> int:
    return int(os.getenv(name, default), 8)


@dataclass
class ThumbnailSettings:
    """Settings for thumbnail generation and caching."""

    # Image backend: 'pillow' or 'mock' (or a registered custom backend)
    driver: str = os.getenv("THUMB_DRIVER", "pillow")

    # Directory the cache path and watermark paths are relative to
    web_root: str = os.getenv("THUMB_WEB_ROOT", ".")

    # URL prefix prepended to public cache URLs
    base_url: str = os.getenv("THUMB_BASE_URL", "")

    # Directory relative source paths are looked up in first
    base_path: Optional[str] = os.getenv("THUMB_BASE_PATH", None)

    # Cache directory, relative to web_root
    cache_path: str = os.getenv("THUMB_CACHE_PATH", "/assets/easyimage/")

    # Cache lifetime in seconds (2592000 = 30 days)
    cache_time: int = int(os.getenv("THUMB_CACHE_TIME", "2592000"))

    # Default output quality 0-100 (JPEG/WebP quality, PNG compression)
    quality: int = int(os.getenv("THUMB_QUALITY", "100"))

    # Also build @2x variants when the source is large enough.
    # Roughly doubles the work per cache miss.
    retina_support: bool = _env_bool("THUMB_RETINA_SUPPORT", "false")

    # Permissions for the cache directory and its shards
    new_dir_mode: int = _env_mode("THUMB_NEW_DIR_MODE", "775")

    # Permissions for cached files
    new_file_mode: int = _env_mode("THUMB_NEW_FILE_MODE", "660")


class Settings:
    """
    Settings container combining all configuration sections.

    Usage:
        from thumbcache.settings import Settings

        settings = Settings()
        thumbnailer = Thumbnailer(settings.thumbnails)
    """

    def __init__(self, thumbnails: Optional[ThumbnailSettings] = None):
        self.thumbnails = thumbnails or ThumbnailSettings()

    def validate(self) -> list[str]:
        """
        Validates configuration and returns list of warnings/errors.

        Returns:
            list[str]: List of configuration issues (empty if all valid)
        """
        issues = []
        thumbnails = self.thumbnails

        if thumbnails.driver.lower() not in BACKENDS:
            issues.append(
                f"ERROR: Unknown image driver '{thumbnails.driver}'. "
                f"Must be one of {sorted(BACKENDS)}"
            )

        if not 0 <= thumbnails.quality <= 100:
            issues.append(
                f"ERROR: quality must be between 0 and 100, got {thumbnails.quality}"
            )

        if thumbnails.cache_time <= 0:
            issues.append(
                f"WARNING: cache_time is {thumbnails.cache_time}; every request will rebuild"
            )

        if not os.path.isdir(thumbnails.web_root):
            issues.append(
                f"WARNING: Web root directory not found: {thumbnails.web_root}"
            )

        if thumbnails.base_path and not os.path.isdir(thumbnails.base_path):
            issues.append(
                f"WARNING: Base path directory not found: {thumbnails.base_path}"
            )

        return issues
