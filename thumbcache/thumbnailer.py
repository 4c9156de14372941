"""
High-level thumbnail interface.

Thumbnailer ties the pieces together: it derives the cache key, serves
fresh cache entries, and on a miss loads the source, runs the parameter
map, stores the result and optionally a @2x retina variant.
"""

import logging
import time
from pathlib import Path
from typing import Any, Callable, Dict, Mapping, Optional, Tuple, Union

from thumbcache.caching import CachePaths, CacheStore, FingerprintLocks, ThumbHash
from thumbcache.errors import SourceNotFoundError, StorageError
from thumbcache.imaging import ImageBackend, ImageHandle, create_backend
from thumbcache.operations import OperationInterpreter
from thumbcache.settings import ThumbnailSettings
from thumbcache.types import ThumbnailResult, ThumbnailStatus

logger = logging.getLogger(__name__)

RETINA_SUFFIX = "@2x"

Size = Tuple[int, int]


def retina_eligible(result_size: Size, original_size: Size) -> bool:
    """True if the source has room for a thumbnail twice the result's size."""
    return (
        result_size[0] * 2 <= original_size[0]
        and result_size[1] * 2 <= original_size[1]
    )


def retina_params(params: Mapping[str, Any], result_size: Size) -> Dict[str, Any]:
    """
    Parameter map for the @2x variant.

    Only a resize step that names both width and height is scaled (to twice
    the primary result's size). Any other map is returned unchanged, so a
    crop- or scaleAndCrop-only thumbnail gets an @2x file of the same size
    as the primary one.
    """
    doubled = dict(params)
    resize = doubled.get("resize")
    if (
        isinstance(resize, Mapping)
        and resize.get("width") is not None
        and resize.get("height") is not None
    ):
        doubled["resize"] = {
            **resize,
            "width": result_size[0] * 2,
            "height": result_size[1] * 2,
        }
    return doubled


class Thumbnailer:
    """
    Caching thumbnail generator.

    Args:
        settings: Thumbnail configuration
        backend: Image backend; created from settings.driver when omitted
        locks: Build locks, shareable between thumbnailers using one cache
        clock: Returns the current time in seconds (freshness checks)
    """

    def __init__(
        self,
        settings: ThumbnailSettings,
        backend: Optional[ImageBackend] = None,
        locks: Optional[FingerprintLocks] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.settings = settings
        self.backend = backend or create_backend(settings.driver)
        self.interpreter = OperationInterpreter(self.backend, settings.web_root)
        self.store = CacheStore(
            web_root=settings.web_root,
            cache_path=settings.cache_path,
            base_url=settings.base_url,
            new_dir_mode=settings.new_dir_mode,
            new_file_mode=settings.new_file_mode,
        )
        self.locks = locks or FingerprintLocks()
        self.clock = clock

    def detect_path(self, source: Union[str, Path]) -> str:
        """
        Resolve a requested source path.

        A path found under settings.base_path wins; otherwise the path is
        used as given.
        """
        source = str(source)
        if self.settings.base_path:
            candidate = Path(self.settings.base_path) / source.lstrip("/")
            if candidate.is_file():
                return str(candidate)
        return source

    def is_fresh(self, cache_file: Union[str, Path]) -> bool:
        return self.store.is_fresh(cache_file, self.settings.cache_time, now=self.clock())

    def thumbnail(
        self,
        source: Union[str, Path],
        params: Optional[Mapping[str, Any]] = None,
        version: Optional[Any] = None,
        force: bool = False,
    ) -> ThumbnailResult:
        """
        Get or build the thumbnail of source for params.

        Args:
            source: Source image path
            params: Ordered parameter map (see thumbcache.operations)
            version: Optional cache version modifier
            force: Rebuild even if a fresh cache entry exists

        Returns:
            ThumbnailResult: HIT, BUILT, or UNAVAILABLE when the source is
            missing or unreadable

        Raises:
            ValidationError: If params cannot be interpreted
            StorageError: If the cache entry cannot be written
        """
        source = str(source)
        params = dict(params or {})

        fingerprint = ThumbHash.fingerprint(source, params, version)
        extension = self.interpreter.output_extension(source, params)
        paths = self.store.resolve(fingerprint, extension)

        if not force and self.is_fresh(paths.cache_file):
            logger.info(f"Cache hit: {fingerprint}")
            return self._hit_result(source, fingerprint, extension, paths)

        with self.locks.hold(fingerprint):
            # Another request may have built it while we waited
            if not force and self.is_fresh(paths.cache_file):
                logger.info(f"Cache hit after wait: {fingerprint}")
                return self._hit_result(source, fingerprint, extension, paths)

            logger.info(f"Cache miss: {fingerprint}")
            return self._build(source, params, fingerprint, extension, paths)

    def get_thumbnail_url(
        self,
        source: Union[str, Path],
        params: Optional[Mapping[str, Any]] = None,
        version: Optional[Any] = None,
    ) -> Optional[str]:
        """Public URL of the thumbnail, or None when the source is unavailable."""
        result = self.thumbnail(source, params, version)
        return result.url if result.available else None

    def render_thumbnail_bytes(
        self,
        source: Union[str, Path],
        params: Optional[Mapping[str, Any]] = None,
    ) -> Optional[bytes]:
        """
        Build the thumbnail in memory without touching the cache.

        Returns:
            bytes: Encoded image (type from params, else the source format),
            or None when the source is unavailable
        """
        params = dict(params or {})
        steps = self.interpreter.compile(params)
        image_type = self.interpreter.output_type(params)
        try:
            image = self.backend.open(self.detect_path(source))
        except SourceNotFoundError as exc:
            logger.warning(f"No thumbnail for {source}: {exc}")
            return None

        for step in steps:
            image = self.interpreter.run(image, step)
        quality = self.interpreter.output_quality(params, self.settings.quality)
        return self.backend.render(image, image_type, quality)

    def _hit_result(
        self, source: str, fingerprint: str, extension: str, paths: CachePaths
    ) -> ThumbnailResult:
        retina = self.store.resolve(fingerprint, extension, RETINA_SUFFIX)
        has_retina = retina.cache_file.is_file()
        return ThumbnailResult(
            status=ThumbnailStatus.HIT,
            source=source,
            fingerprint=fingerprint,
            url=paths.public_url,
            path=str(paths.cache_file),
            retina_url=retina.public_url if has_retina else None,
            retina_path=str(retina.cache_file) if has_retina else None,
        )

    def _build(
        self,
        source: str,
        params: Dict[str, Any],
        fingerprint: str,
        extension: str,
        paths: CachePaths,
    ) -> ThumbnailResult:
        self.interpreter.compile(params)
        self.store.ensure_dir(paths.cache_dir)

        try:
            original = self.backend.open(self.detect_path(source))
        except SourceNotFoundError as exc:
            logger.warning(f"No thumbnail for {source}: {exc}")
            return ThumbnailResult(
                status=ThumbnailStatus.UNAVAILABLE,
                source=source,
                fingerprint=fingerprint,
                reason=str(exc),
            )

        original_size = (self.backend.width(original), self.backend.height(original))
        result = self._render_to(original, params, paths.cache_file)
        result_size = (self.backend.width(result), self.backend.height(result))
        logger.info(
            f"Built {fingerprint}: {original_size[0]}x{original_size[1]} -> "
            f"{result_size[0]}x{result_size[1]}"
        )

        # Best effort: any retina failure is logged and the primary result stands
        retina = None
        if self.settings.retina_support and retina_eligible(result_size, original_size):
            retina = self._build_retina(source, params, fingerprint, extension, result_size)

        return ThumbnailResult(
            status=ThumbnailStatus.BUILT,
            source=source,
            fingerprint=fingerprint,
            url=paths.public_url,
            path=str(paths.cache_file),
            retina_url=retina.public_url if retina else None,
            retina_path=str(retina.cache_file) if retina else None,
            width=result_size[0],
            height=result_size[1],
        )

    def _render_to(
        self, image: ImageHandle, params: Mapping[str, Any], cache_file: Path
    ) -> ImageHandle:
        """Apply params and write the result to cache_file."""
        result = self.interpreter.apply(image, params)
        quality = self.interpreter.output_quality(params, self.settings.quality)

        with self.store.atomic_path(cache_file) as tmp:
            if not self.backend.save(result, str(tmp), quality):
                raise StorageError(str(cache_file), "image backend reported a failed save")

        # Non-fatal: the file is already in place and servable
        self.store.finalize(cache_file)
        return result

    def _build_retina(
        self,
        source: str,
        params: Mapping[str, Any],
        fingerprint: str,
        extension: str,
        result_size: Size,
    ) -> Optional[CachePaths]:
        """Build the @2x variant from a fresh copy of the source."""
        paths = self.store.resolve(fingerprint, extension, RETINA_SUFFIX)
        try:
            original = self.backend.open(self.detect_path(source))
            self._render_to(original, retina_params(params, result_size), paths.cache_file)
        except Exception as exc:
            logger.warning(f"Retina variant of {fingerprint} not built: {exc}")
            return None

        logger.info(f"Built retina variant: {paths.cache_file.name}")
        return paths
