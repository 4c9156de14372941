"""
Local file system cache store for thumbnails.

Stores files in {web_root}{cache_path}{shard}/{fingerprint}.{ext} and
serves them at {base_url}{cache_path}{shard}/{fingerprint}.{ext}.
"""

import logging
import os
import time
import uuid
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional, Union

from thumbcache.caching.core import CachePaths, ThumbHash
from thumbcache.errors import StorageError

logger = logging.getLogger(__name__)


class CacheStore:
    """
    Sharded on-disk thumbnail cache.

    Path computation is pure; only ensure_dir, finalize and atomic_path
    touch the file system.
    """

    def __init__(
        self,
        web_root: Union[str, Path] = ".",
        cache_path: str = "/assets/easyimage/",
        base_url: str = "",
        new_dir_mode: int = 0o775,
        new_file_mode: int = 0o660,
    ):
        self.web_root = Path(web_root)
        stripped = cache_path.strip("/")
        self.cache_path = f"/{stripped}/" if stripped else "/"
        self.base_url = base_url.rstrip("/")
        self.new_dir_mode = new_dir_mode
        self.new_file_mode = new_file_mode

    @property
    def cache_root(self) -> Path:
        """Directory holding every shard."""
        return self.web_root / self.cache_path.strip("/")

    def resolve(self, fingerprint: str, extension: str, suffix: str = "") -> CachePaths:
        """
        Compute where a fingerprint is stored and served.

        Args:
            fingerprint: Cache key from ThumbHash.fingerprint
            extension: File extension without the dot
            suffix: Name suffix (e.g. "@2x" for the retina variant)

        Returns:
            CachePaths: (cache_dir, cache_file, public_url)
        """
        shard = ThumbHash.shard(fingerprint)
        file_name = f"{fingerprint}{suffix}.{extension}"
        cache_dir = self.cache_root / shard
        public_url = f"{self.base_url}{self.cache_path}{shard}/{file_name}"
        return CachePaths(
            cache_dir=cache_dir,
            cache_file=cache_dir / file_name,
            public_url=public_url,
        )

    def is_fresh(
        self,
        cache_file: Union[str, Path],
        max_age_seconds: float,
        now: Optional[float] = None,
    ) -> bool:
        """True iff the file exists and is younger than max_age_seconds."""
        try:
            mtime = os.stat(cache_file).st_mtime
        except FileNotFoundError:
            return False
        if now is None:
            now = time.time()
        return now - mtime < max_age_seconds

    def ensure_dir(self, cache_dir: Union[str, Path]) -> None:
        """
        Create a shard directory and any missing parents.

        Every directory created, plus the cache root, gets new_dir_mode.

        Raises:
            StorageError: If the directory cannot be created
        """
        cache_dir = Path(cache_dir)
        if cache_dir.is_dir():
            return
        created = [cache_dir]
        for parent in cache_dir.parents:
            if parent.exists():
                break
            created.append(parent)
        try:
            cache_dir.mkdir(mode=self.new_dir_mode, parents=True, exist_ok=True)
        except OSError as exc:
            raise StorageError(str(cache_dir), str(exc)) from exc

        # mkdir is subject to the umask; chmod failures are non-fatal
        if self.cache_root not in created:
            created.append(self.cache_root)
        for directory in reversed(created):
            self._chmod(directory, self.new_dir_mode)
        logger.debug(f"Created cache directory: {cache_dir}")

    def finalize(self, path: Union[str, Path]) -> None:
        """Apply the configured file mode; failures are logged, not raised."""
        self._chmod(path, self.new_file_mode)

    def _chmod(self, path: Union[str, Path], mode: int) -> None:
        try:
            os.chmod(path, mode)
        except OSError as exc:
            logger.warning(f"Could not set mode {oct(mode)} on {path}: {exc}")

    @contextmanager
    def atomic_path(self, target: Union[str, Path]) -> Iterator[Path]:
        """
        Yield a temporary sibling of target; rename it into place on success.

        The temporary name keeps target's extension so encoders that pick
        the format from the file name still work. Readers never see a
        partially written target.

        Raises:
            StorageError: If writing or renaming fails with an OSError
        """
        target = Path(target)
        tmp = target.with_name(f".{target.stem}.{uuid.uuid4().hex}.tmp{target.suffix}")
        try:
            yield tmp
            os.replace(tmp, target)
        except OSError as exc:
            tmp.unlink(missing_ok=True)
            raise StorageError(str(target), str(exc)) from exc
        except BaseException:
            tmp.unlink(missing_ok=True)
            raise
