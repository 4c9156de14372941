"""
Per-fingerprint build locks.

Two requests for the same thumbnail serialize on one lock so the image is
built once; requests for different thumbnails never wait on each other.
"""

import threading
from contextlib import contextmanager
from typing import Dict, Iterator, List


class FingerprintLocks:
    """
    Thread-safe map of fingerprint -> lock.

    Entries are reference counted and dropped once no thread holds or waits
    for them, so the map only grows with concurrent distinct builds.
    """

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: Dict[str, threading.Lock] = {}
        self._waiters: Dict[str, int] = {}

    @contextmanager
    def hold(self, fingerprint: str) -> Iterator[None]:
        """Hold the build lock for fingerprint for the duration of the block."""
        with self._guard:
            lock = self._locks.setdefault(fingerprint, threading.Lock())
            self._waiters[fingerprint] = self._waiters.get(fingerprint, 0) + 1

        lock.acquire()
        try:
            yield
        finally:
            lock.release()
            with self._guard:
                self._waiters[fingerprint] -= 1
                if self._waiters[fingerprint] == 0:
                    del self._waiters[fingerprint]
                    del self._locks[fingerprint]

    def active(self) -> List[str]:
        """Fingerprints currently held or awaited."""
        with self._guard:
            return list(self._locks)

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)
