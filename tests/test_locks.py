"""
Tests for per-fingerprint build locks.
"""

import threading
import time

import pytest

from thumbcache.caching import FingerprintLocks


class TestFingerprintLocks:
    """Test lock sharing and cleanup."""

    def test_entry_removed_after_release(self):
        locks = FingerprintLocks()

        with locks.hold("abc"):
            assert locks.active() == ["abc"]

        assert len(locks) == 0, "Released locks should not accumulate"

    def test_same_fingerprint_serializes(self):
        locks = FingerprintLocks()
        inside = []
        overlap = []

        def worker():
            with locks.hold("same"):
                if inside:
                    overlap.append(True)
                inside.append(True)
                time.sleep(0.05)
                inside.pop()

        threads = [threading.Thread(target=worker) for _ in range(4)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert not overlap, "Two threads held the same fingerprint lock at once"
        assert len(locks) == 0

    def test_different_fingerprints_do_not_block(self):
        locks = FingerprintLocks()
        acquired = threading.Event()

        def other():
            with locks.hold("second"):
                acquired.set()

        with locks.hold("first"):
            thread = threading.Thread(target=other)
            thread.start()
            assert acquired.wait(timeout=2), "Distinct fingerprint should not wait"
            thread.join()

    def test_released_on_exception(self):
        locks = FingerprintLocks()

        with pytest.raises(RuntimeError):
            with locks.hold("boom"):
                raise RuntimeError("build failed")

        with locks.hold("boom"):
            pass
        assert len(locks) == 0


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
