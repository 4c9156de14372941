"""
Image backend implementations.

Each backend implements the ImageBackend interface and can be registered
with the factory function for configuration-driven selection.
"""

from thumbcache.imaging.providers.pillow import PillowImageBackend
from thumbcache.imaging.providers.mock import MockImageBackend, MockImage

__all__ = ["PillowImageBackend", "MockImageBackend", "MockImage"]
