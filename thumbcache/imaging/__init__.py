"""
Image backend module.

Provides a factory to create image backends and a registry for
extending with custom backends.

Usage:
    from thumbcache.imaging import create_backend

    backend = create_backend("pillow")
    handle = backend.open("photo.jpg")
    handle = backend.resize(handle, 200, 150)
    backend.save(handle, "thumb.jpg", quality=80)
"""

import logging
from typing import Dict, Optional, Type

from thumbcache.imaging.base import ImageBackend, ImageHandle
from thumbcache.imaging.geometry import FlipDirection, Master
from thumbcache.imaging.providers import MockImageBackend, PillowImageBackend

logger = logging.getLogger(__name__)

# Registry of available backends
BACKENDS: Dict[str, Type[ImageBackend]] = {
    "pillow": PillowImageBackend,
    "mock": MockImageBackend,
}


def register_backend(name: str, backend_class: Type[ImageBackend]) -> None:
    """
    Register a new image backend.

    Custom backends must inherit from ImageBackend.

    Args:
        name: Unique name for the backend (e.g., "wand", "vips")
        backend_class: Class that implements the ImageBackend interface

    Example:
        class VipsBackend(ImageBackend):
            ...

        register_backend("vips", VipsBackend)
    """
    if not issubclass(backend_class, ImageBackend):
        raise TypeError(f"{backend_class!r} does not implement ImageBackend")
    name = name.lower()
    if name in BACKENDS:
        logger.warning(f"Backend '{name}' already registered, overwriting")
    BACKENDS[name] = backend_class
    logger.info(f"Registered image backend: {name}")


def get_backend_class(name: str) -> Optional[Type[ImageBackend]]:
    """
    Get a registered backend class by name.

    Args:
        name: Backend name (e.g., "pillow", "mock", or custom)

    Returns:
        Backend class or None if not found
    """
    return BACKENDS.get(name.lower())


def create_backend(driver: str = "pillow", **kwargs) -> ImageBackend:
    """
    Factory function to create an image backend.

    Args:
        driver: Which backend to use ('pillow', 'mock', or custom)
        **kwargs: Passed to the backend constructor

    Returns:
        Initialized backend instance (ImageBackend subclass)

    Raises:
        ValueError: If the driver name is not registered
    """
    driver_name = (driver or "pillow").lower()
    backend_class = get_backend_class(driver_name)

    if backend_class is None:
        available = ", ".join(BACKENDS.keys())
        raise ValueError(
            f"Unknown image driver '{driver_name}' (available: {available})"
        )

    logger.info(f"Using {driver_name} image backend")
    return backend_class(**kwargs)


__all__ = [
    "create_backend",
    "register_backend",
    "get_backend_class",
    "BACKENDS",
    "ImageBackend",
    "ImageHandle",
    "Master",
    "FlipDirection",
    "PillowImageBackend",
    "MockImageBackend",
]
