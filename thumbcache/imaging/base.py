"""
Abstract base class for image backends.

All backends must inherit from ImageBackend. Every operation receives the
current ImageHandle and returns the handle the next operation should use,
which may be the same object or a new one.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Optional, Union

from thumbcache.imaging.geometry import FlipDirection, Master, Offset


@dataclass
class ImageHandle:
    """
    Working image owned by a single build.

    Attributes:
        image: Backend-specific image object (PIL.Image.Image for Pillow)
        source: Path the image was opened from (kept by derived handles)
        format: Source format name as reported by the backend (e.g. "JPEG")
    """

    image: Any
    source: Optional[str] = None
    format: Optional[str] = None


class ImageBackend(ABC):
    """
    Abstract base class for image backends.

    A backend opens images, reports their size, applies the transformation
    primitives and encodes the result. Thumbnail caching and parameter
    interpretation live outside the backend.
    """

    name: str = "abstract"

    @abstractmethod
    def open(self, path: str) -> ImageHandle:
        """
        Open an image file.

        Raises:
            SourceNotFoundError: If the file is missing or cannot be decoded
        """
        pass

    @abstractmethod
    def width(self, handle: ImageHandle) -> int:
        """Current width in pixels."""
        pass

    @abstractmethod
    def height(self, handle: ImageHandle) -> int:
        """Current height in pixels."""
        pass

    @abstractmethod
    def resize(
        self,
        handle: ImageHandle,
        width: Optional[int] = None,
        height: Optional[int] = None,
        master: Optional[Master] = None,
    ) -> ImageHandle:
        """Resize using the given master dimension (see geometry.calculate_resize)."""
        pass

    @abstractmethod
    def crop(
        self,
        handle: ImageHandle,
        width: int,
        height: int,
        offset_x: Offset = None,
        offset_y: Offset = None,
    ) -> ImageHandle:
        """Crop to width x height at the given offsets (None centres)."""
        pass

    @abstractmethod
    def rotate(self, handle: ImageHandle, degrees: float) -> ImageHandle:
        """Rotate clockwise by degrees, growing the canvas to fit."""
        pass

    @abstractmethod
    def flip(self, handle: ImageHandle, direction: FlipDirection) -> ImageHandle:
        """Mirror horizontally or vertically."""
        pass

    @abstractmethod
    def sharpen(self, handle: ImageHandle, amount: int) -> ImageHandle:
        """Sharpen by amount (1-100)."""
        pass

    @abstractmethod
    def reflection(
        self,
        handle: ImageHandle,
        height: Optional[int] = None,
        opacity: int = 100,
        fade_in: bool = False,
    ) -> ImageHandle:
        """Append a mirrored, fading reflection below the image."""
        pass

    @abstractmethod
    def watermark(
        self,
        handle: ImageHandle,
        watermark: ImageHandle,
        offset_x: Offset = None,
        offset_y: Offset = None,
        opacity: int = 100,
    ) -> ImageHandle:
        """Overlay another image at the given offsets (None centres)."""
        pass

    @abstractmethod
    def background(
        self,
        handle: ImageHandle,
        color: Union[str, tuple],
        opacity: int = 100,
    ) -> ImageHandle:
        """Flatten the image onto a solid background colour."""
        pass

    @abstractmethod
    def save(self, handle: ImageHandle, path: str, quality: int = 100) -> bool:
        """
        Encode the image to path; the format follows the file extension.

        Returns:
            bool: True when the file was written

        Raises:
            OSError: If the file cannot be written
        """
        pass

    @abstractmethod
    def render(
        self,
        handle: ImageHandle,
        image_type: Optional[str] = None,
        quality: int = 100,
    ) -> bytes:
        """Encode the image to bytes (type defaults to the source format)."""
        pass

    def supports(self, extension: str) -> bool:
        """True if save and render can encode files with this extension."""
        return True
