"""
Fluent wrapper around one image and a backend.

    editor = ImageEditor(backend).open("photo.jpg")
    editor.scale_and_crop(200, 200).sharpen(20).save("square.jpg", quality=85)

An editor owns a single working handle; every operation replaces it with
the handle returned by the backend.
"""

import logging
from pathlib import Path
from typing import Any, Mapping, Optional, Union

from thumbcache.errors import NoImageLoadedError, ThumbnailError
from thumbcache.imaging.base import ImageBackend, ImageHandle
from thumbcache.imaging.geometry import FlipDirection, Master, Offset
from thumbcache.operations import OperationInterpreter

logger = logging.getLogger(__name__)


class ImageEditor:
    """
    Chainable image operations over an ImageBackend.

    Args:
        backend: Image backend
        web_root: Directory watermark paths are resolved against
        handle: Optional already-loaded image
    """

    def __init__(
        self,
        backend: ImageBackend,
        web_root: Union[str, Path] = ".",
        handle: Optional[ImageHandle] = None,
    ):
        self.backend = backend
        self.interpreter = OperationInterpreter(backend, web_root)
        self._handle = handle

    @property
    def handle(self) -> Optional[ImageHandle]:
        """Loaded image handle, or None."""
        return self._handle

    def open(self, path: Union[str, Path]) -> "ImageEditor":
        """
        Load an image, replacing any image already held.

        Raises:
            SourceNotFoundError: If the file is missing or unreadable
        """
        self._handle = self.backend.open(str(path))
        return self

    def image(self) -> ImageHandle:
        """
        The loaded image handle.

        Raises:
            NoImageLoadedError: If nothing has been opened yet
        """
        if self._handle is None:
            raise NoImageLoadedError()
        return self._handle

    @property
    def width(self) -> int:
        return self.backend.width(self.image())

    @property
    def height(self) -> int:
        return self.backend.height(self.image())

    def resize(
        self,
        width: Optional[int] = None,
        height: Optional[int] = None,
        master: Optional[Master] = None,
    ) -> "ImageEditor":
        self._handle = self.backend.resize(self.image(), width, height, master)
        return self

    def crop(
        self,
        width: int,
        height: int,
        offset_x: Offset = None,
        offset_y: Offset = None,
    ) -> "ImageEditor":
        self._handle = self.backend.crop(self.image(), width, height, offset_x, offset_y)
        return self

    def scale_and_crop(self, width: int, height: int) -> "ImageEditor":
        """Fill width x height: scale to cover the box, then centre-crop."""
        return self.resize(width, height, Master.INVERSE).crop(width, height)

    def rotate(self, degrees: float) -> "ImageEditor":
        self._handle = self.backend.rotate(self.image(), degrees)
        return self

    def flip(self, direction: FlipDirection) -> "ImageEditor":
        self._handle = self.backend.flip(self.image(), FlipDirection(direction))
        return self

    def sharpen(self, amount: int) -> "ImageEditor":
        self._handle = self.backend.sharpen(self.image(), amount)
        return self

    def reflection(
        self,
        height: Optional[int] = None,
        opacity: int = 100,
        fade_in: bool = False,
    ) -> "ImageEditor":
        self._handle = self.backend.reflection(self.image(), height, opacity, fade_in)
        return self

    def watermark(
        self,
        watermark: Union["ImageEditor", ImageHandle, str, Path],
        offset_x: Offset = None,
        offset_y: Offset = None,
        opacity: int = 100,
    ) -> "ImageEditor":
        """Overlay another editor's image, a handle, or an image under the web root."""
        mark = self.interpreter.resolve_watermark(watermark)
        self._handle = self.backend.watermark(self.image(), mark, offset_x, offset_y, opacity)
        return self

    def background(self, color: Union[str, tuple], opacity: int = 100) -> "ImageEditor":
        self._handle = self.backend.background(self.image(), color, opacity)
        return self

    def apply(self, params: Optional[Mapping[str, Any]]) -> "ImageEditor":
        """Run a parameter map (see thumbcache.operations) on the loaded image."""
        self._handle = self.interpreter.apply(self.image(), params)
        return self

    def save(self, path: Union[str, Path], quality: int = 100) -> bool:
        return self.backend.save(self.image(), str(path), quality)

    def render(self, image_type: Optional[str] = None, quality: int = 100) -> bytes:
        return self.backend.render(self.image(), image_type, quality)

    def to_bytes(self) -> bytes:
        """Rendered image, or b"" when nothing can be rendered."""
        try:
            return self.render()
        except ThumbnailError as exc:
            logger.debug(f"Nothing to render: {exc}")
            return b""
