"""
Mock image backend for testing and development.

Tracks image dimensions and the operations applied without touching
pixels. Saved files contain a short text description of the image.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Tuple, Union

from thumbcache.errors import SourceNotFoundError
from thumbcache.imaging.base import ImageBackend, ImageHandle
from thumbcache.imaging.geometry import (
    FlipDirection,
    Master,
    Offset,
    calculate_crop,
    calculate_resize,
    normalize_degrees,
    rotated_size,
)

logger = logging.getLogger(__name__)


@dataclass
class MockImage:
    """Dimensions plus the history of operations applied."""

    width: int
    height: int
    operations: List[Tuple] = field(default_factory=list)

    def derive(self, width: int, height: int, operation: Tuple) -> "MockImage":
        return MockImage(width, height, self.operations + [operation])

    def describe(self) -> str:
        ops = ";".join(str(op) for op in self.operations)
        return f"mock {self.width}x{self.height} [{ops}]"


class MockImageBackend(ImageBackend):
    """
    Mock image backend for testing/development.

    Any existing file opens as an image of default_size unless a size was
    registered for its path. Every call is recorded in `calls`, and every
    save in `saves` as (width, height, quality).
    """

    name = "mock"

    def __init__(
        self,
        default_size: Tuple[int, int] = (800, 600),
        sizes: Optional[Dict[str, Tuple[int, int]]] = None,
        **kwargs,
    ):
        """
        Initialize mock backend.

        Args:
            default_size: Size reported for files without a registered size
            sizes: Optional mapping of path -> (width, height)
            **kwargs: Ignored arguments (accepts any args for compatibility)
        """
        self.default_size = default_size
        self.sizes: Dict[str, Tuple[int, int]] = dict(sizes or {})
        self.calls: List[Tuple] = []
        self.saves: List[Tuple[int, int, int]] = []

    def register(self, path: Union[str, Path], width: int, height: int) -> None:
        """Report width x height for path when it is opened."""
        self.sizes[str(path)] = (width, height)

    def count(self, operation: str) -> int:
        """Number of recorded calls of an operation."""
        return sum(1 for call in self.calls if call[0] == operation)

    def _record(self, *call) -> None:
        self.calls.append(call)
        logger.debug(f"Mock backend: {call}")

    def _step(self, handle: ImageHandle, width: int, height: int, operation: Tuple) -> ImageHandle:
        self._record(*operation)
        image = handle.image.derive(width, height, operation)
        return ImageHandle(image=image, source=handle.source, format=handle.format)

    def open(self, path: str) -> ImageHandle:
        path = str(path)
        if not Path(path).is_file():
            raise SourceNotFoundError(path, "no such file")
        width, height = self.sizes.get(path, self.default_size)
        self._record("open", path)
        image_format = Path(path).suffix.lstrip(".").upper() or None
        return ImageHandle(image=MockImage(width, height), source=path, format=image_format)

    def width(self, handle: ImageHandle) -> int:
        return handle.image.width

    def height(self, handle: ImageHandle) -> int:
        return handle.image.height

    def resize(
        self,
        handle: ImageHandle,
        width: Optional[int] = None,
        height: Optional[int] = None,
        master: Optional[Master] = None,
    ) -> ImageHandle:
        new_width, new_height = calculate_resize(
            handle.image.width, handle.image.height, width, height, master
        )
        return self._step(handle, new_width, new_height, ("resize", width, height, master))

    def crop(
        self,
        handle: ImageHandle,
        width: int,
        height: int,
        offset_x: Offset = None,
        offset_y: Offset = None,
    ) -> ImageHandle:
        _, _, new_width, new_height = calculate_crop(
            handle.image.width, handle.image.height, width, height, offset_x, offset_y
        )
        return self._step(
            handle, new_width, new_height, ("crop", width, height, offset_x, offset_y)
        )

    def rotate(self, handle: ImageHandle, degrees: float) -> ImageHandle:
        degrees = normalize_degrees(degrees)
        new_width, new_height = rotated_size(handle.image.width, handle.image.height, degrees)
        return self._step(handle, new_width, new_height, ("rotate", degrees))

    def flip(self, handle: ImageHandle, direction: FlipDirection) -> ImageHandle:
        return self._step(
            handle, handle.image.width, handle.image.height, ("flip", FlipDirection(direction))
        )

    def sharpen(self, handle: ImageHandle, amount: int) -> ImageHandle:
        return self._step(handle, handle.image.width, handle.image.height, ("sharpen", amount))

    def reflection(
        self,
        handle: ImageHandle,
        height: Optional[int] = None,
        opacity: int = 100,
        fade_in: bool = False,
    ) -> ImageHandle:
        image_height = handle.image.height
        if height is None or height > image_height:
            height = image_height
        return self._step(
            handle,
            handle.image.width,
            image_height + max(int(height), 1),
            ("reflection", height, opacity, fade_in),
        )

    def watermark(
        self,
        handle: ImageHandle,
        watermark: ImageHandle,
        offset_x: Offset = None,
        offset_y: Offset = None,
        opacity: int = 100,
    ) -> ImageHandle:
        return self._step(
            handle,
            handle.image.width,
            handle.image.height,
            ("watermark", watermark.source, offset_x, offset_y, opacity),
        )

    def background(
        self,
        handle: ImageHandle,
        color: Union[str, tuple],
        opacity: int = 100,
    ) -> ImageHandle:
        return self._step(
            handle, handle.image.width, handle.image.height, ("background", color, opacity)
        )

    def save(self, handle: ImageHandle, path: str, quality: int = 100) -> bool:
        image = handle.image
        self._record("save", str(path), quality)
        Path(path).write_text(image.describe())
        self.saves.append((image.width, image.height, quality))
        logger.info(f"Mock backend: saved {image.width}x{image.height} to {path}")
        return True

    def render(
        self,
        handle: ImageHandle,
        image_type: Optional[str] = None,
        quality: int = 100,
    ) -> bytes:
        self._record("render", image_type, quality)
        return handle.image.describe().encode("utf-8")
