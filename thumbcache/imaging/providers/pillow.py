"""
Pillow image backend.

Implements every ImageBackend primitive with PIL. Target sizes come from
thumbcache.imaging.geometry so the output dimensions match every other
backend for the same parameter map.
"""

import io
import logging
from pathlib import Path
from typing import Optional, Union

from PIL import Image, ImageChops, ImageFilter, ImageOps, UnidentifiedImageError

from thumbcache.errors import SourceNotFoundError
from thumbcache.imaging.base import ImageBackend, ImageHandle
from thumbcache.imaging.geometry import (
    FlipDirection,
    Master,
    Offset,
    calculate_crop,
    calculate_resize,
    normalize_degrees,
)
from thumbcache.imaging.utils import (
    EXTENSION_FORMATS,
    clamp_percent,
    format_for_extension,
    format_for_path,
    parse_color,
    prepare_for_format,
    save_kwargs,
)

logger = logging.getLogger(__name__)


class PillowImageBackend(ImageBackend):
    """
    Image backend built on Pillow.

    Handles wrap PIL.Image.Image objects. Operations return new handles;
    the input handle is left untouched so a caller can keep the original.
    """

    name = "pillow"

    def __init__(self, resample: Image.Resampling = Image.Resampling.LANCZOS, **kwargs):
        """
        Initialize the backend.

        Args:
            resample: Resampling filter used for resize and rotate
            **kwargs: Ignored (accepts factory arguments for other backends)
        """
        self.resample = resample

    def open(self, path: str) -> ImageHandle:
        if not Path(path).is_file():
            raise SourceNotFoundError(path, "no such file")
        try:
            with Image.open(path) as img:
                img.load()
                image_format = img.format
                image = img.copy()
        except (UnidentifiedImageError, OSError) as exc:
            raise SourceNotFoundError(path, str(exc)) from exc

        logger.debug(f"Opened {path}: {image.size[0]}x{image.size[1]} {image_format}")
        return ImageHandle(image=image, source=str(path), format=image_format)

    def width(self, handle: ImageHandle) -> int:
        return handle.image.size[0]

    def height(self, handle: ImageHandle) -> int:
        return handle.image.size[1]

    def _derive(self, handle: ImageHandle, image: Image.Image) -> ImageHandle:
        return ImageHandle(image=image, source=handle.source, format=handle.format)

    def resize(
        self,
        handle: ImageHandle,
        width: Optional[int] = None,
        height: Optional[int] = None,
        master: Optional[Master] = None,
    ) -> ImageHandle:
        size = calculate_resize(
            self.width(handle), self.height(handle), width, height, master
        )
        if size == handle.image.size:
            return handle
        return self._derive(handle, handle.image.resize(size, self.resample))

    def crop(
        self,
        handle: ImageHandle,
        width: int,
        height: int,
        offset_x: Offset = None,
        offset_y: Offset = None,
    ) -> ImageHandle:
        left, top, crop_width, crop_height = calculate_crop(
            self.width(handle), self.height(handle), width, height, offset_x, offset_y
        )
        box = (left, top, left + crop_width, top + crop_height)
        return self._derive(handle, handle.image.crop(box))

    def rotate(self, handle: ImageHandle, degrees: float) -> ImageHandle:
        degrees = normalize_degrees(degrees)
        if degrees == 0:
            return handle
        image = handle.image
        if image.mode != "RGBA":
            image = image.convert("RGBA")
        # PIL rotates counter-clockwise; the public contract is clockwise
        rotated = image.rotate(
            -degrees,
            resample=Image.Resampling.BICUBIC,
            expand=True,
            fillcolor=(0, 0, 0, 0),
        )
        return self._derive(handle, rotated)

    def flip(self, handle: ImageHandle, direction: FlipDirection) -> ImageHandle:
        if direction == FlipDirection.HORIZONTAL:
            return self._derive(handle, ImageOps.mirror(handle.image))
        return self._derive(handle, ImageOps.flip(handle.image))

    def sharpen(self, handle: ImageHandle, amount: int) -> ImageHandle:
        amount = clamp_percent(amount)
        if amount <= 0:
            return handle
        sharpened = handle.image.filter(
            ImageFilter.UnsharpMask(radius=2, percent=int(amount * 3), threshold=3)
        )
        return self._derive(handle, sharpened)

    def reflection(
        self,
        handle: ImageHandle,
        height: Optional[int] = None,
        opacity: int = 100,
        fade_in: bool = False,
    ) -> ImageHandle:
        image = handle.image.convert("RGBA")
        width, image_height = image.size
        if height is None or height > image_height:
            height = image_height
        height = max(int(height), 1)
        peak = 255 * clamp_percent(opacity) / 100

        reflected = ImageOps.flip(image).crop((0, 0, width, height))
        alpha = Image.new("L", (width, height))
        for row in range(height):
            progress = row / height
            level = peak * (progress if fade_in else 1 - progress)
            alpha.paste(int(level), (0, row, width, row + 1))
        reflected.putalpha(ImageChops.multiply(alpha, reflected.getchannel("A")))

        canvas = Image.new("RGBA", (width, image_height + height), (0, 0, 0, 0))
        canvas.paste(image, (0, 0))
        canvas.paste(reflected, (0, image_height))
        return self._derive(handle, canvas)

    def watermark(
        self,
        handle: ImageHandle,
        watermark: ImageHandle,
        offset_x: Offset = None,
        offset_y: Offset = None,
        opacity: int = 100,
    ) -> ImageHandle:
        base = handle.image.convert("RGBA")
        mark = watermark.image.convert("RGBA")
        left, top, mark_width, mark_height = calculate_crop(
            base.size[0], base.size[1], mark.size[0], mark.size[1], offset_x, offset_y
        )
        mark = mark.crop((0, 0, mark_width, mark_height))

        opacity = clamp_percent(opacity)
        if opacity < 100:
            faded = mark.getchannel("A").point(lambda a: int(a * opacity / 100))
            mark.putalpha(faded)

        base.alpha_composite(mark, dest=(left, top))
        return self._derive(handle, base)

    def background(
        self,
        handle: ImageHandle,
        color: Union[str, tuple],
        opacity: int = 100,
    ) -> ImageHandle:
        rgba = parse_color(color, opacity)
        image = handle.image.convert("RGBA")
        canvas = Image.new("RGBA", image.size, rgba)
        canvas.alpha_composite(image)
        return self._derive(handle, canvas)

    def supports(self, extension: str) -> bool:
        return extension.lower().lstrip(".") in EXTENSION_FORMATS

    def save(self, handle: ImageHandle, path: str, quality: int = 100) -> bool:
        image_format = format_for_path(path)
        image = prepare_for_format(handle.image, image_format)
        image.save(path, **save_kwargs(image_format, quality))
        logger.debug(f"Saved {image.size[0]}x{image.size[1]} {image_format} to {path}")
        return True

    def render(
        self,
        handle: ImageHandle,
        image_type: Optional[str] = None,
        quality: int = 100,
    ) -> bytes:
        if image_type:
            image_format = format_for_extension(image_type)
        else:
            image_format = handle.format or "PNG"
        image = prepare_for_format(handle.image, image_format)
        buffer = io.BytesIO()
        image.save(buffer, **save_kwargs(image_format, quality))
        return buffer.getvalue()
