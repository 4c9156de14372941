"""
Pillow helpers shared by the image backends.

Provides colour parsing, format detection from file extensions and mode
conversion before encoding.
"""

import logging
from pathlib import Path
from typing import Optional, Tuple, Union

from PIL import Image, ImageColor

logger = logging.getLogger(__name__)

# Extension -> Pillow format name
EXTENSION_FORMATS = {
    "jpg": "JPEG",
    "jpeg": "JPEG",
    "jpe": "JPEG",
    "png": "PNG",
    "gif": "GIF",
    "webp": "WEBP",
    "bmp": "BMP",
    "tif": "TIFF",
    "tiff": "TIFF",
}

# Formats that accept a quality setting
QUALITY_FORMATS = {"JPEG", "WEBP"}

# Formats that cannot store an alpha channel
OPAQUE_FORMATS = {"JPEG", "BMP"}


def format_for_extension(extension: str) -> str:
    """
    Map a file extension (with or without dot) to a Pillow format name.

    Raises:
        ValueError: If the extension is not a supported image type
    """
    key = extension.lower().lstrip(".")
    try:
        return EXTENSION_FORMATS[key]
    except KeyError:
        raise ValueError(f"Unsupported image type: {extension!r}") from None


def format_for_path(path: Union[str, Path]) -> str:
    """Pillow format name for a file path, based on its extension."""
    return format_for_extension(Path(path).suffix)


def parse_color(color: Union[str, tuple], opacity: int = 100) -> Tuple[int, int, int, int]:
    """
    Parse a colour into an RGBA tuple.

    Accepts "#rgb", "#rrggbb", bare hex ("fff"), CSS names, or an RGB(A)
    tuple. opacity (0-100) sets the alpha channel.

    Args:
        color: Colour to parse
        opacity: Percentage opacity of the resulting colour

    Returns:
        Tuple[int, int, int, int]: (r, g, b, a)

    Example:
        >>> parse_color("#f00", 50)
        (255, 0, 0, 128)
    """
    if isinstance(color, (tuple, list)):
        r, g, b = (int(c) for c in color[:3])
    else:
        text = str(color).strip()
        if not text.startswith("#") and all(c in "0123456789abcdefABCDEF" for c in text) \
                and len(text) in (3, 6):
            text = f"#{text}"
        r, g, b = ImageColor.getrgb(text)[:3]
    alpha = int(round(255 * clamp_percent(opacity) / 100))
    return r, g, b, alpha


def clamp_percent(value: Optional[float]) -> float:
    """Clamp a percentage into 0-100 (None counts as 100)."""
    if value is None:
        return 100.0
    return float(min(max(value, 0), 100))


def prepare_for_format(image: Image.Image, image_format: str) -> Image.Image:
    """
    Convert colour modes the target format cannot store.

    RGBA/LA/P images are flattened onto white for JPEG and BMP; other
    formats keep their mode.
    """
    if image_format in OPAQUE_FORMATS and image.mode not in ("RGB", "L"):
        original_mode = image.mode
        rgba = image.convert("RGBA")
        flattened = Image.new("RGB", rgba.size, (255, 255, 255))
        flattened.paste(rgba, mask=rgba.getchannel("A"))
        logger.debug(f"Flattened {original_mode} image for {image_format}")
        return flattened
    return image


def save_kwargs(image_format: str, quality: int) -> dict:
    """Keyword arguments for Image.save for the given format and quality."""
    kwargs = {"format": image_format}
    if image_format in QUALITY_FORMATS:
        kwargs["quality"] = int(clamp_percent(quality))
    elif image_format == "PNG":
        # PNG is lossless; quality maps onto the zlib compression level
        kwargs["compress_level"] = 9 - int(round(clamp_percent(quality) * 9 / 100))
    return kwargs
