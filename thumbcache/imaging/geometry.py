"""
Dimension math shared by every image backend.

Resize master modes, crop offsets and rotation normalisation follow the
Kohana Image conventions the parameter maps were written against, so a
parameter map produces the same output size whichever backend runs it.
"""

import math
from enum import IntEnum
from typing import Optional, Tuple, Union


class Master(IntEnum):
    """Which dimension drives a resize."""

    NONE = 0x01
    WIDTH = 0x02
    HEIGHT = 0x03
    AUTO = 0x04
    INVERSE = 0x05
    PRECISE = 0x06


class FlipDirection(IntEnum):
    """Mirror axis for flip."""

    HORIZONTAL = 0x11
    VERTICAL = 0x12


# Crop/watermark offset: None = centre, True = right/bottom edge,
# negative int = measured from the right/bottom edge.
Offset = Union[None, bool, int]


def coerce_master(value) -> Optional[Master]:
    """
    Convert a master value from a parameter map into a Master.

    Accepts None, Master members, their integer codes, or names such as
    "inverse" (case-insensitive).

    Raises:
        ValueError: If the value does not name a master mode
    """
    if value is None or isinstance(value, Master):
        return value
    if isinstance(value, str):
        try:
            return Master[value.strip().upper()]
        except KeyError:
            raise ValueError(f"Unknown resize master: {value!r}") from None
    return Master(int(value))


def coerce_flip(value) -> FlipDirection:
    """Convert a flip direction (member, integer code or name) into FlipDirection."""
    if isinstance(value, FlipDirection):
        return value
    if isinstance(value, str):
        try:
            return FlipDirection[value.strip().upper()]
        except KeyError:
            raise ValueError(f"Unknown flip direction: {value!r}") from None
    return FlipDirection(int(value))


def calculate_resize(
    original_width: int,
    original_height: int,
    width: Optional[float] = None,
    height: Optional[float] = None,
    master: Optional[Master] = None,
) -> Tuple[int, int]:
    """
    Compute the target size of a resize.

    Args:
        original_width: Current image width
        original_height: Current image height
        width: Requested width (None or 0 = unconstrained)
        height: Requested height (None or 0 = unconstrained)
        master: Driving dimension, defaults to AUTO

    Returns:
        Tuple[int, int]: (width, height), each at least 1
    """
    if master is None:
        master = Master.AUTO
    elif master == Master.WIDTH and width:
        master = Master.AUTO
        height = None
    elif master == Master.HEIGHT and height:
        master = Master.AUTO
        width = None

    if not width and not height and master != Master.NONE:
        return original_width, original_height

    if not width:
        if master == Master.NONE:
            width = original_width
        else:
            master = Master.HEIGHT

    if not height:
        if master == Master.NONE:
            height = original_height
        else:
            master = Master.WIDTH

    if master == Master.AUTO:
        master = (
            Master.WIDTH
            if original_width / width > original_height / height
            else Master.HEIGHT
        )
    elif master == Master.INVERSE:
        master = (
            Master.HEIGHT
            if original_width / width > original_height / height
            else Master.WIDTH
        )

    if master == Master.WIDTH:
        height = original_height * width / original_width
    elif master == Master.HEIGHT:
        width = original_width * height / original_height
    elif master == Master.PRECISE:
        ratio = original_width / original_height
        if width / height > ratio:
            height = original_height * width / original_width
        else:
            width = original_width * height / original_height

    return max(int(round(width)), 1), max(int(round(height)), 1)


def _resolve_offset(offset: Offset, available: int) -> int:
    if offset is None:
        return int(round(available / 2))
    if offset is True:
        return available
    if offset is False:
        return 0
    if offset < 0:
        return available + int(offset)
    return int(offset)


def calculate_crop(
    original_width: int,
    original_height: int,
    width: int,
    height: int,
    offset_x: Offset = None,
    offset_y: Offset = None,
) -> Tuple[int, int, int, int]:
    """
    Compute the crop box for a crop request.

    Returns:
        Tuple[int, int, int, int]: (left, top, width, height) clamped to the image
    """
    width = min(int(width), original_width)
    height = min(int(height), original_height)

    left = max(_resolve_offset(offset_x, original_width - width), 0)
    top = max(_resolve_offset(offset_y, original_height - height), 0)

    width = max(min(width, original_width - left), 1)
    height = max(min(height, original_height - top), 1)
    return left, top, width, height


def normalize_degrees(degrees: float) -> float:
    """Bring a rotation into the range (-180, 180]."""
    degrees = float(degrees)
    while degrees > 180:
        degrees -= 360
    while degrees <= -180:
        degrees += 360
    return degrees


def rotated_size(width: int, height: int, degrees: float) -> Tuple[int, int]:
    """Size of the bounding box of a width x height image rotated by degrees."""
    radians = math.radians(normalize_degrees(degrees))
    cos_a = abs(math.cos(radians))
    sin_a = abs(math.sin(radians))
    return (
        int(round(width * cos_a + height * sin_a)),
        int(round(width * sin_a + height * cos_a)),
    )
