"""
Operation interpreter for thumbnail parameter maps.

A parameter map is an ordered program: each key names an operation and
each value holds its arguments, either as a bare scalar (the operation's
primary argument) or as a mapping of named fields.

    {"resize": {"width": 200, "height": 150}, "rotate": 90, "quality": 80}

The interpreter validates the whole map up front (compile) and then runs
the steps in order against an image backend (apply), threading the image
handle from one step to the next.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, List, Mapping, Optional, Union

from thumbcache.errors import SourceNotFoundError, ValidationError
from thumbcache.imaging.base import ImageBackend, ImageHandle
from thumbcache.imaging.geometry import Master, coerce_flip, coerce_master

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Scalar:
    """Bare operation argument, e.g. {"rotate": 90}."""

    value: Any


@dataclass(frozen=True)
class Structured:
    """Named operation arguments, e.g. {"rotate": {"degrees": 90}}."""

    fields: Mapping[str, Any]

    def get(self, name: str, default: Any = None) -> Any:
        """Field value, with None treated as absent."""
        value = self.fields.get(name)
        return default if value is None else value

    def require(self, operation: str, name: str) -> Any:
        value = self.fields.get(name)
        if value is None:
            raise ValidationError(operation, name)
        return value


ParamValue = Union[Scalar, Structured]


def to_param_value(raw: Any) -> ParamValue:
    """Tag a raw parameter value as Scalar or Structured."""
    if isinstance(raw, Mapping):
        return Structured(dict(raw))
    return Scalar(raw)


@dataclass
class Step:
    """One validated operation with its resolved arguments."""

    operation: str
    args: Dict[str, Any] = field(default_factory=dict)


def _number(operation: str, name: str, value: Any) -> Union[int, float]:
    if isinstance(value, bool):
        raise ValidationError(operation, name, f'Param "{name}" of action "{operation}" must be a number')
    if isinstance(value, (int, float)):
        return value
    if isinstance(value, str):
        try:
            number = float(value)
        except ValueError:
            pass
        else:
            return int(number) if number.is_integer() else number
    raise ValidationError(operation, name, f'Param "{name}" of action "{operation}" must be a number')


def _optional_number(operation: str, name: str, value: Any) -> Optional[Union[int, float]]:
    return None if value is None else _number(operation, name, value)


def _offset(operation: str, name: str, value: Any) -> Any:
    if value is None or isinstance(value, bool):
        return value
    return int(_number(operation, name, value))


def _structured(operation: str, value: ParamValue) -> Structured:
    if not isinstance(value, Structured):
        raise ValidationError(
            operation, None, f'Action "{operation}" expects a mapping of named params'
        )
    return value


def _primary(operation: str, name: str, value: ParamValue) -> Any:
    """Primary argument of a dual-form operation."""
    if isinstance(value, Structured):
        return value.require(operation, name)
    return value.value


def _parse_resize(operation: str, value: ParamValue) -> Dict[str, Any]:
    args = _structured(operation, value)
    try:
        master = coerce_master(args.get("master"))
    except (TypeError, ValueError) as exc:
        raise ValidationError(operation, "master", str(exc)) from exc
    return {
        "width": _optional_number(operation, "width", args.get("width")),
        "height": _optional_number(operation, "height", args.get("height")),
        "master": master,
    }


def _parse_crop(operation: str, value: ParamValue) -> Dict[str, Any]:
    args = _structured(operation, value)
    if args.get("width") is None or args.get("height") is None:
        raise ValidationError(
            operation,
            "width" if args.get("width") is None else "height",
            f'Params "width" and "height" is required for action "{operation}"',
        )
    return {
        "width": int(_number(operation, "width", args.get("width"))),
        "height": int(_number(operation, "height", args.get("height"))),
        "offset_x": _offset(operation, "offset_x", args.get("offset_x")),
        "offset_y": _offset(operation, "offset_y", args.get("offset_y")),
    }


def _parse_scale_and_crop(operation: str, value: ParamValue) -> Dict[str, Any]:
    args = _structured(operation, value)
    return {
        "width": int(_number(operation, "width", args.require(operation, "width"))),
        "height": int(_number(operation, "height", args.require(operation, "height"))),
    }


def _parse_rotate(operation: str, value: ParamValue) -> Dict[str, Any]:
    return {"degrees": _number(operation, "degrees", _primary(operation, "degrees", value))}


def _parse_flip(operation: str, value: ParamValue) -> Dict[str, Any]:
    direction = _primary(operation, "direction", value)
    try:
        return {"direction": coerce_flip(direction)}
    except (TypeError, ValueError) as exc:
        raise ValidationError(operation, "direction", str(exc)) from exc


def _parse_sharpen(operation: str, value: ParamValue) -> Dict[str, Any]:
    return {"amount": _number(operation, "amount", _primary(operation, "amount", value))}


def _parse_reflection(operation: str, value: ParamValue) -> Dict[str, Any]:
    args = _structured(operation, value)
    height = _optional_number(operation, "height", args.get("height"))
    return {
        "height": None if height is None else int(height),
        "opacity": _number(operation, "opacity", args.get("opacity", 100)),
        "fade_in": bool(args.get("fade_in", False)),
    }


def _is_image_source(candidate: Any) -> bool:
    return (
        isinstance(candidate, (ImageHandle, str, Path))
        or callable(getattr(candidate, "image", None))
    )


def _parse_watermark(operation: str, value: ParamValue) -> Dict[str, Any]:
    if isinstance(value, Scalar):
        args = Structured({"watermark": value.value})
    else:
        args = value
    source = args.require(operation, "watermark")
    if not _is_image_source(source):
        raise ValidationError(
            operation,
            "watermark",
            f'Param "watermark" of action "{operation}" must be an image or a path, '
            f"got {type(source).__name__}",
        )
    return {
        "watermark": source,
        "offset_x": _offset(operation, "offset_x", args.get("offset_x")),
        "offset_y": _offset(operation, "offset_y", args.get("offset_y")),
        "opacity": _number(operation, "opacity", args.get("opacity", 100)),
    }


def _parse_background(operation: str, value: ParamValue) -> Dict[str, Any]:
    color = _primary(operation, "color", value)
    if color is None:
        raise ValidationError(operation, "color")
    opacity = value.get("opacity", 100) if isinstance(value, Structured) else 100
    return {"color": color, "opacity": _number(operation, "opacity", opacity)}


def _parse_quality(operation: str, value: ParamValue) -> Dict[str, Any]:
    raw = _primary(operation, "value", value)
    if raw is None:
        raise ValidationError(operation, "value", f'Param "{operation}" can\'t be empty')
    quality = int(_number(operation, "value", raw))
    if not 0 <= quality <= 100:
        raise ValidationError(
            operation, "value", f'Param "{operation}" must be between 0 and 100, got {quality}'
        )
    return {"value": quality}


def _parse_type(operation: str, value: ParamValue) -> Dict[str, Any]:
    image_type = _primary(operation, "value", value)
    if image_type is None:
        return {"value": None}
    if not isinstance(image_type, str) or not image_type.strip("."):
        raise ValidationError(operation, "value", f'Param "{operation}" must be a file extension')
    return {"value": image_type.lstrip(".")}


# operation name -> argument parser
PARSERS: Dict[str, Callable[[str, ParamValue], Dict[str, Any]]] = {
    "resize": _parse_resize,
    "crop": _parse_crop,
    "scaleAndCrop": _parse_scale_and_crop,
    "rotate": _parse_rotate,
    "flip": _parse_flip,
    "sharpen": _parse_sharpen,
    "reflection": _parse_reflection,
    "watermark": _parse_watermark,
    "background": _parse_background,
    "quality": _parse_quality,
    "type": _parse_type,
}


class OperationInterpreter:
    """
    Runs parameter maps against an image backend.

    Args:
        backend: Image backend used for every operation
        web_root: Directory that watermark paths are resolved against
    """

    def __init__(self, backend: ImageBackend, web_root: Union[str, Path] = "."):
        self.backend = backend
        self.web_root = Path(web_root)

    def compile(self, params: Optional[Mapping[str, Any]]) -> List[Step]:
        """
        Validate a parameter map and turn it into steps.

        Raises:
            ValidationError: Unknown operation or missing/malformed field
        """
        steps = []
        for operation, raw in (params or {}).items():
            parser = PARSERS.get(operation)
            if parser is None:
                raise ValidationError(operation)
            steps.append(Step(operation, parser(operation, to_param_value(raw))))
        return steps

    def apply(self, image: ImageHandle, params: Optional[Mapping[str, Any]]) -> ImageHandle:
        """
        Apply a parameter map to an image.

        The map is validated completely before the first operation runs.

        Returns:
            ImageHandle: Handle of the transformed image
        """
        for step in self.compile(params):
            image = self.run(image, step)
        return image

    def run(self, image: ImageHandle, step: Step) -> ImageHandle:
        """Run one compiled step."""
        args = step.args
        backend = self.backend
        logger.debug(f"Applying {step.operation} {args}")

        if step.operation == "resize":
            return backend.resize(image, args["width"], args["height"], args["master"])
        if step.operation == "crop":
            return backend.crop(
                image, args["width"], args["height"], args["offset_x"], args["offset_y"]
            )
        if step.operation == "scaleAndCrop":
            image = backend.resize(image, args["width"], args["height"], Master.INVERSE)
            return backend.crop(image, args["width"], args["height"])
        if step.operation == "rotate":
            return backend.rotate(image, args["degrees"])
        if step.operation == "flip":
            return backend.flip(image, args["direction"])
        if step.operation == "sharpen":
            return backend.sharpen(image, args["amount"])
        if step.operation == "reflection":
            return backend.reflection(image, args["height"], args["opacity"], args["fade_in"])
        if step.operation == "watermark":
            mark = self.resolve_watermark(args["watermark"])
            return backend.watermark(
                image, mark, args["offset_x"], args["offset_y"], args["opacity"]
            )
        if step.operation == "background":
            return backend.background(image, args["color"], args["opacity"])
        # quality and type only affect how the result is saved
        return image

    def resolve_watermark(self, watermark: Any) -> ImageHandle:
        """
        Turn a watermark argument into an image handle.

        Handles are used as-is, editors contribute their loaded image, and
        paths are resolved against the web root and opened.

        Raises:
            ValidationError: Unsupported type or unreadable watermark file
        """
        if isinstance(watermark, ImageHandle):
            return watermark
        if isinstance(watermark, (str, Path)):
            path = self.web_root / str(watermark).lstrip("/")
            try:
                return self.backend.open(str(path))
            except SourceNotFoundError as exc:
                raise ValidationError(
                    "watermark", "watermark", f"Watermark image not available: {path}"
                ) from exc
        loader = getattr(watermark, "image", None)
        if callable(loader):
            return loader()
        raise ValidationError(
            "watermark",
            "watermark",
            f'Param "watermark" must be an image or a path, got {type(watermark).__name__}',
        )

    def output_quality(self, params: Optional[Mapping[str, Any]], default: int) -> int:
        """Quality to save with: the map's quality step, else default."""
        if params and "quality" in params:
            return _parse_quality("quality", to_param_value(params["quality"]))["value"]
        return default

    def output_type(self, params: Optional[Mapping[str, Any]]) -> Optional[str]:
        """
        Extension named by the map's type step, or None when it names none.

        Raises:
            ValidationError: If the type is malformed or the backend cannot encode it
        """
        if not params or params.get("type") is None:
            return None
        image_type = _parse_type("type", to_param_value(params["type"]))["value"]
        if image_type is not None:
            self._check_encodable(image_type)
        return image_type

    def output_extension(self, source: Union[str, Path], params: Optional[Mapping[str, Any]]) -> str:
        """
        Extension of the cached file: the map's type step, else the source's.

        Raises:
            ValidationError: If neither names an extension the backend can encode
        """
        image_type = self.output_type(params)
        if image_type is not None:
            return image_type
        extension = Path(str(source)).suffix.lstrip(".")
        if not extension:
            raise ValidationError("type", "type", f"Cannot determine output type for {source}")
        self._check_encodable(extension)
        return extension

    def _check_encodable(self, extension: str) -> None:
        if not self.backend.supports(extension):
            raise ValidationError(
                "type",
                "type",
                f'Image type "{extension}" is not supported by the {self.backend.name} backend',
            )
