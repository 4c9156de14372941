"""
Tests for parameter map validation and interpretation.

Validation is checked through compile(); execution uses the mock backend
for call order and sizes, and Pillow where pixels matter.
"""

import pytest

from thumbcache.editor import ImageEditor
from thumbcache.errors import ValidationError
from thumbcache.imaging.geometry import FlipDirection, Master
from thumbcache.operations import (
    OperationInterpreter,
    Scalar,
    Structured,
    to_param_value,
)


@pytest.fixture
def interpreter(mock_backend, web_root):
    return OperationInterpreter(mock_backend, web_root)


@pytest.fixture
def source(mock_backend, make_image):
    path = make_image("source.jpg", size=(10, 10))
    mock_backend.register(path, 1000, 800)
    return mock_backend.open(str(path))


class TestParamValue:
    """Test the scalar/structured dual form."""

    def test_tagging(self):
        assert to_param_value(90) == Scalar(90)
        assert to_param_value({"degrees": 90}) == Structured({"degrees": 90})

    def test_structured_treats_none_as_absent(self):
        args = Structured({"width": None})
        assert args.get("width", 5) == 5
        with pytest.raises(ValidationError):
            args.require("crop", "width")


class TestCompile:
    """Test up-front validation of parameter maps."""

    def test_unknown_operation(self, interpreter):
        with pytest.raises(ValidationError) as exc_info:
            interpreter.compile({"blur": 5})

        assert exc_info.value.operation == "blur"
        assert str(exc_info.value) == 'Action "blur" is not found'

    def test_crop_requires_height(self, interpreter):
        with pytest.raises(ValidationError) as exc_info:
            interpreter.compile({"crop": {"width": 100}})

        assert exc_info.value.operation == "crop"
        assert exc_info.value.field == "height"

    def test_crop_with_both_dimensions(self, interpreter):
        steps = interpreter.compile({"crop": {"width": 100, "height": 50}})

        assert steps[0].args == {"width": 100, "height": 50, "offset_x": None, "offset_y": None}

    def test_crop_rejects_scalar(self, interpreter):
        with pytest.raises(ValidationError):
            interpreter.compile({"crop": 100})

    def test_scale_and_crop_requires_both(self, interpreter):
        with pytest.raises(ValidationError) as exc_info:
            interpreter.compile({"scaleAndCrop": {"height": 100}})
        assert exc_info.value.field == "width"

    def test_resize_master_by_name(self, interpreter):
        steps = interpreter.compile({"resize": {"width": 100, "master": "precise"}})

        assert steps[0].args == {"width": 100, "height": None, "master": Master.PRECISE}

    def test_resize_bad_master(self, interpreter):
        with pytest.raises(ValidationError) as exc_info:
            interpreter.compile({"resize": {"width": 100, "master": "sideways"}})
        assert exc_info.value.field == "master"

    def test_numeric_strings_accepted(self, interpreter):
        steps = interpreter.compile({"rotate": "90", "sharpen": {"amount": "12.5"}})

        assert steps[0].args == {"degrees": 90}
        assert steps[1].args == {"amount": 12.5}

    def test_non_numeric_rejected(self, interpreter):
        with pytest.raises(ValidationError):
            interpreter.compile({"rotate": "ninety"})

    def test_bool_is_not_a_number(self, interpreter):
        with pytest.raises(ValidationError):
            interpreter.compile({"rotate": True})

    def test_structured_rotate_requires_degrees(self, interpreter):
        with pytest.raises(ValidationError) as exc_info:
            interpreter.compile({"rotate": {}})
        assert exc_info.value.field == "degrees"

    def test_flip_forms(self, interpreter):
        steps = interpreter.compile({"flip": "vertical"})
        assert steps[0].args == {"direction": FlipDirection.VERTICAL}

        steps = interpreter.compile({"flip": {"direction": 0x11}})
        assert steps[0].args == {"direction": FlipDirection.HORIZONTAL}

    def test_flip_missing_direction(self, interpreter):
        with pytest.raises(ValidationError):
            interpreter.compile({"flip": None})

    def test_background_requires_color(self, interpreter):
        with pytest.raises(ValidationError) as exc_info:
            interpreter.compile({"background": {"opacity": 50}})
        assert exc_info.value.field == "color"

    def test_reflection_defaults(self, interpreter):
        steps = interpreter.compile({"reflection": {}})
        assert steps[0].args == {"height": None, "opacity": 100, "fade_in": False}

    @pytest.mark.parametrize("quality", [-1, 101])
    def test_quality_out_of_range(self, interpreter, quality):
        with pytest.raises(ValidationError):
            interpreter.compile({"quality": quality})

    def test_quality_empty(self, interpreter):
        with pytest.raises(ValidationError):
            interpreter.compile({"quality": None})

    def test_type_strips_dot(self, interpreter):
        assert interpreter.compile({"type": ".png"})[0].args == {"value": "png"}

    def test_type_must_be_string(self, interpreter):
        with pytest.raises(ValidationError):
            interpreter.compile({"type": 5})

    def test_watermark_rejects_numbers(self, interpreter):
        with pytest.raises(ValidationError):
            interpreter.compile({"watermark": 42})

    def test_whole_map_checked_before_running(self, interpreter, source, mock_backend):
        with pytest.raises(ValidationError):
            interpreter.apply(source, {"resize": {"width": 100}, "blur": 1})

        assert mock_backend.count("resize") == 0, "No step should run for an invalid map"


class TestApply:
    """Test execution order and results."""

    def test_steps_run_in_map_order(self, interpreter, source, mock_backend):
        interpreter.apply(source, {"rotate": 90, "resize": {"width": 100}, "flip": "horizontal"})

        ops = [call[0] for call in mock_backend.calls if call[0] != "open"]
        assert ops == ["rotate", "resize", "flip"]

    def test_resize_then_crop(self, interpreter, source, mock_backend):
        result = interpreter.apply(
            source,
            {"resize": {"width": 500, "height": 500}, "crop": {"width": 300, "height": 200}},
        )

        assert (mock_backend.width(result), mock_backend.height(result)) == (300, 200)

    def test_scale_and_crop(self, interpreter, source, mock_backend):
        result = interpreter.apply(source, {"scaleAndCrop": {"width": 300, "height": 300}})

        assert (mock_backend.width(result), mock_backend.height(result)) == (300, 300)
        resize = next(call for call in mock_backend.calls if call[0] == "resize")
        assert resize[3] == Master.INVERSE

    def test_quality_and_type_do_not_touch_image(self, interpreter, source):
        assert interpreter.apply(source, {"quality": 50, "type": "png"}) is source

    def test_empty_map_returns_input(self, interpreter, source):
        assert interpreter.apply(source, {}) is source
        assert interpreter.apply(source, None) is source

    def test_rotate_dual_forms_match(self, pillow_backend, make_image, web_root):
        interpreter = OperationInterpreter(pillow_backend, web_root)
        path = make_image("dual.png", size=(40, 20), color=(10, 200, 30, 255), mode="RGBA")
        image = pillow_backend.open(str(path))

        scalar = interpreter.apply(image, {"rotate": 90})
        structured = interpreter.apply(image, {"rotate": {"degrees": 90}})

        assert scalar.image.size == (20, 40)
        assert scalar.image.tobytes() == structured.image.tobytes()


class TestWatermark:
    """Test the accepted watermark sources."""

    def test_path_resolved_under_web_root(self, interpreter, source, mock_backend, make_image):
        make_image("www/marks/logo.png", size=(10, 10))

        interpreter.apply(source, {"watermark": "/marks/logo.png"})

        call = next(call for call in mock_backend.calls if call[0] == "watermark")
        assert call[1].endswith("marks/logo.png")

    def test_structured_with_offsets(self, interpreter, source, mock_backend, make_image):
        make_image("www/logo.png", size=(10, 10))

        interpreter.apply(
            source, {"watermark": {"watermark": "logo.png", "offset_x": True, "opacity": 40}}
        )

        call = next(call for call in mock_backend.calls if call[0] == "watermark")
        assert call[2:] == (True, None, 40)

    def test_editor_source(self, interpreter, source, mock_backend, make_image):
        mark_path = make_image("mark.png", size=(10, 10))
        editor = ImageEditor(mock_backend).open(mark_path)

        interpreter.apply(source, {"watermark": editor})

        call = next(call for call in mock_backend.calls if call[0] == "watermark")
        assert call[1] == str(mark_path)

    def test_handle_source(self, interpreter, source, mock_backend, make_image):
        mark = mock_backend.open(str(make_image("mark.png", size=(10, 10))))

        interpreter.apply(source, {"watermark": mark})

        assert mock_backend.count("watermark") == 1

    def test_missing_file(self, interpreter, source):
        with pytest.raises(ValidationError):
            interpreter.apply(source, {"watermark": "/marks/none.png"})


class TestOutputSettings:
    """Test quality and extension resolution."""

    def test_quality_from_map(self, interpreter):
        assert interpreter.output_quality({"quality": {"value": 40}}, 90) == 40

    def test_quality_default(self, interpreter):
        assert interpreter.output_quality({"resize": {"width": 10}}, 90) == 90

    def test_extension_from_type(self, interpreter):
        assert interpreter.output_extension("photo.jpg", {"type": "webp"}) == "webp"

    def test_extension_from_source(self, interpreter):
        assert interpreter.output_extension("dir.v2/photo.JPG", {}) == "JPG"

    def test_extension_missing(self, interpreter):
        with pytest.raises(ValidationError):
            interpreter.output_extension("photo", {})

    def test_unencodable_type_rejected(self, pillow_backend, web_root):
        interpreter = OperationInterpreter(pillow_backend, web_root)

        with pytest.raises(ValidationError) as exc_info:
            interpreter.output_extension("photo.jpg", {"type": "svg"})
        assert exc_info.value.field == "type"

    def test_unencodable_source_extension_rejected(self, pillow_backend, web_root):
        interpreter = OperationInterpreter(pillow_backend, web_root)

        with pytest.raises(ValidationError):
            interpreter.output_extension("photo.xyz", {})

    def test_output_type_structured(self, interpreter):
        assert interpreter.output_type({"type": {"value": ".png"}}) == "png"
        assert interpreter.output_type({"resize": {"width": 10}}) is None

    def test_structured_type_requires_value(self, interpreter):
        with pytest.raises(ValidationError):
            interpreter.output_extension("photo.gif", {"type": {}})


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
