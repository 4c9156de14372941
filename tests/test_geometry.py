"""
Tests for the backend-independent dimension math.
"""

import pytest

from thumbcache.imaging.geometry import (
    FlipDirection,
    Master,
    calculate_crop,
    calculate_resize,
    coerce_flip,
    coerce_master,
    normalize_degrees,
    rotated_size,
)


class TestCalculateResize:
    """Test resize master modes."""

    def test_auto_fits_inside_box(self):
        assert calculate_resize(1000, 800, 500, 500) == (500, 400)

    def test_auto_is_default_master(self):
        assert calculate_resize(1000, 800, 500, 500, Master.AUTO) == calculate_resize(
            1000, 800, 500, 500
        )

    def test_inverse_covers_box(self):
        assert calculate_resize(1000, 800, 300, 300, Master.INVERSE) == (375, 300)

    def test_precise_covers_box_keeping_ratio(self):
        assert calculate_resize(800, 600, 300, 200, Master.PRECISE) == (300, 225)

    def test_none_ignores_aspect_ratio(self):
        assert calculate_resize(1000, 800, 300, 100, Master.NONE) == (300, 100)

    def test_none_keeps_missing_dimension(self):
        assert calculate_resize(1000, 800, 300, None, Master.NONE) == (300, 800)

    def test_width_only_keeps_ratio(self):
        assert calculate_resize(1000, 800, 500, None) == (500, 400)

    def test_height_only_keeps_ratio(self):
        assert calculate_resize(1000, 800, None, 200) == (250, 200)

    def test_width_master_ignores_height(self):
        assert calculate_resize(1000, 800, 500, 10, Master.WIDTH) == (500, 400)

    def test_height_master_ignores_width(self):
        assert calculate_resize(1000, 800, 10, 400, Master.HEIGHT) == (500, 400)

    def test_no_dimensions_keeps_size(self):
        assert calculate_resize(1000, 800) == (1000, 800)

    def test_upscaling_allowed(self):
        assert calculate_resize(100, 50, 400, None) == (400, 200)

    def test_never_below_one_pixel(self):
        width, height = calculate_resize(1000, 2, 10, None)
        assert (width, height) == (10, 1)


class TestCalculateCrop:
    """Test crop box placement."""

    def test_centered_by_default(self):
        assert calculate_crop(1000, 800, 300, 200) == (350, 300, 300, 200)

    def test_true_offsets_align_to_far_edges(self):
        assert calculate_crop(1000, 800, 300, 200, True, True) == (700, 600, 300, 200)

    def test_negative_offsets_measure_from_far_edge(self):
        left, top, _, _ = calculate_crop(1000, 800, 300, 200, -10, -20)
        assert (left, top) == (690, 580)

    def test_explicit_offsets(self):
        assert calculate_crop(1000, 800, 300, 200, 10, 20) == (10, 20, 300, 200)

    def test_oversized_crop_is_clamped(self):
        assert calculate_crop(1000, 800, 2000, 2000) == (0, 0, 1000, 800)

    def test_offset_past_edge_shrinks_box(self):
        left, top, width, height = calculate_crop(1000, 800, 300, 200, 900, 0)
        assert (left, width) == (900, 100)
        assert (top, height) == (0, 200)


class TestRotation:
    """Test rotation helpers."""

    @pytest.mark.parametrize(
        "degrees,expected",
        [(0, 0), (90, 90), (180, 180), (270, -90), (-180, 180), (450, 90), (-270, 90)],
    )
    def test_normalize_degrees(self, degrees, expected):
        assert normalize_degrees(degrees) == expected

    def test_quarter_turn_swaps_sides(self):
        assert rotated_size(400, 300, 90) == (300, 400)

    def test_half_turn_keeps_size(self):
        assert rotated_size(400, 300, 180) == (400, 300)

    def test_diagonal_turn_grows_box(self):
        width, height = rotated_size(100, 100, 45)
        assert width == height == 141


class TestCoercion:
    """Test parsing of enum-valued parameters."""

    def test_master_by_name_and_code(self):
        assert coerce_master("inverse") == Master.INVERSE
        assert coerce_master(0x06) == Master.PRECISE
        assert coerce_master(None) is None

    def test_unknown_master(self):
        with pytest.raises(ValueError):
            coerce_master("sideways")

    def test_flip_by_name_and_code(self):
        assert coerce_flip("Horizontal") == FlipDirection.HORIZONTAL
        assert coerce_flip(0x12) == FlipDirection.VERTICAL

    def test_unknown_flip_code(self):
        with pytest.raises(ValueError):
            coerce_flip(3)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
