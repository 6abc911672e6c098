"""Tests for the circular mask."""

import pytest
import numpy as np

from circular_kernel import build_circular_mask, format_mask, within_circle


class TestBuildCircularMask:
    def test_zero_radius(self):
        mask = build_circular_mask(0)
        assert mask.shape == (1, 1)
        assert mask[0, 0]

    def test_radius_one_is_a_plus(self):
        expected = np.array([
            [False, True, False],
            [True, True, True],
            [False, True, False],
        ])
        np.testing.assert_array_equal(build_circular_mask(1), expected)

    def test_radius_two_cell_count(self):
        # dx^2 + dy^2 <= 4
        assert build_circular_mask(2).sum() == 13

    @pytest.mark.parametrize("radius", [0, 1, 2, 3, 5, 8])
    def test_center_and_symmetry(self, radius):
        mask = build_circular_mask(radius)
        assert mask.shape == (2 * radius + 1, 2 * radius + 1)
        assert mask[radius, radius]
        np.testing.assert_array_equal(mask, mask[::-1, ::-1])
        np.testing.assert_array_equal(mask, mask.T)

    def test_corners_excluded(self):
        mask = build_circular_mask(4)
        assert not mask[0, 0]
        assert mask[0, 4]

    def test_read_only(self):
        mask = build_circular_mask(2)
        with pytest.raises(ValueError):
            mask[0, 0] = True

    def test_negative_radius(self):
        with pytest.raises(ValueError):
            build_circular_mask(-1)


def test_format_mask():
    text = format_mask(build_circular_mask(1))
    assert text.splitlines() == ["   *  ", " * * *", "   *  "]


class TestWithinCircle:
    def test_boundary_is_inclusive(self):
        assert within_circle(3, 4, 5)
        assert not within_circle(4, 4, 5)

    def test_single_precision_widens_large_circles(self):
        # sqrt(4096^2 + 1) rounds to 4096 in float32
        assert not within_circle(1, 4096, 4096)
        assert within_circle(1, 4096, 4096, single_precision=True)

    @pytest.mark.parametrize("radius", [1, 3, 6])
    def test_single_precision_matches_small_masks(self, radius):
        np.testing.assert_array_equal(
            build_circular_mask(radius, single_precision=True),
            build_circular_mask(radius),
        )
