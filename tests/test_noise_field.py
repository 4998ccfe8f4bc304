"""Tests for the synthetic elevation field."""

import math

import numpy as np
import pytest

from py_terrain.core.noise_field import NoiseField
from py_terrain.utils.random import make_rng


class TestNoiseField:
    """Test elevation sampling."""

    @pytest.fixture
    def field(self):
        return NoiseField(200, 150, 120.0, 170.0, make_rng("noise_test"))

    def test_grid_shape(self, field):
        heights = field.sample_grid()
        assert heights.shape == (150, 200)

    @pytest.mark.parametrize("low,high", [(98.0, 105.0), (120.0, 170.0), (300.0, 500.0)])
    def test_values_within_range(self, low, high):
        field = NoiseField(120, 80, low, high, make_rng("range_test"))
        heights = field.sample_grid()
        assert heights.min() >= low
        assert heights.max() <= high

    def test_grid_size_kept_apart_from_height(self, field):
        assert field.grid_width == 200
        assert field.grid_height == 150
        assert callable(field.height)
        heights = field.sample_grid()
        assert heights.shape == (150, 200)
        assert isinstance(field.height(0, 0), float)

    def test_scalar_and_array_agree(self, field):
        heights = field.sample_grid()
        value = field.height(17, 42)
        assert isinstance(value, float)
        assert value == pytest.approx(heights[42, 17])

    def test_continuous_coordinates(self, field):
        value = field.height(10.5, 20.25)
        assert 120.0 <= value <= 170.0

    def test_same_seed_same_terrain(self):
        a = NoiseField(64, 64, 0.0, 1.0, make_rng("same")).sample_grid()
        b = NoiseField(64, 64, 0.0, 1.0, make_rng("same")).sample_grid()
        np.testing.assert_array_equal(a, b)

    def test_unseeded_calls_differ(self):
        # Full-size fields; a small height lets the slope term clamp the whole grid
        a = NoiseField(1000, 1000, 0.0, 1.0, make_rng()).sample_grid()
        b = NoiseField(1000, 1000, 0.0, 1.0, make_rng()).sample_grid()
        assert not np.array_equal(a, b)

    def test_offsets_drawn_in_range(self, field):
        assert 0 <= field.offset_x < 1000
        assert 0 <= field.offset_y < 1000

    def test_formula_with_zero_offset(self):
        field = NoiseField(100, 100, 0.0, 1.0, make_rng("formula"))
        field.offset_x = 0.0
        field.offset_y = 0.0

        x, y = 30, 70
        nx = x / 100 - 0.5
        ny = y / 100 - 0.5
        h = (
            0.5
            + 0.15 * math.sin(3 * nx + 2 * math.cos(3 * ny))
            + 0.08 * math.sin(8 * nx + 5 * math.cos(8 * ny))
            + 0.04 * math.cos(15 * nx + 7 * math.sin(15 * ny))
        )
        h += 0.05 * (0.5 - ny)
        expected = min(max((h - 0.1) / 0.9, 0.0), 1.0)

        assert field.height(x, y) == pytest.approx(expected)

    def test_flat_range(self):
        field = NoiseField(30, 30, 42.0, 42.0, make_rng("flat"))
        assert np.all(field.sample_grid() == 42.0)
