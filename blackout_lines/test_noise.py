#!/usr/bin/env python3
"""
Tests for the coherent noise function

Determinism, value range, smoothness and broadcasting.
"""

import pytest
import numpy as np

from blackout_lines.noise import PerlinNoise, lcg_table, LCG_MODULUS


class TestValueTable:
    """Test the seeded value table"""

    def test_first_value_follows_lcg(self):
        """First entry is one LCG step from the seed"""
        table = lcg_table(42, size=4)
        expected = ((1664525 * 42 + 1013904223) % LCG_MODULUS) / LCG_MODULUS
        assert table[0] == pytest.approx(expected)

    def test_values_in_unit_interval(self):
        table = lcg_table(123)
        assert table.shape == (4096,)
        assert table.min() >= 0.0
        assert table.max() < 1.0

    def test_seed_reduced_to_32_bits(self):
        """Seeds differing by 2**32 produce the same table"""
        np.testing.assert_array_equal(lcg_table(5, 16), lcg_table(5 + LCG_MODULUS, 16))


class TestPerlinNoise:
    """Test noise sampling"""

    def test_same_seed_same_values(self):
        """Should be a deterministic function of seed and inputs"""
        xs = np.linspace(0, 10, 50)
        a = PerlinNoise(seed=7)(xs, xs * 0.5)
        b = PerlinNoise(seed=7)(xs, xs * 0.5)
        np.testing.assert_array_equal(a, b)

    def test_different_seeds_differ(self):
        xs = np.linspace(0, 10, 50)
        assert not np.array_equal(PerlinNoise(seed=1)(xs, 0.3), PerlinNoise(seed=2)(xs, 0.3))

    def test_range(self):
        """Values stay in [0, 1)"""
        noise = PerlinNoise(seed=3)
        xs = np.linspace(0, 40, 400)
        values = noise(xs[np.newaxis, :], xs[:, np.newaxis] * 0.7)
        assert values.min() >= 0.0
        assert values.max() < noise.max_value() <= 1.0

    def test_scalar_input_returns_float(self):
        value = PerlinNoise(seed=3)(0.25, 1.5)
        assert isinstance(value, float)

    def test_scalar_matches_array_sample(self):
        """Scalar and vectorised sampling agree"""
        noise = PerlinNoise(seed=11)
        grid = noise(np.array([0.1, 2.7]), np.array([3.3, 0.4]))
        assert grid[0] == pytest.approx(noise(0.1, 3.3))
        assert grid[1] == pytest.approx(noise(2.7, 0.4))

    def test_broadcasting(self):
        """Row and column vectors broadcast to a grid"""
        noise = PerlinNoise(seed=5)
        grid = noise(np.arange(8)[np.newaxis, :] * 0.1, np.arange(3)[:, np.newaxis] * 0.1)
        assert grid.shape == (3, 8)

    def test_smooth(self):
        """Nearby inputs give nearby outputs"""
        noise = PerlinNoise(seed=9)
        xs = np.linspace(0.0, 20.0, 200)
        delta = np.abs(noise(xs + 1e-4, 3.1) - noise(xs, 3.1))
        assert delta.max() < 1e-2

    def test_negative_coordinates_mirror(self):
        noise = PerlinNoise(seed=9)
        assert noise(-1.25, -0.5) == noise(1.25, 0.5)

    def test_third_coordinate(self):
        """z shifts the field"""
        noise = PerlinNoise(seed=9)
        assert noise(0.4, 0.6, 0.0) != noise(0.4, 0.6, 3.7)

    def test_max_value(self):
        """Four octaves with falloff 0.5 sum to 0.9375"""
        assert PerlinNoise(seed=1).max_value() == pytest.approx(0.9375)
        assert PerlinNoise(seed=1, octaves=1).max_value() == pytest.approx(0.5)

    def test_random_seed_when_none(self):
        noise = PerlinNoise()
        assert 0 <= noise.seed < LCG_MODULUS

    def test_rejects_zero_octaves(self):
        with pytest.raises(ValueError):
            PerlinNoise(seed=1, octaves=0)
