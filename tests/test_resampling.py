# -*- coding: utf-8 -*-
"""
Tests for along-track resampling onto the processing grid.

Author
------
Duane Smalley, PhD
duane.d.smalley@gmail.com

License
-------
MIT License
Copyright (c) 2024 geoint.org
See LICENSE file for full text.

Created
-------
2026-10-11

Modified
--------
2026-10-19
"""

import numpy as np
import pytest

from rdsar.exceptions import ProcessingError
from rdsar.processing.resampling import UniformResampler, gen_kx

SIGMA_X = 2.5
RECORD_DX = 0.5
K0 = 0.3


def _scene(x):
    """Gaussian-tapered along-track tone centred at 125 m."""
    return np.exp(-0.5 * ((x - 125.0) / 30.0) ** 2) * np.exp(1j * K0 * x)


def _records(start=0.0, n=501):
    x = start + RECORD_DX * np.arange(n)
    # Two identical fast-time rows
    return x, np.stack((_scene(x), _scene(x)))


def _output_full(n=101):
    return SIGMA_X * np.arange(n)


class TestGenKx:
    """Wavenumber axis."""

    def test_fft_order(self):
        np.testing.assert_allclose(
            gen_kx(np.array([0.0, 0.5, 1.0, 1.5])),
            2 * np.pi * np.array([0.0, 0.5, -1.0, -0.5]))

    def test_single_point(self):
        np.testing.assert_array_equal(gen_kx(np.array([3.0])), [0.0])


class TestProcessingGrid:
    """Oversampled grid."""

    def test_grid(self):
        resampler = UniformResampler(SIGMA_X, oversample=3)
        assert resampler.proc_sigma_x == pytest.approx(SIGMA_X / 3)
        grid = resampler.processing_grid(_output_full(10))
        assert len(grid) == 30
        assert grid[0] == 0.0
        np.testing.assert_allclose(np.diff(grid), SIGMA_X / 3)


class TestExplicit:
    """Sinc resampling of the records."""

    def test_accuracy(self):
        x, data = _records()
        tile = UniformResampler(SIGMA_X, uniform=True).resample(
            data, x, _output_full())
        assert tile.data.shape == (2, 101)
        np.testing.assert_allclose(tile.kx, gen_kx(tile.proc_along_track))
        lines = np.fft.ifft(tile.data, axis=1)
        np.testing.assert_allclose(lines[0, 10:-10],
                                   _scene(tile.proc_along_track[10:-10]),
                                   atol=2e-2)

    def test_unordered_records(self):
        x, data = _records()
        order = np.random.default_rng(5).permutation(len(x))
        resampler = UniformResampler(SIGMA_X, uniform=True)
        sorted_tile = resampler.resample(data, x, _output_full())
        shuffled = resampler.resample(data[:, order], x[order], _output_full())
        np.testing.assert_allclose(shuffled.data, sorted_tile.data, atol=1e-10)

    def test_zero_padding_stays_zero(self):
        x, data = _records(start=100.0, n=101)
        full = 50.0 + SIGMA_X * np.arange(60)
        tile = UniformResampler(SIGMA_X, uniform=True).resample(data, x, full)
        lines = np.fft.ifft(tile.data, axis=1)
        # Filter half-length is 8 grid samples
        far = tile.proc_along_track < x[0] - 8 * SIGMA_X - 1e-6
        assert np.any(far)
        np.testing.assert_allclose(lines[:, far], 0.0, atol=1e-12)


class TestImplicit:
    """Spectral selection of the uniform records."""

    def test_accuracy(self):
        x, data = _records()
        tile = UniformResampler(SIGMA_X, uniform=False).resample(
            data, x, _output_full())
        assert tile.data.shape == (2, 101)
        # One look: the band of the padded output grid
        np.testing.assert_allclose(tile.kx, gen_kx(_output_full()))
        lines = np.fft.ifft(tile.data, axis=1)
        np.testing.assert_allclose(lines[0], _scene(tile.proc_along_track),
                                   atol=1e-3)

    def test_origin_shift(self):
        x, data = _records(start=0.2)
        tile = UniformResampler(SIGMA_X, uniform=False).resample(
            data, x, _output_full())
        lines = np.fft.ifft(tile.data, axis=1)
        np.testing.assert_allclose(lines[1], _scene(tile.proc_along_track),
                                   atol=1e-3)

    def test_matches_explicit(self):
        x, data = _records()
        implicit = UniformResampler(SIGMA_X, uniform=False).resample(
            data, x, _output_full())
        explicit = UniformResampler(SIGMA_X, uniform=True).resample(
            data, x, _output_full())
        peak = np.max(np.abs(explicit.data))
        assert np.max(np.abs(implicit.data - explicit.data)) < 0.05 * peak

    def test_even_grid_short_bins(self):
        # Even grids leave both band edges unselected
        x, data = _records(n=500)
        tile = UniformResampler(SIGMA_X, uniform=False).resample(
            data, x, _output_full(100))
        assert tile.data.shape == (2, 100)
        lines = np.fft.ifft(tile.data, axis=1)
        np.testing.assert_allclose(lines[0], _scene(tile.proc_along_track),
                                   atol=1e-3)

    def test_oversampled_grid(self):
        x, data = _records()
        tile = UniformResampler(SIGMA_X, oversample=2, uniform=False).resample(
            data, x, _output_full())
        assert tile.data.shape == (2, 202)
        np.testing.assert_allclose(tile.kx, gen_kx(tile.proc_along_track))
        lines = np.fft.ifft(tile.data, axis=1)
        np.testing.assert_allclose(lines[0], _scene(tile.proc_along_track),
                                   atol=1e-3)

    def test_records_beyond_grid(self):
        x, data = _records(n=1001)
        with pytest.raises(ProcessingError, match="explicit"):
            UniformResampler(SIGMA_X, uniform=False).resample(
                data, x, _output_full())

    def test_too_few_records(self):
        with pytest.raises(ProcessingError, match="two records"):
            UniformResampler(SIGMA_X, uniform=False).resample(
                np.ones((2, 1)), np.array([0.0]), _output_full())
