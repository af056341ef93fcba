# -*- coding: utf-8 -*-
"""
Tests for the chunk planner.

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

import math

import numpy as np
import pytest

from rdsar.constants import C
from rdsar.exceptions import ChunkPlanningError, ConfigurationError
from rdsar.processing.chunking import ChunkPlanner

FC = 195e6
SIGMA_X = 2.5
MAX_TIME = 20e-6
SURFACE = 5e-6


def _planner(**kwargs):
    values = dict(sigma_x=SIGMA_X, fc=FC, max_time=MAX_TIME, start_eps=3.15)
    values.update(kwargs)
    return ChunkPlanner(**values)


def _segment(length=10000.0, dx=1.0):
    along_track = np.arange(0.0, length + dx / 2, dx)
    grid = np.arange(0.0, along_track[-1] + 1e-9, SIGMA_X)
    return along_track, grid


def _surface(x):
    return SURFACE


class TestOverlap:
    """Full-support margin."""

    def test_minimum_overlap_formula(self):
        planner = _planner()
        max_range = ((MAX_TIME - SURFACE) / math.sqrt(3.15) + SURFACE) * C / 2
        expected = max_range * (C / FC) / (2 * SIGMA_X) / 2
        assert planner.minimum_overlap(SURFACE) == pytest.approx(expected)

    def test_full_support_cap(self):
        capped = _planner(time_of_full_support=10e-6)
        assert capped.max_time == 10e-6
        assert capped.minimum_overlap(SURFACE) < _planner().minimum_overlap(SURFACE)

    def test_surface_below_window(self):
        planner = _planner()
        # Surface beyond the window: all air
        assert planner.max_range(1.0) == pytest.approx(MAX_TIME * C / 2)

    def test_plan_covers_overlap(self):
        along_track, grid = _segment()
        planner = _planner()
        plan = planner.plan(along_track, grid, (4000, 5999), _surface)
        minimum = planner.minimum_overlap(SURFACE)
        assert plan.overlap_start >= minimum - 1e-9
        assert plan.overlap_stop >= minimum - 1e-9
        first, last = plan.recs
        assert along_track[first] - SIGMA_X <= 4000.0 - plan.overlap_start
        assert along_track[last] + SIGMA_X >= 5999.0 + plan.overlap_stop
        assert plan.start_zero_pad == 0
        assert plan.stop_zero_pad == 0

    def test_output_window(self):
        along_track, grid = _segment()
        plan = _planner().plan(along_track, grid, (4000, 5999), _surface)
        assert plan.output_along_track[0] >= 4000.0
        assert plan.output_along_track[-1] <= 5999.0
        np.testing.assert_allclose(plan.output_along_track, grid[plan.out_rlines])
        full = plan.output_along_track_full
        np.testing.assert_allclose(np.diff(full), SIGMA_X)
        assert len(full) == plan.num_pre + len(plan.out_rlines) + plan.num_post
        # Padded grid reaches the loaded records
        assert full[0] <= along_track[plan.recs[0]] + SIGMA_X
        assert full[-1] >= along_track[plan.recs[1]] - SIGMA_X

    def test_rounding_at_window_edges(self):
        along_track, grid = _segment()
        # Records a rounding error past the grid lines they sit on
        plan = _planner().plan(along_track + 1e-7, grid, (4000, 6000), _surface)
        assert plan.output_along_track[0] == 4000.0
        assert plan.output_along_track[-1] == 6000.0
        assert len(plan.out_rlines) == 801


class TestZeroPadding:
    """Chunks at the segment edges."""

    def test_start_of_segment(self):
        along_track, grid = _segment()
        planner = _planner()
        plan = planner.plan(along_track, grid, (0, 999), _surface)
        assert plan.recs[0] == 0
        expected = math.floor(plan.overlap_start / SIGMA_X + 1e-6)
        assert plan.start_zero_pad == expected
        assert plan.start_zero_pad > 0
        assert plan.output_along_track_pre[0] < 0.0

    def test_end_of_segment(self):
        along_track, grid = _segment()
        plan = _planner().plan(along_track, grid, (9000, 10000), _surface)
        assert plan.recs[1] == len(along_track) - 1
        assert plan.stop_zero_pad > 0
        assert plan.output_along_track_post[-1] > along_track[-1]


class TestFailures:
    """Fatal planning errors."""

    def test_is_configuration_error(self):
        assert issubclass(ChunkPlanningError, ConfigurationError)

    def test_records_outside_segment(self):
        along_track, grid = _segment(100.0)
        with pytest.raises(ChunkPlanningError, match="outside"):
            _planner().plan(along_track, grid, (50, 500), _surface)

    def test_no_output_lines(self):
        along_track, grid = _segment(100.0)
        with pytest.raises(ChunkPlanningError, match="No output lines"):
            _planner().plan(along_track, grid, (11, 11), _surface)
