# -*- coding: utf-8 -*-
"""
Chunk Planner - Input record range and padding for one output chunk.

A chunk outputs the grid lines between two records, but migration needs
the full synthetic aperture of every output line. The planner widens
the window on each side by half the aperture at the deepest
fully-supported range::

    max_range = ((max_time - surf_time) / sqrt(eps_r) + surf_time) * c / 2
    overlap   = max_range * wavelength / (2 sigma_x) / 2

then picks the records covering the widened window. Where records run
out before the widened window ends, whole output samples of zeros are
added so the along-track FFTs act as linear convolutions.

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
2026-10-08

Modified
--------
2026-10-19
"""

# Standard library
import logging
import math
from dataclasses import dataclass
from typing import Callable, Tuple

# Third-party
import numpy as np

# RDSAR internal
from rdsar.constants import C
from rdsar.exceptions import ChunkPlanningError

logger = logging.getLogger(__name__)

# Fraction of sigma_x within which positions count as on the grid
_GRID_EPS = 1e-6


@dataclass
class ChunkPlan:
    """Output window, input records and padding of one chunk.

    Parameters
    ----------
    out_rlines : np.ndarray
        Indices of the chunk's lines on the segment output grid.
    output_along_track : np.ndarray
        Along-track position of those lines (m).
    overlap_start, overlap_stop : float
        Along-track margin before and after the output window (m).
    recs : Tuple[int, int]
        First and last (inclusive) presummed record to load.
    start_zero_pad, stop_zero_pad : int
        Output samples of zeros before and after the loaded records.
    output_along_track_pre, output_along_track_post : np.ndarray
        Grid continuation before and after the output lines, covering
        the loaded records and the zero padding.
    sigma_x : float
        Output grid spacing (m).
    """

    out_rlines: np.ndarray
    output_along_track: np.ndarray
    overlap_start: float
    overlap_stop: float
    recs: Tuple[int, int]
    start_zero_pad: int
    stop_zero_pad: int
    output_along_track_pre: np.ndarray
    output_along_track_post: np.ndarray
    sigma_x: float

    @property
    def output_along_track_full(self) -> np.ndarray:
        """Padded output grid ``[pre, out, post]``."""
        return np.concatenate((
            self.output_along_track_pre,
            self.output_along_track,
            self.output_along_track_post,
        ))

    @property
    def num_pre(self) -> int:
        return len(self.output_along_track_pre)

    @property
    def num_post(self) -> int:
        return len(self.output_along_track_post)

    @property
    def num_records(self) -> int:
        return self.recs[1] - self.recs[0] + 1


class ChunkPlanner:
    """Plan chunks of a segment for migration.

    Parameters
    ----------
    sigma_x : float
        Output along-track spacing (m).
    fc : float
        Center frequency (Hz), sets the wavelength.
    max_time : float
        Last two-way travel time of the fast-time window (s).
    start_eps : float
        Relative permittivity below the surface.
    time_of_full_support : float
        Deepest two-way travel time that must be fully supported (s).
    """

    def __init__(
        self,
        sigma_x: float,
        fc: float,
        max_time: float,
        start_eps: float,
        time_of_full_support: float = math.inf,
    ) -> None:
        self._sigma_x = float(sigma_x)
        self._wavelength = C / fc
        self._max_time = min(float(max_time), float(time_of_full_support))
        self._start_eps = float(start_eps)

    @property
    def max_time(self) -> float:
        return self._max_time

    def max_range(self, surface_time: float) -> float:
        """In-air-equivalent range to the deepest supported target (m)."""
        surf = min(self._max_time, float(surface_time))
        return (
            (self._max_time - surf) / math.sqrt(self._start_eps) + surf
        ) * C / 2

    def minimum_overlap(self, surface_time: float) -> float:
        """Half-aperture margin needed for full support (m)."""
        return (
            self.max_range(surface_time) * self._wavelength
            / (2 * self._sigma_x) / 2
        )

    def plan(
        self,
        along_track: np.ndarray,
        output_grid: np.ndarray,
        recs: Tuple[int, int],
        surface_at: Callable[[float], float],
    ) -> ChunkPlan:
        """Plan the chunk whose output spans records ``recs``.

        Parameters
        ----------
        along_track : np.ndarray
            Along-track position of every presummed record (m).
        output_grid : np.ndarray
            Along-track position of every segment output line (m).
        recs : Tuple[int, int]
            First and last (inclusive) record bounding the output.
        surface_at : Callable
            Surface two-way travel time at an along-track position.

        Raises
        ------
        ChunkPlanningError
            If the output window is empty or no records cover it.
        """
        n_rec = len(along_track)
        if not (0 <= recs[0] <= recs[1] < n_rec):
            raise ChunkPlanningError(
                f"Record range {tuple(recs)} outside the segment's "
                f"{n_rec} records"
            )
        start_x = float(along_track[recs[0]])
        stop_x = float(along_track[recs[1]])

        tol = _GRID_EPS * self._sigma_x
        out_rlines = np.flatnonzero(
            (output_grid >= start_x - tol) & (output_grid <= stop_x + tol)
        )
        if len(out_rlines) == 0:
            raise ChunkPlanningError(
                f"No output lines between {start_x:.2f} m and "
                f"{stop_x:.2f} m; use a larger chunk"
            )
        output_along_track = np.array(output_grid[out_rlines])

        overlap_start = self.minimum_overlap(np.asarray(surface_at(start_x)))
        overlap_stop = self.minimum_overlap(np.asarray(surface_at(stop_x)))
        lo_x = start_x - overlap_start
        hi_x = stop_x + overlap_stop

        first = int(np.searchsorted(along_track, lo_x, side='right'))
        last = int(np.searchsorted(along_track, hi_x, side='left')) - 1
        if first >= n_rec or last < 0 or last < first:
            raise ChunkPlanningError(
                f"No records cover [{lo_x:.2f}, {hi_x:.2f}] m; the chunk "
                f"lies in a data gap, use a smaller chunk or split the "
                f"segment"
            )

        sigma_x = self._sigma_x
        start_zero_pad = max(0, int(math.floor(
            (along_track[first] - lo_x) / sigma_x + _GRID_EPS)))
        stop_zero_pad = max(0, int(math.floor(
            (hi_x - along_track[last]) / sigma_x + _GRID_EPS)))

        n_pre = max(0, int(math.floor(
            (output_along_track[0] - along_track[first]) / sigma_x
            + _GRID_EPS)))
        n_post = max(0, int(math.floor(
            (along_track[last] - output_along_track[-1]) / sigma_x
            + _GRID_EPS)))
        pre = output_along_track[0] - sigma_x * np.arange(
            n_pre + start_zero_pad, 0, -1)
        post = output_along_track[-1] + sigma_x * np.arange(
            1, n_post + stop_zero_pad + 1)

        logger.debug(
            "Chunk plan: %d output lines, records %d-%d, overlap "
            "%.1f/%.1f m, zero pad %d/%d",
            len(out_rlines), first, last, overlap_start, overlap_stop,
            start_zero_pad, stop_zero_pad,
        )
        return ChunkPlan(
            out_rlines=out_rlines,
            output_along_track=output_along_track,
            overlap_start=float(overlap_start),
            overlap_stop=float(overlap_stop),
            recs=(first, last),
            start_zero_pad=start_zero_pad,
            stop_zero_pad=stop_zero_pad,
            output_along_track_pre=pre.astype(np.float64),
            output_along_track_post=post.astype(np.float64),
            sigma_x=sigma_x,
        )
