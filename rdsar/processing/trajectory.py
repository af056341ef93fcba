# -*- coding: utf-8 -*-
"""
Trajectory & Surface Resolver - Records, trajectories and surface of a chunk.

Loads the chunk's raw records and trajectories from the external
services, presums them, optionally replaces the trajectory surface with
a surface layer file (pulling in the neighbouring frames to cover the
chunk overlap), and smooths the surface for the refraction boundary.

Dependencies
------------
scipy

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
2026-10-09

Modified
--------
2026-10-15
"""

# Standard library
import logging
from dataclasses import replace
from typing import Dict, Optional, Sequence, Tuple

# Third-party
import numpy as np
from scipy.interpolate import interp1d
from scipy.signal import savgol_filter

# RDSAR internal
from rdsar.exceptions import ProcessingError
from rdsar.IO.models import ChannelKey, RecordBlock, Trajectory
from rdsar.IO.segment import SurfaceLayerStore
from rdsar.IO.services import SampleLoader, TrajectoryService
from rdsar.vocabulary import SurfaceFit

logger = logging.getLogger(__name__)

# Neighbouring frames are loaded when records extend this far (s)
_NEIGHBOR_GAP = 1.0

_SGOLAY_ORDER = 3


def presum(values: np.ndarray, presums: int, axis: int = -1) -> np.ndarray:
    """Coherently average blocks of ``presums`` samples along ``axis``.

    A trailing partial block is dropped.
    """
    if presums == 1:
        return np.array(values)
    values = np.moveaxis(np.asarray(values), axis, -1)
    n = values.shape[-1] // presums
    blocks = values[..., :n * presums].reshape(
        values.shape[:-1] + (n, presums))
    return np.moveaxis(blocks.mean(axis=-1), -1, axis)


def presum_trajectory(trajectory: Trajectory, presums: int) -> Trajectory:
    """Presum every field of a trajectory."""
    values = trajectory.as_dict()
    if presums > 1:
        values['heading'] = np.unwrap(values['heading'])
    return Trajectory(**{
        name: presum(np.asarray(v, dtype=np.float64), presums)
        for name, v in values.items()
    })


def override_surface(
    gps_time: np.ndarray,
    store: SurfaceLayerStore,
    day_seg: str,
    frm: int,
) -> np.ndarray:
    """Surface two-way travel time from layer files at ``gps_time``.

    The frame's own layer file must exist. The previous and next frame
    files are added when the records extend more than a second beyond
    the frame's layer; a missing neighbour is logged and skipped.

    Raises
    ------
    FileNotFoundError
        If the frame's own layer file is missing.
    """
    layer = store.read(day_seg, frm)
    gps = [layer.gps_time]
    twtt = [layer.twtt]
    if len(layer.gps_time) == 0:
        raise ProcessingError(
            f"Surface layer of segment {day_seg} frame {frm} is empty")

    neighbors = []
    if gps_time[0] < np.min(layer.gps_time) - _NEIGHBOR_GAP:
        neighbors.append(frm - 1)
    if gps_time[-1] > np.max(layer.gps_time) + _NEIGHBOR_GAP:
        neighbors.append(frm + 1)
    for neighbor in neighbors:
        if neighbor < 1:
            continue
        try:
            extra = store.read(day_seg, neighbor)
        except FileNotFoundError:
            logger.warning(
                "Surface layer for segment %s frame %d not found; "
                "extrapolating from frame %d", day_seg, neighbor, frm,
            )
            continue
        gps.append(extra.gps_time)
        twtt.append(extra.twtt)

    gps_all = np.concatenate(gps)
    twtt_all = np.concatenate(twtt)
    good = np.isfinite(twtt_all) & np.isfinite(gps_all)
    gps_all, idx = np.unique(gps_all[good], return_index=True)
    twtt_all = twtt_all[good][idx]
    if len(gps_all) == 1:
        return np.full(len(gps_time), twtt_all[0])
    fn = interp1d(gps_all, twtt_all, kind='linear', bounds_error=False,
                  fill_value='extrapolate', assume_sorted=True)
    return fn(gps_time)


def smooth_surface(
    along_track: np.ndarray,
    surface: np.ndarray,
    fit: SurfaceFit = SurfaceFit.SGOLAY,
    filter_distance: float = 3000.0,
    poly_order: int = 3,
) -> np.ndarray:
    """Smooth a surface series for the refraction boundary.

    Parameters
    ----------
    along_track : np.ndarray
        Along-track positions (m).
    surface : np.ndarray
        Surface two-way travel time (s).
    fit : SurfaceFit
        Savitzky-Golay smoothing (order 3) over ``filter_distance`` or
        a polynomial fit of order ``poly_order``.
    filter_distance : float
        Savitzky-Golay window length (m).
    poly_order : int
        Polynomial fit order.
    """
    surface = np.asarray(surface, dtype=np.float64)
    n = len(surface)
    if fit is SurfaceFit.POLYFIT:
        order = min(poly_order, n - 1)
        if order < 1:
            return np.array(surface)
        x = along_track - np.mean(along_track)
        return np.polyval(np.polyfit(x, surface, order), x)

    spacing = float(np.median(np.diff(along_track))) if n > 1 else 1.0
    window = int(round(filter_distance / max(spacing, 1e-12) / 2)) * 2 + 1
    if window > n:
        window = n if n % 2 == 1 else n - 1
    if window <= _SGOLAY_ORDER:
        return np.array(surface)
    return savgol_filter(surface, window, _SGOLAY_ORDER)


class TrajectoryResolver:
    """Load presummed records and trajectories of a chunk.

    Parameters
    ----------
    trajectory_service : TrajectoryService
        Source of trajectories.
    sample_loader : SampleLoader
        Source of raw samples.
    day_seg : str
        Segment identifier.
    presums : int
        Raw records averaged into each processed record.
    lever_arm : bool
        Request per-channel phase-center trajectories.
    surface_store : SurfaceLayerStore, optional
        Layer files overriding the trajectory surface.
    frm : int
        Frame number, selects the layer file.
    """

    def __init__(
        self,
        trajectory_service: TrajectoryService,
        sample_loader: SampleLoader,
        day_seg: str,
        presums: int = 1,
        lever_arm: bool = True,
        surface_store: Optional[SurfaceLayerStore] = None,
        frm: int = 1,
    ) -> None:
        self._service = trajectory_service
        self._loader = sample_loader
        self._day_seg = day_seg
        self._presums = presums
        self._lever_arm = lever_arm
        self._surface_store = surface_store
        self._frm = frm

    def raw_records(self, recs: Tuple[int, int]) -> Tuple[int, int]:
        """Half-open raw record range behind presummed records ``recs``."""
        return recs[0] * self._presums, (recs[1] + 1) * self._presums

    def load_records(
        self,
        recs: Tuple[int, int],
        channels: Sequence[ChannelKey],
    ) -> RecordBlock:
        """Presummed reference trajectory and samples of ``channels``."""
        raw = self.raw_records(recs)
        trajectory = presum_trajectory(
            self._service.load(self._day_seg, raw), self._presums)
        if self._surface_store is not None:
            trajectory = replace(trajectory, surface=override_surface(
                trajectory.gps_time, self._surface_store,
                self._day_seg, self._frm,
            ))
        samples = self._loader.load(raw, channels)
        data = {
            ch: presum(values, self._presums, axis=1)
            for ch, values in samples.items()
        }
        logger.debug(
            "Loaded records %d-%d (%d raw, presums %d) for %d channels",
            recs[0], recs[1], raw[1] - raw[0], self._presums, len(data),
        )
        return RecordBlock(
            trajectory=trajectory, data=data, recs=tuple(recs),
            presums=self._presums,
        )

    def channel_trajectory(
        self,
        recs: Tuple[int, int],
        channels: Sequence[ChannelKey],
        reference: Trajectory,
    ) -> Trajectory:
        """Presummed phase-center trajectory of one or more channels."""
        if not self._lever_arm:
            return reference
        raw = self.raw_records(recs)
        trajectory = presum_trajectory(
            self._service.with_lever_arm(self._day_seg, raw, channels),
            self._presums,
        )
        return replace(trajectory, surface=reference.surface)


def merge_channels(
    data: Dict[ChannelKey, np.ndarray],
    channels: Sequence[ChannelKey],
) -> np.ndarray:
    """Coherent sum of the channels of one image (combined receivers)."""
    return np.sum([data[tuple(ch)] for ch in channels], axis=0)
