# -*- coding: utf-8 -*-
"""
Point-Target Simulation - Synthetic segment for pipeline checks.

Builds a straight meridian flight line at constant height with one
point target below the reference line, and the pulse-compressed samples
the target produces::

    s(t, n) = beam(sin_theta) * sinc(bw (t - tau_n)) * exp(-i 2 pi fc tau_n)

with ``tau_n = 2 |pc_n - target| / c`` and
``beam(s) = exp(-(s / beam_width)^2)``. An optional vertical
oscillation of the flown track, absent from the SAR coordinates, gives
motion compensation something to correct.

The simulated segment exposes in-memory trajectory and sample services,
so a chunk task can run on it unchanged.

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
2026-10-15

Modified
--------
2026-10-19
"""

# Standard library
import logging
from dataclasses import dataclass
from typing import Dict

# Third-party
import numpy as np

# RDSAR internal
from rdsar.constants import C, WGS84_A, WGS84_E2
from rdsar.geolocation.coordinates import along_track_distance, geodetic_to_ecef
from rdsar.geolocation.fcs import build_sar_coordinates
from rdsar.IO.models import (
    ChannelKey,
    SarCoordinates,
    Trajectory,
    WaveformDescriptor,
)
from rdsar.IO.services import InMemorySampleLoader, InMemoryTrajectoryService

logger = logging.getLogger(__name__)

_SPACING_ITERATIONS = 3


@dataclass
class SimulatedSegment:
    """Synthetic segment with one point target.

    Parameters
    ----------
    trajectory : Trajectory
        Flown raw-rate trajectory.
    data : Dict[ChannelKey, np.ndarray]
        Samples ``(Nt, Nx)`` per channel.
    waveforms : Dict[int, WaveformDescriptor]
        Waveform descriptor per waveform.
    sar_coords : SarCoordinates
        SAR coordinates of the unperturbed track.
    target_ecef : np.ndarray
        Target position (m), ``(3,)``.
    target_line : int
        Output line of the target.
    target_bin : int
        Fast-time bin of the target's closest approach.
    """

    trajectory: Trajectory
    data: Dict[ChannelKey, np.ndarray]
    waveforms: Dict[int, WaveformDescriptor]
    sar_coords: SarCoordinates
    target_ecef: np.ndarray
    target_line: int
    target_bin: int

    @property
    def target_along_track(self) -> float:
        return float(self.sar_coords.output_along_track[self.target_line])

    @property
    def num_records(self) -> int:
        return len(self.trajectory)

    def trajectory_service(self) -> InMemoryTrajectoryService:
        return InMemoryTrajectoryService(self.trajectory)

    def sample_loader(self) -> InMemorySampleLoader:
        return InMemorySampleLoader(self.data, self.waveforms)


def meridian_trajectory(
    num_records: int,
    dx: float,
    lat0: float = 70.0,
    lon0: float = -40.0,
    elev: float = 1000.0,
    surface_time: float = 0.0,
    prf: float = 1000.0,
    motion_amplitude: float = 0.0,
    motion_period: float = 200.0,
) -> Trajectory:
    """Northbound constant-height track with records ``dx`` meters apart.

    ``motion_amplitude`` adds a vertical sinusoid of ``motion_period``
    meters to the flown height. Record spacing is exact in ECEF path
    length, so record ``k`` sits ``k * dx`` along the unperturbed track.
    """
    lat0_rad = np.radians(lat0)
    # Meridional radius of curvature at the start
    m = WGS84_A * (1 - WGS84_E2) / (1 - WGS84_E2 * np.sin(lat0_rad) ** 2) ** 1.5
    distance = dx * np.arange(num_records)
    lat = lat0 + np.degrees(distance / (m + elev))
    lon = np.full(num_records, float(lon0))
    # The radius varies with latitude, resample onto exact path length
    for _ in range(_SPACING_ITERATIONS):
        path = along_track_distance(
            geodetic_to_ecef(lat, lon, np.full(num_records, float(elev))))
        lat = np.interp(distance, path, lat)
    height = elev + motion_amplitude * np.sin(2 * np.pi * distance / motion_period)
    zeros = np.zeros(num_records)
    return Trajectory(
        gps_time=1.0e9 + np.arange(num_records) / prf,
        lat=lat,
        lon=lon,
        elev=height,
        roll=zeros.copy(),
        pitch=zeros.copy(),
        heading=zeros.copy(),
        surface=np.full(num_records, float(surface_time)),
    )


def simulate_point_target(
    num_records: int = 2401,
    dx: float = 0.5,
    sigma_x: float = 2.5,
    fc: float = 195e6,
    bw: float = 30e6,
    fs: float = 60e6,
    num_samples: int = 128,
    t0: float = 2.5e-6,
    target_bin: int = 50,
    target_along_track: float = 600.0,
    surface_bin: int = 100,
    beam_width: float = 0.5,
    Lsar: float = 300.0,
    motion_amplitude: float = 0.0,
    channels=((1, 1),),
) -> SimulatedSegment:
    """Simulate a point target below a straight flight line.

    Parameters
    ----------
    num_records : int
        Raw records of the segment.
    dx : float
        Record spacing (m).
    sigma_x : float
        Output along-track spacing of the SAR coordinates (m).
    fc, bw, fs : float
        Center frequency, bandwidth and sample rate (Hz).
    num_samples : int
        Fast-time samples per record.
    t0 : float
        Two-way time of the first sample (s).
    target_bin : int
        Fast-time bin of the target at closest approach.
    target_along_track : float
        Along-track position of the target (m), rounded to the output
        grid.
    surface_bin : int
        Fast-time bin of the reported surface.
    beam_width : float
        Two-way beam width in ``sin(theta)``.
    Lsar : float
        Aperture length stored in the SAR coordinates (m).
    motion_amplitude : float
        Vertical oscillation of the flown track (m).
    channels : sequence of (wf, adc)
        Channels to simulate; all see the same target.

    Returns
    -------
    SimulatedSegment
    """
    dt = 1.0 / fs
    wfs = WaveformDescriptor(fc=fc, bw=bw, dt=dt, t0=t0, num_samples=num_samples)
    surface_time = t0 + surface_bin * dt

    ideal = meridian_trajectory(num_records, dx, surface_time=surface_time)
    sar_coords = build_sar_coordinates(ideal, sigma_x, Lsar)
    flown = meridian_trajectory(
        num_records, dx, surface_time=surface_time,
        motion_amplitude=motion_amplitude)

    target_line = int(round(target_along_track / sigma_x))
    if not 0 <= target_line < sar_coords.num_lines:
        raise ValueError(
            f"Target at {target_along_track} m is outside the "
            f"{sar_coords.num_lines}-line output grid")
    r0 = (t0 + target_bin * dt) * C / 2
    target = sar_coords.origin[target_line] - r0 * sar_coords.z[target_line]

    pc = geodetic_to_ecef(flown.lat, flown.lon, flown.elev)
    delta = pc - target
    rng = np.linalg.norm(delta, axis=1)
    offset = (pc - sar_coords.origin[target_line]) @ sar_coords.x[target_line]
    sin_theta = -offset / rng
    tau = 2 * rng / C
    beam = np.exp(-(sin_theta / beam_width) ** 2)

    time = wfs.time
    samples = (beam[np.newaxis, :]
               * np.sinc(bw * (time[:, np.newaxis] - tau[np.newaxis, :]))
               * np.exp(-2j * np.pi * fc * tau)[np.newaxis, :])
    logger.debug(
        "Simulated %d records, target at line %d bin %d (%.1f m range)",
        num_records, target_line, target_bin, r0,
    )
    return SimulatedSegment(
        trajectory=flown,
        data={tuple(ch): samples.copy() for ch in channels},
        waveforms={ch[0]: wfs for ch in channels},
        sar_coords=sar_coords,
        target_ecef=target,
        target_line=target_line,
        target_bin=target_bin,
    )
