# -*- coding: utf-8 -*-
"""
RDSAR Data Models - Dataclasses passed between processing stages.

Waveform descriptors, trajectories, raw record blocks, the per-segment
SAR coordinate file, surface layers and the per-chunk migrated product.
Stages hand these objects forward and return new instances instead of
mutating shared buffers.

Dependencies
------------
numpy
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
2026-10-06

Modified
--------
2026-10-15
"""

# Standard library
from dataclasses import dataclass, field, replace
from typing import Any, Dict, Optional, Tuple

# Third-party
import numpy as np
from scipy.interpolate import interp1d

# RDSAR internal
from rdsar.constants import C
from rdsar.geolocation.coordinates import geodetic_to_ecef
from rdsar.geolocation.fcs import FlightCoordinateSystem


# (waveform, adc) receive path, both 1-based as in the record files
ChannelKey = Tuple[int, int]


@dataclass(frozen=True)
class WaveformDescriptor:
    """Fast-time axis description of one pulse-compressed waveform.

    Parameters
    ----------
    fc : float
        Center frequency (Hz).
    bw : float
        Pulse bandwidth (Hz).
    dt : float
        Fast-time sample interval (s).
    t0 : float
        Two-way travel time of the first sample (s).
    num_samples : int
        Number of fast-time samples ``Nt``.
    """

    fc: float
    bw: float
    dt: float
    t0: float
    num_samples: int

    @property
    def time(self) -> np.ndarray:
        """Fast-time axis (s), shape ``(Nt,)``."""
        return self.t0 + self.dt * np.arange(self.num_samples)

    @property
    def freq(self) -> np.ndarray:
        """Absolute frequency axis (Hz) in FFT order, shape ``(Nt,)``."""
        return self.fc + np.fft.fftfreq(self.num_samples, self.dt)

    @property
    def f0(self) -> float:
        """Lower band edge (Hz)."""
        return self.fc - self.bw / 2

    @property
    def f1(self) -> float:
        """Upper band edge (Hz)."""
        return self.fc + self.bw / 2

    @property
    def wavelength(self) -> float:
        """Free-space wavelength at the center frequency (m)."""
        return C / self.fc

    def trimmed(self, start: int, stop: int) -> 'WaveformDescriptor':
        """Descriptor for the sample window ``[start, stop)``."""
        start = max(0, int(start))
        stop = min(self.num_samples, int(stop))
        if stop <= start:
            raise ValueError(
                f"Empty fast-time window [{start}, {stop})"
            )
        return replace(
            self,
            t0=self.t0 + start * self.dt,
            num_samples=stop - start,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Plain-scalar representation for artifact attributes."""
        return {
            'fc': float(self.fc), 'bw': float(self.bw),
            'dt': float(self.dt), 't0': float(self.t0),
            'num_samples': int(self.num_samples),
        }


@dataclass
class Trajectory:
    """Per-record platform trajectory from the trajectory service.

    Parameters
    ----------
    gps_time : np.ndarray
        GPS time of each record (s), shape ``(Nx,)``.
    lat, lon : np.ndarray
        Geodetic position (degrees), shape ``(Nx,)``.
    elev : np.ndarray
        Height above the WGS-84 ellipsoid (m), shape ``(Nx,)``.
    roll, pitch, heading : np.ndarray
        Attitude (radians), shape ``(Nx,)``.
    surface : np.ndarray
        Surface two-way travel time estimate (s), shape ``(Nx,)``.
    """

    gps_time: np.ndarray
    lat: np.ndarray
    lon: np.ndarray
    elev: np.ndarray
    roll: np.ndarray
    pitch: np.ndarray
    heading: np.ndarray
    surface: np.ndarray

    def __len__(self) -> int:
        return len(self.gps_time)

    def ecef(self) -> np.ndarray:
        """Positions in ECEF (m), shape ``(Nx, 3)``."""
        return geodetic_to_ecef(self.lat, self.lon, self.elev)

    def slice(self, start: int, stop: int) -> 'Trajectory':
        """New trajectory holding records ``[start, stop)``."""
        return Trajectory(**{
            name: np.array(value[start:stop])
            for name, value in self.as_dict().items()
        })

    def as_dict(self) -> Dict[str, np.ndarray]:
        """Field name to array mapping."""
        return {
            'gps_time': self.gps_time, 'lat': self.lat, 'lon': self.lon,
            'elev': self.elev, 'roll': self.roll, 'pitch': self.pitch,
            'heading': self.heading, 'surface': self.surface,
        }


@dataclass
class RecordBlock:
    """Raw records loaded for one chunk.

    Parameters
    ----------
    trajectory : Trajectory
        Trajectory of the (possibly presummed) records.
    data : Dict[ChannelKey, np.ndarray]
        Pulse-compressed samples per ``(wf, adc)``, each of shape
        ``(Nt, Nx)``.
    recs : Tuple[int, int]
        First and last (inclusive, 0-based) presummed record index.
    presums : int
        Number of raw records averaged into each record of the block.
    """

    trajectory: Trajectory
    data: Dict[ChannelKey, np.ndarray]
    recs: Tuple[int, int]
    presums: int = 1

    @property
    def num_records(self) -> int:
        return len(self.trajectory)


@dataclass
class SurfaceLayer:
    """Surface two-way travel time series from a layer file.

    Parameters
    ----------
    gps_time : np.ndarray
        GPS time (s), shape ``(N,)``.
    twtt : np.ndarray
        Surface two-way travel time (s), shape ``(N,)``.
    """

    gps_time: np.ndarray
    twtt: np.ndarray


@dataclass
class SarCoordinates:
    """Content of a segment's SAR coordinate file.

    Record-rate fields are indexed by presummed record; output-grid
    fields are indexed by output line on the grid
    ``0 : sigma_x : along_track[-1]``.

    Parameters
    ----------
    along_track : np.ndarray
        Along-track position of each presummed record (m), ``(Nrec,)``.
    surface : np.ndarray
        Surface two-way travel time of each record (s), ``(Nrec,)``.
    origin : np.ndarray
        FCS origin of each output line (ECEF, m), ``(M, 3)``.
    x : np.ndarray
        Along-track unit vector per output line, ``(M, 3)``.
    z : np.ndarray
        Up unit vector per output line, ``(M, 3)``.
    roll, pitch, heading, gps_time : np.ndarray
        Attitude and time per output line, ``(M,)``.
    sigma_x : float
        Output along-track spacing (m).
    Lsar : float
        Synthetic aperture length used for phase-center averaging (m).
    presums : int
        Presums the record-rate fields were computed with.
    gps_source : str
        Provenance of the trajectory.
    """

    along_track: np.ndarray
    surface: np.ndarray
    origin: np.ndarray
    x: np.ndarray
    z: np.ndarray
    roll: np.ndarray
    pitch: np.ndarray
    heading: np.ndarray
    gps_time: np.ndarray
    sigma_x: float
    Lsar: float
    presums: int = 1
    gps_source: str = ''

    @property
    def num_lines(self) -> int:
        return self.origin.shape[0]

    @property
    def output_along_track(self) -> np.ndarray:
        """Along-track position of every output line (m), ``(M,)``."""
        return self.sigma_x * np.arange(self.num_lines)

    def surface_at(self, along_track: np.ndarray) -> np.ndarray:
        """Surface two-way travel time at arbitrary along-track positions.

        Linear in between records and linearly extrapolated beyond
        them.
        """
        if len(self.along_track) < 2:
            return np.full(np.shape(along_track), float(self.surface[0]))
        fn = interp1d(
            self.along_track, self.surface, kind='linear',
            bounds_error=False, fill_value='extrapolate',
            assume_sorted=True,
        )
        return fn(along_track)

    def fcs_slice(self, out_rlines: np.ndarray) -> FlightCoordinateSystem:
        """FCS for the given output lines.

        Surface values are taken from the surface spline at the output
        along-track positions.
        """
        out_rlines = np.asarray(out_rlines)
        return FlightCoordinateSystem(
            origin=np.array(self.origin[out_rlines]),
            x=np.array(self.x[out_rlines]),
            z=np.array(self.z[out_rlines]),
            roll=np.array(self.roll[out_rlines]),
            pitch=np.array(self.pitch[out_rlines]),
            heading=np.array(self.heading[out_rlines]),
            gps_time=np.array(self.gps_time[out_rlines]),
            surface=self.surface_at(self.output_along_track[out_rlines]),
            Lsar=self.Lsar,
        )


@dataclass
class ChunkProduct:
    """Migrated image of one chunk, sub-aperture and channel.

    Parameters
    ----------
    data : np.ndarray
        Complex image, shape ``(Nt, Nout)``.
    wfs : WaveformDescriptor
        Fast-time axis of ``data`` (trimmed when a pixel window is set).
    fcs : FlightCoordinateSystem
        FCS of the output lines, with ``pos`` for the channel.
    lat, lon, elev : np.ndarray
        Reference trajectory at the output lines, shape ``(Nout,)``.
    output_along_track : np.ndarray
        Along-track position of the output lines (m), ``(Nout,)``.
    param_sar : Dict[str, Any]
        Processing parameters used, for provenance.
    param_records : Dict[str, Any]
        Source-record provenance (segment, frame, record ranges).
    custom : Dict[str, np.ndarray]
        Auxiliary per-line arrays; the last axis is along-track.
    """

    data: np.ndarray
    wfs: WaveformDescriptor
    fcs: FlightCoordinateSystem
    lat: np.ndarray
    lon: np.ndarray
    elev: np.ndarray
    output_along_track: np.ndarray
    param_sar: Dict[str, Any] = field(default_factory=dict)
    param_records: Dict[str, Any] = field(default_factory=dict)
    custom: Dict[str, np.ndarray] = field(default_factory=dict)

    @property
    def time(self) -> np.ndarray:
        return self.wfs.time

    @property
    def num_lines(self) -> int:
        return self.data.shape[1]

    def gps_time(self) -> Optional[np.ndarray]:
        return self.fcs.gps_time
