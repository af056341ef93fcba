# -*- coding: utf-8 -*-
"""
Flight Coordinate System - Local SAR basis along the reference trajectory.

The FCS attaches an orthonormal basis (``x`` along-track, ``z`` up,
``y = z x x`` left) and an ECEF origin to every output along-track
sample. Phase centers are expressed in this basis (``pos``) for motion
compensation, and pixels are placed below the origin along ``-z`` for
backprojection.

Also builds the per-segment SAR coordinate content from a trajectory,
the pre-pass every chunk reads slices of.

Dependencies
------------
numpy
sarpy

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
2026-10-19
"""

# Standard library
import logging
from dataclasses import dataclass, replace
from typing import Optional

# Third-party
import numpy as np

# RDSAR internal
from rdsar.exceptions import DataGapError, GeolocationError
from rdsar.geolocation.coordinates import (
    along_track_distance,
    local_up,
    normalize,
)

logger = logging.getLogger(__name__)

# Largest |dot product| accepted between basis vectors
_ORTHO_TOL = 1e-6

# Positions this close past an edge still count as reaching it (m)
_EDGE_TOL = 1e-6


@dataclass
class FlightCoordinateSystem:
    """FCS vectors for a run of output along-track samples.

    Parameters
    ----------
    origin : np.ndarray
        Reference-trajectory position per line (ECEF, m), ``(N, 3)``.
    x : np.ndarray
        Unit along-track vector per line, ``(N, 3)``.
    z : np.ndarray
        Unit up vector per line, ``(N, 3)``.
    roll, pitch, heading : np.ndarray
        Attitude per line (radians), ``(N,)``.
    gps_time : np.ndarray
        GPS time per line (s), ``(N,)``.
    surface : np.ndarray
        Surface two-way travel time per line (s), ``(N,)``.
    Lsar : float
        Aperture length used to average phase centers (m).
    pos : np.ndarray, optional
        Mean phase-center position of one channel in the
        ``[x y z]`` basis, ``(N, 3)``.

    Raises
    ------
    GeolocationError
        If the vector arrays are misshapen or ``x`` and ``z`` are not
        orthogonal unit vectors.
    """

    origin: np.ndarray
    x: np.ndarray
    z: np.ndarray
    roll: np.ndarray
    pitch: np.ndarray
    heading: np.ndarray
    gps_time: np.ndarray
    surface: np.ndarray
    Lsar: float = 0.0
    pos: Optional[np.ndarray] = None

    def __post_init__(self) -> None:
        for name in ('origin', 'x', 'z'):
            arr = getattr(self, name)
            if arr.ndim != 2 or arr.shape[1] != 3:
                raise GeolocationError(
                    f"FCS {name} must have shape (N, 3), got {arr.shape}"
                )
        if len(self.origin) and np.max(
            np.abs(np.sum(self.x * self.z, axis=1))
        ) > _ORTHO_TOL:
            raise GeolocationError("FCS x and z vectors are not orthogonal")
        self.y = np.cross(self.z, self.x)

    def __len__(self) -> int:
        return self.origin.shape[0]

    @property
    def basis(self) -> np.ndarray:
        """Per-line ``[x y z]`` basis as columns, ``(N, 3, 3)``."""
        return np.stack((self.x, self.y, self.z), axis=2)

    def phase_center_ecef(self) -> np.ndarray:
        """ECEF of the channel phase center, ``origin + [x y z] pos``."""
        if self.pos is None:
            return np.array(self.origin)
        return self.origin + np.einsum('nij,nj->ni', self.basis, self.pos)

    def with_phase_centers(
        self,
        ecef: np.ndarray,
        along_track: np.ndarray,
        output_along_track: np.ndarray,
    ) -> 'FlightCoordinateSystem':
        """Return a copy carrying the channel's phase-center offsets.

        For every output line the phase centers within ``Lsar / 2``
        along-track are averaged and the mean is solved in the
        ``[x y z]`` basis. Lines without phase centers are filled by
        linear interpolation/extrapolation from valid lines.

        Parameters
        ----------
        ecef : np.ndarray
            Phase-center positions of the channel (m), ``(Nx, 3)``.
        along_track : np.ndarray
            Along-track position of each phase center (m), ``(Nx,)``.
        output_along_track : np.ndarray
            Along-track position of each FCS line (m), ``(N,)``.

        Raises
        ------
        DataGapError
            If no output line has a phase center within its aperture.
        """
        n_lines = len(self)
        half = self.Lsar / 2 + _EDGE_TOL
        lo = np.searchsorted(along_track, output_along_track - half, 'left')
        hi = np.searchsorted(along_track, output_along_track + half, 'right')
        counts = hi - lo
        valid = counts > 0
        if not np.any(valid):
            raise DataGapError(
                "Data gap extends across entire chunk: no phase centers "
                "within Lsar of any output line. Use a smaller chunk or "
                "split the segment."
            )

        csum = np.vstack((np.zeros((1, 3)), np.cumsum(ecef, axis=0)))
        mean_ecef = np.zeros((n_lines, 3))
        mean_ecef[valid] = (
            (csum[hi[valid]] - csum[lo[valid]]) / counts[valid, np.newaxis]
        )
        pos = np.full((n_lines, 3), np.nan)
        pos[valid] = np.linalg.solve(
            self.basis[valid],
            (mean_ecef[valid] - self.origin[valid])[..., np.newaxis],
        )[..., 0]

        if not np.all(valid):
            logger.warning(
                "%d of %d output lines have no phase centers; filling "
                "by linear extrapolation", int(np.sum(~valid)), n_lines,
            )
            pos = _fill_gaps(pos, valid)

        return replace(self, pos=pos)


def _fill_gaps(values: np.ndarray, valid: np.ndarray) -> np.ndarray:
    """Linear interpolation/extrapolation of invalid rows of ``values``."""
    idx = np.arange(len(values))
    good = idx[valid]
    filled = np.array(values)
    for col in range(values.shape[1]):
        if len(good) == 1:
            filled[~valid, col] = values[good[0], col]
            continue
        inner = np.interp(idx, good, values[good, col])
        # np.interp holds the end values, extend the end slopes instead
        before = idx < good[0]
        after = idx > good[-1]
        slope0 = (values[good[1], col] - values[good[0], col]) / (good[1] - good[0])
        slope1 = (values[good[-1], col] - values[good[-2], col]) / (good[-1] - good[-2])
        inner[before] = values[good[0], col] + slope0 * (idx[before] - good[0])
        inner[after] = values[good[-1], col] + slope1 * (idx[after] - good[-1])
        filled[~valid, col] = inner[~valid]
    return filled


def build_fcs_vectors(origin: np.ndarray) -> tuple:
    """Along-track and up unit vectors for a sampled reference line.

    ``x`` follows the gradient of the origin along the grid and ``z``
    is the ellipsoid normal with its ``x`` component removed, so the
    pair is orthonormal by construction.

    Parameters
    ----------
    origin : np.ndarray
        Reference-line ECEF positions, ``(M, 3)``, ``M >= 2``.

    Returns
    -------
    tuple
        ``(x, z)`` unit vectors, each ``(M, 3)``.
    """
    if origin.shape[0] < 2:
        raise GeolocationError(
            "At least two output lines are needed to define the FCS"
        )
    x = normalize(np.gradient(origin, axis=0))
    up = local_up(origin)
    z = normalize(up - np.sum(up * x, axis=1, keepdims=True) * x)
    return x, z


def build_sar_coordinates(
    trajectory,
    sigma_x: float,
    Lsar: float,
    presums: int = 1,
    gps_source: str = '',
):
    """Compute the SAR coordinate content of a segment from a trajectory.

    Parameters
    ----------
    trajectory : Trajectory
        Presummed per-record trajectory of the whole segment.
    sigma_x : float
        Output along-track spacing (m).
    Lsar : float
        Aperture length for phase-center averaging (m).
    presums : int
        Presums applied to ``trajectory``.
    gps_source : str
        Trajectory provenance string.

    Returns
    -------
    SarCoordinates
    """
    from rdsar.IO.models import SarCoordinates

    ecef = trajectory.ecef()
    along_track = along_track_distance(ecef)
    output_along_track = np.arange(0.0, along_track[-1] + _EDGE_TOL, sigma_x)

    origin = np.stack(
        [np.interp(output_along_track, along_track, ecef[:, k])
         for k in range(3)],
        axis=1,
    )
    x, z = build_fcs_vectors(origin)

    def _at_grid(values):
        return np.interp(output_along_track, along_track, values)

    logger.debug(
        "SAR coordinates: %d records, %d output lines at %.3f m",
        len(along_track), len(output_along_track), sigma_x,
    )
    return SarCoordinates(
        along_track=along_track,
        surface=np.array(trajectory.surface, dtype=np.float64),
        origin=origin,
        x=x,
        z=z,
        roll=_at_grid(trajectory.roll),
        pitch=_at_grid(trajectory.pitch),
        heading=_at_grid(np.unwrap(trajectory.heading)),
        gps_time=_at_grid(trajectory.gps_time),
        sigma_x=float(sigma_x),
        Lsar=float(Lsar),
        presums=int(presums),
        gps_source=gps_source,
    )
