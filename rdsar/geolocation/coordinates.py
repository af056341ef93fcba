# -*- coding: utf-8 -*-
"""
Coordinate Conversions - WGS-84 geodetic/ECEF helpers for trajectories.

Thin vectorized wrappers around ``sarpy.geometry.geocoords`` that accept
the separate ``lat``/``lon``/``elev`` arrays used by trajectories and
return ``(N, 3)`` ECEF arrays, plus along-track path length.

Dependencies
------------
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
2026-10-13
"""

# Standard library
from typing import Tuple

# Third-party
import numpy as np
from sarpy.geometry.geocoords import (
    ecf_to_geodetic,
    geodetic_to_ecf,
    wgs_84_norm,
)


def geodetic_to_ecef(
    lat: np.ndarray,
    lon: np.ndarray,
    elev: np.ndarray,
) -> np.ndarray:
    """Convert geodetic coordinates to ECEF.

    Parameters
    ----------
    lat, lon : np.ndarray
        Latitude and longitude in degrees, shape ``(N,)``.
    elev : np.ndarray
        Height above the WGS-84 ellipsoid in meters, shape ``(N,)``.

    Returns
    -------
    np.ndarray
        ECEF positions in meters, shape ``(N, 3)``.
    """
    llh = np.stack(
        np.broadcast_arrays(
            np.asarray(lat, dtype=np.float64),
            np.asarray(lon, dtype=np.float64),
            np.asarray(elev, dtype=np.float64),
        ),
        axis=-1,
    )
    return np.asarray(geodetic_to_ecf(llh), dtype=np.float64)


def ecef_to_geodetic(
    ecef: np.ndarray,
) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """Convert ECEF positions to geodetic coordinates.

    Parameters
    ----------
    ecef : np.ndarray
        ECEF positions in meters, shape ``(N, 3)``.

    Returns
    -------
    Tuple[np.ndarray, np.ndarray, np.ndarray]
        ``(lat, lon, elev)`` in degrees, degrees, meters.
    """
    llh = np.asarray(ecf_to_geodetic(np.asarray(ecef, dtype=np.float64)))
    return llh[..., 0], llh[..., 1], llh[..., 2]


def local_up(ecef: np.ndarray) -> np.ndarray:
    """Unit WGS-84 ellipsoid normal at each ECEF position, ``(N, 3)``."""
    return np.asarray(wgs_84_norm(np.asarray(ecef, dtype=np.float64)))


def along_track_distance(ecef: np.ndarray) -> np.ndarray:
    """Cumulative 3-D path length along a trajectory.

    Parameters
    ----------
    ecef : np.ndarray
        ECEF positions, shape ``(N, 3)``.

    Returns
    -------
    np.ndarray
        Distance from the first position in meters, shape ``(N,)``.
    """
    steps = np.linalg.norm(np.diff(ecef, axis=0), axis=1)
    return np.concatenate(([0.0], np.cumsum(steps)))


def normalize(vectors: np.ndarray) -> np.ndarray:
    """Normalize row vectors of an ``(N, 3)`` array to unit length."""
    lengths = np.linalg.norm(vectors, axis=-1, keepdims=True)
    return vectors / np.where(lengths == 0, 1.0, lengths)
