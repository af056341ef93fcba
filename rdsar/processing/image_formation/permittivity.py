# -*- coding: utf-8 -*-
"""
Permittivity Profile - Two-layer air/ice refraction boundary.

Air (``eps_r = 1``) above the surface two-way travel time, a constant
relative permittivity below it. The f-k engine uses the mean surface of
the chunk, backprojection uses the per-line surface.

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
2026-10-11
"""

# Standard library
from dataclasses import dataclass

# Third-party
import numpy as np


@dataclass(frozen=True)
class PermittivityProfile:
    """Surface-referenced two-layer permittivity.

    Parameters
    ----------
    surface : np.ndarray
        Surface two-way travel time per output line (s), ``(Nout,)``.
        When motion compensation is on this includes the applied time
        shift.
    eps_r : float
        Relative permittivity below the surface.
    """

    surface: np.ndarray
    eps_r: float

    @property
    def mean_surface(self) -> float:
        return float(np.mean(self.surface))

    @property
    def is_layered(self) -> bool:
        return self.eps_r != 1.0

    def eps_at(self, time: np.ndarray, surface_time: float = None) -> np.ndarray:
        """Relative permittivity of every fast-time bin.

        Parameters
        ----------
        time : np.ndarray
            Fast-time axis (s).
        surface_time : float, optional
            Boundary to use; defaults to the mean surface.
        """
        ts = self.mean_surface if surface_time is None else surface_time
        return np.where(np.asarray(time) < ts, 1.0, self.eps_r)

    def surface_bins(self, t0: float, dt: float, num_samples: int) -> np.ndarray:
        """Last fast-time bin at or above the surface, per line.

        ``floor((surface - t0) / dt)`` clamped to ``[-1, Nt - 1]``: -1
        puts every bin below the surface, ``Nt - 1`` puts every bin in
        air.
        """
        bins = np.floor((self.surface - t0) / dt).astype(np.int64)
        return np.clip(bins, -1, num_samples - 1)
