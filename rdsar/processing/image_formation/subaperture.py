# -*- coding: utf-8 -*-
"""
Sub-Aperture Set - Squint steering values for multi-look migration.

Steering values are in normalized Doppler units: one unit is the
along-track wavenumber band of one output grid, ``2 pi / sigma_x``.
A set of ``N`` values must be ``-(N-1)/4 : 0.5 : (N-1)/4`` with ``N``
odd, so neighbouring looks overlap by half a band and a zero-squint
look always exists. Processing then runs on an along-track grid
oversampled by ``(1 + N) / 2`` so every look fits in the band.

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
2026-10-12
"""

# Standard library
from typing import Iterator, Sequence, Tuple

# Third-party
import numpy as np

# RDSAR internal
from rdsar.exceptions import ConfigurationError

_STEP = 0.5
_TOL = 1e-9


class SubApertureSet:
    """Validated, ordered squint steering values.

    Parameters
    ----------
    steering : Sequence[float]
        Steering values in normalized Doppler units.

    Raises
    ------
    ConfigurationError
        If the count is even or zero, or the values are not the
        symmetric 0.5-step progression.
    """

    def __init__(self, steering: Sequence[float]) -> None:
        values = np.asarray(steering, dtype=np.float64).ravel()
        n = len(values)
        if n == 0 or n % 2 == 0:
            raise ConfigurationError(
                f"sub-aperture steering must be of form -N:0.5:N "
                f"(odd count), got {n} values: {values.tolist()}"
            )
        half = (n - 1) / 4
        expected = -half + _STEP * np.arange(n)
        if not np.allclose(values, expected, rtol=0.0, atol=_TOL):
            raise ConfigurationError(
                f"sub-aperture steering must be of form -N:0.5:N, "
                f"got {values.tolist()}"
            )
        self._values = tuple(float(v) for v in expected)

    def __len__(self) -> int:
        return len(self._values)

    def __iter__(self) -> Iterator[float]:
        return iter(self._values)

    def __repr__(self) -> str:
        return f"SubApertureSet({list(self._values)})"

    @property
    def values(self) -> Tuple[float, ...]:
        return self._values

    @property
    def oversample(self) -> int:
        """Along-track oversampling factor ``(1 + N) / 2``."""
        return (1 + len(self._values)) // 2

    def kx_band(self, kx0: float, sigma_x: float) -> Tuple[float, float]:
        """Along-track wavenumber band ``(lo, hi)`` of one look (rad/m)."""
        unit = 2 * np.pi / sigma_x
        return (kx0 - 0.5) * unit, (kx0 + 0.5) * unit

    def sin_band(
        self,
        kx0: float,
        wavelength: float,
        sigma_x: float,
    ) -> Tuple[float, float]:
        """Look-angle band ``(sin_lo, sin_hi)`` of one look.

        Follows from ``kx = (4 pi / wavelength) sin(theta)``.
        """
        unit = wavelength / (2 * sigma_x)
        return (kx0 - 0.5) * unit, (kx0 + 0.5) * unit
