# -*- coding: utf-8 -*-
"""
Interpolation Base Classes - Kernel interpolation on uniform grids.

``KernelInterpolator`` gathers the neighbours of every output point on a
uniformly sampled input axis, evaluates the subclass kernel on the
fractional distances, normalizes the weights and zero-fills points that
fall outside the input support. It works column-wise on 2-D arrays so a
whole spectrum can be remapped in one call, each column with its own
output coordinates.

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
2026-10-07

Modified
--------
2026-10-13
"""

# Standard library
from abc import ABC, abstractmethod

# Third-party
import numpy as np


class KernelInterpolator(ABC):
    """Base class for kernel-based interpolators on uniform grids.

    Subclasses only implement :meth:`_compute_weights`.

    Parameters
    ----------
    kernel_length : int
        Number of input samples used per output point. Must be >= 2.
    """

    def __init__(self, kernel_length: int) -> None:
        if kernel_length < 2:
            raise ValueError(
                f"kernel_length must be >= 2, got {kernel_length}"
            )
        self._kernel_length = kernel_length
        self._half = kernel_length // 2

    @property
    def kernel_length(self) -> int:
        return self._kernel_length

    @abstractmethod
    def _compute_weights(self, dx: np.ndarray) -> np.ndarray:
        """Compute kernel weights from normalized distances.

        Parameters
        ----------
        dx : np.ndarray
            Distances from output points to their neighbours in input
            sample units, shape ``(..., kernel_length)``.

        Returns
        -------
        np.ndarray
            Kernel weights, same shape as ``dx``.
        """
        ...

    def __call__(
        self,
        y_old: np.ndarray,
        x0: float,
        dx: float,
        x_new: np.ndarray,
    ) -> np.ndarray:
        """Interpolate uniformly sampled columns at new coordinates.

        Parameters
        ----------
        y_old : np.ndarray
            Samples at ``x0 + dx * arange(N)``, shape ``(N,)`` or
            ``(N, C)``; real or complex.
        x0 : float
            Coordinate of the first input sample.
        dx : float
            Input sample spacing (non-zero).
        x_new : np.ndarray
            Output coordinates, shape ``(M,)`` or ``(M, C)`` matching
            the columns of ``y_old``.

        Returns
        -------
        np.ndarray
            Interpolated values, same shape as ``x_new``. Points outside
            ``[x0, x0 + (N-1) dx]`` are 0.
        """
        squeeze = y_old.ndim == 1
        y2 = y_old[:, np.newaxis] if squeeze else y_old
        x2 = x_new[:, np.newaxis] if x_new.ndim == 1 else x_new
        n, n_cols = y2.shape

        pos = (x2 - x0) / dx
        idx = np.floor(pos).astype(np.int64)
        offsets = np.arange(-self._half + 1, self._half + 1)

        # (M, C, kernel_length)
        neighbors = idx[..., np.newaxis] + offsets
        inside = (neighbors >= 0) & (neighbors < n)
        clipped = np.clip(neighbors, 0, n - 1)
        cols = np.arange(n_cols)[np.newaxis, :, np.newaxis]
        values = y2[clipped, cols]

        weights = self._compute_weights(pos[..., np.newaxis] - neighbors)
        weights = np.where(inside, weights, 0.0)

        # Normalize to preserve DC level
        row_sums = np.sum(weights, axis=-1, keepdims=True)
        row_sums = np.where(np.abs(row_sums) < 1e-15, 1.0, row_sums)
        weights = weights / row_sums

        result = np.sum(weights * values, axis=-1)
        oob = (pos < 0) | (pos > n - 1)
        result = np.where(oob, 0.0, result)

        if squeeze and x_new.ndim == 1:
            return result[:, 0]
        return result
