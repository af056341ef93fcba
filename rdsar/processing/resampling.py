# -*- coding: utf-8 -*-
"""
Uniform Resampling - Along-track spectrum on the processing grid.

Migration needs data on the uniform processing grid

    proc_along_track = output_along_track_full[0] + k * sigma_x / oversample

transformed to along-track wavenumber. Two strategies:

- **Explicit** (``uniform=True``): Kaiser-windowed sinc interpolation of
  the (motion-corrected) non-uniform records onto the grid, filter length
  ``16 * proc_sigma_x``, then an along-track FFT. Grid points with no
  records inside the filter, i.e. the zero padding, stay zero.
- **Implicit** (``uniform=False``): the records are taken as uniform,
  zero-padded to the grid span and transformed directly; the bins inside
  the processing band are kept. Rounding can leave the selection one or
  two bins short. One missing bin is added at the first unselected
  position; two are added at the first and the last unselected
  positions. The band is that of the processing grid, so with several
  sub-apertures the selection keeps ``oversample`` times the bins of
  the output grid and matches the processing-grid wavenumbers the
  migration uses. With one sub-aperture the processing grid is the
  padded output grid and the rule selects its band exactly.

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
2026-10-10

Modified
--------
2026-10-16
"""

# Standard library
import logging
from dataclasses import dataclass

# Third-party
import numpy as np
from scipy import fft

# RDSAR internal
from rdsar.exceptions import ProcessingError
from rdsar.interpolation import sinc_resample_matrix

logger = logging.getLogger(__name__)

# Sinc filter length in processing-grid samples
_FILTER_SAMPLES = 16


def gen_kx(along_track: np.ndarray) -> np.ndarray:
    """Along-track wavenumber axis (rad/m) of a uniform grid, FFT order."""
    along_track = np.asarray(along_track, dtype=np.float64)
    n = len(along_track)
    if n < 2:
        return np.zeros(n)
    spacing = (along_track[-1] - along_track[0]) / (n - 1)
    return 2 * np.pi * np.fft.fftfreq(n, spacing)


@dataclass
class ResampledTile:
    """Along-track spectrum on the processing grid.

    Parameters
    ----------
    data : np.ndarray
        Fast-time frequency by along-track wavenumber, ``(Nt, Nproc)``.
    kx : np.ndarray
        Wavenumber of each column (rad/m), FFT order, ``(Nproc,)``.
    proc_along_track : np.ndarray
        Processing grid (m), ``(Nproc,)``.
    proc_sigma_x : float
        Processing grid spacing (m).
    """

    data: np.ndarray
    kx: np.ndarray
    proc_along_track: np.ndarray
    proc_sigma_x: float


class UniformResampler:
    """Resample chunk records onto the along-track processing grid.

    Parameters
    ----------
    sigma_x : float
        Output along-track spacing (m).
    oversample : int
        Processing oversampling factor, ``(1 + num_subapertures) / 2``.
    uniform : bool
        Explicit sinc resampling if True, spectral selection if False.
    beta : float
        Kaiser window shape of the sinc filter.
    """

    def __init__(
        self,
        sigma_x: float,
        oversample: int = 1,
        uniform: bool = True,
        beta: float = 5.0,
    ) -> None:
        self._sigma_x = float(sigma_x)
        self._oversample = int(oversample)
        self._uniform = uniform
        self._beta = beta

    @property
    def proc_sigma_x(self) -> float:
        return self._sigma_x / self._oversample

    def processing_grid(self, output_along_track_full: np.ndarray) -> np.ndarray:
        """Oversampled grid starting at the first padded output line."""
        n = len(output_along_track_full) * self._oversample
        return (output_along_track_full[0]
                + self.proc_sigma_x * np.arange(n))

    def resample(
        self,
        data_f: np.ndarray,
        along_track: np.ndarray,
        output_along_track_full: np.ndarray,
    ) -> ResampledTile:
        """Resample the fast-time spectrum of a chunk.

        Parameters
        ----------
        data_f : np.ndarray
            Fast-time spectrum per record, ``(Nt, Nx)``.
        along_track : np.ndarray
            Along-track position per record, including any motion
            correction ``dx`` (m), ``(Nx,)``.
        output_along_track_full : np.ndarray
            Padded output grid of the chunk (m).

        Raises
        ------
        ProcessingError
            If spectral selection cannot match the processing band.
        """
        proc = self.processing_grid(output_along_track_full)
        if self._uniform:
            data = self._explicit(data_f, along_track, proc)
        else:
            data = self._implicit(data_f, along_track, proc)
        return ResampledTile(
            data=data,
            kx=gen_kx(proc),
            proc_along_track=proc,
            proc_sigma_x=self.proc_sigma_x,
        )

    def _explicit(
        self,
        data_f: np.ndarray,
        along_track: np.ndarray,
        proc: np.ndarray,
    ) -> np.ndarray:
        order = np.argsort(along_track, kind='stable')
        matrix = sinc_resample_matrix(
            along_track[order], proc,
            spacing=self.proc_sigma_x,
            filter_length=_FILTER_SAMPLES * self.proc_sigma_x,
            beta=self._beta,
        )
        resampled = (matrix.T @ data_f[:, order].T).T
        logger.debug(
            "Explicit resampling: %d records onto %d grid points at %.3f m",
            data_f.shape[1], len(proc), self.proc_sigma_x,
        )
        return fft.fft(resampled, axis=1)

    def _implicit(
        self,
        data_f: np.ndarray,
        along_track: np.ndarray,
        proc: np.ndarray,
    ) -> np.ndarray:
        n_rec = data_f.shape[1]
        n_proc = len(proc)
        if n_rec < 2:
            raise ProcessingError(
                "Spectral resampling needs at least two records")
        spacing = (along_track[-1] - along_track[0]) / (n_rec - 1)

        # Zero records so the input spans the padded grid
        n_pre = max(0, int(round((along_track[0] - proc[0]) / spacing)))
        n_total = int(round(n_proc * self.proc_sigma_x / spacing))
        n_post = max(0, n_total - n_rec - n_pre)
        padded = np.pad(data_f, ((0, 0), (n_pre, n_post)))
        n_in = padded.shape[1]
        x0 = along_track[0] - n_pre * spacing
        x_lin = x0 + spacing * np.arange(n_in)

        kx = gen_kx(x_lin)
        kx_desired = gen_kx(proc)
        mask = (kx < np.max(kx_desired)) & (kx > np.min(kx_desired))
        short = n_proc - int(np.sum(mask))
        if short == 1:
            mask[np.flatnonzero(~mask)[0]] = True
        elif short == 2:
            mask[np.flatnonzero(~mask)[0]] = True
            mask[np.flatnonzero(~mask)[-1]] = True
        elif short != 0:
            raise ProcessingError(
                f"Spectral resampling selected {int(np.sum(mask))} "
                f"wavenumber bins for a {n_proc}-point grid; records are "
                f"not uniform at the processing spacing, enable explicit "
                f"resampling"
            )

        idx = np.flatnonzero(mask)
        idx = np.fft.ifftshift(idx[np.argsort(kx[idx], kind='stable')])
        spectrum = fft.fft(padded, axis=1)[:, idx]

        # Shift the transform origin from the first record to the grid
        shift = np.exp(1j * kx_desired * (proc[0] - x0))
        logger.debug(
            "Spectral resampling: %d of %d bins kept (%d pre, %d post "
            "zero records)", len(idx), n_in, n_pre, n_post,
        )
        return spectrum * shift[np.newaxis, :] * (spacing / self.proc_sigma_x)
