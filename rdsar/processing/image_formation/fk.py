# -*- coding: utf-8 -*-
"""
f-k Migration - Stolt migration of a two-layer (air/ice) medium.

Operates on the fast-time frequency by along-track wavenumber spectrum
from the resampling stage. With the fast-time origin removed, a point
target at two-way time ``tau`` and along-track position ``xt`` appears
as ``exp(-i 2 pi f tau) exp(-i kx xt)`` after migration; the Stolt
mapping that produces this is::

    f_req = sqrt(f^2 + (c kx / 4 pi)^2 / eps_r),   jacobian f / f_req

When the medium is layered and the surface lies before the end of the
window, the air image supplies the rows above the surface. For the ice
image the wavefield is first continued down to the surface
(``exp(+i kz_air h)``, ``h = c ts / 2``), migrated with ``eps_r`` and
delayed by ``ts``.

Each sub-aperture takes the wavenumber band
``[(kx0 - 0.5), (kx0 + 0.5)] * 2 pi / sigma_x``, weighted by the
slow-time window and folded onto the ``sigma_x`` output grid.

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
2026-10-11

Modified
--------
2026-10-17
"""

# Standard library
import logging
from typing import Any, Callable, Dict, Optional, Union

# Third-party
import numpy as np
from scipy import fft

# RDSAR internal
from rdsar.constants import C
from rdsar.exceptions import ProcessingError
from rdsar.interpolation import KaiserSincInterpolator
from rdsar.IO.models import WaveformDescriptor
from rdsar.processing.image_formation.base import (
    MigrationEngine,
    resolve_window,
    window_weights,
)
from rdsar.processing.image_formation.permittivity import PermittivityProfile
from rdsar.processing.image_formation.subaperture import SubApertureSet
from rdsar.processing.motion_comp import undo_motion_compensation
from rdsar.processing.resampling import ResampledTile

logger = logging.getLogger(__name__)

_BAND_TOL = 1e-9


class FkMigration(MigrationEngine):
    """Frequency-wavenumber migration with sub-aperture looks.

    Parameters
    ----------
    sub_apertures : SubApertureSet
        Squint steering values.
    sigma_x : float
        Output along-track spacing (m).
    st_wind : str or callable, optional
        Slow-time window across each sub-aperture band. Built-in
        options: ``'uniform'`` (default), ``'taylor'``, ``'hamming'``,
        ``'hanning'``.
    ft_oversample : int
        Fast-time zero-padding factor. Default 2.
    kernel_length : int
        Stolt interpolation kernel length. Default 8.
    beta : float
        Kaiser shape of the Stolt kernel. Default 5.0.
    verbose : bool
        Log stage messages at INFO instead of DEBUG. Default False.

    Examples
    --------
    >>> fk = FkMigration(SubApertureSet([0.0]), sigma_x=2.5)
    >>> image = fk.form_image(tile, wfs, permittivity, num_pre, num_post)
    >>> image.shape  # (Nt, Nout, 1)
    """

    def __init__(
        self,
        sub_apertures: SubApertureSet,
        sigma_x: float,
        st_wind: Union[str, Callable, None] = 'uniform',
        ft_oversample: int = 2,
        kernel_length: int = 8,
        beta: float = 5.0,
        verbose: bool = False,
    ) -> None:
        self._sub_apertures = sub_apertures
        self._sigma_x = float(sigma_x)
        # Raises ConfigurationError for unknown names
        resolve_window(st_wind)
        self._st_wind = st_wind
        self._ft_oversample = max(1, int(ft_oversample))
        self._interp = KaiserSincInterpolator(kernel_length, beta)
        self._log = logger.info if verbose else logger.debug
        self._grid: Dict[str, Any] = {}

    # ------------------------------------------------------------------
    # Stages
    # ------------------------------------------------------------------

    def pad_fast_time(
        self,
        data: np.ndarray,
        wfs: WaveformDescriptor,
    ) -> np.ndarray:
        """Zero-pad the fast-time window and remove its origin.

        Returns the spectrum ``(Nt2, Nkx)`` over :meth:`padded_freq`,
        phase-referenced to zero time.
        """
        n2 = self._ft_oversample * wfs.num_samples
        padded = fft.fft(fft.ifft(data, axis=0), n=n2, axis=0)
        f_bb = np.fft.fftfreq(n2, wfs.dt)
        return padded * np.exp(-2j * np.pi * f_bb * wfs.t0)[:, np.newaxis]

    def padded_freq(self, wfs: WaveformDescriptor) -> np.ndarray:
        """Absolute frequency of the padded fast-time bins, FFT order."""
        n2 = self._ft_oversample * wfs.num_samples
        return wfs.fc + np.fft.fftfreq(n2, wfs.dt)

    def stolt(
        self,
        spectrum: np.ndarray,
        freq: np.ndarray,
        kx: np.ndarray,
        eps_r: float,
        t_ref: float,
    ) -> np.ndarray:
        """Stolt-map a zero-referenced spectrum.

        Parameters
        ----------
        spectrum : np.ndarray
            ``(Nf, Nkx)`` spectrum, rows in FFT order of ``freq``.
        freq : np.ndarray
            Absolute frequency of each row (Hz), FFT order.
        kx : np.ndarray
            Along-track wavenumber of each column (rad/m).
        eps_r : float
            Relative permittivity of the medium.
        t_ref : float
            Demodulation reference time (s), near the middle of the
            targets' delays.

        Returns
        -------
        np.ndarray
            Migrated spectrum on the same ``freq`` rows.
        """
        order = np.argsort(freq, kind='stable')
        f_sorted = freq[order]
        df = f_sorted[1] - f_sorted[0]

        demod = spectrum[order] * np.exp(2j * np.pi * f_sorted * t_ref)[:, np.newaxis]
        f_out = f_sorted[:, np.newaxis]
        f_req = np.sqrt(f_out ** 2 + (C * kx[np.newaxis, :] / (4 * np.pi)) ** 2 / eps_r)
        f_req = np.broadcast_to(f_req, demod.shape)

        mapped = self._interp(demod, f_sorted[0], df, f_req)
        mapped = mapped * np.exp(-2j * np.pi * f_req * t_ref) * (f_out / f_req)
        mapped = np.where(f_out > 0, mapped, 0.0)

        out = np.empty_like(mapped)
        out[order] = mapped
        return out

    def downward_continue(
        self,
        spectrum: np.ndarray,
        freq: np.ndarray,
        kx: np.ndarray,
        surface_time: float,
    ) -> np.ndarray:
        """Continue a zero-referenced air wavefield down to the surface."""
        kz2 = (4 * np.pi * freq[:, np.newaxis] / C) ** 2 - kx[np.newaxis, :] ** 2
        propagating = kz2 > 0
        kz = np.sqrt(np.where(propagating, kz2, 0.0))
        depth = C * surface_time / 2
        return np.where(propagating, spectrum * np.exp(1j * kz * depth), 0.0)

    def sub_aperture(
        self,
        spectrum: np.ndarray,
        kx: np.ndarray,
        kx0: float,
        num_full: int,
    ) -> np.ndarray:
        """Fold one look's wavenumber band onto the output grid.

        Returns the along-track image ``(Nf, num_full)``.
        """
        lo, hi = self._sub_apertures.kx_band(kx0, self._sigma_x)
        position = (kx - lo) / (hi - lo)
        # Half-open band, tolerant of rounding in the bin positions
        cols = np.flatnonzero((position > -_BAND_TOL) & (position < 1 - _BAND_TOL))
        weights = window_weights(self._st_wind, np.clip(position[cols], 0.0, 1.0))

        dkx = 2 * np.pi / (num_full * self._sigma_x)
        target = np.mod(np.round(kx[cols] / dkx).astype(np.int64), num_full)
        folded = np.zeros((spectrum.shape[0], num_full), dtype=np.complex128)
        np.add.at(folded.T, target, (spectrum[:, cols] * weights).T)
        return fft.ifft(folded, axis=1)

    def to_fast_time(
        self,
        spectrum: np.ndarray,
        freq: np.ndarray,
        wfs: WaveformDescriptor,
    ) -> np.ndarray:
        """Restore the window origin and return the first ``Nt`` samples."""
        f_bb = freq - wfs.fc
        shifted = spectrum * np.exp(2j * np.pi * f_bb * wfs.t0)[:, np.newaxis]
        return fft.ifft(shifted, axis=0)[:wfs.num_samples]

    # ------------------------------------------------------------------
    # Full pipeline
    # ------------------------------------------------------------------

    def form_image(
        self,
        tile: ResampledTile,
        wfs: WaveformDescriptor,
        permittivity: PermittivityProfile,
        num_pre: int,
        num_post: int,
        dtime_out: Optional[np.ndarray] = None,
    ) -> np.ndarray:
        """Migrate one channel of a chunk.

        Parameters
        ----------
        tile : ResampledTile
            Along-track spectrum on the processing grid.
        wfs : WaveformDescriptor
            Fast-time axis of the data.
        permittivity : PermittivityProfile
            Surface and sub-surface permittivity.
        num_pre, num_post : int
            Padding lines trimmed from the start and end of the padded
            output grid.
        dtime_out : np.ndarray, optional
            Motion compensation time shift at the output lines (s);
            undone after migration when given.

        Returns
        -------
        np.ndarray
            Complex image ``(Nt, Nout, num_subapertures)``.
        """
        oversample = self._sub_apertures.oversample
        num_proc = tile.data.shape[1]
        num_full = num_proc // oversample
        num_out = num_full - num_pre - num_post
        if num_out <= 0:
            raise ProcessingError(
                f"Padding ({num_pre} + {num_post}) leaves no output lines "
                f"of {num_full}"
            )

        freq = self.padded_freq(wfs)
        spectrum = self.pad_fast_time(tile.data, wfs)
        t_center = wfs.t0 + wfs.num_samples * wfs.dt / 2
        t_end = wfs.t0 + wfs.num_samples * wfs.dt
        ts = permittivity.mean_surface
        layered = permittivity.is_layered and ts < t_end

        self._log(
            "f-k: %d x %d spectrum, %d looks, eps_r %.2f, surface %.3f us%s",
            spectrum.shape[0], num_proc, len(self._sub_apertures),
            permittivity.eps_r, ts * 1e6, " (layered)" if layered else "",
        )

        air = None
        if not layered or ts > wfs.t0:
            air = self.stolt(spectrum, freq, tile.kx, 1.0, t_center)
        ice = None
        ice_rows = None
        if layered:
            continued = self.downward_continue(spectrum, freq, tile.kx, ts)
            ice = self.stolt(continued, freq, tile.kx,
                             permittivity.eps_r, t_center - ts)
            ice = ice * np.exp(-2j * np.pi * freq * ts)[:, np.newaxis]
            ice_rows = permittivity.eps_at(wfs.time, ts) != 1.0

        image = np.empty((wfs.num_samples, num_out, len(self._sub_apertures)),
                         dtype=np.complex128)
        # Output gain independent of the along-track oversampling
        gain = 1.0 / oversample
        for idx, kx0 in enumerate(self._sub_apertures):
            look = None
            if air is not None:
                look = self.to_fast_time(
                    self.sub_aperture(air, tile.kx, kx0, num_full), freq, wfs)
            if ice is not None:
                look_ice = self.to_fast_time(
                    self.sub_aperture(ice, tile.kx, kx0, num_full), freq, wfs)
                look = (look_ice if look is None
                        else np.where(ice_rows[:, np.newaxis], look_ice, look))
            image[:, :, idx] = gain * look[:, num_pre:num_full - num_post]
            self._log("f-k: look %d/%d (kx0 %+.1f) done",
                      idx + 1, len(self._sub_apertures), kx0)

        if dtime_out is not None:
            image = undo_motion_compensation(image, wfs.freq, dtime_out)

        self._grid = {
            'sigma_x': self._sigma_x,
            'num_lines': num_out,
            'num_samples': wfs.num_samples,
            'sub_aperture_steering': list(self._sub_apertures.values),
        }
        return image

    def get_output_grid(self) -> Dict[str, Any]:
        return dict(self._grid)
