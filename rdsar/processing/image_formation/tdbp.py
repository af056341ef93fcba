# -*- coding: utf-8 -*-
"""
Time-Domain Backprojection - Per-pixel coherent integration with refraction.

Every output line carries a column of pixels below its FCS origin. A
pixel's distance below the origin follows the fast-time axis, with the
ice velocity below the surface::

    r = c t / 2                               t <= ts
    r = c ts / 2 + c (t - ts) / (2 sqrt(eps))    t >  ts

For each phase center within ``Lsar / 2`` along-track the two-way
delay to the pixel is computed along a straight air ray above the
surface, or a two-segment ray below it whose surface crossing is found
by Newton iteration of Snell's law. The delayed sample is read from a
matched-signal library of sub-bin shifted sinc kernels, the carrier
phase restored, and the samples summed under the sub-aperture angular
mask and slow-time window. Sums are normalized by ``sqrt(sum w^2)`` and
``sqrt(dx_in / sigma_x)``, which matches the f-k gain for a point
target.

Accumulation runs in a numba kernel or an equivalent numpy path.

Dependencies
------------
numba

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
2026-10-12

Modified
--------
2026-10-17
"""

# Standard library
import logging
import math
from typing import Any, Callable, Dict, Optional, Tuple, Union

# Third-party
import numba as nb
import numpy as np

# RDSAR internal
from rdsar.constants import C
from rdsar.geolocation.fcs import FlightCoordinateSystem
from rdsar.IO.models import WaveformDescriptor
from rdsar.processing.image_formation.base import (
    MigrationEngine,
    resolve_window,
    window_weights,
)
from rdsar.processing.image_formation.permittivity import PermittivityProfile
from rdsar.processing.image_formation.subaperture import SubApertureSet

logger = logging.getLogger(__name__)

# Half-width of the library kernels in 1 / (bw dt) units; covers ~97.5%
# of the sinc^2 energy
_LIB_HALF_WIDTH = 3.94

_NEWTON_ITERATIONS = 8

# Smallest antenna height above the surface used in the ray solver (m)
_MIN_HEIGHT = 1e-3


# ==================================================================
# Numba-accelerated kernel
# ==================================================================

@nb.njit(parallel=True, cache=True)
def _nb_accumulate_line(data, pc_idx, bins, cols, phase, weight, lib):
    """Weighted sum of library-interpolated samples for one line.

    Parameters
    ----------
    data : complex128, shape (Nt, Nx)
    pc_idx : int64, shape (Na,)
        Record of each aperture position.
    bins, cols : int64, shape (Npix, Na)
        Base sample and library column of each delay.
    phase : complex128, shape (Npix, Na)
        Carrier restoration of each delay.
    weight : float64, shape (Nsub, Npix, Na)
    lib : float64, shape (Ntaps, Nlib)

    Returns
    -------
    complex128, shape (Npix, Nsub)
    """
    n_t = data.shape[0]
    n_pix = bins.shape[0]
    n_ap = bins.shape[1]
    n_sub = weight.shape[0]
    n_taps = lib.shape[0]
    half = n_taps // 2

    out = np.zeros((n_pix, n_sub), dtype=np.complex128)
    for i in nb.prange(n_pix):
        for a in range(n_ap):
            used = False
            for s in range(n_sub):
                if weight[s, i, a] != 0.0:
                    used = True
            if not used:
                continue
            base = bins[i, a]
            col = cols[i, a]
            rec = pc_idx[a]
            acc = 0.0 + 0.0j
            for j in range(n_taps):
                m = base + j - half
                if m >= 0 and m < n_t:
                    acc += data[m, rec] * lib[j, col]
            acc *= phase[i, a]
            for s in range(n_sub):
                out[i, s] += weight[s, i, a] * acc
    return out


def _np_accumulate_line(data, pc_idx, bins, cols, phase, weight, lib):
    """Numpy equivalent of :func:`_nb_accumulate_line`."""
    n_t = data.shape[0]
    n_taps = lib.shape[0]
    half = n_taps // 2
    values = np.zeros(bins.shape, dtype=np.complex128)
    for j in range(n_taps):
        m = bins + (j - half)
        inside = (m >= 0) & (m < n_t)
        samples = data[np.clip(m, 0, n_t - 1), pc_idx[np.newaxis, :]]
        values += np.where(inside, samples, 0.0) * lib[j, cols]
    values *= phase
    return np.einsum('sia,ia->is', weight, values)


def matched_signal_library(
    bw: float,
    dt: float,
    n_lib: int = 32,
) -> np.ndarray:
    """Sub-bin delayed sinc kernels.

    ``lib[j + L, k] = sinc((j - k / n_lib) dt bw) bw dt`` for
    ``|j| <= L = ceil(3.94 / (bw dt))``.

    Returns
    -------
    np.ndarray
        Shape ``(2 L + 1, n_lib)``.
    """
    half = int(math.ceil(_LIB_HALF_WIDTH / (bw * dt)))
    taps = np.arange(-half, half + 1)[:, np.newaxis]
    shifts = np.arange(n_lib)[np.newaxis, :] / n_lib
    return np.sinc((taps - shifts) * dt * bw) * bw * dt


def delay_to_lookup(
    tau: np.ndarray,
    t0: float,
    dt: float,
    n_lib: int,
) -> Tuple[np.ndarray, np.ndarray]:
    """Base sample and nearest library column of each delay."""
    pos = (tau - t0) / dt
    bins = np.floor(pos).astype(np.int64)
    cols = np.floor((pos - bins) * n_lib + 0.5).astype(np.int64)
    wrap = cols == n_lib
    cols[wrap] = 0
    bins[wrap] += 1
    return bins, cols


def refracted_delay(
    height: np.ndarray,
    depth: np.ndarray,
    offset: np.ndarray,
    n_ice: float,
    iterations: int = _NEWTON_ITERATIONS,
) -> Tuple[np.ndarray, np.ndarray]:
    """Two-way delay and air-side sine of a two-segment ray.

    Solves Snell's law ``sin(a_air) = n sin(a_ice)`` for the horizontal
    distance ``xi`` from the antenna to the surface crossing.

    Parameters
    ----------
    height : np.ndarray
        Antenna height above the surface (m).
    depth : np.ndarray
        Pixel depth below the surface (m).
    offset : np.ndarray
        Horizontal antenna-to-pixel distance (m).
    n_ice : float
        Refractive index below the surface.

    Returns
    -------
    Tuple[np.ndarray, np.ndarray]
        ``(tau, sin_air)``.
    """
    height = np.maximum(height, _MIN_HEIGHT)
    depth = np.maximum(depth, 0.0)
    xi = n_ice * offset * height / np.maximum(depth + n_ice * height, _MIN_HEIGHT)
    for _ in range(iterations):
        rem = offset - xi
        air = np.sqrt(height ** 2 + xi ** 2)
        ice = np.sqrt(depth ** 2 + rem ** 2)
        ice_safe = np.where(ice > 0, ice, 1.0)
        g = xi / air - n_ice * np.where(ice > 0, rem / ice_safe, 0.0)
        dg = height ** 2 / air ** 3 + n_ice * np.where(
            ice > 0, depth ** 2 / ice_safe ** 3, 0.0)
        xi = np.clip(xi - g / np.where(dg > 0, dg, 1.0), 0.0, offset)
    air = np.sqrt(height ** 2 + xi ** 2)
    ice = np.sqrt(depth ** 2 + (offset - xi) ** 2)
    return 2 * (air + n_ice * ice) / C, xi / air


class TimeDomainBackProjection(MigrationEngine):
    """Backprojection with surface refraction and sub-aperture looks.

    Parameters
    ----------
    sub_apertures : SubApertureSet
        Squint steering values.
    sigma_x : float
        Output along-track spacing (m).
    st_wind : str or callable, optional
        Slow-time window across each look's angular band.
    n_lib : int
        Sub-bin delays in the matched-signal library. Default 32.
    refraction : bool
        Bent rays below the surface; straight rays if False.
    start_time, end_time : float, optional
        Fast-time window of the output pixels (s).
    use_numba : bool
        Accumulate with the numba kernel. Default True.
    verbose : bool
        Log stage messages at INFO instead of DEBUG. Default False.
    """

    def __init__(
        self,
        sub_apertures: SubApertureSet,
        sigma_x: float,
        st_wind: Union[str, Callable, None] = 'uniform',
        n_lib: int = 32,
        refraction: bool = True,
        start_time: Optional[float] = None,
        end_time: Optional[float] = None,
        use_numba: bool = True,
        verbose: bool = False,
    ) -> None:
        self._sub_apertures = sub_apertures
        self._sigma_x = float(sigma_x)
        resolve_window(st_wind)
        self._st_wind = st_wind
        self._n_lib = int(n_lib)
        self._refraction = refraction
        self._start_time = start_time
        self._end_time = end_time
        self._use_numba = use_numba
        self._log = logger.info if verbose else logger.debug
        self._grid: Dict[str, Any] = {}

    def pixel_window(self, wfs: WaveformDescriptor) -> Tuple[int, int]:
        """Half-open fast-time bin range of the output pixels."""
        start, stop = 0, wfs.num_samples
        if self._start_time is not None:
            start = int(math.ceil((self._start_time - wfs.t0) / wfs.dt - 1e-9))
        if self._end_time is not None:
            stop = int(math.floor((self._end_time - wfs.t0) / wfs.dt + 1e-9)) + 1
        start = min(max(start, 0), wfs.num_samples)
        stop = min(max(stop, start), wfs.num_samples)
        return start, stop

    def pixel_ranges(
        self,
        time: np.ndarray,
        surface_time: float,
        surface_bin: int,
        eps_r: float,
    ) -> np.ndarray:
        """Distance of each pixel below the FCS origin (m)."""
        n_ice = math.sqrt(eps_r)
        below = np.arange(len(time)) > surface_bin
        return np.where(
            below,
            C * surface_time / 2 + C * (time - surface_time) / (2 * n_ice),
            C * time / 2,
        )

    def line_geometry(
        self,
        local: np.ndarray,
        time: np.ndarray,
        pixel_bins: np.ndarray,
        surface_time: float,
        surface_bin: int,
        eps_r: float,
    ) -> Tuple[np.ndarray, np.ndarray]:
        """Two-way delays and along-track look sines for one line.

        Parameters
        ----------
        local : np.ndarray
            Phase centers in the line's ``[x y z]`` basis relative to its
            origin, ``(Na, 3)``.
        time : np.ndarray
            Full fast-time axis (s).
        pixel_bins : np.ndarray
            Fast-time bins of the output pixels.
        surface_time : float
            Surface two-way travel time at the line (s).
        surface_bin : int
            Clamped surface bin of the line.
        eps_r : float
            Relative permittivity below the surface.

        Returns
        -------
        Tuple[np.ndarray, np.ndarray]
            ``(tau, sin_theta)``, each ``(Npix, Na)``.
        """
        n_ice = math.sqrt(eps_r)
        r = self.pixel_ranges(time, surface_time, surface_bin, eps_r)[pixel_bins]
        a = local[np.newaxis, :, 0]
        b = local[np.newaxis, :, 1]
        h = local[np.newaxis, :, 2]
        r = r[:, np.newaxis]

        slant = np.sqrt(a ** 2 + b ** 2 + (h + r) ** 2)
        tau = np.broadcast_to(2 * slant / C, slant.shape).copy()
        sin_theta = np.broadcast_to(
            -a / np.where(slant > 0, slant, 1.0), slant.shape).copy()

        ice = pixel_bins > surface_bin
        if not np.any(ice):
            return tau, sin_theta
        r_surf = C * surface_time / 2
        height = np.broadcast_to(h + r_surf, (int(np.sum(ice)), local.shape[0]))
        depth = np.broadcast_to(r[ice] - r_surf, height.shape)
        offset = np.broadcast_to(np.sqrt(a ** 2 + b ** 2), height.shape)

        if self._refraction:
            tau_ice, sin_air = refracted_delay(height, depth, offset, n_ice)
            along = np.broadcast_to(-a, height.shape)
            sin_ice = np.where(
                offset > 0, sin_air * along / np.where(offset > 0, offset, 1.0), 0.0)
        else:
            total = slant[ice]
            frac_air = height / np.maximum(height + depth, _MIN_HEIGHT)
            tau_ice = 2 * total * (frac_air + n_ice * (1 - frac_air)) / C
            sin_ice = sin_theta[ice]
        tau[ice] = tau_ice
        sin_theta[ice] = sin_ice
        return tau, sin_theta

    def form_image(
        self,
        data: np.ndarray,
        wfs: WaveformDescriptor,
        phase_centers: np.ndarray,
        along_track: np.ndarray,
        fcs: FlightCoordinateSystem,
        output_along_track: np.ndarray,
        permittivity: PermittivityProfile,
        Lsar: Optional[float] = None,
    ) -> np.ndarray:
        """Backproject one channel of a chunk.

        Parameters
        ----------
        data : np.ndarray
            Pulse-compressed samples ``(Nt, Nx)``.
        wfs : WaveformDescriptor
            Fast-time axis of ``data``.
        phase_centers : np.ndarray
            Phase-center ECEF per record (m), ``(Nx, 3)``.
        along_track : np.ndarray
            Along-track position per record (m), increasing, ``(Nx,)``.
        fcs : FlightCoordinateSystem
            FCS of the output lines.
        output_along_track : np.ndarray
            Along-track position of the output lines (m), ``(Nout,)``.
        permittivity : PermittivityProfile
            Smoothed surface per output line and sub-surface
            permittivity.
        Lsar : float, optional
            Aperture length (m); defaults to ``fcs.Lsar``.

        Returns
        -------
        np.ndarray
            Complex image ``(Npix, Nout, num_subapertures)`` over the
            pixel window of :meth:`pixel_window`.
        """
        Lsar = fcs.Lsar if Lsar is None else float(Lsar)
        data = np.ascontiguousarray(data, dtype=np.complex128)
        lib = matched_signal_library(wfs.bw, wfs.dt, self._n_lib)
        start, stop = self.pixel_window(wfs)
        pixel_bins = np.arange(start, stop)
        time = wfs.time
        surface_bins = permittivity.surface_bins(wfs.t0, wfs.dt, wfs.num_samples)
        bands = [
            self._sub_apertures.sin_band(kx0, wfs.wavelength, self._sigma_x)
            for kx0 in self._sub_apertures
        ]
        dx_in = float(np.median(np.diff(along_track))) if len(along_track) > 1 else self._sigma_x
        gain = math.sqrt(dx_in / self._sigma_x)
        accumulate = _nb_accumulate_line if self._use_numba else _np_accumulate_line

        n_out = len(output_along_track)
        image = np.zeros((len(pixel_bins), n_out, len(bands)), dtype=np.complex128)
        self._log(
            "TDBP: %d records, %d lines x %d pixels, %d looks, Lsar %.1f m, "
            "%s accumulation", data.shape[1], n_out, len(pixel_bins),
            len(bands), Lsar, "numba" if self._use_numba else "numpy",
        )

        lo_idx = np.searchsorted(along_track, output_along_track - Lsar / 2, 'left')
        hi_idx = np.searchsorted(along_track, output_along_track + Lsar / 2, 'right')
        basis = fcs.basis
        for line in range(n_out):
            pc_idx = np.arange(lo_idx[line], hi_idx[line], dtype=np.int64)
            if len(pc_idx) == 0 or len(pixel_bins) == 0:
                continue
            local = (phase_centers[pc_idx] - fcs.origin[line]) @ basis[line]
            tau, sin_theta = self.line_geometry(
                local, time, pixel_bins,
                float(permittivity.surface[line]), int(surface_bins[line]),
                permittivity.eps_r,
            )
            weight = np.stack([
                window_weights(self._st_wind, (sin_theta - lo) / (hi - lo))
                for lo, hi in bands
            ])
            bins, cols = delay_to_lookup(tau, wfs.t0, wfs.dt, self._n_lib)
            phase = np.exp(2j * np.pi * wfs.fc * tau)
            acc = accumulate(data, pc_idx, bins, cols, phase,
                             np.ascontiguousarray(weight), lib)
            norm = np.sqrt(np.sum(weight ** 2, axis=2)).T
            image[:, line, :] = np.where(
                norm > 0, acc / np.where(norm > 0, norm, 1.0), 0.0) * gain

        self._grid = {
            'sigma_x': self._sigma_x,
            'num_lines': n_out,
            'num_samples': len(pixel_bins),
            'start_bin': start,
            'stop_bin': stop,
            'sub_aperture_steering': list(self._sub_apertures.values),
        }
        return image

    def get_output_grid(self) -> Dict[str, Any]:
        return dict(self._grid)
