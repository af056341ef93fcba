# -*- coding: utf-8 -*-
"""
Motion Compensation - Phase ramps placing data on the straightened track.

The ideal phase-center track is the FCS reference ``origin + [x y z]
pos`` evaluated at each record's along-track position. The deviation of
the actual phase center from it gives, per record,

- ``drange = -(actual - ideal) . z``, the range correction (positive
  lengthens range), and
- ``dx = (actual - ideal) . x``, the along-track correction (only in
  ``RANGE_AND_ALONG_TRACK`` mode).

The range correction is applied as a fast-time frequency-domain phase
ramp (time-shift theorem) before migration and removed from the image
afterwards::

    apply:  D(f, x) * exp(-i 2 pi f 2 drange / c)
    undo:   I(f, x) * exp(+i 2 pi f dtime),   dtime = 2 drange / c

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
from typing import Optional

# Third-party
import numpy as np
from scipy import fft
from scipy.interpolate import interp1d
from scipy.signal import butter, filtfilt

# RDSAR internal
from rdsar.constants import C
from rdsar.exceptions import ProcessingError
from rdsar.geolocation.fcs import FlightCoordinateSystem
from rdsar.vocabulary import MocompMode

logger = logging.getLogger(__name__)


@dataclass
class MotionCorrection:
    """Per-record motion corrections of one channel.

    Parameters
    ----------
    drange : np.ndarray
        Range correction (m), ``(Nx,)``.
    dx : np.ndarray
        Along-track correction (m), ``(Nx,)``.
    gps_time : np.ndarray
        GPS time of each record (s), ``(Nx,)``.
    """

    drange: np.ndarray
    dx: np.ndarray
    gps_time: np.ndarray

    @property
    def dtime(self) -> np.ndarray:
        """Two-way time shift applied to each record (s)."""
        return 2 * self.drange / C

    def dtime_at(self, gps_time: np.ndarray) -> np.ndarray:
        """Time shift resampled to other GPS times (linear, extrapolated)."""
        if len(self.gps_time) < 2:
            return np.full(np.shape(gps_time), float(self.dtime[0]))
        fn = interp1d(self.gps_time, self.dtime, kind='linear',
                      bounds_error=False, fill_value='extrapolate')
        return fn(gps_time)


def _interp_rows(x_new: np.ndarray, x: np.ndarray, values: np.ndarray) -> np.ndarray:
    """Linear interpolation/extrapolation of ``(N, 3)`` rows onto ``x_new``."""
    if len(x) == 1:
        return np.repeat(values, len(x_new), axis=0)
    fn = interp1d(x, values, kind='linear', axis=0, bounds_error=False,
                  fill_value='extrapolate', assume_sorted=True)
    return fn(x_new)


class MotionCompensator:
    """Compute, apply and undo motion compensation.

    Parameters
    ----------
    mode : MocompMode
        ``RANGE_ONLY`` or ``RANGE_AND_ALONG_TRACK``.
    filter_order : int
        Butterworth order of the range-correction low-pass.
    filter_cutoff : float, optional
        Normalized cutoff in (0, 1); None leaves ``drange`` unfiltered.
    """

    def __init__(
        self,
        mode: MocompMode = MocompMode.RANGE_ONLY,
        filter_order: int = 4,
        filter_cutoff: Optional[float] = None,
    ) -> None:
        self._mode = mode
        self._filter_order = filter_order
        self._filter_cutoff = filter_cutoff

    def corrections(
        self,
        fcs: FlightCoordinateSystem,
        fcs_along_track: np.ndarray,
        phase_centers: np.ndarray,
        along_track: np.ndarray,
        gps_time: np.ndarray,
    ) -> MotionCorrection:
        """Corrections of every record relative to the FCS reference.

        Parameters
        ----------
        fcs : FlightCoordinateSystem
            FCS lines spanning the records, with ``pos`` attached.
        fcs_along_track : np.ndarray
            Along-track position of the FCS lines (m).
        phase_centers : np.ndarray
            Actual phase-center ECEF per record (m), ``(Nx, 3)``.
        along_track : np.ndarray
            Along-track position per record (m), ``(Nx,)``.
        gps_time : np.ndarray
            GPS time per record (s), ``(Nx,)``.

        Raises
        ------
        ProcessingError
            If the FCS carries no phase-center offsets.
        """
        if fcs.pos is None:
            raise ProcessingError(
                "Motion compensation needs FCS phase-center offsets (pos)")
        ideal = _interp_rows(along_track, fcs_along_track,
                             fcs.phase_center_ecef())
        x = _interp_rows(along_track, fcs_along_track, fcs.x)
        z = _interp_rows(along_track, fcs_along_track, fcs.z)
        delta = phase_centers - ideal

        drange = -np.sum(delta * z, axis=1)
        if self._mode is MocompMode.RANGE_AND_ALONG_TRACK:
            dx = np.sum(delta * x, axis=1)
        else:
            dx = np.zeros(len(along_track))

        drange = self._lowpass(drange)
        logger.debug(
            "Motion correction: drange %.3f..%.3f m, |dx| max %.3f m",
            float(np.min(drange)), float(np.max(drange)),
            float(np.max(np.abs(dx))) if len(dx) else 0.0,
        )
        return MotionCorrection(
            drange=drange, dx=dx, gps_time=np.asarray(gps_time, dtype=np.float64))

    def _lowpass(self, drange: np.ndarray) -> np.ndarray:
        if self._filter_cutoff is None:
            return drange
        b, a = butter(self._filter_order, self._filter_cutoff)
        if len(drange) <= 3 * max(len(a), len(b)):
            logger.debug(
                "Too few records (%d) to low-pass the range correction",
                len(drange))
            return drange
        return filtfilt(b, a, drange)


def apply_motion_compensation(
    data_f: np.ndarray,
    freq: np.ndarray,
    drange: np.ndarray,
) -> np.ndarray:
    """Shift each record by ``2 drange / c`` in fast time.

    Parameters
    ----------
    data_f : np.ndarray
        Fast-time spectrum ``(Nt, Nx)``.
    freq : np.ndarray
        Absolute frequency of each row (Hz), ``(Nt,)``.
    drange : np.ndarray
        Range correction per record (m), ``(Nx,)``.
    """
    ramp = np.exp(-2j * np.pi * np.outer(freq, 2 * drange / C))
    return data_f * ramp


def undo_motion_compensation(
    image: np.ndarray,
    freq: np.ndarray,
    dtime: np.ndarray,
) -> np.ndarray:
    """Remove the motion compensation time shift from a migrated image.

    Parameters
    ----------
    image : np.ndarray
        Fast-time image ``(Nt, Nout)`` or ``(Nt, Nout, Nsub)``.
    freq : np.ndarray
        Absolute frequency of each FFT bin (Hz), ``(Nt,)``.
    dtime : np.ndarray
        Time shift at each output line (s), ``(Nout,)``.
    """
    ramp = np.exp(2j * np.pi * np.outer(freq, dtime))
    if image.ndim == 3:
        ramp = ramp[:, :, np.newaxis]
    return fft.ifft(fft.fft(image, axis=0) * ramp, axis=0)
