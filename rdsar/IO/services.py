# -*- coding: utf-8 -*-
"""
External Services - Trajectory and raw-sample interfaces.

Record decoding, trajectory interpolation and lever-arm correction
belong to other systems. A chunk task reaches them only through these
two ABCs. In-memory implementations back the simulator and the tests.

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
2026-10-09

Modified
--------
2026-10-14
"""

# Standard library
from abc import ABC, abstractmethod
from typing import Dict, Optional, Sequence, Tuple

# Third-party
import numpy as np

# RDSAR internal
from rdsar.geolocation.coordinates import (
    ecef_to_geodetic,
    local_up,
    normalize,
)
from rdsar.IO.models import ChannelKey, Trajectory, WaveformDescriptor


class TrajectoryService(ABC):
    """Per-record trajectory of a segment.

    Record ranges are raw (not presummed) half-open ``[start, stop)``.
    """

    @abstractmethod
    def load(self, day_seg: str, records: Tuple[int, int]) -> Trajectory:
        """Reference trajectory of the records."""
        ...

    def with_lever_arm(
        self,
        day_seg: str,
        records: Tuple[int, int],
        channels: Sequence[ChannelKey],
    ) -> Trajectory:
        """Phase-center trajectory of one or more channels.

        With several channels the phase centers are averaged. The
        default has no antenna offsets and returns the reference.
        """
        return self.load(day_seg, records)


class SampleLoader(ABC):
    """Pulse-compressed raw samples of a segment."""

    @abstractmethod
    def waveforms(self) -> Dict[int, WaveformDescriptor]:
        """Waveform descriptor of every waveform, keyed by ``wf``."""
        ...

    @abstractmethod
    def load(
        self,
        records: Tuple[int, int],
        channels: Sequence[ChannelKey],
    ) -> Dict[ChannelKey, np.ndarray]:
        """Samples ``(Nt, Nx)`` per channel for raw records ``[start, stop)``."""
        ...


def _check_range(records: Tuple[int, int], n: int) -> Tuple[int, int]:
    start, stop = int(records[0]), int(records[1])
    if start < 0 or stop > n or stop <= start:
        raise IndexError(f"Record range {records} outside [0, {n})")
    return start, stop


class InMemoryTrajectoryService(TrajectoryService):
    """Trajectory service over arrays already in memory.

    Parameters
    ----------
    trajectory : Trajectory
        Raw-rate trajectory of the whole segment.
    lever_arms : Dict[ChannelKey, Tuple[float, float, float]], optional
        Phase-center offset of each channel as (forward, left, up)
        meters relative to the reference.
    """

    def __init__(
        self,
        trajectory: Trajectory,
        lever_arms: Optional[Dict[ChannelKey, Tuple[float, float, float]]] = None,
    ) -> None:
        self._trajectory = trajectory
        self._lever_arms = dict(lever_arms or {})

    def load(self, day_seg: str, records: Tuple[int, int]) -> Trajectory:
        start, stop = _check_range(records, len(self._trajectory))
        return self._trajectory.slice(start, stop)

    def with_lever_arm(
        self,
        day_seg: str,
        records: Tuple[int, int],
        channels: Sequence[ChannelKey],
    ) -> Trajectory:
        ref = self.load(day_seg, records)
        offsets = np.array([
            self._lever_arms.get(tuple(ch), (0.0, 0.0, 0.0))
            for ch in channels
        ], dtype=np.float64).mean(axis=0)
        if not np.any(offsets) or len(ref) < 2:
            return ref

        ecef = ref.ecef()
        forward = normalize(np.gradient(ecef, axis=0))
        up = local_up(ecef)
        up = normalize(up - np.sum(up * forward, axis=1, keepdims=True) * forward)
        left = np.cross(up, forward)
        moved = (ecef + offsets[0] * forward + offsets[1] * left
                 + offsets[2] * up)
        lat, lon, elev = ecef_to_geodetic(moved)
        values = ref.as_dict()
        values.update(lat=lat, lon=lon, elev=elev)
        return Trajectory(**values)


class InMemorySampleLoader(SampleLoader):
    """Sample loader over arrays already in memory.

    Parameters
    ----------
    data : Dict[ChannelKey, np.ndarray]
        Samples ``(Nt, Nraw)`` of the whole segment per channel.
    waveforms : Dict[int, WaveformDescriptor]
        Descriptor per waveform.
    """

    def __init__(
        self,
        data: Dict[ChannelKey, np.ndarray],
        waveforms: Dict[int, WaveformDescriptor],
    ) -> None:
        self._data = {tuple(k): v for k, v in data.items()}
        self._waveforms = dict(waveforms)

    def waveforms(self) -> Dict[int, WaveformDescriptor]:
        return dict(self._waveforms)

    def load(
        self,
        records: Tuple[int, int],
        channels: Sequence[ChannelKey],
    ) -> Dict[ChannelKey, np.ndarray]:
        out = {}
        for ch in channels:
            ch = tuple(ch)
            if ch not in self._data:
                raise KeyError(f"No samples for channel wf={ch[0]} adc={ch[1]}")
            start, stop = _check_range(records, self._data[ch].shape[1])
            out[ch] = np.array(self._data[ch][:, start:stop])
        return out
