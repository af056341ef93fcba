# -*- coding: utf-8 -*-
"""
Segment Files - SAR coordinate files and surface layer files.

The SAR coordinate file is computed once per segment and read in slices
by every chunk. Surface layer files hold a surface two-way travel time
series per frame; they override the trajectory surface when configured
and are written by the combine stage's surface tracker.

Dependencies
------------
h5py

Author
------
Steven Siebert

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
import logging
from pathlib import Path
from typing import Union

# Third-party
import numpy as np

# RDSAR internal
from rdsar.IO.hdf5 import HDF5Reader, HDF5Writer
from rdsar.IO.models import SarCoordinates, SurfaceLayer
from rdsar.IO.naming import layer_file_name

logger = logging.getLogger(__name__)

_SAR_ARRAYS = (
    'along_track', 'surface', 'origin', 'x', 'z',
    'roll', 'pitch', 'heading', 'gps_time',
)


def write_sar_coordinates(
    filepath: Union[str, Path],
    sar: SarCoordinates,
) -> Path:
    """Write a segment's SAR coordinate file."""
    filepath = Path(filepath)
    filepath.parent.mkdir(parents=True, exist_ok=True)
    with HDF5Writer(filepath) as writer:
        for name in _SAR_ARRAYS:
            writer.write_dataset(name, getattr(sar, name))
        writer.write_attributes({
            'sigma_x': float(sar.sigma_x),
            'Lsar': float(sar.Lsar),
            'presums': int(sar.presums),
            'gps_source': sar.gps_source,
        })
    return filepath


def read_sar_coordinates(filepath: Union[str, Path]) -> SarCoordinates:
    """Read a segment's SAR coordinate file."""
    with HDF5Reader(filepath) as reader:
        attrs = reader.attributes()
        return SarCoordinates(
            sigma_x=float(attrs['sigma_x']),
            Lsar=float(attrs['Lsar']),
            presums=int(attrs.get('presums', 1)),
            gps_source=str(attrs.get('gps_source', '')),
            **{name: reader.read_dataset(name) for name in _SAR_ARRAYS},
        )


class SurfaceLayerStore:
    """Directory of per-frame surface layer files.

    Parameters
    ----------
    directory : str or Path
        Directory holding ``Data_{day_seg}_{frm:03d}.h5`` files.
    """

    def __init__(self, directory: Union[str, Path]) -> None:
        self.directory = Path(directory)

    def path(self, day_seg: str, frm: int) -> Path:
        return self.directory / layer_file_name(day_seg, frm)

    def read(self, day_seg: str, frm: int) -> SurfaceLayer:
        """Read the layer of one frame.

        Raises
        ------
        FileNotFoundError
            If the frame has no layer file.
        """
        with HDF5Reader(self.path(day_seg, frm)) as reader:
            return SurfaceLayer(
                gps_time=np.asarray(reader.read_dataset('gps_time'),
                                    dtype=np.float64),
                twtt=np.asarray(reader.read_dataset('twtt'),
                                dtype=np.float64),
            )

    def write(self, day_seg: str, frm: int, layer: SurfaceLayer) -> Path:
        """Write (replace) the layer of one frame."""
        filepath = self.path(day_seg, frm)
        filepath.parent.mkdir(parents=True, exist_ok=True)
        with HDF5Writer(filepath) as writer:
            writer.write_dataset('gps_time', layer.gps_time)
            writer.write_dataset('twtt', layer.twtt)
        logger.info("Wrote surface layer %s", filepath)
        return filepath
