# -*- coding: utf-8 -*-
"""
Chunk Artifacts - Save and load migrated chunk products.

One HDF5 file per (chunk, sub-aperture, channel) holding the image, its
fast-time axis, the FCS of the output lines, geolocation at output
resolution, the waveform descriptor and provenance records. Files are
written under a temporary name and renamed when complete, so the
combine stage's existence check never sees a partial artifact.

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
2026-10-15
"""

# Standard library
import logging
import os
from pathlib import Path
from typing import Optional, Union

# Third-party
import numpy as np

# RDSAR internal
from rdsar.geolocation.fcs import FlightCoordinateSystem
from rdsar.IO.hdf5 import HDF5Reader, HDF5Writer
from rdsar.IO.models import ChunkProduct, WaveformDescriptor
from rdsar.IO.naming import ArtifactKey

logger = logging.getLogger(__name__)

_FCS_VECTORS = ('origin', 'x', 'z')
_FCS_SCALARS = ('roll', 'pitch', 'heading', 'gps_time', 'surface')


def write_fcs(writer: HDF5Writer, fcs: FlightCoordinateSystem) -> None:
    """Write an FCS into the ``fcs`` group."""
    for name in _FCS_VECTORS + _FCS_SCALARS:
        writer.write_dataset(f'fcs/{name}', getattr(fcs, name))
    if fcs.pos is not None:
        writer.write_dataset('fcs/pos', fcs.pos)
    writer.write_attributes({'Lsar': float(fcs.Lsar)}, group='fcs')


def read_fcs(reader: HDF5Reader) -> FlightCoordinateSystem:
    """Read the FCS stored in the ``fcs`` group."""
    values = {
        name: reader.read_dataset(f'fcs/{name}')
        for name in _FCS_VECTORS + _FCS_SCALARS
    }
    pos = reader.read_dataset('fcs/pos') if reader.has('fcs/pos') else None
    return FlightCoordinateSystem(
        Lsar=float(reader.attributes('fcs').get('Lsar', 0.0)),
        pos=pos,
        **values,
    )


def write_product(
    filepath: Union[str, Path],
    product: ChunkProduct,
    compression: Optional[str] = None,
) -> Path:
    """Write a chunk product atomically.

    Returns
    -------
    Path
        Path of the completed file.
    """
    filepath = Path(filepath)
    filepath.parent.mkdir(parents=True, exist_ok=True)
    tmp = filepath.with_name(filepath.name + '.tmp')
    try:
        with HDF5Writer(tmp, compression=compression) as writer:
            dtype = np.complex64 if np.iscomplexobj(product.data) else np.float32
            writer.write_dataset('data', product.data.astype(dtype))
            writer.write_dataset('time', product.time)
            writer.write_dataset('lat', product.lat)
            writer.write_dataset('lon', product.lon)
            writer.write_dataset('elev', product.elev)
            writer.write_dataset('along_track', product.output_along_track)
            write_fcs(writer, product.fcs)
            for name, values in product.custom.items():
                writer.write_dataset(f'custom/{name}', values)
            writer.write_attributes({
                'wfs': product.wfs.to_dict(),
                'param_sar': product.param_sar,
                'param_records': product.param_records,
            })
        os.replace(tmp, filepath)
    finally:
        if tmp.exists():
            tmp.unlink()
    logger.debug("Wrote %s", filepath)
    return filepath


def read_product(filepath: Union[str, Path]) -> ChunkProduct:
    """Read a chunk product written by :func:`write_product`."""
    with HDF5Reader(filepath) as reader:
        attrs = reader.attributes()
        custom = {
            name: reader.read_dataset(f'custom/{name}')
            for name in reader.keys('custom')
        }
        return ChunkProduct(
            data=reader.read_dataset('data'),
            wfs=WaveformDescriptor(**attrs['wfs']),
            fcs=read_fcs(reader),
            lat=reader.read_dataset('lat'),
            lon=reader.read_dataset('lon'),
            elev=reader.read_dataset('elev'),
            output_along_track=reader.read_dataset('along_track'),
            param_sar=attrs.get('param_sar') or {},
            param_records=attrs.get('param_records') or {},
            custom=custom,
        )


class ChunkWriter:
    """Save chunk products under their artifact names.

    Parameters
    ----------
    out_path : str or Path
        Root directory of the artifacts.
    compression : str, optional
        HDF5 compression filter.
    """

    def __init__(
        self,
        out_path: Union[str, Path],
        compression: Optional[str] = None,
    ) -> None:
        self.out_path = Path(out_path)
        self._compression = compression

    def path(self, key: ArtifactKey) -> Path:
        return key.path(self.out_path)

    def write(self, product: ChunkProduct, key: ArtifactKey) -> Path:
        """Write one product; returns the artifact path."""
        return write_product(
            self.path(key), product, compression=self._compression)


class ChunkReader:
    """Load a chunk product from its artifact file.

    Parameters
    ----------
    filepath : str or Path
        Artifact written by :class:`ChunkWriter`.

    Raises
    ------
    FileNotFoundError
        If the artifact does not exist.
    """

    def __init__(self, filepath: Union[str, Path]) -> None:
        self.filepath = Path(filepath)
        if not self.filepath.exists():
            raise FileNotFoundError(f"Chunk artifact not found: {filepath}")

    def read(self) -> ChunkProduct:
        return read_product(self.filepath)
