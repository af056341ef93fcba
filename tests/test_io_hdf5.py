# -*- coding: utf-8 -*-
"""
HDF5 Writer and Reader Tests - Unit tests for the HDF5 layer.

Tests round-trip writes, grouped datasets, compression, and JSON
encoded attributes.

Dependencies
------------
pytest
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
2026-10-19
"""

import numpy as np
import pytest

try:
    import h5py
    _HAS_H5PY = True
except ImportError:
    _HAS_H5PY = False

pytestmark = pytest.mark.skipif(
    not _HAS_H5PY, reason="h5py not installed"
)


class TestHDF5Writer:
    """Dataset and attribute writes."""

    def test_complex_roundtrip(self, tmp_path):
        """Complex image written and read back unchanged."""
        from rdsar.IO.hdf5 import HDF5Reader, HDF5Writer

        data = (np.random.rand(16, 24) + 1j * np.random.rand(16, 24)).astype(
            np.complex64)
        with HDF5Writer(tmp_path / "img.h5") as writer:
            writer.write_dataset('data', data)

        with HDF5Reader(tmp_path / "img.h5") as reader:
            result = reader.read_dataset('data')
        np.testing.assert_array_equal(result, data)
        assert result.dtype == np.complex64

    def test_grouped_datasets(self, tmp_path):
        """Slash-separated names create groups."""
        from rdsar.IO.hdf5 import HDF5Reader, HDF5Writer

        with HDF5Writer(tmp_path / "fcs.h5") as writer:
            writer.write_dataset('fcs/origin', np.zeros((4, 3)))
            writer.write_dataset('fcs/x', np.ones((4, 3)))

        with HDF5Reader(tmp_path / "fcs.h5") as reader:
            assert reader.keys('fcs') == ['origin', 'x']
            assert reader.keys('missing') == []
            assert reader.has('fcs/x')
            assert not reader.has('fcs/z')

    def test_compression(self, tmp_path):
        """gzip compression is applied to array datasets."""
        from rdsar.IO.hdf5 import HDF5Writer

        data = np.zeros((64, 64), dtype=np.float32)
        with HDF5Writer(tmp_path / "c.h5", compression='gzip',
                        compression_opts=4) as writer:
            writer.write_dataset('data', data)
            writer.write_dataset('scalar', np.float64(2.5))

        with h5py.File(str(tmp_path / "c.h5"), 'r') as f:
            assert f['data'].compression == 'gzip'
            assert f['scalar'][()] == 2.5

    def test_attributes_roundtrip(self, tmp_path):
        """Dicts and lists survive as JSON, scalars as native values."""
        from rdsar.IO.hdf5 import HDF5Reader, HDF5Writer

        params = {'sigma_x': 2.5, 'steering': [-0.5, 0.0, 0.5]}
        with HDF5Writer(tmp_path / "a.h5") as writer:
            writer.write_dataset('data', np.zeros(3))
            writer.write_attributes({'param_sar': params, 'frm': 4,
                                     'radar': 'sim', 'missing': None})
            writer.write_attributes({'fc': 195e6}, group='wfs')

        with HDF5Reader(tmp_path / "a.h5") as reader:
            attrs = reader.attributes()
            assert attrs['param_sar'] == params
            assert attrs['frm'] == 4
            assert isinstance(attrs['frm'], int)
            assert attrs['radar'] == 'sim'
            assert attrs['missing'] is None
            assert reader.attributes('wfs') == {'fc': 195e6}

    def test_overwrites_existing(self, tmp_path):
        """An existing file is replaced."""
        from rdsar.IO.hdf5 import HDF5Reader, HDF5Writer

        path = tmp_path / "o.h5"
        with HDF5Writer(path) as writer:
            writer.write_dataset('old', np.zeros(2))
        with HDF5Writer(path) as writer:
            writer.write_dataset('new', np.ones(2))

        with HDF5Reader(path) as reader:
            assert reader.keys() == ['new']


class TestHDF5Reader:
    """Reader error handling."""

    def test_missing_file(self, tmp_path):
        """Missing file raises FileNotFoundError."""
        from rdsar.IO.hdf5 import HDF5Reader

        with pytest.raises(FileNotFoundError, match="not found"):
            HDF5Reader(tmp_path / "missing.h5")

    def test_close_twice(self, tmp_path):
        """Closing an already closed reader is harmless."""
        from rdsar.IO.hdf5 import HDF5Reader, HDF5Writer

        with HDF5Writer(tmp_path / "r.h5") as writer:
            writer.write_dataset('data', np.zeros(2))
        reader = HDF5Reader(tmp_path / "r.h5")
        reader.close()
        reader.close()
