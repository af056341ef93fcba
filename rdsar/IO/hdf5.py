# -*- coding: utf-8 -*-
"""
HDF5 Reader/Writer - Named datasets and JSON attributes in HDF5 files.

All RDSAR file products (chunk artifacts, combined frames, SAR
coordinate files, surface layers) are HDF5. These two classes hold the
h5py handling so the product modules only name datasets. Nested
dictionaries and other non-array metadata are stored as JSON string
attributes.

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
import json
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

# Third-party
import numpy as np

try:
    import h5py
    _HAS_H5PY = True
except ImportError:
    _HAS_H5PY = False

# RDSAR internal
from rdsar.exceptions import DependencyError


def _require_h5py() -> None:
    if not _HAS_H5PY:
        raise DependencyError(
            "h5py is required for RDSAR file products. "
            "Install with: pip install h5py"
        )


class HDF5Writer:
    """Write named datasets and attributes to a new HDF5 file.

    Datasets are written without creation timestamps so identical
    content gives identical files.

    Parameters
    ----------
    filepath : str or Path
        Output HDF5 file path. An existing file is overwritten.
    compression : str, optional
        ``'gzip'`` or ``'lzf'``.
    compression_opts : int, optional
        Compression level for gzip (1-9).

    Raises
    ------
    DependencyError
        If h5py is not installed.

    Examples
    --------
    >>> with HDF5Writer('frame.h5') as w:
    ...     w.write_dataset('data', image)
    ...     w.write_attributes({'param_sar': {'sigma_x': 2.5}})
    """

    def __init__(
        self,
        filepath: Union[str, Path],
        compression: Optional[str] = None,
        compression_opts: Optional[int] = None,
    ) -> None:
        _require_h5py()
        self.filepath = Path(filepath)
        self._compression = compression
        self._compression_opts = compression_opts
        self._file = None

    def _handle(self):
        if self._file is None:
            self._file = h5py.File(str(self.filepath), 'w', track_order=True)
        return self._file

    def write_dataset(
        self,
        name: str,
        data: np.ndarray,
        attributes: Optional[Dict[str, Any]] = None,
    ) -> None:
        """Write a dataset; ``name`` may contain ``/`` group separators.

        Parameters
        ----------
        name : str
            Dataset path within the file.
        data : np.ndarray
            Array data to write.
        attributes : Dict[str, Any], optional
            Attributes to attach to the dataset.
        """
        kwargs: Dict[str, Any] = {'track_times': False}
        data = np.asarray(data)
        if self._compression and data.ndim > 0:
            kwargs['compression'] = self._compression
            if self._compression_opts is not None:
                kwargs['compression_opts'] = self._compression_opts
        ds = self._handle().create_dataset(name, data=data, **kwargs)
        for key, val in (attributes or {}).items():
            ds.attrs[key] = _encode_attribute(val)

    def write_attributes(
        self,
        attributes: Dict[str, Any],
        group: str = '/',
    ) -> None:
        """Attach attributes to a group (the file root by default)."""
        handle = self._handle()
        target = handle.require_group(group) if group != '/' else handle
        for key, val in attributes.items():
            target.attrs[key] = _encode_attribute(val)

    def close(self) -> None:
        """Flush and close the HDF5 file handle."""
        if self._file is not None:
            self._file.flush()
            self._file.close()
            self._file = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False


class HDF5Reader:
    """Read named datasets and attributes from an HDF5 file.

    Parameters
    ----------
    filepath : str or Path
        Path to the HDF5 file.

    Raises
    ------
    DependencyError
        If h5py is not installed.
    FileNotFoundError
        If the file does not exist.
    """

    def __init__(self, filepath: Union[str, Path]) -> None:
        _require_h5py()
        self.filepath = Path(filepath)
        if not self.filepath.exists():
            raise FileNotFoundError(f"File not found: {self.filepath}")
        self._file = h5py.File(str(self.filepath), 'r')

    def has(self, name: str) -> bool:
        return name in self._file

    def read_dataset(self, name: str) -> np.ndarray:
        """Read a whole dataset into memory."""
        return self._file[name][()]

    def keys(self, group: str = '/') -> List[str]:
        """Names of the members of a group, in creation order."""
        if group != '/' and group not in self._file:
            return []
        return list(self._file[group].keys())

    def attributes(self, group: str = '/') -> Dict[str, Any]:
        """Decoded attributes of a group or dataset."""
        return {
            key: _decode_attribute(val)
            for key, val in self._file[group].attrs.items()
        }

    def close(self) -> None:
        """Close the HDF5 file handle."""
        if getattr(self, '_file', None) is not None:
            self._file.close()
            self._file = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False


_JSON_PREFIX = 'json:'


def _encode_attribute(value: Any) -> Any:
    if isinstance(value, (dict, list, tuple)) or value is None:
        return _JSON_PREFIX + json.dumps(value, sort_keys=True)
    return value


def _decode_attribute(value: Any) -> Any:
    if isinstance(value, bytes):
        value = value.decode('utf-8')
    if isinstance(value, str) and value.startswith(_JSON_PREFIX):
        return json.loads(value[len(_JSON_PREFIX):])
    if isinstance(value, np.generic):
        return value.item()
    return value
