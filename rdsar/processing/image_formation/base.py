# -*- coding: utf-8 -*-
"""
Migration Engine Base Class - ABC for SAR image-formation engines.

Both engines produce the same product: a fixed-rank complex array
``(range-bin, output along-track, sub-aperture)`` on the chunk's output
grid, so the output assembler does not care which one ran. The module
also holds the slow-time weighting windows shared by the engines.

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
2026-10-08

Modified
--------
2026-10-14
"""

# Standard library
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, Optional, Union

# Third-party
import numpy as np
from scipy.signal.windows import taylor as _taylor_window

# RDSAR internal
from rdsar.exceptions import ConfigurationError


_WINDOW_FUNCTIONS = {
    'uniform': None,
    'taylor': lambda n: _taylor_window(n, nbar=4, sll=35, norm=True),
    'hamming': np.hamming,
    'hanning': np.hanning,
}

# Samples used to tabulate a window for lookup by normalized position
_WINDOW_TABLE = 1001


def window_names():
    """Names accepted for slow-time weighting."""
    return list(_WINDOW_FUNCTIONS.keys())


def resolve_window(
    weighting: Union[str, Callable, None],
) -> Optional[Callable[[int], np.ndarray]]:
    """Resolve a weighting name or callable to a window function.

    Raises
    ------
    ConfigurationError
        If ``weighting`` is an unknown name.
    """
    if weighting is None or callable(weighting):
        return weighting
    key = str(weighting).lower()
    if key not in _WINDOW_FUNCTIONS:
        raise ConfigurationError(
            f"Unknown weighting '{weighting}'. "
            f"Options: {window_names()}"
        )
    return _WINDOW_FUNCTIONS[key]


def window_weights(
    weighting: Union[str, Callable, None],
    position: np.ndarray,
) -> np.ndarray:
    """Evaluate a window at normalized positions in ``[0, 1]``.

    Positions outside ``[0, 1]`` get weight 0; uniform weighting is 1
    inside.
    """
    inside = (position >= 0.0) & (position <= 1.0)
    fn = resolve_window(weighting)
    if fn is None:
        return inside.astype(np.float64)
    table = np.asarray(fn(_WINDOW_TABLE), dtype=np.float64)
    grid = np.linspace(0.0, 1.0, _WINDOW_TABLE)
    return np.where(inside, np.interp(position, grid, table), 0.0)


class MigrationEngine(ABC):
    """ABC for SAR migration engines.

    Configuration (sub-apertures, permittivity, weighting) goes in each
    concrete class's ``__init__``; inputs that change per channel go to
    :meth:`form_image`.
    """

    @abstractmethod
    def form_image(self, *args: Any, **kwargs: Any) -> np.ndarray:
        """Migrate one channel of a chunk.

        Returns
        -------
        np.ndarray
            Complex image, shape ``(Nt, Nout, num_subapertures)``.
        """
        ...

    @abstractmethod
    def get_output_grid(self) -> Dict[str, Any]:
        """Return output grid parameters of the last migration.

        Returns
        -------
        Dict[str, Any]
            At least ``'sigma_x'``, ``'num_lines'``, ``'num_samples'``
            and ``'sub_aperture_steering'``.
        """
        ...
