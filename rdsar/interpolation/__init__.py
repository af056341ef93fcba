# -*- coding: utf-8 -*-
"""
Interpolation - Windowed-sinc kernels for spectral and along-track resampling.

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
2026-10-07

Modified
--------
2026-10-07
"""

from rdsar.interpolation.base import KernelInterpolator
from rdsar.interpolation.windowed_sinc import (
    KaiserSincInterpolator,
    sinc_resample_matrix,
    windowed_sinc_interpolator,
)

__all__ = [
    'KernelInterpolator',
    'KaiserSincInterpolator',
    'sinc_resample_matrix',
    'windowed_sinc_interpolator',
]
