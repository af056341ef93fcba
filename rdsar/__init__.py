# -*- coding: utf-8 -*-
"""
RDSAR - Radar Depth Sounder SAR image formation.

Turns chunks of pulse-compressed radar echo sounder records into
along-track focused, surface-refraction corrected ice imagery with f-k
migration or time-domain backprojection, and combines the chunks into
frame products.

Dependencies
------------
numpy
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
2026-10-06

Modified
--------
2026-10-18
"""

__version__ = "0.1.0"
__author__ = "Duane Smalley"

from rdsar.exceptions import (
    RdsarError,
    ConfigurationError,
    ChunkPlanningError,
    ProcessingError,
    DataGapError,
    GeolocationError,
    DependencyError,
)
from rdsar.vocabulary import (
    RadarFamily,
    MigrationAlgorithm,
    MocompMode,
    SurfaceFit,
)

__all__ = [
    'RdsarError',
    'ConfigurationError',
    'ChunkPlanningError',
    'ProcessingError',
    'DataGapError',
    'GeolocationError',
    'DependencyError',
    'RadarFamily',
    'MigrationAlgorithm',
    'MocompMode',
    'SurfaceFit',
]
