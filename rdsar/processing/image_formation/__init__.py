# -*- coding: utf-8 -*-
"""
SAR Image Formation - Migrate radar echo sounder chunks.

- ``FkMigration``: frequency-wavenumber (Stolt) migration of a two-layer
  air/ice medium.
- ``TimeDomainBackProjection``: matched-signal backprojection along
  refracted ray paths.

Both engines return ``(range-bin, along-track, sub-aperture)`` arrays
and expose their stages as public methods for intermediate inspection.

Dependencies
------------
scipy
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
2026-10-08

Modified
--------
2026-10-17
"""

from rdsar.processing.image_formation.base import MigrationEngine
from rdsar.processing.image_formation.subaperture import SubApertureSet
from rdsar.processing.image_formation.permittivity import PermittivityProfile
from rdsar.processing.image_formation.fk import FkMigration
from rdsar.processing.image_formation.tdbp import TimeDomainBackProjection

__all__ = [
    'MigrationEngine',
    'SubApertureSet',
    'PermittivityProfile',
    'FkMigration',
    'TimeDomainBackProjection',
]
