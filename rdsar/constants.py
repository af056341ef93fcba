# -*- coding: utf-8 -*-
"""
Physical Constants - Propagation and geodetic constants.

Speed of light is derived from the vacuum permittivity and permeability
so every stage uses the identical value. Ice permittivity is the
standard bulk value for glacial ice at radio frequencies.

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
2026-10-06
"""

# Standard library
import math

# Vacuum permittivity (F/m) and permeability (H/m)
E0 = 8.8541878176e-12
U0 = 4e-7 * math.pi

# Speed of light in vacuum (m/s)
C = 1.0 / math.sqrt(E0 * U0)

# Relative permittivity of glacial ice
ER_ICE = 3.15

# WGS-84 ellipsoid
WGS84_A = 6378137.0
WGS84_B = 6356752.314245
WGS84_INV_FLATTENING = 298.257223563
WGS84_E2 = 0.00669437999013
