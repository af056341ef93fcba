# -*- coding: utf-8 -*-
"""
Geolocation - Geodetic conversions and the flight coordinate system.

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
2026-10-12
"""

from rdsar.geolocation.coordinates import (
    geodetic_to_ecef,
    ecef_to_geodetic,
    local_up,
    along_track_distance,
)
from rdsar.geolocation.fcs import (
    FlightCoordinateSystem,
    build_fcs_vectors,
    build_sar_coordinates,
)

__all__ = [
    'geodetic_to_ecef',
    'ecef_to_geodetic',
    'local_up',
    'along_track_distance',
    'FlightCoordinateSystem',
    'build_fcs_vectors',
    'build_sar_coordinates',
]
