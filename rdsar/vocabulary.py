# -*- coding: utf-8 -*-
"""
RDSAR Vocabulary - Enumerations shared across the processing chain.

Closed sets of radar families, migration algorithms and processing
options. Configuration files refer to members by their string value;
code dispatches on the members themselves.

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
2026-10-14
"""

# Standard library
from enum import Enum


class RadarFamily(Enum):
    """Radar hardware families producing echo-sounder records.

    Pulsed families can be SAR processed. The FMCW families (``SNOW``,
    ``KUBAND``) are listed so configuration files can name them, but
    they have no migration support.
    """

    MCORDS = "mcords"
    MCRDS = "mcrds"
    ACORDS = "acords"
    ICARDS = "icards"
    HFRDS = "hfrds"
    ACCUM = "accum"
    SIM = "sim"
    SNOW = "snow"
    KUBAND = "kuband"

    @property
    def supports_sar(self) -> bool:
        """True if records of this family can be SAR processed."""
        return self not in (RadarFamily.SNOW, RadarFamily.KUBAND)


class MigrationAlgorithm(Enum):
    """SAR image-formation algorithms.

    The value is the algorithm tag used in output directory names.
    """

    FK = "fk"
    TDBP = "tdbp"


class MocompMode(Enum):
    """Which motion-compensation corrections are applied."""

    RANGE_ONLY = "range_only"
    RANGE_AND_ALONG_TRACK = "range_and_along_track"


class SurfaceFit(Enum):
    """Surface smoothing used for the refraction boundary in TDBP."""

    SGOLAY = "sgolay"
    POLYFIT = "polyfit"
