# -*- coding: utf-8 -*-
"""
RDSAR Exception Hierarchy - Domain-specific exceptions for SAR processing.

Lets the external job scheduler and the combine stage tell RDSAR failures
apart from Python built-in exceptions. All RDSAR exceptions subclass both
``RdsarError`` and the appropriate built-in exception. File-system errors
are never wrapped: ``OSError`` propagates unchanged.

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
2026-10-06

Modified
--------
2026-10-14
"""


class RdsarError(Exception):
    """Base exception for all RDSAR errors."""


class ConfigurationError(RdsarError, ValueError):
    """Invalid processing configuration.

    Fatal for the chunk or frame: malformed sub-aperture steering,
    combined receivers together with motion compensation, unsupported
    radar/algorithm combinations, out-of-range parameters.
    """


class ChunkPlanningError(ConfigurationError):
    """The requested chunk cannot be given full migration support.

    Raised when the output window is empty or no input records cover
    the overlap-extended window. Use a smaller chunk or split the
    segment.
    """


class ProcessingError(RdsarError, RuntimeError):
    """Non-recoverable failure inside a processing stage."""


class DataGapError(ProcessingError):
    """No valid phase-center position for any output line of a chunk."""


class GeolocationError(RdsarError, RuntimeError):
    """Coordinate transformation or flight coordinate system failure.

    Raised for non-orthogonal FCS bases and malformed coordinate
    arrays.
    """


class DependencyError(RdsarError, ImportError):
    """Missing optional dependency required for a specific module."""
