# -*- coding: utf-8 -*-
"""
IO - Data models, external services and HDF5 artifact files.

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
2026-10-17
"""

from rdsar.IO.models import (
    WaveformDescriptor,
    Trajectory,
    RecordBlock,
    SurfaceLayer,
    SarCoordinates,
    ChunkProduct,
)
from rdsar.IO.naming import ArtifactKey, frame_file_name
from rdsar.IO.chunks import ChunkReader, ChunkWriter, read_product, write_product
from rdsar.IO.segment import (
    SurfaceLayerStore,
    read_sar_coordinates,
    write_sar_coordinates,
)
from rdsar.IO.services import (
    TrajectoryService,
    SampleLoader,
    InMemoryTrajectoryService,
    InMemorySampleLoader,
)

__all__ = [
    'WaveformDescriptor',
    'Trajectory',
    'RecordBlock',
    'SurfaceLayer',
    'SarCoordinates',
    'ChunkProduct',
    'ArtifactKey',
    'frame_file_name',
    'ChunkReader',
    'ChunkWriter',
    'read_product',
    'write_product',
    'SurfaceLayerStore',
    'read_sar_coordinates',
    'write_sar_coordinates',
    'TrajectoryService',
    'SampleLoader',
    'InMemoryTrajectoryService',
    'InMemorySampleLoader',
]
