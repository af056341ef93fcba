# -*- coding: utf-8 -*-
"""
Processing - Chunk planning, motion compensation and resampling stages.

The chunk task (``rdsar.processing.task``) and the frame combiner
(``rdsar.processing.combine``) depend on the configuration module and
are imported from their modules directly.

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
2026-10-18
"""

from rdsar.processing.chunking import ChunkPlan, ChunkPlanner
from rdsar.processing.motion_comp import (
    MotionCorrection,
    MotionCompensator,
    apply_motion_compensation,
    undo_motion_compensation,
)
from rdsar.processing.resampling import ResampledTile, UniformResampler, gen_kx
from rdsar.processing.trajectory import (
    TrajectoryResolver,
    merge_channels,
    override_surface,
    presum,
    smooth_surface,
)

__all__ = [
    'ChunkPlan',
    'ChunkPlanner',
    'MotionCorrection',
    'MotionCompensator',
    'apply_motion_compensation',
    'undo_motion_compensation',
    'ResampledTile',
    'UniformResampler',
    'gen_kx',
    'TrajectoryResolver',
    'merge_channels',
    'override_surface',
    'presum',
    'smooth_surface',
]
