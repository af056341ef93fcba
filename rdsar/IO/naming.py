# -*- coding: utf-8 -*-
"""
Artifact Naming - File names of chunk and frame products.

Chunk artifacts live in one directory per (algorithm, frame,
sub-aperture, sub-band)::

    fk_data_003_02_01/wf_01_adc_02_chk_004.h5    per-channel mode
    fk_data_003_02_01/img_01_chk_004.h5          combined-receiver mode

so independent chunks and looks never collide and the combine stage can
glob all chunks of one image. Indices are 1-based.

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
2026-10-09

Modified
--------
2026-10-12
"""

# Standard library
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

# RDSAR internal
from rdsar.vocabulary import MigrationAlgorithm

_CHUNK_RE = re.compile(r'_chk_(\d{3,})\.h5$')


@dataclass(frozen=True)
class ArtifactKey:
    """Identity of one chunk artifact.

    Parameters
    ----------
    algorithm : MigrationAlgorithm
        Migration algorithm that produced the image.
    frm : int
        Frame number.
    subap : int
        1-based sub-aperture index.
    subband : int
        1-based sub-band index.
    chunk : int
        1-based chunk index.
    wf, adc : int, optional
        Channel of a per-channel product.
    img : int, optional
        Image index of a combined-receiver product.
    """

    algorithm: MigrationAlgorithm
    frm: int
    subap: int
    subband: int
    chunk: int
    wf: Optional[int] = None
    adc: Optional[int] = None
    img: Optional[int] = None

    def __post_init__(self) -> None:
        per_channel = self.wf is not None and self.adc is not None
        if per_channel == (self.img is not None):
            raise ValueError(
                "ArtifactKey needs either (wf, adc) or img, not both"
            )

    @property
    def directory_name(self) -> str:
        return directory_name(
            self.algorithm, self.frm, self.subap, self.subband)

    @property
    def image_stem(self) -> str:
        """File-name stem shared by all chunks of the same image."""
        if self.img is not None:
            return f"img_{self.img:02d}"
        return f"wf_{self.wf:02d}_adc_{self.adc:02d}"

    @property
    def file_name(self) -> str:
        return f"{self.image_stem}_chk_{self.chunk:03d}.h5"

    def path(self, out_path: Union[str, Path]) -> Path:
        return Path(out_path) / self.directory_name / self.file_name


def directory_name(
    algorithm: MigrationAlgorithm,
    frm: int,
    subap: int,
    subband: int,
) -> str:
    """Directory of one (algorithm, frame, sub-aperture, sub-band)."""
    return f"{algorithm.value}_data_{frm:03d}_{subap:02d}_{subband:02d}"


def chunk_glob(image_stem: str) -> str:
    """Glob pattern matching every chunk of one image."""
    return f"{image_stem}_chk_*.h5"


def parse_chunk_index(path: Union[str, Path]) -> int:
    """Chunk index encoded in an artifact file name.

    Raises
    ------
    ValueError
        If the name is not a chunk artifact name.
    """
    match = _CHUNK_RE.search(Path(path).name)
    if match is None:
        raise ValueError(f"Not a chunk artifact name: {path}")
    return int(match.group(1))


def frame_file_name(
    day_seg: str,
    frm: int,
    image_stem: Optional[str] = None,
) -> str:
    """Name of a combined frame product.

    A frame with a single (or fused) image has no image stem.
    """
    if image_stem is None:
        return f"Data_{day_seg}_{frm:03d}.h5"
    return f"Data_{image_stem}_{day_seg}_{frm:03d}.h5"


def layer_file_name(day_seg: str, frm: int) -> str:
    """Name of a surface layer file."""
    return f"Data_{day_seg}_{frm:03d}.h5"
