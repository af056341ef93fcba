# -*- coding: utf-8 -*-
"""
Chunk Combiner - Concatenate chunk artifacts into frame products.

Runs once all chunks of a frame exist. For every image the chunks of
each channel and sub-aperture are concatenated in chunk order; chunks
whose fast-time axes differ are zero padded onto a common axis::

    start_diff = round((time[0] - new_time[0]) / dt)
    end_diff   = round((new_time[-1] - time[-1]) / dt)

The looks of an image are combined (mean power, or the coherent sum of
the center look), images are optionally fused along fast time at a
surface-referenced switch time, the surface can be tracked and saved as
a layer, and the per-chunk artifacts are deleted.

Re-running on the same chunks gives the same frame. Re-running after
the chunks were deleted is a no-op while the frame files exist.

Dependencies
------------
scipy
h5py

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
2026-10-13

Modified
--------
2026-10-19
"""

# Standard library
import logging
from dataclasses import replace
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple

# Third-party
import numpy as np
from scipy.interpolate import interp1d

# RDSAR internal
from rdsar.config import CombineConfig, ProcessingConfig
from rdsar.exceptions import ProcessingError
from rdsar.geolocation.fcs import FlightCoordinateSystem
from rdsar.IO.chunks import read_product, write_product
from rdsar.IO.models import ChunkProduct, SurfaceLayer
from rdsar.IO.naming import (
    chunk_glob,
    directory_name,
    frame_file_name,
    parse_chunk_index,
)
from rdsar.IO.segment import SurfaceLayerStore

logger = logging.getLogger(__name__)

_FCS_FIELDS = ('origin', 'x', 'z', 'roll', 'pitch', 'heading',
               'gps_time', 'surface')


# ==================================================================
# Fast-time alignment and concatenation
# ==================================================================

def align_time_axes(
    data_a: np.ndarray,
    time_a: np.ndarray,
    data_b: np.ndarray,
    time_b: np.ndarray,
) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """Zero pad two blocks onto a common fast-time axis.

    A time axis of length one or less counts as empty.

    Returns
    -------
    Tuple[np.ndarray, np.ndarray, np.ndarray]
        ``(padded_a, padded_b, time)``.

    Raises
    ------
    ProcessingError
        If the axes have different sample spacings.
    """
    if len(time_a) <= 1:
        empty = np.zeros((len(time_b), data_a.shape[1]), dtype=data_a.dtype)
        return empty, data_b, np.array(time_b)
    if len(time_b) <= 1:
        empty = np.zeros((len(time_a), data_b.shape[1]), dtype=data_b.dtype)
        return data_a, empty, np.array(time_a)

    dt = time_a[1] - time_a[0]
    start_diff = int(round((time_a[0] - time_b[0]) / dt))
    end_diff = int(round((time_b[-1] - time_a[-1]) / dt))
    pre_a, post_a = max(start_diff, 0), max(end_diff, 0)
    n = len(time_a) + pre_a + post_a
    pre_b = max(-start_diff, 0)
    post_b = n - pre_b - len(time_b)
    if post_b < 0 or abs((time_b[1] - time_b[0]) - dt) > 1e-6 * abs(dt):
        raise ProcessingError(
            f"Cannot align fast-time axes with spacings {dt:g} s and "
            f"{time_b[1] - time_b[0]:g} s"
        )
    time = time_a[0] - pre_a * dt + dt * np.arange(n)
    padded_a = np.pad(data_a, ((pre_a, post_a), (0, 0)))
    padded_b = np.pad(data_b, ((pre_b, post_b), (0, 0)))
    return padded_a, padded_b, time


def _concat_fcs(parts: Sequence[FlightCoordinateSystem]) -> FlightCoordinateSystem:
    values = {
        name: np.concatenate([getattr(p, name) for p in parts])
        for name in _FCS_FIELDS
    }
    pos = None
    if all(p.pos is not None for p in parts):
        pos = np.concatenate([p.pos for p in parts])
    return FlightCoordinateSystem(Lsar=parts[0].Lsar, pos=pos, **values)


def concatenate_chunks(products: Sequence[ChunkProduct]) -> ChunkProduct:
    """Concatenate chunk products in along-track order.

    Image, geolocation, FCS and custom fields are joined along the
    along-track axis; fast-time axes are reconciled by zero padding.
    """
    if not products:
        raise ProcessingError("No chunk products to concatenate")
    first = products[0]
    data = first.data
    time = first.time
    blocks = [data]
    for product in products[1:]:
        joined = np.concatenate(blocks, axis=1)
        padded, new, time = align_time_axes(joined, time, product.data, product.time)
        blocks = [padded, new]
    data = np.concatenate(blocks, axis=1)

    custom: Dict[str, np.ndarray] = {}
    for name in first.custom:
        custom[name] = np.concatenate(
            [p.custom[name] for p in products if name in p.custom], axis=-1)

    dt = first.wfs.dt
    wfs = replace(first.wfs, t0=float(time[0]) if len(time) else first.wfs.t0,
                  num_samples=len(time), dt=dt)
    return ChunkProduct(
        data=data,
        wfs=wfs,
        fcs=_concat_fcs([p.fcs for p in products]),
        lat=np.concatenate([p.lat for p in products]),
        lon=np.concatenate([p.lon for p in products]),
        elev=np.concatenate([p.elev for p in products]),
        output_along_track=np.concatenate(
            [p.output_along_track for p in products]),
        param_sar=first.param_sar,
        param_records=products[-1].param_records,
        custom=custom,
    )


def _resample_rows(data: np.ndarray, time: np.ndarray, new_time: np.ndarray) -> np.ndarray:
    if len(time) < 2:
        return np.zeros((len(new_time), data.shape[1]), dtype=data.dtype)
    fn = interp1d(time, data, axis=0, kind='linear', bounds_error=False,
                  fill_value=0.0, assume_sorted=True)
    return fn(new_time)


def fuse_images(
    images: Sequence[ChunkProduct],
    img_comb: Sequence[float],
) -> ChunkProduct:
    """Fuse images along fast time.

    At interface ``k`` with ``(guard, blank, roll_off) =
    img_comb[3k:3k+3]`` the rows before

        max(surface + guard, blank), at most first_end - roll_off

    come from the images fused so far and the rows after from image
    ``k + 1``. The fused axis keeps the first image's sampling.
    """
    fused = images[0]
    first_end = float(images[0].time[-1])
    for k, image in enumerate(images[1:]):
        if image.num_lines != fused.num_lines:
            raise ProcessingError(
                f"Image {k + 2} has {image.num_lines} lines, expected "
                f"{fused.num_lines}")
        guard, blank, roll_off = img_comb[3 * k:3 * k + 3]
        dt = fused.wfs.dt
        end = max(float(fused.time[-1]), float(image.time[-1]))
        n = int(round((end - fused.wfs.t0) / dt)) + 1
        time = fused.wfs.t0 + dt * np.arange(n)

        switch = np.maximum(fused.fcs.surface + guard, blank)
        switch = np.minimum(switch, first_end - roll_off)
        upper = _resample_rows(fused.data, fused.time, time)
        lower = _resample_rows(image.data, image.time, time)
        data = np.where(time[:, np.newaxis] < switch[np.newaxis, :], upper, lower)
        fused = replace(fused, data=data, wfs=replace(fused.wfs, num_samples=n))
    return fused


def track_surface(
    data: np.ndarray,
    time: np.ndarray,
    threshold_db: float = 15.0,
) -> np.ndarray:
    """Threshold surface tracker.

    The surface of a line is the first sample whose power exceeds the
    line's median power by ``threshold_db``; NaN where none does.
    """
    power = np.abs(data) ** 2 if np.iscomplexobj(data) else np.asarray(data)
    noise = np.median(power, axis=0)
    above = power > noise[np.newaxis, :] * 10 ** (threshold_db / 10)
    found = np.any(above, axis=0)
    first = np.argmax(above, axis=0)
    return np.where(found, time[first], np.nan)


# ==================================================================
# Frame combine pass
# ==================================================================

class ChunkCombiner:
    """Combine the chunk artifacts of one frame.

    Parameters
    ----------
    config : ProcessingConfig
        Configuration the chunks were produced with; ``load.frm``,
        ``load.sub_band_idx`` and ``load.imgs`` select the artifacts.
    layer_store : SurfaceLayerStore, optional
        Destination of the tracked surface. Defaults to
        ``<out_path>/layer``.
    """

    def __init__(
        self,
        config: ProcessingConfig,
        layer_store: Optional[SurfaceLayerStore] = None,
    ) -> None:
        self._config = config
        self._options: CombineConfig = config.combine
        self._out_path = Path(config.out_path)
        self._layer_store = layer_store or SurfaceLayerStore(
            self._out_path / 'layer')

    # ------------------------------------------------------------------
    # Artifact discovery
    # ------------------------------------------------------------------

    def image_stems(self, img_idx: int) -> List[str]:
        """Artifact stems of one image (0-based index)."""
        if self._config.sar.combine_rx:
            return [f"img_{img_idx + 1:02d}"]
        return [f"wf_{wf:02d}_adc_{adc:02d}"
                for wf, adc in self._config.load.imgs[img_idx]]

    def chunk_files(self, stem: str, subap: int) -> List[Path]:
        """Chunk artifacts of one stem and 1-based look, in chunk order.

        Raises
        ------
        ProcessingError
            If chunks are missing. Without a configured chunk count the
            found chunks must run from 1 without gaps.
        """
        load = self._config.load
        directory = self._out_path / directory_name(
            self._config.sar.sar_type, load.frm, subap, load.sub_band_idx)
        files = sorted(directory.glob(chunk_glob(stem)), key=parse_chunk_index)
        if files:
            found = {parse_chunk_index(f) for f in files}
            expected = self._options.num_chunks
            if expected is None:
                expected = max(found)
            missing = sorted(set(range(1, expected + 1)) - found)
            if missing:
                raise ProcessingError(
                    f"segment {self._config.day_seg} frame {load.frm}: "
                    f"{stem} look {subap} is missing chunks {missing}"
                )
        return files

    def output_paths(self) -> List[Path]:
        """Frame products this pass writes."""
        cfg = self._config
        n_img = len(cfg.load.imgs)
        if n_img == 1 or self._options.img_comb:
            return [self._out_path / frame_file_name(cfg.day_seg, cfg.load.frm)]
        return [
            self._out_path / frame_file_name(
                cfg.day_seg, cfg.load.frm, f"img_{i + 1:02d}")
            for i in range(n_img)
        ]

    # ------------------------------------------------------------------
    # Combining
    # ------------------------------------------------------------------

    def combine_image(self, img_idx: int) -> Tuple[ChunkProduct, List[Path]]:
        """Concatenated and look-combined image, and its chunk files."""
        num_looks = len(self._config.sar.sub_apertures)
        center = num_looks // 2
        looks: List[Tuple[int, ChunkProduct]] = []
        used: List[Path] = []
        for stem in self.image_stems(img_idx):
            for subap in range(1, num_looks + 1):
                files = self.chunk_files(stem, subap)
                if not files:
                    raise ProcessingError(
                        f"segment {self._config.day_seg} frame "
                        f"{self._config.load.frm}: no chunk artifacts for "
                        f"{stem} look {subap}"
                    )
                used.extend(files)
                product = concatenate_chunks([read_product(f) for f in files])
                looks.append((subap - 1, product))

        base = looks[0][1]
        stacked = [base.data]
        time = base.time
        for _, product in looks[1:]:
            joined = np.stack(stacked, axis=2)
            flat = joined.reshape(joined.shape[0], -1)
            flat, new, time = align_time_axes(flat, time, product.data, product.time)
            stacked = list(flat.reshape(len(time), base.num_lines, -1).transpose(2, 0, 1))
            stacked.append(new)
        cube = np.stack(stacked, axis=2)

        if self._options.incoherent:
            data = np.mean(np.abs(cube) ** 2, axis=2)
        else:
            center_looks = [i for i, (look, _) in enumerate(looks) if look == center]
            data = np.sum(cube[:, :, center_looks], axis=2)
        wfs = replace(base.wfs, t0=float(time[0]), num_samples=len(time))
        logger.debug(
            "Image %d: %d looks over %d lines and %d samples",
            img_idx + 1, len(looks), base.num_lines, len(time),
        )
        return replace(base, data=data, wfs=wfs), used

    def run(self) -> List[Path]:
        """Combine the frame; returns the frame products.

        Raises
        ------
        ProcessingError
            If chunk artifacts are missing and the frame was not
            combined before.
        """
        cfg = self._config
        outputs = self.output_paths()
        if all(p.exists() for p in outputs) and not self._any_chunks():
            logger.info(
                "Frame %s_%03d already combined, skipping",
                cfg.day_seg, cfg.load.frm)
            return outputs

        images = []
        used: List[Path] = []
        for img_idx in range(len(cfg.load.imgs)):
            image, files = self.combine_image(img_idx)
            images.append(image)
            used.extend(files)

        if len(images) > 1 and self._options.img_comb:
            products = [fuse_images(images, self._options.img_comb)]
        else:
            products = images

        for product, path in zip(products, outputs):
            write_product(path, product)
            logger.info("Wrote frame %s", path)

        if self._options.surface_tracking:
            product = products[0]
            twtt = track_surface(product.data, product.time,
                                 self._options.track_threshold_db)
            self._layer_store.write(cfg.day_seg, cfg.load.frm, SurfaceLayer(
                gps_time=np.asarray(product.fcs.gps_time, dtype=np.float64),
                twtt=twtt,
            ))

        if self._options.delete_temporary:
            self._delete(used)
        return outputs

    def _any_chunks(self) -> bool:
        num_looks = len(self._config.sar.sub_apertures)
        for img_idx in range(len(self._config.load.imgs)):
            for stem in self.image_stems(img_idx):
                for subap in range(1, num_looks + 1):
                    load = self._config.load
                    directory = self._out_path / directory_name(
                        self._config.sar.sar_type, load.frm, subap,
                        load.sub_band_idx)
                    if any(directory.glob(chunk_glob(stem))):
                        return True
        return False

    def _delete(self, files: Sequence[Path]) -> None:
        directories = set()
        for path in files:
            path.unlink()
            directories.add(path.parent)
        for directory in directories:
            if not any(directory.iterdir()):
                directory.rmdir()
        logger.debug("Deleted %d chunk artifacts", len(files))
