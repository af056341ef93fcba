# -*- coding: utf-8 -*-
"""
SAR Chunk Task - Form and save the migrated images of one chunk.

A chunk task plans the chunk, loads its records once, and for every
image (and, unless receivers are combined, every channel of the image)
runs the configured migration engine::

    f-k:   fft(fast time) -> [motion compensation] -> resampling
           -> f-k migration -> [undo motion compensation]
    TDBP:  surface smoothing -> backprojection

Every sub-aperture look becomes one chunk artifact. The artifacts of a
chunk are written all-or-nothing: files already written are removed
when a later write fails, so the combine stage only needs to check for
existence.

Dependencies
------------
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
2026-10-14

Modified
--------
2026-10-19
"""

# Standard library
import logging
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple

# Third-party
import numpy as np
from scipy import fft

# RDSAR internal
from rdsar.config import FkParams, ProcessingConfig, TdbpParams
from rdsar.exceptions import ConfigurationError, RdsarError
from rdsar.geolocation.fcs import FlightCoordinateSystem
from rdsar.IO.chunks import ChunkWriter
from rdsar.IO.models import (
    ChannelKey,
    ChunkProduct,
    RecordBlock,
    SarCoordinates,
    WaveformDescriptor,
)
from rdsar.IO.naming import ArtifactKey
from rdsar.IO.segment import SurfaceLayerStore
from rdsar.IO.services import SampleLoader, TrajectoryService
from rdsar.processing.chunking import ChunkPlan, ChunkPlanner
from rdsar.processing.image_formation.fk import FkMigration
from rdsar.processing.image_formation.permittivity import PermittivityProfile
from rdsar.processing.image_formation.tdbp import TimeDomainBackProjection
from rdsar.processing.motion_comp import (
    MotionCompensator,
    apply_motion_compensation,
)
from rdsar.processing.resampling import UniformResampler
from rdsar.processing.trajectory import (
    TrajectoryResolver,
    merge_channels,
    smooth_surface,
)

logger = logging.getLogger(__name__)


class SarChunkTask:
    """Migrate one chunk of a frame.

    Parameters
    ----------
    config : ProcessingConfig
        Validated configuration of the chunk.
    sar_coords : SarCoordinates
        SAR coordinate content of the segment.
    trajectory_service : TrajectoryService
        Source of per-record trajectories.
    sample_loader : SampleLoader
        Source of pulse-compressed samples and waveform descriptors.
    surface_source : SurfaceLayerStore, optional
        Layer files overriding the trajectory surface. Defaults to
        ``config.sar.surface_src`` when that is set.
    verbose : bool
        Log engine stage messages at INFO. Default False.

    Examples
    --------
    >>> task = SarChunkTask(config, sar_coords, trajectories, loader)
    >>> ok = execute(task)
    """

    def __init__(
        self,
        config: ProcessingConfig,
        sar_coords: SarCoordinates,
        trajectory_service: TrajectoryService,
        sample_loader: SampleLoader,
        surface_source: Optional[SurfaceLayerStore] = None,
        verbose: bool = False,
    ) -> None:
        self.config = config
        self.sar_coords = sar_coords
        self._loader = sample_loader
        if surface_source is None and config.sar.surface_src:
            surface_source = SurfaceLayerStore(config.sar.surface_src)
        self._resolver = TrajectoryResolver(
            trajectory_service,
            sample_loader,
            config.day_seg,
            presums=config.sar.presums,
            lever_arm=config.sar.lever_arm,
            surface_store=surface_source,
            frm=config.load.frm,
        )
        self._verbose = verbose
        self._waveforms = sample_loader.waveforms()

    @property
    def context(self) -> str:
        """Segment, frame and chunk of the task, for messages."""
        load = self.config.load
        return (f"segment {self.config.day_seg} frame {load.frm} "
                f"chunk {load.chunk_idx}")

    def _channels(self) -> List[ChannelKey]:
        channels: List[ChannelKey] = []
        for img in self.config.load.imgs:
            for ch in img:
                if ch not in channels:
                    channels.append(ch)
        return channels

    def _waveform(self, wf: int) -> WaveformDescriptor:
        if wf not in self._waveforms:
            raise ConfigurationError(f"No waveform descriptor for wf={wf}")
        return self._waveforms[wf]

    # ------------------------------------------------------------------
    # Planning
    # ------------------------------------------------------------------

    def plan(self) -> ChunkPlan:
        """Output window, records and padding of the chunk."""
        waveforms = [self._waveform(wf) for wf, _ in self._channels()]
        planner = ChunkPlanner(
            sigma_x=self.config.sar.sigma_x,
            fc=min(w.fc for w in waveforms),
            max_time=max(float(w.time[-1]) for w in waveforms),
            start_eps=self.config.sar.start_eps,
            time_of_full_support=self.config.sar.time_of_full_support,
        )
        return planner.plan(
            self.sar_coords.along_track,
            self.sar_coords.output_along_track,
            self.config.load.recs,
            self.sar_coords.surface_at,
        )

    # ------------------------------------------------------------------
    # Image formation
    # ------------------------------------------------------------------

    def form_images(self) -> Dict[ArtifactKey, ChunkProduct]:
        """Migrate every image of the chunk.

        Returns
        -------
        Dict[ArtifactKey, ChunkProduct]
            One product per sub-aperture and channel (or image, when
            receivers are combined).

        Raises
        ------
        RdsarError
            With the segment, frame, chunk and channel in the message.
        """
        try:
            plan = self.plan()
            block = self._resolver.load_records(plan.recs, self._channels())
        except RdsarError as exc:
            exc.args = (f"{self.context}: {exc}",)
            raise

        logger.info(
            "%s: %d output lines from records %d-%d",
            self.context, len(plan.out_rlines), plan.recs[0], plan.recs[1],
        )
        products: Dict[ArtifactKey, ChunkProduct] = {}
        for img_idx, img in enumerate(self.config.load.imgs):
            if self.config.sar.combine_rx:
                groups = [(tuple(img), {'img': img_idx + 1})]
            else:
                groups = [((ch,), {'wf': ch[0], 'adc': ch[1]}) for ch in img]
            for channels, key_fields in groups:
                try:
                    looks = self._form_channel(plan, block, channels)
                except RdsarError as exc:
                    names = ', '.join(f"wf {wf} adc {adc}" for wf, adc in channels)
                    exc.args = (f"{self.context} ({names}): {exc}",)
                    raise
                for subap, product in enumerate(looks):
                    key = ArtifactKey(
                        algorithm=self.config.sar.sar_type,
                        frm=self.config.load.frm,
                        subap=subap + 1,
                        subband=self.config.load.sub_band_idx,
                        chunk=self.config.load.chunk_idx,
                        **key_fields,
                    )
                    products[key] = product
        return products

    def _form_channel(
        self,
        plan: ChunkPlan,
        block: RecordBlock,
        channels: Sequence[ChannelKey],
    ) -> List[ChunkProduct]:
        sar = self.config.sar
        wfs = self._waveform(channels[0][0])
        first, last = plan.recs
        along_track = np.array(self.sar_coords.along_track[first:last + 1])
        data = (block.data[tuple(channels[0])] if len(channels) == 1
                else merge_channels(block.data, channels))

        trajectory = self._resolver.channel_trajectory(
            plan.recs, channels, block.trajectory)
        phase_centers = trajectory.ecef()
        fcs = self.sar_coords.fcs_slice(plan.out_rlines).with_phase_centers(
            phase_centers, along_track, plan.output_along_track)

        if isinstance(sar.algorithm, FkParams):
            image, grid, wfs_out = self._migrate_fk(
                plan, block, data, wfs, along_track, phase_centers,
                trajectory.gps_time, fcs)
        elif isinstance(sar.algorithm, TdbpParams):
            image, grid, wfs_out = self._migrate_tdbp(
                plan, block, data, wfs, along_track, phase_centers, fcs)
        else:
            raise TypeError(f"Unsupported algorithm parameters {sar.algorithm!r}")

        ref = block.trajectory
        geo = {
            name: np.interp(plan.output_along_track, along_track, values)
            for name, values in (('lat', ref.lat), ('lon', ref.lon),
                                 ('elev', ref.elev))
        }
        param_sar = self.config.to_dict()
        param_sar['grid'] = grid
        param_records = {
            'day_seg': self.config.day_seg,
            'frm': self.config.load.frm,
            'chunk_idx': self.config.load.chunk_idx,
            'recs': [int(first), int(last)],
            'presums': int(sar.presums),
            'out_rlines': [int(plan.out_rlines[0]), int(plan.out_rlines[-1])],
            'channels': [list(ch) for ch in channels],
        }
        return [
            ChunkProduct(
                data=image[:, :, idx],
                wfs=wfs_out,
                fcs=fcs,
                lat=geo['lat'],
                lon=geo['lon'],
                elev=geo['elev'],
                output_along_track=np.array(plan.output_along_track),
                param_sar=param_sar,
                param_records=param_records,
            )
            for idx in range(image.shape[2])
        ]

    def _migrate_fk(
        self,
        plan: ChunkPlan,
        block: RecordBlock,
        data: np.ndarray,
        wfs: WaveformDescriptor,
        along_track: np.ndarray,
        phase_centers: np.ndarray,
        gps_time: np.ndarray,
        fcs: FlightCoordinateSystem,
    ) -> Tuple[np.ndarray, dict, WaveformDescriptor]:
        sar = self.config.sar
        params: FkParams = sar.algorithm
        data_f = fft.fft(data, axis=0)
        x = along_track
        dtime_out = None
        # Record surface, overridden by layer files when configured
        surface = np.array(block.trajectory.surface, dtype=np.float64)

        if sar.mocomp.en:
            # FCS lines spanning the records and their padding
            n_lines = self.sar_coords.num_lines
            span = np.arange(
                max(0, plan.out_rlines[0] - plan.num_pre),
                min(n_lines, plan.out_rlines[-1] + plan.num_post + 1),
            )
            span_x = self.sar_coords.output_along_track[span]
            fcs_span = self.sar_coords.fcs_slice(span).with_phase_centers(
                phase_centers, along_track, span_x)
            compensator = MotionCompensator(
                sar.mocomp.mode, sar.mocomp.filter_order,
                sar.mocomp.filter_cutoff)
            correction = compensator.corrections(
                fcs_span, span_x, phase_centers, along_track, gps_time)
            data_f = apply_motion_compensation(data_f, wfs.freq, correction.drange)
            x = along_track + correction.dx
            dtime_out = correction.dtime_at(fcs.gps_time)
            surface = surface + correction.dtime

        sub_apertures = sar.sub_apertures
        resampler = UniformResampler(
            sar.sigma_x, sub_apertures.oversample, uniform=sar.mocomp.uniform_en)
        tile = resampler.resample(data_f, x, plan.output_along_track_full)

        engine = FkMigration(
            sub_apertures, sar.sigma_x, st_wind=sar.st_wind,
            ft_oversample=params.ft_oversample,
            kernel_length=params.kernel_length, beta=params.beta,
            verbose=self._verbose,
        )
        permittivity = PermittivityProfile(
            surface=np.interp(plan.output_along_track, along_track, surface),
            eps_r=sar.start_eps,
        )
        image = engine.form_image(
            tile, wfs, permittivity, plan.num_pre, plan.num_post, dtime_out)
        return image, engine.get_output_grid(), wfs

    def _migrate_tdbp(
        self,
        plan: ChunkPlan,
        block: RecordBlock,
        data: np.ndarray,
        wfs: WaveformDescriptor,
        along_track: np.ndarray,
        phase_centers: np.ndarray,
        fcs: FlightCoordinateSystem,
    ) -> Tuple[np.ndarray, dict, WaveformDescriptor]:
        sar = self.config.sar
        params: TdbpParams = sar.algorithm
        surface = smooth_surface(
            along_track, block.trajectory.surface, params.surface_fit,
            params.surf_filt_dist, params.poly_order)
        permittivity = PermittivityProfile(
            surface=np.interp(plan.output_along_track, along_track, surface),
            eps_r=sar.start_eps,
        )
        engine = TimeDomainBackProjection(
            sar.sub_apertures, sar.sigma_x, st_wind=sar.st_wind,
            n_lib=params.n_lib, refraction=params.refraction,
            start_time=params.start_time, end_time=params.end_time,
            use_numba=params.use_numba, verbose=self._verbose,
        )
        image = engine.form_image(
            data, wfs, phase_centers, along_track, fcs,
            plan.output_along_track, permittivity)
        grid = engine.get_output_grid()
        return image, grid, wfs.trimmed(grid['start_bin'], grid['stop_bin'])

    # ------------------------------------------------------------------
    # Run
    # ------------------------------------------------------------------

    def run(self) -> bool:
        """Form and write every artifact of the chunk.

        Returns
        -------
        bool
            True once all artifacts are written.
        """
        products = self.form_images()
        writer = ChunkWriter(self.config.out_path)
        written: List[Path] = []
        try:
            for key, product in products.items():
                written.append(writer.write(product, key))
        except BaseException:
            for path in written:
                if path.exists():
                    path.unlink()
            raise
        logger.info("%s: wrote %d artifacts", self.context, len(written))
        return True


def execute(task: SarChunkTask) -> bool:
    """Run a chunk task and report success.

    Processing and configuration errors are logged and reported as
    False. I/O errors propagate to the caller.
    """
    try:
        return task.run()
    except RdsarError:
        logger.exception("Chunk task failed")
        return False
