# -*- coding: utf-8 -*-
"""
Processing Configuration - Validated configuration for SAR chunk tasks.

Frozen dataclasses with documented defaults, assembled and validated
once by ``ProcessingConfigBuilder``. The migration algorithm is a closed
variant: ``SarConfig.algorithm`` holds either ``FkParams`` or
``TdbpParams``, and the parameter class identifies the algorithm.

Configuration files are YAML::

    radar: mcords
    day_seg: 20260104_02
    out_path: /data/out
    sar:
      sar_type: fk
      sigma_x: 2.5
      sub_aperture_steering: [-0.5, 0.0, 0.5]
      mocomp: {en: true, uniform_en: true}
      fk: {ft_oversample: 2}
    load:
      recs: [1000, 2999]
      imgs: [[[1, 1], [1, 2]]]
      frm: 3
      chunk_idx: 2

Dependencies
------------
pyyaml

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
2026-10-07

Modified
--------
2026-10-19
"""

# Standard library
import dataclasses
import logging
import math
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, ClassVar, Dict, Optional, Tuple, Union

# Third-party
import yaml

# RDSAR internal
from rdsar.constants import ER_ICE
from rdsar.exceptions import ConfigurationError
from rdsar.processing.image_formation.base import window_names
from rdsar.processing.image_formation.subaperture import SubApertureSet
from rdsar.vocabulary import (
    MigrationAlgorithm,
    MocompMode,
    RadarFamily,
    SurfaceFit,
)

logger = logging.getLogger(__name__)

ChannelKey = Tuple[int, int]


@dataclass(frozen=True)
class MotionCompConfig:
    """Motion compensation and uniform resampling options.

    Parameters
    ----------
    en : bool
        Apply motion compensation before f-k migration.
    uniform_en : bool
        Explicit windowed-sinc resampling onto the uniform grid; when
        False the along-track spectrum is decimated directly.
    mode : MocompMode
        Corrections applied (range only, or range and along-track).
    filter_order : int
        Butterworth order of the optional range-correction low-pass.
    filter_cutoff : float, optional
        Normalized cutoff (0, 1) of the low-pass; None disables it.
    """

    en: bool = False
    uniform_en: bool = True
    mode: MocompMode = MocompMode.RANGE_ONLY
    filter_order: int = 4
    filter_cutoff: Optional[float] = None


@dataclass(frozen=True)
class FkParams:
    """f-k migration parameters.

    Parameters
    ----------
    ft_oversample : int
        Fast-time zero-padding factor before Stolt interpolation.
    kernel_length : int
        Kaiser-sinc Stolt interpolation kernel length.
    beta : float
        Kaiser window shape of the Stolt kernel.
    """

    algorithm: ClassVar[MigrationAlgorithm] = MigrationAlgorithm.FK

    ft_oversample: int = 2
    kernel_length: int = 8
    beta: float = 5.0


@dataclass(frozen=True)
class TdbpParams:
    """Time-domain backprojection parameters.

    Parameters
    ----------
    n_lib : int
        Sub-bin delays in the matched-signal library.
    refraction : bool
        Bent two-segment rays below the surface; straight rays if False.
    surf_filt_dist : float
        Along-track length of the surface smoothing filter (m).
    surface_fit : SurfaceFit
        Savitzky-Golay smoothing or polynomial fit of the surface.
    poly_order : int
        Order of the polynomial surface fit.
    start_time, end_time : float, optional
        Fast-time window of the output pixels (s).
    use_numba : bool
        Accumulate with the numba kernel instead of numpy.
    """

    algorithm: ClassVar[MigrationAlgorithm] = MigrationAlgorithm.TDBP

    n_lib: int = 32
    refraction: bool = True
    surf_filt_dist: float = 3000.0
    surface_fit: SurfaceFit = SurfaceFit.SGOLAY
    poly_order: int = 3
    start_time: Optional[float] = None
    end_time: Optional[float] = None
    use_numba: bool = True


AlgorithmParams = Union[FkParams, TdbpParams]

_ALGORITHM_PARAMS = {
    MigrationAlgorithm.FK: FkParams,
    MigrationAlgorithm.TDBP: TdbpParams,
}


@dataclass(frozen=True)
class SarConfig:
    """SAR processing parameters.

    Parameters
    ----------
    sigma_x : float
        Output along-track spacing (m).
    algorithm : FkParams or TdbpParams
        Migration algorithm and its parameters.
    sub_aperture_steering : Tuple[float, ...]
        Squint steering values, ``-N:0.5:N`` with odd count.
    start_eps : float
        Relative permittivity below the surface.
    time_of_full_support : float
        Deepest two-way travel time given full aperture support (s).
    presums : int
        Records coherently averaged before processing.
    combine_rx : bool
        Sum the channels of each image before migration.
    lever_arm : bool
        Request per-channel lever-arm adjusted trajectories.
    st_wind : str
        Slow-time weighting window name.
    mocomp : MotionCompConfig
        Motion compensation options.
    surface_src : str, optional
        Directory of surface layer files overriding the trajectory
        surface.
    """

    sigma_x: float
    algorithm: AlgorithmParams = field(default_factory=FkParams)
    sub_aperture_steering: Tuple[float, ...] = (0.0,)
    start_eps: float = ER_ICE
    time_of_full_support: float = math.inf
    presums: int = 1
    combine_rx: bool = False
    lever_arm: bool = True
    st_wind: str = 'uniform'
    mocomp: MotionCompConfig = field(default_factory=MotionCompConfig)
    surface_src: Optional[str] = None

    @property
    def sar_type(self) -> MigrationAlgorithm:
        return self.algorithm.algorithm

    @property
    def sub_apertures(self) -> SubApertureSet:
        return SubApertureSet(self.sub_aperture_steering)


@dataclass(frozen=True)
class LoadConfig:
    """Which records and channels a chunk task processes.

    Parameters
    ----------
    recs : Tuple[int, int]
        First and last (inclusive, 0-based) presummed record of the
        output window.
    imgs : Tuple[Tuple[ChannelKey, ...], ...]
        Images, each a tuple of ``(wf, adc)`` channels.
    frm : int
        Frame number.
    chunk_idx : int
        1-based chunk index within the frame.
    sub_band_idx : int
        1-based sub-band index.
    """

    recs: Tuple[int, int]
    imgs: Tuple[Tuple[ChannelKey, ...], ...]
    frm: int = 1
    chunk_idx: int = 1
    sub_band_idx: int = 1


@dataclass(frozen=True)
class CombineConfig:
    """Options for combining chunk artifacts into frames.

    Parameters
    ----------
    incoherent : bool
        Combine sub-aperture looks as mean power; if False keep the
        complex center look.
    img_comb : Tuple[float, ...]
        Three values per image interface: surface guard time, blank
        time and roll-off time (s). Empty disables image fusion.
    surface_tracking : bool
        Track the surface in the combined image and save it as a layer.
    track_threshold_db : float
        Tracker threshold above the noise floor (dB).
    delete_temporary : bool
        Delete per-chunk artifacts after combining.
    num_chunks : int, optional
        Expected chunk count; missing chunks are an error. When unset
        the chunks found must be numbered 1 to N without gaps.
    """

    incoherent: bool = True
    img_comb: Tuple[float, ...] = ()
    surface_tracking: bool = False
    track_threshold_db: float = 15.0
    delete_temporary: bool = True
    num_chunks: Optional[int] = None


@dataclass(frozen=True)
class ProcessingConfig:
    """Complete configuration of one chunk task and its frame combine.

    Parameters
    ----------
    radar : RadarFamily
        Radar hardware family of the records.
    day_seg : str
        Segment identifier, e.g. ``'20260104_02'``.
    out_path : str
        Root directory of the chunk artifacts.
    sar : SarConfig
        SAR processing parameters.
    load : LoadConfig
        Records and channels to process.
    combine : CombineConfig
        Frame combine options.
    """

    radar: RadarFamily
    day_seg: str
    out_path: str
    sar: SarConfig
    load: LoadConfig
    combine: CombineConfig = field(default_factory=CombineConfig)

    def to_dict(self) -> Dict[str, Any]:
        """JSON-safe nested dictionary, used for provenance records."""
        values = _plain(dataclasses.asdict(self))
        values['sar']['sar_type'] = self.sar.sar_type.value
        return values


def _plain(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, dict):
        return {k: _plain(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_plain(v) for v in value]
    if isinstance(value, float) and math.isinf(value):
        return str(value)
    return value


def _enum(cls, value, what: str):
    if isinstance(value, cls):
        return value
    try:
        return cls(str(value).lower())
    except ValueError:
        raise ConfigurationError(
            f"Unknown {what} '{value}'. "
            f"Options: {[m.value for m in cls]}"
        ) from None


def _known(cls, values: Dict[str, Any], what: str) -> Dict[str, Any]:
    names = {f.name for f in dataclasses.fields(cls)}
    unknown = set(values) - names
    if unknown:
        raise ConfigurationError(
            f"Unknown {what} option(s): {sorted(unknown)}"
        )
    return dict(values)


class ProcessingConfigBuilder:
    """Assemble a ``ProcessingConfig`` with defaults and validation.

    Examples
    --------
    >>> config = (ProcessingConfigBuilder()
    ...           .radar('mcords')
    ...           .segment('20260104_02', out_path='/data/out')
    ...           .sar(sigma_x=2.5, sub_aperture_steering=(-0.5, 0, 0.5))
    ...           .algorithm('tdbp', surf_filt_dist=2000.0)
    ...           .load(recs=(0, 999), imgs=[[(1, 1)]])
    ...           .build())
    """

    def __init__(self) -> None:
        self._radar: Any = None
        self._day_seg: Optional[str] = None
        self._out_path: Optional[str] = None
        self._sar: Dict[str, Any] = {}
        self._mocomp: Dict[str, Any] = {}
        self._algorithm: Any = MigrationAlgorithm.FK
        self._algorithm_params: Dict[str, Any] = {}
        self._load: Dict[str, Any] = {}
        self._combine: Dict[str, Any] = {}

    # ------------------------------------------------------------------
    # Setters
    # ------------------------------------------------------------------

    def radar(self, radar: Union[str, RadarFamily]) -> 'ProcessingConfigBuilder':
        self._radar = radar
        return self

    def segment(
        self,
        day_seg: str,
        out_path: Union[str, Path],
    ) -> 'ProcessingConfigBuilder':
        self._day_seg = None if day_seg is None else str(day_seg)
        self._out_path = str(out_path)
        return self

    def sar(self, **kwargs: Any) -> 'ProcessingConfigBuilder':
        self._sar.update(kwargs)
        return self

    def mocomp(self, **kwargs: Any) -> 'ProcessingConfigBuilder':
        self._mocomp.update(kwargs)
        return self

    def algorithm(
        self,
        name: Union[str, MigrationAlgorithm],
        **kwargs: Any,
    ) -> 'ProcessingConfigBuilder':
        self._algorithm = name
        self._algorithm_params = dict(kwargs)
        return self

    def load(self, **kwargs: Any) -> 'ProcessingConfigBuilder':
        self._load.update(kwargs)
        return self

    def combine(self, **kwargs: Any) -> 'ProcessingConfigBuilder':
        self._combine.update(kwargs)
        return self

    @classmethod
    def from_dict(cls, values: Dict[str, Any]) -> 'ProcessingConfigBuilder':
        """Builder populated from a nested dictionary (parsed YAML)."""
        values = dict(values)
        builder = cls()
        unknown = set(values) - {
            'radar', 'day_seg', 'out_path', 'sar', 'load', 'combine',
        }
        if unknown:
            raise ConfigurationError(
                f"Unknown top-level option(s): {sorted(unknown)}"
            )
        if 'radar' in values:
            builder.radar(values['radar'])
        if 'day_seg' in values or 'out_path' in values:
            builder.segment(values.get('day_seg'), values.get('out_path', '.'))

        sar = dict(values.get('sar') or {})
        builder.mocomp(**(sar.pop('mocomp', None) or {}))
        sar_type = sar.pop('sar_type', MigrationAlgorithm.FK.value)
        algo_params = {}
        for algo in MigrationAlgorithm:
            section = sar.pop(algo.value, None)
            if algo.value == str(getattr(sar_type, 'value', sar_type)).lower():
                algo_params = dict(section or {})
        builder.algorithm(sar_type, **algo_params)
        builder.sar(**sar)

        builder.load(**(values.get('load') or {}))
        builder.combine(**(values.get('combine') or {}))
        return builder

    # ------------------------------------------------------------------
    # Build
    # ------------------------------------------------------------------

    def build(self) -> ProcessingConfig:
        """Apply defaults, validate and return the configuration.

        Raises
        ------
        ConfigurationError
            On any invalid or inconsistent setting.
        """
        if self._radar is None:
            raise ConfigurationError("Radar family is required")
        radar = _enum(RadarFamily, self._radar, 'radar family')
        if not self._day_seg:
            raise ConfigurationError("Segment identifier (day_seg) is required")

        algorithm = _enum(MigrationAlgorithm, self._algorithm, 'SAR algorithm')
        if not radar.supports_sar:
            raise ConfigurationError(
                f"Radar family '{radar.value}' does not support "
                f"{algorithm.value} SAR processing"
            )
        params_cls = _ALGORITHM_PARAMS[algorithm]
        params_values = _known(params_cls, self._algorithm_params,
                               f"{algorithm.value}")
        if 'surface_fit' in params_values:
            params_values['surface_fit'] = _enum(
                SurfaceFit, params_values['surface_fit'], 'surface fit')
        algorithm_params = params_cls(**params_values)

        mocomp_values = _known(MotionCompConfig, self._mocomp, 'mocomp')
        if 'mode' in mocomp_values:
            mocomp_values['mode'] = _enum(
                MocompMode, mocomp_values['mode'], 'mocomp mode')
        mocomp = MotionCompConfig(**mocomp_values)

        sar_values = _known(SarConfig, self._sar, 'sar')
        sar_values.pop('algorithm', None)
        sar_values.pop('mocomp', None)
        if 'sigma_x' not in sar_values:
            raise ConfigurationError("sar.sigma_x is required")
        if 'sub_aperture_steering' in sar_values:
            sar_values['sub_aperture_steering'] = tuple(
                float(v) for v in sar_values['sub_aperture_steering'])
        if 'time_of_full_support' in sar_values:
            sar_values['time_of_full_support'] = float(
                sar_values['time_of_full_support'])
        sar = SarConfig(algorithm=algorithm_params, mocomp=mocomp, **sar_values)

        load_values = _known(LoadConfig, self._load, 'load')
        for required in ('recs', 'imgs'):
            if required not in load_values:
                raise ConfigurationError(f"load.{required} is required")
        load_values['recs'] = tuple(int(r) for r in load_values['recs'])
        load_values['imgs'] = tuple(
            tuple((int(wf), int(adc)) for wf, adc in img)
            for img in load_values['imgs']
        )
        load = LoadConfig(**load_values)

        combine_values = _known(CombineConfig, self._combine, 'combine')
        if 'img_comb' in combine_values:
            combine_values['img_comb'] = tuple(
                float(v) for v in combine_values['img_comb'])
        combine = CombineConfig(**combine_values)

        config = ProcessingConfig(
            radar=radar,
            day_seg=self._day_seg,
            out_path=self._out_path or '.',
            sar=sar,
            load=load,
            combine=combine,
        )
        validate_config(config)
        return config


def validate_config(config: ProcessingConfig) -> None:
    """Check a configuration for fatal errors.

    Raises
    ------
    ConfigurationError
        Describing the first violated rule.
    """
    sar = config.sar
    where = f"segment {config.day_seg} frame {config.load.frm}"

    # Raises on malformed steering
    SubApertureSet(sar.sub_aperture_steering)

    if not sar.sigma_x > 0:
        raise ConfigurationError(f"sigma_x must be positive, got {sar.sigma_x}")
    if sar.presums < 1:
        raise ConfigurationError(f"presums must be >= 1, got {sar.presums}")
    if sar.start_eps < 1:
        raise ConfigurationError(
            f"start_eps must be >= 1, got {sar.start_eps}")
    if sar.st_wind.lower() not in window_names():
        raise ConfigurationError(
            f"Unknown st_wind '{sar.st_wind}'. Options: {window_names()}")
    if sar.combine_rx and sar.mocomp.en:
        raise ConfigurationError(
            f"{where}: combine_rx and motion compensation cannot both be "
            f"enabled; per-channel motion compensation is undefined for "
            f"combined receivers"
        )
    if sar.mocomp.filter_cutoff is not None and not (
            0 < sar.mocomp.filter_cutoff < 1):
        raise ConfigurationError(
            f"mocomp.filter_cutoff must be in (0, 1), "
            f"got {sar.mocomp.filter_cutoff}")
    if isinstance(sar.algorithm, FkParams):
        if sar.algorithm.ft_oversample < 1:
            raise ConfigurationError("fk.ft_oversample must be >= 1")
    elif isinstance(sar.algorithm, TdbpParams):
        params = sar.algorithm
        if params.n_lib < 1:
            raise ConfigurationError("tdbp.n_lib must be >= 1")
        if (params.start_time is not None and params.end_time is not None
                and params.end_time <= params.start_time):
            raise ConfigurationError(
                "tdbp.end_time must be after tdbp.start_time")

    load = config.load
    if load.recs[0] < 0 or load.recs[1] < load.recs[0]:
        raise ConfigurationError(f"{where}: invalid record range {load.recs}")
    if not load.imgs or any(len(img) == 0 for img in load.imgs):
        raise ConfigurationError(f"{where}: every image needs channels")
    if load.chunk_idx < 1 or load.sub_band_idx < 1:
        raise ConfigurationError("chunk_idx and sub_band_idx are 1-based")

    comb = config.combine.img_comb
    if comb and len(comb) != 3 * (len(load.imgs) - 1):
        raise ConfigurationError(
            f"img_comb needs 3 values per image interface "
            f"({3 * (len(load.imgs) - 1)}), got {len(comb)}")


def load_config(path: Union[str, Path]) -> ProcessingConfig:
    """Read and validate a YAML configuration file."""
    with open(path, 'r') as f:
        values = yaml.safe_load(f) or {}
    logger.debug("Loaded configuration from %s", path)
    return ProcessingConfigBuilder.from_dict(values).build()
