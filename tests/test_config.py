# -*- coding: utf-8 -*-
"""
Tests for the processing configuration builder and validation.

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
2026-10-15

Modified
--------
2026-10-18
"""

import math

import pytest
import yaml

from rdsar.config import (
    FkParams,
    ProcessingConfigBuilder,
    TdbpParams,
    load_config,
)
from rdsar.exceptions import ConfigurationError
from rdsar.processing.image_formation.subaperture import SubApertureSet
from rdsar.vocabulary import (
    MigrationAlgorithm,
    MocompMode,
    RadarFamily,
    SurfaceFit,
)


def _builder(**sar):
    values = {'sigma_x': 2.5}
    values.update(sar)
    return (ProcessingConfigBuilder()
            .radar('mcords')
            .segment('20260104_02', out_path='/tmp/out')
            .sar(**values)
            .load(recs=(0, 999), imgs=[[(1, 1), (1, 2)]]))


class TestBuilder:
    """Defaults and algorithm variants."""

    def test_defaults(self):
        config = _builder().build()
        assert config.radar is RadarFamily.MCORDS
        assert config.sar.sar_type is MigrationAlgorithm.FK
        assert isinstance(config.sar.algorithm, FkParams)
        assert config.sar.sub_aperture_steering == (0.0,)
        assert config.sar.presums == 1
        assert math.isinf(config.sar.time_of_full_support)
        assert config.load.imgs == (((1, 1), (1, 2)),)
        assert config.load.chunk_idx == 1
        assert config.combine.incoherent

    def test_tdbp_params(self):
        config = (_builder()
                  .algorithm('tdbp', surf_filt_dist=2000.0,
                             surface_fit='polyfit')
                  .build())
        assert config.sar.sar_type is MigrationAlgorithm.TDBP
        assert isinstance(config.sar.algorithm, TdbpParams)
        assert config.sar.algorithm.surf_filt_dist == 2000.0
        assert config.sar.algorithm.surface_fit is SurfaceFit.POLYFIT

    def test_mocomp_mode_from_string(self):
        config = (_builder()
                  .mocomp(en=True, mode='range_and_along_track')
                  .build())
        assert config.sar.mocomp.en
        assert config.sar.mocomp.mode is MocompMode.RANGE_AND_ALONG_TRACK

    def test_steering_normalized(self):
        config = _builder(sub_aperture_steering=[-1, -0.5, 0, 0.5, 1]).build()
        assert config.sar.sub_aperture_steering == (-1.0, -0.5, 0.0, 0.5, 1.0)
        assert config.sar.sub_apertures.oversample == 3

    def test_to_dict_is_plain(self):
        values = _builder().build().to_dict()
        assert values['radar'] == 'mcords'
        assert values['sar']['sar_type'] == 'fk'
        assert values['sar']['time_of_full_support'] == 'inf'
        assert values['sar']['mocomp']['mode'] == 'range_only'
        assert values['load']['imgs'] == [[[1, 1], [1, 2]]]


class TestValidation:
    """Fatal configuration errors."""

    def test_even_steering(self):
        with pytest.raises(ConfigurationError, match="-N:0.5:N"):
            _builder(sub_aperture_steering=[-0.5, 0.5]).build()

    def test_non_progression_steering(self):
        with pytest.raises(ConfigurationError, match="-N:0.5:N"):
            _builder(sub_aperture_steering=[-1.0, 0.0, 1.0]).build()

    def test_combine_rx_with_mocomp(self):
        builder = _builder(combine_rx=True).mocomp(en=True)
        with pytest.raises(ConfigurationError, match="combine_rx"):
            builder.build()

    def test_combine_rx_message_names_frame(self):
        builder = _builder(combine_rx=True).mocomp(en=True).load(frm=7)
        with pytest.raises(ConfigurationError, match="frame 7"):
            builder.build()

    @pytest.mark.parametrize('radar', ['snow', 'kuband'])
    def test_fmcw_radar_unsupported(self, radar):
        with pytest.raises(ConfigurationError, match="does not support"):
            _builder().radar(radar).build()

    def test_unknown_radar(self):
        with pytest.raises(ConfigurationError, match="Unknown radar"):
            _builder().radar('marconi').build()

    def test_unknown_algorithm(self):
        with pytest.raises(ConfigurationError, match="Unknown SAR algorithm"):
            _builder().algorithm('rda').build()

    def test_sigma_x_positive(self):
        with pytest.raises(ConfigurationError, match="sigma_x"):
            _builder(sigma_x=0.0).build()

    def test_presums(self):
        with pytest.raises(ConfigurationError, match="presums"):
            _builder(presums=0).build()

    def test_unknown_window(self):
        with pytest.raises(ConfigurationError, match="st_wind"):
            _builder(st_wind='blackman').build()

    def test_unknown_option(self):
        with pytest.raises(ConfigurationError, match="Unknown sar option"):
            _builder(sigma=2.5).build()

    def test_missing_channels(self):
        builder = _builder().load(imgs=[[]])
        with pytest.raises(ConfigurationError, match="channels"):
            builder.build()

    def test_img_comb_length(self):
        builder = (_builder()
                   .load(imgs=[[(1, 1)], [(2, 1)]])
                   .combine(img_comb=[1e-6, 2e-6]))
        with pytest.raises(ConfigurationError, match="img_comb"):
            builder.build()

    def test_missing_radar(self):
        builder = (ProcessingConfigBuilder()
                   .segment('20260104_02', out_path='.')
                   .sar(sigma_x=2.5)
                   .load(recs=(0, 9), imgs=[[(1, 1)]]))
        with pytest.raises(ConfigurationError, match="Radar family"):
            builder.build()

    def test_sub_aperture_set_direct(self):
        with pytest.raises(ConfigurationError):
            SubApertureSet([])


class TestYaml:
    """Configuration files."""

    def test_load_config(self, tmp_path):
        path = tmp_path / 'sar.yaml'
        path.write_text(yaml.safe_dump({
            'radar': 'sim',
            'day_seg': '20260104_02',
            'out_path': str(tmp_path / 'out'),
            'sar': {
                'sar_type': 'tdbp',
                'sigma_x': 2.0,
                'sub_aperture_steering': [-0.5, 0.0, 0.5],
                'tdbp': {'n_lib': 16, 'refraction': False},
                'fk': {'ft_oversample': 4},
                'mocomp': {'en': False, 'uniform_en': False},
            },
            'load': {'recs': [10, 200], 'imgs': [[[1, 1]]], 'frm': 3},
            'combine': {'surface_tracking': True},
        }))
        config = load_config(path)
        assert config.radar is RadarFamily.SIM
        assert config.sar.sar_type is MigrationAlgorithm.TDBP
        assert config.sar.algorithm.n_lib == 16
        assert not config.sar.algorithm.refraction
        assert not config.sar.mocomp.uniform_en
        assert config.load.recs == (10, 200)
        assert config.load.frm == 3
        assert config.combine.surface_tracking

    def test_unknown_top_level(self, tmp_path):
        path = tmp_path / 'bad.yaml'
        path.write_text(yaml.safe_dump({'radar': 'sim', 'records': 1}))
        with pytest.raises(ConfigurationError, match="top-level"):
            load_config(path)
