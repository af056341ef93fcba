# -*- coding: utf-8 -*-
"""
Tests for chunk concatenation, image fusion and the frame combine pass.

Dependencies
------------
pytest
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
2026-10-14

Modified
--------
2026-10-19
"""

import numpy as np
import pytest

from rdsar.config import ProcessingConfigBuilder
from rdsar.exceptions import ProcessingError
from rdsar.geolocation import build_sar_coordinates
from rdsar.IO import ArtifactKey, ChunkWriter, SurfaceLayerStore, read_product
from rdsar.IO.models import ChunkProduct, WaveformDescriptor
from rdsar.processing.combine import (
    ChunkCombiner,
    align_time_axes,
    concatenate_chunks,
    fuse_images,
    track_surface,
)
from rdsar.simulation import meridian_trajectory
from rdsar.vocabulary import MigrationAlgorithm

DAY_SEG = '20260104_02'
DT = 1e-7
T0 = 3e-6
NT = 16
SPIKE_ROW = 5


@pytest.fixture(scope='module')
def sar_coords():
    trajectory = meridian_trajectory(81, 0.5, surface_time=4e-6)
    return build_sar_coordinates(trajectory, sigma_x=2.5, Lsar=20.0)


def _chunk(sar_coords, lines, value=1.0, t0=T0, nt=NT, spike=False):
    """Constant-valued chunk product over the given output lines."""
    data = np.full((nt, len(lines)), value, dtype=np.complex128)
    if spike:
        data[SPIKE_ROW] *= 10
    return ChunkProduct(
        data=data,
        wfs=WaveformDescriptor(fc=195e6, bw=30e6, dt=DT, t0=t0,
                               num_samples=nt),
        fcs=sar_coords.fcs_slice(lines),
        lat=np.full(len(lines), 70.0),
        lon=np.full(len(lines), -40.0),
        elev=np.full(len(lines), 1000.0),
        output_along_track=sar_coords.output_along_track[lines],
        param_sar={'sigma_x': 2.5},
        param_records={'day_seg': DAY_SEG, 'lines': [int(lines[0]), int(lines[-1])]},
        custom={'surface': np.full((1, len(lines)), 4e-6)},
    )


def _config(tmp_path, imgs=((1, 1),), steering=(-0.5, 0.0, 0.5), **combine):
    if imgs and isinstance(imgs[0][0], int):
        imgs = [list(imgs)]
    return (ProcessingConfigBuilder()
            .radar('sim')
            .segment(DAY_SEG, out_path=str(tmp_path))
            .sar(sigma_x=2.5, sub_aperture_steering=list(steering))
            .load(recs=(0, 80), imgs=imgs, frm=1)
            .combine(**combine)
            .build())


def _write_chunks(tmp_path, sar_coords, stem, num_looks=3, chunks=(1, 2),
                  spike=False, time_shift=True):
    """Write chunk artifacts whose look ``k`` holds the value ``k + 1``."""
    writer = ChunkWriter(tmp_path)
    wf, adc = stem
    for subap in range(1, num_looks + 1):
        for chunk in chunks:
            lines = np.arange(8 * (chunk - 1), 8 * chunk)
            t0 = T0 + (2 * DT if time_shift and chunk == 2 else 0.0)
            product = _chunk(sar_coords, lines, value=float(subap), t0=t0,
                             spike=spike)
            key = ArtifactKey(algorithm=MigrationAlgorithm.FK, frm=1,
                              subap=subap, subband=1, chunk=chunk,
                              wf=wf, adc=adc)
            writer.write(product, key)


# ── Fast-time alignment ─────────────────────────────────────────────────


class TestAlignTimeAxes:
    """Zero padding onto a common fast-time axis."""

    def test_overlapping_axes(self):
        time_a = np.arange(5.0)
        time_b = 2.0 + np.arange(6.0)
        a, b, time = align_time_axes(np.ones((5, 2)), time_a,
                                     2 * np.ones((6, 3)), time_b)
        np.testing.assert_allclose(time, np.arange(8.0))
        assert a.shape == (8, 2)
        assert b.shape == (8, 3)
        np.testing.assert_array_equal(a[5:], 0.0)
        np.testing.assert_array_equal(a[:5], 1.0)
        np.testing.assert_array_equal(b[:2], 0.0)
        np.testing.assert_array_equal(b[2:], 2.0)

    def test_second_axis_starts_earlier(self):
        time_a = 3.0 + np.arange(4.0)
        time_b = np.arange(5.0)
        a, b, time = align_time_axes(np.ones((4, 1)), time_a,
                                     np.ones((5, 1)), time_b)
        np.testing.assert_allclose(time, np.arange(7.0))
        np.testing.assert_array_equal(a[:3, 0], 0.0)
        np.testing.assert_array_equal(b[5:, 0], 0.0)

    def test_empty_axis(self):
        a, b, time = align_time_axes(np.zeros((1, 2)), np.array([0.0]),
                                     np.ones((4, 3)), np.arange(4.0))
        assert a.shape == (4, 2)
        np.testing.assert_array_equal(a, 0.0)
        np.testing.assert_array_equal(b, 1.0)
        np.testing.assert_allclose(time, np.arange(4.0))

    def test_spacing_mismatch(self):
        with pytest.raises(ProcessingError, match="spacings"):
            align_time_axes(np.ones((4, 1)), np.arange(4.0),
                            np.ones((4, 1)), 0.5 * np.arange(4.0))


class TestConcatenate:
    """Along-track concatenation of chunk products."""

    def test_mismatched_time_axes(self, sar_coords):
        products = [
            _chunk(sar_coords, np.arange(0, 4), 1.0, t0=T0),
            _chunk(sar_coords, np.arange(4, 8), 2.0, t0=T0 - 2 * DT),
            _chunk(sar_coords, np.arange(8, 12), 3.0, t0=T0 + 3 * DT),
        ]
        frame = concatenate_chunks(products)
        # Axis runs from T0 - 2 DT to T0 + 18 DT
        assert frame.data.shape == (21, 12)
        assert frame.wfs.t0 == pytest.approx(T0 - 2 * DT)
        assert frame.wfs.num_samples == 21
        np.testing.assert_array_equal(frame.data[:2, :4], 0.0)
        np.testing.assert_array_equal(frame.data[2:18, :4], 1.0)
        np.testing.assert_array_equal(frame.data[16:, 4:8], 0.0)
        np.testing.assert_array_equal(frame.data[:16, 4:8], 2.0)
        np.testing.assert_array_equal(frame.data[:5, 8:], 0.0)
        np.testing.assert_array_equal(frame.data[5:, 8:], 3.0)

    def test_along_track_fields(self, sar_coords):
        products = [_chunk(sar_coords, np.arange(0, 4)),
                    _chunk(sar_coords, np.arange(4, 10))]
        frame = concatenate_chunks(products)
        assert frame.num_lines == 10
        assert len(frame.fcs) == 10
        np.testing.assert_allclose(frame.output_along_track,
                                   sar_coords.output_along_track[:10])
        np.testing.assert_allclose(frame.fcs.origin, sar_coords.origin[:10])
        assert frame.custom['surface'].shape == (1, 10)
        assert frame.param_records['lines'] == [4, 9]
        assert frame.fcs.pos is None

    def test_empty(self):
        with pytest.raises(ProcessingError, match="No chunk products"):
            concatenate_chunks([])


# ── Fusion and tracking ─────────────────────────────────────────────────


class TestFuseImages:
    """Surface-referenced fusion of two images."""

    @pytest.fixture
    def images(self, sar_coords):
        lines = np.arange(0, 4)
        shallow = _chunk(sar_coords, lines, 1.0, nt=20)
        deep = _chunk(sar_coords, lines, 2.0, nt=40)
        # Surface 10 samples into the record
        shallow.fcs.surface[:] = T0 + 10 * DT
        return shallow, deep

    def test_guard_switch(self, images):
        fused = fuse_images(images, [2.5 * DT, 0.0, 3 * DT])
        assert fused.data.shape == (40, 4)
        np.testing.assert_array_equal(fused.data[:13], 1.0)
        np.testing.assert_array_equal(fused.data[13:], 2.0)

    def test_blank_switch(self, images):
        fused = fuse_images(images, [2.5 * DT, T0 + 14.5 * DT, 3 * DT])
        np.testing.assert_array_equal(fused.data[:15], 1.0)
        np.testing.assert_array_equal(fused.data[15:], 2.0)

    def test_roll_off_caps_switch(self, images):
        fused = fuse_images(images, [8.5 * DT, 0.0, 9.5 * DT])
        np.testing.assert_array_equal(fused.data[:10], 1.0)
        np.testing.assert_array_equal(fused.data[10:], 2.0)

    def test_line_mismatch(self, sar_coords):
        a = _chunk(sar_coords, np.arange(0, 4))
        b = _chunk(sar_coords, np.arange(0, 5))
        with pytest.raises(ProcessingError, match="Image 2 has 5 lines"):
            fuse_images([a, b], [0.0, 0.0, 0.0])


class TestTrackSurface:
    """Threshold surface tracker."""

    def test_first_exceedance(self):
        time = T0 + DT * np.arange(32)
        data = np.ones((32, 3), dtype=complex)
        data[12, 0] = 10.0
        data[20, 1] = 10.0
        data[25, 1] = 20.0
        twtt = track_surface(data, time, threshold_db=15.0)
        assert twtt[0] == pytest.approx(time[12])
        assert twtt[1] == pytest.approx(time[20])
        assert np.isnan(twtt[2])

    def test_threshold(self):
        time = np.arange(16.0)
        data = np.ones((16, 1))
        data[4] = 10.0
        # A 10 dB rise is below a 15 dB threshold
        assert np.isnan(track_surface(data, time, 15.0)[0])
        assert track_surface(data, time, 5.0)[0] == 4.0


# ── Frame combine ───────────────────────────────────────────────────────


class TestChunkCombiner:
    """Frame combine pass over written chunk artifacts."""

    def test_image_stems(self, tmp_path):
        config = _config(tmp_path, imgs=[[(1, 1), (1, 2)], [(2, 1)]],
                         img_comb=[1e-7, 0.0, 1e-7])
        combiner = ChunkCombiner(config)
        assert combiner.image_stems(0) == ['wf_01_adc_01', 'wf_01_adc_02']
        assert combiner.image_stems(1) == ['wf_02_adc_01']

    def test_combined_receiver_stems(self, tmp_path):
        config = (ProcessingConfigBuilder()
                  .radar('sim')
                  .segment(DAY_SEG, out_path=str(tmp_path))
                  .sar(sigma_x=2.5, combine_rx=True)
                  .load(recs=(0, 80), imgs=[[(1, 1), (1, 2)]])
                  .build())
        assert ChunkCombiner(config).image_stems(0) == ['img_01']

    def test_output_paths(self, tmp_path):
        single = ChunkCombiner(_config(tmp_path))
        assert [p.name for p in single.output_paths()] == [
            f'Data_{DAY_SEG}_001.h5']
        split = ChunkCombiner(_config(tmp_path, imgs=[[(1, 1)], [(2, 1)]]))
        assert [p.name for p in split.output_paths()] == [
            f'Data_img_01_{DAY_SEG}_001.h5', f'Data_img_02_{DAY_SEG}_001.h5']
        fused = ChunkCombiner(_config(tmp_path, imgs=[[(1, 1)], [(2, 1)]],
                                      img_comb=[0.0, 0.0, 0.0]))
        assert len(fused.output_paths()) == 1

    def test_incoherent(self, tmp_path, sar_coords):
        _write_chunks(tmp_path, sar_coords, (1, 1))
        outputs = ChunkCombiner(_config(tmp_path)).run()
        frame = read_product(outputs[0])
        assert frame.data.shape == (NT + 2, 16)
        # Mean power of looks 1, 2 and 3
        np.testing.assert_allclose(frame.data[:NT, :8], 14 / 3, rtol=1e-6)
        np.testing.assert_allclose(frame.data[2:, 8:], 14 / 3, rtol=1e-6)
        np.testing.assert_array_equal(frame.data[NT:, :8], 0.0)
        np.testing.assert_array_equal(frame.data[:2, 8:], 0.0)
        assert not np.iscomplexobj(frame.data)

    def test_coherent_keeps_center_look(self, tmp_path, sar_coords):
        _write_chunks(tmp_path, sar_coords, (1, 1), time_shift=False)
        outputs = ChunkCombiner(_config(tmp_path, incoherent=False)).run()
        frame = read_product(outputs[0])
        assert np.iscomplexobj(frame.data)
        np.testing.assert_allclose(frame.data, 2.0, rtol=1e-6)

    def test_coherent_sums_channels(self, tmp_path, sar_coords):
        _write_chunks(tmp_path, sar_coords, (1, 1), time_shift=False)
        _write_chunks(tmp_path, sar_coords, (1, 2), time_shift=False)
        config = _config(tmp_path, imgs=[[(1, 1), (1, 2)]], incoherent=False)
        frame = read_product(ChunkCombiner(config).run()[0])
        np.testing.assert_allclose(frame.data, 4.0, rtol=1e-6)

    def test_deletes_chunks(self, tmp_path, sar_coords):
        _write_chunks(tmp_path, sar_coords, (1, 1))
        ChunkCombiner(_config(tmp_path)).run()
        remaining = sorted(p.name for p in tmp_path.iterdir())
        assert remaining == [f'Data_{DAY_SEG}_001.h5']

    def test_keeps_chunks(self, tmp_path, sar_coords):
        _write_chunks(tmp_path, sar_coords, (1, 1))
        ChunkCombiner(_config(tmp_path, delete_temporary=False)).run()
        assert len(list(tmp_path.glob('fk_data_*/*.h5'))) == 6

    def test_rerun_is_noop(self, tmp_path, sar_coords):
        _write_chunks(tmp_path, sar_coords, (1, 1))
        combiner = ChunkCombiner(_config(tmp_path))
        first = combiner.run()
        mtime = first[0].stat().st_mtime_ns
        assert combiner.run() == first
        assert first[0].stat().st_mtime_ns == mtime

    def test_repeat_combine_identical(self, tmp_path, sar_coords):
        _write_chunks(tmp_path, sar_coords, (1, 1))
        combiner = ChunkCombiner(_config(tmp_path, delete_temporary=False))
        first = read_product(combiner.run()[0])
        second = read_product(combiner.run()[0])
        np.testing.assert_array_equal(second.data, first.data)
        np.testing.assert_array_equal(second.time, first.time)
        np.testing.assert_array_equal(second.fcs.origin, first.fcs.origin)
        np.testing.assert_array_equal(second.fcs.gps_time, first.fcs.gps_time)
        np.testing.assert_array_equal(second.output_along_track,
                                      first.output_along_track)

    def test_missing_chunk(self, tmp_path, sar_coords):
        _write_chunks(tmp_path, sar_coords, (1, 1), chunks=(1, 2))
        config = _config(tmp_path, num_chunks=3)
        with pytest.raises(ProcessingError, match=r"missing chunks \[3\]"):
            ChunkCombiner(config).run()

    def test_gap_without_chunk_count(self, tmp_path, sar_coords):
        _write_chunks(tmp_path, sar_coords, (1, 1), chunks=(1, 2))
        # Chunks 1 and 3 on disk, chunk 2 never written
        for path in tmp_path.glob('fk_data_*/*_chk_002.h5'):
            path.rename(path.with_name(path.name.replace('chk_002', 'chk_003')))
        with pytest.raises(ProcessingError, match=r"missing chunks \[2\]"):
            ChunkCombiner(_config(tmp_path)).run()
        assert not (tmp_path / f'Data_{DAY_SEG}_001.h5').exists()

    def test_missing_look(self, tmp_path, sar_coords):
        _write_chunks(tmp_path, sar_coords, (1, 1), num_looks=2)
        with pytest.raises(ProcessingError, match="no chunk artifacts"):
            ChunkCombiner(_config(tmp_path)).run()

    def test_nothing_to_combine(self, tmp_path):
        with pytest.raises(ProcessingError, match="no chunk artifacts"):
            ChunkCombiner(_config(tmp_path)).run()

    def test_separate_images(self, tmp_path, sar_coords):
        _write_chunks(tmp_path, sar_coords, (1, 1), num_looks=1)
        _write_chunks(tmp_path, sar_coords, (2, 1), num_looks=1)
        config = _config(tmp_path, imgs=[[(1, 1)], [(2, 1)]], steering=(0.0,))
        outputs = ChunkCombiner(config).run()
        assert all(p.exists() for p in outputs)
        assert len(outputs) == 2

    def test_surface_tracking(self, tmp_path, sar_coords):
        _write_chunks(tmp_path, sar_coords, (1, 1), spike=True)
        config = _config(tmp_path, surface_tracking=True)
        ChunkCombiner(config).run()
        layer = SurfaceLayerStore(tmp_path / 'layer').read(DAY_SEG, 1)
        assert len(layer.twtt) == 16
        np.testing.assert_allclose(layer.twtt[:8], T0 + SPIKE_ROW * DT)
        np.testing.assert_allclose(layer.twtt[8:], T0 + (SPIKE_ROW + 2) * DT)
        np.testing.assert_allclose(layer.gps_time, sar_coords.gps_time[:16])
