# -*- coding: utf-8 -*-
"""
Tests for geodetic conversions and the flight coordinate system.

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
2026-10-12

Modified
--------
2026-10-19
"""

import numpy as np
import pytest

from rdsar.exceptions import DataGapError, GeolocationError
from rdsar.geolocation import (
    FlightCoordinateSystem,
    along_track_distance,
    build_fcs_vectors,
    build_sar_coordinates,
    ecef_to_geodetic,
    geodetic_to_ecef,
    local_up,
)
from rdsar.simulation import meridian_trajectory


@pytest.fixture(scope='module')
def sar_coords():
    trajectory = meridian_trajectory(401, 0.5, surface_time=5e-6)
    return build_sar_coordinates(trajectory, sigma_x=2.0, Lsar=20.0)


def _fcs(sar_coords, lines=None):
    if lines is None:
        lines = np.arange(sar_coords.num_lines)
    return sar_coords.fcs_slice(lines)


class TestCoordinates:
    """Geodetic and ECEF conversions."""

    def test_round_trip(self):
        lat = np.array([70.0, -75.5, 0.0])
        lon = np.array([-40.0, 120.25, 10.0])
        elev = np.array([1000.0, 3500.0, -20.0])
        ecef = geodetic_to_ecef(lat, lon, elev)
        lat2, lon2, elev2 = ecef_to_geodetic(ecef)
        np.testing.assert_allclose(lat2, lat, atol=1e-9)
        np.testing.assert_allclose(lon2, lon, atol=1e-9)
        np.testing.assert_allclose(elev2, elev, atol=1e-5)

    def test_equator_prime_meridian(self):
        ecef = geodetic_to_ecef(np.array([0.0]), np.array([0.0]), np.array([0.0]))
        np.testing.assert_allclose(ecef[0], [6378137.0, 0.0, 0.0], atol=1e-6)

    def test_local_up_is_unit(self):
        ecef = geodetic_to_ecef(np.array([45.0, 80.0]), np.array([10.0, -60.0]),
                                np.array([0.0, 500.0]))
        np.testing.assert_allclose(np.linalg.norm(local_up(ecef), axis=1), 1.0)

    def test_along_track_distance(self):
        ecef = np.array([[0.0, 0, 0], [3.0, 4.0, 0], [3.0, 4.0, 12.0]])
        np.testing.assert_allclose(along_track_distance(ecef), [0.0, 5.0, 17.0])


class TestFcsVectors:
    """Construction of the FCS basis."""

    def test_orthonormal(self, sar_coords):
        fcs = _fcs(sar_coords)
        np.testing.assert_allclose(np.linalg.norm(fcs.x, axis=1), 1.0)
        np.testing.assert_allclose(np.linalg.norm(fcs.z, axis=1), 1.0)
        np.testing.assert_allclose(np.sum(fcs.x * fcs.z, axis=1), 0.0, atol=1e-9)
        np.testing.assert_allclose(np.cross(fcs.z, fcs.x), fcs.y)

    def test_x_points_north(self, sar_coords):
        up = local_up(sar_coords.origin)
        # Northbound: x has a positive component toward the pole
        assert np.all(sar_coords.x[:, 2] > 0)
        assert np.all(np.sum(sar_coords.z * up, axis=1) > 0.999)

    def test_single_line_rejected(self):
        with pytest.raises(GeolocationError, match="two output lines"):
            build_fcs_vectors(np.zeros((1, 3)))

    def test_not_orthogonal_rejected(self):
        n = 3
        with pytest.raises(GeolocationError, match="orthogonal"):
            FlightCoordinateSystem(
                origin=np.zeros((n, 3)),
                x=np.tile([1.0, 0.0, 0.0], (n, 1)),
                z=np.tile([1.0, 0.0, 0.0], (n, 1)),
                roll=np.zeros(n), pitch=np.zeros(n), heading=np.zeros(n),
                gps_time=np.zeros(n), surface=np.zeros(n),
            )

    def test_bad_shape_rejected(self):
        with pytest.raises(GeolocationError, match="shape"):
            FlightCoordinateSystem(
                origin=np.zeros(3), x=np.zeros((1, 3)), z=np.zeros((1, 3)),
                roll=np.zeros(1), pitch=np.zeros(1), heading=np.zeros(1),
                gps_time=np.zeros(1), surface=np.zeros(1),
            )


class TestSarCoordinates:
    """Segment output grid."""

    def test_grid_spacing(self, sar_coords):
        # 0 to 200 m at 2 m, the last record lands on the last line
        assert sar_coords.num_lines == 101
        np.testing.assert_allclose(np.diff(sar_coords.output_along_track), 2.0)
        assert sar_coords.output_along_track[-1] <= sar_coords.along_track[-1] + 1e-6
        steps = np.linalg.norm(np.diff(sar_coords.origin, axis=0), axis=1)
        np.testing.assert_allclose(steps, 2.0, rtol=1e-6)

    def test_exact_record_spacing(self, sar_coords):
        np.testing.assert_allclose(sar_coords.along_track,
                                   0.5 * np.arange(401), rtol=0, atol=1e-6)

    def test_surface_at_extrapolates(self, sar_coords):
        values = sar_coords.surface_at(np.array([-10.0, 50.0, 1e4]))
        np.testing.assert_allclose(values, 5e-6)

    def test_fcs_slice(self, sar_coords):
        fcs = _fcs(sar_coords, np.arange(10, 20))
        assert len(fcs) == 10
        np.testing.assert_allclose(fcs.origin, sar_coords.origin[10:20])
        np.testing.assert_allclose(fcs.surface, 5e-6)
        assert fcs.pos is None
        assert fcs.Lsar == 20.0


class TestPhaseCenters:
    """Phase-center projection into the FCS."""

    def _offset_track(self, sar_coords, offset):
        """Phase centers displaced by ``offset`` in the local basis."""
        fcs = _fcs(sar_coords)
        x = sar_coords.output_along_track
        # Use the output lines themselves as records
        ecef = fcs.origin + np.einsum('nij,j->ni', fcs.basis, np.asarray(offset))
        return fcs, ecef, x

    def test_constant_offset(self, sar_coords):
        fcs, ecef, x = self._offset_track(sar_coords, [0.0, 1.5, -0.25])
        out = fcs.with_phase_centers(ecef, x, x)
        np.testing.assert_allclose(out.pos[5:-5], [[0.0, 1.5, -0.25]] * (len(x) - 10),
                                   atol=1e-4)
        assert fcs.pos is None

    def test_phase_center_ecef(self, sar_coords):
        fcs, ecef, x = self._offset_track(sar_coords, [0.0, 0.0, 2.0])
        out = fcs.with_phase_centers(ecef, x, x)
        np.testing.assert_allclose(out.phase_center_ecef()[5:-5], ecef[5:-5], atol=1e-4)

    def test_aperture_edges_symmetric(self, sar_coords):
        trajectory = meridian_trajectory(401, 0.5, surface_time=5e-6)
        fcs = _fcs(sar_coords)
        # Records a rounding error past the aperture edge stay inside
        out = fcs.with_phase_centers(trajectory.ecef(),
                                     sar_coords.along_track + 1e-7,
                                     sar_coords.output_along_track)
        np.testing.assert_allclose(out.pos[10:-10, 0], 0.0, atol=1e-3)

    def test_gap_filled(self, sar_coords, caplog):
        fcs, ecef, x = self._offset_track(sar_coords, [0.0, 0.0, 1.0])
        keep = (x < 100.0) | (x > 160.0)
        out = fcs.with_phase_centers(ecef[keep], x[keep], x)
        assert np.all(np.isfinite(out.pos))
        np.testing.assert_allclose(out.pos[:, 2], 1.0, atol=1e-4)
        assert "no phase centers" in caplog.text

    def test_gap_across_chunk(self, sar_coords):
        fcs = _fcs(sar_coords, np.arange(10))
        far = fcs.origin[:3] + 1e4 * fcs.x[:3]
        x_far = sar_coords.output_along_track[:3] + 1e4
        with pytest.raises(DataGapError, match="entire chunk"):
            fcs.with_phase_centers(far, x_far, sar_coords.output_along_track[:10])
