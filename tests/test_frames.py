"""
Tests for Frame Transforms

ECI/ECEF rotation, geodetic conversions and topocentric look angles.

Run with:
    python -m pytest tests/test_frames.py -v
"""

import math
import unittest
from datetime import datetime, timezone

import numpy as np

from sateye.config import DEFAULT_CONSTANTS
from sateye.frames import (GeodeticPosition, ecef_to_eci, eci_to_ecef, eci_to_geodetic,
                           eci_to_topocentric, geodetic_to_eci, observer_position)
from sateye.time_scales import gmst

T0 = datetime(2023, 9, 16, 13, 49, 9, tzinfo=timezone.utc)
POLAR_RADIUS_KM = DEFAULT_CONSTANTS.equatorial_radius_km * (1.0 - DEFAULT_CONSTANTS.flattening)


def wrapped_lon_difference(a, b):
    return (a - b + 180.0) % 360.0 - 180.0


class TestEarthFixedRotation(unittest.TestCase):
    """ECI <-> ECEF."""

    def test_round_trip(self):
        """Rotating into ECEF and back recovers the vector."""
        v = np.array([6524.834, 6862.875, 6448.296])
        back = ecef_to_eci(T0, eci_to_ecef(T0, v))
        self.assertTrue(np.allclose(back, v, rtol=0.0, atol=1e-9))

    def test_rotation_angle_is_gmst(self):
        """The ECI x axis appears at longitude -GMST in ECEF."""
        ecef = eci_to_ecef(T0, [1.0, 0.0, 0.0])
        self.assertAlmostEqual(math.atan2(ecef[1], ecef[0]) % (2 * math.pi),
                               (-gmst(T0)) % (2 * math.pi), places=12)
        self.assertEqual(ecef[2], 0.0)


class TestGeodetic(unittest.TestCase):
    """Geodetic <-> ECI."""

    def test_round_trip(self):
        """Geodetic -> ECI -> geodetic within 1e-6 deg and 1 m."""
        for lat in (-89.0, -60.0, -35.5, 0.0, 12.3, 40.4168, 75.0, 89.0):
            for lon in (-179.5, -3.7038, 0.0, 95.0, 180.0):
                for alt in (0.0, 0.667, 420.0):
                    with self.subTest(lat=lat, lon=lon, alt=alt):
                        position, _ = geodetic_to_eci(T0, lon, lat, alt)
                        geodetic = eci_to_geodetic(position, T0)
                        self.assertAlmostEqual(geodetic.lat_deg, lat, delta=1e-6)
                        self.assertAlmostEqual(wrapped_lon_difference(geodetic.lon_deg, lon),
                                               0.0, delta=1e-6)
                        self.assertAlmostEqual(geodetic.alt_km, alt, delta=1e-3)

    def test_longitude_range(self):
        position, _ = geodetic_to_eci(T0, 180.0, 10.0, 0.0)
        lon = eci_to_geodetic(position, T0).lon_deg
        self.assertGreater(lon, -180.0)
        self.assertLessEqual(lon, 180.0)

    def test_point_above_pole(self):
        """A point on the rotation axis has latitude 90 and height above the polar radius."""
        geodetic = eci_to_geodetic([0.0, 0.0, POLAR_RADIUS_KM + 100.0], T0)
        self.assertAlmostEqual(geodetic.lat_deg, 90.0, places=9)
        self.assertAlmostEqual(geodetic.alt_km, 100.0, delta=1e-6)

    def test_equator_radius(self):
        position, _ = geodetic_to_eci(T0, 0.0, 0.0, 0.0)
        self.assertAlmostEqual(np.linalg.norm(position), DEFAULT_CONSTANTS.equatorial_radius_km,
                               places=9)

    def test_observer_velocity(self):
        """A fixed observer moves eastwards with Earth's rotation."""
        observer = GeodeticPosition(lon_deg=-3.7038, lat_deg=40.4168, alt_km=0.667)
        obs = observer_position(T0, observer)
        rxy = math.hypot(obs.position[0], obs.position[1])
        self.assertAlmostEqual(np.linalg.norm(obs.velocity),
                               DEFAULT_CONSTANTS.earth_rotation_rate * rxy, places=12)
        self.assertEqual(obs.velocity[2], 0.0)
        self.assertAlmostEqual(float(np.dot(obs.velocity, obs.position)), 0.0, places=9)
        self.assertIs(obs.location, observer)


class TestLookAngles(unittest.TestCase):
    """Topocentric azimuth and elevation."""

    def setUp(self):
        self.observer = GeodeticPosition(lon_deg=10.0, lat_deg=45.0, alt_km=0.0)
        self.obs_eci, _ = geodetic_to_eci(T0, 10.0, 45.0, 0.0)

    def look_at(self, lon, lat, alt):
        target, _ = geodetic_to_eci(T0, lon, lat, alt)
        return eci_to_topocentric(T0, target, self.obs_eci,
                                  self.observer.lon_deg, self.observer.lat_deg)

    def test_zenith(self):
        """A target straight up the local normal is at elevation 90."""
        look = self.look_at(10.0, 45.0, 500.0)
        self.assertAlmostEqual(look.elevation_deg, 90.0, places=4)
        self.assertAlmostEqual(look.range_km, 500.0, places=6)

    def test_north(self):
        look = self.look_at(10.0, 46.0, 300.0)
        self.assertLess(min(look.azimuth_deg, 360.0 - look.azimuth_deg), 0.5)
        self.assertGreater(look.elevation_deg, 0.0)

    def test_east(self):
        look = self.look_at(11.0, 45.0, 300.0)
        self.assertAlmostEqual(look.azimuth_deg, 90.0, delta=1.0)

    def test_south_and_west(self):
        self.assertAlmostEqual(self.look_at(10.0, 44.0, 300.0).azimuth_deg, 180.0, delta=0.5)
        self.assertAlmostEqual(self.look_at(9.0, 45.0, 300.0).azimuth_deg, 270.0, delta=1.0)

    def test_below_horizon(self):
        """The far side of the Earth has negative elevation."""
        look = self.look_at(-170.0, -45.0, 400.0)
        self.assertLess(look.elevation_deg, 0.0)

    def test_zero_slant_range(self):
        """A target at the observer is reported overhead with zero range."""
        look = eci_to_topocentric(T0, self.obs_eci, self.obs_eci,
                                  self.observer.lon_deg, self.observer.lat_deg)
        self.assertEqual(look.azimuth_deg, 0.0)
        self.assertEqual(look.elevation_deg, 90.0)
        self.assertEqual(look.range_km, 0.0)

    def test_sez_components_consistent(self):
        look = self.look_at(12.0, 47.0, 800.0)
        s, e, z = look.sez
        self.assertAlmostEqual(math.sqrt(s * s + e * e + z * z), look.range_km, places=6)
        self.assertAlmostEqual(math.degrees(math.asin(z / look.range_km)),
                               look.elevation_deg, places=9)


if __name__ == "__main__":
    unittest.main()
