"""
Tests for Pass Prediction

Root and maximum finders, the pass search on a synthetic elevation profile,
and an end-to-end search for a sun-synchronous satellite.

Run with:
    python -m pytest tests/test_passes.py -v
"""

import dataclasses
import math
import unittest
from datetime import datetime, timedelta, timezone

from sateye.config import DEFAULT_SETTINGS, MINUTES_PER_DAY, TWO_PI
from sateye.elements import OrbitalElementSet
from sateye.errors import PropagationError
from sateye.frames import GeodeticPosition, LookAngles
from sateye.passes import PassFinder, find_max_parabolic, find_root
from sateye.satellite import Satellite, Visibility

START = datetime(2023, 9, 16, 12, 0, 0, tzinfo=timezone.utc)
OBSERVER = GeodeticPosition(lon_deg=10.0, lat_deg=45.0, alt_km=0.2)


class ProfileSatellite:
    """
    Stand-in satellite whose elevation follows a sinusoid.

    One pass every 100 minutes peaking at 35 deg 32 minutes after START.
    Propagation is invalid between minutes 300 and 400.
    """

    catalog_id = 99999
    invalid = (300.0, 400.0)

    def elevation(self, utc_time):
        minutes = (utc_time - START).total_seconds() / 60.0
        if self.invalid[0] <= minutes < self.invalid[1]:
            raise PropagationError(1, minutes, utc_time)
        return 40.0 * math.sin(TWO_PI * (minutes - 7.0) / 100.0) - 5.0

    def try_observer_look(self, utc_time, observer):
        try:
            return LookAngles(0.0, self.elevation(utc_time), (0.0, 0.0, 0.0), 1000.0)
        except PropagationError:
            return None

    def visibility(self, utc_time, observer, horizon_deg=0.0, twilight_deg=-6.0):
        if self.elevation(utc_time) < horizon_deg:
            return Visibility.NOT_VISIBLE
        return Visibility.DAYLIGHT


class TentSatellite(ProfileSatellite):
    """
    Elevation rises linearly to 30 deg at START + 20 min and falls back.

    Whole-minute samples land exactly on 0 deg at START + 10 and START + 30 min.
    """

    def elevation(self, utc_time):
        minutes = (utc_time - START).total_seconds() / 60.0
        return 30.0 - 3.0 * abs(minutes - 20.0)


def minutes_after_start(t):
    return (t - START).total_seconds() / 60.0


class TestFindRoot(unittest.TestCase):
    """Brent root finder."""

    def test_square_root_of_two(self):
        root = find_root(lambda x: x * x - 2.0, 0.0, 2.0, tol=1e-10)
        self.assertAlmostEqual(root, math.sqrt(2.0), places=8)

    def test_cosine(self):
        self.assertAlmostEqual(find_root(math.cos, 0.0, 3.0, tol=1e-10), math.pi / 2, places=8)

    def test_decreasing_function(self):
        self.assertAlmostEqual(find_root(lambda x: 1.0 - x ** 3, 0.0, 4.0, tol=1e-10), 1.0,
                               places=8)

    def test_no_sign_change(self):
        """A bracket without a sign change yields None."""
        self.assertIsNone(find_root(lambda x: x * x + 1.0, -1.0, 1.0))
        self.assertIsNone(find_root(lambda x: x - 5.0, 0.0, 1.0))

    def test_nan_endpoint(self):
        self.assertIsNone(find_root(lambda x: float("nan"), 0.0, 1.0))

    def test_root_at_endpoint(self):
        self.assertEqual(find_root(lambda x: x - 1.0, 1.0, 2.0), 1.0)
        self.assertEqual(find_root(lambda x: x - 2.0, 1.0, 2.0), 2.0)


class TestFindMax(unittest.TestCase):
    """Successive parabolic interpolation."""

    def test_parabola(self):
        x = find_max_parabolic(lambda t: 4.0 - (t - 1.3) ** 2, 0.0, 3.0, tol=1e-9)
        self.assertAlmostEqual(x, 1.3, places=9)

    def test_sine(self):
        x = find_max_parabolic(math.sin, 1.0, 2.0, tol=1e-8)
        self.assertAlmostEqual(x, math.pi / 2, places=3)


class TestPassSearchProfile(unittest.TestCase):
    """Pass search on a known elevation profile."""

    def setUp(self):
        self.finder = PassFinder(ProfileSatellite(), DEFAULT_SETTINGS)

    def test_passes_found_around_invalid_interval(self):
        """Invalid samples never abort the search; the pass inside them is dropped."""
        passes = self.finder.find_passes(START, 10.0, OBSERVER)
        rise_offset = 7.0 + 100.0 * math.asin(0.125) / TWO_PI
        set_offset = 57.0 - 100.0 * math.asin(0.125) / TWO_PI

        self.assertEqual(len(passes), 5)
        for record, k in zip(passes, (0, 1, 2, 4, 5)):
            with self.subTest(k=k):
                self.assertAlmostEqual(minutes_after_start(record.rise_time),
                                       100.0 * k + rise_offset, delta=1e-3)
                self.assertAlmostEqual(minutes_after_start(record.set_time),
                                       100.0 * k + set_offset, delta=1e-3)
                self.assertAlmostEqual(minutes_after_start(record.max_elevation_time),
                                       100.0 * k + 32.0, delta=1e-2)
                self.assertAlmostEqual(record.max_elevation_deg, 35.0, delta=1e-4)
                self.assertIs(record.visibility, Visibility.DAYLIGHT)

    def test_chronological(self):
        passes = self.finder.find_passes(START, 10.0, OBSERVER)
        rises = [p.rise_time for p in passes]
        self.assertEqual(rises, sorted(rises))
        for record in passes:
            self.assertGreater(record.duration, timedelta(0))

    def test_horizon_cutoff(self):
        """Rise and set are where elevation crosses the requested horizon."""
        passes = self.finder.find_passes(START, 3.0, OBSERVER, horizon_deg=20.0)
        self.assertEqual(len(passes), 2)
        rise_offset = 7.0 + 100.0 * math.asin(0.625) / TWO_PI
        self.assertAlmostEqual(minutes_after_start(passes[0].rise_time), rise_offset, delta=1e-3)
        self.assertAlmostEqual(passes[0].max_elevation_deg, 35.0, delta=1e-4)

    def test_minimum_culmination(self):
        """Passes culminating below the minimum are discarded."""
        settings = dataclasses.replace(DEFAULT_SETTINGS, min_max_elevation_deg=40.0)
        finder = PassFinder(ProfileSatellite(), settings)
        self.assertEqual(finder.find_passes(START, 10.0, OBSERVER), [])

    def test_pass_in_progress_at_start(self):
        """A pass that rose during the look-back window is still reported."""
        passes = self.finder.find_passes(START + timedelta(minutes=20), 1.0, OBSERVER)
        self.assertEqual(len(passes), 1)
        self.assertLess(passes[0].rise_time, START + timedelta(minutes=20))


class TestSampleOnHorizon(unittest.TestCase):
    """A sample that lies exactly on the horizon still bounds a pass."""

    def test_pass_found(self):
        passes = PassFinder(TentSatellite(), DEFAULT_SETTINGS).find_passes(START, 1.0, OBSERVER)
        self.assertEqual(len(passes), 1)
        self.assertEqual(passes[0].rise_time, START + timedelta(minutes=10))
        self.assertEqual(passes[0].set_time, START + timedelta(minutes=30))
        self.assertAlmostEqual(passes[0].max_elevation_deg, 30.0, places=6)
        self.assertEqual(passes[0].max_elevation_time, START + timedelta(minutes=20))


class TestPassSearchSatellite(unittest.TestCase):
    """End-to-end search for a propagated satellite."""

    @classmethod
    def setUpClass(cls):
        elements = OrbitalElementSet(
            name="SSO TEST",
            catalog_id=99002,
            epoch=START,
            eccentricity=0.00015,
            inclination=math.radians(97.865),
            raan=math.radians(320.0),
            arg_perigee=math.radians(90.0),
            mean_anomaly=math.radians(270.1234),
            mean_motion=14.95 * TWO_PI / MINUTES_PER_DAY,
            bstar=5e-5,
        )
        cls.satellite = Satellite(elements)
        # Twilight at -90 deg makes every above-horizon instant count as daylight
        cls.passes = PassFinder(cls.satellite).find_passes(START, 24.0, OBSERVER,
                                                           twilight_deg=-90.0)

    def test_pass_count(self):
        self.assertGreaterEqual(len(self.passes), 2)
        self.assertLessEqual(len(self.passes), 8)

    def test_pass_shape(self):
        for record in self.passes:
            with self.subTest(rise=record.rise_time):
                self.assertLess(record.rise_time, record.set_time)
                self.assertLessEqual(record.rise_time, record.max_elevation_time)
                self.assertLessEqual(record.max_elevation_time, record.set_time)
                self.assertGreater(record.max_elevation_deg, 10.0)
                self.assertLessEqual(record.max_elevation_deg, 90.0)
                self.assertLess(record.duration, timedelta(minutes=20))
                self.assertIs(record.visibility, Visibility.DAYLIGHT)

    def test_rise_and_set_on_horizon(self):
        for record in self.passes:
            for t in (record.rise_time, record.set_time):
                elevation = self.satellite.observer_look(t, OBSERVER).elevation_deg
                self.assertAlmostEqual(elevation, 0.0, delta=0.01)

    def test_culmination_is_maximum(self):
        for record in self.passes:
            for offset in (-30, 30):
                t = record.max_elevation_time + timedelta(seconds=offset)
                elevation = self.satellite.observer_look(t, OBSERVER).elevation_deg
                self.assertLessEqual(elevation, record.max_elevation_deg + 1e-6)

    def test_within_window(self):
        earliest = START - timedelta(minutes=DEFAULT_SETTINGS.lookback_minutes)
        for record in self.passes:
            self.assertGreaterEqual(record.rise_time, earliest)
            self.assertLessEqual(record.set_time, START + timedelta(hours=24))


if __name__ == "__main__":
    unittest.main()
