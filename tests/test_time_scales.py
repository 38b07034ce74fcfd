"""
Tests for Time Scales

Julian day, J2000 day count, GMST and Julian-date inversion.

Run with:
    python -m pytest tests/test_time_scales.py -v
"""

import math
import unittest
from datetime import datetime, timedelta, timezone

from sateye.time_scales import (J2000, JD_J2000, days_since_j2000, gmst, gmst_from_days,
                                jd_to_datetime, julian_day, local_mean_sidereal_time,
                                minutes_since, to_utc)

SIDEREAL_DAY_S = 86164.0905


def angle_difference(a, b):
    """Signed difference a - b wrapped into [-pi, pi)."""
    return (a - b + math.pi) % (2 * math.pi) - math.pi


class TestJulianDay(unittest.TestCase):
    """Julian day and J2000 conversions."""

    def test_j2000_julian_day(self):
        """J2000 noon is JD 2451545.0."""
        self.assertEqual(julian_day(J2000), JD_J2000)

    def test_known_dates(self):
        """Julian day of published reference dates."""
        # Meeus, Astronomical Algorithms, example 7.a
        self.assertAlmostEqual(julian_day(datetime(1957, 10, 4, 19, 26, 24, tzinfo=timezone.utc)),
                               2436116.31, places=6)
        self.assertAlmostEqual(julian_day(datetime(1987, 1, 27, tzinfo=timezone.utc)),
                               2446822.5, places=9)

    def test_naive_datetime_is_utc(self):
        """Naive datetimes are interpreted as UTC."""
        naive = datetime(2023, 9, 16, 12, 0, 0)
        aware = datetime(2023, 9, 16, 12, 0, 0, tzinfo=timezone.utc)
        self.assertEqual(julian_day(naive), julian_day(aware))

    def test_aware_datetime_converted(self):
        """Offsets are removed before conversion."""
        plus_two = timezone(timedelta(hours=2))
        local = datetime(2023, 9, 16, 14, 0, 0, tzinfo=plus_two)
        self.assertEqual(to_utc(local), datetime(2023, 9, 16, 12, 0, 0, tzinfo=timezone.utc))
        self.assertAlmostEqual(days_since_j2000(local),
                               days_since_j2000(datetime(2023, 9, 16, 12, tzinfo=timezone.utc)))

    def test_days_since_j2000(self):
        """Day count is zero at J2000 and consistent with the Julian day."""
        self.assertEqual(days_since_j2000(J2000), 0.0)
        t = datetime(2024, 3, 1, 6, 30, tzinfo=timezone.utc)
        self.assertAlmostEqual(days_since_j2000(t), julian_day(t) - JD_J2000, places=8)

    def test_minutes_since(self):
        epoch = datetime(2023, 1, 1, tzinfo=timezone.utc)
        self.assertAlmostEqual(minutes_since(epoch + timedelta(hours=2), epoch), 120.0)
        self.assertAlmostEqual(minutes_since(epoch - timedelta(minutes=5), epoch), -5.0)


class TestJulianDateInversion(unittest.TestCase):
    """jd_to_datetime inverts julian_day."""

    def test_j2000(self):
        self.assertEqual(jd_to_datetime(JD_J2000), J2000)

    def test_split_julian_date(self):
        """Whole and fractional parts may be passed separately."""
        self.assertEqual(jd_to_datetime(2451544.5, 0.5), J2000)

    def test_round_trip(self):
        """Round trip stays within a millisecond."""
        for t in (datetime(1980, 10, 1, 23, 41, 24, tzinfo=timezone.utc),
                  datetime(2006, 6, 25, 19, 46, 44, tzinfo=timezone.utc),
                  datetime(2023, 9, 16, 13, 49, 9, 120000, tzinfo=timezone.utc)):
            with self.subTest(t=t):
                back = jd_to_datetime(julian_day(t))
                self.assertLess(abs((back - t).total_seconds()), 1e-3)


class TestGMST(unittest.TestCase):
    """Greenwich Mean Sidereal Time."""

    def test_value_at_j2000(self):
        """GMST at J2000 is 280.46061837 degrees."""
        self.assertAlmostEqual(math.degrees(gmst(J2000)), 280.46061837, places=6)

    def test_range(self):
        """GMST is always reduced into [0, 2*pi)."""
        for days in (-10000.5, -1.25, 0.0, 0.3, 8653.7, 20000.1):
            with self.subTest(days=days):
                value = gmst_from_days(days)
                self.assertGreaterEqual(value, 0.0)
                self.assertLess(value, 2 * math.pi)

    def test_sidereal_day_periodicity(self):
        """GMST returns to the same angle one sidereal day later."""
        t = datetime(2023, 9, 16, 12, tzinfo=timezone.utc)
        later = t + timedelta(seconds=SIDEREAL_DAY_S)
        self.assertLess(abs(angle_difference(gmst(later), gmst(t))), 1e-4)

    def test_solar_day_advance(self):
        """GMST gains about 0.9856 degrees per solar day."""
        t = datetime(2023, 9, 16, 12, tzinfo=timezone.utc)
        advance = angle_difference(gmst(t + timedelta(days=1)), gmst(t))
        self.assertAlmostEqual(math.degrees(advance), 0.9856, places=3)

    def test_nan_propagates(self):
        """NaN input yields NaN rather than an exception."""
        self.assertTrue(math.isnan(gmst_from_days(float("nan"))))

    def test_local_mean_sidereal_time(self):
        t = datetime(2023, 9, 16, 12, tzinfo=timezone.utc)
        self.assertAlmostEqual(local_mean_sidereal_time(t, 0.5), gmst(t) + 0.5)


if __name__ == "__main__":
    unittest.main()
