"""
Time Scales

Julian day numbers, day counts from J2000 and Greenwich Mean Sidereal Time.

All functions accept ``datetime`` instances. Naive datetimes are interpreted
as UTC; aware datetimes are converted to UTC first. UT1 is approximated by
UTC throughout.
"""

import math
from datetime import datetime, timedelta, timezone

from sateye.config import SECONDS_PER_DAY, TWO_PI

# 2000-01-01 12:00:00 UTC
J2000 = datetime(2000, 1, 1, 12, 0, 0, tzinfo=timezone.utc)
JD_J2000 = 2451545.0


def to_utc(utc_time: datetime) -> datetime:
    """Return an aware UTC datetime."""
    if utc_time.tzinfo is None:
        return utc_time.replace(tzinfo=timezone.utc)
    return utc_time.astimezone(timezone.utc)


def julian_day(utc_time: datetime) -> float:
    """
    Julian day from the proleptic Gregorian calendar.

    Args:
        utc_time: Instant to convert

    Returns:
        Julian day including the fraction of day
    """
    t = to_utc(utc_time)
    a = (14 - t.month) // 12
    y = t.year + 4800 - a
    m = t.month + 12 * a - 3
    day_number = (t.day + (153 * m + 2) // 5 + 365 * y + y // 4
                  - y // 100 + y // 400 - 32045)
    seconds = t.second + t.microsecond / 1e6
    return day_number + (t.hour - 12) / 24.0 + t.minute / 1440.0 + seconds / SECONDS_PER_DAY


def days_since_j2000(utc_time: datetime) -> float:
    """Days elapsed since 2000-01-01T12:00:00 UTC."""
    return (to_utc(utc_time) - J2000).total_seconds() / SECONDS_PER_DAY


def minutes_since(utc_time: datetime, epoch: datetime) -> float:
    return (to_utc(utc_time) - to_utc(epoch)).total_seconds() / 60.0


def gmst_from_days(days: float) -> float:
    """
    IAU-1982 Greenwich Mean Sidereal Time.

    Args:
        days: Days since J2000 (UT1). NaN propagates to the result.

    Returns:
        GMST in radians, in [0, 2*pi)
    """
    ut1 = days / 36525.0
    theta = 67310.54841 + ut1 * (876600.0 * 3600.0 + 8640184.812866
                                 + ut1 * (0.093104 - ut1 * 6.2e-6))
    return math.fmod(math.radians(theta / 240.0), TWO_PI) % TWO_PI


def gmst(utc_time: datetime) -> float:
    """Greenwich Mean Sidereal Time in radians, in [0, 2*pi)."""
    return gmst_from_days(days_since_j2000(utc_time))


def local_mean_sidereal_time(utc_time: datetime, longitude: float) -> float:
    """Local mean sidereal time in radians for an east longitude in radians."""
    return gmst(utc_time) + longitude


def jd_to_datetime(jd: float, fr: float = 0.0) -> datetime:
    """
    Convert a (split) Julian date to an aware UTC datetime.

    Args:
        jd: Julian date (whole or with fraction)
        fr: Additional fraction of day

    Returns:
        UTC datetime, rounded to the microsecond
    """
    jd_total = jd + fr

    # Algorithm from Meeus
    a = int(jd_total + 0.5)
    if a < 2299161:
        c = a
    else:
        alpha = int((a - 1867216.25) / 36524.25)
        c = a + 1 + alpha - int(alpha / 4)

    b = c + 1524
    d = int((b - 122.1) / 365.25)
    e = int(365.25 * d)
    f = int((b - e) / 30.6001)

    day = b - e - int(30.6001 * f)
    month = f - 1 if f <= 13 else f - 13
    year = d - 4716 if month > 2 else d - 4715

    # Fractional day as whole microseconds avoids 59.9999 s artifacts
    frac_day = (jd_total + 0.5) - int(jd_total + 0.5)
    microseconds = int(round(frac_day * SECONDS_PER_DAY * 1e6))
    start = datetime(year, month, day, tzinfo=timezone.utc)
    return start + timedelta(microseconds=microseconds)
