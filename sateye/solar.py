"""
Solar Ephemeris

Low-precision analytic position of the Sun, solar angles for an observer and
the day/night terminator.

The Sun vector uses a first-order theory (mean anomaly, mean longitude,
equation of centre, node-corrected apparent longitude and obliquity) with a
Delta-ET estimate for the civil-to-ephemeris time offset. Earth-Sun distance
uses the first-order eccentric-orbit formula, which is enough for visibility
and magnitude work but not for precision ephemerides.
"""

import math
from dataclasses import dataclass
from datetime import datetime
from typing import List, Tuple

import numpy as np

from sateye.config import DEFAULT_CONSTANTS, EarthConstants, SECONDS_PER_DAY, TWO_PI
from sateye.frames import eci_to_ecef
from sateye.time_scales import days_since_j2000, julian_day, local_mean_sidereal_time

# Julian day of 1899-12-31 12:00, origin of the solar theory's time argument
JD_1900 = 2415020.0


@dataclass(frozen=True)
class SolarPosition:
    """Sun vector in the rotating (ECEF) and inertial (ECI) frames, km."""
    ecef: np.ndarray
    eci: np.ndarray


def positive_mod(value: float, modulus: float) -> float:
    """Remainder with the sign of the modulus (never negative for positive moduli)."""
    remainder = math.fmod(value, modulus)
    return remainder + modulus if remainder < 0 else remainder


def delta_et(year: float) -> float:
    """Ephemeris minus universal time in seconds, simple fit for recent years."""
    return 26.465 + 0.747622 * (year - 1950) + 1.886913 * math.sin(TWO_PI * (year - 1975) / 33)


def solar_position(utc_time: datetime,
                   constants: EarthConstants = DEFAULT_CONSTANTS) -> SolarPosition:
    """
    Sun position in kilometres.

    Args:
        utc_time: Instant of interest
        constants: Physical constants (astronomical unit)

    Returns:
        SolarPosition with ECEF and ECI vectors
    """
    mjd = julian_day(utc_time) - JD_1900
    year = 1900.0 + mjd / 365.25
    t = (mjd + delta_et(year) / SECONDS_PER_DAY) / 36525.0

    mean_anomaly = math.radians(positive_mod(
        358.47583 + positive_mod(35999.04975 * t, 360.0) - (0.000150 + 0.0000033 * t) * t * t, 360.0))
    mean_longitude = math.radians(positive_mod(
        279.69668 + positive_mod(36000.76892 * t, 360.0) + 0.0003025 * t * t, 360.0))
    eccentricity = 0.01675104 - (0.0000418 + 0.000000126 * t) * t
    centre = math.radians((1.919460 - (0.004789 + 0.000014 * t) * t) * math.sin(mean_anomaly)
                          + (0.020094 - 0.000100 * t) * math.sin(2 * mean_anomaly)
                          + 0.000293 * math.sin(3 * mean_anomaly))
    node = math.radians(positive_mod(259.18 - 1934.142 * t, 360.0))
    apparent_longitude = positive_mod(
        mean_longitude + centre - math.radians(0.00569 - 0.00479 * math.sin(node)), TWO_PI)
    true_anomaly = positive_mod(mean_anomaly + centre, TWO_PI)
    distance_au = 1.0000002 * (1.0 - eccentricity ** 2) / (1.0 + eccentricity * math.cos(true_anomaly))
    obliquity = math.radians(23.452294 - (0.0130125 + (0.00000164 - 0.000000503 * t) * t) * t
                             + 0.00256 * math.cos(node))
    distance_km = constants.astronomical_unit_km * distance_au

    eci = distance_km * np.array([
        math.cos(apparent_longitude),
        math.sin(apparent_longitude) * math.cos(obliquity),
        math.sin(apparent_longitude) * math.sin(obliquity),
    ])

    return SolarPosition(ecef=eci_to_ecef(utc_time, eci), eci=eci)


def sun_ecliptic_longitude(utc_time: datetime) -> float:
    """Ecliptic longitude of the Sun in radians (not reduced)."""
    jc = days_since_j2000(utc_time) / 36525.0
    mean_anomaly = math.radians(357.52910 + 35999.05030 * jc - 0.0001559 * jc ** 2
                                - 0.00000048 * jc ** 3)
    mean_longitude = 280.46645 + 36000.76983 * jc + 0.0003032 * jc ** 2
    centre = ((1.914600 - 0.004817 * jc - 0.000014 * jc ** 2) * math.sin(mean_anomaly)
              + (0.019993 - 0.000101 * jc) * math.sin(2 * mean_anomaly)
              + 0.000290 * math.sin(3 * mean_anomaly))
    return math.radians(mean_longitude + centre)


def sun_ra_dec(utc_time: datetime) -> Tuple[float, float]:
    """Right ascension and declination of the Sun in radians."""
    jc = days_since_j2000(utc_time) / 36525.0
    eps = math.radians(23.0 + 26.0 / 60.0 + 21.448 / 3600.0
                       - (46.8150 * jc + 0.00059 * jc ** 2 - 0.001813 * jc ** 3) / 3600.0)
    eclon = sun_ecliptic_longitude(utc_time)
    x = math.cos(eclon)
    y = math.cos(eps) * math.sin(eclon)
    z = math.sin(eps) * math.sin(eclon)
    r = math.sqrt(1.0 - z * z)
    declination = math.atan2(z, r)
    right_ascension = 2 * math.atan2(y, x + r)
    return right_ascension, declination


def _local_hour_angle(utc_time: datetime, longitude: float, right_ascension: float) -> float:
    return local_mean_sidereal_time(utc_time, longitude) - right_ascension


def sun_alt_az(utc_time: datetime, lon_deg: float, lat_deg: float) -> Tuple[float, float]:
    """
    Altitude and azimuth of the Sun for an observer.

    Args:
        utc_time: Instant of interest
        lon_deg: Observer east longitude in degrees
        lat_deg: Observer latitude in degrees

    Returns:
        (altitude, azimuth) in radians; azimuth measured from north through east
    """
    ra, dec = sun_ra_dec(utc_time)
    lat = math.radians(lat_deg)
    h = _local_hour_angle(utc_time, math.radians(lon_deg), ra)
    alt = math.asin(math.sin(lat) * math.sin(dec) + math.cos(lat) * math.cos(dec) * math.cos(h))
    az = math.atan2(-math.sin(h), math.cos(lat) * math.tan(dec) - math.sin(lat) * math.cos(h))
    return alt, az % TWO_PI


def cos_zenith(utc_time: datetime, lon_deg: float, lat_deg: float) -> float:
    ra, dec = sun_ra_dec(utc_time)
    lat = math.radians(lat_deg)
    h = _local_hour_angle(utc_time, math.radians(lon_deg), ra)
    return math.sin(lat) * math.sin(dec) + math.cos(lat) * math.cos(dec) * math.cos(h)


def sun_zenith_angle(utc_time: datetime, lon_deg: float, lat_deg: float) -> float:
    """Solar zenith angle in degrees."""
    return math.degrees(math.acos(max(-1.0, min(1.0, cos_zenith(utc_time, lon_deg, lat_deg)))))


def sun_earth_distance_correction(utc_time: datetime) -> float:
    """Ratio of the actual to mean Earth-Sun distance."""
    return 1 - 0.0167 * math.cos(TWO_PI * (days_since_j2000(utc_time) - 3) / 365.25636)


def subsolar_point(utc_time: datetime) -> Tuple[float, float]:
    """Geocentric latitude and longitude of the Sun's direction in degrees."""
    x, y, z = solar_position(utc_time).ecef
    return math.degrees(math.atan2(z, math.hypot(x, y))), math.degrees(math.atan2(y, x))


def terminator_latitude(lon_deg: float, sun_lon_deg: float, sun_lat_deg: float) -> float:
    """Latitude of the day/night terminator at ``lon_deg``, degrees."""
    hour_angle = math.radians(lon_deg - sun_lon_deg)
    # Equinox: the terminator degenerates to a pair of meridians
    tan_dec = math.tan(math.radians(sun_lat_deg)) or 1e-12
    return math.degrees(math.atan(-math.cos(hour_angle) / tan_dec))


def night_border(utc_time: datetime, step_deg: float = 1.0) -> List[Tuple[float, float]]:
    """
    Closed (lat, lon) polygon enclosing the night side of the Earth.

    The polygon starts and ends at the pole in darkness so it can be filled
    directly on an equirectangular map.
    """
    sun_lat, sun_lon = subsolar_point(utc_time)
    dark_pole = -90.0 if sun_lat > 0 else 90.0

    border = [(dark_pole, -180.0)]
    for lon in np.arange(-180.0, 180.0, step_deg):
        border.append((terminator_latitude(float(lon), sun_lon, sun_lat), float(lon)))
    border.append((terminator_latitude(180.0, sun_lon, sun_lat), 180.0))
    border.append((dark_pole, 180.0))
    return border

