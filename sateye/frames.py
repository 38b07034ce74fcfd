"""
Frame Transforms

Conversions between the Earth-centred inertial frame (ECI, the propagator's
output frame), the Earth-fixed frame (ECEF), geodetic coordinates on the
WGS-84 ellipsoid and topocentric South-East-Zenith look angles.

Angles are radians internally; the observer-facing values (longitude,
latitude, azimuth, elevation) are degrees.
"""

import logging
import math
from dataclasses import dataclass
from datetime import datetime
from typing import Tuple

import numpy as np

from sateye.config import DEFAULT_CONSTANTS, EarthConstants, TWO_PI
from sateye.time_scales import gmst

logger = logging.getLogger(__name__)

GEODETIC_TOLERANCE = 1e-10  # rad
GEODETIC_MAX_ITERATIONS = 50
MIN_SLANT_RANGE_KM = 1e-9


@dataclass(frozen=True)
class GeodeticPosition:
    """Geodetic coordinates: longitude/latitude in degrees, altitude in km."""
    lon_deg: float
    lat_deg: float
    alt_km: float = 0.0


@dataclass(frozen=True)
class ObserverPosition:
    """Observer geodetic location together with its ECI state at one instant."""
    location: GeodeticPosition
    utc_time: datetime
    position: np.ndarray
    velocity: np.ndarray


@dataclass(frozen=True)
class LookAngles:
    """Topocentric direction to a target."""
    azimuth_deg: float
    elevation_deg: float
    sez: Tuple[float, float, float]
    range_km: float


def _rotation_about_z(angle: float) -> np.ndarray:
    c, s = math.cos(angle), math.sin(angle)
    return np.array([[c, s, 0.0],
                     [-s, c, 0.0],
                     [0.0, 0.0, 1.0]])


def eci_to_ecef(utc_time: datetime, v) -> np.ndarray:
    """Rotate an ECI vector into the Earth-fixed frame (by -GMST about z)."""
    return _rotation_about_z(gmst(utc_time)) @ np.asarray(v, dtype=float)


def ecef_to_eci(utc_time: datetime, v) -> np.ndarray:
    """Rotate an Earth-fixed vector into ECI (by +GMST about z)."""
    return _rotation_about_z(gmst(utc_time)).T @ np.asarray(v, dtype=float)


def geodetic_to_eci(utc_time: datetime, lon_deg: float, lat_deg: float, alt_km: float,
                    constants: EarthConstants = DEFAULT_CONSTANTS) -> Tuple[np.ndarray, np.ndarray]:
    """
    ECI position (km) and velocity (km/s) of a point fixed on the rotating Earth.

    Args:
        utc_time: Instant of interest
        lon_deg: East longitude in degrees
        lat_deg: Geodetic latitude in degrees
        alt_km: Height above the WGS-84 ellipsoid in km
        constants: Physical constants

    Returns:
        Tuple of (position, velocity)
    """
    lat = math.radians(lat_deg)
    theta = (gmst(utc_time) + math.radians(lon_deg)) % TWO_PI
    f = constants.flattening
    a = constants.equatorial_radius_km

    c = 1.0 / math.sqrt(1.0 + f * (f - 2.0) * math.sin(lat) ** 2)
    sq = c * (1.0 - f) ** 2
    achcp = (a * c + alt_km) * math.cos(lat)

    position = np.array([achcp * math.cos(theta),
                         achcp * math.sin(theta),
                         (a * sq + alt_km) * math.sin(lat)])
    omega = constants.earth_rotation_rate
    velocity = np.array([-omega * position[1], omega * position[0], 0.0])
    return position, velocity


def observer_position(utc_time: datetime, observer: GeodeticPosition,
                      constants: EarthConstants = DEFAULT_CONSTANTS) -> ObserverPosition:
    position, velocity = geodetic_to_eci(utc_time, observer.lon_deg, observer.lat_deg,
                                         observer.alt_km, constants)
    return ObserverPosition(location=observer, utc_time=utc_time,
                            position=position, velocity=velocity)


def eci_to_topocentric(utc_time: datetime, target_eci, observer_eci,
                       observer_lon_deg: float, observer_lat_deg: float) -> LookAngles:
    """
    Azimuth, elevation and SEZ components of a target seen from an observer.

    Both positions must be ECI vectors at ``utc_time``. Azimuth is measured
    from north through east in [0, 360) degrees. A target coincident with the
    observer is reported as directly overhead.
    """
    rx, ry, rz = np.asarray(target_eci, dtype=float) - np.asarray(observer_eci, dtype=float)

    lat = math.radians(observer_lat_deg)
    theta = (gmst(utc_time) + math.radians(observer_lon_deg)) % TWO_PI
    sin_lat, cos_lat = math.sin(lat), math.cos(lat)
    sin_theta, cos_theta = math.sin(theta), math.cos(theta)

    top_s = sin_lat * cos_theta * rx + sin_lat * sin_theta * ry - cos_lat * rz
    top_e = -sin_theta * rx + cos_theta * ry
    top_z = cos_lat * cos_theta * rx + cos_lat * sin_theta * ry + sin_lat * rz
    sez = (float(top_s), float(top_e), float(top_z))

    rg = math.sqrt(rx * rx + ry * ry + rz * rz)
    if rg < MIN_SLANT_RANGE_KM:
        logger.debug(f"Zero slant range at {utc_time.isoformat()}, reporting target overhead")
        return LookAngles(azimuth_deg=0.0, elevation_deg=90.0, sez=sez, range_km=0.0)

    azimuth = (math.atan2(-top_e, top_s) + math.pi) % TWO_PI
    elevation = math.asin(max(-1.0, min(1.0, top_z / rg)))
    return LookAngles(azimuth_deg=math.degrees(azimuth) % 360.0,
                      elevation_deg=math.degrees(elevation),
                      sez=sez, range_km=rg)


def eci_to_geodetic(position_eci, utc_time: datetime,
                    constants: EarthConstants = DEFAULT_CONSTANTS) -> GeodeticPosition:
    """
    Geodetic longitude, latitude and altitude of an ECI position (km).

    Latitude is found by fixed-point iteration until successive estimates
    differ by less than 1e-10 rad, capped at 50 iterations.
    """
    x, y, z = (float(c) for c in position_eci)
    a = constants.equatorial_radius_km
    e2 = constants.eccentricity_squared

    lon = math.atan2(y, x) - gmst(utc_time)
    lon = math.fmod(lon, TWO_PI)
    if lon > math.pi:
        lon -= TWO_PI
    elif lon <= -math.pi:
        lon += TWO_PI

    r = math.hypot(x, y)
    lat = math.atan2(z, r)
    c = 1.0
    for _ in range(GEODETIC_MAX_ITERATIONS):
        previous = lat
        c = 1.0 / math.sqrt(1.0 - e2 * math.sin(previous) ** 2)
        lat = math.atan2(z + a * c * e2 * math.sin(previous), r)
        if abs(lat - previous) < GEODETIC_TOLERANCE:
            break
    else:
        logger.warning(f"Geodetic latitude did not converge after {GEODETIC_MAX_ITERATIONS} "
                       f"iterations (lat={lat:.8f} rad)")

    c = 1.0 / math.sqrt(1.0 - e2 * math.sin(lat) ** 2)
    cos_lat = math.cos(lat)
    if abs(cos_lat) > 1e-8:
        alt = r / cos_lat - a * c
    else:
        alt = abs(z) - a * c * (1.0 - e2)

    return GeodeticPosition(lon_deg=math.degrees(lon), lat_deg=math.degrees(lat), alt_km=alt)
