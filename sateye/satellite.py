"""
Satellite Observables

Wraps an SGP4 propagator with the frame transforms and solar ephemeris needed
to answer observer-facing questions: where is the satellite over the Earth,
where does it appear in the sky, how bright is it and can it be seen.
"""

import logging
import math
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import List, Optional, Tuple

import numpy as np

from sateye.config import DEFAULT_CONSTANTS, DEFAULT_INTRINSIC_MAGNITUDE, EarthConstants
from sateye import vector_math
from sateye.elements import OrbitalElementSet
from sateye.errors import PropagationError
from sateye.frames import (GeodeticPosition, LookAngles, eci_to_ecef, eci_to_geodetic,
                           eci_to_topocentric, observer_position)
from sateye.propagator import CartesianState, SGP4Propagator
from sateye.solar import solar_position

logger = logging.getLogger(__name__)


class Visibility(Enum):
    """Observing condition of a satellite at one instant."""
    NOT_VISIBLE = "hidden"
    DAYLIGHT = "daylight"
    VISIBLE = "visible"
    IN_SHADOW = "unlit"

    @property
    def description(self) -> str:
        return self.value


@dataclass(frozen=True)
class SatellitePosition:
    """Sub-satellite point and speed at one instant."""
    name: str
    utc_time: datetime
    lon_deg: float
    lat_deg: float
    alt_km: float
    speed_km_s: float
    position_eci: np.ndarray


def phase_angle(sat_ecef, sun_ecef, obs_ecef) -> float:
    """
    Sun-satellite-observer phase angle in radians.

    Solved on the triangle formed by the observer-to-satellite and
    observer-to-Sun vectors with the law of cosines.
    """
    sat_obs = np.asarray(sat_ecef, dtype=float) - np.asarray(obs_ecef, dtype=float)
    sun_obs = np.asarray(sun_ecef, dtype=float) - np.asarray(obs_ecef, dtype=float)
    beta = vector_math.angle_between(sat_obs, sun_obs)
    a = vector_math.magnitude(sun_obs)
    b = vector_math.magnitude(sat_obs)
    c = math.sqrt(max(a * a + b * b - 2.0 * a * b * math.cos(beta), 0.0))
    cos_angle = (b * b + c * c - a * a) / (2.0 * b * c)
    return math.acos(max(-1.0, min(1.0, cos_angle)))


def magnitude_from_phase(intrinsic_magnitude: float, distance_km: float, phase: float) -> float:
    """
    Visual magnitude of a diffusely reflecting sphere.

    Args:
        intrinsic_magnitude: Magnitude at 1000 km and 90 deg phase
        distance_km: Observer-satellite distance
        phase: Phase angle in radians

    Returns:
        Apparent magnitude (larger is dimmer)
    """
    phase_function = math.sin(phase) + (math.pi - phase) * math.cos(phase)
    # Fully back-lit satellites have a zero phase function
    phase_function = max(phase_function, 1e-12)
    return (intrinsic_magnitude + 5.0 * math.log10(distance_km / 1000.0)
            - 2.5 * math.log10(phase_function))


def classify_visibility(satellite_elevation_deg: float, sun_elevation_deg: float, sunlit: bool,
                        horizon_deg: float = 0.0, twilight_deg: float = -6.0) -> Visibility:
    """Classify an instant from the satellite and solar elevations and illumination."""
    if satellite_elevation_deg < horizon_deg:
        return Visibility.NOT_VISIBLE
    if sun_elevation_deg > twilight_deg:
        return Visibility.DAYLIGHT
    return Visibility.VISIBLE if sunlit else Visibility.IN_SHADOW


class Satellite:
    """
    One satellite propagated from a mean element set.

    Args:
        elements: Mean element set
        constants: Physical constants
        intrinsic_magnitude: Standard magnitude used by apparent_magnitude
    """

    def __init__(self, elements: OrbitalElementSet,
                 constants: EarthConstants = DEFAULT_CONSTANTS,
                 intrinsic_magnitude: float = DEFAULT_INTRINSIC_MAGNITUDE):
        self.elements = elements
        self.constants = constants
        self.intrinsic_magnitude = intrinsic_magnitude
        self.propagator = SGP4Propagator(elements, constants)

    @property
    def name(self) -> str:
        return self.elements.name

    @property
    def catalog_id(self) -> int:
        return self.elements.catalog_id

    def get_position(self, utc_time: datetime, normalize: bool = False) -> CartesianState:
        return self.propagator.get_position(utc_time, normalize)

    def position(self, utc_time: datetime) -> SatellitePosition:
        """
        Geodetic sub-point, altitude and speed.

        Raises:
            PropagationError: If the state is invalid at ``utc_time``
        """
        state = self.get_position(utc_time)
        geodetic = eci_to_geodetic(state.position, utc_time, self.constants)
        return SatellitePosition(
            name=self.name,
            utc_time=utc_time,
            lon_deg=geodetic.lon_deg,
            lat_deg=geodetic.lat_deg,
            alt_km=geodetic.alt_km,
            speed_km_s=state.speed,
            position_eci=state.position,
        )

    def observer_look(self, utc_time: datetime, observer: GeodeticPosition) -> LookAngles:
        """Azimuth and elevation (degrees) of the satellite seen from ``observer``."""
        state = self.get_position(utc_time)
        obs = observer_position(utc_time, observer, self.constants)
        return eci_to_topocentric(utc_time, state.position, obs.position,
                                  observer.lon_deg, observer.lat_deg)

    def sun_look(self, utc_time: datetime, observer: GeodeticPosition) -> LookAngles:
        """Azimuth and elevation of the Sun from ``observer``."""
        sun = solar_position(utc_time, self.constants)
        obs = observer_position(utc_time, observer, self.constants)
        return eci_to_topocentric(utc_time, sun.eci, obs.position,
                                  observer.lon_deg, observer.lat_deg)

    def apparent_magnitude(self, utc_time: datetime, observer: GeodeticPosition) -> float:
        """Estimated visual magnitude of the satellite for ``observer``."""
        state = self.get_position(utc_time)
        obs = observer_position(utc_time, observer, self.constants)
        sun = solar_position(utc_time, self.constants)

        sat_ecef = eci_to_ecef(utc_time, state.position)
        obs_ecef = eci_to_ecef(utc_time, obs.position)
        distance = vector_math.magnitude(sat_ecef - obs_ecef)
        phase = phase_angle(sat_ecef, sun.ecef, obs_ecef)
        return magnitude_from_phase(self.intrinsic_magnitude, distance, phase)

    def illumination_distance(self, utc_time: datetime) -> float:
        """Perpendicular distance (km) of the satellite from the Earth-Sun line."""
        sun = solar_position(utc_time, self.constants)
        sat_ecef = eci_to_ecef(utc_time, self.get_position(utc_time).position)
        sin_zeta = vector_math.magnitude(vector_math.cross(sun.ecef, sat_ecef)) / (
            vector_math.magnitude(sun.ecef) * vector_math.magnitude(sat_ecef))
        return vector_math.magnitude(sat_ecef) * min(sin_zeta, 1.0)

    def is_sunlit(self, utc_time: datetime) -> bool:
        """
        Whether the satellite is outside Earth's cylindrical shadow.

        Satellites on the sunward side of the terminator plane are always lit.
        """
        sun = solar_position(utc_time, self.constants)
        sat_ecef = eci_to_ecef(utc_time, self.get_position(utc_time).position)
        if vector_math.dot(sat_ecef, sun.ecef) > 0.0:
            return True
        return self.illumination_distance(utc_time) > self.constants.equatorial_radius_km

    def visibility(self, utc_time: datetime, observer: GeodeticPosition,
                   horizon_deg: float = 0.0, twilight_deg: float = -6.0) -> Visibility:
        """
        Classify the satellite for ``observer`` at ``utc_time``.

        Args:
            utc_time: Instant of interest
            observer: Observer location
            horizon_deg: Elevation cutoff below which the satellite is hidden
            twilight_deg: Solar elevation above which it is daylight

        Returns:
            Visibility
        """
        look = self.observer_look(utc_time, observer)
        if look.elevation_deg < horizon_deg:
            return Visibility.NOT_VISIBLE
        sun_elevation = self.sun_look(utc_time, observer).elevation_deg
        sunlit = sun_elevation <= twilight_deg and self.is_sunlit(utc_time)
        return classify_visibility(look.elevation_deg, sun_elevation, sunlit,
                                   horizon_deg, twilight_deg)

    def ground_track(self, start: datetime, end: datetime,
                     step_seconds: float = 15.0) -> List[Tuple[float, float]]:
        """
        Sample the sub-satellite point between ``start`` and ``end`` inclusive.

        Samples that fail to propagate are skipped.

        Returns:
            List of (lat_deg, lon_deg) pairs
        """
        if step_seconds <= 0:
            raise ValueError("step_seconds must be positive")

        track = []
        step = timedelta(seconds=step_seconds)
        current = start
        while current <= end:
            try:
                point = self.position(current)
            except PropagationError as e:
                logger.debug(f"Skipping ground-track sample for {self.catalog_id}: {e}")
            else:
                track.append((point.lat_deg, point.lon_deg))
            current += step
        return track

    def try_observer_look(self, utc_time: datetime,
                          observer: GeodeticPosition) -> Optional[LookAngles]:
        """Like observer_look, but returns None when propagation is invalid."""
        try:
            return self.observer_look(utc_time, observer)
        except PropagationError as e:
            logger.debug(f"Invalid look angles for {self.catalog_id}: {e}")
            return None
