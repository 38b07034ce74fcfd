"""
Satellite Eye Configuration and Constants

This module contains the physical constants, pass-search defaults and fallback
element-set data used throughout the project.

Constants:
    WGS-72 propagator constants as tabulated in Spacetrack Report #3 (Hoots &
    Roehrich, 1980) for the near-Earth SGP4 equations, and the WGS-84
    ellipsoid used for observer and sub-satellite geodesy.

    The constants are grouped in the frozen ``EarthConstants`` dataclass so a
    single read-only instance can be handed to every propagator, frame
    transform and satellite. ``DEFAULT_CONSTANTS`` is that instance.

Pass Search Settings:
    Horizon cutoff, twilight threshold and prediction window defaults. Each
    value can be overridden through a ``SATEYE_*`` environment variable via
    ``PassSearchSettings.from_env()``.

Fallback TLE Data:
    Hardcoded ISS TLE data for demonstrations and testing when live data is unavailable.

    IMPORTANT: Update this TLE data periodically for accuracy.
    - Low Earth Orbit (LEO) satellites: Update weekly
    - Medium Earth Orbit (MEO): Update monthly

    Sources for updated TLEs:
    - Space-Track.org (requires free registration)
    - CelesTrak.org (public access)

References:
    Hoots, F. R., & Roehrich, R. L. (1980). Spacetrack Report No. 3.
    Vallado, D. A., Crawford, P., Hujsak, R., & Kelso, T. S. (2006).
    Revisiting Spacetrack Report #3. AIAA 2006-6753.
"""

import math
import os
from dataclasses import dataclass
from typing import Dict, Any

# Minutes per day and seconds per day
MINUTES_PER_DAY: float = 1440.0
SECONDS_PER_DAY: float = 86400.0
TWO_PI: float = 2.0 * math.pi

# Default intrinsic (standard) visual magnitude used for brightness estimates
DEFAULT_INTRINSIC_MAGNITUDE: float = -1.8


@dataclass(frozen=True)
class EarthConstants:
    """
    Process-wide physical constants.

    Propagator values follow Spacetrack Report #3 (WGS-72); geodesy uses the
    WGS-84 ellipsoid.
    """

    # SGP4 (WGS-72) constants, distances in Earth radii and time in minutes
    ck2: float = 5.413080e-4  # 0.5 * J2 * AE**2
    ck4: float = 0.62098875e-6  # -0.375 * J4 * AE**4
    xj3: float = -0.253881e-5  # third zonal harmonic
    xke: float = 0.743669161e-1  # sqrt(GM) in (Earth radii)**1.5 / min
    qoms2t: float = 1.88027916e-9  # ((q0 - s0) / XKMPER)**4
    s0_km: float = 78.0  # atmospheric density parameter altitude
    xkmper: float = 6378.135  # WGS-72 equatorial radius (km)
    ae: float = 1.0  # distance units per Earth radius

    # WGS-84 ellipsoid
    flattening: float = 1.0 / 298.257223563
    equatorial_radius_km: float = 6378.137

    earth_rotation_rate: float = 7.292115e-5  # rad/s
    astronomical_unit_km: float = 149597870.7

    @property
    def ks(self) -> float:
        """Atmospheric density parameter ``s`` in Earth radii."""
        return self.ae * (1.0 + self.s0_km / self.xkmper)

    @property
    def a3ovk2(self) -> float:
        return -self.xj3 / self.ck2 * self.ae ** 3

    @property
    def eccentricity_squared(self) -> float:
        return self.flattening * (2.0 - self.flattening)

    @property
    def km_per_min_to_km_per_s(self) -> float:
        """Scale from Earth radii per minute to km/s."""
        return self.xkmper / self.ae * MINUTES_PER_DAY / SECONDS_PER_DAY


DEFAULT_CONSTANTS = EarthConstants()


@dataclass(frozen=True)
class PassSearchSettings:
    """
    Defaults for pass prediction.

    Attributes:
        horizon_deg: Elevation cutoff that defines rise and set.
        twilight_deg: Solar elevation above which the sky is considered daylight.
        prediction_days: Default length of a prediction window.
        min_max_elevation_deg: Passes culminating at or below this are dropped.
        lookback_minutes: Search starts this long before the requested time.
        tolerance: Root/maximum refinement tolerance in seconds.
        intrinsic_magnitude: Standard magnitude used for brightness estimates.
    """

    horizon_deg: float = 0.0
    twilight_deg: float = 0.0
    prediction_days: int = 7
    min_max_elevation_deg: float = 10.0
    lookback_minutes: float = 15.0
    tolerance: float = 0.001
    intrinsic_magnitude: float = DEFAULT_INTRINSIC_MAGNITUDE

    @classmethod
    def from_env(cls) -> "PassSearchSettings":
        """Build settings, letting ``SATEYE_*`` environment variables override defaults."""
        defaults = cls()
        return cls(
            horizon_deg=float(os.getenv("SATEYE_HORIZON_DEG", defaults.horizon_deg)),
            twilight_deg=float(os.getenv("SATEYE_TWILIGHT_DEG", defaults.twilight_deg)),
            prediction_days=int(os.getenv("SATEYE_PREDICTION_DAYS", defaults.prediction_days)),
            min_max_elevation_deg=float(
                os.getenv("SATEYE_MIN_MAX_ELEVATION_DEG", defaults.min_max_elevation_deg)
            ),
            lookback_minutes=float(os.getenv("SATEYE_LOOKBACK_MINUTES", defaults.lookback_minutes)),
            tolerance=float(os.getenv("SATEYE_TOLERANCE", defaults.tolerance)),
            intrinsic_magnitude=float(
                os.getenv("SATEYE_INTRINSIC_MAGNITUDE", defaults.intrinsic_magnitude)
            ),
        )


DEFAULT_SETTINGS = PassSearchSettings()

# Fallback ISS TLE for demonstrations and testing
# Epoch: 2023-09-16
FALLBACK_ISS_TLE: Dict[str, Any] = {
    'name': 'ISS (ZARYA)',
    'norad_id': 25544,
    'line1': '1 25544U 98067A   23259.57580000  .00012022  00000-0  21844-3 0  9995',
    'line2': '2 25544  51.6416 220.9944 0004263 122.0101 312.2755 15.49541986415598',
    'epoch': '2023-09-16T13:49:09Z',
    'mean_motion': 15.49541986,
    'inclination': 51.6416,
    'eccentricity': 0.0004263
}

# Default observer used by the demo (Madrid)
DEFAULT_OBSERVER: Dict[str, float] = {
    'lon_deg': -3.7038,
    'lat_deg': 40.4168,
    'alt_km': 0.667,
}
