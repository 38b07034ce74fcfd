"""
Live Satellite Tracking

Manages multiple satellites and answers the questions a live-tracking or
prediction display asks: sub-satellite point, look angles, brightness and
visibility now, ground tracks over a window, and upcoming passes.

Features:
- Load satellites from TLE lines, OMM records or element sets
- Track to arbitrary times, singly or in batches
- Error diagnostics with physical interpretation and per-satellite history
- Concurrent pass searches across satellites

Each pass search is sequential; ``find_passes_all`` parallelizes across
satellites with a thread pool.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Iterable, List, Mapping, Optional

from sateye.config import DEFAULT_CONSTANTS, DEFAULT_SETTINGS, EarthConstants, PassSearchSettings
from sateye.elements import OrbitalElementSet, describe
from sateye.errors import PROPAGATION_ERROR_CODES, PropagationError, SatEyeError
from sateye.frames import GeodeticPosition
from sateye.passes import PassFinder, PassRecord
from sateye.satellite import Satellite
from sateye.tle_parser import TLEParser

logger = logging.getLogger(__name__)

ERROR_HISTORY_LIMIT = 100
DEFAULT_MAX_WORKERS = 8


class SatelliteTracker:
    """
    Multi-satellite tracker.

    Args:
        observer: Default observer for look angles and visibility
        settings: Pass-search defaults
        constants: Physical constants shared by every satellite
    """

    def __init__(self, observer: Optional[GeodeticPosition] = None,
                 settings: PassSearchSettings = DEFAULT_SETTINGS,
                 constants: EarthConstants = DEFAULT_CONSTANTS):
        self.observer = observer
        self.settings = settings
        self.constants = constants
        self.parser = TLEParser()
        self.satellites: Dict[int, Dict[str, Any]] = {}
        self.error_history: Dict[int, List[Dict[str, Any]]] = {}

    def load_satellite(self, line1: str, line2: str, name: Optional[str] = None) -> int:
        """Load satellite from TLE lines and return its catalog number."""
        elements = self.parser.parse_tle(line1, line2, name or "")
        return self.load_element_set(elements, line1=line1, line2=line2)

    def load_omm(self, record: Mapping[str, Any]) -> int:
        """Load satellite from a decoded GP/OMM record."""
        return self.load_element_set(self.parser.parse_omm(record))

    def load_element_set(self, elements: OrbitalElementSet, **source) -> int:
        """Load satellite from an element set and return its catalog number."""
        satellite = Satellite(elements, self.constants, self.settings.intrinsic_magnitude)
        self.satellites[elements.catalog_id] = {
            "satellite": satellite,
            "name": elements.name,
            "loaded_at": datetime.now(timezone.utc),
            **source,
        }
        logger.info(f"Loaded satellite {elements.catalog_id} ({elements.name}), "
                    f"mode {satellite.propagator.mode.name}")
        return elements.catalog_id

    def get_satellite(self, norad_id: int) -> Satellite:
        if norad_id not in self.satellites:
            raise KeyError(f"Satellite {norad_id} not loaded")
        return self.satellites[norad_id]["satellite"]

    def track(self, norad_id: int, timestamp: Optional[datetime] = None,
              observer: Optional[GeodeticPosition] = None) -> Dict[str, Any]:
        """
        Live-tracking state of one satellite.

        Args:
            norad_id: NORAD catalog ID
            timestamp: Target time (default: now)
            observer: Observer (default: tracker observer); look angles,
                magnitude and visibility are included when one is available

        Returns:
            Dictionary with sub-point, speed and observer-relative quantities

        Raises:
            PropagationError: If the state is invalid at ``timestamp``; the
                failure is recorded in the error history first
        """
        satellite = self.get_satellite(norad_id)
        if timestamp is None:
            timestamp = datetime.now(timezone.utc)
        observer = observer or self.observer

        try:
            point = satellite.position(timestamp)
            result = {
                "norad_id": norad_id,
                "name": satellite.name,
                "timestamp": timestamp.isoformat(),
                "position_km": [float(x) for x in point.position_eci],
                "latitude": point.lat_deg,
                "longitude": point.lon_deg,
                "altitude_km": point.alt_km,
                "speed_kms": point.speed_km_s,
            }
            if observer is not None:
                look = satellite.observer_look(timestamp, observer)
                result.update({
                    "azimuth_deg": look.azimuth_deg,
                    "elevation_deg": look.elevation_deg,
                    "range_km": look.range_km,
                    "magnitude": satellite.apparent_magnitude(timestamp, observer),
                    "visibility": satellite.visibility(
                        timestamp, observer, self.settings.horizon_deg,
                        self.settings.twilight_deg).description,
                })
        except PropagationError as e:
            self._log_error(norad_id, e, timestamp)
            logger.error(f"Propagation failed for satellite {norad_id}: {e}")
            raise

        return result

    def track_batch(self, norad_id: int, timestamps: Iterable[datetime],
                    observer: Optional[GeodeticPosition] = None) -> List[Dict[str, Any]]:
        """Track multiple timestamps; failures are returned as error entries."""
        results = []
        for ts in timestamps:
            try:
                results.append(self.track(norad_id, ts, observer))
            except PropagationError as e:
                results.append({
                    "error": str(e),
                    "error_diagnostics": e.diagnostics(),
                    "timestamp": ts.isoformat(),
                })
        return results

    def ground_track(self, norad_id: int, start: Optional[datetime] = None,
                     end: Optional[datetime] = None, step_seconds: float = 15.0):
        """
        Sub-satellite (lat, lon) samples.

        Defaults to a window from 12 minutes ago to 2.8 hours ahead.
        """
        now = datetime.now(timezone.utc)
        start = start or now - timedelta(hours=0.2)
        end = end or now + timedelta(hours=2.8)
        return self.get_satellite(norad_id).ground_track(start, end, step_seconds)

    def get_orbital_elements(self, norad_id: int) -> Dict[str, Any]:
        """Get orbital elements (degrees, rev/day) and derived quantities."""
        satellite = self.get_satellite(norad_id)
        summary = describe(satellite.elements, satellite.propagator.derived)
        summary["propagator_mode"] = satellite.propagator.mode.value
        return summary

    def find_passes(self, norad_id: int, start: Optional[datetime] = None,
                    duration_hours: Optional[float] = None,
                    observer: Optional[GeodeticPosition] = None) -> List[PassRecord]:
        """
        Upcoming passes of one satellite.

        Args:
            norad_id: NORAD catalog ID
            start: Start of the window (default: now)
            duration_hours: Window length (default: settings.prediction_days)
            observer: Observer (default: tracker observer)

        Returns:
            Chronological list of PassRecord
        """
        observer = observer or self.observer
        if observer is None:
            raise ValueError("An observer location is required for pass prediction")
        if start is None:
            start = datetime.now(timezone.utc)
        if duration_hours is None:
            duration_hours = self.settings.prediction_days * 24.0

        finder = PassFinder(self.get_satellite(norad_id), self.settings)
        return finder.find_passes(start, duration_hours, observer)

    def find_passes_all(self, start: Optional[datetime] = None,
                        duration_hours: Optional[float] = None,
                        observer: Optional[GeodeticPosition] = None,
                        max_workers: int = DEFAULT_MAX_WORKERS) -> Dict[int, List[PassRecord]]:
        """
        Pass searches for every loaded satellite, run concurrently.

        Satellites whose propagator mode is unsupported are skipped with a
        warning.
        """
        if start is None:
            start = datetime.now(timezone.utc)

        with ThreadPoolExecutor(max_workers=max_workers) as executor:
            futures = {
                norad_id: executor.submit(self.find_passes, norad_id, start, duration_hours, observer)
                for norad_id in self.satellites
            }

        results = {}
        for norad_id, future in futures.items():
            try:
                results[norad_id] = future.result()
            except SatEyeError as e:
                logger.warning(f"Pass search skipped for satellite {norad_id}: {e}")
        return results

    def _log_error(self, norad_id: int, error: PropagationError, timestamp: datetime):
        """Log error for tracking and diagnostics."""
        history = self.error_history.setdefault(norad_id, [])
        history.append({
            "error_code": error.code,
            "timestamp": timestamp.isoformat(),
            "error_message": PROPAGATION_ERROR_CODES.get(error.code, f"Unknown error {error.code}"),
            "diagnostics": error.diagnostics(),
        })

        # Keep only last 100 errors
        if len(history) > ERROR_HISTORY_LIMIT:
            self.error_history[norad_id] = history[-ERROR_HISTORY_LIMIT:]

    def get_error_history(self, norad_id: int) -> List[Dict[str, Any]]:
        """
        Get error history for a satellite.

        Args:
            norad_id: NORAD catalog ID

        Returns:
            List of error records
        """
        return self.error_history.get(norad_id, [])
