"""
Satellite Eye Demonstration

This script demonstrates the key capabilities of the satellite tracking package:
- TLE parsing and derived orbital elements
- Near-Earth SGP4 propagation
- Sub-satellite point, look angles, magnitude and visibility for an observer
- Pass prediction
- Ground track and day/night terminator plot

Usage:
    python demo.py [--lat LAT] [--lon LON] [--alt ALT] [--hours HOURS]
                   [--time ISO8601] [--tle LINE1 LINE2] [--name NAME] [--plot] [--verbose]

Arguments:
    --lat/--lon/--alt: Observer location (degrees, degrees, km)
    --hours: Pass prediction window in hours
    --time: Start time (UTC, ISO 8601); defaults to the element-set epoch
    --tle: TLE lines to use instead of the fallback ISS element set
    --name: Satellite name for --tle
    --plot: Save a ground-track plot
    --verbose: Enable debug logging

References:
    Hoots, F. R., & Roehrich, R. L. (1980). Spacetrack Report No. 3.
"""

import argparse
import logging
from datetime import datetime, timedelta, timezone
from typing import List

import matplotlib.pyplot as plt
import numpy as np

from sateye.config import DEFAULT_OBSERVER, FALLBACK_ISS_TLE, PassSearchSettings
from logging_config import configure_logging, get_logger
from sateye.errors import SatEyeError
from sateye.frames import GeodeticPosition
from sateye.passes import PassRecord
from sateye.solar import night_border
from sateye.tracker import SatelliteTracker

logger = get_logger(__name__)


def demonstrate_elements(tracker: SatelliteTracker, norad_id: int) -> None:
    """
    Log the parsed and derived orbital elements.

    Parameters
    ----------
    tracker : SatelliteTracker
        Tracker holding the satellite
    norad_id : int
        NORAD catalog number
    """
    elements = tracker.get_orbital_elements(norad_id)

    logger.info(f"NORAD ID: {elements['norad_id']} ({elements['name']})")
    logger.info(f"Epoch: {elements['epoch']}")
    logger.info(f"Inclination: {elements['inclination']:.4f} degrees")
    logger.info(f"RAAN: {elements['raan']:.4f} degrees")
    logger.info(f"Eccentricity: {elements['eccentricity']:.7f}")
    logger.info(f"Mean Motion: {elements['mean_motion']:.8f} rev/day")
    logger.info(f"B* Drag: {elements['bstar']:.8e}")
    logger.info(f"Period: {elements['period_min']:.2f} min")
    logger.info(f"Perigee/Apogee: {elements['perigee_km']:.1f} / {elements['apogee_km']:.1f} km")
    logger.info(f"Propagator mode: {elements['propagator_mode']}")


def demonstrate_tracking(tracker: SatelliteTracker, norad_id: int, start: datetime) -> None:
    """Log the live-tracking state every 30 minutes over two hours."""
    logger.info("Tracking results")

    for minutes in range(0, 121, 30):
        timestamp = start + timedelta(minutes=minutes)
        try:
            state = tracker.track(norad_id, timestamp)
        except SatEyeError as e:
            logger.warning(f"t={minutes:3d}min: {e}")
            continue

        logger.info(
            f"t={minutes:3d}min: "
            f"lat={state['latitude']:7.2f} lon={state['longitude']:8.2f} "
            f"alt={state['altitude_km']:7.1f}km v={state['speed_kms']:.3f}km/s "
            f"az={state['azimuth_deg']:6.1f} el={state['elevation_deg']:6.1f} "
            f"mag={state['magnitude']:5.1f} {state['visibility']}"
        )


def demonstrate_passes(tracker: SatelliteTracker, norad_id: int, start: datetime,
                       hours: float) -> List[PassRecord]:
    """Log the passes found in the window."""
    passes = tracker.find_passes(norad_id, start, hours)
    logger.info(f"{len(passes)} passes in the next {hours:.0f} hours")

    for record in passes:
        logger.info(
            f"rise {record.rise_time:%Y-%m-%d %H:%M:%S} "
            f"max {record.max_elevation_deg:5.1f} deg at {record.max_elevation_time:%H:%M:%S} "
            f"set {record.set_time:%H:%M:%S} "
            f"({record.duration.total_seconds() / 60:.1f} min, {record.visibility.description})"
        )
    return passes


def plot_ground_track(tracker: SatelliteTracker, norad_id: int, start: datetime,
                      observer: GeodeticPosition) -> None:
    """
    Save the ground track with the day/night terminator.

    Parameters
    ----------
    tracker : SatelliteTracker
        Tracker holding the satellite
    norad_id : int
        NORAD catalog number
    start : datetime
        Time at which the terminator is drawn
    observer : GeodeticPosition
        Observer marked on the map
    """
    track = np.array(tracker.ground_track(norad_id, start - timedelta(hours=0.2),
                                          start + timedelta(hours=2.8)))
    border = np.array(night_border(start))

    fig, ax = plt.subplots(figsize=(14, 7))
    ax.fill(border[:, 1], border[:, 0], color="navy", alpha=0.25, label="Night")

    # Break the line where it wraps around the antimeridian
    lons = track[:, 1].copy()
    lons[1:][np.abs(np.diff(track[:, 1])) > 180] = np.nan
    ax.plot(lons, track[:, 0], color="crimson", linewidth=1.5,
            label=tracker.satellites[norad_id]["name"])
    ax.plot(observer.lon_deg, observer.lat_deg, marker="*", color="gold",
            markersize=14, markeredgecolor="black", label="Observer")

    ax.set_xlim(-180, 180)
    ax.set_ylim(-90, 90)
    ax.set_xlabel("Longitude (deg)")
    ax.set_ylabel("Latitude (deg)")
    ax.set_title(f"Ground track from {start:%Y-%m-%d %H:%M} UTC")
    ax.legend(loc="lower left")
    ax.grid(True, alpha=0.3)

    output_file = "ground_track.png"
    plt.savefig(output_file, dpi=150, bbox_inches="tight")
    logger.info(f"Saved ground track plot to {output_file}")
    plt.close(fig)


def main() -> None:
    """Main demonstration entry point."""
    parser = argparse.ArgumentParser(description="Satellite Eye Demonstration")
    parser.add_argument("--lat", type=float, default=DEFAULT_OBSERVER["lat_deg"],
                        help="Observer latitude (deg)")
    parser.add_argument("--lon", type=float, default=DEFAULT_OBSERVER["lon_deg"],
                        help="Observer longitude (deg)")
    parser.add_argument("--alt", type=float, default=DEFAULT_OBSERVER["alt_km"],
                        help="Observer altitude (km)")
    parser.add_argument("--hours", type=float, default=24.0, help="Pass prediction window (h)")
    parser.add_argument("--time", type=str, default=None,
                        help="Start time, UTC ISO 8601 (default: element-set epoch)")
    parser.add_argument("--tle", nargs=2, metavar=("LINE1", "LINE2"), default=None,
                        help="TLE lines (default: fallback ISS element set)")
    parser.add_argument("--name", type=str, default="", help="Satellite name for --tle")
    parser.add_argument("--plot", action="store_true", help="Save a ground-track plot")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")

    args = parser.parse_args()

    # Configure logging
    if args.verbose:
        configure_logging(level=logging.DEBUG)

    logger.info("Satellite Eye Demonstration")
    logger.info("=" * 60)

    observer = GeodeticPosition(lon_deg=args.lon, lat_deg=args.lat, alt_km=args.alt)
    tracker = SatelliteTracker(observer=observer, settings=PassSearchSettings.from_env())
    if args.tle:
        norad_id = tracker.load_satellite(args.tle[0], args.tle[1], args.name)
    else:
        norad_id = tracker.load_satellite(FALLBACK_ISS_TLE["line1"], FALLBACK_ISS_TLE["line2"],
                                          FALLBACK_ISS_TLE["name"])

    if args.time:
        start = datetime.fromisoformat(args.time)
        if start.tzinfo is None:
            start = start.replace(tzinfo=timezone.utc)
    else:
        start = tracker.get_satellite(norad_id).elements.epoch

    demonstrate_elements(tracker, norad_id)
    logger.info("")
    demonstrate_tracking(tracker, norad_id, start)
    logger.info("")
    try:
        demonstrate_passes(tracker, norad_id, start, args.hours)
        if args.plot:
            plot_ground_track(tracker, norad_id, start, observer)
    except SatEyeError as e:
        logger.error(f"Pass prediction failed: {e}")

    logger.info("=" * 60)
    logger.info("Demonstration complete")


if __name__ == "__main__":
    main()
