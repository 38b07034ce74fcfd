"""
Orbital Elements

Mean element sets as delivered by TLE / OMM sources, their validation, and
the derived (de-singularized) quantities the SGP4 propagator works with.

Unit conventions for ``OrbitalElementSet``:
    angles: radians
    mean_motion: radians per minute
    mean_motion_dot: radians per minute**2
    mean_motion_ddot: radians per minute**3
    bstar: inverse Earth radii
"""

import math
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Mapping

from sateye.config import DEFAULT_CONSTANTS, EarthConstants, MINUTES_PER_DAY, TWO_PI
from sateye.errors import ElementSetError
from sateye.time_scales import gmst, to_utc

MAX_ECCENTRICITY = 1.0 - 1.0e-6
MIN_MEAN_MOTION = 0.0035 * TWO_PI / MINUTES_PER_DAY  # rad/min
MAX_MEAN_MOTION = 18.0 * TWO_PI / MINUTES_PER_DAY  # rad/min

OMM_EPOCH_FORMATS = ("%Y-%m-%dT%H:%M:%S.%f", "%Y-%m-%dT%H:%M:%S")


@dataclass(frozen=True)
class OrbitalElementSet:
    """Mean orbital elements at a reference epoch."""

    name: str
    catalog_id: int
    epoch: datetime
    eccentricity: float
    inclination: float
    raan: float
    arg_perigee: float
    mean_anomaly: float
    mean_motion: float
    bstar: float
    mean_motion_dot: float = 0.0
    mean_motion_ddot: float = 0.0
    rev_number: int = 0
    object_id: str = ""
    classification: str = "U"
    element_set_no: int = 0

    @property
    def mean_motion_rev_per_day(self) -> float:
        return self.mean_motion * MINUTES_PER_DAY / TWO_PI

    @classmethod
    def from_omm(cls, record: Mapping[str, Any]) -> "OrbitalElementSet":
        """
        Build an element set from a decoded GP/OMM record.

        Args:
            record: Mapping with the CelesTrak GP keys (OBJECT_NAME, EPOCH,
                MEAN_MOTION, ECCENTRICITY, ...). Angles in degrees, mean
                motion in revolutions per day.

        Returns:
            OrbitalElementSet

        Raises:
            ElementSetError: If a required key is missing or malformed
        """
        try:
            rev_per_day_to_rad_per_min = TWO_PI / MINUTES_PER_DAY
            return cls(
                name=str(record.get("OBJECT_NAME", "")).strip(),
                catalog_id=int(record["NORAD_CAT_ID"]),
                object_id=str(record.get("OBJECT_ID", "")),
                classification=str(record.get("CLASSIFICATION_TYPE", "U")),
                epoch=parse_omm_epoch(record["EPOCH"]),
                eccentricity=float(record["ECCENTRICITY"]),
                inclination=math.radians(float(record["INCLINATION"])),
                raan=math.radians(float(record["RA_OF_ASC_NODE"])),
                arg_perigee=math.radians(float(record["ARG_OF_PERICENTER"])),
                mean_anomaly=math.radians(float(record["MEAN_ANOMALY"])),
                mean_motion=float(record["MEAN_MOTION"]) * rev_per_day_to_rad_per_min,
                mean_motion_dot=float(record.get("MEAN_MOTION_DOT", 0.0))
                * rev_per_day_to_rad_per_min / MINUTES_PER_DAY,
                mean_motion_ddot=float(record.get("MEAN_MOTION_DDOT", 0.0))
                * rev_per_day_to_rad_per_min / MINUTES_PER_DAY ** 2,
                bstar=float(record.get("BSTAR", 0.0)),
                rev_number=int(record.get("REV_AT_EPOCH", 0)),
                element_set_no=int(record.get("ELEMENT_SET_NO", 0)),
            )
        except KeyError as e:
            raise ElementSetError(f"OMM record is missing field {e}") from e
        except (TypeError, ValueError) as e:
            raise ElementSetError(f"Malformed OMM record: {e}") from e


@dataclass(frozen=True)
class DerivedElements:
    """
    Quantities derived once from a mean element set.

    Attributes:
        original_mean_motion: De-singularized (Brouwer) mean motion n0'' in rad/min
        semi_major_axis: a0'' in Earth radii
        period: Orbital period in minutes
        perigee_km: Perigee altitude above the WGS-72 equatorial radius
        apogee_km: Apogee altitude above the WGS-72 equatorial radius
        raan_longitude: Node longitude (RAAN minus GMST at epoch), radians in (-pi, pi]
        epoch: Element-set epoch
    """

    original_mean_motion: float
    semi_major_axis: float
    semi_major_axis_km: float
    period: float
    perigee_km: float
    apogee_km: float
    raan_longitude: float
    epoch: datetime


def parse_omm_epoch(value: str) -> datetime:
    """Parse an OMM EPOCH string (UTC, ``yyyy-MM-ddTHH:mm:ss[.ffffff]``)."""
    text = str(value).strip().rstrip("Z")
    for fmt in OMM_EPOCH_FORMATS:
        try:
            return datetime.strptime(text, fmt).replace(tzinfo=timezone.utc)
        except ValueError:
            continue
    raise ElementSetError(f"Unrecognised epoch format: {value!r}")


def validate_element_set(elements: OrbitalElementSet) -> None:
    """
    Check the hard preconditions for propagation.

    Raises:
        ElementSetError: If eccentricity, mean motion or inclination is out of range
    """
    if not 0.0 < elements.eccentricity < MAX_ECCENTRICITY:
        raise ElementSetError(
            f"Eccentricity out of range: {elements.eccentricity} (satellite {elements.catalog_id})")
    if not MIN_MEAN_MOTION < elements.mean_motion < MAX_MEAN_MOTION:
        raise ElementSetError(
            f"Mean motion out of range: {elements.mean_motion} rad/min "
            f"(satellite {elements.catalog_id})")
    if not 0.0 < elements.inclination < math.pi:
        raise ElementSetError(
            f"Inclination out of range: {elements.inclination} rad (satellite {elements.catalog_id})")


def derive_elements(elements: OrbitalElementSet,
                    constants: EarthConstants = DEFAULT_CONSTANTS) -> DerivedElements:
    """
    Recover the original mean motion and semi-major axis from Kozai mean elements.

    Args:
        elements: Validated mean element set
        constants: Physical constants

    Returns:
        DerivedElements
    """
    validate_element_set(elements)

    n0 = elements.mean_motion
    e0 = elements.eccentricity
    cos_i = math.cos(elements.inclination)
    betao2 = 1.0 - e0 * e0

    a1 = (constants.xke / n0) ** (2.0 / 3.0)
    temp = 1.5 * constants.ck2 * (3.0 * cos_i * cos_i - 1.0) / betao2 ** 1.5
    delta1 = temp / (a1 * a1)
    a0 = a1 * (1.0 - delta1 / 3.0 - delta1 ** 2 - 134.0 * delta1 ** 3 / 81.0)
    delta0 = temp / (a0 * a0)

    original_mean_motion = n0 / (1.0 + delta0)
    semi_major_axis = a0 / (1.0 - delta0)

    raan_longitude = elements.raan - gmst(to_utc(elements.epoch))
    raan_longitude = math.fmod(raan_longitude, TWO_PI)
    if raan_longitude > math.pi:
        raan_longitude -= TWO_PI
    elif raan_longitude <= -math.pi:
        raan_longitude += TWO_PI

    return DerivedElements(
        original_mean_motion=original_mean_motion,
        semi_major_axis=semi_major_axis,
        semi_major_axis_km=semi_major_axis * constants.xkmper / constants.ae,
        period=TWO_PI / original_mean_motion,
        perigee_km=(semi_major_axis * (1.0 - e0) - constants.ae) * constants.xkmper,
        apogee_km=(semi_major_axis * (1.0 + e0) - constants.ae) * constants.xkmper,
        raan_longitude=raan_longitude,
        epoch=to_utc(elements.epoch),
    )


def describe(elements: OrbitalElementSet, derived: DerivedElements) -> Dict[str, Any]:
    """Human-readable summary (degrees, rev/day, km)."""
    return {
        "norad_id": elements.catalog_id,
        "name": elements.name,
        "epoch": derived.epoch.isoformat(),
        "mean_motion": elements.mean_motion_rev_per_day,
        "eccentricity": elements.eccentricity,
        "inclination": math.degrees(elements.inclination),
        "raan": math.degrees(elements.raan),
        "arg_perigee": math.degrees(elements.arg_perigee),
        "mean_anomaly": math.degrees(elements.mean_anomaly),
        "bstar": elements.bstar,
        "classification": elements.classification,
        "element_number": elements.element_set_no,
        "revolution_number": elements.rev_number,
        "period_min": derived.period,
        "semi_major_axis_km": derived.semi_major_axis_km,
        "perigee_km": derived.perigee_km,
        "apogee_km": derived.apogee_km,
        "raan_longitude_deg": math.degrees(derived.raan_longitude),
    }
