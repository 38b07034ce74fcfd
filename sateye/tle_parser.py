"""
TLE Parser Module

Turns Two-Line Element (TLE) sets and GP/OMM records into
``OrbitalElementSet`` instances.

Field extraction is delegated to the sgp4 library's TLE reader
(``Satrec.twoline2rv``); this module adds line-format and checksum checks,
epoch conversion and the unit conventions used by the propagator.
"""

import logging
from typing import Any, Dict, List, Mapping, Optional, Tuple

from sgp4.api import Satrec

from sateye.elements import OrbitalElementSet
from sateye.errors import ElementSetError
from sateye.time_scales import jd_to_datetime

logger = logging.getLogger(__name__)

TLE_LINE_LENGTH = 69


class TLEParser:
    """
    Parser for Two-Line Element sets and GP/OMM records.

    Provides methods for:
    - Parsing TLE lines into an OrbitalElementSet
    - Splitting multi-satellite TLE text (two- or three-line format)
    - Mapping decoded OMM records
    - Checksum verification
    """

    def parse_tle(self, line1: str, line2: str, name: str = "") -> OrbitalElementSet:
        """
        Parse TLE lines into an element set.

        Args:
            line1: First line of TLE
            line2: Second line of TLE
            name: Optional satellite name

        Returns:
            OrbitalElementSet with angles in radians and mean motion in rad/min

        Raises:
            ElementSetError: If the lines are not a well-formed TLE
        """
        line1 = line1.rstrip()
        line2 = line2.rstrip()
        self._check_format(line1, "1")
        self._check_format(line2, "2")

        for number, line in (("1", line1), ("2", line2)):
            if not self.verify_checksum(line):
                logger.warning(
                    f"TLE line {number} checksum mismatch for {name or line1[2:7].strip()}: "
                    f"expected {self._checksum(line)}, found {line[68:69] or 'none'}"
                )

        try:
            satellite = Satrec.twoline2rv(line1, line2)
        except (ValueError, IndexError) as e:
            raise ElementSetError(f"Failed to parse TLE: {e}") from e

        epoch = jd_to_datetime(satellite.jdsatepoch, satellite.jdsatepochF)

        return OrbitalElementSet(
            name=name.strip() or f"SAT_{satellite.satnum}",
            catalog_id=int(satellite.satnum),
            object_id=str(getattr(satellite, "intldesg", "")).strip(),
            classification=getattr(satellite, "classification", "U") or "U",
            epoch=epoch,
            eccentricity=satellite.ecco,
            inclination=satellite.inclo,
            raan=satellite.nodeo,
            arg_perigee=satellite.argpo,
            mean_anomaly=satellite.mo,
            mean_motion=satellite.no_kozai,
            mean_motion_dot=satellite.ndot,
            mean_motion_ddot=satellite.nddot,
            bstar=satellite.bstar,
            rev_number=int(getattr(satellite, "revnum", 0)),
            element_set_no=int(getattr(satellite, "elnum", 0)),
        )

    def parse_tle_text(self, text: str) -> List[OrbitalElementSet]:
        """
        Parse a block of TLE text containing one or more satellites.

        Both the bare two-line format and the three-line format (name line
        followed by lines 1 and 2, as served by CelesTrak) are accepted.

        Args:
            text: TLE text

        Returns:
            List of element sets in input order
        """
        lines = [line.rstrip() for line in text.splitlines() if line.strip()]
        elements = []
        name: Optional[str] = None
        i = 0
        while i < len(lines):
            line = lines[i]
            if line.startswith("1 ") and i + 1 < len(lines) and lines[i + 1].startswith("2 "):
                elements.append(self.parse_tle(line, lines[i + 1], name or ""))
                name = None
                i += 2
                continue
            # Name line; CelesTrak sometimes prefixes it with "0 "
            name = line[2:] if line.startswith("0 ") else line
            i += 1

        if name is not None:
            logger.warning(f"Trailing name line without element data: {name!r}")
        return elements

    def parse_omm(self, record: Mapping[str, Any]) -> OrbitalElementSet:
        """Map a decoded GP/OMM record (CelesTrak JSON keys) into an element set."""
        return OrbitalElementSet.from_omm(record)

    def split_lines(self, tle_data: Dict[str, Any]) -> Tuple[str, str]:
        """Return (line1, line2) from a dictionary such as config.FALLBACK_ISS_TLE."""
        try:
            return tle_data["line1"], tle_data["line2"]
        except KeyError as e:
            raise ElementSetError(f"TLE record is missing {e}") from e

    def verify_checksum(self, line: str) -> bool:
        """Check the modulo-10 checksum in column 69."""
        if len(line) < TLE_LINE_LENGTH or not line[68].isdigit():
            return False
        return self._checksum(line) == int(line[68])

    def _check_format(self, line: str, number: str) -> None:
        if len(line) < TLE_LINE_LENGTH - 1:
            raise ElementSetError(
                f"TLE line {number} too short: {len(line)} characters, expected {TLE_LINE_LENGTH}")
        if line[0] != number:
            raise ElementSetError(f"TLE line {number} must start with '{number}': {line[:10]!r}")

    def _checksum(self, line: str) -> int:
        """Calculate TLE checksum."""
        checksum = 0
        for char in line[:68]:
            if char.isdigit():
                checksum += int(char)
            elif char == "-":
                checksum += 1
        return checksum % 10
