"""
Error types for element-set validation and propagation.

Construction-time problems (bad element sets, malformed TLE lines) raise
``ElementSetError`` and cannot be recovered from. Propagation-time physical
invalidity raises ``PropagationError`` carrying an error code; callers that
iterate over many samples (pass search, ground tracks, batch tracking) catch
it and treat that instant as unusable. Deep-space and near-simplified orbits
raise ``UnsupportedModeError``.
"""

from datetime import datetime
from typing import Any, Dict, Optional

# Propagation error code meanings
PROPAGATION_ERROR_CODES = {
    0: "No error",
    1: "Satellite has decayed (semi-major axis below one Earth radius)",
    2: "Perturbed eccentricity too low",
    3: "Perturbed eccentricity squared >= 1",
    4: "Satellite has decayed (radius below one Earth radius)",
}


class SatEyeError(Exception):
    """Base class for all errors raised by the package."""


class ElementSetError(SatEyeError, ValueError):
    """Element set is malformed or outside the physically valid range."""


class UnsupportedModeError(SatEyeError):
    """The element set requires a propagator mode that is not implemented."""

    def __init__(self, mode, catalog_id=None):
        self.mode = mode
        self.catalog_id = catalog_id
        super().__init__(
            f"Propagator mode {getattr(mode, 'name', mode)} is not supported"
            + (f" (satellite {catalog_id})" if catalog_id is not None else "")
        )


class PropagationError(SatEyeError):
    """
    Propagation is physically invalid at one instant.

    Attributes:
        code: Key into PROPAGATION_ERROR_CODES
        tsince: Minutes since the element-set epoch
        utc_time: Requested time, when known
        detail: Free-form detail (e.g. the offending value)
    """

    def __init__(self, code: int, tsince: float, utc_time: Optional[datetime] = None,
                 detail: str = ""):
        self.code = code
        self.tsince = tsince
        self.utc_time = utc_time
        self.detail = detail
        message = PROPAGATION_ERROR_CODES.get(code, f"Unknown error code {code}")
        when = utc_time.isoformat() if utc_time is not None else f"tsince={tsince:.3f} min"
        super().__init__(f"Propagation error {code}: {message} at {when}"
                         + (f" ({detail})" if detail else ""))

    @property
    def message(self) -> str:
        return PROPAGATION_ERROR_CODES.get(self.code, f"Unknown error code {self.code}")

    def diagnostics(self) -> Dict[str, Any]:
        """
        Physical interpretation of the failure.

        Returns:
            Dictionary with error code, description, physical meaning and
            recommended action
        """
        diagnostics = {
            "error_code": self.code,
            "error_description": self.message,
            "tsince_min": self.tsince,
            "epoch_age_days": self.tsince / 1440.0,
        }

        if self.code in (1, 4):
            diagnostics["physical_meaning"] = (
                "The propagated orbit lies inside the Earth. The satellite has "
                "decayed, or the element set is being used far outside its epoch."
            )
            diagnostics["recommended_action"] = (
                "Obtain a fresh element set. If the object has re-entered, only "
                "historical propagation is meaningful."
            )
        elif self.code in (2, 3):
            diagnostics["physical_meaning"] = (
                "Drag and long-period terms drove the eccentricity outside the "
                "range of a bound orbit. This typically occurs when propagating "
                "far from the element-set epoch or for objects with very high drag."
            )
            diagnostics["recommended_action"] = (
                "Use more recent elements or limit propagation to shorter spans."
            )

        return diagnostics
