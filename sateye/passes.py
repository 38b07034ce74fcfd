"""
Pass Prediction

Finds the intervals during which a satellite is above an observer's horizon.

The search samples elevation once per minute, refines each horizon crossing
with a bracketed (Brent) root finder, pairs rises with the following set,
checks the interval for a visible or daylight instant, refines the
culmination by successive parabolic interpolation and keeps passes whose
maximum elevation clears a minimum.

Samples at which propagation is invalid are treated as elevation -90 deg so
one bad instant never aborts a multi-day search.
"""

import logging
import math
import sys
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, List, Optional

import numpy as np

from sateye.config import DEFAULT_SETTINGS, PassSearchSettings
from sateye.errors import PropagationError
from sateye.frames import GeodeticPosition
from sateye.satellite import Satellite, Visibility

logger = logging.getLogger(__name__)

INVALID_ELEVATION_DEG = -90.0
MAX_ITERATIONS = 100
_RTOL = 4.0 * sys.float_info.epsilon


@dataclass(frozen=True)
class PassRecord:
    """A single pass of a satellite over an observer."""
    rise_time: datetime
    set_time: datetime
    max_elevation_deg: float
    max_elevation_time: datetime
    visibility: Visibility

    @property
    def duration(self) -> timedelta:
        return self.set_time - self.rise_time


def find_root(fun: Callable[[float], float], start: float, end: float,
              tol: float = 1e-4, max_iter: int = MAX_ITERATIONS) -> Optional[float]:
    """
    Brent's bracketed root finder.

    Combines bisection with secant and inverse quadratic steps. The bracket
    [start, end] must contain a sign change.

    Args:
        fun: Continuous function of one variable
        start: Lower end of the bracket
        end: Upper end of the bracket
        tol: Absolute tolerance on the root
        max_iter: Iteration cap

    Returns:
        The root, or None if the bracket has no sign change or the cap is hit
    """
    xpre, xcur = float(start), float(end)
    fpre, fcur = fun(xpre), fun(xcur)

    if fpre == 0.0:
        return xpre
    if fcur == 0.0:
        return xcur
    if fpre * fcur > 0.0 or math.isnan(fpre) or math.isnan(fcur):
        logger.debug(f"No sign change in [{start}, {end}]: f={fpre:.6g}, {fcur:.6g}")
        return None

    xblk = fblk = 0.0
    spre = scur = 0.0
    for _ in range(max_iter):
        if fpre * fcur < 0.0:
            xblk, fblk = xpre, fpre
            spre = scur = xcur - xpre
        if abs(fblk) < abs(fcur):
            xpre, xcur, xblk = xcur, xblk, xcur
            fpre, fcur, fblk = fcur, fblk, fcur

        delta = (tol + _RTOL * abs(xcur)) / 2.0
        sbis = (xblk - xcur) / 2.0
        if fcur == 0.0 or abs(sbis) < delta:
            return xcur

        if abs(spre) > delta and abs(fcur) < abs(fpre):
            if xpre == xblk:
                # secant
                stry = -fcur * (xcur - xpre) / (fcur - fpre)
            else:
                # inverse quadratic
                dpre = (fpre - fcur) / (xpre - xcur)
                dblk = (fblk - fcur) / (xblk - xcur)
                stry = -fcur * (fblk * dblk - fpre * dpre) / (dblk * dpre * (fblk - fpre))

            if 2.0 * abs(stry) < min(abs(spre), 3.0 * abs(sbis) - delta):
                spre, scur = scur, stry
            else:
                spre = scur = sbis
        else:
            spre = scur = sbis

        xpre, fpre = xcur, fcur
        if abs(scur) > delta:
            xcur += scur
        else:
            xcur += delta if sbis > 0 else -delta
        fcur = fun(xcur)

    logger.debug(f"Root not found in [{start}, {end}] after {max_iter} iterations")
    return None


def find_max_parabolic(fun: Callable[[float], float], start: float, end: float,
                       tol: float, max_iter: int = MAX_ITERATIONS) -> float:
    """
    Locate a maximum of ``fun`` by successive parabolic interpolation.

    A parabola is fitted through the bracket ends and midpoint; its vertex
    becomes the new centre and the bracket shrinks towards it each iteration.
    """
    a, b, c = start, (start + end) / 2.0, end
    fa, fb, fc = fun(a), fun(b), fun(c)

    for _ in range(max_iter):
        denominator = (b - a) * (fb - fc) - (b - c) * (fb - fa)
        if denominator == 0.0:
            return b
        numerator = (b - a) ** 2 * (fb - fc) - (b - c) ** 2 * (fb - fa)
        x = b - 0.5 * numerator / denominator

        if abs(b - x) <= tol:
            return x

        fx = fun(x)
        if fx < fb:
            return b

        a, b, c = (a + x) / 2.0, x, (x + c) / 2.0
        fa, fb, fc = fun(a), fx, fun(c)

    logger.debug(f"Parabolic maximum did not converge in [{start}, {end}]")
    return b


class PassFinder:
    """
    Pass prediction for one satellite.

    Args:
        satellite: Satellite to search
        settings: Search defaults (horizon, twilight, tolerance, look-back)
    """

    def __init__(self, satellite: Satellite, settings: PassSearchSettings = DEFAULT_SETTINGS):
        self.satellite = satellite
        self.settings = settings

    def find_passes(self, start: datetime, duration_hours: float, observer: GeodeticPosition,
                    horizon_deg: Optional[float] = None,
                    twilight_deg: Optional[float] = None) -> List[PassRecord]:
        """
        Passes rising within the window, in chronological order.

        Args:
            start: Start of the search window
            duration_hours: Window length in hours
            observer: Observer location
            horizon_deg: Elevation cutoff (default from settings)
            twilight_deg: Solar elevation above which it is daylight (default from settings)

        Returns:
            List of PassRecord
        """
        horizon = self.settings.horizon_deg if horizon_deg is None else horizon_deg
        twilight = self.settings.twilight_deg if twilight_deg is None else twilight_deg
        tol = self.settings.tolerance / 60.0  # minutes

        origin = start - timedelta(minutes=self.settings.lookback_minutes)
        n_samples = int(math.ceil(self.settings.lookback_minutes + duration_hours * 60.0)) + 1

        def at(minutes: float) -> datetime:
            return origin + timedelta(minutes=minutes)

        def elevation(minutes: float) -> float:
            look = self.satellite.try_observer_look(at(minutes), observer)
            if look is None:
                return INVALID_ELEVATION_DEG - horizon
            return look.elevation_deg - horizon

        elev = np.array([elevation(float(i)) for i in range(n_samples)])
        crossings = np.nonzero((elev[:-1] < 0.0) != (elev[1:] < 0.0))[0]
        logger.debug(f"{self.satellite.catalog_id}: {len(crossings)} horizon crossings "
                     f"in {n_samples} samples")

        passes = []
        rise_min: Optional[float] = None
        for guess in crossings:
            crossing = find_root(elevation, float(guess), float(guess + 1), tol=tol)
            if crossing is None:
                logger.debug(f"Skipping unrefined crossing at minute {guess}")
                continue

            if elev[guess] < 0.0:
                rise_min = crossing
                continue

            set_min = crossing
            if rise_min is not None:
                record = self._build_pass(elevation, at, elev, rise_min, set_min,
                                          observer, horizon, twilight, tol)
                if record is not None:
                    passes.append(record)
            rise_min = None

        return passes

    def _build_pass(self, elevation, at, elev, rise_min, set_min, observer,
                    horizon, twilight, tol) -> Optional[PassRecord]:
        int_start = max(0, int(math.floor(rise_min)))
        int_end = min(len(elev), int(math.ceil(set_min)) + 1)

        visibility = self._interval_visibility(at, int_start, int_end, observer, horizon, twilight)
        if visibility is None:
            return None

        middle = int_start + int(np.argmax(elev[int_start:int_end]))
        lower = max(rise_min, middle - 1.0)
        upper = min(set_min, middle + 1.0)
        highest = find_max_parabolic(elevation, lower, upper, tol)
        highest = min(max(highest, rise_min), set_min)

        max_elevation = elevation(highest) + horizon
        if max_elevation <= self.settings.min_max_elevation_deg:
            return None

        return PassRecord(
            rise_time=at(rise_min),
            set_time=at(set_min),
            max_elevation_deg=max_elevation,
            max_elevation_time=at(highest),
            visibility=visibility,
        )

    def _interval_visibility(self, at, int_start, int_end, observer, horizon,
                             twilight) -> Optional[Visibility]:
        """First visible or daylight classification in the interval, if any."""
        for minute in range(int_start, int_end):
            try:
                state = self.satellite.visibility(at(float(minute)), observer, horizon, twilight)
            except PropagationError as e:
                logger.debug(f"Visibility unavailable at minute {minute}: {e}")
                continue
            if state in (Visibility.VISIBLE, Visibility.DAYLIGHT):
                return state
        return None
