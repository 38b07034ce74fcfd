"""
SGP4 Near-Earth Propagator

Implementation of the near-Earth SGP4 equations of Spacetrack Report #3
(Hoots & Roehrich, 1980) with WGS-72 constants.

The propagator mode is fixed at construction from the orbital period and
perigee altitude:
- period >= 225 min: deep space (SDP4, not implemented)
- perigee < 220 km: near-Earth simplified equations (not implemented)
- otherwise: near-Earth normal equations

Requesting a position for an unsupported mode raises ``UnsupportedModeError``.
Physically invalid states at a given instant (decay, runaway eccentricity)
raise ``PropagationError`` so callers sampling many instants can skip the
offending sample and continue.

Implementation details:
- Secular gravity (J2, J4) and drag (C1..C5, D2..D4) updates
- Long-period J3 terms through axn/ayn
- Newton-Raphson Kepler solver with step limiting
- Short-period J2 corrections to radius, argument of latitude, node and inclination

References:
- Hoots, F. R., & Roehrich, R. L. (1980). "Spacetrack Report No. 3"
- Vallado, D. A., et al. (2006). "Revisiting Spacetrack Report #3." AIAA 2006-6753
"""

import logging
import math
from dataclasses import dataclass
from datetime import datetime
from enum import Enum

import numpy as np

from sateye.config import DEFAULT_CONSTANTS, EarthConstants, TWO_PI
from sateye.elements import OrbitalElementSet, derive_elements
from sateye.errors import PropagationError, UnsupportedModeError
from sateye.time_scales import minutes_since

logger = logging.getLogger(__name__)

DEEP_SPACE_PERIOD_MIN = 225.0
SIMPLIFIED_PERIGEE_KM = 220.0
LOW_PERIGEE_KM = 156.0

# Numerical thresholds
ECC_EPS = 1.0e-6  # lower clamp for perturbed eccentricity
ECC_LIMIT_LOW = -1.0e-3
ECC_LIMIT_HIGH = 1.0 - 1.0e-6
ECC_ALL = 1.0e-4  # below this, eccentricity-dependent drag terms vanish
EPS_COS = 1.5e-12  # guards 1 + cos(i) near i = 180 deg
NR_EPS = 1.0e-12  # Kepler solver tolerance
KEPLER_MAX_ITERATIONS = 10


class PropagatorMode(Enum):
    NEAR_NORMAL = "near_normal"
    NEAR_SIMPLIFIED = "near_simplified"
    DEEP_SPACE = "deep_space"


@dataclass(frozen=True)
class KeplerianSnapshot:
    """
    Osculating state at one instant.

    Attributes:
        tsince: Minutes since epoch
        radius: Distance from Earth's centre (km)
        theta: Argument of latitude (rad)
        inclination: Osculating inclination (rad)
        raan: Osculating right ascension of the ascending node (rad)
        arg_perigee: Argument of perigee (rad)
        semi_major_axis: Secularly updated semi-major axis (km)
        eccentricity: Secularly updated eccentricity
        radial_velocity: km/s
        transverse_velocity: km/s
        mean_anomaly: Secularly updated mean anomaly (rad)
        mean_raan: Secularly updated node (rad)
    """

    tsince: float
    radius: float
    theta: float
    inclination: float
    raan: float
    arg_perigee: float
    semi_major_axis: float
    eccentricity: float
    radial_velocity: float
    transverse_velocity: float
    mean_anomaly: float
    mean_raan: float


@dataclass(frozen=True)
class CartesianState:
    """ECI position (km, or Earth radii when normalized) and velocity (km/s)."""
    position: np.ndarray
    velocity: np.ndarray
    normalized: bool = False

    @property
    def speed(self) -> float:
        return float(np.linalg.norm(self.velocity))


class SGP4Propagator:
    """
    Near-Earth SGP4 propagator for one element set.

    Coefficients are computed once in the constructor and never modified, so a
    single instance can be shared between threads.
    """

    def __init__(self, elements: OrbitalElementSet,
                 constants: EarthConstants = DEFAULT_CONSTANTS):
        self.elements = elements
        self.constants = constants
        self.derived = derive_elements(elements, constants)

        if self.derived.period >= DEEP_SPACE_PERIOD_MIN:
            self.mode = PropagatorMode.DEEP_SPACE
        elif self.derived.perigee_km < SIMPLIFIED_PERIGEE_KM:
            self.mode = PropagatorMode.NEAR_SIMPLIFIED
        else:
            self.mode = PropagatorMode.NEAR_NORMAL

        if not self.supported:
            logger.warning(
                f"Satellite {elements.catalog_id} requires {self.mode.name} mode "
                f"(period {self.derived.period:.1f} min, perigee {self.derived.perigee_km:.1f} km); "
                "propagation is not supported"
            )

        self._init_coefficients()

    @property
    def supported(self) -> bool:
        return self.mode is PropagatorMode.NEAR_NORMAL

    def _init_coefficients(self):
        """Precompute secular and drag coefficients."""
        c = self.constants
        el = self.elements
        ck2, ck4, ae = c.ck2, c.ck4, c.ae

        self.eo = el.eccentricity
        self.xincl = el.inclination
        self.omegao = el.arg_perigee
        self.xmo = el.mean_anomaly
        self.xnodeo = el.raan
        self.bstar = el.bstar
        self.xnodp = self.derived.original_mean_motion
        self.aodp = self.derived.semi_major_axis

        self.cosio = math.cos(self.xincl)
        self.sinio = math.sin(self.xincl)
        theta2 = self.cosio * self.cosio
        theta4 = theta2 * theta2
        self.x3thm1 = 3.0 * theta2 - 1.0
        self.x1mth2 = 1.0 - theta2
        self.x7thm1 = 7.0 * theta2 - 1.0

        betao2 = 1.0 - self.eo * self.eo
        betao = math.sqrt(betao2)

        # Atmospheric density parameters, lowered for perigee below 156 km
        perigee = self.derived.perigee_km
        if perigee < LOW_PERIGEE_KM:
            s4 = max(perigee - c.s0_km, 20.0)
            qoms24 = ((120.0 - s4) * ae / c.xkmper) ** 4
            s4 = s4 / c.xkmper + ae
        else:
            s4 = c.ks
            qoms24 = c.qoms2t
        self.s4 = s4

        pinvsq = 1.0 / (self.aodp ** 2 * betao2 ** 2)
        tsi = 1.0 / (self.aodp - s4)
        self.eta = self.aodp * self.eo * tsi
        etasq = self.eta ** 2
        eeta = self.eo * self.eta
        psisq = abs(1.0 - etasq)
        coef = qoms24 * tsi ** 4
        coef1 = coef / psisq ** 3.5

        c2 = coef1 * self.xnodp * (
            self.aodp * (1.0 + 1.5 * etasq + eeta * (4.0 + etasq))
            + 0.75 * ck2 * tsi / psisq * self.x3thm1 * (8.0 + 3.0 * etasq * (8.0 + etasq))
        )
        self.c1 = self.bstar * c2
        self.c4 = 2.0 * self.xnodp * coef1 * self.aodp * betao2 * (
            self.eta * (2.0 + 0.5 * etasq)
            + self.eo * (0.5 + 2.0 * etasq)
            - 2.0 * ck2 * tsi / (self.aodp * psisq) * (
                -3.0 * self.x3thm1 * (1.0 - 2.0 * eeta + etasq * (1.5 - 0.5 * eeta))
                + 0.75 * self.x1mth2 * (2.0 * etasq - eeta * (1.0 + etasq)) * math.cos(2.0 * self.omegao)
            )
        )

        self.c3 = 0.0
        self.c5 = 0.0
        self.omgcof = 0.0
        if self.mode is PropagatorMode.NEAR_NORMAL:
            self.c5 = 2.0 * coef1 * self.aodp * betao2 * (1.0 + 2.75 * (etasq + eeta) + eeta * etasq)
            if self.eo > ECC_ALL:
                self.c3 = coef * tsi * c.a3ovk2 * self.xnodp * ae * self.sinio / self.eo
            self.omgcof = self.bstar * self.c3 * math.cos(self.omegao)

        temp1 = 3.0 * ck2 * pinvsq * self.xnodp
        temp2 = temp1 * ck2 * pinvsq
        temp3 = 1.25 * ck4 * pinvsq ** 2 * self.xnodp

        self.xmdot = self.xnodp + 0.5 * temp1 * betao * self.x3thm1 + 0.0625 * temp2 * betao * (
            13.0 - 78.0 * theta2 + 137.0 * theta4)
        x1m5th = 1.0 - 5.0 * theta2
        self.omgdot = (-0.5 * temp1 * x1m5th
                       + 0.0625 * temp2 * (7.0 - 114.0 * theta2 + 395.0 * theta4)
                       + temp3 * (3.0 - 36.0 * theta2 + 49.0 * theta4))
        xhdot1 = -temp1 * self.cosio
        self.xnodot = xhdot1 + (0.5 * temp2 * (4.0 - 19.0 * theta2)
                                + 2.0 * temp3 * (3.0 - 7.0 * theta2)) * self.cosio

        self.xmcof = -(2.0 / 3.0) * ae * coef * self.bstar / eeta if self.eo > ECC_ALL else 0.0
        self.xnodcf = 3.5 * betao2 * xhdot1 * self.c1
        self.t2cof = 1.5 * self.c1

        temp0 = 1.0 + self.cosio
        if abs(temp0) < EPS_COS:
            temp0 = math.copysign(EPS_COS, temp0)
        self.xlcof = 0.125 * c.a3ovk2 * self.sinio * (3.0 + 5.0 * self.cosio) / temp0
        self.aycof = 0.25 * c.a3ovk2 * self.sinio

        self.sinmo = math.sin(self.xmo)
        self.delmo = (1.0 + self.eta * math.cos(self.xmo)) ** 3

        self.d2 = self.d3 = self.d4 = 0.0
        self.t3cof = self.t4cof = self.t5cof = 0.0
        if self.mode is not PropagatorMode.NEAR_SIMPLIFIED:
            c1sq = self.c1 * self.c1
            self.d2 = 4.0 * self.aodp * tsi * c1sq
            temp0 = self.d2 * tsi * self.c1 / 3.0
            self.d3 = (17.0 * self.aodp + s4) * temp0
            self.d4 = 0.5 * temp0 * self.aodp * tsi * (221.0 * self.aodp + 31.0 * s4) * self.c1
            self.t3cof = self.d2 + 2.0 * c1sq
            self.t4cof = 0.25 * (3.0 * self.d3 + self.c1 * (12.0 * self.d2 + 10.0 * c1sq))
            self.t5cof = 0.2 * (3.0 * self.d4 + 12.0 * self.c1 * self.d3 + 6.0 * self.d2 * self.d2
                                + 15.0 * c1sq * (2.0 * self.d2 + c1sq))

    def propagate(self, utc_time: datetime) -> KeplerianSnapshot:
        """
        Osculating elements at ``utc_time``.

        Raises:
            UnsupportedModeError: Deep-space or near-simplified orbit
            PropagationError: State is physically invalid at this instant
        """
        return self.propagate_minutes(minutes_since(utc_time, self.derived.epoch), utc_time)

    def propagate_minutes(self, tsince: float, utc_time: datetime = None) -> KeplerianSnapshot:
        """
        Osculating elements ``tsince`` minutes after epoch.

        Args:
            tsince: Minutes since the element-set epoch
            utc_time: Requested time, used only in error reports

        Returns:
            KeplerianSnapshot
        """
        if not self.supported:
            raise UnsupportedModeError(self.mode, self.elements.catalog_id)

        c = self.constants
        ck2, xke, ae = c.ck2, c.xke, c.ae
        ts = tsince

        # Secular gravity and atmospheric drag
        xmp = self.xmo + self.xmdot * ts
        xnode = self.xnodeo + ts * (self.xnodot + ts * self.xnodcf)
        omega = self.omegao + self.omgdot * ts

        delm = self.xmcof * ((1.0 + self.eta * math.cos(xmp)) ** 3 - self.delmo)
        temp0 = ts * self.omgcof + delm
        xmp += temp0
        omega -= temp0
        tempa = 1.0 - ts * (self.c1 + ts * (self.d2 + ts * (self.d3 + ts * self.d4)))
        tempe = self.bstar * (self.c4 * ts + self.c5 * (math.sin(xmp) - self.sinmo))
        templ = ts * ts * (self.t2cof + ts * (self.t3cof + ts * (self.t4cof + ts * self.t5cof)))
        a = self.aodp * tempa ** 2
        e = self.eo - tempe
        xl = xmp + omega + xnode + self.xnodp * templ

        if a < 1.0:
            raise PropagationError(1, ts, utc_time, f"a={a:.6f} Earth radii")
        if e < ECC_LIMIT_LOW:
            raise PropagationError(2, ts, utc_time, f"e={e:.6g}")
        e = min(max(e, ECC_EPS), ECC_LIMIT_HIGH)

        # Long-period periodics
        beta2 = 1.0 - e * e
        temp0 = 1.0 / (a * beta2)
        axn = e * math.cos(omega)
        ayn = e * math.sin(omega) + temp0 * self.aycof
        xlt = xl + temp0 * self.xlcof * axn

        elsq = axn * axn + ayn * ayn
        if elsq >= 1.0:
            raise PropagationError(3, ts, utc_time, f"elsq={elsq:.6g}")

        # Kepler's equation in the (axn, ayn) form
        max_step = math.sqrt(elsq)
        capu = math.fmod(xlt - xnode, TWO_PI)
        _, sinepw, cosepw, ecose, esine = solve_kepler(capu, axn, ayn, max_step)

        # Short-period preliminary quantities
        temp0 = 1.0 - elsq
        betal = math.sqrt(temp0)
        pl = a * temp0
        r = a * (1.0 - ecose)
        inv_r = 1.0 / r
        temp2 = a * inv_r
        temp3 = 1.0 / (1.0 + betal)
        cosu = temp2 * (cosepw - axn + ayn * esine * temp3)
        sinu = temp2 * (sinepw - ayn - axn * esine * temp3)
        u = math.atan2(sinu, cosu)
        sin2u = 2.0 * sinu * cosu
        cos2u = 2.0 * cosu * cosu - 1.0
        temp0 = 1.0 / pl
        temp1 = ck2 * temp0
        temp2 = temp1 * temp0

        # Short-period periodics
        rk = r * (1.0 - 1.5 * temp2 * betal * self.x3thm1) + 0.5 * temp1 * self.x1mth2 * cos2u
        uk = u - 0.25 * temp2 * self.x7thm1 * sin2u
        xnodek = xnode + 1.5 * temp2 * self.cosio * sin2u
        xinck = self.xincl + 1.5 * temp2 * self.cosio * self.sinio * cos2u

        if rk < 1.0:
            raise PropagationError(4, ts, utc_time, f"rk={rk:.6f} Earth radii")

        temp0 = math.sqrt(a)
        temp2 = xke / (a * temp0)
        scale = c.km_per_min_to_km_per_s
        rdotk = (xke * temp0 * esine * inv_r - temp2 * temp1 * self.x1mth2 * sin2u) * scale
        rfdotk = (xke * math.sqrt(pl) * inv_r
                  + temp2 * temp1 * (self.x1mth2 * cos2u + 1.5 * self.x3thm1)) * scale

        return KeplerianSnapshot(
            tsince=ts,
            radius=rk * c.xkmper / ae,
            theta=uk,
            inclination=xinck,
            raan=xnodek,
            arg_perigee=omega,
            semi_major_axis=a * c.xkmper / ae,
            eccentricity=e,
            radial_velocity=rdotk,
            transverse_velocity=rfdotk,
            mean_anomaly=xmp,
            mean_raan=xnode,
        )

    def get_position(self, utc_time: datetime, normalize: bool = False) -> CartesianState:
        """ECI position and velocity at ``utc_time``."""
        state = kepler_to_cartesian(self.propagate(utc_time))
        if normalize:
            return CartesianState(position=state.position / self.constants.equatorial_radius_km,
                                  velocity=state.velocity, normalized=True)
        return state


def kepler_to_cartesian(snapshot: KeplerianSnapshot) -> CartesianState:
    """
    Rotate an osculating snapshot into ECI position and velocity.

    Args:
        snapshot: Output of SGP4Propagator.propagate

    Returns:
        CartesianState in km and km/s
    """
    sin_t, cos_t = math.sin(snapshot.theta), math.cos(snapshot.theta)
    sin_i, cos_i = math.sin(snapshot.inclination), math.cos(snapshot.inclination)
    sin_s, cos_s = math.sin(snapshot.raan), math.cos(snapshot.raan)

    xmx = -sin_s * cos_i
    xmy = cos_s * cos_i

    # Unit vector towards the satellite and the in-plane normal to it
    u = np.array([xmx * sin_t + cos_s * cos_t,
                  xmy * sin_t + sin_s * cos_t,
                  sin_i * sin_t])
    v = np.array([xmx * cos_t - cos_s * sin_t,
                  xmy * cos_t - sin_s * sin_t,
                  sin_i * cos_t])

    position = snapshot.radius * u
    velocity = snapshot.radial_velocity * u + snapshot.transverse_velocity * v
    return CartesianState(position=position, velocity=velocity)


def solve_kepler(capu: float, axn: float, ayn: float, max_step: float,
                 max_iterations: int = KEPLER_MAX_ITERATIONS):
    """
    Solve Kepler's equation ``capu = epw - axn*sin(epw) + ayn*cos(epw)``.

    Newton-Raphson with each step limited to ``max_step``. The returned
    trigonometric terms always belong to the returned ``epw``, also when the
    iteration cap is reached before convergence.

    Returns:
        Tuple (epw, sin(epw), cos(epw), ecose, esine)
    """
    epw = capu
    for _ in range(max_iterations):
        sinepw = math.sin(epw)
        cosepw = math.cos(epw)
        ecose = axn * cosepw + ayn * sinepw
        esine = axn * sinepw - ayn * cosepw
        f = capu - epw + esine
        if abs(f) < NR_EPS:
            break
        step = f / (1.0 - ecose)
        epw += max(-max_step, min(step, max_step))
    else:
        logger.debug(f"Kepler solver stopped after {max_iterations} iterations")
        sinepw = math.sin(epw)
        cosepw = math.cos(epw)
        ecose = axn * cosepw + ayn * sinepw
        esine = axn * sinepw - ayn * cosepw
    return epw, sinepw, cosepw, ecose, esine
