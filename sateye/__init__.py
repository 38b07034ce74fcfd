"""
Satellite Eye Computational Core

This package computes satellite positions, solar geometry, observer look
angles and pass predictions from two-line mean element sets.

Modules:
    config: Physical constants, pass-search defaults and fallback element-set data
    time_scales: Julian day, J2000 day count and Greenwich mean sidereal time
    solar: Low-precision analytic solar ephemeris and day/night terminator
    frames: ECI/ECEF/geodetic/topocentric frame transforms
    elements: Mean element sets and derived (de-singularized) elements
    tle_parser: TLE and OMM record parsing
    propagator: Near-Earth SGP4 propagator
    satellite: Observables for one satellite (sub-point, look angles, magnitude, visibility)
    passes: Pass prediction with root and maximum refinement
    tracker: Multi-satellite tracking facade

References:
    Hoots, F. R., & Roehrich, R. L. (1980). Spacetrack Report No. 3.
    Vallado, D. A., Crawford, P., Hujsak, R., & Kelso, T. S. (2006).
    Revisiting Spacetrack Report #3. AIAA 2006-6753.
"""

__version__ = "1.0.0"
