"""3-vector helpers shared by the geometry routines."""

import numpy as np


def as_vector(v) -> np.ndarray:
    return np.asarray(v, dtype=float)


def magnitude(v) -> float:
    return float(np.linalg.norm(as_vector(v)))


def dot(a, b) -> float:
    return float(np.dot(as_vector(a), as_vector(b)))


def cross(a, b) -> np.ndarray:
    return np.cross(as_vector(a), as_vector(b))


def angle_between(a, b) -> float:
    """Angle between two vectors in radians, in [0, pi]."""
    cos_angle = dot(a, b) / (magnitude(a) * magnitude(b))
    return float(np.arccos(np.clip(cos_angle, -1.0, 1.0)))
