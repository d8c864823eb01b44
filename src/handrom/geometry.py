"""Vector primitives over landmark coordinates.

All functions take and return numpy arrays of shape (3,). Results are
finite for finite input.
"""

import math

import numpy as np

from handrom.types import LandmarkFrame, PALM_MCP_LANDMARKS

DEGENERATE_EPSILON = 1e-10


def vector(a: np.ndarray, b: np.ndarray) -> np.ndarray:
    """Vector from a to b."""
    return np.asarray(b, dtype=np.float64) - np.asarray(a, dtype=np.float64)


def magnitude(v: np.ndarray) -> float:
    return float(np.linalg.norm(v))


def dot(v1: np.ndarray, v2: np.ndarray) -> float:
    return float(np.dot(v1, v2))


def cross(v1: np.ndarray, v2: np.ndarray) -> np.ndarray:
    return np.cross(np.asarray(v1, dtype=np.float64), np.asarray(v2, dtype=np.float64))


def normalize(v: np.ndarray, epsilon: float = DEGENERATE_EPSILON) -> np.ndarray:
    """Unit vector along v, or the zero vector if v is degenerate."""
    v = np.asarray(v, dtype=np.float64)
    mag = magnitude(v)
    if mag < epsilon:
        return np.zeros(3)
    return v / mag


def angle_between_vectors(
    v1: np.ndarray,
    v2: np.ndarray,
    epsilon: float = DEGENERATE_EPSILON,
) -> float:
    """Angle between two vectors in degrees, in [0, 180].

    Returns 0.0 when either vector is degenerate or non-finite.
    """
    m1, m2 = magnitude(v1), magnitude(v2)
    if not (math.isfinite(m1) and math.isfinite(m2)) or m1 < epsilon or m2 < epsilon:
        return 0.0
    cos_angle = max(-1.0, min(1.0, dot(v1, v2) / (m1 * m2)))
    return math.degrees(math.acos(cos_angle))


def palm_center(frame: LandmarkFrame) -> np.ndarray:
    """Mean position of the four non-thumb MCP joints.

    Non-finite MCPs are skipped; the result is NaN only if all four are.
    """
    points = frame.landmarks[list(PALM_MCP_LANDMARKS)]
    finite = points[np.isfinite(points).all(axis=1)]
    if len(finite) == 0:
        return np.full(3, np.nan)
    return finite.mean(axis=0)


def is_finite(point: np.ndarray) -> bool:
    return bool(np.isfinite(point).all())
