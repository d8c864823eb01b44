"""Joint angle calculation for wrist and thumb.

Pure functions over a validated LandmarkFrame. Degenerate or partially
non-finite geometry never raises; it degrades to zero / invalid samples.
Calling an entry point with a frame that fails validation raises
InvalidFrameError.

Wrist angles are computed by a named, versioned algorithm looked up in a
registry, so alternative heuristics can coexist behind one interface.

Example:
    >>> from handrom.calculator import compute_wrist_angles, compute_thumb_angles
    >>> wrist = compute_wrist_angles(frame)
    >>> wrist.palmar_flexion.angle
    42.17
    >>> thumb = compute_thumb_angles(frame)
"""

import logging
import math
from abc import ABC, abstractmethod
from enum import Enum
from typing import Dict, List, Optional, Tuple

import numpy as np

from handrom.config import AngleConfig
from handrom.geometry import angle_between_vectors, dot, is_finite, magnitude, palm_center, vector
from handrom.types import (
    AngleSample,
    HandLandmarkIndex,
    LandmarkFrame,
    ThumbAngleSet,
    WristAngleSet,
)
from handrom.validator import ensure_valid

logger = logging.getLogger(__name__)

# Image y grows downward, so "up" along the forearm axis is -y.
VERTICAL_REFERENCE = np.array([0.0, -1.0, 0.0])

_DEFAULT_ANGLE_CONFIG = AngleConfig()


def _config(config: Optional[AngleConfig]) -> AngleConfig:
    return config if config is not None else _DEFAULT_ANGLE_CONFIG


# =============================================================================
# Three-point angle
# =============================================================================


def _three_point(
    vertex: np.ndarray,
    p1: np.ndarray,
    p2: np.ndarray,
    config: AngleConfig,
) -> Optional[Tuple[float, float]]:
    """Raw (angle, confidence) at vertex, or None for degenerate input."""
    v1 = vector(vertex, p1)
    v2 = vector(vertex, p2)
    if not (is_finite(v1) and is_finite(v2)):
        return None
    m1, m2 = magnitude(v1), magnitude(v2)
    if m1 < config.degenerate_epsilon or m2 < config.degenerate_epsilon:
        return None
    # Coincident end points carry no angle information
    if magnitude(vector(p1, p2)) < config.degenerate_epsilon:
        return None
    cos_angle = max(-1.0, min(1.0, dot(v1, v2) / (m1 * m2)))
    angle = math.degrees(math.acos(cos_angle))
    confidence = min(1.0, min(m1, m2) / config.reference_length)
    return angle, confidence


def angle_between(
    vertex: np.ndarray,
    p1: np.ndarray,
    p2: np.ndarray,
    config: Optional[AngleConfig] = None,
) -> AngleSample:
    """Angle at ``vertex`` formed by ``p1`` and ``p2``.

    Confidence grows with the shorter of the two segments and saturates at
    ``config.reference_length``.

    Args:
        vertex: Vertex point (3,).
        p1: First point (3,).
        p2: Second point (3,).
        config: Angle constants. Defaults to AngleConfig().

    Returns:
        AngleSample with angle in [0, 180]. Coincident or non-finite points
        give a zero / invalid sample.
    """
    config = _config(config)
    raw = _three_point(vertex, p1, p2, config)
    if raw is None:
        logger.debug("Degenerate three-point angle")
        return AngleSample.invalid()
    angle, confidence = raw
    return AngleSample.measured(angle, confidence, config.min_acceptable)


# =============================================================================
# Wrist geometry helpers
# =============================================================================


class DeviationDirection(str, Enum):
    ULNAR = "ulnar"
    RADIAL = "radial"
    NONE = "none"


def resolve_deviation_direction(wrist_to_palm_x: float, epsilon: float = 0.0) -> DeviationDirection:
    """Map the horizontal wrist-to-palm offset to a deviation direction.

    Palm center left of the wrist (negative offset) is ulnar deviation and
    right of it is radial, for left and right hands alike. Handedness is
    not consulted; a per-hand mirror would go here.
    """
    if not math.isfinite(wrist_to_palm_x) or abs(wrist_to_palm_x) <= epsilon:
        return DeviationDirection.NONE
    return DeviationDirection.ULNAR if wrist_to_palm_x < 0 else DeviationDirection.RADIAL


def _mcp_stats(frame: LandmarkFrame) -> Tuple[float, float]:
    """Mean y and x over the finite non-thumb MCP landmarks."""
    center = palm_center(frame)
    return float(center[1]), float(center[0])


def wrist_confidence(frame: LandmarkFrame, config: Optional[AngleConfig] = None) -> float:
    """Geometric confidence of wrist angles: wrist-to-palm distance vs. reference length."""
    config = _config(config)
    distance = magnitude(vector(frame.point(HandLandmarkIndex.WRIST), palm_center(frame)))
    if not math.isfinite(distance):
        return 0.0
    return min(1.0, distance / config.reference_length)


def _flexion(frame: LandmarkFrame, config: AngleConfig, palmar: bool) -> float:
    wrist = frame.point(HandLandmarkIndex.WRIST)
    avg_mcp_y, palm_center_x = _mcp_stats(frame)
    sign = 1.0 if palmar else -1.0

    y_diff = sign * (avg_mcp_y - wrist[1])
    if not math.isfinite(y_diff) or y_diff <= config.flexion_epsilon:
        return 0.0

    horizontal = max(abs(palm_center_x - wrist[0]), config.min_horizontal_distance)
    angle = math.degrees(math.atan2(y_diff, horizontal))

    tip = frame.point(HandLandmarkIndex.MIDDLE_FINGER_TIP)
    if is_finite(tip):
        tip_deviation = sign * (tip[1] - avg_mcp_y)
        if tip_deviation > config.tip_deviation_epsilon:
            coefficient = config.palmar_tip_coefficient if palmar else config.dorsal_tip_coefficient
            angle += tip_deviation * coefficient
    else:
        logger.debug("Middle fingertip not finite, skipping fingertip correction")

    angle = max(angle, 0.0)
    if config.max_flexion_angle is not None:
        angle = min(angle, config.max_flexion_angle)
    return angle


def deviation_angle(frame: LandmarkFrame, config: Optional[AngleConfig] = None) -> float:
    """Unsigned ulnar/radial deviation in degrees.

    Angle between the palm-to-wrist vector and the vertical reference,
    remapped so that a hand pointing straight up reads 0.
    """
    config = _config(config)
    palm_to_wrist = vector(palm_center(frame), frame.point(HandLandmarkIndex.WRIST))
    if not is_finite(palm_to_wrist) or magnitude(palm_to_wrist) < config.degenerate_epsilon:
        return 0.0
    raw = angle_between_vectors(palm_to_wrist, VERTICAL_REFERENCE, config.degenerate_epsilon)
    return 180.0 - raw


def _deviation_samples(
    frame: LandmarkFrame,
    config: AngleConfig,
    confidence: float,
) -> Tuple[AngleSample, AngleSample]:
    wrist_to_palm = vector(frame.point(HandLandmarkIndex.WRIST), palm_center(frame))
    direction = resolve_deviation_direction(float(wrist_to_palm[0]), config.degenerate_epsilon)
    angle = deviation_angle(frame, config) if direction is not DeviationDirection.NONE else 0.0

    active = AngleSample.measured(angle, confidence, config.min_acceptable)
    inactive = AngleSample.measured(0.0, confidence, config.min_acceptable)
    if direction is DeviationDirection.ULNAR:
        return active, inactive
    if direction is DeviationDirection.RADIAL:
        return inactive, active
    return inactive, inactive


# =============================================================================
# Wrist algorithms
# =============================================================================


class WristAngleAlgorithm(ABC):
    """Interface for wrist angle heuristics.

    Subclasses set ``name`` and ``version`` and implement ``compute``.
    Implementations may assume the frame passed validation.
    """

    name: str = ""
    version: int = 0

    @abstractmethod
    def compute(self, frame: LandmarkFrame, config: AngleConfig) -> WristAngleSet:
        ...

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r}, version={self.version})"


class DirectionalWristAlgorithm(WristAngleAlgorithm):
    """Direction-specific flexion with fingertip correction (default).

    Palmar and dorsal flexion are computed separately from the vertical
    offset between the wrist and the mean MCP height; only the direction the
    hand is actually bent in yields a non-zero angle.
    """

    name = "directional"
    version = 2

    def compute(self, frame: LandmarkFrame, config: AngleConfig) -> WristAngleSet:
        confidence = wrist_confidence(frame, config)
        palmar = AngleSample.measured(_flexion(frame, config, palmar=True), confidence, config.min_acceptable)
        dorsal = AngleSample.measured(_flexion(frame, config, palmar=False), confidence, config.min_acceptable)
        ulnar, radial = _deviation_samples(frame, config, confidence)
        return WristAngleSet(
            palmar_flexion=palmar,
            dorsal_flexion=dorsal,
            ulnar_deviation=ulnar,
            radial_deviation=radial,
        )


class PlanarWristAlgorithm(WristAngleAlgorithm):
    """Flexion from the inclination of the wrist-to-middle-MCP segment.

    Magnitude is asin(|dy| / |wrist->middle MCP|) clamped to [0, 90]; the
    direction is the sign of the wrist-to-palm vertical offset.
    """

    name = "planar"
    version = 1

    def compute(self, frame: LandmarkFrame, config: AngleConfig) -> WristAngleSet:
        confidence = wrist_confidence(frame, config)
        wrist = frame.point(HandLandmarkIndex.WRIST)
        to_middle = vector(wrist, frame.point(HandLandmarkIndex.MIDDLE_FINGER_MCP))
        length = magnitude(to_middle)

        angle = 0.0
        if length >= config.degenerate_epsilon:
            ratio = min(1.0, abs(float(to_middle[1])) / length)
            angle = min(max(math.degrees(math.asin(ratio)), 0.0), 90.0)
            if config.max_flexion_angle is not None:
                angle = min(angle, config.max_flexion_angle)

        wrist_to_palm_y = float(palm_center(frame)[1] - wrist[1])
        zero = AngleSample.measured(0.0, confidence, config.min_acceptable)
        palmar = dorsal = zero
        if wrist_to_palm_y > 0:
            palmar = AngleSample.measured(angle, confidence, config.min_acceptable)
        elif wrist_to_palm_y < 0:
            dorsal = AngleSample.measured(angle, confidence, config.min_acceptable)

        ulnar, radial = _deviation_samples(frame, config, confidence)
        return WristAngleSet(
            palmar_flexion=palmar,
            dorsal_flexion=dorsal,
            ulnar_deviation=ulnar,
            radial_deviation=radial,
        )


_WRIST_ALGORITHMS: Dict[str, WristAngleAlgorithm] = {}


def register_wrist_algorithm(algorithm: WristAngleAlgorithm) -> None:
    """Register a wrist algorithm under its ``name``.

    Raises:
        ValueError: If the algorithm has no name or the name is taken.
    """
    if not algorithm.name:
        raise ValueError(f"{algorithm!r} has no name")
    if algorithm.name in _WRIST_ALGORITHMS:
        raise ValueError(f"Wrist algorithm {algorithm.name!r} is already registered")
    _WRIST_ALGORITHMS[algorithm.name] = algorithm


def get_wrist_algorithm(name: str) -> WristAngleAlgorithm:
    """Look up a registered wrist algorithm.

    Raises:
        KeyError: If no algorithm is registered under ``name``.
    """
    try:
        return _WRIST_ALGORITHMS[name]
    except KeyError:
        raise KeyError(
            f"Unknown wrist algorithm: {name!r}. "
            f"Available: {', '.join(available_wrist_algorithms())}"
        ) from None


def available_wrist_algorithms() -> List[str]:
    return sorted(_WRIST_ALGORITHMS)


register_wrist_algorithm(DirectionalWristAlgorithm())
register_wrist_algorithm(PlanarWristAlgorithm())


# =============================================================================
# Entry points
# =============================================================================


def compute_wrist_angles(
    frame: LandmarkFrame,
    config: Optional[AngleConfig] = None,
    algorithm: Optional[WristAngleAlgorithm] = None,
) -> WristAngleSet:
    """Compute the four wrist angles for one frame.

    Args:
        frame: Validated landmark frame.
        config: Angle constants. Defaults to AngleConfig().
        algorithm: Wrist algorithm. Defaults to ``config.wrist_algorithm``.

    Returns:
        WristAngleSet with at most one non-zero angle per axis pair.

    Raises:
        InvalidFrameError: If the frame fails validation.
    """
    ensure_valid(frame)
    config = _config(config)
    if algorithm is None:
        algorithm = get_wrist_algorithm(config.wrist_algorithm)
    return algorithm.compute(frame, config)


def palmar_flexion(frame: LandmarkFrame, config: Optional[AngleConfig] = None) -> AngleSample:
    """Palmar flexion of the directional algorithm."""
    ensure_valid(frame)
    config = _config(config)
    return AngleSample.measured(
        _flexion(frame, config, palmar=True), wrist_confidence(frame, config), config.min_acceptable
    )


def dorsal_flexion(frame: LandmarkFrame, config: Optional[AngleConfig] = None) -> AngleSample:
    """Dorsal flexion of the directional algorithm."""
    ensure_valid(frame)
    config = _config(config)
    return AngleSample.measured(
        _flexion(frame, config, palmar=False), wrist_confidence(frame, config), config.min_acceptable
    )


def ulnar_deviation(frame: LandmarkFrame, config: Optional[AngleConfig] = None) -> AngleSample:
    ensure_valid(frame)
    config = _config(config)
    return _deviation_samples(frame, config, wrist_confidence(frame, config))[0]


def radial_deviation(frame: LandmarkFrame, config: Optional[AngleConfig] = None) -> AngleSample:
    ensure_valid(frame)
    config = _config(config)
    return _deviation_samples(frame, config, wrist_confidence(frame, config))[1]


def _split_around_pivot(
    raw: Optional[Tuple[float, float]],
    pivot: float,
    config: AngleConfig,
) -> Tuple[AngleSample, AngleSample]:
    """Split a raw joint angle into (above-pivot, below-pivot) samples."""
    if raw is None:
        return AngleSample.invalid(), AngleSample.invalid()
    angle, confidence = raw
    above = max(angle - pivot, 0.0)
    below = max(pivot - angle, 0.0)
    return (
        AngleSample.measured(above, confidence, config.min_acceptable),
        AngleSample.measured(below, confidence, config.min_acceptable),
    )


def compute_thumb_angles(frame: LandmarkFrame, config: Optional[AngleConfig] = None) -> ThumbAngleSet:
    """Compute the four thumb angles for one frame.

    Flexion/extension come from the angle at the thumb MCP between CMC and
    IP, split around ``config.thumb_flexion_pivot``. Abduction/adduction
    come from the angle at the thumb CMC between the wrist and the index
    MCP, split around ``config.thumb_abduction_pivot``.

    Raises:
        InvalidFrameError: If the frame fails validation.
    """
    ensure_valid(frame)
    config = _config(config)

    mcp_raw = _three_point(
        frame.point(HandLandmarkIndex.THUMB_MCP),
        frame.point(HandLandmarkIndex.THUMB_CMC),
        frame.point(HandLandmarkIndex.THUMB_IP),
        config,
    )
    cmc_raw = _three_point(
        frame.point(HandLandmarkIndex.THUMB_CMC),
        frame.point(HandLandmarkIndex.WRIST),
        frame.point(HandLandmarkIndex.INDEX_FINGER_MCP),
        config,
    )
    if mcp_raw is None:
        logger.debug("Thumb MCP angle degenerate")
    if cmc_raw is None:
        logger.debug("Thumb CMC angle degenerate")

    flexion, extension = _split_around_pivot(mcp_raw, config.thumb_flexion_pivot, config)
    abduction, adduction = _split_around_pivot(cmc_raw, config.thumb_abduction_pivot, config)
    return ThumbAngleSet(
        flexion=flexion,
        extension=extension,
        abduction=abduction,
        adduction=adduction,
    )


__all__ = [
    "VERTICAL_REFERENCE",
    "DeviationDirection",
    "WristAngleAlgorithm",
    "DirectionalWristAlgorithm",
    "PlanarWristAlgorithm",
    "angle_between",
    "resolve_deviation_direction",
    "wrist_confidence",
    "deviation_angle",
    "register_wrist_algorithm",
    "get_wrist_algorithm",
    "available_wrist_algorithms",
    "compute_wrist_angles",
    "compute_thumb_angles",
    "palmar_flexion",
    "dorsal_flexion",
    "ulnar_deviation",
    "radial_deviation",
]
