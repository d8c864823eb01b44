"""Confidence aggregation over joint angle samples.

Combines per-joint geometric confidences into one session-facing figure,
either as a plain average of valid samples or blended with hand-detection
and positional stability. Every output is in [0, 1]; with no valid sample
the output is 0.0.
"""

import math
from enum import Enum
from typing import Iterable, Mapping, Optional

import numpy as np

from handrom.types import AngleSample, HandLandmarkIndex, LandmarkFrame

DEFAULT_WEIGHTS = {"angle": 0.6, "detection": 0.2, "position": 0.2}


class ConfidenceLevel(float, Enum):
    """Named confidence thresholds."""

    HIGH = 0.8
    MEDIUM = 0.6
    LOW = 0.4
    MIN_ACCEPTABLE = 0.3


def classify_confidence(value: float) -> Optional[ConfidenceLevel]:
    """Highest level reached by ``value``, or None below MIN_ACCEPTABLE."""
    for level in (ConfidenceLevel.HIGH, ConfidenceLevel.MEDIUM, ConfidenceLevel.LOW, ConfidenceLevel.MIN_ACCEPTABLE):
        if value >= level.value:
            return level
    return None


def _clamp01(value: float) -> float:
    if not math.isfinite(value):
        return 0.0
    return min(1.0, max(0.0, value))


def average_confidence(samples: Iterable[AngleSample]) -> float:
    """Mean confidence of the valid samples, rounded to two decimals.

    Returns 0.0 when no sample is valid.
    """
    confidences = [s.confidence for s in samples if s.is_valid]
    if not confidences:
        return 0.0
    return round(_clamp01(sum(confidences) / len(confidences)), 2)


def blended_confidence(
    samples: Iterable[AngleSample],
    detection_stability: float = 1.0,
    position_stability: float = 1.0,
    weights: Optional[Mapping[str, float]] = None,
) -> float:
    """Weighted blend of angle, detection and position confidence.

    Args:
        samples: Angle samples of one frame.
        detection_stability: Share of recent frames with a detected hand, [0, 1].
        position_stability: Positional stability from ``position_stability``, [0, 1].
        weights: Mapping with "angle", "detection" and "position" weights.
            Normalized by their sum. Defaults to 0.6 / 0.2 / 0.2.

    Returns:
        Blended confidence in [0, 1], or 0.0 when no sample is valid.

    Raises:
        ValueError: If the weights are negative or sum to zero.
    """
    samples = list(samples)
    if not any(s.is_valid for s in samples):
        return 0.0

    w = dict(DEFAULT_WEIGHTS)
    if weights is not None:
        w.update(weights)
    total = w["angle"] + w["detection"] + w["position"]
    if min(w["angle"], w["detection"], w["position"]) < 0 or total <= 0:
        raise ValueError(f"Invalid confidence weights: {w}")

    blended = (
        w["angle"] * average_confidence(samples)
        + w["detection"] * _clamp01(detection_stability)
        + w["position"] * _clamp01(position_stability)
    ) / total
    return round(_clamp01(blended), 2)


def position_stability(
    previous: Optional[LandmarkFrame],
    current: LandmarkFrame,
    tolerance: float = 0.05,
) -> float:
    """Stability of the wrist position between two consecutive frames.

    1.0 when the wrist did not move (or there is no previous frame), falling
    linearly to 0.0 at a displacement of ``tolerance``.
    """
    if previous is None:
        return 1.0
    prev_wrist = previous.point(HandLandmarkIndex.WRIST)
    curr_wrist = current.point(HandLandmarkIndex.WRIST)
    if not (np.isfinite(prev_wrist).all() and np.isfinite(curr_wrist).all()):
        return 0.0
    displacement = float(np.linalg.norm(curr_wrist - prev_wrist))
    return _clamp01(1.0 - displacement / tolerance)


__all__ = [
    "DEFAULT_WEIGHTS",
    "ConfidenceLevel",
    "classify_confidence",
    "average_confidence",
    "blended_confidence",
    "position_stability",
]
