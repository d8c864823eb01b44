"""Landmark frame validation.

Screens detector output before any geometry runs. `validate` never raises;
`ensure_valid` turns a rejection into `InvalidFrameError` for callers that
require a valid frame.
"""

import logging
from typing import Any, Optional

import numpy as np

from handrom.types import NUM_LANDMARKS, REQUIRED_LANDMARKS

logger = logging.getLogger(__name__)


class InvalidFrameError(ValueError):
    """Raised when angles are computed on a frame that fails validation.

    Attributes:
        reason: Human-readable rejection reason.
    """

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"Invalid landmark frame: {reason}")


def rejection_reason(frame: Any) -> Optional[str]:
    """Why a frame would be rejected, or None if it is valid."""
    landmarks = getattr(frame, "landmarks", None)
    if landmarks is None:
        return "no landmarks"
    try:
        arr = np.asarray(landmarks, dtype=np.float64)
    except (TypeError, ValueError):
        return "landmarks are not numeric"
    if arr.ndim != 2 or arr.shape[1] != 3:
        return f"landmarks have shape {arr.shape}, expected ({NUM_LANDMARKS}, 3)"
    if arr.shape[0] != NUM_LANDMARKS:
        return f"expected {NUM_LANDMARKS} landmarks, got {arr.shape[0]}"
    for index in REQUIRED_LANDMARKS:
        if not np.isfinite(arr[index]).all():
            return f"required landmark {index} is not finite"
    return None


def validate(frame: Any) -> bool:
    """Check whether a frame is safe to compute angles on.

    Args:
        frame: LandmarkFrame (or any object with a ``landmarks`` array).

    Returns:
        True iff the frame holds exactly 21 landmarks and the wrist, thumb
        CMC and index/middle/pinky MCP landmarks are finite.
    """
    reason = rejection_reason(frame)
    if reason is not None:
        logger.debug("Rejected landmark frame: %s", reason)
        return False
    return True


def ensure_valid(frame: Any) -> None:
    """Raise InvalidFrameError if the frame fails validation."""
    reason = rejection_reason(frame)
    if reason is not None:
        raise InvalidFrameError(reason)
