"""Per-frame processing: validate, calculate, aggregate, smooth.

`process_frame` is the stateless core. `FrameProcessor` adds the one piece
of state a session needs, an AngleSmoother, and resets it whenever the hand
is lost.

Example:
    >>> from handrom.pipeline import FrameProcessor, process_frame
    >>> motion = process_frame(frame)
    >>> motion.wrist.palmar_flexion.angle
    >>>
    >>> processor = FrameProcessor()
    >>> result = processor.process(frame)
    >>> result.smoothed.wrist.palmar_flexion.angle
"""

import logging
from dataclasses import dataclass
from typing import Optional

from handrom.calculator import (
    WristAngleAlgorithm,
    compute_thumb_angles,
    compute_wrist_angles,
    get_wrist_algorithm,
)
from handrom.config import AngleConfig, RomConfig
from handrom.confidence import average_confidence
from handrom.smoothing import AngleSmoother
from handrom.types import LandmarkFrame, MotionAngles
from handrom.validator import rejection_reason

logger = logging.getLogger(__name__)


def process_frame(
    frame: Optional[LandmarkFrame],
    config: Optional[AngleConfig] = None,
    algorithm: Optional[WristAngleAlgorithm] = None,
) -> MotionAngles:
    """Compute wrist and thumb angles for one frame.

    Invalid frames (and None) are treated as "no hand detected": the result
    is fully zeroed with overall confidence 0.0.

    Args:
        frame: Detector output, or None when no hand was detected.
        config: Angle constants. Defaults to AngleConfig().
        algorithm: Wrist algorithm. Defaults to ``config.wrist_algorithm``.

    Returns:
        MotionAngles with overall confidence = average valid-sample confidence.
    """
    if frame is None:
        return MotionAngles.zero()
    reason = rejection_reason(frame)
    if reason is not None:
        logger.debug("Frame at %.0f ms treated as no hand: %s", getattr(frame, "timestamp_ms", 0.0), reason)
        return MotionAngles.zero()

    wrist = compute_wrist_angles(frame, config, algorithm)
    thumb = compute_thumb_angles(frame, config)
    overall = average_confidence(s for _, s in list(wrist.items()) + list(thumb.items()))
    return MotionAngles(wrist=wrist, thumb=thumb, overall_confidence=overall)


@dataclass(frozen=True)
class FrameResult:
    """Output of FrameProcessor.process.

    Attributes:
        raw: Unsmoothed angles of this frame.
        smoothed: Moving-average angles, or None when smoothing is disabled
            or the frame was invalid.
        frame_valid: Whether the frame passed validation.
    """

    raw: MotionAngles
    smoothed: Optional[MotionAngles]
    frame_valid: bool

    @property
    def angles(self) -> MotionAngles:
        """Smoothed angles when available, raw otherwise."""
        return self.smoothed if self.smoothed is not None else self.raw


class FrameProcessor:
    """Stateful frame pipeline for one measurement session.

    Args:
        config: Complete configuration. Defaults to RomConfig().
        algorithm: Wrist algorithm override. Defaults to
            ``config.angle.wrist_algorithm``.

    Raises:
        KeyError: If the configured wrist algorithm is unknown.
    """

    def __init__(
        self,
        config: Optional[RomConfig] = None,
        algorithm: Optional[WristAngleAlgorithm] = None,
    ):
        self._config = config if config is not None else RomConfig()
        self._algorithm = algorithm or get_wrist_algorithm(self._config.angle.wrist_algorithm)
        self._smoother: Optional[AngleSmoother] = None
        if self._config.smoothing.enabled:
            self._smoother = AngleSmoother(self._config.smoothing.max_history)

    @property
    def config(self) -> RomConfig:
        return self._config

    @property
    def algorithm(self) -> WristAngleAlgorithm:
        return self._algorithm

    @property
    def smoother(self) -> Optional[AngleSmoother]:
        return self._smoother

    def process(self, frame: Optional[LandmarkFrame]) -> FrameResult:
        """Process one frame (None when no hand was detected)."""
        frame_valid = frame is not None and rejection_reason(frame) is None
        raw = process_frame(frame, self._config.angle, self._algorithm)

        if not frame_valid:
            self.reset()
            return FrameResult(raw=raw, smoothed=None, frame_valid=False)

        smoothed = None
        if self._smoother is not None:
            values = self._smoother.push_angles(raw)
            smoothed = MotionAngles.from_channels(
                values, raw.overall_confidence, self._config.angle.min_acceptable
            )
        return FrameResult(raw=raw, smoothed=smoothed, frame_valid=True)

    def reset(self) -> None:
        """Clear smoothing history."""
        if self._smoother is not None:
            self._smoother.reset()
