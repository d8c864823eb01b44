"""Measurement session: lifecycle, confidence gating and summary.

A session owns one FrameProcessor (and therefore one smoother). Each frame
is scored with a blended confidence; only samples at or above the
configured threshold contribute to the summary.

Example:
    >>> session = MeasurementSession(step="palmar-flexion")
    >>> session.start()
    >>> for frame in frames:
    ...     session.add_frame(frame)
    >>> summary = session.stop()
    >>> summary.achievement
    87.5
"""

from __future__ import annotations

import logging
import math
from collections import deque
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Deque, Dict, List, Optional, Union

from handrom.calculator import WristAngleAlgorithm
from handrom.config import RomConfig
from handrom.confidence import blended_confidence, position_stability
from handrom.pipeline import FrameProcessor
from handrom.types import ALL_CHANNELS, Handedness, LandmarkFrame, MotionAngles

logger = logging.getLogger(__name__)


class MeasurementStep(str, Enum):
    """Guided wrist movements with their clinical target angles."""

    PALMAR_FLEXION = "palmar-flexion"
    DORSAL_FLEXION = "dorsal-flexion"
    ULNAR_DEVIATION = "ulnar-deviation"
    RADIAL_DEVIATION = "radial-deviation"

    @classmethod
    def from_string(cls, value: Union[str, "MeasurementStep"]) -> "MeasurementStep":
        """Parse a step id such as "palmar-flexion" or "PALMAR_FLEXION".

        Raises:
            ValueError: If the step is unknown.
        """
        if isinstance(value, cls):
            return value
        normalized = str(value).strip().lower().replace("_", "-")
        try:
            return cls(normalized)
        except ValueError:
            valid = ", ".join(s.value for s in cls)
            raise ValueError(f"Unknown measurement step: {value!r}. Valid: {valid}") from None

    @property
    def target_angle(self) -> float:
        return STEP_TARGET_ANGLES[self]

    @property
    def channel(self) -> str:
        return "wrist." + self.value.replace("-", "_")


STEP_TARGET_ANGLES: Dict[MeasurementStep, float] = {
    MeasurementStep.PALMAR_FLEXION: 90.0,
    MeasurementStep.DORSAL_FLEXION: 70.0,
    MeasurementStep.ULNAR_DEVIATION: 45.0,
    MeasurementStep.RADIAL_DEVIATION: 45.0,
}


def achievement(angle: float, step: Union[str, MeasurementStep]) -> float:
    """Percentage of the step's target angle reached, capped at 100."""
    step = MeasurementStep.from_string(step)
    if not math.isfinite(angle) or angle <= 0:
        return 0.0
    return round(min(100.0, angle / step.target_angle * 100.0), 1)


@dataclass(frozen=True)
class SessionSample:
    """One processed frame of a session.

    Attributes:
        timestamp_ms: Frame timestamp.
        angles: Smoothed angles when smoothing is enabled, raw otherwise.
        overall_confidence: Blended confidence.
        detection_stability: Share of recent frames with a hand.
        position_stability: Wrist stability vs. the previous hand frame.
        hand_detected: Whether a usable hand was present.
        accepted: Whether the sample passed the confidence threshold.
    """

    timestamp_ms: float
    angles: MotionAngles
    overall_confidence: float
    detection_stability: float
    position_stability: float
    hand_detected: bool
    accepted: bool


@dataclass
class ChannelStats:
    """Statistics of one angle channel over accepted samples."""

    mean: float = 0.0
    std: float = 0.0
    peak: float = 0.0

    @classmethod
    def from_values(cls, values: List[float]) -> "ChannelStats":
        if not values:
            return cls()
        mean = sum(values) / len(values)
        variance = sum((v - mean) ** 2 for v in values) / len(values)
        return cls(mean=round(mean, 2), std=round(math.sqrt(variance), 2), peak=round(max(values), 2))

    def to_dict(self) -> Dict[str, float]:
        return {"mean": self.mean, "std": self.std, "peak": self.peak}


@dataclass
class SessionSummary:
    """Result of a measurement session.

    Attributes:
        total_frames: Frames added, including frames without a hand.
        detected_frames: Frames with a usable hand.
        accepted_samples: Frames whose confidence passed the threshold.
        channels: Statistics per angle channel name.
        accuracy_score: Mean blended confidence of accepted samples.
        duration_s: Last minus first frame timestamp, in seconds.
        step: Measurement step id, if any.
        step_angle: Peak angle of the step's channel, if a step is set.
        achievement: Percentage of the step target reached, if a step is set.
        algorithm: Wrist algorithm name and version.
    """

    total_frames: int = 0
    detected_frames: int = 0
    accepted_samples: int = 0
    channels: Dict[str, ChannelStats] = field(
        default_factory=lambda: {c: ChannelStats() for c in ALL_CHANNELS}
    )
    accuracy_score: float = 0.0
    duration_s: float = 0.0
    step: Optional[str] = None
    step_angle: Optional[float] = None
    achievement: Optional[float] = None
    algorithm: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total_frames": self.total_frames,
            "detected_frames": self.detected_frames,
            "accepted_samples": self.accepted_samples,
            "channels": {name: stats.to_dict() for name, stats in self.channels.items()},
            "accuracy_score": self.accuracy_score,
            "duration_s": self.duration_s,
            "step": self.step,
            "step_angle": self.step_angle,
            "achievement": self.achievement,
            "algorithm": self.algorithm,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SessionSummary":
        channels = {
            name: ChannelStats(**stats) for name, stats in data.get("channels", {}).items()
        }
        return cls(
            total_frames=data.get("total_frames", 0),
            detected_frames=data.get("detected_frames", 0),
            accepted_samples=data.get("accepted_samples", 0),
            channels=channels,
            accuracy_score=data.get("accuracy_score", 0.0),
            duration_s=data.get("duration_s", 0.0),
            step=data.get("step"),
            step_angle=data.get("step_angle"),
            achievement=data.get("achievement"),
            algorithm=data.get("algorithm", ""),
        )


class MeasurementSession:
    """Confidence-gated measurement over a stream of landmark frames.

    Args:
        config: Complete configuration. Defaults to RomConfig().
        step: Optional measurement step ("palmar-flexion", ...).
        target_hand: "left", "right" or "auto". Frames of the other hand
            count as frames without a hand.
        algorithm: Wrist algorithm override.

    Raises:
        ValueError: If ``step`` or ``target_hand`` is unknown.
        KeyError: If the configured wrist algorithm is unknown.
    """

    def __init__(
        self,
        config: Optional[RomConfig] = None,
        step: Optional[Union[str, MeasurementStep]] = None,
        target_hand: str = "auto",
        algorithm: Optional[WristAngleAlgorithm] = None,
    ):
        self._config = config if config is not None else RomConfig()
        self._step = MeasurementStep.from_string(step) if step is not None else None

        target_hand = str(target_hand).lower()
        if target_hand not in ("auto", Handedness.LEFT.value, Handedness.RIGHT.value):
            raise ValueError(f"target_hand must be 'auto', 'left' or 'right', got {target_hand!r}")
        self._target_hand = None if target_hand == "auto" else Handedness(target_hand)

        self._processor = FrameProcessor(self._config, algorithm)
        self._active = False
        self._detections: Deque[bool] = deque(maxlen=self._config.confidence.detection_window)
        self._previous_frame: Optional[LandmarkFrame] = None
        self._samples: List[SessionSample] = []
        self._first_ts: Optional[float] = None
        self._last_ts: Optional[float] = None
        self._total_frames = 0
        self._mismatch_logged = False

    @property
    def is_active(self) -> bool:
        return self._active

    @property
    def step(self) -> Optional[MeasurementStep]:
        return self._step

    @property
    def samples(self) -> List[SessionSample]:
        """Accepted and rejected samples of frames that had a hand."""
        return list(self._samples)

    def start(self) -> None:
        """Begin a new measurement, discarding previous state."""
        self._clear()
        self._active = True
        logger.info(
            "Measurement session started (step=%s, hand=%s, algorithm=%s v%d)",
            self._step.value if self._step else None,
            self._target_hand.value if self._target_hand else "auto",
            self._processor.algorithm.name,
            self._processor.algorithm.version,
        )

    def reset(self) -> None:
        """Discard collected samples and smoothing history; stay active."""
        self._clear()
        logger.debug("Measurement session reset")

    def stop(self) -> SessionSummary:
        """End the measurement and summarize it."""
        self._active = False
        self._processor.reset()
        summary = self.summary()
        logger.info(
            "Measurement session stopped: %d frames, %d accepted, accuracy=%.2f",
            summary.total_frames,
            summary.accepted_samples,
            summary.accuracy_score,
        )
        return summary

    def _clear(self) -> None:
        self._processor.reset()
        self._detections.clear()
        self._previous_frame = None
        self._samples = []
        self._first_ts = None
        self._last_ts = None
        self._total_frames = 0
        self._mismatch_logged = False

    def _matches_target(self, frame: LandmarkFrame) -> bool:
        if self._target_hand is None or frame.handedness is self._target_hand:
            return True
        if not self._mismatch_logged:
            logger.warning(
                "Ignoring %s hand frames, session targets the %s hand",
                frame.handedness.value,
                self._target_hand.value,
            )
            self._mismatch_logged = True
        return False

    def add_frame(self, frame: Optional[LandmarkFrame]) -> Optional[SessionSample]:
        """Process one detector frame.

        Args:
            frame: Landmark frame, or None when no hand was detected.

        Returns:
            SessionSample for frames with a usable hand, None otherwise.

        Raises:
            RuntimeError: If the session is not active.
        """
        if not self._active:
            raise RuntimeError("Measurement session is not active; call start() first")

        self._total_frames += 1
        if frame is not None:
            if self._first_ts is None:
                self._first_ts = frame.timestamp_ms
            self._last_ts = frame.timestamp_ms
            if not self._matches_target(frame):
                frame = None

        result = self._processor.process(frame)
        self._detections.append(result.frame_valid)

        if not result.frame_valid:
            self._previous_frame = None
            return None

        detection = sum(self._detections) / len(self._detections)
        position = position_stability(
            self._previous_frame, frame, self._config.confidence.position_tolerance
        )
        self._previous_frame = frame

        overall = blended_confidence(
            (s for _, s in result.raw.samples()),
            detection_stability=detection,
            position_stability=position,
            weights=self._config.confidence.weights,
        )
        sample = SessionSample(
            timestamp_ms=frame.timestamp_ms,
            angles=result.angles,
            overall_confidence=overall,
            detection_stability=round(detection, 2),
            position_stability=round(position, 2),
            hand_detected=True,
            accepted=overall >= self._config.session.confidence_threshold,
        )
        self._samples.append(sample)
        return sample

    def summary(self) -> SessionSummary:
        """Summary of the samples collected so far."""
        accepted = [s for s in self._samples if s.accepted]
        channels = {
            channel: ChannelStats.from_values(
                [s.angles.channel_values()[channel] for s in accepted]
            )
            for channel in ALL_CHANNELS
        }

        accuracy = 0.0
        if accepted:
            accuracy = round(sum(s.overall_confidence for s in accepted) / len(accepted), 2)

        duration = 0.0
        if self._first_ts is not None and self._last_ts is not None:
            duration = round(max(self._last_ts - self._first_ts, 0.0) / 1000.0, 3)

        step_angle = None
        step_achievement = None
        if self._step is not None:
            step_angle = channels[self._step.channel].peak
            step_achievement = achievement(step_angle, self._step)

        algorithm = self._processor.algorithm
        return SessionSummary(
            total_frames=self._total_frames,
            detected_frames=len(self._samples),
            accepted_samples=len(accepted),
            channels=channels,
            accuracy_score=accuracy,
            duration_s=duration,
            step=self._step.value if self._step else None,
            step_angle=step_angle,
            achievement=step_achievement,
            algorithm=f"{algorithm.name}/v{algorithm.version}",
        )
