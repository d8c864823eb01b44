"""handrom - Wrist and thumb range-of-motion from hand landmarks.

Turns one detected hand pose (21 MediaPipe-style landmarks) into four wrist
angles and four thumb angles with confidence, and smooths them across a
measurement session.

Quick Start:
    >>> from handrom import LandmarkFrame, process_frame
    >>> frame = LandmarkFrame.from_points(hand_landmarks, handedness="Right")
    >>> motion = process_frame(frame)
    >>> print(f"Palmar flexion: {motion.wrist.palmar_flexion.angle:.1f}")
"""

__version__ = "0.1.0"

from handrom.types import (
    ALL_CHANNELS,
    AngleSample,
    HandLandmarkIndex,
    Handedness,
    Landmark,
    LandmarkFrame,
    MotionAngles,
    ThumbAngleSet,
    WristAngleSet,
)
from handrom.config import (
    AngleConfig,
    ConfidenceConfig,
    RomConfig,
    SessionConfig,
    SmoothingConfig,
    default_config,
)
from handrom.validator import InvalidFrameError, validate
from handrom.calculator import (
    WristAngleAlgorithm,
    angle_between,
    available_wrist_algorithms,
    compute_thumb_angles,
    compute_wrist_angles,
    get_wrist_algorithm,
    register_wrist_algorithm,
)
from handrom.confidence import (
    ConfidenceLevel,
    average_confidence,
    blended_confidence,
    position_stability,
)
from handrom.smoothing import AngleSmoother, SmoothingChannel
from handrom.pipeline import FrameProcessor, FrameResult, process_frame
from handrom.session import MeasurementSession, MeasurementStep, SessionSummary, achievement
from handrom.persistence import load_frames, load_summary, save_summary

__all__ = [
    "__version__",
    "ALL_CHANNELS",
    "AngleSample",
    "HandLandmarkIndex",
    "Handedness",
    "Landmark",
    "LandmarkFrame",
    "MotionAngles",
    "ThumbAngleSet",
    "WristAngleSet",
    "AngleConfig",
    "ConfidenceConfig",
    "RomConfig",
    "SessionConfig",
    "SmoothingConfig",
    "default_config",
    "InvalidFrameError",
    "validate",
    "WristAngleAlgorithm",
    "angle_between",
    "available_wrist_algorithms",
    "compute_thumb_angles",
    "compute_wrist_angles",
    "get_wrist_algorithm",
    "register_wrist_algorithm",
    "ConfidenceLevel",
    "average_confidence",
    "blended_confidence",
    "position_stability",
    "AngleSmoother",
    "SmoothingChannel",
    "FrameProcessor",
    "FrameResult",
    "process_frame",
    "MeasurementSession",
    "MeasurementStep",
    "SessionSummary",
    "achievement",
    "load_frames",
    "load_summary",
    "save_summary",
]
