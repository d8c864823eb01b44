"""Hand range-of-motion domain types.

Landmark frames produced by the external hand detector and the angle
results computed from them. All result types are immutable and created
fresh for every frame.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterator, Mapping, Optional, Sequence, Tuple

import numpy as np


class HandLandmarkIndex:
    """MediaPipe hand landmark indices.

    21 landmarks per hand as defined by MediaPipe Hands.

    Example:
        >>> wrist = frame.landmarks[HandLandmarkIndex.WRIST]
        >>> middle_tip = frame.landmarks[HandLandmarkIndex.MIDDLE_FINGER_TIP]
    """

    WRIST = 0
    THUMB_CMC = 1
    THUMB_MCP = 2
    THUMB_IP = 3
    THUMB_TIP = 4
    INDEX_FINGER_MCP = 5
    INDEX_FINGER_PIP = 6
    INDEX_FINGER_DIP = 7
    INDEX_FINGER_TIP = 8
    MIDDLE_FINGER_MCP = 9
    MIDDLE_FINGER_PIP = 10
    MIDDLE_FINGER_DIP = 11
    MIDDLE_FINGER_TIP = 12
    RING_FINGER_MCP = 13
    RING_FINGER_PIP = 14
    RING_FINGER_DIP = 15
    RING_FINGER_TIP = 16
    PINKY_MCP = 17
    PINKY_PIP = 18
    PINKY_DIP = 19
    PINKY_TIP = 20


NUM_LANDMARKS = 21

# Landmarks that must be finite before any geometry runs.
REQUIRED_LANDMARKS: Tuple[int, ...] = (
    HandLandmarkIndex.WRIST,
    HandLandmarkIndex.THUMB_CMC,
    HandLandmarkIndex.INDEX_FINGER_MCP,
    HandLandmarkIndex.MIDDLE_FINGER_MCP,
    HandLandmarkIndex.PINKY_MCP,
)

# Non-thumb MCP joints; their mean is the palm center.
PALM_MCP_LANDMARKS: Tuple[int, ...] = (
    HandLandmarkIndex.INDEX_FINGER_MCP,
    HandLandmarkIndex.MIDDLE_FINGER_MCP,
    HandLandmarkIndex.RING_FINGER_MCP,
    HandLandmarkIndex.PINKY_MCP,
)


class Handedness(str, Enum):
    """Detected handedness of a landmark frame."""

    LEFT = "left"
    RIGHT = "right"
    UNKNOWN = "unknown"

    @classmethod
    def from_string(cls, value: Optional[str]) -> "Handedness":
        """Parse detector output ("Left", "right", None, ...)."""
        if not value:
            return cls.UNKNOWN
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return cls.UNKNOWN


# Angle channel names, in output order.
WRIST_CHANNELS: Tuple[str, ...] = (
    "wrist.palmar_flexion",
    "wrist.dorsal_flexion",
    "wrist.ulnar_deviation",
    "wrist.radial_deviation",
)
THUMB_CHANNELS: Tuple[str, ...] = (
    "thumb.flexion",
    "thumb.extension",
    "thumb.abduction",
    "thumb.adduction",
)
ALL_CHANNELS: Tuple[str, ...] = WRIST_CHANNELS + THUMB_CHANNELS


@dataclass(frozen=True)
class Landmark:
    """A single normalized 3D landmark.

    Attributes:
        x: Horizontal image coordinate, roughly [0, 1].
        y: Vertical image coordinate, roughly [0, 1], growing downward.
        z: Relative depth (no fixed unit).
    """

    x: float
    y: float
    z: float = 0.0

    @property
    def is_finite(self) -> bool:
        return math.isfinite(self.x) and math.isfinite(self.y) and math.isfinite(self.z)

    def as_array(self) -> np.ndarray:
        return np.array([self.x, self.y, self.z], dtype=np.float64)


def _coerce_point(entry: Any) -> Tuple[float, float, float]:
    """Read (x, y, z) from an object, mapping or sequence. Missing z is 0."""
    if entry is None:
        return (math.nan, math.nan, math.nan)
    if hasattr(entry, "x") and hasattr(entry, "y"):
        return (float(entry.x), float(entry.y), float(getattr(entry, "z", 0.0) or 0.0))
    if isinstance(entry, Mapping):
        return (
            float(entry.get("x", math.nan)),
            float(entry.get("y", math.nan)),
            float(entry.get("z", 0.0) or 0.0),
        )
    if isinstance(entry, (Sequence, np.ndarray)) and not isinstance(entry, str):
        if len(entry) == 2:
            return (float(entry[0]), float(entry[1]), 0.0)
        if len(entry) >= 3:
            return (float(entry[0]), float(entry[1]), float(entry[2]))
    raise ValueError(
        f"Unsupported landmark format {type(entry).__name__!r}; "
        "expected object with x,y[,z], mapping or sequence of 2-3 values."
    )


@dataclass(frozen=True, eq=False)
class LandmarkFrame:
    """One hand detection: ordered landmarks plus handedness and timestamp.

    Landmarks are stored as a read-only float64 array of shape (N, 3).
    N is normally 21; frames with any other count are representable so
    that the validator can reject them.

    Attributes:
        landmarks: Read-only array (N, 3) of x, y, z.
        handedness: Detected hand.
        timestamp_ms: Capture timestamp in milliseconds.
    """

    landmarks: np.ndarray
    handedness: Handedness = Handedness.UNKNOWN
    timestamp_ms: float = 0.0

    def __post_init__(self) -> None:
        arr = np.array(self.landmarks, dtype=np.float64, copy=True)
        if arr.size == 0:
            arr = arr.reshape(0, 3)
        if arr.ndim != 2 or arr.shape[1] != 3:
            raise ValueError(f"landmarks must have shape (N, 3), got {arr.shape}")
        arr.flags.writeable = False
        object.__setattr__(self, "landmarks", arr)
        if not isinstance(self.handedness, Handedness):
            object.__setattr__(self, "handedness", Handedness.from_string(self.handedness))

    @classmethod
    def from_points(
        cls,
        points: Sequence[Any],
        handedness: Any = Handedness.UNKNOWN,
        timestamp_ms: float = 0.0,
    ) -> "LandmarkFrame":
        """Build a frame from detector landmarks.

        Args:
            points: Landmarks as objects with x/y/z attributes (e.g. MediaPipe
                NormalizedLandmark), mappings with x/y/z keys, or sequences.
            handedness: Handedness or string such as "Left".
            timestamp_ms: Capture timestamp in milliseconds.

        Raises:
            ValueError: If a landmark has an unsupported format.
        """
        coords = [_coerce_point(p) for p in points]
        arr = np.array(coords, dtype=np.float64).reshape(len(coords), 3)
        return cls(landmarks=arr, handedness=handedness, timestamp_ms=float(timestamp_ms))

    def __len__(self) -> int:
        return int(self.landmarks.shape[0])

    def point(self, index: int) -> np.ndarray:
        """Landmark coordinates as a (3,) array."""
        return self.landmarks[index]

    def landmark(self, index: int) -> Landmark:
        x, y, z = self.landmarks[index]
        return Landmark(float(x), float(y), float(z))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "landmarks": self.landmarks.tolist(),
            "handedness": self.handedness.value,
            "timestamp_ms": self.timestamp_ms,
        }


@dataclass(frozen=True)
class AngleSample:
    """Result of one joint-angle computation.

    Attributes:
        angle: Angle in degrees, always >= 0.
        confidence: Geometric confidence in [0, 1].
        is_valid: True iff confidence reached the minimum acceptable level.
    """

    angle: float = 0.0
    confidence: float = 0.0
    is_valid: bool = False

    @classmethod
    def invalid(cls) -> "AngleSample":
        """Zero angle, zero confidence (degenerate geometry or no hand)."""
        return cls(angle=0.0, confidence=0.0, is_valid=False)

    @classmethod
    def measured(cls, angle: float, confidence: float, min_acceptable: float) -> "AngleSample":
        """Round to two decimals and derive validity from confidence."""
        if not (math.isfinite(angle) and math.isfinite(confidence)):
            return cls.invalid()
        confidence = min(1.0, max(0.0, confidence))
        return cls(
            angle=round(max(angle, 0.0), 2),
            confidence=round(confidence, 2),
            is_valid=confidence >= min_acceptable,
        )

    def with_angle(self, angle: float) -> "AngleSample":
        """Same confidence and validity, different (non-negative) angle."""
        return AngleSample(angle=round(max(angle, 0.0), 2), confidence=self.confidence, is_valid=self.is_valid)

    def to_dict(self) -> Dict[str, Any]:
        return {"angle": self.angle, "confidence": self.confidence, "is_valid": self.is_valid}


def _sample_from_value(value: float, confidence: float, min_acceptable: float) -> AngleSample:
    return AngleSample.measured(float(value), confidence, min_acceptable)


@dataclass(frozen=True)
class WristAngleSet:
    """Four wrist angles. At most one per axis pair is non-zero."""

    palmar_flexion: AngleSample = field(default_factory=AngleSample.invalid)
    dorsal_flexion: AngleSample = field(default_factory=AngleSample.invalid)
    ulnar_deviation: AngleSample = field(default_factory=AngleSample.invalid)
    radial_deviation: AngleSample = field(default_factory=AngleSample.invalid)

    _FIELDS = ("palmar_flexion", "dorsal_flexion", "ulnar_deviation", "radial_deviation")

    @classmethod
    def zero(cls) -> "WristAngleSet":
        return cls()

    @classmethod
    def from_degrees(
        cls,
        values: Mapping[str, float],
        confidence: float,
        min_acceptable: float = 0.3,
    ) -> "WristAngleSet":
        """Build from bare degree values sharing one aggregate confidence.

        Keys may be field names ("palmar_flexion") or channel names
        ("wrist.palmar_flexion"). Missing keys become 0 degrees.
        """
        kwargs = {}
        for name in cls._FIELDS:
            value = values.get(name, values.get(f"wrist.{name}", 0.0))
            kwargs[name] = _sample_from_value(value, confidence, min_acceptable)
        return cls(**kwargs)

    def degrees(self) -> Dict[str, float]:
        """Bare degree values keyed by field name."""
        return {name: getattr(self, name).angle for name in self._FIELDS}

    def items(self) -> Iterator[Tuple[str, AngleSample]]:
        for name, channel in zip(self._FIELDS, WRIST_CHANNELS):
            yield channel, getattr(self, name)

    def to_dict(self) -> Dict[str, Any]:
        return {name: getattr(self, name).to_dict() for name in self._FIELDS}


@dataclass(frozen=True)
class ThumbAngleSet:
    """Four thumb angles. At most one per axis pair is non-zero."""

    flexion: AngleSample = field(default_factory=AngleSample.invalid)
    extension: AngleSample = field(default_factory=AngleSample.invalid)
    abduction: AngleSample = field(default_factory=AngleSample.invalid)
    adduction: AngleSample = field(default_factory=AngleSample.invalid)

    _FIELDS = ("flexion", "extension", "abduction", "adduction")

    @classmethod
    def zero(cls) -> "ThumbAngleSet":
        return cls()

    @classmethod
    def from_degrees(
        cls,
        values: Mapping[str, float],
        confidence: float,
        min_acceptable: float = 0.3,
    ) -> "ThumbAngleSet":
        """Build from bare degree values sharing one aggregate confidence."""
        kwargs = {}
        for name in cls._FIELDS:
            value = values.get(name, values.get(f"thumb.{name}", 0.0))
            kwargs[name] = _sample_from_value(value, confidence, min_acceptable)
        return cls(**kwargs)

    def degrees(self) -> Dict[str, float]:
        return {name: getattr(self, name).angle for name in self._FIELDS}

    def items(self) -> Iterator[Tuple[str, AngleSample]]:
        for name, channel in zip(self._FIELDS, THUMB_CHANNELS):
            yield channel, getattr(self, name)

    def to_dict(self) -> Dict[str, Any]:
        return {name: getattr(self, name).to_dict() for name in self._FIELDS}


@dataclass(frozen=True)
class MotionAngles:
    """Per-frame pipeline output.

    Attributes:
        wrist: Wrist angle set.
        thumb: Thumb angle set.
        overall_confidence: Aggregated confidence in [0, 1].
    """

    wrist: WristAngleSet = field(default_factory=WristAngleSet.zero)
    thumb: ThumbAngleSet = field(default_factory=ThumbAngleSet.zero)
    overall_confidence: float = 0.0

    @classmethod
    def zero(cls) -> "MotionAngles":
        """Fully zeroed, invalid result (invalid frame or no hand)."""
        return cls()

    @classmethod
    def from_channels(
        cls,
        values: Mapping[str, float],
        overall_confidence: float,
        min_acceptable: float = 0.3,
    ) -> "MotionAngles":
        """Build from channel-keyed bare degree values (e.g. smoother output)."""
        return cls(
            wrist=WristAngleSet.from_degrees(values, overall_confidence, min_acceptable),
            thumb=ThumbAngleSet.from_degrees(values, overall_confidence, min_acceptable),
            overall_confidence=overall_confidence,
        )

    def samples(self) -> Iterator[Tuple[str, AngleSample]]:
        """All eight (channel, sample) pairs in ALL_CHANNELS order."""
        yield from self.wrist.items()
        yield from self.thumb.items()

    def channel_values(self) -> Dict[str, float]:
        return {channel: sample.angle for channel, sample in self.samples()}

    def to_dict(self) -> Dict[str, Any]:
        return {
            "wrist": self.wrist.to_dict(),
            "thumb": self.thumb.to_dict(),
            "overall_confidence": self.overall_confidence,
        }


__all__ = [
    "HandLandmarkIndex",
    "NUM_LANDMARKS",
    "REQUIRED_LANDMARKS",
    "PALM_MCP_LANDMARKS",
    "Handedness",
    "WRIST_CHANNELS",
    "THUMB_CHANNELS",
    "ALL_CHANNELS",
    "Landmark",
    "LandmarkFrame",
    "AngleSample",
    "WristAngleSet",
    "ThumbAngleSet",
    "MotionAngles",
]
