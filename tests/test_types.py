"""Tests for landmark and angle data types."""

from types import SimpleNamespace

import numpy as np
import pytest

from handrom.types import (
    ALL_CHANNELS,
    AngleSample,
    Handedness,
    LandmarkFrame,
    MotionAngles,
    ThumbAngleSet,
    WristAngleSet,
)


class TestLandmarkFrame:
    def test_from_sequences(self):
        frame = LandmarkFrame.from_points([(0.1, 0.2, 0.3)] * 21, handedness="Right", timestamp_ms=33)
        assert len(frame) == 21
        assert frame.handedness is Handedness.RIGHT
        assert frame.timestamp_ms == 33.0

    def test_from_objects_and_dicts(self):
        points = [SimpleNamespace(x=0.1, y=0.2, z=0.3)] * 10 + [{"x": 0.4, "y": 0.5}] * 11
        frame = LandmarkFrame.from_points(points)
        np.testing.assert_allclose(frame.point(0), [0.1, 0.2, 0.3])
        np.testing.assert_allclose(frame.point(20), [0.4, 0.5, 0.0])

    def test_missing_z_defaults_to_zero(self):
        frame = LandmarkFrame.from_points([(0.1, 0.2)] * 21)
        assert frame.landmark(5).z == 0.0

    def test_unsupported_landmark_raises(self):
        with pytest.raises(ValueError):
            LandmarkFrame.from_points([42] * 21)

    def test_landmarks_are_read_only(self, upright_frame):
        with pytest.raises(ValueError):
            upright_frame.landmarks[0, 0] = 1.0

    def test_unknown_handedness(self):
        frame = LandmarkFrame(np.zeros((21, 3)), handedness="sideways")
        assert frame.handedness is Handedness.UNKNOWN

    def test_bad_shape_raises(self):
        with pytest.raises(ValueError):
            LandmarkFrame(np.zeros((21, 2)))


class TestAngleSample:
    def test_invalid_factory(self):
        sample = AngleSample.invalid()
        assert (sample.angle, sample.confidence, sample.is_valid) == (0.0, 0.0, False)

    def test_measured_rounds_and_validates(self):
        sample = AngleSample.measured(42.123456, 0.45678, min_acceptable=0.3)
        assert sample.angle == 42.12
        assert sample.confidence == 0.46
        assert sample.is_valid is True

    def test_measured_never_negative(self):
        assert AngleSample.measured(-5.0, 1.0, 0.3).angle == 0.0

    def test_measured_nan_is_invalid(self):
        assert AngleSample.measured(float("nan"), 1.0, 0.3) == AngleSample.invalid()


class TestAngleSets:
    def test_wrist_from_degrees(self):
        wrist = WristAngleSet.from_degrees({"palmar_flexion": 40.0, "wrist.ulnar_deviation": 10.0}, confidence=0.8)
        assert wrist.degrees() == {
            "palmar_flexion": 40.0,
            "dorsal_flexion": 0.0,
            "ulnar_deviation": 10.0,
            "radial_deviation": 0.0,
        }
        assert wrist.palmar_flexion.confidence == 0.8
        assert wrist.palmar_flexion.is_valid

    def test_thumb_from_degrees(self):
        thumb = ThumbAngleSet.from_degrees({"extension": 12.5}, confidence=0.2)
        assert thumb.extension.angle == 12.5
        assert thumb.extension.is_valid is False

    def test_motion_samples_order(self):
        motion = MotionAngles.zero()
        assert [channel for channel, _ in motion.samples()] == list(ALL_CHANNELS)
        assert motion.overall_confidence == 0.0
        assert all(not s.is_valid for _, s in motion.samples())

    def test_to_dict(self):
        data = MotionAngles.zero().to_dict()
        assert set(data) == {"wrist", "thumb", "overall_confidence"}
        assert data["wrist"]["palmar_flexion"] == {"angle": 0.0, "confidence": 0.0, "is_valid": False}
