"""Tests for wrist and thumb angle calculation."""

import math

import numpy as np
import pytest

from handrom.calculator import (
    DeviationDirection,
    PlanarWristAlgorithm,
    WristAngleAlgorithm,
    angle_between,
    available_wrist_algorithms,
    compute_thumb_angles,
    compute_wrist_angles,
    deviation_angle,
    dorsal_flexion,
    get_wrist_algorithm,
    palmar_flexion,
    radial_deviation,
    register_wrist_algorithm,
    resolve_deviation_direction,
    ulnar_deviation,
)
from handrom.config import AngleConfig
from handrom.types import HandLandmarkIndex, WristAngleSet
from handrom.validator import InvalidFrameError


def _all_samples(wrist, thumb=None):
    samples = [s for _, s in wrist.items()]
    if thumb is not None:
        samples += [s for _, s in thumb.items()]
    return samples


class TestAngleBetween:
    def test_right_angle(self):
        sample = angle_between(
            np.array([0.5, 0.5, 0.0]),
            np.array([0.7, 0.5, 0.0]),
            np.array([0.5, 0.2, 0.0]),
        )
        assert sample.angle == pytest.approx(90.0, abs=0.01)
        assert sample.confidence == 1.0
        assert sample.is_valid

    def test_right_angle_in_3d(self):
        sample = angle_between(
            np.array([0.1, 0.2, 0.3]),
            np.array([0.1, 0.2, 0.6]),
            np.array([0.4, 0.2, 0.3]),
        )
        assert sample.angle == pytest.approx(90.0, abs=0.01)

    def test_coincident_points_are_degenerate(self):
        p = np.array([0.4, 0.4, 0.0])
        sample = angle_between(np.array([0.5, 0.5, 0.0]), p, p.copy())
        assert (sample.angle, sample.confidence, sample.is_valid) == (0.0, 0.0, False)

    def test_vertex_coincident_with_point(self):
        v = np.array([0.5, 0.5, 0.0])
        sample = angle_between(v, v.copy(), np.array([0.6, 0.5, 0.0]))
        assert (sample.angle, sample.confidence, sample.is_valid) == (0.0, 0.0, False)

    def test_all_coincident(self):
        p = np.array([0.3, 0.3, 0.3])
        sample = angle_between(p, p.copy(), p.copy())
        assert (sample.angle, sample.confidence, sample.is_valid) == (0.0, 0.0, False)

    def test_non_finite_input(self):
        sample = angle_between(np.array([np.nan, 0, 0]), np.array([1.0, 0, 0]), np.array([0, 1.0, 0]))
        assert (sample.angle, sample.confidence, sample.is_valid) == (0.0, 0.0, False)

    def test_short_segments_lower_confidence(self):
        sample = angle_between(
            np.array([0.5, 0.5, 0.0]),
            np.array([0.52, 0.5, 0.0]),
            np.array([0.5, 0.3, 0.0]),
        )
        assert sample.confidence == pytest.approx(0.2)
        assert sample.is_valid is False

    def test_rounded_to_two_decimals(self):
        sample = angle_between(
            np.array([0.0, 0.0, 0.0]),
            np.array([1.0, 0.0, 0.0]),
            np.array([1.0, 0.3, 0.0]),
        )
        assert sample.angle == round(math.degrees(math.atan2(0.3, 1.0)), 2)

    def test_collinear_is_180(self):
        sample = angle_between(
            np.array([0.5, 0.5, 0.0]),
            np.array([0.3, 0.5, 0.0]),
            np.array([0.9, 0.5, 0.0]),
        )
        assert sample.angle == pytest.approx(180.0)


class TestFlexion:
    def test_neutral_pose_is_zero(self, neutral_frame):
        wrist = compute_wrist_angles(neutral_frame)
        assert wrist.degrees() == {
            "palmar_flexion": 0.0,
            "dorsal_flexion": 0.0,
            "ulnar_deviation": 0.0,
            "radial_deviation": 0.0,
        }

    def test_mcps_below_wrist_is_palmar(self, palmar_frame):
        wrist = compute_wrist_angles(palmar_frame)
        assert wrist.palmar_flexion.angle > 0
        assert wrist.dorsal_flexion.angle == 0.0

    def test_mcps_above_wrist_is_dorsal(self, upright_frame):
        wrist = compute_wrist_angles(upright_frame)
        assert wrist.dorsal_flexion.angle > 0
        assert wrist.palmar_flexion.angle == 0.0

    def test_palmar_value_without_tip_correction(self, make_frame):
        # Fingertip level with the MCPs: no correction
        frame = make_frame(
            mcp_dy=0.2,
            overrides={HandLandmarkIndex.MIDDLE_FINGER_TIP: (0.46875, 1.0, 0.0)},
        )
        expected = math.degrees(math.atan2(0.2, 0.01))
        assert palmar_flexion(frame).angle == pytest.approx(expected, abs=0.01)

    def test_palmar_tip_correction(self, make_frame):
        frame = make_frame(
            mcp_dy=0.2,
            overrides={HandLandmarkIndex.MIDDLE_FINGER_TIP: (0.46875, 1.1, 0.0)},
        )
        expected = math.degrees(math.atan2(0.2, 0.01)) + 0.1 * 30
        assert palmar_flexion(frame).angle == pytest.approx(expected, abs=0.01)

    def test_dorsal_tip_correction(self, make_frame):
        frame = make_frame(
            mcp_dy=-0.2,
            overrides={HandLandmarkIndex.MIDDLE_FINGER_TIP: (0.46875, 0.5, 0.0)},
        )
        expected = math.degrees(math.atan2(0.2, 0.01)) + 0.1 * 25
        assert dorsal_flexion(frame).angle == pytest.approx(expected, abs=0.01)

    def test_small_tip_deviation_ignored(self, make_frame):
        frame = make_frame(
            mcp_dy=0.2,
            overrides={HandLandmarkIndex.MIDDLE_FINGER_TIP: (0.46875, 1.015, 0.0)},
        )
        expected = math.degrees(math.atan2(0.2, 0.01))
        assert palmar_flexion(frame).angle == pytest.approx(expected, abs=0.01)

    def test_below_epsilon_is_zero(self, make_frame):
        frame = make_frame(mcp_dy=0.005)
        assert palmar_flexion(frame).angle == 0.0
        assert dorsal_flexion(frame).angle == 0.0

    def test_horizontal_offset_reduces_angle(self, make_frame):
        frame = make_frame(mcp_dy=0.2, mcp_dx=0.2)
        expected = math.degrees(math.atan2(0.2, 0.2))
        tip = frame.point(HandLandmarkIndex.MIDDLE_FINGER_TIP)
        tip_correction = (tip[1] - 1.0) * 30
        assert palmar_flexion(frame).angle == pytest.approx(expected + tip_correction, abs=0.01)

    def test_upper_bound_open_by_default(self, make_frame):
        frame = make_frame(
            mcp_dy=0.2,
            overrides={HandLandmarkIndex.MIDDLE_FINGER_TIP: (0.46875, 1.5, 0.0)},
        )
        assert palmar_flexion(frame).angle > 90.0

    def test_max_flexion_angle_clamps(self, make_frame):
        frame = make_frame(
            mcp_dy=0.2,
            overrides={HandLandmarkIndex.MIDDLE_FINGER_TIP: (0.46875, 1.5, 0.0)},
        )
        config = AngleConfig(max_flexion_angle=90.0)
        assert palmar_flexion(frame, config).angle == 90.0

    def test_non_finite_tip_skips_correction(self, make_frame):
        frame = make_frame(
            mcp_dy=0.2,
            overrides={HandLandmarkIndex.MIDDLE_FINGER_TIP: (np.nan, np.nan, np.nan)},
        )
        sample = palmar_flexion(frame)
        assert sample.angle == pytest.approx(math.degrees(math.atan2(0.2, 0.01)), abs=0.01)

    def test_confidence_from_palm_distance(self, make_frame):
        frame = make_frame(mcp_dy=0.02, mcp_dx=0.0)
        sample = palmar_flexion(frame)
        assert sample.confidence == pytest.approx(0.2)
        assert sample.is_valid is False

    def test_inactive_direction_carries_confidence(self, palmar_frame):
        wrist = compute_wrist_angles(palmar_frame)
        assert wrist.dorsal_flexion.angle == 0.0
        assert wrist.dorsal_flexion.confidence == wrist.palmar_flexion.confidence
        assert wrist.dorsal_flexion.is_valid


class TestDeviation:
    def test_palm_left_of_wrist_is_ulnar(self, make_frame):
        wrist = compute_wrist_angles(make_frame(mcp_dy=-0.2, mcp_dx=-0.05))
        assert wrist.ulnar_deviation.angle > 0
        assert wrist.radial_deviation.angle == 0.0

    def test_palm_right_of_wrist_is_radial(self, make_frame):
        wrist = compute_wrist_angles(make_frame(mcp_dy=-0.2, mcp_dx=0.05))
        assert wrist.radial_deviation.angle > 0
        assert wrist.ulnar_deviation.angle == 0.0

    def test_same_direction_for_left_hand(self, make_frame):
        wrist = compute_wrist_angles(make_frame(mcp_dy=-0.2, mcp_dx=-0.05, handedness="left"))
        assert wrist.ulnar_deviation.angle > 0
        assert wrist.radial_deviation.angle == 0.0

    def test_deviation_value(self, make_frame):
        frame = make_frame(mcp_dy=-0.2, mcp_dx=-0.05)
        assert ulnar_deviation(frame).angle == pytest.approx(math.degrees(math.atan2(0.05, 0.2)), abs=0.01)

    def test_upright_hand_is_zero(self, upright_frame):
        assert ulnar_deviation(upright_frame).angle == 0.0
        assert radial_deviation(upright_frame).angle == 0.0

    def test_deviation_angle_degenerate(self, neutral_frame):
        assert deviation_angle(neutral_frame) == 0.0

    def test_resolve_direction(self):
        assert resolve_deviation_direction(-0.1) is DeviationDirection.ULNAR
        assert resolve_deviation_direction(0.1) is DeviationDirection.RADIAL
        assert resolve_deviation_direction(0.0) is DeviationDirection.NONE
        assert resolve_deviation_direction(float("nan")) is DeviationDirection.NONE


class TestMutualExclusion:
    @pytest.mark.parametrize("mcp_dy", [-0.3, -0.1, -0.005, 0.0, 0.005, 0.1, 0.3])
    @pytest.mark.parametrize("mcp_dx", [-0.1, -0.01, 0.0, 0.01, 0.1])
    @pytest.mark.parametrize("algorithm", ["directional", "planar"])
    def test_at_most_one_per_axis(self, make_frame, mcp_dy, mcp_dx, algorithm):
        frame = make_frame(mcp_dy=mcp_dy, mcp_dx=mcp_dx)
        wrist = compute_wrist_angles(frame, algorithm=get_wrist_algorithm(algorithm))
        assert wrist.palmar_flexion.angle == 0.0 or wrist.dorsal_flexion.angle == 0.0
        assert wrist.ulnar_deviation.angle == 0.0 or wrist.radial_deviation.angle == 0.0
        thumb = compute_thumb_angles(frame)
        assert thumb.flexion.angle == 0.0 or thumb.extension.angle == 0.0
        assert thumb.abduction.angle == 0.0 or thumb.adduction.angle == 0.0
        for sample in _all_samples(wrist, thumb):
            assert math.isfinite(sample.angle) and sample.angle >= 0
            assert 0.0 <= sample.confidence <= 1.0


class TestPlanarAlgorithm:
    def test_registered(self):
        assert available_wrist_algorithms() == ["directional", "planar"]
        planar = get_wrist_algorithm("planar")
        assert isinstance(planar, PlanarWristAlgorithm)
        assert planar.version == 1
        assert get_wrist_algorithm("directional").version == 2

    def test_flexion_magnitude(self, make_frame):
        frame = make_frame(mcp_dy=0.2, mcp_dx=0.0)
        wrist = compute_wrist_angles(frame, AngleConfig(wrist_algorithm="planar"))
        # wrist -> middle MCP is (-0.03125, 0.2)
        expected = math.degrees(math.asin(0.2 / math.hypot(0.03125, 0.2)))
        assert wrist.palmar_flexion.angle == pytest.approx(expected, abs=0.01)
        assert wrist.dorsal_flexion.angle == 0.0

    def test_flexion_capped_at_90(self, make_frame):
        frame = make_frame(mcp_dy=-0.2)
        wrist = compute_wrist_angles(frame, algorithm=get_wrist_algorithm("planar"))
        assert wrist.dorsal_flexion.angle <= 90.0

    def test_unknown_algorithm(self, upright_frame):
        with pytest.raises(KeyError, match="directional"):
            compute_wrist_angles(upright_frame, AngleConfig(wrist_algorithm="nope"))


class TestRegistry:
    def test_duplicate_name_rejected(self):
        with pytest.raises(ValueError):
            register_wrist_algorithm(PlanarWristAlgorithm())

    def test_custom_algorithm(self, upright_frame):
        class FixedAlgorithm(WristAngleAlgorithm):
            name = "fixed-test"
            version = 1

            def compute(self, frame, config):
                return WristAngleSet.from_degrees({"palmar_flexion": 12.0}, confidence=1.0)

        wrist = compute_wrist_angles(upright_frame, algorithm=FixedAlgorithm())
        assert wrist.palmar_flexion.angle == 12.0


class TestThumb:
    def _thumb_frame(self, make_frame, mcp_angle):
        """Thumb chain bent to ``mcp_angle`` degrees at the MCP."""
        cmc = np.array([0.45, 0.77, 0.0])
        mcp = np.array([0.40, 0.70, 0.0])
        back = cmc - mcp
        back /= np.linalg.norm(back)
        theta = math.radians(mcp_angle)
        rot = np.array([
            [math.cos(theta), -math.sin(theta), 0.0],
            [math.sin(theta), math.cos(theta), 0.0],
            [0.0, 0.0, 1.0],
        ])
        ip = mcp + rot @ back * 0.05
        return make_frame(overrides={
            HandLandmarkIndex.THUMB_CMC: cmc,
            HandLandmarkIndex.THUMB_MCP: mcp,
            HandLandmarkIndex.THUMB_IP: ip,
        })

    def test_straight_thumb_is_flexion_90(self, make_frame):
        thumb = compute_thumb_angles(self._thumb_frame(make_frame, 180.0))
        assert thumb.flexion.angle == pytest.approx(90.0, abs=0.01)
        assert thumb.extension.angle == 0.0

    def test_sharp_bend_is_extension(self, make_frame):
        thumb = compute_thumb_angles(self._thumb_frame(make_frame, 60.0))
        assert thumb.extension.angle == pytest.approx(30.0, abs=0.01)
        assert thumb.flexion.angle == 0.0

    def test_both_channels_share_confidence(self, make_frame):
        thumb = compute_thumb_angles(self._thumb_frame(make_frame, 120.0))
        assert thumb.flexion.confidence == thumb.extension.confidence
        assert thumb.flexion.confidence == pytest.approx(0.5)

    def test_custom_pivot(self, make_frame):
        frame = self._thumb_frame(make_frame, 120.0)
        thumb = compute_thumb_angles(frame, AngleConfig(thumb_flexion_pivot=100.0))
        assert thumb.flexion.angle == pytest.approx(20.0, abs=0.01)

    def test_abduction_split(self, upright_frame):
        thumb = compute_thumb_angles(upright_frame)
        assert thumb.abduction.angle > 0
        assert thumb.adduction.angle == 0.0

    def test_degenerate_thumb_is_invalid(self, make_frame):
        frame = make_frame(overrides={
            HandLandmarkIndex.THUMB_MCP: (0.45, 0.77, 0.0),
            HandLandmarkIndex.THUMB_CMC: (0.45, 0.77, 0.0),
        })
        thumb = compute_thumb_angles(frame)
        assert not thumb.flexion.is_valid and thumb.flexion.angle == 0.0
        assert not thumb.extension.is_valid and thumb.extension.angle == 0.0

    def test_non_finite_ip_is_invalid(self, make_frame):
        frame = make_frame(overrides={HandLandmarkIndex.THUMB_IP: (np.nan, 0.5, 0.0)})
        thumb = compute_thumb_angles(frame)
        assert thumb.flexion.confidence == 0.0
        assert thumb.extension.confidence == 0.0


class TestInvalidFrame:
    def test_wrist_raises_on_invalid(self, short_frame):
        with pytest.raises(InvalidFrameError):
            compute_wrist_angles(short_frame)

    def test_thumb_raises_on_invalid(self, short_frame):
        with pytest.raises(InvalidFrameError):
            compute_thumb_angles(short_frame)
