"""Shared fixtures for handrom tests.

All landmark frames are synthetic, no detector or camera needed.
"""

import numpy as np
import pytest

from handrom.types import HandLandmarkIndex, LandmarkFrame

# x offsets of the index/middle/ring/pinky MCPs from the wrist; mean is 0.
MCP_X_OFFSETS = (-0.0625, -0.03125, 0.03125, 0.0625)
SEGMENT = 0.04


def build_hand(
    wrist=(0.5, 0.8, 0.0),
    mcp_dy=-0.2,
    mcp_dx=0.0,
    handedness="right",
    timestamp_ms=0.0,
    overrides=None,
):
    """Synthetic 21-point hand as a (21, 3) array plus frame.

    MCPs sit ``mcp_dy`` below the wrist (negative = above, i.e. fingers up)
    and are shifted horizontally by ``mcp_dx``. Finger joints continue away
    from the wrist in 0.04 steps.
    """
    wx, wy, wz = wrist
    points = np.zeros((21, 3))
    points[HandLandmarkIndex.WRIST] = (wx, wy, wz)

    # Thumb: slightly bent chain up and to the left of the wrist
    points[HandLandmarkIndex.THUMB_CMC] = (wx - 0.05, wy - 0.03, wz)
    points[HandLandmarkIndex.THUMB_MCP] = (wx - 0.10, wy - 0.07, wz)
    points[HandLandmarkIndex.THUMB_IP] = (wx - 0.13, wy - 0.11, wz)
    points[HandLandmarkIndex.THUMB_TIP] = (wx - 0.15, wy - 0.15, wz)

    direction = 1.0 if mcp_dy > 0 else -1.0
    mcps = (
        HandLandmarkIndex.INDEX_FINGER_MCP,
        HandLandmarkIndex.MIDDLE_FINGER_MCP,
        HandLandmarkIndex.RING_FINGER_MCP,
        HandLandmarkIndex.PINKY_MCP,
    )
    for mcp, x_off in zip(mcps, MCP_X_OFFSETS):
        x = wx + x_off + mcp_dx
        y = wy + mcp_dy
        for joint in range(4):
            points[mcp + joint] = (x, y + direction * SEGMENT * joint, wz)

    for index, point in (overrides or {}).items():
        points[index] = point

    frame = LandmarkFrame(points, handedness=handedness, timestamp_ms=timestamp_ms)
    return frame


@pytest.fixture
def make_frame():
    """Factory fixture for synthetic landmark frames."""
    return build_hand


@pytest.fixture
def neutral_frame():
    """Wrist and all MCPs at the same height, MCPs symmetric around the wrist."""
    return build_hand(mcp_dy=0.0)


@pytest.fixture
def upright_frame():
    """Open hand pointing straight up (fingers above the wrist)."""
    return build_hand(mcp_dy=-0.2)


@pytest.fixture
def palmar_frame():
    """MCPs 0.2 below the wrist."""
    return build_hand(mcp_dy=0.2)


@pytest.fixture
def short_frame():
    """Only 10 landmarks."""
    return LandmarkFrame(np.full((10, 3), 0.5))
