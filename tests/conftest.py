"""Pytest configuration and shared fixtures."""

import numpy as np
import pytest

from gesture_particles.hand_tracking import HandData, HandLandmark

# Neutral hand in normalized image coordinates, palm facing the camera
WRIST = (0.50, 0.80)
THUMB_CMC = (0.44, 0.74)
THUMB_MCP = (0.40, 0.68)
FINGER_MCPS = {
    'index': (0.45, 0.60),
    'middle': (0.50, 0.60),
    'ring': (0.55, 0.60),
    'pinky': (0.60, 0.60),
}
# Tips slightly above their bases, but not by the extension margin
RELAXED_TIPS = {
    'index': (0.45, 0.58),
    'middle': (0.50, 0.58),
    'ring': (0.55, 0.58),
    'pinky': (0.60, 0.58),
}
RELAXED_THUMB_TIP = (0.36, 0.62)

_FINGER_LANDMARKS = {
    'index': (HandLandmark.INDEX_MCP, HandLandmark.INDEX_PIP, HandLandmark.INDEX_DIP, HandLandmark.INDEX_TIP),
    'middle': (HandLandmark.MIDDLE_MCP, HandLandmark.MIDDLE_PIP, HandLandmark.MIDDLE_DIP, HandLandmark.MIDDLE_TIP),
    'ring': (HandLandmark.RING_MCP, HandLandmark.RING_PIP, HandLandmark.RING_DIP, HandLandmark.RING_TIP),
    'pinky': (HandLandmark.PINKY_MCP, HandLandmark.PINKY_PIP, HandLandmark.PINKY_DIP, HandLandmark.PINKY_TIP),
}


def _between(a, b, t):
    return (a[0] + (b[0] - a[0]) * t, a[1] + (b[1] - a[1]) * t)


def build_hand(tips=None, thumb_tip=None, offset=(0.0, 0.0), handedness="Right"):
    """
    Build a 21-landmark hand from fingertip positions.

    Joints between a base and its tip are interpolated along the finger.
    """
    tips = {**RELAXED_TIPS, **(tips or {})}
    thumb_tip = thumb_tip or RELAXED_THUMB_TIP

    coords = [None] * len(HandLandmark)
    coords[HandLandmark.WRIST] = WRIST
    coords[HandLandmark.THUMB_CMC] = THUMB_CMC
    coords[HandLandmark.THUMB_MCP] = THUMB_MCP
    coords[HandLandmark.THUMB_IP] = _between(THUMB_MCP, thumb_tip, 0.5)
    coords[HandLandmark.THUMB_TIP] = thumb_tip

    for finger, (mcp, pip, dip, tip) in _FINGER_LANDMARKS.items():
        base = FINGER_MCPS[finger]
        coords[mcp] = base
        coords[pip] = _between(base, tips[finger], 1 / 3)
        coords[dip] = _between(base, tips[finger], 2 / 3)
        coords[tip] = tips[finger]

    dx, dy = offset
    shifted = [(x + dx, y + dy, 0.0) for x, y in coords]
    return HandData.from_normalized(shifted, handedness=handedness)


@pytest.fixture
def rng():
    """Seeded random source."""
    return np.random.default_rng(1234)


@pytest.fixture
def make_hand():
    """Factory for synthetic hands."""
    return build_hand


@pytest.fixture
def neutral_hand():
    """A relaxed hand that matches no gesture."""
    return build_hand()


@pytest.fixture
def open_palm_hand():
    return build_hand(
        tips={
            'index': (0.42, 0.35),
            'middle': (0.50, 0.32),
            'ring': (0.57, 0.35),
            'pinky': (0.63, 0.40),
        },
        thumb_tip=(0.30, 0.58),
    )


@pytest.fixture
def fist_hand():
    """Fingertips curled onto the palm, thumb tip resting against the index tip."""
    return build_hand(
        tips={
            'index': (0.47, 0.72),
            'middle': (0.50, 0.70),
            'ring': (0.53, 0.72),
            'pinky': (0.56, 0.74),
        },
        thumb_tip=(0.48, 0.71),
    )


@pytest.fixture
def peace_hand():
    return build_hand(
        tips={
            'index': (0.43, 0.35),
            'middle': (0.52, 0.35),
            'ring': (0.55, 0.70),
            'pinky': (0.60, 0.72),
        },
        thumb_tip=(0.42, 0.68),
    )


@pytest.fixture
def pinch_hand():
    """Thumb tip 0.02 to the right and below the raised index tip."""
    return build_hand(
        tips={'index': (0.45, 0.50)},
        thumb_tip=(0.46, 0.52),
    )


@pytest.fixture
def two_hands():
    """Two relaxed hands with wrists 0.3 apart."""
    return [
        build_hand(handedness="Left"),
        build_hand(offset=(0.3, 0.0), handedness="Right"),
    ]
