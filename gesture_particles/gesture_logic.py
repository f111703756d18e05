"""
Gesture Logic Module - Landmark Classification
===============================================
Classifies one or two hands' landmarks into a discrete gesture plus the
raw distance that goes with it (pinch distance or palm-to-palm distance).

The classifier is purely geometric: no smoothing, no history. Calling it
twice with the same landmarks gives the same result. Temporal smoothing
happens downstream in the control smoother.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Sequence

from .hand_tracking import FINGER_TIPS_AND_BASES, HandData, HandLandmark


class Gesture(Enum):
    """Recognized gestures, in no particular order."""
    NONE = "none"
    PINCH = "pinch"              # Thumb tip touching index tip - scale
    OPEN_PALM = "open_palm"      # All fingers spread - explode
    FIST = "fist"                # Fingertips curled onto the palm - collapse
    TWO_HANDS = "two_hands"      # Both hands visible - rotate and scale
    PEACE = "peace"              # Index + middle up - rainbow


@dataclass(frozen=True)
class GestureState:
    """
    Result of classifying one tracking frame.

    Attributes:
        gesture: The detected gesture
        distance: Pinch distance for PINCH, palm-to-palm distance for
            TWO_HANDS, None otherwise
        hand_count: Number of hands considered (0-2)
    """
    gesture: Gesture
    distance: Optional[float] = None
    hand_count: int = 0

    @classmethod
    def none(cls) -> "GestureState":
        """The 'no hand detected' state."""
        return cls(Gesture.NONE)


# Thresholds in normalized image coordinates
EXTENSION_MARGIN = 0.05     # Fingertip above its base by this much counts as extended
THUMB_SPLAY_MARGIN = 0.05   # Horizontal thumb tip offset from its MCP joint
FIST_RADIUS = 0.15          # Fingertip this close to the wrist counts as curled
PINCH_THRESHOLD = 0.08      # Thumb-index distance below which a pinch registers


def _extended(hand: HandData, tip: HandLandmark, base: HandLandmark,
              margin: float = EXTENSION_MARGIN) -> bool:
    # Image y grows downward, so "above" means a smaller y
    return hand[tip].y < hand[base].y - margin


def is_open_palm(hand: HandData) -> bool:
    """
    Open palm: at least 4 extended digits.

    Each of the four fingers counts when its tip is above its base by the
    extension margin; the thumb counts when splayed sideways from its MCP.
    """
    extended = sum(_extended(hand, tip, base) for tip, base in FINGER_TIPS_AND_BASES)
    thumb_tip = hand[HandLandmark.THUMB_TIP]
    thumb_base = hand[HandLandmark.THUMB_MCP]
    if abs(thumb_tip.x - thumb_base.x) > THUMB_SPLAY_MARGIN:
        extended += 1
    return extended >= 4


def is_fist(hand: HandData, radius: float = FIST_RADIUS) -> bool:
    """Fist: at least 3 of the 4 fingertips within `radius` of the wrist."""
    palm = hand[HandLandmark.WRIST]
    closed = sum(
        hand[tip].planar_distance_to(palm) < radius
        for tip, _ in FINGER_TIPS_AND_BASES
    )
    return closed >= 3


def is_peace_sign(hand: HandData) -> bool:
    """Peace: index and middle extended, ring and pinky not above their bases."""
    index_up = _extended(hand, HandLandmark.INDEX_TIP, HandLandmark.INDEX_MCP)
    middle_up = _extended(hand, HandLandmark.MIDDLE_TIP, HandLandmark.MIDDLE_MCP)
    ring_down = hand[HandLandmark.RING_TIP].y >= hand[HandLandmark.RING_MCP].y
    pinky_down = hand[HandLandmark.PINKY_TIP].y >= hand[HandLandmark.PINKY_MCP].y
    return index_up and middle_up and ring_down and pinky_down


def pinch_distance(hand: HandData) -> float:
    """3D distance between the thumb tip and the index tip."""
    return hand[HandLandmark.THUMB_TIP].distance_to(hand[HandLandmark.INDEX_TIP])


def two_hand_distance(first: HandData, second: HandData) -> float:
    """3D distance between the two palm (wrist) landmarks."""
    return first[HandLandmark.WRIST].distance_to(second[HandLandmark.WRIST])


class GestureClassifier:
    """
    Maps landmarks of up to two hands to a GestureState.

    Precedence, first match wins:
        1. two hands
        2. open palm
        3. fist
        4. peace sign
        5. pinch, else none

    Closed-hand shapes deliberately win over the pinch fallback: a fist
    also brings thumb and index close together.
    """

    MAX_HANDS = 2
    PINCH_THRESHOLD = PINCH_THRESHOLD
    FIST_RADIUS = FIST_RADIUS

    GESTURE_INFO = {
        Gesture.NONE: ('None', 'No gesture - controls relax to neutral'),
        Gesture.PINCH: ('Pinch', 'Thumb + index pinch - scale particles'),
        Gesture.OPEN_PALM: ('Open Palm', 'All fingers spread - explode'),
        Gesture.FIST: ('Fist', 'Closed fist - collapse'),
        Gesture.TWO_HANDS: ('Two Hands', 'Both hands - rotate, distance scales'),
        Gesture.PEACE: ('Peace', 'Index + middle up - rainbow on'),
    }

    def classify(self, hands: Optional[Sequence[HandData]]) -> GestureState:
        """
        Classify one tracking frame.

        Args:
            hands: Detected hands (None or empty means no hand); hands
                beyond the second are ignored

        Returns:
            GestureState with the gesture tag and its distance
        """
        hands = list(hands or [])[:self.MAX_HANDS]

        if not hands:
            return GestureState.none()

        if len(hands) == 2:
            return GestureState(
                Gesture.TWO_HANDS,
                distance=two_hand_distance(hands[0], hands[1]),
                hand_count=2,
            )

        hand = hands[0]
        if is_open_palm(hand):
            return GestureState(Gesture.OPEN_PALM, hand_count=1)
        if is_fist(hand, self.FIST_RADIUS):
            return GestureState(Gesture.FIST, hand_count=1)
        if is_peace_sign(hand):
            return GestureState(Gesture.PEACE, hand_count=1)

        distance = pinch_distance(hand)
        if distance < self.PINCH_THRESHOLD:
            return GestureState(Gesture.PINCH, distance=distance, hand_count=1)
        return GestureState(Gesture.NONE, hand_count=1)

    def describe(self, gesture: Gesture) -> str:
        """Human-readable label for HUD display."""
        name, description = self.GESTURE_INFO.get(gesture, self.GESTURE_INFO[Gesture.NONE])
        return f"{name}: {description}"
