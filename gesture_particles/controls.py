"""
Controls Module - Gesture to Control Signal Smoothing
=====================================================
Turns the discrete gesture stream into three bounded, continuously
varying controls: scale, explode and rotate.

Each classification sets a target per control; every frame each smoothed
value moves a fixed fraction of the way toward its target. Frames without
a new classification keep the last targets. Controls only relax toward
neutral when a 'none' classification arrives.
"""

from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

from .gesture_logic import Gesture, GestureState


def clamp(x: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, x))


def lerp(a: float, b: float, t: float) -> float:
    return a + (b - a) * t


@dataclass
class ControlValues:
    """
    Scale, explode and rotate controls.

    Used both for the targets set by gestures and for the smoothed values
    read by the simulation.
    """
    scale: float = 1.0
    explode: float = 0.0
    rotate: float = 0.0


# The targets written on intake share the same shape
ControlTargets = ControlValues

NEUTRAL = ControlValues()


class ControlSmoother:
    """
    Exponential smoother from GestureState to ControlValues.

    Rotate and explode blend slower than scale so single-frame
    misclassifications do not show up as jitter.
    """

    # Per-frame blend factors
    SCALE_RATE = 0.12
    EXPLODE_RATE = 0.08
    ROTATE_RATE = 0.05

    # Two hands: palm distance maps linearly into this scale range
    TWO_HAND_SCALE_RANGE = (0.5, 3.0)
    TWO_HAND_DISTANCE_GAIN = 2.0
    TWO_HAND_ROTATE = 1.5

    OPEN_PALM_EXPLODE = 1.5
    OPEN_PALM_SCALE = 1.8

    FIST_EXPLODE = -1.0
    FIST_SCALE = 0.4

    # Pinch: normalized distance range and the scale range it maps into
    PINCH_DISTANCE_RANGE = (0.02, 0.20)
    PINCH_SCALE_RANGE = (0.35, 3.5)

    def __init__(self):
        self._targets = ControlValues()
        self._values = ControlValues()
        self._rainbow_latched = False
        self._last_gesture = Gesture.NONE
        self._callbacks: Dict[Gesture, List[Callable[[], None]]] = {}

    @property
    def values(self) -> ControlValues:
        """Current smoothed values."""
        return self._values

    @property
    def targets(self) -> ControlTargets:
        """Latest gesture-derived targets."""
        return self._targets

    @property
    def rainbow_latched(self) -> bool:
        """True once a peace sign has been seen this session."""
        return self._rainbow_latched

    @property
    def last_gesture(self) -> Gesture:
        return self._last_gesture

    def register_callback(self, gesture: Gesture, callback: Callable[[], None]):
        """
        Register a callback fired when a gesture triggers a one-shot action.

        Only PEACE currently has one: it fires the first time the rainbow
        latch is set.
        """
        self._callbacks.setdefault(gesture, []).append(callback)

    def ingest(self, state: GestureState):
        """
        Set targets from a new classification.

        Args:
            state: The classifier output for the newest tracking frame
        """
        t = self._targets
        gesture = state.gesture
        self._last_gesture = gesture

        if gesture == Gesture.TWO_HANDS:
            lo, hi = self.TWO_HAND_SCALE_RANGE
            distance = state.distance or 0.0
            t.rotate = self.TWO_HAND_ROTATE
            t.scale = lerp(lo, hi, clamp(distance * self.TWO_HAND_DISTANCE_GAIN, 0.0, 1.0))
            t.explode = 0.0

        elif gesture == Gesture.OPEN_PALM:
            t.explode = self.OPEN_PALM_EXPLODE
            t.scale = self.OPEN_PALM_SCALE

        elif gesture == Gesture.FIST:
            t.explode = self.FIST_EXPLODE
            t.scale = self.FIST_SCALE

        elif gesture == Gesture.PEACE:
            if not self._rainbow_latched:
                self._rainbow_latched = True
                for callback in self._callbacks.get(Gesture.PEACE, []):
                    callback()

        elif gesture == Gesture.PINCH:
            d_lo, d_hi = self.PINCH_DISTANCE_RANGE
            s_lo, s_hi = self.PINCH_SCALE_RANGE
            distance = state.distance if state.distance is not None else d_lo
            norm = clamp((distance - d_lo) / (d_hi - d_lo), 0.0, 1.0)
            t.scale = lerp(s_lo, s_hi, norm)
            t.explode = 0.0

        else:
            t.scale = NEUTRAL.scale
            t.explode = NEUTRAL.explode
            t.rotate = NEUTRAL.rotate

    def step(self) -> ControlValues:
        """
        Advance the smoothed values one frame toward the targets.

        Runs every frame regardless of whether a classification arrived.

        Returns:
            The updated smoothed values
        """
        v, t = self._values, self._targets
        v.scale = lerp(v.scale, t.scale, self.SCALE_RATE)
        v.explode = lerp(v.explode, t.explode, self.EXPLODE_RATE)
        v.rotate = lerp(v.rotate, t.rotate, self.ROTATE_RATE)
        return v

    def update(self, state: Optional[GestureState]) -> ControlValues:
        """Ingest `state` if one arrived this frame, then step."""
        if state is not None:
            self.ingest(state)
        return self.step()

    def reset(self):
        """Return targets and values to neutral and clear the rainbow latch."""
        self._targets = ControlValues()
        self._values = ControlValues()
        self._rainbow_latched = False
        self._last_gesture = Gesture.NONE
