"""
Hand Tracking Module - MediaPipe Hand Landmark Detection
=========================================================
Landmark data types shared by the classifier, and the MediaPipe Hand
Landmarker (Tasks API, VIDEO mode) that produces them from camera frames.

Up to two hands are tracked; the classifier ignores any beyond that.
"""

import time
import urllib.request
from dataclasses import dataclass, field
from enum import IntEnum
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np

MODEL_URL = (
    "https://storage.googleapis.com/mediapipe-models/hand_landmarker/"
    "hand_landmarker/float16/1/hand_landmarker.task"
)


class HandLandmark(IntEnum):
    """
    MediaPipe hand landmark indices.
    Reference: https://mediapipe.dev/images/mobile/hand_landmarks.png
    """
    WRIST = 0
    THUMB_CMC = 1
    THUMB_MCP = 2
    THUMB_IP = 3
    THUMB_TIP = 4
    INDEX_MCP = 5
    INDEX_PIP = 6
    INDEX_DIP = 7
    INDEX_TIP = 8
    MIDDLE_MCP = 9
    MIDDLE_PIP = 10
    MIDDLE_DIP = 11
    MIDDLE_TIP = 12
    RING_MCP = 13
    RING_PIP = 14
    RING_DIP = 15
    RING_TIP = 16
    PINKY_MCP = 17
    PINKY_PIP = 18
    PINKY_DIP = 19
    PINKY_TIP = 20


# (tip, base) pairs for the four non-thumb fingers
FINGER_TIPS_AND_BASES: Tuple[Tuple[HandLandmark, HandLandmark], ...] = (
    (HandLandmark.INDEX_TIP, HandLandmark.INDEX_MCP),
    (HandLandmark.MIDDLE_TIP, HandLandmark.MIDDLE_MCP),
    (HandLandmark.RING_TIP, HandLandmark.RING_MCP),
    (HandLandmark.PINKY_TIP, HandLandmark.PINKY_MCP),
)


@dataclass(frozen=True)
class Point:
    """A landmark in normalized image coordinates (z is relative depth)."""
    x: float
    y: float
    z: float = 0.0

    def distance_to(self, other: "Point") -> float:
        """3D Euclidean distance to another point."""
        return float(np.sqrt(
            (self.x - other.x) ** 2 +
            (self.y - other.y) ** 2 +
            (self.z - other.z) ** 2
        ))

    def planar_distance_to(self, other: "Point") -> float:
        """Distance in the image plane, ignoring depth."""
        return float(np.hypot(self.x - other.x, self.y - other.y))


@dataclass
class HandData:
    """
    All landmarks of one detected hand.

    Attributes:
        landmarks: Dict mapping HandLandmark to Point
        handedness: 'Left' or 'Right'
        confidence: Handedness score reported by the model
    """
    landmarks: Dict[HandLandmark, Point]
    handedness: str = "Right"
    confidence: float = 0.0
    timestamp: float = field(default_factory=time.time)

    def __getitem__(self, landmark: HandLandmark) -> Point:
        return self.landmarks[landmark]

    @classmethod
    def from_normalized(
        cls,
        coords: Sequence[Sequence[float]],
        handedness: str = "Right",
        confidence: float = 1.0
    ) -> "HandData":
        """
        Build a hand from 21 (x, y[, z]) tuples in landmark order.

        Raises:
            ValueError: If the number of points is not 21
        """
        if len(coords) != len(HandLandmark):
            raise ValueError(f"Expected {len(HandLandmark)} landmarks, got {len(coords)}")
        landmarks = {}
        for idx, c in enumerate(coords):
            z = c[2] if len(c) > 2 else 0.0
            landmarks[HandLandmark(idx)] = Point(float(c[0]), float(c[1]), float(z))
        return cls(landmarks=landmarks, handedness=handedness, confidence=confidence)


def _download_model(model_path: Path) -> None:
    """Download the hand landmarker model if not present."""
    print("[INFO] Downloading hand landmarker model...")
    model_path.parent.mkdir(parents=True, exist_ok=True)
    urllib.request.urlretrieve(MODEL_URL, model_path)
    print(f"[INFO] Model downloaded to {model_path}")


class HandTracker:
    """
    Hand tracking using MediaPipe Hand Landmarker (Tasks API).

    Uses VIDEO running mode, which tracks between sequential frames
    instead of running full detection on each one.
    """

    def __init__(
        self,
        max_hands: int = 2,
        min_detection_confidence: float = 0.5,
        min_tracking_confidence: float = 0.5,
        model_path: Optional[Path] = None
    ):
        """
        Initialize the hand tracker.

        Args:
            max_hands: Maximum number of hands to detect (at most 2 are used)
            min_detection_confidence: Minimum confidence for detection
            min_tracking_confidence: Minimum confidence for tracking
            model_path: Location of hand_landmarker.task, downloaded if missing
        """
        import mediapipe as mp
        from mediapipe.tasks import python
        from mediapipe.tasks.python import vision

        self._mp = mp
        self.max_hands = max_hands

        self._model_path = model_path or (
            Path(__file__).parent.parent / "models" / "hand_landmarker.task"
        )
        if not self._model_path.exists():
            _download_model(self._model_path)

        base_options = python.BaseOptions(model_asset_path=str(self._model_path))
        options = vision.HandLandmarkerOptions(
            base_options=base_options,
            running_mode=vision.RunningMode.VIDEO,
            num_hands=max_hands,
            min_hand_detection_confidence=min_detection_confidence,
            min_tracking_confidence=min_tracking_confidence,
            min_hand_presence_confidence=min_detection_confidence
        )
        self.detector = vision.HandLandmarker.create_from_options(options)

        # VIDEO mode requires monotonically increasing timestamps
        self._start_time = time.time()
        self._last_timestamp_ms = -1

    def process(self, frame: np.ndarray) -> List[HandData]:
        """
        Detect hands in a BGR camera frame.

        Args:
            frame: BGR image from the camera

        Returns:
            List of HandData, one per detected hand
        """
        rgb_frame = np.ascontiguousarray(frame[:, :, ::-1])
        mp_image = self._mp.Image(image_format=self._mp.ImageFormat.SRGB, data=rgb_frame)

        timestamp_ms = int((time.time() - self._start_time) * 1000)
        timestamp_ms = max(timestamp_ms, self._last_timestamp_ms + 1)
        self._last_timestamp_ms = timestamp_ms

        results = self.detector.detect_for_video(mp_image, timestamp_ms)

        hands = []
        for idx, hand_landmarks in enumerate(results.hand_landmarks or []):
            handedness, confidence = "Right", 0.0
            if results.handedness and idx < len(results.handedness) and results.handedness[idx]:
                handedness = results.handedness[idx][0].category_name
                confidence = results.handedness[idx][0].score

            hands.append(HandData.from_normalized(
                [(lm.x, lm.y, getattr(lm, 'z', 0.0)) for lm in hand_landmarks],
                handedness=handedness,
                confidence=confidence,
            ))
        return hands

    def release(self):
        """Release the landmarker. Safe to call more than once."""
        if self.detector is not None:
            self.detector.close()
            self.detector = None
