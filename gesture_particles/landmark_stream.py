"""
Landmark Stream Module - Background Hand Tracking
=================================================
Runs camera capture, hand-landmark inference and gesture classification
on a background thread at whatever rate inference allows, and hands the
newest GestureState to the render loop.

The handoff is a single slot holding (sequence, state), replaced by one
reference assignment. The render loop polls it at most once per frame
and never waits on the producer.
"""

import threading
import time
from typing import Any, Callable, Optional, Tuple

from .gesture_logic import GestureClassifier, GestureState
from .hand_tracking import HandTracker


def _open_camera(camera_id: int, width: int, height: int):
    import cv2

    cap = cv2.VideoCapture(camera_id)
    cap.set(cv2.CAP_PROP_FRAME_WIDTH, width)
    cap.set(cv2.CAP_PROP_FRAME_HEIGHT, height)
    # Keep only the newest frame queued
    cap.set(cv2.CAP_PROP_BUFFERSIZE, 1)
    return cap


class LandmarkStream:
    """
    Latest-value producer of GestureState.

    Usage:
        with LandmarkStream(camera_id=0) as stream:
            state = stream.poll()  # None when nothing new arrived
    """

    JOIN_TIMEOUT = 2.0

    def __init__(
        self,
        camera_id: int = 0,
        width: int = 640,
        height: int = 480,
        classifier: Optional[GestureClassifier] = None,
        capture_factory: Optional[Callable[[], Any]] = None,
        tracker_factory: Optional[Callable[[], Any]] = None,
        mirror: bool = True
    ):
        """
        Initialize the stream. Nothing is opened until start().

        Args:
            camera_id: Camera device index
            width: Requested capture width
            height: Requested capture height
            classifier: Gesture classifier (a new one if None)
            capture_factory: Returns an object with isOpened/read/release,
                defaults to an OpenCV VideoCapture
            tracker_factory: Returns an object with process/release,
                defaults to a two-hand MediaPipe HandTracker
            mirror: Flip frames horizontally so motion matches the user's view
        """
        self.camera_id = camera_id
        self.classifier = classifier or GestureClassifier()
        self.mirror = mirror
        self._capture_factory = capture_factory or (
            lambda: _open_camera(camera_id, width, height)
        )
        self._tracker_factory = tracker_factory or (lambda: HandTracker(max_hands=2))

        self._thread: Optional[threading.Thread] = None
        self._stop_event: Optional[threading.Event] = None

        self._slot: Tuple[int, Optional[GestureState]] = (0, None)
        self._last_polled = 0
        self._frames_processed = 0
        self._failures = 0

    @property
    def is_running(self) -> bool:
        return self._thread is not None

    @property
    def frames_processed(self) -> int:
        return self._frames_processed

    @property
    def failures(self) -> int:
        """Number of frames dropped because inference raised."""
        return self._failures

    def start(self) -> bool:
        """
        Open the camera and tracker and start the producer thread.

        Returns:
            True if tracking is running, False if it could not start
        """
        if self._thread is not None:
            return True

        capture = self._capture_factory()
        if not capture.isOpened():
            print(f"[ERROR] Failed to open camera {self.camera_id}")
            capture.release()
            return False

        try:
            tracker = self._tracker_factory()
        except Exception as e:
            print(f"[ERROR] Failed to load hand tracker: {e}")
            capture.release()
            return False

        self._stop_event = threading.Event()
        self._thread = threading.Thread(
            target=self._run,
            args=(capture, tracker, self._stop_event),
            name="landmark-stream",
            daemon=True
        )
        self._thread.start()
        print(f"[INFO] Hand tracking started on camera {self.camera_id}")
        return True

    def _run(self, capture, tracker, stop_event: threading.Event):
        """
        Producer loop. Each iteration publishes at most one state.

        The loop owns the capture and tracker and releases them on exit,
        so a stop() that times out never frees them mid-frame.
        """
        try:
            while not stop_event.is_set():
                ret, frame = capture.read()
                if not ret or frame is None:
                    time.sleep(0.005)
                    continue

                if self.mirror:
                    frame = frame[:, ::-1]

                try:
                    hands = tracker.process(frame)
                except Exception as e:
                    # A failed frame is just "no data this frame" for the consumer
                    self._failures += 1
                    print(f"[WARNING] Hand tracking frame failed: {e}")
                    continue

                state = self.classifier.classify(hands)
                self._frames_processed += 1
                self._slot = (self._slot[0] + 1, state)
        finally:
            tracker.release()
            capture.release()

    def publish(self, state: GestureState):
        """Hand a state to the consumer directly (used by tests and replays)."""
        self._slot = (self._slot[0] + 1, state)

    def poll(self) -> Optional[GestureState]:
        """
        Return the newest GestureState if one arrived since the last poll.

        Returns:
            The state, or None when nothing new was published
        """
        sequence, state = self._slot
        if sequence == self._last_polled:
            return None
        self._last_polled = sequence
        return state

    def latest(self) -> Optional[GestureState]:
        """The most recent state, whether or not it was already polled."""
        return self._slot[1]

    def stop(self):
        """
        Stop tracking and release the camera and tracker.

        Waits for the in-flight inference to finish. Calling it again,
        or before start(), does nothing.
        """
        if self._thread is None:
            return

        self._stop_event.set()
        self._thread.join(timeout=self.JOIN_TIMEOUT)
        if self._thread.is_alive():
            print("[WARNING] Hand tracking still busy, camera is released when the frame finishes")
        self._thread = None
        self._stop_event = None

        print("[INFO] Hand tracking stopped")

    def __enter__(self):
        """Context manager entry."""
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.stop()
        return False
