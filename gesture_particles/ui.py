"""
UI Module - Main Application Interface
======================================
Real-time gesture-controlled particle preview.
Ties the landmark stream, control smoother, simulation and renderer into
one frame loop.
"""

import cv2
import numpy as np
from typing import Optional
import time
from pathlib import Path

from .config import (
    ConfigurationError, ShapeFamily, SimulationConfig,
    MIN_PARTICLES, MAX_PARTICLES, DEFAULT_CAMERA, OUTPUT_DIR
)
from .controls import ControlSmoother
from .gesture_logic import Gesture, GestureClassifier, GestureState
from .landmark_stream import LandmarkStream
from .presets import ShapePresets
from .renderer import ParticleRenderer, save_screenshot
from .simulation import Simulation


class ParticleApp:
    """
    Main application class for the gesture-controlled particle preview.

    Each frame polls the landmark stream, feeds the smoother, steps the
    simulation and renders, in that order.
    """

    WINDOW_NAME = "Gesture Particles"
    MAIN_WIDTH = 960
    MAIN_HEIGHT = 540

    # UI Colors (BGR)
    UI_BG_COLOR = (30, 30, 30)
    UI_ACCENT_COLOR = (0, 200, 255)
    UI_TEXT_COLOR = (255, 255, 255)
    UI_SUCCESS_COLOR = (0, 255, 0)

    COUNT_STEP = 2000
    SIZE_STEP = 1.0
    SIZE_RANGE = (1.0, 20.0)

    def __init__(
        self,
        config: Optional[SimulationConfig] = None,
        camera_id: int = DEFAULT_CAMERA,
        use_camera: bool = True,
        stream=None,
        renderer: Optional[ParticleRenderer] = None,
        output_dir: Path = OUTPUT_DIR,
        rng: Optional[np.random.Generator] = None
    ):
        """
        Initialize the application.

        Args:
            config: Initial simulation configuration (environment defaults if None)
            camera_id: Camera device index
            use_camera: Run hand tracking; without it the swarm stays neutral
            stream: Anything with poll()/start()/stop(); replaces the camera stream
            renderer: Preview renderer (a new one if None)
            output_dir: Where screenshots go
            rng: Random source for the simulation
        """
        self.simulation = Simulation(config or SimulationConfig.from_env(), rng=rng)
        self.smoother = ControlSmoother()
        self.classifier = GestureClassifier()
        self.renderer = renderer or ParticleRenderer(self.MAIN_WIDTH, self.MAIN_HEIGHT)

        if stream is None and use_camera:
            stream = LandmarkStream(camera_id=camera_id, classifier=self.classifier)
        self.stream = stream
        self._tracking = False

        self._running = False
        self._status = ""
        self._output_dir = Path(output_dir)
        self._last_frame: Optional[np.ndarray] = None

        self._shapes = list(ShapeFamily)
        self._presets = ShapePresets.get_all_ids()
        self._current_preset_idx = -1

        # Performance tracking
        self._fps_counter = 0
        self._fps_time = time.time()
        self._current_fps = 0.0

        self.smoother.register_callback(Gesture.PEACE, self._on_peace)

    def _on_peace(self):
        """Callback when the peace sign latches rainbow mode."""
        self.simulation.set_rainbow(True)
        self._status = "Rainbow on"

    # ------------------------------------------------------------------
    # Configuration changes

    def change_config(self, **changes) -> bool:
        """
        Apply configuration changes, rebuilding the swarm when needed.

        Returns:
            False if the change was rejected
        """
        try:
            config = self.simulation.config.with_changes(**changes)
        except ConfigurationError as e:
            print(f"[WARNING] {e}")
            self._status = str(e)
            return False

        if self.simulation.apply_config(config):
            print(f"[INFO] Rebuilt swarm: {config.shape.value}, {config.count} particles")
        return True

    def apply_preset(self, preset_id: str) -> bool:
        try:
            preset = ShapePresets.get_preset(preset_id)
        except ConfigurationError as e:
            print(f"[WARNING] {e}")
            self._status = str(e)
            return False

        config = SimulationConfig.from_preset(preset, rainbow=self.simulation.config.rainbow)
        if self.simulation.apply_config(config):
            print(f"[INFO] Rebuilt swarm: {config.shape.value}, {config.count} particles")
        self._status = f"Preset: {preset.name}"
        return True

    def next_preset(self):
        self._current_preset_idx = (self._current_preset_idx + 1) % len(self._presets)
        self.apply_preset(self._presets[self._current_preset_idx])

    # ------------------------------------------------------------------
    # Tracking

    def start_tracking(self) -> bool:
        if self.stream is None:
            return False
        self._tracking = self.stream.start()
        if not self._tracking:
            self.smoother.ingest(GestureState.none())
        return self._tracking

    def stop_tracking(self):
        """Stop the stream and let the controls relax to neutral."""
        if self.stream is not None:
            self.stream.stop()
        self._tracking = False
        self.smoother.ingest(GestureState.none())

    def toggle_tracking(self):
        if self._tracking:
            self.stop_tracking()
            self._status = "Tracking off"
        elif self.start_tracking():
            self._status = "Tracking on"
        else:
            self._status = "Camera unavailable"

    # ------------------------------------------------------------------
    # Frame loop

    def update(self, dt: float):
        """
        Advance one frame without drawing.

        Args:
            dt: Seconds since the previous frame
        """
        state = self.stream.poll() if self._tracking else None
        controls = self.smoother.update(state)
        self.simulation.step(dt, controls)

    def tick(self, dt: float) -> np.ndarray:
        """
        Advance and draw one frame.

        Returns:
            The rendered BGR frame with HUD
        """
        self.update(dt)
        frame = self.renderer.render(self.simulation)
        self._update_fps()
        self._last_frame = self._draw_ui(frame)
        return self._last_frame

    def _update_fps(self):
        """Update FPS counter."""
        self._fps_counter += 1
        current_time = time.time()
        elapsed = current_time - self._fps_time

        if elapsed >= 1.0:
            self._current_fps = self._fps_counter / elapsed
            self._fps_counter = 0
            self._fps_time = current_time

    def _draw_ui(self, frame: np.ndarray) -> np.ndarray:
        """Draw HUD elements on the frame."""
        h, w = frame.shape[:2]
        config = self.simulation.config
        values = self.smoother.values

        cv2.rectangle(frame, (0, 0), (w, 50), self.UI_BG_COLOR, -1)

        cv2.putText(
            frame, f"FPS: {self._current_fps:.1f}",
            (10, 35), cv2.FONT_HERSHEY_SIMPLEX, 0.7,
            self.UI_SUCCESS_COLOR, 2
        )

        shape_text = f"{config.shape.value} x{config.count}"
        if config.rainbow:
            shape_text += " rainbow"
        cv2.putText(
            frame, shape_text,
            (150, 35), cv2.FONT_HERSHEY_SIMPLEX, 0.7,
            self.UI_ACCENT_COLOR, 2
        )

        if self._status:
            cv2.putText(
                frame, self._status,
                (w - 350, 35), cv2.FONT_HERSHEY_SIMPLEX, 0.6,
                self.UI_TEXT_COLOR, 2
            )

        # Gesture and controls (bottom left)
        if self._tracking:
            gesture_text = self.classifier.describe(self.smoother.last_gesture)
        else:
            gesture_text = "Tracking off"
        lines = [
            gesture_text,
            f"scale {values.scale:.2f}  explode {values.explode:+.2f}  rotate {values.rotate:.2f}",
        ]
        y_pos = h - 40
        for line in lines:
            cv2.putText(
                frame, line,
                (10, y_pos), cv2.FONT_HERSHEY_SIMPLEX, 0.5,
                self.UI_TEXT_COLOR, 1
            )
            y_pos += 20

        instructions = [
            "[1-9] Shape | [+/-] Count | [[/]] Size",
            "[P] Preset | [R] Rainbow | [S] Save",
            "[C] Camera | [X] Reset | [Q] Quit"
        ]
        y_pos = h - 80
        for inst in instructions:
            cv2.putText(
                frame, inst,
                (w - 300, y_pos), cv2.FONT_HERSHEY_SIMPLEX, 0.5,
                (150, 150, 150), 1
            )
            y_pos += 20

        return frame

    def _handle_keyboard(self, key: int) -> bool:
        """
        Handle keyboard input.

        Returns:
            False if should quit, True otherwise
        """
        config = self.simulation.config

        if key == ord('q') or key == 27:  # Q or Escape
            return False

        elif ord('1') <= key <= ord('9'):
            shape = self._shapes[key - ord('1')]
            self.change_config(shape=shape)
            self._status = f"Shape: {shape.value}"

        elif key == ord('+') or key == ord('='):
            self.change_config(count=min(config.count + self.COUNT_STEP, MAX_PARTICLES))

        elif key == ord('-'):
            self.change_config(count=max(config.count - self.COUNT_STEP, MIN_PARTICLES))

        elif key == ord(']'):
            lo, hi = self.SIZE_RANGE
            self.change_config(base_size=min(max(config.base_size + self.SIZE_STEP, lo), hi))

        elif key == ord('['):
            lo, hi = self.SIZE_RANGE
            self.change_config(base_size=min(max(config.base_size - self.SIZE_STEP, lo), hi))

        elif key == ord('r'):
            self.simulation.set_rainbow(not config.rainbow)
            self._status = "Rainbow on" if self.simulation.config.rainbow else "Rainbow off"

        elif key == ord('p'):
            self.next_preset()

        elif key == ord('s'):
            if self._last_frame is not None:
                save_screenshot(self._last_frame, self._output_dir)
                self._status = "Screenshot saved"

        elif key == ord('c'):
            self.toggle_tracking()

        elif key == ord('x'):
            self.smoother.reset()
            self._status = "Controls reset"

        return True

    def run(self):
        """Run the main application loop."""
        print("\n" + "=" * 60)
        print("  Gesture Particles - Hand-Controlled Point Cloud")
        print("=" * 60)
        print("\nGestures:")
        print("  Pinch (thumb + index)  -> Scale")
        print("  Open palm              -> Explode")
        print("  Closed fist            -> Collapse")
        print("  Two hands              -> Rotate, distance scales")
        print("  Peace sign             -> Rainbow")
        print("\nKeyboard:")
        print("  [1-9] Shape | [+/-] Count | [ and ] Size")
        print("  [P] Next preset | [R] Rainbow | [S] Screenshot")
        print("  [C] Toggle camera | [X] Reset controls | [Q] Quit")
        print("\n" + "=" * 60)

        if self.stream is not None and not self.start_tracking():
            print("[WARNING] Hand tracking unavailable, running without it")

        self._running = True
        cv2.namedWindow(self.WINDOW_NAME, cv2.WINDOW_NORMAL)
        cv2.resizeWindow(self.WINDOW_NAME, self.renderer.width, self.renderer.height)

        try:
            last = time.perf_counter()
            while self._running:
                now = time.perf_counter()
                frame = self.tick(now - last)
                last = now

                cv2.imshow(self.WINDOW_NAME, frame)

                key = cv2.waitKey(1) & 0xFF
                if not self._handle_keyboard(key):
                    break

        finally:
            self._running = False
            self.stop_tracking()
            cv2.destroyAllWindows()
            print("\n[INFO] Application closed")


def build_config(args) -> SimulationConfig:
    """
    Merge command-line arguments over the environment defaults.

    Raises:
        ConfigurationError: If the resulting configuration is invalid
    """
    if args.preset:
        config = SimulationConfig.from_preset(ShapePresets.get_preset(args.preset))
    else:
        config = SimulationConfig.from_env()

    changes = {}
    if args.shape is not None:
        changes['shape'] = args.shape
    if args.count is not None:
        changes['count'] = args.count
    if args.size is not None:
        changes['base_size'] = args.size
    if args.color is not None:
        changes['color'] = args.color
    if args.rainbow:
        changes['rainbow'] = True
    return config.with_changes(**changes) if changes else config


def create_parser():
    import argparse

    parser = argparse.ArgumentParser(description="Gesture Particles - Hand-controlled particle shapes")
    parser.add_argument('--shape', choices=[f.value for f in ShapeFamily], help='Shape family')
    parser.add_argument('--count', type=int, help=f'Particle count ({MIN_PARTICLES}-{MAX_PARTICLES})')
    parser.add_argument('--size', type=float, help='Base point size')
    parser.add_argument('--color', help='Base colour as #rrggbb')
    parser.add_argument('--rainbow', action='store_true', help='Start with rainbow colours')
    parser.add_argument('--preset', choices=ShapePresets.get_all_ids(), help='Start from a built-in preset')
    parser.add_argument('--camera', type=int, default=DEFAULT_CAMERA, help='Camera device index')
    parser.add_argument('--no-camera', action='store_true', help='Run without hand tracking')
    return parser


def main(argv=None):
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)

    try:
        config = build_config(args)
    except ConfigurationError as e:
        parser.error(str(e))

    app = ParticleApp(
        config=config,
        camera_id=args.camera,
        use_camera=not args.no_camera
    )
    app.run()


if __name__ == "__main__":
    main()
