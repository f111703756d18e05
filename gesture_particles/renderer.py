"""
Renderer Module - Point Cloud Preview
=====================================
Projects the simulation's position buffer into an OpenCV image.

Particles are rotated about the vertical axis by the simulation's
orientation, perspective-projected, splatted into a mask and grown to the
current point size. A soft glow pass is added on top.
"""

import cv2
import numpy as np
from datetime import datetime
from pathlib import Path
from typing import Optional, Tuple

from .simulation import Simulation


def rotate_y(points: np.ndarray, angle: float) -> np.ndarray:
    """Rotate (N, 3) points about the y axis by `angle` radians."""
    c, s = np.cos(angle), np.sin(angle)
    rotated = np.empty_like(points)
    rotated[:, 0] = points[:, 0] * c + points[:, 2] * s
    rotated[:, 1] = points[:, 1]
    rotated[:, 2] = -points[:, 0] * s + points[:, 2] * c
    return rotated


def rgb_to_bgr(color: Tuple[float, float, float]) -> Tuple[int, int, int]:
    """Convert RGB floats in 0..1 to an OpenCV BGR tuple."""
    r, g, b = (int(round(max(0.0, min(1.0, c)) * 255)) for c in color)
    return (b, g, r)


class ParticleRenderer:
    """
    Perspective preview of a Simulation.

    The camera sits on the +z axis looking at the origin.
    """

    BACKGROUND = (12, 8, 10)
    CAMERA_DISTANCE = 16.0
    NEAR_PLANE = 0.5
    GLOW_STRENGTH = 0.6
    GLOW_KERNEL = (0, 0)
    GLOW_SIGMA = 6

    def __init__(self, width: int = 960, height: int = 540, focal: Optional[float] = None, glow: bool = True):
        """
        Initialize the renderer.

        Args:
            width: Output image width
            height: Output image height
            focal: Focal length in pixels (defaults to 1.6x the shorter side)
            glow: Add a blurred glow pass
        """
        self.width = width
        self.height = height
        self.focal = focal if focal is not None else 1.6 * min(width, height)
        self.glow = glow

    def project(self, points: np.ndarray) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
        """
        Perspective-project (N, 3) world points to pixels.

        Returns:
            Tuple of (x pixels, y pixels, visibility mask)
        """
        depth = self.CAMERA_DISTANCE - points[:, 2]
        visible = depth > self.NEAR_PLANE
        safe_depth = np.where(visible, depth, 1.0)

        # World y is up, image y is down
        px = points[:, 0] / safe_depth * self.focal + self.width / 2
        py = -points[:, 1] / safe_depth * self.focal + self.height / 2

        visible &= np.isfinite(px) & np.isfinite(py)
        visible &= (px >= 0) & (px < self.width) & (py >= 0) & (py < self.height)
        px = np.where(visible, px, 0).astype(np.int32)
        py = np.where(visible, py, 0).astype(np.int32)
        return px, py, visible

    def point_radius(self, point_size: float) -> int:
        """Pixel radius of a point of world size `point_size` at the origin."""
        return max(0, int(round(point_size * self.focal / self.CAMERA_DISTANCE / 2)))

    def render(self, simulation: Simulation, background: Optional[np.ndarray] = None) -> np.ndarray:
        """
        Draw the swarm.

        Args:
            simulation: The simulation to draw
            background: Optional BGR image drawn behind the particles

        Returns:
            BGR image of size (height, width, 3)
        """
        if background is not None:
            frame = cv2.resize(background, (self.width, self.height))
            frame = (frame * 0.35).astype(np.uint8)
        else:
            frame = np.full((self.height, self.width, 3), self.BACKGROUND, dtype=np.uint8)

        if simulation.count == 0:
            return frame

        points = rotate_y(simulation.positions, simulation.rotation_y)
        px, py, visible = self.project(points)

        mask = np.zeros((self.height, self.width), dtype=np.uint8)
        mask[py[visible], px[visible]] = 255

        radius = self.point_radius(simulation.point_size)
        if radius > 0:
            kernel = cv2.getStructuringElement(cv2.MORPH_ELLIPSE, (2 * radius + 1, 2 * radius + 1))
            mask = cv2.dilate(mask, kernel)

        color = rgb_to_bgr(simulation.color)
        layer = np.zeros_like(frame)
        layer[mask > 0] = color

        if self.glow:
            halo = cv2.GaussianBlur(layer, self.GLOW_KERNEL, self.GLOW_SIGMA)
            frame = cv2.addWeighted(frame, 1.0, halo, self.GLOW_STRENGTH, 0)

        frame[mask > 0] = color
        return frame


def save_screenshot(image: np.ndarray, output_dir: Path, prefix: str = "particles") -> Path:
    """
    Write `image` to a timestamped PNG in `output_dir`.

    Returns:
        Path of the written file
    """
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    filename = output_dir / f"{prefix}_{timestamp}.png"
    cv2.imwrite(str(filename), image)
    print(f"[INFO] Saved screenshot: {filename}")
    return filename
