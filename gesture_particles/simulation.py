"""
Simulation Module - Particle Swarm Integration
==============================================
Owns the particle buffers and advances them once per display frame.

Two regimes, chosen by the shape family:

- Target seeking (every family except fireworks): forces accumulate into
  velocity, velocity is damped, then integrated into position. A
  traveling wave running outward from the centre modulates the swirl and
  explosion strength, so changes ripple through the swarm instead of
  moving it rigidly.
- Fireworks: a repeating burst/reset cycle. Particles fly ballistically
  under gravity and drag during the burst, then get reeled back to the
  origin. Each new cycle launches with a fresh velocity field.

All per-particle math is vectorised over the whole swarm; a particle's
update reads only its own buffer slots.
"""

import colorsys
import math
import numpy as np
from typing import Optional, Tuple

from .config import ShapeFamily, SimulationConfig
from .controls import NEUTRAL, ControlValues
from .shapes import ShapeSpec, generate, generate_velocities, random_positions


class FireworksCycle:
    """Elapsed time within the repeating burst/reset cycle."""

    BURST_DURATION = 2.2
    RESET_DURATION = 0.9

    def __init__(self):
        self.elapsed = 0.0
        self.cycles = 0

    @property
    def duration(self) -> float:
        return self.BURST_DURATION + self.RESET_DURATION

    @property
    def in_burst(self) -> bool:
        return self.elapsed < self.BURST_DURATION

    def advance(self, dt: float) -> bool:
        """
        Move the cycle clock forward.

        Returns:
            True if a new cycle began during this step
        """
        self.elapsed += dt
        if self.elapsed >= self.duration:
            self.elapsed %= self.duration
            self.cycles += 1
            return True
        return False

    def reset(self):
        self.elapsed = 0.0
        self.cycles = 0


class Simulation:
    """
    Particle swarm state and per-frame integrator.

    The position, velocity and target buffers are (N, 3) float32 arrays
    that always share the same N. `position_buffer` exposes positions as
    the interleaved length-3N array renderers upload; it is updated in
    place every frame and replaced only on rebuild.
    """

    MAX_DT = 0.033

    # Target seeking
    ATTRACTION = 6.0
    SWIRL = 0.8
    TURBULENCE = 0.35
    EXPLOSION = 0.75
    DAMPING = 0.92
    WAVE_AMPLITUDE = 0.25
    WAVE_NUMBER = 2.5
    WAVE_SPEED = 3.0

    # Fireworks
    GRAVITY = -1.25
    DRAG = 0.995
    RETURN_RATE = 0.08  # Fraction of the way back to the origin per 60 Hz frame

    # Initial scatter radius before particles find their targets
    SCATTER_RADIUS = 7.0
    FIREWORKS_SCATTER_RADIUS = 0.2

    # Material
    POINT_SIZE_FACTOR = 0.01
    BREATH_AMPLITUDE = 0.06
    BREATH_FREQUENCY = 0.25
    ROTATE_THRESHOLD = 0.01
    RAINBOW_SPEED = 0.5
    RAINBOW_SATURATION = 0.8
    RAINBOW_LIGHTNESS = 0.6

    def __init__(
        self,
        config: Optional[SimulationConfig] = None,
        rng: Optional[np.random.Generator] = None
    ):
        """
        Initialize and build the first swarm.

        Args:
            config: Simulation configuration (defaults to SimulationConfig())
            rng: Optional random source shared by every regeneration
        """
        self._rng = rng
        self._config: Optional[SimulationConfig] = None
        self._spec: Optional[ShapeSpec] = None
        self._positions = np.zeros((0, 3), dtype=np.float32)
        self._velocities = np.zeros((0, 3), dtype=np.float32)
        self._targets = np.zeros((0, 3), dtype=np.float32)
        self.fireworks = FireworksCycle()

        self.time = 0.0
        self.rotation_y = 0.0
        self._hue = 0.0
        self.point_size = 0.0
        self.color: Tuple[float, float, float] = (1.0, 1.0, 1.0)

        self.rebuild(config or SimulationConfig())

    # ------------------------------------------------------------------
    # Buffers and configuration

    @property
    def config(self) -> SimulationConfig:
        return self._config

    @property
    def spec(self) -> ShapeSpec:
        return self._spec

    @property
    def shape(self) -> ShapeFamily:
        return self._config.shape

    @property
    def count(self) -> int:
        return len(self._positions)

    @property
    def positions(self) -> np.ndarray:
        return self._positions

    @property
    def velocities(self) -> np.ndarray:
        return self._velocities

    @property
    def targets(self) -> np.ndarray:
        return self._targets

    @property
    def position_buffer(self) -> np.ndarray:
        """Interleaved x/y/z positions of length 3N (a view, not a copy)."""
        return self._positions.reshape(-1)

    def rebuild(self, config: SimulationConfig):
        """
        Discard the swarm and generate new buffers for `config`.

        Positions restart from a random volumetric scatter; nothing carries
        over from the previous shape. The new arrays are all built before
        any is swapped in, so a failure here leaves the old swarm intact.
        """
        fireworks = config.shape == ShapeFamily.FIREWORKS
        radius = self.FIREWORKS_SCATTER_RADIUS if fireworks else self.SCATTER_RADIUS

        generated = generate(config.shape, config.count, self._rng)
        positions = random_positions(config.count, radius, self._rng)

        self._positions = positions
        self._velocities = generated.velocities
        self._targets = generated.targets
        self._spec = generated.spec
        self._config = config
        self.fireworks.reset()
        self.color = config.rgb
        self.point_size = config.base_size * self.POINT_SIZE_FACTOR

    def apply_config(self, config: SimulationConfig) -> bool:
        """
        Switch to a new configuration.

        Shape, count and base size changes rebuild the swarm; colour and
        rainbow changes apply in place.

        Returns:
            True if the swarm was rebuilt
        """
        if self._config.requires_rebuild(config):
            self.rebuild(config)
            return True
        self._config = config
        if not config.rainbow:
            self.color = config.rgb
        return False

    def set_rainbow(self, enabled: bool):
        if enabled != self._config.rainbow:
            self.apply_config(self._config.with_changes(rainbow=enabled))

    # ------------------------------------------------------------------
    # Integration

    def step(self, dt: float, controls: Optional[ControlValues] = None):
        """
        Advance the swarm and the material by one frame.

        Args:
            dt: Seconds since the previous frame, clamped to MAX_DT
            controls: Smoothed gesture controls (neutral if None)
        """
        if not dt > 0.0:
            dt = 0.0
        dt = min(dt, self.MAX_DT)
        controls = controls or NEUTRAL
        self.time += dt

        if self.count:
            with np.errstate(all="ignore"):
                if self._config.shape == ShapeFamily.FIREWORKS:
                    self._step_fireworks(dt)
                else:
                    self._step_targets(dt, controls.explode)

        self._step_material(dt, controls)

    def _step_targets(self, dt: float, explode: float):
        p, v = self._positions, self._velocities
        t = self.time
        x, y, z = p[:, 0], p[:, 1], p[:, 2]

        radius = np.sqrt(x * x + y * y + z * z)
        wave = 1.0 + self.WAVE_AMPLITUDE * np.sin(self.WAVE_NUMBER * radius - self.WAVE_SPEED * t)

        acc = (self._targets - p) * self.ATTRACTION

        # Swirl about the vertical axis
        swirl = self.SWIRL * wave
        acc[:, 0] -= z * swirl
        acc[:, 2] += x * swirl

        # Time-varying turbulence
        acc[:, 0] += self.TURBULENCE * np.sin(1.7 * y + 1.1 * t)
        acc[:, 1] += self.TURBULENCE * np.sin(1.3 * z + 0.9 * t)
        acc[:, 2] += self.TURBULENCE * np.sin(1.5 * x + 1.3 * t)

        # Explosion: radial, signed by the explode control
        acc += p * (explode * self.EXPLOSION * wave)[:, None]

        v += acc * dt
        v *= self.DAMPING
        p += v * dt

    def _step_fireworks(self, dt: float):
        if self.fireworks.advance(dt):
            self._velocities[:] = generate_velocities(
                ShapeFamily.FIREWORKS, self.count, self._rng
            )

        p, v = self._positions, self._velocities
        if self.fireworks.in_burst:
            p += v * dt
            p[:, 1] += 0.5 * self.GRAVITY * dt * dt
            v[:, 1] += self.GRAVITY * dt
            v *= self.DRAG
        else:
            # Exponential pull to the origin, corrected for frame rate
            p *= (1.0 - self.RETURN_RATE) ** (dt * 60.0)

    def _step_material(self, dt: float, controls: ControlValues):
        if controls.rotate > self.ROTATE_THRESHOLD:
            self.rotation_y = (self.rotation_y + controls.rotate * dt) % (2 * math.pi)

        breath = 1.0 + self.BREATH_AMPLITUDE * math.sin(2 * math.pi * self.BREATH_FREQUENCY * self.time)
        self.point_size = self._config.base_size * self.POINT_SIZE_FACTOR * controls.scale * breath

        if self._config.rainbow:
            self._hue = (self._hue + dt * self.RAINBOW_SPEED) % 1.0
            self.color = colorsys.hls_to_rgb(
                self._hue, self.RAINBOW_LIGHTNESS, self.RAINBOW_SATURATION
            )
        else:
            self.color = self._config.rgb

    @property
    def hue(self) -> float:
        return self._hue
