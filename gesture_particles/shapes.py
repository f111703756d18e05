"""
Shapes Module - Particle Target Generation
==========================================
Generates the target point cloud for each shape family and the initial
velocity field handed to the simulation.

Every family has a deterministic silhouette with random jitter layered on
top. Randomness comes from a numpy Generator; pass a seeded one for
reproducible output, otherwise each call draws fresh entropy.
"""

import math
import numpy as np
from dataclasses import dataclass
from typing import Callable, Dict, Optional, Tuple, Union

from .config import ConfigurationError, ShapeFamily

__all__ = [
    "Bloom",
    "ShapeFamily",
    "ShapeSpec",
    "ShapeTargets",
    "build_spec",
    "generate",
    "generate_targets",
    "generate_velocities",
    "random_positions",
]

ShapeTag = Union[ShapeFamily, str]

TWO_PI = 2.0 * math.pi


@dataclass(frozen=True)
class Bloom:
    """One rose curve of the flowers family."""
    cx: float
    cy: float
    cz: float
    petals: int
    scale: float


@dataclass(frozen=True)
class ShapeSpec:
    """
    Per-family constants derived once per (family, count).

    Attributes:
        family: The shape family
        count: Number of particles the spec was built for
        blooms: Rose curves (flowers only)
        arms: Spiral arm count (galaxy only)
        ribbons: Ribbon count (aurora only)
        grid_size: Side of the square grid (wave only)
    """
    family: ShapeFamily
    count: int
    blooms: Tuple[Bloom, ...] = ()
    arms: int = 0
    ribbons: int = 0
    grid_size: int = 0


@dataclass
class ShapeTargets:
    """Output of one generation: the spec plus (N, 3) target and velocity arrays."""
    spec: ShapeSpec
    targets: np.ndarray
    velocities: np.ndarray

    @property
    def count(self) -> int:
        return len(self.targets)

    def flat_targets(self) -> np.ndarray:
        """Interleaved x/y/z view of length 3N."""
        return self.targets.reshape(-1)

    def flat_velocities(self) -> np.ndarray:
        """Interleaved x/y/z view of length 3N."""
        return self.velocities.reshape(-1)


def _resolve_rng(rng: Optional[np.random.Generator]) -> np.random.Generator:
    return rng if rng is not None else np.random.default_rng()


def _check_count(count: int) -> int:
    if isinstance(count, bool) or not isinstance(count, (int, np.integer)):
        raise ConfigurationError(f"Particle count must be an integer, got {count!r}")
    if count < 0:
        raise ConfigurationError(f"Particle count must not be negative, got {count}")
    return int(count)


def _empty() -> np.ndarray:
    return np.zeros((0, 3), dtype=np.float32)


def _sphere_directions(n: int, rng: np.random.Generator) -> np.ndarray:
    """Unit vectors uniformly distributed over the sphere."""
    theta = TWO_PI * rng.random(n)
    phi = np.arccos(2.0 * rng.random(n) - 1.0)
    return np.stack([
        np.sin(phi) * np.cos(theta),
        np.cos(phi),
        np.sin(phi) * np.sin(theta),
    ], axis=1)


def random_positions(
    count: int,
    radius: float = 6.0,
    rng: Optional[np.random.Generator] = None
) -> np.ndarray:
    """
    Scatter points uniformly through the volume of a ball.

    The radius is scaled by a cube root so the density is uniform
    rather than clustered at the centre.

    Args:
        count: Number of points
        radius: Ball radius
        rng: Optional random source

    Returns:
        (count, 3) float32 array
    """
    n = _check_count(count)
    if n == 0:
        return _empty()
    rng = _resolve_rng(rng)
    r = np.cbrt(rng.random(n)) * radius
    return (_sphere_directions(n, rng) * r[:, None]).astype(np.float32)


def build_spec(
    shape: ShapeTag,
    count: int,
    rng: Optional[np.random.Generator] = None
) -> ShapeSpec:
    """
    Derive the per-family constants for a generation.

    Args:
        shape: Shape family or its string tag
        count: Number of particles

    Raises:
        ConfigurationError: For an unknown shape or a negative count
    """
    family = ShapeFamily.parse(shape)
    n = _check_count(count)

    if family == ShapeFamily.FLOWERS:
        rng = _resolve_rng(rng)
        blooms = []
        for b in range(5):
            a = b / 5 * TWO_PI
            blooms.append(Bloom(
                cx=math.cos(a) * 2.2,
                cy=math.sin(a) * 1.2,
                cz=float(rng.uniform(-0.6, 0.6)),
                petals=4 + (b % 5),
                scale=float(1.0 + rng.random() * 0.7),
            ))
        return ShapeSpec(family, n, blooms=tuple(blooms))
    if family == ShapeFamily.GALAXY:
        return ShapeSpec(family, n, arms=3)
    if family == ShapeFamily.AURORA:
        return ShapeSpec(family, n, ribbons=4)
    if family == ShapeFamily.WAVE:
        return ShapeSpec(family, n, grid_size=math.ceil(math.sqrt(n)))
    return ShapeSpec(family, n)


# Per-family target builders. Each receives the spec, a random source
# and the particle index array, and returns float64 (N, 3) points.

def _hearts(spec: ShapeSpec, rng: np.random.Generator, i: np.ndarray) -> np.ndarray:
    t = i / spec.count * TWO_PI
    x = 16 * np.sin(t) ** 3
    y = 13 * np.cos(t) - 5 * np.cos(2 * t) - 2 * np.cos(3 * t) - np.cos(4 * t)
    z = rng.uniform(-0.4, 0.4, len(i))
    return np.stack([x / 10 * 2.0, y / 10 * 2.0, z], axis=1)


def _flowers(spec: ShapeSpec, rng: np.random.Generator, i: np.ndarray) -> np.ndarray:
    b = i % len(spec.blooms)
    cx = np.array([bl.cx for bl in spec.blooms])[b]
    cy = np.array([bl.cy for bl in spec.blooms])[b]
    cz = np.array([bl.cz for bl in spec.blooms])[b]
    k = np.array([bl.petals for bl in spec.blooms])[b]
    s = np.array([bl.scale for bl in spec.blooms])[b]

    # Later blooms sweep more turns so their petals are traced more densely
    t = i / spec.count * TWO_PI * (3 + b)
    r = np.cos(k * t)
    x = cx + r * np.cos(t) * s * 2.0
    y = cy + r * np.sin(t) * s * 2.0
    z = cz + rng.uniform(-0.3, 0.3, len(i))
    return np.stack([x, y, z], axis=1)


def _fireworks(spec: ShapeSpec, rng: np.random.Generator, i: np.ndarray) -> np.ndarray:
    return random_positions(len(i), 0.2, rng).astype(np.float64)


def _galaxy(spec: ShapeSpec, rng: np.random.Generator, i: np.ndarray) -> np.ndarray:
    arm = i % spec.arms
    t = i / spec.count * 4 + rng.uniform(-0.15, 0.15, len(i))
    r = 0.4 * np.exp(0.25 * t)
    angle = t + arm / spec.arms * TWO_PI
    scatter = rng.uniform(-0.2, 0.2, len(i))
    return np.stack([
        r * np.cos(angle) + scatter,
        r * np.sin(angle) + scatter,
        np.sin(t * 1.5) * 0.3 + scatter,
    ], axis=1)


def _helix(t: np.ndarray, strand: np.ndarray) -> np.ndarray:
    radius, height, turns = 0.8, 4.0, 3
    phase = strand * math.pi
    angle = t * turns * TWO_PI + phase
    return np.stack([
        radius * np.cos(angle),
        (t - 0.5) * height,
        radius * np.sin(angle),
    ], axis=-1)


def _dna(spec: ShapeSpec, rng: np.random.Generator, i: np.ndarray) -> np.ndarray:
    n = spec.count
    t = i / n
    points = _helix(t, i % 2)

    # Rungs: 8 particles bridging the strands, starting at every 40th index
    starts = np.arange(0, n, 40)
    steps = np.arange(8)
    idx = starts[:, None] + steps[None, :]
    inside = idx < n
    t0 = starts / n
    a = _helix(t0, np.zeros_like(t0))
    b = _helix(t0, np.ones_like(t0))
    frac = (steps / 8.0)[None, :, None]
    rungs = a[:, None, :] + (b - a)[:, None, :] * frac
    points[idx[inside]] = rungs[inside]
    return points


def _butterfly(spec: ShapeSpec, rng: np.random.Generator, i: np.ndarray) -> np.ndarray:
    t = i / spec.count * math.pi * 12
    f = np.exp(np.cos(t)) - 2 * np.cos(4 * t) - np.sin(t / 12) ** 5
    scale = 2 * 0.15 * 3
    z = rng.uniform(-0.25, 0.25, len(i))
    return np.stack([np.sin(t) * f * scale, np.cos(t) * f * scale, z], axis=1)


def _wave(spec: ShapeSpec, rng: np.random.Generator, i: np.ndarray) -> np.ndarray:
    g = spec.grid_size
    x = ((i % g) / g - 0.5) * 6
    z = ((i // g) / g - 0.5) * 6
    y = np.sin(x * 1.5) * np.cos(z * 1.5) * 1.2
    return np.stack([x, y, z], axis=1)


def _vortex(spec: ShapeSpec, rng: np.random.Generator, i: np.ndarray) -> np.ndarray:
    t = i / spec.count
    radius = (1 - t) * 2 + 0.3
    angle = t * math.pi * 12
    return np.stack([radius * np.cos(angle), (t - 0.5) * 6, radius * np.sin(angle)], axis=1)


def _aurora(spec: ShapeSpec, rng: np.random.Generator, i: np.ndarray) -> np.ndarray:
    ribbons = spec.ribbons
    w = i % ribbons
    x = (i / spec.count - 0.5) * 8
    offset = w / ribbons * 2
    y = np.sin(x * 0.8 + offset) * 1.5 + offset
    z = (w - ribbons / 2) * 0.6 + rng.uniform(-0.2, 0.2, len(i))
    return np.stack([x, y, z], axis=1)


_TARGET_BUILDERS: Dict[ShapeFamily, Callable[..., np.ndarray]] = {
    ShapeFamily.HEARTS: _hearts,
    ShapeFamily.FLOWERS: _flowers,
    ShapeFamily.FIREWORKS: _fireworks,
    ShapeFamily.GALAXY: _galaxy,
    ShapeFamily.DNA: _dna,
    ShapeFamily.BUTTERFLY: _butterfly,
    ShapeFamily.WAVE: _wave,
    ShapeFamily.VORTEX: _vortex,
    ShapeFamily.AURORA: _aurora,
}


def _targets_for(spec: ShapeSpec, rng: np.random.Generator) -> np.ndarray:
    if spec.count == 0:
        return _empty()
    i = np.arange(spec.count)
    return _TARGET_BUILDERS[spec.family](spec, rng, i).astype(np.float32)


def generate_targets(
    shape: ShapeTag,
    count: int,
    rng: Optional[np.random.Generator] = None
) -> np.ndarray:
    """
    Generate the target point cloud for a shape.

    Args:
        shape: Shape family or its string tag
        count: Number of particles (0 yields an empty array)
        rng: Optional random source

    Returns:
        (count, 3) float32 array

    Raises:
        ConfigurationError: For an unknown shape or a negative count
    """
    rng = _resolve_rng(rng)
    return _targets_for(build_spec(shape, count, rng), rng)


def generate_velocities(
    shape: ShapeTag,
    count: int,
    rng: Optional[np.random.Generator] = None
) -> np.ndarray:
    """
    Generate the initial velocity field for a shape.

    Fireworks get a launch field: uniform directions over the full sphere
    with speeds in [1.2, 3.4]. Every other family gets a small uniform
    per-axis kick.

    Returns:
        (count, 3) float32 array
    """
    family = ShapeFamily.parse(shape)
    n = _check_count(count)
    if n == 0:
        return _empty()
    rng = _resolve_rng(rng)

    if family == ShapeFamily.FIREWORKS:
        speed = 1.2 + rng.random(n) * 2.2
        vels = _sphere_directions(n, rng) * speed[:, None]
    elif family == ShapeFamily.GALAXY:
        vels = rng.uniform(-0.04, 0.04, (n, 3))
    elif family == ShapeFamily.VORTEX:
        vels = rng.uniform(-1.0, 1.0, (n, 3)) * np.array([0.125, 0.05, 0.125])
    else:
        vels = rng.uniform(-0.075, 0.075, (n, 3))
    return vels.astype(np.float32)


def generate(
    shape: ShapeTag,
    count: int,
    rng: Optional[np.random.Generator] = None
) -> ShapeTargets:
    """
    Generate targets and initial velocities in one pass.

    Args:
        shape: Shape family or its string tag
        count: Number of particles
        rng: Optional random source

    Returns:
        ShapeTargets with the spec used and both arrays
    """
    rng = _resolve_rng(rng)
    spec = build_spec(shape, count, rng)
    return ShapeTargets(
        spec=spec,
        targets=_targets_for(spec, rng),
        velocities=generate_velocities(spec.family, spec.count, rng),
    )
