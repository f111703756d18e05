"""
Config Module - Runtime Configuration
=====================================
Shape families, the validated simulation configuration record, and the
environment-driven defaults used by the application entry point.

Environment variables are read once at import time. `main.py` loads the
`.env` file before this module is imported.
"""

import math
import os
import re
from dataclasses import dataclass, replace
from enum import Enum
from pathlib import Path
from typing import Any, Mapping, Tuple, Union


class ConfigurationError(ValueError):
    """Raised for invalid particle counts, sizes, colours or shape tags."""


class ShapeFamily(Enum):
    """The nine built-in particle shape families."""
    HEARTS = "hearts"
    FLOWERS = "flowers"
    FIREWORKS = "fireworks"
    GALAXY = "galaxy"
    DNA = "dna"
    BUTTERFLY = "butterfly"
    WAVE = "wave"
    VORTEX = "vortex"
    AURORA = "aurora"

    @classmethod
    def parse(cls, tag: Union["ShapeFamily", str]) -> "ShapeFamily":
        """
        Resolve a shape tag.

        Args:
            tag: A ShapeFamily or its string value (case-insensitive)

        Raises:
            ConfigurationError: If the tag names no known family
        """
        if isinstance(tag, cls):
            return tag
        try:
            return cls(str(tag).strip().lower())
        except ValueError:
            names = ", ".join(f.value for f in cls)
            raise ConfigurationError(
                f"Unknown shape '{tag}' (expected one of: {names})"
            ) from None


# Particle count range exposed to users
MIN_PARTICLES = 2000
MAX_PARTICLES = 30000

_HEX_COLOR = re.compile(r"^#?([0-9a-fA-F]{6})$")


def parse_hex_color(color: str) -> Tuple[float, float, float]:
    """
    Convert '#rrggbb' into an RGB triple of floats in 0..1.

    Raises:
        ConfigurationError: If the string is not a 6-digit hex colour
    """
    match = _HEX_COLOR.match(str(color).strip())
    if not match:
        raise ConfigurationError(f"Invalid colour '{color}' (expected #rrggbb)")
    digits = match.group(1)
    return tuple(int(digits[i:i + 2], 16) / 255.0 for i in (0, 2, 4))


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


# Environment defaults
DEFAULT_SHAPE = os.getenv("PARTICLES_SHAPE", "hearts")
DEFAULT_COUNT = int(os.getenv("PARTICLES_COUNT", "12000"))
DEFAULT_SIZE = float(os.getenv("PARTICLES_SIZE", "6"))
DEFAULT_COLOR = os.getenv("PARTICLES_COLOR", "#ff4fd8")
DEFAULT_RAINBOW = _env_bool("PARTICLES_RAINBOW", False)
DEFAULT_CAMERA = int(os.getenv("PARTICLES_CAMERA", "0"))
OUTPUT_DIR = Path(os.getenv("PARTICLES_OUTPUT_DIR", "output"))


@dataclass(frozen=True)
class SimulationConfig:
    """
    Configuration surface consumed by the simulation.

    Attributes:
        shape: Shape family to morph into
        count: Number of particles (MIN_PARTICLES..MAX_PARTICLES)
        base_size: Base point size before gesture scaling
        color: Base colour as '#rrggbb'
        rainbow: Whether the hue cycles over time
    """
    shape: ShapeFamily = ShapeFamily.HEARTS
    count: int = 12000
    base_size: float = 6.0
    color: str = "#ff4fd8"
    rainbow: bool = False

    def __post_init__(self):
        object.__setattr__(self, "shape", ShapeFamily.parse(self.shape))

        try:
            count = int(self.count)
        except (TypeError, ValueError):
            count = None
        if count is None or isinstance(self.count, bool) or count != self.count:
            raise ConfigurationError(f"Particle count must be an integer, got {self.count!r}")
        if count <= 0:
            raise ConfigurationError(f"Particle count must be positive, got {count}")
        if not MIN_PARTICLES <= count <= MAX_PARTICLES:
            raise ConfigurationError(
                f"Particle count {count} outside {MIN_PARTICLES}..{MAX_PARTICLES}"
            )
        object.__setattr__(self, "count", count)

        try:
            size = float(self.base_size)
        except (TypeError, ValueError):
            size = None
        if size is None or isinstance(self.base_size, bool):
            raise ConfigurationError(f"Base size must be a number, got {self.base_size!r}")
        if not math.isfinite(size) or size <= 0:
            raise ConfigurationError(f"Base size must be positive and finite, got {self.base_size!r}")
        object.__setattr__(self, "base_size", size)

        parse_hex_color(self.color)
        object.__setattr__(self, "rainbow", bool(self.rainbow))

    @property
    def rgb(self) -> Tuple[float, float, float]:
        """Base colour as RGB floats."""
        return parse_hex_color(self.color)

    def requires_rebuild(self, other: "SimulationConfig") -> bool:
        """True when switching to `other` invalidates the particle buffers."""
        return (
            self.shape != other.shape
            or self.count != other.count
            or self.base_size != other.base_size
        )

    def with_changes(self, **changes: Any) -> "SimulationConfig":
        """Return a validated copy with the given fields replaced."""
        return replace(self, **changes)

    @classmethod
    def from_env(cls) -> "SimulationConfig":
        """Build the configuration from PARTICLES_* environment defaults."""
        return cls(
            shape=DEFAULT_SHAPE,
            count=DEFAULT_COUNT,
            base_size=DEFAULT_SIZE,
            color=DEFAULT_COLOR,
            rainbow=DEFAULT_RAINBOW,
        )

    @classmethod
    def from_preset(cls, preset, rainbow: bool = False) -> "SimulationConfig":
        """Build the configuration for a built-in preset."""
        return cls(
            shape=preset.shape,
            count=preset.count,
            base_size=preset.size,
            color=preset.color,
            rainbow=rainbow,
        )

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "SimulationConfig":
        """
        Build the configuration from a saved preset record.

        The record has the shape kept by the external preset store:
        template, color, particle_count, particle_size, rainbow_mode.

        Raises:
            ConfigurationError: If a field is missing or invalid
        """
        try:
            return cls(
                shape=record["template"],
                count=record["particle_count"],
                base_size=record["particle_size"],
                color=record["color"],
                rainbow=record.get("rainbow_mode", False),
            )
        except KeyError as e:
            raise ConfigurationError(f"Preset record is missing field {e}") from None

    def to_record(self) -> dict:
        """Serialize to the saved preset record shape."""
        return {
            "template": self.shape.value,
            "color": self.color,
            "particle_count": self.count,
            "particle_size": self.base_size,
            "rainbow_mode": self.rainbow,
        }
