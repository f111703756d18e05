"""
Presets Module - Built-in Shape Presets
=======================================
The ready-made looks offered in the preset picker. Each preset fixes a
shape family, colour, particle count and base point size.
"""

from dataclasses import dataclass
from typing import List

from .config import ConfigurationError, ShapeFamily


@dataclass(frozen=True)
class Preset:
    """A named shape/colour/count/size combination."""
    id: str
    name: str
    shape: ShapeFamily
    color: str
    count: int
    size: float
    category: str  # romantic, party, nature, cosmic or abstract


class ShapePresets:
    """Predefined presets, in display order."""

    PRESETS = {
        'romantic-hearts': Preset(
            'romantic-hearts', 'Romantic Hearts', ShapeFamily.HEARTS,
            '#ff1744', 15000, 8, 'romantic'),
        'wedding-flowers': Preset(
            'wedding-flowers', 'Wedding Flowers', ShapeFamily.FLOWERS,
            '#f8bbd0', 18000, 6, 'romantic'),
        'cosmic-galaxy': Preset(
            'cosmic-galaxy', 'Cosmic Galaxy', ShapeFamily.GALAXY,
            '#7c4dff', 20000, 4, 'cosmic'),
        'life-dna': Preset(
            'life-dna', 'Life DNA', ShapeFamily.DNA,
            '#00e676', 12000, 7, 'abstract'),
        'party-fireworks': Preset(
            'party-fireworks', 'Party Fireworks', ShapeFamily.FIREWORKS,
            '#ffd600', 16000, 10, 'party'),
        'butterfly-garden': Preset(
            'butterfly-garden', 'Butterfly Garden', ShapeFamily.BUTTERFLY,
            '#ff6e40', 14000, 6, 'nature'),
        'ocean-wave': Preset(
            'ocean-wave', 'Ocean Wave', ShapeFamily.WAVE,
            '#00b8d4', 22000, 5, 'nature'),
        'tornado-vortex': Preset(
            'tornado-vortex', 'Tornado Vortex', ShapeFamily.VORTEX,
            '#78909c', 17000, 5, 'abstract'),
        'northern-lights': Preset(
            'northern-lights', 'Northern Lights', ShapeFamily.AURORA,
            '#1de9b6', 19000, 6, 'cosmic'),
        'sunset-galaxy': Preset(
            'sunset-galaxy', 'Sunset Galaxy', ShapeFamily.GALAXY,
            '#ff5722', 18000, 5, 'cosmic'),
    }

    @classmethod
    def get_preset(cls, preset_id: str) -> Preset:
        """
        Get a preset by id.

        Raises:
            ConfigurationError: If no preset has that id
        """
        try:
            return cls.PRESETS[preset_id]
        except KeyError:
            raise ConfigurationError(
                f"Unknown preset '{preset_id}' (expected one of: {', '.join(cls.PRESETS)})"
            ) from None

    @classmethod
    def get_all_ids(cls) -> List[str]:
        """Get all preset ids."""
        return list(cls.PRESETS.keys())

    @classmethod
    def get_all(cls) -> List[Preset]:
        return list(cls.PRESETS.values())

    @classmethod
    def by_category(cls, category: str) -> List[Preset]:
        return [p for p in cls.PRESETS.values() if p.category == category]
