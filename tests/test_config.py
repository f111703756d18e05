"""Tests for configuration validation and presets."""

import pytest

from gesture_particles import config as config_module
from gesture_particles.config import (
    ConfigurationError, ShapeFamily, SimulationConfig, parse_hex_color
)
from gesture_particles.presets import Preset, ShapePresets


class TestShapeFamily:
    def test_parse_tags(self):
        assert ShapeFamily.parse("hearts") == ShapeFamily.HEARTS
        assert ShapeFamily.parse(" DNA ") == ShapeFamily.DNA
        assert ShapeFamily.parse(ShapeFamily.WAVE) == ShapeFamily.WAVE

    def test_unknown_tag(self):
        with pytest.raises(ConfigurationError, match="Unknown shape"):
            ShapeFamily.parse("cube")

    def test_nine_families(self):
        assert len(ShapeFamily) == 9


class TestColors:
    def test_parse(self):
        assert parse_hex_color("#ff0000") == (1.0, 0.0, 0.0)
        assert parse_hex_color("00FF00") == (0.0, 1.0, 0.0)

    @pytest.mark.parametrize("color", ["red", "#fff", "#gg0000", ""])
    def test_invalid(self, color):
        with pytest.raises(ConfigurationError):
            parse_hex_color(color)


class TestSimulationConfig:
    def test_defaults(self):
        config = SimulationConfig()
        assert config.shape == ShapeFamily.HEARTS
        assert config.count == 12000
        assert not config.rainbow

    def test_shape_string_coerced(self):
        assert SimulationConfig(shape="galaxy").shape == ShapeFamily.GALAXY

    @pytest.mark.parametrize("count", [0, -5, 1999, 30001, 2500.5, "many", True])
    def test_invalid_counts(self, count):
        with pytest.raises(ConfigurationError):
            SimulationConfig(count=count)

    @pytest.mark.parametrize("count", [2000, 30000])
    def test_count_range_inclusive(self, count):
        assert SimulationConfig(count=count).count == count

    def test_invalid_size(self):
        with pytest.raises(ConfigurationError):
            SimulationConfig(base_size=0)

    @pytest.mark.parametrize("size", [float("nan"), float("inf"), -1.0, "big", None, True])
    def test_invalid_size_values(self, size):
        with pytest.raises(ConfigurationError):
            SimulationConfig(base_size=size)

    def test_numeric_string_size_coerced(self):
        config = SimulationConfig(base_size="6")
        assert config.base_size == 6.0
        assert isinstance(config.base_size, float)

    def test_record_with_string_size(self):
        config = SimulationConfig.from_record({
            "template": "hearts",
            "color": "#ffffff",
            "particle_count": 4000,
            "particle_size": "7.5",
        })
        assert config.base_size == 7.5

    def test_record_with_bad_size(self):
        with pytest.raises(ConfigurationError):
            SimulationConfig.from_record({
                "template": "hearts",
                "color": "#ffffff",
                "particle_count": 4000,
                "particle_size": "large",
            })

    def test_invalid_color(self):
        with pytest.raises(ConfigurationError):
            SimulationConfig(color="pink")

    def test_configuration_error_is_value_error(self):
        with pytest.raises(ValueError):
            SimulationConfig(count=-1)

    def test_requires_rebuild(self):
        base = SimulationConfig()
        assert base.requires_rebuild(base.with_changes(shape=ShapeFamily.DNA))
        assert base.requires_rebuild(base.with_changes(count=4000))
        assert base.requires_rebuild(base.with_changes(base_size=3.0))
        assert not base.requires_rebuild(base.with_changes(color="#000000"))
        assert not base.requires_rebuild(base.with_changes(rainbow=True))

    def test_with_changes_validates(self):
        with pytest.raises(ConfigurationError):
            SimulationConfig().with_changes(count=10)

    def test_record_round_trip(self):
        record = {
            "template": "aurora",
            "color": "#1de9b6",
            "particle_count": 19000,
            "particle_size": 6,
            "rainbow_mode": True,
        }
        config = SimulationConfig.from_record(record)
        assert config.shape == ShapeFamily.AURORA
        assert config.rainbow
        assert config.to_record() == record

    def test_record_missing_field(self):
        with pytest.raises(ConfigurationError, match="particle_count"):
            SimulationConfig.from_record({"template": "hearts", "color": "#ffffff", "particle_size": 4})

    def test_from_env(self, monkeypatch):
        monkeypatch.setattr(config_module, "DEFAULT_SHAPE", "vortex")
        monkeypatch.setattr(config_module, "DEFAULT_COUNT", 5000)
        monkeypatch.setattr(config_module, "DEFAULT_RAINBOW", True)
        config = SimulationConfig.from_env()
        assert config.shape == ShapeFamily.VORTEX
        assert config.count == 5000
        assert config.rainbow


class TestPresets:
    def test_ten_presets(self):
        assert len(ShapePresets.get_all_ids()) == 10
        assert ShapePresets.get_all_ids()[0] == "romantic-hearts"

    @pytest.mark.parametrize("preset", ShapePresets.get_all(), ids=lambda p: p.id)
    def test_every_preset_builds_a_config(self, preset):
        config = SimulationConfig.from_preset(preset)
        assert config.shape == preset.shape
        assert config.count == preset.count
        assert config.base_size == preset.size
        assert config.color == preset.color

    def test_get_preset(self):
        preset = ShapePresets.get_preset("party-fireworks")
        assert isinstance(preset, Preset)
        assert preset.shape == ShapeFamily.FIREWORKS

    def test_unknown_preset(self):
        with pytest.raises(ConfigurationError):
            ShapePresets.get_preset("missing")

    def test_by_category(self):
        cosmic = ShapePresets.by_category("cosmic")
        assert {p.id for p in cosmic} == {"cosmic-galaxy", "northern-lights", "sunset-galaxy"}

    def test_rainbow_carried(self):
        preset = ShapePresets.get_preset("ocean-wave")
        assert SimulationConfig.from_preset(preset, rainbow=True).rainbow
