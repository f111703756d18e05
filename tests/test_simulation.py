"""Tests for the particle swarm integrator."""

import math

import numpy as np
import pytest

from gesture_particles import simulation as simulation_module
from gesture_particles.config import ConfigurationError, ShapeFamily, SimulationConfig
from gesture_particles.controls import ControlValues
from gesture_particles.simulation import FireworksCycle, Simulation


def make_sim(rng, **kwargs):
    return Simulation(SimulationConfig(**kwargs), rng=rng)


def test_buffers_match_count(rng):
    sim = make_sim(rng, shape=ShapeFamily.HEARTS, count=12000)
    assert sim.count == 12000
    assert sim.positions.shape == sim.velocities.shape == sim.targets.shape == (12000, 3)
    assert sim.position_buffer.shape == (36000,)
    assert sim.position_buffer.dtype == np.float32


def test_position_buffer_updated_in_place(rng):
    sim = make_sim(rng, count=2000)
    buffer = sim.position_buffer
    before = buffer.copy()
    sim.step(1 / 60)
    assert np.shares_memory(buffer, sim.positions)
    assert not np.array_equal(before, buffer)


def test_initial_scatter_radius(rng):
    sim = make_sim(rng, shape=ShapeFamily.GALAXY, count=4000)
    assert np.linalg.norm(sim.positions, axis=1).max() <= Simulation.SCATTER_RADIUS + 1e-4

    sim = make_sim(rng, shape=ShapeFamily.FIREWORKS, count=4000)
    assert np.linalg.norm(sim.positions, axis=1).max() <= Simulation.FIREWORKS_SCATTER_RADIUS + 1e-5


def test_particles_converge_toward_targets(rng):
    sim = make_sim(rng, shape=ShapeFamily.VORTEX, count=3000)
    start = np.linalg.norm(sim.positions - sim.targets, axis=1).mean()
    for _ in range(240):
        sim.step(1 / 60)
    end = np.linalg.norm(sim.positions - sim.targets, axis=1).mean()
    assert end < start * 0.5
    assert np.isfinite(sim.positions).all()


def test_explode_pushes_outward(rng):
    calm = make_sim(np.random.default_rng(3), shape=ShapeFamily.HEARTS, count=3000)
    burst = make_sim(np.random.default_rng(3), shape=ShapeFamily.HEARTS, count=3000)
    for _ in range(120):
        calm.step(1 / 60)
        burst.step(1 / 60, ControlValues(explode=1.5))
    calm_radius = np.linalg.norm(calm.positions, axis=1).mean()
    burst_radius = np.linalg.norm(burst.positions, axis=1).mean()
    assert burst_radius > calm_radius


def test_count_change_rebuilds(rng):
    sim = make_sim(rng, count=4000)
    old_targets = sim.targets
    rebuilt = sim.apply_config(sim.config.with_changes(count=6000))
    assert rebuilt
    assert sim.count == 6000
    assert sim.positions.shape == sim.velocities.shape == sim.targets.shape == (6000, 3)
    assert sim.targets is not old_targets


def test_shape_change_rebuilds(rng):
    sim = make_sim(rng, shape=ShapeFamily.HEARTS, count=3000)
    assert sim.apply_config(sim.config.with_changes(shape=ShapeFamily.DNA))
    assert sim.shape == ShapeFamily.DNA
    assert sim.spec.family == ShapeFamily.DNA


def test_color_change_keeps_swarm(rng):
    sim = make_sim(rng, count=3000, color="#ff0000")
    positions = sim.positions
    rebuilt = sim.apply_config(sim.config.with_changes(color="#0000ff"))
    assert not rebuilt
    assert sim.positions is positions
    assert sim.color == (0.0, 0.0, 1.0)


def test_failed_rebuild_keeps_old_swarm(rng, monkeypatch):
    sim = make_sim(rng, count=3000)
    positions, config = sim.positions, sim.config

    def broken(*args, **kwargs):
        raise ConfigurationError("boom")

    monkeypatch.setattr(simulation_module, "generate", broken)
    with pytest.raises(ConfigurationError):
        sim.apply_config(config.with_changes(count=5000))

    assert sim.positions is positions
    assert sim.config == config
    assert sim.count == 3000


def test_dt_is_clamped(rng):
    sim = make_sim(rng, count=2000)
    sim.step(5.0)
    assert sim.time == pytest.approx(Simulation.MAX_DT)
    sim.step(-1.0)
    sim.step(float("nan"))
    assert sim.time == pytest.approx(Simulation.MAX_DT)
    assert np.isfinite(sim.positions).all()


def test_point_size_follows_scale(rng):
    sim = make_sim(rng, count=2000, base_size=6.0)
    sim.step(0.0, ControlValues(scale=1.0))
    neutral = sim.point_size
    assert neutral == pytest.approx(0.06)
    sim.step(0.0, ControlValues(scale=2.0))
    assert sim.point_size == pytest.approx(2 * neutral)


def test_rotation_only_above_threshold(rng):
    sim = make_sim(rng, count=2000)
    sim.step(0.02, ControlValues(rotate=0.005))
    assert sim.rotation_y == 0.0
    sim.step(0.02, ControlValues(rotate=1.5))
    assert sim.rotation_y == pytest.approx(0.03)


def test_rainbow_cycles_hue(rng):
    sim = make_sim(rng, count=2000, rainbow=True)
    sim.step(0.02)
    assert sim.hue == pytest.approx(0.01)
    first = sim.color
    for _ in range(20):
        sim.step(0.02)
    assert sim.color != first
    assert all(0.0 <= c <= 1.0 for c in sim.color)


def test_rainbow_toggle_does_not_rebuild(rng):
    sim = make_sim(rng, count=2000, color="#00ff00")
    positions = sim.positions
    sim.set_rainbow(True)
    assert sim.config.rainbow
    assert sim.positions is positions
    sim.set_rainbow(False)
    sim.step(0.01)
    assert sim.color == (0.0, 1.0, 0.0)


def test_fireworks_cycle_clock():
    cycle = FireworksCycle()
    assert cycle.in_burst
    assert not cycle.advance(2.3)
    assert not cycle.in_burst
    assert cycle.advance(1.0)
    assert cycle.cycles == 1
    assert cycle.elapsed == pytest.approx(0.2)
    assert cycle.in_burst


def test_fireworks_full_cycle_returns_to_origin(rng):
    sim = make_sim(rng, shape=ShapeFamily.FIREWORKS, count=4000)
    dt = 1 / 60
    duration = FireworksCycle.BURST_DURATION + FireworksCycle.RESET_DURATION

    peak = np.zeros(sim.count)
    # Stop on the last frame of the reset phase, before the relaunch
    frames = int(round(duration / dt)) - 1
    for _ in range(frames):
        sim.step(dt)
        if sim.fireworks.in_burst:
            peak = np.maximum(peak, np.linalg.norm(sim.positions, axis=1))

    assert sim.count == 4000
    final = np.linalg.norm(sim.positions, axis=1)
    assert (final < peak).all()
    assert np.isfinite(sim.positions).all()


def test_fireworks_relaunch_resamples_velocities(rng):
    sim = make_sim(rng, shape=ShapeFamily.FIREWORKS, count=2000)
    dt = 1 / 60
    while sim.fireworks.cycles == 0:
        sim.step(dt)
    speeds = np.linalg.norm(sim.velocities, axis=1)
    # Only a frame of gravity and drag since relaunch
    assert speeds.min() > 1.0
    assert speeds.max() < 3.5


def test_shape_change_resets_fireworks_cycle(rng):
    sim = make_sim(rng, shape=ShapeFamily.FIREWORKS, count=2000)
    for _ in range(30):
        sim.step(1 / 60)
    assert sim.fireworks.elapsed > 0
    sim.apply_config(sim.config.with_changes(shape=ShapeFamily.GALAXY))
    assert sim.fireworks.elapsed == 0.0
    sim.apply_config(sim.config.with_changes(shape=ShapeFamily.FIREWORKS))
    assert sim.fireworks.elapsed == 0.0


def test_rotation_wraps(rng):
    sim = make_sim(rng, count=2000)
    for _ in range(300):
        sim.step(0.03, ControlValues(rotate=1.5))
    assert 0.0 <= sim.rotation_y < 2 * math.pi
