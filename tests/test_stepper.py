# -*- coding: utf-8 -*-
"""Per-tick stepping: time to arclength, arrival and frame contents."""

# Dataclass helpers.
from dataclasses import replace

# Import numpy.
import numpy as np

# Import pytest.
import pytest

# Import local modules.
from particleflow.config import RenderConfig
from particleflow.errors import CacheNotReadyError
from particleflow.state import SimulationState
from particleflow.stepper import positions_at, step_particles

from conftest import one_particle


def _with(state, **kwargs):
    return replace(state, particles=one_particle(**kwargs), spawned=1)


def test_positions_are_linear_in_time():
    created = np.array([0, 10, 20], dtype=np.int64)
    speed = np.array([1.0, 0.5, 2.0])
    assert positions_at(created, speed, 150).tolist() == [150.0, 70.0, 260.0]
    # Before creation the position stays at zero.
    assert positions_at(created, speed, 5).tolist() == [5.0, 0.0, 0.0]


def test_positions_are_non_decreasing():
    created = np.array([3], dtype=np.int64)
    speed = np.array([0.83])
    pos = [positions_at(created, speed, t)[0] for t in range(0, 50)]
    assert all(b >= a for a, b in zip(pos, pos[1:]))


def test_arrived_at_tick_150(line_state, plain_render):
    state, frame = step_particles(_with(line_state), 150, plain_render)
    assert state.particles.pos.tolist() == [150.0]
    assert state.particles.arrived.tolist() == [True]
    assert len(frame) == 0


def test_one_tick_before_arrival_is_drawn(line_state, plain_render):
    state, frame = step_particles(_with(line_state), 99, plain_render)
    assert state.particles.arrived.tolist() == [False]
    assert frame.ids == ["0_0"]
    assert frame.x.tolist() == pytest.approx([99.0])
    assert frame.y.tolist() == pytest.approx([0.0])


def test_exactly_at_length_is_arrived(line_state, plain_render):
    state, frame = step_particles(_with(line_state), 100, plain_render)
    assert state.particles.arrived.tolist() == [True]
    assert len(frame) == 0


def test_fractional_position_interpolates(line_state, plain_render):
    state, frame = step_particles(_with(line_state, speed=0.5), 21, plain_render)
    assert state.particles.pos.tolist() == [10.5]
    assert frame.x.tolist() == pytest.approx([10.5])


def test_offset_moves_particle_vertically(line_state, plain_render):
    particles = replace(one_particle(), offset=np.array([-3.5]))
    _, frame = step_particles(replace(line_state, particles=particles, spawned=1), 10, plain_render)
    assert frame.y.tolist() == pytest.approx([-3.5])


def test_stepping_is_idempotent(line_state, plain_render):
    start = _with(line_state, speed=0.7)
    first, frame_a = step_particles(start, 42, plain_render)
    second, frame_b = step_particles(first, 42, plain_render)
    np.testing.assert_array_equal(first.particles.pos, second.particles.pos)
    np.testing.assert_array_equal(frame_a.x, frame_b.x)
    assert frame_a.ids == frame_b.ids
    assert second.tick == 42


def test_frame_sprite_fields(line_state, plain_render):
    _, frame = step_particles(_with(line_state, target=1, group=1), 10, plain_render)
    assert frame.groups == ["females"]
    assert frame.colors == ["plum"]
    assert frame.destinations == ["B"]
    assert list(frame.sprites()) == [("0_0", 10.0, 0.0, 7.0, 7.0, "plum")]


def test_squeeze_near_route_end(line_state):
    render = RenderConfig.from_dict({"particle_size": 7, "squeeze": True})
    _, far = step_particles(_with(line_state), 10, render)
    assert far.width.tolist() == [7.0]
    assert far.height.tolist() == [7.0]
    _, near = step_particles(_with(line_state), 95, render)
    # 4 units before the last cached point: squeeze by 3.
    assert near.width.tolist() == pytest.approx([10.0])
    assert near.height.tolist() == pytest.approx([4.0])
    assert near.x.tolist() == pytest.approx([93.5])
    assert near.y.tolist() == pytest.approx([1.5])


def test_squeeze_height_floor(line_state):
    render = RenderConfig.from_dict({"particle_size": 7, "squeeze": True})
    _, frame = step_particles(_with(line_state), 99, render)
    assert frame.height.tolist() == [2.0]
    assert frame.width.tolist() == pytest.approx([14.0])


def test_stepping_without_cache_raises(scenario_table, plain_render):
    state = SimulationState.initial(scenario_table)
    state = replace(state, particles=one_particle(), spawned=1)
    with pytest.raises(CacheNotReadyError):
        step_particles(state, 1, plain_render)


def test_empty_state_steps_without_cache(scenario_table, plain_render):
    state, frame = step_particles(SimulationState.initial(scenario_table), 3, plain_render)
    assert state.tick == 3
    assert len(frame) == 0
