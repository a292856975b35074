# -*- coding: utf-8 -*-
"""Stochastic spawning against the population cap and the geometry cache."""

# Import numpy.
import numpy as np

# Import pytest.
import pytest

# Import local modules.
from particleflow.config import SimulationConfig
from particleflow.errors import CacheNotReadyError
from particleflow.geometry import GeometryCache
from particleflow.spawner import particles_this_tick, spawn_particles
from particleflow.state import SimulationState

from conftest import FixedRng, line_cache


@pytest.mark.parametrize("u, expected", [(0.0, 0), (0.07, 0), (0.0715, 1), (0.5, 4), (0.999, 7)])
def test_particles_this_tick_rounds_half_up(u, expected):
    assert particles_this_tick(u, 7) == expected


def test_spawn_fields(line_state):
    cfg = SimulationConfig.from_dict({"density": 7, "speed": 0.7, "speed_range": 0.5, "offset_min": -2.0, "offset_max": 8.0})
    state = spawn_particles(line_state, 5, cfg, FixedRng(0.9))
    p = state.particles
    # round(0.9 * 7) = 6 but only 4 particles exist in the scenario.
    assert p.size == 4
    assert state.spawned == 4
    assert p.ids() == ["5_0", "5_1", "5_2", "5_3"]
    assert p.target.tolist() == [1, 1, 1, 1]
    assert [state.table.group_keys[g] for g in p.group] == ["females"] * 4
    np.testing.assert_allclose(p.speed, 0.7 + 0.9 * 0.5)
    np.testing.assert_allclose(p.offset, -2.0 + 0.9 * 10.0)
    assert p.length.tolist() == [100] * 4


def test_population_cap(line_state, sim_cfg):
    rng = np.random.default_rng(0)
    state = line_state
    for tick in range(1, 101):
        state = spawn_particles(state, tick, sim_cfg, rng)
        assert state.spawned <= state.population == 4
    assert state.spawned == 4
    assert state.particles.size == 4


def test_explicit_max_particles(scenario_table, sim_cfg):
    state = SimulationState.initial(scenario_table, line_cache(scenario_table), max_particles=2)
    state = spawn_particles(state, 1, sim_cfg, FixedRng(0.9))
    assert state.particles.size == 2


def test_zero_density_spawns_nothing(line_state):
    cfg = SimulationConfig.from_dict({"density": 0})
    assert spawn_particles(line_state, 1, cfg, FixedRng(0.99)) is line_state


def test_spawn_without_cache_raises(scenario_table, sim_cfg):
    state = SimulationState.initial(scenario_table)
    with pytest.raises(CacheNotReadyError):
        spawn_particles(state, 1, sim_cfg, FixedRng(0.9))


def test_spawn_with_missing_route_raises(scenario_table, sim_cfg):
    state = SimulationState.initial(scenario_table, GeometryCache.build({}))
    with pytest.raises(CacheNotReadyError, match="/root/A/B"):
        spawn_particles(state, 1, sim_cfg, FixedRng(0.9))


def test_flat_group_drawn_from_split(flat_table, sim_cfg):
    state = SimulationState.initial(flat_table, line_cache(flat_table))
    low = spawn_particles(state, 1, sim_cfg, FixedRng(0.3)).particles
    high = spawn_particles(state, 1, sim_cfg, FixedRng(0.9)).particles
    assert {flat_table.group_keys[g] for g in low.group} == {"females"}
    assert {flat_table.group_keys[g] for g in high.group} == {"males"}


def test_same_seed_same_particles(line_state, sim_cfg):
    a = spawn_particles(line_state, 1, sim_cfg, np.random.default_rng(7)).particles
    b = spawn_particles(line_state, 1, sim_cfg, np.random.default_rng(7)).particles
    assert a.ids() == b.ids()
    np.testing.assert_array_equal(a.target, b.target)
    np.testing.assert_array_equal(a.offset, b.offset)
