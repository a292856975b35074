# -*- coding: utf-8 -*-
"""Stochastic particle spawning."""

# Import dataclasses.
from dataclasses import replace

# Import numpy.
import numpy as np

# Import local modules.
from .config import SimulationConfig
from .errors import CacheNotReadyError
from .particles import NO_GROUP, Particles, concat_particles
from .sampling import draw_index
from .state import SimulationState


def particles_this_tick(u: float, density: int) -> int:
    """Round ``u * density`` half up (0 .. density particles per tick)."""
    return int(np.floor(u * density + 0.5))


def spawn_particles(
    state: SimulationState,
    tick: int,
    cfg: SimulationConfig,
    rng: np.random.Generator,
) -> SimulationState:
    """Spawn 0..density new particles at `tick` and return the new state.

    Each particle gets a target from the route table's thresholds, a group
    (the target's own, or an independent split draw for ungrouped routes), a
    random speed and lateral offset, and a snapshot of its route length.
    """
    k = particles_this_tick(float(rng.random()), cfg.density)
    n = min(k, max(0, state.population - state.spawned))
    if n <= 0:
        return state

    table = state.table
    target = table.draw_indices(rng.random(n))
    route = table.target_route[target]

    stacked = state.stacked
    if stacked is None:
        raise CacheNotReadyError("Geometry cache has not been built yet; cannot spawn particles.")
    missing = ~stacked.present[route]
    if np.any(missing):
        key = table.route_keys[int(route[missing][0])]
        raise CacheNotReadyError(f"No geometry cached for route '{key}'; cannot spawn particles.")

    group = table.target_group[target].astype(np.int16)
    ungrouped = group == NO_GROUP
    if np.any(ungrouped) and table.group_split is not None:
        drawn = draw_index(table.group_split.thresholds, rng.random(int(np.count_nonzero(ungrouped))))
        group[ungrouped] = np.asarray(drawn, dtype=np.int16)

    speed = cfg.speed_min + rng.random(n) * cfg.speed_range
    offset = cfg.offset_min + rng.random(n) * (cfg.offset_max - cfg.offset_min)

    born = Particles(
        target=target.astype(np.int32),
        route=route.astype(np.int32),
        group=group,
        speed=speed.astype(np.float64),
        offset=offset.astype(np.float64),
        created_at=np.full(n, int(tick), dtype=np.int64),
        slot=np.arange(n, dtype=np.int32),
        pos=np.zeros(n, dtype=np.float64),
        length=stacked.lengths[route].astype(np.int64),
    )
    return replace(state, particles=concat_particles(state.particles, born), spawned=state.spawned + n)
