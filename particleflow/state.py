# -*- coding: utf-8 -*-
"""Simulation state owned by the driver and threaded through every tick."""

# Import dataclasses.
from dataclasses import dataclass, replace

# Import typing primitives.
from typing import Optional

# Import numpy.
import numpy as np

# Import local modules.
from .geometry import GeometryCache, StackedGeometry
from .particles import Particles, empty_particles
from .routes import RouteTable


@dataclass(frozen=True)
class SimulationState:
    """Everything a tick reads or produces.

    Attributes
    ----------
    table : RouteTable
        Routes, targets and thresholds (immutable after parsing).
    particles : Particles
        Live particle set.
    population : int
        Cap on the number of particles ever spawned.
    spawned : int
        Particles spawned so far, including evicted ones.
    evicted : np.ndarray (int64, destinations x groups)
        Arrivals of particles that were evicted from the live set.
    geometry : GeometryCache or None
        Sampled route curves; None until the layout pass completes.
    stacked : StackedGeometry or None
        `geometry` packed in route-key order for vectorized lookups.
    tick : int
        Last tick applied to this state.
    """

    table: RouteTable
    particles: Particles
    population: int
    spawned: int
    evicted: np.ndarray
    geometry: Optional[GeometryCache] = None
    stacked: Optional[StackedGeometry] = None
    tick: int = 0

    @classmethod
    def initial(
        cls,
        table: RouteTable,
        geometry: Optional[GeometryCache] = None,
        max_particles: Optional[int] = None,
    ) -> "SimulationState":
        """Fresh state with no particles; the cap defaults to the dataset total."""
        population = int(round(table.total)) if max_particles is None else int(max_particles)
        evicted = np.zeros((len(table.destinations), max(1, len(table.group_keys))), dtype=np.int64)
        state = cls(table=table, particles=empty_particles(), population=population, spawned=0, evicted=evicted)
        return state.with_geometry(geometry) if geometry is not None else state

    def with_geometry(self, geometry: GeometryCache) -> "SimulationState":
        """Swap in a (re)built geometry cache wholesale."""
        return replace(self, geometry=geometry, stacked=geometry.stacked(self.table.route_keys))
