# -*- coding: utf-8 -*-
"""Arrival counters per destination and outcome group."""

# Import dataclasses.
from dataclasses import dataclass

# Import typing primitives.
from typing import Dict, Optional, Tuple

# Import numpy.
import numpy as np

# Import local modules.
from .particles import Particles
from .routes import RouteTable
from .state import SimulationState


@dataclass(frozen=True)
class TallyRow:
    """Counter value for one (destination, group) pair."""

    destination: str
    group: Optional[str]
    count: int
    percent: float

    @property
    def label(self) -> str:
        """Whole-percent label, e.g. ``'40%'``."""
        return f"{self.percent:.0%}"


@dataclass(frozen=True)
class Tally:
    """All counter rows for one tick, destination-major in route order."""

    rows: Tuple[TallyRow, ...]
    population: int

    def count(self, destination: str, group: Optional[str] = None) -> int:
        """Arrivals at `destination` (summed over groups when `group` is None)."""
        return sum(r.count for r in self.rows if r.destination == destination and (group is None or r.group == group))

    @property
    def total(self) -> int:
        return sum(r.count for r in self.rows)

    def as_dict(self) -> Dict[str, Dict[str, int]]:
        """Nested ``{destination: {group: count}}`` view."""
        out: Dict[str, Dict[str, int]] = {}
        for r in self.rows:
            out.setdefault(r.destination, {})[r.group or ""] = r.count
        return out


def arrival_counts(table: RouteTable, particles: Particles) -> np.ndarray:
    """Count arrived particles into a (destinations, groups) int64 array."""
    n_groups = max(1, len(table.group_keys))
    counts = np.zeros((len(table.destinations), n_groups), dtype=np.int64)
    arrived = particles.arrived
    if not np.any(arrived):
        return counts
    dest = table.target_dest[particles.target[arrived]]
    grp = particles.group[arrived].astype(np.int64)
    ok = grp >= 0
    np.add.at(counts, (dest[ok], grp[ok]), 1)
    return counts


def tally_arrivals(state: SimulationState) -> Tally:
    """Recompute the counters from the current particle state (pure read)."""
    table = state.table
    counts = arrival_counts(table, state.particles) + state.evicted
    population = int(state.population)
    groups = table.group_keys if table.group_keys else (None,)
    rows = []
    for d, dest in enumerate(table.destinations):
        for g, group in enumerate(groups):
            count = int(counts[d, g])
            rows.append(TallyRow(destination=dest, group=group, count=count, percent=count / population if population > 0 else 0.0))
    return Tally(rows=tuple(rows), population=population)
