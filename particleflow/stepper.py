# -*- coding: utf-8 -*-
"""Per-tick particle advance: time to arclength, arclength to screen position."""

# Import dataclasses.
from dataclasses import dataclass, replace

# Import typing primitives.
from typing import Iterator, List, Optional, Tuple

# Import numpy.
import numpy as np

# Import local modules.
from .config import RenderConfig
from .errors import CacheNotReadyError
from .particles import NO_GROUP
from .state import SimulationState


@dataclass(frozen=True)
class Frame:
    """Drawable view of the in-flight particles at one tick."""

    tick: int
    ids: List[str]
    x: np.ndarray
    y: np.ndarray
    width: np.ndarray
    height: np.ndarray
    colors: List[str]
    groups: List[Optional[str]]
    destinations: List[str]

    def __len__(self) -> int:
        return len(self.ids)

    def sprites(self) -> Iterator[Tuple[str, float, float, float, float, str]]:
        """Yield ``(id, x, y, width, height, color)`` per particle."""
        for i, pid in enumerate(self.ids):
            yield pid, float(self.x[i]), float(self.y[i]), float(self.width[i]), float(self.height[i]), self.colors[i]


def positions_at(created_at: np.ndarray, speed: np.ndarray, tick: int) -> np.ndarray:
    """Arclength position of each particle at `tick` (linear in local time)."""
    local = np.maximum(int(tick) - created_at, 0).astype(np.float64)
    return local * speed


def step_particles(state: SimulationState, tick: int, render: RenderConfig) -> Tuple[SimulationState, Frame]:
    """Recompute every particle position for `tick` and build the frame.

    A particle is in flight while ``pos < length`` and arrived from then on.
    Positions come from `tick` alone, so stepping twice for the same tick
    gives identical results.
    """
    p = state.particles
    pos = positions_at(p.created_at, p.speed, tick)
    in_flight = pos < p.length

    stacked = state.stacked
    if stacked is None:
        if np.any(in_flight):
            raise CacheNotReadyError("Geometry cache has not been built yet; cannot step particles.")
        return replace(state, particles=p.with_pos(pos), tick=int(tick)), _empty_frame(tick)

    # Cache rebuilds may shorten a route below the spawn-time snapshot.
    cur_len = stacked.lengths[p.route]
    drawable = in_flight & (cur_len > 0)

    route = p.route[drawable]
    where = pos[drawable]
    idx = np.floor(where).astype(np.int64)
    frac = where - idx
    last = cur_len[drawable] - 1
    # The last cached point has no successor; hold it until arrival.
    i0 = np.minimum(idx, last)
    i1 = np.minimum(idx + 1, last)
    base = stacked.offsets[route]
    p0 = stacked.points[base + i0]
    p1 = stacked.points[base + i1]
    xy = p0 + (p1 - p0) * frac[:, None]

    size = float(render.particle_size)
    x = xy[:, 0]
    y = xy[:, 1] + p.offset[drawable]
    n = x.shape[0]
    if render.squeeze:
        # Flatten particles into a bar as they approach the route end.
        squeeze = np.clip(size - (stacked.last_x[route] - x), 0.0, size)
        height = np.maximum(2.0, size - squeeze)
        width = size + squeeze
        x = x - squeeze / 2.0
        y = y + (size - height) / 2.0
    else:
        width = np.full(n, size, dtype=np.float64)
        height = np.full(n, size, dtype=np.float64)

    table = state.table
    group_idx = p.group[drawable]
    groups = [table.group_keys[g] if g != NO_GROUP else None for g in group_idx.tolist()]
    dests = table.destinations
    frame = Frame(
        tick=int(tick),
        ids=p.ids(drawable),
        x=x,
        y=y,
        width=width,
        height=height,
        colors=[render.color_for(g) for g in groups],
        groups=groups,
        destinations=[dests[d] for d in table.target_dest[p.target[drawable]].tolist()],
    )
    return replace(state, particles=p.with_pos(pos), tick=int(tick)), frame


def _empty_frame(tick: int) -> Frame:
    empty = np.zeros(0, dtype=np.float64)
    return Frame(tick=int(tick), ids=[], x=empty, y=empty, width=empty, height=empty, colors=[], groups=[], destinations=[])
