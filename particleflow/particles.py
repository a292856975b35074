# -*- coding: utf-8 -*-
"""Particle container and helpers."""

# Import dataclass for a simple structured object.
from dataclasses import dataclass, fields

# Import typing primitives.
from typing import List, Optional

# Import numpy for arrays.
import numpy as np

NO_GROUP = -1


@dataclass(frozen=True)
class Particles:
    """Structure-of-arrays particle container.

    Attributes
    ----------
    target : np.ndarray (int32)
        Index into the route table's targets.
    route : np.ndarray (int32)
        Index into the route table's route keys (geometry lookup).
    group : np.ndarray (int16)
        Index into the route table's group keys (NO_GROUP if none).
    speed : np.ndarray (float64)
        Arclength units travelled per tick.
    offset : np.ndarray (float64)
        Lateral offset from the route centre line.
    created_at : np.ndarray (int64)
        Tick the particle was spawned at.
    slot : np.ndarray (int32)
        Spawn order within its tick; with `created_at` forms the id.
    pos : np.ndarray (float64)
        Arclength position as of the last step.
    length : np.ndarray (int64)
        Route length snapshot taken at spawn time.
    """

    target: np.ndarray
    route: np.ndarray
    group: np.ndarray
    speed: np.ndarray
    offset: np.ndarray
    created_at: np.ndarray
    slot: np.ndarray
    pos: np.ndarray
    length: np.ndarray

    @property
    def size(self) -> int:
        return int(self.target.size)

    @property
    def arrived(self) -> np.ndarray:
        """Boolean mask of particles whose position reached the route length."""
        return self.pos >= self.length

    def ids(self, mask: Optional[np.ndarray] = None) -> List[str]:
        """Stable ``"<tick>_<slot>"`` identifiers."""
        created = self.created_at if mask is None else self.created_at[mask]
        slot = self.slot if mask is None else self.slot[mask]
        return [f"{int(t)}_{int(i)}" for t, i in zip(created, slot)]

    def with_pos(self, pos: np.ndarray) -> "Particles":
        """Return a copy sharing every field except `pos`."""
        values = {f.name: getattr(self, f.name) for f in fields(self)}
        values["pos"] = pos
        return Particles(**values)

    def select(self, keep: np.ndarray) -> "Particles":
        """Return the particles where `keep` is True (compaction)."""
        return Particles(**{f.name: getattr(self, f.name)[keep] for f in fields(self)})


def empty_particles() -> Particles:
    """Create an empty particle container."""
    return Particles(
        target=np.zeros(0, dtype=np.int32),
        route=np.zeros(0, dtype=np.int32),
        group=np.zeros(0, dtype=np.int16),
        speed=np.zeros(0, dtype=np.float64),
        offset=np.zeros(0, dtype=np.float64),
        created_at=np.zeros(0, dtype=np.int64),
        slot=np.zeros(0, dtype=np.int32),
        pos=np.zeros(0, dtype=np.float64),
        length=np.zeros(0, dtype=np.int64),
    )


def concat_particles(a: Particles, b: Particles) -> Particles:
    """Concatenate two particle containers."""
    # If one is empty, return the other.
    if a.size == 0:
        return b
    if b.size == 0:
        return a
    return Particles(**{f.name: np.concatenate([getattr(a, f.name), getattr(b, f.name)]) for f in fields(a)})
