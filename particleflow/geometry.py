# -*- coding: utf-8 -*-
"""Geometry cache: unit-arclength sampling of every route curve.

Sampling each curve once at s = 0, 1, ..., floor(L) - 1 turns a particle's
arclength position into a plain array index at simulation time.
"""

# Import logging.
import logging

# Import dataclass for cache entries.
from dataclasses import dataclass

# Import math for floor.
import math

# Import typing primitives.
from typing import Dict, Iterator, Mapping, Sequence

# Import numpy.
import numpy as np

# Import local modules.
from .curves import Curve
from .errors import CacheNotReadyError

logger = logging.getLogger("particleflow")


@dataclass(frozen=True)
class CacheEntry:
    """Sampled points (n, 2) of one route, one per unit of arclength."""

    points: np.ndarray

    @property
    def length(self) -> int:
        return int(self.points.shape[0])


def sample_curve(curve: Curve) -> np.ndarray:
    """Sample `curve` at unit arclength steps inside [0, L)."""
    total = float(curve.total_length())
    n = int(math.floor(total)) if total > 0.0 else 0
    if n == 0:
        return np.zeros((0, 2), dtype=np.float64)
    s = np.arange(n, dtype=np.float64)
    vectorized = getattr(curve, "points_at_lengths", None)
    if vectorized is not None:
        points = np.asarray(vectorized(s), dtype=np.float64)
    else:
        points = np.array([curve.point_at_length(float(v)) for v in s], dtype=np.float64)
    return points.reshape(n, 2)


class GeometryCache(Mapping[str, CacheEntry]):
    """Immutable mapping of route key -> `CacheEntry`.

    The cache is never edited in place; `rebuild` returns a fresh cache which
    the owner swaps in between ticks (e.g. after a resize).
    """

    def __init__(self, entries: Dict[str, CacheEntry]) -> None:
        self._entries = dict(entries)

    @classmethod
    def build(cls, curves: Mapping[str, Curve]) -> "GeometryCache":
        """Sample every curve and return the resulting cache."""
        entries: Dict[str, CacheEntry] = {}
        for key, curve in curves.items():
            points = sample_curve(curve)
            points.setflags(write=False)
            entries[key] = CacheEntry(points=points)
            if points.shape[0] == 0:
                logger.warning("Route '%s' is shorter than one unit; particles will arrive immediately.", key)
            logger.debug("Cached route '%s': %d points", key, points.shape[0])
        logger.info("Geometry cache built: routes=%d points=%d", len(entries), sum(e.length for e in entries.values()))
        return cls(entries)

    def rebuild(self, curves: Mapping[str, Curve]) -> "GeometryCache":
        """Return a new cache for recomputed curves; this cache is left untouched."""
        return type(self).build(curves)

    def entry(self, key: str) -> CacheEntry:
        """Return the entry for `key` or raise `CacheNotReadyError`."""
        try:
            return self._entries[key]
        except KeyError:
            raise CacheNotReadyError(f"No geometry cached for route '{key}'.") from None

    def __getitem__(self, key: str) -> CacheEntry:
        return self._entries[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def stacked(self, keys: Sequence[str]) -> "StackedGeometry":
        """Pack entries for `keys` into one array for vectorized lookup."""
        return StackedGeometry.from_entries(keys, self._entries)


@dataclass(frozen=True)
class StackedGeometry:
    """All route points concatenated, with per-route offsets and lengths."""

    points: np.ndarray
    offsets: np.ndarray
    lengths: np.ndarray
    last_x: np.ndarray
    present: np.ndarray

    @classmethod
    def from_entries(cls, keys: Sequence[str], entries: Mapping[str, CacheEntry]) -> "StackedGeometry":
        """Stack `entries` in `keys` order; missing keys get zero points and present=False."""
        empty = np.zeros((0, 2), dtype=np.float64)
        chunks = [entries[k].points if k in entries else empty for k in keys]
        lengths = np.array([c.shape[0] for c in chunks], dtype=np.int64)
        offsets = np.zeros(len(chunks), dtype=np.int64)
        if len(chunks) > 1:
            offsets[1:] = np.cumsum(lengths)[:-1]
        points = np.concatenate(chunks, axis=0) if chunks else empty
        last_x = np.array([c[-1, 0] if c.shape[0] else np.nan for c in chunks], dtype=np.float64)
        present = np.array([k in entries for k in keys], dtype=bool)
        return cls(points=points, offsets=offsets, lengths=lengths, last_x=last_x, present=present)
