# -*- coding: utf-8 -*-
"""Inverse-CDF discrete sampling over cumulative threshold arrays."""

# Import dataclass for the group split container.
from dataclasses import dataclass

# Import typing primitives.
from typing import Dict, Sequence, Tuple

# Import numpy.
import numpy as np


def cumulative_thresholds(weights: Sequence[float]) -> np.ndarray:
    """Return the running sum of `weights` as a read-only float64 array."""
    thresholds = np.cumsum(np.asarray(weights, dtype=np.float64))
    thresholds.setflags(write=False)
    return thresholds


def draw_index(thresholds: np.ndarray, u: float | np.ndarray) -> int | np.ndarray:
    """Map uniform draw(s) in [0, 1) to the first index whose threshold exceeds the draw.

    Draws that land at or past the final threshold (float rounding leaves the
    last cumulative sum a hair under 1.0) resolve to the last index carrying
    non-zero weight instead of running off the end.
    """
    idx = np.searchsorted(thresholds, u, side="right")
    # First index that reaches the final cumulative value.
    last = int(np.searchsorted(thresholds, thresholds[-1], side="left"))
    if np.isscalar(u):
        return int(min(int(idx), last))
    return np.minimum(idx, last)


@dataclass(frozen=True)
class GroupSplit:
    """Independent outcome-group draw used by ungrouped routes.

    Attributes
    ----------
    keys : tuple of str
        Group keys in draw order.
    counts : tuple of float
        Absolute count per key.
    thresholds : np.ndarray
        Cumulative normalized weights, same order as `keys`.
    """

    keys: Tuple[str, ...]
    counts: Tuple[float, ...]
    thresholds: np.ndarray

    @classmethod
    def from_counts(cls, counts: Dict[str, float]) -> "GroupSplit":
        """Build a split from absolute counts (insertion order is the draw order)."""
        total = float(sum(counts.values()))
        if total <= 0.0:
            raise ValueError("Group split needs a positive total count.")
        keys = tuple(counts)
        weights = [float(counts[k]) / total for k in keys]
        return cls(keys=keys, counts=tuple(float(counts[k]) for k in keys), thresholds=cumulative_thresholds(weights))

    @property
    def boundaries(self) -> np.ndarray:
        """Inner thresholds separating the groups (one fewer than keys)."""
        return self.thresholds[:-1]

    def draw(self, u: float) -> str:
        """Return the group key selected by uniform draw `u`."""
        return self.keys[draw_index(self.thresholds, u)]
