# -*- coding: utf-8 -*-
"""Piecewise line / cubic Bezier paths with arclength parametrisation.

A `PathCurve` is built like an SVG path (move, line, cubic) and flattened
once into a dense polyline with cumulative arclength, so
`point_at_length(s)` is a pair of `np.interp` lookups.
"""

# Import typing primitives.
from typing import List, Protocol, Tuple

# Import numpy.
import numpy as np

# Polyline spacing used when flattening cubic segments (screen units).
BEZIER_STEP = 0.25


class Curve(Protocol):
    """Geometry capability consumed by the geometry cache."""

    def total_length(self) -> float: ...

    def point_at_length(self, s: float) -> Tuple[float, float]: ...


def cubic_bezier(p0: np.ndarray, c1: np.ndarray, c2: np.ndarray, p1: np.ndarray, t: np.ndarray) -> np.ndarray:
    """Evaluate a cubic Bezier at parameters `t`, returning (len(t), 2) points."""
    t = np.asarray(t, dtype=np.float64)[:, None]
    mt = 1.0 - t
    return (mt ** 3) * p0 + 3.0 * (mt ** 2) * t * c1 + 3.0 * mt * (t ** 2) * c2 + (t ** 3) * p1


class PathCurve:
    """Polyline approximation of a path made of line and cubic segments."""

    def __init__(self) -> None:
        self._chunks: List[np.ndarray] = []
        self._cursor: np.ndarray | None = None
        self._xy: np.ndarray | None = None
        self._cum: np.ndarray | None = None

    def move_to(self, x: float, y: float) -> "PathCurve":
        if self._chunks:
            raise ValueError("PathCurve supports a single subpath; move_to must come first.")
        self._cursor = np.array([x, y], dtype=np.float64)
        self._chunks.append(self._cursor[None, :])
        self._xy = None
        return self

    def line_to(self, x: float, y: float) -> "PathCurve":
        end = np.array([x, y], dtype=np.float64)
        self._require_cursor()
        self._chunks.append(end[None, :])
        self._cursor = end
        self._xy = None
        return self

    def bezier_curve_to(self, c1x: float, c1y: float, c2x: float, c2y: float, x: float, y: float) -> "PathCurve":
        start = self._require_cursor()
        c1 = np.array([c1x, c1y], dtype=np.float64)
        c2 = np.array([c2x, c2y], dtype=np.float64)
        end = np.array([x, y], dtype=np.float64)
        # Control polygon length bounds the arc length from above.
        hull = float(np.linalg.norm(c1 - start) + np.linalg.norm(c2 - c1) + np.linalg.norm(end - c2))
        n = int(min(8192, max(8, np.ceil(hull / BEZIER_STEP))))
        t = np.linspace(0.0, 1.0, n + 1)[1:]
        self._chunks.append(cubic_bezier(start, c1, c2, end, t))
        self._cursor = end
        self._xy = None
        return self

    def _require_cursor(self) -> np.ndarray:
        if self._cursor is None:
            raise ValueError("PathCurve needs move_to before drawing segments.")
        return self._cursor

    def _flatten(self) -> Tuple[np.ndarray, np.ndarray]:
        if self._xy is None:
            if not self._chunks:
                raise ValueError("PathCurve is empty.")
            xy = np.concatenate(self._chunks, axis=0)
            seg = np.hypot(np.diff(xy[:, 0]), np.diff(xy[:, 1]))
            cum = np.concatenate([[0.0], np.cumsum(seg)])
            self._xy = xy
            self._cum = cum
        return self._xy, self._cum  # type: ignore[return-value]

    def total_length(self) -> float:
        """Total arclength of the path."""
        _, cum = self._flatten()
        return float(cum[-1])

    def points_at_lengths(self, s: np.ndarray) -> np.ndarray:
        """Vectorized point lookup; `s` is clamped to [0, total_length]."""
        xy, cum = self._flatten()
        s = np.clip(np.asarray(s, dtype=np.float64), 0.0, cum[-1])
        return np.column_stack([np.interp(s, cum, xy[:, 0]), np.interp(s, cum, xy[:, 1])])

    def point_at_length(self, s: float) -> Tuple[float, float]:
        """Point reached after travelling `s` along the path."""
        x, y = self.points_at_lengths(np.array([s], dtype=np.float64))[0]
        return float(x), float(y)


def straight_line(x0: float, y0: float, x1: float, y1: float) -> PathCurve:
    """Convenience constructor for a single line segment."""
    return PathCurve().move_to(x0, y0).line_to(x1, y1)
