# -*- coding: utf-8 -*-
"""Route enumeration and weighted target selection."""

# Import logging.
import logging

# Import dataclasses.
from dataclasses import dataclass

# Import typing primitives.
from typing import List, Optional, Tuple

# Import numpy.
import numpy as np

# Import local modules.
from .dataset import FlowGraph, Node, ParsedDataset, flatten
from .errors import EmptyGraphError
from .sampling import GroupSplit, cumulative_thresholds, draw_index

logger = logging.getLogger("particleflow")


@dataclass(frozen=True)
class Target:
    """One (route, outcome group) pair particles can be sent to.

    Attributes
    ----------
    key : str
        Route identity, also the geometry cache key.
    name, path : str
        Terminal node name and path.
    group : str or None
        Outcome group; None when the route is ungrouped and the group is
        drawn separately from a `GroupSplit`.
    count : float
        Absolute count from the dataset.
    weight : float
        `count / total`.
    """

    key: str
    name: str
    path: str
    group: Optional[str]
    count: float
    weight: float


@dataclass(frozen=True)
class RouteTable:
    """Routes, weighted targets and the cumulative threshold structure.

    `target_route`, `target_group` and `target_dest` map each target index to
    its route key index, group key index (-1 when ungrouped) and destination
    index so per-particle lookups stay vectorized.
    """

    graph: FlowGraph
    routes: Tuple[Tuple[Node, ...], ...]
    route_keys: Tuple[str, ...]
    targets: Tuple[Target, ...]
    thresholds: np.ndarray
    total: float
    group_keys: Tuple[str, ...]
    target_route: np.ndarray
    target_group: np.ndarray
    target_dest: np.ndarray
    group_split: Optional[GroupSplit] = None

    def draw(self, u: float) -> Target:
        """Resolve a uniform draw in [0, 1) to a target (inverse CDF)."""
        return self.targets[draw_index(self.thresholds, u)]

    def draw_indices(self, u: np.ndarray) -> np.ndarray:
        """Vectorized `draw` returning target indices."""
        return np.asarray(draw_index(self.thresholds, np.asarray(u, dtype=np.float64)), dtype=np.int64)

    @property
    def weights(self) -> np.ndarray:
        return np.array([t.weight for t in self.targets], dtype=np.float64)

    @property
    def destinations(self) -> List[str]:
        """Unique terminal names in route order (counter rows)."""
        return list(dict.fromkeys(route[-1].name for route in self.routes))


def enumerate_routes(graph: FlowGraph) -> List[Tuple[Node, ...]]:
    """Return every root-to-terminal node sequence, depth-first left-to-right."""

    def _walk(path: str) -> List[Tuple[Node, ...]]:
        node = graph.node(path)
        sub = [r for child in graph.children.get(path, []) for r in _walk(child)]
        if sub:
            return [(node,) + r for r in sub]
        return [(node,)]

    return [r for r in _walk(graph.root.path) if r[-1].path in graph.terminals]


def build_route_table(dataset: ParsedDataset, graph: Optional[FlowGraph] = None) -> RouteTable:
    """Enumerate routes and cross-join them with outcome groups into weighted targets."""
    if graph is None:
        graph = flatten(dataset.tree)

    routes = enumerate_routes(graph)
    if not routes:
        raise EmptyGraphError("The root reaches no terminal node; no routes can be derived.")

    route_keys: List[str] = []
    absolute: List[Tuple[str, Node, Optional[str], float]] = []
    for route in routes:
        terminal = route[-1]
        key = dataset.route_key(terminal)
        route_keys.append(key)
        leaf = graph.terminals[terminal.path]
        if leaf.groups:
            for group in dataset.group_keys:
                if group in leaf.groups:
                    absolute.append((key, terminal, group, leaf.groups[group]))
        else:
            absolute.append((key, terminal, None, leaf.count))

    total = float(sum(c for _, _, _, c in absolute))
    if total <= 0.0:
        raise EmptyGraphError("All route counts are zero; no weights can be derived.")

    zero = [f"{key}/{group}" if group else key for key, _, group, c in absolute if c == 0.0]
    if zero:
        logger.warning("Targets with zero count will never receive particles: %s", ", ".join(zero))

    targets = tuple(
        Target(key=key, name=node.name, path=node.path, group=group, count=count, weight=count / total)
        for key, node, group, count in absolute
    )
    thresholds = cumulative_thresholds([t.weight for t in targets])
    group_keys = tuple(dataset.group_keys)
    destinations = list(dict.fromkeys(route[-1].name for route in routes))
    target_route = np.array([route_keys.index(t.key) for t in targets], dtype=np.int32)
    target_group = np.array([group_keys.index(t.group) if t.group is not None else -1 for t in targets], dtype=np.int16)
    target_dest = np.array([destinations.index(t.name) for t in targets], dtype=np.int32)
    logger.info(
        "Routes enumerated: routes=%d targets=%d total_count=%.0f",
        len(routes),
        len(targets),
        total,
    )
    return RouteTable(
        graph=graph,
        routes=tuple(routes),
        route_keys=tuple(route_keys),
        targets=targets,
        thresholds=thresholds,
        total=total,
        group_keys=group_keys,
        target_route=target_route,
        target_group=target_group,
        target_dest=target_dest,
        group_split=dataset.group_split,
    )
