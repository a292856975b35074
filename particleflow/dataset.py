# -*- coding: utf-8 -*-
"""Dataset parsing and hierarchy flattening.

Two input shapes are supported and both end up as the same tagged tree:

- ``hierarchy``: nested mappings. Internal entries map child names to
  sub-entries; terminal entries map group keys (e.g. ``males``/``females``)
  to counts.
- ``flat``: a single mapping whose category keys share a prefix (``bit0`` ..
  ``bit4``) plus two aggregate keys describing a binary group split.

The tree is then flattened into nodes, edges and ``(node, path, parent)``
records in one depth-first, left-to-right traversal.
"""

# Import logging.
import logging

# Import math helpers for count validation.
import math

# Import dataclasses.
from dataclasses import dataclass, field

# Import typing primitives.
from typing import Any, Dict, List, Mapping, Optional, Sequence, Set, Union

# Import local modules.
from .config import load_json
from .errors import MalformedDatasetError
from .sampling import GroupSplit

logger = logging.getLogger("particleflow")

ROOT_NAME = "root"
ROOT_PATH = "/" + ROOT_NAME
DEFAULT_GROUP_KEYS = ("males", "females")
DEFAULT_MAX_DEPTH = 64


@dataclass(frozen=True)
class TerminalNode:
    """Leaf entry carrying outcome-group counts.

    ``groups`` is empty for ungrouped leaves (flat datasets); ``count`` is
    always the total for the leaf.
    """

    groups: Dict[str, float]
    count: float


@dataclass(frozen=True)
class InternalNode:
    """Non-terminal entry mapping child names to sub-entries (ordered)."""

    children: Dict[str, "DatasetNode"]


DatasetNode = Union[InternalNode, TerminalNode]


@dataclass(frozen=True)
class Node:
    """Graph node; ``path`` is unique, ``name`` may repeat."""

    name: str
    path: str


@dataclass(frozen=True)
class Edge:
    """Directed edge between node paths."""

    source: str
    target: str


@dataclass(frozen=True)
class NodeRecord:
    """Flattened view of one node with its parent path (None for the root)."""

    node: Node
    path: str
    parent: Optional[str]


@dataclass
class FlowGraph:
    """Nodes, edges and terminal groups reachable from the synthetic root."""

    root: Node
    nodes: List[Node]
    edges: List[Edge]
    records: List[NodeRecord]
    terminals: Dict[str, TerminalNode]
    children: Dict[str, List[str]]
    _by_path: Dict[str, Node] = field(default_factory=dict, repr=False)

    def node(self, path: str) -> Node:
        """Return the node stored under `path`."""
        return self._by_path[path]

    def is_terminal(self, path: str) -> bool:
        return path in self.terminals

    @property
    def intermediates(self) -> List[Node]:
        """Non-root, non-terminal nodes in traversal order."""
        return [n for n in self.nodes if n.path != self.root.path and n.path not in self.terminals]

    @property
    def leaves(self) -> List[Node]:
        """Terminal nodes in traversal order."""
        return [n for n in self.nodes if n.path in self.terminals]

    def depth(self, path: str) -> int:
        """Number of edges between the root and `path`."""
        return path.count("/") - ROOT_PATH.count("/")

    @property
    def height(self) -> int:
        """Depth of the deepest node."""
        return max(self.depth(n.path) for n in self.nodes)


@dataclass(frozen=True)
class ParsedDataset:
    """A dataset decoded into a tagged tree plus its shape-specific extras."""

    shape: str
    tree: InternalNode
    group_keys: tuple
    source: Optional[str] = None
    group_split: Optional[GroupSplit] = None

    def route_key(self, terminal: Node) -> str:
        """Identity of the route ending at `terminal` (geometry cache key)."""
        if self.source is None:
            return terminal.path
        return f"{self.source}_{terminal.name}"


def _count(path: str, key: str, value: Any) -> float:
    """Validate a single count value."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise MalformedDatasetError(f"Count '{key}' at '{path}' must be a number, got {type(value).__name__}.")
    out = float(value)
    if not math.isfinite(out) or out < 0.0:
        raise MalformedDatasetError(f"Count '{key}' at '{path}' must be finite and non-negative, got {value!r}.")
    return out


def _child_path(parent: str, name: Any) -> str:
    """Join a child name onto its parent path; names may not contain the separator."""
    name = str(name)
    if "/" in name:
        raise MalformedDatasetError(f"Entry name '{name}' under '{parent}' must not contain '/'.")
    return f"{parent}/{name}"


def _parse_entry(
    path: str,
    value: Any,
    group_keys: Sequence[str],
    depth: int,
    max_depth: int,
    active: Set[int],
) -> DatasetNode:
    """Decide once whether `value` is terminal or internal and recurse."""
    if not isinstance(value, Mapping):
        raise MalformedDatasetError(f"Entry '{path}' must be a mapping, got {type(value).__name__}.")
    if depth > max_depth:
        raise MalformedDatasetError(f"Entry '{path}' exceeds the maximum depth of {max_depth}.")
    if id(value) in active:
        raise MalformedDatasetError(f"Entry '{path}' refers back to one of its ancestors.")
    if not value:
        raise MalformedDatasetError(f"Entry '{path}' is empty: neither terminal nor a mapping of children.")

    present = [k for k in value if k in group_keys]
    if present:
        extra = [k for k in value if k not in group_keys]
        if extra:
            raise MalformedDatasetError(
                f"Entry '{path}' mixes group keys {present} with other keys {extra}."
            )
        groups = {k: _count(path, k, value[k]) for k in group_keys if k in value}
        return TerminalNode(groups=groups, count=float(sum(groups.values())))

    active.add(id(value))
    children: Dict[str, DatasetNode] = {}
    for name, sub in value.items():
        children[str(name)] = _parse_entry(_child_path(path, name), sub, group_keys, depth + 1, max_depth, active)
    active.discard(id(value))
    return InternalNode(children=children)


def parse_hierarchy(
    raw: Any,
    group_keys: Sequence[str] = DEFAULT_GROUP_KEYS,
    max_depth: int = DEFAULT_MAX_DEPTH,
) -> ParsedDataset:
    """Parse a nested category mapping into a tagged tree.

    A single outer ``{"root": {...}}`` wrapper is unwrapped, so both the bare
    mapping and the wrapped form describe the same dataset.
    """
    if not isinstance(raw, Mapping):
        raise MalformedDatasetError(f"Dataset must be a mapping, got {type(raw).__name__}.")
    if set(raw.keys()) == {ROOT_NAME} and isinstance(raw[ROOT_NAME], Mapping):
        raw = raw[ROOT_NAME]
    if any(k in group_keys for k in raw):
        raise MalformedDatasetError("The root entry must contain child categories, not group counts.")

    keys = tuple(str(k) for k in group_keys)
    if not keys:
        raise ValueError("dataset.group_keys must not be empty.")

    active: Set[int] = {id(raw)}
    children: Dict[str, DatasetNode] = {}
    for name, sub in raw.items():
        children[str(name)] = _parse_entry(_child_path(ROOT_PATH, name), sub, keys, 1, int(max_depth), active)
    return ParsedDataset(shape="hierarchy", tree=InternalNode(children=children), group_keys=keys)


def parse_flat(
    raw: Any,
    prefix: str = "bit",
    source: int | str = 3,
    split_keys: Sequence[str] = ("females", "males"),
) -> ParsedDataset:
    """Parse a flat keyed table into a single-level tree.

    Every key starting with `prefix` becomes an ungrouped terminal under the
    root. `source` picks the category particles start from (index into the
    category list or its name). The two `split_keys` aggregates define an
    independent binary group split.
    """
    if not isinstance(raw, Mapping):
        raise MalformedDatasetError(f"Dataset must be a mapping, got {type(raw).__name__}.")
    categories = [str(k) for k in raw if str(k).startswith(prefix)]
    if not categories:
        raise MalformedDatasetError(f"Flat dataset has no keys starting with '{prefix}'.")

    if isinstance(source, bool):
        raise ValueError("dataset.flat.source must be an index or a category name.")
    if isinstance(source, int):
        try:
            source_name = categories[source]
        except IndexError:
            raise MalformedDatasetError(
                f"Source index {source} is out of range for {len(categories)} categories."
            ) from None
    else:
        source_name = str(source)
        if source_name not in categories:
            raise MalformedDatasetError(f"Source category '{source_name}' is not in the dataset.")

    split_keys = tuple(str(k) for k in split_keys)
    if len(split_keys) != 2:
        raise ValueError("dataset.flat.split_keys must name exactly two aggregate keys.")
    split_counts: Dict[str, float] = {}
    for key in split_keys:
        if key not in raw:
            raise MalformedDatasetError(f"Flat dataset is missing the aggregate key '{key}'.")
        split_counts[key] = _count(ROOT_PATH, key, raw[key])
    if sum(split_counts.values()) <= 0.0:
        raise MalformedDatasetError(f"Aggregate keys {list(split_keys)} must not both be zero.")

    children: Dict[str, DatasetNode] = {}
    for name in categories:
        count = _count(_child_path(ROOT_PATH, name), name, raw[name])
        children[name] = TerminalNode(groups={}, count=count)

    return ParsedDataset(
        shape="flat",
        tree=InternalNode(children=children),
        group_keys=split_keys,
        source=source_name,
        group_split=GroupSplit.from_counts(split_counts),
    )


def parse_dataset(raw: Any, dataset_cfg: Dict[str, Any]) -> ParsedDataset:
    """Dispatch to the shape adapter selected by ``dataset.shape``."""
    shape = str(dataset_cfg.get("shape", "hierarchy")).lower().strip()
    if shape == "hierarchy":
        return parse_hierarchy(
            raw,
            group_keys=dataset_cfg.get("group_keys", DEFAULT_GROUP_KEYS),
            max_depth=int(dataset_cfg.get("max_depth", DEFAULT_MAX_DEPTH)),
        )
    if shape == "flat":
        flat_cfg = dataset_cfg.get("flat", {})
        return parse_flat(
            raw,
            prefix=str(flat_cfg.get("prefix", "bit")),
            source=flat_cfg.get("source", 3),
            split_keys=flat_cfg.get("split_keys", ("females", "males")),
        )
    raise ValueError(f"Unknown dataset.shape '{shape}'. Use 'hierarchy' or 'flat'.")


def load_dataset(path: str, dataset_cfg: Dict[str, Any]) -> ParsedDataset:
    """Read a JSON dataset from disk and parse it."""
    parsed = parse_dataset(load_json(path), dataset_cfg)
    logger.info("Dataset '%s' loaded (shape=%s, top-level entries=%d)", path, parsed.shape, len(parsed.tree.children))
    return parsed


def flatten(tree: InternalNode) -> FlowGraph:
    """Flatten the tagged tree into nodes, edges and records (single traversal)."""
    root = Node(name=ROOT_NAME, path=ROOT_PATH)
    by_path: Dict[str, Node] = {ROOT_PATH: root}
    nodes: List[Node] = [root]
    records: List[NodeRecord] = [NodeRecord(node=root, path=ROOT_PATH, parent=None)]
    edges: List[Edge] = []
    terminals: Dict[str, TerminalNode] = {}
    children: Dict[str, List[str]] = {ROOT_PATH: []}

    def _walk(parent_path: str, entry: InternalNode) -> None:
        for name, sub in entry.children.items():
            path = _child_path(parent_path, name)
            if path not in by_path:
                node = Node(name=name, path=path)
                by_path[path] = node
                nodes.append(node)
                records.append(NodeRecord(node=node, path=path, parent=parent_path))
                children[path] = []
            edges.append(Edge(source=parent_path, target=path))
            children[parent_path].append(path)
            if isinstance(sub, TerminalNode):
                terminals[path] = sub
            else:
                _walk(path, sub)

    _walk(ROOT_PATH, tree)
    return FlowGraph(
        root=root,
        nodes=nodes,
        edges=edges,
        records=records,
        terminals=terminals,
        children=children,
        _by_path=by_path,
    )
