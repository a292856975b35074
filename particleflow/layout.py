# -*- coding: utf-8 -*-
"""Reference layout: node boxes and one renderable curve per route.

Hierarchical charts use justified columns (terminals in the last column),
terminals stacked in traversal order and every internal node centred on its
children. Each route is a horizontal run through every node box joined by
cubic S-curves. Flat charts place one band per category and draw every route
from the source band to a target band.
"""

# Import logging.
import logging

# Import dataclasses.
from dataclasses import dataclass

# Import typing primitives.
from typing import Dict, List, Sequence, Tuple

# Import local modules.
from .config import LayoutConfig
from .curves import PathCurve
from .dataset import ParsedDataset
from .routes import RouteTable

logger = logging.getLogger("particleflow")


@dataclass(frozen=True)
class NodeBox:
    """Screen box of a node (inner canvas coordinates)."""

    name: str
    path: str
    x0: float
    x1: float
    y0: float
    y1: float


@dataclass(frozen=True)
class FlowLayout:
    """Layout result consumed by the geometry cache and the renderer."""

    width: float
    height: float
    boxes: Dict[str, NodeBox]
    curves: Dict[str, PathCurve]
    offset_range: Tuple[float, float]
    band_height: float


def route_curve(boxes: Sequence[NodeBox], band_height: float) -> PathCurve:
    """Horizontal runs through `boxes` joined by S-shaped cubic segments."""
    h = band_height / 2.0
    path = PathCurve()
    for i, n in enumerate(boxes):
        if i == 0:
            path.move_to(n.x0, n.y0 + h)
        path.line_to(n.x1, n.y0 + h)
        if i + 1 < len(boxes):
            nn = boxes[i + 1]
            w = nn.x0 - n.x1
            path.bezier_curve_to(n.x1 + w / 2.0, n.y0 + h, n.x1 + w / 2.0, nn.y0 + h, nn.x0, nn.y0 + h)
    return path


def hierarchy_layout(table: RouteTable, cfg: LayoutConfig, particle_size: float) -> FlowLayout:
    """Column/band layout for multi-level datasets."""
    graph = table.graph
    columns = graph.height + 1
    inner_w = cfg.inner_width
    node_w = inner_w / columns * cfg.curve
    kx = (inner_w - node_w) / (columns - 1) if columns > 1 else 0.0
    bh = cfg.band_height
    step = bh + cfg.padding

    # Terminals go to the last column; everything else sits at its depth.
    def column(path: str) -> int:
        return columns - 1 if graph.is_terminal(path) else graph.depth(path)

    ys: Dict[str, float] = {}
    row = 0

    def _place(path: str) -> float:
        nonlocal row
        kids = graph.children.get(path, [])
        if not kids:
            ys[path] = row * step
            row += 1
        else:
            child_ys = [_place(c) for c in kids]
            ys[path] = (child_ys[0] + child_ys[-1]) / 2.0
        return ys[path]

    _place(graph.root.path)

    boxes: Dict[str, NodeBox] = {}
    for node in graph.nodes:
        x0 = column(node.path) * kx
        y0 = ys[node.path]
        boxes[node.path] = NodeBox(name=node.name, path=node.path, x0=x0, x1=x0 + node_w, y0=y0, y1=y0 + bh)

    curves: Dict[str, PathCurve] = {}
    for key, route in zip(table.route_keys, table.routes):
        curves[key] = route_curve([boxes[n.path] for n in route], bh)

    inner_h = max(bh, row * step - cfg.padding)
    height = cfg.height if cfg.height is not None else inner_h + cfg.margin_top + cfg.margin_bottom
    offset_range = (-bh / 2.0 - particle_size / 2.0, bh / 2.0 - particle_size / 2.0)
    logger.info("Hierarchy layout: columns=%d rows=%d size=%.0fx%.0f", columns, row, cfg.width, height)
    return FlowLayout(width=cfg.width, height=height, boxes=boxes, curves=curves, offset_range=offset_range, band_height=bh)


def band_scale(domain: Sequence[str], height: float, padding_inner: float) -> Tuple[Dict[str, float], float]:
    """Band positions over [height, 0] (first domain entry at the bottom) and bandwidth."""
    n = len(domain)
    step = height / max(1.0, n - padding_inner)
    bandwidth = step * (1.0 - padding_inner)
    return {name: step * (n - 1 - i) for i, name in enumerate(domain)}, bandwidth


def flat_layout(dataset: ParsedDataset, table: RouteTable, cfg: LayoutConfig, particle_size: float) -> FlowLayout:
    """Band layout for single-level datasets: source band to every target band."""
    names: List[str] = [route[-1].name for route in table.routes]
    height = cfg.height if cfg.height is not None else cfg.flat_height
    y, bw = band_scale(names, height, cfg.flat_padding)
    half = bw / 2.0
    width = cfg.width
    source = dataset.source if dataset.source is not None else names[0]
    ys = y[source] + half

    boxes: Dict[str, NodeBox] = {}
    curves: Dict[str, PathCurve] = {}
    for key, route in zip(table.route_keys, table.routes):
        terminal = route[-1]
        boxes[terminal.path] = NodeBox(name=terminal.name, path=terminal.path, x0=0.0, x1=width, y0=y[terminal.name], y1=y[terminal.name] + bw)
        yt = y[terminal.name] + half
        curves[key] = (
            PathCurve()
            .move_to(0.0, ys)
            .line_to(width * cfg.flat_curve, ys)
            .bezier_curve_to(width / 2.0, ys, width / 2.0, yt, width * (1.0 - cfg.flat_curve), yt)
            .line_to(width, yt)
        )

    offset_range = (-half, half - particle_size)
    logger.info("Flat layout: source=%s bands=%d bandwidth=%.1f", source, len(names), bw)
    return FlowLayout(width=width, height=height, boxes=boxes, curves=curves, offset_range=offset_range, band_height=bw)


def compute_layout(dataset: ParsedDataset, table: RouteTable, cfg: LayoutConfig, particle_size: float) -> FlowLayout:
    """Dispatch on the dataset shape."""
    if dataset.shape == "flat":
        return flat_layout(dataset, table, cfg, particle_size)
    return hierarchy_layout(table, cfg, particle_size)
