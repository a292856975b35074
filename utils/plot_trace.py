#!/usr/bin/env python3
"""
utils/plot_trace.py

Plotting utility for particleflow trace NetCDF files.

What it does:
- Loads a trace written with `particleflow --trace-nc` (x/y(sample, particle),
  arrived(sample, destination, group)).
- Draws the in-flight particles of one sample as squares, colored by group,
  in screen coordinates (y grows downwards).
- Draws the arrival counters of the same sample as a stacked bar chart.
- Can generate a single PNG or one PNG per sample (animation-ready).

Dependencies:
- Required: matplotlib, numpy, xarray
- Recommended: netCDF4 (backend)
"""

from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path
from typing import Dict, List, Optional

import numpy as np
import xarray as xr
import matplotlib.pyplot as plt

LOG = logging.getLogger("plot_trace")

DEFAULT_COLOR = "#999999"


def _group_colors(ds: xr.Dataset) -> Dict[str, str]:
    """Read group colors from the embedded run configuration, if any."""
    raw = ds.attrs.get("particleflow_config_json")
    if not raw:
        return {}
    cfg = json.loads(raw)
    render = cfg.get("render", {})
    colors = render.get("colors", {})
    if cfg.get("dataset", {}).get("shape") == "flat" and render.get("flat_colors"):
        colors = render["flat_colors"]
    return {str(k): str(v) for k, v in colors.items()}


def plot_sample(ds: xr.Dataset, index: int, out_png: Optional[str], title: Optional[str] = None, dpi: int = 120) -> None:
    """Render particles and counters for one trace sample."""
    n = int(ds.sizes["sample"])
    if index < 0 or index >= n:
        raise ValueError(f"sample index {index} out of range (0..{n - 1}).")

    colors = _group_colors(ds)
    x = np.asarray(ds["x"].isel(sample=index).values, dtype=float)
    y = np.asarray(ds["y"].isel(sample=index).values, dtype=float)
    groups = [str(g) for g in ds["particle_group"].values]
    visible = np.isfinite(x) & np.isfinite(y)
    point_colors = [colors.get(g, DEFAULT_COLOR) for g, v in zip(groups, visible) if v]
    tick = int(ds["tick"].isel(sample=index).values)

    fig, (ax, bx) = plt.subplots(1, 2, figsize=(13, 5), gridspec_kw={"width_ratios": [3, 1]})
    if np.any(visible):
        ax.scatter(x[visible], y[visible], s=12, marker="s", c=point_colors, linewidths=0)
    ax.invert_yaxis()
    ax.set_aspect("equal", adjustable="datalim")
    ax.set_xlabel("x (px)")
    ax.set_ylabel("y (px)")
    ax.set_title(title or f"{ds.attrs.get('title', 'particleflow')} - tick {tick}")

    arrived = np.asarray(ds["arrived"].isel(sample=index).values, dtype=float)
    dests: List[str] = [str(d) for d in ds["destination"].values]
    bottom = np.zeros(len(dests))
    for g, group in enumerate(str(v) for v in ds["group"].values):
        bx.barh(dests, arrived[:, g], left=bottom, color=colors.get(group, DEFAULT_COLOR), label=group or "all")
        bottom += arrived[:, g]
    bx.invert_yaxis()
    bx.set_xlabel("arrived")
    bx.legend(loc="lower right", fontsize=8)
    plt.tight_layout()

    if out_png:
        Path(out_png).parent.mkdir(parents=True, exist_ok=True)
        fig.savefig(out_png, dpi=dpi)
        LOG.info("Saved figure: %s", out_png)
        plt.close(fig)
    else:
        plt.show()


def main(argv: Optional[List[str]] = None) -> int:
    ap = argparse.ArgumentParser(description="Plot a particleflow trace NetCDF.")
    ap.add_argument("--trace", required=True, help="Trace NetCDF path.")
    ap.add_argument("--out", default=None, help="Output PNG path. If omitted, show interactive window.")
    ap.add_argument("--out-dir", default=None, help="If set with --all-samples, save frames here.")
    ap.add_argument("--all-samples", action="store_true", help="Render one PNG per sample.")
    ap.add_argument("--sample-index", type=int, default=-1, help="Sample index (default: last).")
    ap.add_argument("--title", default=None, help="Custom plot title.")
    ap.add_argument("--dpi", type=int, default=120, help="PNG DPI when saving.")
    ap.add_argument("--log-level", default="INFO", choices=["DEBUG", "INFO", "WARNING", "ERROR"])

    args = ap.parse_args(argv)

    logging.basicConfig(level=getattr(logging, args.log_level), format="%(levelname)s: %(message)s")

    LOG.info("Opening trace dataset: %s", args.trace)
    with xr.open_dataset(args.trace) as ds:
        n = int(ds.sizes["sample"])
        if n == 0:
            raise ValueError("Trace contains no samples.")
        if args.all_samples:
            if not args.out_dir:
                raise ValueError("--all-samples requires --out-dir.")
            for i in range(n):
                plot_sample(ds, i, str(Path(args.out_dir) / f"trace_s{i:04d}.png"), args.title, args.dpi)
        else:
            index = args.sample_index if args.sample_index >= 0 else n - 1
            plot_sample(ds, index, args.out, args.title, args.dpi)

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
