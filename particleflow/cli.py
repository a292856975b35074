# -*- coding: utf-8 -*-
"""Command line interface for particleflow."""

# Import argparse for CLI parsing.
import argparse

# Import typing primitives.
from typing import List, Optional


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    # Create argument parser with a program name.
    ap = argparse.ArgumentParser(prog="particleflow", description="Run the particle-flow simulation headless.")
    # Dataset and configuration paths.
    ap.add_argument("--data", default=None, help="Path to the dataset JSON file (overrides dataset.path).")
    ap.add_argument("--config", default=None, help="Path to configuration JSON file.")
    # Logging level.
    ap.add_argument("--log-level", default="INFO", choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    # Common operational overrides.
    ap.add_argument("--shape", default=None, choices=["hierarchy", "flat"], help="Dataset shape override.")
    ap.add_argument("--ticks", default=None, type=int, help="Number of ticks to run.")
    ap.add_argument("--fps", default=None, type=float, help="Frame rate cap; 0 runs unpaced.")
    ap.add_argument("--seed", default=None, type=int, help="Random seed for reproducible runs.")
    ap.add_argument("--density", default=None, type=int, help="Maximum particles spawned per tick.")
    ap.add_argument(
        "--evict-arrived",
        action="store_true",
        help="Drop arrived particles from the live set (counters are kept).",
    )
    ap.add_argument("--trace-nc", default=None, help="NetCDF path for the sampled particle trace.")
    ap.add_argument("--trace-every", default=None, type=int, help="Sample every N ticks into the trace.")
    # Return parsed args.
    return ap.parse_args(argv)
