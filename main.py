#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""particleflow entry point.

This file is intentionally small:
- parse CLI
- load+merge configuration
- load the dataset and wire the engine
- run the tick loop and report the counters

All real logic lives in the `particleflow/` package.
"""

# Import logging (for module-level logger).
import logging

# Import stdlib helpers.
import importlib.util
import sys
from typing import List, Optional

# Import lightweight config helpers early for shared utilities.
from particleflow.config import deep_update, default_config, load_json


def _require_numpy() -> None:
    """Validate that NumPy is available before importing particleflow modules."""
    if importlib.util.find_spec("numpy") is None:
        raise ModuleNotFoundError(
            "NumPy is required to run particleflow. Activate your virtual environment "
            f"or install it with '{sys.executable} -m pip install numpy'."
        )


def main(argv: Optional[List[str]] = None) -> int:
    """Program entry point; returns the process exit code."""
    _require_numpy()

    # Import CLI parser.
    from particleflow.cli import parse_args

    # Import logging configuration.
    from particleflow.logging_utils import setup_logging

    # Import engine wiring and output.
    from particleflow.dataset import load_dataset
    from particleflow.errors import ParticleFlowError
    from particleflow.io_netcdf import TraceRecorder, write_trace_netcdf
    from particleflow.simulation import build_engine, make_pacer

    # Parse command-line arguments into a structured namespace.
    args = parse_args(argv)

    # Configure logging.
    setup_logging(args.log_level)
    logger = logging.getLogger("particleflow")

    # Load the built-in defaults and merge the user config file on top.
    cfg = default_config()
    if args.config is not None:
        cfg = deep_update(cfg, load_json(args.config))

    # Apply CLI overrides (only if options were explicitly supplied).
    if args.data is not None:
        cfg["dataset"]["path"] = args.data
    if args.shape is not None:
        cfg["dataset"]["shape"] = args.shape
    if args.ticks is not None:
        cfg["driver"]["ticks"] = args.ticks
    if args.fps is not None:
        cfg["driver"]["fps"] = args.fps
    if args.seed is not None:
        cfg["simulation"]["seed"] = args.seed
    if args.density is not None:
        cfg["simulation"]["density"] = args.density
    if args.evict_arrived:
        cfg["simulation"]["retain_arrived"] = False
    if args.trace_nc is not None:
        cfg["output"]["trace_netcdf"] = args.trace_nc
    if args.trace_every is not None:
        cfg["output"]["trace_every"] = args.trace_every

    try:
        dataset = load_dataset(cfg["dataset"]["path"], cfg["dataset"])
        engine = build_engine(dataset, cfg)

        recorder = None
        trace_path = cfg["output"].get("trace_netcdf")
        if trace_path:
            recorder = TraceRecorder(
                engine.table.destinations,
                engine.table.group_keys,
                every=int(cfg["output"].get("trace_every", 10)),
            )

        ticks = cfg["driver"].get("ticks")
        last = engine.run(
            ticks=int(ticks) if ticks is not None else None,
            pacer=make_pacer(float(cfg["driver"].get("fps", 0) or 0)),
            on_frame=recorder,
        )

        if recorder is not None:
            write_trace_netcdf(trace_path, recorder, cfg)
    except ParticleFlowError as exc:
        logger.error("%s: %s", type(exc).__name__, exc)
        return 2

    # Report the final counters.
    if last is not None:
        for row in last.tally.rows:
            logger.info("%-24s %-10s %8d %5s", row.destination, row.group or "-", row.count, row.label)
    logger.info("particleflow finished at tick %d.", engine.tick)
    return 0


if __name__ == "__main__":
    sys.exit(main())
