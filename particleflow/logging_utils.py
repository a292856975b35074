# -*- coding: utf-8 -*-
"""Logging setup for particleflow."""

# Import logging.
import logging


def setup_logging(level: str = "INFO") -> None:
    """Configure root logging for console output."""
    logging.basicConfig(
        level=getattr(logging, str(level).upper(), logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
    logging.getLogger("particleflow").setLevel(getattr(logging, str(level).upper(), logging.INFO))
