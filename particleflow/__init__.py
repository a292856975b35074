# -*- coding: utf-8 -*-
"""Particle-flow simulation engine for animated flow diagrams."""

from .errors import CacheNotReadyError, EmptyGraphError, MalformedDatasetError, ParticleFlowError

__all__ = [
    "CacheNotReadyError",
    "EmptyGraphError",
    "MalformedDatasetError",
    "ParticleFlowError",
]

__version__ = "0.1.0"
