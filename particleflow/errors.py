# -*- coding: utf-8 -*-
"""Exception types raised by the particle-flow engine."""


class ParticleFlowError(Exception):
    """Base class for fatal engine errors."""


class MalformedDatasetError(ParticleFlowError, ValueError):
    """A dataset entry is neither a clear terminal nor a mapping of children."""


class EmptyGraphError(ParticleFlowError):
    """No weighted route can be derived from the dataset."""


class CacheNotReadyError(ParticleFlowError, RuntimeError):
    """Geometry was requested for a route before the cache was built."""
