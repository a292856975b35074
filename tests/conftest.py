# -*- coding: utf-8 -*-
"""Shared fixtures for the particleflow test-suite."""

# Import numpy.
import numpy as np

# Import pytest.
import pytest

# Import local modules.
from particleflow.config import RenderConfig, SimulationConfig
from particleflow.curves import straight_line
from particleflow.dataset import parse_flat, parse_hierarchy
from particleflow.geometry import GeometryCache
from particleflow.particles import Particles
from particleflow.routes import build_route_table
from particleflow.state import SimulationState

SCENARIO = {"root": {"A": {"B": {"males": 3, "females": 1}}}}

FLAT_SCENARIO = {"bit0": 10, "bit1": 20, "bit2": 30, "bit3": 25, "bit4": 15, "males": 60, "females": 40}

NESTED = {
    "Bachelor": {
        "Master": {
            "PhD": {"males": 12, "females": 9},
            "Industry": {"males": 61, "females": 48},
        },
        "Industry": {"males": 140, "females": 96},
    },
    "No degree": {
        "Industry": {"males": 74, "females": 40},
        "Dropout": {"males": 31, "females": 22},
    },
}


class FixedRng:
    """Stand-in generator returning the same uniform draw every time."""

    def __init__(self, value: float) -> None:
        self.value = value

    def random(self, size=None):
        if size is None:
            return self.value
        return np.full(size, self.value, dtype=np.float64)


def line_cache(table, length: float = 100.0) -> GeometryCache:
    """Horizontal line of `length` for every route key."""
    return GeometryCache.build({k: straight_line(0.0, 0.0, length, 0.0) for k in table.route_keys})


def one_particle(speed: float = 1.0, created_at: int = 0, length: int = 100, target: int = 0, group: int = 0) -> Particles:
    """Single particle on route 0."""
    return Particles(
        target=np.array([target], dtype=np.int32),
        route=np.array([0], dtype=np.int32),
        group=np.array([group], dtype=np.int16),
        speed=np.array([speed], dtype=np.float64),
        offset=np.array([0.0], dtype=np.float64),
        created_at=np.array([created_at], dtype=np.int64),
        slot=np.array([0], dtype=np.int32),
        pos=np.array([0.0], dtype=np.float64),
        length=np.array([length], dtype=np.int64),
    )


@pytest.fixture
def scenario_dataset():
    return parse_hierarchy(SCENARIO)


@pytest.fixture
def scenario_table(scenario_dataset):
    return build_route_table(scenario_dataset)


@pytest.fixture
def flat_dataset():
    return parse_flat(FLAT_SCENARIO, source="bit3")


@pytest.fixture
def flat_table(flat_dataset):
    return build_route_table(flat_dataset)


@pytest.fixture
def line_state(scenario_table):
    """Scenario state with a 100-unit straight line for every route."""
    return SimulationState.initial(scenario_table, line_cache(scenario_table))


@pytest.fixture
def sim_cfg():
    return SimulationConfig.from_dict({"density": 7, "speed": 1.0, "speed_range": 0.0})


@pytest.fixture
def plain_render():
    return RenderConfig.from_dict(
        {"particle_size": 7, "squeeze": False, "colors": {"females": "plum", "males": "mediumslateblue"}}
    )
