# -*- coding: utf-8 -*-
"""Configuration handling for particleflow.

The engine is configured via:
1) Built-in defaults (`default_config`).
2) An optional JSON configuration file merged on top.
3) Optional CLI overrides (handled in cli.py / main.py).
"""

# Import JSON for reading configuration files.
import json

# Import dataclass for typed configuration views.
from dataclasses import dataclass

# Import typing primitives.
from typing import Any, Dict, Optional, Tuple


def default_config() -> Dict[str, Any]:
    """Return a complete default configuration dictionary."""
    return {
        "dataset": {
            "path": "data.json",
            "shape": "hierarchy",
            "group_keys": ["males", "females"],
            "max_depth": 64,
            "flat": {
                "prefix": "bit",
                "source": 3,
                "split_keys": ["females", "males"],
            },
        },
        "simulation": {
            "density": 7,
            "speed": 0.7,
            "speed_range": 0.5,
            "max_particles": None,
            "retain_arrived": True,
            "seed": None,
        },
        "layout": {
            "width": 960,
            "height": None,
            "margin": {"top": 10, "right": 130, "bottom": 10, "left": 10},
            "padding": 20,
            "curve": 0.6,
            "band_height": 70,
            "flat_height": 300,
            "flat_curve": 0.37,
            "flat_padding": 0.3,
        },
        "render": {
            "particle_size": 7,
            "squeeze": None,
            "colors": {
                "females": "plum",
                "males": "mediumslateblue",
            },
            "flat_colors": {
                "females": "plum",
                "males": "powderblue",
            },
            "default_color": "#999999",
        },
        "driver": {
            "ticks": 600,
            "fps": 60,
            "log_every": 60,
        },
        "output": {
            "trace_netcdf": None,
            "trace_every": 10,
            "title": "particleflow particle trace",
        },
    }


def load_json(path: str) -> Dict[str, Any]:
    """Load a JSON file into a Python dictionary."""
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def deep_update(base: Dict[str, Any], other: Dict[str, Any]) -> Dict[str, Any]:
    """Recursively merge dict `other` into dict `base` (non-destructive)."""
    out = dict(base)
    for k, v in other.items():
        # If both sides are dicts, merge recursively.
        if isinstance(v, dict) and isinstance(out.get(k), dict):
            out[k] = deep_update(out[k], v)  # type: ignore[arg-type]
        else:
            out[k] = v
    return out


@dataclass(frozen=True)
class SimulationConfig:
    """Spawn and motion parameters."""

    density: int
    speed_min: float
    speed_range: float
    offset_min: float
    offset_max: float
    max_particles: Optional[int]
    retain_arrived: bool
    seed: Optional[int]

    @classmethod
    def from_dict(cls, cfg: dict, offset_range: Tuple[float, float] = (0.0, 0.0)) -> "SimulationConfig":
        """Build config from the raw ``simulation`` section.

        `offset_range` comes from the layout (band height and particle size)
        and may be overridden with ``offset_min``/``offset_max`` keys.
        """
        density = int(cfg.get("density", 7))
        if density < 0:
            raise ValueError("simulation.density must be non-negative.")
        speed_min = float(cfg.get("speed", 0.7))
        speed_range = float(cfg.get("speed_range", 0.5))
        if speed_min <= 0.0 or speed_range < 0.0:
            raise ValueError("simulation.speed must be positive and simulation.speed_range non-negative.")
        offset_min = float(cfg.get("offset_min", offset_range[0]))
        offset_max = float(cfg.get("offset_max", offset_range[1]))
        raw_max = cfg.get("max_particles", None)
        max_particles = int(raw_max) if raw_max not in (None, "") else None
        if max_particles is not None and max_particles < 0:
            raise ValueError("simulation.max_particles must be non-negative.")
        raw_seed = cfg.get("seed", None)
        return cls(
            density=density,
            speed_min=speed_min,
            speed_range=speed_range,
            offset_min=min(offset_min, offset_max),
            offset_max=max(offset_min, offset_max),
            max_particles=max_particles,
            retain_arrived=bool(cfg.get("retain_arrived", True)),
            seed=int(raw_seed) if raw_seed not in (None, "") else None,
        )


@dataclass(frozen=True)
class RenderConfig:
    """Per-particle drawing parameters handed to the render collaborator."""

    particle_size: float
    squeeze: bool
    colors: Dict[str, str]
    default_color: str

    @classmethod
    def from_dict(cls, cfg: dict, shape: str = "hierarchy") -> "RenderConfig":
        """Build config from the raw ``render`` section.

        ``squeeze`` defaults to on for hierarchical charts and off for flat ones.
        Flat charts color their split groups from ``flat_colors`` when present.
        """
        size = float(cfg.get("particle_size", 7))
        if size <= 0.0:
            raise ValueError("render.particle_size must be positive.")
        squeeze = cfg.get("squeeze", None)
        colors = cfg.get("flat_colors") if shape == "flat" and cfg.get("flat_colors") else cfg.get("colors", {})
        return cls(
            particle_size=size,
            squeeze=(shape == "hierarchy") if squeeze is None else bool(squeeze),
            colors={str(k): str(v) for k, v in dict(colors).items()},
            default_color=str(cfg.get("default_color", "#999999")),
        )

    def color_for(self, group: Optional[str]) -> str:
        """Return the fill color for an outcome group."""
        if group is None:
            return self.default_color
        return self.colors.get(group, self.default_color)


@dataclass(frozen=True)
class LayoutConfig:
    """Canvas and band geometry for the reference layout."""

    width: float
    height: Optional[float]
    margin_top: float
    margin_right: float
    margin_bottom: float
    margin_left: float
    padding: float
    curve: float
    band_height: float
    flat_height: float
    flat_curve: float
    flat_padding: float

    @classmethod
    def from_dict(cls, cfg: dict) -> "LayoutConfig":
        """Build config from the raw ``layout`` section."""
        margin = dict(cfg.get("margin", {}))
        raw_height = cfg.get("height", None)
        curve = float(cfg.get("curve", 0.6))
        flat_padding = float(cfg.get("flat_padding", 0.3))
        if not 0.0 <= curve <= 1.0:
            raise ValueError("layout.curve must be within [0, 1].")
        if not 0.0 <= flat_padding < 1.0:
            raise ValueError("layout.flat_padding must be within [0, 1).")
        width = float(cfg.get("width", 960))
        if width <= 0.0:
            raise ValueError("layout.width must be positive.")
        return cls(
            width=width,
            height=float(raw_height) if raw_height not in (None, "") else None,
            margin_top=float(margin.get("top", 10)),
            margin_right=float(margin.get("right", 130)),
            margin_bottom=float(margin.get("bottom", 10)),
            margin_left=float(margin.get("left", 10)),
            padding=float(cfg.get("padding", 20)),
            curve=curve,
            band_height=float(cfg.get("band_height", 70)),
            flat_height=float(cfg.get("flat_height", 300)),
            flat_curve=float(cfg.get("flat_curve", 0.37)),
            flat_padding=flat_padding,
        )

    @property
    def inner_width(self) -> float:
        return max(1.0, self.width - self.margin_left - self.margin_right)
