# -*- coding: utf-8 -*-
"""Tick driver: wires the components together and runs the animation loop."""

# Import dataclasses.
from dataclasses import dataclass, replace

# Import logging.
import logging

# Import time helpers for frame pacing.
import time
from time import perf_counter

# Import typing primitives.
from typing import Any, Callable, Dict, Optional, Protocol

# Import numpy.
import numpy as np

# Import local modules.
from .config import LayoutConfig, RenderConfig, SimulationConfig, deep_update, default_config
from .dataset import ParsedDataset, parse_dataset
from .geometry import GeometryCache
from .layout import FlowLayout, compute_layout
from .routes import RouteTable, build_route_table
from .spawner import spawn_particles
from .state import SimulationState
from .stepper import Frame, step_particles
from .tally import Tally, arrival_counts, tally_arrivals

logger = logging.getLogger("particleflow")


@dataclass(frozen=True)
class TickResult:
    """Output of one `advance` call."""

    state: SimulationState
    frame: Frame
    tally: Tally


def evict_arrived(state: SimulationState) -> SimulationState:
    """Drop arrived particles, folding their arrivals into the evicted counters."""
    p = state.particles
    arrived = p.arrived
    if not np.any(arrived):
        return state
    counts = arrival_counts(state.table, p)
    return replace(state, particles=p.select(~arrived), evicted=state.evicted + counts)


def advance(
    state: SimulationState,
    tick: int,
    sim_cfg: SimulationConfig,
    render_cfg: RenderConfig,
    rng: np.random.Generator,
) -> TickResult:
    """Run spawn, step and tally for `tick` (sequential, single actor)."""
    state = spawn_particles(state, tick, sim_cfg, rng)
    state, frame = step_particles(state, tick, render_cfg)
    tally = tally_arrivals(state)
    if not sim_cfg.retain_arrived:
        state = evict_arrived(state)
    return TickResult(state=state, frame=frame, tally=tally)


class FramePacer(Protocol):
    """Frame-pacing capability injected into the driver loop."""

    def wait(self) -> None: ...


class NullPacer:
    """Run ticks back to back."""

    def wait(self) -> None:
        return None


class FixedRatePacer:
    """Sleep so ticks happen at most `fps` times per second.

    When the loop falls behind, the schedule resynchronises instead of
    bursting to catch up; particles then jump ahead on the next frame.
    """

    def __init__(
        self,
        fps: float,
        clock: Callable[[], float] = perf_counter,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        if fps <= 0:
            raise ValueError("fps must be positive for a fixed-rate pacer.")
        self.interval = 1.0 / float(fps)
        self._clock = clock
        self._sleep = sleep
        self._deadline: Optional[float] = None

    def wait(self) -> None:
        now = self._clock()
        if self._deadline is None:
            self._deadline = now + self.interval
            return
        delay = self._deadline - now
        if delay > 0:
            self._sleep(delay)
            self._deadline += self.interval
        else:
            self._deadline = now + self.interval


def make_pacer(fps: float) -> FramePacer:
    """Fixed-rate pacer for positive `fps`, otherwise unpaced."""
    return FixedRatePacer(fps) if fps and fps > 0 else NullPacer()


class Engine:
    """Owns the simulation state and the tick counter."""

    def __init__(
        self,
        dataset: ParsedDataset,
        table: RouteTable,
        layout: FlowLayout,
        state: SimulationState,
        sim_cfg: SimulationConfig,
        render_cfg: RenderConfig,
        rng: np.random.Generator,
        log_every: int = 0,
    ) -> None:
        self.dataset = dataset
        self.table = table
        self.layout = layout
        self.state = state
        self.sim_cfg = sim_cfg
        self.render_cfg = render_cfg
        self.rng = rng
        self.log_every = int(log_every)

    @property
    def tick(self) -> int:
        return self.state.tick

    def advance(self, tick: int) -> TickResult:
        """Apply one tick and keep the resulting state."""
        result = advance(self.state, tick, self.sim_cfg, self.render_cfg, self.rng)
        self.state = result.state
        return result

    def resize(self, layout_cfg: LayoutConfig) -> FlowLayout:
        """Recompute the layout and swap in a rebuilt geometry cache between ticks."""
        layout = compute_layout(self.dataset, self.table, layout_cfg, self.render_cfg.particle_size)
        cache = self.state.geometry.rebuild(layout.curves) if self.state.geometry is not None else GeometryCache.build(layout.curves)
        self.layout = layout
        self.state = self.state.with_geometry(cache)
        logger.info("Geometry rebuilt for %.0fx%.0f canvas", layout.width, layout.height)
        return layout

    def run(
        self,
        ticks: Optional[int] = None,
        pacer: Optional[FramePacer] = None,
        on_frame: Optional[Callable[[TickResult], None]] = None,
        should_stop: Optional[Callable[[], bool]] = None,
    ) -> Optional[TickResult]:
        """Drive the loop: ``tick += 1; state = advance(state, tick)``.

        Runs `ticks` frames (forever when None) or until `should_stop`
        returns True. Returns the last tick result.
        """
        pacer = pacer or NullPacer()
        last: Optional[TickResult] = None
        tick = self.state.tick
        done = 0
        wall0 = perf_counter()
        while ticks is None or done < ticks:
            if should_stop is not None and should_stop():
                break
            tick += 1
            last = self.advance(tick)
            done += 1
            if on_frame is not None:
                on_frame(last)
            if self.log_every > 0 and (done % self.log_every == 0 or done == ticks):
                logger.info(
                    "tick=%d spawned=%d/%d in_flight=%d arrived=%d live=%d",
                    tick,
                    self.state.spawned,
                    self.state.population,
                    len(last.frame),
                    last.tally.total,
                    self.state.particles.size,
                )
            pacer.wait()
        elapsed = perf_counter() - wall0
        logger.info("Loop finished: ticks=%d wall=%.2fs (%.1f ticks/s)", done, elapsed, done / elapsed if elapsed > 0 else 0.0)
        return last


def build_engine(raw: Any, cfg: Optional[Dict[str, Any]] = None) -> Engine:
    """Parse `raw` (or an already parsed dataset) and wire every component."""
    cfg = deep_update(default_config(), cfg or {})
    dataset = raw if isinstance(raw, ParsedDataset) else parse_dataset(raw, cfg["dataset"])
    table = build_route_table(dataset)

    render_cfg = RenderConfig.from_dict(cfg["render"], shape=dataset.shape)
    layout = compute_layout(dataset, table, LayoutConfig.from_dict(cfg["layout"]), render_cfg.particle_size)
    sim_cfg = SimulationConfig.from_dict(cfg["simulation"], offset_range=layout.offset_range)

    cache = GeometryCache.build(layout.curves)
    state = SimulationState.initial(table, cache, max_particles=sim_cfg.max_particles)
    rng = np.random.default_rng(sim_cfg.seed)
    logger.info(
        "Engine ready: shape=%s targets=%d population=%d density=%d retain_arrived=%s",
        dataset.shape,
        len(table.targets),
        state.population,
        sim_cfg.density,
        sim_cfg.retain_arrived,
    )
    return Engine(
        dataset=dataset,
        table=table,
        layout=layout,
        state=state,
        sim_cfg=sim_cfg,
        render_cfg=render_cfg,
        rng=rng,
        log_every=int(cfg.get("driver", {}).get("log_every", 0) or 0),
    )
