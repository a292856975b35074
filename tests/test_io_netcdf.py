# -*- coding: utf-8 -*-
"""Trace recording and NetCDF export."""

# Import JSON to decode the provenance attribute.
import json

# Import numpy.
import numpy as np

# Import xarray.
import xarray as xr

# Local modules.
from particleflow.config import default_config
from particleflow.io_netcdf import TraceRecorder, write_trace_netcdf
from particleflow.simulation import build_engine

from conftest import FLAT_SCENARIO, SCENARIO


def _recorded(raw=SCENARIO, cfg=None, ticks=30, every=5):
    engine = build_engine(raw, cfg or {"simulation": {"seed": 4}})
    recorder = TraceRecorder(engine.table.destinations, engine.table.group_keys, every=every)
    engine.run(ticks=ticks, on_frame=recorder)
    return engine, recorder


def test_recorder_keeps_every_nth_tick():
    _, recorder = _recorded()
    assert recorder.ticks == [5, 10, 15, 20, 25, 30]
    assert len(recorder.samples) == len(recorder.arrived) == 6


def test_dataset_layout():
    engine, recorder = _recorded()
    ds = recorder.to_dataset(default_config())
    assert ds["x"].dims == ("sample", "particle")
    assert ds["arrived"].dims == ("sample", "destination", "group")
    assert ds["group"].values.tolist() == ["males", "females"]
    assert ds["destination"].values.tolist() == ["B"]
    assert ds.sizes["particle"] == engine.state.spawned
    created = ds["created_at"].values
    ticks = ds["tick"].values
    # Particles are missing (NaN) in samples taken before they were spawned.
    for j in range(ds.sizes["particle"]):
        before = ticks < created[j]
        assert np.all(np.isnan(ds["x"].values[before, j]))
        assert np.all(ds["in_flight"].values[before, j] == 0)
    assert int(ds["arrived"].values.sum()) == 0


def test_write_and_read_back(tmp_path):
    cfg = default_config()
    _, recorder = _recorded()
    out = tmp_path / "trace.nc"
    write_trace_netcdf(str(out), recorder, cfg)
    with xr.open_dataset(out) as ds:
        assert ds.attrs["source"] == "particleflow"
        assert ds.attrs["title"] == cfg["output"]["title"]
        assert "trace written by particleflow" in ds.attrs["history"]
        assert json.loads(ds.attrs["particleflow_config_json"])["render"]["colors"]["females"] == "plum"
        assert ds["tick"].values.tolist() == recorder.ticks
        assert set(ds["particle_group"].values.tolist()) <= {"males", "females"}
        np.testing.assert_allclose(ds["x"].values, recorder.to_dataset(cfg)["x"].values, equal_nan=True)


def test_flat_trace_records_destinations():
    cfg = {"dataset": {"shape": "flat"}, "simulation": {"seed": 9}}
    engine, recorder = _recorded(FLAT_SCENARIO, cfg, ticks=20, every=1)
    ds = recorder.to_dataset(cfg)
    assert ds["destination"].values.tolist() == ["bit0", "bit1", "bit2", "bit3", "bit4"]
    assert ds["group"].values.tolist() == ["females", "males"]
    assert set(ds["particle_destination"].values.tolist()) <= set(engine.table.destinations)
