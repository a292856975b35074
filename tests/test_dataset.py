# -*- coding: utf-8 -*-
"""Dataset parsing and hierarchy flattening."""

# Import JSON for fixture files.
import json

# Import pytest.
import pytest

# Import local modules.
from particleflow.dataset import (
    InternalNode,
    TerminalNode,
    flatten,
    load_dataset,
    parse_dataset,
    parse_flat,
    parse_hierarchy,
)
from particleflow.errors import MalformedDatasetError

from conftest import FLAT_SCENARIO, NESTED, SCENARIO


def test_scenario_tree_shape():
    parsed = parse_hierarchy(SCENARIO)
    a = parsed.tree.children["A"]
    assert isinstance(a, InternalNode)
    b = a.children["B"]
    assert isinstance(b, TerminalNode)
    assert b.groups == {"males": 3.0, "females": 1.0}
    assert b.count == 4.0


def test_root_wrapper_is_optional():
    assert parse_hierarchy(SCENARIO) == parse_hierarchy(SCENARIO["root"])


def test_flatten_nodes_edges_records():
    graph = flatten(parse_hierarchy(SCENARIO).tree)
    assert [n.path for n in graph.nodes] == ["/root", "/root/A", "/root/A/B"]
    assert [(e.source, e.target) for e in graph.edges] == [("/root", "/root/A"), ("/root/A", "/root/A/B")]
    assert [r.parent for r in graph.records] == [None, "/root", "/root/A"]
    assert [n.name for n in graph.intermediates] == ["A"]
    assert [n.name for n in graph.leaves] == ["B"]
    assert graph.height == 2


def test_repeated_names_keep_distinct_paths():
    graph = flatten(parse_hierarchy(NESTED).tree)
    industry = [n.path for n in graph.leaves if n.name == "Industry"]
    assert industry == ["/root/Bachelor/Master/Industry", "/root/Bachelor/Industry", "/root/No degree/Industry"]


def test_children_keep_insertion_order():
    graph = flatten(parse_hierarchy({"Z": {"males": 1}, "A": {"males": 1}, "M": {"males": 1}}).tree)
    assert [n.name for n in graph.leaves] == ["Z", "A", "M"]


def test_partial_group_keys_are_terminal():
    parsed = parse_hierarchy({"A": {"females": 2}})
    assert parsed.tree.children["A"] == TerminalNode(groups={"females": 2.0}, count=2.0)


@pytest.mark.parametrize(
    "raw",
    [
        {"A": {"males": 1, "Other": {"males": 1}}},
        {"A": {}},
        {"A": 5},
        {"A": {"males": "many"}},
        {"A": {"males": -1}},
        {"A": {"males": True}},
        {"A": {"males": float("nan")}},
        {"males": 1, "females": 2},
        [1, 2, 3],
    ],
)
def test_malformed_entries_raise(raw):
    with pytest.raises(MalformedDatasetError):
        parse_hierarchy(raw)


def test_cycle_raises():
    inner = {}
    inner["self"] = inner
    with pytest.raises(MalformedDatasetError, match="ancestors"):
        parse_hierarchy({"A": inner})


def test_max_depth_raises():
    raw = {"L1": {"L2": {"L3": {"L4": {"males": 1}}}}}
    parse_hierarchy(raw, max_depth=4)
    with pytest.raises(MalformedDatasetError, match="maximum depth"):
        parse_hierarchy(raw, max_depth=3)


def test_custom_group_keys():
    parsed = parse_hierarchy({"A": {"yes": 2, "no": 3}}, group_keys=("yes", "no"))
    assert parsed.group_keys == ("yes", "no")
    assert parsed.tree.children["A"].count == 5.0


def test_flat_scenario():
    parsed = parse_flat(FLAT_SCENARIO, source="bit3")
    assert parsed.shape == "flat"
    assert list(parsed.tree.children) == ["bit0", "bit1", "bit2", "bit3", "bit4"]
    assert all(isinstance(c, TerminalNode) and not c.groups for c in parsed.tree.children.values())
    assert parsed.source == "bit3"
    assert parsed.group_split.keys == ("females", "males")
    assert parsed.group_split.boundaries.tolist() == pytest.approx([0.4])


def test_flat_source_by_index():
    assert parse_flat(FLAT_SCENARIO).source == "bit3"
    assert parse_flat(FLAT_SCENARIO, source=0).source == "bit0"


@pytest.mark.parametrize(
    "raw, kwargs",
    [
        ({"x": 1, "males": 1, "females": 1}, {}),
        (FLAT_SCENARIO, {"source": 9}),
        (FLAT_SCENARIO, {"source": "bit7"}),
        ({"bit0": 1, "males": 1}, {"source": 0}),
        ({"bit0": 1, "males": 0, "females": 0}, {"source": 0}),
    ],
)
def test_flat_malformed(raw, kwargs):
    with pytest.raises(MalformedDatasetError):
        parse_flat(raw, **kwargs)


def test_parse_dataset_dispatch():
    assert parse_dataset(SCENARIO, {"shape": "hierarchy"}).shape == "hierarchy"
    assert parse_dataset(FLAT_SCENARIO, {"shape": "flat", "flat": {"source": "bit3"}}).shape == "flat"
    with pytest.raises(ValueError, match="Unknown dataset.shape"):
        parse_dataset(SCENARIO, {"shape": "graph"})


def test_load_dataset(tmp_path):
    path = tmp_path / "data.json"
    path.write_text(json.dumps(NESTED), encoding="utf-8")
    parsed = load_dataset(str(path), {"shape": "hierarchy"})
    assert list(parsed.tree.children) == ["Bachelor", "No degree"]


def test_names_with_path_separator_are_rejected():
    # "A/B" would share the path "/root/A/B" with the nested A -> B leaf.
    raw = {"A/B": {"males": 5, "females": 5}, "A": {"B": {"males": 1, "females": 1}}}
    with pytest.raises(MalformedDatasetError, match="must not contain '/'"):
        parse_hierarchy(raw)
    with pytest.raises(MalformedDatasetError, match="must not contain '/'"):
        parse_hierarchy({"A": {"x/y": {"males": 1}}})


def test_flat_names_with_path_separator_are_rejected():
    with pytest.raises(MalformedDatasetError, match="must not contain '/'"):
        parse_flat({"bit0": 1, "bit/1": 2, "bit2": 3, "bit3": 4, "males": 1, "females": 1})


def test_flatten_rejects_hand_built_separator_names():
    tree = InternalNode(children={"A/B": TerminalNode(groups={"males": 1.0}, count=1.0)})
    with pytest.raises(MalformedDatasetError):
        flatten(tree)
