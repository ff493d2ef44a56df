"""Tests for tree validation and path resolution."""

from __future__ import annotations

import pytest

from service_catalog_api.app.core.errors import DisconnectedPath, MalformedTree
from service_catalog_api.app.core.sample_data import BASIC_TREE, BUSINESS_TREE
from service_catalog_api.app.core.tree import resolve_path, tree_to_json, validate_tree


def _node(node_id, children=(), units=None):
    node = {"id": node_id, "label": node_id.title(), "children": list(children)}
    if units is not None:
        node["data"] = {"unitOfMeasurement": list(units)}
    return node


def _tree(*nodes):
    return {node["id"]: node for node in nodes}


def _rule(raw, **kwargs):
    with pytest.raises(MalformedTree) as excinfo:
        validate_tree(raw, **kwargs)
    return excinfo.value.rule, excinfo.value.node_id


def test_sample_trees_are_valid(broadband_tree) -> None:
    for raw in (broadband_tree, BUSINESS_TREE, BASIC_TREE):
        tree = validate_tree(raw)
        assert set(tree) == set(raw)


def test_children_order_is_preserved(broadband_tree) -> None:
    tree = validate_tree(broadband_tree)
    assert tree["fiber"].children == ["fiber_100", "fiber_500", "fiber_1000"]


def test_validation_is_idempotent(broadband_tree) -> None:
    once = validate_tree(broadband_tree)
    twice = validate_tree(tree_to_json(once))
    assert twice == once


def test_missing_id_is_taken_from_key() -> None:
    raw = {"root": {"label": "Root", "children": ["leaf"]}, "leaf": {"data": {"unitOfMeasurement": ["month"]}}}
    tree = validate_tree(raw)
    assert tree["leaf"].id == "leaf"


def test_unit_set_is_deduplicated() -> None:
    tree = validate_tree(_tree(_node("root", units=["month", "GB", "month"])))
    assert tree["root"].units == ["month", "GB"]


def test_missing_root_is_rejected() -> None:
    assert _rule(_tree(_node("top", units=["month"]))) == ("missing_root", None)


def test_non_object_tree_is_rejected() -> None:
    assert _rule([_node("root", units=["month"])])[0] == "missing_root"


def test_invalid_node_is_rejected() -> None:
    assert _rule({"root": "not a node"}) == ("invalid_node", "root")


def test_id_must_match_key() -> None:
    raw = {"root": _node("root", ["a"]), "a": _node("b", units=["month"])}
    assert _rule(raw) == ("id_mismatch", "a")


def test_unknown_child_is_rejected() -> None:
    raw = _tree(_node("root", ["ghost"]))
    assert _rule(raw) == ("unknown_child", "root")


def test_cycle_is_rejected() -> None:
    raw = _tree(_node("root", ["a"]), _node("a", ["b"], ["month"]), _node("b", ["a"], ["month"]))
    assert _rule(raw) == ("cycle", "a")


def test_self_loop_on_root_is_rejected() -> None:
    assert _rule(_tree(_node("root", ["root"], ["month"]))) == ("cycle", "root")


def test_shared_node_is_rejected() -> None:
    raw = _tree(
        _node("root", ["a", "b"]),
        _node("a", ["c"]),
        _node("b", ["c"]),
        _node("c", units=["month"]),
    )
    assert _rule(raw) == ("shared_node", "c")


def test_cycle_in_detached_component_is_rejected() -> None:
    raw = _tree(
        _node("root", ["leaf"]),
        _node("leaf", units=["month"]),
        _node("x", ["y"], ["month"]),
        _node("y", ["x"], ["month"]),
    )
    assert _rule(raw)[0] == "cycle"


def test_detached_component_is_kept_but_not_checked_for_units() -> None:
    raw = _tree(
        _node("root", ["leaf"]),
        _node("leaf", units=["month"]),
        _node("orphan_top", ["orphan_leaf"]),
        _node("orphan_leaf"),
    )
    tree = validate_tree(raw)
    assert "orphan_leaf" in tree


def test_depth_limit() -> None:
    chain = [_node(f"n{i}", [f"n{i + 1}"]) for i in range(1, 5)]
    raw = _tree(_node("root", ["n1"]), *chain, _node("n5", units=["month"]))
    assert _rule(raw, max_depth=3) == ("max_depth", "n4")
    assert "n5" in validate_tree(raw, max_depth=5)


def test_leaf_without_units_is_rejected() -> None:
    raw = _tree(_node("root", ["a"]), _node("a"))
    assert _rule(raw) == ("unpriceable_leaf", "a")


def test_lone_root_needs_units() -> None:
    assert _rule(_tree(_node("root"))) == ("unpriceable_leaf", "root")
    assert "root" in validate_tree(_tree(_node("root", units=["month"])))


def test_malformed_tree_error_payload() -> None:
    with pytest.raises(MalformedTree) as excinfo:
        validate_tree(_tree(_node("root", ["ghost"])))
    payload = excinfo.value.to_dict()
    assert payload["code"] == "MALFORMED_TREE"
    assert payload["rule"] == "unknown_child"
    assert payload["nodeId"] == "root"


def test_resolve_path_returns_terminal_node(broadband_tree) -> None:
    tree = validate_tree(broadband_tree)
    node = resolve_path(tree, ["root", "wired", "fiber", "fiber_100"])
    assert node.id == "fiber_100"
    assert resolve_path(tree, ["root"]).id == "root"


def test_resolve_path_reports_first_broken_edge(broadband_tree) -> None:
    tree = validate_tree(broadband_tree)
    with pytest.raises(DisconnectedPath) as excinfo:
        resolve_path(tree, ["root", "wireless", "mobile", "fiber_100"])
    error = excinfo.value
    assert (error.parent, error.child, error.index) == ("mobile", "fiber_100", 3)
    assert error.to_dict()["breakPoint"] == {"parent": "mobile", "child": "fiber_100", "index": 3}


@pytest.mark.parametrize("path", [[], ["wired", "fiber"]])
def test_resolve_path_must_start_at_root(broadband_tree, path) -> None:
    tree = validate_tree(broadband_tree)
    with pytest.raises(DisconnectedPath) as excinfo:
        resolve_path(tree, path)
    assert excinfo.value.index == 0
    assert excinfo.value.parent is None
