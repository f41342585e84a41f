"""Tests for the cycle guard and subtree walks."""

from __future__ import annotations

from conftest import build_nodes

from outliner.models.outline import OutlineNode
from outliner.tree.guard import collect_subtree, is_descendant, path_to_node


def test_is_descendant_follows_parent_chain(deep) -> None:
    """It should report grandchildren and children as descendants, not the reverse."""

    assert is_descendant(deep, "A2a", "A2")
    assert is_descendant(deep, "A2a", "A")
    assert is_descendant(deep, "A2a", "root")
    assert not is_descendant(deep, "A", "A2a")
    assert not is_descendant(deep, "C1", "A")


def test_node_is_not_its_own_descendant(deep) -> None:
    """It should never treat a node as its own descendant."""

    for node_id in deep:
        assert not is_descendant(deep, node_id, node_id)


def test_is_descendant_missing_ids_are_false(deep) -> None:
    """It should return False for unknown or empty ids on either side."""

    assert not is_descendant(deep, "ghost", "A")
    assert not is_descendant(deep, "A1", "ghost")
    assert not is_descendant(deep, "", "A")


def test_is_descendant_terminates_on_cyclic_data() -> None:
    """It should stop on a corrupted parent cycle instead of looping."""

    nodes = {
        "x": OutlineNode(id="x", parent_id="y", children_ids=["y"]),
        "y": OutlineNode(id="y", parent_id="x", children_ids=["x"]),
    }
    assert is_descendant(nodes, "x", "y")
    assert not is_descendant(nodes, "x", "z")


def test_collect_subtree_breadth_first(deep) -> None:
    """It should list the node first and then all descendants level by level."""

    assert collect_subtree(deep, "A") == ["A", "A1", "A2", "A3", "A2a", "A2b"]
    assert collect_subtree(deep, "B") == ["B"]
    assert collect_subtree(deep, "ghost") == []


def test_collect_subtree_survives_cycles_and_dangling_children() -> None:
    """It should visit each node once and skip children that do not exist."""

    nodes = build_nodes({"A": {"A1": {}}})
    nodes["A1"].children_ids = ["A", "missing"]
    assert collect_subtree(nodes, "A") == ["A", "A1"]


def test_path_to_node(deep) -> None:
    """It should list ancestors from the root down to the parent."""

    assert path_to_node(deep, "A2b") == ["root", "A", "A2"]
    assert path_to_node(deep, "root") == []
    assert path_to_node(deep, "ghost") == []
