"""Shared tree builders for outliner tests."""

from __future__ import annotations

import itertools
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

import pytest

from outliner.models.outline import NodeMap, Outline, OutlineNode
from outliner.storage import OutlineStore
from outliner.tree.store import check_nodes, iter_branch_prefixes


def build_nodes(shape: dict[str, Any], root_id: str = "root") -> NodeMap:
    """Build a well-formed node map from a nested dict of ids.

    ``{"A": {"A1": {}, "A2": {}}, "B": {}}`` gives root -> [A, B], A -> [A1, A2].
    Node names equal their ids. Prefixes are filled in.
    """

    nodes: NodeMap = {root_id: OutlineNode(id=root_id, name=root_id, type="root")}
    stack: list[tuple[str, dict[str, Any]]] = [(root_id, shape)]
    while stack:
        parent_id, children = stack.pop()
        for child_id, grandchildren in children.items():
            nodes[child_id] = OutlineNode(
                id=child_id,
                name=child_id,
                content=f"<p>{child_id} body</p>",
                type="chapter" if grandchildren else "document",
                parent_id=parent_id,
            )
            nodes[parent_id].children_ids.append(child_id)
            stack.append((child_id, grandchildren))

    for node_id, prefix in list(iter_branch_prefixes(nodes, root_id)):
        nodes[node_id].prefix = prefix
    return nodes


@dataclass
class FlakyStore(OutlineStore):
    """Store whose writes fail while `fail` is set."""

    fail: bool = False

    def save(self, outline: Outline) -> None:
        if self.fail:
            raise OSError("disk full")
        super().save(outline)


def children(nodes: NodeMap, node_id: str) -> list[str]:
    return list(nodes[node_id].children_ids)


def assert_well_formed(nodes: NodeMap, root_id: str = "root") -> None:
    problems = check_nodes(nodes, root_id)
    assert problems == [], problems


def snapshot(nodes: NodeMap) -> dict[str, dict[str, Any]]:
    """Deep, comparable view of a node map."""

    return {nid: node.model_dump() for nid, node in nodes.items()}


def shape_of(nodes: NodeMap, node_id: str) -> tuple[Any, ...]:
    """Structure of a subtree by name and content, ignoring ids."""

    node = nodes[node_id]
    return (node.name, node.content, node.type, tuple(shape_of(nodes, cid) for cid in node.children_ids))


@pytest.fixture
def scenario() -> NodeMap:
    """root -> [A, B], A -> [A1, A2], B -> []."""

    return build_nodes({"A": {"A1": {}, "A2": {}}, "B": {}})


@pytest.fixture
def deep() -> NodeMap:
    """root -> [A, B, C], A -> [A1, A2, A3], A2 -> [A2a, A2b], C -> [C1]."""

    return build_nodes(
        {
            "A": {"A1": {}, "A2": {"A2a": {}, "A2b": {}}, "A3": {}},
            "B": {},
            "C": {"C1": {}},
        }
    )


@pytest.fixture
def id_factory() -> Callable[[], str]:
    """Deterministic id source: n1, n2, ..."""

    counter = itertools.count(1)
    return lambda: f"n{next(counter)}"


@pytest.fixture
def outline(deep: NodeMap) -> Outline:
    return Outline(id="outline-1", name="Book", root_node_id="root", nodes=deep)
