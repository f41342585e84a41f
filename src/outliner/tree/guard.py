"""Cycle guard and iterative subtree walks.

Every walk keeps a visited set so a corrupted, cyclic parent chain terminates
instead of looping.
"""

from __future__ import annotations

from collections import deque

from outliner.models.outline import NodeMap


def is_descendant(nodes: NodeMap, candidate_descendant_id: str, candidate_ancestor_id: str) -> bool:
    """Return True if `candidate_ancestor_id` is a proper ancestor of `candidate_descendant_id`.

    Walks the parent chain upward; a node is never its own descendant, and
    missing ids on either side give False.
    """

    if not candidate_descendant_id or not candidate_ancestor_id:
        return False
    node = nodes.get(candidate_descendant_id)
    if node is None or candidate_ancestor_id not in nodes:
        return False

    seen = {candidate_descendant_id}
    current_id = node.parent_id
    while current_id is not None and current_id not in seen:
        if current_id == candidate_ancestor_id:
            return True
        seen.add(current_id)
        parent = nodes.get(current_id)
        if parent is None:
            return False
        current_id = parent.parent_id
    return False


def collect_subtree(nodes: NodeMap, node_id: str) -> list[str]:
    """Return `node_id` and all of its descendants, breadth-first.

    Children that do not exist in the map are skipped. Returns an empty list
    for an unknown id.
    """

    if node_id not in nodes:
        return []

    out: list[str] = []
    seen: set[str] = set()
    queue: deque[str] = deque([node_id])
    while queue:
        current_id = queue.popleft()
        if current_id in seen:
            continue
        node = nodes.get(current_id)
        if node is None:
            continue
        seen.add(current_id)
        out.append(current_id)
        queue.extend(node.children_ids)
    return out


def path_to_node(nodes: NodeMap, node_id: str) -> list[str]:
    """Return the ancestor ids of `node_id`, from the root down to its parent."""

    path: list[str] = []
    seen = {node_id}
    node = nodes.get(node_id)
    while node is not None and node.parent_id is not None and node.parent_id not in seen:
        path.append(node.parent_id)
        seen.add(node.parent_id)
        node = nodes.get(node.parent_id)
    path.reverse()
    return path
