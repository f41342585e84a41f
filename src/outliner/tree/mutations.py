"""Mutation engine: structural edits over a node map.

Every operation is pure. It takes the current node map and returns a
`MutationResult`: either a new map with the edit applied (untouched nodes are
shared with the input, touched nodes are fresh copies) or the input map itself
with ``applied=False`` and a `RejectionReason`. A map passed in is never
modified, so there is no partially applied state to observe.

Rejections are ordinary outcomes of interactive editing (a stale gesture, a
drop onto the dragged node's own subtree, Tab on a first child) and are
logged at debug level only.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Literal

from outliner.errors import RejectionReason
from outliner.logging import get_logger
from outliner.models.outline import NodeMap, NodeMetadata, NodeType, OutlineNode
from outliner.tree.drop import DropPosition
from outliner.tree.guard import collect_subtree, is_descendant
from outliner.tree.store import find_root_id, iter_branch_prefixes, previous_sibling
from outliner.utils.ids import IdFactory, new_node_id, rekey

logger = get_logger(__name__)

Position = Literal["before", "after", "inside"]

_STRUCTURAL_FIELDS = frozenset({"id", "parent_id", "children_ids", "prefix"})
_EDITABLE_FIELDS = frozenset({"name", "content", "type", "is_collapsed", "metadata"})


@dataclass(frozen=True)
class MutationResult:
    """Outcome of one engine call.

    Attributes:
        nodes: The new node map, or the unchanged input map when not applied.
        applied: Whether the edit took effect.
        reason: Why it was rejected; None when applied.
        node_id: The node the caller should focus next (the moved, created,
            cloned or pasted node), when there is one.
    """

    nodes: NodeMap
    applied: bool
    reason: RejectionReason | None = None
    node_id: str | None = None


def _reject(op: str, nodes: NodeMap, reason: RejectionReason, **context: Any) -> MutationResult:
    logger.debug("%s rejected: %s %s", op, reason.value, context)
    return MutationResult(nodes=nodes, applied=False, reason=reason)


class MapDraft:
    """Copy-on-write view of a node map under construction."""

    def __init__(self, nodes: NodeMap) -> None:
        self.nodes: NodeMap = dict(nodes)
        self._fresh: set[str] = set()

    def edit(self, node_id: str) -> OutlineNode:
        if node_id not in self._fresh:
            self.nodes[node_id] = self.nodes[node_id].clone()
            self._fresh.add(node_id)
        return self.nodes[node_id]

    def add(self, node: OutlineNode) -> None:
        self.nodes[node.id] = node
        self._fresh.add(node.id)

    def remove(self, node_id: str) -> None:
        del self.nodes[node_id]
        self._fresh.discard(node_id)

    def detach(self, parent_id: str, child_id: str) -> None:
        parent = self.edit(parent_id)
        parent.children_ids = [cid for cid in parent.children_ids if cid != child_id]

    def refresh_prefixes(self, start_id: str) -> None:
        for node_id, prefix in list(iter_branch_prefixes(self.nodes, start_id)):
            if self.nodes[node_id].prefix != prefix:
                self.edit(node_id).prefix = prefix

    def done(self, node_id: str | None = None) -> MutationResult:
        return MutationResult(nodes=self.nodes, applied=True, node_id=node_id)


def clone_subtree(
    nodes: NodeMap,
    root_id: str,
    id_map: dict[str, str],
    *,
    parent_id: str | None,
) -> list[OutlineNode]:
    """Copy the subtree at `root_id` under new ids.

    Every id, parent reference and children reference is rewritten through the
    single `id_map`; names, content, type and metadata are copied verbatim. The
    cloned root is attached to `parent_id`.
    """

    clones: list[OutlineNode] = []
    for old_id in collect_subtree(nodes, root_id):
        node = nodes[old_id]
        clones.append(
            node.clone(
                id=id_map[old_id],
                parent_id=parent_id if old_id == root_id else id_map.get(node.parent_id or "", node.parent_id),
                children_ids=[id_map[cid] for cid in node.children_ids if cid in id_map],
            )
        )
    return clones


def can_indent(nodes: NodeMap, node_id: str) -> bool:
    """Whether `indent` would be applied to `node_id`."""

    node = nodes.get(node_id)
    if node is None or node.parent_id is None:
        return False
    return previous_sibling(nodes, node_id) is not None


def can_outdent(nodes: NodeMap, node_id: str) -> bool:
    """Whether `outdent` would be applied to `node_id`."""

    node = nodes.get(node_id)
    if node is None or node.parent_id is None:
        return False
    parent = nodes.get(node.parent_id)
    return parent is not None and parent.parent_id is not None and parent.parent_id in nodes


def move_node(
    nodes: NodeMap,
    dragged_id: str,
    target_id: str,
    position: Position | DropPosition,
) -> MutationResult:
    """Move `dragged_id` (with its subtree) before, after or inside `target_id`.

    Rejected when dragging a node onto itself or into its own subtree, when
    dragging the root, when placing a node next to the root, or when either id
    is unknown.
    """

    position = DropPosition(position)
    context = {"dragged": dragged_id, "target": target_id, "position": position.value}

    if dragged_id == target_id:
        return _reject("move", nodes, RejectionReason.INVALID_MOVE, **context)
    dragged = nodes.get(dragged_id)
    target = nodes.get(target_id)
    if dragged is None or target is None:
        return _reject("move", nodes, RejectionReason.NOT_FOUND, **context)
    if dragged.parent_id is None:
        return _reject("move", nodes, RejectionReason.ROOT_VIOLATION, **context)
    if position is DropPosition.NONE or is_descendant(nodes, target_id, dragged_id):
        return _reject("move", nodes, RejectionReason.INVALID_MOVE, **context)

    old_parent_id = dragged.parent_id
    new_parent_id = target_id if position is DropPosition.INSIDE else target.parent_id
    if new_parent_id is None:
        return _reject("move", nodes, RejectionReason.ROOT_VIOLATION, **context)
    if old_parent_id not in nodes or new_parent_id not in nodes:
        return _reject("move", nodes, RejectionReason.NOT_FOUND, **context)

    draft = MapDraft(nodes)
    # Detach first so a reorder within the same parent computes the index on the shortened list.
    draft.detach(old_parent_id, dragged_id)

    new_parent = draft.edit(new_parent_id)
    if position is DropPosition.INSIDE:
        new_parent.children_ids.append(dragged_id)
        new_parent.is_collapsed = False
    else:
        index = new_parent.children_ids.index(target_id)
        if position is DropPosition.AFTER:
            index += 1
        new_parent.children_ids.insert(index, dragged_id)

    draft.edit(dragged_id).parent_id = new_parent_id

    draft.refresh_prefixes(old_parent_id)
    if new_parent_id != old_parent_id:
        draft.refresh_prefixes(new_parent_id)

    logger.info("Moved %s %s %s", dragged_id, position.value, target_id)
    return draft.done(dragged_id)


def indent(nodes: NodeMap, node_id: str) -> MutationResult:
    """Make `node_id` the last child of its previous sibling."""

    node = nodes.get(node_id)
    if node is None:
        return _reject("indent", nodes, RejectionReason.NOT_FOUND, node=node_id)
    if node.parent_id is None:
        return _reject("indent", nodes, RejectionReason.ROOT_VIOLATION, node=node_id)
    prev_id = previous_sibling(nodes, node_id)
    if prev_id is None:
        return _reject("indent", nodes, RejectionReason.INVALID_INDENT, node=node_id)

    parent_id = node.parent_id
    draft = MapDraft(nodes)
    draft.detach(parent_id, node_id)
    prev = draft.edit(prev_id)
    prev.children_ids.append(node_id)
    prev.is_collapsed = False
    draft.edit(node_id).parent_id = prev_id
    draft.refresh_prefixes(parent_id)

    logger.info("Indented %s under %s", node_id, prev_id)
    return draft.done(node_id)


def outdent(nodes: NodeMap, node_id: str) -> MutationResult:
    """Move `node_id` up one level, right after its former parent."""

    node = nodes.get(node_id)
    if node is None:
        return _reject("outdent", nodes, RejectionReason.NOT_FOUND, node=node_id)
    if node.parent_id is None:
        return _reject("outdent", nodes, RejectionReason.ROOT_VIOLATION, node=node_id)
    parent_id = node.parent_id
    parent = nodes.get(parent_id)
    grandparent_id = parent.parent_id if parent is not None else None
    if grandparent_id is None or grandparent_id not in nodes:
        return _reject("outdent", nodes, RejectionReason.INVALID_OUTDENT, node=node_id)

    draft = MapDraft(nodes)
    draft.detach(parent_id, node_id)
    grandparent = draft.edit(grandparent_id)
    grandparent.children_ids.insert(grandparent.children_ids.index(parent_id) + 1, node_id)
    draft.edit(node_id).parent_id = grandparent_id
    draft.refresh_prefixes(grandparent_id)

    logger.info("Outdented %s next to %s", node_id, parent_id)
    return draft.done(node_id)


def delete_node(nodes: NodeMap, node_id: str) -> MutationResult:
    """Remove `node_id` and its entire subtree."""

    node = nodes.get(node_id)
    if node is None:
        return _reject("delete", nodes, RejectionReason.NOT_FOUND, node=node_id)
    if node.parent_id is None:
        return _reject("delete", nodes, RejectionReason.ROOT_VIOLATION, node=node_id)

    doomed = collect_subtree(nodes, node_id)
    parent_id = node.parent_id

    draft = MapDraft(nodes)
    if parent_id in nodes:
        draft.detach(parent_id, node_id)
    for doomed_id in doomed:
        draft.remove(doomed_id)
    if parent_id in nodes:
        draft.refresh_prefixes(parent_id)

    logger.info("Deleted %s (%d node(s))", node_id, len(doomed))
    return draft.done(parent_id)


def duplicate_node(nodes: NodeMap, node_id: str, *, id_factory: IdFactory = new_node_id) -> MutationResult:
    """Clone the subtree at `node_id` under fresh ids and insert it as the next sibling."""

    node = nodes.get(node_id)
    if node is None:
        return _reject("duplicate", nodes, RejectionReason.NOT_FOUND, node=node_id)
    if node.parent_id is None:
        return _reject("duplicate", nodes, RejectionReason.ROOT_VIOLATION, node=node_id)
    parent_id = node.parent_id
    if parent_id not in nodes:
        return _reject("duplicate", nodes, RejectionReason.NOT_FOUND, node=node_id)

    id_map = rekey(collect_subtree(nodes, node_id), set(nodes), id_factory)
    draft = MapDraft(nodes)
    for clone in clone_subtree(nodes, node_id, id_map, parent_id=parent_id):
        draft.add(clone)

    parent = draft.edit(parent_id)
    parent.children_ids.insert(parent.children_ids.index(node_id) + 1, id_map[node_id])
    draft.refresh_prefixes(parent_id)

    logger.info("Duplicated %s as %s (%d node(s))", node_id, id_map[node_id], len(id_map))
    return draft.done(id_map[node_id])


def _new_leaf(
    node_id: str,
    parent_id: str,
    type: NodeType,
    name: str,
    content: str,
) -> OutlineNode:
    return OutlineNode(
        id=node_id,
        name=name,
        content=content,
        type=type,
        parent_id=parent_id,
        children_ids=[],
        is_collapsed=False,
        prefix="",
    )


def add_node(
    nodes: NodeMap,
    parent_id: str,
    type: NodeType = "document",
    name: str = "New Node",
    content: str = "",
    *,
    id_factory: IdFactory = new_node_id,
) -> MutationResult:
    """Append a new leaf as the last child of `parent_id`."""

    if parent_id not in nodes:
        return _reject("add", nodes, RejectionReason.NOT_FOUND, parent=parent_id)
    if type == "root":
        return _reject("add", nodes, RejectionReason.ROOT_VIOLATION, parent=parent_id)

    new_id = rekey([""], set(nodes), id_factory)[""]
    draft = MapDraft(nodes)
    draft.add(_new_leaf(new_id, parent_id, type, name, content))
    parent = draft.edit(parent_id)
    parent.children_ids.append(new_id)
    parent.is_collapsed = False
    draft.refresh_prefixes(new_id)

    logger.info("Added %s under %s", new_id, parent_id)
    return draft.done(new_id)


def add_node_after(
    nodes: NodeMap,
    after_id: str,
    type: NodeType = "document",
    name: str = "New Node",
    content: str = "",
    *,
    id_factory: IdFactory = new_node_id,
) -> MutationResult:
    """Insert a new leaf right after `after_id`; on the root, add a child instead."""

    after = nodes.get(after_id)
    if after is None:
        return _reject("add_after", nodes, RejectionReason.NOT_FOUND, after=after_id)
    if after.parent_id is None:
        return add_node(nodes, after_id, type, name, content, id_factory=id_factory)
    if type == "root":
        return _reject("add_after", nodes, RejectionReason.ROOT_VIOLATION, after=after_id)
    parent_id = after.parent_id
    if parent_id not in nodes:
        return _reject("add_after", nodes, RejectionReason.NOT_FOUND, after=after_id)

    new_id = rekey([""], set(nodes), id_factory)[""]
    draft = MapDraft(nodes)
    draft.add(_new_leaf(new_id, parent_id, type, name, content))
    parent = draft.edit(parent_id)
    parent.children_ids.insert(parent.children_ids.index(after_id) + 1, new_id)
    draft.refresh_prefixes(parent_id)

    logger.info("Added %s after %s", new_id, after_id)
    return draft.done(new_id)


def collapse_all(nodes: NodeMap) -> MutationResult:
    """Collapse the root's direct children so only the top-level nodes show."""

    root_id = find_root_id(nodes)
    if root_id is None:
        return _reject("collapse_all", nodes, RejectionReason.NOT_FOUND)

    draft = MapDraft(nodes)
    for child_id in nodes[root_id].children_ids:
        if child_id in nodes and not nodes[child_id].is_collapsed:
            draft.edit(child_id).is_collapsed = True
    return draft.done(root_id)


def expand_all(nodes: NodeMap) -> MutationResult:
    """Expand every collapsed node."""

    draft = MapDraft(nodes)
    for node_id, node in nodes.items():
        if node.is_collapsed:
            draft.edit(node_id).is_collapsed = False
    return draft.done()


def update_node(nodes: NodeMap, node_id: str, **changes: Any) -> MutationResult:
    """Edit non-structural fields of a node (name, content, type, collapsed flag, metadata).

    Raises:
        ValueError: If asked to change a structural field or an unknown field.
    """

    structural = _STRUCTURAL_FIELDS.intersection(changes)
    if structural:
        raise ValueError(f"update_node cannot change structural field(s): {', '.join(sorted(structural))}")
    unknown = set(changes) - _EDITABLE_FIELDS
    if unknown:
        raise ValueError(f"Unknown node field(s): {', '.join(sorted(unknown))}")

    node = nodes.get(node_id)
    if node is None:
        return _reject("update", nodes, RejectionReason.NOT_FOUND, node=node_id)
    if "type" in changes and (changes["type"] == "root") != (node.parent_id is None):
        return _reject("update", nodes, RejectionReason.ROOT_VIOLATION, node=node_id)

    if isinstance(changes.get("metadata"), dict):
        changes["metadata"] = NodeMetadata.model_validate(changes["metadata"])
    updated = OutlineNode.model_validate({**node.model_dump(), **changes})

    draft = MapDraft(nodes)
    draft.add(updated)
    logger.debug("Updated %s fields=%s", node_id, sorted(changes))
    return draft.done(node_id)
