"""Subtree clipboard: copy/cut staging and re-keyed paste.

A staged subtree keeps its original ids and is not attached to the live tree.
Every paste builds one old -> new id map and rewrites all references through
it, so a paste never reuses an id already present in the outline.

A copied subtree may be pasted any number of times. A cut subtree is cleared
after its first successful paste.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

from outliner.errors import RejectionReason
from outliner.logging import get_logger
from outliner.models.outline import NodeMap
from outliner.tree.guard import collect_subtree
from outliner.tree.mutations import MapDraft, MutationResult, clone_subtree, delete_node
from outliner.utils.ids import IdFactory, new_node_id, rekey

logger = get_logger(__name__)

ClipboardMode = Literal["copied", "cut"]


@dataclass(frozen=True)
class ClipboardEntry:
    """A staged subtree snapshot."""

    mode: ClipboardMode
    root_id: str
    nodes: NodeMap

    @property
    def size(self) -> int:
        return len(self.nodes)


def snapshot_subtree(nodes: NodeMap, node_id: str) -> NodeMap:
    """Copy `node_id` and its descendants out of the live map, ids preserved."""

    return {nid: nodes[nid].clone() for nid in collect_subtree(nodes, node_id)}


class Clipboard:
    """Holds at most one staged subtree."""

    def __init__(self, id_factory: IdFactory = new_node_id) -> None:
        self._id_factory = id_factory
        self._entry: ClipboardEntry | None = None

    @property
    def entry(self) -> ClipboardEntry | None:
        return self._entry

    @property
    def has_content(self) -> bool:
        return self._entry is not None

    @property
    def mode(self) -> ClipboardMode | None:
        return self._entry.mode if self._entry is not None else None

    def clear(self) -> None:
        self._entry = None

    def restore(self, entry: ClipboardEntry | None) -> None:
        """Reinstate a previously read `entry` (or emptiness), e.g. after a failed save."""

        self._entry = entry

    def copy_subtree(self, nodes: NodeMap, node_id: str) -> MutationResult:
        """Stage a copy of `node_id`'s subtree. The live map is returned unchanged."""

        if node_id not in nodes:
            logger.debug("copy rejected: not_found node=%s", node_id)
            return MutationResult(nodes=nodes, applied=False, reason=RejectionReason.NOT_FOUND)

        self._entry = ClipboardEntry(mode="copied", root_id=node_id, nodes=snapshot_subtree(nodes, node_id))
        logger.info("Copied %s (%d node(s))", node_id, self._entry.size)
        return MutationResult(nodes=nodes, applied=True, node_id=node_id)

    def cut_subtree(self, nodes: NodeMap, node_id: str) -> MutationResult:
        """Stage `node_id`'s subtree and delete it from the live map.

        On rejection (unknown id, root) the previous clipboard content is kept.
        """

        if node_id not in nodes:
            logger.debug("cut rejected: not_found node=%s", node_id)
            return MutationResult(nodes=nodes, applied=False, reason=RejectionReason.NOT_FOUND)

        staged = snapshot_subtree(nodes, node_id)
        result = delete_node(nodes, node_id)
        if result.applied:
            self._entry = ClipboardEntry(mode="cut", root_id=node_id, nodes=staged)
            logger.info("Cut %s (%d node(s))", node_id, len(staged))
        return result

    def paste_subtree(self, nodes: NodeMap, target_id: str) -> MutationResult:
        """Attach a re-keyed copy of the staged subtree as the last child of `target_id`."""

        entry = self._entry
        if entry is None:
            logger.debug("paste rejected: empty_clipboard target=%s", target_id)
            return MutationResult(nodes=nodes, applied=False, reason=RejectionReason.EMPTY_CLIPBOARD)
        if target_id not in nodes:
            logger.debug("paste rejected: not_found target=%s", target_id)
            return MutationResult(nodes=nodes, applied=False, reason=RejectionReason.NOT_FOUND)

        id_map = rekey(entry.nodes, set(nodes), self._id_factory)
        new_root_id = id_map[entry.root_id]

        draft = MapDraft(nodes)
        for clone in clone_subtree(entry.nodes, entry.root_id, id_map, parent_id=target_id):
            if clone.id == new_root_id and clone.type == "root":
                clone.type = "chapter"
            draft.add(clone)

        target = draft.edit(target_id)
        target.children_ids.append(new_root_id)
        target.is_collapsed = False
        draft.refresh_prefixes(target_id)

        if entry.mode == "cut":
            self._entry = None
        logger.info("Pasted %s into %s as %s (%d node(s))", entry.root_id, target_id, new_root_id, len(id_map))
        return draft.done(new_root_id)
