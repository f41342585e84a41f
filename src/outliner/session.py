"""Outline session: one loaded outline, its clipboard, and its store.

Each method is one user gesture: under the session lock it runs exactly one
engine call against the current node map, saves the resulting outline, and
only then swaps it in. Rejected edits leave both the in-memory outline and the
file untouched. A failed save leaves the in-memory outline and the clipboard as
they were before the gesture and re-raises.
"""

from __future__ import annotations

import threading
from collections.abc import Callable
from typing import Any

from outliner.logging import get_logger, outline_context
from outliner.models.outline import NodeMap, NodeType, Outline
from outliner.storage import OutlineStore, now_ms
from outliner.tree.clipboard import Clipboard
from outliner.tree.drag import DragSession
from outliner.tree.drop import DEFAULT_EDGE_THRESHOLD, DropPosition, resolve_drop_position
from outliner.tree.mutations import (
    MutationResult,
    add_node,
    add_node_after,
    collapse_all,
    delete_node,
    duplicate_node,
    expand_all,
    indent,
    move_node,
    outdent,
    update_node,
)

logger = get_logger(__name__)

Operation = Callable[[NodeMap], MutationResult]


class OutlineSession:
    """Applies gestures to one outline and persists applied edits.

    Safe to share between threads: gestures are serialized by an internal lock.
    """

    def __init__(
        self,
        outline: Outline,
        store: OutlineStore | None = None,
        *,
        clipboard: Clipboard | None = None,
        edge_threshold: float = DEFAULT_EDGE_THRESHOLD,
    ) -> None:
        self.outline = outline
        self.store = store
        self.clipboard = clipboard or Clipboard()
        self.edge_threshold = edge_threshold
        self._lock = threading.RLock()

    @classmethod
    def open(cls, store: OutlineStore, **kwargs: Any) -> OutlineSession:
        """Load the outline from `store`; raises if it is missing or malformed."""

        return cls(store.load(), store, **kwargs)

    def _apply(self, gesture: str, operation: Operation) -> MutationResult:
        with self._lock, outline_context(outline_id=self.outline.id, gesture=gesture):
            staged = self.clipboard.entry
            result = operation(self.outline.nodes)
            if not result.applied:
                logger.debug("%s not applied: %s", gesture, result.reason.value if result.reason else "-")
                return result
            if result.nodes is self.outline.nodes:
                return result

            updated = self.outline.with_nodes(result.nodes, last_modified=now_ms())
            if self.store is not None:
                try:
                    self.store.save(updated)
                except Exception:
                    self.clipboard.restore(staged)
                    logger.error("%s not saved; outline left unchanged", gesture)
                    raise
            self.outline = updated
            logger.info("%s applied (%d nodes)", gesture, len(updated.nodes))
            return result

    @property
    def nodes(self) -> NodeMap:
        return self.outline.nodes

    def move(self, dragged_id: str, target_id: str, position: DropPosition | str) -> MutationResult:
        return self._apply("move", lambda nodes: move_node(nodes, dragged_id, target_id, position))

    def indent(self, node_id: str) -> MutationResult:
        return self._apply("indent", lambda nodes: indent(nodes, node_id))

    def outdent(self, node_id: str) -> MutationResult:
        return self._apply("outdent", lambda nodes: outdent(nodes, node_id))

    def delete(self, node_id: str) -> MutationResult:
        return self._apply("delete", lambda nodes: delete_node(nodes, node_id))

    def duplicate(self, node_id: str) -> MutationResult:
        return self._apply("duplicate", lambda nodes: duplicate_node(nodes, node_id))

    def add_child(
        self, parent_id: str, type: NodeType = "document", name: str = "New Node", content: str = ""
    ) -> MutationResult:
        return self._apply("add", lambda nodes: add_node(nodes, parent_id, type, name, content))

    def add_sibling(
        self, after_id: str, type: NodeType = "document", name: str = "New Node", content: str = ""
    ) -> MutationResult:
        return self._apply("add_after", lambda nodes: add_node_after(nodes, after_id, type, name, content))

    def update(self, node_id: str, **changes: Any) -> MutationResult:
        return self._apply("update", lambda nodes: update_node(nodes, node_id, **changes))

    def collapse_all(self) -> MutationResult:
        return self._apply("collapse_all", collapse_all)

    def expand_all(self) -> MutationResult:
        return self._apply("expand_all", expand_all)

    def copy(self, node_id: str) -> MutationResult:
        return self._apply("copy", lambda nodes: self.clipboard.copy_subtree(nodes, node_id))

    def cut(self, node_id: str) -> MutationResult:
        return self._apply("cut", lambda nodes: self.clipboard.cut_subtree(nodes, node_id))

    def paste(self, target_id: str) -> MutationResult:
        return self._apply("paste", lambda nodes: self.clipboard.paste_subtree(nodes, target_id))

    def drop_position(
        self, dragged_id: str | None, target_id: str, *, row_height: float, pointer_y: float
    ) -> DropPosition:
        return resolve_drop_position(
            self.nodes,
            dragged_id,
            target_id,
            row_height=row_height,
            pointer_y=pointer_y,
            edge_threshold=self.edge_threshold,
        )

    def begin_drag(self, node_id: str) -> DragSession | None:
        """Start a drag gesture; returns None when the node cannot be dragged."""

        drag = DragSession(edge_threshold=self.edge_threshold)
        return drag if drag.start(self.nodes, node_id) else None

    def finish_drag(self, drag: DragSession, target_id: str, position: DropPosition | str) -> MutationResult:
        return self._apply("move", lambda nodes: drag.drop(nodes, target_id, position))
