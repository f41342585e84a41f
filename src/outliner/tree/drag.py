"""Transient state of a single drag gesture.

Some hosts cannot read the drag payload during intermediate drag-over events,
so the id of the node being dragged has to be held somewhere for the length of
the gesture. `DragSession` is that holder. It is owned by the gesture-handling
layer and passed around explicitly; it must be cleared on drop, on drag end,
and on any interruption, which the context-manager form guarantees.
"""

from __future__ import annotations

from types import TracebackType

from outliner.errors import RejectionReason
from outliner.logging import get_logger
from outliner.models.outline import NodeMap
from outliner.tree.drop import DEFAULT_EDGE_THRESHOLD, DropPosition, resolve_drop_position
from outliner.tree.mutations import MutationResult, move_node

logger = get_logger(__name__)


class DragSession:
    """Holds the dragged node id between drag start and drop/end."""

    def __init__(self, edge_threshold: float = DEFAULT_EDGE_THRESHOLD) -> None:
        self.edge_threshold = edge_threshold
        self._dragged_id: str | None = None

    @property
    def dragged_id(self) -> str | None:
        return self._dragged_id

    @property
    def active(self) -> bool:
        return self._dragged_id is not None

    def start(self, nodes: NodeMap, node_id: str) -> bool:
        """Begin dragging `node_id`. The root and unknown nodes cannot be dragged."""

        node = nodes.get(node_id)
        if node is None or node.parent_id is None:
            self._dragged_id = None
            return False
        self._dragged_id = node_id
        return True

    def over(self, nodes: NodeMap, target_id: str, *, row_height: float, pointer_y: float) -> DropPosition:
        """Resolve the drop position for the current pointer location."""

        return resolve_drop_position(
            nodes,
            self._dragged_id,
            target_id,
            row_height=row_height,
            pointer_y=pointer_y,
            edge_threshold=self.edge_threshold,
        )

    def drop(self, nodes: NodeMap, target_id: str, position: DropPosition | str) -> MutationResult:
        """Apply the move for a completed drop and clear the session."""

        dragged_id = self._dragged_id
        self.end()
        if dragged_id is None:
            logger.debug("drop ignored: no drag in progress")
            return MutationResult(nodes=nodes, applied=False, reason=RejectionReason.INVALID_MOVE)
        return move_node(nodes, dragged_id, target_id, position)

    def end(self) -> None:
        """Clear the session (drag ended, cancelled, or the view went away)."""

        self._dragged_id = None

    def __enter__(self) -> DragSession:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.end()
