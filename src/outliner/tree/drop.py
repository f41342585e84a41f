"""Drop-position resolver.

Turns the pointer's vertical offset inside a candidate target's row into a
semantic drop position. The row is split into three bands: the top
`edge_threshold` fraction means *before*, the bottom fraction means *after*,
and the (larger) middle band means *inside*, so nesting under any node is the
easiest gesture to hit.
"""

from __future__ import annotations

from enum import Enum

from outliner.models.outline import NodeMap
from outliner.tree.guard import is_descendant

DEFAULT_EDGE_THRESHOLD = 0.3


class DropPosition(str, Enum):
    """Where a dragged node lands relative to a target node."""

    BEFORE = "before"
    AFTER = "after"
    INSIDE = "inside"
    NONE = "none"


def position_in_row(row_height: float, pointer_y: float, edge_threshold: float = DEFAULT_EDGE_THRESHOLD) -> DropPosition:
    """Map a pointer offset within a row to before/inside/after, ignoring tree structure.

    A non-positive row height carries no geometry and yields `DropPosition.NONE`.
    """

    if not 0.0 <= edge_threshold < 0.5:
        raise ValueError(f"edge_threshold must be in [0, 0.5), got {edge_threshold}")
    if row_height <= 0:
        return DropPosition.NONE
    if pointer_y < row_height * edge_threshold:
        return DropPosition.BEFORE
    if pointer_y > row_height * (1 - edge_threshold):
        return DropPosition.AFTER
    return DropPosition.INSIDE


def can_drop(nodes: NodeMap, dragged_id: str | None, target_id: str) -> bool:
    """Whether any drop of `dragged_id` onto `target_id` could be valid.

    The view uses this to suppress drop affordances while hovering.
    """

    if not dragged_id or dragged_id == target_id:
        return False
    if dragged_id not in nodes or target_id not in nodes:
        return False
    if nodes[dragged_id].parent_id is None:
        return False
    return not is_descendant(nodes, target_id, dragged_id)


def resolve_drop_position(
    nodes: NodeMap,
    dragged_id: str | None,
    target_id: str,
    *,
    row_height: float,
    pointer_y: float,
    target_is_root: bool | None = None,
    edge_threshold: float = DEFAULT_EDGE_THRESHOLD,
) -> DropPosition:
    """Resolve where `dragged_id` would land if dropped at `pointer_y` on `target_id`'s row.

    Args:
        nodes: Current node map.
        dragged_id: Node being dragged, or None when nothing is being dragged.
        target_id: Node whose row the pointer is over.
        row_height: Height of the target row.
        pointer_y: Pointer offset from the top of the target row.
        target_is_root: Whether the target is the root; derived from `nodes` when omitted.
        edge_threshold: Fraction of the row height used for each of the before/after bands.

    Returns:
        The drop position, or `DropPosition.NONE` when the drop is not allowed.
    """

    if not can_drop(nodes, dragged_id, target_id):
        return DropPosition.NONE

    position = position_in_row(row_height, pointer_y, edge_threshold)
    if target_is_root is None:
        target_is_root = nodes[target_id].parent_id is None
    # The root has no siblings.
    if target_is_root and position in (DropPosition.BEFORE, DropPosition.AFTER):
        position = DropPosition.INSIDE
    return position
