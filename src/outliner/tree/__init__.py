"""Outline tree engine: cycle guard, drop resolver, mutations and clipboard."""

from __future__ import annotations

from outliner.tree.clipboard import Clipboard, ClipboardEntry
from outliner.tree.drag import DragSession
from outliner.tree.drop import DropPosition, can_drop, resolve_drop_position
from outliner.tree.guard import collect_subtree, is_descendant, path_to_node
from outliner.tree.mutations import (
    MutationResult,
    add_node,
    add_node_after,
    can_indent,
    can_outdent,
    collapse_all,
    delete_node,
    duplicate_node,
    expand_all,
    indent,
    move_node,
    outdent,
    update_node,
)
from outliner.tree.store import (
    calculate_node_prefix,
    check_nodes,
    find_duplicate_children,
    find_root_id,
    is_chapter,
    is_root,
    new_outline,
    validate_outline,
)

__all__ = [
    "Clipboard",
    "ClipboardEntry",
    "DragSession",
    "DropPosition",
    "MutationResult",
    "add_node",
    "add_node_after",
    "calculate_node_prefix",
    "can_drop",
    "can_indent",
    "can_outdent",
    "check_nodes",
    "collapse_all",
    "collect_subtree",
    "delete_node",
    "duplicate_node",
    "expand_all",
    "find_duplicate_children",
    "find_root_id",
    "indent",
    "is_chapter",
    "is_descendant",
    "is_root",
    "move_node",
    "new_outline",
    "outdent",
    "path_to_node",
    "resolve_drop_position",
    "update_node",
    "validate_outline",
]
