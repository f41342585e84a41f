"""Pydantic models used across the project."""

from __future__ import annotations

from outliner.models.outline import NodeColor, NodeMap, NodeMetadata, NodeType, Outline, OutlineNode

__all__ = [
    "NodeColor",
    "NodeMap",
    "NodeMetadata",
    "NodeType",
    "Outline",
    "OutlineNode",
]
