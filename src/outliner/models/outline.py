"""Outline models.

Field names follow the editor's persisted JSON (camelCase aliases) so an
outline saved by the desktop app loads unchanged.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


NodeType = Literal[
    "root",
    "chapter",
    "document",
    "note",
    "task",
    "link",
    "code",
    "quote",
    "date",
    "image",
    "video",
    "audio",
    "pdf",
    "youtube",
    "spreadsheet",
    "database",
    "app",
    "map",
    "canvas",
]

NodeColor = Literal["default", "red", "orange", "yellow", "green", "blue", "purple", "pink"]


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class NodeMetadata(_CamelModel):
    """Optional per-node metadata. Copied verbatim by duplicate and paste."""

    tags: list[str] | None = None
    color: NodeColor | None = None
    is_pinned: bool | None = None
    is_completed: bool | None = None
    code_language: str | None = None
    url: str | None = None
    due_date: int | None = None
    created_at: int | None = None
    updated_at: int | None = None


class OutlineNode(_CamelModel):
    """A single entry in the outline tree.

    Whether a node is a chapter is derived from its children (see
    `outliner.tree.store.is_chapter`), not stored.
    """

    id: str
    name: str = "New Node"
    content: str = ""
    type: NodeType = "document"
    parent_id: str | None = None
    children_ids: list[str] = Field(default_factory=list)
    is_collapsed: bool | None = False
    prefix: str = ""
    metadata: NodeMetadata | None = None

    def clone(self, **changes: object) -> OutlineNode:
        """Return a copy with its own children list, optionally updated."""

        node = self.model_copy(update=changes)
        if "children_ids" not in changes:
            node.children_ids = list(self.children_ids)
        if self.metadata is not None and "metadata" not in changes:
            node.metadata = self.metadata.model_copy(deep=True)
        return node


NodeMap = dict[str, OutlineNode]


class Outline(_CamelModel):
    """The complete hierarchical document: one root plus all descendants."""

    id: str
    name: str
    root_node_id: str
    nodes: NodeMap
    is_guide: bool | None = None
    last_modified: int | None = None

    @property
    def root(self) -> OutlineNode:
        return self.nodes[self.root_node_id]

    def with_nodes(self, nodes: NodeMap, *, last_modified: int | None = None) -> Outline:
        """Return a new outline sharing metadata with this one but with a new node map."""

        return self.model_copy(
            update={
                "nodes": nodes,
                "last_modified": last_modified if last_modified is not None else self.last_modified,
            }
        )

