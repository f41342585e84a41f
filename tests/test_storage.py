"""Tests for JSON outline persistence."""

from __future__ import annotations

import json

import pytest

from outliner.errors import OutlineIntegrityError, OutlineLoadError, OutlineNotFoundError
from outliner.storage import OutlineStore, dump_outline, parse_outline


def test_save_and_load(tmp_path, outline) -> None:
    """It should write camelCase JSON and read back the same outline."""

    store = OutlineStore(tmp_path / "book" / "outline.json")
    store.save(outline)

    raw = json.loads(store.path.read_text(encoding="utf-8"))
    assert raw["rootNodeId"] == "root"
    assert raw["nodes"]["A"]["childrenIds"] == ["A1", "A2", "A3"]
    assert raw["nodes"]["root"]["parentId"] is None
    assert list(store.path.parent.glob(".outline.json.*")) == []

    loaded = store.load()
    assert loaded.model_dump() == outline.model_dump()


def test_parse_editor_document() -> None:
    """It should accept a document written by the editor, metadata included."""

    text = json.dumps(
        {
            "id": "o1",
            "name": "Notes",
            "rootNodeId": "r",
            "isGuide": False,
            "lastModified": 1700000000000,
            "nodes": {
                "r": {"id": "r", "name": "Notes", "type": "root", "parentId": None, "childrenIds": ["a"]},
                "a": {
                    "id": "a",
                    "name": "Todo",
                    "content": "<p>milk</p>",
                    "type": "task",
                    "parentId": "r",
                    "childrenIds": [],
                    "isCollapsed": False,
                    "prefix": "1",
                    "metadata": {"tags": ["home"], "isCompleted": True, "dueDate": 1700000000001},
                },
            },
        }
    )

    outline = parse_outline(text)

    assert outline.root.name == "Notes"
    assert outline.nodes["a"].metadata is not None
    assert outline.nodes["a"].metadata.is_completed is True
    assert outline.last_modified == 1700000000000
    assert '"dueDate": 1700000000001' in dump_outline(outline)


def test_load_missing_file(tmp_path) -> None:
    with pytest.raises(OutlineNotFoundError):
        OutlineStore(tmp_path / "nope.json").load()


def test_parse_rejects_invalid_json_and_schema() -> None:
    """It should raise a load error for text that is not an outline."""

    with pytest.raises(OutlineLoadError):
        parse_outline("{not json")
    with pytest.raises(OutlineLoadError):
        parse_outline(json.dumps({"id": "o1", "nodes": {}}))
    with pytest.raises(OutlineLoadError):
        parse_outline(json.dumps({"id": "o", "name": "n", "rootNodeId": "r", "nodes": {"r": {"id": "r", "type": "blob"}}}))


def test_parse_rejects_duplicate_node_keys() -> None:
    """It should refuse a document that lists the same node id twice."""

    text = (
        '{"id": "o", "name": "n", "rootNodeId": "r", "nodes": {'
        '"r": {"id": "r", "type": "root", "childrenIds": ["a"]},'
        '"a": {"id": "a", "parentId": "r"},'
        '"a": {"id": "a", "parentId": "r", "name": "again"}}}'
    )

    with pytest.raises(OutlineIntegrityError) as excinfo:
        parse_outline(text)
    assert excinfo.value.problems == ["duplicate id or key 'a'"]


def test_load_refuses_malformed_tree_without_repair(tmp_path, outline) -> None:
    """It should raise on a broken tree and leave the file as it was."""

    outline.nodes["A2a"].parent_id = "B"
    store = OutlineStore(tmp_path / "outline.json")
    store.save(outline)
    before = store.path.read_text(encoding="utf-8")

    with pytest.raises(OutlineIntegrityError) as excinfo:
        store.load()

    assert any("A2a" in p for p in excinfo.value.problems)
    assert store.path.read_text(encoding="utf-8") == before
    assert store.load(validate=False).nodes["A2a"].parent_id == "B"
