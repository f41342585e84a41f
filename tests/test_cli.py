"""Tests for the outliner CLI."""

from __future__ import annotations

from pathlib import Path

import pytest
from typer.testing import CliRunner

from outliner.cli import app
from outliner.storage import OutlineStore

runner = CliRunner()
ENV = {"OUTLINER_LOG_LEVEL": "WARNING"}


@pytest.fixture
def outline_file(tmp_path, monkeypatch, outline) -> Path:
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("OUTLINER_ENV_FILE", raising=False)
    path = tmp_path / "outline.json"
    OutlineStore(path).save(outline)
    return path


def invoke(*args: str):
    return runner.invoke(app, list(args), env=ENV)


def test_new_creates_root_only_outline(tmp_path, monkeypatch) -> None:
    """It should write a fresh outline and refuse to overwrite it without --force."""

    monkeypatch.chdir(tmp_path)
    path = tmp_path / "fresh.json"

    result = invoke("new", "Book", "--root-name", "Contents", "--file", str(path))
    assert result.exit_code == 0, result.output

    outline = OutlineStore(path).load()
    assert outline.root.name == "Contents"
    assert outline.root_node_id in result.output

    again = invoke("new", "Book", "--file", str(path))
    assert again.exit_code != 0
    assert invoke("new", "Other", "--file", str(path), "--force").exit_code == 0
    assert OutlineStore(path).load().name == "Other"


def test_show_renders_tree(outline_file) -> None:
    result = invoke("show", "-f", str(outline_file))

    assert result.exit_code == 0, result.output
    for name in ("root", "A2b", "C1"):
        assert name in result.output
    assert "1.2.2" in result.output


def test_move_and_indent(outline_file) -> None:
    """It should apply edits to the file."""

    assert invoke("move", "A2", "B", "-f", str(outline_file)).exit_code == 0
    assert invoke("indent", "C", "-f", str(outline_file)).exit_code == 0

    nodes = OutlineStore(outline_file).load().nodes
    assert nodes["B"].children_ids == ["A2", "C"]
    assert nodes["A2"].parent_id == "B"


def test_move_with_position(outline_file) -> None:
    result = invoke("move", "C", "A", "--position", "before", "-f", str(outline_file))

    assert result.exit_code == 0, result.output
    assert OutlineStore(outline_file).load().nodes["root"].children_ids == ["C", "A", "B"]


def test_rejected_edit_exits_with_reason(outline_file) -> None:
    """It should exit 1 and name the rejection reason."""

    result = invoke("move", "A", "A2a", "-f", str(outline_file))
    assert result.exit_code == 1
    assert "invalid_move" in result.output

    result = invoke("outdent", "A", "-f", str(outline_file))
    assert result.exit_code == 1
    assert "invalid_outdent" in result.output

    assert "root_violation" in invoke("delete", "root", "-f", str(outline_file)).output


def test_add_duplicate_rename_delete(outline_file) -> None:
    result = invoke("add", "B", "--name", "Idea", "--type", "note", "-f", str(outline_file))
    assert result.exit_code == 0, result.output

    nodes = OutlineStore(outline_file).load().nodes
    (new_id,) = nodes["B"].children_ids
    assert nodes[new_id].type == "note"

    assert invoke("duplicate", new_id, "-f", str(outline_file)).exit_code == 0
    assert invoke("rename", new_id, "Better idea", "-f", str(outline_file)).exit_code == 0
    assert invoke("delete", "A", "-f", str(outline_file)).exit_code == 0

    nodes = OutlineStore(outline_file).load().nodes
    assert len(nodes["B"].children_ids) == 2
    assert nodes[new_id].name == "Better idea"
    assert "A" not in nodes


def test_add_rejects_unknown_type(outline_file) -> None:
    result = invoke("add", "B", "--type", "blob", "-f", str(outline_file))
    assert result.exit_code != 0


def test_check_reports_problems(outline_file) -> None:
    """It should pass a good file and list problems in a bad one."""

    ok = invoke("check", "-f", str(outline_file))
    assert ok.exit_code == 0, ok.output
    assert "OK: 10 nodes" in ok.output

    outline = OutlineStore(outline_file).load()
    outline.nodes["A"].children_ids.append("A1")
    OutlineStore(outline_file).save(outline)

    bad = invoke("check", "-f", str(outline_file))
    assert bad.exit_code == 1
    assert "lists child 'A1' 2 times" in bad.output


def test_edit_refuses_malformed_file(outline_file) -> None:
    """It should exit 2 rather than edit a malformed outline."""

    outline = OutlineStore(outline_file).load()
    outline.nodes["B"].parent_id = "A"
    OutlineStore(outline_file).save(outline)

    result = invoke("indent", "B", "-f", str(outline_file))
    assert result.exit_code == 2
    assert "malformed" in result.output


def test_missing_file(tmp_path, monkeypatch) -> None:
    monkeypatch.chdir(tmp_path)
    result = invoke("show", "-f", str(tmp_path / "missing.json"))
    assert result.exit_code == 2


def test_collapse_all_and_expand_all(outline_file) -> None:
    result = invoke("collapse-all", "-f", str(outline_file))
    assert result.exit_code == 0, result.output

    nodes = OutlineStore(outline_file).load().nodes
    assert all(nodes[nid].is_collapsed for nid in ("A", "B", "C"))
    assert not nodes["A2"].is_collapsed

    assert invoke("expand-all", "-f", str(outline_file)).exit_code == 0
    assert not any(node.is_collapsed for node in OutlineStore(outline_file).load().nodes.values())
