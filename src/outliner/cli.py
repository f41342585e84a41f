"""CLI entrypoints for the outliner."""

from __future__ import annotations

from pathlib import Path
from typing import cast, get_args

import typer
from rich.console import Console
from rich.tree import Tree

from outliner.config import Settings, load_settings
from outliner.errors import OutlineIntegrityError, OutlineLoadError
from outliner.logging import configure_logging, get_logger
from outliner.models.outline import NodeMap, NodeType, Outline
from outliner.session import OutlineSession
from outliner.storage import OutlineStore
from outliner.tree.drop import DropPosition
from outliner.tree.mutations import MutationResult
from outliner.tree.store import check_nodes, find_duplicate_children, is_chapter, new_outline

app = typer.Typer(add_completion=False, help="Outline tree editor CLI")
logger = get_logger(__name__)
console = Console()

FileOption = typer.Option(None, "--file", "-f", help="Outline JSON file (overrides OUTLINER_OUTLINE_PATH)")


def _settings() -> Settings:
    settings = load_settings()
    configure_logging(settings.log_level)
    return settings


def _open(path: Path | None) -> OutlineSession:
    settings = _settings()
    store = OutlineStore(path or settings.outline_path)
    try:
        return OutlineSession.open(store, edge_threshold=settings.drop_edge_threshold)
    except OutlineIntegrityError as e:
        for problem in e.problems:
            typer.echo(f"  - {problem}", err=True)
        typer.echo(f"Refusing to edit malformed outline {store.path}", err=True)
        raise typer.Exit(code=2) from e
    except OutlineLoadError as e:
        typer.echo(str(e), err=True)
        raise typer.Exit(code=2) from e


def _report(result: MutationResult, applied_message: str) -> None:
    if not result.applied:
        reason = result.reason.value if result.reason else "unknown"
        typer.echo(f"Not applied: {reason}", err=True)
        raise typer.Exit(code=1)
    typer.echo(applied_message)


def _render(outline: Outline) -> Tree:
    nodes: NodeMap = outline.nodes

    def label(node_id: str) -> str:
        node = nodes[node_id]
        marker = "+" if is_chapter(node) else "-"
        prefix = f"{node.prefix} " if node.prefix else ""
        return f"{marker} {prefix}{node.name} [dim]({node.id})[/dim]"

    tree = Tree(label(outline.root_node_id))
    stack: list[tuple[str, Tree]] = [(outline.root_node_id, tree)]
    while stack:
        node_id, branch = stack.pop()
        for child_id in nodes[node_id].children_ids:
            stack.append((child_id, branch.add(label(child_id))))
    return tree


@app.command()
def new(
    name: str = typer.Argument(..., help="Outline name"),
    root_name: str | None = typer.Option(None, "--root-name", help="Root node name (defaults to NAME)"),
    file: Path | None = FileOption,
    force: bool = typer.Option(False, "--force", help="Overwrite an existing file"),
) -> None:
    """Create a new outline containing only its root node."""

    settings = _settings()
    store = OutlineStore(file or settings.outline_path)
    if store.exists() and not force:
        raise typer.BadParameter(f"{store.path} already exists; pass --force to overwrite.")
    outline = new_outline(name, root_name=root_name)
    store.save(outline)
    logger.info("Created outline %s at %s", outline.id, store.path)
    typer.echo(outline.root_node_id)


@app.command()
def show(file: Path | None = FileOption) -> None:
    """Print the outline as a tree."""

    session = _open(file)
    console.print(_render(session.outline))


@app.command()
def check(file: Path | None = FileOption) -> None:
    """Validate the outline file without changing it."""

    settings = _settings()
    store = OutlineStore(file or settings.outline_path)
    try:
        outline = store.load(validate=False)
    except OutlineIntegrityError as e:
        problems = e.problems
    except OutlineLoadError as e:
        typer.echo(str(e), err=True)
        raise typer.Exit(code=2) from e
    else:
        problems = check_nodes(outline.nodes, outline.root_node_id)
        for node_id, child_ids in find_duplicate_children(outline.nodes).items():
            logger.warning("Node %s lists %s more than once", node_id, ", ".join(child_ids))

    if problems:
        for problem in problems:
            typer.echo(f"  - {problem}", err=True)
        raise typer.Exit(code=1)
    typer.echo(f"OK: {len(outline.nodes)} nodes")


@app.command()
def add(
    parent_id: str = typer.Argument(..., help="Parent node id (or sibling id with --after)"),
    name: str = typer.Option("New Node", "--name", "-n"),
    node_type: str = typer.Option("document", "--type", "-t", help="Node type tag"),
    content: str = typer.Option("", "--content", "-c"),
    after: bool = typer.Option(False, "--after", help="Insert as the next sibling of PARENT_ID instead"),
    file: Path | None = FileOption,
) -> None:
    """Add a new node."""

    if node_type not in get_args(NodeType):
        raise typer.BadParameter(f"Unknown node type {node_type!r}.")
    session = _open(file)
    kind = cast(NodeType, node_type)
    if after:
        result = session.add_sibling(parent_id, kind, name, content)
    else:
        result = session.add_child(parent_id, kind, name, content)
    _report(result, result.node_id or "")


@app.command()
def move(
    dragged_id: str = typer.Argument(...),
    target_id: str = typer.Argument(...),
    position: DropPosition = typer.Option(DropPosition.INSIDE, "--position", "-p", case_sensitive=False),
    file: Path | None = FileOption,
) -> None:
    """Move a node (with its subtree) before, after or inside another node."""

    session = _open(file)
    _report(session.move(dragged_id, target_id, position), f"Moved {dragged_id} {position.value} {target_id}")


@app.command()
def indent(node_id: str = typer.Argument(...), file: Path | None = FileOption) -> None:
    """Nest a node under its previous sibling."""

    _report(_open(file).indent(node_id), f"Indented {node_id}")


@app.command()
def outdent(node_id: str = typer.Argument(...), file: Path | None = FileOption) -> None:
    """Move a node up one level, after its parent."""

    _report(_open(file).outdent(node_id), f"Outdented {node_id}")


@app.command()
def delete(node_id: str = typer.Argument(...), file: Path | None = FileOption) -> None:
    """Delete a node and its subtree."""

    _report(_open(file).delete(node_id), f"Deleted {node_id}")


@app.command()
def duplicate(node_id: str = typer.Argument(...), file: Path | None = FileOption) -> None:
    """Duplicate a node and its subtree as its next sibling."""

    result = _open(file).duplicate(node_id)
    _report(result, result.node_id or "")


@app.command()
def rename(
    node_id: str = typer.Argument(...),
    name: str = typer.Argument(...),
    file: Path | None = FileOption,
) -> None:
    """Rename a node."""

    if not name.strip():
        raise typer.BadParameter("Name must not be empty.")
    _report(_open(file).update(node_id, name=name), f"Renamed {node_id}")


@app.command("collapse-all")
def collapse_all(file: Path | None = FileOption) -> None:
    """Collapse the top-level nodes."""

    _report(_open(file).collapse_all(), "Collapsed top-level nodes")


@app.command("expand-all")
def expand_all(file: Path | None = FileOption) -> None:
    """Expand every node."""

    _report(_open(file).expand_all(), "Expanded all nodes")


if __name__ == "__main__":
    app()
