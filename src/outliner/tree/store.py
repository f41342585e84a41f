"""Tree store helpers: derived node predicates, numbering and integrity checks.

The node map itself is a plain ``dict[str, OutlineNode]``; operations in
`outliner.tree.mutations` never modify a map they were given, they return a
new one. The functions here only read.
"""

from __future__ import annotations

from collections import Counter, deque
from collections.abc import Iterator

from outliner.errors import OutlineIntegrityError
from outliner.models.outline import NodeMap, Outline, OutlineNode
from outliner.utils.ids import new_node_id

CHAPTER_TYPES = frozenset({"chapter", "root"})


def is_root(node: OutlineNode) -> bool:
    """The root is the one node without a parent."""

    return node.parent_id is None


def is_chapter(node: OutlineNode) -> bool:
    """A chapter is any node with children, or one tagged as a chapter or root."""

    return bool(node.children_ids) or node.type in CHAPTER_TYPES


def find_root_id(nodes: NodeMap) -> str | None:
    """Return the id of the single parentless node, or None if there isn't exactly one."""

    roots = [nid for nid, node in nodes.items() if node.parent_id is None]
    return roots[0] if len(roots) == 1 else None


def previous_sibling(nodes: NodeMap, node_id: str) -> str | None:
    """Return the id of the sibling just before `node_id`, if any."""

    node = nodes.get(node_id)
    if node is None or node.parent_id is None:
        return None
    parent = nodes.get(node.parent_id)
    if parent is None or node_id not in parent.children_ids:
        return None
    index = parent.children_ids.index(node_id)
    if index == 0:
        return None
    return parent.children_ids[index - 1]


def calculate_node_prefix(nodes: NodeMap, node_id: str) -> str:
    """Compute the dotted numbering of a node, e.g. ``"2.3"``.

    Numbering starts at the root's children; the root and unknown ids get ``""``.
    """

    node = nodes.get(node_id)
    if node is None or node.parent_id is None:
        return ""

    path: list[int] = []
    seen: set[str] = set()
    current = node
    while current.parent_id is not None and current.id not in seen:
        seen.add(current.id)
        parent = nodes.get(current.parent_id)
        if parent is None or current.id not in parent.children_ids:
            break
        path.append(parent.children_ids.index(current.id) + 1)
        if parent.parent_id is None:
            break
        current = parent
    path.reverse()
    return ".".join(str(n) for n in path)


def iter_branch_prefixes(nodes: NodeMap, start_id: str) -> Iterator[tuple[str, str]]:
    """Yield ``(node_id, prefix)`` for `start_id` and every node below it."""

    start = nodes.get(start_id)
    if start is None:
        return

    seen: set[str] = set()
    queue: deque[tuple[str, str]] = deque([(start_id, calculate_node_prefix(nodes, start_id))])
    while queue:
        node_id, prefix = queue.popleft()
        if node_id in seen:
            continue
        seen.add(node_id)
        yield node_id, prefix

        node = nodes[node_id]
        for i, child_id in enumerate(node.children_ids, start=1):
            if child_id not in nodes:
                continue
            child_prefix = f"{prefix}.{i}" if node.parent_id is not None and prefix else str(i)
            queue.append((child_id, child_prefix))


def find_duplicate_children(nodes: NodeMap) -> dict[str, list[str]]:
    """Return, per node id, the child ids listed more than once in its children."""

    issues: dict[str, list[str]] = {}
    for node_id, node in nodes.items():
        counts = Counter(node.children_ids)
        duplicates = [child_id for child_id, n in counts.items() if n > 1]
        if duplicates:
            issues[node_id] = duplicates
    return issues


def check_nodes(nodes: NodeMap, root_node_id: str | None = None) -> list[str]:
    """Return every structural invariant violation found in `nodes`.

    An empty list means the map is a well-formed tree: one parentless root,
    parent and children references agreeing both ways, no duplicates, and every
    node reachable from the root.
    """

    problems: list[str] = []

    for key, node in nodes.items():
        if key != node.id:
            problems.append(f"node stored under key {key!r} has id {node.id!r}")

    roots = sorted(nid for nid, node in nodes.items() if node.parent_id is None)
    if not roots:
        problems.append("no root node (every node has a parent)")
    elif len(roots) > 1:
        problems.append(f"multiple root nodes: {', '.join(roots)}")

    if root_node_id is not None:
        if root_node_id not in nodes:
            problems.append(f"root node {root_node_id!r} does not exist")
        elif nodes[root_node_id].parent_id is not None:
            problems.append(f"root node {root_node_id!r} has parent {nodes[root_node_id].parent_id!r}")

    listed_under: dict[str, list[str]] = {}
    for node_id, node in nodes.items():
        if node.parent_id is not None and node.parent_id not in nodes:
            problems.append(f"node {node_id!r} has dangling parent {node.parent_id!r}")
        for child_id, count in Counter(node.children_ids).items():
            if count > 1:
                problems.append(f"node {node_id!r} lists child {child_id!r} {count} times")
            child = nodes.get(child_id)
            if child is None:
                problems.append(f"node {node_id!r} lists missing child {child_id!r}")
                continue
            listed_under.setdefault(child_id, []).append(node_id)
            if child.parent_id != node_id:
                problems.append(
                    f"node {child_id!r} is listed under {node_id!r} but its parent is {child.parent_id!r}"
                )

    for node_id, node in nodes.items():
        parents = listed_under.get(node_id, [])
        if len(parents) > 1:
            problems.append(f"node {node_id!r} is listed under several parents: {', '.join(parents)}")
        if node.parent_id is not None and node.parent_id in nodes and node.parent_id not in parents:
            problems.append(f"node {node_id!r} is missing from the children of its parent {node.parent_id!r}")

    if len(roots) == 1:
        reached: set[str] = set()
        queue: deque[str] = deque([roots[0]])
        while queue:
            current_id = queue.popleft()
            if current_id in reached or current_id not in nodes:
                continue
            reached.add(current_id)
            queue.extend(nodes[current_id].children_ids)
        unreachable = sorted(set(nodes) - reached)
        if unreachable:
            problems.append(f"nodes unreachable from the root (cycle or orphan): {', '.join(unreachable)}")

    return problems


def validate_outline(outline: Outline) -> Outline:
    """Refuse a structurally malformed outline.

    Raises:
        OutlineIntegrityError: With every problem found. No repair is attempted.
    """

    problems = check_nodes(outline.nodes, outline.root_node_id)
    if problems:
        raise OutlineIntegrityError(problems)
    return outline


def new_outline(name: str, *, root_name: str | None = None, outline_id: str | None = None) -> Outline:
    """Create an empty outline holding only its root node."""

    root_id = new_node_id()
    root = OutlineNode(id=root_id, name=root_name or name, type="root")
    return Outline(id=outline_id or new_node_id(), name=name, root_node_id=root_id, nodes={root_id: root})
