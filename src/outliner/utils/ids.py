"""ID utilities."""

from __future__ import annotations

import uuid
from collections.abc import Callable, Iterable

IdFactory = Callable[[], str]


def new_node_id() -> str:
    """Return a fresh, globally unique node id."""

    return str(uuid.uuid4())


def rekey(old_ids: Iterable[str], taken: set[str], id_factory: IdFactory = new_node_id) -> dict[str, str]:
    """Build one old -> new id map for a cloned subtree.

    New ids never collide with `taken` or with each other. `taken` is not modified.

    Args:
        old_ids: Ids of the nodes being cloned.
        taken: Ids already present in the live tree.
        id_factory: Source of candidate ids.

    Returns:
        Mapping from every old id to its replacement.
    """

    mapping: dict[str, str] = {}
    used = set(taken)
    for old_id in old_ids:
        new_id = id_factory()
        while new_id in used:
            new_id = id_factory()
        used.add(new_id)
        mapping[old_id] = new_id
    return mapping
