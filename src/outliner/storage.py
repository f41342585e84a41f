"""JSON file persistence for outlines.

The store is the persistence collaborator of the engine: `load()` is where a
malformed outline is refused, `save()` is called by the session after an edit
was applied. The engine itself never touches the filesystem.
"""

from __future__ import annotations

import json
import os
import tempfile
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from outliner.errors import OutlineIntegrityError, OutlineLoadError, OutlineNotFoundError
from outliner.logging import get_logger
from outliner.models.outline import Outline
from outliner.tree.store import validate_outline

logger = get_logger(__name__)


def _pairs_without_duplicates(duplicates: list[str]) -> Any:
    def hook(pairs: list[tuple[str, Any]]) -> dict[str, Any]:
        out: dict[str, Any] = {}
        for key, value in pairs:
            if key in out:
                duplicates.append(key)
            out[key] = value
        return out

    return hook


def parse_outline(text: str, *, validate: bool = True) -> Outline:
    """Parse an outline document and, unless told otherwise, validate its structure.

    Raises:
        OutlineLoadError: Not JSON, or not shaped like an outline.
        OutlineIntegrityError: Duplicate ids or any tree invariant violation.
    """

    duplicates: list[str] = []
    try:
        data = json.loads(text, object_pairs_hook=_pairs_without_duplicates(duplicates))
    except json.JSONDecodeError as e:
        raise OutlineLoadError(f"Outline file is not valid JSON: {e}") from e
    if duplicates:
        raise OutlineIntegrityError([f"duplicate id or key {key!r}" for key in duplicates])

    try:
        outline = Outline.model_validate(data)
    except ValidationError as e:
        raise OutlineLoadError(f"Outline file does not match the outline schema: {e}") from e

    return validate_outline(outline) if validate else outline


def dump_outline(outline: Outline) -> str:
    """Serialize an outline using the editor's camelCase field names."""

    payload = outline.model_dump(mode="json", by_alias=True)
    return json.dumps(payload, ensure_ascii=False, indent=2)


@dataclass
class OutlineStore:
    """Single-outline JSON file store."""

    path: Path

    def exists(self) -> bool:
        return self.path.exists()

    def load(self, *, validate: bool = True) -> Outline:
        """Load the stored outline. Pass `validate=False` only for diagnostics."""

        if not self.path.exists():
            raise OutlineNotFoundError(f"No outline at {self.path}")
        try:
            text = self.path.read_text(encoding="utf-8")
        except OSError as e:
            raise OutlineLoadError(f"Cannot read {self.path}: {e}") from e

        try:
            outline = parse_outline(text, validate=validate)
        except OutlineIntegrityError as e:
            logger.error("Refusing malformed outline %s: %s", self.path, e.problems)
            raise
        logger.info("Loaded outline %s (%d nodes) from %s", outline.id, len(outline.nodes), self.path)
        return outline

    def save(self, outline: Outline) -> None:
        """Write the outline, replacing the file atomically.

        Each call writes its own temporary file next to the target, so concurrent
        saves never share an intermediate path.
        """

        self.path.parent.mkdir(parents=True, exist_ok=True)
        fh = tempfile.NamedTemporaryFile(
            "w",
            encoding="utf-8",
            dir=self.path.parent,
            prefix=f".{self.path.name}.",
            suffix=".tmp",
            delete=False,
        )
        tmp = Path(fh.name)
        try:
            with fh:
                fh.write(dump_outline(outline) + "\n")
            os.replace(tmp, self.path)
        except OSError:
            tmp.unlink(missing_ok=True)
            raise
        logger.debug("Saved outline %s to %s", outline.id, self.path)


def now_ms() -> int:
    """Current time as a unix timestamp in milliseconds."""

    return int(time.time() * 1000)
