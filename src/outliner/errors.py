"""Error types.

Rejected edits are not errors: the engine reports them through
`MutationResult.reason`. The exceptions here cover data the engine refuses to
work with at all.
"""

from __future__ import annotations

from enum import Enum


class RejectionReason(str, Enum):
    """Why an edit was not applied."""

    INVALID_MOVE = "invalid_move"
    INVALID_INDENT = "invalid_indent"
    INVALID_OUTDENT = "invalid_outdent"
    ROOT_VIOLATION = "root_violation"
    NOT_FOUND = "not_found"
    EMPTY_CLIPBOARD = "empty_clipboard"


class OutlinerError(Exception):
    """Base class for outliner errors."""


class OutlineIntegrityError(OutlinerError):
    """A persisted outline violates the tree invariants."""

    def __init__(self, problems: list[str]) -> None:
        self.problems = list(problems)
        summary = "; ".join(self.problems[:5])
        if len(self.problems) > 5:
            summary += f"; and {len(self.problems) - 5} more"
        super().__init__(f"Malformed outline ({len(self.problems)} problem(s)): {summary}")


class OutlineLoadError(OutlinerError):
    """An outline file could not be read or parsed."""


class OutlineNotFoundError(OutlineLoadError):
    """No outline file exists at the configured path."""
