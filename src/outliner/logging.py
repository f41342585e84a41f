"""Logging utilities."""

from __future__ import annotations

import contextlib
import contextvars
import logging
from typing import Any

from rich.logging import RichHandler


_outline_var: contextvars.ContextVar[str] = contextvars.ContextVar("outliner_outline_id", default="-")
_gesture_var: contextvars.ContextVar[str] = contextvars.ContextVar("outliner_gesture", default="-")


class _ContextFilter(logging.Filter):
    """Inject outline/gesture context into log records."""

    def filter(self, record: logging.LogRecord) -> bool:  # noqa: A003
        record.outline = _outline_var.get()  # type: ignore[attr-defined]
        record.gesture = _gesture_var.get()  # type: ignore[attr-defined]
        return True


@contextlib.contextmanager
def outline_context(*, outline_id: str, gesture: str | None = None) -> Any:
    """Temporarily bind the outline being edited (and the gesture) for logging.

    Args:
        outline_id: Outline identifier.
        gesture: Optional gesture name, e.g. ``"move"`` or ``"paste"``.
    """

    token_outline = _outline_var.set(outline_id)
    token_gesture = _gesture_var.set(gesture or _gesture_var.get())
    try:
        yield
    finally:
        _outline_var.reset(token_outline)
        _gesture_var.reset(token_gesture)


def configure_logging(level: str = "INFO") -> None:
    """Configure application logging.

    Args:
        level: Logging level name.
    """

    formatter = logging.Formatter(
        fmt="%(asctime)s %(levelname)s outline=%(outline)s gesture=%(gesture)s %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    root = logging.getLogger()
    root.setLevel(level)
    handlers = [h for h in root.handlers if isinstance(h, RichHandler)]
    if not handlers:
        handler = RichHandler(rich_tracebacks=True, show_time=True, show_level=True)
        root.addHandler(handler)
        handlers = [handler]

    # Repeated calls reconfigure the existing handler instead of stacking filters on it.
    for h in handlers:
        if not any(isinstance(f, _ContextFilter) for f in h.filters):
            h.addFilter(_ContextFilter())
        h.setFormatter(formatter)


def get_logger(name: str) -> logging.Logger:
    """Get a module logger."""

    return logging.getLogger(name)


def log_exception(logger: logging.Logger, msg: str, **context: Any) -> None:
    """Log an exception with optional structured context."""

    if context:
        logger.exception("%s | context=%s", msg, context)
    else:
        logger.exception("%s", msg)
