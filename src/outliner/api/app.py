"""FastAPI app exposing the outline engine to a rendering client.

Rejected edits are normal outcomes and answer 200 with ``applied: false``;
only a missing or malformed stored outline is an HTTP error.
"""

from __future__ import annotations

import threading
from collections.abc import Callable
from typing import Any

from fastapi import Depends, FastAPI, HTTPException
from pydantic import BaseModel

from outliner.config import Settings, load_settings
from outliner.errors import OutlineIntegrityError, OutlineLoadError, OutlineNotFoundError
from outliner.logging import configure_logging, get_logger, log_exception
from outliner.models.outline import NodeMetadata, NodeType
from outliner.session import OutlineSession
from outliner.storage import OutlineStore
from outliner.tree.drop import DropPosition
from outliner.tree.mutations import MutationResult, Position


class NodeRequest(BaseModel):
    """A gesture on a single node."""

    node_id: str


class MoveRequest(BaseModel):
    """A completed drop."""

    dragged_id: str
    target_id: str
    position: Position


class AddRequest(BaseModel):
    """Create a node under `parent_id`, or after it when `after` is set."""

    parent_id: str
    type: NodeType = "document"
    name: str = "New Node"
    content: str = ""
    after: bool = False


class UpdateRequest(BaseModel):
    """Edit the non-structural fields of a node. Omitted fields are left as they are."""

    node_id: str
    name: str | None = None
    content: str | None = None
    type: NodeType | None = None
    is_collapsed: bool | None = None
    metadata: NodeMetadata | None = None

    def changes(self) -> dict[str, Any]:
        fields = self.model_dump(exclude_unset=True, exclude={"node_id"})
        # name, content and type cannot be cleared, only replaced
        return {k: v for k, v in fields.items() if v is not None or k in ("is_collapsed", "metadata")}


class PasteRequest(BaseModel):
    target_id: str


class DropPositionRequest(BaseModel):
    """Pointer geometry over a candidate target row."""

    dragged_id: str | None = None
    target_id: str
    row_height: float
    pointer_y: float


class DropPositionResponse(BaseModel):
    position: DropPosition


class MutationResponse(BaseModel):
    applied: bool
    reason: str | None = None
    node_id: str | None = None
    outline: dict[str, Any]


def create_app(settings: Settings | None = None, store: OutlineStore | None = None) -> FastAPI:
    """Create FastAPI app.

    Handlers run on the server's thread pool; one lock serializes opening the
    session and every gesture together with the outline it reports back.
    """

    settings = settings or load_settings()
    configure_logging(settings.log_level)
    logger = get_logger(__name__)
    store = store or OutlineStore(settings.outline_path)

    app = FastAPI(title="Outliner", version="0.1.0")
    state: dict[str, OutlineSession] = {}
    lock = threading.Lock()

    def get_session() -> OutlineSession:
        with lock:
            session = state.get("session")
            if session is not None:
                return session
            try:
                session = OutlineSession.open(store, edge_threshold=settings.drop_edge_threshold)
            except OutlineNotFoundError as e:
                raise HTTPException(status_code=404, detail=str(e)) from e
            except OutlineIntegrityError as e:
                raise HTTPException(
                    status_code=500, detail={"error": "malformed outline", "problems": e.problems}
                ) from e
            except OutlineLoadError as e:
                log_exception(logger, "Outline load failed", path=str(store.path))
                raise HTTPException(status_code=500, detail=str(e)) from e
            state["session"] = session
            return session

    def run(session: OutlineSession, gesture: Callable[[], MutationResult]) -> MutationResponse:
        with lock:
            try:
                result = gesture()
            except OSError as e:
                log_exception(logger, "Outline save failed", path=str(store.path))
                raise HTTPException(status_code=500, detail=f"Outline not saved: {e}") from e
            return MutationResponse(
                applied=result.applied,
                reason=result.reason.value if result.reason else None,
                node_id=result.node_id,
                outline=session.outline.model_dump(mode="json", by_alias=True),
            )

    @app.get("/health")
    def health() -> dict[str, str]:
        return {"status": "ok"}

    @app.get("/outline")
    def get_outline(session: OutlineSession = Depends(get_session)) -> dict[str, Any]:
        with lock:
            return session.outline.model_dump(mode="json", by_alias=True)

    @app.post("/outline/move")
    def move(req: MoveRequest, session: OutlineSession = Depends(get_session)) -> MutationResponse:
        logger.info("API move requested", extra={"dragged": req.dragged_id, "target": req.target_id})
        return run(session, lambda: session.move(req.dragged_id, req.target_id, req.position))

    @app.post("/outline/indent")
    def indent(req: NodeRequest, session: OutlineSession = Depends(get_session)) -> MutationResponse:
        return run(session, lambda: session.indent(req.node_id))

    @app.post("/outline/outdent")
    def outdent(req: NodeRequest, session: OutlineSession = Depends(get_session)) -> MutationResponse:
        return run(session, lambda: session.outdent(req.node_id))

    @app.post("/outline/delete")
    def delete(req: NodeRequest, session: OutlineSession = Depends(get_session)) -> MutationResponse:
        return run(session, lambda: session.delete(req.node_id))

    @app.post("/outline/duplicate")
    def duplicate(req: NodeRequest, session: OutlineSession = Depends(get_session)) -> MutationResponse:
        return run(session, lambda: session.duplicate(req.node_id))

    @app.post("/outline/nodes")
    def add(req: AddRequest, session: OutlineSession = Depends(get_session)) -> MutationResponse:
        if req.after:
            return run(session, lambda: session.add_sibling(req.parent_id, req.type, req.name, req.content))
        return run(session, lambda: session.add_child(req.parent_id, req.type, req.name, req.content))

    @app.post("/outline/update")
    def update(req: UpdateRequest, session: OutlineSession = Depends(get_session)) -> MutationResponse:
        return run(session, lambda: session.update(req.node_id, **req.changes()))

    @app.post("/outline/collapse-all")
    def collapse(session: OutlineSession = Depends(get_session)) -> MutationResponse:
        return run(session, session.collapse_all)

    @app.post("/outline/expand-all")
    def expand(session: OutlineSession = Depends(get_session)) -> MutationResponse:
        return run(session, session.expand_all)

    @app.post("/outline/copy")
    def copy(req: NodeRequest, session: OutlineSession = Depends(get_session)) -> MutationResponse:
        return run(session, lambda: session.copy(req.node_id))

    @app.post("/outline/cut")
    def cut(req: NodeRequest, session: OutlineSession = Depends(get_session)) -> MutationResponse:
        return run(session, lambda: session.cut(req.node_id))

    @app.post("/outline/paste")
    def paste(req: PasteRequest, session: OutlineSession = Depends(get_session)) -> MutationResponse:
        return run(session, lambda: session.paste(req.target_id))

    @app.post("/outline/drop-position")
    def drop_position(
        req: DropPositionRequest, session: OutlineSession = Depends(get_session)
    ) -> DropPositionResponse:
        with lock:
            position = session.drop_position(
                req.dragged_id, req.target_id, row_height=req.row_height, pointer_y=req.pointer_y
            )
        return DropPositionResponse(position=position)

    return app
