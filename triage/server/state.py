from __future__ import annotations

import logging

from fastapi import Request, WebSocket

from triage.engine.orchestrator import TriageEngine
from triage.errors import ErrorCode, TriageError

logger = logging.getLogger(__name__)


def _engine_from_app(app) -> TriageEngine:
    engine = getattr(app.state, "engine", None)
    if engine is None:
        raise TriageError(ErrorCode.SYSTEM_INTERNAL_ERROR, "Triage engine is not initialised", http_status=503)
    return engine


def get_engine(request: Request) -> TriageEngine:
    """FastAPI dependency: the engine built by the application lifespan."""
    return _engine_from_app(request.app)


def get_ws_engine(websocket: WebSocket) -> TriageEngine:
    return _engine_from_app(websocket.app)
