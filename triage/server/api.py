# triage/server/api.py
# FastAPI application exposing one triage session.

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import APIRouter, FastAPI, Request
from fastapi.responses import JSONResponse

from triage import __version__
from triage.base.clock import LoopClock
from triage.base.config import TriageConfig, get_config, setup_logging
from triage.engine.orchestrator import TriageEngine
from triage.errors import TriageError, handle_error
from triage.server.routers import artifacts, control, realtime, report

logger = logging.getLogger(__name__)


def create_app(config: Optional[TriageConfig] = None) -> FastAPI:
    """
    Build the application.

    The engine is created inside the lifespan so its LoopClock binds to the
    loop uvicorn (or the test client) actually runs on.
    """
    cfg = config or get_config()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        engine = TriageEngine(cfg, clock=LoopClock())
        app.state.engine = engine
        if cfg.stream.autostart:
            engine.start()
        logger.info(f"[API] Session {engine.session_id} up (autostart={cfg.stream.autostart})")
        try:
            yield
        finally:
            engine.stop()
            app.state.engine = None
            logger.info(f"[API] Session {engine.session_id} shut down")

    app = FastAPI(
        title="Evidence Stream Triage API",
        description="Live forensic artifact feed with auto-pilot triage",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.engine = None

    @app.exception_handler(TriageError)
    async def triage_error_handler(request: Request, exc: TriageError):
        logger.warning(f"[API] {exc.code.value}: {exc.message}")
        return JSONResponse(status_code=exc.http_status, content=exc.to_dict())

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        error = handle_error(exc, context=f"{request.method} {request.url.path}")
        logger.exception(f"[API] Unhandled error on {request.url.path}")
        return JSONResponse(status_code=error.http_status, content=error.to_dict())

    @app.get("/ping")
    async def ping():
        return {"status": "ok", "version": __version__}

    v1_router = APIRouter(
        prefix="/v1",
        responses={404: {"description": "Not found"}},
    )
    v1_router.include_router(artifacts.router)
    v1_router.include_router(control.router)
    v1_router.include_router(report.router)
    v1_router.include_router(realtime.router)
    app.include_router(v1_router)

    return app


def serve(config: Optional[TriageConfig] = None) -> None:
    """Run the service with uvicorn on the configured host/port."""
    cfg = config or get_config()
    setup_logging(cfg)
    logger.info(f"[API] Listening on http://{cfg.api_host}:{cfg.api_port}")
    uvicorn.run(create_app(cfg), host=cfg.api_host, port=cfg.api_port, log_level="info")
