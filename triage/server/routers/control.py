from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Query

from triage.engine.orchestrator import TriageEngine
from triage.server.models import (
    AuditLogResponse,
    AutoPilotRequest,
    AutoPilotResponse,
    StatusModel,
    TickResponse,
)
from triage.server.state import get_engine

logger = logging.getLogger(__name__)

router = APIRouter(tags=["control"])


@router.get("/status", response_model=StatusModel)
async def get_status(engine: TriageEngine = Depends(get_engine)):
    return StatusModel.from_engine(engine)


@router.get("/autopilot", response_model=AutoPilotResponse)
async def get_autopilot(engine: TriageEngine = Depends(get_engine)):
    return AutoPilotResponse(enabled=engine.get_auto_pilot())


@router.put("/autopilot", response_model=AutoPilotResponse)
async def put_autopilot(request: AutoPilotRequest, engine: TriageEngine = Depends(get_engine)):
    """Engage/disengage auto-pilot. Not retroactive."""
    changed = engine.set_auto_pilot(request.enabled)
    return AutoPilotResponse(enabled=engine.get_auto_pilot(), changed=changed)


@router.get("/audit-log", response_model=AuditLogResponse)
async def get_audit_log(
    since: int = Query(0, ge=0, description="Return only lines after this sequence number"),
    engine: TriageEngine = Depends(get_engine),
):
    entries, truncated = engine.audit_log.get_since(since)
    return AuditLogResponse(
        lines=[e.line for e in entries],
        last_sequence=engine.audit_log.last_sequence,
        truncated=truncated,
    )


# ---------------------------------------------------------------------------
# Lifecycle
# ---------------------------------------------------------------------------

@router.post("/engine/start", response_model=StatusModel)
async def start_engine(engine: TriageEngine = Depends(get_engine)):
    engine.start()
    return StatusModel.from_engine(engine)


@router.post("/engine/stop", response_model=StatusModel)
async def stop_engine(engine: TriageEngine = Depends(get_engine)):
    """Terminal: a stopped session can be read but not restarted."""
    engine.stop()
    return StatusModel.from_engine(engine)


@router.post("/engine/tick", response_model=TickResponse)
async def tick_engine(engine: TriageEngine = Depends(get_engine)):
    """Run one ingestion step immediately (manual stepping)."""
    decision = engine.tick()
    if decision is None:
        return TickResponse()
    return TickResponse(
        artifact_id=decision.artifact_id,
        verdict=decision.verdict.value,
        log_line=decision.log_line,
    )
