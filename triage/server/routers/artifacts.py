from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends

from triage.engine.orchestrator import TriageEngine
from triage.server.models import (
    ArtifactModel,
    GraphModel,
    ReportToggleResponse,
    SelectionRequest,
    SelectionResponse,
)
from triage.server.state import get_engine

router = APIRouter(tags=["artifacts"])


# ---------------------------------------------------------------------------
# Evidence Feed
# ---------------------------------------------------------------------------

@router.get("/artifacts", response_model=List[ArtifactModel])
async def list_artifacts(engine: TriageEngine = Depends(get_engine)):
    """All ingested artifacts, timestamp ascending."""
    return [ArtifactModel.from_artifact(a) for a in engine.get_artifacts()]


@router.get("/artifacts/{artifact_id}", response_model=ArtifactModel)
async def get_artifact(artifact_id: str, engine: TriageEngine = Depends(get_engine)):
    return ArtifactModel.from_artifact(engine.get_artifact(artifact_id))


@router.post("/artifacts/{artifact_id}/report-toggle", response_model=ReportToggleResponse)
async def toggle_report(artifact_id: str, engine: TriageEngine = Depends(get_engine)):
    """Manual override of the report flag."""
    included = engine.toggle_report_inclusion(artifact_id)
    return ReportToggleResponse(artifact_id=artifact_id, included_in_report=included)


# ---------------------------------------------------------------------------
# Selection
# ---------------------------------------------------------------------------

@router.get("/selection", response_model=SelectionResponse)
async def get_selection(engine: TriageEngine = Depends(get_engine)):
    selection = engine.get_selection()
    return SelectionResponse(artifact=ArtifactModel.from_artifact(selection) if selection else None)


@router.put("/selection", response_model=SelectionResponse)
async def put_selection(request: SelectionRequest, engine: TriageEngine = Depends(get_engine)):
    selection = engine.select_artifact(request.artifact_id)
    return SelectionResponse(artifact=ArtifactModel.from_artifact(selection) if selection else None)


# ---------------------------------------------------------------------------
# Correlation Graph
# ---------------------------------------------------------------------------

@router.get("/graph", response_model=GraphModel)
async def get_graph(engine: TriageEngine = Depends(get_engine)):
    """Temporal chain plus attribution edges, rebuilt on every read."""
    return GraphModel.from_graph(engine.get_graph())
