from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from fastapi.responses import PlainTextResponse

from triage.engine.orchestrator import TriageEngine
from triage.server.models import IncidentReportModel, ReportSummaryRequest
from triage.server.state import get_engine

router = APIRouter(prefix="/report", tags=["report"])


@router.get("", response_model=IncidentReportModel)
async def get_report(
    format: str = Query("json", pattern="^(json|markdown)$"),
    engine: TriageEngine = Depends(get_engine),
):
    """
    The incident report for every flagged artifact.

    ?format=markdown returns the rendered document as text/markdown.
    """
    report = engine.compose_report()
    if format == "markdown":
        return PlainTextResponse(report.render_markdown(), media_type="text/markdown")
    return IncidentReportModel.from_report(report)


@router.put("/summary", response_model=IncidentReportModel)
async def put_summary(request: ReportSummaryRequest, engine: TriageEngine = Depends(get_engine)):
    engine.set_report_summary(request.text)
    return IncidentReportModel.from_report(engine.compose_report())
