# triage/server/models.py
# Request/response bodies for the HTTP surface.

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field

from triage.cortex.correlation_graph import CorrelationGraph
from triage.data.artifact import Artifact
from triage.engine.orchestrator import EngineSnapshot, TriageEngine
from triage.reporting.report_composer import IncidentReport


class AttributionModel(BaseModel):
    actor_name: str
    confidence_score: float
    origin_country: str
    actor_type: Optional[str] = None


class ArtifactModel(BaseModel):
    id: str
    type: str
    phase: str
    timestamp: float
    severity: str
    tampered: bool
    anti_forensics_method: Optional[str] = None
    attribution: AttributionModel
    entropy: float
    matched_strings: List[str] = Field(default_factory=list)
    verdict_text: str = ""
    raw_hex: str = ""
    included_in_report: bool = False

    @classmethod
    def from_artifact(cls, artifact: Artifact) -> "ArtifactModel":
        return cls(**artifact.to_dict())


class GraphNodeModel(BaseModel):
    id: str
    group: str
    val: int
    severity: str
    tampered: bool


class GraphLinkModel(BaseModel):
    source: str
    target: str
    type: str


class ClusterModel(BaseModel):
    actor_name: str
    artifact_ids: List[str]


class GraphModel(BaseModel):
    nodes: List[GraphNodeModel]
    links: List[GraphLinkModel]
    clusters: List[ClusterModel] = Field(default_factory=list)

    @classmethod
    def from_graph(cls, graph: CorrelationGraph) -> "GraphModel":
        return cls(**graph.to_dict())


class StatusModel(BaseModel):
    session_id: str
    running: bool
    stopped: bool
    auto_pilot: bool
    scanning: bool
    artifact_count: int
    artifact_cap: int
    reported_count: int
    selection_id: Optional[str] = None

    @classmethod
    def from_engine(cls, engine: TriageEngine) -> "StatusModel":
        selection = engine.get_selection()
        return cls(
            session_id=engine.session_id,
            running=engine.is_running,
            stopped=engine.is_stopped,
            auto_pilot=engine.get_auto_pilot(),
            scanning=engine.is_scanning(),
            artifact_count=len(engine.get_artifacts()),
            artifact_cap=engine.store.capacity,
            reported_count=len(engine.store.reported()),
            selection_id=selection.id if selection else None,
        )


class SelectionRequest(BaseModel):
    # None clears the selection
    artifact_id: Optional[str] = None


class SelectionResponse(BaseModel):
    artifact: Optional[ArtifactModel] = None


class AutoPilotRequest(BaseModel):
    enabled: bool


class AutoPilotResponse(BaseModel):
    enabled: bool
    changed: bool = False


class ReportToggleResponse(BaseModel):
    artifact_id: str
    included_in_report: bool


class AuditLogResponse(BaseModel):
    lines: List[str]
    last_sequence: int
    truncated: bool = False


class ReportSummaryRequest(BaseModel):
    text: str = Field(..., max_length=8000)


class ReportItemModel(BaseModel):
    artifact_id: str
    type: str
    phase: str
    severity: str
    actor_name: str
    timestamp: float
    tampered: bool


class IncidentReportModel(BaseModel):
    case_id: str
    status: str
    executive_summary: str
    critical_count: int
    tampered_count: int
    implicated_actors: List[str]
    items: List[ReportItemModel]

    @classmethod
    def from_report(cls, report: IncidentReport) -> "IncidentReportModel":
        return cls(**report.to_dict())


class TickResponse(BaseModel):
    # None when the artifact cap has been reached
    artifact_id: Optional[str] = None
    verdict: Optional[str] = None
    log_line: Optional[str] = None


class SnapshotModel(BaseModel):
    sequence: int
    reason: str
    running: bool
    auto_pilot: bool
    scanning: bool
    selection_id: Optional[str] = None
    artifacts: List[ArtifactModel]
    graph: GraphModel
    audit_log: List[str]
    report_summary: str

    @classmethod
    def from_snapshot(cls, snapshot: EngineSnapshot) -> "SnapshotModel":
        return cls(
            sequence=snapshot.sequence,
            reason=snapshot.reason,
            running=snapshot.running,
            auto_pilot=snapshot.auto_pilot,
            scanning=snapshot.scanning,
            selection_id=snapshot.selection_id,
            artifacts=[ArtifactModel.from_artifact(a) for a in snapshot.artifacts],
            graph=GraphModel.from_graph(snapshot.graph),
            audit_log=list(snapshot.audit_log),
            report_summary=snapshot.report_summary,
        )
