# triage/reporting/report_composer.py - incident report built from flagged artifacts

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional, Tuple

from triage.base.config import DEFAULT_EXECUTIVE_SUMMARY
from triage.cortex.correlation_graph import CorrelationGraph
from triage.data.artifact import Artifact, Severity

logger = logging.getLogger(__name__)

STATUS_CRITICAL = "CRITICAL"
STATUS_INVESTIGATING = "INVESTIGATING"

EMPTY_REPORT_HINT = (
    'No artifacts flagged. Toggle "Auto-Pilot" to automatically add critical threats here.'
)


def format_timestamp(ts: float) -> str:
    return datetime.fromtimestamp(ts, tz=timezone.utc).strftime("%Y-%m-%d %H:%M:%S UTC")


@dataclass(frozen=True)
class ReportItem:
    artifact_id: str
    artifact_type: str
    phase: str
    severity: str
    actor_name: str
    timestamp: float
    tampered: bool

    @classmethod
    def from_artifact(cls, artifact: Artifact) -> "ReportItem":
        return cls(
            artifact_id=artifact.id,
            artifact_type=artifact.type.value,
            phase=artifact.phase.value,
            severity=artifact.severity.value,
            actor_name=artifact.attribution.actor_name,
            timestamp=artifact.timestamp,
            tampered=artifact.tampered,
        )


@dataclass(frozen=True)
class IncidentReport:
    case_id: str
    status: str
    executive_summary: str
    items: Tuple[ReportItem, ...]
    critical_count: int
    tampered_count: int
    implicated_actors: Tuple[str, ...] = field(default_factory=tuple)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "case_id": self.case_id,
            "status": self.status,
            "executive_summary": self.executive_summary,
            "critical_count": self.critical_count,
            "tampered_count": self.tampered_count,
            "implicated_actors": list(self.implicated_actors),
            "items": [
                {
                    "artifact_id": i.artifact_id,
                    "type": i.artifact_type,
                    "phase": i.phase,
                    "severity": i.severity,
                    "actor_name": i.actor_name,
                    "timestamp": i.timestamp,
                    "tampered": i.tampered,
                }
                for i in self.items
            ],
        }

    def render_markdown(self) -> str:
        lines: List[str] = [
            "# Incident Report",
            "",
            f"CASE ID: #{self.case_id}  ",
            f"STATUS: {self.status}",
            "",
            "## 1. Executive Summary",
            "",
            self.executive_summary,
            "",
            "## 2. Flagged Artifacts",
            "",
        ]
        if not self.items:
            lines.append(EMPTY_REPORT_HINT)
        else:
            lines.append("| # | Artifact | Type | Phase | Severity | Actor | Time |")
            lines.append("|---|----------|------|-------|----------|-------|------|")
            for n, item in enumerate(self.items, start=1):
                severity = item.severity + (" (tampered)" if item.tampered else "")
                lines.append(
                    f"| {n} | {item.artifact_id} | {item.artifact_type} | {item.phase} | "
                    f"{severity} | {item.actor_name} | {format_timestamp(item.timestamp)} |"
                )
        if self.implicated_actors:
            lines.extend(["", "## 3. Attribution", ""])
            lines.extend(f"- {actor}" for actor in self.implicated_actors)
        lines.append("")
        return "\n".join(lines)


class IncidentReportComposer:
    """Assembles an IncidentReport from the report-flagged artifacts."""

    def __init__(self, case_id: str = "2026-AUTO-99"):
        self.case_id = case_id

    def compose(
        self,
        artifacts: Iterable[Artifact],
        graph: Optional[CorrelationGraph] = None,
        executive_summary: Optional[str] = None,
    ) -> IncidentReport:
        flagged = [a for a in artifacts if a.included_in_report]
        flagged.sort(key=lambda a: a.timestamp)
        critical = sum(1 for a in flagged if a.severity == Severity.CRITICAL)
        tampered = sum(1 for a in flagged if a.tampered)

        # Actors from attribution clusters with at least one flagged member,
        # then any other known actor among the flagged artifacts
        flagged_ids = {a.id for a in flagged}
        actors: List[str] = []
        if graph is not None:
            for cluster in graph.clusters:
                if flagged_ids.intersection(cluster.artifact_ids) and cluster.actor_name not in actors:
                    actors.append(cluster.actor_name)
        for artifact in flagged:
            name = artifact.attribution.actor_name
            if artifact.attribution.is_known and name not in actors:
                actors.append(name)

        report = IncidentReport(
            case_id=self.case_id,
            status=STATUS_CRITICAL if critical > 0 else STATUS_INVESTIGATING,
            executive_summary=DEFAULT_EXECUTIVE_SUMMARY if executive_summary is None else executive_summary,
            items=tuple(ReportItem.from_artifact(a) for a in flagged),
            critical_count=critical,
            tampered_count=tampered,
            implicated_actors=tuple(actors),
        )
        logger.debug(f"[ReportComposer] {len(report.items)} items, status={report.status}")
        return report
