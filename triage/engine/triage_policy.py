"""Module triage_policy: the auto-pilot state machine."""
#
# PURPOSE:
# Decides what happens to each freshly ingested artifact.
#
# AUTO-PILOT ON:
# 1. Selection jumps to the new artifact.
# 2. A simulated scan starts and is scheduled to finish after scan_delay.
# 3. Critical/High or tampered artifacts are FLAGGED into the report,
#    everything else is Archived.
#
# AUTO-PILOT OFF:
# Nothing is selected, scanned or flagged; the artifact waits for an analyst.
#
# MANUAL OVERRIDE:
# toggle_report_inclusion() flips the report flag of any artifact at any time.
#

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

from triage.base.clock import Clock
from triage.data.artifact import Artifact, Severity
from triage.data.artifact_store import ArtifactStore
from triage.data.audit_log import AuditLog
from triage.utils.observer import Observable, Signal

logger = logging.getLogger(__name__)

REPORTABLE_SEVERITIES = frozenset({Severity.CRITICAL, Severity.HIGH})


class TriageVerdict(str, Enum):
    FLAGGED = "flagged"
    ARCHIVED = "archived"
    PENDING_REVIEW = "pending_review"


@dataclass(frozen=True)
class TriageDecision:
    """
    The outcome of triaging one artifact.

    Optional fields are None when auto-pilot did not touch that piece of state.
    """
    artifact_id: str
    verdict: TriageVerdict
    log_line: str
    selection_change: Optional[str] = None
    scan_started_at: Optional[float] = None
    scan_ends_at: Optional[float] = None
    report_inclusion_change: Optional[bool] = None


def should_report(artifact: Artifact) -> bool:
    """Report rule: Critical/High severity or any sign of tampering."""
    return artifact.severity in REPORTABLE_SEVERITIES or artifact.tampered


class TriagePolicyEngine(Observable):
    """
    Holds auto-pilot, selection and scan state for one session.

    Signals:
        selection_changed(artifact_id)
        scan_state_changed(scanning)
    """

    def __init__(
        self,
        clock: Clock,
        store: ArtifactStore,
        audit_log: AuditLog,
        scan_delay_seconds: float = 0.8,
        auto_pilot: bool = True,
    ):
        super().__init__()
        self._clock = clock
        self._store = store
        self._audit_log = audit_log
        self.scan_delay_seconds = scan_delay_seconds

        self._auto_pilot = auto_pilot
        self._selection_id: Optional[str] = None
        self._scanning = False
        self._scan_timer: Optional[Any] = None

        self.selection_changed = Signal("selection_changed")
        self.scan_state_changed = Signal("scan_state_changed")

    # --- State ---

    @property
    def auto_pilot_enabled(self) -> bool:
        return self._auto_pilot

    @property
    def current_selection_id(self) -> Optional[str]:
        return self._selection_id

    @property
    def scanning_in_progress(self) -> bool:
        return self._scanning

    def set_auto_pilot(self, enabled: bool) -> bool:
        """
        Engage or disengage auto-pilot. Returns True if the mode changed.

        Artifacts triaged earlier keep whatever flag they already have.
        """
        enabled = bool(enabled)
        if enabled == self._auto_pilot:
            return False
        self._auto_pilot = enabled
        if enabled:
            self._audit_log.append("> Auto-Pilot Engaged.")
        else:
            self._audit_log.append("> Auto-Pilot Disengaged. Manual review mode.")
        return True

    # --- Automatic triage ---

    def on_artifact_ingested(self, artifact: Artifact) -> TriageDecision:
        if not self._auto_pilot:
            line = f"> Ingested artifact {artifact.id}. Pending manual review."
            self._audit_log.append(line)
            return TriageDecision(
                artifact_id=artifact.id,
                verdict=TriageVerdict.PENDING_REVIEW,
                log_line=line,
            )

        self._set_selection(artifact.id)
        started_at, ends_at = self._start_scan()

        if should_report(artifact):
            self._store.set_report_inclusion(artifact.id, True)
            line = f"> [AUTO-PILOT] Analyzed {artifact.id}: {artifact.severity.value}. FLAGGED for report."
            verdict = TriageVerdict.FLAGGED
            inclusion: Optional[bool] = True
        else:
            line = f"> [AUTO-PILOT] Analyzed {artifact.id}: Low Risk. Archived."
            verdict = TriageVerdict.ARCHIVED
            inclusion = None

        self._audit_log.append(line)
        return TriageDecision(
            artifact_id=artifact.id,
            verdict=verdict,
            log_line=line,
            selection_change=artifact.id,
            scan_started_at=started_at,
            scan_ends_at=ends_at,
            report_inclusion_change=inclusion,
        )

    # --- Manual actions ---

    def select(self, artifact_id: Optional[str]) -> Optional[Artifact]:
        """
        Point the selection at an artifact (None clears it).

        Raises:
            UnknownArtifactReference: selection is left unchanged
        """
        artifact = self._store.get(artifact_id) if artifact_id is not None else None
        self._set_selection(artifact_id)
        return artifact

    def toggle_report_inclusion(self, artifact_id: str) -> bool:
        """
        Flip the report flag of an artifact. Returns the new value.

        Raises:
            UnknownArtifactReference: nothing is flipped or logged
        """
        artifact = self._store.get(artifact_id)
        included = not artifact.included_in_report
        self._store.set_report_inclusion(artifact_id, included)
        if included:
            self._audit_log.append(f"> [MANUAL] {artifact_id} added to report.")
        else:
            self._audit_log.append(f"> [MANUAL] {artifact_id} removed from report.")
        return included

    def shutdown(self) -> None:
        """Cancel a pending scan completion so it cannot fire after teardown."""
        if self._scan_timer is not None:
            self._scan_timer.cancel()
            self._scan_timer = None
            logger.debug("[TriagePolicy] Pending scan timer cancelled")

    # --- Internals ---

    def _set_selection(self, artifact_id: Optional[str]) -> None:
        if artifact_id == self._selection_id:
            return
        self._selection_id = artifact_id
        self.selection_changed.emit(artifact_id)

    def _start_scan(self):
        # A newer scan supersedes the one in flight
        if self._scan_timer is not None:
            self._scan_timer.cancel()

        started_at = self._clock.time()
        self._scan_timer = self._clock.call_later(self.scan_delay_seconds, self._finish_scan)
        if not self._scanning:
            self._scanning = True
            self.scan_state_changed.emit(True)
        return started_at, started_at + self.scan_delay_seconds

    def _finish_scan(self) -> None:
        self._scan_timer = None
        if self._scanning:
            self._scanning = False
            self.scan_state_changed.emit(False)
