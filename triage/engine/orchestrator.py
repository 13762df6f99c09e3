# ============================================================================
# triage/engine/orchestrator.py
# Triage Engine - The Facade Presentation Layers Talk To
# ============================================================================
#
# PURPOSE:
# Owns one triage session: store, audit log, synthesizer, policy, scheduler.
# Presentation (HTTP, WebSocket, CLI) reads state and calls operations here,
# never the components directly.
#
# NOTIFICATIONS:
# Components emit fine-grained signals (artifact added, flag changed,
# selection changed, log line appended, scan state changed). The engine
# collapses everything that happens inside one operation or one tick into a
# single EngineSnapshot pushed to subscribers. Changes outside any operation
# (the scan-end timer) are published immediately.
#
# LIFECYCLE:
# created -> start() -> running -> stop() -> stopped (terminal)
# Reads stay valid after stop(); mutations raise LifecycleMisuse.
#
# ============================================================================

from __future__ import annotations

import logging
import random
import uuid
from contextlib import contextmanager
from dataclasses import dataclass, field, replace
from functools import cached_property
from typing import Callable, Iterator, Optional, Tuple

from triage.base.clock import Clock, LoopClock
from triage.base.config import TriageConfig, get_config
from triage.cortex.correlation_graph import CorrelationGraph, CorrelationGraphBuilder
from triage.data.artifact import Artifact
from triage.data.artifact_store import ArtifactStore
from triage.data.audit_log import AuditLog
from triage.engine.synthesizer import ArtifactSynthesizer
from triage.engine.triage_policy import TriageDecision, TriagePolicyEngine
from triage.errors import ErrorCode, LifecycleMisuse, TriageError
from triage.reporting.report_composer import IncidentReport, IncidentReportComposer
from triage.scheduler.stream import SchedulerState, StreamScheduler
from triage.utils.observer import Signal, SubscriptionHandle

logger = logging.getLogger(__name__)

BOOT_LINE = "> System Initialized..."
AUTO_PILOT_ENGAGED_LINE = "> Auto-Pilot Engaged."


@dataclass(frozen=True)
class EngineSnapshot:
    """
    Immutable view of the session handed to subscribers.

    Artifacts are copies taken with the snapshot, so later report flag
    changes never show up in a snapshot already published. The correlation
    graph is derived on first access only.
    """
    sequence: int
    reason: str
    artifacts: Tuple[Artifact, ...]
    selection_id: Optional[str]
    auto_pilot: bool
    scanning: bool
    running: bool
    audit_log: Tuple[str, ...]
    report_summary: str
    _graph_builder: CorrelationGraphBuilder = field(repr=False, compare=False)

    @cached_property
    def graph(self) -> CorrelationGraph:
        return self._graph_builder.build(self.artifacts)

    @property
    def selection(self) -> Optional[Artifact]:
        for artifact in self.artifacts:
            if artifact.id == self.selection_id:
                return artifact
        return None

    @property
    def reported_count(self) -> int:
        return sum(1 for a in self.artifacts if a.included_in_report)


class TriageEngine:
    """
    Facade over one triage session.

    Args:
        config: Engine configuration (defaults to the global config)
        clock: Timer source; defaults to a LoopClock on the running loop
        rng: Random source for the synthesizer; defaults to one seeded
            from SynthesisConfig.seed
    """

    def __init__(
        self,
        config: Optional[TriageConfig] = None,
        clock: Optional[Clock] = None,
        rng: Optional[random.Random] = None,
    ):
        self.config = config or get_config()
        self.clock = clock or LoopClock()
        self.session_id = uuid.uuid4().hex[:12]

        self.store = ArtifactStore(self.config.stream.artifact_cap, session_id=self.session_id)
        self.audit_log = AuditLog(max_lines=self.config.policy.audit_log_max_lines)
        self.synthesizer = ArtifactSynthesizer(self.config.synthesis, rng=rng)
        self.policy = TriagePolicyEngine(
            self.clock,
            self.store,
            self.audit_log,
            scan_delay_seconds=self.config.policy.scan_delay_seconds,
            auto_pilot=self.config.policy.auto_pilot_default,
        )
        self.scheduler = StreamScheduler(
            self.clock,
            self.synthesizer,
            self.store,
            self.policy,
            tick_interval_seconds=self.config.stream.tick_interval_seconds,
            start_timestamp=self.config.stream.start_timestamp,
            tick_runner=self._timed_tick,
        )
        self.graph_builder = CorrelationGraphBuilder(self.config.correlation.high_confidence_threshold)
        self.report_composer = IncidentReportComposer(case_id=self.config.report.case_id)
        self._report_summary = self.config.report.executive_summary

        self.snapshot_published = Signal("snapshot_published")
        self._sequence = 0
        self._batch_depth = 0
        self._batch_reason = ""
        self._dirty = False

        self.audit_log.append(BOOT_LINE)
        if self.policy.auto_pilot_enabled:
            self.audit_log.append(AUTO_PILOT_ENGAGED_LINE)

        for signal in (
            self.store.artifact_added,
            self.store.report_flag_changed,
            self.audit_log.line_appended,
            self.policy.selection_changed,
            self.policy.scan_state_changed,
        ):
            signal.connect(self._on_component_changed)

        logger.info(
            f"[TriageEngine] Session {self.session_id} ready "
            f"(cap={self.store.capacity}, interval={self.config.stream.tick_interval_seconds}s, "
            f"auto_pilot={self.policy.auto_pilot_enabled})"
        )

    # --- Lifecycle ---

    @property
    def is_running(self) -> bool:
        return self.scheduler.is_running

    @property
    def is_stopped(self) -> bool:
        return self.scheduler.state == SchedulerState.STOPPED

    def start(self) -> None:
        """
        Begin periodic ingestion.

        Raises:
            LifecycleMisuse: already running, or stopped (stop is terminal)
        """
        with self._batch("start"):
            self.scheduler.start()
            self._dirty = True

    def stop(self) -> None:
        """Halt ingestion and cancel pending timers. Idempotent."""
        if self.is_stopped:
            return
        with self._batch("stop"):
            self.scheduler.stop()
            self.policy.shutdown()
            self._dirty = True
        logger.info(f"[TriageEngine] Session {self.session_id} stopped with {len(self.store)} artifacts")

    def tick(self) -> Optional[TriageDecision]:
        """Run one ingestion step now, independent of the timer."""
        self._ensure_active("tick")
        with self._batch("tick"):
            return self.scheduler.tick()

    # --- Reads (valid in every state) ---

    def get_artifacts(self) -> Tuple[Artifact, ...]:
        return self.store.get_all()

    def get_artifact(self, artifact_id: str) -> Artifact:
        return self.store.get(artifact_id)

    def get_graph(self) -> CorrelationGraph:
        return self.graph_builder.build(self.store.get_all())

    def get_selection(self) -> Optional[Artifact]:
        return self.store.find(self.policy.current_selection_id)

    def get_auto_pilot(self) -> bool:
        return self.policy.auto_pilot_enabled

    def is_scanning(self) -> bool:
        return self.policy.scanning_in_progress

    def get_audit_log(self) -> Tuple[str, ...]:
        return self.audit_log.lines()

    def get_report_summary(self) -> str:
        return self._report_summary

    def compose_report(self) -> IncidentReport:
        return self.report_composer.compose(
            self.store.get_all(),
            graph=self.get_graph(),
            executive_summary=self._report_summary,
        )

    def snapshot(self, reason: str = "read") -> EngineSnapshot:
        return EngineSnapshot(
            sequence=self._sequence,
            reason=reason,
            # Copies: a published snapshot keeps the report flags it was taken with
            artifacts=tuple(replace(a) for a in self.store.get_all()),
            selection_id=self.policy.current_selection_id,
            auto_pilot=self.policy.auto_pilot_enabled,
            scanning=self.policy.scanning_in_progress,
            running=self.scheduler.is_running,
            audit_log=self.audit_log.lines(),
            report_summary=self._report_summary,
            _graph_builder=self.graph_builder,
        )

    # --- Mutations (rejected after stop) ---

    def select_artifact(self, artifact_id: Optional[str]) -> Optional[Artifact]:
        self._ensure_active("select_artifact")
        with self._batch("selection"):
            return self.policy.select(artifact_id)

    def toggle_report_inclusion(self, artifact_id: str) -> bool:
        self._ensure_active("toggle_report_inclusion")
        with self._batch("report_toggle"):
            return self.policy.toggle_report_inclusion(artifact_id)

    def set_auto_pilot(self, enabled: bool) -> bool:
        self._ensure_active("set_auto_pilot")
        with self._batch("auto_pilot"):
            return self.policy.set_auto_pilot(enabled)

    def set_report_summary(self, text: str) -> None:
        self._ensure_active("set_report_summary")
        with self._batch("report_summary"):
            if text != self._report_summary:
                self._report_summary = text
                self._dirty = True

    # --- Subscriptions ---

    def subscribe(self, callback: Callable[[EngineSnapshot], None]) -> SubscriptionHandle:
        """
        Register for EngineSnapshot pushes.

        One snapshot per operation or tick, however many components changed.
        """
        return self.snapshot_published.connect(callback)

    # --- Internals ---

    def _ensure_active(self, operation: str) -> None:
        if self.is_stopped:
            logger.warning(f"[TriageEngine] {operation} rejected: engine is stopped")
            raise LifecycleMisuse(
                ErrorCode.ENGINE_STOPPED,
                f"Engine is stopped; {operation} is not allowed",
                details={"operation": operation},
            )

    def _timed_tick(self) -> Optional[TriageDecision]:
        with self._batch("tick"):
            return self.scheduler.tick()

    @contextmanager
    def _batch(self, reason: str) -> Iterator[None]:
        if self._batch_depth == 0:
            self._batch_reason = reason
        self._batch_depth += 1
        try:
            yield
        except TriageError as e:
            logger.warning(f"[TriageEngine] {reason} rejected: {e}")
            raise
        finally:
            self._batch_depth -= 1
            if self._batch_depth == 0 and self._dirty:
                self._publish(self._batch_reason)

    def _on_component_changed(self, *_args) -> None:
        self._dirty = True
        if self._batch_depth == 0:
            self._publish("timer")

    def _publish(self, reason: str) -> None:
        self._dirty = False
        self._sequence += 1
        snapshot = self.snapshot(reason)
        logger.debug(f"[TriageEngine] Snapshot #{snapshot.sequence} ({reason}) to {len(self.snapshot_published)} subscribers")
        self.snapshot_published.emit(snapshot)
