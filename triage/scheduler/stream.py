# ============================================================================
# triage/scheduler/stream.py
# Stream Scheduler - Drives the Evidence Feed
# ============================================================================
#
# PURPOSE:
# Fires an ingestion tick every `tick_interval_seconds` of clock time. The
# interval has nothing to do with artifact timestamps: the feed is
# wall-clock driven, the timestamps are virtual.
#
# ONE TICK:
#   a. store full?            -> skip (ingestion pauses, no error)
#   b. synthesize             -> from the last known timestamp
#   c. append to store        -> timestamps strictly increase
#   d. triage policy decides  -> selection / scan / report flag / log line
#   e. observers notified     -> via store and audit log signals
#
# LIFECYCLE:
#   created -> start() -> running -> stop() -> stopped (terminal)
# stop() is idempotent and cancels the pending timer.
#
# ============================================================================

from __future__ import annotations

import logging
import time
from enum import Enum
from typing import Any, Callable, Optional

from triage.base.clock import Clock
from triage.data.artifact import Artifact
from triage.data.artifact_store import ArtifactStore
from triage.engine.synthesizer import ArtifactSynthesizer
from triage.engine.triage_policy import TriageDecision, TriagePolicyEngine
from triage.errors import ErrorCode, InvariantViolation, LifecycleMisuse, TriageError

logger = logging.getLogger(__name__)


class SchedulerState(str, Enum):
    CREATED = "created"
    RUNNING = "running"
    STOPPED = "stopped"


class StreamScheduler:
    """
    Periodic ingestion driver.

    Args:
        clock: Timer source (LoopClock in the service, ManualClock in tests)
        synthesizer: Produces the next artifact
        store: Destination of every artifact
        policy: Triage decision for every stored artifact
        tick_interval_seconds: Clock seconds between ticks
        start_timestamp: Virtual timestamp the first artifact follows
            (None = current wall-clock time)
        tick_runner: Optional wrapper the timer calls instead of tick();
            lets the engine batch notifications per tick
    """

    # A colliding id is redrawn at most this many times before the tick fails
    MAX_ID_REDRAWS = 5

    def __init__(
        self,
        clock: Clock,
        synthesizer: ArtifactSynthesizer,
        store: ArtifactStore,
        policy: TriagePolicyEngine,
        tick_interval_seconds: float = 4.0,
        start_timestamp: Optional[float] = None,
        tick_runner: Optional[Callable[[], Any]] = None,
    ):
        self._clock = clock
        self._synthesizer = synthesizer
        self._store = store
        self._policy = policy
        self.tick_interval_seconds = tick_interval_seconds
        self._last_timestamp = time.time() if start_timestamp is None else float(start_timestamp)
        self._tick_runner = tick_runner

        self._state = SchedulerState.CREATED
        self._timer: Optional[Any] = None
        self.ticks = 0

    @property
    def state(self) -> SchedulerState:
        return self._state

    @property
    def is_running(self) -> bool:
        return self._state == SchedulerState.RUNNING

    @property
    def last_timestamp(self) -> float:
        return self._last_timestamp

    def start(self) -> None:
        if self._state == SchedulerState.STOPPED:
            raise LifecycleMisuse(ErrorCode.ENGINE_STOPPED, "Scheduler was stopped and cannot be restarted")
        if self._state == SchedulerState.RUNNING:
            raise LifecycleMisuse(ErrorCode.ENGINE_ALREADY_RUNNING, "Scheduler is already running")
        self._state = SchedulerState.RUNNING
        self._schedule_next()
        logger.info(f"[StreamScheduler] Started (interval={self.tick_interval_seconds}s, cap={self._store.capacity})")

    def stop(self) -> None:
        """Halt all future ticks. Safe to call any number of times."""
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        if self._state != SchedulerState.STOPPED:
            self._state = SchedulerState.STOPPED
            logger.info(f"[StreamScheduler] Stopped after {self.ticks} ticks, {len(self._store)} artifacts")

    def tick(self) -> Optional[TriageDecision]:
        """
        Run one ingestion step.

        Returns the triage decision, or None when the cap has been reached.

        Raises:
            LifecycleMisuse: the scheduler has been stopped
        """
        if self._state == SchedulerState.STOPPED:
            raise LifecycleMisuse(ErrorCode.ENGINE_STOPPED, "Cannot tick a stopped scheduler")

        self.ticks += 1
        if self._store.is_full:
            logger.debug(f"[StreamScheduler] Cap of {self._store.capacity} reached, skipping tick {self.ticks}")
            return None

        artifact = self._ingest()
        self._last_timestamp = artifact.timestamp
        logger.info(
            f"[StreamScheduler] Ingested {artifact.id} ({artifact.type.value}, {artifact.severity.value}) "
            f"{len(self._store)}/{self._store.capacity}"
        )
        return self._policy.on_artifact_ingested(artifact)

    # --- Internals ---

    def _ingest(self) -> Artifact:
        last_error: Optional[InvariantViolation] = None
        for _ in range(self.MAX_ID_REDRAWS + 1):
            artifact = self._synthesizer.synthesize(self._last_timestamp)
            if artifact.id in self._store:
                logger.warning(f"[StreamScheduler] Id collision on {artifact.id}, redrawing")
                last_error = InvariantViolation(
                    ErrorCode.ARTIFACT_DUPLICATE_ID,
                    f"Artifact {artifact.id} is already in the store",
                    details={"artifact_id": artifact.id},
                )
                continue
            self._store.append(artifact)
            return artifact
        raise last_error

    def _schedule_next(self) -> None:
        self._timer = self._clock.call_later(self.tick_interval_seconds, self._on_timer)

    def _on_timer(self) -> None:
        self._timer = None
        if self._state != SchedulerState.RUNNING:
            return
        try:
            (self._tick_runner or self.tick)()
        except TriageError as e:
            logger.error(f"[StreamScheduler] Tick {self.ticks} rejected: {e}")
        finally:
            if self._state == SchedulerState.RUNNING:
                self._schedule_next()
