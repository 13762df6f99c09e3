# ============================================================================
# triage/data/artifact_store.py
# Artifact Store - Append-Only Evidence Feed
# ============================================================================
#
# PURPOSE:
# Holds every artifact ingested during a session, ordered by timestamp.
# Think of it as the evidence locker: things go in, nothing comes out.
#
# INVARIANTS (enforced here, rejected with InvariantViolation):
# - Append-only: there is no delete
# - Artifact ids are unique
# - Timestamps strictly increase (insertion order == timestamp order)
# - Size never exceeds the configured capacity
#
# The only mutation after insertion is the report flag, exposed through
# set_report_inclusion() so observers hear about it.
#
# ============================================================================

import logging
from typing import Dict, List, Optional, Tuple

from triage.data.artifact import Artifact
from triage.errors import ErrorCode, InvariantViolation, UnknownArtifactReference
from triage.utils.observer import Observable, Signal

logger = logging.getLogger(__name__)


class ArtifactStore(Observable):
    """
    In-memory artifact store for one triage session.

    Signals:
        artifact_added(artifact)
        report_flag_changed(artifact)
    """

    def __init__(self, capacity: int, session_id: Optional[str] = None):
        super().__init__()
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self.capacity = capacity
        self.session_id = session_id
        self._artifacts: List[Artifact] = []
        self._index: Dict[str, Artifact] = {}

        self.artifact_added = Signal("artifact_added")
        self.report_flag_changed = Signal("report_flag_changed")

    def __len__(self) -> int:
        return len(self._artifacts)

    def __contains__(self, artifact_id: object) -> bool:
        return artifact_id in self._index

    @property
    def is_full(self) -> bool:
        return len(self._artifacts) >= self.capacity

    @property
    def latest_timestamp(self) -> Optional[float]:
        return self._artifacts[-1].timestamp if self._artifacts else None

    def append(self, artifact: Artifact) -> None:
        """
        Add an artifact to the feed.

        Raises:
            InvariantViolation: duplicate id, timestamp not after the
                latest artifact, or the store is already at capacity.
                The store is left unchanged.
        """
        if artifact.id in self._index:
            raise InvariantViolation(
                ErrorCode.ARTIFACT_DUPLICATE_ID,
                f"Artifact {artifact.id} is already in the store",
                details={"artifact_id": artifact.id},
            )

        latest = self.latest_timestamp
        if latest is not None and artifact.timestamp <= latest:
            raise InvariantViolation(
                ErrorCode.ARTIFACT_NON_MONOTONIC,
                f"Artifact {artifact.id} does not follow the latest artifact",
                details={
                    "artifact_id": artifact.id,
                    "timestamp": artifact.timestamp,
                    "latest_timestamp": latest,
                },
            )

        if self.is_full:
            raise InvariantViolation(
                ErrorCode.ARTIFACT_CAP_EXCEEDED,
                f"Artifact store is at capacity ({self.capacity})",
                details={"artifact_id": artifact.id, "capacity": self.capacity},
            )

        self._artifacts.append(artifact)
        self._index[artifact.id] = artifact

        logger.debug(f"[ArtifactStore] Stored {artifact.id} ({len(self._artifacts)}/{self.capacity})")
        self.artifact_added.emit(artifact)

    def get(self, artifact_id: str) -> Artifact:
        """Return the artifact or raise UnknownArtifactReference."""
        artifact = self._index.get(artifact_id)
        if artifact is None:
            raise UnknownArtifactReference(artifact_id)
        return artifact

    def find(self, artifact_id: Optional[str]) -> Optional[Artifact]:
        if artifact_id is None:
            return None
        return self._index.get(artifact_id)

    def get_all(self) -> Tuple[Artifact, ...]:
        """All artifacts, timestamp ascending."""
        return tuple(self._artifacts)

    def reported(self) -> Tuple[Artifact, ...]:
        return tuple(a for a in self._artifacts if a.included_in_report)

    def set_report_inclusion(self, artifact_id: str, included: bool) -> Artifact:
        """
        Set the report flag of an artifact.

        Emits report_flag_changed only when the value actually changes.
        """
        artifact = self.get(artifact_id)
        if artifact.included_in_report != included:
            artifact.included_in_report = included
            self.report_flag_changed.emit(artifact)
        return artifact
