"""Shared builders for the test-suite."""
import dataclasses
import random

from triage.base.config import (
    PolicyConfig,
    StreamConfig,
    SynthesisConfig,
    TriageConfig,
)
from triage.data.artifact import (
    Artifact,
    ArtifactType,
    Attribution,
    Phase,
    Severity,
    UNKNOWN_ACTOR,
)


class ScriptedRandom(random.Random):
    """
    random.Random whose first random() calls return scripted values.

    The synthesizer draws its yes/no decisions first, so scripting those
    values forces the artifact's shape; everything after falls through to
    the seeded generator.
    """

    def __init__(self, script=(), seed=1234):
        super().__init__(seed)
        self.script = list(script)

    def random(self):
        if self.script:
            return self.script.pop(0)
        return super().random()


def make_artifact(
    artifact_id="ART-000001",
    timestamp=0.0,
    severity=Severity.LOW,
    tampered=False,
    actor=UNKNOWN_ACTOR,
    confidence=0.1,
    phase=Phase.EXECUTION,
    included=False,
):
    return Artifact(
        id=artifact_id,
        type=ArtifactType.PREFETCH,
        phase=phase,
        timestamp=timestamp,
        severity=severity,
        tampered=tampered,
        attribution=Attribution(
            actor_name=actor,
            confidence_score=confidence,
            origin_country=UNKNOWN_ACTOR if actor == UNKNOWN_ACTOR else "RU",
        ),
        entropy=5.0,
        included_in_report=included,
    )


def make_config(
    cap=30,
    interval=4.0,
    scan_delay=0.8,
    auto_pilot=True,
    start_timestamp=0.0,
    seed=42,
    **synthesis,
):
    return TriageConfig(
        stream=StreamConfig(
            tick_interval_seconds=interval,
            artifact_cap=cap,
            start_timestamp=start_timestamp,
            autostart=False,
        ),
        policy=PolicyConfig(scan_delay_seconds=scan_delay, auto_pilot_default=auto_pilot),
        synthesis=dataclasses.replace(SynthesisConfig(seed=seed), **synthesis),
    )


# Thresholds that force every artifact to a fixed shape
ALWAYS_CRITICAL = dict(malicious_threshold=0.0, critical_threshold=0.0, tamper_threshold=1.0)
ALWAYS_BENIGN = dict(malicious_threshold=1.0)
