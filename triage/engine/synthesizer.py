"""
triage/engine/synthesizer.py
Artifact synthesis for the live evidence feed.

The synthesizer is a pure function of its random source and the previous
timestamp. It never reads or writes the artifact store; the scheduler owns
ordering and storage.

DRAW ORDER:
The yes/no decisions are drawn first, always with random(), so a scripted
random source can force a particular artifact shape:
    1. malicious        random() > malicious_threshold
    2. tampered         random() > tamper_threshold   (malicious only)
    3. critical         random() > critical_threshold (malicious only)
    4. wiping method    random() > 0.5                (tampered only)
Everything after that (id, type, phase, spacing, actor, strings) is cosmetic.
"""

import logging
import random
import string
from typing import Optional

from triage.base.config import SynthesisConfig
from triage.data.artifact import (
    AntiForensicsMethod,
    Artifact,
    ArtifactType,
    Attribution,
    Phase,
    Severity,
    SUSPICIOUS_STRINGS,
    THREAT_ACTORS,
    UNKNOWN_ACTOR,
)

logger = logging.getLogger(__name__)

ID_PREFIX = "ART-"
ID_ALPHABET = string.digits + string.ascii_uppercase
ID_LENGTH = 6

# Attribution confidence bands
MALICIOUS_CONFIDENCE = (0.75, 0.99)
BENIGN_CONFIDENCE = (0.0, 0.3)

ENTROPY_RANGE = (3.5, 7.9)
MAX_MATCHED_STRINGS = 3
RAW_HEX_BYTES = 64

_ARTIFACT_TYPES = tuple(ArtifactType)
_PHASES = tuple(Phase)


class ArtifactSynthesizer:
    """
    Produces one synthetic artifact per call.

    Args:
        config: Probability thresholds and timestamp spacing
        rng: Any random.Random-compatible source (random, uniform, choice,
             randint). Defaults to random.Random(config.seed).
    """

    def __init__(self, config: Optional[SynthesisConfig] = None, rng: Optional[random.Random] = None):
        self.config = config or SynthesisConfig()
        self.rng = rng if rng is not None else random.Random(self.config.seed)

    def synthesize(self, previous_timestamp: float) -> Artifact:
        """Build the artifact that follows previous_timestamp."""
        rng = self.rng
        cfg = self.config

        malicious = rng.random() > cfg.malicious_threshold
        tampered = malicious and rng.random() > cfg.tamper_threshold

        if malicious:
            severity = Severity.CRITICAL if rng.random() > cfg.critical_threshold else Severity.HIGH
        else:
            severity = Severity.LOW

        method = None
        if tampered:
            method = (
                AntiForensicsMethod.TIMESTOMPING
                if rng.random() > 0.5
                else AntiForensicsMethod.LOG_WIPING
            )

        artifact_id = ID_PREFIX + "".join(rng.choice(ID_ALPHABET) for _ in range(ID_LENGTH))
        timestamp = previous_timestamp + rng.uniform(cfg.min_delta_seconds, cfg.max_delta_seconds)
        attribution = self._attribute(malicious)

        matched = ()
        if malicious:
            matched = tuple(rng.choice(SUSPICIOUS_STRINGS) for _ in range(rng.randint(1, MAX_MATCHED_STRINGS)))

        artifact = Artifact(
            id=artifact_id,
            type=rng.choice(_ARTIFACT_TYPES),
            phase=rng.choice(_PHASES),
            timestamp=timestamp,
            severity=severity,
            tampered=tampered,
            anti_forensics_method=method,
            attribution=attribution,
            entropy=round(rng.uniform(*ENTROPY_RANGE), 2),
            matched_strings=matched,
            verdict_text=self._verdict(attribution),
            raw_hex=" ".join(f"{rng.randint(0, 255):02x}" for _ in range(RAW_HEX_BYTES)),
        )
        logger.debug(
            f"[Synthesizer] {artifact.id} {artifact.severity.value} "
            f"tampered={artifact.tampered} actor={attribution.actor_name}"
        )
        return artifact

    def _attribute(self, malicious: bool) -> Attribution:
        rng = self.rng
        if not malicious:
            return Attribution(
                actor_name=UNKNOWN_ACTOR,
                confidence_score=rng.uniform(*BENIGN_CONFIDENCE),
                origin_country=UNKNOWN_ACTOR,
            )
        actor = rng.choice(THREAT_ACTORS)
        return Attribution(
            actor_name=actor.name,
            confidence_score=rng.uniform(*MALICIOUS_CONFIDENCE),
            origin_country=actor.origin,
            actor_type=actor.actor_type,
        )

    @staticmethod
    def _verdict(attribution: Attribution) -> str:
        if attribution.is_known:
            return (
                f"AUTOMATED VERDICT: MALICIOUS. Pattern matches {attribution.actor_name} TTPs. "
                "Auto-flagged for report."
            )
        return "AUTOMATED VERDICT: BENIGN. Standard system behavior."
