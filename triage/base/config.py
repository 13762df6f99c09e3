# ============================================================================
# triage/base/config.py
# Application Configuration Management
# ============================================================================
#
# PURPOSE:
# Defines every tunable of the triage engine: tick interval, artifact cap,
# scan delay, attribution threshold, synthesis probabilities, logging.
# Nothing in the engine hard-codes these values; components receive the
# relevant section at construction time.
#
# KEY CONCEPTS:
# 1. Frozen dataclasses: each section is immutable once built
# 2. Environment variables: TRIAGE_* overrides (e.g., TRIAGE_ARTIFACT_CAP=10)
# 3. Singleton: get_config() builds once from the environment, set_config()
#    replaces it (tests)
#
# ============================================================================

from __future__ import annotations

import os
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from triage.errors import ErrorCode, TriageError

logger = logging.getLogger(__name__)


def _invalid(message: str, **details) -> TriageError:
    return TriageError(ErrorCode.CONFIG_INVALID, message, details=details)


def _env_optional_float(name: str) -> Optional[float]:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return None
    return float(raw)


def _env_optional_int(name: str) -> Optional[int]:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return None
    return int(raw)


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() == "true"


# ============================================================================
# Stream Configuration
# ============================================================================
# Controls the ingestion tick (wall-clock driven, independent of artifact
# timestamps) and how many artifacts a session may hold.

@dataclass(frozen=True)
class StreamConfig:
    # Seconds between ingestion ticks
    tick_interval_seconds: float = 4.0

    # Ingestion pauses once the store holds this many artifacts
    artifact_cap: int = 30

    # Virtual timestamp the first artifact is derived from.
    # None = wall-clock time when the engine is built.
    start_timestamp: Optional[float] = None

    # Should the HTTP service start ticking as soon as it boots?
    autostart: bool = True

    def __post_init__(self):
        if self.tick_interval_seconds <= 0:
            raise _invalid("tick_interval_seconds must be positive", value=self.tick_interval_seconds)
        if self.artifact_cap < 1:
            raise _invalid("artifact_cap must be at least 1", value=self.artifact_cap)


# ============================================================================
# Triage Policy Configuration
# ============================================================================

@dataclass(frozen=True)
class PolicyConfig:
    # Simulated analysis latency between scan start and scan end
    scan_delay_seconds: float = 0.8

    # Auto-pilot state when the engine boots
    auto_pilot_default: bool = True

    # Oldest audit lines are dropped beyond this count. None = unbounded.
    audit_log_max_lines: Optional[int] = None

    def __post_init__(self):
        if self.scan_delay_seconds < 0:
            raise _invalid("scan_delay_seconds must not be negative", value=self.scan_delay_seconds)
        if self.audit_log_max_lines is not None and self.audit_log_max_lines < 1:
            raise _invalid("audit_log_max_lines must be at least 1", value=self.audit_log_max_lines)


# ============================================================================
# Correlation Configuration
# ============================================================================

@dataclass(frozen=True)
class CorrelationConfig:
    # Both artifacts of an attribution edge must score strictly above this
    high_confidence_threshold: float = 0.8

    def __post_init__(self):
        if not 0.0 <= self.high_confidence_threshold <= 1.0:
            raise _invalid(
                "high_confidence_threshold must be within [0, 1]",
                value=self.high_confidence_threshold,
            )


# ============================================================================
# Synthesis Configuration
# ============================================================================
# Each flag is drawn as `random() > threshold`, so a threshold of 0.65 gives
# a 35% chance. Setting a threshold to 0.0 forces the flag on, 1.0 forces it off.

@dataclass(frozen=True)
class SynthesisConfig:
    malicious_threshold: float = 0.65
    tamper_threshold: float = 0.8
    critical_threshold: float = 0.6

    # Virtual seconds between consecutive artifacts
    min_delta_seconds: float = 60.0
    max_delta_seconds: float = 3600.0

    # Seed for the default random source. None = nondeterministic.
    seed: Optional[int] = None

    def __post_init__(self):
        for name in ("malicious_threshold", "tamper_threshold", "critical_threshold"):
            value = getattr(self, name)
            if not 0.0 <= value <= 1.0:
                raise _invalid(f"{name} must be within [0, 1]", value=value)
        if self.min_delta_seconds <= 0:
            raise _invalid("min_delta_seconds must be positive", value=self.min_delta_seconds)
        if self.max_delta_seconds < self.min_delta_seconds:
            raise _invalid(
                "max_delta_seconds must not be below min_delta_seconds",
                min=self.min_delta_seconds,
                max=self.max_delta_seconds,
            )


# ============================================================================
# Report Configuration
# ============================================================================

DEFAULT_EXECUTIVE_SUMMARY = (
    "Automated analysis detected multiple indicators of compromise consistent "
    "with APT activity. Recommendation: Isolate affected hosts."
)


@dataclass(frozen=True)
class ReportConfig:
    case_id: str = "2026-AUTO-99"
    executive_summary: str = DEFAULT_EXECUTIVE_SUMMARY


# ============================================================================
# Logging Configuration
# ============================================================================

@dataclass(frozen=True)
class LogConfig:
    # DEBUG shows cap/skip decisions, INFO shows every ingestion
    level: str = "INFO"

    format: str = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

    # Optional rotating log file. None = console only.
    file_path: Optional[Path] = None

    max_file_size_mb: int = 10
    backup_count: int = 5


# ============================================================================
# Master Configuration Container
# ============================================================================

@dataclass(frozen=True)
class TriageConfig:
    stream: StreamConfig = field(default_factory=StreamConfig)
    policy: PolicyConfig = field(default_factory=PolicyConfig)
    correlation: CorrelationConfig = field(default_factory=CorrelationConfig)
    synthesis: SynthesisConfig = field(default_factory=SynthesisConfig)
    report: ReportConfig = field(default_factory=ReportConfig)
    log: LogConfig = field(default_factory=LogConfig)

    debug: bool = False

    # 127.0.0.1 = only reachable from this machine
    api_host: str = "127.0.0.1"
    api_port: int = 8765

    @classmethod
    def from_env(cls) -> "TriageConfig":
        """Build a TriageConfig from TRIAGE_* environment variables."""
        stream = StreamConfig(
            tick_interval_seconds=float(os.getenv("TRIAGE_TICK_INTERVAL", "4.0")),
            artifact_cap=int(os.getenv("TRIAGE_ARTIFACT_CAP", "30")),
            start_timestamp=_env_optional_float("TRIAGE_START_TIMESTAMP"),
            autostart=_env_bool("TRIAGE_AUTOSTART", "true"),
        )

        policy = PolicyConfig(
            scan_delay_seconds=float(os.getenv("TRIAGE_SCAN_DELAY", "0.8")),
            auto_pilot_default=_env_bool("TRIAGE_AUTO_PILOT", "true"),
            audit_log_max_lines=_env_optional_int("TRIAGE_AUDIT_LOG_MAX"),
        )

        correlation = CorrelationConfig(
            high_confidence_threshold=float(os.getenv("TRIAGE_HIGH_CONFIDENCE", "0.8")),
        )

        synthesis = SynthesisConfig(
            malicious_threshold=float(os.getenv("TRIAGE_MALICIOUS_THRESHOLD", "0.65")),
            tamper_threshold=float(os.getenv("TRIAGE_TAMPER_THRESHOLD", "0.8")),
            critical_threshold=float(os.getenv("TRIAGE_CRITICAL_THRESHOLD", "0.6")),
            seed=_env_optional_int("TRIAGE_SEED"),
        )

        report = ReportConfig(
            case_id=os.getenv("TRIAGE_CASE_ID", "2026-AUTO-99"),
        )

        log_file = os.getenv("TRIAGE_LOG_FILE")
        log = LogConfig(
            level=os.getenv("TRIAGE_LOG_LEVEL", "INFO"),
            file_path=Path(log_file) if log_file else None,
        )

        return cls(
            stream=stream,
            policy=policy,
            correlation=correlation,
            synthesis=synthesis,
            report=report,
            log=log,
            debug=_env_bool("TRIAGE_DEBUG", "false"),
            api_host=os.getenv("TRIAGE_API_HOST", "127.0.0.1"),
            api_port=int(os.getenv("TRIAGE_API_PORT", "8765")),
        )


# ============================================================================
# Global Configuration Singleton
# ============================================================================

_config: Optional[TriageConfig] = None


def get_config() -> TriageConfig:
    """
    Get the global configuration instance.

    Built from the environment on first access, then reused.
    """
    global _config
    if _config is None:
        _config = TriageConfig.from_env()
    return _config


def set_config(config: Optional[TriageConfig]) -> None:
    """
    Replace the global configuration (mainly used for testing).

    Passing None makes the next get_config() call re-read the environment.
    """
    global _config
    _config = config


def setup_logging(config: Optional[TriageConfig] = None) -> None:
    """
    Configure Python's logging system based on our settings.

    Console output always; a rotating file when LogConfig.file_path is set.
    Call this once at application startup.
    """
    cfg = config or get_config()

    handlers: List[logging.Handler] = [logging.StreamHandler()]

    if cfg.log.file_path is not None:
        from logging.handlers import RotatingFileHandler
        cfg.log.file_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            cfg.log.file_path,
            maxBytes=cfg.log.max_file_size_mb * 1024 * 1024,
            backupCount=cfg.log.backup_count,
        )
        handlers.append(file_handler)

    level = "DEBUG" if cfg.debug else cfg.log.level
    logging.basicConfig(
        level=getattr(logging, level.upper()),
        format=cfg.log.format,
        handlers=handlers,
        force=True,
    )
    logger.debug(f"[Config] Logging configured at {level.upper()}")
