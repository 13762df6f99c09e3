import logging

import pytest

from triage.base.config import (
    LogConfig,
    PolicyConfig,
    StreamConfig,
    SynthesisConfig,
    TriageConfig,
    get_config,
    set_config,
    setup_logging,
)
from triage.errors import ErrorCode, TriageError


def test_defaults():
    config = TriageConfig()
    assert config.stream.tick_interval_seconds == 4.0
    assert config.stream.artifact_cap == 30
    assert config.policy.scan_delay_seconds == 0.8
    assert config.policy.auto_pilot_default is True
    assert config.correlation.high_confidence_threshold == 0.8
    assert config.synthesis.malicious_threshold == 0.65
    assert config.report.case_id == "2026-AUTO-99"


def test_from_env(monkeypatch):
    monkeypatch.setenv("TRIAGE_TICK_INTERVAL", "1.5")
    monkeypatch.setenv("TRIAGE_ARTIFACT_CAP", "12")
    monkeypatch.setenv("TRIAGE_START_TIMESTAMP", "1700000000")
    monkeypatch.setenv("TRIAGE_SCAN_DELAY", "0.2")
    monkeypatch.setenv("TRIAGE_AUTO_PILOT", "false")
    monkeypatch.setenv("TRIAGE_AUDIT_LOG_MAX", "50")
    monkeypatch.setenv("TRIAGE_HIGH_CONFIDENCE", "0.9")
    monkeypatch.setenv("TRIAGE_SEED", "7")
    monkeypatch.setenv("TRIAGE_API_PORT", "9000")

    config = TriageConfig.from_env()

    assert config.stream.tick_interval_seconds == 1.5
    assert config.stream.artifact_cap == 12
    assert config.stream.start_timestamp == 1700000000.0
    assert config.policy.scan_delay_seconds == 0.2
    assert config.policy.auto_pilot_default is False
    assert config.policy.audit_log_max_lines == 50
    assert config.correlation.high_confidence_threshold == 0.9
    assert config.synthesis.seed == 7
    assert config.api_port == 9000


def test_blank_optional_env_means_unset(monkeypatch):
    monkeypatch.setenv("TRIAGE_START_TIMESTAMP", "")
    monkeypatch.delenv("TRIAGE_SEED", raising=False)
    config = TriageConfig.from_env()
    assert config.stream.start_timestamp is None
    assert config.synthesis.seed is None


@pytest.mark.parametrize("build", [
    lambda: StreamConfig(artifact_cap=0),
    lambda: StreamConfig(tick_interval_seconds=0),
    lambda: PolicyConfig(scan_delay_seconds=-1),
    lambda: PolicyConfig(audit_log_max_lines=0),
    lambda: SynthesisConfig(malicious_threshold=1.5),
    lambda: SynthesisConfig(min_delta_seconds=100, max_delta_seconds=50),
])
def test_invalid_values_rejected(build):
    with pytest.raises(TriageError) as exc:
        build()
    assert exc.value.code == ErrorCode.CONFIG_INVALID


def test_global_config_singleton(monkeypatch):
    monkeypatch.setenv("TRIAGE_ARTIFACT_CAP", "7")
    first = get_config()
    assert first is get_config()
    assert first.stream.artifact_cap == 7

    custom = TriageConfig(stream=StreamConfig(artifact_cap=3))
    set_config(custom)
    assert get_config() is custom


def test_setup_logging_writes_rotating_file(tmp_path):
    log_file = tmp_path / "logs" / "triage.log"
    setup_logging(TriageConfig(log=LogConfig(level="INFO", file_path=log_file)))
    try:
        logging.getLogger("triage.test").info("[Test] hello")
        for handler in logging.getLogger().handlers:
            handler.flush()
        assert "[Test] hello" in log_file.read_text()
    finally:
        root = logging.getLogger()
        for handler in list(root.handlers):
            root.removeHandler(handler)
            handler.close()
