import json

from triage.errors import (
    ErrorCode,
    InvariantViolation,
    LifecycleMisuse,
    TriageError,
    UnknownArtifactReference,
    handle_error,
)


def test_error_carries_code_and_status():
    error = InvariantViolation(ErrorCode.ARTIFACT_CAP_EXCEEDED, "full", details={"capacity": 3})

    assert str(error) == "[ARTIFACT_004] full"
    assert error.http_status == 422
    assert error.to_dict() == {
        "code": "ARTIFACT_004",
        "message": "full",
        "details": {"capacity": 3},
        "http_status": 422,
    }
    assert json.loads(error.to_json())["code"] == "ARTIFACT_004"


def test_status_mapping():
    assert UnknownArtifactReference("ART-1").http_status == 404
    assert LifecycleMisuse(ErrorCode.ENGINE_STOPPED, "stopped").http_status == 409
    assert TriageError(ErrorCode.CONFIG_INVALID, "bad", http_status=400).http_status == 400


def test_handle_error_wraps_generic_exceptions():
    wrapped = handle_error(ValueError("nope"), context="GET /v1/graph")

    assert wrapped.code == ErrorCode.SYSTEM_INTERNAL_ERROR
    assert wrapped.http_status == 500
    assert "nope" in wrapped.message

    original = UnknownArtifactReference("ART-1")
    assert handle_error(original) is original
