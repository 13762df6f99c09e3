"""Structured error taxonomy for the triage engine."""
#
from enum import Enum
from typing import Dict, Any, Optional
# PURPOSE:
# Every rejected operation in the engine raises one of the typed exceptions
# below. Each carries an ErrorCode, a message, a details dict and a suggested
# HTTP status so the service layer can render it without guessing.
#
# ERROR CODE FORMAT:
# - ARTIFACT_XXX: Artifact store / model invariants and references
# - ENGINE_XXX: Engine lifecycle
# - CONFIG_XXX: Configuration
# - SYSTEM_XXX: Anything else
#
# USAGE:
#   from triage.errors import UnknownArtifactReference, ErrorCode
#
#   raise UnknownArtifactReference(
#       ErrorCode.ARTIFACT_NOT_FOUND,
#       "No artifact with id ART-XYZ123",
#       details={"artifact_id": "ART-XYZ123"}
#   )
#
class ErrorCode(Enum):
    # Artifact Errors
    ARTIFACT_DUPLICATE_ID = "ARTIFACT_001"
    ARTIFACT_NON_MONOTONIC = "ARTIFACT_002"
    ARTIFACT_IMMUTABLE_FIELD = "ARTIFACT_003"
    ARTIFACT_CAP_EXCEEDED = "ARTIFACT_004"
    ARTIFACT_NOT_FOUND = "ARTIFACT_005"

    # Engine Errors
    ENGINE_STOPPED = "ENGINE_001"
    ENGINE_ALREADY_RUNNING = "ENGINE_002"

    # Config Errors
    CONFIG_INVALID = "CONFIG_001"

    # System Errors
    SYSTEM_INTERNAL_ERROR = "SYSTEM_001"


class TriageError(Exception):
    """
    Base exception class for the triage engine with structured error information.

    Attributes:
        code: ErrorCode enum value (e.g., "ARTIFACT_001")
        message: Human-readable error message
        details: Optional dictionary with additional context
        http_status: Suggested HTTP status code for API responses
    """

    HTTP_STATUS_MAP: Dict[ErrorCode, int] = {
        ErrorCode.ARTIFACT_DUPLICATE_ID: 422,
        ErrorCode.ARTIFACT_NON_MONOTONIC: 422,
        ErrorCode.ARTIFACT_IMMUTABLE_FIELD: 422,
        ErrorCode.ARTIFACT_CAP_EXCEEDED: 422,
        ErrorCode.ARTIFACT_NOT_FOUND: 404,

        ErrorCode.ENGINE_STOPPED: 409,          # Conflict
        ErrorCode.ENGINE_ALREADY_RUNNING: 409,

        ErrorCode.CONFIG_INVALID: 500,

        ErrorCode.SYSTEM_INTERNAL_ERROR: 500,
    }

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        http_status: Optional[int] = None
    ):
        self.code = code
        self.message = message
        self.details = details or {}
        self.http_status = http_status or self.HTTP_STATUS_MAP.get(code, 500)

        # Build exception message with code for easy debugging
        super().__init__(f"[{code.value}] {message}")

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert error to dictionary for JSON serialization.

        Returns:
            Dictionary with code, message, details, and http_status
        """
        return {
            "code": self.code.value,
            "message": self.message,
            "details": self.details,
            "http_status": self.http_status
        }

    def to_json(self) -> str:
        """Serialize error to JSON string."""
        import json
        return json.dumps(self.to_dict(), default=str)


class InvariantViolation(TriageError):
    """Duplicate id, out-of-order timestamp, immutable field write, or cap overflow."""


class UnknownArtifactReference(TriageError):
    """Raised when an operation names an artifact id that is not in the store."""

    def __init__(self, artifact_id: str):
        super().__init__(
            ErrorCode.ARTIFACT_NOT_FOUND,
            f"No artifact with id {artifact_id}",
            details={"artifact_id": artifact_id},
        )
        self.artifact_id = artifact_id


class LifecycleMisuse(TriageError):
    """Raised when the engine is driven outside its start/stop lifecycle."""


def handle_error(error: Exception, context: Optional[str] = None) -> TriageError:
    """
    Convert a generic exception to a TriageError.

    Args:
        error: The original exception
        context: Optional context string (e.g., "while delivering snapshot")

    Returns:
        TriageError with SYSTEM_INTERNAL_ERROR unless it already was one
    """
    if isinstance(error, TriageError):
        return error

    message = str(error)
    if context:
        message = f"{context}: {message}"

    return TriageError(
        code=ErrorCode.SYSTEM_INTERNAL_ERROR,
        message=message,
        details={
            "original_type": type(error).__name__,
            "original_message": str(error)
        }
    )


__all__ = [
    "ErrorCode",
    "TriageError",
    "InvariantViolation",
    "UnknownArtifactReference",
    "LifecycleMisuse",
    "handle_error",
]
