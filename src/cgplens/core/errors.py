"""cgp-lens error types with typed error codes.

Error code ranges:
- 2xxx: Config
- 3xxx: Analysis
- 9xxx: Internal
"""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any


class ErrorCode(IntEnum):
    """Typed error codes for programmatic handling."""

    # Config (2xxx)
    CONFIG_PARSE_ERROR = 2001
    CONFIG_INVALID_VALUE = 2002

    # Analysis (3xxx)
    ANALYSIS_INCONSISTENT_CONTEXT = 3001
    ANALYSIS_SESSION_FINALIZED = 3002

    # Internal (9xxx)
    INTERNAL_ERROR = 9001


@dataclass(frozen=True, slots=True)
class CgpLensError(Exception):
    """Base error with structured context."""

    code: ErrorCode
    message: str
    details: dict[str, Any] = field(default_factory=dict)

    @property
    def error_name(self) -> str:
        """String identifier for logging (e.g., 'CONFIG_PARSE_ERROR')."""
        return self.code.name

    def to_dict(self) -> dict[str, Any]:
        """Serialize for JSON output."""
        return {
            "code": self.code.value,
            "error": self.error_name,
            "message": self.message,
            "details": self.details,
        }

    def __str__(self) -> str:
        return f"[{self.code.value}] {self.error_name}: {self.message}"


class ConfigError(CgpLensError):
    """Configuration-related errors."""

    @classmethod
    def parse_error(cls, path: str, reason: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_PARSE_ERROR,
            message=f"Failed to parse config at {path}: {reason}",
            details={"path": path, "reason": reason},
        )

    @classmethod
    def invalid_value(cls, field: str, value: Any, reason: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_INVALID_VALUE,
            message=f"Invalid value for '{field}': {reason}",
            details={"field": field, "value": str(value), "reason": reason},
        )


class AnalysisError(CgpLensError):
    """Errors raised while reconstructing a logical error.

    An ``AnalysisError`` never aborts a run: the affected logical error is
    rendered as its raw diagnostics instead.
    """

    @classmethod
    def inconsistent_context(cls, expected: str | None, found: str, where: str) -> "AnalysisError":
        return cls(
            code=ErrorCode.ANALYSIS_INCONSISTENT_CONTEXT,
            message=f"Context `{found}` in {where} disagrees with `{expected}`",
            details={"expected": expected, "found": found, "where": where},
        )

    @classmethod
    def session_finalized(cls, run_id: str) -> "AnalysisError":
        return cls(
            code=ErrorCode.ANALYSIS_SESSION_FINALIZED,
            message=f"Analysis session {run_id} was already finalized",
            details={"run_id": run_id},
        )


class InternalError(CgpLensError):
    """Internal/unexpected errors."""

    @classmethod
    def unexpected(cls, reason: str, **details: Any) -> "InternalError":
        return cls(
            code=ErrorCode.INTERNAL_ERROR,
            message=f"Internal error: {reason}",
            details=details,
        )
