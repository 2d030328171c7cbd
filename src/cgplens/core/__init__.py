"""Core module exports."""

from cgplens.core.errors import (
    AnalysisError,
    CgpLensError,
    ConfigError,
    ErrorCode,
    InternalError,
)
from cgplens.core.logging import (
    clear_run_id,
    configure_logging,
    get_log_file_path,
    get_run_id,
    set_run_id,
)

__all__ = [
    # Errors
    "AnalysisError",
    "CgpLensError",
    "ConfigError",
    "ErrorCode",
    "InternalError",
    # Logging
    "clear_run_id",
    "configure_logging",
    "get_log_file_path",
    "get_run_id",
    "set_run_id",
]
