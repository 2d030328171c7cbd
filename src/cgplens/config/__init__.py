"""Config module exports."""

from cgplens.config.loader import load_config
from cgplens.config.models import (
    CgpLensConfig,
    LoggingConfig,
    LogOutputConfig,
    RenderConfig,
)

__all__ = [
    "load_config",
    "CgpLensConfig",
    "LoggingConfig",
    "LogOutputConfig",
    "RenderConfig",
]
