"""Pydantic configuration models with env var support.

Configuration Hierarchy (highest to lowest precedence):
1. Direct kwargs to load_config()
2. Environment variables (CGPLENS__SECTION__KEY)
3. Project YAML (.cgplens.yaml)
4. Global YAML (~/.config/cgplens/config.yaml)
5. Built-in defaults (this file)

Environment Variable Format:
    CGPLENS__<SECTION>__<KEY>=<VALUE>

Examples:
    CGPLENS__LOGGING__LEVEL=DEBUG
    CGPLENS__RENDER__CHARSET=ascii
    CGPLENS__RENDER__COLOR=never
"""

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, field_validator

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
ColorMode = Literal["auto", "always", "never"]
Charset = Literal["unicode", "ascii"]
MessageFormat = Literal["human", "json"]


class LogOutputConfig(BaseModel):
    """Single logging output configuration."""

    format: Literal["json", "console"] = "console"
    destination: str = "stderr"  # stderr, stdout, or absolute file path
    level: LogLevel | None = None  # Inherits from parent if None

    @field_validator("destination")
    @classmethod
    def validate_destination(cls, v: str) -> str:
        if v in ("stderr", "stdout"):
            return v
        path = Path(v).expanduser()
        if not path.is_absolute():
            raise ValueError(f"File destination must be absolute path: {v}")
        return str(path)


class LoggingConfig(BaseModel):
    """Logging configuration.

    Env vars:
        CGPLENS__LOGGING__LEVEL: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """

    level: LogLevel = Field(
        default="WARNING",
        description="Root log level. DEBUG traces every classification and merge.",
    )
    outputs: list[LogOutputConfig] = Field(default_factory=lambda: [LogOutputConfig()])


class RenderConfig(BaseModel):
    """Rendering of reconstructed diagnostics.

    Env vars:
        CGPLENS__RENDER__COLOR: auto, always or never
        CGPLENS__RENDER__CHARSET: unicode or ascii tree glyphs
        CGPLENS__RENDER__MESSAGE_FORMAT: human or json
    """

    color: ColorMode = Field(
        default="auto",
        description="Colorize human output. 'auto' defers to the terminal.",
    )
    charset: Charset = Field(
        default="unicode",
        description="Glyphs used to draw the dependency tree.",
    )
    message_format: MessageFormat = Field(
        default="human",
        description="human prints rendered text; json re-emits cargo messages.",
    )
    show_source: bool = Field(
        default=True,
        description="Include the source snippet under each primary span.",
    )
    tab_width: int = Field(
        default=4,
        description="Columns a tab expands to in source snippets.",
    )

    @field_validator("tab_width")
    @classmethod
    def validate_tab_width(cls, v: int) -> int:
        if not (1 <= v <= 16):
            raise ValueError(f"tab_width must be 1-16, got {v}")
        return v


class CgpLensConfig(BaseModel):
    """Root configuration."""

    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    render: RenderConfig = Field(default_factory=RenderConfig)
