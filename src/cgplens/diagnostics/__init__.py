"""Diagnostics module - the compiler's structured diagnostic model."""

from cgplens.diagnostics.models import (
    CompilerDiagnostic,
    DiagnosticSpan,
    SourceLocation,
    SpanLine,
)
from cgplens.diagnostics.parsers import CargoMessage, parse_message_line, parse_message_stream

__all__ = [
    "CargoMessage",
    "CompilerDiagnostic",
    "DiagnosticSpan",
    "SourceLocation",
    "SpanLine",
    "parse_message_line",
    "parse_message_stream",
]
