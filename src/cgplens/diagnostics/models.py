"""Structured compiler diagnostics, in the shape rustc emits them as JSON."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


def _opt_int(value: Any) -> int | None:
    return value if isinstance(value, int) and not isinstance(value, bool) else None


def _opt_str(value: Any) -> str | None:
    return value if isinstance(value, str) else None


@dataclass(frozen=True, slots=True)
class SourceLocation:
    """A file position, 1-based like the compiler reports it."""

    file: str
    line: int
    column: int

    def __str__(self) -> str:
        return f"{self.file}:{self.line}:{self.column}"

    @property
    def short(self) -> str:
        """`file:line` form used in prose."""
        return f"{self.file}:{self.line}"


@dataclass(frozen=True, slots=True)
class SpanLine:
    """One source line covered by a span."""

    text: str
    highlight_start: int
    highlight_end: int

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SpanLine:
        return cls(
            text=_opt_str(data.get("text")) or "",
            highlight_start=_opt_int(data.get("highlight_start")) or 1,
            highlight_end=_opt_int(data.get("highlight_end")) or 1,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "text": self.text,
            "highlight_start": self.highlight_start,
            "highlight_end": self.highlight_end,
        }


@dataclass(frozen=True, slots=True)
class DiagnosticSpan:
    """A labeled source range attached to a diagnostic."""

    file_name: str
    line_start: int
    line_end: int
    column_start: int
    column_end: int
    is_primary: bool = False
    byte_start: int = 0
    byte_end: int = 0
    label: str | None = None
    text: tuple[SpanLine, ...] = ()

    @property
    def location(self) -> SourceLocation:
        return SourceLocation(self.file_name, self.line_start, self.column_start)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> DiagnosticSpan:
        line_start = _opt_int(data.get("line_start")) or 1
        column_start = _opt_int(data.get("column_start")) or 1
        return cls(
            file_name=_opt_str(data.get("file_name")) or "<unknown>",
            line_start=line_start,
            line_end=_opt_int(data.get("line_end")) or line_start,
            column_start=column_start,
            column_end=_opt_int(data.get("column_end")) or column_start,
            is_primary=bool(data.get("is_primary", False)),
            byte_start=_opt_int(data.get("byte_start")) or 0,
            byte_end=_opt_int(data.get("byte_end")) or 0,
            label=_opt_str(data.get("label")),
            text=tuple(
                SpanLine.from_dict(line)
                for line in data.get("text") or []
                if isinstance(line, dict)
            ),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "file_name": self.file_name,
            "byte_start": self.byte_start,
            "byte_end": self.byte_end,
            "line_start": self.line_start,
            "line_end": self.line_end,
            "column_start": self.column_start,
            "column_end": self.column_end,
            "is_primary": self.is_primary,
            "text": [line.to_dict() for line in self.text],
            "label": self.label,
            "suggested_replacement": None,
            "suggestion_applicability": None,
            "expansion": None,
        }


@dataclass(frozen=True, slots=True)
class CompilerDiagnostic:
    """A diagnostic with nested note/help children.

    ``raw`` keeps the mapping a diagnostic was decoded from so it can be
    re-emitted byte-for-byte; it does not take part in equality.
    """

    level: str
    message: str
    code: str | None = None
    spans: tuple[DiagnosticSpan, ...] = ()
    children: tuple[CompilerDiagnostic, ...] = ()
    rendered: str | None = None
    raw: dict[str, Any] | None = field(default=None, compare=False, repr=False)

    @property
    def is_error(self) -> bool:
        return self.level.startswith("error")

    @property
    def text(self) -> str:
        """The compiler's rendered text, or the bare header when it sent none."""
        return (self.rendered or f"{self.level}: {self.message}").rstrip("\n")

    @property
    def primary_span(self) -> DiagnosticSpan | None:
        for span in self.spans:
            if span.is_primary:
                return span
        return None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> CompilerDiagnostic:
        """Decode the rustc JSON diagnostic shape; missing fields get defaults."""
        code_obj = data.get("code")
        code = _opt_str(code_obj.get("code")) if isinstance(code_obj, dict) else None
        return cls(
            level=_opt_str(data.get("level")) or "error",
            message=_opt_str(data.get("message")) or "",
            code=code,
            spans=tuple(
                DiagnosticSpan.from_dict(s) for s in data.get("spans") or [] if isinstance(s, dict)
            ),
            children=tuple(
                cls.from_dict(c) for c in data.get("children") or [] if isinstance(c, dict)
            ),
            rendered=_opt_str(data.get("rendered")),
            raw=data,
        )

    def to_dict(self) -> dict[str, Any]:
        if self.raw is not None:
            return self.raw
        return {
            "$message_type": "diagnostic",
            "message": self.message,
            "code": {"code": self.code, "explanation": None} if self.code else None,
            "level": self.level,
            "spans": [s.to_dict() for s in self.spans],
            "children": [c.to_dict() for c in self.children],
            "rendered": self.rendered,
        }
