"""Reader for `cargo --message-format=json` streams.

Each line of the stream is one JSON object tagged with a ``reason``. Only
``compiler-message`` lines carry a diagnostic; every other line (artifacts,
build-script output, ``build-finished``, plain text) is kept verbatim so it
can be echoed unchanged.
"""

from __future__ import annotations

import json
from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from typing import Any

from cgplens.diagnostics.models import CompilerDiagnostic

COMPILER_MESSAGE = "compiler-message"


@dataclass(frozen=True, slots=True)
class CargoMessage:
    """One line of the message stream."""

    line: str
    reason: str | None = None
    envelope: dict[str, Any] | None = None
    diagnostic: CompilerDiagnostic | None = None
    parse_error: str | None = None

    @property
    def is_compiler_message(self) -> bool:
        return self.diagnostic is not None

    def with_diagnostic(self, diagnostic: CompilerDiagnostic) -> dict[str, Any]:
        """This message's envelope carrying a different diagnostic."""
        envelope = dict(self.envelope or {"reason": COMPILER_MESSAGE})
        envelope["message"] = diagnostic.to_dict()
        return envelope


def parse_message_line(line: str) -> CargoMessage:
    """Parse one stream line. Never raises: bad lines carry ``parse_error``."""
    stripped = line.rstrip("\r\n")
    if not stripped.lstrip().startswith("{"):
        return CargoMessage(line=stripped)
    try:
        data = json.loads(stripped)
    except json.JSONDecodeError as e:
        return CargoMessage(line=stripped, parse_error=f"JSON parse error: {e}")
    if not isinstance(data, dict):
        return CargoMessage(line=stripped, parse_error="message is not a JSON object")

    reason = data.get("reason") if isinstance(data.get("reason"), str) else None
    diagnostic = None
    if reason == COMPILER_MESSAGE and isinstance(data.get("message"), dict):
        diagnostic = CompilerDiagnostic.from_dict(data["message"])
    elif reason is None and "$message_type" in data:
        # Bare rustc diagnostic (rustc --error-format=json)
        diagnostic = CompilerDiagnostic.from_dict(data)
    return CargoMessage(line=stripped, reason=reason, envelope=data, diagnostic=diagnostic)


def parse_message_stream(lines: Iterable[str]) -> Iterator[CargoMessage]:
    """Parse a stream lazily, skipping blank lines."""
    for line in lines:
        if not line.strip():
            continue
        yield parse_message_line(line)
