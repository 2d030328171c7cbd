"""Root conftest.py for test configuration.

Ensures local src/ directory takes priority over any installed packages, and
provides the `rustc` factory for compiler diagnostics in JSON form.
"""

import json
import sys
from collections.abc import Sequence
from pathlib import Path
from typing import Any

import pytest

# Insert local src directory at the beginning of sys.path
# This ensures that the local cgplens package is used, not any installed one
_src_dir = Path(__file__).parent.parent / "src"
if str(_src_dir) not in sys.path:
    sys.path.insert(0, str(_src_dir))

# Force reimport of cgplens modules if already imported
for module_name in list(sys.modules.keys()):
    if module_name.startswith("cgplens"):
        del sys.modules[module_name]

SOURCE_FILE = "src/lib.rs"


def symbol(name: str, hidden: Sequence[int] = ()) -> str:
    """Type-level field name as the compiler prints it. Hidden positions print `_`."""
    chars = "Nil"
    for index in range(len(name) - 1, -1, -1):
        ch = name[index]
        if index in hidden:
            literal = "_"
        elif ch in ("'", "\\"):
            literal = f"'\\{ch}'"
        else:
            literal = f"'{ch}'"
        chars = f"Chars<{literal}, {chars}>"
    return f"Symbol<{len(name)}, {chars}>"


def has_field(name: str, hidden: Sequence[int] = ()) -> str:
    return f"HasField<{symbol(name, hidden)}>"


class RustcFactory:
    """Builds diagnostics in the rustc JSON shape, as plain dicts."""

    file_name = SOURCE_FILE
    symbol = staticmethod(symbol)
    has_field = staticmethod(has_field)

    def span(
        self,
        line: int,
        column: int = 9,
        *,
        width: int = 10,
        primary: bool = True,
        label: str | None = None,
        text: str | None = None,
        file_name: str | None = None,
    ) -> dict[str, Any]:
        source = text if text is not None else " " * (column - 1) + "X" * width
        return {
            "file_name": file_name or self.file_name,
            "byte_start": line * 100 + column,
            "byte_end": line * 100 + column + width,
            "line_start": line,
            "line_end": line,
            "column_start": column,
            "column_end": column + width,
            "is_primary": primary,
            "text": [
                {"text": source, "highlight_start": column, "highlight_end": column + width}
            ],
            "label": label,
            "suggested_replacement": None,
            "suggestion_applicability": None,
            "expansion": None,
        }

    def child(
        self, level: str, message: str, at: int | None = None, column: int = 1
    ) -> dict[str, Any]:
        return {
            "$message_type": "diagnostic",
            "message": message,
            "code": None,
            "level": level,
            "spans": [self.span(at, column, label="required by this bound")] if at else [],
            "children": [],
            "rendered": None,
        }

    def note(self, message: str, at: int | None = None) -> dict[str, Any]:
        return self.child("note", message, at)

    def help(self, message: str, at: int | None = None) -> dict[str, Any]:
        return self.child("help", message, at)

    def required_for(self, subject: str, trait: str, at: int | None = None) -> dict[str, Any]:
        return self.note(f"required for `{subject}` to implement `{trait}`", at)

    def required_by_bound(self, check: str) -> dict[str, Any]:
        return self.note(f"required by a bound in `{check}`")

    def not_implemented(
        self, trait: str, subject: str, *, but: str | None = None, at: int | None = None
    ) -> dict[str, Any]:
        message = f"the trait `{trait}` is not implemented for `{subject}`"
        if but is not None:
            message += f"\nbut trait `{but}` is implemented for it"
        return self.help(message, at)

    def diagnostic(
        self,
        message: str,
        *,
        line: int | None = None,
        column: int = 9,
        children: Sequence[dict[str, Any]] = (),
        level: str = "error",
        code: str | None = "E0277",
    ) -> dict[str, Any]:
        spans = [self.span(line, column, label="unsatisfied trait bound")] if line else []
        header = f"{level}[{code}]" if code else level
        rendered = f"{header}: {message}\n"
        if line:
            rendered += f"  --> {self.file_name}:{line}:{column}\n"
        return {
            "$message_type": "diagnostic",
            "message": message,
            "code": {"code": code, "explanation": None} if code else None,
            "level": level,
            "spans": spans,
            "children": list(children),
            "rendered": rendered,
        }

    def bound(
        self,
        subject: str,
        trait: str,
        *,
        line: int | None,
        children: Sequence[dict[str, Any]] = (),
    ) -> dict[str, Any]:
        return self.diagnostic(
            f"the trait bound `{subject}: {trait}` is not satisfied",
            line=line,
            children=children,
        )

    def check_use(self, context: str, marker: str, check: str, line: int) -> dict[str, Any]:
        """`check_components!` failure naming the component itself."""
        return self.bound(
            context,
            f"CanUseComponent<{marker}>",
            line=line,
            children=[self.required_by_bound(check)],
        )

    def field_chain(
        self,
        context: str,
        field_name: str,
        requirements: Sequence[tuple[str, str]],
        check: str,
        line: int,
        *,
        implemented: str | None = None,
        definition: int | None = None,
        hidden: Sequence[int] = (),
    ) -> dict[str, Any]:
        """A missing `HasField` with its "required for" notes, deepest first."""
        trait = has_field(field_name, hidden)
        return self.bound(
            context,
            trait,
            line=line,
            children=[
                self.not_implemented(
                    trait,
                    context,
                    but=has_field(implemented) if implemented else None,
                    at=definition,
                ),
                *(self.required_for(subject, t) for subject, t in requirements),
                self.required_by_bound(check),
            ],
        )

    def provider_chain(
        self,
        subject: str,
        trait: str,
        requirements: Sequence[tuple[str, str] | tuple[str, str, int]],
        check: str,
        line: int,
    ) -> dict[str, Any]:
        """An unimplemented provider trait; a third tuple item is a note location."""
        notes = [self.required_for(*req) for req in requirements]
        return self.bound(
            subject,
            trait,
            line=line,
            children=[
                self.not_implemented(trait, subject),
                *notes,
                self.required_by_bound(check),
            ],
        )

    def plain_error(self, message: str = "mismatched types", line: int = 12) -> dict[str, Any]:
        return self.diagnostic(message, line=line, code="E0308")

    def cargo_line(self, diagnostic: dict[str, Any]) -> str:
        return json.dumps(
            {
                "reason": "compiler-message",
                "package_id": "shapes 0.1.0 (path+file:///work/shapes)",
                "manifest_path": "/work/shapes/Cargo.toml",
                "target": {
                    "kind": ["lib"],
                    "name": "shapes",
                    "src_path": "/work/shapes/src/lib.rs",
                },
                "message": diagnostic,
            }
        )


@pytest.fixture
def rustc() -> RustcFactory:
    """Factory for rustc JSON diagnostics."""
    return RustcFactory()
