"""Root-cause categories of a reconstructed error."""

from __future__ import annotations

from collections.abc import Iterable
from enum import StrEnum

from cgplens.analysis.facts import AlternateImplHint, DiagnosticFact, MissingField


class RootCause(StrEnum):
    UNKNOWN = "unknown"
    MISSING_FIELD = "missing_field"
    MISSING_FIELD_OR_DERIVATION = "missing_field_or_derivation"
    UNRESOLVED_PROVIDER = "unresolved_provider"
    PASS_THROUGH = "pass_through"

    @property
    def is_field_outcome(self) -> bool:
        return self in (RootCause.MISSING_FIELD, RootCause.MISSING_FIELD_OR_DERIVATION)


def classify_root_cause(facts: Iterable[DiagnosticFact]) -> RootCause:
    """Pick the category for the facts of one merged error.

    A reported missing field is the root cause; a `HasField` hint for
    another tag makes that outcome ambiguous with a missing derive.
    """
    facts = list(facts)
    if not any(isinstance(f, MissingField) for f in facts):
        return RootCause.UNRESOLVED_PROVIDER
    if any(isinstance(f, AlternateImplHint) and f.anchored for f in facts):
        return RootCause.MISSING_FIELD_OR_DERIVATION
    return RootCause.MISSING_FIELD
