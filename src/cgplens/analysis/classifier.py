"""Diagnostic classifier - hold library-related diagnostics, pass the rest."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum

from cgplens.analysis.extractors import extract_facts
from cgplens.analysis.facts import DiagnosticFact
from cgplens.diagnostics.models import CompilerDiagnostic


class Classification(StrEnum):
    HELD = "held"
    PASS_THROUGH = "pass_through"


@dataclass(frozen=True, slots=True)
class ClassificationOutcome:
    """Result of classifying one diagnostic.

    A pass-through outcome carries the very object that was classified.
    """

    kind: Classification
    diagnostic: CompilerDiagnostic
    facts: tuple[DiagnosticFact, ...] = field(default=())

    @property
    def held(self) -> bool:
        return self.kind is Classification.HELD


def classify(diagnostic: CompilerDiagnostic) -> ClassificationOutcome:
    """Library-related iff at least one anchored fact is extracted."""
    facts = extract_facts(diagnostic)
    if any(fact.anchored for fact in facts):
        return ClassificationOutcome(Classification.HELD, diagnostic, tuple(facts))
    return ClassificationOutcome(Classification.PASS_THROUGH, diagnostic)
