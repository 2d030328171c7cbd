"""Diagnostic database - merges raw diagnostics into logical errors.

A logical error is identified by (primary span, root context). Lookup-or-
create is the only way to obtain one; entries are never deleted or merged
with each other.
"""

from __future__ import annotations

from collections.abc import Iterator, Sequence
from dataclasses import dataclass, field

import structlog

from cgplens.analysis.chain import build_chain, root_context
from cgplens.analysis.facts import DiagnosticFact
from cgplens.analysis.registry import ComponentNameRegistry
from cgplens.analysis.root_cause import RootCause
from cgplens.diagnostics.models import CompilerDiagnostic, SourceLocation

log = structlog.get_logger(__name__)

ErrorKey = tuple[SourceLocation | None, str | None]


@dataclass(frozen=True, slots=True)
class DiagnosticRecord:
    """One raw diagnostic that contributed to a logical error."""

    diagnostic: CompilerDiagnostic
    facts: tuple[DiagnosticFact, ...]
    seq: int


@dataclass(eq=False)
class LogicalError:
    """A deduplicated user-facing error assembled from raw diagnostics."""

    span: SourceLocation | None
    context: str | None
    first_seen: int
    records: list[DiagnosticRecord] = field(default_factory=list)
    collisions: list[ErrorKey] = field(default_factory=list)
    root_cause: RootCause = RootCause.UNKNOWN
    tree: frozenset[int] | None = None
    _facts: dict[DiagnosticFact, None] = field(default_factory=dict, repr=False)

    @property
    def key(self) -> ErrorKey:
        return (self.span, self.context)

    @property
    def facts(self) -> tuple[DiagnosticFact, ...]:
        """Contributing facts, deduplicated, in first-seen order."""
        return tuple(self._facts)

    @property
    def diagnostics(self) -> tuple[CompilerDiagnostic, ...]:
        return tuple(r.diagnostic for r in self.records)

    def absorb(self, record: DiagnosticRecord) -> None:
        self.records.append(record)
        for fact in record.facts:
            self._facts.setdefault(fact, None)


class DiagnosticDatabase:
    """Logical errors of one run, in first-seen order."""

    def __init__(self, registry: ComponentNameRegistry | None = None) -> None:
        self.registry = registry if registry is not None else ComponentNameRegistry()
        self._errors: list[LogicalError] = []

    def __iter__(self) -> Iterator[LogicalError]:
        return iter(self._errors)

    def __len__(self) -> int:
        return len(self._errors)

    @property
    def errors(self) -> list[LogicalError]:
        return list(self._errors)

    def merge(
        self, diagnostic: CompilerDiagnostic, facts: Sequence[DiagnosticFact], seq: int
    ) -> LogicalError:
        """Fold one held diagnostic into its logical error.

        Args:
            diagnostic: The raw diagnostic
            facts: Facts extracted from it
            seq: Stream sequence number of the diagnostic

        Returns:
            The logical error that now owns the diagnostic
        """
        primary = diagnostic.primary_span
        span = primary.location if primary else None
        context = root_context(facts)

        entry = self._lookup_or_create(span, context, seq)
        entry.absorb(DiagnosticRecord(diagnostic=diagnostic, facts=tuple(facts), seq=seq))
        self.registry.learn_from_chain(build_chain(facts, entry.context))

        log.debug(
            "logical_error_merged",
            seq=seq,
            span=str(span) if span else None,
            context=entry.context,
            records=len(entry.records),
        )
        return entry

    def _lookup_or_create(
        self, span: SourceLocation | None, context: str | None, seq: int
    ) -> LogicalError:
        if span is None and context is None:
            return self._create(span, context, seq)

        for entry in self._errors:
            if entry.span == span and entry.context == context:
                return entry

        same_span = [e for e in self._errors if e.span == span]
        if context is None and same_span:
            return same_span[0]

        unknown = [e for e in same_span if e.context is None]
        if context is not None and unknown:
            entry = unknown[0]
            self._enrich(entry, context)
            return entry

        return self._create(span, context, seq)

    def _enrich(self, entry: LogicalError, context: str) -> None:
        entry.context = context
        for other in self._errors:
            if other is not entry and other.key == entry.key:
                entry.collisions.append(other.key)
                log.debug("logical_error_collision", span=str(entry.span), context=context)

    def _create(self, span: SourceLocation | None, context: str | None, seq: int) -> LogicalError:
        entry = LogicalError(span=span, context=context, first_seen=seq)
        self._errors.append(entry)
        return entry
