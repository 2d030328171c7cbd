"""Tests for the diagnostic database."""

import itertools

from cgplens.analysis.classifier import classify
from cgplens.analysis.database import DiagnosticDatabase
from cgplens.analysis.facts import RequiredByBoundIn, UnsatisfiedBound
from cgplens.diagnostics.models import CompilerDiagnostic, SourceLocation


def _merge_all(database: DiagnosticDatabase, diagnostics: list[CompilerDiagnostic]) -> None:
    for seq, diagnostic in enumerate(diagnostics):
        outcome = classify(diagnostic)
        assert outcome.held
        database.merge(diagnostic, outcome.facts, seq)


class TestMerge:
    """Lookup-or-create by (span, context)."""

    def test_given_same_span_and_context_when_merged_then_one_error(
        self, missing_field_diagnostics: list[CompilerDiagnostic]
    ) -> None:
        """Check-contract and field diagnostics at one span fold together."""
        # Given
        database = DiagnosticDatabase()

        # When
        _merge_all(database, missing_field_diagnostics)

        # Then
        assert len(database) == 1
        error = database.errors[0]
        assert error.key == (SourceLocation("src/lib.rs", 66, 9), "Rectangle")
        assert error.first_seen == 0
        assert error.diagnostics == tuple(missing_field_diagnostics)

    def test_given_different_spans_when_merged_then_separate_errors(
        self, shared_chain_diagnostics: list[CompilerDiagnostic]
    ) -> None:
        database = DiagnosticDatabase()

        _merge_all(database, shared_chain_diagnostics)

        assert [e.span.line for e in database if e.span] == [66, 67]

    def test_given_duplicate_facts_when_merged_then_deduplicated(
        self, missing_field_diagnostics: list[CompilerDiagnostic]
    ) -> None:
        """The same fact from two diagnostics is kept once."""
        database = DiagnosticDatabase()

        _merge_all(database, missing_field_diagnostics)

        facts = database.errors[0].facts
        assert facts.count(RequiredByBoundIn("CanUseRectangle")) == 1
        assert len(facts) == len(set(facts))

    def test_given_sibling_facts_in_any_order_then_same_fact_set(
        self, alternate_field_diagnostics: list[CompilerDiagnostic]
    ) -> None:
        """Merge result does not depend on the order sibling diagnostics arrive in."""
        results = []
        for ordering in itertools.permutations(alternate_field_diagnostics):
            database = DiagnosticDatabase()
            _merge_all(database, list(ordering))
            assert len(database) == 1
            error = database.errors[0]
            results.append((error.key, frozenset(error.facts), len(error.records)))

        assert all(result == results[0] for result in results)

    def test_given_unknown_context_when_merged_then_joins_same_span(self) -> None:
        """A diagnostic without a context joins the error at its span."""
        # Given
        database = DiagnosticDatabase()
        span = {
            "file_name": "src/lib.rs",
            "line_start": 66,
            "column_start": 9,
            "is_primary": True,
        }
        with_context = CompilerDiagnostic.from_dict({"message": "a", "spans": [span]})
        without_context = CompilerDiagnostic.from_dict({"message": "b", "spans": [span]})

        # When
        bound = UnsatisfiedBound("Rectangle", "CanUseComponent<M>")
        first = database.merge(with_context, [bound], 0)
        second = database.merge(without_context, [RequiredByBoundIn("CanUseRectangle")], 1)

        # Then
        assert first is second
        assert len(database) == 1

    def test_given_later_context_when_merged_then_unknown_entry_enriched(self) -> None:
        """The first contextless entry at a span takes the context learned later."""
        database = DiagnosticDatabase()
        span = {
            "file_name": "src/lib.rs",
            "line_start": 66,
            "column_start": 9,
            "is_primary": True,
        }
        a = CompilerDiagnostic.from_dict({"message": "a", "spans": [span]})
        b = CompilerDiagnostic.from_dict({"message": "b", "spans": [span]})

        first = database.merge(a, [RequiredByBoundIn("CanUseRectangle")], 0)
        second = database.merge(b, [UnsatisfiedBound("Rectangle", "CanUseComponent<M>")], 1)

        assert first is second
        assert first.context == "Rectangle"
        assert first.collisions == []

    def test_given_no_span_and_no_context_then_new_entry_each_time(self) -> None:
        database = DiagnosticDatabase()
        diagnostic = CompilerDiagnostic(level="error", message="x")

        database.merge(diagnostic, [RequiredByBoundIn("A")], 0)
        database.merge(diagnostic, [RequiredByBoundIn("A")], 1)

        assert len(database) == 2

    def test_merge_teaches_registry(
        self, shared_chain_diagnostics: list[CompilerDiagnostic]
    ) -> None:
        database = DiagnosticDatabase()

        _merge_all(database, shared_chain_diagnostics)

        assert database.registry.consumer_name("AreaCalculatorComponent") == "CanCalculateArea"
