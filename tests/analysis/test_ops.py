"""Tests for the analysis session API."""

from typing import Any

import pytest

from cgplens.analysis import RootCause, finalize, ingest, new_session
from cgplens.config.models import RenderConfig
from cgplens.core.errors import AnalysisError, ErrorCode
from cgplens.core.logging import clear_run_id, get_run_id
from cgplens.diagnostics.models import CompilerDiagnostic


@pytest.fixture(autouse=True)
def _reset_run_id() -> Any:
    yield
    clear_run_id()


class TestSession:
    """Lifecycle of one analysis run."""

    def test_new_session_sets_correlation_id(self) -> None:
        session = new_session("run-abc")

        assert session.run_id == "run-abc"
        assert get_run_id() == "run-abc"

    def test_generated_run_ids_differ(self) -> None:
        assert new_session().run_id != new_session().run_id

    def test_given_finalized_session_when_finalized_again_then_error(self) -> None:
        """A session renders once."""
        # Given
        session = new_session()
        finalize(session)

        # When / Then
        with pytest.raises(AnalysisError) as exc_info:
            finalize(session)
        assert exc_info.value.code == ErrorCode.ANALYSIS_SESSION_FINALIZED

    def test_given_finalized_session_when_ingesting_then_error(self, rustc: Any) -> None:
        session = new_session()
        finalize(session)

        with pytest.raises(AnalysisError) as exc_info:
            ingest(session, CompilerDiagnostic.from_dict(rustc.plain_error()))
        assert exc_info.value.code == ErrorCode.ANALYSIS_SESSION_FINALIZED

    def test_given_independent_sessions_then_no_shared_state(
        self, missing_field_diagnostics: list[CompilerDiagnostic]
    ) -> None:
        """Diagnostics ingested in one session never show up in another."""
        # Given
        first = new_session()
        second = new_session()

        # When
        for diagnostic in missing_field_diagnostics:
            ingest(first, diagnostic)

        # Then
        assert len(first.database) == 1
        assert len(second.database) == 0
        assert finalize(second) == []


class TestIngest:
    """Classification during ingest."""

    def test_given_unrelated_error_then_passed_through_immediately(self, rustc: Any) -> None:
        """Ordinary compiler errors are not held."""
        # Given
        session = new_session()
        diagnostic = CompilerDiagnostic.from_dict(rustc.plain_error())

        # When
        outcome = ingest(session, diagnostic)

        # Then
        assert not outcome.held
        assert outcome.diagnostic is diagnostic
        assert len(session.database) == 0
        assert finalize(session) == []

    def test_held_diagnostics_are_numbered_in_order(
        self, missing_field_diagnostics: list[CompilerDiagnostic], rustc: Any
    ) -> None:
        session = new_session()
        ingest(session, CompilerDiagnostic.from_dict(rustc.plain_error()))

        outcomes = [ingest(session, d) for d in missing_field_diagnostics]

        assert all(o.held for o in outcomes)
        assert session.next_seq == 3
        assert session.database.errors[0].first_seen == 1


class TestFinalize:
    """Rendering of a whole run."""

    def test_given_two_contexts_then_ordered_by_first_appearance(
        self, missing_field_diagnostics: list[CompilerDiagnostic], rustc: Any
    ) -> None:
        """Output follows the order errors were first seen in."""
        # Given
        session = new_session()
        square = CompilerDiagnostic.from_dict(
            rustc.field_chain(
                "Square",
                "side",
                [
                    ("Square", "HasSquareFields"),
                    ("SquareArea", "IsProviderFor<AreaCalculatorComponent, Square>"),
                    ("Square", "CanUseComponent<AreaCalculatorComponent>"),
                ],
                "CanUseSquare",
                70,
            )
        )

        # When
        for diagnostic in [square, *missing_field_diagnostics]:
            ingest(session, diagnostic)
        results = finalize(session)

        # Then
        assert [r.title for r in results] == [
            "missing field `side` in the context `Square`.",
            "missing field `height` in the context `Rectangle`.",
        ]
        assert [r.first_seen for r in results] == [0, 1]

    def test_given_inconsistent_error_then_sources_passed_through(
        self,
        inconsistent_context_diagnostics: list[CompilerDiagnostic],
        rustc: Any,
    ) -> None:
        """A broken logical error falls back to its raw diagnostics only."""
        # Given
        session = new_session()
        square = CompilerDiagnostic.from_dict(
            rustc.check_use("Square", "AreaCalculatorComponent", "CanUseSquare", 70)
        )
        broken = inconsistent_context_diagnostics[0]

        # When
        ingest(session, square)
        ingest(session, broken)
        results = finalize(session)

        # Then
        fallbacks = [r for r in results if r.is_pass_through]
        assert len(fallbacks) == 1
        assert fallbacks[0].sources[0] is broken
        assert fallbacks[0].root_cause is RootCause.PASS_THROUGH
        assert fallbacks[0].to_compiler_diagnostic() is broken
        assert any(not r.is_pass_through for r in results)

    def test_given_ascii_config_then_tree_uses_ascii(
        self, missing_field_diagnostics: list[CompilerDiagnostic]
    ) -> None:
        session = new_session()
        for diagnostic in missing_field_diagnostics:
            ingest(session, diagnostic)

        rendered = finalize(session, RenderConfig(charset="ascii"))[0]

        assert all(line.text.isascii() for line in rendered.tree)
        assert rendered.tree[-1].mark == "x"

    def test_given_scenario_in_reverse_order_then_same_report(
        self, shared_chain_diagnostics: list[CompilerDiagnostic]
    ) -> None:
        """Reordering the raw diagnostics keeps the root cause and the text."""
        reports = []
        for ordering in (shared_chain_diagnostics, shared_chain_diagnostics[::-1]):
            session = new_session()
            for diagnostic in ordering:
                ingest(session, diagnostic)
            reports.append(finalize(session))

        forward, backward = reports
        assert len(forward) == len(backward) == 1
        assert forward[0].root_cause is backward[0].root_cause is RootCause.MISSING_FIELD
        assert forward[0].title == backward[0].title
