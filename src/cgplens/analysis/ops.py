"""Analysis operations - the per-run session API.

Usage::

    session = new_session()
    for diagnostic in diagnostics:
        outcome = ingest(session, diagnostic)
        if not outcome.held:
            emit(outcome.diagnostic)
    for rendered in finalize(session):
        emit(rendered.to_compiler_diagnostic())

A session is owned by a single caller. Independent sessions share no state.
"""

from __future__ import annotations

from dataclasses import dataclass, field

import structlog

from cgplens.analysis.classifier import ClassificationOutcome, classify
from cgplens.analysis.database import DiagnosticDatabase
from cgplens.analysis.graph import build_graph
from cgplens.analysis.registry import ComponentNameRegistry
from cgplens.analysis.report import RenderedDiagnostic, build_report, pass_through
from cgplens.analysis.root_cause import RootCause
from cgplens.config.models import RenderConfig
from cgplens.core.errors import AnalysisError
from cgplens.core.logging import set_run_id
from cgplens.diagnostics.models import CompilerDiagnostic

log = structlog.get_logger(__name__)


@dataclass
class AnalysisSession:
    """Mutable state of one analysis run."""

    run_id: str
    registry: ComponentNameRegistry = field(default_factory=ComponentNameRegistry)
    database: DiagnosticDatabase = field(init=False)
    next_seq: int = 0
    finalized: bool = False

    def __post_init__(self) -> None:
        self.database = DiagnosticDatabase(self.registry)


def new_session(run_id: str | None = None) -> AnalysisSession:
    """Start a run; its id also becomes the logging correlation id."""
    return AnalysisSession(run_id=set_run_id(run_id))


def ingest(session: AnalysisSession, diagnostic: CompilerDiagnostic) -> ClassificationOutcome:
    """Classify one diagnostic and fold it into the session if held.

    Raises:
        AnalysisError(ANALYSIS_SESSION_FINALIZED): If the session was finalized
    """
    if session.finalized:
        raise AnalysisError.session_finalized(session.run_id)

    seq = session.next_seq
    session.next_seq += 1
    outcome = classify(diagnostic)
    log.debug(
        "diagnostic_classified",
        run_id=session.run_id,
        seq=seq,
        kind=str(outcome.kind),
        facts=len(outcome.facts),
    )
    if outcome.held:
        session.database.merge(diagnostic, outcome.facts, seq)
    return outcome


def finalize(
    session: AnalysisSession, render_config: RenderConfig | None = None
) -> list[RenderedDiagnostic]:
    """Render every logical error of the session, ordered by first appearance.

    A logical error whose facts turn out to be inconsistent falls back to
    its raw diagnostics; the rest of the run is unaffected.

    Raises:
        AnalysisError(ANALYSIS_SESSION_FINALIZED): If called twice
    """
    if session.finalized:
        raise AnalysisError.session_finalized(session.run_id)
    session.finalized = True
    charset = render_config.charset if render_config is not None else "unicode"

    build = build_graph(session.database.errors, session.registry)
    results = [build_report(group, build.graph, charset=charset) for group in build.groups]

    for error, exc in build.failures:
        log.warning(
            "logical_error_fallback",
            run_id=session.run_id,
            span=str(error.span) if error.span else None,
            context=error.context,
            error=str(exc),
        )
        error.root_cause = RootCause.PASS_THROUGH
        results.extend(pass_through(r.diagnostic, r.seq) for r in error.records)

    results.sort(key=lambda r: r.first_seen)
    log.debug(
        "session_finalized",
        run_id=session.run_id,
        logical_errors=len(session.database),
        rendered=len(results),
    )
    return results
