"""Analysis module - reconstruction of CGP dependency errors.

Submodules:
- symbols: type-level field-name decoder
- extractors: per-fragment fact extraction
- classifier: hold or pass through each diagnostic
- registry: learned component names
- database: merge of raw diagnostics into logical errors
- chain, graph: requirement chains and the shared node arena
- render, report: tree listing and final diagnostics
- ops: AnalysisSession with ingest/finalize
"""

from cgplens.analysis.classifier import Classification, ClassificationOutcome, classify
from cgplens.analysis.ops import AnalysisSession, finalize, ingest, new_session
from cgplens.analysis.report import RenderedDiagnostic
from cgplens.analysis.root_cause import RootCause

__all__ = [
    "AnalysisSession",
    "Classification",
    "ClassificationOutcome",
    "RenderedDiagnostic",
    "RootCause",
    "classify",
    "finalize",
    "ingest",
    "new_session",
]
