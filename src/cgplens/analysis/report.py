"""Output formatter - turns a merged error group into a final diagnostic."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from cgplens.analysis.facts import (
    BlanketRuleHint,
    DiagnosticFact,
    MissingField,
    primary_missing_field,
)
from cgplens.analysis.graph import DependencyGraph, ErrorGroup, NodeKind, unsatisfied_leaves
from cgplens.analysis.render import RenderedLine, render_tree
from cgplens.analysis.root_cause import RootCause, classify_root_cause
from cgplens.analysis.typeexpr import strip_paths
from cgplens.config.constants import CHECK_MACRO, FIELD_DERIVE, HIDDEN_CHAR_GLYPH
from cgplens.config.models import Charset
from cgplens.diagnostics.models import CompilerDiagnostic, DiagnosticSpan

_INDENT = "    "


@dataclass(frozen=True, slots=True)
class RenderedDiagnostic:
    """A diagnostic ready for output.

    Pass-through diagnostics keep their single source and re-emit it
    unchanged.
    """

    root_cause: RootCause
    level: str
    title: str
    code: str | None = None
    spans: tuple[DiagnosticSpan, ...] = ()
    help: tuple[str, ...] = ()
    tree: tuple[RenderedLine, ...] = ()
    sources: tuple[CompilerDiagnostic, ...] = ()
    first_seen: int = 0

    @property
    def is_error(self) -> bool:
        return self.level.startswith("error")

    @property
    def is_pass_through(self) -> bool:
        return self.root_cause is RootCause.PASS_THROUGH

    def render_plain(self, *, show_source: bool = True, tab_width: int = 4) -> str:
        """rustc-like text. Pass-through diagnostics return the compiler's own text."""
        if self.is_pass_through and self.sources:
            return self.sources[0].text

        header = f"{self.level}[{self.code}]" if self.code else self.level
        lines = [f"{header}: {self.title}"]
        if show_source:
            lines.extend(_snippet(self.spans, tab_width))
        if self.help:
            gutter = " " * (_gutter_width(self.spans) + 1)
            lines.append(f"{gutter}= help: {self.help[0]}")
            pad = gutter + " " * len("= help: ")
            lines.extend(f"{pad}{line}" if line else "" for line in self.help[1:])
        return "\n".join(lines)

    def to_compiler_diagnostic(self) -> CompilerDiagnostic:
        """Structured form in the compiler's own diagnostic shape."""
        if self.is_pass_through and self.sources:
            return self.sources[0]
        children: tuple[CompilerDiagnostic, ...] = ()
        if self.help:
            children = (CompilerDiagnostic(level="help", message="\n".join(self.help)),)
        return CompilerDiagnostic(
            level=self.level,
            message=self.title,
            code=self.code,
            spans=self.spans,
            children=children,
            rendered=self.render_plain() + "\n",
        )


def _gutter_width(spans: Sequence[DiagnosticSpan]) -> int:
    return max((len(str(s.line_end)) for s in spans), default=1)


def _snippet(spans: Sequence[DiagnosticSpan], tab_width: int = 4) -> list[str]:
    """rustc-style source excerpt for the primary spans."""
    primary = [s for s in spans if s.is_primary] or list(spans[:1])
    if not primary:
        return []
    width = _gutter_width(spans)
    gutter = " " * width
    lines = [f"{gutter}--> {primary[0].location}"]
    lines.append(f"{gutter} |")
    for span in primary:
        if not span.text:
            continue
        source = span.text[0]
        lines.append(f"{str(span.line_start).rjust(width)} | {source.text.expandtabs(tab_width)}")
        # Highlight columns count characters; tabs widen the prefix.
        prefix = source.text[: max(source.highlight_start - 1, 0)].expandtabs(tab_width)
        length = max(source.highlight_end - source.highlight_start, 1)
        underline = " " * len(prefix) + "^" * length
        if span.label:
            underline += f" {span.label}"
        lines.append(f"{gutter} | {underline}")
    lines.append(f"{gutter} |")
    return lines


def pass_through(diagnostic: CompilerDiagnostic, seq: int) -> RenderedDiagnostic:
    return RenderedDiagnostic(
        root_cause=RootCause.PASS_THROUGH,
        level=diagnostic.level,
        title=diagnostic.message,
        code=diagnostic.code,
        spans=diagnostic.spans,
        sources=(diagnostic,),
        first_seen=seq,
    )


def _group_facts(group: ErrorGroup) -> list[DiagnosticFact]:
    facts: dict[DiagnosticFact, None] = {}
    for error in sorted(group.errors, key=lambda e: e.first_seen):
        for fact in error.facts:
            facts.setdefault(fact, None)
    return list(facts)


def _sources(group: ErrorGroup) -> tuple[list[CompilerDiagnostic], int]:
    records = sorted(
        (r for e in group.errors for r in e.records),
        key=lambda r: r.seq,
    )
    return [r.diagnostic for r in records], records[0].seq if records else 0


def _unique_spans(diagnostics: Sequence[CompilerDiagnostic]) -> tuple[DiagnosticSpan, ...]:
    spans: dict[DiagnosticSpan, None] = {}
    for diagnostic in diagnostics:
        for span in diagnostic.spans:
            spans.setdefault(span, None)
    return tuple(spans)


def _top_level(graph: DependencyGraph, group: ErrorGroup) -> list[int]:
    """Top-level branches: children of check roots, or the roots themselves."""
    branches: list[int] = []
    for root in group.roots:
        if graph.node(root).kind is NodeKind.CHECK_CONTRACT:
            candidates = group.children(graph, root)
        else:
            candidates = [root]
        branches.extend(h for h in candidates if h not in branches)
    return branches


def _branch_name(graph: DependencyGraph, handle: int) -> str:
    node = graph.node(handle)
    return node.component_marker or node.contract_name or "_"


def build_report(
    group: ErrorGroup, graph: DependencyGraph, *, charset: Charset = "unicode"
) -> RenderedDiagnostic:
    """Assemble the final diagnostic for one group of logical errors."""
    facts = _group_facts(group)
    root_cause = classify_root_cause(facts)
    for error in group.errors:
        error.root_cause = root_cause

    sources, first_seen = _sources(group)
    tree = tuple(
        render_tree(
            graph,
            group.roots,
            children=lambda handle: group.children(graph, handle),
            charset=charset,
        )
    )
    level = "error" if any(s.is_error for s in sources) else sources[0].level
    code = next((s.code for s in sources if s.code), None)

    if root_cause.is_field_outcome:
        missing = primary_missing_field(facts)
        assert missing is not None
        title, help_lines = _field_report(graph, group, missing, tree, root_cause)
    else:
        first_line = next(iter(sources[0].message.strip().splitlines()), "")
        title = strip_paths(first_line)
        help_lines = _provider_report(graph, group, facts, tree)

    return RenderedDiagnostic(
        root_cause=root_cause,
        level=level,
        title=title,
        code=code,
        spans=_unique_spans(sources),
        help=tuple(help_lines),
        tree=tree,
        sources=tuple(sources),
        first_seen=first_seen,
    )


def _tree_block(tree: Sequence[RenderedLine]) -> list[str]:
    return ["Dependency chain:", *(f"{_INDENT}{line.text}" for line in tree)]


def _field_report(
    graph: DependencyGraph,
    group: ErrorGroup,
    missing: MissingField,
    tree: Sequence[RenderedLine],
    root_cause: RootCause,
) -> tuple[str, list[str]]:
    name = missing.field_name
    field_display = name.quoted()
    context = missing.context_type
    title = f"missing field {field_display} in the context `{context}`."

    lines: list[str] = []
    branches = _top_level(graph, group)
    if len(branches) > 1:
        components = ", ".join(f"`{_branch_name(graph, b)}`" for b in branches)
        lines.append(
            f"Context `{context}` is missing a required field to use multiple components: "
            f"{components}."
        )
        lines.append(f"{_INDENT}note: Missing field: {field_display}")
    else:
        lines.append(f"The struct `{context}` is missing the required field {field_display}.")
    if name.has_hidden:
        lines.append(
            "note: some characters in the field name are hidden by the compiler "
            f"and shown as '{HIDDEN_CHAR_GLYPH}'"
        )

    if missing.definition is not None:
        lines.append("")
        lines.append(
            f"The struct `{context}` is defined at `{missing.definition.short}` "
            f"but does not have the required field {field_display}."
        )

    lines.append("")
    lines.extend(_tree_block(tree))

    lines.append("")
    lines.append("To fix this error:")
    location = f" at {missing.definition.short}" if missing.definition else ""
    lines.append(f"{_INDENT}• Add a field {field_display} to the `{context}` struct{location}")
    if root_cause is RootCause.MISSING_FIELD_OR_DERIVATION:
        lines.append(
            f"{_INDENT}• Or add `{FIELD_DERIVE}` to the `{context}` struct "
            f"if it already has the field {field_display}"
        )
    return title, lines


def _provider_report(
    graph: DependencyGraph,
    group: ErrorGroup,
    facts: Sequence[DiagnosticFact],
    tree: Sequence[RenderedLine],
) -> list[str]:
    lines = _tree_block(tree)
    leaves = unsatisfied_leaves(graph, group)
    if not leaves:
        return lines

    leaf = graph.node(leaves[0])
    checked = {graph.node(b).component_marker for b in _top_level(graph, group)}
    marker = leaf.component_marker
    context = group.context or leaf.context_type
    if marker is not None and marker not in checked and context is not None:
        lines.append("")
        lines.append(
            f"Add a check that `{context}` can use `{marker}` using `{CHECK_MACRO}` "
            "to get further details on the missing dependencies."
        )

    if leaf.kind is NodeKind.PROVIDER_CONTRACT and leaf.provider_type is not None:
        hint = next(
            (
                f
                for f in facts
                if isinstance(f, BlanketRuleHint) and f.provider_name == leaf.provider_type
            ),
            None,
        )
        if hint is not None:
            lines.append("")
            lines.append(
                f"note: the provider `{leaf.provider_type}` is implemented "
                f"by the blanket rule at `{hint.location.short}`"
            )
    return lines
