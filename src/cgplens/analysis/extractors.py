"""Fact extractors.

Each extractor looks at one fragment of a diagnostic (the header message or
one note/help child) and returns at most one fact. Matching only uses the
compiler's standard phrasing and the library vocabulary, never names from
the user's program.
"""

from __future__ import annotations

import re
from collections.abc import Callable
from dataclasses import dataclass

from cgplens.analysis.facts import (
    AlternateImplHint,
    BlanketRuleHint,
    DiagnosticFact,
    MissingField,
    RequiredByBoundIn,
    RequiredForImpl,
    UnsatisfiedBound,
)
from cgplens.analysis.symbols import field_name_tag
from cgplens.analysis.typeexpr import parse_generic, split_bound, strip_paths
from cgplens.analysis.vocabulary import FieldAccess, ProviderUse, classify_contract
from cgplens.diagnostics.models import CompilerDiagnostic, DiagnosticSpan

_TRAIT_BOUND = re.compile(r"^the trait bound `(?P<bound>.+)` is not satisfied")
_REQUIRED_FOR = re.compile(r"^required for `(?P<subject>[^`]+)` to implement `(?P<trait>[^`]+)`")
_REQUIRED_BY_BOUND = re.compile(r"^required by a bound in `(?P<name>[^`]+)`")
_NOT_IMPLEMENTED = re.compile(
    r"the trait `(?P<trait>[^`]+)` is not implemented for `(?P<subject>[^`]+)`"
)
_BUT_IMPLEMENTED = re.compile(r"but trait `(?P<trait>[^`]+)` is implemented for it")
_OTHER_TYPES = re.compile(r"the following other types implement trait `(?P<trait>[^`]+)`")


@dataclass(frozen=True, slots=True)
class Fragment:
    """One message of a diagnostic with the span the compiler attached to it."""

    level: str
    message: str
    span: DiagnosticSpan | None = None
    is_root: bool = False

    @property
    def first_line(self) -> str:
        lines = self.message.strip().splitlines()
        return lines[0].strip() if lines else ""


Extractor = Callable[[Fragment], DiagnosticFact | None]


def iter_fragments(diagnostic: CompilerDiagnostic) -> list[Fragment]:
    """Header first, then children in the order the compiler emitted them."""
    fragments = [
        Fragment(
            level=diagnostic.level,
            message=diagnostic.message,
            span=diagnostic.primary_span,
            is_root=True,
        )
    ]
    for child in diagnostic.children:
        span = child.primary_span or (child.spans[0] if child.spans else None)
        fragments.append(Fragment(level=child.level, message=child.message, span=span))
    return fragments


def extract_unsatisfied_bound(fragment: Fragment) -> UnsatisfiedBound | None:
    if not fragment.is_root:
        return None
    match = _TRAIT_BOUND.match(fragment.first_line)
    if not match:
        return None
    parts = split_bound(strip_paths(match["bound"]))
    if parts is None:
        return None
    context, trait = parts
    return UnsatisfiedBound(
        context_type=context,
        trait_name=trait,
        span=fragment.span.location if fragment.span else None,
    )


def extract_required_for_impl(fragment: Fragment) -> RequiredForImpl | None:
    if fragment.is_root:
        return None
    match = _REQUIRED_FOR.match(fragment.first_line)
    if not match:
        return None
    return RequiredForImpl(
        subject=strip_paths(match["subject"]),
        trait_name=strip_paths(match["trait"]),
        via_note_text=fragment.first_line,
    )


def extract_required_by_bound(fragment: Fragment) -> RequiredByBoundIn | None:
    if fragment.is_root:
        return None
    match = _REQUIRED_BY_BOUND.match(fragment.first_line)
    if not match:
        return None
    name, _ = parse_generic(strip_paths(match["name"]))
    return RequiredByBoundIn(check_trait_name=name)


def extract_missing_field(fragment: Fragment) -> MissingField | None:
    """HasField not implemented, from a help/note line or the header bound."""
    definition = fragment.span.location if fragment.span and not fragment.is_root else None
    if fragment.is_root:
        match = _TRAIT_BOUND.match(fragment.first_line)
        parts = split_bound(strip_paths(match["bound"])) if match else None
        if parts is None:
            return None
        context, trait = parts
    else:
        # Only the part before "but trait ..." names the missing implementation.
        text = fragment.message.split("but trait", 1)[0]
        match = _NOT_IMPLEMENTED.search(text)
        if not match:
            return None
        context, trait = strip_paths(match["subject"]), strip_paths(match["trait"])

    if not isinstance(classify_contract(trait), FieldAccess):
        return None
    tag = field_name_tag(trait)
    if tag is None:
        return None
    return MissingField(context_type=context, field_name_encoded=tag, definition=definition)


def extract_alternate_impl_hint(fragment: Fragment) -> AlternateImplHint | None:
    if fragment.is_root:
        return None
    match = _BUT_IMPLEMENTED.search(fragment.message)
    context = None
    if match:
        not_impl = _NOT_IMPLEMENTED.search(fragment.message)
        context = strip_paths(not_impl["subject"]) if not_impl else None
    else:
        match = _OTHER_TYPES.search(fragment.message)
        if not match:
            return None
    head, args = parse_generic(strip_paths(match["trait"]))
    return AlternateImplHint(context_type=context, trait_name=head, other_trait_args=args)


def extract_blanket_rule_hint(fragment: Fragment) -> BlanketRuleHint | None:
    """A provider-use note pointing at the blanket rule that introduced it."""
    if fragment.is_root or fragment.span is None:
        return None
    match = _REQUIRED_FOR.match(fragment.first_line)
    if not match:
        return None
    if not isinstance(classify_contract(strip_paths(match["trait"])), ProviderUse):
        return None
    return BlanketRuleHint(
        provider_name=strip_paths(match["subject"]),
        location=fragment.span.location,
    )


EXTRACTORS: tuple[Extractor, ...] = (
    extract_unsatisfied_bound,
    extract_required_for_impl,
    extract_required_by_bound,
    extract_missing_field,
    extract_alternate_impl_hint,
    extract_blanket_rule_hint,
)


def extract_facts(diagnostic: CompilerDiagnostic) -> list[DiagnosticFact]:
    """All facts of a diagnostic in fragment order, then extractor order."""
    facts: list[DiagnosticFact] = []
    for fragment in iter_fragments(diagnostic):
        for extractor in EXTRACTORS:
            fact = extractor(fragment)
            if fact is not None:
                facts.append(fact)
    return facts
