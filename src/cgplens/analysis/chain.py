"""Requirement chains - one diagnostic's facts read as a path from check to leaf.

The compiler lists "required for ..." notes deepest first. A chain reverses
them and assigns each requirement a role:

    check contract -> consumer -> provider (possibly nested) -> getter -> field

Steps are stored in root-to-leaf order; each step names its parent by index
so that two providers that do not wrap each other can hang off the same
parent.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field, replace
from enum import StrEnum

from cgplens.analysis.facts import (
    AlternateImplHint,
    DiagnosticFact,
    MissingField,
    RequiredByBoundIn,
    RequiredForImpl,
    UnsatisfiedBound,
    primary_missing_field,
)
from cgplens.analysis.symbols import FieldName, decode_field_name
from cgplens.analysis.typeexpr import generic_head, has_type_argument, parse_generic, same_type
from cgplens.analysis.vocabulary import (
    ConsumerUse,
    ContractShape,
    FieldAccess,
    PlainTrait,
    ProviderUse,
    classify_contract,
)
from cgplens.config.constants import FIELD_ACCESS_TRAIT
from cgplens.core.errors import AnalysisError


class StepKind(StrEnum):
    CHECK = "check"
    CONSUMER = "consumer"
    PROVIDER = "provider"
    GETTER = "getter"
    FIELD = "field"


class NodeStatus(StrEnum):
    """IMPLIED nodes sit on a failing path without being its cause."""

    SATISFIED = "satisfied"
    UNSATISFIED = "unsatisfied"
    IMPLIED = "implied"


@dataclass(frozen=True, slots=True)
class ChainStep:
    """One requirement.

    ``contract`` is the printed trait for check, consumer and getter steps,
    and the provider trait (when the header names it) for provider steps.
    """

    kind: StepKind
    context: str | None
    contract: str | None = None
    marker: str | None = None
    provider: str | None = None
    extra_args: tuple[str, ...] = ()
    field_name: FieldName | None = None
    status: NodeStatus = NodeStatus.IMPLIED
    parent: int | None = None


@dataclass(frozen=True, slots=True)
class RequirementChain:
    context: str | None
    check_name: str | None
    steps: tuple[ChainStep, ...] = field(default=())

    @property
    def root(self) -> ChainStep | None:
        return self.steps[0] if self.steps else None

    def children_of(self, index: int) -> list[int]:
        return [i for i, step in enumerate(self.steps) if step.parent == index]


def root_context(facts: Iterable[DiagnosticFact]) -> str | None:
    """Subject of the outermost consumer use, else the header's bound context."""
    facts = list(facts)
    consumers = [
        f
        for f in facts
        if isinstance(f, RequiredForImpl)
        and isinstance(classify_contract(f.trait_name), ConsumerUse)
    ]
    if consumers:
        # Notes are deepest first; the outermost use is the last one.
        return consumers[-1].subject
    for fact in facts:
        if isinstance(fact, UnsatisfiedBound):
            return fact.context_type
    for fact in facts:
        if isinstance(fact, MissingField):
            return fact.context_type
    return None


def providers_nest(outer: ChainStep, inner: ChainStep) -> bool:
    """Whether ``outer`` is a provider wrapping ``inner``.

    Both must provide the same component for the same context with the same
    extra arguments, and ``inner`` must be a top-level type argument of
    ``outer``.
    """
    if outer.kind is not StepKind.PROVIDER or inner.kind is not StepKind.PROVIDER:
        return False
    if outer.marker != inner.marker or outer.context != inner.context:
        return False
    if outer.extra_args != inner.extra_args:
        return False
    if outer.provider is None or inner.provider is None:
        return False
    return has_type_argument(outer.provider, inner.provider)


class _ChainBuilder:
    def __init__(self) -> None:
        self.steps: list[ChainStep] = []
        # Where the next deeper requirement attaches.
        self.tip: int | None = None

    def append(self, step: ChainStep) -> None:
        self._push(replace(step, parent=self.tip))

    def append_sibling(self, step: ChainStep) -> None:
        """Attach next to the current tip instead of below it."""
        assert self.last is not None
        self._push(replace(step, parent=self.last.parent))

    def _push(self, step: ChainStep) -> None:
        self.steps.append(step)
        self.tip = len(self.steps) - 1

    def append_provider(self, step: ChainStep) -> None:
        last = self.last
        if last is not None and last.kind is StepKind.PROVIDER and not providers_nest(last, step):
            self.append_sibling(step)
        else:
            self.append(step)

    @property
    def last(self) -> ChainStep | None:
        return self.steps[self.tip] if self.tip is not None else None

    def mark_last(self, **changes: object) -> None:
        assert self.tip is not None
        self.steps[self.tip] = replace(self.steps[self.tip], **changes)


def build_chain(facts: Sequence[DiagnosticFact], context: str | None = None) -> RequirementChain:
    """Interpret one diagnostic's facts as a requirement chain.

    Args:
        facts: Facts of a single diagnostic, in extraction order
        context: Context of the logical error; derived from the facts if None

    Returns:
        A chain whose single unsatisfied step is its leaf
    """
    context = context or root_context(facts)
    checks = [f.check_trait_name for f in facts if isinstance(f, RequiredByBoundIn)]
    check_name = checks[-1] if checks else None
    requirements = [f for f in facts if isinstance(f, RequiredForImpl)][::-1]
    header = next((f for f in facts if isinstance(f, UnsatisfiedBound)), None)
    missing = primary_missing_field(facts)

    builder = _ChainBuilder()
    if check_name is not None:
        builder.append(ChainStep(kind=StepKind.CHECK, context=context, contract=check_name))

    for position, requirement in enumerate(requirements):
        shape = classify_contract(requirement.trait_name)
        if isinstance(shape, ConsumerUse):
            builder.append(
                ChainStep(kind=StepKind.CONSUMER, context=requirement.subject, marker=shape.marker)
            )
        elif isinstance(shape, ProviderUse):
            builder.append_provider(
                ChainStep(
                    kind=StepKind.PROVIDER,
                    context=shape.context,
                    marker=shape.marker,
                    provider=requirement.subject,
                    extra_args=shape.extra_args,
                )
            )
        elif isinstance(shape, FieldAccess):
            builder.append(
                ChainStep(
                    kind=StepKind.FIELD,
                    context=requirement.subject,
                    field_name=decode_field_name(shape.tag),
                )
            )
        else:
            if shape.name == check_name:
                continue
            deeper = _next_is_field(requirements[position + 1 :], missing, header)
            builder.append(
                ChainStep(
                    kind=StepKind.GETTER if deeper else StepKind.CONSUMER,
                    context=requirement.subject,
                    contract=shape.text,
                )
            )

    if missing is not None:
        _attach_missing_field(builder, missing)
        _attach_satisfied_siblings(builder, facts, missing)
    elif header is not None:
        _attach_header(builder, header)
    elif builder.tip is not None:
        builder.mark_last(status=NodeStatus.UNSATISFIED)

    return RequirementChain(context=context, check_name=check_name, steps=tuple(builder.steps))


def _next_is_field(
    rest: Sequence[RequiredForImpl],
    missing: MissingField | None,
    header: UnsatisfiedBound | None,
) -> bool:
    if rest:
        return isinstance(classify_contract(rest[0].trait_name), FieldAccess)
    if missing is not None:
        return True
    return header is not None and generic_head(header.trait_name) == FIELD_ACCESS_TRAIT


def _attach_missing_field(builder: _ChainBuilder, missing: MissingField) -> None:
    name = missing.field_name
    last = builder.last
    if (
        last is not None
        and last.kind is StepKind.FIELD
        and last.context == missing.context_type
        and last.field_name == name
    ):
        builder.mark_last(status=NodeStatus.UNSATISFIED)
        return
    builder.append(
        ChainStep(
            kind=StepKind.FIELD,
            context=missing.context_type,
            field_name=name,
            status=NodeStatus.UNSATISFIED,
        )
    )


def _attach_satisfied_siblings(
    builder: _ChainBuilder, facts: Sequence[DiagnosticFact], missing: MissingField
) -> None:
    """Fields the context does implement, shown next to the missing one."""
    leaf = builder.tip
    assert leaf is not None
    parent = builder.steps[leaf].parent
    for fact in facts:
        if not isinstance(fact, AlternateImplHint) or not fact.anchored:
            continue
        if fact.context_type is None or not same_type(fact.context_type, missing.context_type):
            continue
        if not fact.other_trait_args:
            continue
        name = decode_field_name(fact.other_trait_args[0])
        if name == missing.field_name:
            continue
        builder.steps.append(
            ChainStep(
                kind=StepKind.FIELD,
                context=missing.context_type,
                field_name=name,
                status=NodeStatus.SATISFIED,
                parent=parent,
            )
        )
    builder.tip = leaf


def _attach_header(builder: _ChainBuilder, header: UnsatisfiedBound) -> None:
    shape = classify_contract(header.trait_name)
    subject = header.context_type
    last = builder.last
    unsatisfied = NodeStatus.UNSATISFIED

    if last is None:
        builder.append(_header_step(shape, subject, header.trait_name, unsatisfied))
        return

    if _same_requirement(last, shape, subject):
        builder.mark_last(status=unsatisfied)
        return

    if isinstance(shape, PlainTrait) and last.kind is StepKind.PROVIDER:
        if last.provider is not None and same_type(last.provider, subject):
            builder.mark_last(contract=shape.text, status=unsatisfied)
            return
        if last.provider is not None and has_type_argument(last.provider, subject):
            builder.append(
                replace(last, provider=subject, contract=shape.text, status=unsatisfied)
            )
            return

    if (
        isinstance(shape, PlainTrait)
        and shape.args
        and last.context is not None
        and same_type(shape.args[0], last.context)
        and not same_type(subject, last.context)
    ):
        # `Provider: ProviderTrait<Context, ...>` below a consumer.
        builder.append(
            ChainStep(
                kind=StepKind.PROVIDER,
                context=shape.args[0],
                contract=shape.text,
                provider=subject,
                extra_args=tuple(shape.args[1:]),
                status=unsatisfied,
            )
        )
        return

    builder.append(_header_step(shape, subject, header.trait_name, unsatisfied))


def _header_step(shape: ContractShape, subject: str, trait: str, status: NodeStatus) -> ChainStep:
    if isinstance(shape, ConsumerUse):
        return ChainStep(
            kind=StepKind.CONSUMER, context=subject, marker=shape.marker, status=status
        )
    if isinstance(shape, ProviderUse):
        return ChainStep(
            kind=StepKind.PROVIDER,
            context=shape.context,
            marker=shape.marker,
            provider=subject,
            extra_args=shape.extra_args,
            status=status,
        )
    if isinstance(shape, FieldAccess):
        return ChainStep(
            kind=StepKind.FIELD,
            context=subject,
            field_name=decode_field_name(shape.tag),
            status=status,
        )
    return ChainStep(kind=StepKind.CONSUMER, context=subject, contract=trait, status=status)


def _same_requirement(step: ChainStep, shape: ContractShape, subject: str) -> bool:
    if isinstance(shape, ConsumerUse):
        return (
            step.kind is StepKind.CONSUMER
            and step.marker == shape.marker
            and step.context is not None
            and same_type(step.context, subject)
        )
    if isinstance(shape, ProviderUse):
        return (
            step.kind is StepKind.PROVIDER
            and step.marker == shape.marker
            and step.provider is not None
            and same_type(step.provider, subject)
        )
    if isinstance(shape, PlainTrait):
        return (
            step.kind in (StepKind.CONSUMER, StepKind.GETTER)
            and step.contract == shape.text
            and step.context is not None
            and same_type(step.context, subject)
        )
    return False


def validate_chain(chain: RequirementChain, context: str | None, where: str) -> None:
    """Every consumer and provider step must agree with the error's context.

    Raises:
        AnalysisError(ANALYSIS_INCONSISTENT_CONTEXT): On the first mismatch
    """
    if context is None:
        return
    for step in chain.steps:
        if step.kind not in (StepKind.CONSUMER, StepKind.PROVIDER) or step.context is None:
            continue
        if not same_type(step.context, context):
            raise AnalysisError.inconsistent_context(
                expected=context, found=step.context, where=where
            )


def provider_trait_head(step: ChainStep) -> str | None:
    """Name of the provider trait a provider step's header named, if any."""
    if step.kind is not StepKind.PROVIDER or step.contract is None:
        return None
    return parse_generic(step.contract)[0]
