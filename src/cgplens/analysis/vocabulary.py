"""Contract shapes - what a trait named in a note means in CGP terms."""

from __future__ import annotations

from dataclasses import dataclass

from cgplens.analysis.typeexpr import parse_generic
from cgplens.config.constants import (
    COMPONENT_SUFFIX,
    CONSUMER_USE_TRAIT,
    FIELD_ACCESS_TRAIT,
    PROVIDER_USE_TRAIT,
)

ANCHOR_TRAITS = frozenset({CONSUMER_USE_TRAIT, PROVIDER_USE_TRAIT, FIELD_ACCESS_TRAIT})


@dataclass(frozen=True, slots=True)
class ConsumerUse:
    """``CanUseComponent<Marker>``."""

    marker: str


@dataclass(frozen=True, slots=True)
class ProviderUse:
    """``IsProviderFor<Marker, Context, Extra...>``. Context is None when truncated."""

    marker: str
    context: str | None
    extra_args: tuple[str, ...] = ()

    @property
    def trait_args(self) -> tuple[str, ...]:
        """Arguments of the provider trait itself: context, then extras."""
        return ((self.context,) if self.context else ()) + self.extra_args


@dataclass(frozen=True, slots=True)
class FieldAccess:
    """``HasField<Tag>``."""

    tag: str


@dataclass(frozen=True, slots=True)
class PlainTrait:
    """Any trait outside the library vocabulary: a consumer or getter."""

    name: str
    args: tuple[str, ...] = ()

    @property
    def text(self) -> str:
        if not self.args:
            return self.name
        return f"{self.name}<{', '.join(self.args)}>"


ContractShape = ConsumerUse | ProviderUse | FieldAccess | PlainTrait


def classify_contract(trait: str) -> ContractShape:
    """Map a printed trait (paths already stripped) onto its shape."""
    head, args = parse_generic(trait)
    if head == CONSUMER_USE_TRAIT and args:
        return ConsumerUse(marker=args[0])
    if head == PROVIDER_USE_TRAIT and args:
        return ProviderUse(
            marker=args[0],
            context=args[1] if len(args) > 1 else None,
            extra_args=tuple(args[2:]),
        )
    if head == FIELD_ACCESS_TRAIT and args:
        return FieldAccess(tag=args[0])
    return PlainTrait(name=head, args=args)


def is_anchor_trait(trait: str) -> bool:
    """Whether a trait belongs to the library's own vocabulary."""
    return not isinstance(classify_contract(trait), PlainTrait)


def marker_for_provider_trait(provider_trait: str) -> str:
    """Marker name by convention: provider trait name plus ``Component``."""
    return f"{provider_trait}{COMPONENT_SUFFIX}"
