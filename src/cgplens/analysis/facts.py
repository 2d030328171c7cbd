"""Diagnostic facts - atomic pieces of information read from one diagnostic.

Facts are immutable. Each reports whether it is anchored in the library's
vocabulary; only anchored facts make a diagnostic library-related.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field

from cgplens.analysis.symbols import FieldName, decode_field_name
from cgplens.analysis.typeexpr import generic_head
from cgplens.analysis.vocabulary import is_anchor_trait
from cgplens.config.constants import FIELD_ACCESS_TRAIT
from cgplens.diagnostics.models import SourceLocation


@dataclass(frozen=True, slots=True)
class UnsatisfiedBound:
    """Header: the trait bound `A: B` is not satisfied."""

    context_type: str
    trait_name: str
    span: SourceLocation | None = None

    @property
    def anchored(self) -> bool:
        return is_anchor_trait(self.trait_name)


@dataclass(frozen=True, slots=True)
class RequiredForImpl:
    """Note: required for `S` to implement `T`."""

    subject: str
    trait_name: str
    via_note_text: str = field(default="", compare=False)

    @property
    def anchored(self) -> bool:
        return is_anchor_trait(self.trait_name)


@dataclass(frozen=True, slots=True)
class RequiredByBoundIn:
    """Note: required by a bound in `X`. Names the check trait."""

    check_trait_name: str

    @property
    def anchored(self) -> bool:
        return False


@dataclass(frozen=True, slots=True)
class MissingField:
    """A `HasField<Tag>` that is not implemented for a context."""

    context_type: str
    field_name_encoded: str
    definition: SourceLocation | None = None

    @property
    def anchored(self) -> bool:
        return True

    @property
    def field_name(self) -> FieldName:
        return decode_field_name(self.field_name_encoded)


@dataclass(frozen=True, slots=True)
class AlternateImplHint:
    """The trait is implemented for the same type with other arguments."""

    context_type: str | None
    trait_name: str
    other_trait_args: tuple[str, ...] = ()

    @property
    def anchored(self) -> bool:
        return generic_head(self.trait_name) == FIELD_ACCESS_TRAIT


@dataclass(frozen=True, slots=True)
class BlanketRuleHint:
    """Location of the blanket rule that made a provider require more."""

    provider_name: str
    location: SourceLocation

    @property
    def anchored(self) -> bool:
        return True


DiagnosticFact = (
    UnsatisfiedBound
    | RequiredForImpl
    | RequiredByBoundIn
    | MissingField
    | AlternateImplHint
    | BlanketRuleHint
)


def primary_missing_field(facts: Iterable[DiagnosticFact]) -> MissingField | None:
    """The missing field to report; one carrying the struct definition wins."""
    missing = [f for f in facts if isinstance(f, MissingField)]
    located = [f for f in missing if f.definition is not None]
    if located:
        return located[0]
    return missing[0] if missing else None
