"""Component name registry - learned per run, additive only.

Maps a component marker (``AreaCalculatorComponent``) to the consumer trait
(``CanCalculateArea``) and provider trait (``AreaCalculator``) observed for
it. A high-confidence name is never overwritten; a low-confidence one may be
upgraded.

Name resolution is three separate steps, tried in order:

1. ``registry_name`` - what the registry has learned
2. ``suffix_stripped_name`` - marker minus ``Component`` (provider names only)
3. ``generic_label`` - "provider trait for `M`" / "consumer trait of `M`"
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum, StrEnum

import structlog

from cgplens.analysis.chain import (
    NodeStatus,
    RequirementChain,
    StepKind,
    provider_trait_head,
)
from cgplens.analysis.typeexpr import generic_head
from cgplens.analysis.vocabulary import marker_for_provider_trait
from cgplens.config.constants import COMPONENT_SUFFIX

log = structlog.get_logger(__name__)


class Confidence(IntEnum):
    LOW = 1
    HIGH = 2


class Role(StrEnum):
    CONSUMER = "consumer"
    PROVIDER = "provider"


@dataclass(frozen=True, slots=True)
class LearnedName:
    name: str
    confidence: Confidence


@dataclass(frozen=True, slots=True)
class ContractName:
    """A resolved contract name. Generic labels are already quoted prose."""

    text: str
    generic: bool = False

    @property
    def display(self) -> str:
        return self.text if self.generic else f"`{self.text}`"


class ComponentNameRegistry:
    """Marker -> learned consumer/provider trait names."""

    def __init__(self) -> None:
        self._names: dict[Role, dict[str, LearnedName]] = {
            Role.CONSUMER: {},
            Role.PROVIDER: {},
        }

    def learn(self, role: Role, marker: str, name: str, confidence: Confidence) -> bool:
        """Record a name. Returns True if the registry changed."""
        entries = self._names[role]
        current = entries.get(marker)
        if current is not None and current.confidence >= confidence:
            if current.name != name:
                log.debug(
                    "registry_conflict_ignored",
                    role=str(role),
                    marker=marker,
                    kept=current.name,
                    ignored=name,
                )
            return False
        entries[marker] = LearnedName(name, confidence)
        return True

    def learn_consumer(self, marker: str, name: str, confidence: Confidence) -> bool:
        return self.learn(Role.CONSUMER, marker, name, confidence)

    def learn_provider(self, marker: str, name: str, confidence: Confidence) -> bool:
        return self.learn(Role.PROVIDER, marker, name, confidence)

    def get(self, role: Role, marker: str) -> LearnedName | None:
        return self._names[role].get(marker)

    def consumer_name(self, marker: str) -> str | None:
        entry = self.get(Role.CONSUMER, marker)
        return entry.name if entry else None

    def provider_name(self, marker: str) -> str | None:
        entry = self.get(Role.PROVIDER, marker)
        return entry.name if entry else None

    def marker_for(self, role: Role, name: str) -> str | None:
        """Reverse lookup, preferring high-confidence entries."""
        best: tuple[Confidence, str] | None = None
        for marker, entry in self._names[role].items():
            if entry.name != name:
                continue
            if best is None or entry.confidence > best[0]:
                best = (entry.confidence, marker)
        return best[1] if best else None

    def marker_for_consumer(self, name: str) -> str | None:
        return self.marker_for(Role.CONSUMER, name)

    def marker_for_provider(self, name: str) -> str | None:
        return self.marker_for(Role.PROVIDER, name)

    def __len__(self) -> int:
        return sum(len(entries) for entries in self._names.values())

    def learn_from_chain(self, chain: RequirementChain) -> None:
        """Learn names from adjacent steps of one requirement chain."""
        steps = chain.steps
        for index, step in enumerate(steps):
            children = [steps[i] for i in chain.children_of(index)]

            if step.kind is StepKind.CONSUMER and step.contract is not None:
                consumer = generic_head(step.contract)
                for child in children:
                    if child.kind is not StepKind.PROVIDER or child.context != step.context:
                        continue
                    if child.marker is not None:
                        self.learn_consumer(child.marker, consumer, Confidence.HIGH)
                    else:
                        provider = provider_trait_head(child)
                        if provider is not None:
                            marker = marker_for_provider_trait(provider)
                            self.learn_consumer(marker, consumer, Confidence.LOW)

            if step.kind is StepKind.PROVIDER:
                provider = provider_trait_head(step)
                if provider is None:
                    continue
                if step.marker is not None:
                    self.learn_provider(step.marker, provider, Confidence.HIGH)
                elif step.status is NodeStatus.UNSATISFIED:
                    marker = marker_for_provider_trait(provider)
                    self.learn_provider(marker, provider, Confidence.LOW)


def registry_name(registry: ComponentNameRegistry, marker: str, role: Role) -> str | None:
    """Step one: a name learned during this run."""
    entry = registry.get(role, marker)
    return entry.name if entry else None


def suffix_stripped_name(marker: str) -> str | None:
    """Step two: ``FooComponent`` -> ``Foo``."""
    head = generic_head(marker)
    if head.endswith(COMPONENT_SUFFIX) and len(head) > len(COMPONENT_SUFFIX):
        return head[: -len(COMPONENT_SUFFIX)]
    return None


def generic_label(marker: str, role: Role) -> str:
    """Step three: prose naming the marker."""
    if role is Role.PROVIDER:
        return f"provider trait for `{marker}`"
    return f"consumer trait of `{marker}`"


def resolve_provider_name(registry: ComponentNameRegistry, marker: str) -> ContractName:
    name = registry_name(registry, marker, Role.PROVIDER)
    if name is None:
        name = suffix_stripped_name(marker)
    if name is None:
        return ContractName(generic_label(marker, Role.PROVIDER), generic=True)
    return ContractName(name)


def resolve_consumer_name(registry: ComponentNameRegistry, marker: str) -> ContractName:
    name = registry_name(registry, marker, Role.CONSUMER)
    if name is None:
        return ContractName(generic_label(marker, Role.CONSUMER), generic=True)
    return ContractName(name)
