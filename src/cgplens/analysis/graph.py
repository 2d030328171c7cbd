"""Dependency graph - requirement chains interned into one node arena.

Nodes are addressed by integer handles. Chains from different diagnostics
converge on the same node when they name the same requirement, so logical
errors that share a dependency can be reported together.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from enum import StrEnum

import structlog

from cgplens.analysis.chain import (
    ChainStep,
    NodeStatus,
    RequirementChain,
    StepKind,
    build_chain,
    provider_trait_head,
    validate_chain,
)
from cgplens.analysis.database import LogicalError
from cgplens.analysis.registry import ComponentNameRegistry
from cgplens.analysis.symbols import FieldName
from cgplens.analysis.typeexpr import generic_head
from cgplens.analysis.vocabulary import marker_for_provider_trait
from cgplens.core.errors import AnalysisError

log = structlog.get_logger(__name__)

Edge = tuple[int, int]
NodeKey = tuple[str | tuple[str, ...] | None, ...]

_STATUS_RANK = {
    NodeStatus.SATISFIED: 0,
    NodeStatus.IMPLIED: 1,
    NodeStatus.UNSATISFIED: 2,
}

_CONSUMER_KEY_PREFIX = "consumer:"


class NodeKind(StrEnum):
    CHECK_CONTRACT = "check"
    CONSUMER_CONTRACT = "consumer"
    PROVIDER_CONTRACT = "provider"
    GETTER_CONTRACT = "getter"
    FIELD_REQUIREMENT = "field"


_KIND_FOR_STEP = {
    StepKind.CHECK: NodeKind.CHECK_CONTRACT,
    StepKind.CONSUMER: NodeKind.CONSUMER_CONTRACT,
    StepKind.PROVIDER: NodeKind.PROVIDER_CONTRACT,
    StepKind.GETTER: NodeKind.GETTER_CONTRACT,
    StepKind.FIELD: NodeKind.FIELD_REQUIREMENT,
}


@dataclass(eq=False)
class DependencyNode:
    handle: int
    kind: NodeKind
    context_type: str | None
    component_key: str | None = None
    marker: str | None = None
    contract_name: str | None = None
    provider_type: str | None = None
    type_args: tuple[str, ...] = ()
    field_name: FieldName | None = None
    status: NodeStatus = NodeStatus.IMPLIED
    seq: int = 0
    children: list[int] = field(default_factory=list)
    _child_order: dict[int, tuple[int, int]] = field(default_factory=dict, repr=False)

    @property
    def satisfied(self) -> bool:
        return self.status is NodeStatus.SATISFIED

    @property
    def component_marker(self) -> str | None:
        """The component this node belongs to, when it is a real marker name."""
        if self.component_key is None or self.component_key.startswith(_CONSUMER_KEY_PREFIX):
            return None
        return self.component_key


def component_key(step: ChainStep, registry: ComponentNameRegistry) -> str | None:
    """Canonical component of a consumer or provider step.

    Uses the final registry so the key does not depend on which diagnostic
    taught a name first.
    """
    if step.kind is StepKind.CONSUMER:
        if step.marker is not None:
            return step.marker
        assert step.contract is not None
        name = generic_head(step.contract)
        return registry.marker_for_consumer(name) or f"{_CONSUMER_KEY_PREFIX}{step.contract}"
    if step.kind is StepKind.PROVIDER:
        if step.marker is not None:
            return step.marker
        provider_trait = provider_trait_head(step)
        if provider_trait is None:
            return None
        return registry.marker_for_provider(provider_trait) or marker_for_provider_trait(
            provider_trait
        )
    return None


class DependencyGraph:
    """Node arena with identity-keyed interning."""

    def __init__(self, registry: ComponentNameRegistry) -> None:
        self.registry = registry
        self.nodes: list[DependencyNode] = []
        self._index: dict[NodeKey, int] = {}
        self._keys: list[NodeKey] = []
        self._insertions = 0

    def __len__(self) -> int:
        return len(self.nodes)

    def node(self, handle: int) -> DependencyNode:
        return self.nodes[handle]

    def keys(self) -> list[NodeKey]:
        """Identity key of every node, indexed by handle."""
        return list(self._keys)

    def identity(self, step: ChainStep) -> NodeKey:
        kind = _KIND_FOR_STEP[step.kind]
        if step.kind is StepKind.CHECK or step.kind is StepKind.GETTER:
            return (kind.value, step.context, step.contract)
        if step.kind is StepKind.CONSUMER:
            return (kind.value, step.context, component_key(step, self.registry))
        if step.kind is StepKind.PROVIDER:
            return (
                kind.value,
                step.provider,
                component_key(step, self.registry),
                step.context,
                step.extra_args,
            )
        field_text = step.field_name.text if step.field_name is not None else None
        return (kind.value, step.context, field_text)

    def intern(self, step: ChainStep, seq: int) -> int:
        key = self.identity(step)
        handle = self._index.get(key)
        if handle is None:
            handle = len(self.nodes)
            self._index[key] = handle
            self._keys.append(key)
            self.nodes.append(
                DependencyNode(
                    handle=handle,
                    kind=_KIND_FOR_STEP[step.kind],
                    context_type=step.context,
                    component_key=component_key(step, self.registry),
                    marker=step.marker,
                    contract_name=step.contract,
                    provider_type=step.provider,
                    type_args=step.extra_args,
                    field_name=step.field_name,
                    status=step.status,
                    seq=seq,
                )
            )
            return handle

        node = self.nodes[handle]
        # Converging chains may each know a different part of the node.
        if node.marker is None:
            node.marker = step.marker
        if node.contract_name is None:
            node.contract_name = step.contract
        if _STATUS_RANK[step.status] > _STATUS_RANK[node.status]:
            node.status = step.status
        node.seq = min(node.seq, seq)
        return handle

    def link(self, parent: int, child: int, seq: int) -> None:
        node = self.nodes[parent]
        order = node._child_order.get(child)
        if order is None:
            node._child_order[child] = (seq, self._insertions)
            self._insertions += 1
        elif seq < order[0]:
            node._child_order[child] = (seq, order[1])
        node.children = sorted(node._child_order, key=node._child_order.__getitem__)

    def add_chain(self, chain: RequirementChain, seq: int) -> tuple[list[int], set[Edge]]:
        """Intern every step of a chain. Returns its handles and edges."""
        handles: list[int] = []
        edges: set[Edge] = set()
        for step in chain.steps:
            handle = self.intern(step, seq)
            if step.parent is not None:
                parent = handles[step.parent]
                if parent != handle:
                    self.link(parent, handle, seq)
                    edges.add((parent, handle))
            handles.append(handle)
        return handles, edges


@dataclass(eq=False)
class ErrorGroup:
    """Logical errors reported together because they share a dependency."""

    errors: list[LogicalError]
    roots: list[int]
    nodes: set[int] = field(default_factory=set)
    edges: set[Edge] = field(default_factory=set)

    @property
    def first_seen(self) -> int:
        return min(e.first_seen for e in self.errors)

    @property
    def context(self) -> str | None:
        return next((e.context for e in self.errors if e.context is not None), None)

    def children(self, graph: DependencyGraph, handle: int) -> list[int]:
        """Children of a node restricted to this group's edges."""
        return [c for c in graph.node(handle).children if (handle, c) in self.edges]


@dataclass
class GraphBuild:
    graph: DependencyGraph
    groups: list[ErrorGroup]
    failures: list[tuple[LogicalError, AnalysisError]]


@dataclass
class _ErrorChains:
    error: LogicalError
    roots: list[int] = field(default_factory=list)
    nodes: set[int] = field(default_factory=set)
    edges: set[Edge] = field(default_factory=set)


def _chains_for(error: LogicalError) -> list[tuple[RequirementChain, int]]:
    where = f"{error.span}" if error.span else "<no span>"
    if error.collisions:
        _, context = error.collisions[0]
        raise AnalysisError.inconsistent_context(
            expected=error.context or "<unknown>", found=context or "<unknown>", where=where
        )
    chains = []
    for record in error.records:
        chain = build_chain(record.facts, error.context)
        validate_chain(chain, error.context, where)
        chains.append((chain, record.seq))
    return chains


def build_graph(errors: Sequence[LogicalError], registry: ComponentNameRegistry) -> GraphBuild:
    """Build the shared arena and group logical errors by shared nodes.

    Errors whose chains are internally inconsistent are left out of the
    graph and reported as failures.
    """
    graph = DependencyGraph(registry)
    built: list[_ErrorChains] = []
    failures: list[tuple[LogicalError, AnalysisError]] = []

    for error in sorted(errors, key=lambda e: e.first_seen):
        try:
            chains = _chains_for(error)
        except AnalysisError as e:
            failures.append((error, e))
            continue
        entry = _ErrorChains(error)
        for chain, seq in chains:
            handles, edges = graph.add_chain(chain, seq)
            if handles and handles[0] not in entry.roots:
                entry.roots.append(handles[0])
            entry.nodes.update(handles)
            entry.edges.update(edges)
        error.tree = frozenset(entry.nodes)
        built.append(entry)

    groups = _group(graph, built)
    log.debug("graph_built", nodes=len(graph), groups=len(groups), failures=len(failures))
    return GraphBuild(graph=graph, groups=groups, failures=failures)


def _group(graph: DependencyGraph, built: list[_ErrorChains]) -> list[ErrorGroup]:
    """Union-find over errors sharing any node other than a check root."""
    parent = list(range(len(built)))

    def find(i: int) -> int:
        while parent[i] != i:
            parent[i] = parent[parent[i]]
            i = parent[i]
        return i

    owner: dict[int, int] = {}
    for index, entry in enumerate(built):
        for handle in entry.nodes:
            if graph.node(handle).kind is NodeKind.CHECK_CONTRACT:
                continue
            if handle in owner:
                a, b = find(owner[handle]), find(index)
                if a != b:
                    parent[max(a, b)] = min(a, b)
            else:
                owner[handle] = index

    grouped: dict[int, ErrorGroup] = {}
    for index, entry in enumerate(built):
        group = grouped.setdefault(find(index), ErrorGroup(errors=[], roots=[]))
        group.errors.append(entry.error)
        for root in entry.roots:
            if root not in group.roots:
                group.roots.append(root)
        group.nodes.update(entry.nodes)
        group.edges.update(entry.edges)
    return sorted(grouped.values(), key=lambda g: g.first_seen)


def unsatisfied_leaves(graph: DependencyGraph, group: ErrorGroup) -> list[int]:
    """Unsatisfied nodes without children in the group, in depth-first order."""
    leaves: list[int] = []
    seen: set[int] = set()
    stack = list(reversed(group.roots))
    while stack:
        handle = stack.pop()
        if handle in seen:
            continue
        seen.add(handle)
        children = group.children(graph, handle)
        if not children and graph.node(handle).status is NodeStatus.UNSATISFIED:
            leaves.append(handle)
        stack.extend(reversed(children))
    return leaves


def graph_signature(
    build: GraphBuild,
) -> tuple[frozenset[NodeKey], frozenset[tuple[NodeKey, NodeKey]]]:
    """Node identities and edges between them, independent of handle numbering."""
    keys = build.graph.keys()
    edges: set[tuple[NodeKey, NodeKey]] = set()
    for group in build.groups:
        edges.update((keys[parent], keys[child]) for parent, child in group.edges)
    return frozenset(keys), frozenset(edges)
