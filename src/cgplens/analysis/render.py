"""Tree renderer - flattens a dependency DAG into a `cargo tree` style listing.

Every node is expanded at most once. Reaching an expanded node again (a
shared subtree or a cycle) emits a single back-reference line.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass

from cgplens.analysis.chain import NodeStatus
from cgplens.analysis.graph import DependencyGraph, DependencyNode, NodeKind
from cgplens.analysis.registry import (
    ComponentNameRegistry,
    resolve_consumer_name,
    resolve_provider_name,
)
from cgplens.config.constants import (
    ASCII_SATISFIED_MARK,
    ASCII_UNSATISFIED_MARK,
    BACK_REFERENCE_MARK,
    SATISFIED_MARK,
    UNSATISFIED_MARK,
)
from cgplens.config.models import Charset


@dataclass(frozen=True, slots=True)
class TreeGlyphs:
    branch: str
    last: str
    pipe: str
    blank: str
    unsatisfied: str
    satisfied: str


UNICODE_GLYPHS = TreeGlyphs(
    branch="├─ ",
    last="└─ ",
    pipe="│  ",
    blank="   ",
    unsatisfied=UNSATISFIED_MARK,
    satisfied=SATISFIED_MARK,
)

ASCII_GLYPHS = TreeGlyphs(
    branch="|- ",
    last="`- ",
    pipe="|  ",
    blank="   ",
    unsatisfied=ASCII_UNSATISFIED_MARK,
    satisfied=ASCII_SATISFIED_MARK,
)


def glyphs_for(charset: Charset) -> TreeGlyphs:
    return ASCII_GLYPHS if charset == "ascii" else UNICODE_GLYPHS


@dataclass(frozen=True, slots=True)
class RenderedLine:
    """One line of a rendered tree."""

    depth: int
    handle: int
    text: str
    back_reference: bool = False
    mark: str | None = None


def _quoted(text: str | None) -> str:
    return f"`{text}`" if text else "`_`"


def node_label(node: DependencyNode, registry: ComponentNameRegistry) -> str:
    """Describe a node with every identifier backtick-quoted."""
    context = _quoted(node.context_type)

    if node.kind is NodeKind.CHECK_CONTRACT:
        return f"{_quoted(node.contract_name)} for {context} (check trait)"

    if node.kind is NodeKind.CONSUMER_CONTRACT:
        if node.contract_name is not None:
            name = _quoted(node.contract_name)
        else:
            name = resolve_consumer_name(registry, node.marker or "_").display
        return f"{name} for {context} (consumer trait)"

    if node.kind is NodeKind.PROVIDER_CONTRACT:
        provider = _quoted(node.provider_type)
        if node.contract_name is not None:
            trait = _quoted(node.contract_name)
        else:
            resolved = resolve_provider_name(registry, node.marker or "_")
            if resolved.generic:
                trait = resolved.display
            else:
                args = [a for a in (node.context_type, *node.type_args) if a]
                trait = _quoted(f"{resolved.text}<{', '.join(args)}>" if args else resolved.text)
        return f"{trait} for provider {provider} (provider trait)"

    if node.kind is NodeKind.GETTER_CONTRACT:
        return f"{_quoted(node.contract_name)} for {context} (getter trait)"

    field_name = node.field_name.quoted() if node.field_name is not None else "`_`"
    return f"field {field_name} on {context}"


def render_tree(
    graph: DependencyGraph,
    roots: Sequence[int],
    *,
    children: Callable[[int], list[int]] | None = None,
    charset: Charset = "unicode",
) -> list[RenderedLine]:
    """Flatten the trees under ``roots``.

    Args:
        graph: Node arena
        roots: Handles to start from, rendered in order
        children: Child lookup; defaults to every child in the arena
        charset: "unicode" box drawing or plain "ascii"

    Returns:
        Lines in display order
    """
    glyphs = glyphs_for(charset)
    child_lookup = children or (lambda handle: graph.node(handle).children)
    expanded: set[int] = set()
    lines: list[RenderedLine] = []

    # (handle, depth, prefix, connector); explicit stack keeps depth unbounded.
    stack: list[tuple[int, int, str, str]] = [(r, 0, "", "") for r in reversed(roots)]
    while stack:
        handle, depth, prefix, connector = stack.pop()
        node = graph.node(handle)
        label = node_label(node, graph.registry)

        if handle in expanded:
            lines.append(
                RenderedLine(
                    depth=depth,
                    handle=handle,
                    text=f"{prefix}{connector}{label} {BACK_REFERENCE_MARK}",
                    back_reference=True,
                )
            )
            continue
        expanded.add(handle)

        kids = child_lookup(handle)
        mark = None
        if node.status is NodeStatus.UNSATISFIED and not kids:
            mark = glyphs.unsatisfied
        elif node.status is NodeStatus.SATISFIED:
            mark = glyphs.satisfied
        text = f"{prefix}{connector}{label}" + (f" {mark}" if mark else "")
        lines.append(RenderedLine(depth=depth, handle=handle, text=text, mark=mark))

        if depth == 0:
            child_prefix = ""
        else:
            child_prefix = prefix + (glyphs.blank if connector == glyphs.last else glyphs.pipe)
        for index in range(len(kids) - 1, -1, -1):
            is_last = index == len(kids) - 1
            stack.append(
                (kids[index], depth + 1, child_prefix, glyphs.last if is_last else glyphs.branch)
            )
    return lines
