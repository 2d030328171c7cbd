"""Helpers for the type expressions the compiler prints inside diagnostics.

All scanning is depth-aware over ``<>``, ``()`` and ``[]`` and skips the
contents of character literals, so a type-level string such as
``Chars<',', Chars<'>', Nil>>`` never confuses the bracket counting.
"""

from __future__ import annotations

import re
from collections.abc import Iterator

_OPEN = "<(["
_CLOSE = ">)]"

_PATH_PREFIX = re.compile(r"(?<![A-Za-z0-9_'])(?:[A-Za-z_][A-Za-z0-9_]*::)+(?=[A-Za-z_<])")


def char_literal_end(text: str, start: int) -> int | None:
    """End index (exclusive) of the char literal opening at ``start``.

    Returns None when the quote at ``start`` opens a lifetime instead.
    """
    n = len(text)
    if start >= n or text[start] != "'":
        return None
    if start + 1 < n and text[start + 1] == "\\":
        if start + 2 < n and text[start + 2] == "u":
            close_brace = text.find("}", start + 3)
            if close_brace != -1 and close_brace + 1 < n and text[close_brace + 1] == "'":
                return close_brace + 2
            return None
        if start + 2 < n and text[start + 2] == "x":
            end = start + 5
            return end + 1 if end < n and text[end] == "'" else None
        end = start + 3
        return end + 1 if end < n and text[end] == "'" else None
    if start + 2 < n and text[start + 2] == "'":
        return start + 3
    return None


def iter_top_level(text: str) -> Iterator[tuple[int, str, int]]:
    """Yield (index, char, depth) for every char outside character literals."""
    depth = 0
    i = 0
    n = len(text)
    while i < n:
        ch = text[i]
        if ch == "'":
            end = char_literal_end(text, i)
            if end is not None:
                i = end
                continue
        if ch in _OPEN:
            yield i, ch, depth
            depth += 1
        elif ch in _CLOSE:
            depth = max(depth - 1, 0)
            yield i, ch, depth
        else:
            yield i, ch, depth
        i += 1


def matching_close(text: str, open_index: int) -> int | None:
    """Index of the bracket closing the one at ``open_index``."""
    target = None
    for i, ch, depth in iter_top_level(text):
        if i == open_index:
            target = depth
            continue
        if target is not None and i > open_index and ch in _CLOSE and depth == target:
            return i
    return None


def split_top_level(text: str, sep: str = ",") -> list[str]:
    """Split on ``sep`` at bracket depth zero; empty input gives no parts."""
    parts: list[str] = []
    last = 0
    for i, ch, depth in iter_top_level(text):
        if ch == sep and depth == 0:
            parts.append(text[last:i].strip())
            last = i + 1
    tail = text[last:].strip()
    if tail or parts:
        parts.append(tail)
    return [p for p in parts if p]


def parse_generic(text: str) -> tuple[str, tuple[str, ...]]:
    """Split ``Head<A, B<C>>`` into ``("Head", ("A", "B<C>"))``.

    Types without a generic list return an empty argument tuple. An
    unbalanced list (truncated by the compiler) keeps what was printed.
    """
    text = text.strip()
    for i, ch, depth in iter_top_level(text):
        if ch == "<" and depth == 0:
            head = text[:i].strip()
            close = matching_close(text, i)
            inner = text[i + 1 : close] if close is not None else text[i + 1 :].rstrip(">")
            return head, tuple(split_top_level(inner))
    return text, ()


def generic_head(text: str) -> str:
    return parse_generic(text)[0]


def split_bound(text: str) -> tuple[str, str] | None:
    """Split a bound ``Type: Trait<..>`` at its top-level colon."""
    for i, ch, depth in iter_top_level(text):
        if ch != ":" or depth != 0:
            continue
        if (i + 1 < len(text) and text[i + 1] == ":") or (i > 0 and text[i - 1] == ":"):
            continue
        left, right = text[:i].strip(), text[i + 1 :].strip()
        if left and right:
            return left, right
    return None


def strip_paths(text: str) -> str:
    """Drop module paths: ``cgp::prelude::HasField<a::B>`` -> ``HasField<B>``."""
    out: list[str] = []
    last = 0
    i = 0
    n = len(text)
    # Character literals are copied untouched.
    while i < n:
        if text[i] == "'":
            end = char_literal_end(text, i)
            if end is not None:
                out.append(_PATH_PREFIX.sub("", text[last:i]))
                out.append(text[i:end])
                last = i = end
                continue
        i += 1
    out.append(_PATH_PREFIX.sub("", text[last:]))
    return "".join(out)


def has_type_argument(outer: str, inner: str) -> bool:
    """Whether ``inner`` is one of the top-level type arguments of ``outer``."""
    _, args = parse_generic(outer)
    normalized = _normalize(inner)
    return any(_normalize(arg) == normalized for arg in args)


def _normalize(text: str) -> str:
    return re.sub(r"\s+", "", text)


def same_type(left: str, right: str) -> bool:
    """Compare two printed types ignoring whitespace."""
    return _normalize(left) == _normalize(right)
