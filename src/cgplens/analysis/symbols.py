"""Decoder for type-level field names.

Field access in CGP is keyed by a type-level string such as::

    Symbol<6, Chars<'h', Chars<'e', Chars<'i', Chars<_, Chars<'h', Chars<'t', Nil>>>>>>>

The compiler may erase single characters (``_``) or truncate the list with
``...``. Erased and missing positions become hidden slots; decoding never
fails.
"""

from __future__ import annotations

import json
from dataclasses import dataclass

from cgplens.analysis.typeexpr import char_literal_end, parse_generic
from cgplens.config.constants import CHAR_NODE_TYPES, CHARS_END, HIDDEN_CHAR_GLYPH, SYMBOL_TYPE

_SIMPLE_ESCAPES = {
    "n": "\n",
    "t": "\t",
    "r": "\r",
    "0": "\0",
    "\\": "\\",
    "'": "'",
    '"': '"',
}


@dataclass(frozen=True, slots=True)
class FieldName:
    """A decoded field name. ``None`` slots are characters the compiler hid."""

    slots: tuple[str | None, ...] = ()

    @property
    def visible_count(self) -> int:
        return sum(1 for s in self.slots if s is not None)

    @property
    def hidden_count(self) -> int:
        return sum(1 for s in self.slots if s is None)

    @property
    def has_hidden(self) -> bool:
        return self.hidden_count > 0 or not self.slots

    @property
    def text(self) -> str:
        if not self.slots:
            return HIDDEN_CHAR_GLYPH
        return "".join(HIDDEN_CHAR_GLYPH if s is None else s for s in self.slots)

    def quoted(self) -> str:
        """Backticked display form; unusual names render as a string literal."""
        text = self.text
        if is_identifier_safe(text):
            return f"`{text}`"
        return f"`{json.dumps(text, ensure_ascii=False)}`"

    def __str__(self) -> str:
        return self.text


def is_identifier_safe(text: str) -> bool:
    return bool(text) and all(ch.isalnum() or ch in "-_" or ch == HIDDEN_CHAR_GLYPH for ch in text)


def decode_char_literal(literal: str) -> str | None:
    """Value of a char literal such as ``'a'``, ``'\\n'`` or ``'\\u{1F600}'``."""
    if len(literal) < 3 or literal[0] != "'" or literal[-1] != "'":
        return None
    body = literal[1:-1]
    if not body.startswith("\\"):
        return body if len(body) == 1 else None
    escape = body[1:]
    if escape in _SIMPLE_ESCAPES:
        return _SIMPLE_ESCAPES[escape]
    try:
        if escape.startswith("u{") and escape.endswith("}"):
            return chr(int(escape[2:-1].replace("_", ""), 16))
        if escape.startswith("x") and len(escape) == 3:
            return chr(int(escape[1:], 16))
    except ValueError:
        return None
    return None


def parse_char_list(text: str) -> list[str | None]:
    """Slots of a ``Chars<c, Chars<c, ... Nil>>`` list, outermost first."""
    slots: list[str | None] = []
    rest = text.strip()
    while rest:
        head, args = parse_generic(rest)
        if head not in CHAR_NODE_TYPES or not args:
            break
        slots.append(_decode_slot(args[0]))
        if len(args) < 2:
            break
        rest = args[1].strip()
        if rest == CHARS_END or rest.startswith("..."):
            break
    return slots


def _decode_slot(text: str) -> str | None:
    text = text.strip()
    if text.startswith("'") and char_literal_end(text, 0) == len(text):
        return decode_char_literal(text)
    return None


def decode_field_name(encoded: str) -> FieldName:
    """Decode ``Symbol<N, ...>`` (or a bare character list) into a FieldName.

    Positions beyond the decoded characters, up to the declared length
    ``N``, are hidden slots.
    """
    head, args = parse_generic(encoded)
    declared: int | None = None
    if head == SYMBOL_TYPE:
        if args and args[0].strip().isdigit():
            declared = int(args[0])
        chars_text = args[1] if len(args) > 1 else ""
    else:
        chars_text = encoded

    slots = parse_char_list(chars_text)
    if declared is not None and declared > len(slots):
        slots.extend([None] * (declared - len(slots)))
    return FieldName(tuple(slots))


def field_name_tag(trait_text: str) -> str | None:
    """The tag argument of ``HasField<Tag>`` as printed."""
    _, args = parse_generic(trait_text)
    return args[0] if args else None
