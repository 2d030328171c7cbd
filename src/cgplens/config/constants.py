"""Configuration constants.

This module contains truly constant values that should NOT be user-configurable:
the analyzed library's vocabulary and the reserved rendering glyphs.

For configurable values, see models.py (RenderConfig, LoggingConfig).
"""

# =============================================================================
# Library Vocabulary
# =============================================================================
# Names generated by the CGP macros. Only these (and the compiler's own
# phrasing) are ever matched; user identifiers never are.

CONSUMER_USE_TRAIT = "CanUseComponent"
"""Blanket consumer trait: `Context: CanUseComponent<Marker>`."""

PROVIDER_USE_TRAIT = "IsProviderFor"
"""Provider marker trait: `Provider: IsProviderFor<Marker, Context, ...>`."""

FIELD_ACCESS_TRAIT = "HasField"
"""Field-access trait derived by `#[derive(HasField)]`."""

SYMBOL_TYPE = "Symbol"
"""Type-level string: `Symbol<Len, Chars<...>>`."""

CHAR_NODE_TYPES = ("Chars", "Char", "ι")
"""Names of one node of a type-level character list, newest encoding first."""

CHARS_END = "Nil"
"""Terminator of a type-level character list."""

COMPONENT_SUFFIX = "Component"
"""Marker names are the provider trait name plus this suffix."""

CHECK_MACRO = "check_components!"
"""Macro users write to assert a context can use components."""

FIELD_DERIVE = "#[derive(HasField)]"
"""Derive that implements field access for a struct."""

# =============================================================================
# Rendering Glyphs
# =============================================================================

HIDDEN_CHAR_GLYPH = "�"
"""Substitution glyph for characters the compiler erased."""

UNSATISFIED_MARK = "✗"
SATISFIED_MARK = "✓"
BACK_REFERENCE_MARK = "(*)"

ASCII_UNSATISFIED_MARK = "x"
ASCII_SATISFIED_MARK = "v"
