"""Terminal output for rendered diagnostics."""

from __future__ import annotations

import re

from rich.console import Console
from rich.text import Text

from cgplens.config.constants import (
    ASCII_SATISFIED_MARK,
    ASCII_UNSATISFIED_MARK,
    BACK_REFERENCE_MARK,
    SATISFIED_MARK,
    UNSATISFIED_MARK,
)
from cgplens.config.models import ColorMode

_HIGHLIGHTS: tuple[tuple[str, str], ...] = (
    (r"(?m)^error(\[\w+\])?:", "bold red"),
    (r"(?m)^warning(\[\w+\])?:", "bold yellow"),
    (r"(?m)^\s*= help:", "bold cyan"),
    (r"(?m)^\s*note:", "bold"),
    (rf"(?m){UNSATISFIED_MARK}|(?<= ){ASCII_UNSATISFIED_MARK}$", "bold red"),
    (rf"(?m){SATISFIED_MARK}|(?<= ){ASCII_SATISFIED_MARK}$", "green"),
    (re.escape(BACK_REFERENCE_MARK), "dim"),
    (r"`[^`\n]+`", "cyan"),
)


def make_console(color: ColorMode = "auto") -> Console:
    """Console on stdout honoring the color mode. Long lines are never wrapped."""
    if color == "always":
        return Console(force_terminal=True, highlight=False, soft_wrap=True)
    if color == "never":
        return Console(no_color=True, color_system=None, highlight=False, soft_wrap=True)
    return Console(highlight=False, soft_wrap=True)


def styled(text: str) -> Text:
    """Colorize diagnostic text without changing a character of it."""
    result = Text(text)
    for pattern, style in _HIGHLIGHTS:
        result.highlight_regex(pattern, style)
    return result


def print_diagnostic(console: Console, text: str) -> None:
    console.print(styled(text))
