"""Scenario fixtures for analysis tests.

Every scenario is a `Rectangle` context checked by `CanUseRectangle`, with
`AreaCalculatorComponent` checked on line 66 and `DensityCalculatorComponent`
on line 67 of src/lib.rs. The struct is defined on line 58.
"""

from __future__ import annotations

from typing import Any

import pytest

from cgplens.diagnostics.models import CompilerDiagnostic

CONTEXT = "Rectangle"
CHECK = "CanUseRectangle"
AREA = "AreaCalculatorComponent"
DENSITY = "DensityCalculatorComponent"
AREA_LINE = 66
DENSITY_LINE = 67
STRUCT_LINE = 58

AREA_FIELD_NOTES = [
    (CONTEXT, "HasRectangleFields"),
    ("RectangleArea", f"IsProviderFor<{AREA}, {CONTEXT}>"),
    (CONTEXT, f"CanUseComponent<{AREA}>"),
]


def decode(*raw: dict[str, Any]) -> list[CompilerDiagnostic]:
    return [CompilerDiagnostic.from_dict(d) for d in raw]


@pytest.fixture
def missing_field_diagnostics(rustc: Any) -> list[CompilerDiagnostic]:
    """Check-contract diagnostic followed by the field access behind it."""
    return decode(
        rustc.check_use(CONTEXT, AREA, CHECK, AREA_LINE),
        rustc.field_chain(
            CONTEXT, "height", AREA_FIELD_NOTES, CHECK, AREA_LINE, definition=STRUCT_LINE
        ),
    )


@pytest.fixture
def alternate_field_diagnostics(rustc: Any) -> list[CompilerDiagnostic]:
    """As missing_field_diagnostics, with `width` reported as implemented."""
    return decode(
        rustc.check_use(CONTEXT, AREA, CHECK, AREA_LINE),
        rustc.field_chain(
            CONTEXT,
            "height",
            AREA_FIELD_NOTES,
            CHECK,
            AREA_LINE,
            implemented="width",
            definition=STRUCT_LINE,
        ),
    )


@pytest.fixture
def nested_provider_diagnostics(rustc: Any) -> list[CompilerDiagnostic]:
    """`ScaledArea<RectangleArea>` delegating to `RectangleArea`."""
    return decode(
        rustc.field_chain(
            CONTEXT,
            "height",
            [
                (CONTEXT, "HasRectangleFields"),
                ("RectangleArea", f"IsProviderFor<{AREA}, {CONTEXT}>"),
                ("ScaledArea<RectangleArea>", f"IsProviderFor<{AREA}, {CONTEXT}>"),
                (CONTEXT, f"CanUseComponent<{AREA}>"),
            ],
            CHECK,
            AREA_LINE,
        )
    )


@pytest.fixture
def shared_chain_diagnostics(rustc: Any) -> list[CompilerDiagnostic]:
    """Two checked components whose failures end at the same missing field."""
    return decode(
        rustc.field_chain(
            CONTEXT, "height", AREA_FIELD_NOTES, CHECK, AREA_LINE, definition=STRUCT_LINE
        ),
        rustc.field_chain(
            CONTEXT,
            "height",
            [
                (CONTEXT, "HasRectangleFields"),
                ("RectangleArea", f"IsProviderFor<{AREA}, {CONTEXT}>"),
                (CONTEXT, "CanCalculateArea"),
                ("DensityFromMassField", f"IsProviderFor<{DENSITY}, {CONTEXT}>"),
                (CONTEXT, f"CanUseComponent<{DENSITY}>"),
            ],
            CHECK,
            DENSITY_LINE,
            definition=STRUCT_LINE,
        ),
    )


@pytest.fixture
def unresolved_provider_diagnostics(rustc: Any) -> list[CompilerDiagnostic]:
    """Density check failing because no provider implements the area trait."""
    return decode(
        rustc.provider_chain(
            "RectangleArea",
            f"AreaCalculator<{CONTEXT}>",
            [
                (CONTEXT, "CanCalculateArea"),
                ("DensityFromMassField", f"IsProviderFor<{DENSITY}, {CONTEXT}>", 40),
                (CONTEXT, f"CanUseComponent<{DENSITY}>"),
            ],
            CHECK,
            DENSITY_LINE,
        )
    )


@pytest.fixture
def blanket_provider_diagnostics(rustc: Any) -> list[CompilerDiagnostic]:
    """A checked provider whose blanket rule does not apply."""
    return decode(
        rustc.provider_chain(
            "ScaledArea<RectangleArea>",
            f"AreaCalculator<{CONTEXT}>",
            [
                ("ScaledArea<RectangleArea>", f"IsProviderFor<{AREA}, {CONTEXT}>", 31),
                (CONTEXT, f"CanUseComponent<{AREA}>"),
            ],
            CHECK,
            AREA_LINE,
        )
    )


@pytest.fixture
def inconsistent_context_diagnostics(rustc: Any) -> list[CompilerDiagnostic]:
    """A provider note naming a different context than its consumer."""
    return decode(
        rustc.field_chain(
            CONTEXT,
            "height",
            [
                (CONTEXT, "HasRectangleFields"),
                ("RectangleArea", f"IsProviderFor<{AREA}, Square>"),
                (CONTEXT, f"CanUseComponent<{AREA}>"),
            ],
            CHECK,
            AREA_LINE,
        )
    )
