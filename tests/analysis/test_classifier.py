"""Tests for the diagnostic classifier and contract vocabulary."""

from typing import Any

import pytest

from cgplens.analysis.classifier import Classification, classify
from cgplens.analysis.vocabulary import (
    ConsumerUse,
    FieldAccess,
    PlainTrait,
    ProviderUse,
    classify_contract,
    is_anchor_trait,
    marker_for_provider_trait,
)
from cgplens.diagnostics.models import CompilerDiagnostic


class TestClassifyContract:
    """Shapes of printed traits."""

    @pytest.mark.parametrize(
        ("trait", "expected"),
        [
            ("CanUseComponent<AreaCalculatorComponent>", ConsumerUse("AreaCalculatorComponent")),
            (
                "IsProviderFor<AreaCalculatorComponent, Rectangle>",
                ProviderUse("AreaCalculatorComponent", "Rectangle"),
            ),
            (
                "IsProviderFor<ErrorRaiserComponent, App, Error>",
                ProviderUse("ErrorRaiserComponent", "App", ("Error",)),
            ),
            (
                "IsProviderFor<AreaCalculatorComponent>",
                ProviderUse("AreaCalculatorComponent", None),
            ),
            ("HasField<Symbol<1, Chars<'x', Nil>>>", FieldAccess("Symbol<1, Chars<'x', Nil>>")),
            ("CanCalculateArea", PlainTrait("CanCalculateArea")),
            ("AreaCalculator<Rectangle>", PlainTrait("AreaCalculator", ("Rectangle",))),
            ("CanUseComponent", PlainTrait("CanUseComponent")),
        ],
    )
    def test_shape(self, trait: str, expected: object) -> None:
        assert classify_contract(trait) == expected

    def test_anchor_traits(self) -> None:
        assert is_anchor_trait("CanUseComponent<X>")
        assert not is_anchor_trait("Display")

    def test_plain_trait_text_round_trips(self) -> None:
        assert PlainTrait("AreaCalculator", ("Rectangle", "f64")).text == (
            "AreaCalculator<Rectangle, f64>"
        )

    def test_provider_trait_args(self) -> None:
        assert ProviderUse("M", "Ctx", ("E",)).trait_args == ("Ctx", "E")
        assert ProviderUse("M", None).trait_args == ()

    def test_marker_by_convention(self) -> None:
        assert marker_for_provider_trait("AreaCalculator") == "AreaCalculatorComponent"


class TestClassify:
    """Held versus pass-through diagnostics."""

    def test_given_unrelated_error_when_classified_then_passed_through_unchanged(
        self, rustc: Any
    ) -> None:
        """A diagnostic with no library fact is returned as the same object."""
        # Given
        diagnostic = CompilerDiagnostic.from_dict(rustc.plain_error())

        # When
        outcome = classify(diagnostic)

        # Then
        assert outcome.kind is Classification.PASS_THROUGH
        assert not outcome.held
        assert outcome.diagnostic is diagnostic
        assert outcome.facts == ()

    def test_given_user_trait_chain_when_classified_then_passed_through(self, rustc: Any) -> None:
        """Facts outside the library vocabulary do not hold a diagnostic."""
        # Given
        raw = rustc.bound(
            "Foo",
            "Display",
            line=5,
            children=[rustc.required_for("Bar<Foo>", "Debug"), rustc.required_by_bound("show")],
        )
        diagnostic = CompilerDiagnostic.from_dict(raw)

        # When
        outcome = classify(diagnostic)

        # Then
        assert outcome.kind is Classification.PASS_THROUGH
        assert outcome.diagnostic is diagnostic

    def test_given_check_use_when_classified_then_held(self, rustc: Any) -> None:
        """A consumer-use header anchors the diagnostic."""
        diagnostic = CompilerDiagnostic.from_dict(
            rustc.check_use("Rectangle", "AreaCalculatorComponent", "CanUseRectangle", 66)
        )

        outcome = classify(diagnostic)

        assert outcome.held
        assert outcome.facts

    def test_given_provider_note_only_when_classified_then_held(
        self, unresolved_provider_diagnostics: list[CompilerDiagnostic]
    ) -> None:
        """A provider-use note anchors a header about a user trait."""
        outcome = classify(unresolved_provider_diagnostics[0])

        assert outcome.kind is Classification.HELD

    def test_given_warning_when_classified_then_passed_through(self, rustc: Any) -> None:
        diagnostic = CompilerDiagnostic.from_dict(
            rustc.diagnostic("unused variable: `x`", line=3, level="warning", code="unused")
        )

        assert classify(diagnostic).diagnostic is diagnostic
        assert not classify(diagnostic).held
