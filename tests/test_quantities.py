"""Tests for quantity normalization."""

import math

import pytest

from flexcoach_diet.services.quantities import format_quantity, normalize_quantity


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("3 pieces", (3.0, "pieces")),
        ("150g", (150.0, "g")),
        ("  1.5  cups ", (1.5, "cups")),
        (".5 l", (0.5, "l")),
        (5, (5.0, "")),
        (2.25, (2.25, "")),
        ("a pinch", (1.0, "a pinch")),
        ("", (1.0, "")),
        (None, (1.0, "")),
    ],
)
def test_normalize_quantity(raw: object, expected: tuple[float, str]) -> None:
    assert normalize_quantity(raw) == expected


def test_normalize_quantity_never_raises_on_odd_input() -> None:
    assert normalize_quantity(math.nan) == (1.0, "")
    assert normalize_quantity(True) == (1.0, "True")
    assert normalize_quantity(["x"]) == (1.0, "['x']")


def test_format_quantity_renders_integers_without_fraction() -> None:
    assert format_quantity(3.0, "pieces") == "3 pieces"
    assert format_quantity(1.5, "") == "1.5"
    assert format_quantity(1e-7, "g") == "0.0000001 g"


@pytest.mark.parametrize("raw", ["3 pieces", "150g", "0.75 cup", "a pinch", 42])
def test_formatted_quantity_normalizes_back_to_same_pair(raw: object) -> None:
    quantity, unit = normalize_quantity(raw)
    assert normalize_quantity(format_quantity(quantity, unit)) == (quantity, unit)


def test_unit_only_text_is_trimmed_and_stable() -> None:
    quantity, unit = normalize_quantity("  a pinch  ")

    assert (quantity, unit) == (1.0, "a pinch")
    assert normalize_quantity(format_quantity(quantity, unit)) == (quantity, unit)
