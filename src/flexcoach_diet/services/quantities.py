"""Normalization of free-form food quantities."""

import math
import re
from decimal import Decimal

_LEADING_NUMBER = re.compile(r"^[-+]?(?:\d+(?:\.\d+)?|\.\d+)")


def normalize_quantity(raw: object) -> tuple[float, str]:
    """Split a caller's quantity into a numeric amount and a unit text.

    Never raises: ``"3 pieces"`` -> ``(3.0, "pieces")``, ``"150g"`` ->
    ``(150.0, "g")``, ``5`` -> ``(5.0, "")`` and ``"a pinch"`` ->
    ``(1.0, "a pinch")``. Text without a leading number is kept as the
    unit with surrounding whitespace trimmed.
    """
    if isinstance(raw, int | float) and not isinstance(raw, bool):
        value = float(raw)
        if not math.isfinite(value):
            return 1.0, ""
        return value, ""
    if raw is None:
        return 1.0, ""
    text = str(raw).strip()
    match = _LEADING_NUMBER.match(text)
    if match is None:
        return 1.0, text
    return float(match.group(0)), text[match.end() :].strip()


def format_quantity(quantity: float, unit: str) -> str:
    """Render a normalized pair back to text that normalizes to the same pair."""
    number = _format_number(quantity)
    if not unit:
        return number
    return f"{number} {unit}"


def _format_number(value: float) -> str:
    if value.is_integer():
        return str(int(value))
    text = repr(value)
    if "e" in text or "E" in text:
        text = format(Decimal(text), "f")
    return text
