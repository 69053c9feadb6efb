"""Numeric formatting helpers shared by the serializers."""

from __future__ import annotations

PRECISION = 3
"""Decimal digits kept in emitted coordinates and feeds."""


def round_precision(value: float, digits: int = PRECISION) -> float:
    """Round ``value`` to ``digits`` decimals, folding ``-0.0`` into ``0.0``."""
    rounded = round(value, digits)
    return 0.0 if rounded == 0 else rounded


def format_number(value: float, digits: int = PRECISION) -> str:
    """Render a number compactly: fixed precision, trailing zeros stripped.

    Examples
    --------
    >>> format_number(10.0)
    '10'
    >>> format_number(-0.0001)
    '0'
    >>> format_number(1.23456)
    '1.235'
    """
    text = f"{round_precision(value, digits):.{digits}f}"
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text
