"""Guaraní (PYG) display helpers."""

from __future__ import annotations

import re

GUARANI_SYMBOL = "₲"

_STRIP_PATTERN = re.compile(r"[₲\s.]")


def format_guarani(amount: float) -> str:
    """Format an amount as ``₲ 1.234.567`` (dot thousands separator, no decimals)."""
    rounded = int(round(amount))
    sign = "-" if rounded < 0 else ""
    grouped = f"{abs(rounded):,}".replace(",", ".")
    return f"{GUARANI_SYMBOL} {sign}{grouped}"


def parse_guarani(value: str) -> float:
    """Parse a formatted Guaraní string back to a number. Unparseable input yields 0."""
    cleaned = _STRIP_PATTERN.sub("", value).replace(",", ".")
    try:
        return float(cleaned)
    except ValueError:
        return 0.0


def format_amount(amount: float, currency: str) -> str:
    if currency.upper() == "PYG":
        return format_guarani(amount)
    return f"{currency.upper()} {amount:,.2f}"
