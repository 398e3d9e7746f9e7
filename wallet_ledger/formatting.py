"""
Presentation Helpers

Currency symbols and compact amount strings for cards and headers.
Pure lookups, kept outside the ledger core.
"""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Optional

CURRENCY_SYMBOLS = {
    "USD": "$",
    "GBP": "£",
    "IRR": "﷼",
    "EUR": "€",
}

BILLION = Decimal("1000000000")
MILLION = Decimal("1000000")


def currency_symbol(code: Any) -> str:
    """Symbol for a currency code; unknown codes are returned as-is."""
    text = getattr(code, "value", code)
    if text is None:
        return ""
    text = str(text).upper()
    return CURRENCY_SYMBOLS.get(text, text)


def _fixed(value: Decimal, places: int) -> str:
    quantum = Decimal(1).scaleb(-places)
    return str(value.quantize(quantum, rounding=ROUND_HALF_UP))


def _grouped(value: Decimal) -> str:
    # Up to three decimals, trailing zeros dropped, thousands grouped
    text = f"{value.quantize(Decimal('0.001'), rounding=ROUND_HALF_UP):,.3f}"
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text


def format_compact(amount: Any, symbol: Optional[str] = None) -> str:
    """
    Render an amount for display.

    >= 1 billion: three decimals and "B"; >= 1 million: one decimal and
    "M"; otherwise thousands separators. The sign goes before the symbol
    ("-$1.5M"). Non-numeric input renders as zero.
    """
    prefix = symbol or ""
    try:
        value = Decimal(str(amount).replace(",", ""))
    except (InvalidOperation, ValueError):
        return f"{prefix}0"
    if not value.is_finite():
        return f"{prefix}0"

    sign = "-" if value < 0 else ""
    magnitude = abs(value)

    if magnitude >= BILLION:
        body = _fixed(magnitude / BILLION, 3) + "B"
    elif magnitude >= MILLION:
        body = _fixed(magnitude / MILLION, 1) + "M"
    else:
        body = _grouped(magnitude)

    return f"{sign}{prefix}{body}"
