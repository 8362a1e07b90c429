"""Money formatting and small numeric/time helpers."""

from __future__ import annotations

import math
from datetime import datetime, timezone

from pokerboard.config import get_settings


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves toward +infinity.

    Python's ``round`` uses banker's rounding; settlement figures have to
    round ``2.5`` to ``3`` and ``-2.5`` to ``-2``.
    """
    return math.floor(value + 0.5)


def format_number(value: float) -> str:
    """Format a number with Turkish separators.

    Whole numbers get no decimals, others up to two:
    ``40000 -> "40.000"``, ``1234.5 -> "1.234,5"``.
    """
    value = round(value, 2)
    negative = value < 0
    value = abs(value)

    if value == int(value):
        text = f"{int(value):,}".replace(",", ".")
    else:
        whole, frac = f"{value:,.2f}".split(".")
        text = whole.replace(",", ".") + "," + frac.rstrip("0")

    return f"-{text}" if negative else text


def format_amount(value: float) -> str:
    """``format_number`` prefixed with the configured currency symbol."""
    symbol = get_settings().currency_symbol
    if value < 0:
        return f"-{symbol}{format_number(-value)}"
    return f"{symbol}{format_number(value)}"


def ensure_utc(value: datetime | None) -> datetime | None:
    """Attach UTC to naive datetimes read back from SQLite."""
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)
