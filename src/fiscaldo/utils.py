"""Utility helpers shared across the fiscal modules."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal, InvalidOperation

ZERO = Decimal("0")
CENT = Decimal("0.01")


class FiscalError(Exception):
    """Base class for the errors raised by :mod:`fiscaldo`."""


def parse_decimal(value: object, *, default: Decimal = ZERO) -> Decimal:
    """Convert the provided value to :class:`~decimal.Decimal`.

    Empty strings, ``None`` or invalid values return ``default``. Floats go
    through ``str`` so ``0.1`` becomes ``Decimal("0.1")`` and not its binary
    expansion.
    """

    if value is None:
        return default
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        return default
    if isinstance(value, int):
        return Decimal(value)

    text = str(value).strip()
    if not text:
        return default

    try:
        result = Decimal(text)
    except (InvalidOperation, ValueError):
        return default
    if not result.is_finite():
        return default
    return result


def fmt2(value: Decimal) -> str:
    return f"{value:.2f}"


def parse_date(value: object) -> date | None:
    """Return a :class:`~datetime.date` for ``value`` or ``None``.

    Accepts ``date``/``datetime`` instances and ISO 8601 strings (a trailing
    ``Z`` is understood as UTC). Anything else yields ``None``.
    """

    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value

    text = str(value).strip()
    if not text:
        return None
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(text).date()
    except ValueError:
        pass
    try:
        return date.fromisoformat(text[:10])
    except ValueError:
        return None


def format_dgii_date(value: object) -> str:
    """Render ``value`` as ``YYYYMMDD``; unparsable dates give ``""``."""

    parsed = parse_date(value)
    if parsed is None:
        return ""
    return parsed.strftime("%Y%m%d")


__all__ = [
    "CENT",
    "FiscalError",
    "ZERO",
    "fmt2",
    "format_dgii_date",
    "parse_date",
    "parse_decimal",
]
