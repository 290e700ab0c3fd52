"""ITBIS (Impuesto sobre Transferencias de Bienes Industrializados y
Servicios) calculations.

Every amount is rounded **up** to the cent (``ROUND_CEILING``), which is the
rounding rule applied by DGII to ITBIS figures. Because net and tax are
rounded independently, ``net + tax`` may differ from a gross total that
carries fractions of a cent.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_CEILING, Decimal

from .utils import CENT, parse_decimal

ITBIS_RATE = Decimal("0.18")


@dataclass(frozen=True)
class TaxBreakdown:
    """Net, tax and gross amounts of a single operation."""

    net: Decimal
    tax: Decimal
    gross: Decimal


def ceil_cents(value: Decimal) -> Decimal:
    return value.quantize(CENT, rounding=ROUND_CEILING)


def compute_itbis(subtotal: object) -> Decimal:
    """Return the ITBIS charged on ``subtotal``."""

    return ceil_cents(parse_decimal(subtotal) * ITBIS_RATE)


def compute_net_from_gross(total: object) -> Decimal:
    """Return the taxable base contained in an ITBIS inclusive ``total``."""

    return ceil_cents(parse_decimal(total) / (1 + ITBIS_RATE))


def compute_itbis_from_gross(total: object) -> Decimal:
    """Return the ITBIS contained in an ITBIS inclusive ``total``."""

    gross = parse_decimal(total)
    return ceil_cents(gross - compute_net_from_gross(gross))


def breakdown_from_subtotal(subtotal: object) -> TaxBreakdown:
    net = parse_decimal(subtotal)
    tax = compute_itbis(net)
    return TaxBreakdown(net=net, tax=tax, gross=net + tax)


def breakdown_from_gross(total: object) -> TaxBreakdown:
    gross = parse_decimal(total)
    return TaxBreakdown(
        net=compute_net_from_gross(gross),
        tax=compute_itbis_from_gross(gross),
        gross=gross,
    )


__all__ = [
    "ITBIS_RATE",
    "TaxBreakdown",
    "breakdown_from_gross",
    "breakdown_from_subtotal",
    "ceil_cents",
    "compute_itbis",
    "compute_itbis_from_gross",
    "compute_net_from_gross",
]
