"""Render DGII report files and summaries from transaction records.

The 606 (purchases) and 607 (sales) bodies are pipe delimited, one line per
record, without header, ready to be loaded in the DGII validation tool. The
payroll body is a placeholder: it only documents the period when no payroll
data is supplied.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from pathlib import Path
from typing import Any, Iterable, Mapping, Sequence, Union

from openpyxl import Workbook

from .identifiers import digits_only, identifier_kind
from .transactions import TransactionRecord, as_transaction
from .utils import ZERO, FiscalError, fmt2, format_dgii_date, parse_decimal

PURCHASES_GOODS_CODE = "09"
ZERO_AMOUNT = "0.00"
DEFAULT_PAYMENT_CODE = "1"

PAYMENT_METHOD_CODES: Mapping[str, str] = {
    "cash": "1",
    "transfer": "2",
    "card": "3",
    "credit": "4",
    "mixed": "7",
}

REPORT_KINDS = ("606", "607", "payroll")

RecordLike = Union[TransactionRecord, Mapping[str, Any]]


class UnknownReportError(FiscalError):
    """Raised when a report kind is not one of :data:`REPORT_KINDS`."""


@dataclass
class ReportSummary:
    """Totals displayed before a report is submitted."""

    record_count: int = 0
    total_amount: Decimal = field(default_factory=lambda: Decimal("0"))
    total_tax: Decimal = field(default_factory=lambda: Decimal("0"))


@dataclass(frozen=True)
class PayrollEntry:
    """Minimal payroll line: who was paid and how much."""

    identifier: str
    name: str
    salary: Decimal


def payment_method_code(method: str | None) -> str:
    """Map an internal payment method key to its DGII code."""

    if not method:
        return DEFAULT_PAYMENT_CODE
    return PAYMENT_METHOD_CODES.get(method.strip().lower(), DEFAULT_PAYMENT_CODE)


def _amount(value: Decimal | None) -> str:
    if value is None:
        return ZERO_AMOUNT
    return fmt2(value)


def _purchase_line(record: TransactionRecord) -> str:
    identifier = digits_only(record.counterparty_id)
    issue_date = format_dgii_date(record.timestamp)
    payment_date = format_dgii_date(record.payment_date or record.timestamp)
    tax = _amount(record.tax)

    columns = [
        identifier,
        "1" if identifier else "2",
        PURCHASES_GOODS_CODE,
        record.receipt_number or "",
        "",  # NCF modificado
        issue_date,
        payment_date,
        ZERO_AMOUNT,  # monto servicios
        _amount(record.subtotal),  # monto bienes
        _amount(record.total),
        tax,
        ZERO_AMOUNT,  # ITBIS retenido
        ZERO_AMOUNT,  # ITBIS sujeto a proporcionalidad
        ZERO_AMOUNT,  # ITBIS llevado al costo
        tax,  # ITBIS por adelantar
        ZERO_AMOUNT,  # ITBIS percibido
        "",  # tipo de retencion ISR
        ZERO_AMOUNT,  # monto retencion renta
        ZERO_AMOUNT,  # ISR percibido
        ZERO_AMOUNT,  # impuesto selectivo al consumo
        ZERO_AMOUNT,  # otros impuestos/tasas
        ZERO_AMOUNT,  # propina legal
        payment_method_code(record.payment_method),
    ]
    return "|".join(columns)


def _sales_line(record: TransactionRecord) -> str:
    identifier = digits_only(record.counterparty_id)
    columns = [
        identifier,
        "1" if identifier else "3",
        record.receipt_number or "",
        "",  # NCF modificado
        format_dgii_date(record.timestamp),
        _amount(record.tax),
        _amount(record.subtotal),
    ]
    return "|".join(columns)


def render_606(records: Iterable[RecordLike]) -> str:
    """Return the 606 (compras de bienes y servicios) body."""

    return "\n".join(_purchase_line(as_transaction(item)) for item in records)


def render_607(records: Iterable[RecordLike]) -> str:
    """Return the 607 (ventas de bienes y servicios) body."""

    return "\n".join(_sales_line(as_transaction(item)) for item in records)


def render_payroll(
    company_rnc: str, period: str, entries: Sequence[PayrollEntry] = ()
) -> str:
    """Return the payroll body.

    Without entries the body only carries ``#`` comment lines. With entries
    each line is ``identifier|type|name|salary`` where type is ``1`` for an
    RNC and ``2`` for a cédula. This is an internal layout, not the DGII
    T-REGISTRO format.
    """

    if not entries:
        return "\n".join(
            [
                "# T-REGISTRO - NÓMINA",
                f"# Período: {period}",
                f"# RNC: {company_rnc}",
                "# Sin registros de nómina disponibles",
            ]
        )

    lines = []
    for entry in entries:
        identifier = digits_only(entry.identifier)
        kind = "1" if identifier_kind(identifier) == "rnc" else "2"
        lines.append(
            "|".join([identifier, kind, entry.name.strip(), fmt2(entry.salary)])
        )
    return "\n".join(lines)


def render_report(
    kind: str,
    records: Iterable[RecordLike] = (),
    *,
    company_rnc: str = "",
    period: str = "",
) -> str:
    """Dispatch to the renderer registered for ``kind``."""

    if kind == "606":
        return render_606(records)
    if kind == "607":
        return render_607(records)
    if kind == "payroll":
        return render_payroll(company_rnc, period)
    raise UnknownReportError(f"Tipo de reporte desconocido: {kind}")


def report_filename(kind: str, company_rnc: str, period: str) -> str:
    """Return the file name DGII expects, e.g. ``DGII_F_606_131000002_202401.TXT``."""

    rnc = digits_only(company_rnc)
    if kind == "payroll":
        return f"T_REGISTRO_{rnc}_{period}.TXT"
    if kind not in REPORT_KINDS:
        raise UnknownReportError(f"Tipo de reporte desconocido: {kind}")
    return f"DGII_F_{kind}_{rnc}_{period}.TXT"


def _summary_value(item: RecordLike, name: str) -> object:
    if isinstance(item, TransactionRecord):
        return getattr(item, name)
    return item.get(name)


def summarize_report(records: Iterable[RecordLike]) -> ReportSummary:
    """Count records and add up amounts; missing figures count as zero.

    The amount of a record is its total, falling back to the subtotal.
    """

    summary = ReportSummary()
    for item in records:
        amount = _summary_value(item, "total")
        if amount is None or amount == "":
            amount = _summary_value(item, "subtotal")
        tax = _summary_value(item, "tax")
        if tax is None and not isinstance(item, TransactionRecord):
            tax = item.get("itbis")
        summary.record_count += 1
        summary.total_amount += parse_decimal(amount, default=ZERO)
        summary.total_tax += parse_decimal(tax, default=ZERO)
    return summary


def write_summary_workbook(
    summary: ReportSummary, destination: Path, *, kind: str = "", period: str = ""
) -> Path:
    """Write ``summary`` to an Excel workbook and return its path."""

    destination.parent.mkdir(parents=True, exist_ok=True)

    workbook = Workbook()
    sheet = workbook.active
    sheet.title = "Resumen"
    sheet.append(["Reporte", "Período", "Registros", "Monto total", "ITBIS total"])
    sheet.append(
        [
            kind,
            period,
            summary.record_count,
            summary.total_amount,
            summary.total_tax,
        ]
    )
    workbook.save(destination)
    return destination


__all__ = [
    "PAYMENT_METHOD_CODES",
    "PayrollEntry",
    "REPORT_KINDS",
    "ReportSummary",
    "UnknownReportError",
    "payment_method_code",
    "render_606",
    "render_607",
    "render_payroll",
    "render_report",
    "report_filename",
    "summarize_report",
    "write_summary_workbook",
]
