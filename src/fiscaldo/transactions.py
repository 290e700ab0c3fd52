"""Transaction records consumed by the DGII report renderers."""

from __future__ import annotations

import csv
import unicodedata
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from pathlib import Path
from typing import Any, Iterable, Mapping

from .utils import FiscalError, parse_decimal

_COLUMN_ALIASES: Mapping[str, tuple[str, ...]] = {
    "counterparty_id": (
        "counterparty_id",
        "rnc",
        "rnc_cedula",
        "rnc/cedula",
        "customer_rnc",
        "customerrnc",
        "supplier_rnc",
    ),
    "receipt_number": ("receipt_number", "ncf"),
    "subtotal": ("subtotal", "monto", "net"),
    "tax": ("tax", "itbis"),
    "total": ("total",),
    "payment_method": ("payment_method", "paymentmethod", "forma_pago"),
    "timestamp": ("timestamp", "fecha", "date", "created_at", "createdat"),
    "payment_date": ("payment_date", "fecha_pago", "paid_at"),
}


class TransactionFileError(FiscalError):
    """Raised when a transaction file cannot be loaded."""


@dataclass
class TransactionRecord:
    """Sale or purchase as seen by the 606/607 renderers.

    Monetary fields stay ``None`` when the source omits them so the
    renderers can tell "absent" from "zero".
    """

    counterparty_id: str | None = None
    receipt_number: str | None = None
    subtotal: Decimal | None = None
    tax: Decimal | None = None
    total: Decimal | None = None
    payment_method: str | None = None
    timestamp: date | datetime | str | None = None
    payment_date: date | datetime | str | None = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "TransactionRecord":
        """Build a record from a mapping using the known column aliases."""

        normalised = {_normalise_header(key): value for key, value in data.items()}
        values: dict[str, Any] = {}
        for field_name, aliases in _COLUMN_ALIASES.items():
            for alias in aliases:
                if alias in normalised:
                    values[field_name] = normalised[alias]
                    break

        return cls(
            counterparty_id=_clean_text(values.get("counterparty_id")),
            receipt_number=_clean_text(values.get("receipt_number")),
            subtotal=_optional_decimal(values.get("subtotal")),
            tax=_optional_decimal(values.get("tax")),
            total=_optional_decimal(values.get("total")),
            payment_method=_clean_text(values.get("payment_method")),
            timestamp=values.get("timestamp") or None,
            payment_date=values.get("payment_date") or None,
        )


def as_transaction(item: TransactionRecord | Mapping[str, Any]) -> TransactionRecord:
    if isinstance(item, TransactionRecord):
        return item
    return TransactionRecord.from_mapping(item)


def load_transactions(path: Path) -> list[TransactionRecord]:
    """Load transactions from a ``.csv`` or ``.xlsx`` file with a header row."""

    if not path.exists():
        raise TransactionFileError(f"Archivo no encontrado: {path}")

    suffix = path.suffix.lower()
    if suffix == ".csv":
        rows = _read_csv_rows(path)
    elif suffix in {".xlsx", ".xlsm"}:
        rows = _read_excel_rows(path)
    else:
        raise TransactionFileError(f"Formato no soportado: {path.suffix}")

    return [TransactionRecord.from_mapping(row) for row in rows]


def _read_csv_rows(path: Path) -> list[dict[str, Any]]:
    with path.open("r", encoding="utf-8-sig", newline="") as handle:
        return [dict(row) for row in csv.DictReader(handle)]


def _read_excel_rows(path: Path) -> list[dict[str, Any]]:
    from openpyxl import load_workbook

    workbook = load_workbook(path, read_only=True, data_only=True)
    sheet = workbook.active
    rows = list(sheet.iter_rows(values_only=True))
    workbook.close()
    if not rows:
        raise TransactionFileError("El archivo Excel no contiene datos.")

    header = [_normalise_header(value) for value in rows[0]]
    records: list[dict[str, Any]] = []
    for row in rows[1:]:
        if row is None or all(value is None for value in row):
            continue
        records.append(
            {
                key: _normalise_excel_value(value)
                for key, value in zip(header, row)
                if key
            }
        )
    return records


def _normalise_header(value: object) -> str:
    if value is None:
        return ""
    text = str(value).strip().lower().replace(" ", "_")
    normalised = unicodedata.normalize("NFKD", text)
    return "".join(ch for ch in normalised if not unicodedata.combining(ch))


def _normalise_excel_value(value: object) -> object:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (date, datetime)):
        return value
    if value is None:
        return ""
    return str(value).strip()


def _clean_text(value: object) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _optional_decimal(value: object) -> Decimal | None:
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    return parse_decimal(value)


__all__ = [
    "TransactionFileError",
    "TransactionRecord",
    "as_transaction",
    "load_transactions",
]
