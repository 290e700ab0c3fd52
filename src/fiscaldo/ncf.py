"""Número de Comprobante Fiscal (NCF) helpers.

An NCF is an 11 character string: the series letter, a two digit document
type code and an eight digit sequence, e.g. ``B0100000001``. Sequence
uniqueness is the issuer's concern and is not checked here.
"""

from __future__ import annotations

import re
from typing import Mapping, NamedTuple

SEQUENCE_WIDTH = 8
DEFAULT_DOCUMENT_TYPE = "consumer"

NCF_PREFIXES: Mapping[str, str] = {
    "credit_fiscal": "B01",
    "consumer": "B02",
    "debit_note": "B03",
    "credit_note": "B04",
    "purchase": "B11",
    "income": "B12",
    "minor_expenses": "B13",
    "special_regime": "B14",
    "government": "B15",
}

_PATTERNS: Mapping[str, re.Pattern[str]] = {
    key: re.compile(rf"{prefix}[0-9]{{{SEQUENCE_WIDTH}}}")
    for key, prefix in NCF_PREFIXES.items()
}


class ReceiptNumber(NamedTuple):
    """Decomposed NCF."""

    series: str
    type_code: str
    sequence: int

    @property
    def prefix(self) -> str:
        return f"{self.series}{self.type_code}"

    def __str__(self) -> str:
        return f"{self.prefix}{self.sequence:0{SEQUENCE_WIDTH}d}"


def validate_ncf(value: str | None) -> bool:
    """Return ``True`` for an empty value or a recognised NCF."""

    if not value:
        return True
    return any(pattern.fullmatch(value) for pattern in _PATTERNS.values())


def generate_ncf(document_type: str, sequence: int) -> str:
    """Build the NCF for ``document_type`` and ``sequence``.

    Unknown document types fall back to the consumer invoice prefix.
    """

    prefix = NCF_PREFIXES.get(document_type, NCF_PREFIXES[DEFAULT_DOCUMENT_TYPE])
    return f"{prefix}{str(sequence).zfill(SEQUENCE_WIDTH)}"


def document_type_of(value: str | None) -> str | None:
    """Return the document type key of ``value`` or ``None``."""

    if not value:
        return None
    for key, pattern in _PATTERNS.items():
        if pattern.fullmatch(value):
            return key
    return None


def parse_ncf(value: str | None) -> ReceiptNumber | None:
    if not value or document_type_of(value) is None:
        return None
    return ReceiptNumber(value[0], value[1:3], int(value[3:]))


__all__ = [
    "NCF_PREFIXES",
    "ReceiptNumber",
    "SEQUENCE_WIDTH",
    "document_type_of",
    "generate_ncf",
    "parse_ncf",
    "validate_ncf",
]
