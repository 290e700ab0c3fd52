"""Parsing of the DGII taxpayer registry (``DGII_RNC.TXT``).

Each line of the registry is pipe delimited::

    RNC|RAZON SOCIAL|NOMBRE COMERCIAL|ACTIVIDAD|...|FECHA CONSTITUCION|ESTADO|TIPO

Only the first eleven fields are mandatory; the twelfth, when present, is the
type code assigned by DGII (``GC`` large taxpayer, ``EG`` government entity,
``ONGS`` non-profit, ``RST`` special regime).
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from itertools import islice
from pathlib import Path
from typing import Iterator

from ..config import DEFAULT_SOURCE_ENCODING
from ..identifiers import normalize_identifier
from ..utils import FiscalError

MIN_FIELDS = 11
NAME_MAX_LENGTH = 200
DEFAULT_TYPE_CODE = "NORMAL"
SPECIAL_REGIME_CODE = "RST"
INACTIVE_STATUSES = frozenset({"SUSPENDIDO", "INACTIVO", "CANCELADO"})

_IDENTIFIER_PATTERN = re.compile(r"^\d{8,11}$")


class TaxpayerCategory(str, Enum):
    REGISTERED = "CONTRIBUYENTE REGISTRADO"
    LARGE = "GRAN CONTRIBUYENTE"
    GOVERNMENT = "ENTIDAD GUBERNAMENTAL"
    NON_PROFIT = "ORGANIZACION SIN FINES DE LUCRO"


class TaxRegime(str, Enum):
    ORDINARY = "ORDINARIO"
    SPECIAL = "REGIMEN ESPECIAL"


class TaxpayerStatus(str, Enum):
    ACTIVE = "ACTIVO"
    INACTIVE = "INACTIVO"


class RegistryError(FiscalError):
    """Base class for registry import errors."""


class RegistrySourceError(RegistryError):
    """Raised when the registry source file cannot be read."""


class RegistryLineError(RegistryError):
    """Raised for a registry line that cannot be turned into a record."""


@dataclass(frozen=True)
class ClassificationRule:
    """Assign ``category`` when the type code or the legal name matches."""

    category: TaxpayerCategory
    type_codes: frozenset[str] = frozenset()
    keywords: tuple[str, ...] = ()

    def matches(self, legal_name: str, type_code: str) -> bool:
        if type_code in self.type_codes:
            return True
        upper = legal_name.upper()
        return any(keyword in upper for keyword in self.keywords)


# Evaluated in order; the first matching rule wins.
CLASSIFICATION_RULES: tuple[ClassificationRule, ...] = (
    ClassificationRule(
        category=TaxpayerCategory.LARGE,
        type_codes=frozenset({"GC"}),
        keywords=("GRAN CONTRIBUYENTE",),
    ),
    ClassificationRule(
        category=TaxpayerCategory.GOVERNMENT,
        type_codes=frozenset({"EG"}),
        keywords=(
            "MINISTERIO",
            "AYUNTAMIENTO",
            "GOBIERNO",
            "DIRECCION GENERAL",
            "SECRETARIA DE ESTADO",
            "ALCALDIA",
            "JUNTA MUNICIPAL",
        ),
    ),
    ClassificationRule(
        category=TaxpayerCategory.NON_PROFIT,
        type_codes=frozenset({"ONGS"}),
        keywords=(
            "FUNDACION",
            "ASOCIACION",
            "SIN FINES DE LUCRO",
            "COOPERATIVA",
        ),
    ),
)


@dataclass(frozen=True)
class TaxpayerRecord:
    """One normalised row of the taxpayer registry."""

    identifier: str
    legal_name: str
    trade_name: str
    category: TaxpayerCategory
    regime: TaxRegime
    status: TaxpayerStatus
    activity: str = ""
    last_updated: datetime = field(
        default_factory=lambda: datetime.now(timezone.utc)
    )


def classify_taxpayer(
    legal_name: str,
    type_code: str,
    rules: tuple[ClassificationRule, ...] = CLASSIFICATION_RULES,
) -> TaxpayerCategory:
    for rule in rules:
        if rule.matches(legal_name, type_code):
            return rule.category
    return TaxpayerCategory.REGISTERED


def normalize_status(raw: str) -> TaxpayerStatus:
    if raw.strip().upper() in INACTIVE_STATUSES:
        return TaxpayerStatus.INACTIVE
    return TaxpayerStatus.ACTIVE


def parse_registry_line(line: str) -> TaxpayerRecord:
    """Turn one registry line into a :class:`TaxpayerRecord`.

    Raises :class:`RegistryLineError` with a short reason when the line has
    too few fields, a non numeric identifier or an empty legal name.
    """

    fields = line.rstrip("\r\n").split("|")
    if len(fields) < MIN_FIELDS:
        raise RegistryLineError(
            f"expected at least {MIN_FIELDS} fields, got {len(fields)}"
        )

    identifier = fields[0].strip()
    legal_name = fields[1].strip()
    trade_name = fields[2].strip() or legal_name
    activity = fields[3].strip()
    status = fields[10].strip()
    type_code = (fields[11].strip() if len(fields) > 11 else "") or DEFAULT_TYPE_CODE

    if not _IDENTIFIER_PATTERN.match(identifier):
        raise RegistryLineError(f"invalid identifier {identifier!r}")
    if not legal_name:
        raise RegistryLineError("empty legal name")

    return TaxpayerRecord(
        identifier=normalize_identifier(identifier),
        legal_name=legal_name[:NAME_MAX_LENGTH],
        trade_name=trade_name[:NAME_MAX_LENGTH],
        category=classify_taxpayer(legal_name, type_code),
        regime=(
            TaxRegime.SPECIAL
            if type_code == SPECIAL_REGIME_CODE
            else TaxRegime.ORDINARY
        ),
        status=normalize_status(status),
        activity=activity[:NAME_MAX_LENGTH],
    )


class RegistrySource:
    """Line oriented reader over a registry file.

    Blank lines are ignored everywhere, so offsets count only non blank
    lines; this keeps resume offsets stable across reads.
    """

    def __init__(self, path: Path, encoding: str = DEFAULT_SOURCE_ENCODING) -> None:
        self.path = Path(path)
        self.encoding = encoding
        self._total: int | None = None

    @property
    def key(self) -> str:
        """Checkpoint key identifying this source."""

        return self.path.name

    def _iter_all(self) -> Iterator[str]:
        try:
            with self.path.open("r", encoding=self.encoding, newline="") as handle:
                for raw in handle:
                    if raw.strip():
                        yield raw.rstrip("\r\n")
        except (OSError, UnicodeDecodeError) as exc:
            raise RegistrySourceError(
                f"Cannot read registry source '{self.path}': {exc}"
            ) from exc

    def iter_lines(self, start: int = 0) -> Iterator[tuple[int, str]]:
        """Yield ``(offset, line)`` pairs starting at ``start``."""

        for offset, line in enumerate(islice(self._iter_all(), start, None), start):
            yield offset, line

    def count(self) -> int:
        """Return the number of non blank lines (cached after the first call)."""

        if self._total is None:
            self._total = sum(1 for _ in self._iter_all())
        return self._total


__all__ = [
    "CLASSIFICATION_RULES",
    "ClassificationRule",
    "RegistryError",
    "RegistryLineError",
    "RegistrySource",
    "RegistrySourceError",
    "TaxRegime",
    "TaxpayerCategory",
    "TaxpayerRecord",
    "TaxpayerStatus",
    "classify_taxpayer",
    "normalize_status",
    "parse_registry_line",
]
