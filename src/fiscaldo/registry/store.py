"""SQL storage for the taxpayer registry and the importer checkpoints.

Column names follow the historical ``rnc_registry`` table so an existing
database can be reused as is. Inserts never overwrite: a record whose
identifier already exists is skipped (first write wins).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Iterable, Sequence, TypeVar

from sqlalchemy import (
    Column,
    DateTime,
    Index,
    Integer,
    MetaData,
    String,
    Table,
    Text,
    create_engine,
    func,
    or_,
    select,
)
from sqlalchemy.engine import Connection, Engine

from ..identifiers import digits_only, normalize_identifier
from .source import TaxpayerCategory, TaxpayerRecord, TaxpayerStatus, TaxRegime

logger = logging.getLogger("fiscaldo.registry.store")

# Keeps ``IN (...)`` lookups below the bound parameter limit of older SQLite.
LOOKUP_CHUNK = 500

LIKE_ESCAPE = "/"

EnumT = TypeVar("EnumT", bound=Enum)

metadata = MetaData()

rnc_registry = Table(
    "rnc_registry",
    metadata,
    Column("id", Integer, primary_key=True),
    Column("rnc", String(11), nullable=False, unique=True),
    Column("razon_social", Text, nullable=False),
    Column("nombre_comercial", Text),
    Column("actividad_economica", Text),
    Column("categoria", String(50)),
    Column("regimen", String(50)),
    Column("estado", String(20)),
    Column("last_updated", DateTime(timezone=True)),
    Index("idx_rnc_registry_razon_social", "razon_social"),
)

rnc_import_checkpoints = Table(
    "rnc_import_checkpoints",
    metadata,
    Column("source_key", String(255), primary_key=True),
    Column("source_offset", Integer, nullable=False, default=0),
    Column("last_identifier", String(11)),
    Column("updated_at", DateTime(timezone=True)),
)


@dataclass(frozen=True)
class ImportCheckpoint:
    """Position reached in a registry source by committed batches."""

    source_key: str
    source_offset: int
    last_identifier: str | None = None
    updated_at: datetime | None = None


@dataclass(frozen=True)
class InsertOutcome:
    inserted: int
    duplicates: int


def _record_row(record: TaxpayerRecord) -> dict[str, object]:
    return {
        "rnc": record.identifier,
        "razon_social": record.legal_name,
        "nombre_comercial": record.trade_name,
        "actividad_economica": record.activity,
        "categoria": record.category.value,
        "regimen": record.regime.value,
        "estado": record.status.value,
        "last_updated": record.last_updated,
    }


def _enum_value(enum_type: type[EnumT], raw: str | None, default: EnumT) -> EnumT:
    try:
        return enum_type(raw)
    except ValueError:
        return default


def _row_record(row) -> TaxpayerRecord:
    return TaxpayerRecord(
        identifier=row.rnc,
        legal_name=row.razon_social,
        trade_name=row.nombre_comercial or row.razon_social,
        category=_enum_value(TaxpayerCategory, row.categoria, TaxpayerCategory.REGISTERED),
        regime=_enum_value(TaxRegime, row.regimen, TaxRegime.ORDINARY),
        status=_enum_value(TaxpayerStatus, row.estado, TaxpayerStatus.ACTIVE),
        activity=row.actividad_economica or "",
        last_updated=row.last_updated,
    )


class RegistryStore:
    """Registry table access on top of a SQLAlchemy :class:`Engine`."""

    def __init__(self, engine: Engine) -> None:
        self.engine = engine

    @classmethod
    def from_url(cls, url: str) -> "RegistryStore":
        return cls(create_engine(url))

    def create_schema(self) -> None:
        metadata.create_all(self.engine)

    def count(self) -> int:
        with self.engine.connect() as conn:
            return conn.execute(
                select(func.count()).select_from(rnc_registry)
            ).scalar_one()

    def _insert_statement(self):
        dialect = self.engine.dialect.name
        if dialect == "sqlite":
            from sqlalchemy.dialects.sqlite import insert

            return insert(rnc_registry).on_conflict_do_nothing(index_elements=["rnc"])
        if dialect == "postgresql":
            from sqlalchemy.dialects.postgresql import insert

            return insert(rnc_registry).on_conflict_do_nothing(index_elements=["rnc"])
        return rnc_registry.insert()

    def _existing_identifiers(
        self, conn: Connection, identifiers: Sequence[str]
    ) -> set[str]:
        found: set[str] = set()
        for start in range(0, len(identifiers), LOOKUP_CHUNK):
            chunk = identifiers[start : start + LOOKUP_CHUNK]
            found.update(
                conn.execute(
                    select(rnc_registry.c.rnc).where(rnc_registry.c.rnc.in_(chunk))
                ).scalars()
            )
        return found

    def insert_new(
        self,
        records: Iterable[TaxpayerRecord],
        checkpoint: ImportCheckpoint | None = None,
    ) -> InsertOutcome:
        """Insert the records whose identifier is not stored yet.

        Records and ``checkpoint`` are written in a single transaction: either
        both are committed or neither is.
        """

        records = list(records)
        unique: dict[str, TaxpayerRecord] = {}
        for record in records:
            unique.setdefault(record.identifier, record)

        with self.engine.begin() as conn:
            existing = self._existing_identifiers(conn, list(unique))
            rows = [
                _record_row(record)
                for identifier, record in unique.items()
                if identifier not in existing
            ]
            if rows:
                conn.execute(self._insert_statement(), rows)
            if checkpoint is not None:
                self._write_checkpoint(conn, checkpoint)

        return InsertOutcome(inserted=len(rows), duplicates=len(records) - len(rows))

    def get(self, identifier: str) -> TaxpayerRecord | None:
        """Return the record stored for ``identifier`` (any formatting)."""

        if not digits_only(identifier):
            return None
        key = normalize_identifier(identifier)
        with self.engine.connect() as conn:
            row = conn.execute(
                select(rnc_registry).where(rnc_registry.c.rnc == key)
            ).first()
        return _row_record(row) if row is not None else None

    def search_by_name(self, fragment: str, limit: int = 20) -> list[TaxpayerRecord]:
        """Return records whose legal or trade name contains ``fragment``."""

        text = fragment.strip()
        if not text:
            return []
        escaped = (
            text.replace(LIKE_ESCAPE, LIKE_ESCAPE * 2)
            .replace("%", LIKE_ESCAPE + "%")
            .replace("_", LIKE_ESCAPE + "_")
        )
        pattern = f"%{escaped}%"
        query = (
            select(rnc_registry)
            .where(
                or_(
                    rnc_registry.c.razon_social.ilike(pattern, escape=LIKE_ESCAPE),
                    rnc_registry.c.nombre_comercial.ilike(pattern, escape=LIKE_ESCAPE),
                )
            )
            .order_by(rnc_registry.c.razon_social)
            .limit(limit)
        )
        with self.engine.connect() as conn:
            return [_row_record(row) for row in conn.execute(query)]

    def load_checkpoint(self, source_key: str) -> ImportCheckpoint | None:
        with self.engine.connect() as conn:
            row = conn.execute(
                select(rnc_import_checkpoints).where(
                    rnc_import_checkpoints.c.source_key == source_key
                )
            ).first()
        if row is None:
            return None
        return ImportCheckpoint(
            source_key=row.source_key,
            source_offset=row.source_offset,
            last_identifier=row.last_identifier,
            updated_at=row.updated_at,
        )

    def save_checkpoint(self, checkpoint: ImportCheckpoint) -> None:
        with self.engine.begin() as conn:
            self._write_checkpoint(conn, checkpoint)

    def _write_checkpoint(self, conn: Connection, checkpoint: ImportCheckpoint) -> None:
        values = {
            "source_offset": checkpoint.source_offset,
            "last_identifier": checkpoint.last_identifier,
            "updated_at": checkpoint.updated_at or datetime.now(timezone.utc),
        }
        table = rnc_import_checkpoints
        updated = conn.execute(
            table.update()
            .where(table.c.source_key == checkpoint.source_key)
            .values(**values)
        )
        if updated.rowcount == 0:
            conn.execute(table.insert().values(source_key=checkpoint.source_key, **values))
        logger.debug(
            "Checkpoint %s -> offset %d", checkpoint.source_key, checkpoint.source_offset
        )


__all__ = [
    "ImportCheckpoint",
    "InsertOutcome",
    "RegistryStore",
    "metadata",
    "rnc_import_checkpoints",
    "rnc_registry",
]
