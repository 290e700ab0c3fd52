"""Query the imported taxpayer registry by RNC/cédula or by name."""

from __future__ import annotations

import argparse
from typing import Sequence

from sqlalchemy.exc import SQLAlchemyError

from ..config import resolve_database_url
from ..identifiers import digits_only
from ..registry import RegistryStore, TaxpayerRecord


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Consulta el registro de contribuyentes importado."
    )
    parser.add_argument("query", help="RNC/cédula o parte del nombre")
    parser.add_argument("--database-url", help="URL SQLAlchemy de la base de datos.")
    parser.add_argument("--limit", type=int, default=20, help="Máximo de resultados.")
    return parser


def _describe(record: TaxpayerRecord) -> str:
    return " | ".join(
        [
            record.identifier,
            record.legal_name,
            record.trade_name,
            record.category.value,
            record.regime.value,
            record.status.value,
        ]
    )


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    store = RegistryStore.from_url(resolve_database_url(args.database_url))
    query = args.query.strip()
    is_identifier = bool(digits_only(query)) and not any(ch.isalpha() for ch in query)

    try:
        if is_identifier:
            record = store.get(query)
            records = [record] if record is not None else []
        else:
            records = store.search_by_name(query, limit=args.limit)
    except SQLAlchemyError as exc:
        print(f"[ERROR] No se pudo consultar la base de datos: {exc}")
        return 2

    if not records:
        print(f"Sin resultados para: {query}")
        return 1
    for record in records:
        print(_describe(record))
    return 0


if __name__ == "__main__":  # pragma: no cover - ejecución directa
    raise SystemExit(main())
