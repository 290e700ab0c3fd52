"""Import the DGII taxpayer registry (``DGII_RNC.TXT``) into a SQL database."""

from __future__ import annotations

import argparse
import contextlib
import logging
from pathlib import Path
from typing import Sequence

from sqlalchemy.exc import SQLAlchemyError

from ..config import (
    PRESETS,
    ConfigError,
    DEFAULT_PRESET,
    load_import_config,
    resolve_database_url,
)
from ..logging import ExcelLogger, ExcelLoggerConfig, configure_logging
from ..registry import (
    ImportLock,
    ImportLockedError,
    RegistryImporter,
    RegistrySource,
    RegistryStore,
)
from ..registry.importer import RESUME_MODES

logger = logging.getLogger("fiscaldo.commands.import_registry")

ERROR_COLUMNS = ("linea", "motivo", "contenido")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description=(
            "Importa el registro de contribuyentes de la DGII en lotes, "
            "retomando desde el último punto confirmado."
        )
    )
    parser.add_argument("source", type=Path, help="Archivo DGII_RNC.TXT")
    parser.add_argument(
        "--database-url",
        help="URL SQLAlchemy de la base de datos (por defecto FISCALDO_DATABASE_URL).",
    )
    parser.add_argument(
        "--preset",
        choices=sorted(PRESETS),
        default=DEFAULT_PRESET,
        help="Perfil de tamaño de sesión y de lote.",
    )
    parser.add_argument("--batch-size", type=int, help="Líneas por lote.")
    parser.add_argument(
        "--session-limit", type=int, help="Máximo de líneas a procesar en esta sesión."
    )
    parser.add_argument("--delay", type=float, help="Pausa en segundos entre lotes.")
    parser.add_argument(
        "--retries", type=int, help="Reintentos de un lote que falla al insertar."
    )
    parser.add_argument(
        "--resume",
        choices=RESUME_MODES,
        default="checkpoint",
        help="Cómo determinar la línea inicial.",
    )
    parser.add_argument("--encoding", help="Codificación del archivo (latin-1).")
    parser.add_argument(
        "--lock-file", type=Path, help="Archivo de bloqueo para evitar importaciones simultáneas."
    )
    parser.add_argument(
        "--errors-xlsx", type=Path, help="Guardar las líneas rechazadas en un Excel."
    )
    parser.add_argument("--log-file", type=Path, help="Archivo de log rotativo.")
    parser.add_argument("--verbose", action="store_true", help="Log detallado.")
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.verbose, args.log_file)

    try:
        config = load_import_config(
            args.preset,
            overrides={
                "batch_size": args.batch_size,
                "session_row_limit": args.session_limit,
                "inter_batch_delay": args.delay,
                "max_retries": args.retries,
                "encoding": args.encoding,
            },
        )
    except ConfigError as exc:
        print(f"[ERROR] Configuración inválida: {exc}")
        return 2

    if not args.source.exists():
        print(f"[ERROR] Archivo no encontrado: {args.source}")
        return 2

    store = RegistryStore.from_url(resolve_database_url(args.database_url))
    try:
        store.create_schema()
    except SQLAlchemyError as exc:
        print(f"[ERROR] No se pudo preparar la base de datos: {exc}")
        return 2

    importer = RegistryImporter(store, config)
    source = RegistrySource(args.source, encoding=config.encoding)
    lock = ImportLock(args.lock_file) if args.lock_file else contextlib.nullcontext()

    try:
        with lock:
            result = importer.run(source, resume=args.resume)
    except ImportLockedError as exc:
        print(f"[ERROR] {exc}")
        return 2

    for line in result.summary_lines():
        print(line)
    if result.errors_dropped:
        print(f"(+{result.errors_dropped} líneas inválidas adicionales no listadas)")

    if args.errors_xlsx and (result.errors or result.failed_batches):
        rows = list(result.errors) + [
            [batch.start_offset + 1, f"lote fallido: {batch.error}", ""]
            for batch in result.failed_batches
        ]
        destination = ExcelLogger(
            ExcelLoggerConfig(
                columns=ERROR_COLUMNS,
                filename=str(args.errors_xlsx),
                sheet_title="Rechazos",
            )
        ).write_rows(rows)
        print(f"Líneas rechazadas guardadas en: {destination}")

    return 0 if result.ok else 2


if __name__ == "__main__":  # pragma: no cover - ejecución directa
    raise SystemExit(main())
