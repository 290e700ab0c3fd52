"""Generate DGII report files (606, 607, payroll) from a transactions file."""

from __future__ import annotations

import argparse
import re
from pathlib import Path
from typing import Sequence

from ..identifiers import digits_only, validate_identifier
from ..ncf import validate_ncf
from ..reporting import (
    REPORT_KINDS,
    render_report,
    report_filename,
    summarize_report,
    write_summary_workbook,
)
from ..transactions import TransactionFileError, TransactionRecord, load_transactions

_PERIOD = re.compile(r"[0-9]{4}(0[1-9]|1[0-2])")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Genera los archivos de envío de la DGII (606, 607, nómina)."
    )
    parser.add_argument("kind", choices=REPORT_KINDS, help="Tipo de reporte")
    parser.add_argument(
        "transactions",
        type=Path,
        nargs="?",
        help="Archivo CSV o XLSX con las transacciones del período",
    )
    parser.add_argument("--rnc", required=True, help="RNC de la empresa que reporta")
    parser.add_argument("--period", required=True, help="Período en formato AAAAMM")
    parser.add_argument(
        "--output-dir",
        type=Path,
        default=Path.cwd(),
        help="Carpeta donde guardar el archivo generado.",
    )
    parser.add_argument(
        "--summary-xlsx", type=Path, help="Guardar un resumen del reporte en Excel."
    )
    return parser


def _warn_invalid_receipts(records: list[TransactionRecord]) -> int:
    invalid = 0
    for index, record in enumerate(records, start=1):
        if not validate_ncf(record.receipt_number):
            invalid += 1
            print(f"[ALERTA] Registro {index}: NCF inválido '{record.receipt_number}'")
        if record.counterparty_id and not validate_identifier(record.counterparty_id):
            print(
                f"[ALERTA] Registro {index}: RNC/cédula inválido '{record.counterparty_id}'"
            )
    return invalid


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    rnc = digits_only(args.rnc)
    if not validate_identifier(rnc):
        print(f"[ERROR] RNC de la empresa inválido: {args.rnc}")
        return 2
    if not _PERIOD.fullmatch(args.period):
        print(f"[ERROR] Período inválido (AAAAMM): {args.period}")
        return 2

    records: list[TransactionRecord] = []
    if args.kind != "payroll":
        if args.transactions is None:
            print("[ERROR] Debe indicar el archivo de transacciones.")
            return 2
        try:
            records = load_transactions(args.transactions)
        except TransactionFileError as exc:
            print(f"[ERROR] {exc}")
            return 2
        _warn_invalid_receipts(records)

    body = render_report(args.kind, records, company_rnc=rnc, period=args.period)

    output_dir = args.output_dir.expanduser()
    try:
        output_dir.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        print(f"[ERROR] No se pudo crear la carpeta de destino '{output_dir}': {exc}")
        return 2
    destination = output_dir / report_filename(args.kind, rnc, args.period)
    destination.write_text(body, encoding="utf-8")

    summary = summarize_report(records)
    print(f"[OK] Reporte {args.kind} guardado en: {destination}")
    print(
        f"Registros: {summary.record_count} | Monto total: {summary.total_amount:.2f} "
        f"| ITBIS total: {summary.total_tax:.2f}"
    )

    if args.summary_xlsx:
        path = write_summary_workbook(
            summary, args.summary_xlsx, kind=args.kind, period=args.period
        )
        print(f"Resumen guardado en: {path}")

    return 0


if __name__ == "__main__":  # pragma: no cover - ejecución directa
    raise SystemExit(main())
