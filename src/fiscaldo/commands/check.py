"""Validate RNC, cédula and NCF values given on the command line."""

from __future__ import annotations

import argparse
from typing import Sequence

from ..identifiers import format_identifier, identifier_kind, validate_identifier
from ..ncf import document_type_of


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Valida RNC, cédulas y NCF (Número de Comprobante Fiscal)."
    )
    parser.add_argument("values", nargs="+", help="Valores a validar")
    return parser


def check_value(value: str) -> tuple[bool, str]:
    """Return ``(valid, message)`` for a single RNC, cédula or NCF."""

    text = value.strip()
    if text[:1].isalpha():
        document_type = document_type_of(text.upper())
        if document_type is None:
            return False, f"NCF inválido: {text}"
        return True, f"NCF válido ({document_type}): {text.upper()}"

    kind = identifier_kind(text)
    if kind is None:
        return False, f"Identificador con longitud inválida: {text}"
    label, suffix = ("RNC", "o") if kind == "rnc" else ("Cédula", "a")
    if not validate_identifier(text):
        return False, f"{label} inválid{suffix} (dígito verificador): {text}"
    return True, f"{label} válid{suffix}: {format_identifier(text)}"


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    failures = 0
    for value in args.values:
        valid, message = check_value(value)
        print(f"[{'OK' if valid else 'ERROR'}] {message}")
        if not valid:
            failures += 1
    return 1 if failures else 0


if __name__ == "__main__":  # pragma: no cover - ejecución directa
    raise SystemExit(main())
