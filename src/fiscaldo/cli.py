"""Command line entry points for the Dominican fiscal tools."""

from __future__ import annotations

import argparse
import sys
from dataclasses import dataclass
from typing import Callable, Iterable, Mapping, Sequence

from .commands import check, import_registry, lookup, report

CommandCallable = Callable[[list[str] | None], int | None]


@dataclass(frozen=True)
class CommandSpec:
    """Metadata describing a CLI command exposed by :mod:`fiscaldo.cli`."""

    name: str
    summary: str
    handler: CommandCallable
    script: str

    def run(self, argv: list[str] | None) -> int:
        """Execute the command and normalise the resulting exit code."""

        try:
            result = self.handler(argv)
        except SystemExit as exc:  # argparse termina con sys.exit
            code = exc.code
            if code is None:
                return 0
            if isinstance(code, int):
                return code
            print(str(code), file=sys.stderr)
            return 1
        if result is None:
            return 0
        return int(result)


_COMMANDS: tuple[CommandSpec, ...] = (
    CommandSpec(
        name="importar-rnc",
        summary="Importa el registro de contribuyentes de la DGII por lotes.",
        handler=import_registry.main,
        script="scripts/importar_rnc.py",
    ),
    CommandSpec(
        name="reporte",
        summary="Genera los archivos 606, 607 o de nómina para la DGII.",
        handler=report.main,
        script="scripts/reporte_dgii.py",
    ),
    CommandSpec(
        name="validar",
        summary="Valida RNC, cédulas y NCF.",
        handler=check.main,
        script="scripts/validar_documentos.py",
    ),
    CommandSpec(
        name="consultar",
        summary="Consulta el registro de contribuyentes importado.",
        handler=lookup.main,
        script="scripts/consultar_rnc.py",
    ),
)

_COMMAND_INDEX: Mapping[str, CommandSpec] = {spec.name: spec for spec in _COMMANDS}


def available_commands() -> Iterable[CommandSpec]:
    """Return the commands registered in the CLI."""

    return _COMMANDS


def build_parser() -> argparse.ArgumentParser:
    epilog = "\n".join(
        ["Scripts equivalentes:"]
        + [f"  {spec.name:<14}{spec.script}" for spec in _COMMANDS]
    )
    parser = argparse.ArgumentParser(
        description="Herramientas fiscales DGII",
        epilog=epilog,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    subparsers = parser.add_subparsers(dest="command", metavar="comando")
    subparsers.required = True

    for spec in _COMMANDS:
        subparser = subparsers.add_parser(
            spec.name,
            help=spec.summary,
            description=spec.summary,
            add_help=False,
        )
        subparser.add_argument("args", nargs=argparse.REMAINDER, help=argparse.SUPPRESS)

    return parser


def run(command: str, argv: Sequence[str] | None = None) -> int:
    """Execute *command* forwarding ``argv`` to the underlying handler."""

    spec = _COMMAND_INDEX.get(command)
    if spec is None:
        raise ValueError(f"Comando desconocido: {command}")
    return spec.run(list(argv or []))


def main(argv: Sequence[str] | None = None) -> int:
    """Execute the command line interface."""

    parser = build_parser()
    namespace, extras = parser.parse_known_args(argv)
    forwarded = list(namespace.args) + extras
    return run(namespace.command, forwarded)


if __name__ == "__main__":  # pragma: no cover - ejecución directa
    raise SystemExit(main())
