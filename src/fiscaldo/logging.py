"""Logging setup and structured Excel logs.

:func:`configure_logging` wires the standard :mod:`logging` module for the
command line tools. :class:`ExcelLogger` writes tabular diagnostics (for
instance the lines rejected by the registry importer) to an ``.xlsx`` file
so operators can filter them in a spreadsheet.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Iterable, Protocol, Sequence

CONSOLE_FORMAT = "[%(levelname)s] %(message)s"
FILE_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


class RowLike(Protocol):
    """Protocol for rows serialisable to a worksheet."""

    def as_cells(self) -> Iterable[object]:
        """Return the ordered values to write in the sheet."""


def configure_logging(verbose: bool = False, log_file: Path | None = None) -> None:
    """Configure console logging and, optionally, a rotating log file."""

    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format=CONSOLE_FORMAT)
    logging.getLogger("sqlalchemy").setLevel(logging.WARNING)

    root = logging.getLogger("fiscaldo")
    root.setLevel(level)
    if log_file is None:
        return

    log_file.parent.mkdir(parents=True, exist_ok=True)
    target = str(log_file.resolve())
    for handler in root.handlers:
        if isinstance(handler, RotatingFileHandler) and handler.baseFilename == target:
            return

    handler = RotatingFileHandler(
        log_file,
        maxBytes=1_000_000,
        backupCount=5,
        encoding="utf-8",
    )
    handler.setFormatter(logging.Formatter(FILE_FORMAT))
    root.addHandler(handler)
    logging.captureWarnings(True)


@dataclass(slots=True)
class ExcelLoggerConfig:
    """Configuration used by :class:`ExcelLogger`."""

    columns: Sequence[str]
    filename: str = "fiscaldo-log.xlsx"
    sheet_title: str = "Log"


class ExcelLogger:
    """Write rows to an Excel workbook using :mod:`openpyxl`.

    Every call to :meth:`write_rows` creates a new workbook with the header
    from :class:`ExcelLoggerConfig` followed by the given rows.
    """

    def __init__(self, config: ExcelLoggerConfig) -> None:
        self.config = config

    def write_rows(self, rows: Iterable[RowLike | Iterable[object]]) -> Path:
        """Persist ``rows`` to the configured file and return its path."""

        from openpyxl import Workbook

        destination = Path(self.config.filename)
        destination.parent.mkdir(parents=True, exist_ok=True)

        workbook = Workbook()
        worksheet = workbook.active
        worksheet.title = self.config.sheet_title

        if self.config.columns:
            worksheet.append(list(self.config.columns))

        for row in rows:
            if hasattr(row, "as_cells"):
                cells = list(row.as_cells())  # type: ignore[union-attr]
            else:
                cells = list(row)  # type: ignore[arg-type]
            worksheet.append(cells)

        workbook.save(destination)
        return destination


__all__ = ["ExcelLogger", "ExcelLoggerConfig", "RowLike", "configure_logging"]
