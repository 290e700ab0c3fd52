from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler

from openpyxl import load_workbook

from fiscaldo.logging import ExcelLogger, ExcelLoggerConfig, configure_logging
from fiscaldo.registry.importer import FailedBatch, LineError


def test_excel_logger_writes_header_and_rows(tmp_path):
    destination = tmp_path / "logs" / "rechazos.xlsx"
    logger = ExcelLogger(
        ExcelLoggerConfig(
            columns=("linea", "motivo", "contenido"),
            filename=str(destination),
            sheet_title="Rechazos",
        )
    )

    path = logger.write_rows(
        [LineError(4, "empty legal name", "131000002||"), [9, "manual", ""]]
    )

    assert path == destination
    rows = list(load_workbook(path)["Rechazos"].iter_rows(values_only=True))
    assert rows[0] == ("linea", "motivo", "contenido")
    assert rows[1] == (5, "empty legal name", "131000002||")
    assert rows[2][:2] == (9, "manual")


def test_failed_batch_cells():
    batch = FailedBatch(start_offset=10, end_offset=20, size=10, error="boom")
    assert batch.as_cells() == [11, 20, 10, "boom"]


def test_configure_logging_adds_single_file_handler(tmp_path):
    log_file = tmp_path / "fiscaldo.log"
    package_logger = logging.getLogger("fiscaldo")
    try:
        configure_logging(log_file=log_file)
        configure_logging(verbose=True, log_file=log_file)

        handlers = [
            handler
            for handler in package_logger.handlers
            if isinstance(handler, RotatingFileHandler)
        ]
        assert len(handlers) == 1
        assert package_logger.level == logging.DEBUG

        logging.getLogger("fiscaldo.registry.importer").info("Lote: +1")
        handlers[0].flush()
        assert "Lote: +1" in log_file.read_text(encoding="utf-8")
    finally:
        for handler in list(package_logger.handlers):
            if isinstance(handler, RotatingFileHandler):
                package_logger.removeHandler(handler)
                handler.close()
        package_logger.setLevel(logging.NOTSET)
