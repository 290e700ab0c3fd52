"""Resumable batch import of the DGII registry into a :class:`RegistryStore`.

A session reads the source from a resume offset, parses lines in batches,
inserts each batch (skipping identifiers already stored) together with a
checkpoint, pauses between batches and stops when the source or the session
row budget is exhausted. Only one importer may run against a store at a
time; :class:`ImportLock` can enforce it on a single host.
"""

from __future__ import annotations

import logging
import os
import time
from dataclasses import dataclass, field
from itertools import islice
from pathlib import Path
from typing import Callable, Iterator

from sqlalchemy.exc import SQLAlchemyError

from ..config import ImportConfig
from .source import (
    RegistryError,
    RegistryLineError,
    RegistrySource,
    RegistrySourceError,
    TaxpayerRecord,
    parse_registry_line,
)
from .store import ImportCheckpoint, RegistryStore

logger = logging.getLogger("fiscaldo.registry.importer")

RESUME_MODES = ("checkpoint", "row-count", "restart")

STATUS_COMPLETED = "completed"
STATUS_LIMIT_REACHED = "limit-reached"
STATUS_ABORTED = "aborted"


class ImportLockedError(RegistryError):
    """Raised when another importer holds the lock file."""


@dataclass(frozen=True)
class LineError:
    """A source line rejected by the parser."""

    offset: int
    reason: str
    content: str

    def as_cells(self) -> list[object]:
        return [self.offset + 1, self.reason, self.content]


@dataclass(frozen=True)
class FailedBatch:
    """A batch whose insert failed after every retry."""

    start_offset: int
    end_offset: int
    size: int
    error: str

    def as_cells(self) -> list[object]:
        return [self.start_offset + 1, self.end_offset, self.size, self.error]


@dataclass
class ImportResult:
    """Outcome of one import session."""

    source_key: str
    status: str = STATUS_COMPLETED
    abort_reason: str | None = None
    start_offset: int = 0
    end_offset: int = 0
    processed: int = 0
    inserted: int = 0
    duplicates: int = 0
    malformed: int = 0
    batches: int = 0
    failed_batches: list[FailedBatch] = field(default_factory=list)
    errors: list[LineError] = field(default_factory=list)
    errors_dropped: int = 0
    store_total: int | None = None
    source_total: int | None = None

    @property
    def ok(self) -> bool:
        return self.status != STATUS_ABORTED and not self.failed_batches

    def summary_lines(self) -> list[str]:
        """Human readable summary printed at the end of a session."""

        lines = [
            f"Estado: {self.status}",
            f"Líneas procesadas: {self.processed} "
            f"(desde {self.start_offset} hasta {self.end_offset})",
            f"Registros insertados: {self.inserted}",
            f"Duplicados omitidos: {self.duplicates}",
            f"Líneas inválidas: {self.malformed}",
            f"Lotes fallidos: {len(self.failed_batches)}",
        ]
        total = "?" if self.store_total is None else str(self.store_total)
        source = "?" if self.source_total is None else str(self.source_total)
        lines.append(f"Total en base de datos: {total} / líneas en archivo: {source}")
        if self.abort_reason:
            lines.append(f"Motivo de la interrupción: {self.abort_reason}")
        return lines


def _pid_alive(pid: int) -> bool:
    if pid <= 0:
        return False
    try:
        os.kill(pid, 0)
    except ProcessLookupError:
        return False
    except PermissionError:
        return True
    return True


class ImportLock:
    """Exclusive lock file held for the duration of an import session.

    The file stores the owner's PID. A lock left behind by a process that
    no longer exists is taken over, so a killed import can be resumed.
    """

    def __init__(self, path: Path) -> None:
        self.path = Path(path)
        self._held = False

    def _owner(self) -> int | None:
        try:
            text = self.path.read_text(encoding="utf-8").strip()
        except FileNotFoundError:
            return None
        try:
            return int(text)
        except ValueError:
            return 0

    def __enter__(self) -> "ImportLock":
        self.path.parent.mkdir(parents=True, exist_ok=True)
        while True:
            try:
                with self.path.open("x", encoding="utf-8") as handle:
                    handle.write(f"{os.getpid()}\n")
                break
            except FileExistsError as exc:
                owner = self._owner()
                if owner is None:
                    continue
                if _pid_alive(owner):
                    raise ImportLockedError(
                        f"Another import (pid {owner}) holds the lock file '{self.path}'"
                    ) from exc
                logger.warning(
                    "Removing stale lock file %s left by pid %s", self.path, owner
                )
                self.path.unlink(missing_ok=True)
        self._held = True
        return self

    def __exit__(self, *exc_info) -> None:
        if self._held:
            self.path.unlink(missing_ok=True)
            self._held = False


class RegistryImporter:
    """Run import sessions of a registry source into ``store``."""

    def __init__(
        self,
        store: RegistryStore,
        config: ImportConfig | None = None,
        *,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.store = store
        self.config = config or ImportConfig()
        self._sleep = sleep

    def resume_offset(self, source: RegistrySource, mode: str = "checkpoint") -> int:
        """Return the source offset the next session starts from."""

        if mode not in RESUME_MODES:
            raise ValueError(f"Unknown resume mode: {mode}")
        if mode == "restart":
            return 0
        if mode == "checkpoint":
            checkpoint = self.store.load_checkpoint(source.key)
            if checkpoint is not None:
                return checkpoint.source_offset
        return self.store.count()

    def run(self, source: RegistrySource, resume: str = "checkpoint") -> ImportResult:
        result = ImportResult(source_key=source.key)

        try:
            start = self.resume_offset(source, resume)
        except SQLAlchemyError as exc:
            logger.error("Registry store unavailable: %s", exc)
            result.status = STATUS_ABORTED
            result.abort_reason = f"store unavailable: {exc}"
            return result

        result.start_offset = result.end_offset = start
        logger.info("Importing %s from line %d (%s)", source.path, start + 1, resume)

        try:
            self._run_batches(source, start, result)
        except RegistrySourceError as exc:
            logger.error("%s", exc)
            result.status = STATUS_ABORTED
            result.abort_reason = str(exc)

        self._finalise(source, result)
        return result

    def _run_batches(
        self, source: RegistrySource, start: int, result: ImportResult
    ) -> None:
        lines = source.iter_lines(start)
        try:
            self._consume(lines, source.key, result)
        finally:
            lines.close()

    def _consume(
        self, lines: Iterator[tuple[int, str]], source_key: str, result: ImportResult
    ) -> None:
        limit = self.config.session_row_limit
        while True:
            budget = self.config.batch_size
            if limit is not None:
                budget = min(budget, limit - result.processed)
                if budget <= 0:
                    has_more = next(lines, None) is not None
                    result.status = STATUS_LIMIT_REACHED if has_more else STATUS_COMPLETED
                    return

            chunk = list(islice(lines, budget))
            if not chunk:
                result.status = STATUS_COMPLETED
                return

            if result.batches and self.config.inter_batch_delay > 0:
                self._sleep(self.config.inter_batch_delay)

            records = self._parse_batch(chunk, result)
            batch_start = chunk[0][0]
            batch_end = chunk[-1][0] + 1
            self._commit_batch(records, source_key, batch_start, batch_end, result)
            result.batches += 1
            result.end_offset = batch_end

    def _parse_batch(
        self, chunk: list[tuple[int, str]], result: ImportResult
    ) -> list[TaxpayerRecord]:
        records: list[TaxpayerRecord] = []
        for offset, line in chunk:
            result.processed += 1
            try:
                records.append(parse_registry_line(line))
            except RegistryLineError as exc:
                result.malformed += 1
                logger.debug("Skipping line %d: %s", offset + 1, exc)
                if len(result.errors) < self.config.error_log_limit:
                    result.errors.append(LineError(offset, str(exc), line[:200]))
                else:
                    result.errors_dropped += 1
        return records

    def _commit_batch(
        self,
        records: list[TaxpayerRecord],
        source_key: str,
        batch_start: int,
        batch_end: int,
        result: ImportResult,
    ) -> None:
        checkpoint = ImportCheckpoint(
            source_key=source_key,
            source_offset=batch_end,
            last_identifier=records[-1].identifier if records else None,
        )

        attempt = 0
        while True:
            try:
                outcome = self.store.insert_new(records, checkpoint=checkpoint)
            except SQLAlchemyError as exc:
                logger.error(
                    "Batch insert failed (%d records, lines %d-%d): %s",
                    len(records),
                    batch_start + 1,
                    batch_end,
                    exc,
                )
                if attempt < self.config.max_retries:
                    attempt += 1
                    logger.warning(
                        "Retrying batch at line %d (%d/%d)",
                        batch_start + 1,
                        attempt,
                        self.config.max_retries,
                    )
                    continue
                result.failed_batches.append(
                    FailedBatch(batch_start, batch_end, len(records), str(exc))
                )
                return

            result.inserted += outcome.inserted
            result.duplicates += outcome.duplicates
            logger.info(
                "Lote: +%d | omitidos %d | insertados en la sesión: %d | línea %d",
                outcome.inserted,
                outcome.duplicates,
                result.inserted,
                batch_end,
            )
            return

    def _finalise(self, source: RegistrySource, result: ImportResult) -> None:
        try:
            result.store_total = self.store.count()
        except SQLAlchemyError as exc:
            logger.error("Cannot count registry rows: %s", exc)
        try:
            result.source_total = source.count()
        except RegistrySourceError as exc:
            logger.error("%s", exc)

        logger.info(
            "Import %s: %d processed, %d inserted, %d in store",
            result.status,
            result.processed,
            result.inserted,
            result.store_total if result.store_total is not None else -1,
        )


__all__ = [
    "FailedBatch",
    "ImportLock",
    "ImportLockedError",
    "ImportResult",
    "LineError",
    "RESUME_MODES",
    "RegistryImporter",
    "STATUS_ABORTED",
    "STATUS_COMPLETED",
    "STATUS_LIMIT_REACHED",
]
