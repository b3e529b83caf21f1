"""
import_engine.importer - Top-level CSV orchestrator.

Coordinates csv_parser → formats → mapper → row_processor → Gateway
and produces a structured ImportReport.  Every row runs in its own
SAVEPOINT, so a failing row is rolled back alone and the batch goes on.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from datetime import date
from pathlib import Path
from typing import Callable

from db.engine import get_session
from import_engine.csv_parser import read_lines
from import_engine.errors import ImportFileError, RowError, RowSkipped
from import_engine.field_map import CSV_ENTITIES, check_headers, fields_for
from import_engine.formats import detect_layout
from import_engine.gateway import Gateway
from import_engine.mapper import split_records
from import_engine.report import ImportReport
from import_engine.resolver import EntityResolver, IdMap
from import_engine.row_processor import REPLACE_PLAN, RowProcessor

logger = logging.getLogger(__name__)


class Batch:
    """One import invocation: a session-bound gateway, its IdMap and report."""

    def __init__(self, gateway: Gateway, owner_id: int, report: ImportReport):
        self.gateway = gateway
        self.owner_id = owner_id
        self.report = report
        self.ids = IdMap()
        self.resolver = EntityResolver(gateway, owner_id, self.ids)

    def clear(self, entities) -> None:
        """Delete the owner's rows for ``entities``, in the order given."""
        for entity in entities:
            n = self.gateway.delete_all_for_owner(entity, self.owner_id)
            self.report.cleared[entity] = n
            logger.info(f"Cleared {n} {entity} for owner {self.owner_id}")

    def run_row(self, entity: str, row: int, label: str,
                fn: Callable[[list], int]) -> int | None:
        """
        Run ``fn(notes)`` for one row inside a SAVEPOINT and record the
        outcome.  Returns the new id, or None when the row was skipped
        or failed.
        """
        notes: list[tuple[str, str]] = []
        snap = self.ids.snapshot()
        new_id = None
        try:
            with self.gateway.savepoint():
                new_id = fn(notes)
        except RowSkipped as exc:
            # skips are raised before anything is written
            self.report.add_skip(entity, row, f"Row {row}: {exc.reason}")
        except RowError as exc:
            self.ids.restore(snap)
            logger.warning(f"{entity} row {row} ({label}): {exc}")
            self.report.add_error(entity, row, f"Row {row} ({label}): {exc}")
        except Exception as exc:
            self.ids.restore(snap)
            logger.exception(f"{entity} row {row} ({label}) failed")
            self.report.add_error(entity, row, f"Row {row} ({label}): Unexpected: {exc}")
        else:
            self.report.add_persisted(entity, row, new_id)

        for field_name, message in notes:
            logger.warning(f"{entity} row {row} {field_name}: {message}")
            self.report.add_warning(entity, row, field_name, message)
        return new_id


def run_csv_import(
    file_content: str | bytes,
    owner_id: int,
    entity: str,
    *,
    replace_existing: bool = False,
    dedup_expenses: bool | None = None,
    today: date | None = None,
) -> ImportReport:
    """
    Import one CSV export into ``entity`` rows for ``owner_id``.

    Parameters
    ----------
    file_content : raw CSV (bytes or str)
    entity : one of CSV_ENTITIES
    replace_existing : delete the owner's existing rows first
                       (children before parents)
    dedup_expenses : override config.EXPENSE_DEDUP

    Returns
    -------
    ImportReport with per-row outcomes.  Raises ImportFileError before
    touching the database when the file itself is unusable.
    """
    if entity not in CSV_ENTITIES:
        raise ImportFileError(f"Unsupported import type {entity!r}")

    lines = read_lines(file_content)
    layout = detect_layout(lines)
    fields = fields_for(layout.format, entity)
    check_headers(layout.headers, fields)
    records, short_rows = split_records(lines, layout)

    report = ImportReport(source_format=layout.format.value)
    for row in short_rows:
        report.add_skip(entity, row, f"Row {row}: too few fields")

    session = get_session()
    batch = Batch(Gateway(session), owner_id, report)
    processor = RowProcessor(
        batch.gateway, batch.resolver, owner_id, entity, fields,
        dedup_expenses=dedup_expenses, today=today,
    )

    try:
        if replace_existing:
            batch.clear(REPLACE_PLAN[entity])

        for row, record in records:
            reason = processor.skip_reason(record)
            if reason:
                report.add_skip(entity, row, f"Row {row}: {reason}")
                continue
            batch.run_row(
                entity, row, processor.label(record),
                lambda notes, rec=record: processor.process(rec, notes),
            )

        batch.gateway.commit()
    except Exception as exc:
        batch.gateway.rollback()
        logger.exception(f"{entity} import aborted")
        report.fatal = f"Fatal import error: {exc}"
    finally:
        session.close()

    logger.info(
        f"{entity} import ({layout.format.value}): {report.imported} imported, "
        f"{report.skipped} skipped, {report.failed} failed"
    )
    return report


@contextmanager
def consume_upload(path: str | Path):
    """Yield an uploaded file's bytes; the file is removed however the block exits."""
    path = Path(path)
    try:
        try:
            data = path.read_bytes()
        except OSError as exc:
            raise ImportFileError(f"Uploaded file could not be read: {exc}") from exc
        yield data
    finally:
        path.unlink(missing_ok=True)
        logger.debug(f"Removed upload {path.name}")


def import_csv_file(path: str | Path, owner_id: int, entity: str, **kwargs) -> ImportReport:
    """run_csv_import() over a temp upload, deleting the file afterwards."""
    with consume_upload(path) as content:
        return run_csv_import(content, owner_id, entity, **kwargs)
