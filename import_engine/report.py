"""
import_engine.report - Structured result of an import run.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field

import config


class RowState(enum.Enum):
    PERSISTED          = "persisted"
    RESOLUTION_FAILED  = "resolution_failed"
    VALIDATION_SKIPPED = "validation_skipped"


@dataclass
class EntityTally:
    imported: int = 0
    skipped: int = 0
    errors: int = 0

    def to_dict(self) -> dict:
        return {"imported": self.imported, "skipped": self.skipped,
                "errors": self.errors}


@dataclass
class RowWarning:
    entity: str
    row: int
    field: str
    message: str

    def to_dict(self) -> dict:
        return {"entity": self.entity, "row": self.row,
                "field": self.field, "message": self.message}


@dataclass
class RowOutcome:
    entity: str
    row: int
    state: RowState
    detail: str = ""

    def to_dict(self) -> dict:
        d = {"entity": self.entity, "row": self.row, "state": self.state.value}
        if self.detail:
            d["detail"] = self.detail
        return d


@dataclass
class ImportReport:
    source_format: str = ""
    max_errors: int = field(default_factory=lambda: config.MAX_ERROR_DETAILS)
    tallies: dict[str, EntityTally] = field(default_factory=dict)
    errors: list[str] = field(default_factory=list)        # bounded
    errors_omitted: int = 0
    skip_reasons: list[str] = field(default_factory=list)  # bounded
    warnings: list[RowWarning] = field(default_factory=list)
    outcomes: list[RowOutcome] = field(default_factory=list)
    cleared: dict[str, int] = field(default_factory=dict)  # in deletion order
    created: dict[str, list[int]] = field(default_factory=dict)
    fatal: str = ""

    def tally(self, entity: str) -> EntityTally:
        if entity not in self.tallies:
            self.tallies[entity] = EntityTally()
        return self.tallies[entity]

    # ── Row outcomes ───────────────────────────────────────────────────

    def add_persisted(self, entity: str, row: int, new_id: int | None = None):
        self.tally(entity).imported += 1
        self.outcomes.append(RowOutcome(entity, row, RowState.PERSISTED))
        if new_id is not None:
            self.created.setdefault(entity, []).append(new_id)

    def add_skip(self, entity: str, row: int, reason: str = ""):
        self.tally(entity).skipped += 1
        self.outcomes.append(RowOutcome(entity, row, RowState.VALIDATION_SKIPPED, reason))
        if reason and len(self.skip_reasons) < self.max_errors:
            self.skip_reasons.append(reason)

    def add_error(self, entity: str, row: int, message: str):
        self.tally(entity).errors += 1
        self.outcomes.append(RowOutcome(entity, row, RowState.RESOLUTION_FAILED, message))
        if len(self.errors) < self.max_errors:
            self.errors.append(message)
        else:
            self.errors_omitted += 1

    def add_warning(self, entity: str, row: int, field_name: str, message: str):
        self.warnings.append(RowWarning(entity, row, field_name, message))

    # ── Totals ─────────────────────────────────────────────────────────

    @property
    def imported(self) -> int:
        return sum(t.imported for t in self.tallies.values())

    @property
    def skipped(self) -> int:
        return sum(t.skipped for t in self.tallies.values())

    @property
    def failed(self) -> int:
        return sum(t.errors for t in self.tallies.values())

    @property
    def ok(self) -> bool:
        return not self.fatal

    def summary_message(self) -> str:
        if self.fatal:
            return f"Import failed: {self.fatal}"
        msg = f"Imported {self.imported} row{'s' if self.imported != 1 else ''}"
        if self.skipped:
            msg += f", skipped {self.skipped}"
        if self.failed:
            msg += f", {self.failed} failed"
        return msg

    def to_dict(self) -> dict:
        d = {
            "summary": {k: t.to_dict() for k, t in self.tallies.items()},
            "errors": self.errors,
            "warnings": [w.to_dict() for w in self.warnings],
            "rows": [o.to_dict() for o in self.outcomes],
        }
        if self.source_format:
            d["format"] = self.source_format
        if self.errors_omitted:
            d["errors_omitted"] = self.errors_omitted
        if self.skip_reasons:
            d["skipped"] = self.skip_reasons
        if self.cleared:
            d["cleared"] = self.cleared
        if self.fatal:
            d["fatal"] = self.fatal
        return d
