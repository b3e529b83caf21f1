"""
import_engine.errors - Exception taxonomy for the import pipeline.

ImportFileError aborts a whole batch before any row is persisted.
RowError (and subclasses) fail a single row; the batch carries on.
RowSkipped marks a row that is intentionally excluded.
"""


class ImportFileError(Exception):
    """File-level failure: unreadable, too short, unknown layout, bad columns."""
    pass


class RowError(Exception):
    """Raised when a row cannot be imported."""
    pass


class ResolutionError(RowError):
    """A related entity referenced by the row cannot be resolved."""
    pass


class CoercionError(RowError):
    """A field value cannot be coerced into the type its column needs."""
    pass


class RowSkipped(Exception):
    """Row excluded on purpose (duplicate natural key, summary row, ...)."""

    def __init__(self, reason: str = ""):
        super().__init__(reason)
        self.reason = reason
