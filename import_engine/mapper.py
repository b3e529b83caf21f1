"""
import_engine.mapper - Turn raw rows into canonical records.

split_records() pairs each data line with the header row and drops
lines that are blank or too short.  map_record() applies a field
table to one raw record and returns the canonical values together with
any lenient-fallback notes as (field, message) pairs.
"""

from __future__ import annotations

from datetime import date

from import_engine.csv_parser import parse_line
from import_engine.errors import CoercionError
from import_engine.field_map import Field, FieldKind
from import_engine.formats import Layout
from import_engine.normalizers import (
    normalize_bool, normalize_date, normalize_money, to_decimal,
    to_int, to_iso_date,
)

MIN_FIELDS = 3


def split_records(lines: list[str], layout: Layout) -> tuple[list[tuple[int, dict]], list[int]]:
    """
    Return ([(row_number, {header: value})...], skipped_row_numbers).

    Row numbers are 1-based positions among the file's non-blank lines.
    """
    headers = list(layout.headers)
    min_fields = min(MIN_FIELDS, len(headers))
    records: list[tuple[int, dict]] = []
    skipped: list[int] = []

    for idx in range(layout.first_data_index, len(lines)):
        values = parse_line(lines[idx])
        if len(values) < min_fields or not any(values):
            skipped.append(idx + 1)
            continue
        record = {h: (values[i] if i < len(values) else "") for i, h in enumerate(headers)}
        records.append((idx + 1, record))

    return records, skipped


def _blank(value) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def first_value(record: dict, sources) -> object:
    """First non-blank value among ``sources`` (header names are case-insensitive)."""
    index = {str(k).strip().lower(): v for k, v in record.items()}
    for src in sources:
        val = index.get(src.lower())
        if not _blank(val):
            return val
    return None


def map_record(record: dict, fields: tuple[Field, ...], *, strict: bool = False,
               today: date | None = None) -> tuple[dict, list[tuple[str, str]]]:
    """
    Apply ``fields`` to one raw record.

    With ``strict`` a blank required field raises CoercionError; otherwise
    it takes its default.  Whole-number fields that cannot be coerced
    always raise CoercionError.
    """
    out: dict = {}
    notes: list[tuple[str, str]] = []

    for fld in fields:
        raw = first_value(record, fld.sources)
        msgs: list[str] = []
        out[fld.name] = _coerce(fld, raw, msgs, strict, today)
        notes.extend((fld.name, m) for m in msgs)

    return out, notes


def _coerce(fld: Field, raw, msgs: list, strict: bool, today: date | None):
    if raw is None:
        if strict and fld.required:
            raise CoercionError(f"Missing value for {fld.sources[0]!r}")
        if fld.falls_back_to_today:
            fallback = (today or date.today()).isoformat()
            msgs.append(f"Missing date, using {fallback}")
            return fallback
        return fld.default_value()

    kind = fld.kind
    if kind is FieldKind.TEXT:
        return str(raw).strip()
    if kind is FieldKind.MONEY:
        return normalize_money(raw, msgs)
    if kind is FieldKind.NUMBER:
        try:
            return format(to_decimal(raw), "f")
        except ValueError:
            msgs.append(f"Unparseable number {raw!r}, using 0")
            return "0"
    if kind is FieldKind.BOOL:
        return normalize_bool(raw)
    if kind is FieldKind.DATE:
        if fld.falls_back_to_today:
            return normalize_date(raw, msgs, today=today)
        try:
            return to_iso_date(raw)
        except ValueError:
            msgs.append(f"Unparseable date {raw!r}, left empty")
            return fld.default_value()
    if kind is FieldKind.INT:
        try:
            return to_int(raw)
        except ValueError:
            raise CoercionError(
                f"{fld.sources[0]!r} must be a whole number, got {raw!r}"
            ) from None
    raise ValueError(f"unknown field kind {kind}")
