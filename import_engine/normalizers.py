"""
import_engine.normalizers - Value coercion for imported fields.

Strict helpers (to_decimal, to_iso_date, to_int) raise ValueError.
The normalize_* wrappers are lenient: they fall back to a default
and append a human-readable note to the optional ``warnings`` list
so the caller can surface it on the row result.
"""

from __future__ import annotations

import re
from datetime import date, datetime
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

from dateutil.parser import parse as dateutil_parse

_CENT = Decimal("0.01")

# Values of 10**(MAX_MAGNITUDE + 1) or more are rejected
MAX_MAGNITUDE = 12

_CURRENCY_CHARS = re.compile(r"[$£€\s,]")
_PARENS = re.compile(r"^\((.*)\)$")
_ISO_DATE = re.compile(r"^(\d{4})-(\d{2})-(\d{2})(?:[T ].*)?$")
_DAY_MON_YEAR = re.compile(r"^(\d{1,2})\s+([A-Za-z]{3})[A-Za-z]*\.?\s+(\d{4})$")

MONTHS = {
    "jan": 1, "feb": 2, "mar": 3, "apr": 4, "may": 5, "jun": 6,
    "jul": 7, "aug": 8, "sep": 9, "oct": 10, "nov": 11, "dec": 12,
}

TRUTHY = frozenset({"yes", "true"})


# ── Currency ───────────────────────────────────────────────────────────

def _checked(value: Decimal, raw) -> Decimal:
    if not value.is_finite():
        raise ValueError(f"not a number: {raw!r}")
    if value and value.adjusted() > MAX_MAGNITUDE:
        raise ValueError(f"amount out of range: {raw!r}")
    return value


def to_decimal(raw) -> Decimal:
    """
    Parse a currency-formatted value.

    "$1,234.56" → 1234.56, "(12.00)" and "$(12.00)" → -12.00 (accounting
    negative).  Blank input is zero.  Raises ValueError when nothing
    numeric is left or the value is infinite, NaN or out of range.
    """
    if raw is None or isinstance(raw, bool):
        raise ValueError(f"not a number: {raw!r}")
    if isinstance(raw, (int, float, Decimal)):
        return _checked(Decimal(str(raw)), raw)

    text = _CURRENCY_CHARS.sub("", str(raw))
    if not text:
        return Decimal("0")

    negative = False
    m = _PARENS.match(text)
    if m:
        text = m.group(1)
        negative = True

    try:
        value = Decimal(text)
    except InvalidOperation:
        raise ValueError(f"not a number: {raw!r}") from None
    value = _checked(value, raw)
    return -value if negative else value


def money_str(value: Decimal) -> str:
    """Quantise to cents and render as a plain decimal string."""
    return str(value.quantize(_CENT, rounding=ROUND_HALF_UP))


def normalize_money(raw, warnings: list | None = None) -> str:
    """Decimal string for ``raw``; "0" (with a warning) when unparseable."""
    if raw is None:
        return "0"
    try:
        return money_str(to_decimal(raw))
    except ValueError:
        if warnings is not None:
            warnings.append(f"Unparseable amount {raw!r}, using 0")
        return "0"


# ── Boolean ────────────────────────────────────────────────────────────

def normalize_bool(raw) -> bool:
    if isinstance(raw, bool):
        return raw
    if raw is None:
        return False
    return str(raw).strip().lower() in TRUTHY


# ── Integer ────────────────────────────────────────────────────────────

def to_int(raw) -> int:
    """Whole number from "3", "3.0" or 3; raises ValueError otherwise."""
    if isinstance(raw, bool):
        raise ValueError(f"not a whole number: {raw!r}")
    if isinstance(raw, int):
        return raw
    value = to_decimal(raw)
    if value != value.to_integral_value():
        raise ValueError(f"not a whole number: {raw!r}")
    return int(value)


# ── Dates ──────────────────────────────────────────────────────────────

def to_iso_date(raw) -> str:
    """
    Convert a date string into ``YYYY-MM-DD``.

    Tried in order: ISO passthrough (a trailing time part is dropped),
    "D MMM YYYY" via the month table, then a generic dateutil parse.
    Raises ValueError when none apply.
    """
    if isinstance(raw, datetime):
        return raw.date().isoformat()
    if isinstance(raw, date):
        return raw.isoformat()

    text = str(raw or "").strip()
    if not text:
        raise ValueError("empty date")

    m = _ISO_DATE.match(text)
    if m:
        return date(int(m.group(1)), int(m.group(2)), int(m.group(3))).isoformat()

    m = _DAY_MON_YEAR.match(text)
    if m:
        month = MONTHS.get(m.group(2).lower())
        if month:
            return date(int(m.group(3)), month, int(m.group(1))).isoformat()

    try:
        return dateutil_parse(text).date().isoformat()
    except (ValueError, OverflowError):
        raise ValueError(f"unrecognised date {text!r}") from None


def normalize_date(raw, warnings: list | None = None,
                   today: date | None = None) -> str:
    """ISO date for ``raw``; today's date (with a warning) when unparseable."""
    try:
        return to_iso_date(raw)
    except ValueError:
        fallback = (today or date.today()).isoformat()
        if warnings is not None:
            shown = raw if raw not in (None, "") else "(blank)"
            warnings.append(f"Unparseable date {shown!r}, using {fallback}")
        return fallback
