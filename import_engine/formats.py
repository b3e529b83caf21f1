"""
import_engine.formats - Source layout detection.

A file is classified exactly once into a SourceFormat; the resulting
Layout is passed explicitly to the mapper.  Nothing downstream looks
at header text to guess the format again.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field

import config
from import_engine.csv_parser import parse_line
from import_engine.errors import ImportFileError

MARKERS = ("bake diary", "bakediary")
VENDOR_HEADER_INDEX = 2


class SourceFormat(enum.Enum):
    GENERIC                = "generic"
    BAKE_DIARY_EXPENSES    = "bake_diary_expenses"
    BAKE_DIARY_CONTACTS    = "bake_diary_contacts"
    BAKE_DIARY_ORDERS      = "bake_diary_orders"
    BAKE_DIARY_ORDER_ITEMS = "bake_diary_order_items"
    JSON_DATASET           = "json_dataset"

    @property
    def is_vendor(self) -> bool:
        return self.name.startswith("BAKE_DIARY")


# Which import entity each vendor layout carries
VENDOR_ENTITIES: dict[SourceFormat, frozenset[str]] = {
    SourceFormat.BAKE_DIARY_EXPENSES:    frozenset({"expenses"}),
    SourceFormat.BAKE_DIARY_CONTACTS:    frozenset({"contacts"}),
    SourceFormat.BAKE_DIARY_ORDERS:      frozenset({"orders", "quotes"}),
    SourceFormat.BAKE_DIARY_ORDER_ITEMS: frozenset({"order_items"}),
}


@dataclass(frozen=True)
class Layout:
    format: SourceFormat
    header_index: int
    marker_found: bool = False
    headers: tuple[str, ...] = field(default_factory=tuple)

    @property
    def first_data_index(self) -> int:
        return self.header_index + 1


def _has(headers: set[str], *names: str) -> bool:
    return all(n.lower() in headers for n in names)


def classify_headers(headers) -> SourceFormat:
    """Pick a format from the column signature of a header row."""
    cols = {h.strip().lower() for h in headers}

    if _has(cols, "Order Number", "Item"):
        return SourceFormat.BAKE_DIARY_ORDER_ITEMS
    if _has(cols, "Order Number", "Contact", "Order Total"):
        return SourceFormat.BAKE_DIARY_ORDERS
    if _has(cols, "Amount (Incl VAT)") or _has(cols, "Vendor", "VAT"):
        return SourceFormat.BAKE_DIARY_EXPENSES
    if _has(cols, "Supplier Name") or _has(cols, "First Name", "Last Name", "Number"):
        return SourceFormat.BAKE_DIARY_CONTACTS
    return SourceFormat.GENERIC


def _is_marker_line(line: str) -> bool:
    """A preamble line naming the vendor; tabular lines never count."""
    if not any(m in line.lower() for m in MARKERS):
        return False
    cells = [c for c in parse_line(line) if c.strip()]
    return len(cells) < 2


def detect_layout(lines: list[str], scan_lines: int | None = None) -> Layout:
    """
    Decide where the header row is and which format the file uses.

    ``lines`` are the non-blank lines of the file.  A vendor marker on a
    single-cell preamble line ahead of index 2 (and within the first
    ``scan_lines`` lines) moves the header row to index 2.  A first line
    that already classifies as a vendor header keeps index 0.
    Raises ImportFileError when the file is too short for its layout.
    """
    scan = config.MARKER_SCAN_LINES if scan_lines is None else scan_lines

    if len(lines) < 2:
        raise ImportFileError(
            f"File needs a header row and at least one data row "
            f"(found {len(lines)} line{'s' if len(lines) != 1 else ''})"
        )

    preamble = lines[:min(scan, VENDOR_HEADER_INDEX)]
    marker = (
        classify_headers(parse_line(lines[0])) is SourceFormat.GENERIC
        and any(_is_marker_line(line) for line in preamble)
    )
    header_index = VENDOR_HEADER_INDEX if marker else 0

    if len(lines) <= header_index + 1:
        raise ImportFileError(
            f"Bake Diary export has no data rows: headers expected on line "
            f"{header_index + 1} but the file has only {len(lines)} lines"
        )

    headers = tuple(parse_line(lines[header_index]))
    fmt = classify_headers(headers)
    return Layout(format=fmt, header_index=header_index,
                  marker_found=marker, headers=headers)
