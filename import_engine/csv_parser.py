"""
import_engine.csv_parser - Low-level line splitting.

Responsibilities:
  • BOM removal (UTF-8 / UTF-8-SIG)
  • Splitting content into non-blank lines
  • Splitting one line into fields with a double-quote toggle

The dialect is minimal: a '"' flips the "inside quotes"
state and is dropped, a separator inside quotes is literal text, and
there is no '""' escape.  An unterminated quote swallows the rest of
the line into the current field; no error is raised.
"""

from __future__ import annotations

from import_engine.errors import ImportFileError


def decode(raw: str | bytes) -> str:
    """Return text with any leading BOM removed."""
    if isinstance(raw, bytes):
        if raw.startswith(b"\xef\xbb\xbf"):
            raw = raw[3:]
        try:
            return raw.decode("utf-8")
        except UnicodeDecodeError:
            # Spreadsheet exports on Windows are often cp1252
            return raw.decode("cp1252", errors="replace")
    if raw.startswith("\ufeff"):
        return raw[1:]
    return raw


def split_lines(text: str) -> list[str]:
    """Split content into lines, dropping blank ones."""
    return [line for line in text.splitlines() if line.strip()]


def parse_line(line: str, sep: str = ",") -> list[str]:
    """Split one CSV line into trimmed field values."""
    fields: list[str] = []
    current: list[str] = []
    in_quotes = False

    for ch in line:
        if ch == '"':
            in_quotes = not in_quotes
        elif ch == sep and not in_quotes:
            fields.append("".join(current).strip())
            current = []
        else:
            current.append(ch)

    fields.append("".join(current).strip())
    return fields


def read_lines(raw: str | bytes) -> list[str]:
    """Decode raw content and return its non-blank lines, or raise."""
    if raw is None:
        raise ImportFileError("File could not be read")
    text = decode(raw)
    lines = split_lines(text)
    if not lines:
        raise ImportFileError("File is empty")
    return lines
