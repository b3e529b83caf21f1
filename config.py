"""
BakeDesk - Centralised configuration.

All tunables live here.  Every other module imports from config
instead of reading os.environ directly.
"""

from __future__ import annotations
import os
from pathlib import Path


# ── Paths ──────────────────────────────────────────────────────────────
BASE_DIR   = Path(__file__).resolve().parent
UPLOAD_DIR = Path(os.environ.get("BAKEDESK_UPLOAD_DIR", BASE_DIR / "uploads"))

# ── Database ───────────────────────────────────────────────────────────
DB_URL = os.environ.get("BAKEDESK_DB", f"sqlite:///{BASE_DIR / 'bakedesk.sqlite'}")

# ── Server ─────────────────────────────────────────────────────────────
HOST   = os.environ.get("BAKEDESK_HOST", "0.0.0.0")
PORT   = int(os.environ.get("BAKEDESK_PORT", "5000"))
DEBUG  = os.environ.get("BAKEDESK_DEBUG", "0") == "1"
SECRET = os.environ.get("BAKEDESK_SECRET", "bakedesk-dev-key-change-in-prod")

# ── Logging ────────────────────────────────────────────────────────────
LOG_LEVEL = os.environ.get("BAKEDESK_LOG_LEVEL", "INFO").upper()

# ── Owner seeded on an empty database ──────────────────────────────────
OWNER_USER     = os.environ.get("BAKEDESK_OWNER_USER", "baker")
OWNER_PASSWORD = os.environ.get("BAKEDESK_OWNER_PASSWORD", "baker")

# ── Import ─────────────────────────────────────────────────────────────
MAX_UPLOAD_BYTES  = int(os.environ.get("BAKEDESK_MAX_UPLOAD_MB", "10")) * 1024 * 1024
MAX_ERROR_DETAILS = int(os.environ.get("BAKEDESK_MAX_ERROR_DETAILS", "100"))
MARKER_SCAN_LINES = int(os.environ.get("BAKEDESK_MARKER_SCAN_LINES", "3"))
EXPENSE_DEDUP     = os.environ.get("BAKEDESK_EXPENSE_DEDUP", "1") == "1"
QUOTE_EXPIRY_DAYS = 30
CSV_EXTENSIONS    = frozenset({".csv"})
