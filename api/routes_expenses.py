"""
api.routes_expenses - /api/expenses-import endpoint.
"""

from flask import g, jsonify, request
from sqlalchemy import select

import config
from api import api_bp
from api.auth import owner_required
from api.uploads import save_upload
from db import Expense, get_session
from import_engine import import_csv_file
from import_engine.dataset import parse_flag


def _message(report) -> str:
    if report.fatal:
        return report.summary_message()
    n = report.imported
    msg = f"Imported {n} expense{'s' if n != 1 else ''}"
    if report.skipped:
        msg += f", skipped {report.skipped}"
    if report.failed:
        msg += f", {report.failed} failed"
    return msg


@api_bp.route("/expenses-import", methods=["POST"])
@owner_required
def import_expenses():
    """
    POST /api/expenses-import

    Multipart: field name 'file' (generic or Bake Diary expense CSV).
    Returns the expenses created by this upload.
    """
    path = save_upload(config.CSV_EXTENSIONS)
    replace = parse_flag(request.form.get("replaceExisting"), False)
    report = import_csv_file(path, g.owner_id, "expenses", replace_existing=replace)

    ids = report.created.get("expenses", []) if report.ok else []
    session = get_session()
    try:
        rows = session.scalars(
            select(Expense).where(Expense.id.in_(ids)).order_by(Expense.id)
        ).all() if ids else []
        body = {
            "success": report.ok,
            "message": _message(report),
            "expenses": [e.to_dict() for e in rows],
            "skippedRows": report.skipped,
            "format": report.source_format,
        }
        if report.errors:
            body["errors"] = report.errors
        if report.warnings:
            body["warnings"] = [w.to_dict() for w in report.warnings]
        return jsonify(body), (500 if report.fatal else 200)
    finally:
        session.close()
