"""
api.routes_import - /api/import/* vendor CSV endpoints.

Each accepts a multipart upload (field name 'file') and an optional
'replaceExisting' form flag.  Row-level problems never change the HTTP
status; only file-level problems return 400.
"""

from flask import g, jsonify, request

import config
from api import api_bp
from api.auth import owner_required
from api.uploads import save_upload
from import_engine import import_csv_file
from import_engine.dataset import parse_flag

NOUNS = {
    "orders": "orders",
    "quotes": "quotes",
    "order_items": "order items",
    "contacts": "contacts",
}


def csv_import_response(entity: str):
    path = save_upload(config.CSV_EXTENSIONS)
    replace = parse_flag(request.form.get("replaceExisting"), False)
    report = import_csv_file(path, g.owner_id, entity, replace_existing=replace)

    tally = report.tally(entity)
    noun = NOUNS[entity]
    if report.fatal:
        message = report.summary_message()
    elif tally.imported:
        message = f"Successfully imported {tally.imported} {noun}"
    else:
        message = f"No {noun} were imported"

    body = {
        "success": report.ok and tally.imported > 0,
        "message": message,
        "processedRows": tally.imported,
        "skippedRows": tally.skipped,
        "failedRows": tally.errors,
        "format": report.source_format,
    }
    if report.errors:
        body["errors"] = report.errors
    if report.skip_reasons:
        body["skipped"] = report.skip_reasons
    if report.warnings:
        body["warnings"] = [w.to_dict() for w in report.warnings]
    if report.cleared:
        body["cleared"] = report.cleared
    return jsonify(body), (500 if report.fatal else 200)


@api_bp.route("/import/orders", methods=["POST"])
@owner_required
def import_orders():
    """POST /api/import/orders  (Bake Diary order list CSV)"""
    return csv_import_response("orders")


@api_bp.route("/import/quotes", methods=["POST"])
@owner_required
def import_quotes():
    """POST /api/import/quotes  (Bake Diary quote list CSV)"""
    return csv_import_response("quotes")


@api_bp.route("/import/order-items", methods=["POST"])
@owner_required
def import_order_items():
    """POST /api/import/order-items  (Bake Diary order items CSV)"""
    return csv_import_response("order_items")


@api_bp.route("/import/contacts", methods=["POST"])
@owner_required
def import_contacts():
    """POST /api/import/contacts  (Bake Diary contacts CSV)"""
    return csv_import_response("contacts")
