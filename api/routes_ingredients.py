"""
api.routes_ingredients - bulk ingredient import.
"""

from flask import g, jsonify, request

from api import api_bp
from api.auth import owner_required
from import_engine import run_ingredients_import


@api_bp.route("/ingredients/import", methods=["POST"])
@owner_required
def import_ingredients():
    """POST /api/ingredients/import  {"items": [{name, unit, costPerUnit, ...}]}"""
    data = request.get_json(silent=True) or {}
    report = run_ingredients_import(data.get("items"), g.owner_id)

    tally = report.tally("ingredients")
    body = {
        "success": report.ok,
        "inserted": tally.imported,
        "skipped": tally.skipped,
        "failed": tally.errors,
        "message": report.summary_message(),
    }
    if report.errors:
        body["errors"] = report.errors
    if report.skip_reasons:
        body["skippedDetails"] = report.skip_reasons
    if report.warnings:
        body["warnings"] = [w.to_dict() for w in report.warnings]
    return jsonify(body), (500 if report.fatal else 200)
