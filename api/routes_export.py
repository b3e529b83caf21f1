"""
api.routes_export - /api/data/export download endpoints.
"""

from datetime import date

from flask import Response, g, jsonify, request

from api import api_bp
from api.auth import owner_required
from db import get_session
from services.export_service import ExportService, export_types


def _attachment(body: str, mimetype: str, filename: str) -> Response:
    resp = Response(body, mimetype=mimetype)
    resp.headers["Content-Disposition"] = f'attachment; filename="{filename}"'
    return resp


@api_bp.route("/data/export")
@owner_required
def export_dataset():
    """GET /api/data/export  - every owned record as one JSON document."""
    session = get_session()
    try:
        data = ExportService.dataset(session, g.owner_id)
    finally:
        session.close()
    filename = request.args.get("filename") or f"bakedesk-export-{date.today().isoformat()}.json"
    resp = jsonify(data)
    resp.headers["Content-Disposition"] = f'attachment; filename="{filename}"'
    return resp


@api_bp.route("/data/export/<export_type>")
@owner_required
def export_csv(export_type: str):
    """GET /api/data/export/{type}  - one record type (or template_*) as CSV."""
    session = get_session()
    try:
        text = ExportService.csv_text(session, g.owner_id, export_type)
    except KeyError:
        return jsonify({
            "success": False,
            "message": f"Unsupported export type: {export_type}",
            "types": export_types(),
        }), 400
    finally:
        session.close()
    filename = request.args.get("filename") or f"bakedesk-export-{export_type}.csv"
    return _attachment(text, "text/csv", filename)
