"""
api.routes_data_import - /api/data/import full-dataset endpoints.
"""

from flask import g, jsonify, request

from api import api_bp
from api.auth import owner_required
from api.uploads import save_upload
from import_engine import ImportFileError, consume_upload, run_dataset_import
from import_engine.dataset import DatasetOptions
from import_engine.field_map import describe, known_entities

JSON_EXTENSIONS = frozenset({".json"})


def _response(report):
    body = {
        "success": report.ok,
        "message": report.summary_message(),
        "result": report.to_dict(),
    }
    return jsonify(body), (500 if report.fatal else 200)


@api_bp.route("/data/import", methods=["POST"])
@owner_required
def import_dataset_file():
    """
    POST /api/data/import

    Multipart: field 'file' (JSON export) plus form flags
    importContacts, importOrders, importProducts, importRecipes,
    importFinancials, importTasks, importEnquiries, importSettings,
    replaceExisting.
    """
    path = save_upload(JSON_EXTENSIONS)
    options = DatasetOptions.from_flags(request.form)
    with consume_upload(path) as content:
        report = run_dataset_import(content, g.owner_id, options)
    return _response(report)


@api_bp.route("/data/import/json", methods=["POST"])
@owner_required
def import_dataset_json():
    """POST /api/data/import/json  - dataset as the JSON body, flags in the query string."""
    data = request.get_json(silent=True)
    if data is None:
        raise ImportFileError("No data provided")
    options = DatasetOptions.from_flags(request.args)
    report = run_dataset_import(data, g.owner_id, options)
    return _response(report)


@api_bp.route("/data/import/fields")
@owner_required
def import_fields():
    """GET /api/data/import/fields?type=orders"""
    entity = request.args.get("type", "").strip()
    if not entity:
        return jsonify({"types": known_entities()})
    try:
        fields = describe(entity)
    except KeyError:
        return jsonify({"error": f"unknown import type {entity!r}"}), 404
    return jsonify({"type": entity, "fields": fields})
