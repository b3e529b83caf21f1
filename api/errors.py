"""
api.errors - JSON error handlers for the API blueprint.
"""

import logging

from flask import jsonify

from api import api_bp
from import_engine.errors import ImportFileError

logger = logging.getLogger(__name__)


@api_bp.errorhandler(ImportFileError)
def api_import_file_error(e):
    logger.warning(f"Import rejected: {e}")
    return jsonify({"success": False, "message": str(e), "error": str(e)}), 400


@api_bp.errorhandler(400)
def api_bad_request(_e):
    return jsonify({"error": "bad request"}), 400


@api_bp.errorhandler(401)
def api_unauthorized(_e):
    return jsonify({"error": "authentication required"}), 401


@api_bp.errorhandler(404)
def api_not_found(_e):
    return jsonify({"error": "not found"}), 404


@api_bp.errorhandler(413)
def api_too_large(_e):
    return jsonify({"success": False, "error": "file too large"}), 413


@api_bp.errorhandler(500)
def api_server_error(_e):
    return jsonify({"error": "internal server error"}), 500
