"""
api.auth - Owner session handling.

POST /api/auth/login stores the owner id in the Flask session;
owner_required guards every route that reads or writes owner data.
"""

from functools import wraps

from flask import g, jsonify, request
from flask import session as web_session

from api import api_bp
from db import get_session
from services.owner_service import OwnerService


def owner_required(fn):
    """Reject the request with 401 unless an owner is logged in."""
    @wraps(fn)
    def wrapper(*args, **kwargs):
        owner_id = web_session.get("user_id")
        if owner_id is None:
            return jsonify({"error": "authentication required"}), 401
        g.owner_id = owner_id
        return fn(*args, **kwargs)
    return wrapper


@api_bp.route("/auth/login", methods=["POST"])
def login():
    """POST /api/auth/login  {username, password}"""
    data = request.get_json(silent=True) or request.form
    session = get_session()
    try:
        user = OwnerService.authenticate(
            session, data.get("username", ""), data.get("password", ""),
        )
        if user is None:
            return jsonify({"error": "invalid username or password"}), 401
        web_session.clear()
        web_session["user_id"] = user.id
        return jsonify({"success": True, "user": user.to_dict()})
    finally:
        session.close()


@api_bp.route("/auth/logout", methods=["POST"])
def logout():
    web_session.clear()
    return jsonify({"success": True})


@api_bp.route("/auth/me")
@owner_required
def me():
    session = get_session()
    try:
        user = OwnerService.get(session, g.owner_id)
        if user is None:
            web_session.clear()
            return jsonify({"error": "authentication required"}), 401
        return jsonify(user.to_dict())
    finally:
        session.close()
