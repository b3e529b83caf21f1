#!/usr/bin/env python3
"""
BakeDesk - Bakery management API
================================

Single-command run:  python main.py

See config.py for all environment-variable tunables.
"""

import logging

from flask import Flask, jsonify

import config
from db import init_db, get_session
from api import api_bp
from services.owner_service import OwnerService

logger = logging.getLogger(__name__)


def configure_logging(level: str | None = None) -> None:
    logging.basicConfig(
        level=level or config.LOG_LEVEL,
        format="%(asctime)s %(levelname)-7s %(name)s: %(message)s",
    )


def create_app(overrides: dict | None = None) -> Flask:
    """Flask application factory.  ``overrides`` replaces config values (tests)."""

    app = Flask(__name__)
    app.secret_key = config.SECRET
    app.config.update(
        DB_URL=config.DB_URL,
        UPLOAD_DIR=str(config.UPLOAD_DIR),
        MAX_CONTENT_LENGTH=config.MAX_UPLOAD_BYTES,
        OWNER_USER=config.OWNER_USER,
        OWNER_PASSWORD=config.OWNER_PASSWORD,
    )
    if overrides:
        app.config.update(overrides)

    # ── Initialise database ─────────────────────────────────────────
    init_db(app.config["DB_URL"])
    logger.info(f"Database: {app.config['DB_URL']}")
    _seed_owner(app)

    # ── Register blueprints ─────────────────────────────────────────
    app.register_blueprint(api_bp)

    # ── Error handlers ──────────────────────────────────────────────
    @app.errorhandler(404)
    def _404(_e):
        return jsonify({"error": "not found"}), 404

    @app.errorhandler(413)
    def _413(_e):
        return jsonify({"success": False, "error": "file too large"}), 413

    return app


def _seed_owner(app: Flask) -> None:
    """Create the default owner when the users table is empty."""
    session = get_session()
    try:
        user = OwnerService.seed_if_empty(
            session, app.config["OWNER_USER"], app.config["OWNER_PASSWORD"],
        )
    finally:
        session.close()
    if user is not None:
        logger.info(f"Seeded owner {user.username!r}")


def main():
    configure_logging()

    print("=" * 56)
    print("  BakeDesk - Bakery management API")
    print("=" * 56)

    app = create_app()

    print(f"\n  Database: {config.DB_URL}")
    print(f"  Uploads:  {config.UPLOAD_DIR}")
    print(f"\n  http://{config.HOST}:{config.PORT}/api/health")
    print("=" * 56)

    app.run(host=config.HOST, port=config.PORT, debug=config.DEBUG)


if __name__ == "__main__":
    main()
