from __future__ import annotations

import logging
from flask import Flask, g, jsonify
from werkzeug.exceptions import HTTPException

from cocoacycle.app.config import Config
from cocoacycle.app.extensions import db, migrate, cors
from cocoacycle.app.common.errors import ApiError
from cocoacycle.app.common.request_context import echo_request_id, init_request_id
from cocoacycle.app.api.register import register_api_blueprints
from cocoacycle.app.cli import cli_bp


def _error_payload(code: str, message: str, details: dict | None = None) -> dict:
    return {
        "error": {
            "code": code,
            "message": message,
            "details": details or {},
            "request_id": getattr(g, "request_id", None),
        }
    }


def create_app(config_object: type[Config] = Config) -> Flask:
    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(config_object)

    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(message)s")

    # Extensions
    db.init_app(app)
    migrate.init_app(app, db)
    cors.init_app(
        app,
        resources={r"/api/*": {"origins": app.config.get("CORS_ORIGINS") or "*"}},
        # Cookies only cross origins that are listed explicitly.
        supports_credentials=bool(app.config.get("CORS_ORIGINS")),
    )

    @app.before_request
    def _before_request():
        init_request_id()

    app.after_request(echo_request_id)

    @app.get("/health")
    def health():
        return {"status": "ok"}, 200

    register_api_blueprints(app)

    # CLI (flask seed, flask make-admin)
    app.register_blueprint(cli_bp)

    @app.get("/")
    def index():
        return (
            "<h1>CocoaCycle</h1><p>Server is running. Visit <a href='/api'>/api</a>.</p>",
            200,
            {"Content-Type": "text/html"},
        )

    # Error handlers
    @app.errorhandler(ApiError)
    def handle_api_error(err: ApiError):
        return jsonify(err.to_dict(getattr(g, "request_id", None))), err.status_code

    @app.errorhandler(HTTPException)
    def handle_http_exception(err: HTTPException):
        return jsonify(_error_payload("http_error", err.description, {"name": err.name})), err.code or 500

    @app.errorhandler(Exception)
    def handle_unexpected(err: Exception):
        app.logger.exception("Unhandled exception")
        db.session.rollback()
        return jsonify(_error_payload("internal_error", "Internal server error")), 500

    return app
