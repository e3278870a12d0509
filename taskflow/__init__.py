"""Taskflow application factory and bootstrap."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Optional

from flask import Flask, jsonify
from pydantic import ValidationError as SchemaValidationError
from werkzeug.exceptions import HTTPException

from taskflow.config import config_by_name
from taskflow.core.context import EXTENSION_KEY, build_context, current_context
from taskflow.core.errors import DomainError
from taskflow.extensions import init_extensions, jwt


def create_app(config_name: Optional[str] = None) -> Flask:
    """Create and configure the Taskflow Flask application."""
    env_name = (config_name or os.environ.get("APP_ENV") or "development").lower()
    project_root = Path(__file__).resolve().parent.parent
    instance_root = project_root / "instance"

    app = Flask(__name__, instance_path=str(instance_root), instance_relative_config=True)
    config_cls = config_by_name.get(env_name, config_by_name["development"])
    app.config.from_object(config_cls)

    logging.basicConfig(level=app.config.get("LOG_LEVEL", "INFO"))
    app.logger.setLevel(app.config.get("LOG_LEVEL", "INFO"))

    # Normalize sqlite path to absolute to avoid "unable to open database file"
    db_uri = app.config.get("SQLALCHEMY_DATABASE_URI") or ""
    if db_uri.startswith("sqlite:///") and not db_uri.startswith("sqlite:////"):
        abs_path = project_root / db_uri.replace("sqlite:///", "", 1)
        abs_path.parent.mkdir(parents=True, exist_ok=True)
        app.config["SQLALCHEMY_DATABASE_URI"] = f"sqlite:///{abs_path}"

    init_extensions(app)
    _register_blueprints(app)
    _register_error_handlers(app)
    _register_auth_handlers(app)

    with app.app_context():
        app.extensions[EXTENSION_KEY] = build_context(app)

    @app.get("/health")
    def health():
        return {"ok": True}, 200

    return app


def _register_blueprints(app: Flask) -> None:
    """Lazy import and register all controllers."""
    from taskflow.core.auth.controllers import auth_bp  # local import to avoid circulars
    from taskflow.core.users.controllers import user_api_bp
    from taskflow.domains.integrations.controllers.integration_api import integration_api_bp
    from taskflow.domains.journal.controllers.journal_api import journal_api_bp
    from taskflow.domains.projects.controllers.project_api import project_api_bp
    from taskflow.domains.tags.controllers.tag_api import tag_api_bp
    from taskflow.domains.tasks.controllers.task_api import task_api_bp

    app.register_blueprint(auth_bp, url_prefix="/api/auth")
    app.register_blueprint(user_api_bp, url_prefix="/api/users")
    app.register_blueprint(project_api_bp, url_prefix="/api/projects")
    app.register_blueprint(task_api_bp, url_prefix="/api/tasks")
    app.register_blueprint(tag_api_bp, url_prefix="/api/tags")
    app.register_blueprint(journal_api_bp, url_prefix="/api/journal")
    app.register_blueprint(integration_api_bp, url_prefix="/api/integrations")


def _jsonable_errors(exc: SchemaValidationError) -> list[dict]:
    errors = exc.errors(include_url=False)
    for err in errors:
        if "ctx" in err and isinstance(err["ctx"], dict):
            err["ctx"] = {k: str(v) for k, v in err["ctx"].items()}
    return errors


def _register_error_handlers(app: Flask) -> None:
    """JSON error responses: ``{"ok": false, "error": kind, "message": ...}``."""

    @app.errorhandler(DomainError)
    def _domain_error(exc: DomainError):
        return jsonify(exc.to_dict()), exc.status_code

    @app.errorhandler(SchemaValidationError)
    def _schema_error(exc: SchemaValidationError):
        return (
            jsonify(
                {
                    "ok": False,
                    "error": "validation_error",
                    "message": "request validation failed",
                    "details": _jsonable_errors(exc),
                }
            ),
            400,
        )

    @app.errorhandler(HTTPException)
    def _http_error(exc: HTTPException):
        kind = (exc.name or "error").lower().replace(" ", "_")
        return jsonify({"ok": False, "error": kind, "message": exc.description}), exc.code

    @app.errorhandler(Exception)
    def _generic_error(exc: Exception):
        app.logger.exception("Unhandled error: %s", exc)
        # In debug/testing, surface the exception message to speed up diagnosis
        message = str(exc) if app.debug or app.testing else "an unexpected error occurred"
        return jsonify({"ok": False, "error": "unexpected_error", "message": message}), 500


def _register_auth_handlers(app: Flask) -> None:
    """JWT callbacks: blocklist lookups and JSON bodies for auth failures."""
    from taskflow.core.auth.auth_service import is_token_revoked

    def _unauthorized(message: str):
        return jsonify({"ok": False, "error": "unauthorized", "message": message}), 401

    @jwt.token_in_blocklist_loader
    def _check_blocklist(jwt_header, jwt_payload) -> bool:
        return is_token_revoked(current_context(), jwt_payload.get("jti", ""))

    @jwt.unauthorized_loader
    def _missing_token(reason: str):
        return _unauthorized(reason)

    @jwt.invalid_token_loader
    def _invalid_token(reason: str):
        return _unauthorized(reason)

    @jwt.expired_token_loader
    def _expired_token(jwt_header, jwt_payload):
        return _unauthorized("token has expired")

    @jwt.revoked_token_loader
    def _revoked_token(jwt_header, jwt_payload):
        return _unauthorized("token has been revoked")
