"""Application factory."""

import logging
import os
import uuid

from flask import Flask, g, jsonify, request
from flask_cors import CORS
from flask_jwt_extended import JWTManager
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from flask_migrate import Migrate
from werkzeug.exceptions import HTTPException

from config import Config
from models import db
from routes.application_documents import documents_bp
from routes.applications import applications_bp
from routes.certificate_types import certificate_types_bp
from routes.files import files_bp
from routes.notifications import notifications_bp
from routes.program_certificates import program_certificates_bp
from routes.programs import programs_bp
from routes.users import users_bp
from services.errors import PortalError

migrate = Migrate()
jwt = JWTManager()


def create_app(config_class: type[Config] = Config) -> Flask:
    """Create and configure the Flask application."""
    app = Flask(__name__)
    app.config.from_object(config_class)
    _configure_logging(app)

    # Core subsystems
    db.init_app(app)
    migrate.init_app(app, db)
    jwt.init_app(app)

    # CORS
    CORS(
        app,
        resources={r"/*": {"origins": app.config.get("CORS_ORIGINS", "*")}},
        supports_credentials=True,
    )

    # Rate limiting
    key_prefix = app.config.get("RATELIMIT_KEY_PREFIX") or str(uuid.uuid4())
    limiter = Limiter(
        key_func=get_remote_address,
        default_limits=[lambda: app.config.get("RATE_LIMIT", "120 per minute")],
        storage_uri=app.config.get("RATELIMIT_STORAGE_URI", "memory://"),
        headers_enabled=app.config.get("RATELIMIT_HEADERS_ENABLED", True),
        key_prefix=key_prefix,
    )
    limiter.init_app(app)
    app.config["RATELIMIT_KEY_PREFIX"] = key_prefix
    app.extensions["portal_limiter"] = limiter

    # Ensure uploads directory exists
    upload_dir = app.config.get("UPLOAD_DIR")
    if upload_dir:
        os.makedirs(upload_dir, exist_ok=True)

    # Blueprints
    app.register_blueprint(users_bp, url_prefix="/api/users")
    app.register_blueprint(applications_bp, url_prefix="/api/applications")
    app.register_blueprint(
        documents_bp, url_prefix="/api/applications/<int:application_id>/documents"
    )
    app.register_blueprint(programs_bp, url_prefix="/api/programs")
    app.register_blueprint(
        program_certificates_bp, url_prefix="/api/programs/<int:program_id>/certificates"
    )
    app.register_blueprint(certificate_types_bp, url_prefix="/api/certificate-types")
    app.register_blueprint(files_bp, url_prefix="/api/files")
    app.register_blueprint(notifications_bp, url_prefix="/api/notifications")

    # Health
    @app.route("/health", methods=["GET"])
    def health_check():
        return jsonify({"status": "ok"})

    # Errors
    _register_error_handlers(app)
    _register_jwt_handlers()

    return app


def _configure_logging(app: Flask) -> None:
    level = logging.getLevelName(str(app.config.get("LOG_LEVEL", "INFO")).upper())
    if not isinstance(level, int):
        level = logging.INFO
    app.logger.setLevel(level)
    logging.getLogger("services").setLevel(level)
    logging.getLogger("routes").setLevel(level)


def _error_payload(name: str, message: str) -> dict:
    request_id = g.get("request_id") or str(uuid.uuid4())
    return {
        "error": name,
        "message": message,
        "detail": message,
        "request_id": request_id,
    }


def error_response(status_code: int, name: str, message: str):
    """Build the JSON error envelope used by every failure path."""

    payload = _error_payload(name, message)
    response = jsonify(payload)
    response.status_code = status_code
    response.headers.setdefault("X-Request-ID", payload["request_id"])
    return response


def _register_error_handlers(app: Flask) -> None:
    """Register JSON error handlers with request IDs."""

    @app.before_request
    def _assign_request_id():
        g.request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())

    @app.after_request
    def _add_request_id_header(response):
        request_id = g.get("request_id")
        if request_id:
            response.headers.setdefault("X-Request-ID", request_id)
        return response

    @app.errorhandler(HTTPException)
    def _handle_http_exception(error: HTTPException):
        db.session.rollback()
        response = error_response(
            error.code or 500,
            getattr(error, "name", "Error"),
            error.description or getattr(error, "name", "Error"),
        )
        for header, value in error.get_headers():
            if header.lower() != "content-type":
                response.headers.setdefault(header, value)
        return response

    @app.errorhandler(PortalError)
    def _handle_portal_error(error: PortalError):
        db.session.rollback()
        status = error.status_code
        return error_response(int(status), status.phrase, error.message)

    @app.errorhandler(Exception)
    def _handle_unexpected(error: Exception):  # pragma: no cover
        db.session.rollback()
        app.logger.exception("Unhandled application error", exc_info=error)
        return error_response(
            500, "Internal Server Error", "An unexpected error occurred."
        )


def _register_jwt_handlers() -> None:
    @jwt.unauthorized_loader
    def _missing_token(reason: str):
        return error_response(401, "Unauthorized", reason)

    @jwt.invalid_token_loader
    def _invalid_token(reason: str):
        return error_response(401, "Unauthorized", reason)

    @jwt.expired_token_loader
    def _expired_token(_header, _payload):
        return error_response(401, "Unauthorized", "Token has expired.")

    @jwt.revoked_token_loader
    def _revoked_token(_header, _payload):
        return error_response(401, "Unauthorized", "Token has been revoked.")


if __name__ == "__main__":
    application = create_app()
    application.run(host="0.0.0.0", port=int(os.environ.get("PORT", 5000)))
