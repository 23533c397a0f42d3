from typing import Optional

from flask import Flask, jsonify, request
from flask_cors import CORS
from werkzeug.exceptions import HTTPException

from lms_admin.api.admin import admin_bp
from lms_admin.core.config import CORS_ALLOWED_ORIGINS, IDENTITY_BACKEND, MEDIA_BACKEND
from lms_admin.core.errors import AppError, handle_exception
from lms_admin.core.logging import api_logger, get_logger
from lms_admin.models.database import DocumentStore, get_document_store
from lms_admin.services.admin_service import AdminService
from lms_admin.services.identity_provider import IdentityProvider, create_identity_provider
from lms_admin.services.media_host import MediaHost, create_media_host

logger = get_logger("app")


def _cors_origins():
    if CORS_ALLOWED_ORIGINS.strip() == "*":
        return "*"
    return [o.strip().rstrip("/") for o in CORS_ALLOWED_ORIGINS.split(",") if o.strip()]


def create_app(
    store: Optional[DocumentStore] = None,
    media_host: Optional[MediaHost] = None,
    identity_provider: Optional[IdentityProvider] = None,
):
    app = Flask(__name__)
    app.config["JSON_AS_ASCII"] = False
    app.json.sort_keys = False

    CORS(app, origins=_cors_origins())

    if media_host is None:
        media_host = create_media_host(MEDIA_BACKEND)
        if media_host is None:
            logger.warning(f"Media backend '{MEDIA_BACKEND}' not configured; media cleanup will fail")
    if identity_provider is None:
        identity_provider = create_identity_provider(IDENTITY_BACKEND)
        if identity_provider is None:
            logger.warning(
                f"Identity backend '{IDENTITY_BACKEND}' not configured; account cleanup will fail"
            )

    app.extensions["admin_service"] = AdminService(
        store=store if store is not None else get_document_store(),
        media_host=media_host,
        identity_provider=identity_provider,
    )

    app.register_blueprint(admin_bp)

    @app.route("/api/health", methods=["GET"])
    def health():
        return jsonify({"status": "healthy"})

    @app.errorhandler(HTTPException)
    def handle_http_error(error: HTTPException):
        return jsonify({"message": error.description}), error.code

    @app.errorhandler(AppError)
    def handle_app_error(error: AppError):
        return jsonify(error.to_dict()), error.status_code

    @app.errorhandler(Exception)
    def handle_generic_error(error: Exception):
        api_logger.log_error(error, {"path": request.path})
        error_dict, status_code = handle_exception(error)
        return jsonify(error_dict), status_code

    return app
