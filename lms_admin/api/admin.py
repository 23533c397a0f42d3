import time

from flask import Blueprint, current_app, g, jsonify, request
from pydantic import ValidationError

from lms_admin.core.auth import require_admin
from lms_admin.core.errors import AppError, BadRequestError, handle_exception
from lms_admin.core.logging import api_logger
from lms_admin.models.schemas import LoginRequest
from lms_admin.services.admin_service import AdminService

admin_bp = Blueprint("admin", __name__, url_prefix="/api/admin")


def _service() -> AdminService:
    return current_app.extensions["admin_service"]


def _admin_id():
    admin = getattr(g, "admin", None)
    return admin.get("id") if admin else None


def _respond(operation, *args):
    started = time.perf_counter()
    try:
        payload = operation(*args)
    except Exception as e:
        # AppErrors are expected outcomes (404, 400); only log the rest as errors
        if not isinstance(e, AppError) or e.status_code >= 500:
            api_logger.log_error(e, {"path": request.path, "method": request.method})
        error_dict, status_code = handle_exception(e)
        api_logger.log_request(
            method=request.method,
            path=request.path,
            status_code=status_code,
            duration_ms=(time.perf_counter() - started) * 1000,
            admin_id=_admin_id(),
        )
        return jsonify(error_dict), status_code

    api_logger.log_request(
        method=request.method,
        path=request.path,
        status_code=200,
        duration_ms=(time.perf_counter() - started) * 1000,
        admin_id=_admin_id(),
    )
    return jsonify(payload)


@admin_bp.route("/login", methods=["POST"])
def login():
    data = request.get_json(silent=True)
    if not data:
        error_dict, status_code = handle_exception(
            BadRequestError("Request body required")
        )
        return jsonify(error_dict), status_code

    try:
        credentials = LoginRequest.model_validate(data)
    except ValidationError as e:
        error_dict, status_code = handle_exception(
            BadRequestError(
                "Email and password required",
                details={
                    "errors": e.errors(
                        include_url=False, include_context=False, include_input=False
                    )
                },
            )
        )
        return jsonify(error_dict), status_code

    return _respond(_service().login, credentials.email, credentials.password)


@admin_bp.route("/stats", methods=["GET"])
@require_admin
def dashboard_stats():
    return _respond(_service().dashboard_stats)


@admin_bp.route("/students", methods=["GET"])
@require_admin
def list_students():
    return _respond(_service().list_students)


@admin_bp.route("/students/<student_id>", methods=["GET"])
@require_admin
def get_student(student_id):
    return _respond(_service().get_student, student_id)


@admin_bp.route("/students/<student_id>", methods=["DELETE"])
@require_admin
def delete_student(student_id):
    return _respond(_service().delete_student, student_id)


@admin_bp.route("/instructors", methods=["GET"])
@require_admin
def list_instructors():
    return _respond(_service().list_instructors)


@admin_bp.route("/instructors/<instructor_id>", methods=["GET"])
@require_admin
def get_instructor(instructor_id):
    return _respond(_service().get_instructor, instructor_id)


@admin_bp.route("/instructors/<instructor_id>", methods=["DELETE"])
@require_admin
def delete_instructor(instructor_id):
    return _respond(_service().delete_instructor, instructor_id)


@admin_bp.route("/courses", methods=["GET"])
@require_admin
def list_courses():
    return _respond(_service().list_courses)


@admin_bp.route("/courses/<course_id>", methods=["GET"])
@require_admin
def get_course(course_id):
    return _respond(_service().get_course, course_id)


@admin_bp.route("/courses/<course_id>", methods=["DELETE"])
@require_admin
def delete_course(course_id):
    return _respond(_service().delete_course, course_id)


@admin_bp.route("/activity", methods=["GET"])
@require_admin
def recent_activity():
    return _respond(_service().recent_activity)
