"""Applications blueprint: listing, CRUD, lifecycle actions and bulk edits."""

from __future__ import annotations

from datetime import datetime
from http import HTTPStatus

from flask import Blueprint, jsonify, request
from flask_jwt_extended import jwt_required
from sqlalchemy import false, or_
from werkzeug.exceptions import BadRequest, Forbidden

from models import db
from models.application import APPLICATION_STATUSES, Application
from models.program import Program
from models.user import User
from services import bulk, lifecycle, permissions
from services.applications import (
    STAFF_FIELDS,
    STUDENT_FIELDS,
    apply_fields,
    build_application,
    find_duplicate,
    load_application,
    next_application_number,
)
from services.errors import (
    DuplicateResource,
    PermissionDenied,
    ResourceNotFound,
    ValidationFailed,
)
from services.notifications import notify
from utils.auth import require_role, require_user
from utils.pagination import page_args, page_meta
from utils.request_validation import parse_json_request, require_int

applications_bp = Blueprint("applications", __name__)

SORT_FIELDS = {
    "dateCreated": Application.date_created,
    "dateUpdated": Application.date_updated,
    "status": Application.status,
    "studentName": Application.student_name,
    "submittedAt": Application.submitted_at,
    "applicationNumber": Application.application_number,
}


def _scoped_query(user: User):
    query = Application.query
    if user.role == "student":
        return query.filter(Application.user_id == user.id)
    if user.role == "program_admin":
        if user.program_id is None:
            return query.filter(false())
        return query.filter(Application.program_id == user.program_id)
    return query


def _serialize(app: Application, user: User) -> dict:
    data = app.to_dict()
    data["permissions"] = permissions.permission_flags(app, user)
    return data


def _viewable(application_id: int, user: User) -> Application:
    app = load_application(application_id)
    if not permissions.can_view(app, user):
        raise Forbidden("You do not have permission to view this application.")
    return app


def _load_program(program_id) -> Program:
    program = db.session.get(Program, program_id)
    if program is None:
        raise ResourceNotFound("Program not found.")
    return program


@applications_bp.route("", methods=["GET"])
@jwt_required()
def list_applications():
    """Paginated, filtered, sorted list scoped to what the caller may see."""

    user = require_user()
    page, limit = page_args()
    query = _scoped_query(user)

    filters = {}
    status = request.args.get("status")
    if status:
        if status not in APPLICATION_STATUSES:
            raise BadRequest("Invalid status filter.")
        query = query.filter(Application.status == status)
        filters["status"] = status
    program_id = request.args.get("programId")
    if program_id:
        program_id = require_int(program_id, "programId")
        query = query.filter(Application.program_id == program_id)
        filters["programId"] = program_id
    academic_year = request.args.get("academicYear")
    if academic_year:
        query = query.filter(Application.academic_year == academic_year)
        filters["academicYear"] = academic_year
    search = (request.args.get("search") or "").strip()
    if search:
        like = f"%{search.lower()}%"
        query = query.filter(
            or_(
                db.func.lower(Application.application_number).like(like),
                db.func.lower(Application.student_name).like(like),
                db.func.lower(Application.email).like(like),
            )
        )
        filters["search"] = search

    sort_field = request.args.get("sortField", "dateCreated")
    if sort_field not in SORT_FIELDS:
        raise BadRequest(
            "sortField must be one of: {}.".format(", ".join(SORT_FIELDS))
        )
    sort_order = (request.args.get("sortOrder") or "desc").lower()
    if sort_order not in {"asc", "desc"}:
        raise BadRequest("sortOrder must be asc or desc.")
    column = SORT_FIELDS[sort_field]
    ordering = column.asc() if sort_order == "asc" else column.desc()
    id_ordering = Application.id.asc() if sort_order == "asc" else Application.id.desc()

    pagination = query.order_by(ordering, id_ordering).paginate(
        page=page, per_page=limit, error_out=False
    )
    return jsonify(
        {
            "docs": [_serialize(app, user) for app in pagination.items],
            **page_meta(pagination),
            "filterApplied": filters,
            "sortApplied": {"sortField": sort_field, "sortOrder": sort_order},
            "userInfo": {
                "role": user.role,
                "canCreateNew": user.role == "student",
                "canBulkEdit": permissions.can_bulk_edit(user),
                "canBulkDelete": permissions.can_bulk_delete(user),
            },
        }
    )


@applications_bp.route("", methods=["POST"])
@jwt_required()
def create_application():
    """Create a draft application for the calling student."""

    user = require_role("student")
    data = parse_json_request(request)

    app = build_application(data, user.id, next_application_number())
    program = _load_program(app.program_id)
    if not program.is_accepting_applications():
        raise ValidationFailed("This program is not accepting applications.")
    if find_duplicate(user.id, app.program_id, app.academic_year):
        raise DuplicateResource(
            "You already have an application for this program and academic year."
        )

    db.session.add(app)
    db.session.flush()
    warnings = lifecycle.record_creation(app, user)
    notify(
        user.id,
        "Application Created",
        f"Your application #{app.application_number} for {program.program_name} "
        "has been created as a draft.",
        action_url=f"/applications/{app.id}",
    )
    db.session.commit()
    return (
        jsonify(
            {
                "message": "Application created successfully.",
                "application": _serialize(app, user),
                "warnings": warnings,
            }
        ),
        HTTPStatus.CREATED,
    )


@applications_bp.route("/bulk", methods=["PUT"])
@jwt_required()
def bulk_update_applications():
    user = require_user()
    data = parse_json_request(request)
    result = bulk.bulk_update(data.get("applicationIds"), data.get("updates"), user)
    db.session.commit()
    return jsonify(
        {
            "message": f"{len(result.succeeded)} applications updated successfully.",
            "updated": result.succeeded,
            "failed": result.failed,
            "matchedCount": result.matched,
            "modifiedCount": len(result.succeeded),
            "warnings": result.warnings,
        }
    )


@applications_bp.route("/bulk", methods=["DELETE"])
@jwt_required()
def bulk_delete_applications():
    user = require_user()
    data = parse_json_request(request)
    result = bulk.bulk_delete(data.get("applicationIds"), user, data.get("confirmDelete"))
    db.session.commit()
    return jsonify(
        {
            "message": f"{len(result.succeeded)} applications deleted successfully.",
            "deleted": result.details,
            "failed": result.failed,
            "deletedCount": len(result.succeeded),
        }
    )


@applications_bp.route("/<int:application_id>", methods=["GET"])
@jwt_required()
def get_application(application_id: int):
    user = require_user()
    app = _viewable(application_id, user)
    return jsonify({"application": _serialize(app, user)})


def _student_update(app: Application, user: User, data: dict) -> list[str]:
    if not permissions.can_edit(app, user):
        if app.user_id == user.id:
            raise ValidationFailed(
                "Only draft or rejected applications can be edited."
            )
        raise PermissionDenied("Not authorized to edit this application.")

    errors = apply_fields(app, data, STUDENT_FIELDS)
    if errors:
        raise ValidationFailed("; ".join(errors))
    app.date_updated = datetime.utcnow()
    return lifecycle.reopen_for_edit(app, user)


def _staff_update(app: Application, user: User, data: dict) -> list[str]:
    if not permissions.can_admin_update(app, user):
        raise PermissionDenied("Not authorized to update this application.")

    if "programId" in data:
        program = _load_program(require_int(data["programId"], "programId"))
        if user.role == "program_admin" and program.id != user.program_id:
            raise PermissionDenied("Cannot move an application outside your program.")

    errors = apply_fields(app, data, STAFF_FIELDS)
    if errors:
        raise ValidationFailed("; ".join(errors))
    if find_duplicate(app.user_id, app.program_id, app.academic_year, exclude_id=app.id):
        raise DuplicateResource(
            "The student already has an application for this program and academic year."
        )
    app.date_updated = datetime.utcnow()

    status = data.get("status")
    if status and status != app.status:
        return lifecycle.change_status(app, user, status, data.get("remarks"))
    return []


@applications_bp.route("/<int:application_id>", methods=["PUT"])
@jwt_required()
def update_application(application_id: int):
    """Students edit their own drafts; staff may update any field but system ones."""

    user = require_user()
    app = load_application(application_id)
    data = parse_json_request(request)

    if user.role == "student":
        warnings = _student_update(app, user, data)
    else:
        warnings = _staff_update(app, user, data)

    db.session.commit()
    return jsonify(
        {
            "message": "Application updated successfully.",
            "application": _serialize(app, user),
            "warnings": warnings,
        }
    )


@applications_bp.route("/<int:application_id>", methods=["DELETE"])
@jwt_required()
def delete_application(application_id: int):
    user = require_user()
    app = load_application(application_id)
    if not permissions.can_delete(app, user):
        if user.role == "student" and app.user_id == user.id:
            raise ValidationFailed("Only draft applications can be deleted.")
        raise PermissionDenied("Not authorized to delete this application.")

    owner_id = app.user_id
    number = app.application_number
    db.session.delete(app)
    if owner_id != user.id:
        notify(
            owner_id,
            "Application Deleted",
            f"Your application #{number} has been deleted by an administrator.",
            type_="warning",
        )
    db.session.commit()
    return jsonify({"message": "Application deleted successfully."})


@applications_bp.route("/<int:application_id>/submit", methods=["PUT"])
@jwt_required()
def submit_application(application_id: int):
    user = require_user()
    app = load_application(application_id)
    warnings = lifecycle.submit(app, user)
    db.session.commit()
    return jsonify(
        {
            "message": "Application submitted successfully.",
            "application": _serialize(app, user),
            "warnings": warnings,
        }
    )


@applications_bp.route("/<int:application_id>/review", methods=["PUT"])
@jwt_required()
def review_application(application_id: int):
    """Approve or reject a submitted application."""

    user = require_user()
    app = load_application(application_id)
    data = parse_json_request(request)
    decision = data.get("decision") or data.get("status")
    comments = data.get("comments", data.get("approvalComments"))
    warnings = lifecycle.review(app, user, decision, comments)
    db.session.commit()
    return jsonify(
        {
            "message": f"Application {decision} successfully.",
            "application": _serialize(app, user),
            "warnings": warnings,
        }
    )


@applications_bp.route("/<int:application_id>/history", methods=["GET"])
@jwt_required()
def application_history(application_id: int):
    user = require_user()
    app = _viewable(application_id, user)
    entries = lifecycle.history_for(app.id)
    return jsonify(
        {
            "applicationId": app.id,
            "history": [entry.to_dict() for entry in entries],
            "count": len(entries),
        }
    )
