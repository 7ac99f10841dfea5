"""Program catalog blueprint."""

from __future__ import annotations

from http import HTTPStatus
from typing import Any

from flask import Blueprint, jsonify, request
from flask_jwt_extended import jwt_required
from werkzeug.exceptions import BadRequest, Conflict, NotFound

from models import db
from models.program import PROGRAM_TYPES, Program
from models.user import STAFF_ROLES, User
from services.applications import parse_date
from utils.auth import require_admin
from utils.pagination import parse_bool_arg
from utils.request_validation import parse_json_request, require_int

programs_bp = Blueprint("programs", __name__)

REQUIRED_FIELDS = ("programCode", "programName", "programType", "department", "durationYears")

FIELD_MAP = {
    "programCode": "program_code",
    "programName": "program_name",
    "programType": "program_type",
    "department": "department",
    "durationYears": "duration_years",
    "totalSeats": "total_seats",
    "applicationStartDate": "application_start_date",
    "applicationEndDate": "application_end_date",
    "programAdminId": "program_admin_id",
    "eligibilityCriteria": "eligibility_criteria",
    "feesStructure": "fees_structure",
    "description": "description",
    "isActive": "is_active",
    "displayOrder": "display_order",
}


def _get_program_or_404(program_id: int) -> Program:
    program = db.session.get(Program, program_id)
    if program is None:
        raise NotFound("Program not found.")
    return program


def _convert(key: str, value: Any, errors: list[str]) -> Any:
    if key in ("durationYears", "totalSeats", "displayOrder"):
        try:
            number = int(value)
        except (TypeError, ValueError):
            errors.append(f"{key} must be an integer")
            return None
        if number < 0 or (key == "durationYears" and number < 1):
            errors.append(f"{key} must be positive")
        return number
    if key in ("applicationStartDate", "applicationEndDate"):
        try:
            return parse_date(value)
        except ValueError:
            errors.append(f"{key} must be ISO 8601 format")
            return None
    if key == "programType":
        if value not in PROGRAM_TYPES:
            errors.append("programType must be one of {}".format(", ".join(PROGRAM_TYPES)))
        return value
    if key == "programCode":
        return str(value or "").strip().upper()
    if key == "isActive":
        return bool(value)
    if key == "programAdminId":
        if value in (None, ""):
            return None
        admin = db.session.get(User, require_int(value, "programAdminId"))
        if admin is None or admin.role not in STAFF_ROLES:
            errors.append("programAdminId must reference a staff user")
            return None
        return admin.id
    if isinstance(value, str):
        return value.strip()
    return value


def _apply_payload(program: Program, data: dict) -> None:
    errors: list[str] = []
    for key, attr in FIELD_MAP.items():
        if key in data:
            setattr(program, attr, _convert(key, data[key], errors))
    if (
        program.application_start_date
        and program.application_end_date
        and program.application_end_date < program.application_start_date
    ):
        errors.append("applicationEndDate must not be before applicationStartDate")
    if errors:
        raise BadRequest("; ".join(errors))


def _ensure_unique_code(program: Program) -> None:
    with db.session.no_autoflush:
        clash = Program.query.filter(
            Program.program_code == program.program_code, Program.id != program.id
        ).first()
    if clash is not None:
        raise Conflict("A program with that code already exists.")


@programs_bp.route("", methods=["GET"])
def list_programs():
    query = Program.query
    program_type = request.args.get("programType")
    if program_type:
        if program_type not in PROGRAM_TYPES:
            raise BadRequest("Invalid programType.")
        query = query.filter(Program.program_type == program_type)
    is_active = parse_bool_arg("isActive")
    if is_active is not None:
        query = query.filter(Program.is_active.is_(is_active))

    programs = query.order_by(Program.display_order.asc(), Program.program_name.asc()).all()
    return jsonify({"programs": [program.to_dict() for program in programs], "count": len(programs)})


@programs_bp.route("/<int:program_id>", methods=["GET"])
def get_program(program_id: int):
    return jsonify({"program": _get_program_or_404(program_id).to_dict()})


@programs_bp.route("", methods=["POST"])
@jwt_required()
def create_program():
    require_admin()
    data = parse_json_request(request, required_keys=REQUIRED_FIELDS)

    program = Program(is_active=True, total_seats=0, display_order=0)
    _apply_payload(program, data)
    _ensure_unique_code(program)

    db.session.add(program)
    db.session.commit()
    return (
        jsonify({"message": "Program created successfully.", "program": program.to_dict()}),
        HTTPStatus.CREATED,
    )


@programs_bp.route("/<int:program_id>", methods=["PUT"])
@jwt_required()
def update_program(program_id: int):
    require_admin()
    program = _get_program_or_404(program_id)
    data = parse_json_request(request)

    for key in REQUIRED_FIELDS:
        if key in data and data[key] in (None, ""):
            raise BadRequest(f"{key} must not be empty.")
    _apply_payload(program, data)
    _ensure_unique_code(program)

    db.session.commit()
    return jsonify({"message": "Program updated successfully.", "program": program.to_dict()})


@programs_bp.route("/<int:program_id>", methods=["DELETE"])
@jwt_required()
def delete_program(program_id: int):
    """Delete a program that has no applications, with its requirements."""

    require_admin()
    program = _get_program_or_404(program_id)
    if program.applications.count():
        raise Conflict("Cannot delete a program that has applications.")

    User.query.filter_by(program_id=program.id).update(
        {"program_id": None}, synchronize_session="fetch"
    )
    db.session.delete(program)
    db.session.commit()
    return jsonify({"message": "Program deleted successfully."})
