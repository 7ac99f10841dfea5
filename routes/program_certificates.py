"""Certificate requirements configured per program."""

from __future__ import annotations

from http import HTTPStatus

from flask import Blueprint, jsonify, request
from flask_jwt_extended import jwt_required
from werkzeug.exceptions import BadRequest, Conflict, NotFound

from models import db
from models.certificate_type import CertificateType
from models.program import Program
from models.program_certificate_requirement import ProgramCertificateRequirement
from utils.auth import require_admin
from utils.request_validation import parse_json_request, require_int

program_certificates_bp = Blueprint("program_certificates", __name__)


def _get_program_or_404(program_id: int) -> Program:
    program = db.session.get(Program, program_id)
    if program is None:
        raise NotFound("Program not found.")
    return program


def _get_requirement(program: Program, requirement_id: int) -> ProgramCertificateRequirement:
    requirement = db.session.get(ProgramCertificateRequirement, requirement_id)
    if requirement is None:
        raise NotFound("Certificate requirement not found.")
    if requirement.program_id != program.id:
        raise BadRequest("Certificate requirement does not belong to this program.")
    return requirement


def _ordered(program: Program):
    return program.certificate_requirements.order_by(
        ProgramCertificateRequirement.display_order.asc(),
        ProgramCertificateRequirement.id.asc(),
    )


@program_certificates_bp.route("", methods=["GET"])
def list_requirements(program_id: int):
    program = _get_program_or_404(program_id)
    requirements = _ordered(program).all()
    return jsonify(
        {
            "programId": program.id,
            "requirements": [item.to_dict() for item in requirements],
            "count": len(requirements),
        }
    )


@program_certificates_bp.route("", methods=["POST"])
@jwt_required()
def add_requirement(program_id: int):
    require_admin()
    program = _get_program_or_404(program_id)
    payload = parse_json_request(request, required_keys=["certificateTypeId"])

    certificate_type_id = require_int(payload["certificateTypeId"], "certificateTypeId")
    certificate_type = db.session.get(CertificateType, certificate_type_id)
    if certificate_type is None:
        raise NotFound("Certificate type not found.")
    if program.certificate_requirements.filter_by(
        certificate_type_id=certificate_type_id
    ).first():
        raise Conflict("This certificate type is already configured for the program.")

    display_order = payload.get("displayOrder")
    if display_order is None:
        display_order = program.certificate_requirements.count()
    requirement = ProgramCertificateRequirement(
        program_id=program.id,
        certificate_type_id=certificate_type.id,
        is_required=bool(payload.get("isRequired", certificate_type.is_required)),
        special_instructions=payload.get("specialInstructions"),
        display_order=require_int(display_order, "displayOrder"),
        is_active=bool(payload.get("isActive", True)),
    )
    db.session.add(requirement)
    db.session.commit()
    return (
        jsonify(
            {
                "message": "Certificate requirement added successfully.",
                "requirement": requirement.to_dict(),
            }
        ),
        HTTPStatus.CREATED,
    )


@program_certificates_bp.route("/available", methods=["GET"])
@jwt_required()
def available_certificate_types(program_id: int):
    """Active certificate types not yet configured for the program."""

    require_admin()
    program = _get_program_or_404(program_id)
    configured = {item.certificate_type_id for item in program.certificate_requirements}
    types = (
        CertificateType.query.filter(CertificateType.is_active.is_(True))
        .order_by(CertificateType.display_order.asc(), CertificateType.name.asc())
        .all()
    )
    return jsonify(
        {
            "programId": program.id,
            "certificateTypes": [
                item.to_dict() for item in types if item.id not in configured
            ],
        }
    )


@program_certificates_bp.route("/reorder", methods=["PUT"])
@jwt_required()
def reorder_requirements(program_id: int):
    """Apply ``[{id, displayOrder}]`` to requirements of this program."""

    require_admin()
    program = _get_program_or_404(program_id)
    payload = parse_json_request(request, required_keys=["requirements"])
    items = payload["requirements"]
    if not isinstance(items, list):
        raise BadRequest("requirements must be a list.")

    for item in items:
        if not isinstance(item, dict):
            raise BadRequest("Each requirement must be an object with id and displayOrder.")
        requirement = _get_requirement(program, require_int(item.get("id"), "id"))
        requirement.display_order = require_int(item.get("displayOrder"), "displayOrder")

    db.session.commit()
    return jsonify(
        {
            "message": "Certificate requirements reordered successfully.",
            "requirements": [item.to_dict() for item in _ordered(program).all()],
        }
    )


@program_certificates_bp.route("/<int:requirement_id>", methods=["PUT"])
@jwt_required()
def update_requirement(program_id: int, requirement_id: int):
    require_admin()
    program = _get_program_or_404(program_id)
    requirement = _get_requirement(program, requirement_id)
    payload = parse_json_request(request)

    if "isRequired" in payload:
        requirement.is_required = bool(payload["isRequired"])
    if "isActive" in payload:
        requirement.is_active = bool(payload["isActive"])
    if "specialInstructions" in payload:
        requirement.special_instructions = payload.get("specialInstructions")
    if "displayOrder" in payload:
        requirement.display_order = require_int(payload["displayOrder"], "displayOrder")

    db.session.commit()
    return jsonify(
        {
            "message": "Certificate requirement updated successfully.",
            "requirement": requirement.to_dict(),
        }
    )


@program_certificates_bp.route("/<int:requirement_id>", methods=["DELETE"])
@jwt_required()
def delete_requirement(program_id: int, requirement_id: int):
    require_admin()
    program = _get_program_or_404(program_id)
    requirement = _get_requirement(program, requirement_id)
    db.session.delete(requirement)
    db.session.commit()
    return jsonify({"message": "Certificate requirement removed successfully."})
