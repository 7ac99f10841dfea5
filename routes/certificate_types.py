"""Certificate type catalog blueprint."""

from __future__ import annotations

from http import HTTPStatus

from flask import Blueprint, jsonify, request
from flask_jwt_extended import jwt_required
from sqlalchemy import func
from werkzeug.exceptions import BadRequest, Conflict, NotFound

from models import db
from models.application_document import ApplicationDocument
from models.certificate_type import CertificateType
from utils.auth import require_admin
from utils.pagination import parse_bool_arg
from utils.request_validation import parse_json_request, require_int

certificate_types_bp = Blueprint("certificate_types", __name__)


def _get_type_or_404(type_id: int) -> CertificateType:
    certificate_type = db.session.get(CertificateType, type_id)
    if certificate_type is None:
        raise NotFound("Certificate type not found.")
    return certificate_type


def _ensure_unique_name(name: str, exclude_id: int | None = None) -> None:
    query = CertificateType.query.filter(func.lower(CertificateType.name) == name.lower())
    if exclude_id is not None:
        query = query.filter(CertificateType.id != exclude_id)
    if query.first() is not None:
        raise Conflict("A certificate type with that name already exists.")


def _apply_payload(certificate_type: CertificateType, data: dict) -> None:
    if "name" in data:
        name = (data.get("name") or "").strip()
        if not name:
            raise BadRequest("name must not be empty.")
        _ensure_unique_name(name, certificate_type.id)
        certificate_type.name = name
    if "description" in data:
        certificate_type.description = data.get("description")
    if "fileTypesAllowed" in data:
        raw = data.get("fileTypesAllowed")
        if isinstance(raw, list):
            raw = ",".join(str(item) for item in raw)
        extensions = [item.strip().lower().lstrip(".") for item in str(raw or "").split(",")]
        extensions = [item for item in extensions if item]
        if not extensions:
            raise BadRequest("fileTypesAllowed must list at least one extension.")
        certificate_type.file_types_allowed = ",".join(extensions)
    if "maxFileSizeMb" in data:
        try:
            size = float(data["maxFileSizeMb"])
        except (TypeError, ValueError):
            raise BadRequest("maxFileSizeMb must be numeric.") from None
        if size <= 0:
            raise BadRequest("maxFileSizeMb must be positive.")
        certificate_type.max_file_size_mb = size
    if "isRequired" in data:
        certificate_type.is_required = bool(data["isRequired"])
    if "isActive" in data:
        certificate_type.is_active = bool(data["isActive"])
    if "displayOrder" in data:
        certificate_type.display_order = require_int(data["displayOrder"], "displayOrder")


@certificate_types_bp.route("", methods=["GET"])
def list_certificate_types():
    """Active types by default; pass ``isActive=false`` for retired ones."""

    is_active = parse_bool_arg("isActive")
    if is_active is None:
        is_active = True
    types = (
        CertificateType.query.filter(CertificateType.is_active.is_(is_active))
        .order_by(CertificateType.display_order.asc(), CertificateType.name.asc())
        .all()
    )
    return jsonify({"certificateTypes": [item.to_dict() for item in types], "count": len(types)})


@certificate_types_bp.route("/<int:type_id>", methods=["GET"])
def get_certificate_type(type_id: int):
    return jsonify({"certificateType": _get_type_or_404(type_id).to_dict()})


@certificate_types_bp.route("", methods=["POST"])
@jwt_required()
def create_certificate_type():
    require_admin()
    data = parse_json_request(request, required_keys=["name"])
    certificate_type = CertificateType(is_active=True, is_required=True, display_order=0)
    _apply_payload(certificate_type, data)
    db.session.add(certificate_type)
    db.session.commit()
    return (
        jsonify(
            {
                "message": "Certificate type created successfully.",
                "certificateType": certificate_type.to_dict(),
            }
        ),
        HTTPStatus.CREATED,
    )


@certificate_types_bp.route("/<int:type_id>", methods=["PUT"])
@jwt_required()
def update_certificate_type(type_id: int):
    require_admin()
    certificate_type = _get_type_or_404(type_id)
    _apply_payload(certificate_type, parse_json_request(request))
    db.session.commit()
    return jsonify(
        {
            "message": "Certificate type updated successfully.",
            "certificateType": certificate_type.to_dict(),
        }
    )


@certificate_types_bp.route("/<int:type_id>", methods=["DELETE"])
@jwt_required()
def delete_certificate_type(type_id: int):
    require_admin()
    certificate_type = _get_type_or_404(type_id)
    in_use = ApplicationDocument.query.filter_by(certificate_type_id=certificate_type.id).first()
    if in_use is not None:
        raise Conflict("Cannot delete a certificate type that has submitted documents.")
    db.session.delete(certificate_type)
    db.session.commit()
    return jsonify({"message": "Certificate type deleted successfully."})
