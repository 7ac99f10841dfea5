"""Documents attached to an application, one per required certificate type."""

from __future__ import annotations

from datetime import datetime
from http import HTTPStatus

from flask import Blueprint, jsonify, request
from flask_jwt_extended import jwt_required

from models import db
from models.application import Application
from models.application_document import ApplicationDocument
from models.file_upload import FileUpload
from models.program_certificate_requirement import ProgramCertificateRequirement
from models.user import User
from services import permissions
from services.applications import load_application
from services.documents import summarize_verification, validate_file_for_certificate
from services.errors import (
    DuplicateResource,
    PermissionDenied,
    ResourceNotFound,
    ValidationFailed,
)
from services.notifications import notify
from utils.auth import require_user
from utils.request_validation import parse_json_request, parse_optional_json, require_int

documents_bp = Blueprint("application_documents", __name__)


def _viewable(application_id: int, user: User) -> Application:
    app = load_application(application_id)
    if not permissions.can_view(app, user):
        raise PermissionDenied("You do not have permission to view this application.")
    return app


def _manageable(application_id: int, user: User) -> Application:
    app = load_application(application_id)
    if not permissions.can_manage_documents(app, user):
        raise PermissionDenied("Not authorized to manage documents for this application.")
    return app


def _get_document(app: Application, document_id: int) -> ApplicationDocument:
    document = db.session.get(ApplicationDocument, document_id)
    if document is None or document.application_id != app.id:
        raise ResourceNotFound("Document not found.")
    return document


def _active_requirement(app: Application, certificate_type_id: int):
    return ProgramCertificateRequirement.query.filter_by(
        program_id=app.program_id,
        certificate_type_id=certificate_type_id,
        is_active=True,
    ).first()


def _resolve_file(payload: dict, app: Application, user: User) -> FileUpload:
    if payload.get("fileUuid"):
        file_upload = FileUpload.query.filter_by(uuid=payload["fileUuid"]).first()
    elif payload.get("fileUploadId") not in (None, ""):
        file_upload = db.session.get(
            FileUpload, require_int(payload["fileUploadId"], "fileUploadId")
        )
    else:
        raise ValidationFailed("fileUploadId is required.")
    if file_upload is None:
        raise ResourceNotFound("File not found.")
    if not user.is_staff and file_upload.uploaded_by != app.user_id:
        raise PermissionDenied("You can only attach files you uploaded.")
    return file_upload


def _program_requirements(app: Application) -> list[ProgramCertificateRequirement]:
    return (
        ProgramCertificateRequirement.query.filter_by(program_id=app.program_id)
        .order_by(
            ProgramCertificateRequirement.display_order.asc(),
            ProgramCertificateRequirement.id.asc(),
        )
        .all()
    )


@documents_bp.route("", methods=["GET"])
@jwt_required()
def list_documents(application_id: int):
    user = require_user()
    app = _viewable(application_id, user)
    documents = app.documents.order_by(ApplicationDocument.date_created.asc()).all()
    return jsonify(
        {
            "applicationId": app.id,
            "documents": [document.to_dict() for document in documents],
            "count": len(documents),
        }
    )


@documents_bp.route("", methods=["POST"])
@jwt_required()
def add_document(application_id: int):
    """Attach an uploaded file as the document for one certificate type."""

    user = require_user()
    app = _manageable(application_id, user)
    payload = parse_json_request(request, required_keys=["certificateTypeId"])

    certificate_type_id = require_int(payload["certificateTypeId"], "certificateTypeId")
    requirement = _active_requirement(app, certificate_type_id)
    if requirement is None:
        raise ValidationFailed(
            "This certificate type is not required for the application's program."
        )
    if app.documents.filter_by(certificate_type_id=certificate_type_id).first():
        raise DuplicateResource(
            "A document for this certificate type has already been submitted."
        )

    file_upload = _resolve_file(payload, app, user)
    validate_file_for_certificate(file_upload, requirement.certificate_type)

    document = ApplicationDocument(
        application_id=app.id,
        certificate_type_id=certificate_type_id,
        file_upload_id=file_upload.id,
        document_name=payload.get("documentName")
        or requirement.certificate_type.name,
        remarks=payload.get("remarks"),
    )
    db.session.add(document)
    db.session.commit()
    return (
        jsonify({"message": "Document added successfully.", "document": document.to_dict()}),
        HTTPStatus.CREATED,
    )


@documents_bp.route("/verification-status", methods=["GET"])
@jwt_required()
def verification_status(application_id: int):
    """Required versus submitted versus verified documents for an application."""

    user = require_user()
    app = _viewable(application_id, user)
    summary = summarize_verification(_program_requirements(app), app.documents.all())
    summary["verifiedDocuments"] = [doc.to_dict() for doc in summary["verifiedDocuments"]]
    summary["unverifiedDocuments"] = [
        doc.to_dict() for doc in summary["unverifiedDocuments"]
    ]
    return jsonify({"applicationId": app.id, **summary})


@documents_bp.route("/available-types", methods=["GET"])
@jwt_required()
def available_types(application_id: int):
    user = require_user()
    app = _viewable(application_id, user)
    submitted = {doc.certificate_type_id: doc for doc in app.documents.all()}

    types = []
    for requirement in _program_requirements(app):
        if not requirement.is_active:
            continue
        document = submitted.get(requirement.certificate_type_id)
        entry = requirement.to_dict()
        entry["isSubmitted"] = document is not None
        entry["documentId"] = document.id if document else None
        entry["isVerified"] = bool(document and document.is_verified)
        types.append(entry)
    return jsonify({"applicationId": app.id, "availableTypes": types})


@documents_bp.route("/<int:document_id>", methods=["PUT"])
@jwt_required()
def update_document(application_id: int, document_id: int):
    """Students may change name, remarks or file; staff may change anything."""

    user = require_user()
    app = _manageable(application_id, user)
    document = _get_document(app, document_id)
    payload = parse_json_request(request)
    is_staff = permissions.can_review(app, user)

    if "documentName" in payload:
        document.document_name = payload.get("documentName")
    if "remarks" in payload:
        document.remarks = payload.get("remarks")
    if "fileUploadId" in payload or "fileUuid" in payload:
        file_upload = _resolve_file(payload, app, user)
        if file_upload.id != document.file_upload_id:
            validate_file_for_certificate(file_upload, document.certificate_type)
            document.file_upload_id = file_upload.id
            document.reset_verification()

    if is_staff:
        if "isVerified" in payload:
            _set_verification(
                document, user, bool(payload["isVerified"]), payload.get("verificationRemarks")
            )
        elif "verificationRemarks" in payload:
            document.verification_remarks = payload.get("verificationRemarks")

    document.date_updated = datetime.utcnow()
    db.session.commit()
    return jsonify({"message": "Document updated successfully.", "document": document.to_dict()})


def _set_verification(
    document: ApplicationDocument, reviewer: User, verified: bool, remarks
) -> None:
    if verified:
        document.is_verified = True
        document.verified_by = reviewer.id
        document.verified_at = datetime.utcnow()
        document.verification_remarks = remarks
    else:
        document.reset_verification()
        document.verification_remarks = remarks


@documents_bp.route("/<int:document_id>/verify", methods=["PUT"])
@jwt_required()
def verify_document(application_id: int, document_id: int):
    user = require_user()
    app = load_application(application_id)
    if not permissions.can_review(app, user):
        raise PermissionDenied("Not authorized to verify documents for this application.")
    document = _get_document(app, document_id)
    payload = parse_optional_json(request)

    verified = bool(payload.get("isVerified", True))
    _set_verification(document, user, verified, payload.get("verificationRemarks"))
    name = document.document_name or "A document"
    notify(
        app.user_id,
        "Document Verified" if verified else "Document Needs Attention",
        f"{name} on application #{app.application_number} was "
        + ("verified." if verified else "marked as unverified."),
        type_="success" if verified else "warning",
        action_url=f"/applications/{app.id}",
    )
    db.session.commit()
    return jsonify({"message": "Document verification updated.", "document": document.to_dict()})


@documents_bp.route("/<int:document_id>", methods=["DELETE"])
@jwt_required()
def delete_document(application_id: int, document_id: int):
    user = require_user()
    app = _manageable(application_id, user)
    document = _get_document(app, document_id)
    if document.is_verified:
        raise ValidationFailed("Cannot delete a verified document.")
    db.session.delete(document)
    db.session.commit()
    return jsonify({"message": "Document deleted successfully."})
