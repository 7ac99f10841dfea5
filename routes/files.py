"""File upload blueprint backed by local storage."""

from __future__ import annotations

import logging
import os
import uuid
from datetime import datetime
from pathlib import Path
from typing import Iterable

from flask import Blueprint, current_app, jsonify, request, send_file
from flask_jwt_extended import jwt_required
from werkzeug.datastructures import FileStorage
from werkzeug.exceptions import BadRequest, Forbidden, NotFound

from models import db
from models.application_document import ApplicationDocument
from models.file_upload import FileUpload
from models.user import User
from services import permissions
from storage.local_storage import LocalStorage
from utils.auth import require_staff, require_user
from utils.pagination import page_args, page_meta, parse_bool_arg
from utils.request_validation import parse_optional_json

logger = logging.getLogger(__name__)

files_bp = Blueprint("files", __name__)

MAX_UPLOAD_SIZE_DEFAULT = 10 * 1024 * 1024  # 10 MB
ALLOWED_EXTENSIONS_DEFAULT = {"jpeg", "jpg", "png", "pdf"}


def _storage() -> LocalStorage:
    return LocalStorage(current_app.config["UPLOAD_DIR"])


def _allowed_extensions() -> set[str]:
    configured = current_app.config.get("ALLOWED_UPLOAD_TYPES")
    if not configured:
        return set(ALLOWED_EXTENSIONS_DEFAULT)
    values: Iterable[str] = (
        configured.split(",") if isinstance(configured, str) else configured
    )
    normalized = {item.strip().lower().lstrip(".") for item in values if item}
    normalized.discard("")
    if "jpeg" in normalized or "jpg" in normalized:
        normalized.update({"jpg", "jpeg"})
    return normalized or set(ALLOWED_EXTENSIONS_DEFAULT)


def _stream_size(file: FileStorage) -> int:
    file.stream.seek(0, os.SEEK_END)
    size = file.stream.tell()
    file.stream.seek(0)
    return size


def _validate_upload(file: FileStorage) -> int:
    if not file.filename or not file.filename.strip():
        raise BadRequest("A file is required.")
    if "." not in file.filename:
        raise BadRequest("File must have an extension.")

    extension = file.filename.rsplit(".", 1)[-1].lower()
    allowed = _allowed_extensions()
    if extension not in allowed:
        raise BadRequest(
            "File type not allowed. Allowed types: {}.".format(", ".join(sorted(allowed)))
        )

    max_size = int(current_app.config.get("MAX_UPLOAD_SIZE", MAX_UPLOAD_SIZE_DEFAULT))
    size = _stream_size(file)
    if size == 0:
        raise BadRequest("Uploaded file is empty.")
    if size > max_size:
        raise BadRequest(
            "File exceeds the maximum upload size of {}MB.".format(max_size // (1024 * 1024))
        )
    return size


def _can_access(file_upload: FileUpload, user: User) -> bool:
    return user.is_staff or file_upload.uploaded_by == user.id


def _get_file_or_404(file_uuid: str, user: User) -> FileUpload:
    file_upload = FileUpload.query.filter_by(uuid=file_uuid).first()
    if file_upload is None:
        raise NotFound("File not found.")
    if not _can_access(file_upload, user):
        raise Forbidden("You do not have access to this file.")
    return file_upload


@files_bp.route("", methods=["POST"])
@jwt_required()
def upload_file():
    """Store a multipart ``file`` and record its metadata."""

    user = require_user()
    file = request.files.get("file")
    if not isinstance(file, FileStorage):
        raise BadRequest("A file is required.")
    size = _validate_upload(file)

    file_uuid = str(uuid.uuid4())
    stored_name = f"{uuid.UUID(file_uuid).hex}{Path(file.filename).suffix.lower()}"
    stored_path = _storage().save(file, stored_name)

    file_upload = FileUpload(
        uuid=file_uuid,
        filename=stored_name,
        original_name=file.filename,
        file_path=stored_path,
        file_size=size,
        mime_type=file.mimetype or "application/octet-stream",
        description=(request.form.get("description") or "").strip() or None,
        uploaded_by=user.id,
    )
    db.session.add(file_upload)
    db.session.commit()
    logger.info("User %s uploaded file %s (%d bytes)", user.id, file_uuid, size)

    return jsonify({"message": "File uploaded successfully.", "file": file_upload.to_dict()}), 201


@files_bp.route("", methods=["GET"])
@jwt_required()
def list_files():
    user = require_user()
    page, limit = page_args()

    query = FileUpload.query
    if not user.is_staff:
        query = query.filter(FileUpload.uploaded_by == user.id)
    is_verified = parse_bool_arg("isVerified")
    if is_verified is not None:
        query = query.filter(FileUpload.is_verified.is_(is_verified))

    pagination = query.order_by(
        FileUpload.upload_date.desc(), FileUpload.id.desc()
    ).paginate(page=page, per_page=limit, error_out=False)
    return jsonify(
        {"docs": [item.to_dict() for item in pagination.items], **page_meta(pagination)}
    )


@files_bp.route("/<string:file_uuid>", methods=["GET"])
@jwt_required()
def get_file(file_uuid: str):
    user = require_user()
    return jsonify({"file": _get_file_or_404(file_uuid, user).to_dict()})


@files_bp.route("/<string:file_uuid>/download", methods=["GET"])
@jwt_required()
def download_file(file_uuid: str):
    user = require_user()
    file_upload = _get_file_or_404(file_uuid, user)

    storage = _storage()
    if not storage.exists(file_upload.file_path):
        raise NotFound("Stored file could not be found.")
    return send_file(
        storage.absolute_path(file_upload.file_path),
        mimetype=file_upload.mime_type or "application/octet-stream",
        as_attachment=True,
        download_name=file_upload.original_name,
    )


@files_bp.route("/<string:file_uuid>/verify", methods=["PUT"])
@jwt_required()
def verify_file(file_uuid: str):
    reviewer = require_staff()
    file_upload = _get_file_or_404(file_uuid, reviewer)
    payload = parse_optional_json(request)

    verified = payload.get("isVerified", True)
    file_upload.is_verified = bool(verified)
    file_upload.verified_by = reviewer.id if verified else None
    file_upload.verified_at = datetime.utcnow() if verified else None
    db.session.commit()
    return jsonify({"message": "File verification updated.", "file": file_upload.to_dict()})


@files_bp.route("/<string:file_uuid>", methods=["DELETE"])
@jwt_required()
def delete_file(file_uuid: str):
    """Delete a file unless a linked document is verified or locked to the caller."""

    user = require_user()
    file_upload = _get_file_or_404(file_uuid, user)

    linked = ApplicationDocument.query.filter_by(file_upload_id=file_upload.id).all()
    if any(document.is_verified for document in linked):
        raise BadRequest("Cannot delete a file that is linked to verified documents.")
    for document in linked:
        if not permissions.can_manage_documents(document.application, user):
            raise Forbidden(
                "This file is attached to an application whose documents you cannot change."
            )
    for document in linked:
        db.session.delete(document)

    stored_path = file_upload.file_path
    db.session.delete(file_upload)
    db.session.commit()
    _storage().delete(stored_path)
    return jsonify({"message": "File deleted successfully."})
