"""Bulk update and delete across lists of application ids.

Each id is processed in its own savepoint. A failure on one id rolls back
only that id's changes and is reported back to the caller; ids that
succeeded stay applied. There is no all-or-nothing guarantee.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Iterable

from sqlalchemy.exc import SQLAlchemyError

from models import db
from models.application import APPLICATION_STATUSES, Application
from models.user import User

from . import lifecycle, permissions
from .errors import PermissionDenied, PortalError, ResourceNotFound, ValidationFailed
from .notifications import notify

logger = logging.getLogger(__name__)

BULK_UPDATE_FIELDS = {
    "status": "status",
    "academicYear": "academic_year",
    "reviewedBy": "reviewed_by",
}


@dataclass
class BulkResult:
    """Outcome of a bulk operation, split into succeeded and failed ids."""

    succeeded: list[Any] = field(default_factory=list)
    failed: list[dict] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    details: list[dict] = field(default_factory=list)
    matched: int = 0

    def fail(self, app_id: Any, message: str) -> None:
        logger.warning("Bulk operation skipped application %s: %s", app_id, message)
        self.failed.append({"id": app_id, "message": message})


def normalize_ids(raw_ids: Any) -> list[int]:
    """Validate and de-duplicate the requested ids, preserving order."""

    if not isinstance(raw_ids, list) or not raw_ids:
        raise ValidationFailed("Application IDs array is required.")
    ids: list[int] = []
    for raw in raw_ids:
        try:
            value = int(raw)
        except (TypeError, ValueError):
            raise ValidationFailed(f"Invalid application id: {raw!r}.") from None
        if value not in ids:
            ids.append(value)
    return ids


def filter_updates(updates: Any) -> dict:
    """Keep only the fields that may be changed in bulk."""

    if not isinstance(updates, dict):
        raise ValidationFailed("Updates object is required.")
    filtered = {key: updates[key] for key in BULK_UPDATE_FIELDS if updates.get(key) is not None}
    if not filtered:
        raise ValidationFailed("No valid update fields provided.")
    status = filtered.get("status")
    if status is not None and status not in APPLICATION_STATUSES:
        raise ValidationFailed(f"Unknown application status: {status}.")
    return filtered


def _load(ids: Iterable[int]) -> dict[int, Application]:
    return {app.id: app for app in Application.query.filter(Application.id.in_(list(ids))).all()}


def _update_one(app: Application, updates: dict, actor: User) -> list[str]:
    if not permissions.can_admin_update(app, actor):
        raise PermissionDenied("Not authorized to update this application.")

    warnings: list[str] = []
    for key, attr in BULK_UPDATE_FIELDS.items():
        if key == "status" or key not in updates:
            continue
        value = updates[key]
        if attr == "reviewed_by":
            try:
                value = int(value)
            except (TypeError, ValueError):
                raise ValidationFailed("reviewedBy must be a user id.") from None
            if db.session.get(User, value) is None:
                raise ResourceNotFound("Reviewer not found.")
        setattr(app, attr, value)

    status = updates.get("status")
    if status is not None and status != app.status:
        warnings.extend(
            lifecycle.change_status(
                app, actor, status, f"Bulk status update to {status}"
            )
        )
    app.date_updated = datetime.utcnow()
    return warnings


def bulk_update(raw_ids: Any, raw_updates: Any, actor: User) -> BulkResult:
    """Apply one partial update to many applications."""

    if not permissions.can_bulk_edit(actor):
        raise PermissionDenied("Only administrators or program administrators can bulk edit.")
    ids = normalize_ids(raw_ids)
    updates = filter_updates(raw_updates)

    result = BulkResult()
    applications = _load(ids)
    for app_id in ids:
        app = applications.get(app_id)
        if app is None:
            result.fail(app_id, "Application not found.")
            continue
        result.matched += 1
        try:
            with db.session.begin_nested():
                result.warnings.extend(_update_one(app, updates, actor))
        except PortalError as error:
            result.fail(app_id, error.message)
            continue
        except SQLAlchemyError:
            logger.exception("Bulk update failed for application %s", app_id)
            result.fail(app_id, "Database error while updating this application.")
            continue
        result.succeeded.append(app_id)
    return result


def _delete_one(app: Application, actor: User) -> dict:
    info = {
        "id": app.id,
        "applicationNumber": app.application_number,
        "studentName": app.student_name,
        "status": app.status,
        "userId": app.user_id,
    }
    db.session.delete(app)
    db.session.flush()
    if app.user_id != actor.id:
        notify(
            app.user_id,
            "Application Deleted",
            f"Your application #{app.application_number} has been deleted by an administrator.",
            type_="warning",
        )
    return info


def bulk_delete(raw_ids: Any, actor: User, confirm: Any) -> BulkResult:
    """Delete many applications, each with its documents."""

    if not permissions.can_bulk_delete(actor):
        raise PermissionDenied("Only administrators can perform bulk delete operations.")
    ids = normalize_ids(raw_ids)
    if not confirm:
        raise ValidationFailed("Delete confirmation is required.")

    applications = _load(ids)
    if not applications:
        raise ResourceNotFound("No applications found with the provided IDs.")

    result = BulkResult()
    for app_id in ids:
        app = applications.get(app_id)
        if app is None:
            result.fail(app_id, "Application not found.")
            continue
        try:
            with db.session.begin_nested():
                info = _delete_one(app, actor)
        except SQLAlchemyError:
            logger.exception("Bulk delete failed for application %s", app_id)
            result.fail(app_id, "Database error while deleting this application.")
            continue
        result.succeeded.append(app_id)
        result.details.append(info)
    return result
