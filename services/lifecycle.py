"""Application status lifecycle: transition guards and audit logging."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Optional

from sqlalchemy.exc import SQLAlchemyError

from models import db
from models.application import APPLICATION_STATUSES, Application
from models.application_status_history import ApplicationStatusHistory
from models.user import User

from . import permissions
from .errors import InvalidTransition, PermissionDenied, ValidationFailed
from .notifications import notify, notify_many, program_admin_ids

logger = logging.getLogger(__name__)

TRANSITIONS: dict[str, frozenset[str]] = {
    "draft": frozenset({"submitted", "cancelled", "frozen"}),
    "submitted": frozenset(
        {"under_review", "approved", "rejected", "cancelled", "frozen"}
    ),
    "under_review": frozenset({"approved", "rejected", "cancelled", "frozen"}),
    "rejected": frozenset({"draft"}),
    "frozen": frozenset({"under_review"}),
    "approved": frozenset(),
    "cancelled": frozenset(),
}
REVIEWABLE_STATUSES = frozenset({"submitted", "under_review"})
REVIEW_DECISIONS = frozenset({"approved", "rejected"})
SUBMISSION_REQUIRED_FIELDS = (
    "student_name",
    "father_name",
    "mother_name",
    "date_of_birth",
    "gender",
    "mobile_number",
    "email",
)

_NOTIFICATION_TYPES = {"approved": "success", "rejected": "danger", "frozen": "warning"}


def can_transition(from_status: Optional[str], to_status: str) -> bool:
    if from_status is None:
        return to_status == "draft"
    return to_status in TRANSITIONS.get(from_status, frozenset())


def ensure_transition(from_status: Optional[str], to_status: str) -> None:
    if to_status not in APPLICATION_STATUSES:
        raise ValidationFailed(f"Unknown application status: {to_status}.")
    if from_status == to_status:
        raise InvalidTransition(f"Application is already {to_status}.")
    if not can_transition(from_status, to_status):
        raise InvalidTransition(
            f"Cannot change application status from {from_status} to {to_status}."
        )


def _write_history(
    application_id: int,
    from_status: Optional[str],
    to_status: str,
    changed_by: Optional[int],
    remarks: Optional[str],
) -> ApplicationStatusHistory:
    entry = ApplicationStatusHistory(
        application_id=application_id,
        from_status=from_status,
        to_status=to_status,
        changed_by=changed_by,
        remarks=remarks,
    )
    db.session.add(entry)
    return entry


def record_status_change(
    app: Application,
    from_status: Optional[str],
    to_status: str,
    actor: Optional[User],
    remarks: Optional[str] = None,
) -> bool:
    """Append a history row inside a savepoint.

    Returns False when the row could not be written. The transition itself
    is left in place.
    """

    try:
        with db.session.begin_nested():
            _write_history(
                app.id,
                from_status,
                to_status,
                actor.id if actor is not None else None,
                remarks,
            )
    except SQLAlchemyError:
        logger.exception(
            "Failed to record status history for application %s (%s -> %s)",
            app.id,
            from_status,
            to_status,
        )
        return False
    return True


def _apply(
    app: Application, to_status: str, actor: Optional[User], remarks: Optional[str]
) -> list[str]:
    from_status = app.status
    app.status = to_status
    app.date_updated = datetime.utcnow()
    if not record_status_change(app, from_status, to_status, actor, remarks):
        return [
            f"Status changed to {to_status} but the history entry could not be recorded."
        ]
    return []


def record_creation(app: Application, actor: User) -> list[str]:
    """Log the initial draft state of a freshly flushed application."""

    if not record_status_change(app, None, app.status, actor, "Application created"):
        return ["Application created but the history entry could not be recorded."]
    return []


def submit(app: Application, actor: User) -> list[str]:
    """Move a draft to submitted on behalf of its owning student."""

    if actor.role != "student" or app.user_id != actor.id:
        raise PermissionDenied("Not authorized to submit this application.")
    if app.status != "draft":
        raise InvalidTransition("Only draft applications can be submitted.")

    missing = [field for field in SUBMISSION_REQUIRED_FIELDS if not getattr(app, field)]
    if missing:
        raise ValidationFailed(
            "Missing required fields: {}.".format(", ".join(missing))
        )

    app.submitted_at = datetime.utcnow()
    warnings = _apply(app, "submitted", actor, "Application submitted by student")

    program_name = app.program.program_name if app.program else "the program"
    notify_many(
        program_admin_ids(app.program_id),
        "New Application Submitted",
        f"A new application #{app.application_number} for {program_name} "
        "has been submitted and is pending review.",
        action_url=f"/applications/{app.id}",
    )
    return warnings


def review(
    app: Application,
    actor: User,
    decision: str,
    comments: Optional[str] = None,
) -> list[str]:
    """Approve or reject an application that is awaiting review."""

    if decision not in REVIEW_DECISIONS:
        raise ValidationFailed("Decision must be one of: approved, rejected.")
    if not permissions.can_review(app, actor):
        raise PermissionDenied("Not authorized to review this application.")
    if app.status not in REVIEWABLE_STATUSES:
        raise InvalidTransition(
            "Only submitted applications can be approved or rejected."
        )

    app.reviewed_by = actor.id
    app.reviewed_at = datetime.utcnow()
    if comments is not None:
        app.approval_comments = comments
    warnings = _apply(
        app,
        decision,
        actor,
        comments or f"Application {decision}",
    )
    _notify_student(app, decision)
    return warnings


def change_status(
    app: Application,
    actor: User,
    to_status: str,
    remarks: Optional[str] = None,
) -> list[str]:
    """Staff-driven transition; approve and reject go through ``review``."""

    if to_status in REVIEW_DECISIONS:
        return review(app, actor, to_status, remarks)
    if not permissions.can_admin_update(app, actor):
        raise PermissionDenied("Not authorized to update this application.")

    from_status = app.status
    ensure_transition(from_status, to_status)
    if to_status == "submitted" and app.submitted_at is None:
        app.submitted_at = datetime.utcnow()
    warnings = _apply(
        app,
        to_status,
        actor,
        remarks or f"Status changed from {from_status} to {to_status}",
    )
    _notify_student(app, to_status)
    return warnings


def reopen_for_edit(app: Application, actor: User) -> list[str]:
    """A student editing a rejected application sends it back to draft."""

    if app.status != "rejected":
        return []
    return _apply(app, "draft", actor, "Application reopened for editing")


def _notify_student(app: Application, status: str) -> None:
    notify(
        app.user_id,
        "Application Status Updated",
        f"Your application #{app.application_number} status has been changed "
        f"to {status.upper()}.",
        type_=_NOTIFICATION_TYPES.get(status, "info"),
        action_url=f"/applications/{app.id}",
    )


def history_for(application_id: Any) -> list[ApplicationStatusHistory]:
    return (
        ApplicationStatusHistory.query.filter_by(application_id=application_id)
        .order_by(
            ApplicationStatusHistory.date_created.desc(),
            ApplicationStatusHistory.id.desc(),
        )
        .all()
    )
