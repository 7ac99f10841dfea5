"""Status lifecycle guards and the history trail they write."""

from __future__ import annotations

import pytest
from sqlalchemy.exc import OperationalError

from models import db
from models.application_status_history import ApplicationStatusHistory
from models.notification import Notification
from services import lifecycle
from services.errors import InvalidTransition, PermissionDenied, ValidationFailed


def _history(application):
    return ApplicationStatusHistory.query.filter_by(application_id=application.id).all()


def test_submit_moves_draft_to_submitted_and_logs_once(student, program, make_application):
    application = make_application(student, program)

    warnings = lifecycle.submit(application, student)
    db.session.commit()

    assert warnings == []
    assert application.status == "submitted"
    assert application.submitted_at is not None
    rows = _history(application)
    assert len(rows) == 1
    assert (rows[0].from_status, rows[0].to_status) == ("draft", "submitted")
    assert rows[0].changed_by == student.id


def test_submit_twice_fails_with_specific_error(student, program, make_application):
    application = make_application(student, program)
    lifecycle.submit(application, student)
    db.session.commit()

    with pytest.raises(InvalidTransition, match="Only draft applications can be submitted."):
        lifecycle.submit(application, student)
    assert len(_history(application)) == 1


@pytest.mark.parametrize("status", ["submitted", "under_review", "approved", "rejected", "cancelled", "frozen"])
def test_submit_only_from_draft(student, program, make_application, status):
    application = make_application(student, program, status=status)
    with pytest.raises(InvalidTransition):
        lifecycle.submit(application, student)


def test_submit_by_someone_else_is_denied(student, make_user, program, make_application):
    application = make_application(student, program)
    other = make_user("other@example.com")
    with pytest.raises(PermissionDenied):
        lifecycle.submit(application, other)


def test_submit_requires_personal_fields(student, program, make_application):
    application = make_application(student, program)
    application.mobile_number = ""
    with pytest.raises(ValidationFailed, match="mobile_number"):
        lifecycle.submit(application, student)


def test_review_records_reviewer_and_notifies(student, admin, program, make_application):
    application = make_application(student, program, status="submitted")

    lifecycle.review(application, admin, "approved", "Looks good")
    db.session.commit()

    assert application.status == "approved"
    assert application.reviewed_by == admin.id
    assert application.approval_comments == "Looks good"
    rows = _history(application)
    assert [(row.from_status, row.to_status) for row in rows] == [("submitted", "approved")]
    assert Notification.query.filter_by(user_id=student.id, type="success").count() == 1


def test_review_from_draft_is_rejected(student, admin, program, make_application):
    application = make_application(student, program)
    with pytest.raises(
        InvalidTransition, match="Only submitted applications can be approved or rejected."
    ):
        lifecycle.review(application, admin, "approved")


def test_review_by_other_program_admin_is_denied(student, program, make_program, make_user, make_application):
    other_program = make_program("BBA")
    outsider = make_user("outsider@example.com", role="program_admin", program=other_program)
    application = make_application(student, program, status="submitted")
    with pytest.raises(PermissionDenied):
        lifecycle.review(application, outsider, "rejected")


def test_unknown_review_decision(student, admin, program, make_application):
    application = make_application(student, program, status="submitted")
    with pytest.raises(ValidationFailed):
        lifecycle.review(application, admin, "maybe")


@pytest.mark.parametrize(
    "start, target, allowed",
    [
        ("draft", "submitted", True),
        ("submitted", "under_review", True),
        ("under_review", "frozen", True),
        ("frozen", "under_review", True),
        ("approved", "rejected", False),
        ("cancelled", "draft", False),
        ("draft", "approved", False),
        ("rejected", "draft", True),
    ],
)
def test_transition_table(start, target, allowed):
    assert lifecycle.can_transition(start, target) is allowed


def test_change_status_writes_history_with_previous_status(student, admin, program, make_application):
    application = make_application(student, program, status="submitted")

    lifecycle.change_status(application, admin, "under_review")
    lifecycle.change_status(application, admin, "frozen")
    db.session.commit()

    history = lifecycle.history_for(application.id)
    assert [(row.from_status, row.to_status) for row in reversed(history)] == [
        ("submitted", "under_review"),
        ("under_review", "frozen"),
    ]


def test_change_status_to_same_status_is_rejected(student, admin, program, make_application):
    application = make_application(student, program, status="submitted")
    with pytest.raises(InvalidTransition, match="already submitted"):
        lifecycle.change_status(application, admin, "submitted")


def test_history_failure_keeps_transition_and_warns(student, program, make_application, monkeypatch):
    application = make_application(student, program)

    def _fail(*args, **kwargs):
        raise OperationalError("INSERT", {}, Exception("disk full"))

    monkeypatch.setattr(lifecycle, "_write_history", _fail)

    warnings = lifecycle.submit(application, student)
    db.session.commit()

    assert application.status == "submitted"
    assert warnings and "history entry could not be recorded" in warnings[0]
    assert _history(application) == []


def test_reopen_rejected_for_edit(student, program, make_application):
    application = make_application(student, program, status="rejected")
    lifecycle.reopen_for_edit(application, student)
    db.session.commit()
    assert application.status == "draft"
    assert _history(application)[0].to_status == "draft"
