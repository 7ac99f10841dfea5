"""Role and ownership checks for applications.

Every function here is pure: it looks only at the actor's role, id and
program scope and at the application's owner, program and status. Callers
re-evaluate them on each request; nothing is cached or persisted.
"""

from __future__ import annotations

from typing import Any

EDITABLE_STATUSES = frozenset({"draft", "rejected"})


def _is_owner(app: Any, user: Any) -> bool:
    return user is not None and app.user_id == user.id


def _is_scoped_program_admin(app: Any, user: Any) -> bool:
    return (
        user is not None
        and user.role == "program_admin"
        and user.program_id is not None
        and app.program_id == user.program_id
    )


def can_edit(app: Any, user: Any) -> bool:
    """Students may edit their own draft or rejected applications."""

    return (
        user is not None
        and user.role == "student"
        and _is_owner(app, user)
        and app.status in EDITABLE_STATUSES
    )


def can_delete(app: Any, user: Any) -> bool:
    """Admins may delete anything; students only their own drafts."""

    if user is None:
        return False
    if user.role == "admin":
        return True
    return user.role == "student" and _is_owner(app, user) and app.status == "draft"


def can_submit(app: Any, user: Any) -> bool:
    return (
        user is not None
        and user.role == "student"
        and _is_owner(app, user)
        and app.status == "draft"
    )


def can_bulk_edit(user: Any) -> bool:
    return user is not None and user.role in {"admin", "program_admin"}


def can_bulk_delete(user: Any) -> bool:
    return user is not None and user.role == "admin"


def can_view(app: Any, user: Any) -> bool:
    if user is None:
        return False
    if user.role == "admin":
        return True
    if user.role == "program_admin":
        return _is_scoped_program_admin(app, user)
    return _is_owner(app, user)


def can_review(app: Any, user: Any) -> bool:
    if user is None:
        return False
    return user.role == "admin" or _is_scoped_program_admin(app, user)


def can_admin_update(app: Any, user: Any) -> bool:
    """Full-field updates, including status, are a staff privilege."""

    return can_review(app, user)


def can_manage_documents(app: Any, user: Any) -> bool:
    if can_review(app, user):
        return True
    return can_edit(app, user)


def permission_flags(app: Any, user: Any) -> dict[str, bool]:
    """Advisory flags for clients; the server never reads them back."""

    return {
        "canEdit": can_edit(app, user),
        "canSubmit": can_submit(app, user),
        "canReview": can_review(app, user),
        "canDelete": can_delete(app, user),
    }
