"""Helpers for queueing user notifications alongside domain changes."""

from __future__ import annotations

from typing import Iterable, Optional

from models import db
from models.notification import NOTIFICATION_TYPES, Notification
from models.user import User


def notify(
    user_id: int,
    title: str,
    message: str,
    type_: str = "info",
    action_url: Optional[str] = None,
) -> Notification:
    """Add a notification to the current session; the caller commits."""

    if type_ not in NOTIFICATION_TYPES:
        type_ = "info"
    notification = Notification(
        user_id=user_id,
        title=title,
        message=message,
        type=type_,
        action_url=action_url,
    )
    db.session.add(notification)
    return notification


def notify_many(user_ids: Iterable[int], title: str, message: str, **kwargs) -> int:
    count = 0
    for user_id in user_ids:
        notify(user_id, title, message, **kwargs)
        count += 1
    return count


def program_admin_ids(program_id: int) -> list[int]:
    """Return the ids of active program admins scoped to a program."""

    rows = (
        User.query.filter_by(role="program_admin", program_id=program_id, is_active=True)
        .with_entities(User.id)
        .all()
    )
    return [row.id for row in rows]
