"""Notification model."""

from datetime import datetime

from sqlalchemy import or_

from . import db


NOTIFICATION_TYPES = ("info", "success", "warning", "danger")


class Notification(db.Model):
    """A message shown to a single user."""

    __tablename__ = "notifications"
    __table_args__ = (db.Index("ix_notifications_user_read", "user_id", "is_read"),)

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)
    title = db.Column(db.String(255), nullable=False)
    message = db.Column(db.Text, nullable=False)
    type = db.Column(
        db.Enum(*NOTIFICATION_TYPES, name="notification_type_enum"),
        nullable=False,
        default="info",
        index=True,
    )
    is_read = db.Column(db.Boolean, nullable=False, default=False)
    action_url = db.Column(db.String(512), nullable=True)
    expires_at = db.Column(db.DateTime, nullable=True)
    date_created = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)

    @staticmethod
    def unexpired_filter(query, now=None):
        """Filter out notifications whose expiry has passed."""

        now = now or datetime.utcnow()
        return query.filter(
            or_(Notification.expires_at.is_(None), Notification.expires_at > now)
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "userId": self.user_id,
            "title": self.title,
            "message": self.message,
            "type": self.type,
            "isRead": self.is_read,
            "actionUrl": self.action_url,
            "expiresAt": self.expires_at.isoformat() if self.expires_at else None,
            "dateCreated": self.date_created.isoformat() if self.date_created else None,
        }
