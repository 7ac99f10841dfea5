"""Append-only audit trail of application status transitions."""

from datetime import datetime

from . import db
from .application import APPLICATION_STATUSES


class ApplicationStatusHistory(db.Model):
    """One row per status transition.

    ``application_id`` carries no foreign key so that the trail outlives the
    application it describes.
    """

    __tablename__ = "application_status_history"
    __table_args__ = (
        db.Index("ix_status_history_transition", "from_status", "to_status"),
    )

    id = db.Column(db.Integer, primary_key=True)
    application_id = db.Column(db.Integer, nullable=False, index=True)
    from_status = db.Column(
        db.Enum(*APPLICATION_STATUSES, name="application_status_enum"),
        nullable=True,
    )
    to_status = db.Column(
        db.Enum(*APPLICATION_STATUSES, name="application_status_enum"),
        nullable=False,
    )
    changed_by = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    remarks = db.Column(db.Text, nullable=True)
    date_created = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)

    actor = db.relationship("User")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "applicationId": self.application_id,
            "fromStatus": self.from_status,
            "toStatus": self.to_status,
            "changedBy": self.changed_by,
            "changedByEmail": self.actor.email if self.actor else None,
            "changedByRole": self.actor.role if self.actor else None,
            "remarks": self.remarks,
            "dateCreated": self.date_created.isoformat() if self.date_created else None,
        }
