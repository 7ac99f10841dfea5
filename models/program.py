"""Program model definition."""

from datetime import date, datetime
from typing import Optional

from . import db


PROGRAM_TYPES = ("UG", "PG", "Diploma", "Certificate")


class Program(db.Model):
    """An academic offering students apply to."""

    __tablename__ = "programs"

    id = db.Column(db.Integer, primary_key=True)
    program_code = db.Column(db.String(64), unique=True, nullable=False)
    program_name = db.Column(db.String(255), nullable=False)
    program_type = db.Column(
        db.Enum(*PROGRAM_TYPES, name="program_type_enum"), nullable=False
    )
    department = db.Column(db.String(255), nullable=False)
    duration_years = db.Column(db.Integer, nullable=False)
    total_seats = db.Column(db.Integer, nullable=False, default=0)
    application_start_date = db.Column(db.Date, nullable=True)
    application_end_date = db.Column(db.Date, nullable=True)
    program_admin_id = db.Column(
        db.Integer, db.ForeignKey("users.id"), nullable=True, index=True
    )
    eligibility_criteria = db.Column(db.Text, nullable=True)
    fees_structure = db.Column(db.Text, nullable=True)
    description = db.Column(db.Text, nullable=True)
    is_active = db.Column(db.Boolean, nullable=False, default=True, index=True)
    display_order = db.Column(db.Integer, nullable=False, default=0)
    date_created = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    date_updated = db.Column(
        db.DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    program_admin = db.relationship("User", foreign_keys=[program_admin_id])

    def is_accepting_applications(self, today: Optional[date] = None) -> bool:
        """Return True if the program is active and inside its application window."""

        if not self.is_active:
            return False
        today = today or date.today()
        if self.application_start_date and today < self.application_start_date:
            return False
        if self.application_end_date and today > self.application_end_date:
            return False
        return True

    def to_dict(self, summary: bool = False) -> dict:
        """Serialize the program; ``summary`` keeps only identifying fields."""

        data = {
            "id": self.id,
            "programCode": self.program_code,
            "programName": self.program_name,
            "programType": self.program_type,
            "department": self.department,
        }
        if summary:
            return data
        data.update(
            {
                "durationYears": self.duration_years,
                "totalSeats": self.total_seats,
                "applicationStartDate": self.application_start_date.isoformat()
                if self.application_start_date
                else None,
                "applicationEndDate": self.application_end_date.isoformat()
                if self.application_end_date
                else None,
                "programAdminId": self.program_admin_id,
                "programAdminEmail": self.program_admin.email
                if self.program_admin
                else None,
                "eligibilityCriteria": self.eligibility_criteria,
                "feesStructure": self.fees_structure,
                "description": self.description,
                "isActive": self.is_active,
                "displayOrder": self.display_order,
                "dateCreated": self.date_created.isoformat() if self.date_created else None,
                "dateUpdated": self.date_updated.isoformat() if self.date_updated else None,
            }
        )
        return data
