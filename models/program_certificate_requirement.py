"""Per-program certificate requirement model."""

from datetime import datetime

from . import db


class ProgramCertificateRequirement(db.Model):
    """Binds a certificate type to a program as required or optional."""

    __tablename__ = "program_certificate_requirements"
    __table_args__ = (
        db.UniqueConstraint(
            "program_id",
            "certificate_type_id",
            name="uq_program_certificate_requirement",
        ),
    )

    id = db.Column(db.Integer, primary_key=True)
    program_id = db.Column(
        db.Integer, db.ForeignKey("programs.id"), nullable=False, index=True
    )
    certificate_type_id = db.Column(
        db.Integer, db.ForeignKey("certificate_types.id"), nullable=False, index=True
    )
    is_required = db.Column(db.Boolean, nullable=False, default=True)
    special_instructions = db.Column(db.Text, nullable=True)
    display_order = db.Column(db.Integer, nullable=False, default=0)
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    date_created = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    date_updated = db.Column(
        db.DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    program = db.relationship(
        "Program",
        backref=db.backref(
            "certificate_requirements", lazy="dynamic", cascade="all, delete-orphan"
        ),
    )
    certificate_type = db.relationship(
        "CertificateType",
        backref=db.backref(
            "program_requirements", lazy="dynamic", cascade="all, delete-orphan"
        ),
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "programId": self.program_id,
            "certificateTypeId": self.certificate_type_id,
            "certificateType": self.certificate_type.to_dict()
            if self.certificate_type
            else None,
            "isRequired": self.is_required,
            "specialInstructions": self.special_instructions,
            "displayOrder": self.display_order,
            "isActive": self.is_active,
            "dateCreated": self.date_created.isoformat() if self.date_created else None,
            "dateUpdated": self.date_updated.isoformat() if self.date_updated else None,
        }
