"""Application model."""

from datetime import datetime

from . import db


APPLICATION_STATUSES = (
    "draft",
    "submitted",
    "under_review",
    "approved",
    "rejected",
    "cancelled",
    "frozen",
)
GENDERS = ("Male", "Female", "Other")
RESERVATION_CATEGORIES = (
    "OC",
    "BC-A",
    "BC-B",
    "BC-C",
    "BC-D",
    "BC-E",
    "SC",
    "ST",
    "EWS",
    "PH",
)
ADDRESS_FIELDS = ("doorNo", "street", "village", "mandal", "district", "pincode")
MEESEVA_FIELDS = ("casteCertificate", "incomeCertificate")


class Application(db.Model):
    """A student's application to a program for an academic year."""

    __tablename__ = "applications"
    __table_args__ = (
        db.Index("ix_applications_user_program", "user_id", "program_id"),
        db.Index("ix_applications_program_status", "program_id", "status"),
    )

    id = db.Column(db.Integer, primary_key=True)
    application_number = db.Column(db.String(32), unique=True, nullable=False)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    program_id = db.Column(
        db.Integer, db.ForeignKey("programs.id"), nullable=False, index=True
    )
    academic_year = db.Column(db.String(16), nullable=False, index=True)
    status = db.Column(
        db.Enum(*APPLICATION_STATUSES, name="application_status_enum"),
        nullable=False,
        default="draft",
        server_default=db.text("'draft'"),
        index=True,
    )
    submitted_at = db.Column(db.DateTime, nullable=True)
    reviewed_by = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    reviewed_at = db.Column(db.DateTime, nullable=True)
    approval_comments = db.Column(db.Text, nullable=True)

    # Personal information
    student_name = db.Column(db.String(255), nullable=False)
    father_name = db.Column(db.String(255), nullable=False)
    mother_name = db.Column(db.String(255), nullable=False)
    date_of_birth = db.Column(db.Date, nullable=False)
    gender = db.Column(db.Enum(*GENDERS, name="gender_enum"), nullable=False)
    aadhar_number = db.Column(db.String(32), nullable=True)
    mobile_number = db.Column(db.String(32), nullable=False)
    parent_mobile = db.Column(db.String(32), nullable=True)
    guardian_mobile = db.Column(db.String(32), nullable=True)
    email = db.Column(db.String(255), nullable=False)
    religion = db.Column(db.String(64), nullable=True)
    caste = db.Column(db.String(64), nullable=True)
    reservation_category = db.Column(
        db.Enum(*RESERVATION_CATEGORIES, name="reservation_category_enum"),
        nullable=False,
        default="OC",
    )
    is_physically_handicapped = db.Column(db.Boolean, nullable=False, default=False)
    sadaram_number = db.Column(db.String(64), nullable=True)
    special_reservation = db.Column(db.String(255), nullable=True)
    ration_card_number = db.Column(db.String(64), nullable=True)

    # Nested documents
    present_address = db.Column(db.JSON, nullable=False, default=dict)
    permanent_address = db.Column(db.JSON, nullable=False, default=dict)
    identification_marks = db.Column(db.JSON, nullable=False, default=list)
    meeseva_details = db.Column(db.JSON, nullable=False, default=dict)
    education = db.Column(db.JSON, nullable=False, default=dict)

    date_created = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    date_updated = db.Column(
        db.DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    applicant = db.relationship(
        "User",
        foreign_keys=[user_id],
        backref=db.backref("applications", lazy="dynamic"),
    )
    reviewer = db.relationship("User", foreign_keys=[reviewed_by])
    program = db.relationship(
        "Program", backref=db.backref("applications", lazy="dynamic")
    )
    documents = db.relationship(
        "ApplicationDocument",
        back_populates="application",
        cascade="all, delete-orphan",
        lazy="dynamic",
    )

    @property
    def owner_id(self) -> int:
        return self.user_id

    def to_dict(self) -> dict:
        """Serialize the application."""

        return {
            "id": self.id,
            "applicationNumber": self.application_number,
            "userId": self.user_id,
            "userEmail": self.applicant.email if self.applicant else None,
            "programId": self.program_id,
            "program": self.program.to_dict(summary=True) if self.program else None,
            "academicYear": self.academic_year,
            "status": self.status,
            "submittedAt": self.submitted_at.isoformat() if self.submitted_at else None,
            "reviewedBy": self.reviewed_by,
            "reviewedByEmail": self.reviewer.email if self.reviewer else None,
            "reviewedAt": self.reviewed_at.isoformat() if self.reviewed_at else None,
            "approvalComments": self.approval_comments,
            "studentName": self.student_name,
            "fatherName": self.father_name,
            "motherName": self.mother_name,
            "dateOfBirth": self.date_of_birth.isoformat() if self.date_of_birth else None,
            "gender": self.gender,
            "aadharNumber": self.aadhar_number,
            "mobileNumber": self.mobile_number,
            "parentMobile": self.parent_mobile,
            "guardianMobile": self.guardian_mobile,
            "email": self.email,
            "religion": self.religion,
            "caste": self.caste,
            "reservationCategory": self.reservation_category,
            "isPhysicallyHandicapped": self.is_physically_handicapped,
            "sadaramNumber": self.sadaram_number,
            "specialReservation": self.special_reservation,
            "rationCardNumber": self.ration_card_number,
            "presentAddress": self.present_address or {},
            "permanentAddress": self.permanent_address or {},
            "identificationMarks": self.identification_marks or [],
            "meesevaDetails": self.meeseva_details or {},
            "education": self.education or {},
            "dateCreated": self.date_created.isoformat() if self.date_created else None,
            "dateUpdated": self.date_updated.isoformat() if self.date_updated else None,
        }

    def __repr__(self) -> str:  # pragma: no cover - debugging helper
        return f"<Application {self.application_number} status={self.status}>"
