"""ApplicationDocument model definition."""

from datetime import datetime

from . import db


class ApplicationDocument(db.Model):
    """Links an application to an uploaded file for one certificate type."""

    __tablename__ = "application_documents"
    __table_args__ = (
        db.UniqueConstraint(
            "application_id",
            "certificate_type_id",
            name="uq_application_document_type",
        ),
        db.Index("ix_application_documents_verified", "application_id", "is_verified"),
    )

    id = db.Column(db.Integer, primary_key=True)
    application_id = db.Column(
        db.Integer, db.ForeignKey("applications.id"), nullable=False, index=True
    )
    certificate_type_id = db.Column(
        db.Integer, db.ForeignKey("certificate_types.id"), nullable=False
    )
    file_upload_id = db.Column(
        db.Integer, db.ForeignKey("file_uploads.id"), nullable=False
    )
    document_name = db.Column(db.String(255), nullable=True)
    remarks = db.Column(db.Text, nullable=True)
    is_verified = db.Column(db.Boolean, nullable=False, default=False)
    verified_by = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    verified_at = db.Column(db.DateTime, nullable=True)
    verification_remarks = db.Column(db.Text, nullable=True)
    date_created = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    date_updated = db.Column(
        db.DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    application = db.relationship("Application", back_populates="documents")
    certificate_type = db.relationship("CertificateType")
    file_upload = db.relationship("FileUpload")
    verifier = db.relationship("User")

    def reset_verification(self) -> None:
        self.is_verified = False
        self.verified_by = None
        self.verified_at = None
        self.verification_remarks = None

    def __repr__(self) -> str:
        return (
            f"<ApplicationDocument id={self.id} application_id={self.application_id} "
            f"verified={self.is_verified}>"
        )

    def to_dict(self) -> dict:
        """Serialize the document with its certificate type and file summary."""

        certificate_type = self.certificate_type
        file_upload = self.file_upload
        return {
            "id": self.id,
            "applicationId": self.application_id,
            "certificateTypeId": self.certificate_type_id,
            "certificateType": {
                "id": certificate_type.id,
                "name": certificate_type.name,
                "description": certificate_type.description,
                "isRequired": certificate_type.is_required,
            }
            if certificate_type
            else None,
            "fileUploadId": self.file_upload_id,
            "fileUpload": {
                "uuid": file_upload.uuid,
                "filename": file_upload.filename,
                "originalName": file_upload.original_name,
                "fileSize": file_upload.file_size,
                "mimeType": file_upload.mime_type,
                "uploadDate": file_upload.upload_date.isoformat()
                if file_upload.upload_date
                else None,
            }
            if file_upload
            else None,
            "documentName": self.document_name,
            "remarks": self.remarks,
            "isVerified": self.is_verified,
            "verifiedBy": self.verified_by,
            "verifiedByEmail": self.verifier.email if self.verifier else None,
            "verifiedAt": self.verified_at.isoformat() if self.verified_at else None,
            "verificationRemarks": self.verification_remarks,
            "dateCreated": self.date_created.isoformat() if self.date_created else None,
            "dateUpdated": self.date_updated.isoformat() if self.date_updated else None,
        }
