"""Uploaded file metadata model."""

from datetime import datetime

from . import db


class FileUpload(db.Model):
    """Metadata for a file stored through the storage backend."""

    __tablename__ = "file_uploads"

    id = db.Column(db.Integer, primary_key=True)
    uuid = db.Column(db.String(36), unique=True, nullable=False, index=True)
    filename = db.Column(db.String(255), nullable=False)
    original_name = db.Column(db.String(255), nullable=False)
    file_path = db.Column(db.String(512), nullable=False)
    file_size = db.Column(db.Integer, nullable=False)
    mime_type = db.Column(db.String(128), nullable=True)
    description = db.Column(db.Text, nullable=True)
    uploaded_by = db.Column(
        db.Integer, db.ForeignKey("users.id"), nullable=True, index=True
    )
    upload_date = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    is_verified = db.Column(db.Boolean, nullable=False, default=False)
    verified_by = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    verified_at = db.Column(db.DateTime, nullable=True)

    uploader = db.relationship("User", foreign_keys=[uploaded_by])
    verifier = db.relationship("User", foreign_keys=[verified_by])

    @property
    def extension(self) -> str:
        if "." not in (self.original_name or ""):
            return ""
        return self.original_name.rsplit(".", 1)[-1].lower()

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "uuid": self.uuid,
            "filename": self.filename,
            "originalName": self.original_name,
            "fileSize": self.file_size,
            "mimeType": self.mime_type,
            "description": self.description,
            "uploadedBy": self.uploaded_by,
            "uploadedByEmail": self.uploader.email if self.uploader else None,
            "uploadDate": self.upload_date.isoformat() if self.upload_date else None,
            "isVerified": self.is_verified,
            "verifiedBy": self.verified_by,
            "verifiedAt": self.verified_at.isoformat() if self.verified_at else None,
        }
