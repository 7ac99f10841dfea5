"""Certificate type catalog model."""

from datetime import datetime

from . import db


DEFAULT_FILE_TYPES = "pdf,jpg,jpeg,png"
DEFAULT_MAX_FILE_SIZE_MB = 5


class CertificateType(db.Model):
    """A catalog document category, e.g. a 10th grade mark sheet."""

    __tablename__ = "certificate_types"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), unique=True, nullable=False)
    description = db.Column(db.Text, nullable=True)
    file_types_allowed = db.Column(
        db.String(255), nullable=False, default=DEFAULT_FILE_TYPES
    )
    max_file_size_mb = db.Column(
        db.Float, nullable=False, default=DEFAULT_MAX_FILE_SIZE_MB
    )
    is_required = db.Column(db.Boolean, nullable=False, default=True)
    display_order = db.Column(db.Integer, nullable=False, default=0)
    is_active = db.Column(db.Boolean, nullable=False, default=True, index=True)
    date_created = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    date_updated = db.Column(
        db.DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    @property
    def allowed_extensions(self) -> set[str]:
        raw = self.file_types_allowed or DEFAULT_FILE_TYPES
        extensions = {item.strip().lower().lstrip(".") for item in raw.split(",")}
        extensions.discard("")
        if "jpg" in extensions or "jpeg" in extensions:
            extensions.update({"jpg", "jpeg"})
        return extensions

    @property
    def max_file_size_bytes(self) -> int:
        return int((self.max_file_size_mb or DEFAULT_MAX_FILE_SIZE_MB) * 1024 * 1024)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "fileTypesAllowed": self.file_types_allowed,
            "maxFileSizeMb": self.max_file_size_mb,
            "isRequired": self.is_required,
            "displayOrder": self.display_order,
            "isActive": self.is_active,
            "dateCreated": self.date_created.isoformat() if self.date_created else None,
            "dateUpdated": self.date_updated.isoformat() if self.date_updated else None,
        }
