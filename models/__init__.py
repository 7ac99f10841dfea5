"""Database initialization and model exports."""

from flask_sqlalchemy import SQLAlchemy


db = SQLAlchemy()

# Import models to register them with SQLAlchemy metadata.
from .user import User  # noqa: E402,F401
from .program import Program  # noqa: E402,F401
from .certificate_type import CertificateType  # noqa: E402,F401
from .program_certificate_requirement import ProgramCertificateRequirement  # noqa: E402,F401
from .file_upload import FileUpload  # noqa: E402,F401
from .application import Application  # noqa: E402,F401
from .application_status_history import ApplicationStatusHistory  # noqa: E402,F401
from .application_document import ApplicationDocument  # noqa: E402,F401
from .notification import Notification  # noqa: E402,F401

__all__ = [
    "db",
    "User",
    "Program",
    "CertificateType",
    "ProgramCertificateRequirement",
    "FileUpload",
    "Application",
    "ApplicationStatusHistory",
    "ApplicationDocument",
    "Notification",
]
