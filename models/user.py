"""User model definition."""

from datetime import datetime, timedelta
from typing import Optional

from werkzeug.security import check_password_hash, generate_password_hash

from . import db


USER_ROLES = ("admin", "program_admin", "student")
STAFF_ROLES = ("admin", "program_admin")


class User(db.Model):
    """Represents a portal user: a student, a program admin or an admin."""

    __tablename__ = "users"

    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(255), unique=True, nullable=False)
    password_hash = db.Column(db.String(255), nullable=False)
    role = db.Column(db.String(32), nullable=False, default="student")
    is_active = db.Column(
        db.Boolean,
        nullable=False,
        default=True,
        server_default=db.text("true"),
    )
    email_verified = db.Column(db.Boolean, nullable=False, default=False)
    program_id = db.Column(
        db.Integer,
        db.ForeignKey("programs.id", use_alter=True, name="fk_users_program_id"),
        nullable=True,
        index=True,
    )
    last_login = db.Column(db.DateTime, nullable=True)
    login_attempts = db.Column(db.Integer, nullable=False, default=0)
    locked_until = db.Column(db.DateTime, nullable=True)
    date_created = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    date_updated = db.Column(
        db.DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    program = db.relationship("Program", foreign_keys=[program_id])

    def set_password(self, password: str) -> None:
        """Hash and store the password."""

        self.password_hash = generate_password_hash(password)

    def check_password(self, password: str) -> bool:
        """Verify a password against the stored hash."""

        return check_password_hash(self.password_hash, password)

    @property
    def is_staff(self) -> bool:
        return self.role in STAFF_ROLES

    def is_locked(self, now: Optional[datetime] = None) -> bool:
        """Return True while a login lockout is in effect."""

        if self.locked_until is None:
            return False
        return self.locked_until > (now or datetime.utcnow())

    def register_failed_login(self, max_attempts: int, lockout_minutes: int) -> None:
        """Count a failed login and lock the account once the limit is hit."""

        self.login_attempts = (self.login_attempts or 0) + 1
        if self.login_attempts >= max_attempts:
            self.locked_until = datetime.utcnow() + timedelta(minutes=lockout_minutes)
            self.login_attempts = 0

    def register_successful_login(self) -> None:
        self.login_attempts = 0
        self.locked_until = None
        self.last_login = datetime.utcnow()

    def to_dict(self) -> dict:
        """Serialize the user without credentials."""

        return {
            "id": self.id,
            "email": self.email,
            "role": self.role,
            "isActive": self.is_active,
            "emailVerified": self.email_verified,
            "programId": self.program_id,
            "lastLogin": self.last_login.isoformat() if self.last_login else None,
            "dateCreated": self.date_created.isoformat() if self.date_created else None,
            "dateUpdated": self.date_updated.isoformat() if self.date_updated else None,
        }

    def __repr__(self) -> str:  # pragma: no cover - debugging helper
        return f"<User {self.email}>"
