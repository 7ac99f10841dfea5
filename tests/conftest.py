"""Shared pytest fixtures for the application tests."""

from __future__ import annotations

import sys
from datetime import date
from pathlib import Path

import pytest
from flask import Flask
from flask.testing import FlaskClient
from flask_jwt_extended import create_access_token

ROOT_DIR = Path(__file__).resolve().parent.parent
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from app import create_app  # noqa: E402
from config import Config  # noqa: E402
from models import db  # noqa: E402
from models.application import Application  # noqa: E402
from models.certificate_type import CertificateType  # noqa: E402
from models.program import Program  # noqa: E402
from models.program_certificate_requirement import ProgramCertificateRequirement  # noqa: E402
from models.user import User  # noqa: E402

PASSWORD = "Secret123"


class _BaseTestConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    JWT_SECRET_KEY = "test-secret-key-with-enough-length-for-hs256"
    RATE_LIMIT = "10000 per minute"
    RATELIMIT_KEY_PREFIX = ""
    MAX_LOGIN_ATTEMPTS = 3


@pytest.fixture()
def app(tmp_path) -> Flask:
    """Create an application with an in-memory database and its context pushed."""

    upload_dir = tmp_path / "uploads"

    class TestConfig(_BaseTestConfig):
        UPLOAD_DIR = str(upload_dir)

    application = create_app(TestConfig)

    with application.app_context():
        db.create_all()
        yield application
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def client(app: Flask) -> FlaskClient:
    """Return a test client for the Flask app."""

    return app.test_client()


@pytest.fixture()
def make_user(app):
    def _make(email: str, role: str = "student", program: Program | None = None, **fields) -> User:
        user = User(email=email, role=role, program_id=program.id if program else None, **fields)
        user.set_password(PASSWORD)
        db.session.add(user)
        db.session.commit()
        return user

    return _make


@pytest.fixture()
def auth_headers(app):
    def _headers(user: User) -> dict:
        token = create_access_token(identity=str(user.id))
        return {"Authorization": f"Bearer {token}"}

    return _headers


@pytest.fixture()
def make_program(app):
    def _make(code: str = "BTECH_CSE", **fields) -> Program:
        values = {
            "program_name": f"Program {code}",
            "program_type": "UG",
            "department": "Computer Science and Engineering",
            "duration_years": 4,
            "total_seats": 60,
            "is_active": True,
        }
        values.update(fields)
        program = Program(program_code=code, **values)
        db.session.add(program)
        db.session.commit()
        return program

    return _make


@pytest.fixture()
def program(make_program) -> Program:
    return make_program()


@pytest.fixture()
def make_certificate_type(app):
    def _make(name: str, **fields) -> CertificateType:
        certificate_type = CertificateType(name=name, **fields)
        db.session.add(certificate_type)
        db.session.commit()
        return certificate_type

    return _make


@pytest.fixture()
def require_certificate(app):
    def _require(program: Program, certificate_type: CertificateType, **fields):
        requirement = ProgramCertificateRequirement(
            program_id=program.id, certificate_type_id=certificate_type.id, **fields
        )
        db.session.add(requirement)
        db.session.commit()
        return requirement

    return _require


@pytest.fixture()
def student(make_user) -> User:
    return make_user("student@example.com")


@pytest.fixture()
def admin(make_user) -> User:
    return make_user("admin@example.com", role="admin")


@pytest.fixture()
def program_admin(make_user, program) -> User:
    return make_user("padmin@example.com", role="program_admin", program=program)


def application_payload(program: Program, **overrides) -> dict:
    payload = {
        "programId": program.id,
        "academicYear": "2025-2026",
        "studentName": "Asha Rao",
        "fatherName": "Ravi Rao",
        "motherName": "Latha Rao",
        "dateOfBirth": "2006-04-12",
        "gender": "Female",
        "mobileNumber": "9876543210",
        "email": "asha@example.com",
    }
    payload.update(overrides)
    return payload


@pytest.fixture()
def make_application(app):
    counter = {"value": 0}

    def _make(user: User, program: Program, status: str = "draft", **fields) -> Application:
        counter["value"] += 1
        values = {
            "application_number": f"APP25{counter['value']:06d}",
            "user_id": user.id,
            "program_id": program.id,
            "academic_year": "2025-2026",
            "status": status,
            "student_name": "Asha Rao",
            "father_name": "Ravi Rao",
            "mother_name": "Latha Rao",
            "date_of_birth": date(2006, 4, 12),
            "gender": "Female",
            "mobile_number": "9876543210",
            "email": "asha@example.com",
            "present_address": {},
            "permanent_address": {},
            "identification_marks": [],
            "meeseva_details": {},
            "education": {},
        }
        values.update(fields)
        application = Application(**values)
        db.session.add(application)
        db.session.commit()
        return application

    return _make


@pytest.fixture()
def payload_for():
    return application_payload
