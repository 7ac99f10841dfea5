"""Normalization of application payloads into model fields."""

from __future__ import annotations

from datetime import date, datetime
from typing import Any, Callable, Optional

from models import db
from models.application import (
    ADDRESS_FIELDS,
    GENDERS,
    MEESEVA_FIELDS,
    RESERVATION_CATEGORIES,
    Application,
)

from .errors import ResourceNotFound, ValidationFailed

CREATE_REQUIRED_FIELDS = {
    "programId": "Program is required",
    "academicYear": "Academic year is required",
    "studentName": "Student name is required",
    "fatherName": "Father name is required",
    "motherName": "Mother name is required",
    "dateOfBirth": "Date of birth is required",
    "gender": "Gender is required",
    "mobileNumber": "Mobile number is required",
    "email": "Email is required",
}

# JSON key -> model attribute for fields a student may set on their own application.
STUDENT_FIELDS = {
    "studentName": "student_name",
    "fatherName": "father_name",
    "motherName": "mother_name",
    "dateOfBirth": "date_of_birth",
    "gender": "gender",
    "aadharNumber": "aadhar_number",
    "mobileNumber": "mobile_number",
    "parentMobile": "parent_mobile",
    "guardianMobile": "guardian_mobile",
    "email": "email",
    "religion": "religion",
    "caste": "caste",
    "reservationCategory": "reservation_category",
    "isPhysicallyHandicapped": "is_physically_handicapped",
    "specialReservation": "special_reservation",
    "sadaramNumber": "sadaram_number",
    "rationCardNumber": "ration_card_number",
    "presentAddress": "present_address",
    "permanentAddress": "permanent_address",
    "identificationMarks": "identification_marks",
    "meesevaDetails": "meeseva_details",
}

# Staff may additionally move an application between programs or years.
STAFF_FIELDS = {
    **STUDENT_FIELDS,
    "programId": "program_id",
    "academicYear": "academic_year",
    "approvalComments": "approval_comments",
}

EDUCATION_TEXT_FIELDS = (
    "interBoard",
    "interHallTicketNumber",
    "sscHallTicketNumber",
    "interPassoutType",
    "bridgeCourse",
    "interCourseName",
    "interMedium",
    "interSecondLanguage",
    "interCollegeName",
    "oamdcNumber",
)
EDUCATION_INT_FIELDS = (
    "interPassYear",
    "interMarksSecured",
    "interMaximumMarks",
    "interLanguagesTotal",
)
EDUCATION_FLOAT_FIELDS = ("interLanguagesPercentage", "interGroupSubjectsPercentage")
STUDY_DETAIL_FIELDS = ("className", "placeOfStudy", "institutionName")


def parse_date(value: Any) -> Optional[date]:
    """Parse an ISO 8601 date or datetime string into a date."""

    if value in (None, ""):
        return None
    if isinstance(value, date):
        return value
    text = str(value).strip()
    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
    except ValueError:
        return date.fromisoformat(text[:10])


def parse_bool(value: Any) -> Optional[bool]:
    if value is None:
        return None
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in {"1", "true", "yes", "y"}:
        return True
    if text in {"0", "false", "no", "n", ""}:
        return False
    return None


def _address(value: Any) -> dict:
    value = value if isinstance(value, dict) else {}
    return {key: str(value.get(key) or "").strip() for key in ADDRESS_FIELDS}


def _meeseva(value: Any) -> dict:
    value = value if isinstance(value, dict) else {}
    return {key: str(value.get(key) or "").strip() for key in MEESEVA_FIELDS}


def _marks(value: Any) -> list[str]:
    if not isinstance(value, list):
        return []
    return [str(mark).strip() for mark in value if mark and str(mark).strip()]


def _number(value: Any, cast: Callable[[Any], Any], key: str, errors: list[str]):
    if value in (None, ""):
        return None
    try:
        return cast(value)
    except (TypeError, ValueError):
        errors.append(f"{key} must be numeric")
        return None


def normalize_education(data: dict, existing: Optional[dict] = None) -> tuple[dict, list[str]]:
    """Collect intermediate-education details from ``education`` or top-level keys."""

    source = dict(data.get("education") or {}) if isinstance(data.get("education"), dict) else {}
    for key in (*EDUCATION_TEXT_FIELDS, *EDUCATION_INT_FIELDS, *EDUCATION_FLOAT_FIELDS, "studyDetails"):
        if key in data and key not in source:
            source[key] = data[key]

    errors: list[str] = []
    education = dict(existing or {})
    for key in EDUCATION_TEXT_FIELDS:
        if key in source:
            education[key] = str(source[key] or "").strip()
    for key in EDUCATION_INT_FIELDS:
        if key in source:
            education[key] = _number(source[key], int, key, errors)
    for key in EDUCATION_FLOAT_FIELDS:
        if key in source:
            education[key] = _number(source[key], float, key, errors)
    if "studyDetails" in source:
        rows = source["studyDetails"] if isinstance(source["studyDetails"], list) else []
        education["studyDetails"] = [
            {field: str(row.get(field) or "").strip() for field in STUDY_DETAIL_FIELDS}
            for row in rows
            if isinstance(row, dict) and any(row.get(field) for field in STUDY_DETAIL_FIELDS)
        ]
    return education, errors


def _convert(attr: str, key: str, value: Any, errors: list[str]) -> Any:
    if attr == "date_of_birth":
        try:
            parsed = parse_date(value)
        except ValueError:
            errors.append("dateOfBirth must be ISO 8601 format")
            return None
        if parsed is None:
            errors.append("dateOfBirth is required")
        return parsed
    if attr == "gender":
        if value not in GENDERS:
            errors.append("gender must be one of Male, Female, Other")
        return value
    if attr == "reservation_category":
        value = value or "OC"
        if value not in RESERVATION_CATEGORIES:
            errors.append(
                "reservationCategory must be one of {}".format(
                    ", ".join(RESERVATION_CATEGORIES)
                )
            )
        return value
    if attr == "is_physically_handicapped":
        return bool(parse_bool(value))
    if attr in ("present_address", "permanent_address"):
        return _address(value)
    if attr == "meeseva_details":
        return _meeseva(value)
    if attr == "identification_marks":
        return _marks(value)
    if attr == "program_id":
        converted = _number(value, int, key, errors)
        if converted is None:
            errors.append("programId is required")
        return converted
    if attr == "email":
        return str(value or "").strip().lower()
    if isinstance(value, str):
        return value.strip()
    return value


def apply_fields(app: Application, data: dict, fields: dict[str, str]) -> list[str]:
    """Copy whitelisted JSON keys onto ``app``; return validation errors."""

    errors: list[str] = []
    for key, attr in fields.items():
        if key not in data:
            continue
        setattr(app, attr, _convert(attr, key, data[key], errors))

    education_keys = {
        "education",
        "studyDetails",
        *EDUCATION_TEXT_FIELDS,
        *EDUCATION_INT_FIELDS,
        *EDUCATION_FLOAT_FIELDS,
    }
    if education_keys.intersection(data):
        education, education_errors = normalize_education(data, app.education)
        app.education = education
        errors.extend(education_errors)
    return errors


def missing_create_fields(data: dict) -> list[str]:
    return [message for key, message in CREATE_REQUIRED_FIELDS.items() if not data.get(key)]


def build_application(data: dict, user_id: int, application_number: str) -> Application:
    """Create an unsaved draft application from a request payload."""

    missing = missing_create_fields(data)
    if missing:
        raise ValidationFailed("Missing required fields: {}.".format(", ".join(missing)))

    app = Application(
        application_number=application_number,
        user_id=user_id,
        status="draft",
        present_address=_address(None),
        permanent_address=_address(None),
        meeseva_details=_meeseva(None),
        identification_marks=[],
        education={},
        reservation_category="OC",
        is_physically_handicapped=False,
    )
    errors = apply_fields(
        app,
        data,
        {**STUDENT_FIELDS, "programId": "program_id", "academicYear": "academic_year"},
    )
    if errors:
        raise ValidationFailed("; ".join(errors))
    return app


def format_application_number(year: int, sequence: int) -> str:
    return f"APP{year % 100:02d}{sequence:06d}"


def next_application_number(today: Optional[date] = None) -> str:
    """Return the next free ``APP<yy><seq>`` number.

    The sequence starts after the current application count and skips any
    number already taken, so deletions do not cause collisions.
    """

    today = today or date.today()
    sequence = Application.query.count() + 1
    number = format_application_number(today.year, sequence)
    while Application.query.filter_by(application_number=number).first():
        sequence += 1
        number = format_application_number(today.year, sequence)
    return number


def load_application(application_id: int) -> Application:
    app = db.session.get(Application, application_id)
    if app is None:
        raise ResourceNotFound("Application not found.")
    return app


def find_duplicate(
    user_id: int, program_id: int, academic_year: str, exclude_id: Optional[int] = None
) -> Optional[Application]:
    """Return another application by the same student for the same program and year."""

    query = Application.query.filter_by(
        user_id=user_id, program_id=program_id, academic_year=academic_year
    )
    if exclude_id is not None:
        query = query.filter(Application.id != exclude_id)
    return query.first()
