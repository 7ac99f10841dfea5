"""User blueprint: login, registration, profile and admin management."""

from __future__ import annotations

import logging
from http import HTTPStatus

from flask import Blueprint, current_app, jsonify, request
from flask_jwt_extended import create_access_token, jwt_required, verify_jwt_in_request
from sqlalchemy import func
from werkzeug.exceptions import BadRequest, Conflict, Forbidden, NotFound, Unauthorized

from models import db
from models.notification import Notification
from models.program import Program
from models.user import USER_ROLES, User
from utils.auth import get_current_user, require_admin, require_user
from utils.pagination import page_args, page_meta, parse_bool_arg
from utils.request_validation import parse_json_request, require_int

logger = logging.getLogger(__name__)

users_bp = Blueprint("users", __name__)

MIN_PASSWORD_LENGTH = 6


def _text(payload: dict, key: str) -> str:
    value = payload.get(key)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise BadRequest(f"{key} must be a string.")
    return value


def _normalize_email(payload: dict) -> str:
    return _text(payload, "email").strip().lower()


def _find_by_email(email: str) -> User | None:
    return User.query.filter(func.lower(User.email) == email).first()


def _validate_password(password: str) -> None:
    if len(password) < MIN_PASSWORD_LENGTH:
        raise BadRequest(
            f"Password must be at least {MIN_PASSWORD_LENGTH} characters long."
        )


def _resolve_program_id(raw) -> int | None:
    if raw in (None, ""):
        return None
    program_id = require_int(raw, "programId")
    if db.session.get(Program, program_id) is None:
        raise BadRequest("Program not found.")
    return program_id


def _load_user(user_id: int) -> User:
    user = db.session.get(User, user_id)
    if user is None:
        raise NotFound("User not found.")
    return user


def _auth_payload(user: User) -> dict:
    return {
        "token": create_access_token(identity=str(user.id)),
        "user": user.to_dict(),
    }


@users_bp.route("/login", methods=["POST"])
def login():
    """Authenticate with email and password and return a bearer token."""

    payload = parse_json_request(request)
    email = _normalize_email(payload)
    password = _text(payload, "password")
    if not email or not password:
        raise BadRequest("Email and password are required.")

    user = _find_by_email(email)
    if user is None:
        logger.warning("Login failed for unknown email %s", email)
        raise Unauthorized("Invalid email or password.")
    if user.is_locked():
        logger.warning("Login attempt on locked account %s", user.id)
        raise Forbidden(
            "Account is temporarily locked due to too many failed login attempts."
        )
    if not user.is_active:
        raise Forbidden("This account has been deactivated.")

    if not user.check_password(password):
        user.register_failed_login(
            current_app.config.get("MAX_LOGIN_ATTEMPTS", 5),
            current_app.config.get("LOGIN_LOCKOUT_MINUTES", 15),
        )
        db.session.commit()
        if user.locked_until is not None:
            logger.warning("Account %s locked after repeated login failures", user.id)
        else:
            logger.warning("Login failed for user %s", user.id)
        raise Unauthorized("Invalid email or password.")

    user.register_successful_login()
    db.session.commit()
    return jsonify(_auth_payload(user)), HTTPStatus.OK


@users_bp.route("", methods=["POST"])
def register():
    """Register a student account, or any account when called by an admin."""

    verify_jwt_in_request(optional=True)
    actor = get_current_user()
    payload = parse_json_request(request)

    email = _normalize_email(payload)
    password = _text(payload, "password")
    if not email or not password:
        raise BadRequest("Email and password are required.")
    _validate_password(password)

    role = _text(payload, "role").strip().lower() or "student"
    is_admin = actor is not None and actor.role == "admin"
    if role not in USER_ROLES:
        raise BadRequest("Role must be one of: {}.".format(", ".join(USER_ROLES)))
    if role != "student" and not is_admin:
        raise Forbidden("Only administrators can create staff accounts.")

    if _find_by_email(email) is not None:
        raise Conflict("A user with that email already exists.")

    user = User(email=email, role=role)
    user.set_password(password)
    if is_admin:
        user.program_id = _resolve_program_id(payload.get("programId"))
        if "isActive" in payload:
            user.is_active = bool(payload["isActive"])
    if role == "program_admin" and user.program_id is None:
        raise BadRequest("Program admins must be assigned to a program.")

    db.session.add(user)
    db.session.commit()
    return jsonify(_auth_payload(user)), HTTPStatus.CREATED


@users_bp.route("", methods=["GET"])
@jwt_required()
def list_users():
    require_admin()
    page, limit = page_args()

    query = User.query
    role = request.args.get("role")
    if role:
        if role not in USER_ROLES:
            raise BadRequest("Invalid role.")
        query = query.filter(User.role == role)
    is_active = parse_bool_arg("isActive")
    if is_active is not None:
        query = query.filter(User.is_active.is_(is_active))
    search = request.args.get("search")
    if search:
        query = query.filter(func.lower(User.email).like(f"%{search.lower()}%"))

    pagination = query.order_by(User.date_created.desc(), User.id.desc()).paginate(
        page=page, per_page=limit, error_out=False
    )
    return jsonify(
        {"docs": [user.to_dict() for user in pagination.items], **page_meta(pagination)}
    )


@users_bp.route("/profile", methods=["GET"])
@jwt_required()
def get_profile():
    user = require_user()
    return jsonify({"user": user.to_dict()})


@users_bp.route("/profile", methods=["PUT"])
@jwt_required()
def update_profile():
    """Change the caller's own email or password."""

    user = require_user()
    payload = parse_json_request(request)

    if "email" in payload:
        email = _normalize_email(payload)
        if not email:
            raise BadRequest("Email must not be empty.")
        existing = _find_by_email(email)
        if existing is not None and existing.id != user.id:
            raise Conflict("A user with that email already exists.")
        user.email = email

    new_password = _text(payload, "newPassword")
    if new_password:
        if not user.check_password(_text(payload, "currentPassword")):
            raise BadRequest("Current password is incorrect.")
        _validate_password(new_password)
        user.set_password(new_password)

    db.session.commit()
    return jsonify({"message": "Profile updated successfully.", "user": user.to_dict()})


@users_bp.route("/<int:user_id>", methods=["GET"])
@jwt_required()
def get_user(user_id: int):
    require_admin()
    return jsonify({"user": _load_user(user_id).to_dict()})


@users_bp.route("/<int:user_id>", methods=["PUT"])
@jwt_required()
def update_user(user_id: int):
    """Admin update of role, program scope, activation or password."""

    actor = require_admin()
    user = _load_user(user_id)
    payload = parse_json_request(request)

    if "email" in payload:
        email = _normalize_email(payload)
        existing = _find_by_email(email)
        if not email:
            raise BadRequest("Email must not be empty.")
        if existing is not None and existing.id != user.id:
            raise Conflict("A user with that email already exists.")
        user.email = email
    if "role" in payload:
        if payload["role"] not in USER_ROLES:
            raise BadRequest("Role must be one of: {}.".format(", ".join(USER_ROLES)))
        if user.id == actor.id and payload["role"] != "admin":
            raise BadRequest("You cannot remove your own admin role.")
        user.role = payload["role"]
    if "programId" in payload:
        user.program_id = _resolve_program_id(payload.get("programId"))
    if "isActive" in payload:
        if user.id == actor.id and not payload["isActive"]:
            raise BadRequest("You cannot deactivate your own account.")
        user.is_active = bool(payload["isActive"])
    if "emailVerified" in payload:
        user.email_verified = bool(payload["emailVerified"])
    password = _text(payload, "password")
    if password:
        _validate_password(password)
        user.set_password(password)
    if payload.get("unlock"):
        user.login_attempts = 0
        user.locked_until = None

    if user.role == "program_admin" and user.program_id is None:
        raise BadRequest("Program admins must be assigned to a program.")

    db.session.commit()
    return jsonify({"message": "User updated successfully.", "user": user.to_dict()})


@users_bp.route("/<int:user_id>", methods=["DELETE"])
@jwt_required()
def delete_user(user_id: int):
    actor = require_admin()
    user = _load_user(user_id)
    if user.id == actor.id:
        raise BadRequest("You cannot delete your own account.")
    if user.applications.count():
        raise Conflict("Cannot delete a user who has applications.")
    Notification.query.filter_by(user_id=user.id).delete(synchronize_session=False)
    db.session.delete(user)
    db.session.commit()
    return jsonify({"message": "User deleted successfully."})
