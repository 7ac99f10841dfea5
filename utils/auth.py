"""Resolve the acting user from the JWT and enforce role gates."""

from __future__ import annotations

from typing import Iterable

from flask_jwt_extended import get_jwt_identity
from werkzeug.exceptions import Forbidden, Unauthorized

from models import db
from models.user import User


def get_current_user() -> User | None:
    try:
        identity = get_jwt_identity()
    except RuntimeError:
        return None
    if identity is None:
        return None
    try:
        user_id = int(identity)
    except (TypeError, ValueError):
        return None
    return db.session.get(User, user_id)


def require_user() -> User:
    user = get_current_user()
    if user is None:
        raise Unauthorized("User not found.")
    if not user.is_active:
        raise Forbidden("This account has been deactivated.")
    return user


def require_role(*roles: str) -> User:
    user = require_user()
    if user.role not in roles:
        raise Forbidden(_role_message(roles))
    return user


def require_admin() -> User:
    return require_role("admin")


def require_staff() -> User:
    return require_role("admin", "program_admin")


def _role_message(roles: Iterable[str]) -> str:
    roles = tuple(roles)
    if roles == ("admin",):
        return "Admin privileges required."
    return "Requires one of the roles: {}.".format(", ".join(roles))

