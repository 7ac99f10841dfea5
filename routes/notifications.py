"""Per-user notifications blueprint."""

from __future__ import annotations

from datetime import datetime
from http import HTTPStatus

from flask import Blueprint, jsonify, request
from flask_jwt_extended import jwt_required
from werkzeug.exceptions import BadRequest, NotFound

from models import db
from models.notification import NOTIFICATION_TYPES, Notification
from models.user import USER_ROLES, User
from services.applications import parse_date
from services.notifications import notify
from utils.auth import require_admin, require_user
from utils.pagination import page_args, page_meta, parse_bool_arg
from utils.request_validation import parse_json_request, require_int

notifications_bp = Blueprint("notifications", __name__)


def _own_query(user: User):
    return Notification.unexpired_filter(Notification.query.filter_by(user_id=user.id))


def _unread_count(user: User) -> int:
    return _own_query(user).filter(Notification.is_read.is_(False)).count()


def _get_own_or_404(user: User, notification_id: int) -> Notification:
    notification = db.session.get(Notification, notification_id)
    if notification is None or notification.user_id != user.id:
        raise NotFound("Notification not found.")
    return notification


def _message_fields(data: dict) -> dict:
    title = (data.get("title") or "").strip()
    message = (data.get("message") or "").strip()
    if not title or not message:
        raise BadRequest("title and message are required.")
    type_ = data.get("type") or "info"
    if type_ not in NOTIFICATION_TYPES:
        raise BadRequest(
            "type must be one of {}.".format(", ".join(NOTIFICATION_TYPES))
        )
    expires_at = None
    if data.get("expiresAt"):
        try:
            expires_at = datetime.fromisoformat(
                str(data["expiresAt"]).replace("Z", "+00:00")
            ).replace(tzinfo=None)
        except ValueError:
            raise BadRequest("expiresAt must be ISO 8601 format.") from None
    return {
        "title": title,
        "message": message,
        "type_": type_,
        "action_url": data.get("actionUrl"),
        "expires_at": expires_at,
    }


def _send(user_id: int, fields: dict) -> Notification:
    notification = notify(
        user_id,
        fields["title"],
        fields["message"],
        type_=fields["type_"],
        action_url=fields["action_url"],
    )
    notification.expires_at = fields["expires_at"]
    return notification


@notifications_bp.route("", methods=["GET"])
@jwt_required()
def list_notifications():
    user = require_user()
    page, limit = page_args()
    query = _own_query(user)

    is_read = parse_bool_arg("isRead")
    if is_read is not None:
        query = query.filter(Notification.is_read.is_(is_read))
    type_ = request.args.get("type")
    if type_:
        if type_ not in NOTIFICATION_TYPES:
            raise BadRequest("Invalid notification type.")
        query = query.filter(Notification.type == type_)

    pagination = query.order_by(
        Notification.date_created.desc(), Notification.id.desc()
    ).paginate(page=page, per_page=limit, error_out=False)
    return jsonify(
        {
            "docs": [item.to_dict() for item in pagination.items],
            **page_meta(pagination),
            "unreadCount": _unread_count(user),
        }
    )


@notifications_bp.route("/unread-count", methods=["GET"])
@jwt_required()
def unread_count():
    user = require_user()
    return jsonify({"unreadCount": _unread_count(user)})


@notifications_bp.route("/<int:notification_id>/read", methods=["PUT"])
@jwt_required()
def mark_read(notification_id: int):
    user = require_user()
    notification = _get_own_or_404(user, notification_id)
    notification.is_read = True
    db.session.commit()
    return jsonify({"notification": notification.to_dict()})


@notifications_bp.route("/mark-all-read", methods=["PUT"])
@jwt_required()
def mark_all_read():
    user = require_user()
    updated = (
        Notification.query.filter_by(user_id=user.id, is_read=False)
        .update({"is_read": True}, synchronize_session=False)
    )
    db.session.commit()
    return jsonify({"message": "All notifications marked as read.", "modifiedCount": updated})


@notifications_bp.route("", methods=["POST"])
@jwt_required()
def create_notification():
    require_admin()
    data = parse_json_request(request, required_keys=["userId"])
    user_id = require_int(data["userId"], "userId")
    if db.session.get(User, user_id) is None:
        raise NotFound("User not found.")
    notification = _send(user_id, _message_fields(data))
    db.session.commit()
    return (
        jsonify({"message": "Notification created.", "notification": notification.to_dict()}),
        HTTPStatus.CREATED,
    )


@notifications_bp.route("/bulk", methods=["POST"])
@jwt_required()
def create_bulk_notifications():
    """Send one message to a list of users or to every user of a role."""

    require_admin()
    data = parse_json_request(request)
    fields = _message_fields(data)

    if data.get("userIds"):
        if not isinstance(data["userIds"], list):
            raise BadRequest("userIds must be a list.")
        ids = [require_int(value, "userIds") for value in data["userIds"]]
        recipients = [row.id for row in User.query.filter(User.id.in_(ids)).all()]
    elif data.get("role"):
        if data["role"] not in USER_ROLES:
            raise BadRequest("Invalid role.")
        recipients = [
            row.id
            for row in User.query.filter_by(role=data["role"], is_active=True).all()
        ]
    else:
        raise BadRequest("userIds or role is required.")

    for user_id in recipients:
        _send(user_id, fields)
    db.session.commit()
    return (
        jsonify({"message": "Notifications created.", "createdCount": len(recipients)}),
        HTTPStatus.CREATED,
    )


@notifications_bp.route("/clear-read", methods=["DELETE"])
@jwt_required()
def clear_read():
    user = require_user()
    deleted = Notification.query.filter_by(user_id=user.id, is_read=True).delete(
        synchronize_session=False
    )
    db.session.commit()
    return jsonify({"message": "Read notifications cleared.", "deletedCount": deleted})


@notifications_bp.route("/cleanup-expired", methods=["DELETE"])
@jwt_required()
def cleanup_expired():
    require_admin()
    try:
        before = parse_date(request.args.get("before"))
    except ValueError:
        raise BadRequest("before must be an ISO 8601 date.") from None
    cutoff = datetime.combine(before, datetime.min.time()) if before else datetime.utcnow()
    deleted = Notification.query.filter(
        Notification.expires_at.isnot(None), Notification.expires_at <= cutoff
    ).delete(synchronize_session=False)
    db.session.commit()
    return jsonify({"message": "Expired notifications removed.", "deletedCount": deleted})


@notifications_bp.route("/<int:notification_id>", methods=["DELETE"])
@jwt_required()
def delete_notification(notification_id: int):
    user = require_user()
    notification = _get_own_or_404(user, notification_id)
    db.session.delete(notification)
    db.session.commit()
    return jsonify({"message": "Notification deleted."})
