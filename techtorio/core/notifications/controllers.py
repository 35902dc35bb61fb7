"""Notification controllers (API)."""

from __future__ import annotations

from flask import Blueprint, jsonify, request
from flask_jwt_extended import jwt_required

from techtorio.core.notifications.schemas import serialize_notification
from techtorio.core.notifications.services import (
    count_unread,
    list_notifications,
    mark_all_as_read,
    mark_as_read,
)
from techtorio.core.utils.decorators import current_user_id

notifications_bp = Blueprint("notifications_api", __name__)


@notifications_bp.get("")
@jwt_required()
def api_list_notifications():
    user_id = current_user_id()
    unread_only = request.args.get("unread", "").lower() in ("1", "true", "yes")
    items = list_notifications(user_id, unread_only=unread_only)
    return jsonify(
        {
            "ok": True,
            "notifications": [serialize_notification(n) for n in items],
            "unread_count": count_unread(user_id),
        }
    )


@notifications_bp.post("/<int:notification_id>/read")
@jwt_required()
def api_mark_read(notification_id: int):
    notification = mark_as_read(current_user_id(), notification_id)
    if not notification:
        return jsonify({"ok": False, "error": "not_found"}), 404
    return jsonify({"ok": True, "notification": serialize_notification(notification)})


@notifications_bp.post("/read-all")
@jwt_required()
def api_mark_all_read():
    updated = mark_all_as_read(current_user_id())
    return jsonify({"ok": True, "updated": updated})
