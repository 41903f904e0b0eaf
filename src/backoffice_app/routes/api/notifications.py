"""
Notifications addressed to the caller's role.
"""

from http import HTTPStatus

from flask import Blueprint, g, jsonify, request

from viomar_shared.constants import Roles
from viomar_shared.datetime_utils import parse_date_only
from viomar_shared.db import get_session
from viomar_shared.jwt_middleware import get_current_role, jwt_required
from viomar_shared.permissions import PermissionName, require_permission
from viomar_shared.schemas import MarkNotificationsReadRequest
from viomar_shared.security_middleware import rate_limit
from viomar_shared.serializers import paginated_response, serialize_notification
from viomar_shared.services.notification_service import list_notifications, mark_all_read, mark_read
from viomar_shared.validation import parse_body, parse_pagination

notifications_bp = Blueprint("notifications", __name__)


@notifications_bp.get("/notifications")
@rate_limit("notifications:get", limit=200, window_seconds=60)
@jwt_required
def get_notifications():
    """
    Notifications of the caller's role; an administrator may read another
    role's notifications with ``?role=``.
    """
    page, page_size, offset = parse_pagination()
    token_role = get_current_role()
    role_param = (request.args.get("role") or "").strip()
    role = role_param if token_role == Roles.ADMINISTRADOR.value and role_param else token_role

    if not role:
        return jsonify(paginated_response([], 0, page, page_size, offset, unreadCount=0))

    unread_only = (request.args.get("unreadOnly") or "").strip().lower() in {"1", "true"}
    with get_session() as session:
        items, total, unread = list_notifications(
            session,
            role,
            limit=page_size,
            offset=offset,
            unread_only=unread_only,
            start_date=parse_date_only(request.args.get("startDate")),
            end_date=parse_date_only(request.args.get("endDate")),
        )
        data = [serialize_notification(item) for item in items]

    return jsonify(
        paginated_response(data, total, page, page_size, offset, unreadCount=unread)
    ), HTTPStatus.OK


@notifications_bp.patch("/notifications")
@rate_limit("notifications:patch", limit=200, window_seconds=60)
@jwt_required
def mark_notifications_read():
    role = get_current_role()
    if not role:
        return jsonify({"error": "Forbidden"}), HTTPStatus.FORBIDDEN

    payload = parse_body(MarkNotificationsReadRequest)
    with get_session() as session:
        updated = mark_all_read(session, role, payload.ids)

    return jsonify({"updated": updated}), HTTPStatus.OK


@notifications_bp.patch("/notifications/<int:notification_id>")
@rate_limit("notifications:patch-one", limit=200, window_seconds=60)
@require_permission(PermissionName.VER_NOTIFICACION)
def mark_notification_read(notification_id: int):
    with get_session() as session:
        data = serialize_notification(mark_read(session, notification_id, g.permission_role))

    return jsonify(data), HTTPStatus.OK
