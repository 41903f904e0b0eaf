"""
Order item workflow endpoints: allowed statuses, status changes and the
status history.
"""

from http import HTTPStatus

from flask import Blueprint, g, jsonify, request

from viomar_shared.db import get_session
from viomar_shared.jwt_middleware import get_current_user_id
from viomar_shared.permissions import PermissionName, require_permission
from viomar_shared.schemas import OrderItemStatusRequest
from viomar_shared.security_middleware import rate_limit
from viomar_shared.serializers import (
    paginated_response,
    serialize_order_item,
    serialize_status_history,
)
from viomar_shared.services.order_item_service import (
    change_status,
    get_order_item,
    list_status_history,
    next_statuses_for,
)
from viomar_shared.validation import parse_body, parse_int, parse_pagination

order_items_bp = Blueprint("order_items", __name__)


@order_items_bp.get("/order-items/<int:order_item_id>/allowed-statuses")
@require_permission(PermissionName.VER_PEDIDO)
def allowed_statuses(order_item_id: int):
    """Statuses the caller's role may move this item to next."""
    with get_session() as session:
        data = next_statuses_for(session, order_item_id, g.permission_role)

    return jsonify(data), HTTPStatus.OK


@order_items_bp.patch("/order-items/<int:order_item_id>/status")
@rate_limit("order-items:status", limit=120, window_seconds=60)
@require_permission(PermissionName.CAMBIAR_ESTADO_PEDIDO)
def update_status(order_item_id: int):
    payload = parse_body(OrderItemStatusRequest)
    role = g.permission_role

    with get_session() as session:
        history = change_status(
            session, order_item_id, payload.status, role, changed_by=get_current_user_id()
        )
        data = serialize_order_item(get_order_item(session, order_item_id))

    data["changed"] = history is not None
    return jsonify(data), HTTPStatus.OK


@order_items_bp.get("/status-history/order-items")
@rate_limit("status-history:order-items:get", limit=200, window_seconds=60)
@require_permission(PermissionName.VER_HISTORIAL_ESTADO)
def order_item_status_history():
    page, page_size, offset = parse_pagination()
    raw_item_id = (request.args.get("orderItemId") or "").strip()
    order_item_id = parse_int(raw_item_id, "orderItemId") if raw_item_id else None

    with get_session() as session:
        rows, total = list_status_history(session, page_size, offset, order_item_id)
        data = [serialize_status_history(row) for row in rows]

    return jsonify(paginated_response(data, total, page, page_size, offset)), HTTPStatus.OK
