"""
Order item status changes, checked against the status-role policy and
recorded in the status history.
"""

from __future__ import annotations

import logging

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from ..errors import ForbiddenError, NotFoundError, ValidationError
from ..models import OrderItem, OrderItemStatusHistory
from .order_status_policy import allowed_next_statuses, can_change_status, parse_status

logger = logging.getLogger(__name__)


def get_order_item(session: Session, order_item_id: int) -> OrderItem:
    item = session.get(OrderItem, order_item_id)
    if item is None:
        raise NotFoundError("Item de pedido no encontrado")
    return item


def next_statuses_for(session: Session, order_item_id: int, role: str | None) -> dict[str, object]:
    item = get_order_item(session, order_item_id)
    return {
        "orderItemId": item.id,
        "current": item.status.value,
        "allowed": [status.value for status in allowed_next_statuses(role, item.status)],
    }


def change_status(
    session: Session,
    order_item_id: int,
    target,
    role: str | None,
    changed_by: str | None = None,
) -> OrderItemStatusHistory | None:
    """
    Move an order item to ``target``.

    Returns the new history row, or None when the item already had that
    status (no row is written for a no-op).
    """
    target_status = parse_status(target)
    if target_status is None:
        raise ValidationError("Estado inválido")

    item = get_order_item(session, order_item_id)
    if not can_change_status(role, item.status, target_status):
        raise ForbiddenError("No tienes permiso para cambiar a este estado")

    if item.status == target_status:
        return None

    previous = item.status
    item.status = target_status
    history = OrderItemStatusHistory(
        order_item_id=item.id, status=target_status, changed_by=changed_by, role=role
    )
    session.add(history)
    session.flush()
    logger.info(
        f"Order item {item.id} status {previous.value} -> {target_status.value} by role {role}"
    )
    return history


def list_status_history(
    session: Session, limit: int, offset: int, order_item_id: int | None = None
) -> tuple[list[OrderItemStatusHistory], int]:
    filters = []
    if order_item_id is not None:
        filters.append(OrderItemStatusHistory.order_item_id == order_item_id)

    total = session.execute(
        select(func.count(OrderItemStatusHistory.id)).where(*filters)
    ).scalar_one()
    rows = list(
        session.execute(
            select(OrderItemStatusHistory)
            .where(*filters)
            .order_by(OrderItemStatusHistory.created_at.desc(), OrderItemStatusHistory.id.desc())
            .limit(limit)
            .offset(offset)
        ).scalars()
    )
    return rows, total
