"""
Serializers for consistent API responses.
"""

from typing import Any

from .datetime_utils import isoformat_or_none
from .models import (
    InventoryEntry,
    InventoryItem,
    InventoryOutput,
    LegalStatusRecord,
    Notification,
    OrderItem,
    OrderItemStatusHistory,
    Permission,
    Role,
    ThirdPartyMixin,
)
from .validation import to_number


def _enum_value(value):
    return getattr(value, "value", value)


def serialize_legal_record(record: LegalStatusRecord) -> dict[str, Any]:
    return {
        "id": record.id,
        "thirdPartyId": record.third_party_id,
        "thirdPartyType": _enum_value(record.third_party_type),
        "thirdPartyName": record.third_party_name,
        "status": _enum_value(record.status),
        "notes": record.notes,
        "reviewedBy": record.reviewed_by,
        "createdAt": isoformat_or_none(record.created_at),
    }


def serialize_third_party(entity: ThirdPartyMixin) -> dict[str, Any]:
    data = {
        "id": entity.id,
        "type": _enum_value(entity.third_party_type),
        "name": entity.name,
        "identification": entity.identification,
        "email": entity.email,
        "address": entity.address,
        "isActive": entity.is_active,
        "createdAt": isoformat_or_none(entity.created_at),
    }
    if hasattr(entity, "role_id"):
        data["roleId"] = entity.role_id
    return data


def serialize_inventory_item(item: InventoryItem) -> dict[str, Any]:
    return {
        "id": item.id,
        "name": item.name,
        "unit": item.unit,
        "minStock": to_number(item.min_stock),
        "isActive": item.is_active,
    }


def serialize_inventory_entry(entry: InventoryEntry) -> dict[str, Any]:
    return {
        "id": entry.id,
        "inventoryItemId": entry.inventory_item_id,
        "supplierId": entry.supplier_id,
        "location": _enum_value(entry.location),
        "quantity": to_number(entry.quantity),
        "createdAt": isoformat_or_none(entry.created_at),
    }


def serialize_inventory_output(output: InventoryOutput) -> dict[str, Any]:
    return {
        "id": output.id,
        "inventoryItemId": output.inventory_item_id,
        "orderItemId": output.order_item_id,
        "location": _enum_value(output.location),
        "quantity": to_number(output.quantity),
        "reason": output.reason,
        "createdAt": isoformat_or_none(output.created_at),
    }


def serialize_order_item(item: OrderItem) -> dict[str, Any]:
    return {
        "id": item.id,
        "orderId": item.order_id,
        "name": item.name,
        "quantity": item.quantity,
        "negotiation": item.negotiation,
        "status": _enum_value(item.status),
    }


def serialize_status_history(row: OrderItemStatusHistory) -> dict[str, Any]:
    return {
        "id": row.id,
        "orderItemId": row.order_item_id,
        "status": _enum_value(row.status),
        "changedBy": row.changed_by,
        "role": row.role,
        "createdAt": isoformat_or_none(row.created_at),
    }


def serialize_notification(notification: Notification) -> dict[str, Any]:
    return {
        "id": notification.id,
        "title": notification.title,
        "message": notification.message,
        "role": notification.role,
        "href": notification.href,
        "isRead": notification.is_read,
        "createdAt": isoformat_or_none(notification.created_at),
    }


def serialize_role(role: Role) -> dict[str, Any]:
    return {"id": role.id, "name": role.name}


def serialize_permission(permission: Permission) -> dict[str, Any]:
    return {"id": permission.id, "name": permission.name}


def paginated_response(
    items: list[Any],
    total: int,
    page: int,
    page_size: int,
    offset: int,
    **extra: Any,
) -> dict[str, Any]:
    """
    Create a standardized paginated response.

    Args:
        items: Serialized items for the current page
        total: Total count across all pages
        page: Current page number (1-indexed)
        page_size: Items per page
        offset: Offset of the first item of the page
    """
    response = {
        "items": items,
        "page": page,
        "pageSize": page_size,
        "total": total,
        "hasNextPage": offset + len(items) < total,
    }
    response.update(extra)
    return response


def error_response(error: str, details: dict[str, Any] | None = None) -> dict[str, Any]:
    """Create a standardized error body."""
    response: dict[str, Any] = {"error": error}
    if details:
        response.update(details)
    return response
