"""
Inventory endpoints: items, stock, entries and outputs.

Every entry/output mutation recomputes the item's stock snapshot inside the
same transaction.
"""

from http import HTTPStatus

from flask import Blueprint, jsonify, request

from viomar_shared.db import get_session
from viomar_shared.permissions import PermissionName, require_permission
from viomar_shared.schemas import (
    InventoryEntryRequest,
    InventoryEntryUpdateRequest,
    InventoryItemCreateRequest,
    InventoryItemUpdateRequest,
    InventoryOutputRequest,
    InventoryOutputUpdateRequest,
)
from viomar_shared.security_middleware import rate_limit
from viomar_shared.serializers import (
    paginated_response,
    serialize_inventory_entry,
    serialize_inventory_item,
    serialize_inventory_output,
)
from viomar_shared.services.inventory_stock_service import InventoryStockService
from viomar_shared.validation import (
    parse_active_filter,
    parse_body,
    parse_int,
    parse_pagination,
)

inventory_bp = Blueprint("inventory", __name__)


def _item_filter() -> int | None:
    value = request.args.get("inventoryItemId")
    if value is None or value.strip() == "":
        return None
    return parse_int(value, "inventoryItemId")


@inventory_bp.get("/inventory-stock")
@rate_limit("inventory-stock:get", limit=200, window_seconds=60)
@require_permission(PermissionName.VER_INVENTARIO)
def get_inventory_stock():
    """Live stock (entries minus outputs) for one item, optionally per location."""
    item_id = parse_int(request.args.get("inventoryItemId"), "inventoryItemId")
    location = (request.args.get("location") or "").strip() or None

    with get_session() as session:
        service = InventoryStockService(session)
        service.get_item(item_id)
        stock = service.compute_stock(item_id, location)

    data = {"inventoryItemId": item_id, "stock": stock}
    if location:
        data["location"] = location.upper()
    return jsonify(data), HTTPStatus.OK


@inventory_bp.post("/inventory-stock/<int:item_id>/recompute")
@require_permission(PermissionName.REGISTRAR_ENTRADA)
def recompute_inventory_stock(item_id: int):
    with get_session() as session:
        service = InventoryStockService(session)
        service.get_item(item_id)
        stock = service.recompute(item_id)

    return jsonify({"inventoryItemId": item_id, "stock": stock}), HTTPStatus.OK


@inventory_bp.get("/inventory-items")
@rate_limit("inventory-items:get", limit=200, window_seconds=60)
@require_permission(PermissionName.VER_INVENTARIO)
def list_inventory_items():
    page, page_size, offset = parse_pagination()

    with get_session() as session:
        service = InventoryStockService(session)
        items, total = service.list_items(
            limit=page_size,
            offset=offset,
            search=request.args.get("q"),
            is_active=parse_active_filter(request.args.get("isActive")),
        )
        data = []
        for item in items:
            serialized = serialize_inventory_item(item)
            serialized["stock"] = service.get_stock(item.id)
            data.append(serialized)

    return jsonify(paginated_response(data, total, page, page_size, offset)), HTTPStatus.OK


@inventory_bp.post("/inventory-items")
@rate_limit("inventory-items:post", limit=60, window_seconds=60)
@require_permission(PermissionName.CREAR_ITEM_INVENTARIO)
def create_inventory_item():
    payload = parse_body(InventoryItemCreateRequest)

    with get_session() as session:
        item = InventoryStockService(session).create_item(
            payload.name, payload.unit, payload.min_stock
        )
        data = serialize_inventory_item(item)

    return jsonify(data), HTTPStatus.CREATED


@inventory_bp.put("/inventory-items/<int:item_id>")
@rate_limit("inventory-items:put", limit=60, window_seconds=60)
@require_permission(PermissionName.CREAR_ITEM_INVENTARIO)
def update_inventory_item(item_id: int):
    payload = parse_body(InventoryItemUpdateRequest)

    with get_session() as session:
        item = InventoryStockService(session).update_item(
            item_id, payload.model_dump(exclude_unset=True)
        )
        data = serialize_inventory_item(item)

    return jsonify(data), HTTPStatus.OK


@inventory_bp.delete("/inventory-items/<int:item_id>")
@rate_limit("inventory-items:delete", limit=30, window_seconds=60)
@require_permission(PermissionName.CREAR_ITEM_INVENTARIO)
def delete_inventory_item(item_id: int):
    with get_session() as session:
        InventoryStockService(session).delete_item(item_id)

    return jsonify({"deleted": True}), HTTPStatus.OK


@inventory_bp.get("/inventory-entries")
@rate_limit("inventory-entries:get", limit=200, window_seconds=60)
@require_permission(PermissionName.VER_INVENTARIO)
def list_inventory_entries():
    page, page_size, offset = parse_pagination()
    item_id = _item_filter()

    with get_session() as session:
        entries, total = InventoryStockService(session).list_entries(
            limit=page_size, offset=offset, item_id=item_id
        )
        data = [serialize_inventory_entry(entry) for entry in entries]

    return jsonify(paginated_response(data, total, page, page_size, offset)), HTTPStatus.OK


@inventory_bp.post("/inventory-entries")
@rate_limit("inventory-entries:post", limit=120, window_seconds=60)
@require_permission(PermissionName.REGISTRAR_ENTRADA)
def create_inventory_entry():
    payload = parse_body(InventoryEntryRequest)

    with get_session() as session:
        entry, stock = InventoryStockService(session).record_entry(
            payload.inventory_item_id,
            payload.quantity,
            supplier_id=payload.supplier_id,
            location=payload.location,
        )
        data = serialize_inventory_entry(entry)

    data["stock"] = stock
    return jsonify(data), HTTPStatus.CREATED


@inventory_bp.put("/inventory-entries/<int:entry_id>")
@rate_limit("inventory-entries:put", limit=120, window_seconds=60)
@require_permission(PermissionName.REGISTRAR_ENTRADA)
def update_inventory_entry(entry_id: int):
    payload = parse_body(InventoryEntryUpdateRequest)

    with get_session() as session:
        entry, stock = InventoryStockService(session).update_entry(
            entry_id,
            item_id=payload.inventory_item_id,
            quantity=payload.quantity,
            supplier_id=payload.supplier_id,
            location=payload.location,
        )
        data = serialize_inventory_entry(entry)

    data["stock"] = stock
    return jsonify(data), HTTPStatus.OK


@inventory_bp.delete("/inventory-entries/<int:entry_id>")
@rate_limit("inventory-entries:delete", limit=60, window_seconds=60)
@require_permission(PermissionName.REGISTRAR_ENTRADA)
def delete_inventory_entry(entry_id: int):
    with get_session() as session:
        stock = InventoryStockService(session).delete_entry(entry_id)

    return jsonify({"deleted": True, "stock": stock}), HTTPStatus.OK


@inventory_bp.get("/inventory-outputs")
@rate_limit("inventory-outputs:get", limit=200, window_seconds=60)
@require_permission(PermissionName.VER_INVENTARIO)
def list_inventory_outputs():
    page, page_size, offset = parse_pagination()
    item_id = _item_filter()

    with get_session() as session:
        outputs, total = InventoryStockService(session).list_outputs(
            limit=page_size, offset=offset, item_id=item_id
        )
        data = [serialize_inventory_output(output) for output in outputs]

    return jsonify(paginated_response(data, total, page, page_size, offset)), HTTPStatus.OK


@inventory_bp.post("/inventory-outputs")
@rate_limit("inventory-outputs:post", limit=120, window_seconds=60)
@require_permission(PermissionName.REGISTRAR_SALIDA)
def create_inventory_output():
    payload = parse_body(InventoryOutputRequest)

    with get_session() as session:
        output, stock = InventoryStockService(session).record_output(
            payload.inventory_item_id,
            payload.quantity,
            payload.reason,
            order_item_id=payload.order_item_id,
            location=payload.location,
        )
        data = serialize_inventory_output(output)

    data["stock"] = stock
    return jsonify(data), HTTPStatus.CREATED


@inventory_bp.put("/inventory-outputs/<int:output_id>")
@rate_limit("inventory-outputs:put", limit=120, window_seconds=60)
@require_permission(PermissionName.REGISTRAR_SALIDA)
def update_inventory_output(output_id: int):
    payload = parse_body(InventoryOutputUpdateRequest)

    with get_session() as session:
        output, stock = InventoryStockService(session).update_output(
            output_id,
            item_id=payload.inventory_item_id,
            quantity=payload.quantity,
            reason=payload.reason,
            location=payload.location,
            order_item_id=payload.order_item_id,
        )
        data = serialize_inventory_output(output)

    data["stock"] = stock
    return jsonify(data), HTTPStatus.OK


@inventory_bp.delete("/inventory-outputs/<int:output_id>")
@rate_limit("inventory-outputs:delete", limit=60, window_seconds=60)
@require_permission(PermissionName.REGISTRAR_SALIDA)
def delete_inventory_output(output_id: int):
    with get_session() as session:
        stock = InventoryStockService(session).delete_output(output_id)

    return jsonify({"deleted": True, "stock": stock}), HTTPStatus.OK
