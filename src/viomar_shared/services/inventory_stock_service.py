"""
Inventory stock aggregation.

Stock is always ``sum(entries) - sum(outputs)``. ``InventoryStock`` rows are
a snapshot of that sum, rewritten in the same transaction as every entry or
output mutation; they are never a source of truth.
"""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Any

from sqlalchemy import delete, func, select
from sqlalchemy.orm import Session

from ..constants import InventoryLocation, ThirdPartyType
from ..datetime_utils import utcnow_naive
from ..errors import ConflictError, NotFoundError, ValidationError
from ..models import InventoryEntry, InventoryItem, InventoryOutput, InventoryStock, Supplier
from ..validation import require_positive_quantity, to_number
from .legal_status_service import check_operability
from .notification_service import notify_permission_holders

logger = logging.getLogger(__name__)

INVENTORY_NOTIFICATION_PERMISSION = "VER_INVENTARIO"
INVENTORY_HREF = "/catalog"
INSUFFICIENT_STOCK_MESSAGE = "Stock insuficiente"
ITEM_EDITABLE_FIELDS = ("name", "unit", "min_stock", "is_active")


def _format_qty(value: float) -> str:
    return f"{value:g}"


def _parse_location(value) -> InventoryLocation | None:
    if value is None or value == "":
        return None
    if isinstance(value, InventoryLocation):
        return value
    try:
        return InventoryLocation(str(value).strip().upper())
    except ValueError:
        raise ValidationError("Ubicación inválida")


class InventoryStockService:
    """Stock computations and stock-affecting mutations bound to a session."""

    def __init__(self, session: Session):
        self.session = session

    def get_item(self, item_id: int) -> InventoryItem:
        item = self.session.get(InventoryItem, item_id)
        if item is None:
            raise NotFoundError("Item de inventario no encontrado")
        return item

    def create_item(self, name: str, unit: str | None = None, min_stock=0) -> InventoryItem:
        item = InventoryItem(name=name, unit=unit, min_stock=Decimal(str(to_number(min_stock))))
        self.session.add(item)
        self.session.flush()
        return item

    def list_items(
        self,
        limit: int,
        offset: int,
        search: str | None = None,
        is_active: bool | None = None,
    ) -> tuple[list[InventoryItem], int]:
        filters = []
        if search:
            filters.append(InventoryItem.name.ilike(f"%{search.strip()}%"))
        if is_active is not None:
            filters.append(InventoryItem.is_active.is_(is_active))

        total = self.session.execute(
            select(func.count(InventoryItem.id)).where(*filters)
        ).scalar_one()
        items = list(
            self.session.execute(
                select(InventoryItem)
                .where(*filters)
                .order_by(InventoryItem.name, InventoryItem.id)
                .limit(limit)
                .offset(offset)
            ).scalars()
        )
        return items, total

    def update_item(self, item_id: int, changes: dict[str, Any]) -> InventoryItem:
        item = self.get_item(item_id)
        for key in ITEM_EDITABLE_FIELDS:
            if key not in changes:
                continue
            value = changes[key]
            if key == "name" and not value:
                raise ValidationError("El nombre es requerido")
            if key == "is_active" and value is None:
                raise ValidationError("isActive inválido")
            if key == "min_stock":
                value = Decimal(str(to_number(value)))
            setattr(item, key, value)
        self.session.flush()
        return item

    def delete_item(self, item_id: int) -> None:
        """
        Delete an item without movements. Items with entries or outputs can
        only be deactivated.
        """
        item = self.get_item(item_id)
        movements = self.session.execute(
            select(func.count(InventoryEntry.id)).where(InventoryEntry.inventory_item_id == item.id)
        ).scalar_one() + self.session.execute(
            select(func.count(InventoryOutput.id)).where(InventoryOutput.inventory_item_id == item.id)
        ).scalar_one()
        if movements:
            raise ConflictError("El item tiene movimientos registrados; desactívelo en su lugar")

        self.session.execute(delete(InventoryStock).where(InventoryStock.inventory_item_id == item.id))
        self.session.delete(item)
        self.session.flush()
        logger.info(f"Inventory item {item_id} deleted")

    def compute_stock(self, item_id: int, location=None) -> float:
        """Entries minus outputs for one item, optionally for one location."""
        location = _parse_location(location)

        entries = select(func.coalesce(func.sum(InventoryEntry.quantity), 0)).where(
            InventoryEntry.inventory_item_id == item_id
        )
        outputs = select(func.coalesce(func.sum(InventoryOutput.quantity), 0)).where(
            InventoryOutput.inventory_item_id == item_id
        )
        if location is not None:
            entries = entries.where(InventoryEntry.location == location)
            outputs = outputs.where(InventoryOutput.location == location)

        entries_total = to_number(self.session.execute(entries).scalar())
        outputs_total = to_number(self.session.execute(outputs).scalar())
        return entries_total - outputs_total

    def recompute(self, item_id: int) -> float:
        """Rewrite the stock snapshot of ``item_id``; idempotent."""
        stock = self.compute_stock(item_id)

        snapshot = self.session.execute(
            select(InventoryStock).where(InventoryStock.inventory_item_id == item_id)
        ).scalar_one_or_none()
        if snapshot is None:
            snapshot = InventoryStock(inventory_item_id=item_id)
            self.session.add(snapshot)

        snapshot.available_qty = Decimal(str(stock))
        snapshot.last_updated = utcnow_naive()
        self.session.flush()
        return stock

    def get_stock(self, item_id: int) -> float | None:
        """Snapshot value, or None when the item was never recomputed."""
        snapshot = self.session.execute(
            select(InventoryStock).where(InventoryStock.inventory_item_id == item_id)
        ).scalar_one_or_none()
        return to_number(snapshot.available_qty) if snapshot is not None else None

    def list_entries(
        self, limit: int, offset: int, item_id: int | None = None
    ) -> tuple[list[InventoryEntry], int]:
        return self._list_movements(InventoryEntry, limit, offset, item_id)

    def list_outputs(
        self, limit: int, offset: int, item_id: int | None = None
    ) -> tuple[list[InventoryOutput], int]:
        return self._list_movements(InventoryOutput, limit, offset, item_id)

    def _list_movements(self, model, limit: int, offset: int, item_id: int | None):
        filters = []
        if item_id is not None:
            filters.append(model.inventory_item_id == item_id)

        total = self.session.execute(select(func.count(model.id)).where(*filters)).scalar_one()
        rows = list(
            self.session.execute(
                select(model)
                .where(*filters)
                .order_by(model.created_at.desc(), model.id.desc())
                .limit(limit)
                .offset(offset)
            ).scalars()
        )
        return rows, total

    def _ensure_supplier_can_operate(self, supplier_id: int | None) -> None:
        if supplier_id is None:
            return
        if self.session.get(Supplier, supplier_id) is None:
            raise NotFoundError("Proveedor no encontrado")
        operability = check_operability(ThirdPartyType.PROVEEDOR, supplier_id, session=self.session)
        if not operability.can_operate:
            raise ConflictError(operability.reason)

    def record_entry(
        self,
        item_id: int,
        quantity,
        supplier_id: int | None = None,
        location=InventoryLocation.BODEGA_PRINCIPAL,
    ) -> tuple[InventoryEntry, float]:
        """
        Register stock received; a supplier, when given, must be able to
        operate legally. Returns the entry and the recomputed stock.
        """
        qty = require_positive_quantity(quantity)
        item = self.get_item(item_id)
        self._ensure_supplier_can_operate(supplier_id)

        entry = InventoryEntry(
            inventory_item_id=item.id,
            supplier_id=supplier_id,
            location=_parse_location(location) or InventoryLocation.BODEGA_PRINCIPAL,
            quantity=Decimal(str(qty)),
        )
        self.session.add(entry)
        self.session.flush()

        stock = self.recompute(item.id)
        notify_permission_holders(
            self.session,
            INVENTORY_NOTIFICATION_PERMISSION,
            "Entrada de inventario",
            f"Entrada registrada: {item.name} +{_format_qty(qty)}.",
            INVENTORY_HREF,
        )
        logger.info(f"Inventory entry {entry.id} for item {item.id}: +{qty} (stock={stock})")
        return entry, stock

    def update_entry(
        self,
        entry_id: int,
        item_id: int | None = None,
        quantity=None,
        supplier_id: int | None = None,
        location=None,
    ) -> tuple[InventoryEntry, float]:
        entry = self.session.get(InventoryEntry, entry_id)
        if entry is None:
            raise NotFoundError("Entrada de inventario no encontrada")

        previous_item_id = entry.inventory_item_id
        if item_id is not None and item_id != previous_item_id:
            entry.inventory_item_id = self.get_item(item_id).id
        if quantity is not None:
            entry.quantity = Decimal(str(require_positive_quantity(quantity)))
        if supplier_id is not None and supplier_id != entry.supplier_id:
            self._ensure_supplier_can_operate(supplier_id)
            entry.supplier_id = supplier_id
        if location is not None:
            entry.location = _parse_location(location)
        self.session.flush()

        if previous_item_id != entry.inventory_item_id:
            self.recompute(previous_item_id)
        stock = self.recompute(entry.inventory_item_id)
        return entry, stock

    def delete_entry(self, entry_id: int) -> float:
        entry = self.session.get(InventoryEntry, entry_id)
        if entry is None:
            raise NotFoundError("Entrada de inventario no encontrada")
        item_id = entry.inventory_item_id
        self.session.delete(entry)
        self.session.flush()
        return self.recompute(item_id)

    def record_output(
        self,
        item_id: int,
        quantity,
        reason: str,
        order_item_id: int | None = None,
        location=InventoryLocation.BODEGA_PRINCIPAL,
    ) -> tuple[InventoryOutput, float]:
        """Register stock leaving; the location must hold enough stock."""
        qty = require_positive_quantity(quantity)
        reason = (reason or "").strip()
        if not reason:
            raise ValidationError("El motivo es requerido")
        item = self.get_item(item_id)
        location = _parse_location(location) or InventoryLocation.BODEGA_PRINCIPAL

        if qty > self.compute_stock(item.id, location):
            raise ValidationError(INSUFFICIENT_STOCK_MESSAGE)

        output = InventoryOutput(
            inventory_item_id=item.id,
            order_item_id=order_item_id,
            location=location,
            quantity=Decimal(str(qty)),
            reason=reason,
        )
        self.session.add(output)
        self.session.flush()

        stock = self.recompute(item.id)
        notify_permission_holders(
            self.session,
            INVENTORY_NOTIFICATION_PERMISSION,
            "Salida de inventario",
            f"Salida registrada: {item.name} -{_format_qty(qty)}.",
            INVENTORY_HREF,
        )
        logger.info(f"Inventory output {output.id} for item {item.id}: -{qty} (stock={stock})")
        return output, stock

    def update_output(
        self,
        output_id: int,
        item_id: int | None = None,
        quantity=None,
        reason: str | None = None,
        location=None,
        order_item_id: int | None = None,
    ) -> tuple[InventoryOutput, float]:
        """
        Edit an output. The target location must hold the new quantity; the
        output's own quantity counts as available when it stays on the same
        item and location.
        """
        output = self.session.get(InventoryOutput, output_id)
        if output is None:
            raise NotFoundError("Salida de inventario no encontrada")

        previous_item_id = output.inventory_item_id
        target_item_id = self.get_item(item_id).id if item_id is not None else previous_item_id
        target_location = _parse_location(location) or output.location
        qty = (
            require_positive_quantity(quantity)
            if quantity is not None
            else to_number(output.quantity)
        )
        if reason is not None:
            reason = reason.strip()
            if not reason:
                raise ValidationError("El motivo es requerido")

        available = self.compute_stock(target_item_id, target_location)
        if target_item_id == previous_item_id and target_location == output.location:
            available += to_number(output.quantity)
        if qty > available:
            raise ValidationError(INSUFFICIENT_STOCK_MESSAGE)

        output.inventory_item_id = target_item_id
        output.location = target_location
        output.quantity = Decimal(str(qty))
        if reason is not None:
            output.reason = reason
        if order_item_id is not None:
            output.order_item_id = order_item_id
        self.session.flush()

        if previous_item_id != target_item_id:
            self.recompute(previous_item_id)
        stock = self.recompute(target_item_id)
        logger.info(f"Inventory output {output.id} updated for item {target_item_id} (stock={stock})")
        return output, stock

    def delete_output(self, output_id: int) -> float:
        output = self.session.get(InventoryOutput, output_id)
        if output is None:
            raise NotFoundError("Salida de inventario no encontrada")
        item_id = output.inventory_item_id
        self.session.delete(output)
        self.session.flush()
        return self.recompute(item_id)
