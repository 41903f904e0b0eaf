"""
SQLAlchemy ORM models shared by the back-office services.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    Enum as SAEnum,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    func,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship

from .constants import InventoryLocation, LegalStatus, OrderItemStatus, ThirdPartyType
from .datetime_utils import utcnow_naive


def _enum_column(enum_cls, name: str):
    return SAEnum(
        enum_cls,
        name=name,
        native_enum=False,
        validate_strings=True,
        values_callable=lambda members: [m.value for m in members],
    )


class Base(DeclarativeBase):
    """Declarative base for all ORM models."""


# ---------------------------------------------------------------------------
# Roles & permissions
# ---------------------------------------------------------------------------


class Role(Base):
    __tablename__ = "vio_roles"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)

    permissions: Mapped[list[RolePermission]] = relationship(
        "RolePermission", back_populates="role", cascade="all, delete-orphan"
    )


class Permission(Base):
    __tablename__ = "vio_permissions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(150), unique=True, nullable=False)

    role_bindings: Mapped[list[RolePermission]] = relationship(
        "RolePermission", back_populates="permission", cascade="all, delete-orphan"
    )


class RolePermission(Base):
    __tablename__ = "vio_role_permissions"

    role_id: Mapped[int] = mapped_column(ForeignKey("vio_roles.id"), primary_key=True)
    permission_id: Mapped[int] = mapped_column(ForeignKey("vio_permissions.id"), primary_key=True)

    role: Mapped[Role] = relationship("Role", back_populates="permissions")
    permission: Mapped[Permission] = relationship("Permission", back_populates="role_bindings")


# ---------------------------------------------------------------------------
# Third parties
# ---------------------------------------------------------------------------


class ThirdPartyMixin:
    """
    Columns shared by every third party table.

    ``is_active`` is derived from the legal status ledger and is only written
    by ``LegalStatusService``.
    """

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    identification: Mapped[str | None] = mapped_column(String(20), nullable=True)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    address: Mapped[str | None] = mapped_column(String(255), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, server_default=func.now(), nullable=False
    )


class Client(ThirdPartyMixin, Base):
    __tablename__ = "vio_clients"
    third_party_type = ThirdPartyType.CLIENTE


class Employee(ThirdPartyMixin, Base):
    __tablename__ = "vio_employees"
    third_party_type = ThirdPartyType.EMPLEADO

    role_id: Mapped[int | None] = mapped_column(ForeignKey("vio_roles.id"), nullable=True)
    role: Mapped[Role | None] = relationship("Role")


class Supplier(ThirdPartyMixin, Base):
    __tablename__ = "vio_suppliers"
    third_party_type = ThirdPartyType.PROVEEDOR


class Confectionist(ThirdPartyMixin, Base):
    __tablename__ = "vio_confectionists"
    third_party_type = ThirdPartyType.CONFECCIONISTA


class Packer(ThirdPartyMixin, Base):
    __tablename__ = "vio_packers"
    third_party_type = ThirdPartyType.EMPAQUE


THIRD_PARTY_MODELS: dict[ThirdPartyType, type[ThirdPartyMixin]] = {
    ThirdPartyType.CLIENTE: Client,
    ThirdPartyType.EMPLEADO: Employee,
    ThirdPartyType.PROVEEDOR: Supplier,
    ThirdPartyType.CONFECCIONISTA: Confectionist,
    ThirdPartyType.EMPAQUE: Packer,
}


class LegalStatusRecord(Base):
    """
    Append-only legal status ledger, one table for every third party type.

    Rows are never updated or deleted; corrections are new rows.
    """

    __tablename__ = "vio_legal_status_records"
    __table_args__ = (
        Index("ix_legal_status_party_created", "third_party_type", "third_party_id", "created_at"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    third_party_id: Mapped[int] = mapped_column(Integer, nullable=False)
    third_party_type: Mapped[ThirdPartyType] = mapped_column(
        _enum_column(ThirdPartyType, "third_party_type"), nullable=False
    )
    third_party_name: Mapped[str] = mapped_column(String(255), nullable=False)
    status: Mapped[LegalStatus] = mapped_column(
        _enum_column(LegalStatus, "legal_status_status"), nullable=False
    )
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    reviewed_by: Mapped[str | None] = mapped_column(String(255), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow_naive, nullable=False)


# ---------------------------------------------------------------------------
# Orders
# ---------------------------------------------------------------------------


class Order(Base):
    __tablename__ = "vio_orders"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    order_code: Mapped[str] = mapped_column(String(20), unique=True, nullable=False)
    client_id: Mapped[int | None] = mapped_column(ForeignKey("vio_clients.id"), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, server_default=func.now(), nullable=False
    )

    items: Mapped[list[OrderItem]] = relationship(
        "OrderItem", back_populates="order", cascade="all, delete-orphan"
    )


class OrderItem(Base):
    __tablename__ = "vio_order_items"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    order_id: Mapped[int] = mapped_column(ForeignKey("vio_orders.id"), nullable=False)
    name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    negotiation: Mapped[str | None] = mapped_column(String(50), nullable=True)
    status: Mapped[OrderItemStatus] = mapped_column(
        _enum_column(OrderItemStatus, "order_item_status"),
        nullable=False,
        default=OrderItemStatus.PENDIENTE,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime, server_default=func.now(), nullable=False
    )

    order: Mapped[Order] = relationship("Order", back_populates="items")
    history: Mapped[list[OrderItemStatusHistory]] = relationship(
        "OrderItemStatusHistory",
        back_populates="order_item",
        cascade="all, delete-orphan",
        order_by="OrderItemStatusHistory.created_at.desc()",
    )


class OrderItemStatusHistory(Base):
    __tablename__ = "vio_order_item_status_history"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    order_item_id: Mapped[int] = mapped_column(ForeignKey("vio_order_items.id"), nullable=False)
    status: Mapped[OrderItemStatus] = mapped_column(
        _enum_column(OrderItemStatus, "order_item_status"), nullable=False
    )
    changed_by: Mapped[str | None] = mapped_column(String(64), nullable=True)
    role: Mapped[str | None] = mapped_column(String(100), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow_naive, nullable=False)

    order_item: Mapped[OrderItem] = relationship("OrderItem", back_populates="history")


# ---------------------------------------------------------------------------
# Inventory
# ---------------------------------------------------------------------------


class InventoryItem(Base):
    __tablename__ = "vio_inventory_items"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    unit: Mapped[str | None] = mapped_column(String(50), nullable=True)
    min_stock: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=0, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, server_default=func.now(), nullable=False
    )


class InventoryEntry(Base):
    __tablename__ = "vio_inventory_entries"
    __table_args__ = (CheckConstraint("quantity > 0", name="ck_inventory_entry_qty_positive"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    inventory_item_id: Mapped[int] = mapped_column(
        ForeignKey("vio_inventory_items.id"), nullable=False, index=True
    )
    supplier_id: Mapped[int | None] = mapped_column(ForeignKey("vio_suppliers.id"), nullable=True)
    location: Mapped[InventoryLocation] = mapped_column(
        _enum_column(InventoryLocation, "inventory_location"),
        default=InventoryLocation.BODEGA_PRINCIPAL,
        nullable=False,
    )
    quantity: Mapped[Decimal | None] = mapped_column(Numeric(12, 2), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow_naive, nullable=False)


class InventoryOutput(Base):
    __tablename__ = "vio_inventory_outputs"
    __table_args__ = (CheckConstraint("quantity > 0", name="ck_inventory_output_qty_positive"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    inventory_item_id: Mapped[int] = mapped_column(
        ForeignKey("vio_inventory_items.id"), nullable=False, index=True
    )
    order_item_id: Mapped[int | None] = mapped_column(
        ForeignKey("vio_order_items.id"), nullable=True
    )
    location: Mapped[InventoryLocation] = mapped_column(
        _enum_column(InventoryLocation, "inventory_location"),
        default=InventoryLocation.BODEGA_PRINCIPAL,
        nullable=False,
    )
    quantity: Mapped[Decimal | None] = mapped_column(Numeric(12, 2), nullable=True)
    reason: Mapped[str | None] = mapped_column(String(100), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow_naive, nullable=False)


class InventoryStock(Base):
    """Derived per-item stock snapshot; rebuilt from entries and outputs."""

    __tablename__ = "vio_inventory_stock"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    inventory_item_id: Mapped[int] = mapped_column(
        ForeignKey("vio_inventory_items.id"), unique=True, nullable=False
    )
    available_qty: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=0, nullable=False)
    last_updated: Mapped[datetime] = mapped_column(DateTime, default=utcnow_naive, nullable=False)


# ---------------------------------------------------------------------------
# Notifications
# ---------------------------------------------------------------------------


class Notification(Base):
    __tablename__ = "vio_notifications"
    __table_args__ = (Index("ix_notification_role_created", "role", "created_at"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    title: Mapped[str | None] = mapped_column(Text, nullable=True)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    role: Mapped[str | None] = mapped_column(String(150), nullable=True)
    href: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_read: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow_naive, nullable=False)
