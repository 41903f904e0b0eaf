"""
Pydantic schemas for request validation.

Every request model forbids unknown fields. Field names follow the JSON
API (camelCase) through aliases.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .constants import MAX_EXPIRY_EXTRA_DAYS, InventoryLocation


class RequestModel(BaseModel):
    model_config = ConfigDict(extra="forbid", populate_by_name=True, str_strip_whitespace=True)


class LegalStatusRequest(RequestModel):
    # Validated against LegalStatus by the ledger so the error message is
    # the same for API and service callers.
    status: str
    notes: str | None = Field(None, max_length=2000)
    reviewed_by: str | None = Field(None, alias="reviewedBy", max_length=255)


class ThirdPartyCreateRequest(RequestModel):
    name: str = Field(..., min_length=1, max_length=255)
    identification: str | None = Field(None, max_length=20)
    email: str | None = Field(None, max_length=255, pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
    address: str | None = Field(None, max_length=255)
    role_id: int | None = Field(None, alias="roleId", gt=0)


class ThirdPartyUpdateRequest(RequestModel):
    name: str | None = Field(None, min_length=1, max_length=255)
    identification: str | None = Field(None, max_length=20)
    email: str | None = Field(None, max_length=255, pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
    address: str | None = Field(None, max_length=255)
    role_id: int | None = Field(None, alias="roleId", gt=0)


class InventoryItemCreateRequest(RequestModel):
    name: str = Field(..., min_length=1, max_length=255)
    unit: str | None = Field(None, max_length=50)
    min_stock: Decimal = Field(
        Decimal("0"), alias="minStock", ge=0, max_digits=12, decimal_places=2
    )


class InventoryItemUpdateRequest(RequestModel):
    name: str | None = Field(None, min_length=1, max_length=255)
    unit: str | None = Field(None, max_length=50)
    min_stock: Decimal | None = Field(
        None, alias="minStock", ge=0, max_digits=12, decimal_places=2
    )
    is_active: bool | None = Field(None, alias="isActive")


class InventoryEntryRequest(RequestModel):
    inventory_item_id: int = Field(..., alias="inventoryItemId", gt=0)
    supplier_id: int | None = Field(None, alias="supplierId", gt=0)
    location: InventoryLocation = InventoryLocation.BODEGA_PRINCIPAL
    quantity: Decimal = Field(..., gt=0, max_digits=12, decimal_places=2)


class InventoryEntryUpdateRequest(RequestModel):
    inventory_item_id: int | None = Field(None, alias="inventoryItemId", gt=0)
    supplier_id: int | None = Field(None, alias="supplierId", gt=0)
    location: InventoryLocation | None = None
    quantity: Decimal | None = Field(None, gt=0, max_digits=12, decimal_places=2)


class InventoryOutputRequest(RequestModel):
    inventory_item_id: int = Field(..., alias="inventoryItemId", gt=0)
    order_item_id: int | None = Field(None, alias="orderItemId", gt=0)
    location: InventoryLocation = InventoryLocation.BODEGA_PRINCIPAL
    quantity: Decimal = Field(..., gt=0, max_digits=12, decimal_places=2)
    reason: str = Field(..., min_length=1, max_length=100)


class InventoryOutputUpdateRequest(RequestModel):
    inventory_item_id: int | None = Field(None, alias="inventoryItemId", gt=0)
    order_item_id: int | None = Field(None, alias="orderItemId", gt=0)
    location: InventoryLocation | None = None
    quantity: Decimal | None = Field(None, gt=0, max_digits=12, decimal_places=2)
    reason: str | None = Field(None, min_length=1, max_length=100)


class OrderItemStatusRequest(RequestModel):
    status: str = Field(..., min_length=1, max_length=50)


class DeliveryEstimateItem(RequestModel):
    negotiation: str | None = Field(None, max_length=50)
    additions: list[str] = Field(default_factory=list)

    @field_validator("additions", mode="before")
    @classmethod
    def drop_blank_additions(cls, v):
        if v is None:
            return []
        return [str(item) for item in v if str(item).strip()]


class DeliveryEstimateRequest(RequestModel):
    items: list[DeliveryEstimateItem] = Field(default_factory=list)
    from_date: date | None = Field(None, alias="fromDate")
    expiry_extra_days: int | None = Field(
        None, alias="expiryExtraDays", ge=0, le=MAX_EXPIRY_EXTRA_DAYS
    )


class RoleCreateRequest(RequestModel):
    name: str = Field(..., min_length=1, max_length=100)


class PermissionCreateRequest(RequestModel):
    name: str = Field(..., min_length=1, max_length=150)


class RolePermissionRequest(RequestModel):
    role_id: int = Field(..., alias="roleId", gt=0)
    permission_id: int = Field(..., alias="permissionId", gt=0)


class MarkNotificationsReadRequest(RequestModel):
    ids: list[int] | None = None
