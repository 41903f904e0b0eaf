"""
Input validation utilities.
"""

from __future__ import annotations

import math
from decimal import Decimal, InvalidOperation
from typing import Any, TypeVar

from flask import request
from pydantic import BaseModel

from .constants import (
    DEFAULT_PAGE_SIZE,
    MAX_PAGE_SIZE,
    QUANTITY_DECIMAL_PLACES,
    QUANTITY_LIMIT,
    THIRD_PARTY_SEGMENTS,
    ThirdPartyType,
)
from .errors import NotFoundError, ValidationError

SchemaT = TypeVar("SchemaT", bound=BaseModel)


def to_number(value: Any) -> float:
    """
    Coerce a stored quantity to a float.

    NULL, non-numeric text and non-finite values all become 0.
    """
    if value is None:
        return 0.0
    try:
        number = float(str(value).strip() or "0")
    except (TypeError, ValueError):
        return 0.0
    return number if math.isfinite(number) else 0.0


def require_positive_quantity(value: Any) -> float:
    """
    Parse a movement quantity: finite, greater than 0 and representable in
    the stored precision (two decimal places, ten integer digits).
    """
    try:
        number = Decimal(str(value).strip())
    except (InvalidOperation, TypeError, ValueError):
        raise ValidationError("La cantidad debe ser un número válido")
    if not number.is_finite():
        raise ValidationError("La cantidad debe ser un número válido")
    if number <= 0:
        raise ValidationError("La cantidad debe ser mayor a 0")
    if number.normalize().as_tuple().exponent < -QUANTITY_DECIMAL_PLACES:
        raise ValidationError(f"La cantidad admite como máximo {QUANTITY_DECIMAL_PLACES} decimales")
    if number >= QUANTITY_LIMIT:
        raise ValidationError("La cantidad excede el máximo permitido")
    return float(number)


def parse_int(value: Any, field: str) -> int:
    try:
        number = int(str(value).strip())
    except (TypeError, ValueError):
        raise ValidationError(f"{field} inválido")
    if number < 1:
        raise ValidationError(f"{field} inválido")
    return number


def parse_pagination(args=None) -> tuple[int, int, int]:
    """
    Read ``page`` and ``pageSize`` from the query string.

    Returns: (page, page_size, offset); page_size is clamped to 1..100.
    """
    args = request.args if args is None else args

    try:
        page = int(args.get("page", "1"))
    except (TypeError, ValueError):
        page = 1
    page = max(1, page)

    try:
        page_size = int(args.get("pageSize", str(DEFAULT_PAGE_SIZE)))
    except (TypeError, ValueError):
        page_size = DEFAULT_PAGE_SIZE
    page_size = min(MAX_PAGE_SIZE, max(1, page_size))

    return page, page_size, (page - 1) * page_size


def parse_active_filter(value: str | None) -> bool | None:
    """``isActive`` query filter; blank means no filter."""
    if value is None or value.strip() == "":
        return None
    return value.strip().lower() in {"1", "true", "yes"}


def parse_limit(value: Any) -> int | None:
    """Optional ``limit`` query parameter, capped at MAX_PAGE_SIZE."""
    if value is None or str(value).strip() == "":
        return None
    try:
        limit = int(str(value).strip())
    except ValueError:
        raise ValidationError("limit inválido")
    if limit < 1:
        raise ValidationError("limit inválido")
    return min(limit, MAX_PAGE_SIZE)


def resolve_third_party_segment(segment: str) -> ThirdPartyType:
    entity_type = THIRD_PARTY_SEGMENTS.get(segment)
    if entity_type is None:
        raise NotFoundError("Tipo de tercero no encontrado")
    return entity_type


def parse_body(schema: type[SchemaT]) -> SchemaT:
    """
    Validate the JSON body against ``schema``.

    A missing or non-object body validates as ``{}``; pydantic errors
    propagate to the centralized handler.
    """
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        payload = {}
    return schema.model_validate(payload)
