"""
Third party registry: clients, employees, suppliers, confectionists and
packers.

New third parties start inactive until a VIGENTE legal status is recorded.
Editing a critical field sends the third party back to legal review.
"""

from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session

from ..constants import CRITICAL_FIELDS_FOR_LEGAL_REVIEW, LegalStatus, ThirdPartyType
from ..errors import NotFoundError, ValidationError
from ..models import THIRD_PARTY_MODELS, Role, ThirdPartyMixin
from .legal_status_service import LegalStatusService, parse_entity_type

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = ("name", "identification", "email", "address", "role_id")
AUTO_REVIEW_NOTE = "Cambio en datos críticos: {fields}"


def list_third_parties(
    session: Session,
    entity_type,
    limit: int,
    offset: int,
    search: str | None = None,
    is_active: bool | None = None,
) -> tuple[list[ThirdPartyMixin], int]:
    model = THIRD_PARTY_MODELS[parse_entity_type(entity_type)]

    filters = []
    if search:
        pattern = f"%{search.strip()}%"
        filters.append(or_(model.name.ilike(pattern), model.identification.ilike(pattern)))
    if is_active is not None:
        filters.append(model.is_active.is_(is_active))

    total = session.execute(select(func.count(model.id)).where(*filters)).scalar_one()
    items = list(
        session.execute(
            select(model).where(*filters).order_by(model.name, model.id).limit(limit).offset(offset)
        ).scalars()
    )
    return items, total


def _check_role(session: Session, entity_type: ThirdPartyType, role_id: int | None) -> None:
    if role_id is None:
        return
    if entity_type != ThirdPartyType.EMPLEADO:
        raise ValidationError("roleId solo aplica a empleados")
    if session.get(Role, role_id) is None:
        raise NotFoundError("Rol no encontrado")


def create_third_party(session: Session, entity_type, data: dict[str, Any]) -> ThirdPartyMixin:
    entity_type = parse_entity_type(entity_type)
    model = THIRD_PARTY_MODELS[entity_type]
    _check_role(session, entity_type, data.get("role_id"))

    values = {key: data[key] for key in EDITABLE_FIELDS if data.get(key) is not None}
    if entity_type != ThirdPartyType.EMPLEADO:
        values.pop("role_id", None)

    entity = model(**values, is_active=False)
    session.add(entity)
    session.flush()
    logger.info(f"{entity_type.value} {entity.id} created")
    return entity


def update_third_party(
    session: Session, entity_type, entity_id: int, changes: dict[str, Any]
) -> tuple[ThirdPartyMixin, list[str]]:
    """
    Apply ``changes`` and return the entity plus the critical fields that
    changed. When any did, an EN_REVISION record is appended to the ledger.
    """
    entity_type = parse_entity_type(entity_type)
    ledger = LegalStatusService(session)
    entity = ledger.get_entity(entity_type, entity_id)
    _check_role(session, entity_type, changes.get("role_id"))

    critical_changed = []
    for key in EDITABLE_FIELDS:
        if key not in changes:
            continue
        value = changes[key]
        if key == "name" and not value:
            raise ValidationError("El nombre es requerido")
        if getattr(entity, key, None) == value:
            continue
        setattr(entity, key, value)
        if key in CRITICAL_FIELDS_FOR_LEGAL_REVIEW:
            critical_changed.append(key)
    session.flush()

    if critical_changed:
        ledger.record_status(
            entity_type,
            entity.id,
            LegalStatus.EN_REVISION,
            notes=AUTO_REVIEW_NOTE.format(fields=", ".join(critical_changed)),
            reviewed_by="SISTEMA",
        )

    return entity, critical_changed
