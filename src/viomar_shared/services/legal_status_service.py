"""
Legal status ledger for third parties.

The ledger is append-only: every status change is a new
``LegalStatusRecord`` and the third party's ``is_active`` flag is derived
from the most recent record (VIGENTE means active, anything else or no
record at all means inactive). Gating code must use ``check_operability``
rather than reading ``is_active``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import Session

from ..constants import (
    LEGAL_STATUS_CHECK_FAILED_REASON,
    NO_LEGAL_STATUS_REASON,
    THIRD_PARTY_LABELS,
    LegalStatus,
    ThirdPartyType,
)
from ..datetime_utils import isoformat_or_none, utcnow_naive
from ..db import get_session
from ..errors import NotFoundError, ValidationError
from ..models import THIRD_PARTY_MODELS, LegalStatusRecord, ThirdPartyMixin

logger = logging.getLogger(__name__)

INVALID_STATUS_MESSAGE = "Estado jurídico inválido"

_REASON_TEMPLATES = {
    LegalStatus.VIGENTE: "{label} vigente y puede operar",
    LegalStatus.EN_REVISION: "{label} en revisión, no puede operar",
    LegalStatus.BLOQUEADO: "{label} bloqueado, no puede operar",
}


@dataclass
class LegalStatusResult:
    is_active: bool
    is_active_changed: bool
    record: LegalStatusRecord


@dataclass
class OperabilityStatus:
    status: LegalStatus | None
    can_operate: bool
    reason: str
    last_update: datetime | None = None
    notes: str | None = None
    reviewed_by: str | None = None

    def to_dict(self) -> dict[str, Any]:
        if self.status is None:
            return {"status": None, "canOperate": self.can_operate, "reason": self.reason}
        return {
            "status": self.status.value,
            "canOperate": self.can_operate,
            "reason": self.reason,
            "lastUpdate": isoformat_or_none(self.last_update),
            "notes": self.notes,
            "reviewedBy": self.reviewed_by,
        }


def parse_entity_type(value) -> ThirdPartyType:
    if isinstance(value, ThirdPartyType):
        return value
    try:
        return ThirdPartyType(str(value).strip().upper())
    except ValueError:
        raise ValidationError("Tipo de tercero inválido")


def parse_legal_status(value) -> LegalStatus:
    if isinstance(value, LegalStatus):
        return value
    if not isinstance(value, str) or value not in LegalStatus.all_values():
        raise ValidationError(INVALID_STATUS_MESSAGE)
    return LegalStatus(value)


def operability_reason(entity_type: ThirdPartyType, status: LegalStatus) -> str:
    return _REASON_TEMPLATES[status].format(label=THIRD_PARTY_LABELS[entity_type])


class LegalStatusService:
    """Ledger operations bound to a session; the caller owns the transaction."""

    def __init__(self, session: Session):
        self.session = session

    def get_entity(self, entity_type, entity_id: int) -> ThirdPartyMixin:
        entity_type = parse_entity_type(entity_type)
        model = THIRD_PARTY_MODELS[entity_type]
        entity = self.session.get(model, entity_id)
        if entity is None:
            raise NotFoundError(f"{THIRD_PARTY_LABELS[entity_type]} no encontrado")
        return entity

    def latest_record(self, entity_type, entity_id: int) -> LegalStatusRecord | None:
        entity_type = parse_entity_type(entity_type)
        stmt = (
            select(LegalStatusRecord)
            .where(
                LegalStatusRecord.third_party_type == entity_type,
                LegalStatusRecord.third_party_id == entity_id,
            )
            .order_by(LegalStatusRecord.created_at.desc(), LegalStatusRecord.id.desc())
            .limit(1)
        )
        return self.session.execute(stmt).scalars().first()

    def record_status(
        self,
        entity_type,
        entity_id: int,
        status,
        notes: str | None = None,
        reviewed_by: str | None = None,
    ) -> LegalStatusResult:
        """
        Append a status record and keep ``is_active`` in step with it.

        Raises ValidationError for an unknown status and NotFoundError for an
        unknown entity; nothing is written in either case.
        """
        entity_type = parse_entity_type(entity_type)
        status = parse_legal_status(status)
        entity = self.get_entity(entity_type, entity_id)

        created_at = utcnow_naive()
        previous = self.latest_record(entity_type, entity_id)
        if previous is not None and previous.created_at >= created_at:
            created_at = previous.created_at + timedelta(microseconds=1)

        record = LegalStatusRecord(
            third_party_id=entity.id,
            third_party_type=entity_type,
            third_party_name=entity.name,
            status=status,
            notes=notes or None,
            reviewed_by=reviewed_by or None,
            created_at=created_at,
        )
        self.session.add(record)

        should_be_active = status == LegalStatus.VIGENTE
        changed = bool(entity.is_active) != should_be_active
        if changed:
            entity.is_active = should_be_active

        self.session.flush()
        logger.info(
            f"Legal status recorded for {entity_type.value} {entity_id}: "
            f"{status.value} (is_active={should_be_active})"
        )
        return LegalStatusResult(should_be_active, changed, record)

    def get_current_status(self, entity_type, entity_id: int) -> OperabilityStatus:
        entity_type = parse_entity_type(entity_type)
        record = self.latest_record(entity_type, entity_id)
        if record is None:
            return OperabilityStatus(None, False, NO_LEGAL_STATUS_REASON)

        status = LegalStatus(record.status)
        return OperabilityStatus(
            status=status,
            can_operate=status == LegalStatus.VIGENTE,
            reason=operability_reason(entity_type, status),
            last_update=record.created_at,
            notes=record.notes,
            reviewed_by=record.reviewed_by,
        )

    def get_history(
        self, entity_type, entity_id: int, limit: int | None = None
    ) -> list[LegalStatusRecord]:
        """Records of one entity, newest first."""
        entity_type = parse_entity_type(entity_type)
        self.get_entity(entity_type, entity_id)

        stmt = (
            select(LegalStatusRecord)
            .where(
                LegalStatusRecord.third_party_type == entity_type,
                LegalStatusRecord.third_party_id == entity_id,
            )
            .order_by(LegalStatusRecord.created_at.desc(), LegalStatusRecord.id.desc())
        )
        if limit is not None:
            stmt = stmt.limit(limit)
        return list(self.session.execute(stmt).scalars())

    def sync_active_flag(self, entity_type, entity_id: int) -> bool:
        """Recompute ``is_active`` from the latest record; returns the flag."""
        entity = self.get_entity(entity_type, entity_id)
        record = self.latest_record(entity_type, entity_id)
        should_be_active = record is not None and record.status == LegalStatus.VIGENTE
        if bool(entity.is_active) != should_be_active:
            logger.warning(
                f"Repaired is_active drift on {parse_entity_type(entity_type).value} "
                f"{entity_id}: {entity.is_active} -> {should_be_active}"
            )
            entity.is_active = should_be_active
            self.session.flush()
        return should_be_active


def check_operability(entity_type, entity_id: int, session: Session | None = None) -> OperabilityStatus:
    """
    Gating variant of ``get_current_status``.

    Never raises: any failure is logged and reported as "cannot operate".
    """
    try:
        if session is not None:
            return LegalStatusService(session).get_current_status(entity_type, entity_id)
        with get_session() as own_session:
            return LegalStatusService(own_session).get_current_status(entity_type, entity_id)
    except Exception as e:
        logger.error(f"Legal status check failed for {entity_type} {entity_id}: {e}")
        return OperabilityStatus(None, False, LEGAL_STATUS_CHECK_FAILED_REASON)
