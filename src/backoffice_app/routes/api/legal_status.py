"""
Legal status endpoints shared by every third party type.
"""

from http import HTTPStatus

from flask import Blueprint, jsonify, request

from viomar_shared.db import get_session
from viomar_shared.permissions import require_permission
from viomar_shared.schemas import LegalStatusRequest
from viomar_shared.security_middleware import rate_limit
from viomar_shared.serializers import serialize_legal_record
from viomar_shared.services.legal_status_service import LegalStatusService, check_operability
from viomar_shared.validation import parse_body, parse_limit, resolve_third_party_segment

from ._helpers import third_party_permission

legal_status_bp = Blueprint("legal_status", __name__)


def _legal_status_rate_key(party_type: str, party_id: int) -> str:
    return f"{party_type}:legal-status:{party_id}"


@legal_status_bp.post("/third-parties/<party_type>/<int:party_id>/legal-status")
@rate_limit(_legal_status_rate_key, limit=30, window_seconds=60)
@require_permission(third_party_permission("EDITAR"))
def record_legal_status(party_type: str, party_id: int):
    """Append a legal status record and return the derived active flag."""
    entity_type = resolve_third_party_segment(party_type)
    payload = parse_body(LegalStatusRequest)

    with get_session() as session:
        result = LegalStatusService(session).record_status(
            entity_type,
            party_id,
            payload.status,
            notes=payload.notes,
            reviewed_by=payload.reviewed_by,
        )
        is_active = result.is_active

    return jsonify({"success": True, "isActive": is_active}), HTTPStatus.OK


@legal_status_bp.get("/third-parties/<party_type>/<int:party_id>/legal-status/check")
@require_permission(third_party_permission("VER"))
def check_legal_status(party_type: str, party_id: int):
    """Current operability; failures come back as a deny, never as 5xx."""
    entity_type = resolve_third_party_segment(party_type)
    return jsonify(check_operability(entity_type, party_id).to_dict()), HTTPStatus.OK


@legal_status_bp.get("/third-parties/<party_type>/<int:party_id>/legal-status-history")
@require_permission(third_party_permission("VER"))
def legal_status_history(party_type: str, party_id: int):
    entity_type = resolve_third_party_segment(party_type)
    limit = parse_limit(request.args.get("limit"))

    with get_session() as session:
        records = LegalStatusService(session).get_history(entity_type, party_id, limit=limit)
        data = [serialize_legal_record(record) for record in records]

    return jsonify(data), HTTPStatus.OK
