"""
Third party registry endpoints (clients, employees, suppliers,
confectionists, packers).
"""

from http import HTTPStatus

from flask import Blueprint, jsonify, request

from viomar_shared.db import get_session
from viomar_shared.permissions import require_permission
from viomar_shared.schemas import ThirdPartyCreateRequest, ThirdPartyUpdateRequest
from viomar_shared.security_middleware import rate_limit
from viomar_shared.serializers import paginated_response, serialize_third_party
from viomar_shared.services.legal_status_service import LegalStatusService
from viomar_shared.services.third_party_service import (
    create_third_party,
    list_third_parties,
    update_third_party,
)
from viomar_shared.validation import (
    parse_active_filter,
    parse_body,
    parse_pagination,
    resolve_third_party_segment,
)

from ._helpers import third_party_permission

third_parties_bp = Blueprint("third_parties", __name__)


@third_parties_bp.get("/third-parties/<party_type>")
@rate_limit("third-parties:get", limit=200, window_seconds=60)
@require_permission(third_party_permission("VER"))
def list_parties(party_type: str):
    entity_type = resolve_third_party_segment(party_type)
    page, page_size, offset = parse_pagination()

    with get_session() as session:
        items, total = list_third_parties(
            session,
            entity_type,
            limit=page_size,
            offset=offset,
            search=request.args.get("q"),
            is_active=parse_active_filter(request.args.get("isActive")),
        )
        data = [serialize_third_party(item) for item in items]

    return jsonify(paginated_response(data, total, page, page_size, offset)), HTTPStatus.OK


@third_parties_bp.get("/third-parties/<party_type>/<int:party_id>")
@require_permission(third_party_permission("VER"))
def get_party(party_type: str, party_id: int):
    entity_type = resolve_third_party_segment(party_type)

    with get_session() as session:
        entity = LegalStatusService(session).get_entity(entity_type, party_id)
        data = serialize_third_party(entity)

    return jsonify(data), HTTPStatus.OK


@third_parties_bp.post("/third-parties/<party_type>")
@rate_limit("third-parties:post", limit=50, window_seconds=60)
@require_permission(third_party_permission("CREAR"))
def create_party(party_type: str):
    entity_type = resolve_third_party_segment(party_type)
    payload = parse_body(ThirdPartyCreateRequest)

    with get_session() as session:
        entity = create_third_party(session, entity_type, payload.model_dump())
        data = serialize_third_party(entity)

    return jsonify(data), HTTPStatus.CREATED


@third_parties_bp.patch("/third-parties/<party_type>/<int:party_id>")
@rate_limit("third-parties:patch", limit=50, window_seconds=60)
@require_permission(third_party_permission("EDITAR"))
def update_party(party_type: str, party_id: int):
    """Update contact data; critical field changes trigger a legal review."""
    entity_type = resolve_third_party_segment(party_type)
    payload = parse_body(ThirdPartyUpdateRequest)

    with get_session() as session:
        entity, critical_changed = update_third_party(
            session, entity_type, party_id, payload.model_dump(exclude_unset=True)
        )
        data = serialize_third_party(entity)

    data["legalReviewRequired"] = bool(critical_changed)
    return jsonify(data), HTTPStatus.OK
