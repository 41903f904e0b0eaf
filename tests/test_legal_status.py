import pytest
from sqlalchemy import func, select

from viomar_shared.constants import LegalStatus, ThirdPartyType
from viomar_shared.db import dispose_engine, get_session
from viomar_shared.errors import NotFoundError, ValidationError
from viomar_shared.models import THIRD_PARTY_MODELS, LegalStatusRecord, Supplier
from viomar_shared.services.legal_status_service import LegalStatusService, check_operability


def _create(entity_type, name="Tercero"):
    with get_session() as session:
        entity = THIRD_PARTY_MODELS[entity_type](name=name)
        session.add(entity)
        session.flush()
        return entity.id


def _record(entity_type, entity_id, status, **kwargs):
    with get_session() as session:
        return LegalStatusService(session).record_status(entity_type, entity_id, status, **kwargs)


def _is_active(entity_type, entity_id):
    with get_session() as session:
        return session.get(THIRD_PARTY_MODELS[entity_type], entity_id).is_active


def _record_count():
    with get_session() as session:
        return session.execute(select(func.count(LegalStatusRecord.id))).scalar_one()


@pytest.mark.parametrize("entity_type", list(ThirdPartyType))
def test_vigente_makes_entity_operable(app, entity_type):
    entity_id = _create(entity_type)

    result = _record(entity_type, entity_id, "VIGENTE")

    assert result.is_active
    assert result.is_active_changed
    assert check_operability(entity_type, entity_id).can_operate
    assert _is_active(entity_type, entity_id)


@pytest.mark.parametrize("entity_type", list(ThirdPartyType))
@pytest.mark.parametrize("status", ["BLOQUEADO", "EN_REVISION"])
def test_non_vigente_blocks_entity(app, entity_type, status):
    entity_id = _create(entity_type)
    _record(entity_type, entity_id, "VIGENTE")

    result = _record(entity_type, entity_id, status)

    assert not result.is_active
    assert result.is_active_changed
    assert not check_operability(entity_type, entity_id).can_operate
    assert not _is_active(entity_type, entity_id)


def test_repeated_status_does_not_flip_flag(app):
    entity_id = _create(ThirdPartyType.CLIENTE)
    _record(ThirdPartyType.CLIENTE, entity_id, "VIGENTE")

    result = _record(ThirdPartyType.CLIENTE, entity_id, "VIGENTE")

    assert result.is_active
    assert not result.is_active_changed


def test_history_is_newest_first_and_matches_current_status(app):
    entity_id = _create(ThirdPartyType.PROVEEDOR)
    sequence = ["EN_REVISION", "VIGENTE", "BLOQUEADO", "VIGENTE", "EN_REVISION"]
    for status in sequence:
        _record(ThirdPartyType.PROVEEDOR, entity_id, status)

    with get_session() as session:
        service = LegalStatusService(session)
        history = service.get_history(ThirdPartyType.PROVEEDOR, entity_id)
        current = service.get_current_status(ThirdPartyType.PROVEEDOR, entity_id)

    assert len(history) == len(sequence)
    assert [record.status for record in history] == [LegalStatus(s) for s in reversed(sequence)]
    timestamps = [record.created_at for record in history]
    assert all(newer > older for newer, older in zip(timestamps, timestamps[1:]))
    assert current.status == history[0].status


def test_invalid_status_writes_nothing(app):
    entity_id = _create(ThirdPartyType.EMPLEADO)
    _record(ThirdPartyType.EMPLEADO, entity_id, "VIGENTE")
    before = _record_count()

    with pytest.raises(ValidationError) as exc_info:
        _record(ThirdPartyType.EMPLEADO, entity_id, "OTRO")

    assert exc_info.value.message == "Estado jurídico inválido"
    assert _record_count() == before
    assert _is_active(ThirdPartyType.EMPLEADO, entity_id)


def test_unknown_entity_is_not_found(app):
    with pytest.raises(NotFoundError) as exc_info:
        _record(ThirdPartyType.EMPAQUE, 999, "VIGENTE")

    assert exc_info.value.message == "Empacador no encontrado"
    assert _record_count() == 0


def test_record_snapshots_entity_name(app):
    entity_id = _create(ThirdPartyType.CONFECCIONISTA, name="Taller Uno")

    result = _record(
        ThirdPartyType.CONFECCIONISTA, entity_id, "VIGENTE", notes="RUT ok", reviewed_by="juridico"
    )

    assert result.record.third_party_name == "Taller Uno"
    assert result.record.notes == "RUT ok"
    assert result.record.reviewed_by == "juridico"


def test_current_status_without_records(app):
    entity_id = _create(ThirdPartyType.CLIENTE)

    status = check_operability(ThirdPartyType.CLIENTE, entity_id)

    assert status.to_dict() == {
        "status": None,
        "canOperate": False,
        "reason": "Sin estado jurídico definido",
    }


def test_reason_uses_entity_vocabulary(app):
    entity_id = _create(ThirdPartyType.PROVEEDOR)
    _record(ThirdPartyType.PROVEEDOR, entity_id, "BLOQUEADO")

    assert check_operability(ThirdPartyType.PROVEEDOR, entity_id).reason == (
        "Proveedor bloqueado, no puede operar"
    )


def test_check_operability_fails_closed(app):
    entity_id = _create(ThirdPartyType.PROVEEDOR)
    _record(ThirdPartyType.PROVEEDOR, entity_id, "VIGENTE")
    dispose_engine()

    status = check_operability(ThirdPartyType.PROVEEDOR, entity_id)

    assert not status.can_operate
    assert status.reason == "No se pudo verificar el estado jurídico"


def test_sync_active_flag_repairs_drift(app):
    entity_id = _create(ThirdPartyType.PROVEEDOR)
    _record(ThirdPartyType.PROVEEDOR, entity_id, "VIGENTE")
    with get_session() as session:
        session.get(Supplier, entity_id).is_active = False

    with get_session() as session:
        assert LegalStatusService(session).sync_active_flag(ThirdPartyType.PROVEEDOR, entity_id)

    assert _is_active(ThirdPartyType.PROVEEDOR, entity_id)


# Routes


def test_record_route(client, admin_headers, supplier_id):
    response = client.post(
        f"/api/third-parties/suppliers/{supplier_id}/legal-status",
        json={"status": "VIGENTE", "notes": "Documentos al día", "reviewedBy": "ana"},
        headers=admin_headers,
    )

    assert response.status_code == 200
    assert response.get_json() == {"success": True, "isActive": True}

    check = client.get(
        f"/api/third-parties/suppliers/{supplier_id}/legal-status/check", headers=admin_headers
    ).get_json()
    assert check["status"] == "VIGENTE"
    assert check["canOperate"] is True
    assert check["reason"] == "Proveedor vigente y puede operar"
    assert check["notes"] == "Documentos al día"
    assert check["reviewedBy"] == "ana"
    assert check["lastUpdate"]


def test_record_route_rejects_invalid_status(client, admin_headers, supplier_id):
    response = client.post(
        f"/api/third-parties/suppliers/{supplier_id}/legal-status",
        json={"status": "OTRO"},
        headers=admin_headers,
    )

    assert response.status_code == 400
    assert response.get_json() == {"error": "Estado jurídico inválido"}


def test_record_route_rejects_unknown_fields(client, admin_headers, supplier_id):
    response = client.post(
        f"/api/third-parties/suppliers/{supplier_id}/legal-status",
        json={"status": "VIGENTE", "isActive": True},
        headers=admin_headers,
    )

    assert response.status_code == 400
    assert response.get_json()["error"] == "Datos inválidos"


def test_record_route_missing_entity(client, admin_headers):
    response = client.post(
        "/api/third-parties/suppliers/999/legal-status",
        json={"status": "VIGENTE"},
        headers=admin_headers,
    )

    assert response.status_code == 404
    assert response.get_json() == {"error": "Proveedor no encontrado"}


def test_unknown_third_party_segment(client, admin_headers):
    response = client.get("/api/third-parties/aliens/1/legal-status/check", headers=admin_headers)

    assert response.status_code == 404


def test_history_route(client, admin_headers, supplier_id):
    for status in ("EN_REVISION", "VIGENTE", "BLOQUEADO"):
        client.post(
            f"/api/third-parties/suppliers/{supplier_id}/legal-status",
            json={"status": status},
            headers=admin_headers,
        )

    response = client.get(
        f"/api/third-parties/suppliers/{supplier_id}/legal-status-history", headers=admin_headers
    )
    limited = client.get(
        f"/api/third-parties/suppliers/{supplier_id}/legal-status-history?limit=1",
        headers=admin_headers,
    )

    assert response.status_code == 200
    assert [row["status"] for row in response.get_json()] == ["BLOQUEADO", "VIGENTE", "EN_REVISION"]
    assert response.get_json()[0]["thirdPartyType"] == "PROVEEDOR"
    assert [row["status"] for row in limited.get_json()] == ["BLOQUEADO"]


def test_record_route_requires_edit_permission(client, auth_headers, grant, supplier_id):
    grant("ASESOR", "VER_PROVEEDOR")
    url = f"/api/third-parties/suppliers/{supplier_id}/legal-status"

    denied = client.post(url, json={"status": "VIGENTE"}, headers=auth_headers("ASESOR"))
    assert denied.status_code == 403
    assert denied.get_json() == {"error": "Forbidden"}

    grant("ASESOR", "EDITAR_PROVEEDOR")
    allowed = client.post(url, json={"status": "VIGENTE"}, headers=auth_headers("ASESOR"))
    assert allowed.status_code == 200


def test_record_route_requires_session(client, supplier_id):
    response = client.post(
        f"/api/third-parties/suppliers/{supplier_id}/legal-status", json={"status": "VIGENTE"}
    )

    assert response.status_code == 401
    assert response.get_json() == {"error": "Unauthorized"}
