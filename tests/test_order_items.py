import pytest
from sqlalchemy.exc import OperationalError

from viomar_shared.constants import OrderItemStatus
from viomar_shared.db import get_session
from viomar_shared.errors import ForbiddenError, ValidationError
from viomar_shared.models import Order, OrderItem
from viomar_shared.services.order_item_service import change_status, list_status_history


@pytest.fixture()
def order_item_id(app):
    with get_session() as session:
        order = Order(order_code="VIO-0001")
        order.items.append(
            OrderItem(
                name="Camiseta polo",
                quantity=20,
                negotiation="PRODUCCION",
                status=OrderItemStatus.APROBACION_INICIAL,
            )
        )
        session.add(order)
        session.flush()
        return order.items[0].id


def test_change_status_writes_history(app, order_item_id):
    with get_session() as session:
        history = change_status(
            session, order_item_id, "PENDIENTE_PRODUCCION", "ASESOR", changed_by="3"
        )
        assert history.status == OrderItemStatus.PENDIENTE_PRODUCCION

    with get_session() as session:
        rows, total = list_status_history(session, 10, 0, order_item_id)
        item = session.get(OrderItem, order_item_id)

    assert total == 1
    assert (rows[0].role, rows[0].changed_by) == ("ASESOR", "3")
    assert item.status == OrderItemStatus.PENDIENTE_PRODUCCION


def test_same_status_is_a_no_op(app, order_item_id):
    with get_session() as session:
        assert change_status(session, order_item_id, "APROBACION_INICIAL", "ASESOR") is None
        assert list_status_history(session, 10, 0, order_item_id)[1] == 0


def test_change_status_rejects_role_and_workflow_violations(app, order_item_id):
    with get_session() as session:
        with pytest.raises(ForbiddenError):
            change_status(session, order_item_id, "EN_MONTAJE", "OPERARIO_MONTAJE")
        with pytest.raises(ForbiddenError):
            change_status(session, order_item_id, "ENVIADO", "ASESOR")
        with pytest.raises(ValidationError):
            change_status(session, order_item_id, "NOPE", "ADMINISTRADOR")


def test_allowed_statuses_route(client, auth_headers, grant, order_item_id):
    grant("ASESOR", "VER_PEDIDO")

    response = client.get(
        f"/api/order-items/{order_item_id}/allowed-statuses", headers=auth_headers("ASESOR")
    )

    assert response.status_code == 200
    assert response.get_json() == {
        "orderItemId": order_item_id,
        "current": "APROBACION_INICIAL",
        "allowed": ["PENDIENTE_PRODUCCION"],
    }


def test_status_route(client, auth_headers, grant, order_item_id):
    grant("ASESOR", "CAMBIAR_ESTADO_PEDIDO")
    headers = auth_headers("ASESOR", user_id=5)
    url = f"/api/order-items/{order_item_id}/status"

    response = client.patch(url, json={"status": "PENDIENTE_PRODUCCION"}, headers=headers)
    assert response.status_code == 200
    assert response.get_json()["status"] == "PENDIENTE_PRODUCCION"
    assert response.get_json()["changed"] is True

    again = client.patch(url, json={"status": "PENDIENTE_PRODUCCION"}, headers=headers)
    assert again.get_json()["changed"] is False

    forbidden = client.patch(url, json={"status": "CANCELADO"}, headers=headers)
    assert forbidden.status_code == 403

    invalid = client.patch(url, json={"status": "NOPE"}, headers=headers)
    assert invalid.status_code == 400


def test_admin_can_cancel(client, admin_headers, order_item_id):
    response = client.patch(
        f"/api/order-items/{order_item_id}/status",
        json={"status": "CANCELADO"},
        headers=admin_headers,
    )

    assert response.status_code == 200
    assert response.get_json()["status"] == "CANCELADO"


def test_missing_order_item(client, admin_headers):
    response = client.patch(
        "/api/order-items/999/status", json={"status": "CANCELADO"}, headers=admin_headers
    )

    assert response.status_code == 404


def test_history_route(client, admin_headers, order_item_id):
    for status in ("PENDIENTE_PRODUCCION", "EN_MONTAJE"):
        client.patch(
            f"/api/order-items/{order_item_id}/status",
            json={"status": status},
            headers=admin_headers,
        )

    response = client.get(
        f"/api/status-history/order-items?orderItemId={order_item_id}&pageSize=1",
        headers=admin_headers,
    )

    body = response.get_json()
    assert response.status_code == 200
    assert body["total"] == 2
    assert body["pageSize"] == 1
    assert body["hasNextPage"] is True
    assert [row["status"] for row in body["items"]] == ["EN_MONTAJE"]


def test_store_outage_is_503(client, admin_headers, monkeypatch):
    from backoffice_app.routes.api import order_items

    def unavailable(*args, **kwargs):
        raise OperationalError("SELECT 1", {}, Exception("connection refused"))

    monkeypatch.setattr(order_items, "list_status_history", unavailable)

    response = client.get("/api/status-history/order-items", headers=admin_headers)

    assert response.status_code == 503
    assert response.get_json() == {"error": "Base de datos no disponible"}


def test_unexpected_error_is_500(client, admin_headers, monkeypatch):
    from backoffice_app.routes.api import order_items

    def broken(*args, **kwargs):
        raise KeyError("boom")

    monkeypatch.setattr(order_items, "list_status_history", broken)

    response = client.get("/api/status-history/order-items", headers=admin_headers)

    assert response.status_code == 500
    assert response.get_json() == {"error": "Error interno del servidor"}
