from viomar_shared.db import get_session
from viomar_shared.services.notification_service import notify_permission_holders


def _notify(title="Entrada de inventario"):
    with get_session() as session:
        return notify_permission_holders(session, "VER_INVENTARIO", title, "Mensaje", "/catalog")


def test_fan_out_to_permission_holders(app, grant):
    grant("OPERARIO_INVENTARIO", "VER_INVENTARIO")
    grant("COMPRAS", "VER_INVENTARIO")
    grant("ASESOR", "VER_PEDIDO")

    assert _notify() == 2


def test_list_and_mark_all_read(client, auth_headers, grant):
    grant("OPERARIO_INVENTARIO", "VER_INVENTARIO")
    _notify("Primera")
    _notify("Segunda")
    headers = auth_headers("OPERARIO_INVENTARIO")

    body = client.get("/api/notifications", headers=headers).get_json()
    assert body["total"] == 2
    assert body["unreadCount"] == 2
    assert [item["title"] for item in body["items"]] == ["Segunda", "Primera"]

    marked = client.patch("/api/notifications", json={}, headers=headers)
    assert marked.get_json() == {"updated": 2}

    body = client.get("/api/notifications?unreadOnly=true", headers=headers).get_json()
    assert body["total"] == 0
    assert body["unreadCount"] == 0


def test_role_filter_is_admin_only(client, auth_headers, grant):
    grant("OPERARIO_INVENTARIO", "VER_INVENTARIO")
    _notify()

    admin = client.get(
        "/api/notifications?role=OPERARIO_INVENTARIO", headers=auth_headers("ADMINISTRADOR")
    ).get_json()
    other = client.get(
        "/api/notifications?role=OPERARIO_INVENTARIO", headers=auth_headers("ASESOR")
    ).get_json()

    assert admin["total"] == 1
    assert other["total"] == 0


def test_date_filters(client, auth_headers, grant):
    grant("OPERARIO_INVENTARIO", "VER_INVENTARIO")
    _notify()
    headers = auth_headers("OPERARIO_INVENTARIO")

    past = client.get("/api/notifications?endDate=2000-01-01", headers=headers).get_json()
    recent = client.get("/api/notifications?startDate=2000-01-01", headers=headers).get_json()

    assert past["total"] == 0
    assert recent["total"] == 1


def test_mark_one_read(client, auth_headers, grant):
    grant("OPERARIO_INVENTARIO", "VER_INVENTARIO", "VER_NOTIFICACION")
    _notify()
    headers = auth_headers("OPERARIO_INVENTARIO")
    notification_id = client.get("/api/notifications", headers=headers).get_json()["items"][0]["id"]

    response = client.patch(f"/api/notifications/{notification_id}", headers=headers)

    assert response.status_code == 200
    assert response.get_json()["isRead"] is True
    assert client.patch("/api/notifications/999", headers=headers).status_code == 404


def test_notifications_require_session(client):
    assert client.get("/api/notifications").status_code == 401
