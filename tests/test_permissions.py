from http import HTTPStatus

from viomar_shared import permissions
from viomar_shared.permissions import PermissionName, has_permission, resolve_permission


def test_missing_token_is_unauthorized(app):
    decision = resolve_permission(None, PermissionName.VER_PEDIDO)

    assert not decision.allowed
    assert decision.status == HTTPStatus.UNAUTHORIZED


def test_tampered_token_is_unauthorized(app, make_token):
    header, payload, signature = make_token("ADMINISTRADOR").split(".")
    tampered = f"{header}.{payload}x.{signature}"

    assert resolve_permission(tampered, "VER_PEDIDO").status == HTTPStatus.UNAUTHORIZED
    assert resolve_permission("not-a-jwt", "VER_PEDIDO").status == HTTPStatus.UNAUTHORIZED


def test_expired_token_is_unauthorized(app, make_token):
    token = make_token("ADMINISTRADOR", expires_days=-1)

    assert resolve_permission(token, "VER_PEDIDO").status == HTTPStatus.UNAUTHORIZED


def test_token_without_role_is_forbidden(app, make_token):
    decision = resolve_permission(make_token(None), "VER_PEDIDO")

    assert not decision.allowed
    assert decision.status == HTTPStatus.FORBIDDEN


def test_admin_bypasses_lookup(app, make_token):
    decision = resolve_permission(make_token("ADMINISTRADOR"), "PERMISO_INEXISTENTE")

    assert decision.allowed
    assert decision.role == "ADMINISTRADOR"


def test_static_overrides(app):
    assert has_permission("COMPRAS", PermissionName.VER_PEDIDO)
    assert has_permission("COMPRAS", "CAMBIAR_ESTADO_DISEÑO")
    assert not has_permission("COMPRAS", PermissionName.VER_ROL)


def test_stored_association_grants_permission(app, make_token, grant):
    token = make_token("ASESOR")
    assert resolve_permission(token, "VER_PEDIDO").status == HTTPStatus.FORBIDDEN

    grant("ASESOR", "VER_PEDIDO")

    assert resolve_permission(token, "VER_PEDIDO").allowed
    assert not resolve_permission(token, "VER_ROL").allowed


def test_denial_outside_request_is_forbidden(app, make_token):
    decision = resolve_permission(make_token("ASESOR"), PermissionName.VER_ROL)

    assert not decision.allowed
    assert decision.status == HTTPStatus.FORBIDDEN


def test_store_failure_denies(app, make_token, monkeypatch):
    def broken_lookup(role, permission_name):
        raise RuntimeError("database is gone")

    monkeypatch.setattr(permissions, "role_has_permission", broken_lookup)

    decision = resolve_permission(make_token("ASESOR"), "VER_PEDIDO")

    assert not decision.allowed
    assert decision.status == HTTPStatus.FORBIDDEN


def test_denial_does_not_name_permission(client, auth_headers):
    response = client.get("/api/roles", headers=auth_headers("ASESOR"))

    assert response.status_code == 403
    assert response.get_json() == {"error": "Forbidden"}


def test_cookie_session(client, make_token):
    client.set_cookie("auth_token", make_token("ASESOR", user_id=7, name="Laura"))

    response = client.get("/api/auth/me")

    assert response.status_code == 200
    assert response.get_json() == {"id": 7, "name": "Laura", "role": "ASESOR"}


def test_me_requires_session(client):
    response = client.get("/api/auth/me")

    assert response.status_code == 401
    assert response.get_json() == {"error": "Autenticacion requerida"}


def test_expired_cookie_is_not_anonymous_access(client, make_token):
    client.set_cookie("auth_token", make_token("ADMINISTRADOR", expires_days=-1))

    assert client.get("/api/roles").status_code == 401


def test_permissions_map(client, auth_headers, grant):
    grant("ASESOR", "VER_CLIENTE")

    response = client.get(
        "/api/auth/permissions?names=VER_CLIENTE, VER_PEDIDO,VER_ROL",
        headers=auth_headers("ASESOR"),
    )

    assert response.status_code == 200
    assert response.get_json() == {
        "permissions": {"VER_CLIENTE": True, "VER_PEDIDO": False, "VER_ROL": False}
    }


def test_logout_clears_cookie(client, make_token):
    client.set_cookie("auth_token", make_token("ASESOR"))

    response = client.post("/api/auth/logout")

    assert response.status_code == 200
    assert "auth_token=;" in response.headers["Set-Cookie"]
