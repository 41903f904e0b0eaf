def test_create_and_list_roles(client, admin_headers):
    created = client.post("/api/roles", json={"name": " auditor "}, headers=admin_headers)
    duplicate = client.post("/api/roles", json={"name": "AUDITOR"}, headers=admin_headers)
    roles = client.get("/api/roles", headers=admin_headers).get_json()

    assert created.status_code == 201
    assert created.get_json()["name"] == "AUDITOR"
    assert duplicate.status_code == 409
    assert "AUDITOR" in [role["name"] for role in roles]
    assert "ADMINISTRADOR" in [role["name"] for role in roles]


def test_default_permissions_are_seeded(client, admin_headers):
    names = [p["name"] for p in client.get("/api/permissions", headers=admin_headers).get_json()]

    assert "VER_INVENTARIO" in names
    assert "CAMBIAR_ESTADO_DISEÑO" in names


def test_grant_and_revoke_role_permission(client, admin_headers, auth_headers):
    role_id = client.post("/api/roles", json={"name": "AUDITOR"}, headers=admin_headers).get_json()[
        "id"
    ]
    permission_id = client.post(
        "/api/permissions", json={"name": "ver_reporte"}, headers=admin_headers
    ).get_json()["id"]
    body = {"roleId": role_id, "permissionId": permission_id}

    granted = client.post("/api/role-permissions", json=body, headers=admin_headers)
    assert granted.status_code == 201
    assert client.post("/api/role-permissions", json=body, headers=admin_headers).status_code == 409

    listed = client.get(f"/api/role-permissions?roleId={role_id}", headers=admin_headers)
    assert listed.get_json() == [
        {
            "roleId": role_id,
            "roleName": "AUDITOR",
            "permissionId": permission_id,
            "permissionName": "VER_REPORTE",
        }
    ]

    permissions = client.get(
        "/api/auth/permissions?names=VER_REPORTE", headers=auth_headers("AUDITOR")
    ).get_json()
    assert permissions == {"permissions": {"VER_REPORTE": True}}

    revoked = client.delete("/api/role-permissions", json=body, headers=admin_headers)
    assert revoked.status_code == 200
    assert client.delete("/api/role-permissions", json=body, headers=admin_headers).status_code == 404


def test_grant_unknown_role(client, admin_headers):
    response = client.post(
        "/api/role-permissions", json={"roleId": 9999, "permissionId": 1}, headers=admin_headers
    )

    assert response.status_code == 404
    assert response.get_json() == {"error": "Rol no encontrado"}


def test_role_admin_requires_permissions(client, auth_headers, grant):
    headers = auth_headers("LIDER_DE_PROCESOS")
    assert client.get("/api/roles", headers=headers).status_code == 403

    grant("LIDER_DE_PROCESOS", "VER_ROL")
    assert client.get("/api/roles", headers=headers).status_code == 200
    assert client.post("/api/roles", json={"name": "X"}, headers=headers).status_code == 403


def test_default_roles_include_designer(client, admin_headers):
    roles = [role["name"] for role in client.get("/api/roles", headers=admin_headers).get_json()]

    assert "DISEÑADOR" in roles
