def test_create_starts_inactive(client, admin_headers):
    response = client.post(
        "/api/third-parties/clients",
        json={"name": "Colegio Andino", "identification": "800111", "email": "compras@andino.co"},
        headers=admin_headers,
    )

    body = response.get_json()
    assert response.status_code == 201
    assert body["isActive"] is False
    assert body["type"] == "CLIENTE"
    assert "roleId" not in body


def test_list_is_paginated_and_searchable(client, admin_headers):
    for name in ("Alfa", "Beta", "Gamma"):
        client.post("/api/third-parties/packers", json={"name": name}, headers=admin_headers)

    page = client.get("/api/third-parties/packers?pageSize=2", headers=admin_headers).get_json()
    search = client.get("/api/third-parties/packers?q=amm", headers=admin_headers).get_json()
    active = client.get(
        "/api/third-parties/packers?isActive=true", headers=admin_headers
    ).get_json()

    assert page["total"] == 3
    assert [item["name"] for item in page["items"]] == ["Alfa", "Beta"]
    assert page["hasNextPage"] is True
    assert [item["name"] for item in search["items"]] == ["Gamma"]
    assert active["total"] == 0


def test_critical_change_sends_party_to_review(client, admin_headers):
    party_id = client.post(
        "/api/third-parties/confectionists", json={"name": "Taller Sur"}, headers=admin_headers
    ).get_json()["id"]
    base = f"/api/third-parties/confectionists/{party_id}"
    client.post(f"{base}/legal-status", json={"status": "VIGENTE"}, headers=admin_headers)

    email_only = client.patch(base, json={"email": "taller@sur.co"}, headers=admin_headers)
    assert email_only.get_json()["legalReviewRequired"] is False
    assert email_only.get_json()["isActive"] is True

    renamed = client.patch(base, json={"name": "Taller Sur SAS"}, headers=admin_headers)
    assert renamed.get_json()["legalReviewRequired"] is True
    assert renamed.get_json()["isActive"] is False

    latest = client.get(f"{base}/legal-status-history", headers=admin_headers).get_json()[0]
    assert latest["status"] == "EN_REVISION"
    assert latest["reviewedBy"] == "SISTEMA"
    assert latest["notes"] == "Cambio en datos críticos: name"


def test_role_only_for_employees(client, admin_headers):
    supplier = client.post(
        "/api/third-parties/suppliers", json={"name": "Hilos SA", "roleId": 1}, headers=admin_headers
    )
    employee = client.post(
        "/api/third-parties/employees", json={"name": "Marta", "roleId": 1}, headers=admin_headers
    )

    assert supplier.status_code == 400
    assert employee.status_code == 201
    assert employee.get_json()["roleId"] == 1


def test_invalid_body(client, admin_headers):
    response = client.post(
        "/api/third-parties/clients", json={"name": "", "extra": 1}, headers=admin_headers
    )

    assert response.status_code == 400
    assert response.get_json()["error"] == "Datos inválidos"


def test_get_missing_party(client, admin_headers):
    response = client.get("/api/third-parties/employees/42", headers=admin_headers)

    assert response.status_code == 404
    assert response.get_json() == {"error": "Empleado no encontrado"}
