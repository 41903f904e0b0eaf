from datetime import date, timedelta

import pytest

from viomar_shared.services import delivery_date_service
from viomar_shared.services.delivery_date_service import (
    delivery_date,
    expiry_date,
    lead_days,
    max_lead_days,
    normalize_negotiation,
)


@pytest.mark.parametrize(
    "negotiation,expected",
    [
        ("MUESTRA", 28),
        ("muestra_g", 28),
        (" MUESTRA_C ", 28),
        ("MUESTRAS", 28),
        ("PRODUCCION", 28),
        ("compras", 15),
        ("REPOSICION", 6),
        ("BODEGA", 5),
        ("TRUEQUE", 7),
        (None, 7),
        ("", 7),
    ],
)
def test_lead_days_by_negotiation(negotiation, expected):
    assert lead_days({"negotiation": negotiation}) == expected


def test_lead_days_accepts_objects():
    class Item:
        negotiation = "bodega"
        additions = []

    assert lead_days(Item()) == 5


def test_additions_add_no_days_as_configured():
    assert lead_days({"negotiation": "BODEGA", "additions": ["BORDADO"]}) == 5


def test_additions_extra_days_applies_when_configured(monkeypatch):
    monkeypatch.setattr(delivery_date_service, "ADDITIONS_EXTRA_DAYS", 3)

    assert lead_days({"negotiation": "BODEGA", "additions": ["BORDADO"]}) == 8
    assert lead_days({"negotiation": "BODEGA", "additions": []}) == 5


def test_normalize_negotiation():
    assert normalize_negotiation("  muestra_g") == "MUESTRA"
    assert normalize_negotiation(None) == ""


def test_delivery_date_uses_longest_lead_time():
    items = [{"negotiation": "BODEGA"}, {"negotiation": "COMPRAS"}]

    assert max_lead_days(items) == 15
    assert delivery_date(items, date(2024, 1, 1)) == "2024-01-16"


def test_delivery_date_crosses_year_boundary():
    assert delivery_date([{"negotiation": "COMPRAS"}], date(2024, 12, 20)) == "2025-01-04"


def test_delivery_date_for_empty_items_is_absent():
    assert max_lead_days([]) == 0
    assert delivery_date([], date(2024, 1, 1)) is None
    assert delivery_date(None) is None


def test_delivery_date_defaults_to_today():
    assert delivery_date([{}]) == (date.today() + timedelta(days=7)).isoformat()


def test_expiry_date():
    assert expiry_date("2024-01-16") == "2024-02-15"
    assert expiry_date("2024-01-16", 10) == "2024-01-26"
    assert expiry_date("2024-01-16", None) == "2024-02-15"
    assert expiry_date("2024-01-16", -5) == "2024-01-16"


@pytest.mark.parametrize("value", [None, "", "16/01/2024", "not-a-date"])
def test_expiry_date_absent_for_missing_or_malformed_delivery(value):
    assert expiry_date(value) is None


def test_delivery_estimate_route(client, auth_headers):
    response = client.post(
        "/api/quotations/delivery-estimate",
        json={
            "items": [{"negotiation": "muestra_g"}, {"negotiation": "BODEGA", "additions": [""]}],
            "fromDate": "2024-03-01",
        },
        headers=auth_headers("COMPRAS"),
    )

    assert response.status_code == 200
    assert response.get_json() == {
        "leadDays": 28,
        "deliveryDate": "2024-03-29",
        "expiryDate": "2024-04-28",
    }


def test_delivery_estimate_route_empty_items(client, admin_headers):
    response = client.post(
        "/api/quotations/delivery-estimate", json={"items": []}, headers=admin_headers
    )

    assert response.status_code == 200
    assert response.get_json() == {"leadDays": 0, "deliveryDate": None, "expiryDate": None}


@pytest.mark.parametrize("extra_days", [10**9, -1])
def test_delivery_estimate_route_rejects_out_of_range_expiry_days(
    client, admin_headers, extra_days
):
    response = client.post(
        "/api/quotations/delivery-estimate",
        json={
            "items": [{"negotiation": "BODEGA"}],
            "fromDate": "2024-03-01",
            "expiryExtraDays": extra_days,
        },
        headers=admin_headers,
    )

    assert response.status_code == 400
    assert response.get_json()["error"] == "Datos inválidos"
