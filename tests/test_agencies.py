from __future__ import annotations

import pytest


@pytest.fixture
def agency(client, make_user, login):
    owner = make_user()
    login(owner)
    r = client.post(
        "/api/agency",
        json={
            "name": "Northwind Studio",
            "email": "hello@northwind.example",
            "bookingLink": "https://cal.example/northwind",
            "primaryColor": "#112233",
            "description": "Product studio",
        },
    )
    assert r.status_code == 201
    body = r.json()
    for svc in (
        {"serviceId": "mvp", "name": "MVP Build", "description": "Eight week build", "outcomes": ["Launch"],
         "priceLower": 5000, "priceUpper": 15000, "whenToRecommend": ["No product yet"]},
        {"serviceId": "audit", "name": "Design Audit", "description": "One week review"},
        {"serviceId": "retired", "name": "Zombie", "description": "Old offer", "isActive": False},
    ):
        assert client.post(f"/api/agency/{body['id']}/services", json=svc).status_code == 201
    return body


def test_create_returns_api_key(agency):
    assert agency["apiKey"]
    assert agency["currency"] == "$"
    assert agency["isActive"] is True


def test_public_projection_by_id_hides_api_key(client, agency):
    client.cookies.clear()
    r = client.get(f"/api/agency/{agency['id']}")
    assert r.status_code == 200
    body = r.json()
    assert body["name"] == "Northwind Studio"
    assert body["primaryColor"] == "#112233"
    assert "apiKey" not in body
    assert "description" not in body


def test_unknown_agency_id_is_not_found(client):
    assert client.get("/api/agency/999").status_code == 404


def test_agency_by_api_key(client, agency):
    client.cookies.clear()
    r = client.get("/api/planform/agency", params={"apiKey": agency["apiKey"]})
    assert r.status_code == 200
    assert r.json()["id"] == agency["id"]
    assert "apiKey" not in r.json()


def test_missing_api_key_is_unauthorized(client):
    r = client.get("/api/planform/agency")
    assert r.status_code == 401
    assert r.json()["message"] == "Valid API key required"
    assert client.get("/api/services").status_code == 401


def test_unknown_api_key_is_not_found(client, agency):
    assert client.get("/api/planform/agency", params={"apiKey": "nope"}).status_code == 404
    r = client.get("/api/services", params={"apiKey": "nope"})
    assert r.status_code == 404


def test_services_by_api_key_lists_active_only(client, agency):
    client.cookies.clear()
    r = client.get("/api/services", params={"apiKey": agency["apiKey"]})
    assert r.status_code == 200
    services = r.json()
    assert [s["serviceId"] for s in services] == ["audit", "mvp"]
    mvp = services[1]
    assert mvp["outcomes"] == ["Launch"]
    assert mvp["whenToRecommend"] == ["No product yet"]
    assert mvp["priceLower"] == 5000


def test_owner_sees_inactive_services(client, agency):
    services = client.get(f"/api/agency/{agency['id']}/services").json()
    assert {s["serviceId"] for s in services} == {"mvp", "audit", "retired"}


def test_duplicate_service_id_conflicts(client, agency):
    r = client.post(
        f"/api/agency/{agency['id']}/services",
        json={"serviceId": "mvp", "name": "Again", "description": "dup"},
    )
    assert r.status_code == 409


def test_non_member_cannot_manage_services(client, agency, make_user, login):
    login(make_user())
    assert client.get(f"/api/agency/{agency['id']}/services").status_code == 403
    r = client.post(f"/api/agency/{agency['id']}/services", json={"serviceId": "x", "name": "X", "description": "x"})
    assert r.status_code == 403
