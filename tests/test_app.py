# File: tests/test_app.py

from tests.helpers import auth


def test_health_is_outside_api_prefix(client):
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json()["data"]["status"] == "ok"
    assert client.get("/api/health").status_code == 404


def test_unknown_route_uses_envelope(client):
    r = client.get("/api/nowhere")
    assert r.status_code == 404
    assert r.json() == {"success": False, "error": {"message": "Route not found", "code": "NOT_FOUND"}}


def test_validation_errors_are_400(client, citizen):
    r = client.post("/api/issues", json={"title": "no"}, headers=auth(citizen))
    assert r.status_code == 400
    body = r.json()
    assert body["success"] is False
    assert body["error"]["code"] == "VALIDATION_ERROR"


def test_categories_in_sort_order(client, places):
    r = client.get("/api/categories")
    assert [c["slug"] for c in r.json()["data"]] == ["roads", "waste"]


def test_cities_wards_departments(client, places):
    cities = client.get("/api/cities").json()["data"]
    assert [c["name"] for c in cities] == ["Nagpur", "Pune"]
    assert cities[0]["state"]["code"] == "MH"

    wards = client.get(f"/api/cities/{places['city']}/wards").json()["data"]
    assert [w["name"] for w in wards] == ["Dharampeth"]
    departments = client.get(f"/api/cities/{places['city']}/departments").json()["data"]
    assert [d["code"] for d in departments] == ["PWD"]

    r = client.get("/api/cities/999/wards")
    assert r.status_code == 404
    assert r.json()["error"]["code"] == "CITY_NOT_FOUND"
