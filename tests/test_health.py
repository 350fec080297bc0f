"""Tests for GET /health."""


def test_health_reports_components(api_client) -> None:
    client, _ = api_client
    resp = client.get("/health")
    assert resp.status_code == 200
    data = resp.json()
    assert data["status"] == "healthy"
    assert data["components"] == {"app": "ok", "database": "ok", "registry": "ok"}
    assert data["version"]
    assert data["uptimeSeconds"] >= 0
    assert "timestamp" in data


def test_health_degraded_when_registry_down(api_client) -> None:
    client, fake = api_client
    fake.fail = True
    try:
        resp = client.get("/health")
    finally:
        fake.fail = False
    assert resp.status_code == 200
    assert resp.json()["status"] == "degraded"
    assert resp.json()["components"]["registry"] == "error"


def test_health_needs_no_token(api_client) -> None:
    client, _ = api_client
    resp = client.get("/health", headers={"Authorization": "Bearer garbage"})
    assert resp.status_code == 200
