"""Per-IP rate limits on /auth/register and /auth/login.

The shared api_client fixture starts with the limiter off; each test here
turns it on against fresh in-memory counters and turns it off again.
"""

import pytest

from api.limiter import limiter

PASSWORD = "Aa1!aaaa"


@pytest.fixture
def client(api_client):
    client, _ = api_client
    limiter.reset()
    limiter.enabled = True
    yield client
    limiter.enabled = False
    limiter.reset()


def _assert_rate_limited(resp) -> None:
    assert resp.status_code == 429
    assert resp.json()["error"]["code"] == "rate_limited"
    assert int(resp.headers["Retry-After"]) > 0


def test_register_allows_five_per_minute(client) -> None:
    for i in range(5):
        resp = client.post(
            "/auth/register",
            json={"email": f"rl{i}@x.com", "phone": f"+4820000000{i}", "password": PASSWORD},
        )
        assert resp.status_code == 201, resp.text

    _assert_rate_limited(
        client.post("/auth/register", json={"email": "rl5@x.com", "phone": "+48200000005", "password": PASSWORD})
    )


def test_login_allows_ten_per_minute(client) -> None:
    body = {"identifier": "nobody@x.com", "password": PASSWORD}
    for _ in range(10):
        assert client.post("/auth/login", json=body).status_code == 401

    _assert_rate_limited(client.post("/auth/login", json=body))


def test_health_is_not_limited(client) -> None:
    for _ in range(15):
        assert client.get("/health").status_code == 200
