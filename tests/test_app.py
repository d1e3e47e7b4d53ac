import asyncio

import pytest
from fastapi import HTTPException
from starlette.requests import Request

from chorescape import config, rate_limiter


def test_health(client):
    response = client.get("/api/health")

    assert response.status_code == 200
    assert response.json() == {"ok": True}


def test_unknown_route(client):
    response = client.get("/api/nope")

    assert response.status_code == 404
    assert response.json() == {"message": "Route not found", "data": []}


def test_api_responses_carry_security_headers(client):
    response = client.get("/api/public/services")

    assert response.headers["X-Content-Type-Options"] == "nosniff"
    assert response.headers["X-Frame-Options"] == "DENY"
    assert response.headers["Cache-Control"] == "no-store"


def test_oversized_body_is_rejected(client, monkeypatch):
    monkeypatch.setattr(config, "MAX_BODY_BYTES", 100)

    response = client.post("/api/bookings/guest", content=b"x" * 500)

    assert response.status_code == 413
    assert response.json()["message"].startswith("File size is too large")


def test_cors_allows_pages_dev_previews(client):
    origin = "https://feature-x.chorescape.pages.dev"

    response = client.options(
        "/api/health",
        headers={"Origin": origin, "Access-Control-Request-Method": "GET"},
    )

    assert response.headers["access-control-allow-origin"] == origin


# ============================================================================
# RATE LIMITING
# ============================================================================


class FakeRedis:
    def __init__(self):
        self.values = {}

    def get(self, key):
        return self.values.get(key)

    def ttl(self, key):
        return -1

    def set(self, key, value, ex=None):
        self.values[key] = value


def _request(ip: str, forwarded: str = None) -> Request:
    headers = [(b"x-forwarded-for", forwarded.encode())] if forwarded else []
    return Request({"type": "http", "headers": headers, "client": (ip, 1234)})


def test_rate_limit_disabled_lets_requests_through(monkeypatch):
    monkeypatch.setattr(config, "RATE_LIMIT_ENABLED", False)
    limiter = rate_limiter.create_rate_limiter(limit=1, window_seconds=60, key_prefix="off")

    for _ in range(3):
        assert asyncio.run(limiter(_request("10.0.0.1"))) is None


def test_rate_limit_rejects_over_limit(monkeypatch):
    fake = FakeRedis()
    monkeypatch.setattr(config, "RATE_LIMIT_ENABLED", True)
    monkeypatch.setattr(rate_limiter, "get_redis_client", lambda: fake)
    rate_limiter.memory_cache.clear()
    limiter = rate_limiter.create_rate_limiter(limit=2, window_seconds=60, key_prefix="on")

    asyncio.run(limiter(_request("10.0.0.2")))
    asyncio.run(limiter(_request("10.0.0.2")))
    with pytest.raises(HTTPException) as exc_info:
        asyncio.run(limiter(_request("10.0.0.2")))

    assert exc_info.value.status_code == 429
    assert "Retry-After" in exc_info.value.headers
    # Another address has its own window
    asyncio.run(limiter(_request("10.0.0.3")))


def test_spoofed_forwarded_for_shares_the_callers_window(monkeypatch):
    fake = FakeRedis()
    monkeypatch.setattr(config, "RATE_LIMIT_ENABLED", True)
    monkeypatch.setattr(config, "TRUSTED_PROXIES", set())
    monkeypatch.setattr(rate_limiter, "get_redis_client", lambda: fake)
    rate_limiter.memory_cache.clear()
    limiter = rate_limiter.create_rate_limiter(limit=1, window_seconds=60, key_prefix="spoof")

    asyncio.run(limiter(_request("10.0.0.4", forwarded="198.51.100.1")))
    with pytest.raises(HTTPException) as exc_info:
        asyncio.run(limiter(_request("10.0.0.4", forwarded="198.51.100.2")))

    assert exc_info.value.status_code == 429


def test_forwarded_for_is_read_behind_a_trusted_proxy(monkeypatch):
    monkeypatch.setattr(config, "TRUSTED_PROXIES", {"10.0.0.10"})

    behind_proxy = _request("10.0.0.10", forwarded="203.0.113.5, 198.51.100.7")
    direct = _request("192.0.2.8", forwarded="198.51.100.7")

    assert rate_limiter.client_ip(behind_proxy) == "198.51.100.7"
    assert rate_limiter.client_ip(direct) == "192.0.2.8"


def test_limiting_defaults_off_without_redis(client, booking_payload, monkeypatch):
    monkeypatch.delenv("REDIS_URL", raising=False)
    monkeypatch.delenv("REDIS_HOST", raising=False)
    assert config.redis_configured() is False
    monkeypatch.setattr(config, "RATE_LIMIT_ENABLED", config.redis_configured())

    booking_payload["guestEmail"] = "a@b.com"
    response = client.post("/api/bookings/guest", json=booking_payload)

    assert response.status_code == 201

    monkeypatch.setenv("REDIS_URL", "redis://cache:6379/0")
    assert config.redis_configured() is True
