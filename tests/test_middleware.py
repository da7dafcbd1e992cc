"""Middleware tests: request ID, rate limiting, CORS, error handling."""

from __future__ import annotations

from collections import Counter

import pytest
from httpx import AsyncClient
from redis.exceptions import ConnectionError as RedisConnectionError

pytestmark = pytest.mark.asyncio


class _FakePipeline:
    def __init__(self, counts: Counter[str]) -> None:
        self._counts = counts

    def incr(self, key: str) -> None:
        pass

    def expire(self, key: str, seconds: int) -> None:
        pass

    async def execute(self) -> list[int]:
        # One bucket regardless of window, so a test never straddles two.
        self._counts["hits"] += 1
        return [self._counts["hits"], 1]


class _FakeRedis:
    def __init__(self) -> None:
        self.counts: Counter[str] = Counter()

    def pipeline(self) -> _FakePipeline:
        return _FakePipeline(self.counts)


class _BrokenPipeline(_FakePipeline):
    async def execute(self) -> list[int]:
        raise RedisConnectionError("connection refused")


class _BrokenRedis(_FakeRedis):
    def pipeline(self) -> _FakePipeline:
        return _BrokenPipeline(self.counts)


async def test_request_id_generated(client: AsyncClient) -> None:
    """Request ID is auto-generated when not provided."""
    response = await client.get("/health")
    assert len(response.headers["x-request-id"]) == 36


async def test_no_rate_limit_without_redis(client: AsyncClient) -> None:
    """Without Redis requests pass and carry no rate limit headers."""
    response = await client.get("/version")
    assert response.status_code == 200
    assert "x-ratelimit-limit" not in response.headers


async def test_rate_limit_blocks_excess(client: AsyncClient, monkeypatch) -> None:
    """101st request in a window returns 429 with Retry-After."""
    fake = _FakeRedis()
    monkeypatch.setattr("toptsp.middleware.rate_limit.get_redis", lambda: fake)

    for _ in range(100):
        response = await client.get("/api/v1/ranking")
        assert response.status_code == 200
    assert response.headers["x-ratelimit-remaining"] == "0"

    response = await client.get("/api/v1/ranking")
    assert response.status_code == 429
    assert response.headers["retry-after"] == "60"


async def test_health_exempt_from_rate_limit(client: AsyncClient, monkeypatch) -> None:
    fake = _FakeRedis()
    monkeypatch.setattr("toptsp.middleware.rate_limit.get_redis", lambda: fake)
    for _ in range(150):
        response = await client.get("/health")
        assert response.status_code == 200
    assert not fake.counts


async def test_redis_error_lets_request_through(client: AsyncClient, monkeypatch) -> None:
    monkeypatch.setattr("toptsp.middleware.rate_limit.get_redis", lambda: _BrokenRedis())
    response = await client.get("/api/v1/ranking")
    assert response.status_code == 200


async def test_cors_preflight(client: AsyncClient) -> None:
    """CORS preflight returns access-control-allow-origin for configured origin."""
    response = await client.options(
        "/api/v1/ranking",
        headers={
            "Origin": "http://localhost:5173",
            "Access-Control-Request-Method": "GET",
        },
    )
    assert response.headers["access-control-allow-origin"] == "http://localhost:5173"


async def test_404_returns_json(client: AsyncClient) -> None:
    response = await client.get("/nonexistent-path")
    assert response.status_code == 404
    assert response.json()["detail"] == "Not Found"


async def test_validation_error_shape(client: AsyncClient) -> None:
    response = await client.post(
        "/api/v1/admin/ranking/freeze",
        json={"frozen": "maybe"},
        headers={"X-Admin-Token": "test-admin-token"},
    )
    assert response.status_code == 422
    data = response.json()
    assert data["detail"] == "Validation error"
    assert data["code"] == "request_invalid"
    assert data["errors"][0]["field"] == "frozen"
