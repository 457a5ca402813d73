"""
Storefront Backend — Auth Rate Limiter Tests
==============================================

RateLimitMiddleware mounted on a throwaway FastAPI app so limits can be
tiny without touching the shared application instance.
"""

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from app.middleware.rate_limit import RateLimitMiddleware


def _app() -> FastAPI:
    app = FastAPI()
    app.add_middleware(
        RateLimitMiddleware,
        limited_paths=["/api/auth/login"],
        max_requests=2,
        window_seconds=60,
    )

    @app.post("/api/auth/login")
    async def login():
        return {"ok": True}

    @app.get("/api/products")
    async def products():
        return {"ok": True}

    return app


@pytest.mark.asyncio
async def test_limited_path_returns_429_envelope():
    async with AsyncClient(transport=ASGITransport(app=_app()), base_url="http://test") as client:
        assert (await client.post("/api/auth/login")).status_code == 200
        assert (await client.post("/api/auth/login")).status_code == 200

        response = await client.post("/api/auth/login")

    assert response.status_code == 429
    assert int(response.headers["Retry-After"]) >= 1
    body = response.json()
    assert body["status"] == "Failed"
    assert body["statusCode"] == 429
    assert body["error"] == "rate_limit_exceeded"
    assert "retry_after" in body["details"]


@pytest.mark.asyncio
async def test_other_paths_are_not_limited():
    async with AsyncClient(transport=ASGITransport(app=_app()), base_url="http://test") as client:
        for _ in range(5):
            assert (await client.get("/api/products")).status_code == 200
