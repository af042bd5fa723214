"""미들웨어 테스트"""
import httpx
import pytest
from fastapi import FastAPI

from config import settings
from api.middleware import (
    ApiProtectionMiddleware, AuthRateLimitMiddleware, RateLimiter, SecurityHeadersMiddleware,
    is_request_allowed,
)

ALLOWED = ["https://shop.example.com"]
DEV = ["http://localhost:5173"]


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


# ==================== RateLimiter ====================

def test_rate_limiter_fixed_window():
    clock = FakeClock()
    limiter = RateLimiter(window_seconds=60, clock=clock)

    assert [limiter.hit("1.2.3.4", 3) for _ in range(4)] == [True, True, True, False]
    assert limiter.hit("5.6.7.8", 3) is True

    clock.now += 61
    assert limiter.hit("1.2.3.4", 3) is True


def test_rate_limiter_sweeps_expired_entries():
    clock = FakeClock()
    limiter = RateLimiter(window_seconds=60, sweep_interval=120, clock=clock)
    for i in range(50):
        limiter.hit(f"10.0.0.{i}", 5)
    assert len(limiter) == 50

    clock.now += 61
    assert limiter.sweep() == 50
    assert len(limiter) == 0


def test_rate_limiter_sweeps_on_hit_after_interval():
    clock = FakeClock()
    limiter = RateLimiter(window_seconds=10, sweep_interval=30, clock=clock)
    limiter.hit("a", 1)
    limiter.hit("b", 1)

    clock.now += 31
    limiter.hit("c", 1)

    assert len(limiter) == 1


# ==================== origin 검사 ====================

@pytest.mark.parametrize("origin,referer,production,expected", [
    ("https://shop.example.com", None, True, True),
    ("https://evil.example.com", None, True, False),
    (None, "https://shop.example.com/orders/5", True, True),
    (None, "https://evil.example.com/", True, False),
    (None, None, True, False),
    (None, "not a url", True, False),
    (None, None, False, True),
    ("http://localhost:5173", None, False, True),
    ("https://evil.example.com", None, False, False),
])
def test_is_request_allowed(origin, referer, production, expected):
    assert is_request_allowed(origin, referer, production, ALLOWED, DEV) is expected


# ==================== 앱에 연결된 동작 ====================

def build_app(limiter=None):
    app = FastAPI()

    @app.get("/api/orders")
    async def orders():
        return {"ok": True}

    @app.post("/api/deposits/ipn-callback")
    async def ipn():
        return {"ok": True}

    @app.post("/api/auth/login")
    async def login():
        return {"ok": True}

    @app.post("/api/auth/signup")
    async def signup():
        return {"ok": True}

    @app.get("/")
    async def root():
        return {"ok": True}

    app.add_middleware(ApiProtectionMiddleware)
    app.add_middleware(AuthRateLimitMiddleware, limiter=limiter)
    app.add_middleware(SecurityHeadersMiddleware)
    return app


def client_for(app):
    return httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://testserver")


@pytest.fixture
def production(monkeypatch):
    monkeypatch.setattr(settings, "PRODUCTION", True)
    monkeypatch.setattr(settings, "CORS_ORIGINS", ALLOWED)


@pytest.mark.asyncio
async def test_direct_api_access_blocked_in_production(production):
    async with client_for(build_app()) as client:
        blocked = await client.get("/api/orders")
        allowed = await client.get("/api/orders", headers={"Origin": "https://shop.example.com"})
        root = await client.get("/")

    assert blocked.status_code == 403
    assert blocked.json() == {"success": False, "error": "Direct API access not allowed"}
    assert allowed.status_code == 200
    assert root.status_code == 200


@pytest.mark.asyncio
async def test_ipn_callback_is_reachable_without_origin(production):
    async with client_for(build_app()) as client:
        response = await client.post("/api/deposits/ipn-callback")
    assert response.status_code == 200


@pytest.mark.asyncio
async def test_security_headers_present():
    async with client_for(build_app()) as client:
        response = await client.get("/")
    assert response.headers["X-Frame-Options"] == "DENY"
    assert response.headers["X-Content-Type-Options"] == "nosniff"


@pytest.mark.asyncio
async def test_auth_rate_limit(monkeypatch):
    monkeypatch.setattr(settings, "RATE_LIMIT_MAX_AUTH_REQUESTS", 2)
    monkeypatch.setattr(settings, "RATE_LIMIT_MAX_SIGNUP_REQUESTS", 3)
    app = build_app(limiter=RateLimiter(window_seconds=60, clock=FakeClock()))

    async with client_for(app) as client:
        logins = [(await client.post("/api/auth/login")).status_code for _ in range(3)]
        orders = await client.get("/api/orders")

    assert logins == [200, 200, 429]
    assert orders.status_code == 200


@pytest.mark.asyncio
async def test_signup_limit_message(monkeypatch):
    monkeypatch.setattr(settings, "RATE_LIMIT_MAX_SIGNUP_REQUESTS", 1)
    app = build_app(limiter=RateLimiter(window_seconds=60, clock=FakeClock()))

    async with client_for(app) as client:
        await client.post("/api/auth/signup")
        response = await client.post("/api/auth/signup")

    assert response.status_code == 429
    assert response.json()["error"].startswith("Too many registration attempts")
