"""
HTTP 미들웨어

- SecurityHeadersMiddleware: 보안 응답 헤더
- AuthRateLimitMiddleware: /api/auth 요청을 클라이언트 주소별로 제한
- ApiProtectionMiddleware: 허용된 프론트엔드 origin 이외의 직접 API 호출 차단
  (결제 게이트웨이 IPN 콜백 경로는 제외)
"""
import time
from dataclasses import dataclass
from typing import Dict, Iterable, Optional
from urllib.parse import urlparse

from fastapi import Request
from fastapi.responses import JSONResponse
from loguru import logger
from starlette.middleware.base import BaseHTTPMiddleware

from config import settings

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "X-XSS-Protection": "1; mode=block",
    "Referrer-Policy": "strict-origin-when-cross-origin",
    "Permissions-Policy": "geolocation=(), microphone=(), camera=()",
    "Strict-Transport-Security": "max-age=31536000; includeSubDomains; preload",
}


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)
        for name, value in SECURITY_HEADERS.items():
            response.headers[name] = value
        return response


@dataclass
class _Window:
    count: int
    reset_at: float


class RateLimiter:
    """프로세스 로컬 고정 윈도우 카운터. 만료된 항목은 주기적으로 정리된다."""

    def __init__(self, window_seconds: int, sweep_interval: Optional[float] = None, clock=time.monotonic):
        self.window_seconds = window_seconds
        self.sweep_interval = sweep_interval or window_seconds
        self._clock = clock
        self._entries: Dict[str, _Window] = {}
        self._next_sweep = clock() + self.sweep_interval

    def __len__(self) -> int:
        return len(self._entries)

    def sweep(self) -> int:
        now = self._clock()
        expired = [key for key, entry in self._entries.items() if entry.reset_at <= now]
        for key in expired:
            del self._entries[key]
        self._next_sweep = now + self.sweep_interval
        return len(expired)

    def hit(self, key: str, limit: int) -> bool:
        """요청 1건을 기록하고 한도 이내면 True"""
        now = self._clock()
        if now >= self._next_sweep:
            self.sweep()
        entry = self._entries.get(key)
        if entry is None or now >= entry.reset_at:
            self._entries[key] = _Window(count=1, reset_at=now + self.window_seconds)
            return True
        entry.count += 1
        return entry.count <= limit


class AuthRateLimitMiddleware(BaseHTTPMiddleware):
    def __init__(self, app, limiter: Optional[RateLimiter] = None):
        super().__init__(app)
        self.limiter = limiter or RateLimiter(settings.RATE_LIMIT_WINDOW_SECONDS)

    async def dispatch(self, request: Request, call_next):
        path = request.url.path
        if not path.startswith("/api/auth"):
            return await call_next(request)

        key = request.client.host if request.client else "anon"
        is_signup = path == "/api/auth/signup"
        limit = settings.RATE_LIMIT_MAX_SIGNUP_REQUESTS if is_signup else settings.RATE_LIMIT_MAX_AUTH_REQUESTS
        if not self.limiter.hit(key, limit):
            logger.warning(f"인증 요청 한도 초과: {key} {path}")
            message = ("Too many registration attempts. Please wait a few minutes before trying again."
                       if is_signup else "Too many requests")
            return JSONResponse(status_code=429, content={"success": False, "error": message})
        return await call_next(request)


def _origin_of(url: Optional[str]) -> Optional[str]:
    if not url:
        return None
    parsed = urlparse(url)
    if not parsed.scheme or not parsed.netloc:
        return None
    return f"{parsed.scheme}://{parsed.netloc}"


def is_request_allowed(origin: Optional[str], referer: Optional[str], production: bool,
                       allowed_origins: Iterable[str], dev_origins: Iterable[str]) -> bool:
    """운영: origin(없으면 referer의 origin)이 허용 목록에 있어야 한다.
    개발: origin이 없거나 개발용 origin이면 허용."""
    if production:
        allowed = set(allowed_origins)
        if origin:
            return origin in allowed
        return _origin_of(referer) in allowed
    return not origin or origin in set(dev_origins)


class ApiProtectionMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        path = request.url.path
        # 외부 결제 게이트웨이는 브라우저가 아니므로 IPN 경로는 검사하지 않는다
        if not path.startswith("/api/") or path in settings.IPN_CALLBACK_PATHS:
            return await call_next(request)

        origin = request.headers.get("origin")
        referer = request.headers.get("referer")
        if not is_request_allowed(origin, referer, settings.PRODUCTION,
                                  settings.CORS_ORIGINS, settings.DEV_ORIGINS):
            logger.warning(f"직접 API 접근 차단: {request.method} {path} from {origin or referer or 'unknown'}")
            return JSONResponse(status_code=403,
                                content={"success": False, "error": "Direct API access not allowed"})
        return await call_next(request)
