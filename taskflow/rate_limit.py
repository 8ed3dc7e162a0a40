from fastapi import Request
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from .config import settings


def get_storage_uri() -> str:
    return settings.REDIS_URL or settings.RATE_LIMIT_STORAGE_URI


limiter = Limiter(
    key_func=get_remote_address,
    storage_uri=get_storage_uri(),
    headers_enabled=True,
    enabled=settings.RATE_LIMIT_ENABLED,
)

# signup and signin count against one budget per client address
auth_limit = limiter.shared_limit(settings.RATE_LIMIT_AUTH, scope="auth")


def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """429 in the app's error shape, with Retry-After and X-RateLimit-* headers."""
    response = JSONResponse(
        status_code=429,
        content={
            "error": f"Too many attempts ({exc.detail}). Please try again later.",
            "status": 429,
            "path": request.url.path,
        },
    )
    return request.app.state.limiter._inject_headers(response, request.state.view_rate_limit)


__all__ = ["limiter", "auth_limit", "rate_limit_exceeded_handler"]
