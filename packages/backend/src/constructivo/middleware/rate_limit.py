"""Rate limiting middleware — Redis-based fixed window per minute.

Learn: Each IP gets a counter key like "constructivo:rl:{ip}:{bucket}:{minute}".
Public write endpoints (contact form, testimonial submission, reactions,
sign-in) get a much stricter limit than reads, since anyone on the
internet can hit them.

Gracefully skips rate limiting if Redis is unavailable (e.g., in tests).
"""

import re
import time

import structlog
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

logger = structlog.get_logger()

# (method, path pattern) pairs that count against the public-write bucket
PUBLIC_WRITES = [
    ("POST", re.compile(r"^/api/contact$")),
    ("POST", re.compile(r"^/api/testimonials$")),
    ("POST", re.compile(r"^/api/projects/\d+/reactions$")),
    ("GET", re.compile(r"^/api/auth/google(/callback)?$")),
]


def is_public_write(method: str, path: str) -> bool:
    return any(method == m and pattern.match(path) for m, pattern in PUBLIC_WRITES)


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Redis-based rate limiting per IP per minute."""

    def __init__(self, app, default_rpm: int = 120, public_write_rpm: int = 10):
        super().__init__(app)
        self.default_rpm = default_rpm
        self.public_write_rpm = public_write_rpm

    async def dispatch(self, request: Request, call_next) -> Response:
        # No Redis, no rate limiting
        try:
            from constructivo.db.redis_pool import get_redis

            redis = get_redis()
        except RuntimeError:
            return await call_next(request)

        client_ip = request.client.host if request.client else "unknown"
        strict = is_public_write(request.method, request.url.path)
        rpm = self.public_write_rpm if strict else self.default_rpm
        bucket = "write" if strict else "api"
        window = int(time.time() // 60)
        key = f"constructivo:rl:{client_ip}:{bucket}:{window}"

        try:
            count = await redis.incr(key)
            if count == 1:
                await redis.expire(key, 120)
        except Exception as e:
            # Redis error; let the request through
            logger.warning("rate_limit.redis_error", error=str(e))
            return await call_next(request)

        if count > rpm:
            return JSONResponse(
                status_code=429,
                content={"detail": "Rate limit exceeded. Try again later."},
                headers={"Retry-After": "60"},
            )

        response = await call_next(request)
        response.headers["X-RateLimit-Limit"] = str(rpm)
        response.headers["X-RateLimit-Remaining"] = str(max(0, rpm - count))
        return response
