"""In-memory sliding-window rate limiting for the chat endpoint.

Limits are per identity: the ``X-User-ID`` header when present, else the
client address. State is per process, so multi-worker deployments enforce
limits per worker.
"""

from __future__ import annotations

import time
from collections import deque
from dataclasses import dataclass, field
from typing import Awaitable, Callable

from fastapi import Request
from fastapi.responses import JSONResponse, Response

from .config import Settings

Middleware = Callable[[Request, Callable[[Request], Awaitable[Response]]], Awaitable[Response]]


@dataclass
class _Bucket:
    per_minute: deque[float] = field(default_factory=deque)
    per_second: deque[float] = field(default_factory=deque)


class InMemoryRateLimiter:
    def __init__(self, per_minute: int, per_second: int, clock: Callable[[], float] = time.monotonic) -> None:
        self.per_minute_limit = per_minute
        self.per_second_limit = per_second
        self._clock = clock
        self._buckets: dict[str, _Bucket] = {}

    def check(self, key: str) -> tuple[bool, int, int, int]:
        """Return ``(allowed, limit, remaining, retry_or_reset_seconds)``.

        When denied, the last value is how many seconds to wait.
        """

        now = self._clock()
        bucket = self._buckets.setdefault(key, _Bucket())

        while bucket.per_minute and now - bucket.per_minute[0] >= 60.0:
            bucket.per_minute.popleft()
        while bucket.per_second and now - bucket.per_second[0] >= 1.0:
            bucket.per_second.popleft()

        remaining_min = self.per_minute_limit - len(bucket.per_minute)
        remaining_sec = self.per_second_limit - len(bucket.per_second)
        reset_min = int(60.0 - (now - bucket.per_minute[0])) if bucket.per_minute else 0
        reset_sec = int(1.0 - (now - bucket.per_second[0])) if bucket.per_second else 0
        limit = min(self.per_minute_limit, self.per_second_limit)

        if remaining_min <= 0 or remaining_sec <= 0:
            return False, limit, 0, max(1, reset_min, reset_sec)

        bucket.per_minute.append(now)
        bucket.per_second.append(now)
        return True, limit, max(min(remaining_min, remaining_sec) - 1, 0), max(reset_min, reset_sec)


def _identity(request: Request) -> str:
    user_id = request.headers.get("x-user-id")
    if user_id:
        return f"user:{user_id}"
    if request.client and request.client.host:
        return f"ip:{request.client.host}"
    return "ip:unknown"


def _matches(patterns: list[str], path: str) -> bool:
    for pattern in patterns:
        if pattern.endswith("/*"):
            if path.startswith(pattern[:-1]):
                return True
        elif path == pattern:
            return True
    return False


def create_rate_limit_middleware(settings: Settings) -> Middleware:
    limiter = InMemoryRateLimiter(
        per_minute=settings.rate_limit_per_minute,
        per_second=settings.rate_limit_burst_per_second,
    )

    async def rate_limit_middleware(request: Request, call_next) -> Response:
        if not settings.rate_limit_enabled or not _matches(settings.rate_limit_include_paths, request.url.path):
            return await call_next(request)

        allowed, limit, remaining, seconds = limiter.check(_identity(request))
        reset_epoch = int(time.time()) + seconds
        if not allowed:
            return JSONResponse(
                status_code=429,
                headers={
                    "Retry-After": str(seconds),
                    "X-RateLimit-Limit": str(limit),
                    "X-RateLimit-Remaining": "0",
                    "X-RateLimit-Reset": str(reset_epoch),
                },
                content={
                    "error": "rate_limit_exceeded",
                    "message": "Too many requests. Please retry later.",
                    "retry_after_seconds": seconds,
                },
            )

        response = await call_next(request)
        response.headers.setdefault("X-RateLimit-Limit", str(limit))
        response.headers.setdefault("X-RateLimit-Remaining", str(remaining))
        response.headers.setdefault("X-RateLimit-Reset", str(reset_epoch))
        return response

    return rate_limit_middleware
