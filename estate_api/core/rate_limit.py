from __future__ import annotations

"""Fixed-window request limiter for the public API.

Counts requests per client IP inside a window; once the window's reset time
passes the counter starts over. Entries are purged lazily, once per window,
instead of by a background timer.
"""
import logging
import math
import time
from dataclasses import dataclass
from typing import Callable, Dict

from fastapi import Request
from fastapi.responses import JSONResponse
from starlette import status

logger = logging.getLogger("estate_api.rate_limit")

DEFAULT_MESSAGE = "Too many requests, please try again later."


@dataclass
class _WindowEntry:
    count: int
    reset_at: float


@dataclass(frozen=True)
class RateLimitResult:
    allowed: bool
    limit: int
    remaining: int
    reset_at: float
    retry_after: int

    def headers(self) -> Dict[str, str]:
        return {
            "X-RateLimit-Limit": str(self.limit),
            "X-RateLimit-Remaining": str(self.remaining),
            "X-RateLimit-Reset": str(math.ceil(self.reset_at)),
        }


class FixedWindowRateLimiter:
    def __init__(
        self,
        max_requests: int,
        window_seconds: float,
        clock: Callable[[], float] = time.time,
    ):
        if max_requests <= 0 or window_seconds <= 0:
            raise ValueError("max_requests and window_seconds must be positive")
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._clock = clock
        self._entries: Dict[str, _WindowEntry] = {}
        self._next_purge = clock() + window_seconds

    def __len__(self) -> int:
        return len(self._entries)

    def _purge_expired(self, now: float) -> None:
        if now < self._next_purge:
            return
        expired = [k for k, v in self._entries.items() if v.reset_at < now]
        for k in expired:
            self._entries.pop(k, None)
        self._next_purge = now + self.window_seconds

    def hit(self, key: str) -> RateLimitResult:
        now = self._clock()
        self._purge_expired(now)
        entry = self._entries.get(key)
        if entry is None or entry.reset_at < now:
            entry = _WindowEntry(count=1, reset_at=now + self.window_seconds)
            self._entries[key] = entry
        else:
            entry.count += 1
        return RateLimitResult(
            allowed=entry.count <= self.max_requests,
            limit=self.max_requests,
            remaining=max(0, self.max_requests - entry.count),
            reset_at=entry.reset_at,
            retry_after=max(0, math.ceil(entry.reset_at - now)),
        )


def client_ip(request: Request) -> str:
    forwarded_for = request.headers.get("x-forwarded-for")
    if forwarded_for:
        return forwarded_for.split(",")[0].strip()
    if request.client and request.client.host:
        return request.client.host
    return "unknown"


def create_rate_limit_middleware(
    limiter: FixedWindowRateLimiter,
    path_prefix: str = "/api",
    message: str = DEFAULT_MESSAGE,
):
    async def rate_limit_middleware(request: Request, call_next):  # type: ignore
        if not request.url.path.startswith(path_prefix):
            return await call_next(request)

        key = client_ip(request)
        result = limiter.hit(key)
        headers = result.headers()
        if not result.allowed:
            logger.warning(
                "rate limit exceeded: ip=%s path=%s", key, request.url.path
            )
            headers["Retry-After"] = str(result.retry_after)
            return JSONResponse(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                content={"message": message, "retryAfter": result.retry_after},
                headers=headers,
            )
        response = await call_next(request)
        response.headers.update(headers)
        return response

    return rate_limit_middleware
