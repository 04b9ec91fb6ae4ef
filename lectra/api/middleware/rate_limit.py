"""
Fixed-window request rate limiting per client address.

Requests under ``/api/`` beyond the per-window ceiling are rejected
immediately with 429; nothing is queued.
"""

import time
from collections.abc import Callable

from fastapi import Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.types import ASGIApp

from lectra.api.middleware.error_handler import error_body
from lectra.core.exceptions import RateLimitExceededError


class FixedWindowRateLimiter:
    """Counts hits per key inside fixed windows of ``window_seconds``.

    Args:
        limit: Maximum hits per key per window.
        window_seconds: Window length.
        clock: Monotonic time source (injectable for tests).
    """

    def __init__(
        self,
        limit: int,
        window_seconds: float,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._limit = limit
        self._window = window_seconds
        self._clock = clock
        self._windows: dict[str, tuple[float, int]] = {}

    def hit(self, key: str) -> tuple[bool, int]:
        """Record one hit for *key*.

        Returns:
            ``(allowed, retry_after_seconds)``; ``retry_after`` is 0 when allowed.
        """
        now = self._clock()
        start, count = self._windows.get(key, (now, 0))
        if now - start >= self._window:
            start, count = now, 0
        count += 1
        self._windows[key] = (start, count)
        if count > self._limit:
            return False, max(int(start + self._window - now), 1)
        return True, 0

    def prune(self) -> None:
        """Drop windows that have already expired."""
        now = self._clock()
        expired = [k for k, (start, _) in self._windows.items() if now - start >= self._window]
        for k in expired:
            del self._windows[k]


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Reject ``/api/`` requests from addresses that exceed their window."""

    _PREFIX = "/api/"

    def __init__(
        self,
        app: ASGIApp,
        limit: int = 100,
        window_seconds: float = 15 * 60,
        limiter: FixedWindowRateLimiter | None = None,
    ) -> None:
        super().__init__(app)
        self._enabled = limit > 0
        self._limiter = limiter or FixedWindowRateLimiter(limit, window_seconds)
        self._requests_since_prune = 0

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        if not self._enabled or not request.url.path.startswith(self._PREFIX):
            return await call_next(request)

        self._requests_since_prune += 1
        if self._requests_since_prune >= 1000:
            self._limiter.prune()
            self._requests_since_prune = 0

        client = request.client.host if request.client else "unknown"
        allowed, retry_after = self._limiter.hit(client)
        if not allowed:
            exc = RateLimitExceededError(retry_after)
            return JSONResponse(
                status_code=exc.status_code,
                content=error_body(exc.status, exc.detail, exc.code, exc.timestamp),
                headers={"Retry-After": str(retry_after)},
            )
        return await call_next(request)
