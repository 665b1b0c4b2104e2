"""
Fixed-window rate limiting per client address.

Each client gets ``limit`` requests per ``window_seconds``; the count resets
when the window rolls over. State lives in memory, so it is per process and
resets on restart.
"""
import logging
import math
import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional, Tuple

from starlette.requests import Request
from starlette.responses import JSONResponse

import config

logger = logging.getLogger(__name__)


@dataclass
class Window:
    started: float
    count: int


class FixedWindowLimiter:
    def __init__(self, limit: int, window_seconds: float, clock: Callable[[], float] = time.monotonic):
        if limit <= 0:
            raise ValueError("limit must be positive")
        if window_seconds <= 0:
            raise ValueError("window_seconds must be positive")
        self.limit = limit
        self.window_seconds = window_seconds
        self._clock = clock
        self._windows: Dict[str, Window] = {}
        self._lock = threading.Lock()

    def hit(self, key: str) -> Tuple[bool, int, float]:
        """Count one request for ``key``.

        Returns (allowed, remaining, seconds until the window resets).
        """
        with self._lock:
            now = self._clock()
            window = self._windows.get(key)
            if window is None or now - window.started >= self.window_seconds:
                window = Window(started=now, count=0)
                self._windows[key] = window
                self._evict(now)
            reset_in = window.started + self.window_seconds - now
            if window.count >= self.limit:
                return False, 0, reset_in
            window.count += 1
            return True, self.limit - window.count, reset_in

    def _evict(self, now: float) -> None:
        expired = [k for k, w in self._windows.items() if now - w.started >= self.window_seconds]
        for key in expired:
            del self._windows[key]

    def clear(self) -> None:
        with self._lock:
            self._windows.clear()


def client_identifier(request: Request, trust_proxy: bool = False) -> str:
    # the first X-Forwarded-For entry is the original client, but only a trusted proxy sets it
    if trust_proxy:
        forwarded_for = request.headers.get("X-Forwarded-For")
        if forwarded_for:
            return forwarded_for.split(",")[0].strip()
    if request.client:
        return request.client.host
    return "unknown"


class RateLimitMiddleware:
    """ASGI middleware that rejects requests over the limit with 429."""

    EXCLUDED_PATHS = {"/api/health"}

    def __init__(self, app, limit: int = config.RATE_LIMIT_MAX, window_seconds: float = config.RATE_LIMIT_WINDOW_SECONDS,
                 limiter: Optional[FixedWindowLimiter] = None, trust_proxy: bool = config.TRUST_PROXY):
        self.app = app
        self.limiter = limiter or FixedWindowLimiter(limit, window_seconds)
        self.trust_proxy = trust_proxy

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http" or scope.get("path", "") in self.EXCLUDED_PATHS:
            await self.app(scope, receive, send)
            return

        request = Request(scope, receive)
        client_id = client_identifier(request, self.trust_proxy)
        allowed, remaining, reset_in = self.limiter.hit(client_id)
        headers = {
            "X-RateLimit-Limit": str(self.limiter.limit),
            "X-RateLimit-Remaining": str(remaining),
        }

        if not allowed:
            retry_after = max(1, math.ceil(reset_in))
            logger.warning("Rate limit exceeded for %s on %s", client_id, scope.get("path"))
            headers["Retry-After"] = str(retry_after)
            response = JSONResponse(
                status_code=429,
                content={"message": "Too many requests from this IP, please try again later."},
                headers=headers,
            )
            await response(scope, receive, send)
            return

        async def send_with_headers(message):
            if message["type"] == "http.response.start":
                raw = list(message.get("headers", []))
                raw.extend((k.lower().encode("latin-1"), v.encode("latin-1")) for k, v in headers.items())
                message["headers"] = raw
            await send(message)

        await self.app(scope, receive, send_with_headers)
