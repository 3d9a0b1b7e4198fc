"""Fixed-window rate limiting for inbound API requests.

Admission control only: a request over its limit is rejected with 429 and
the standard X-RateLimit-* headers, never queued. The counter table is
process-local; multi-instance deployments get per-instance limits.
"""

from __future__ import annotations

import asyncio
import contextlib
import hashlib
import logging
import math
import threading
import time
from collections.abc import Callable, Mapping
from dataclasses import dataclass

from cachetools import TTLCache
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from src.config import settings

logger = logging.getLogger(__name__)

_EXEMPT_PATHS = {"/health", "/docs", "/openapi.json", "/redoc"}
_MAX_TRACKED_CLIENTS = 10000


@dataclass(frozen=True)
class RateLimitConfig:
    limit: int
    window_seconds: int = 60


@dataclass
class RateLimitEntry:
    count: int
    reset_time: float


@dataclass(frozen=True)
class RateLimitResult:
    success: bool
    limit: int
    remaining: int
    reset_time: float


class RateLimiter:
    """Fixed-window counters keyed by client identifier.

    ``clock`` returns unix seconds and is injectable for tests. Expired
    entries are dropped on access and by ``sweep()``; ``start()``/``stop()``
    run the sweep periodically and are called by the host application.
    """

    def __init__(
        self,
        clock: Callable[[], float] = time.time,
        sweep_interval: float = 60.0,
        max_window_seconds: int = 3600,
        maxsize: int = _MAX_TRACKED_CLIENTS,
    ):
        self._clock = clock
        self._sweep_interval = sweep_interval
        self._max_window = max_window_seconds
        # TTL bounds idle entries; the per-entry reset_time is what decides the window.
        self._entries: TTLCache[str, RateLimitEntry] = TTLCache(
            maxsize=maxsize, ttl=max_window_seconds, timer=clock
        )
        self._lock = threading.Lock()
        self._task: asyncio.Task | None = None

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def check(self, key: str, limit: int, window_seconds: int) -> RateLimitResult:
        if window_seconds > self._max_window:
            raise ValueError(
                f"window of {window_seconds}s exceeds the limiter maximum of {self._max_window}s"
            )

        with self._lock:
            now = self._clock()
            entry = self._entries.get(key)

            if entry is None or entry.reset_time < now:
                entry = RateLimitEntry(count=1, reset_time=now + window_seconds)
                self._entries[key] = entry
                return RateLimitResult(True, limit, max(0, limit - 1), entry.reset_time)

            # Mutated in place so the cache TTL is not refreshed.
            entry.count += 1
            if entry.count > limit:
                return RateLimitResult(False, limit, 0, entry.reset_time)
            return RateLimitResult(True, limit, limit - entry.count, entry.reset_time)

    def sweep(self) -> int:
        """Remove expired windows; returns how many were dropped."""
        with self._lock:
            now = self._clock()
            self._entries.expire()
            expired = [k for k, e in self._entries.items() if e.reset_time < now]
            for key in expired:
                del self._entries[key]
        if expired:
            logger.debug("Rate limiter swept %d expired window(s)", len(expired))
        return len(expired)

    def reset(self) -> None:
        with self._lock:
            self._entries.clear()

    async def _sweep_loop(self) -> None:
        while True:
            await asyncio.sleep(self._sweep_interval)
            self.sweep()

    def start(self) -> None:
        if self._task is None or self._task.done():
            self._task = asyncio.get_running_loop().create_task(self._sweep_loop())

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._task
        self._task = None


def client_identifier(headers: Mapping[str, str], user_id: str | None = None) -> str:
    """Preference: user id > X-Forwarded-For > X-Real-IP > user-agent hash."""
    if user_id:
        return f"user:{user_id}"

    forwarded_for = headers.get("x-forwarded-for")
    if forwarded_for:
        first = forwarded_for.split(",")[0].strip()
        if first:
            return f"ip:{first}"

    real_ip = headers.get("x-real-ip")
    if real_ip:
        return f"ip:{real_ip.strip()}"

    user_agent = headers.get("user-agent") or "unknown"
    return f"ua:{hashlib.sha256(user_agent.encode()).hexdigest()[:16]}"


def rate_limit_headers(result: RateLimitResult) -> dict[str, str]:
    return {
        "X-RateLimit-Limit": str(result.limit),
        "X-RateLimit-Remaining": str(result.remaining),
        "X-RateLimit-Reset": str(math.ceil(result.reset_time)),
    }


def rate_limit_configs() -> dict[str, RateLimitConfig]:
    return {
        "default": RateLimitConfig(settings.rate_limit_default_per_minute),
        "webhook": RateLimitConfig(settings.rate_limit_webhook_per_minute),
        # Routes that call the GitHub API
        "github": RateLimitConfig(settings.rate_limit_github_per_minute),
        "heavy": RateLimitConfig(settings.rate_limit_heavy_per_minute),
    }


def tier_for_path(path: str, api_prefix: str) -> str:
    if path.startswith(f"{api_prefix}/webhook"):
        return "webhook"
    if path.startswith(f"{api_prefix}/health/sweep"):
        return "heavy"
    if path.startswith(f"{api_prefix}/repos"):
        return "github"
    return "default"


rate_limiter = RateLimiter(sweep_interval=settings.rate_limit_sweep_seconds)


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Apply the per-tier limit to every request and attach X-RateLimit-* headers."""

    def __init__(self, app, limiter: RateLimiter | None = None):
        super().__init__(app)
        self.limiter = limiter or rate_limiter

    async def dispatch(self, request: Request, call_next) -> Response:
        if request.method == "OPTIONS" or request.url.path in _EXEMPT_PATHS:
            return await call_next(request)

        tier = tier_for_path(request.url.path, settings.api_prefix)
        config = rate_limit_configs()[tier]
        client_id = client_identifier(request.headers, request.headers.get("X-User-Id"))
        result = self.limiter.check(f"{tier}:{client_id}", config.limit, config.window_seconds)
        headers = rate_limit_headers(result)

        if not result.success:
            logger.warning("Rate limit exceeded for %s on %s tier", client_id, tier)
            return JSONResponse(
                status_code=429,
                content={"detail": "Too many requests"},
                headers=headers,
            )

        response = await call_next(request)
        response.headers.update(headers)
        return response
