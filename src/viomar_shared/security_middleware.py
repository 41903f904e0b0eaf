"""
Security middleware: per-key fixed-window rate limiting and security headers.
"""

from __future__ import annotations

import logging
import math
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass
from functools import wraps

from flask import current_app, request
from redis import Redis
from redis.exceptions import RedisError

from .errors import RateLimitedError

logger = logging.getLogger(__name__)

RATE_LIMITED_MESSAGE = "Too Many Requests"


def get_client_ip() -> str:
    """
    Get the client IP from proxy headers.

    The first ``X-Forwarded-For`` hop wins, then ``X-Real-IP``; requests
    without either share the ``unknown`` bucket.
    """
    forwarded_for = request.headers.get("X-Forwarded-For", "")
    if forwarded_for:
        return forwarded_for.split(",")[0].strip() or "unknown"

    real_ip = request.headers.get("X-Real-IP", "")
    if real_ip:
        return real_ip.strip()

    return "unknown"


@dataclass(frozen=True)
class RateLimitDecision:
    allowed: bool
    count: int
    limit: int
    retry_after: int = 0

    @property
    def remaining(self) -> int:
        return max(0, self.limit - self.count)


class MemoryRateLimitStore:
    """
    Process-local window counters.

    Each worker process keeps its own counters, so the effective limit of a
    multi-process deployment is ``limit * workers``.
    """

    PURGE_THRESHOLD = 10_000

    def __init__(self):
        self._windows: dict[str, list[float]] = {}
        self._lock = threading.Lock()

    def hit(self, key: str, window_seconds: float, now: float) -> tuple[int, float]:
        """Count one hit for ``key``; returns (count in window, reset_at)."""
        with self._lock:
            state = self._windows.get(key)
            if state is None or state[1] <= now:
                if len(self._windows) >= self.PURGE_THRESHOLD:
                    self._purge(now)
                state = [0, now + window_seconds]
                self._windows[key] = state
            state[0] += 1
            return int(state[0]), state[1]

    def _purge(self, now: float) -> None:
        for key in [k for k, v in self._windows.items() if v[1] <= now]:
            del self._windows[key]

    def reset(self) -> None:
        with self._lock:
            self._windows.clear()


class RedisRateLimitStore:
    """Window counters shared by every instance through Redis."""

    def __init__(self, client: Redis, prefix: str = "viomar:ratelimit:"):
        self.client = client
        self.prefix = prefix

    @classmethod
    def from_url(cls, url: str) -> RedisRateLimitStore:
        return cls(Redis.from_url(url))

    def hit(self, key: str, window_seconds: float, now: float) -> tuple[int, float]:
        redis_key = f"{self.prefix}{key}"
        window_ms = max(1, int(window_seconds * 1000))

        pipe = self.client.pipeline()
        pipe.incr(redis_key)
        pipe.pttl(redis_key)
        count, ttl_ms = pipe.execute()

        if count == 1 or ttl_ms is None or ttl_ms < 0:
            self.client.pexpire(redis_key, window_ms)
            ttl_ms = window_ms

        return int(count), now + ttl_ms / 1000.0

    def reset(self) -> None:
        for key in self.client.scan_iter(match=f"{self.prefix}*"):
            self.client.delete(key)


class RateLimiter:
    """
    Fixed-window rate limiter.

    The first hit on a key opens a window of ``window_seconds``; later hits
    in the same window increment the counter and a counter above ``limit``
    is rejected until the window resets.
    """

    def __init__(self, store=None, clock: Callable[[], float] = time.time, enabled: bool = True):
        self.store = store if store is not None else MemoryRateLimitStore()
        self.clock = clock
        self.enabled = enabled

    def check(self, key: str, limit: int, window_seconds: float) -> RateLimitDecision:
        if not self.enabled:
            return RateLimitDecision(True, 0, limit)

        now = self.clock()
        count, reset_at = self.store.hit(key, window_seconds, now)

        if count > limit:
            retry_after = max(1, math.ceil(reset_at - now))
            return RateLimitDecision(False, count, limit, retry_after)

        return RateLimitDecision(True, count, limit)

    def reset(self) -> None:
        self.store.reset()


def build_rate_limiter(storage_url: str | None, enabled: bool = True) -> RateLimiter:
    """
    Build the limiter for ``RATELIMIT_STORAGE_URL``: ``redis://`` and
    ``rediss://`` select the shared store, anything else the in-memory one.
    """
    if storage_url and storage_url.startswith(("redis://", "rediss://")):
        logger.info("Rate limiting backed by Redis")
        return RateLimiter(RedisRateLimitStore.from_url(storage_url), enabled=enabled)
    return RateLimiter(MemoryRateLimitStore(), enabled=enabled)


def get_rate_limiter() -> RateLimiter | None:
    return current_app.extensions.get("rate_limiter")


def rate_limit(key: str | Callable[..., str], limit: int, window_seconds: float = 60):
    """
    Decorator to rate limit an endpoint.

    Args:
        key: Operation key, or a callable receiving the view kwargs (for
            per-entity limits)
        limit: Maximum requests allowed per window
        window_seconds: Window length in seconds

    The bucket is ``{key}:{method}:{path}:{client ip}``.
    """

    def decorator(f: Callable) -> Callable:
        @wraps(f)
        def decorated_function(*args, **kwargs):
            limiter = get_rate_limiter()
            if limiter is None or not limiter.enabled:
                return f(*args, **kwargs)

            operation_key = key(**kwargs) if callable(key) else key
            bucket = f"{operation_key}:{request.method}:{request.path}:{get_client_ip()}"

            try:
                decision = limiter.check(bucket, limit, window_seconds)
            except RedisError as exc:
                logger.error(f"Rate limit store unavailable for {bucket}: {exc}")
                return f(*args, **kwargs)

            if not decision.allowed:
                logger.warning(
                    f"Rate limit exceeded: key={operation_key} path={request.path} "
                    f"retry_after={decision.retry_after}"
                )
                raise RateLimitedError(
                    decision.retry_after,
                    limit=decision.limit,
                    remaining=decision.remaining,
                    message=RATE_LIMITED_MESSAGE,
                )

            return f(*args, **kwargs)

        return decorated_function

    return decorator


def configure_security_headers(app):
    """
    Configure security headers for the API.

    Args:
        app: Flask application instance
    """

    @app.after_request
    def add_security_headers(response):
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "same-origin"
        response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"

        if request.path.startswith("/api/"):
            response.headers["Cache-Control"] = "no-store"

        return response


def configure_session_security(app):
    """
    Configure secure cookie defaults.

    Args:
        app: Flask application instance
    """
    secure_cookie = app.config.get("SESSION_COOKIE_SECURE")
    if isinstance(secure_cookie, str):
        secure_cookie = secure_cookie.strip().lower() in {"1", "true", "yes", "on"}

    if secure_cookie is None:
        secure_cookie = not app.config.get("DEBUG_MODE", False)

    app.config["SESSION_COOKIE_SECURE"] = bool(secure_cookie)
    app.config.setdefault("SESSION_COOKIE_HTTPONLY", True)
    app.config.setdefault("SESSION_COOKIE_SAMESITE", "Lax")
