"""In-memory rate limiting for credential endpoints.

Sliding window per client IP. Only login is limited: 5 attempts per IP
per 15 minutes. Disabled when ``TESTING`` is set.
"""

import logging
import os
import time
from collections import defaultdict
from dataclasses import dataclass, field
from threading import Lock

from fastapi import HTTPException, Request, status

logger = logging.getLogger("coinbook.middleware.rate_limit")


def _is_rate_limiting_disabled() -> bool:
    return os.getenv("TESTING", "").lower() in ("1", "true", "yes")


@dataclass
class RateLimitConfig:
    """Configuration for a rate limit rule."""
    max_requests: int
    window_seconds: int
    key_prefix: str


RATE_LIMITS = {
    "login": RateLimitConfig(
        max_requests=5,
        window_seconds=15 * 60,
        key_prefix="login",
    ),
}


@dataclass
class RateLimitEntry:
    """Request timestamps inside the current window."""
    timestamps: list[float] = field(default_factory=list)


class InMemoryRateLimiter:
    """Thread-safe sliding-window limiter."""

    def __init__(self, cleanup_interval: int = 300) -> None:
        self._buckets: dict[str, RateLimitEntry] = defaultdict(RateLimitEntry)
        self._lock = Lock()
        self._last_cleanup = 0.0
        self._cleanup_interval = cleanup_interval

    @staticmethod
    def client_ip(request: Request) -> str:
        """Client IP, honouring the first hop of ``X-Forwarded-For``."""
        forwarded = request.headers.get("x-forwarded-for")
        if forwarded:
            return forwarded.split(",")[0].strip()
        real_ip = request.headers.get("x-real-ip")
        if real_ip:
            return real_ip
        if request.client:
            return request.client.host
        return "unknown"

    def _cleanup_old_entries(self, now: float) -> None:
        """Drop keys with no attempt left in any window. Caller holds the lock."""
        if now - self._last_cleanup < self._cleanup_interval:
            return

        cutoff = now - max(cfg.window_seconds for cfg in RATE_LIMITS.values())
        stale = []
        for key, entry in self._buckets.items():
            entry.timestamps = [ts for ts in entry.timestamps if ts > cutoff]
            if not entry.timestamps:
                stale.append(key)

        for key in stale:
            del self._buckets[key]

        self._last_cleanup = now
        if stale:
            logger.debug("Cleaned up %d expired rate limit entries", len(stale))

    def hit(self, key: str, config: RateLimitConfig, now: float) -> int:
        """Record one attempt for ``key``.

        Returns:
            0 when allowed, otherwise the seconds until the oldest attempt
            leaves the window.
        """
        with self._lock:
            self._cleanup_old_entries(now)
            entry = self._buckets[key]
            window_start = now - config.window_seconds
            entry.timestamps = [ts for ts in entry.timestamps if ts > window_start]

            if len(entry.timestamps) >= config.max_requests:
                return int(min(entry.timestamps) + config.window_seconds - now) + 1

            entry.timestamps.append(now)
            return 0

    def check_rate_limit(self, request: Request, limit_name: str) -> None:
        """Raise 429 with ``Retry-After`` when the limit is exhausted."""
        if _is_rate_limiting_disabled():
            return

        config = RATE_LIMITS[limit_name]
        ip = self.client_ip(request)
        retry_after = self.hit(f"{config.key_prefix}:{ip}", config, time.time())
        if retry_after:
            logger.warning(
                "Rate limit exceeded: %s from %s (retry after %ds)",
                limit_name, ip, retry_after,
            )
            raise HTTPException(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                detail="Too many requests. Please try again later.",
                headers={"Retry-After": str(retry_after)},
            )

    def reset(self) -> None:
        with self._lock:
            self._buckets.clear()


rate_limiter = InMemoryRateLimiter()
