"""Sliding-window rate limiting for session issuance and API endpoints.

Counts are best-effort: the in-memory store is local to one process, so limits
reset on restart and are not shared between instances. The Redis store is the
extension point for deployments that need a shared view.
"""

from __future__ import annotations

import logging
import secrets
from collections import defaultdict, deque
from dataclasses import dataclass
from threading import Lock
from typing import Any, Protocol

import redis

from menu_lens.core.logger import mask_ip
from menu_lens.core.settings import settings
from menu_lens.utils.time import Clock, now_ms

logger = logging.getLogger(__name__)


class WindowStore(Protocol):
    """Storage backend that atomically prunes, checks and records one key."""

    def admit(self, key: str, now: int, window_ms: int, max_per_window: int) -> bool: ...


class MemoryWindowStore:
    """Process-local store mapping each key to its ordered timestamps."""

    def __init__(self) -> None:
        self._windows: dict[str, deque[int]] = defaultdict(deque)
        self._lock = Lock()

    def admit(self, key: str, now: int, window_ms: int, max_per_window: int) -> bool:
        cutoff = now - window_ms
        with self._lock:
            window = self._windows[key]
            while window and window[0] <= cutoff:
                window.popleft()
            if len(window) >= max_per_window:
                return False
            window.append(now)
            return True

    def count(self, key: str) -> int:
        """Return how many timestamps are currently retained for ``key``."""
        with self._lock:
            return len(self._windows.get(key, ()))

    def clear(self) -> None:
        with self._lock:
            self._windows.clear()


class RedisWindowStore:
    """Shared store keeping one sorted set of timestamps per key.

    The prune/count step runs in a transaction; the append is a second round
    trip, so concurrent callers may overshoot the limit slightly.
    """

    def __init__(self, client: Any, prefix: str = "ratelimit") -> None:
        self._redis = client
        self._prefix = prefix

    @classmethod
    def from_url(cls, url: str) -> RedisWindowStore:
        return cls(redis.from_url(url))  # type: ignore[no-untyped-call]

    def admit(self, key: str, now: int, window_ms: int, max_per_window: int) -> bool:
        redis_key = f"{self._prefix}:{key}"
        pipe = self._redis.pipeline()
        pipe.zremrangebyscore(redis_key, 0, now - window_ms)
        pipe.zcard(redis_key)
        _, retained = pipe.execute()
        if int(retained) >= max_per_window:
            return False
        pipe = self._redis.pipeline()
        pipe.zadd(redis_key, {f"{now}-{secrets.token_hex(4)}": now})
        pipe.pexpire(redis_key, window_ms)
        pipe.execute()
        return True


class SlidingWindowRateLimiter:
    """Per-key sliding-window counter with an injected clock and store."""

    def __init__(self, store: WindowStore | None = None, clock: Clock | None = None) -> None:
        self._store = store if store is not None else MemoryWindowStore()
        self._clock = clock or now_ms

    @property
    def store(self) -> WindowStore:
        return self._store

    def allow(self, key: str, window_ms: int, max_per_window: int) -> bool:
        """Return True and record the attempt if ``key`` is under its limit."""
        return self._store.admit(key, self._clock(), window_ms, max_per_window)


@dataclass(frozen=True)
class RateLimitPolicy:
    """A limiter bound to one endpoint's keyspace and window parameters."""

    limiter: SlidingWindowRateLimiter
    namespace: str
    window_ms: int
    max_per_window: int

    def check(self, client_ip: str) -> bool:
        allowed = self.limiter.allow(f"{self.namespace}:{client_ip}", self.window_ms, self.max_per_window)
        if not allowed:
            logger.warning("Rate limit exceeded for %s (IP %s)", self.namespace, mask_ip(client_ip))
        return allowed


def _build_store() -> WindowStore:
    if settings.redis_url:
        return RedisWindowStore.from_url(settings.redis_url)
    return MemoryWindowStore()


_SHARED_LIMITER: SlidingWindowRateLimiter | None = None
_LIMITER_LOCK = Lock()


def get_rate_limiter() -> SlidingWindowRateLimiter:
    """Return the process-wide limiter, creating it on first use."""
    global _SHARED_LIMITER
    with _LIMITER_LOCK:
        if _SHARED_LIMITER is None:
            _SHARED_LIMITER = SlidingWindowRateLimiter(_build_store())
        return _SHARED_LIMITER


def session_issue_policy(limiter: SlidingWindowRateLimiter | None = None) -> RateLimitPolicy:
    """Return the stricter policy guarding token issuance."""
    return RateLimitPolicy(
        limiter=limiter or get_rate_limiter(),
        namespace="create-session",
        window_ms=settings.session_rate_limit_window_ms,
        max_per_window=settings.session_rate_limit_max,
    )


def api_policy(namespace: str, limiter: SlidingWindowRateLimiter | None = None) -> RateLimitPolicy:
    """Return the looser policy guarding one business endpoint."""
    return RateLimitPolicy(
        limiter=limiter or get_rate_limiter(),
        namespace=namespace,
        window_ms=settings.api_rate_limit_window_ms,
        max_per_window=settings.api_rate_limit_max,
    )
