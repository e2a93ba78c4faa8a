"""
Best-effort write rate limiting for the invite endpoints.

State lives in a store object injected through FastAPI dependencies. The
default in-memory store is per process: it resets on restart and is not
shared between instances, so it deters abuse but is not a security boundary.
"""

from __future__ import annotations

import logging
import math
import threading
import time
from collections import deque
from dataclasses import dataclass
from typing import Callable, Deque, Dict, Optional

from fastapi import Request

from legate.config import settings
from legate.middleware.errors import RateLimited

logger = logging.getLogger(__name__)

USER_AGENT_KEY_LENGTH = 64


@dataclass(frozen=True)
class RateLimitDecision:
    allowed: bool
    retry_after_seconds: int = 0


class RateLimitStore:
    """Abstract base class for rate limit storage backends."""

    def hit(self, key: str, max_hits: int, window_seconds: float, now: float) -> RateLimitDecision:
        raise NotImplementedError


class InMemoryRateLimitStore(RateLimitStore):
    """
    Sliding log of hit timestamps per key.

    Keys whose window has fully elapsed are swept at most once per window,
    so the map only holds clients seen within roughly the last two windows.
    """

    def __init__(self):
        self._hits: Dict[str, Deque[float]] = {}
        self._lock = threading.Lock()
        self._last_sweep: Optional[float] = None

    def hit(self, key: str, max_hits: int, window_seconds: float, now: float) -> RateLimitDecision:
        with self._lock:
            if self._last_sweep is None:
                self._last_sweep = now
            elif now - self._last_sweep >= window_seconds:
                self._sweep(now - window_seconds)
                self._last_sweep = now

            hits = self._hits.setdefault(key, deque())
            _drop_before(hits, now - window_seconds)

            if len(hits) >= max_hits:
                retry_after = max(1, math.ceil(hits[0] + window_seconds - now))
                return RateLimitDecision(allowed=False, retry_after_seconds=retry_after)

            hits.append(now)
            return RateLimitDecision(allowed=True)

    def _sweep(self, cutoff: float) -> None:
        for key in list(self._hits):
            hits = self._hits[key]
            _drop_before(hits, cutoff)
            if not hits:
                del self._hits[key]

    def tracked_keys(self) -> int:
        with self._lock:
            return len(self._hits)

    def reset(self) -> None:
        with self._lock:
            self._hits.clear()
            self._last_sweep = None


def _drop_before(hits: Deque[float], cutoff: float) -> None:
    while hits and hits[0] <= cutoff:
        hits.popleft()


def client_key(request: Request) -> str:
    """First X-Forwarded-For hop, else X-Real-IP, else a truncated user agent."""
    forwarded = request.headers.get("x-forwarded-for", "")
    ip = forwarded.split(",")[0].strip() if forwarded else ""
    if ip:
        return ip

    real_ip = request.headers.get("x-real-ip", "").strip()
    if real_ip:
        return real_ip

    user_agent = request.headers.get("user-agent", "")[:USER_AGENT_KEY_LENGTH]
    return f"ua:{user_agent}"


class WriteRateLimiter:
    """
    Fixed budget of write actions per client within a sliding window.

    Example:
        limiter = WriteRateLimiter(InMemoryRateLimitStore(), max_requests=40)
        limiter.check(request)  # raises RateLimited when over budget
    """

    def __init__(
        self,
        store: RateLimitStore,
        max_requests: int,
        window_seconds: float = 60,
        prefix: str = "estate-invites",
        clock: Callable[[], float] = time.monotonic,
    ):
        self.store = store
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self.prefix = prefix
        self.clock = clock

    def check_key(self, key: str) -> RateLimitDecision:
        return self.store.hit(
            f"{self.prefix}:{key}", self.max_requests, self.window_seconds, self.clock()
        )

    def check(self, request: Request) -> None:
        key = client_key(request)
        decision = self.check_key(key)
        if not decision.allowed:
            logger.warning("Invite write rate limit exceeded for key: %s", key)
            raise RateLimited(
                "Too many requests. Please try again shortly.",
                retry_after_seconds=decision.retry_after_seconds,
            )


def create_invite_rate_limiter(store: Optional[RateLimitStore] = None) -> WriteRateLimiter:
    return WriteRateLimiter(
        store or InMemoryRateLimitStore(),
        max_requests=settings.INVITE_RATE_LIMIT_MAX_WRITES,
        window_seconds=settings.INVITE_RATE_LIMIT_WINDOW_SECONDS,
    )


def get_invite_rate_limiter(request: Request) -> WriteRateLimiter:
    """Dependency returning the process-wide limiter stored on app.state."""
    limiter = getattr(request.app.state, "invite_rate_limiter", None)
    if limiter is None:
        limiter = create_invite_rate_limiter()
        request.app.state.invite_rate_limiter = limiter
    return limiter
