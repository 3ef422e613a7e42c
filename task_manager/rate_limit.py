"""
Fixed-window rate limiting for the credential endpoints.

``RateLimiter`` keeps one counter per key in a process-local dictionary.
A window opens on the first request for a key and lasts ``window_ms``;
once it has elapsed the next request opens a fresh window.

Known limitation: the state lives in this process only.  Behind more than
one worker or instance each process counts separately, so a shared
key-value store with TTL is required before scaling out.
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass
from functools import wraps

from flask import current_app, request

from .errors import RateLimitError

logger = logging.getLogger(__name__)


def _now_ms() -> int:
    return int(time.time() * 1000)


@dataclass
class _Window:
    count: int
    reset_at: int


@dataclass(frozen=True)
class RateLimitResult:
    """Outcome of a single ``RateLimiter.check`` call."""

    allowed: bool
    remaining: int
    reset_at: int


class RateLimiter:
    """
    In-memory fixed-window request counter.

    Args:
        clock: Callable returning the current time in epoch milliseconds.
            Injectable so tests can move time deterministically.
    """

    def __init__(self, clock: Callable[[], int] = _now_ms) -> None:
        self._clock = clock
        self._windows: dict[str, _Window] = {}
        self._lock = threading.Lock()

    def check(self, key: str, max_requests: int, window_ms: int) -> RateLimitResult:
        """
        Count a request against *key* and report whether it may proceed.

        The request that brings the count up to ``max_requests`` is still
        allowed; the next one inside the same window is the first rejected.
        """
        with self._lock:
            now = self._clock()
            window = self._windows.get(key)

            if window is None or now > window.reset_at:
                reset_at = now + window_ms
                self._windows[key] = _Window(count=1, reset_at=reset_at)
                return RateLimitResult(True, max_requests - 1, reset_at)

            if window.count >= max_requests:
                return RateLimitResult(False, 0, window.reset_at)

            window.count += 1
            return RateLimitResult(True, max_requests - window.count, window.reset_at)

    def reset(self, key: str | None = None) -> None:
        """Forget one key, or every key when *key* is ``None``."""
        with self._lock:
            if key is None:
                self._windows.clear()
            else:
                self._windows.pop(key, None)


def client_address() -> str:
    """Best-effort client IP: first ``X-Forwarded-For`` hop, then the socket peer."""
    forwarded = request.headers.get("X-Forwarded-For", "")
    first_hop = forwarded.split(",")[0].strip()
    return first_hop or request.remote_addr or "unknown"


def rate_limit(action: str, limit_setting: str, window_setting: str, message: str):
    """
    Decorator that applies the application's rate limiter to a view.

    The counter key is ``"<action>:<client address>"``.  Limits are read
    from the app config at request time so tests and deployments can tune
    them without re-registering routes.

    Args:
        action: Prefix for the counter key, e.g. ``"login"``.
        limit_setting: Config key holding the maximum request count.
        window_setting: Config key holding the window length in ms.
        message: Error message returned with the 429 response.
    """

    def decorator(view_func):
        @wraps(view_func)
        def wrapper(*args, **kwargs):
            if current_app.config.get("RATE_LIMIT_ENABLED", True):
                limiter: RateLimiter = current_app.extensions["rate_limiter"]
                key = f"{action}:{client_address()}"
                result = limiter.check(
                    key,
                    int(current_app.config[limit_setting]),
                    int(current_app.config[window_setting]),
                )
                if not result.allowed:
                    logger.warning("Rate limit exceeded for %s", key)
                    raise RateLimitError(message)
            return view_func(*args, **kwargs)

        return wrapper

    return decorator
