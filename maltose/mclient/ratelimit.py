"""Token-bucket rate limiting and a client middleware built on it."""

from __future__ import annotations

import threading
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from maltose.internal import intlog

Handler = Callable[[Any], Any]
Middleware = Callable[[Handler], Handler]

_DEFAULT_RPS = 100.0
_DEFAULT_BURST = 10


class RateLimitError(Exception):
    """Raised when a request could not obtain a rate-limit token."""


class TokenBucketLimiter:
    """A token bucket refilled at ``rate`` tokens per second, holding at most ``bucket_size``."""

    def __init__(
        self,
        rate: float,
        bucket_size: int,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if rate <= 0:
            raise ValueError("rate must be positive")
        self.rate = float(rate)
        self.bucket_size = int(bucket_size)
        self._tokens = float(bucket_size)
        self._clock = clock
        self._last = clock()
        self._lock = threading.Lock()

    @property
    def tokens(self) -> float:
        """Tokens currently in the bucket, after refilling."""
        with self._lock:
            self._refill()
            return self._tokens

    def _refill(self) -> None:
        now = self._clock()
        elapsed = now - self._last
        self._last = now
        self._tokens = min(self._tokens + elapsed * self.rate, float(self.bucket_size))

    def try_acquire(self) -> bool:
        """Take a token if one is available, without blocking."""
        with self._lock:
            self._refill()
            if self._tokens >= 1:
                self._tokens -= 1
                return True
            return False

    def _reserve(self) -> tuple[float, bool]:
        with self._lock:
            self._refill()
            if self._tokens >= 1:
                self._tokens -= 1
                return 0.0, True
            return (1 - self._tokens) / self.rate, False

    def wait(self, timeout: float | None = None) -> None:
        """Block until a token is taken; raise TimeoutError once ``timeout`` seconds pass."""
        deadline = None if timeout is None else self._clock() + timeout
        while True:
            wait_time, allowed = self._reserve()
            if allowed:
                return
            if deadline is not None:
                remaining = deadline - self._clock()
                if remaining <= 0:
                    raise TimeoutError("rate limit wait timed out")
                if wait_time > remaining:
                    time.sleep(remaining)
                    raise TimeoutError("rate limit wait timed out")
            time.sleep(wait_time)


@dataclass
class RateLimitConfig:
    """Options for the rate-limiting middleware.

    ``requests_per_second`` and ``burst`` fall back to 100 and 10 when not positive.
    ``skip`` exempts a request, ``error_handler`` turns a failed wait into a response,
    and ``timeout`` bounds how long a request waits for a token.
    """

    requests_per_second: float = 0.0
    burst: int = 0
    skip: Callable[[Any], bool] | None = None
    error_handler: Callable[[Exception], Any] | None = None
    timeout: float | None = None


def _describe_url(request: Any) -> str:
    url = getattr(request, "request_url", None)
    return str(url) if url else "<no url>"


def middleware_rate_limit(config: RateLimitConfig) -> Middleware:
    """Return a middleware that lets requests through at a limited rate."""
    rps = config.requests_per_second if config.requests_per_second > 0 else _DEFAULT_RPS
    burst = config.burst if config.burst > 0 else _DEFAULT_BURST
    limiter = TokenBucketLimiter(rps, burst)

    def middleware(next_handler: Handler) -> Handler:
        def handler(request: Any) -> Any:
            if config.skip is not None and config.skip(request):
                return next_handler(request)
            try:
                limiter.wait(config.timeout)
            except TimeoutError as exc:
                if config.error_handler is not None:
                    return config.error_handler(exc)
                raise RateLimitError(f"rate limit error: {exc}") from exc
            intlog.printf("Rate limiter allowed request to %s", _describe_url(request))
            return next_handler(request)

        return handler

    return middleware