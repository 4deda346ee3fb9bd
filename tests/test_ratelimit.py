from unittest.mock import patch

import pytest

from maltose.mclient.ratelimit import (
    RateLimitConfig,
    RateLimitError,
    TokenBucketLimiter,
    middleware_rate_limit,
)


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


def test_burst_is_limited_by_bucket_size():
    clock = FakeClock()
    limiter = TokenBucketLimiter(1, 2, clock=clock)
    assert limiter.try_acquire() is True
    assert limiter.try_acquire() is True
    assert limiter.try_acquire() is False


def test_tokens_refill_over_time():
    clock = FakeClock()
    limiter = TokenBucketLimiter(4, 1, clock=clock)
    assert limiter.try_acquire() is True
    assert limiter.try_acquire() is False
    clock.advance(1 / 4)
    assert limiter.try_acquire() is True


def test_refill_is_capped_at_bucket_size():
    clock = FakeClock()
    limiter = TokenBucketLimiter(10, 3, clock=clock)
    for _ in range(3):
        assert limiter.try_acquire()
    clock.advance(1000)
    assert limiter.tokens == 3
    acquired = sum(limiter.try_acquire() for _ in range(10))
    assert acquired == 3


def test_non_positive_rate_is_rejected():
    with pytest.raises(ValueError):
        TokenBucketLimiter(0, 1)


def test_wait_returns_at_once_when_token_available():
    clock = FakeClock()
    limiter = TokenBucketLimiter(1, 1, clock=clock)
    with patch("maltose.mclient.ratelimit.time.sleep") as sleep:
        limiter.wait()
    assert sleep.call_count == 0
    assert limiter.try_acquire() is False


def test_wait_sleeps_until_next_token():
    clock = FakeClock()
    limiter = TokenBucketLimiter(2, 1, clock=clock)
    assert limiter.try_acquire()
    with patch("maltose.mclient.ratelimit.time.sleep", side_effect=clock.advance) as sleep:
        limiter.wait()
    assert sleep.call_count == 1
    assert sleep.call_args.args[0] == pytest.approx(0.5)
    assert clock.now == pytest.approx(0.5)


def test_wait_times_out():
    clock = FakeClock()
    limiter = TokenBucketLimiter(1, 1, clock=clock)
    assert limiter.try_acquire()
    with patch("maltose.mclient.ratelimit.time.sleep", side_effect=clock.advance):
        with pytest.raises(TimeoutError):
            limiter.wait(timeout=0.1)
    assert clock.now == pytest.approx(0.1)


def test_middleware_passes_request_through():
    middleware = middleware_rate_limit(RateLimitConfig(requests_per_second=2, burst=1))
    handler = middleware(lambda request: ("handled", request))
    assert handler("req") == ("handled", "req")


def test_middleware_default_burst_allows_many_requests():
    handler = middleware_rate_limit(RateLimitConfig(timeout=0))(lambda request: request)
    results = [handler(n) for n in range(10)]
    assert results == list(range(10))


def test_middleware_skip_bypasses_limiter():
    config = RateLimitConfig(
        requests_per_second=0.001, burst=1, timeout=0, skip=lambda request: True
    )
    handler = middleware_rate_limit(config)(lambda request: request * 2)
    assert [handler(n) for n in range(3)] == [0, 2, 4]


def test_middleware_raises_rate_limit_error():
    config = RateLimitConfig(requests_per_second=0.001, burst=1, timeout=0)
    handler = middleware_rate_limit(config)(lambda request: request)
    assert handler("first") == "first"
    with pytest.raises(RateLimitError) as info:
        handler("second")
    assert isinstance(info.value.__cause__, TimeoutError)
    assert str(info.value).startswith("rate limit error: ")


def test_middleware_error_handler_supplies_response():
    seen = []

    def on_error(exc):
        seen.append(exc)
        return "fallback"

    config = RateLimitConfig(
        requests_per_second=0.001, burst=1, timeout=0, error_handler=on_error
    )
    handler = middleware_rate_limit(config)(lambda request: request)
    assert handler("first") == "first"
    assert handler("second") == "fallback"
    assert len(seen) == 1
    assert isinstance(seen[0], TimeoutError)