"""Retry settings, the default retry condition and backoff delays."""

from __future__ import annotations

import random
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

RetryCondition = Callable[[Any, "BaseException | None"], bool]


@dataclass(frozen=True)
class RetryConfig:
    """How often and how far apart requests are retried; intervals are in seconds.

    ``count`` retries follow the first attempt. Delays start at ``base_interval``,
    are multiplied by ``backoff_factor`` per retry up to ``max_interval``, and get
    random jitter of up to ``jitter_factor`` times the delay either way.
    """

    count: int = 0
    base_interval: float = 0.0
    max_interval: float = 0.0
    backoff_factor: float = 0.0
    jitter_factor: float = 0.0


def default_retry_config() -> RetryConfig:
    """Three retries from one second, doubling up to thirty, with 10% jitter."""
    return RetryConfig(
        count=3,
        base_interval=1.0,
        max_interval=30.0,
        backoff_factor=2.0,
        jitter_factor=0.1,
    )


def should_retry(
    condition: RetryCondition | None,
    response: Any,
    error: BaseException | None,
) -> bool:
    """Decide whether to retry, by ``condition`` if given, else on errors, 5xx and 429."""
    if condition is not None:
        return bool(condition(response, error))
    if error is not None:
        return True
    if response is not None:
        status = getattr(response, "status_code", 0) or 0
        return status >= 500 or status == 429
    return False


def calculate_retry_delay(config: RetryConfig, interval: float, attempt: int) -> float:
    """Seconds to wait before retry number ``attempt``."""
    if config == RetryConfig():
        return interval

    delay = config.base_interval
    for _ in range(1, attempt):
        delay *= config.backoff_factor
        if delay > config.max_interval:
            delay = config.max_interval
            break

    if config.jitter_factor > 0:
        delay += delay * config.jitter_factor * (random.random() * 2 - 1)
        delay = max(delay, 0.0)
    return delay