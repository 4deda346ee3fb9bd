from types import SimpleNamespace
from unittest.mock import patch

import pytest

from maltose.mclient.retry import (
    RetryConfig,
    calculate_retry_delay,
    default_retry_config,
    should_retry,
)


def _no_jitter(base=1.0, maximum=30.0, factor=2.0):
    return RetryConfig(
        count=3,
        base_interval=base,
        max_interval=maximum,
        backoff_factor=factor,
        jitter_factor=0.0,
    )


def test_default_retry_config_values():
    config = default_retry_config()
    assert config == RetryConfig(
        count=3,
        base_interval=1.0,
        max_interval=30.0,
        backoff_factor=2.0,
        jitter_factor=0.1,
    )


def test_empty_config_uses_plain_interval():
    assert calculate_retry_delay(RetryConfig(), 0.25, 5) == 0.25


def test_first_retry_waits_base_interval():
    assert calculate_retry_delay(_no_jitter(), 0.0, 1) == 1.0


def test_exponential_backoff_third_retry():
    assert calculate_retry_delay(_no_jitter(), 0.0, 3) == pytest.approx(4.0)


def test_backoff_is_monotonic_and_capped():
    config = _no_jitter()
    delays = [calculate_retry_delay(config, 0.0, n) for n in range(1, 12)]
    assert delays == sorted(delays)
    assert max(delays) == config.max_interval


def test_base_above_max_is_not_capped_on_first_retry():
    config = _no_jitter(base=5.0, maximum=2.0)
    assert calculate_retry_delay(config, 0.0, 1) == 5.0
    assert calculate_retry_delay(config, 0.0, 2) == 2.0


def test_jitter_stays_within_bounds():
    config = default_retry_config()
    for _ in range(200):
        delay = calculate_retry_delay(config, 0.0, 1)
        assert 0.9 <= delay <= 1.1


def test_jitter_upper_extreme():
    with patch("random.random", return_value=1.0):
        delay = calculate_retry_delay(default_retry_config(), 0.0, 1)
    assert delay == pytest.approx(1.1)


def test_jitter_never_goes_negative():
    config = RetryConfig(
        count=1, base_interval=1.0, max_interval=10.0, backoff_factor=2.0, jitter_factor=2.0
    )
    with patch("random.random", return_value=0.0):
        assert calculate_retry_delay(config, 0.0, 1) == 0.0


def test_default_condition_retries_on_error():
    assert should_retry(None, None, OSError("boom")) is True


@pytest.mark.parametrize(
    "status, expected",
    [(200, False), (404, False), (429, True), (500, True), (503, True)],
)
def test_default_condition_by_status(status, expected):
    response = SimpleNamespace(status_code=status)
    assert should_retry(None, response, None) is expected


def test_default_condition_without_response_or_error():
    assert should_retry(None, None, None) is False


def test_custom_condition_is_consulted():
    calls = []

    def condition(response, error):
        calls.append((response, error))
        return response.status_code == 418

    teapot = SimpleNamespace(status_code=418)
    server_error = SimpleNamespace(status_code=500)
    assert should_retry(condition, teapot, None) is True
    assert should_retry(condition, server_error, None) is False
    assert calls == [(teapot, None), (server_error, None)]