from __future__ import annotations

import pytest

from palettemap.providers import ProviderFatalError, ProviderTransientError
from palettemap.retry import RetryPolicy


def test_defaults_allow_three_attempts() -> None:
    policy = RetryPolicy()
    assert policy.attempts == 3
    assert policy.delay(1) == pytest.approx(0.6)
    assert policy.delay(2) == pytest.approx(1.2)


def test_only_transient_errors_are_retried() -> None:
    policy = RetryPolicy(max_retries=2)
    transient = ProviderTransientError("rate limited", status=429)

    assert policy.should_retry(transient, 1)
    assert policy.should_retry(transient, 2)
    assert not policy.should_retry(transient, 3)
    assert not policy.should_retry(ProviderFatalError("bad key", status=401), 1)
    assert not policy.should_retry(ValueError("boom"), 1)


def test_zero_retries_means_single_attempt() -> None:
    policy = RetryPolicy(max_retries=0, backoff_ms=0)
    assert policy.attempts == 1
    assert not policy.should_retry(ProviderTransientError("timeout"), 1)
    assert policy.delay(1) == 0.0


@pytest.mark.parametrize("kwargs", [{"max_retries": -1}, {"backoff_ms": -5}])
def test_negative_values_are_rejected(kwargs) -> None:
    with pytest.raises(ValueError):
        RetryPolicy(**kwargs)
