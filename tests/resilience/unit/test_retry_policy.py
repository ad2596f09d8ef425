"""Retry policy tests."""

from __future__ import annotations

import random

import pytest
from dynamo_load_tester.configuration.runtime_settings import RetrySettings
from dynamo_load_tester.error_classification import ErrorCategory
from dynamo_load_tester.resilience import RetryPolicy


def _policy(jitter: float = 0.0, seed: int = 3) -> RetryPolicy:
    return RetryPolicy(
        RetrySettings(
            max_attempts=3, base_delay_seconds=0.05, max_delay_seconds=1.0, jitter_factor=jitter
        ),
        rng=random.Random(seed),
    )


@pytest.mark.parametrize(
    "category",
    [
        ErrorCategory.CAPACITY_EXCEEDED,
        ErrorCategory.THROTTLING,
        ErrorCategory.NETWORK,
        ErrorCategory.TIMEOUT,
    ],
)
def test_transient_categories_are_retried_until_ceiling(category: ErrorCategory) -> None:
    policy = _policy()

    assert policy.should_retry(category, 1)
    assert policy.should_retry(category, 2)
    assert not policy.should_retry(category, 3)


@pytest.mark.parametrize(
    "category",
    [
        ErrorCategory.DUPLICATE_KEY,
        ErrorCategory.VALIDATION,
        ErrorCategory.UNKNOWN,
        ErrorCategory.CIRCUIT_OPEN,
    ],
)
def test_deterministic_categories_are_never_retried(category: ErrorCategory) -> None:
    assert not _policy().should_retry(category, 1)


def test_backoff_doubles_until_capped_without_jitter() -> None:
    policy = _policy()

    delays = [policy.backoff(attempt) for attempt in range(1, 8)]

    assert delays[:5] == pytest.approx([0.05, 0.1, 0.2, 0.4, 0.8])
    assert delays[5:] == pytest.approx([1.0, 1.0])


def test_backoff_jitter_stays_within_bounds() -> None:
    policy = _policy(jitter=0.1, seed=99)

    for _ in range(200):
        delay = policy.backoff(2)
        assert 0.09 - 1e-9 <= delay <= 0.11 + 1e-9
    assert policy.backoff(50) <= 1.0
