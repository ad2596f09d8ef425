"""Resilient writer tests."""

from __future__ import annotations

from datetime import UTC, datetime

from dynamo_load_tester.configuration.runtime_settings import (
    CircuitBreakerSettings,
    RetrySettings,
)
from dynamo_load_tester.error_classification import ErrorCategory, WriteAck, WriteFailure
from dynamo_load_tester.item_generation import WriteItem
from dynamo_load_tester.resilience import CircuitBreaker, CircuitState, ResilientWriter, RetryPolicy


def _item(key: str = "test-item-1") -> WriteItem:
    return WriteItem(key=key, payload="x" * 10, created_at=datetime.now(UTC))


class _ScriptedStore:
    """Returns queued results in order, repeating the last one."""

    def __init__(self, *results) -> None:
        self._results = list(results)
        self.calls = 0

    def write(self, item: WriteItem):
        self.calls += 1
        result = self._results[0] if len(self._results) == 1 else self._results.pop(0)
        if isinstance(result, Exception):
            raise result
        return result


def _capacity_failure(key: str = "test-item-1") -> WriteFailure:
    return WriteFailure(key, "ProvisionedThroughputExceededException", "capacity exceeded")


def _writer(store, *, max_attempts: int = 3, breaker: CircuitBreaker | None = None):
    sleeps: list[float] = []

    def _sleep(delay: float) -> bool:
        sleeps.append(delay)
        return False

    writer = ResilientWriter(
        store,
        retry_policy=RetryPolicy(RetrySettings(max_attempts=max_attempts, jitter_factor=0.0)),
        circuit_breaker=breaker
        or CircuitBreaker(CircuitBreakerSettings(window_size=100, minimum_calls=100)),
        sleep=_sleep,
    )
    return writer, sleeps


def test_success_on_first_attempt() -> None:
    store = _ScriptedStore(WriteAck("test-item-1"))
    writer, sleeps = _writer(store)

    result = writer.write(_item())

    assert result.success
    assert result.attempts == 1
    assert result.error_category is None
    assert sleeps == []


def test_transient_failure_is_retried_then_succeeds() -> None:
    store = _ScriptedStore(
        WriteFailure("test-item-1", "ThrottlingException", "slow down"), WriteAck("test-item-1")
    )
    writer, sleeps = _writer(store)

    result = writer.write(_item())

    assert result.success
    assert result.attempts == 2
    assert sleeps == [0.05]


def test_capacity_failures_exhaust_attempts_and_surface_last_error() -> None:
    store = _ScriptedStore(_capacity_failure())
    writer, sleeps = _writer(store, max_attempts=3)

    result = writer.write(_item())

    assert not result.success
    assert result.error_category is ErrorCategory.CAPACITY_EXCEEDED
    assert result.attempts == 3
    assert store.calls == 3
    assert len(sleeps) == 2


def test_duplicate_key_is_not_retried() -> None:
    store = _ScriptedStore(
        WriteFailure("test-item-1", "ConditionalCheckFailedException", "conditional check failed")
    )
    writer, _ = _writer(store)

    result = writer.write(_item())

    assert result.error_category is ErrorCategory.DUPLICATE_KEY
    assert result.attempts == 1
    assert store.calls == 1


def test_unexpected_exception_becomes_classified_failure() -> None:
    store = _ScriptedStore(ConnectionResetError("reset by peer"), WriteAck("test-item-1"))
    writer, _ = _writer(store)

    result = writer.write(_item())

    assert result.success
    assert result.attempts == 2


def test_open_circuit_short_circuits_without_calling_store() -> None:
    breaker = CircuitBreaker(
        CircuitBreakerSettings(window_size=4, minimum_calls=2, cooldown_seconds=60.0)
    )
    store = _ScriptedStore(_capacity_failure())
    writer, _ = _writer(store, max_attempts=1, breaker=breaker)
    writer.write(_item())
    writer.write(_item())
    assert breaker.state is CircuitState.OPEN
    calls_before = store.calls

    result = writer.write(_item())

    assert result.error_category is ErrorCategory.CIRCUIT_OPEN
    assert result.attempts == 0
    assert store.calls == calls_before


def test_breaker_rejecting_a_retry_keeps_last_store_error() -> None:
    breaker = CircuitBreaker(
        CircuitBreakerSettings(window_size=1, minimum_calls=1, cooldown_seconds=60.0)
    )
    store = _ScriptedStore(_capacity_failure())
    writer, _ = _writer(store, max_attempts=3, breaker=breaker)

    result = writer.write(_item())

    assert result.error_category is ErrorCategory.CAPACITY_EXCEEDED
    assert result.attempts == 1
    assert store.calls == 1


def test_duplicate_failures_do_not_open_circuit() -> None:
    breaker = CircuitBreaker(CircuitBreakerSettings(window_size=4, minimum_calls=2))
    store = _ScriptedStore(
        WriteFailure("test-item-1", "ConditionalCheckFailedException", "conditional check failed")
    )
    writer, _ = _writer(store, breaker=breaker)

    for _ in range(10):
        writer.write(_item())

    assert breaker.state is CircuitState.CLOSED


def test_cancelled_backoff_stops_retrying() -> None:
    store = _ScriptedStore(_capacity_failure())
    writer = ResilientWriter(store, retry_policy=RetryPolicy(), sleep=lambda delay: True)

    result = writer.write(_item())

    assert result.error_category is ErrorCategory.CAPACITY_EXCEEDED
    assert result.attempts == 1
