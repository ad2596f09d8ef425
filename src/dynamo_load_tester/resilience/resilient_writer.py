"""Retry and circuit-breaker wrapper around a store writer."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Protocol

from dynamo_load_tester.concurrency_control.run_cancellation import RunCancellation
from dynamo_load_tester.error_classification.error_classifier import classify_failure
from dynamo_load_tester.error_classification.failure_categories import (
    ErrorCategory,
    WriteAck,
    WriteFailure,
    WriteResult,
)
from dynamo_load_tester.item_generation.write_items import WriteItem

from .circuit_breaker import CircuitBreaker
from .retry_policy import RetryPolicy

_LOGGER = logging.getLogger(__name__)


class StoreWriter(Protocol):  # pylint: disable=too-few-public-methods
    """Protocol for the external write operation."""

    def write(self, item: WriteItem) -> WriteResult: ...


@dataclass(frozen=True)
class ResilientWriteResult:
    """Final outcome of one item after retries and circuit breaking."""

    success: bool
    error_category: ErrorCategory | None
    attempts: int
    message: str | None = None

    @staticmethod
    def succeeded(attempts: int) -> ResilientWriteResult:
        return ResilientWriteResult(success=True, error_category=None, attempts=attempts)

    @staticmethod
    def failed(category: ErrorCategory, attempts: int, message: str | None) -> ResilientWriteResult:
        return ResilientWriteResult(
            success=False, error_category=category, attempts=attempts, message=message
        )

    @staticmethod
    def circuit_open() -> ResilientWriteResult:
        return ResilientWriteResult(
            success=False,
            error_category=ErrorCategory.CIRCUIT_OPEN,
            attempts=0,
            message="Circuit breaker is open; write was not attempted.",
        )


class ResilientWriter:  # pylint: disable=too-few-public-methods
    """Writes one item through the circuit breaker, retrying transient failures.

    A call short-circuited before any real attempt is reported as
    ``CircuitOpen``. When the breaker rejects a retry, the last classified
    store error is reported instead.
    """

    def __init__(
        self,
        store_writer: StoreWriter,
        *,
        retry_policy: RetryPolicy | None = None,
        circuit_breaker: CircuitBreaker | None = None,
        classifier: Callable[[WriteFailure], ErrorCategory] = classify_failure,
        cancellation: RunCancellation | None = None,
        sleep: Callable[[float], bool] | None = None,
    ) -> None:
        self._store_writer = store_writer
        self._retry_policy = retry_policy or RetryPolicy()
        self._circuit_breaker = circuit_breaker or CircuitBreaker()
        self._classifier = classifier
        cancellation = cancellation or RunCancellation()
        self._sleep = sleep or cancellation.wait

    @property
    def circuit_breaker(self) -> CircuitBreaker:
        return self._circuit_breaker

    def write(self, item: WriteItem) -> ResilientWriteResult:
        last_failure: tuple[ErrorCategory, str] | None = None
        attempts = 0
        while attempts < self._retry_policy.max_attempts:
            permit = self._circuit_breaker.try_acquire()
            if permit is None:
                if last_failure is None:
                    return ResilientWriteResult.circuit_open()
                break

            attempts += 1
            result = self._call_store(item)
            if isinstance(result, WriteAck):
                self._circuit_breaker.record_result(permit, failed=False)
                return ResilientWriteResult.succeeded(attempts)

            category = self._classifier(result)
            self._circuit_breaker.record_result(
                permit, failed=category.counts_against_store
            )
            last_failure = (category, result.message)
            if not self._retry_policy.should_retry(category, attempts):
                break

            delay = self._retry_policy.backoff(attempts)
            _LOGGER.debug(
                "Attempt %d for %s failed with %s, retrying in %.0f ms",
                attempts,
                item.key,
                category.value,
                delay * 1000,
            )
            if self._sleep(delay):
                _LOGGER.debug("Retry of %s abandoned after cancellation", item.key)
                break

        category, message = last_failure if last_failure else (ErrorCategory.UNKNOWN, None)
        return ResilientWriteResult.failed(category, attempts, message)

    def _call_store(self, item: WriteItem) -> WriteResult:
        try:
            return self._store_writer.write(item)
        except Exception as exc:  # pylint: disable=broad-exception-caught
            return WriteFailure.from_exception(item.key, exc)
