"""Failure classification service."""

from __future__ import annotations

from collections.abc import Mapping

from .failure_categories import (
    ITEM_TOO_LARGE_CODE,
    NETWORK_FAILURE_CODE,
    TIMEOUT_FAILURE_CODE,
    ErrorCategory,
    WriteFailure,
)

_CATEGORY_BY_ERROR_CODE: Mapping[str, ErrorCategory] = {
    "ConditionalCheckFailedException": ErrorCategory.DUPLICATE_KEY,
    "TransactionConflictException": ErrorCategory.DUPLICATE_KEY,
    "ProvisionedThroughputExceededException": ErrorCategory.CAPACITY_EXCEEDED,
    "RequestLimitExceeded": ErrorCategory.CAPACITY_EXCEEDED,
    "RequestLimitExceededException": ErrorCategory.CAPACITY_EXCEEDED,
    "ThrottlingException": ErrorCategory.THROTTLING,
    "Throttling": ErrorCategory.THROTTLING,
    "TooManyRequestsException": ErrorCategory.THROTTLING,
    "ValidationException": ErrorCategory.VALIDATION,
    "SerializationException": ErrorCategory.VALIDATION,
    ITEM_TOO_LARGE_CODE: ErrorCategory.VALIDATION,
    TIMEOUT_FAILURE_CODE: ErrorCategory.TIMEOUT,
    "RequestTimeoutException": ErrorCategory.TIMEOUT,
    NETWORK_FAILURE_CODE: ErrorCategory.NETWORK,
}


def classify_failure(failure: WriteFailure) -> ErrorCategory:
    """Map a failed write to exactly one error category.

    Store error codes win over the raised exception; the exception type wins
    over message text. Anything unmatched is ``ErrorCategory.UNKNOWN``. The
    classifier never returns ``ErrorCategory.CIRCUIT_OPEN``, which only the
    resilience layer produces.
    """
    if failure.error_code:
        category = _CATEGORY_BY_ERROR_CODE.get(failure.error_code)
        if category is not None:
            return category
    if failure.cause is not None:
        category = _classify_exception(failure.cause)
        if category is not None:
            return category
    return _classify_message(failure.message)


def _classify_exception(error: BaseException) -> ErrorCategory | None:
    # TimeoutError is a subclass of OSError, so it is checked first.
    if isinstance(error, TimeoutError):
        return ErrorCategory.TIMEOUT
    if isinstance(error, (ConnectionError, OSError)):
        return ErrorCategory.NETWORK
    if isinstance(error, (ValueError, TypeError)):
        return ErrorCategory.VALIDATION
    type_name = type(error).__name__
    if "Throttl" in type_name:
        return ErrorCategory.THROTTLING
    if "Timeout" in type_name:
        return ErrorCategory.TIMEOUT
    if "Connection" in type_name or "Endpoint" in type_name:
        return ErrorCategory.NETWORK
    return None


def _classify_message(message: str) -> ErrorCategory:
    lowered = (message or "").lower()
    if "timeout" in lowered or "timed out" in lowered:
        return ErrorCategory.TIMEOUT
    if "network" in lowered or "connection" in lowered:
        return ErrorCategory.NETWORK
    if "throttl" in lowered or "rate exceeded" in lowered:
        return ErrorCategory.THROTTLING
    return ErrorCategory.UNKNOWN
