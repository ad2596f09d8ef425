"""Error classification exports."""

from .error_classifier import classify_failure
from .failure_categories import (
    ITEM_TOO_LARGE_CODE,
    NETWORK_FAILURE_CODE,
    RETRYABLE_CATEGORIES,
    TIMEOUT_FAILURE_CODE,
    ErrorCategory,
    WriteAck,
    WriteFailure,
    WriteResult,
)

__all__ = [
    "ErrorCategory",
    "RETRYABLE_CATEGORIES",
    "WriteAck",
    "WriteFailure",
    "WriteResult",
    "NETWORK_FAILURE_CODE",
    "TIMEOUT_FAILURE_CODE",
    "ITEM_TOO_LARGE_CODE",
    "classify_failure",
]
