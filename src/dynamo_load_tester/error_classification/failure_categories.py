"""Write outcome entities and error categories."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class ErrorCategory(str, Enum):
    """Category recorded for one failed write operation."""

    CAPACITY_EXCEEDED = "CapacityExceeded"
    DUPLICATE_KEY = "DuplicateKey"
    THROTTLING = "Throttling"
    NETWORK = "Network"
    TIMEOUT = "Timeout"
    VALIDATION = "Validation"
    UNKNOWN = "Unknown"
    CIRCUIT_OPEN = "CircuitOpen"

    @property
    def is_retryable(self) -> bool:
        """Return True for transient categories worth another attempt."""
        return self in RETRYABLE_CATEGORIES

    @property
    def counts_against_store(self) -> bool:
        """Return True when the failure says something about store health."""
        return self in STORE_HEALTH_CATEGORIES


RETRYABLE_CATEGORIES = frozenset(
    {
        ErrorCategory.CAPACITY_EXCEEDED,
        ErrorCategory.THROTTLING,
        ErrorCategory.NETWORK,
        ErrorCategory.TIMEOUT,
    }
)

STORE_HEALTH_CATEGORIES = RETRYABLE_CATEGORIES | {ErrorCategory.UNKNOWN}

# Codes set by store adapters for failures raised below the store API.
NETWORK_FAILURE_CODE = "NetworkFailure"
TIMEOUT_FAILURE_CODE = "RequestTimeout"
ITEM_TOO_LARGE_CODE = "ItemSizeExceeded"


@dataclass(frozen=True)
class WriteAck:
    """Successful write acknowledgement returned by a store adapter."""

    key: str


@dataclass(frozen=True)
class WriteFailure:
    """Failed write returned by a store adapter.

    ``error_code`` carries the store's error code when the store answered,
    or one of the adapter codes above. ``cause`` keeps the original
    exception when one was raised.
    """

    key: str
    error_code: str | None
    message: str
    cause: BaseException | None = None

    @staticmethod
    def from_exception(key: str, error: BaseException) -> WriteFailure:
        return WriteFailure(key=key, error_code=None, message=str(error), cause=error)


WriteResult = WriteAck | WriteFailure
