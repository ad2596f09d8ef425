"""Resilience layer exports."""

from .circuit_breaker import CircuitBreaker, CircuitBreakerStats, CircuitPermit, CircuitState
from .resilient_writer import ResilientWriter, ResilientWriteResult, StoreWriter
from .retry_policy import RetryPolicy

__all__ = [
    "CircuitBreaker",
    "CircuitBreakerStats",
    "CircuitPermit",
    "CircuitState",
    "RetryPolicy",
    "ResilientWriter",
    "ResilientWriteResult",
    "StoreWriter",
]
