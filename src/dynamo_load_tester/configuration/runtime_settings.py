"""Configuration domain entities."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from pathlib import Path

ALLOWED_ENVIRONMENTS = ("local", "dev", "test", "staging", "prod", "aws")
MAX_CONCURRENCY_LIMIT = 10_000
MAX_TOTAL_ITEMS = 10_000_000
STORE_ITEM_SIZE_LIMIT_BYTES = 400 * 1024


class ConfigurationError(Exception):
    """Raised when the configuration is invalid."""


@dataclass(frozen=True)
class RunConfig:  # pylint: disable=too-many-instance-attributes
    """Validated parameters of one load test run.

    Construction fails with ``ConfigurationError`` when any bound is violated
    or when the derived sustain phase would be empty.
    """

    target_name: str
    concurrency_limit: int
    total_items: int
    max_concurrency_percentage: float
    duplicate_percentage: float = 0.0
    cleanup_after_run: bool = False
    environment: str = "local"

    def __post_init__(self) -> None:
        if not 3 <= len(self.target_name.strip()) <= 255:
            raise ConfigurationError("run.target_name must be between 3 and 255 characters.")
        if not 1 <= self.concurrency_limit <= MAX_CONCURRENCY_LIMIT:
            raise ConfigurationError(
                f"run.concurrency_limit must be between 1 and {MAX_CONCURRENCY_LIMIT}."
            )
        if not 1 <= self.total_items <= MAX_TOTAL_ITEMS:
            raise ConfigurationError(f"run.total_items must be between 1 and {MAX_TOTAL_ITEMS}.")
        if not 0.1 <= self.max_concurrency_percentage <= 100.0:
            raise ConfigurationError(
                "run.max_concurrency_percentage must be between 0.1 and 100.0."
            )
        if not 0.0 <= self.duplicate_percentage <= 100.0:
            raise ConfigurationError("run.duplicate_percentage must be between 0.0 and 100.0.")
        if self.environment not in ALLOWED_ENVIRONMENTS:
            raise ConfigurationError(
                f"run.environment must be one of: {', '.join(ALLOWED_ENVIRONMENTS)}."
            )
        if self.max_concurrency_level < 1:
            raise ConfigurationError("Derived max concurrency level must be at least 1.")
        if self.items_for_max_concurrency < 1:
            raise ConfigurationError("Derived max concurrency item count must be at least 1.")

    @property
    def max_concurrency_level(self) -> int:
        return math.ceil(self.concurrency_limit * self.max_concurrency_percentage / 100.0)

    @property
    def items_for_max_concurrency(self) -> int:
        return math.ceil(self.total_items * self.max_concurrency_percentage / 100.0)

    @property
    def items_for_ramp_up(self) -> int:
        return self.total_items - self.items_for_max_concurrency

    @property
    def is_local(self) -> bool:
        return self.environment == "local"


@dataclass(frozen=True)
class ItemSettings:
    """Shape of generated write payloads."""

    key_prefix: str = "test-item-"
    payload_size_bytes: int = 300
    max_item_size_bytes: int = 500
    seed: int | None = None


@dataclass(frozen=True)
class RetrySettings:
    """Retry-with-backoff parameters."""

    max_attempts: int = 3
    base_delay_seconds: float = 0.05
    max_delay_seconds: float = 1.0
    jitter_factor: float = 0.1


@dataclass(frozen=True)
class CircuitBreakerSettings:
    """Sliding-window circuit breaker thresholds."""

    window_size: int = 20
    minimum_calls: int = 10
    failure_rate_threshold: float = 50.0
    cooldown_seconds: float = 30.0
    half_open_max_calls: int = 3


@dataclass(frozen=True)
class ResilienceSettings:
    """Retry and circuit breaker configuration."""

    retry: RetrySettings = field(default_factory=RetrySettings)
    circuit_breaker: CircuitBreakerSettings = field(default_factory=CircuitBreakerSettings)


@dataclass(frozen=True)
class StoreSettings:
    """Data store connectivity configuration."""

    region: str = "us-east-1"
    endpoint_url: str | None = None
    partition_key: str = "pk"


@dataclass(frozen=True)
class ExecutionSettings:
    """Run execution tuning."""

    drain_timeout_seconds: float = 30.0
    snapshot_interval_seconds: float = 10.0


@dataclass(frozen=True)
class Configuration:
    """Top-level configuration aggregate."""

    path: Path | None
    run: RunConfig | None
    items: ItemSettings
    resilience: ResilienceSettings
    store: StoreSettings
    execution: ExecutionSettings
