"""Retry-with-backoff policy."""

from __future__ import annotations

import random

from dynamo_load_tester.configuration.runtime_settings import RetrySettings
from dynamo_load_tester.error_classification.failure_categories import ErrorCategory

_MAX_EXPONENT = 30


class RetryPolicy:
    """Decides whether a failed attempt is retried and how long to back off."""

    def __init__(
        self, settings: RetrySettings | None = None, *, rng: random.Random | None = None
    ) -> None:
        self._settings = settings or RetrySettings()
        self._rng = rng or random.Random()

    @property
    def max_attempts(self) -> int:
        return self._settings.max_attempts

    def should_retry(self, category: ErrorCategory, attempt: int) -> bool:
        """Return True when attempt number ``attempt`` (1-based) may be followed by another."""
        return category.is_retryable and attempt < self._settings.max_attempts

    def backoff(self, attempt: int) -> float:
        """Delay in seconds after failed attempt number ``attempt`` (1-based).

        ``base * 2^(attempt-1)`` capped at the maximum delay, scaled by a
        uniform jitter of ``±jitter_factor`` and capped again.
        """
        settings = self._settings
        exponent = min(max(attempt - 1, 0), _MAX_EXPONENT)
        delay = min(settings.base_delay_seconds * (2**exponent), settings.max_delay_seconds)
        jitter = 1.0 + (self._rng.random() - 0.5) * 2.0 * settings.jitter_factor
        return min(max(delay * jitter, 0.0), settings.max_delay_seconds)
