"""Results writing entities."""

from __future__ import annotations

from dataclasses import dataclass

from dynamo_load_tester.configuration.runtime_settings import RunConfig


@dataclass(frozen=True)
class RunMetadata:
    """Run context rendered next to the summary."""

    config: RunConfig
    peak_in_flight: int = 0
    circuit_breaker_openings: int = 0
    circuit_breaker_rejections: int = 0
    cleaned_items: int | None = None
