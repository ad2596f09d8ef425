"""Configuration loader service."""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml

from .runtime_settings import (
    STORE_ITEM_SIZE_LIMIT_BYTES,
    CircuitBreakerSettings,
    Configuration,
    ConfigurationError,
    ExecutionSettings,
    ItemSettings,
    ResilienceSettings,
    RetrySettings,
    RunConfig,
    StoreSettings,
)


def load_configuration(config_path: Path | str, *, require_run: bool = True) -> Configuration:
    """Load and validate the configuration file.

    The ``run`` section may be omitted when ``require_run`` is False, in which
    case the run parameters are expected from another source (for example
    the parameter store).
    """
    path = Path(config_path)
    if not path.exists():
        raise ConfigurationError(f"Configuration file not found: {path}")

    text = path.read_text(encoding="utf-8")
    try:
        parsed = yaml.safe_load(text)
    except yaml.YAMLError as exc:  # pragma: no cover - exercised indirectly
        raise ConfigurationError(f"Failed to parse configuration file: {exc}") from exc

    if parsed is None:
        parsed = {}

    if not isinstance(parsed, Mapping):
        raise ConfigurationError("Configuration root must be a mapping.")

    run_section = parsed.get("run")
    if run_section is None and not require_run:
        run = None
    else:
        run = parse_run_section(run_section)

    return Configuration(
        path=path,
        run=run,
        items=_parse_items_section(parsed.get("items")),
        resilience=_parse_resilience_section(parsed.get("resilience")),
        store=_parse_store_section(parsed.get("store")),
        execution=_parse_execution_section(parsed.get("execution")),
    )


def parse_run_section(value: Any) -> RunConfig:
    """Build a validated RunConfig from a mapping of run parameters."""
    section = _require_mapping(value, "run")
    return RunConfig(
        target_name=_require_non_empty_string(section.get("target_name"), "run.target_name"),
        concurrency_limit=_require_positive_int(
            section.get("concurrency_limit"), "run.concurrency_limit"
        ),
        total_items=_require_positive_int(section.get("total_items"), "run.total_items"),
        max_concurrency_percentage=_require_number(
            section.get("max_concurrency_percentage"), "run.max_concurrency_percentage"
        ),
        duplicate_percentage=_require_number(
            section.get("duplicate_percentage", 0.0), "run.duplicate_percentage"
        ),
        cleanup_after_run=_require_bool(
            section.get("cleanup_after_run", False), "run.cleanup_after_run"
        ),
        environment=_require_non_empty_string(
            section.get("environment", "local"), "run.environment"
        ).lower(),
    )


def _parse_items_section(value: Any) -> ItemSettings:
    section = _optional_mapping(value, "items")
    key_prefix = _require_non_empty_string(
        section.get("key_prefix", "test-item-"), "items.key_prefix"
    )
    payload_size = _require_positive_int(
        section.get("payload_size_bytes", 300), "items.payload_size_bytes"
    )
    max_item_size = _require_positive_int(
        section.get("max_item_size_bytes", 500), "items.max_item_size_bytes"
    )
    if max_item_size >= STORE_ITEM_SIZE_LIMIT_BYTES:
        raise ConfigurationError(
            f"items.max_item_size_bytes must be below {STORE_ITEM_SIZE_LIMIT_BYTES}."
        )
    if payload_size >= max_item_size:
        raise ConfigurationError(
            "items.payload_size_bytes must be smaller than items.max_item_size_bytes."
        )
    seed = section.get("seed")
    if seed is not None and (isinstance(seed, bool) or not isinstance(seed, int)):
        raise ConfigurationError("items.seed must be an integer.")
    return ItemSettings(
        key_prefix=key_prefix,
        payload_size_bytes=payload_size,
        max_item_size_bytes=max_item_size,
        seed=seed,
    )


def _parse_resilience_section(value: Any) -> ResilienceSettings:
    section = _optional_mapping(value, "resilience")
    max_delay_ms = _require_positive_number(
        section.get("max_delay_ms", 1000), "resilience.max_delay_ms"
    )
    base_delay_ms = _require_positive_number(
        section.get("base_delay_ms", 50), "resilience.base_delay_ms"
    )
    if base_delay_ms > max_delay_ms:
        raise ConfigurationError(
            "resilience.base_delay_ms must not exceed resilience.max_delay_ms."
        )
    jitter_factor = _require_number(section.get("jitter_factor", 0.1), "resilience.jitter_factor")
    if not 0.0 <= jitter_factor < 1.0:
        raise ConfigurationError("resilience.jitter_factor must be in [0.0, 1.0).")
    retry = RetrySettings(
        max_attempts=_require_positive_int(
            section.get("max_attempts", 3), "resilience.max_attempts"
        ),
        base_delay_seconds=base_delay_ms / 1000.0,
        max_delay_seconds=max_delay_ms / 1000.0,
        jitter_factor=jitter_factor,
    )
    return ResilienceSettings(
        retry=retry,
        circuit_breaker=_parse_circuit_breaker_section(section.get("circuit_breaker")),
    )


def _parse_circuit_breaker_section(value: Any) -> CircuitBreakerSettings:
    section = _optional_mapping(value, "resilience.circuit_breaker")
    prefix = "resilience.circuit_breaker"
    window_size = _require_positive_int(section.get("window_size", 20), f"{prefix}.window_size")
    minimum_calls = _require_positive_int(
        section.get("minimum_calls", min(10, window_size)), f"{prefix}.minimum_calls"
    )
    if minimum_calls > window_size:
        raise ConfigurationError(f"{prefix}.minimum_calls must not exceed {prefix}.window_size.")
    threshold = _require_number(
        section.get("failure_rate_threshold", 50.0), f"{prefix}.failure_rate_threshold"
    )
    if not 0.0 < threshold <= 100.0:
        raise ConfigurationError(f"{prefix}.failure_rate_threshold must be in (0, 100].")
    return CircuitBreakerSettings(
        window_size=window_size,
        minimum_calls=minimum_calls,
        failure_rate_threshold=threshold,
        cooldown_seconds=_require_positive_number(
            section.get("cooldown_seconds", 30), f"{prefix}.cooldown_seconds"
        ),
        half_open_max_calls=_require_positive_int(
            section.get("half_open_max_calls", 3), f"{prefix}.half_open_max_calls"
        ),
    )


def _parse_store_section(value: Any) -> StoreSettings:
    section = _optional_mapping(value, "store")
    return StoreSettings(
        region=_require_non_empty_string(section.get("region", "us-east-1"), "store.region"),
        endpoint_url=_optional_string(section.get("endpoint_url"), "store.endpoint_url"),
        partition_key=_require_non_empty_string(
            section.get("partition_key", "pk"), "store.partition_key"
        ),
    )


def _parse_execution_section(value: Any) -> ExecutionSettings:
    section = _optional_mapping(value, "execution")
    snapshot_interval = _require_number(
        section.get("snapshot_interval_seconds", 10), "execution.snapshot_interval_seconds"
    )
    if snapshot_interval < 0:
        raise ConfigurationError("execution.snapshot_interval_seconds must not be negative.")
    return ExecutionSettings(
        drain_timeout_seconds=_require_positive_number(
            section.get("drain_timeout_seconds", 30), "execution.drain_timeout_seconds"
        ),
        snapshot_interval_seconds=snapshot_interval,
    )


def _require_mapping(value: Any, section_name: str) -> Mapping[str, Any]:
    if not isinstance(value, Mapping):
        raise ConfigurationError(f"Configuration section '{section_name}' is required.")
    return value


def _optional_mapping(value: Any, section_name: str) -> Mapping[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        raise ConfigurationError(f"Configuration section '{section_name}' must be a mapping.")
    return value


def _require_non_empty_string(value: Any, field_name: str) -> str:
    if not isinstance(value, str):
        raise ConfigurationError(f"{field_name} must be a string.")
    stripped = value.strip()
    if not stripped:
        raise ConfigurationError(f"{field_name} must not be empty.")
    return stripped


def _optional_string(value: Any, field_name: str) -> str | None:
    if value is None:
        return None
    if not isinstance(value, str):
        raise ConfigurationError(f"{field_name} must be a string.")
    stripped = value.strip()
    return stripped or None


def _require_positive_int(value: Any, field_name: str) -> int:
    if isinstance(value, bool):
        raise ConfigurationError(f"{field_name} must be an integer.")
    if not isinstance(value, int):
        raise ConfigurationError(f"{field_name} must be an integer.")
    if value <= 0:
        raise ConfigurationError(f"{field_name} must be greater than zero.")
    return value


def _require_number(value: Any, field_name: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ConfigurationError(f"{field_name} must be a number.")
    return float(value)


def _require_positive_number(value: Any, field_name: str) -> float:
    number = _require_number(value, field_name)
    if number <= 0:
        raise ConfigurationError(f"{field_name} must be greater than zero.")
    return number


def _require_bool(value: Any, field_name: str) -> bool:
    if not isinstance(value, bool):
        raise ConfigurationError(f"{field_name} must be true or false.")
    return value
