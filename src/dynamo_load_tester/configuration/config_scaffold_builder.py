"""Configuration scaffold generation helpers."""

from __future__ import annotations

from pathlib import Path

DEFAULT_CONFIG_FILENAME = "load-test.yaml"

_CONFIG_SCAFFOLD_TEMPLATE = """# Load test configuration template for dynamo-load-tester.
# Replace every <REQUIRED> placeholder before running plan or run.
# Every other value shows its default and may be deleted.

run:
  # Omit this section when run parameters come from --parameter-prefix.
  target_name: "<REQUIRED>"
  concurrency_limit: "<REQUIRED>"
  total_items: "<REQUIRED>"
  # Share of items (and of concurrency_limit) used for the sustain phase.
  max_concurrency_percentage: "<REQUIRED>"
  duplicate_percentage: 0.0
  cleanup_after_run: false
  # One of local, dev, test, staging, prod, aws.
  environment: local

items:
  key_prefix: "test-item-"
  payload_size_bytes: 300
  # Must stay below the store's 400 KiB hard item limit.
  max_item_size_bytes: 500
  # seed: 42

resilience:
  max_attempts: 3
  base_delay_ms: 50
  max_delay_ms: 1000
  jitter_factor: 0.1
  circuit_breaker:
    window_size: 20
    minimum_calls: 10
    failure_rate_threshold: 50.0
    cooldown_seconds: 30
    half_open_max_calls: 3

store:
  region: us-east-1
  # endpoint_url: "http://localhost:4566"
  partition_key: pk

execution:
  drain_timeout_seconds: 30
  # 0 disables periodic metric snapshots.
  snapshot_interval_seconds: 10
"""


def build_placeholder_configuration() -> str:
    """Build a YAML load test configuration template with placeholders and guidance."""
    return _CONFIG_SCAFFOLD_TEMPLATE


def write_placeholder_configuration(output_path: Path | str) -> Path:
    """Write the placeholder configuration template to the requested output path.

    Args:
      output_path: Destination file path for the scaffold.

    Returns:
      The resolved destination path.

    Raises:
      FileExistsError: If the destination file already exists.
      OSError: If writing the scaffold fails.
    """
    destination = Path(output_path)
    if destination.exists():
        raise FileExistsError(f"Configuration file already exists: {destination.resolve()}")
    destination.write_text(build_placeholder_configuration(), encoding="utf-8")
    return destination.resolve()
