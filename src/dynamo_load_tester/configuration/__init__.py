"""Configuration domain exports."""

from .config_scaffold_builder import (
    DEFAULT_CONFIG_FILENAME,
    build_placeholder_configuration,
    write_placeholder_configuration,
)
from .loader import load_configuration, parse_run_section
from .parameter_store import (
    DEFAULT_PARAMETER_PREFIX,
    ParameterStoreError,
    ParameterStoreRunConfigSource,
    build_run_config_from_parameters,
)
from .runtime_settings import (
    ALLOWED_ENVIRONMENTS,
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

__all__ = [
    "ALLOWED_ENVIRONMENTS",
    "Configuration",
    "RunConfig",
    "ItemSettings",
    "RetrySettings",
    "CircuitBreakerSettings",
    "ResilienceSettings",
    "StoreSettings",
    "ExecutionSettings",
    "ConfigurationError",
    "load_configuration",
    "parse_run_section",
    "DEFAULT_PARAMETER_PREFIX",
    "ParameterStoreError",
    "ParameterStoreRunConfigSource",
    "build_run_config_from_parameters",
    "DEFAULT_CONFIG_FILENAME",
    "build_placeholder_configuration",
    "write_placeholder_configuration",
]
