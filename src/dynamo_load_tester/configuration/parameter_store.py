"""Run configuration source backed by the SSM parameter store."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from .runtime_settings import ConfigurationError, RunConfig, StoreSettings

DEFAULT_PARAMETER_PREFIX = "/local/dynamodb-load-test"

_LOGGER = logging.getLogger(__name__)


class ParameterStoreError(Exception):
    """Raised when the parameter store cannot be read."""


class ParameterStoreRunConfigSource:
    """Reads run parameters stored under one SSM path prefix."""

    def __init__(
        self,
        prefix: str = DEFAULT_PARAMETER_PREFIX,
        *,
        environment: str = "local",
        client: Any | None = None,
        store_settings: StoreSettings | None = None,
    ) -> None:
        self._prefix = prefix.rstrip("/")
        self._environment = environment
        self._client = client or _create_ssm_client(store_settings or StoreSettings())

    @property
    def prefix(self) -> str:
        return self._prefix

    def load(self) -> RunConfig:
        """Fetch, map and validate the run configuration."""
        _LOGGER.info("Loading run configuration from parameter store prefix %s", self._prefix)
        parameters = self._fetch_parameters()
        return build_run_config_from_parameters(
            parameters, prefix=self._prefix, environment=self._environment
        )

    def _fetch_parameters(self) -> dict[str, str]:
        parameters: dict[str, str] = {}
        try:
            paginator = self._client.get_paginator("get_parameters_by_path")
            for page in paginator.paginate(
                Path=self._prefix, Recursive=True, WithDecryption=True
            ):
                for parameter in page.get("Parameters", []):
                    parameters[parameter["Name"]] = parameter["Value"]
        except (ClientError, BotoCoreError) as exc:
            raise ParameterStoreError(
                f"Failed to read parameters under {self._prefix}: {exc}"
            ) from exc
        _LOGGER.debug("Fetched %d parameters from %s", len(parameters), self._prefix)
        return parameters


def build_run_config_from_parameters(
    parameters: Mapping[str, str], *, prefix: str, environment: str
) -> RunConfig:
    """Map raw parameter values to a validated RunConfig."""
    lookup = _ParameterLookup(parameters, prefix.rstrip("/"))
    return RunConfig(
        target_name=lookup.required("table-name"),
        concurrency_limit=lookup.integer("concurrency-limit"),
        total_items=lookup.integer("total-items"),
        max_concurrency_percentage=lookup.number("max-concurrency-percentage"),
        duplicate_percentage=lookup.number("duplicate-percentage"),
        cleanup_after_run=lookup.boolean("cleanup-after-test"),
        environment=environment.lower(),
    )


class _ParameterLookup:
    def __init__(self, parameters: Mapping[str, str], prefix: str) -> None:
        self._parameters = parameters
        self._prefix = prefix

    def required(self, name: str) -> str:
        full_name = f"{self._prefix}/{name}"
        value = self._parameters.get(full_name)
        if value is None or not value.strip():
            value = self._parameters.get(name)
        if value is None or not value.strip():
            raise ConfigurationError(f"Required parameter not found: {full_name}")
        return value.strip()

    def integer(self, name: str) -> int:
        value = self.required(name)
        try:
            return int(value)
        except ValueError as exc:
            raise ConfigurationError(f"Invalid integer parameter {name}: {value}") from exc

    def number(self, name: str) -> float:
        value = self.required(name)
        try:
            return float(value)
        except ValueError as exc:
            raise ConfigurationError(f"Invalid number parameter {name}: {value}") from exc

    def boolean(self, name: str) -> bool:
        value = self.required(name).lower()
        if value not in ("true", "false"):
            raise ConfigurationError(
                f"Invalid boolean parameter {name}: {value} (must be 'true' or 'false')"
            )
        return value == "true"


def _create_ssm_client(store_settings: StoreSettings) -> Any:
    return boto3.client(
        "ssm",
        region_name=store_settings.region,
        endpoint_url=store_settings.endpoint_url,
    )
