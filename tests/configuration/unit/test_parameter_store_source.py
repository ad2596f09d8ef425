"""Parameter store run configuration source tests."""

from __future__ import annotations

import boto3
import pytest
from dynamo_load_tester.configuration.parameter_store import (
    ParameterStoreError,
    ParameterStoreRunConfigSource,
    build_run_config_from_parameters,
)
from dynamo_load_tester.configuration.runtime_settings import ConfigurationError
from moto import mock_aws

PREFIX = "/dev/dynamodb-load-test"


def _parameters(**overrides: str) -> dict[str, str]:
    values = {
        "table-name": "orders",
        "concurrency-limit": "20",
        "total-items": "400",
        "max-concurrency-percentage": "50",
        "duplicate-percentage": "10",
        "cleanup-after-test": "true",
    }
    values.update(overrides)
    return {f"{PREFIX}/{name}": value for name, value in values.items()}


@pytest.fixture(autouse=True)
def _aws_credentials(monkeypatch) -> None:
    monkeypatch.setenv("AWS_ACCESS_KEY_ID", "testing")
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "testing")
    monkeypatch.setenv("AWS_DEFAULT_REGION", "us-east-1")


def test_maps_prefixed_parameters_to_run_config() -> None:
    config = build_run_config_from_parameters(_parameters(), prefix=PREFIX, environment="DEV")

    assert config.target_name == "orders"
    assert config.concurrency_limit == 20
    assert config.total_items == 400
    assert config.max_concurrency_percentage == 50.0
    assert config.duplicate_percentage == 10.0
    assert config.cleanup_after_run is True
    assert config.environment == "dev"


def test_accepts_unprefixed_parameter_names() -> None:
    parameters = {name.rsplit("/", 1)[1]: value for name, value in _parameters().items()}

    config = build_run_config_from_parameters(parameters, prefix=PREFIX, environment="dev")

    assert config.target_name == "orders"


def test_missing_parameter_is_reported_with_full_name() -> None:
    parameters = _parameters()
    del parameters[f"{PREFIX}/total-items"]

    with pytest.raises(ConfigurationError, match=f"{PREFIX}/total-items"):
        build_run_config_from_parameters(parameters, prefix=PREFIX, environment="dev")


@pytest.mark.parametrize(
    ("overrides", "message"),
    [
        ({"concurrency-limit": "ten"}, "Invalid integer"),
        ({"max-concurrency-percentage": "half"}, "Invalid number"),
        ({"cleanup-after-test": "yes"}, "Invalid boolean"),
        ({"concurrency-limit": "0"}, "concurrency_limit"),
    ],
)
def test_invalid_parameter_values_are_rejected(overrides: dict[str, str], message: str) -> None:
    with pytest.raises(ConfigurationError, match=message):
        build_run_config_from_parameters(
            _parameters(**overrides), prefix=PREFIX, environment="dev"
        )


@mock_aws
def test_source_reads_parameters_from_ssm() -> None:
    client = boto3.client("ssm", region_name="us-east-1")
    for name, value in _parameters().items():
        client.put_parameter(Name=name, Value=value, Type="String")
    client.put_parameter(Name="/other/table-name", Value="ignored", Type="String")

    source = ParameterStoreRunConfigSource(f"{PREFIX}/", environment="dev", client=client)
    config = source.load()

    assert source.prefix == PREFIX
    assert config.target_name == "orders"
    assert config.total_items == 400


class _FailingPaginator:
    def paginate(self, **kwargs):
        from botocore.exceptions import EndpointConnectionError

        raise EndpointConnectionError(endpoint_url="http://localhost:4566")


class _FailingClient:
    def get_paginator(self, name: str) -> _FailingPaginator:
        return _FailingPaginator()


def test_unreachable_parameter_store_raises_error() -> None:
    source = ParameterStoreRunConfigSource(PREFIX, environment="dev", client=_FailingClient())

    with pytest.raises(ParameterStoreError, match=PREFIX):
        source.load()
