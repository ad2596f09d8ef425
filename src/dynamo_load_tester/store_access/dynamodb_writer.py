"""DynamoDB store adapter."""

from __future__ import annotations

import logging
from typing import Any

import boto3
from botocore.config import Config
from botocore.exceptions import (
    BotoCoreError,
    ClientError,
    ConnectionClosedError,
    ConnectTimeoutError,
    EndpointConnectionError,
    ReadTimeoutError,
)

from dynamo_load_tester.configuration.runtime_settings import StoreSettings
from dynamo_load_tester.error_classification.failure_categories import (
    NETWORK_FAILURE_CODE,
    TIMEOUT_FAILURE_CODE,
    WriteAck,
    WriteFailure,
    WriteResult,
)
from dynamo_load_tester.item_generation.write_items import WriteItem

_LOGGER = logging.getLogger(__name__)


class StoreAccessError(Exception):
    """Raised when the target table cannot be used at all."""


def create_dynamodb_client(settings: StoreSettings, *, max_connections: int = 50) -> Any:
    """Create a thread-safe DynamoDB client without SDK-level retries."""
    return boto3.client(
        "dynamodb",
        region_name=settings.region,
        endpoint_url=settings.endpoint_url,
        config=Config(
            max_pool_connections=max(max_connections, 10),
            retries={"max_attempts": 1, "mode": "standard"},
        ),
    )


class DynamoDBItemWriter:
    """Conditional ``put_item`` writer; an existing key fails the write."""

    def __init__(
        self,
        table_name: str,
        *,
        settings: StoreSettings | None = None,
        client: Any | None = None,
        max_connections: int = 50,
    ) -> None:
        self._table_name = table_name
        self._settings = settings or StoreSettings()
        self._client = client or create_dynamodb_client(
            self._settings, max_connections=max_connections
        )

    @property
    def table_name(self) -> str:
        return self._table_name

    def ensure_table_exists(self) -> None:
        try:
            response = self._client.describe_table(TableName=self._table_name)
        except ClientError as exc:
            raise StoreAccessError(
                f"Table {self._table_name} is not available: {_error_message(exc)}"
            ) from exc
        except BotoCoreError as exc:
            raise StoreAccessError(f"Cannot reach DynamoDB: {exc}") from exc
        status = response["Table"].get("TableStatus", "UNKNOWN")
        _LOGGER.info("Target table %s is %s", self._table_name, status)

    def write(self, item: WriteItem) -> WriteResult:
        try:
            self._client.put_item(
                TableName=self._table_name,
                Item=to_dynamodb_item(item, self._settings.partition_key),
                ConditionExpression="attribute_not_exists(#pk)",
                ExpressionAttributeNames={"#pk": self._settings.partition_key},
            )
        except ClientError as exc:
            return WriteFailure(
                key=item.key,
                error_code=exc.response.get("Error", {}).get("Code"),
                message=_error_message(exc),
                cause=exc,
            )
        except (ReadTimeoutError, ConnectTimeoutError) as exc:
            return WriteFailure(item.key, TIMEOUT_FAILURE_CODE, str(exc), exc)
        except (EndpointConnectionError, ConnectionClosedError) as exc:
            return WriteFailure(item.key, NETWORK_FAILURE_CODE, str(exc), exc)
        except BotoCoreError as exc:
            return WriteFailure.from_exception(item.key, exc)
        return WriteAck(item.key)


def to_dynamodb_item(item: WriteItem, partition_key: str) -> dict[str, dict[str, Any]]:
    """Map a write item onto typed DynamoDB attribute values."""
    record: dict[str, dict[str, Any]] = {
        partition_key: {"S": item.key},
        "payload": {"S": item.payload},
        "created_at": {"S": item.created_at.isoformat()},
    }
    for name, value in item.attributes.items():
        if name in record or value is None:
            continue
        record[name] = _attribute_value(value)
    return record


def _attribute_value(value: object) -> dict[str, Any]:
    if isinstance(value, bool):
        return {"BOOL": value}
    if isinstance(value, (int, float)):
        return {"N": str(value)}
    return {"S": str(value)}


def _error_message(exc: ClientError) -> str:
    return str(exc.response.get("Error", {}).get("Message") or exc)
