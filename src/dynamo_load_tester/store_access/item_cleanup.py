"""Removal of items written by a load test run."""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any

from botocore.exceptions import BotoCoreError, ClientError

from dynamo_load_tester.configuration.runtime_settings import StoreSettings

from .dynamodb_writer import create_dynamodb_client

CLEANUP_CONCURRENCY = 5

_LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class CleanupReport:
    """Counts from one cleanup pass."""

    scanned: int
    deleted: int
    failed: int


class RunItemCleaner:
    """Deletes every item whose partition key starts with the run's key prefix."""

    def __init__(
        self,
        table_name: str,
        *,
        settings: StoreSettings | None = None,
        client: Any | None = None,
        concurrency: int = CLEANUP_CONCURRENCY,
    ) -> None:
        self._table_name = table_name
        self._settings = settings or StoreSettings()
        self._client = client or create_dynamodb_client(self._settings, max_connections=concurrency)
        self._concurrency = concurrency

    def cleanup(self, key_prefix: str) -> CleanupReport:
        """Scan for prefixed keys and delete them; failures are counted, not raised."""
        _LOGGER.info("Cleaning up items with prefix %s from %s", key_prefix, self._table_name)
        try:
            keys = self._scan_keys(key_prefix)
        except (ClientError, BotoCoreError) as exc:
            _LOGGER.error("Cleanup scan of %s failed: %s", self._table_name, exc)
            return CleanupReport(scanned=0, deleted=0, failed=0)

        with ThreadPoolExecutor(
            max_workers=self._concurrency, thread_name_prefix="cleanup"
        ) as executor:
            results = list(executor.map(self._delete_key, keys))
        deleted = sum(results)
        report = CleanupReport(scanned=len(keys), deleted=deleted, failed=len(keys) - deleted)
        _LOGGER.info(
            "Cleanup finished: %d scanned, %d deleted, %d failed",
            report.scanned,
            report.deleted,
            report.failed,
        )
        return report

    def _scan_keys(self, key_prefix: str) -> list[str]:
        partition_key = self._settings.partition_key
        paginator = self._client.get_paginator("scan")
        keys: list[str] = []
        for page in paginator.paginate(
            TableName=self._table_name,
            FilterExpression="begins_with(#pk, :prefix)",
            ProjectionExpression="#pk",
            ExpressionAttributeNames={"#pk": partition_key},
            ExpressionAttributeValues={":prefix": {"S": key_prefix}},
        ):
            keys.extend(item[partition_key]["S"] for item in page.get("Items", []))
        return keys

    def _delete_key(self, key: str) -> bool:
        try:
            self._client.delete_item(
                TableName=self._table_name,
                Key={self._settings.partition_key: {"S": key}},
            )
        except (ClientError, BotoCoreError) as exc:
            _LOGGER.warning("Failed to delete %s: %s", key, exc)
            return False
        return True
