"""Store access exports."""

from .dynamodb_writer import (
    DynamoDBItemWriter,
    StoreAccessError,
    create_dynamodb_client,
    to_dynamodb_item,
)
from .item_cleanup import CLEANUP_CONCURRENCY, CleanupReport, RunItemCleaner

__all__ = [
    "DynamoDBItemWriter",
    "StoreAccessError",
    "create_dynamodb_client",
    "to_dynamodb_item",
    "RunItemCleaner",
    "CleanupReport",
    "CLEANUP_CONCURRENCY",
]
