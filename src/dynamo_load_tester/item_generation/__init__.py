"""Item generation exports."""

from .item_generator import (
    EXPECTED_DUPLICATE_ERROR,
    EXPECTED_SUCCESS,
    ItemGenerationError,
    ItemGenerator,
    planned_duplicate_count,
)
from .write_items import MAX_KEY_LENGTH, WriteItem

__all__ = [
    "WriteItem",
    "MAX_KEY_LENGTH",
    "ItemGenerator",
    "ItemGenerationError",
    "planned_duplicate_count",
    "EXPECTED_SUCCESS",
    "EXPECTED_DUPLICATE_ERROR",
]
