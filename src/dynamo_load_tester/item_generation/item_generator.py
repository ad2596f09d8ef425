"""Write item generation service."""

from __future__ import annotations

import itertools
import logging
import math
import random
import string
import threading
from collections.abc import Callable
from datetime import UTC, datetime

from dynamo_load_tester.configuration.runtime_settings import ItemSettings

from .write_items import MAX_KEY_LENGTH, WriteItem

PAYLOAD_ALPHABET = string.ascii_letters + string.digits
EXPECTED_SUCCESS = "SUCCESS"
EXPECTED_DUPLICATE_ERROR = "DUPLICATE_ERROR"

_LOGGER = logging.getLogger(__name__)


class ItemGenerationError(Exception):
    """Raised when a valid write item cannot be produced."""


def planned_duplicate_count(total_items: int, duplicate_percentage: float) -> int:
    """Number of duplicate slots injected into a run of ``total_items``.

    The first item can never be a duplicate, so the count is capped at
    ``total_items - 1``.
    """
    if duplicate_percentage <= 0 or total_items <= 1:
        return 0
    return min(math.ceil(total_items * duplicate_percentage / 100.0), total_items - 1)


class ItemGenerator:
    """Produces items one at a time, recycling earlier keys for duplicate slots.

    Duplicate slots are fixed up front so the injected count is exact. A
    duplicate always reuses a key that was already issued as a unique key,
    so the original is dispatched before its duplicate.
    """

    def __init__(
        self,
        total_items: int,
        duplicate_percentage: float,
        settings: ItemSettings | None = None,
        *,
        rng: random.Random | None = None,
        now: Callable[[], datetime] | None = None,
    ) -> None:
        self._settings = settings or ItemSettings()
        self._rng = rng or random.Random(self._settings.seed)
        self._now = now or (lambda: datetime.now(UTC))
        self._total_items = total_items
        self._duplicate_indexes = frozenset(
            self._rng.sample(
                range(1, total_items), planned_duplicate_count(total_items, duplicate_percentage)
            )
            if total_items > 1
            else ()
        )
        self._issued_keys: list[str] = []
        self._counter = itertools.count(1)
        self._index = 0
        self._lock = threading.Lock()
        _LOGGER.info(
            "Planned %d items (%d unique, %d duplicates)",
            total_items,
            total_items - len(self._duplicate_indexes),
            len(self._duplicate_indexes),
        )

    @property
    def duplicate_count(self) -> int:
        return len(self._duplicate_indexes)

    @property
    def issued(self) -> int:
        return self._index

    def next_item(self) -> WriteItem:
        """Return the next item; raises ItemGenerationError when exhausted or invalid."""
        with self._lock:
            if self._index >= self._total_items:
                raise ItemGenerationError(
                    f"All {self._total_items} items have already been generated."
                )
            index = self._index
            is_duplicate = index in self._duplicate_indexes
            if is_duplicate:
                key = self._rng.choice(self._issued_keys)
            else:
                key = self._unique_key()
                self._issued_keys.append(key)
            payload = self._payload()
            self._index += 1

        created_at = self._now()
        item = WriteItem(
            key=key,
            payload=payload,
            created_at=created_at,
            attributes={
                "item_index": index,
                "is_duplicate": is_duplicate,
                "expected_result": EXPECTED_DUPLICATE_ERROR if is_duplicate else EXPECTED_SUCCESS,
                "generation_time": created_at.isoformat(),
            },
        )
        self._validate(item)
        return item

    def _unique_key(self) -> str:
        timestamp_ms = int(self._now().timestamp() * 1000)
        suffix = self._rng.randint(1000, 9999)
        return f"{self._settings.key_prefix}{timestamp_ms}-{next(self._counter)}-{suffix}"

    def _payload(self) -> str:
        return "".join(self._rng.choices(PAYLOAD_ALPHABET, k=self._settings.payload_size_bytes))

    def _validate(self, item: WriteItem) -> None:
        if not item.key or len(item.key) > MAX_KEY_LENGTH:
            raise ItemGenerationError(
                f"Generated key must be 1-{MAX_KEY_LENGTH} characters, got {len(item.key)}."
            )
        size = item.approximate_size()
        if size > self._settings.max_item_size_bytes:
            raise ItemGenerationError(
                f"Item {item.key} is {size} bytes, above the "
                f"{self._settings.max_item_size_bytes} byte ceiling."
            )
