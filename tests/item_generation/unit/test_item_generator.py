"""Item generator tests."""

from __future__ import annotations

import random
from datetime import UTC, datetime

import pytest
from dynamo_load_tester.configuration.runtime_settings import ItemSettings
from dynamo_load_tester.item_generation import (
    EXPECTED_DUPLICATE_ERROR,
    EXPECTED_SUCCESS,
    ItemGenerationError,
    ItemGenerator,
    WriteItem,
    planned_duplicate_count,
)

FIXED_NOW = datetime(2026, 1, 2, 3, 4, 5, tzinfo=UTC)


def _generator(total: int, duplicates: float = 0.0, **settings) -> ItemGenerator:
    return ItemGenerator(
        total,
        duplicates,
        ItemSettings(**settings),
        rng=random.Random(1234),
        now=lambda: FIXED_NOW,
    )


def _drain(generator: ItemGenerator, count: int) -> list[WriteItem]:
    return [generator.next_item() for _ in range(count)]


def test_unique_keys_follow_prefix_and_format() -> None:
    items = _drain(_generator(50), 50)

    keys = [item.key for item in items]
    assert len(set(keys)) == 50
    for key in keys:
        assert key.startswith("test-item-")
        timestamp, counter, suffix = key.removeprefix("test-item-").split("-")
        assert int(timestamp) == int(FIXED_NOW.timestamp() * 1000)
        assert int(counter) >= 1
        assert 1000 <= int(suffix) <= 9999
    assert all(item.attributes["expected_result"] == EXPECTED_SUCCESS for item in items)


def test_payload_has_configured_size() -> None:
    item = _generator(1, payload_size_bytes=120).next_item()

    assert len(item.payload) == 120
    assert item.payload.isalnum()


def test_duplicate_injection_count_is_exact() -> None:
    generator = _generator(100, 20.0)
    items = _drain(generator, 100)

    duplicates = [item for item in items if item.is_duplicate]
    assert generator.duplicate_count == 20
    assert len(duplicates) == 20
    assert all(
        item.attributes["expected_result"] == EXPECTED_DUPLICATE_ERROR for item in duplicates
    )
    assert len({item.key for item in items}) == 80


def test_duplicates_reuse_keys_issued_earlier() -> None:
    items = _drain(_generator(200, 30.0), 200)

    seen: set[str] = set()
    for item in items:
        if item.is_duplicate:
            assert item.key in seen
        else:
            assert item.key not in seen
        seen.add(item.key)
    assert not items[0].is_duplicate


@pytest.mark.parametrize(
    ("total", "percentage", "expected"),
    [(100, 20.0, 20), (10, 0.0, 0), (1, 100.0, 0), (5, 100.0, 4), (3, 10.0, 1)],
)
def test_planned_duplicate_count(total: int, percentage: float, expected: int) -> None:
    assert planned_duplicate_count(total, percentage) == expected


def test_exhausted_generator_raises_error() -> None:
    generator = _generator(2)
    _drain(generator, 2)

    with pytest.raises(ItemGenerationError, match="already been generated"):
        generator.next_item()
    assert generator.issued == 2


def test_item_above_size_ceiling_raises_error() -> None:
    generator = _generator(1, payload_size_bytes=450, max_item_size_bytes=460)

    with pytest.raises(ItemGenerationError, match="byte ceiling"):
        generator.next_item()


def test_overlong_key_prefix_raises_error() -> None:
    generator = _generator(1, key_prefix="k" * 300, max_item_size_bytes=5000)

    with pytest.raises(ItemGenerationError, match="characters"):
        generator.next_item()


def test_write_item_attributes_are_read_only() -> None:
    item = _generator(1).next_item()

    with pytest.raises(TypeError):
        item.attributes["is_duplicate"] = True  # type: ignore[index]
    assert item.approximate_size() <= 500
