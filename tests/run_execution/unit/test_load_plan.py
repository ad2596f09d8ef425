"""Load plan tests."""

from __future__ import annotations

import pytest
from dynamo_load_tester.configuration.runtime_settings import RunConfig
from dynamo_load_tester.run_execution import RunPhase, build_load_plan, level_for_ramp_item


def _config(**overrides) -> RunConfig:
    values = {
        "target_name": "load-test-table",
        "concurrency_limit": 10,
        "total_items": 100,
        "max_concurrency_percentage": 50.0,
    }
    values.update(overrides)
    return RunConfig(**values)


def test_reference_scenario_plan() -> None:
    plan = build_load_plan(_config())

    assert plan.ramp_up.item_count == 50
    assert plan.sustain.item_count == 50
    assert plan.max_concurrency_level == 5
    assert [phase.phase for phase in plan.phases] == [RunPhase.RAMP_UP, RunPhase.SUSTAIN]


def test_ramp_reaches_max_level_by_last_ramp_item() -> None:
    levels = build_load_plan(_config()).ramp_levels()

    assert len(levels) == 50
    assert levels[0] == 1
    assert levels[49] == 5
    assert [levels.count(level) for level in range(1, 6)] == [10, 10, 10, 10, 10]


@pytest.mark.parametrize(
    ("ramp_items", "max_level"),
    [(1, 1), (1, 8), (3, 10), (50, 5), (7, 7), (1000, 64)],
)
def test_ramp_levels_are_monotonic_and_bounded(ramp_items: int, max_level: int) -> None:
    levels = [level_for_ramp_item(index, ramp_items, max_level) for index in range(ramp_items)]

    assert levels == sorted(levels)
    assert all(1 <= level <= max_level for level in levels)
    assert levels[-1] == max_level


def test_sustain_items_use_max_level() -> None:
    plan = build_load_plan(_config(concurrency_limit=40, max_concurrency_percentage=25.0))

    assert plan.max_concurrency_level == 10
    assert {plan.sustain.level_for(index) for index in range(plan.sustain.item_count)} == {10}


def test_full_percentage_has_empty_ramp() -> None:
    plan = build_load_plan(_config(max_concurrency_percentage=100.0))

    assert plan.ramp_up.item_count == 0
    assert plan.sustain.item_count == 100
    assert plan.ramp_levels() == []


def test_plan_reports_expected_duplicates() -> None:
    plan = build_load_plan(_config(duplicate_percentage=20.0))

    assert plan.expected_duplicates == 20
