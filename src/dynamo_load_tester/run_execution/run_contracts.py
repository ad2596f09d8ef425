"""Run execution entities and load schedule."""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum

from dynamo_load_tester.configuration.runtime_settings import RunConfig
from dynamo_load_tester.item_generation.item_generator import planned_duplicate_count


class RunPhase(str, Enum):
    """Orchestrator lifecycle phase."""

    IDLE = "Idle"
    RAMP_UP = "RampUp"
    SUSTAIN = "Sustain"
    FINALIZING = "Finalizing"
    DONE = "Done"


def level_for_ramp_item(index: int, ramp_items: int, max_level: int) -> int:
    """Admission level for 0-based ramp item ``index`` of ``ramp_items``.

    Levels rise linearly from 1 to ``max_level``: item ``i`` runs at
    ``ceil((i + 1) * max_level / ramp_items)`` clamped to ``[1, max_level]``,
    so the last ramp item is always dispatched at ``max_level``.
    """
    if ramp_items <= 0:
        return max_level
    return min(max_level, max(1, math.ceil((index + 1) * max_level / ramp_items)))


@dataclass(frozen=True)
class PhaseSlice:
    """Items issued in one phase of the schedule."""

    phase: RunPhase
    item_count: int
    max_level: int

    def level_for(self, index: int) -> int:
        if self.phase is RunPhase.RAMP_UP:
            return level_for_ramp_item(index, self.item_count, self.max_level)
        return self.max_level


@dataclass(frozen=True)
class LoadPlan:
    """Derived ramp-up and sustain schedule for one run."""

    total_items: int
    concurrency_limit: int
    max_concurrency_level: int
    ramp_up: PhaseSlice
    sustain: PhaseSlice
    expected_duplicates: int

    @property
    def phases(self) -> tuple[PhaseSlice, PhaseSlice]:
        return (self.ramp_up, self.sustain)

    def ramp_levels(self) -> list[int]:
        return [self.ramp_up.level_for(index) for index in range(self.ramp_up.item_count)]


def build_load_plan(config: RunConfig) -> LoadPlan:
    max_level = config.max_concurrency_level
    return LoadPlan(
        total_items=config.total_items,
        concurrency_limit=config.concurrency_limit,
        max_concurrency_level=max_level,
        ramp_up=PhaseSlice(RunPhase.RAMP_UP, config.items_for_ramp_up, max_level),
        sustain=PhaseSlice(RunPhase.SUSTAIN, config.items_for_max_concurrency, max_level),
        expected_duplicates=planned_duplicate_count(
            config.total_items, config.duplicate_percentage
        ),
    )
