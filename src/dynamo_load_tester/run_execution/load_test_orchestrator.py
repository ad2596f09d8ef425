"""Load test orchestration service."""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor

from dynamo_load_tester.concurrency_control import (
    AdmissionCancelledError,
    AdmissionController,
    AdmissionPermit,
    RunCancellation,
)
from dynamo_load_tester.configuration.runtime_settings import (
    ExecutionSettings,
    ItemSettings,
    ResilienceSettings,
    RunConfig,
)
from dynamo_load_tester.error_classification import ErrorCategory, WriteFailure, classify_failure
from dynamo_load_tester.item_generation import ItemGenerationError, ItemGenerator, WriteItem
from dynamo_load_tester.metrics_aggregation import (
    MetricsAggregator,
    MetricsFinalizedError,
    MetricsSnapshot,
    OperationOutcome,
    RunSummary,
)
from dynamo_load_tester.resilience import (
    CircuitBreaker,
    CircuitBreakerStats,
    ResilientWriter,
    RetryPolicy,
    StoreWriter,
)

from .run_contracts import LoadPlan, PhaseSlice, RunPhase, build_load_plan

_LOGGER = logging.getLogger(__name__)


class RunExecutionError(Exception):
    """Raised when a run cannot be started or is aborted."""


class LoadTestOrchestrator:  # pylint: disable=too-many-instance-attributes
    """Drives one ramp-up/sustain run against a store writer.

    Each item is generated on the dispatching thread, admitted through the
    ``AdmissionController`` at the level of its phase, and handed together
    with its permit to a worker thread. The worker writes through the
    resilience layer, records the outcome and only then releases the permit,
    so waiting for the controller to go idle guarantees every outcome was
    recorded before ``finalize``.

    An orchestrator runs once. ``cancel`` may be called from any thread.
    """

    # pylint: disable=too-many-arguments
    def __init__(
        self,
        store_writer: StoreWriter,
        *,
        resilience: ResilienceSettings | None = None,
        items: ItemSettings | None = None,
        execution: ExecutionSettings | None = None,
        classifier: Callable[[WriteFailure], ErrorCategory] = classify_failure,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], bool] | None = None,
    ) -> None:
        self._store_writer = store_writer
        self._resilience = resilience or ResilienceSettings()
        self._items = items or ItemSettings()
        self._execution = execution or ExecutionSettings()
        self._classifier = classifier
        self._clock = clock
        self._sleep = sleep
        self._cancellation = RunCancellation()
        self._aggregator = MetricsAggregator(clock=clock)
        self._circuit_breaker = CircuitBreaker(self._resilience.circuit_breaker, clock=clock)
        self._controller: AdmissionController | None = None
        self._phase = RunPhase.IDLE
        self._phase_lock = threading.Lock()

    @property
    def phase(self) -> RunPhase:
        with self._phase_lock:
            return self._phase

    @property
    def is_cancelled(self) -> bool:
        return self._cancellation.is_cancelled

    @property
    def peak_in_flight(self) -> int:
        return self._controller.peak_in_flight if self._controller else 0

    def cancel(self) -> None:
        """Stop issuing items and let in-flight writes drain."""
        if not self._cancellation.is_cancelled:
            _LOGGER.warning("Cancellation requested during %s", self.phase.value)
        self._cancellation.cancel()

    def snapshot(self) -> MetricsSnapshot:
        return self._aggregator.snapshot()

    def circuit_breaker_stats(self) -> CircuitBreakerStats:
        return self._circuit_breaker.stats()

    def execute(self, config: RunConfig) -> RunSummary:
        """Run the full schedule for ``config`` and return the final summary."""
        with self._phase_lock:
            if self._phase is not RunPhase.IDLE:
                raise RunExecutionError("This orchestrator has already executed a run.")
            self._phase = RunPhase.RAMP_UP

        plan = build_load_plan(config)
        _LOGGER.info(
            "Starting run against %s: %d items, ramp-up %d, sustain %d at level %d",
            config.target_name,
            plan.total_items,
            plan.ramp_up.item_count,
            plan.sustain.item_count,
            plan.max_concurrency_level,
        )
        generator = ItemGenerator(
            config.total_items, config.duplicate_percentage, self._items
        )
        controller = AdmissionController(config.concurrency_limit, self._cancellation)
        self._controller = controller
        writer = ResilientWriter(
            self._store_writer,
            retry_policy=RetryPolicy(self._resilience.retry),
            circuit_breaker=self._circuit_breaker,
            classifier=self._classifier,
            cancellation=self._cancellation,
            sleep=self._sleep,
        )

        self._aggregator.start()
        executor = ThreadPoolExecutor(
            max_workers=plan.max_concurrency_level, thread_name_prefix="load-writer"
        )
        generation_error: ItemGenerationError | None = None
        try:
            self._dispatch(plan, generator, controller, executor, writer)
        except ItemGenerationError as exc:
            _LOGGER.error("Item generation failed, aborting run: %s", exc)
            generation_error = exc
            self._cancellation.cancel()
        finally:
            self._drain(controller, executor)

        self._set_phase(RunPhase.FINALIZING)
        summary = self._aggregator.finalize(
            target_name=config.target_name,
            expected_duplicates=plan.expected_duplicates,
            cancelled=self._cancellation.is_cancelled,
        )
        self._set_phase(RunPhase.DONE)
        if generation_error is not None:
            raise RunExecutionError(str(generation_error)) from generation_error
        _check_duplicate_accuracy(summary)
        return summary

    def _dispatch(
        self,
        plan: LoadPlan,
        generator: ItemGenerator,
        controller: AdmissionController,
        executor: ThreadPoolExecutor,
        writer: ResilientWriter,
    ) -> None:
        for phase_slice in plan.phases:
            self._set_phase(phase_slice.phase)
            if not self._dispatch_phase(phase_slice, generator, controller, executor, writer):
                return

    def _dispatch_phase(
        self,
        phase_slice: PhaseSlice,
        generator: ItemGenerator,
        controller: AdmissionController,
        executor: ThreadPoolExecutor,
        writer: ResilientWriter,
    ) -> bool:
        current_level = 0
        for index in range(phase_slice.item_count):
            if self._cancellation.is_cancelled:
                return False
            level = phase_slice.level_for(index)
            if level != current_level:
                _LOGGER.debug("%s admission level now %d", phase_slice.phase.value, level)
                current_level = level
            item = generator.next_item()
            try:
                permit = controller.acquire(level)
            except AdmissionCancelledError:
                return False
            executor.submit(self._write_and_record, item, permit, writer)
        return True

    def _write_and_record(
        self, item: WriteItem, permit: AdmissionPermit, writer: ResilientWriter
    ) -> None:
        try:
            started = self._clock()
            result = writer.write(item)
            outcome = OperationOutcome(
                success=result.success,
                latency_seconds=max(self._clock() - started, 0.0),
                concurrency_level=permit.level,
                error_category=result.error_category,
                attempts=result.attempts,
            )
            try:
                self._aggregator.record(outcome)
            except MetricsFinalizedError:
                _LOGGER.warning("Discarding outcome for %s that finished after the drain", item.key)
        except Exception:  # pylint: disable=broad-exception-caught
            _LOGGER.exception("Write task for %s failed unexpectedly", item.key)
        finally:
            permit.release()

    def _drain(self, controller: AdmissionController, executor: ThreadPoolExecutor) -> None:
        if controller.wait_until_idle(cancel_grace=self._execution.drain_timeout_seconds):
            executor.shutdown(wait=True)
            return
        _LOGGER.warning(
            "Abandoning %d in-flight writes after %.1fs drain timeout",
            controller.in_flight,
            self._execution.drain_timeout_seconds,
        )
        executor.shutdown(wait=False, cancel_futures=True)

    def _set_phase(self, phase: RunPhase) -> None:
        with self._phase_lock:
            previous, self._phase = self._phase, phase
        if previous is not phase:
            _LOGGER.info("Run phase %s -> %s", previous.value, phase.value)


def _check_duplicate_accuracy(summary: RunSummary) -> None:
    if summary.cancelled or summary.duplicate_errors == summary.expected_duplicates:
        return
    _LOGGER.warning(
        "Duplicate key errors (%d) differ from injected duplicates (%d)",
        summary.duplicate_errors,
        summary.expected_duplicates,
    )
