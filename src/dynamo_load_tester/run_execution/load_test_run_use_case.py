"""Load test run use-case service."""

from __future__ import annotations

import logging
import signal
import threading
from collections.abc import Iterator
from contextlib import contextmanager, nullcontext
from dataclasses import dataclass, replace
from pathlib import Path

from dynamo_load_tester.configuration import (
    Configuration,
    ConfigurationError,
    ExecutionSettings,
    ItemSettings,
    ParameterStoreError,
    ParameterStoreRunConfigSource,
    ResilienceSettings,
    RunConfig,
    StoreSettings,
    load_configuration,
)
from dynamo_load_tester.metrics_aggregation import RunSummary
from dynamo_load_tester.metrics_publishing import LoggingMetricsSink, PeriodicSnapshotPublisher
from dynamo_load_tester.results_writing import (
    RunMetadata,
    render_summary_text,
    write_summary_workbook,
)
from dynamo_load_tester.store_access import CleanupReport, StoreAccessError

from .load_test_orchestrator import LoadTestOrchestrator, RunExecutionError

_LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class RunRequest:
    """Input contract for executing one load test run."""

    config_path: str | None
    parameter_prefix: str | None = None
    environment: str = "local"
    report_path: str | None = None


@dataclass(frozen=True)
class RunOutcome:
    """Output contract for one completed run."""

    summary: RunSummary
    metadata: RunMetadata
    report_text: str
    report_path: Path | None
    cleanup: CleanupReport | None


def resolve_configuration(
    config_path: str | None,
    parameter_prefix: str | None = None,
    *,
    environment: str = "local",
    parameter_source_cls=ParameterStoreRunConfigSource,
) -> Configuration:
    """Load settings from the file and run parameters from the file or parameter store."""
    if config_path is None and parameter_prefix is None:
        raise ConfigurationError("Either a configuration file or a parameter prefix is required.")
    try:
        if config_path is not None:
            configuration = load_configuration(
                config_path, require_run=parameter_prefix is None
            )
        else:
            configuration = Configuration(
                path=None,
                run=None,
                items=ItemSettings(),
                resilience=ResilienceSettings(),
                store=StoreSettings(),
                execution=ExecutionSettings(),
            )
        if parameter_prefix is not None:
            source = parameter_source_cls(
                parameter_prefix,
                environment=environment,
                store_settings=configuration.store,
            )
            configuration = replace(configuration, run=source.load())
    except ParameterStoreError as exc:
        raise ConfigurationError(str(exc)) from exc
    return configuration


# pylint: disable=too-many-locals
def execute_load_test_run(
    request: RunRequest,
    *,
    writer_cls,
    cleaner_cls,
    parameter_source_cls=ParameterStoreRunConfigSource,
    handle_interrupts: bool = True,
) -> RunOutcome:
    """Execute one full load test run and return its outcome."""
    try:
        configuration = resolve_configuration(
            request.config_path,
            request.parameter_prefix,
            environment=request.environment,
            parameter_source_cls=parameter_source_cls,
        )
    except (ConfigurationError, OSError) as exc:
        raise RunExecutionError(str(exc)) from exc
    run = _require_run(configuration)

    try:
        writer = writer_cls(
            run.target_name,
            settings=configuration.store,
            max_connections=run.max_concurrency_level,
        )
        writer.ensure_table_exists()
    except StoreAccessError as exc:
        raise RunExecutionError(str(exc)) from exc

    orchestrator = LoadTestOrchestrator(
        writer,
        resilience=configuration.resilience,
        items=configuration.items,
        execution=configuration.execution,
    )
    interrupts = _cancel_on_interrupt(orchestrator) if handle_interrupts else nullcontext()
    with interrupts, _publishing(orchestrator, configuration.execution):
        summary = orchestrator.execute(run)

    cleanup = None
    if run.cleanup_after_run:
        cleaner = cleaner_cls(run.target_name, settings=configuration.store)
        cleanup = cleaner.cleanup(configuration.items.key_prefix)

    breaker_stats = orchestrator.circuit_breaker_stats()
    metadata = RunMetadata(
        config=run,
        peak_in_flight=orchestrator.peak_in_flight,
        circuit_breaker_openings=breaker_stats.times_opened,
        circuit_breaker_rejections=breaker_stats.rejected_calls,
        cleaned_items=cleanup.deleted if cleanup else None,
    )
    report_path = None
    if request.report_path:
        try:
            report_path = write_summary_workbook(summary, request.report_path, metadata).resolve()
        except OSError as exc:
            raise RunExecutionError(f"Failed to write report workbook: {exc}") from exc
    return RunOutcome(
        summary=summary,
        metadata=metadata,
        report_text=render_summary_text(summary, metadata),
        report_path=report_path,
        cleanup=cleanup,
    )


def _require_run(configuration: Configuration) -> RunConfig:
    if configuration.run is None:
        raise RunExecutionError("No run parameters were configured.")
    return configuration.run


@contextmanager
def _cancel_on_interrupt(orchestrator: LoadTestOrchestrator) -> Iterator[None]:
    if threading.current_thread() is not threading.main_thread():
        yield
        return

    def _handle(signum, frame) -> None:  # pylint: disable=unused-argument
        _LOGGER.warning("Interrupt received, draining in-flight writes")
        orchestrator.cancel()

    previous = signal.signal(signal.SIGINT, _handle)
    try:
        yield
    finally:
        signal.signal(signal.SIGINT, previous)


@contextmanager
def _publishing(
    orchestrator: LoadTestOrchestrator, execution: ExecutionSettings
) -> Iterator[None]:
    if execution.snapshot_interval_seconds <= 0:
        yield
        return
    with PeriodicSnapshotPublisher(
        orchestrator.snapshot, LoggingMetricsSink(), execution.snapshot_interval_seconds
    ):
        yield
