"""Command line interface entry point."""

from __future__ import annotations

import logging
import sys

import click

from dynamo_load_tester.configuration import (
    ALLOWED_ENVIRONMENTS,
    DEFAULT_CONFIG_FILENAME,
    ConfigurationError,
    write_placeholder_configuration,
)
from dynamo_load_tester.run_execution import (
    LoadPlan,
    RunExecutionError,
    RunRequest,
    build_load_plan,
    execute_load_test_run,
    resolve_configuration,
)
from dynamo_load_tester.store_access import DynamoDBItemWriter, RunItemCleaner

logging.getLogger("dynamo_load_tester").addHandler(logging.NullHandler())


class CliError(Exception):
    """Custom CLI error."""


_CONFIG_OPTION = click.option(
    "--config",
    "config_path",
    required=False,
    type=click.Path(path_type=str),
    help="Path to YAML/JSON load test configuration file",
)
_PARAMETER_PREFIX_OPTION = click.option(
    "--parameter-prefix",
    "parameter_prefix",
    required=False,
    help="SSM parameter path holding the run parameters (overrides the run section)",
)
_ENVIRONMENT_OPTION = click.option(
    "--environment",
    type=click.Choice(ALLOWED_ENVIRONMENTS),
    default="local",
    show_default=True,
    help="Environment tag applied to run parameters read from SSM",
)


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(package_name="dynamo-load-tester")
@click.option("--verbose", "-v", is_flag=True, default=False, help="Enable debug logging.")
def cli(verbose: bool) -> None:
    """Progressive-concurrency write load tester for DynamoDB tables."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@cli.command(name="generate-config")
@click.option(
    "--output",
    "output_path",
    required=False,
    default=DEFAULT_CONFIG_FILENAME,
    show_default=True,
    type=click.Path(path_type=str),
    help="Path to the YAML load test configuration template to write",
)
def generate_config(output_path: str) -> None:
    """Generate a placeholder YAML load test configuration with guidance comments."""
    try:
        resolved_output = write_placeholder_configuration(output_path)
    except (FileExistsError, OSError) as exc:
        raise CliError(str(exc)) from exc
    click.echo(str(resolved_output))


@cli.command(name="plan")
@_CONFIG_OPTION
@_PARAMETER_PREFIX_OPTION
@_ENVIRONMENT_OPTION
def plan(config_path: str | None, parameter_prefix: str | None, environment: str) -> None:
    """Print the derived ramp-up and sustain schedule without writing anything."""
    try:
        configuration = resolve_configuration(
            config_path, parameter_prefix, environment=environment
        )
    except (ConfigurationError, OSError) as exc:
        raise CliError(str(exc)) from exc
    if configuration.run is None:
        raise CliError("No run parameters were configured.")
    click.echo(_render_plan(configuration.run.target_name, build_load_plan(configuration.run)))


@cli.command(name="run")
@_CONFIG_OPTION
@_PARAMETER_PREFIX_OPTION
@_ENVIRONMENT_OPTION
@click.option(
    "--report",
    "report_path",
    required=False,
    type=click.Path(path_type=str),
    help="Optional path of an .xlsx summary workbook to write",
)
def run_load_test(
    config_path: str | None,
    parameter_prefix: str | None,
    environment: str,
    report_path: str | None,
) -> None:
    """Execute a load test run and print its report."""
    try:
        outcome = execute_load_test_run(
            RunRequest(
                config_path=config_path,
                parameter_prefix=parameter_prefix,
                environment=environment,
                report_path=report_path,
            ),
            writer_cls=DynamoDBItemWriter,
            cleaner_cls=RunItemCleaner,
        )
    except RunExecutionError as exc:
        raise CliError(str(exc)) from exc
    click.echo(outcome.report_text, nl=False)
    if outcome.report_path:
        click.echo(str(outcome.report_path))


def _render_plan(target_name: str, load_plan: LoadPlan) -> str:
    ramp_levels = load_plan.ramp_levels()
    lines = [
        f"target: {target_name}",
        f"total_items: {load_plan.total_items}",
        f"concurrency_limit: {load_plan.concurrency_limit}",
        f"max_concurrency_level: {load_plan.max_concurrency_level}",
        f"ramp_up_items: {load_plan.ramp_up.item_count}",
        f"sustain_items: {load_plan.sustain.item_count}",
        f"expected_duplicates: {load_plan.expected_duplicates}",
    ]
    if ramp_levels:
        counts: dict[int, int] = {}
        for level in ramp_levels:
            counts[level] = counts.get(level, 0) + 1
        lines.append("ramp_up_steps:")
        lines.extend(f"  level {level}: {count} items" for level, count in counts.items())
    return "\n".join(lines)


def main(argv: list[str] | None = None) -> int:
    """CLI entry point for console_scripts wiring."""
    argv = argv if argv is not None else sys.argv[1:]
    try:
        cli.main(args=list(argv), standalone_mode=False)
    except CliError as exc:
        click.echo(str(exc), err=True)
        return 1
    except click.ClickException as exc:
        exc.show()
        return exc.exit_code
    except click.Abort:
        click.echo("Aborted.", err=True)
        return 1
    return 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
