"""CLI error-handling tests."""

from __future__ import annotations

from pathlib import Path

from dynamo_load_tester.cli import main


def test_unknown_option_returns_clean_click_error(capsys) -> None:
    exit_code = main(["run", "--bogus"])
    captured = capsys.readouterr()

    assert exit_code == 2
    assert "No such option: --bogus" in captured.err
    assert "Traceback" not in captured.err


def test_invalid_environment_choice_returns_click_error(capsys) -> None:
    exit_code = main(["plan", "--parameter-prefix", "/x", "--environment", "qa"])
    captured = capsys.readouterr()

    assert exit_code == 2
    assert "--environment" in captured.err


def test_run_without_any_source_reports_domain_error(capsys) -> None:
    exit_code = main(["run"])
    captured = capsys.readouterr()

    assert exit_code == 1
    assert "parameter prefix" in captured.err
    assert "Traceback" not in captured.err


def test_plan_with_missing_config_file_reports_domain_error(tmp_path: Path, capsys) -> None:
    exit_code = main(["plan", "--config", str(tmp_path / "missing.yaml")])
    captured = capsys.readouterr()

    assert exit_code == 1
    assert "Configuration file not found" in captured.err


def test_generate_config_refuses_to_overwrite(tmp_path: Path, capsys) -> None:
    output_path = tmp_path / "load-test.yaml"
    output_path.write_text("existing", encoding="utf-8")

    exit_code = main(["generate-config", "--output", str(output_path)])
    captured = capsys.readouterr()

    assert exit_code == 1
    assert "already exists" in captured.err
