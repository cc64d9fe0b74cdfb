"""CLI integration tests for workday-recon."""

from __future__ import annotations

import json
import logging
from datetime import date
from pathlib import Path
from typing import Any

import pytest
from typer.testing import CliRunner

import workday_recon.cli as cli_mod
from conftest import ACTIVE, FIRST_HEADER, SECOND_HEADER, SETTINGS, write_workbook
from workday_recon import __version__
from workday_recon.cli import EXIT_FINDINGS, EXIT_INPUT, EXIT_INTERNAL, app

runner = CliRunner()

FIRST_OK = [
    ["S-001-0001", 101, "0001-1", ACTIVE, 2, "2024/05/08|2024/05/09"],
    ["S-001-0002", 102, "0001-2", ACTIVE, 1, "2024/05/09"],
    ["S-001-0003", 103, "0001-3", "in survey", 0, None],
]
SECOND_OK = [
    ["S-001-0001", "0001-1", 2, "2024/05/08|2024/05/09"],
    ["S-001-0002", "0001-2", 1, "2024/05/09"],
    ["S-001-0003", "0001-3", 0, None],
]


def _inputs(
    tmp_path: Path,
    first: list[list[Any]] | None = None,
    second: list[list[Any]] | None = None,
    settings: dict[str, Any] | None = None,
) -> tuple[Path, Path, Path]:
    first_path = write_workbook(
        tmp_path / "first.xlsx", "Schedule", FIRST_HEADER, FIRST_OK if first is None else first
    )
    second_path = write_workbook(
        tmp_path / "second.xlsx", "Works", SECOND_HEADER, SECOND_OK if second is None else second
    )
    config_path = tmp_path / "settings.json"
    config_path.write_text(json.dumps(SETTINGS if settings is None else settings))
    return first_path, second_path, config_path


def _check_args(first: Path, second: Path, config: Path, *extra: str) -> list[str]:
    return ["check", "--first", str(first), "--second", str(second), "--config", str(config), *extra]


def test_check_clean_run_writes_artifacts(tmp_path: Path) -> None:
    first, second, config = _inputs(tmp_path)
    out_dir = tmp_path / "out"

    result = runner.invoke(app, _check_args(first, second, config, "--out-dir", str(out_dir)))

    assert result.exit_code == 0, result.output
    report = json.loads((out_dir / "check_report.json").read_text())
    manifest = json.loads((out_dir / "run_manifest.json").read_text())
    assert report["passed"] is True
    assert manifest["first_records"] == 3
    assert manifest["passed"] is True
    assert (out_dir / "WorkDays_Report.xlsx").exists()
    assert "Congratulations" in result.output


def test_check_nonquiet_shows_summary_table(tmp_path: Path) -> None:
    first, second, config = _inputs(tmp_path)

    result = runner.invoke(app, _check_args(first, second, config))

    assert result.exit_code == 0
    assert "Run Start" in result.output
    assert "Check Summary" in result.output
    assert "Run Complete" in result.output


def test_check_quiet_hides_panels(tmp_path: Path) -> None:
    first, second, config = _inputs(tmp_path)

    result = runner.invoke(app, _check_args(first, second, config, "--quiet"))

    assert result.exit_code == 0
    assert "Run Start" not in result.output
    assert "Check Summary" not in result.output


def test_findings_exit_zero_without_fail_flag(tmp_path: Path) -> None:
    first_rows = [list(r) for r in FIRST_OK]
    first_rows[1][4] = 3
    first, second, config = _inputs(tmp_path, first=first_rows)

    result = runner.invoke(app, _check_args(first, second, config, "--quiet"))

    assert result.exit_code == 0


def test_fail_on_findings_sets_exit_code(tmp_path: Path) -> None:
    first_rows = [list(r) for r in FIRST_OK]
    first_rows[1][4] = 3
    first, second, config = _inputs(tmp_path, first=first_rows)
    out_dir = tmp_path / "out"

    result = runner.invoke(
        app,
        _check_args(first, second, config, "--quiet", "--fail-on-findings", "--out-dir", str(out_dir)),
    )

    assert result.exit_code == EXIT_FINDINGS
    report = json.loads((out_dir / "check_report.json").read_text())
    day_count = next(c for c in report["checks"] if c["name"] == "day_count")
    assert day_count["status"] == "fail"


def test_weekend_warning_counts_as_finding(tmp_path: Path) -> None:
    first_rows = [list(r) for r in FIRST_OK]
    second_rows = [list(r) for r in SECOND_OK]
    first_rows[1][5] = second_rows[1][3] = "2024/05/11"
    first, second, config = _inputs(tmp_path, first=first_rows, second=second_rows)

    result = runner.invoke(app, _check_args(first, second, config, "--fail-on-findings"))

    assert result.exit_code == EXIT_FINDINGS
    assert "Saturday" in result.output


def test_missing_first_workbook_exits_with_input_error(tmp_path: Path) -> None:
    _first, second, config = _inputs(tmp_path)

    result = runner.invoke(app, _check_args(tmp_path / "missing.xlsx", second, config))

    assert result.exit_code == EXIT_INPUT
    assert "first workbook is missing" in result.output


def test_missing_config_exits_with_input_error(tmp_path: Path) -> None:
    first, second, _config = _inputs(tmp_path)

    result = runner.invoke(app, _check_args(first, second, tmp_path / "nope.json"))

    assert result.exit_code == EXIT_INPUT


def test_invalid_config_exits_with_input_error(tmp_path: Path) -> None:
    settings = dict(SETTINGS, PublicHolidaysInJapan="2024/13/45")
    first, second, config = _inputs(tmp_path, settings=settings)

    result = runner.invoke(app, _check_args(first, second, config))

    assert result.exit_code == EXIT_INPUT


@pytest.mark.parametrize(
    ("name", "value"), [("IgnoreSiteKeySuffix", 5), ("PublicHolidaysInJapan", 20240101)]
)
def test_wrongly_typed_setting_exits_with_input_error(
    tmp_path: Path, name: str, value: object
) -> None:
    first, second, config = _inputs(tmp_path, settings=dict(SETTINGS, **{name: value}))

    result = runner.invoke(app, _check_args(first, second, config))

    assert result.exit_code == EXIT_INPUT
    assert "must be a string" in result.output


def test_missing_sheet_exits_with_input_error(tmp_path: Path) -> None:
    settings = dict(SETTINGS, SecondExcelSheetName="Elsewhere")
    first, second, config = _inputs(tmp_path, settings=settings)

    result = runner.invoke(app, _check_args(first, second, config))

    assert result.exit_code == EXIT_INPUT
    assert "Elsewhere" in result.output


def test_duplicate_site_key_is_fatal_and_writes_manifest(tmp_path: Path) -> None:
    first_rows = FIRST_OK + [["S-001-0001", 104, "0001-4", ACTIVE, 1, "2024/05/10"]]
    first, second, config = _inputs(tmp_path, first=first_rows)
    out_dir = tmp_path / "out"

    result = runner.invoke(app, _check_args(first, second, config, "--out-dir", str(out_dir)))

    assert result.exit_code == EXIT_INPUT
    assert "Duplicate site key" in result.output
    manifest = json.loads((out_dir / "run_manifest.json").read_text())
    assert manifest["passed"] is False
    assert not (out_dir / "check_report.json").exists()


def test_unexpected_error_exits_internal(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    first, second, config = _inputs(tmp_path)

    def _boom(*_args: object, **_kwargs: object) -> None:
        raise RuntimeError("boom")

    monkeypatch.setattr(cli_mod, "run_pipeline", _boom)
    result = runner.invoke(app, _check_args(first, second, config, "--quiet"))

    assert result.exit_code == EXIT_INTERNAL
    assert "Unexpected internal error: boom" in result.output


def test_print_day_lists_sites(tmp_path: Path) -> None:
    first, second, config = _inputs(tmp_path)

    result = runner.invoke(app, _check_args(first, second, config, "--print-day", "2024/05/09"))

    assert result.exit_code == 0
    assert "0001-1 (2/2)" in result.output
    assert "0001-2 (1/1)" in result.output


def test_log_dir_writes_dated_log(tmp_path: Path) -> None:
    first, second, config = _inputs(tmp_path)
    log_dir = tmp_path / "logs"

    result = runner.invoke(app, _check_args(first, second, config, "--quiet", "--log-dir", str(log_dir)))

    assert result.exit_code == 0
    log_file = log_dir / f"{date.today().isoformat()}.log"
    text = log_file.read_text(encoding="utf-8")
    assert "|INFO|== start Date errors (first) ==" in text
    assert "every check passed" in text


def test_setup_logging_closes_previous_handlers(tmp_path: Path) -> None:
    cli_mod.setup_logging(verbose=False, quiet=True, log_dir=tmp_path)
    previous = [h for h in cli_mod.logger.handlers if isinstance(h, logging.FileHandler)]

    cli_mod.setup_logging(verbose=False, quiet=True, log_dir=None)

    assert len(previous) == 1
    assert previous[0].stream is None
    assert not any(isinstance(h, logging.FileHandler) for h in cli_mod.logger.handlers)


def test_version_flag_prints_and_exits() -> None:
    result = runner.invoke(app, ["--version"])

    assert result.exit_code == 0
    assert f"workday-recon v{__version__}" in result.output


def test_query_lists_sites_for_day(tmp_path: Path) -> None:
    first, _second, config = _inputs(tmp_path)

    result = runner.invoke(
        app, ["query", "--first", str(first), "--config", str(config), "--day", "2024/05/08"]
    )

    assert result.exit_code == 0
    assert "2024/05/08(Wed)" in result.output
    assert "0001-1 (1/2)" in result.output


def test_query_bad_day_exits_with_findings_code(tmp_path: Path) -> None:
    first, _second, config = _inputs(tmp_path)

    result = runner.invoke(
        app, ["query", "--first", str(first), "--config", str(config), "--day", "someday"]
    )

    assert result.exit_code == EXIT_FINDINGS
