"""CLI entry point for workday-recon."""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import date
from pathlib import Path

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table as RichTable

from workday_recon import __version__
from workday_recon.artifacts import write_artifacts, write_manifest
from workday_recon.config import WorkDaysConfig, load_config
from workday_recon.io import load_sheet_rows
from workday_recon.models import DuplicateSiteKeyError, Status
from workday_recon.normalize import build_collection
from workday_recon.pipeline import RunOutcome, run as run_pipeline
from workday_recon.report import emit, format_day_query, query_day

app = typer.Typer(
    name="wdrecon",
    help="workday-recon — Validate and reconcile site work-day schedules.",
    add_completion=False,
    no_args_is_help=True,
)
console = Console()
logger = logging.getLogger("workday_recon")

EXIT_INTERNAL = 1
EXIT_INPUT = 2
EXIT_FINDINGS = 3

LOG_FORMAT = "%(asctime)s|%(levelname)s|%(message)s"


def _noop(*_args: object, **_kwargs: object) -> None:
    return None


def _printer(quiet: bool) -> Callable[..., None]:
    return _noop if quiet else console.print


def _err(msg: str) -> None:
    console.print(f"[red]x[/red] {msg}")


# ── Helpers ──────────────────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"workday-recon v{__version__}")
        raise typer.Exit()


def setup_logging(*, verbose: bool, quiet: bool, log_dir: Path | None) -> None:
    """Route package logs to the rich console and, optionally, a dated log file."""
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(logging.DEBUG if verbose else logging.INFO)
    logger.propagate = False

    console_handler = RichHandler(console=console, show_path=False, markup=False)
    console_handler.setLevel(logging.ERROR if quiet else logging.NOTSET)
    logger.addHandler(console_handler)

    if log_dir is not None:
        log_dir.mkdir(parents=True, exist_ok=True)
        log_path = log_dir / f"{date.today().isoformat()}.log"
        file_handler = logging.FileHandler(log_path, encoding="utf-8")
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(file_handler)


def _load_config_or_exit(config_path: Path) -> WorkDaysConfig:
    try:
        return load_config(config_path)
    except (FileNotFoundError, ValueError, OSError) as exc:
        _err(str(exc))
        raise typer.Exit(code=EXIT_INPUT)


def _print_summary(outcome: RunOutcome) -> None:
    tbl = RichTable(title="Check Summary", show_lines=True)
    tbl.add_column("Check", style="bold")
    tbl.add_column("Checked")
    tbl.add_column("Findings")
    tbl.add_column("Result")
    styles = {Status.PASS_: "green", Status.WARN: "yellow", Status.FAIL: "red"}
    for result in outcome.results:
        style = styles[result.status]
        tbl.add_row(
            result.title,
            str(result.checked),
            str(len(result.findings)),
            f"[{style}]{result.status.value.upper()}[/{style}]",
        )
    if outcome.day_query is not None:
        query_status = "[green]PASS[/green]" if outcome.day_query.passed else "[red]FAIL[/red]"
        tbl.add_row(
            "Sites by work day", "-", str(len(outcome.day_query.findings)), query_status
        )
    console.print(tbl)


# ── Callbacks ────────────────────────────────────────────────────


@app.callback()
def main(
    version: bool | None = typer.Option(
        None, "--version", "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
) -> None:
    """workday-recon CLI."""


# ── check command ────────────────────────────────────────────────


@app.command()
def check(
    first_file: Path = typer.Option(
        ..., "--first",
        help="First work-days workbook (XLSX).",
    ),
    second_file: Path = typer.Option(
        ..., "--second",
        help="Second work-days workbook (XLSX).",
    ),
    config_path: Path = typer.Option(
        ..., "--config", "-c",
        help="JSON settings file (sheet layouts, status, holidays, ignore lists).",
    ),
    print_day: str | None = typer.Option(
        None, "--print-day", "-d",
        help="List the sites working on these days, e.g. 2024/05/03|2024/05/04.",
    ),
    out_dir: Path | None = typer.Option(
        None, "--out-dir", "-o",
        help="Write check_report.json, WorkDays_Report.xlsx and run_manifest.json here.",
    ),
    log_dir: Path | None = typer.Option(
        None, "--log-dir",
        help="Also write the log to <log-dir>/<YYYY-MM-DD>.log.",
    ),
    fail_on_findings: bool = typer.Option(
        False, "--fail-on-findings",
        help=f"Exit with code {EXIT_FINDINGS} when any check reports a problem.",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable DEBUG logs."),
    quiet: bool = typer.Option(
        False, "--quiet", "-q",
        help="Only log errors to the console; still writes all artifacts.",
    ),
) -> None:
    """Validate the first workbook and reconcile it against the second."""
    echo = _printer(quiet)
    setup_logging(verbose=verbose, quiet=quiet, log_dir=log_dir)

    for label, path in (("first", first_file), ("second", second_file)):
        if not path.exists():
            _err(f"[NG] {label} workbook is missing: {path}")
            raise typer.Exit(code=EXIT_INPUT)

    cfg = _load_config_or_exit(config_path)

    if not quiet:
        console.print(Panel(
            f"[bold]workday-recon[/bold] v{__version__}\n"
            f"First:  {first_file}\nSecond: {second_file}",
            title="Run Start", border_style="blue",
        ))

    echo("[blue]>[/blue] Loading workbooks …")
    try:
        first_rows = load_sheet_rows(first_file, cfg.first.sheet_name, cfg.first.first_data_row)
        second_rows = load_sheet_rows(
            second_file, cfg.second.sheet_name, cfg.second.first_data_row
        )
    except (FileNotFoundError, ValueError, OSError) as exc:
        _err(str(exc))
        raise typer.Exit(code=EXIT_INPUT)
    echo(f"  first: {len(first_rows)} rows, second: {len(second_rows)} rows")

    try:
        echo("[blue]>[/blue] Running checks …")
        try:
            outcome = run_pipeline(first_rows, second_rows, cfg, print_days=print_day)
        except DuplicateSiteKeyError as exc:
            _err(str(exc))
            if out_dir is not None:
                manifest_path = write_manifest(out_dir, first_file, second_file, None)
                console.print(f"  Manifest -> {manifest_path}")
            raise typer.Exit(code=EXIT_INPUT)

        emit(outcome.report_lines())

        if out_dir is not None:
            for path in write_artifacts(out_dir, first_file, second_file, outcome):
                echo(f"  Artifact -> {path}")

        if not quiet:
            _print_summary(outcome)
            if outcome.passed:
                console.print(Panel(
                    "[green]Done[/green] — every check passed",
                    title="Run Complete", border_style="green",
                ))
            else:
                console.print(Panel(
                    "[yellow]Done[/yellow] — problems found, see the log above",
                    title="Run Complete", border_style="yellow",
                ))
    except typer.Exit:
        raise
    except Exception as exc:
        _err(f"Unexpected internal error: {exc}")
        raise typer.Exit(code=EXIT_INTERNAL)

    if fail_on_findings and not outcome.passed:
        raise typer.Exit(code=EXIT_FINDINGS)


# ── query command ────────────────────────────────────────────────


@app.command()
def query(
    first_file: Path = typer.Option(
        ..., "--first",
        help="First work-days workbook (XLSX).",
    ),
    config_path: Path = typer.Option(
        ..., "--config", "-c",
        help="JSON settings file.",
    ),
    day: str = typer.Option(
        ..., "--day", "-d",
        help="Day or pipe-delimited days to look up, e.g. 2024/05/03|2024/05/04.",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable DEBUG logs."),
) -> None:
    """List the active sites working on the given days."""
    setup_logging(verbose=verbose, quiet=False, log_dir=None)
    cfg = _load_config_or_exit(config_path)
    try:
        rows = load_sheet_rows(first_file, cfg.first.sheet_name, cfg.first.first_data_row)
        collection, _summary = build_collection(
            rows, cfg.first, ignore_key_suffix=cfg.ignore_key_suffix, source="first"
        )
    except (FileNotFoundError, ValueError, OSError) as exc:
        _err(str(exc))
        raise typer.Exit(code=EXIT_INPUT)

    result = query_day(collection, day, cfg.active_status)
    emit(format_day_query(result))
    if not result.passed:
        raise typer.Exit(code=EXIT_FINDINGS)
