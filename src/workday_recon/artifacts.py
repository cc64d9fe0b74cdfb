"""Run artifact persistence: check report, manifest and findings workbook."""

from __future__ import annotations

import hashlib
from datetime import datetime, timezone
from pathlib import Path

from workday_recon import __version__
from workday_recon.io import write_json
from workday_recon.models import RunManifest
from workday_recon.pipeline import RunOutcome
from workday_recon.report import write_findings_workbook

_CHUNK_SIZE = 64 * 1024


def input_digest(path: Path | None) -> str:
    """Hex SHA-256 of an input workbook; ``""`` when absent or unreadable."""
    if path is None:
        return ""
    digest = hashlib.sha256()
    try:
        with Path(path).open("rb") as fh:
            while chunk := fh.read(_CHUNK_SIZE):
                digest.update(chunk)
    except OSError:
        return ""
    return digest.hexdigest()


def write_check_report(out_dir: Path, outcome: RunOutcome) -> Path:
    """Write ``check_report.json`` into *out_dir* and return the path."""
    return write_json(out_dir / "check_report.json", outcome.to_dict())


def write_manifest(
    out_dir: Path,
    first_file: Path,
    second_file: Path | None,
    outcome: RunOutcome | None,
    *,
    created_at: str | None = None,
) -> Path:
    """Write ``run_manifest.json`` into *out_dir* and return the path.

    *outcome* is ``None`` when the run stopped before any check ran; the
    manifest then records zero records and a failed run.
    """
    manifest = RunManifest(
        version=__version__,
        first_path=str(first_file.resolve()),
        second_path=str(second_file.resolve()) if second_file else "",
        first_sha256=input_digest(first_file),
        second_sha256=input_digest(second_file),
        created_at_utc=created_at or datetime.now(timezone.utc).isoformat(),
        first_records=len(outcome.first) if outcome else 0,
        second_records=len(outcome.second) if outcome else 0,
        passed=outcome.passed if outcome else False,
    )
    return write_json(out_dir / "run_manifest.json", manifest.to_dict())


def write_artifacts(
    out_dir: Path, first_file: Path, second_file: Path, outcome: RunOutcome
) -> list[Path]:
    """Write every artifact of a completed run; return their paths."""
    out_dir = Path(out_dir)
    out_dir.mkdir(parents=True, exist_ok=True)
    return [
        write_check_report(out_dir, outcome),
        write_findings_workbook(out_dir, outcome.results, outcome.first),
        write_manifest(out_dir, first_file, second_file, outcome),
    ]
