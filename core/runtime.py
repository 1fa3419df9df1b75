"""Runtime helpers shared by the entry points.

Small, explicit utilities for paths and timestamps so the CLI and the
assembler do not duplicate them. Plain functions, no classes.
"""

from datetime import datetime, timezone
from pathlib import Path


def repo_root():
    """Return the repository root (resolved Path)."""

    return Path(__file__).resolve().parents[1]


def timestamp_run_id(dt=None):
    """Return a UTC timestamp used to tag a run (``YYYYMMDDTHHMMSSZ``)."""

    dt = dt or datetime.now(timezone.utc)
    return dt.strftime("%Y%m%dT%H%M%SZ")


def ensure_dir(path, *parts):
    """Create a directory (``path`` may be relative to the repo root)."""

    base = Path(path)
    if not base.is_absolute():
        base = repo_root() / base
    for part in parts:
        base = base / part
    base.mkdir(parents=True, exist_ok=True)
    return base


def default_output_path(input_path, run_id=None):
    """Return ``<dir>/<stem>_report_<run_id>.docx`` next to the template.

    The template itself is never overwritten by default.
    """

    src = Path(input_path)
    run_id = run_id or timestamp_run_id()
    return src.with_name(f"{src.stem}_report_{run_id}{src.suffix or '.docx'}")
