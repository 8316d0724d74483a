from __future__ import annotations

import json
from pathlib import Path

from ..checks.engine import CheckRun

DEFAULT_REPORT_FILE = "overweight-report.json"


def _render(run: CheckRun) -> str:
    return json.dumps(run.to_dict(), indent=2, ensure_ascii=False)


def json_reporter(run: CheckRun) -> None:
    print(_render(run))


def resolve_report_path(report_file: str | Path | None, cwd: Path | None = None) -> Path:
    base = cwd or Path.cwd()
    if not report_file:
        return base / DEFAULT_REPORT_FILE
    target = Path(report_file)
    return target if target.is_absolute() else base / target


def json_file_reporter(
    run: CheckRun,
    *,
    report_file: str | Path | None = None,
    cwd: Path | None = None,
    silent: bool = False,
) -> Path:
    target = resolve_report_path(report_file, cwd)
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(_render(run), encoding="utf-8")
    if not silent:
        print(f"Saved Overweight report to {target}")
    return target


def silent_reporter(run: CheckRun) -> None:
    return None
