from __future__ import annotations

import sys

from ..checks.engine import CheckResult, CheckRun

COLUMNS = (
    ("status", "Status"),
    ("label", "Label"),
    ("file", "File"),
    ("tester", "Tester"),
    ("size", "Size"),
    ("limit", "Limit"),
    ("diff", "Δ"),
)


def _status(result: CheckResult) -> str:
    if result.error:
        return "ERR"
    return "PASS" if result.passed else "FAIL"


def _row(result: CheckResult) -> dict[str, str]:
    return {
        "status": _status(result),
        "label": result.label,
        "file": result.file_path,
        "tester": result.tester_label,
        "size": result.size_formatted,
        "limit": result.max_size_formatted,
        "diff": result.diff_formatted,
    }


def console_reporter(run: CheckRun) -> None:
    if not run.results:
        print("No files were evaluated. Check your configuration.")
        return

    rows = [_row(result) for result in run.results]
    widths = [max(len(title), *(len(row[key]) for row in rows)) for key, title in COLUMNS]
    print("  ".join(title.ljust(width) for (_, title), width in zip(COLUMNS, widths)).rstrip())
    print("  ".join("-" * width for width in widths))
    for row in rows:
        print("  ".join(row[key].ljust(width) for (key, _), width in zip(COLUMNS, widths)).rstrip())

    if run.stats.has_failures:
        failed = sum(1 for entry in run.stats.failures if not entry.error)
        errored = sum(1 for entry in run.stats.failures if entry.error)
        parts = [f"Bundle size check failed for {failed} file(s)"]
        if errored:
            parts.append(f"{errored} pattern(s) produced errors")
        print(". ".join(parts), file=sys.stderr)
    else:
        print(f"All {len(run.results)} file(s) passed their size limits.")
