"""Summary rows and table renderings for the Action outputs and PR comments."""

from __future__ import annotations

import html
from dataclasses import dataclass
from typing import Any, Iterable

from ..checks.engine import CheckResult

TABLE_HEADERS = ("Status", "Label", "File", "Size", "Limit", "Δ", "Trend")
REPORT_HEADING = "🧳 Overweight Size Report"


@dataclass(frozen=True)
class SummaryRow:
    label: str
    file: str
    tester: str
    size: str
    size_bytes: int | float
    limit: str
    limit_bytes: int | float
    diff: str
    diff_bytes: int | float
    status: str
    error: str | None = None
    baseline_size: str | None = None
    baseline_diff: str | None = None
    trend: str | None = None

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "label": self.label,
            "file": self.file,
            "tester": self.tester,
            "size": self.size,
            "sizeBytes": self.size_bytes,
            "limit": self.limit,
            "limitBytes": self.limit_bytes,
            "diff": self.diff,
            "diffBytes": self.diff_bytes,
            "status": self.status,
            "error": self.error,
        }
        if self.trend is not None:
            payload.update(baselineSize=self.baseline_size, baselineDiff=self.baseline_diff, trend=self.trend)
        return payload


def _status(result: CheckResult) -> str:
    if result.error:
        return "error"
    return "pass" if result.passed else "fail"


def build_summary_rows(results: Iterable[CheckResult]) -> list[SummaryRow]:
    return [
        SummaryRow(
            label=result.label,
            file=result.file_path,
            tester=result.tester_label,
            size=result.size_formatted,
            size_bytes=result.measured_bytes if result.measured_bytes is not None else 0,
            limit=result.max_size_formatted,
            limit_bytes=result.max_bytes,
            diff=result.diff_formatted,
            diff_bytes=result.diff_bytes if result.diff_bytes is not None else 0,
            status=_status(result),
            error=result.error,
        )
        for result in results
    ]


def status_emoji(row: SummaryRow) -> str:
    if row.error:
        return "💥"
    return "🟢" if row.status == "pass" else "🔺"


def _cells(row: SummaryRow) -> list[str]:
    return [status_emoji(row), row.label, row.file, row.size, row.limit, row.diff, row.trend or "N/A"]


def render_html_table(rows: Iterable[SummaryRow]) -> str:
    header = "".join(f"<th>{title}</th>" for title in TABLE_HEADERS)
    body = "".join(
        "<tr>" + "".join(f"<td>{html.escape(cell)}</td>" for cell in _cells(row)) + "</tr>" for row in rows
    )
    return f"<table><thead><tr>{header}</tr></thead><tbody>{body}</tbody></table>"


def render_markdown_table(rows: Iterable[SummaryRow]) -> str:
    def _escape(cell: str) -> str:
        return html.escape(cell).replace("|", "\\|")

    lines = [
        f"## {REPORT_HEADING}",
        "",
        "| " + " | ".join(TABLE_HEADERS) + " |",
        "|" + "|".join("---" for _ in TABLE_HEADERS) + "|",
    ]
    lines.extend("| " + " | ".join(_escape(cell) for cell in _cells(row)) + " |" for row in rows)
    return "\n".join(lines) + "\n"
