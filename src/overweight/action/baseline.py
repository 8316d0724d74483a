"""Baseline snapshots: read, merge for trends, serialize canonically, write.

The serialized snapshot is compared byte-for-byte to decide whether an update
is needed, so ``serialize_baseline_snapshot`` must stay stable: entries sorted
by ``file``, fixed key order, two-space indent, no trailing newline.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Iterable

from ..core.size import format_diff
from ..errors import KIND_BASELINE_IO, OverweightError
from .report import SummaryRow

SNAPSHOT_KEYS = ("label", "file", "tester", "size", "sizeBytes", "limit", "limitBytes")
TREND_FLAT = "➖"
TREND_UP = "🔺"
TREND_DOWN = "⬇"
NOT_AVAILABLE = "N/A"


@dataclass(frozen=True)
class BaselineState:
    raw: str | None
    data: list[dict[str, Any]] | None


@dataclass(frozen=True)
class BaselineUpdateInfo:
    needs_update: bool
    content: str


def read_baseline_state(path: Path) -> BaselineState:
    """Missing or unparsable baselines read as empty; other I/O errors are fatal."""
    try:
        raw = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return BaselineState(raw=None, data=None)
    except OSError as exc:
        raise OverweightError(f"Unable to read baseline at {path}: {exc}", kind=KIND_BASELINE_IO) from exc
    try:
        data = json.loads(raw)
    except ValueError:
        return BaselineState(raw=raw, data=None)
    if not isinstance(data, list):
        return BaselineState(raw=raw, data=None)
    return BaselineState(raw=raw, data=[row for row in data if isinstance(row, dict)])


def build_baseline_snapshot(rows: Iterable[SummaryRow]) -> list[dict[str, Any]]:
    entries = [
        {
            "label": row.label,
            "file": row.file,
            "tester": row.tester,
            "size": row.size,
            "sizeBytes": row.size_bytes,
            "limit": row.limit,
            "limitBytes": row.limit_bytes,
        }
        for row in rows
    ]
    return sorted(entries, key=lambda entry: entry["file"])


def serialize_baseline_snapshot(rows: Iterable[SummaryRow]) -> str:
    return json.dumps(build_baseline_snapshot(rows), indent=2, ensure_ascii=False)


_UNREAD = object()


def baseline_update_info(path: Path, rows: Iterable[SummaryRow], previous_content: Any = _UNREAD) -> BaselineUpdateInfo:
    """Compare the next snapshot against ``previous_content`` (or the file at ``path`` when not given)."""
    content = serialize_baseline_snapshot(rows)
    if previous_content is _UNREAD:
        try:
            previous_content = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            previous_content = None
        except OSError as exc:
            raise OverweightError(f"Unable to read baseline at {path}: {exc}", kind=KIND_BASELINE_IO) from exc
    return BaselineUpdateInfo(needs_update=previous_content is None or previous_content != content, content=content)


def write_baseline(path: Path, rows: Iterable[SummaryRow], content: str | None = None) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content if content is not None else serialize_baseline_snapshot(rows), encoding="utf-8")


def merge_with_baseline(rows: list[SummaryRow], baseline: list[dict[str, Any]] | None) -> list[SummaryRow]:
    if not baseline:
        return rows
    previous_by_file = {str(entry.get("file")): entry for entry in baseline}
    merged: list[SummaryRow] = []
    for row in rows:
        previous = previous_by_file.get(row.file)
        if previous is None:
            merged.append(replace(row, baseline_size=NOT_AVAILABLE, baseline_diff=NOT_AVAILABLE, trend=NOT_AVAILABLE))
            continue
        delta = row.size_bytes - (previous.get("sizeBytes") or 0)
        trend = TREND_FLAT if delta == 0 else TREND_UP if delta > 0 else TREND_DOWN
        merged.append(
            replace(row, baseline_size=str(previous.get("size", NOT_AVAILABLE)), baseline_diff=format_diff(delta), trend=trend)
        )
    return merged


def ensure_relative_path(path: Path, workspace: Path) -> str:
    """Repository path for ``path``; baselines outside the checkout cannot be committed."""
    try:
        return path.resolve().relative_to(workspace.resolve()).as_posix()
    except ValueError as exc:
        raise OverweightError(
            f'Baseline path "{path}" is outside of the repository checkout ({workspace}).', kind=KIND_BASELINE_IO
        ) from exc
