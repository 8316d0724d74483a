"""Evaluate every budget rule against the files it matches."""

from __future__ import annotations

import math
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any, Iterable, Mapping

from ..config.loader import NormalizedConfig, SizeRule, ensure_normalized
from ..core.logging import log_event
from ..core.size import format_bytes, format_diff
from ..errors import KIND_TESTER_CONTRACT, OverweightError
from ..files import FileMatch, resolve_files
from ..testers import MeasureContext, Measurement, Tester, create_tester_registry, get_tester

if TYPE_CHECKING:
    from ..core.context import RunContext

NO_MATCH_ERROR = "No files matched this pattern"
UNMEASURED = "N/A"


@dataclass(frozen=True)
class CheckResult:
    pattern: str
    label: str
    file_path: str
    absolute_path: Path | None
    tester_id: str
    tester_label: str
    measured_bytes: int | float | None
    max_bytes: int | float
    diff_bytes: int | float | None
    passed: bool
    error: str | None = None
    size_formatted: str = UNMEASURED
    max_size_formatted: str = ""
    diff_formatted: str = UNMEASURED

    def to_dict(self) -> dict[str, Any]:
        return {
            "pattern": self.pattern,
            "label": self.label,
            "filePath": self.file_path,
            "absolutePath": str(self.absolute_path) if self.absolute_path is not None else None,
            "tester": self.tester_id,
            "testerLabel": self.tester_label,
            "size": self.measured_bytes,
            "sizeFormatted": self.size_formatted,
            "maxSize": self.max_bytes,
            "maxSizeFormatted": self.max_size_formatted,
            "diff": self.diff_bytes,
            "diffFormatted": self.diff_formatted,
            "passed": self.passed,
            "error": self.error,
        }


@dataclass(frozen=True)
class CheckSummary:
    files: int
    failures: tuple[CheckResult, ...]
    has_failures: bool
    has_errors: bool

    @classmethod
    def from_results(cls, results: Iterable[CheckResult]) -> "CheckSummary":
        rows = tuple(results)
        failures = tuple(row for row in rows if not row.passed or row.error)
        return cls(
            files=len(rows),
            failures=failures,
            has_failures=bool(failures),
            has_errors=any(row.error for row in failures),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "files": self.files,
            "failures": [row.to_dict() for row in self.failures],
            "hasFailures": self.has_failures,
            "hasErrors": self.has_errors,
        }


@dataclass(frozen=True)
class CheckRun:
    results: tuple[CheckResult, ...]
    stats: CheckSummary

    def to_dict(self) -> dict[str, Any]:
        return {"results": [row.to_dict() for row in self.results], "stats": self.stats.to_dict()}


def _missing_result(rule: SizeRule) -> CheckResult:
    return CheckResult(
        pattern=rule.pattern,
        label=rule.label,
        file_path=rule.pattern,
        absolute_path=None,
        tester_id=rule.tester_id,
        tester_label=rule.tester_id,
        measured_bytes=None,
        max_bytes=rule.max_bytes,
        diff_bytes=None,
        passed=False,
        error=NO_MATCH_ERROR,
        max_size_formatted=rule.max_formatted,
    )


def _measured_bytes(value: Any) -> Any:
    if isinstance(value, Measurement):
        return value.bytes
    if isinstance(value, (int, float)):
        return value
    if isinstance(value, Mapping):
        return value.get("bytes")
    return getattr(value, "bytes", None)


def _is_valid_size(value: Any) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value) and value >= 0


def _measure(rule: SizeRule, tester: Tester, match: FileMatch) -> CheckResult:
    buffer = match.absolute_path.read_bytes()
    measurement = tester.measure(buffer, MeasureContext(file_path=match.absolute_path, pattern=rule.pattern))
    size = _measured_bytes(measurement)
    if not _is_valid_size(size):
        raise OverweightError(
            f'Tester "{tester.id}" did not return a numeric size for "{match.relative_path}"',
            kind=KIND_TESTER_CONTRACT,
        )
    diff = size - rule.max_bytes
    return CheckResult(
        pattern=rule.pattern,
        label=rule.label,
        file_path=match.relative_path,
        absolute_path=match.absolute_path,
        tester_id=tester.id,
        tester_label=tester.label,
        measured_bytes=size,
        max_bytes=rule.max_bytes,
        diff_bytes=diff,
        passed=diff <= 0,
        size_formatted=format_bytes(size),
        max_size_formatted=rule.max_formatted,
        diff_formatted=format_diff(diff),
    )


def run_checks(
    config: NormalizedConfig | Any,
    *,
    testers: Mapping[str, Any] | Iterable[Tester] | None = None,
    jobs: int = 1,
    ctx: RunContext | None = None,
    cwd: Path | None = None,
) -> CheckRun:
    """Measure every file matched by every rule.

    Results keep rule order, then match order, whatever ``jobs`` is. An
    unknown tester id or a tester that breaks its contract aborts the run; a
    pattern that matches nothing becomes a failing result instead.
    """
    normalized = ensure_normalized(config, cwd=cwd)
    registry = create_tester_registry(testers)
    rule_testers = [(rule, get_tester(rule.tester_id or normalized.default_tester_id, registry)) for rule in normalized.rules]

    work: list[tuple[SizeRule, Tester, FileMatch | None]] = []
    for rule, tester in rule_testers:
        matches = resolve_files(rule.pattern, root=normalized.root)
        log_event(ctx, "debug", "checks", "resolve", pattern=rule.pattern, matches=len(matches))
        if not matches:
            work.append((rule, tester, None))
            continue
        work.extend((rule, tester, match) for match in matches)

    def _run_one(item: tuple[SizeRule, Tester, FileMatch | None]) -> CheckResult:
        rule, tester, match = item
        if match is None:
            return _missing_result(rule)
        return _measure(rule, tester, match)

    if jobs > 1:
        with ThreadPoolExecutor(max_workers=jobs) as ex:
            results = tuple(ex.map(_run_one, work))
    else:
        results = tuple(_run_one(item) for item in work)

    stats = CheckSummary.from_results(results)
    log_event(
        ctx,
        "info",
        "checks",
        "complete",
        files=stats.files,
        failures=len(stats.failures),
        has_errors=stats.has_errors,
    )
    return CheckRun(results=results, stats=stats)
