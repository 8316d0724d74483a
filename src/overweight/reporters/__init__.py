from __future__ import annotations

from functools import partial
from typing import Any, Callable

from ..checks.engine import CheckRun
from ..errors import KIND_CONFIG, OverweightError
from .console import console_reporter
from .json_reporter import DEFAULT_REPORT_FILE, json_file_reporter, json_reporter, silent_reporter

Reporter = Callable[[CheckRun], None]

REPORTERS: dict[str, Callable[..., None]] = {
    "console": console_reporter,
    "json": json_reporter,
    "json-file": json_file_reporter,
    "silent": silent_reporter,
}
REPORTER_NAMES = tuple(REPORTERS)


def get_reporter(name: str | None = "console", **options: Any) -> Reporter:
    """Look up a reporter by name; ``options`` are bound for reporters that take them (``json-file``)."""
    if not name:
        return console_reporter
    reporter = REPORTERS.get(name)
    if reporter is None:
        raise OverweightError(
            f'Unknown reporter "{name}". Available reporters: {", ".join(REPORTER_NAMES)}', kind=KIND_CONFIG
        )
    if reporter is json_file_reporter and options:
        return partial(json_file_reporter, **options)
    return reporter


__all__ = [
    "DEFAULT_REPORT_FILE",
    "REPORTERS",
    "REPORTER_NAMES",
    "Reporter",
    "console_reporter",
    "get_reporter",
    "json_file_reporter",
    "json_reporter",
    "silent_reporter",
]
