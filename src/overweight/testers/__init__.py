"""Pluggable size testers keyed by id.

A tester maps a file's bytes to the size that is compared against the budget.
The registry is a plain dict seeded with the built-ins; callers overlay their
own testers by id, which may shadow a built-in.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Iterable, Mapping

from ..errors import KIND_CONFIG, KIND_UNKNOWN_TESTER, OverweightError

DEFAULT_TESTER_ID = "gzip"
NORMALIZED_TOKENS = frozenset({"none", "gzip", "brotli"})


@dataclass(frozen=True)
class MeasureContext:
    file_path: Path
    pattern: str


@dataclass(frozen=True)
class Measurement:
    bytes: int


MeasureFunc = Callable[..., Any]


@dataclass(frozen=True)
class Tester:
    id: str
    label: str
    measure: MeasureFunc

    __test__ = False


TesterRegistry = dict[str, Tester]


def create_tester(id: str, measure: MeasureFunc, label: str | None = None) -> Tester:
    if not id or not callable(measure):
        raise OverweightError("Tester definitions must include an id and a measure function", kind=KIND_CONFIG)
    return Tester(id=id, label=label or id, measure=measure)


def _coerce_tester(value: Tester | Mapping[str, Any]) -> Tester:
    if isinstance(value, Tester):
        return create_tester(value.id, value.measure, value.label)
    if isinstance(value, Mapping):
        return create_tester(str(value.get("id") or ""), value.get("measure"), value.get("label"))
    raise OverweightError(f"Unsupported tester definition: {type(value).__name__}", kind=KIND_CONFIG)


def create_tester_registry(
    custom_testers: Mapping[str, Tester | Mapping[str, Any]] | Iterable[Tester] | None = None,
) -> TesterRegistry:
    from .builtin import BUILTIN_TESTERS

    registry: TesterRegistry = {tester.id: tester for tester in BUILTIN_TESTERS}
    if custom_testers is None:
        return registry
    entries = custom_testers.values() if isinstance(custom_testers, Mapping) else custom_testers
    for entry in entries:
        tester = _coerce_tester(entry)
        registry[tester.id] = tester
    return registry


def normalize_tester_id(value: str | None) -> str:
    """Built-in ids are matched case-insensitively, custom ids exactly."""
    if not value:
        return DEFAULT_TESTER_ID
    lowered = value.lower()
    return lowered if lowered in NORMALIZED_TOKENS else value


def get_tester(tester_id: str | None, registry: TesterRegistry) -> Tester:
    tester = registry.get(normalize_tester_id(tester_id))
    if tester is None:
        raise OverweightError(
            f'Unknown tester "{tester_id}". Available testers: {", ".join(sorted(registry))}',
            kind=KIND_UNKNOWN_TESTER,
        )
    return tester


def list_testers() -> list[tuple[str, str]]:
    from .builtin import BUILTIN_TESTERS

    return [(tester.id, tester.label) for tester in BUILTIN_TESTERS]


__all__ = [
    "DEFAULT_TESTER_ID",
    "NORMALIZED_TOKENS",
    "MeasureContext",
    "Measurement",
    "Tester",
    "TesterRegistry",
    "create_tester",
    "create_tester_registry",
    "get_tester",
    "list_testers",
    "normalize_tester_id",
]
