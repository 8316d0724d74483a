"""Human size strings: parsing budgets and formatting measured byte counts.

Parsing and formatting are deliberately independent. ``format_bytes`` rounds
to three significant digits for display, so its output is not guaranteed to
parse back to the same byte count.
"""

from __future__ import annotations

import math
import re

from ..errors import KIND_CONFIG, OverweightError

UNIT_FACTORS: dict[str, int] = {
    "b": 1,
    "byte": 1,
    "bytes": 1,
    "k": 1_000,
    "kb": 1_000,
    "kib": 1_024,
    "m": 1_000_000,
    "mb": 1_000_000,
    "mib": 1_048_576,
    "g": 1_000_000_000,
    "gb": 1_000_000_000,
    "gib": 1_073_741_824,
}
DISPLAY_UNITS = ("B", "kB", "MB", "GB", "TB", "PB", "EB", "ZB", "YB")

_SIZE_RE = re.compile(r"^(-?\d+(?:\.\d+)?)([a-z]+)?$")
_WHITESPACE = re.compile(r"\s+")


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def parse_size(value: object) -> int | float:
    """Return a byte count for ``value``.

    Numbers are taken as bytes already. Strings accept an optional decimal
    (``kb``, ``mb``, ``gb``) or binary (``kib``, ``mib``, ``gib``) unit.
    """
    if isinstance(value, bool):
        raise OverweightError(
            f"Unsupported size value. Expected string or number, received: {type(value).__name__}", kind=KIND_CONFIG
        )
    if isinstance(value, (int, float)):
        if isinstance(value, float) and not math.isfinite(value):
            raise OverweightError(f"Invalid numeric size: {value!r}", kind=KIND_CONFIG)
        return value
    if not isinstance(value, str):
        raise OverweightError(
            f"Unsupported size value. Expected string or number, received: {type(value).__name__}", kind=KIND_CONFIG
        )

    normalized = _WHITESPACE.sub("", value.strip().lower())
    match = _SIZE_RE.match(normalized)
    if not match:
        raise OverweightError(f'Invalid size format: "{value}"', kind=KIND_CONFIG)

    raw_number, raw_unit = match.groups()
    unit = raw_unit or "b"
    factor = UNIT_FACTORS.get(unit)
    if factor is None:
        raise OverweightError(f'Unknown size unit "{unit}" in value "{value}"', kind=KIND_CONFIG)

    number = float(raw_number)
    if not math.isfinite(number):
        raise OverweightError(f'Invalid numeric size: "{value}"', kind=KIND_CONFIG)
    return _round_half_up(number * factor)


def _plain_number(value: float) -> str:
    if value == int(value):
        return str(int(value))
    return f"{value:g}"


def format_bytes(value: int | float) -> str:
    """Decimal (1000-based) display string, three significant digits, negatives clamped to 0."""
    number = max(0, value)
    if number < 1:
        return f"{_plain_number(number)} B"
    exponent = min(int(math.floor(math.log10(number) / 3)), len(DISPLAY_UNITS) - 1)
    scaled = float(f"{number / 1000 ** exponent:.3g}")
    return f"{_plain_number(scaled)} {DISPLAY_UNITS[exponent]}"


def format_diff(diff: int | float) -> str:
    if diff == 0:
        return "0 B"
    sign = "+" if diff > 0 else "-"
    return f"{sign}{format_bytes(abs(diff))}"


def to_display_size(original: object, byte_count: int | float) -> str:
    if isinstance(original, str) and original.strip():
        return original.strip()
    return format_bytes(byte_count)
