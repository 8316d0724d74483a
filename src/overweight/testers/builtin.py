"""Built-in size testers: raw byte length, gzip and brotli compressed length."""

from __future__ import annotations

import gzip

import brotli

from . import MeasureContext, Measurement, Tester

# Maximum compression; checks run in CI, not on a hot path.
BROTLI_QUALITY = 11


def measure_raw(buffer: bytes, context: MeasureContext | None = None) -> Measurement:
    return Measurement(bytes=len(buffer))


def measure_gzip(buffer: bytes, context: MeasureContext | None = None) -> Measurement:
    return Measurement(bytes=len(gzip.compress(buffer)))


def measure_brotli(buffer: bytes, context: MeasureContext | None = None) -> Measurement:
    compressed = brotli.compress(buffer, mode=brotli.MODE_TEXT, quality=BROTLI_QUALITY)
    return Measurement(bytes=len(compressed))


BUILTIN_TESTERS: tuple[Tester, ...] = (
    Tester(id="none", label="raw", measure=measure_raw),
    Tester(id="gzip", label="gzip", measure=measure_gzip),
    Tester(id="brotli", label="brotli", measure=measure_brotli),
)
