from __future__ import annotations

import json
from functools import lru_cache
from importlib import resources
from typing import Any

import jsonschema

from ..errors import KIND_CONFIG, OverweightError

SCHEMA_FILE = "config.schema.json"


@lru_cache(maxsize=1)
def load_schema() -> dict[str, Any]:
    raw = resources.files("overweight.config").joinpath(SCHEMA_FILE).read_text(encoding="utf-8")
    return json.loads(raw)


def validate_config_payload(payload: Any) -> None:
    validator = jsonschema.Draft202012Validator(load_schema())
    errors = sorted(validator.iter_errors(payload), key=lambda err: [str(p) for p in err.absolute_path])
    if not errors:
        return
    exc = errors[0]
    pointer = "/".join(str(p) for p in exc.absolute_path)
    loc = pointer or "<root>"
    raise OverweightError(f"invalid overweight configuration at {loc}: {exc.message}", kind=KIND_CONFIG)
