from __future__ import annotations

import json
import sys
from datetime import datetime, timezone
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .context import RunContext

_QUIET_LEVELS = {"debug", "info"}


def _kv(key: str, value: object) -> str:
    text = str(value)
    if not text or any(ch.isspace() or ch == '"' for ch in text):
        text = json.dumps(text, ensure_ascii=False)
    return f"{key}={text}"


def log_event(ctx: RunContext | None, level: str, component: str, action: str, **fields: object) -> None:
    """Write one structured event line to stderr.

    Lines are ``key=value`` pairs, or a JSON object when the context asks for
    JSON. Without a context, or with a quiet one, debug and info are dropped.
    """
    if (ctx is None or ctx.quiet) and level in _QUIET_LEVELS:
        return
    head = {
        "ts": datetime.now(timezone.utc).isoformat(),
        "level": level,
        "run_id": ctx.run_id if ctx is not None else "-",
        "component": component,
        "action": action,
    }
    if ctx is not None and ctx.log_json:
        sys.stderr.write(json.dumps({**head, **fields}, sort_keys=True, default=str) + "\n")
        return
    parts = [_kv(key, value) for key, value in head.items()]
    parts.extend(_kv(key, fields[key]) for key in sorted(fields))
    sys.stderr.write(" ".join(parts) + "\n")
