from __future__ import annotations

import json
import os
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Mapping

_HEADS_REF = re.compile(r"refs/heads/(.+)$")


def branch_name_from_env(environ: Mapping[str, str]) -> str:
    """Current branch name as GitHub Actions exposes it, or an empty string."""
    ref_name = environ.get("GITHUB_REF_NAME", "")
    if ref_name:
        return ref_name
    ref = environ.get("GITHUB_REF", "")
    if ref:
        match = _HEADS_REF.search(ref)
        return match.group(1) if match else ref.split("/")[-1]
    return ""


def _read_event(environ: Mapping[str, str]) -> dict[str, Any]:
    event_path = environ.get("GITHUB_EVENT_PATH", "")
    if not event_path or not Path(event_path).is_file():
        return {}
    payload = json.loads(Path(event_path).read_text(encoding="utf-8"))
    return payload if isinstance(payload, dict) else {}


@dataclass(frozen=True)
class RunContext:
    run_id: str
    cwd: Path
    workspace: Path
    branch: str = ""
    repository: str = ""
    api_url: str = "https://api.github.com"
    event: dict[str, Any] = field(default_factory=dict)
    log_json: bool = False
    quiet: bool = False

    @property
    def owner(self) -> str:
        return self.repository.split("/", 1)[0] if "/" in self.repository else ""

    @property
    def repo(self) -> str:
        return self.repository.split("/", 1)[1] if "/" in self.repository else ""

    @property
    def pull_request(self) -> dict[str, Any] | None:
        pr = self.event.get("pull_request")
        return pr if isinstance(pr, dict) else None

    @property
    def event_action(self) -> str:
        return str(self.event.get("action") or "")

    @classmethod
    def from_env(
        cls,
        environ: Mapping[str, str] | None = None,
        *,
        cwd: Path | None = None,
        log_json: bool | None = None,
        quiet: bool = False,
    ) -> "RunContext":
        env = os.environ if environ is None else environ
        resolved_cwd = (cwd or Path.cwd()).resolve()
        default_run = f"overweight-{datetime.now(timezone.utc).strftime('%Y%m%d-%H%M%S')}"
        resolved_log_json = log_json if log_json is not None else env.get("OVERWEIGHT_LOG_JSON", "") in {"1", "true"}
        return cls(
            run_id=env.get("GITHUB_RUN_ID") or default_run,
            cwd=resolved_cwd,
            workspace=Path(env.get("GITHUB_WORKSPACE") or resolved_cwd).resolve(),
            branch=branch_name_from_env(env),
            repository=env.get("GITHUB_REPOSITORY", ""),
            api_url=env.get("GITHUB_API_URL") or "https://api.github.com",
            event=_read_event(env),
            log_json=resolved_log_json,
            quiet=quiet,
        )
