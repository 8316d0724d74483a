"""Update-branch naming, protection patterns and base-branch resolution."""

from __future__ import annotations

import re
from fnmatch import fnmatchcase
from typing import TYPE_CHECKING, Protocol

from ..core.context import branch_name_from_env
from ..core.logging import log_event
from ..errors import GitHubApiError

if TYPE_CHECKING:
    from ..core.context import RunContext

__all__ = [
    "DEFAULT_BRANCH_PREFIX",
    "DEFAULT_PROTECTED_BRANCHES",
    "FALLBACK_BASE_BRANCH",
    "branch_name_from_env",
    "build_update_branch_name",
    "ensure_creatable_branch_name",
    "flatten_branch_name",
    "is_branch_protected",
    "parse_protected_branch_patterns",
    "resolve_base_branch",
]

DEFAULT_PROTECTED_BRANCHES = ("main", "master")
DEFAULT_BRANCH_PREFIX = "overweight/baseline"
FALLBACK_BASE_BRANCH = "main"

_UNSAFE_SUFFIX = re.compile(r"[^0-9A-Za-z._-]+")


class RefReader(Protocol):
    def get_ref(self, branch: str) -> dict: ...

    def get_default_branch(self) -> str: ...


def parse_protected_branch_patterns(raw: str | None) -> list[str]:
    """Comma separated patterns; blank input means the default ``main,master``."""
    source = raw if raw and raw.strip() else ",".join(DEFAULT_PROTECTED_BRANCHES)
    return [entry.strip() for entry in source.split(",") if entry.strip()]


def is_branch_protected(branch: str, patterns: list[str] | tuple[str, ...]) -> bool:
    if not branch:
        return False
    return any(pattern and fnmatchcase(branch, pattern) for pattern in patterns)


def _sanitize_prefix(prefix: str | None) -> str:
    return (prefix or DEFAULT_BRANCH_PREFIX).rstrip("/")


def build_update_branch_name(
    prefix: str | None,
    pr_number: int | None,
    current_branch: str,
    run_id: str,
) -> str:
    if pr_number is not None:
        suffix = f"pr-{pr_number}"
    else:
        suffix = _UNSAFE_SUFFIX.sub("-", current_branch) if current_branch else ""
        suffix = suffix or f"run-{run_id}"
    return f"{_sanitize_prefix(prefix)}/{suffix}"


def flatten_branch_name(branch_name: str) -> str:
    flat = "-".join(segment for segment in branch_name.split("/") if segment)
    return re.sub(r"-+", "-", flat)


def ensure_creatable_branch_name(client: RefReader, branch_name: str, ctx: RunContext | None = None) -> str:
    """Flatten ``branch_name`` when one of its parent paths already exists as a ref.

    Git cannot store ``a/b`` and ``a/b/c`` side by side, so an existing
    ``overweight/baseline`` branch blocks ``overweight/baseline/pr-7``.
    """
    segments = [segment for segment in branch_name.split("/") if segment]
    if len(segments) <= 1:
        return branch_name
    for index in range(1, len(segments)):
        prefix = "/".join(segments[:index])
        try:
            client.get_ref(prefix)
        except GitHubApiError as exc:
            if exc.not_found:
                continue
            raise
        fallback = flatten_branch_name(branch_name)
        log_event(ctx, "info", "branch", "flatten", existing_prefix=prefix, branch=fallback)
        return fallback
    return branch_name


def resolve_base_branch(ctx: RunContext, client: RefReader | None) -> str:
    """Pull request base ref, then the repository default branch, then ``main``."""
    pull_request = ctx.pull_request or {}
    base_ref = (pull_request.get("base") or {}).get("ref")
    if base_ref:
        log_event(ctx, "info", "branch", "base", source="pull_request", branch=base_ref)
        return str(base_ref)
    if client is not None:
        try:
            default_branch = client.get_default_branch()
        except GitHubApiError as exc:
            log_event(ctx, "warning", "branch", "base", source="default_branch", error=exc.message)
        else:
            log_event(ctx, "info", "branch", "base", source="default_branch", branch=default_branch)
            return default_branch
    log_event(ctx, "warning", "branch", "base", source="fallback", branch=FALLBACK_BASE_BRANCH)
    return FALLBACK_BASE_BRANCH
