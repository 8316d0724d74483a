"""Persist an updated baseline on a dedicated branch and keep one pull request open for it.

Every remote mutation is gated behind the content-equality check, so running
CI again on unchanged output never touches the hosting API.
"""

from __future__ import annotations

import base64
import time
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any, Callable, Protocol

from ..core.logging import log_event
from ..errors import KIND_USAGE, GitHubApiError, OverweightError
from .baseline import baseline_update_info, ensure_relative_path, write_baseline
from .branch import (
    build_update_branch_name,
    ensure_creatable_branch_name,
    is_branch_protected,
    resolve_base_branch,
)
from .report import SummaryRow

if TYPE_CHECKING:
    from ..core.context import RunContext

BOT_COMMIT_IDENTITY = {"name": "Overweight Bot", "email": "ci-bot@overweight-gh-action.com"}
PR_TITLE_SUFFIX = "(🧳 Overweight Guard)"
DEFAULT_PR_TITLE = "chore: update baseline report"
DEFAULT_PR_BODY = "Automatic pull request updating the baseline report."

STATUS_FAILURES = "skipped_failures"
STATUS_DISABLED = "disabled"
STATUS_UP_TO_DATE = "up_to_date"
STATUS_PROTECTED = "protected"
STATUS_PR_CREATED = "pr_created"
STATUS_PR_REUSED = "pr_reused"


class BaselineApi(Protocol):
    def get_ref(self, branch: str) -> dict[str, Any]: ...

    def create_ref(self, branch: str, sha: str) -> dict[str, Any]: ...

    def get_file(self, path: str, ref: str) -> Any: ...

    def put_file(
        self,
        path: str,
        content: str,
        branch: str,
        message: str,
        sha: str | None = None,
        identity: dict[str, str] | None = None,
    ) -> dict[str, Any]: ...

    def list_open_pulls(self, head_branch: str) -> list[dict[str, Any]]: ...

    def create_pull(self, head: str, base: str, title: str, body: str) -> dict[str, Any]: ...

    def get_default_branch(self) -> str: ...


@dataclass(frozen=True)
class RetryPolicy:
    attempts: int = 5
    base_delay: float = 1.0
    multiplier: float = 2.0
    sleep: Callable[[float], None] = time.sleep

    def delay(self, attempt: int) -> float:
        return self.base_delay * (self.multiplier**attempt)


COMMIT_RETRY = RetryPolicy()
VERIFY_RETRY = RetryPolicy(base_delay=0.5)


@dataclass(frozen=True)
class RemoteFile:
    sha: str
    content: str | None


@dataclass(frozen=True)
class BaselineUpdateState:
    current_branch: str
    base_branch: str
    update_branch: str
    repo_path: str
    pr_number: int | None
    protected: bool
    existing_sha: str | None = None


@dataclass(frozen=True)
class ReconcileOutcome:
    status: str
    updated: bool = False
    committed: bool = False
    pr_number: int | None = None
    pr_url: str | None = None
    state: BaselineUpdateState | None = None


def _ref_sha(ref: dict[str, Any]) -> str:
    target = ref.get("object") or {}
    return str(target.get("sha") or ref.get("sha") or "")


def ensure_update_branch_exists(
    client: BaselineApi,
    branch_name: str,
    base_branch: str,
    *,
    ctx: RunContext | None = None,
    retry: RetryPolicy = VERIFY_RETRY,
) -> bool:
    """Return True when the branch was already there, False when it had to be created."""
    try:
        existing = client.get_ref(branch_name)
    except GitHubApiError as exc:
        if not exc.not_found:
            raise
    else:
        log_event(ctx, "info", "reconcile", "branch-exists", branch=branch_name, sha=_ref_sha(existing))
        return True

    base_sha = _ref_sha(client.get_ref(base_branch))
    log_event(ctx, "info", "reconcile", "branch-create", branch=branch_name, base=base_branch, sha=base_sha)
    try:
        client.create_ref(branch_name, base_sha)
    except GitHubApiError as exc:
        if exc.status != 422:
            raise
        log_event(ctx, "info", "reconcile", "branch-create", branch=branch_name, status="already_exists")

    for attempt in range(retry.attempts):
        try:
            client.get_ref(branch_name)
        except GitHubApiError as exc:
            if not exc.not_found:
                raise
            if attempt == retry.attempts - 1:
                break
            log_event(ctx, "info", "reconcile", "branch-verify", branch=branch_name, attempt=attempt + 1)
            retry.sleep(retry.delay(attempt))
        else:
            return False
    raise GitHubApiError(
        f"Branch {branch_name} was created but is not accessible after {retry.attempts} attempts",
        status=404,
        path=f"/git/ref/heads/{branch_name}",
    )


def get_existing_file(client: BaselineApi, branch_name: str, repo_path: str) -> RemoteFile | None:
    """The file at ``repo_path`` on ``branch_name``; None when absent or not a regular file."""
    try:
        payload = client.get_file(repo_path, branch_name)
    except GitHubApiError as exc:
        if exc.not_found:
            return None
        raise
    if not isinstance(payload, dict) or payload.get("type") != "file":
        return None
    encoded = payload.get("content")
    content = base64.b64decode(encoded).decode("utf-8") if isinstance(encoded, str) else None
    return RemoteFile(sha=str(payload.get("sha")), content=content)


def get_existing_file_sha(client: BaselineApi, branch_name: str, repo_path: str) -> str | None:
    remote = get_existing_file(client, branch_name, repo_path)
    return remote.sha if remote is not None else None


def commit_baseline_file(
    client: BaselineApi,
    *,
    branch_name: str,
    base_branch: str,
    repo_path: str,
    content: str,
    message: str,
    existing_sha: str | None,
    ctx: RunContext | None = None,
    retry: RetryPolicy = COMMIT_RETRY,
    verify_retry: RetryPolicy = VERIFY_RETRY,
) -> None:
    """Create or update ``repo_path``; a 404 right after branch creation is retried."""
    for attempt in range(retry.attempts):
        try:
            client.put_file(
                repo_path,
                content,
                branch_name,
                message,
                sha=existing_sha,
                identity=BOT_COMMIT_IDENTITY,
            )
        except GitHubApiError as exc:
            if not exc.not_found or attempt == retry.attempts - 1:
                raise
            delay = retry.delay(attempt)
            log_event(
                ctx,
                "warning",
                "reconcile",
                "commit-retry",
                branch=branch_name,
                attempt=f"{attempt + 1}/{retry.attempts}",
                delay_seconds=delay,
            )
            ensure_update_branch_exists(client, branch_name, base_branch, ctx=ctx, retry=verify_retry)
            retry.sleep(delay)
        else:
            log_event(ctx, "info", "reconcile", "commit", branch=branch_name, path=repo_path)
            return


def find_pr_number_for_branch(client: BaselineApi, branch: str, ctx: RunContext | None = None) -> int | None:
    if not branch:
        return None
    pulls = client.list_open_pulls(branch)
    number = pulls[0].get("number") if pulls else None
    log_event(ctx, "info", "reconcile", "pr-lookup", branch=branch, pr=number)
    return int(number) if number is not None else None


def find_existing_baseline_pr(client: BaselineApi, branch_name: str) -> dict[str, Any] | None:
    pulls = client.list_open_pulls(branch_name)
    return pulls[0] if pulls else None


def _pull_request_number(ctx: RunContext, client: BaselineApi, current_branch: str) -> int | None:
    number = (ctx.pull_request or {}).get("number")
    if number is not None:
        return int(number)
    try:
        return find_pr_number_for_branch(client, current_branch, ctx)
    except GitHubApiError as exc:
        log_event(ctx, "warning", "reconcile", "pr-lookup", branch=current_branch, error=exc.message)
        return None


def reconcile_baseline(
    ctx: RunContext,
    client: BaselineApi | None,
    *,
    baseline_path: Path,
    rows: list[SummaryRow],
    previous_content: str | None,
    has_failures: bool,
    update_enabled: bool,
    protected_patterns: list[str],
    branch_prefix: str | None = None,
    pr_title: str | None = None,
    pr_body: str | None = None,
    commit_retry: RetryPolicy = COMMIT_RETRY,
    verify_retry: RetryPolicy = VERIFY_RETRY,
) -> ReconcileOutcome:
    """Walk the update gates in order and, when all pass, commit the snapshot and ensure a PR.

    Gates: the run has no failures, updates are enabled, a client exists, the
    snapshot differs from ``previous_content`` and the current branch is not
    protected. The first two and the last two never contact the API.
    """
    if has_failures:
        log_event(ctx, "info", "reconcile", "skip", reason="size checks failed")
        return ReconcileOutcome(status=STATUS_FAILURES)
    if not update_enabled:
        log_event(ctx, "info", "reconcile", "skip", reason="update-baseline=false")
        return ReconcileOutcome(status=STATUS_DISABLED)
    if client is None:
        raise OverweightError("update-baseline requires github-token to be provided.", kind=KIND_USAGE)

    info = baseline_update_info(baseline_path, rows, previous_content)
    current_branch = ctx.branch
    protected = is_branch_protected(current_branch, protected_patterns)
    log_event(
        ctx,
        "info",
        "reconcile",
        "baseline",
        path=str(baseline_path),
        branch=current_branch or "unknown",
        needs_update=info.needs_update,
        protected=protected,
    )
    if not info.needs_update:
        return ReconcileOutcome(status=STATUS_UP_TO_DATE)
    if protected:
        log_event(ctx, "info", "reconcile", "skip", reason="protected branch", branch=current_branch)
        return ReconcileOutcome(status=STATUS_PROTECTED)

    repo_path = ensure_relative_path(baseline_path, ctx.workspace)
    title = f"{pr_title or DEFAULT_PR_TITLE} {PR_TITLE_SUFFIX}"
    base_branch = resolve_base_branch(ctx, client)
    pr_number = _pull_request_number(ctx, client, current_branch)
    candidate = build_update_branch_name(branch_prefix, pr_number, current_branch, ctx.run_id)
    update_branch = ensure_creatable_branch_name(client, candidate, ctx)

    ensure_update_branch_exists(client, update_branch, base_branch, ctx=ctx, retry=verify_retry)
    remote = get_existing_file(client, update_branch, repo_path)
    state = BaselineUpdateState(
        current_branch=current_branch,
        base_branch=base_branch,
        update_branch=update_branch,
        repo_path=repo_path,
        pr_number=pr_number,
        protected=protected,
        existing_sha=remote.sha if remote is not None else None,
    )

    write_baseline(baseline_path, rows, info.content)
    log_event(ctx, "info", "reconcile", "write-local", path=str(baseline_path))
    committed = False
    if remote is not None and remote.content == info.content:
        log_event(ctx, "info", "reconcile", "commit", branch=update_branch, skipped="remote content identical")
    else:
        commit_baseline_file(
            client,
            branch_name=update_branch,
            base_branch=base_branch,
            repo_path=repo_path,
            content=info.content,
            message=title,
            existing_sha=state.existing_sha,
            ctx=ctx,
            retry=commit_retry,
            verify_retry=verify_retry,
        )
        committed = True

    pull = find_existing_baseline_pr(client, update_branch)
    status = STATUS_PR_REUSED
    if pull is None:
        pull = client.create_pull(update_branch, base_branch, title, pr_body or DEFAULT_PR_BODY)
        status = STATUS_PR_CREATED
    log_event(ctx, "info", "reconcile", status.replace("_", "-"), pr=pull.get("number"), url=pull.get("html_url"))
    return ReconcileOutcome(
        status=status,
        updated=True,
        committed=committed,
        pr_number=pull.get("number"),
        pr_url=pull.get("html_url"),
        state=state,
    )
