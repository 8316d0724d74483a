"""Pull request report comments, refreshed in place via a hidden marker."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

from ..core.logging import log_event
from ..errors import GitHubApiError

if TYPE_CHECKING:
    from ..core.context import RunContext

REPORT_MARKER = "<!-- overweight-report -->"


class CommentApi(Protocol):
    def list_issue_comments(self, issue_number: int) -> list[dict[str, Any]]: ...

    def create_issue_comment(self, issue_number: int, body: str) -> dict[str, Any]: ...

    def update_issue_comment(self, comment_id: int, body: str) -> dict[str, Any]: ...


def find_existing_report_comment(client: CommentApi, pull_request: dict[str, Any]) -> dict[str, Any] | None:
    """Most recently updated bot comment that carries the report marker."""
    candidates = [
        comment
        for comment in client.list_issue_comments(int(pull_request["number"]))
        if (comment.get("user") or {}).get("type") == "Bot" and REPORT_MARKER in (comment.get("body") or "")
    ]
    if not candidates:
        return None
    # ISO-8601 timestamps from the API sort lexically.
    return max(candidates, key=lambda comment: str(comment.get("updated_at") or ""))


def _is_fork(pull_request: dict[str, Any]) -> bool:
    head = ((pull_request.get("head") or {}).get("repo") or {}).get("full_name")
    base = ((pull_request.get("base") or {}).get("repo") or {}).get("full_name")
    return bool(head and base and head != base)


def should_comment(
    *,
    has_failures: bool,
    pull_request: dict[str, Any] | None,
    event_action: str,
    existing_comment: dict[str, Any] | None,
    comment_on_failure: bool,
    comment_on_open: bool,
    comment_each_run: bool,
) -> bool:
    on_failure = has_failures and comment_on_failure
    on_success = pull_request is not None and (comment_each_run or (comment_on_open and event_action == "opened"))
    refresh_existing = existing_comment is not None and not has_failures and comment_on_failure
    return on_failure or on_success or refresh_existing


def comment_body(has_failures: bool, table_html: str) -> str:
    status = "Overweight: Size check failed" if has_failures else "Overweight: Size check passed"
    return f"{status}:\n\n{table_html}"


def comment_on_pull_request(
    client: CommentApi,
    pull_request: dict[str, Any] | None,
    body: str,
    *,
    existing_comment: dict[str, Any] | None = None,
    lookup_existing: bool = True,
    ctx: RunContext | None = None,
) -> str:
    """Create or update the report comment and return what happened.

    Returns ``"skipped"`` without a pull request or for forks, ``"forbidden"``
    on 403, otherwise ``"created"`` or ``"updated"``.
    """
    if pull_request is None:
        log_event(ctx, "info", "comments", "skip", reason="no pull request in event payload")
        return "skipped"
    if _is_fork(pull_request):
        log_event(ctx, "info", "comments", "skip", reason="pull request originates from a fork")
        return "skipped"
    previous = existing_comment
    if previous is None and lookup_existing:
        previous = find_existing_report_comment(client, pull_request)
    marked = f"{REPORT_MARKER}\n{body}"
    try:
        if previous is not None:
            client.update_issue_comment(int(previous["id"]), marked)
            outcome = "updated"
        else:
            client.create_issue_comment(int(pull_request["number"]), marked)
            outcome = "created"
    except GitHubApiError as exc:
        if exc.status != 403:
            raise
        log_event(ctx, "warning", "comments", "forbidden", status=exc.status, error=exc.message)
        return "forbidden"
    log_event(ctx, "info", "comments", outcome, pr=pull_request.get("number"))
    return outcome
