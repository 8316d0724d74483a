"""GitHub Action entry point: check, report, reconcile the baseline, comment."""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any, Mapping

from ..checks.engine import run_checks
from ..config.loader import ConfigSource, NormalizedConfig, load_config, normalize_config
from ..core.context import RunContext
from ..core.logging import log_event
from ..core.serialize import dumps_json
from ..errors import KIND_CONFIG, OverweightError
from ..exit_codes import ERR_FAILED, OK
from ..reporters.json_reporter import json_file_reporter
from .baseline import merge_with_baseline, read_baseline_state
from .branch import parse_protected_branch_patterns
from .comments import comment_body, comment_on_pull_request, find_existing_report_comment, should_comment
from .github import GitHubClient
from .inputs import ActionInputs, annotate, append_step_summary, read_inputs, set_output
from .reconcile import COMMIT_RETRY, VERIFY_RETRY, RetryPolicy, reconcile_baseline
from .report import build_summary_rows, render_html_table, render_markdown_table

FAILURE_MESSAGE = "One or more size checks failed."


def _inline_files(value: str) -> Any:
    try:
        parsed = json.loads(value)
    except json.JSONDecodeError as exc:
        raise OverweightError(f"Failed to parse `files` input: {exc}", kind=KIND_CONFIG) from exc
    return {"files": parsed} if isinstance(parsed, list) else parsed


def resolve_action_config(inputs: ActionInputs, ctx: RunContext) -> NormalizedConfig:
    cwd = (ctx.cwd / inputs.working_directory).resolve() if inputs.working_directory else ctx.cwd
    if inputs.files:
        return normalize_config(_inline_files(inputs.files), cwd=cwd, source=ConfigSource("inline"))
    return load_config(cwd, config_path=inputs.config or None, ctx=ctx)


def resolve_baseline_path(inputs: ActionInputs, root: Path, ctx: RunContext | None = None) -> Path | None:
    candidate = inputs.baseline_report_path
    if not candidate and inputs.update_baseline and inputs.report_file:
        log_event(ctx, "info", "action", "baseline-path", defaulted_to=inputs.report_file)
        candidate = inputs.report_file
    return (root / candidate).resolve() if candidate else None


def run_action(
    environ: Mapping[str, str] | None = None,
    *,
    client: Any = None,
    cwd: Path | None = None,
    commit_retry: RetryPolicy = COMMIT_RETRY,
    verify_retry: RetryPolicy = VERIFY_RETRY,
) -> int:
    env = os.environ if environ is None else environ
    ctx = RunContext.from_env(env, cwd=cwd)
    try:
        inputs = read_inputs(env)
        config = resolve_action_config(inputs, ctx)
        if client is None and inputs.github_token:
            client = GitHubClient(inputs.github_token, ctx.repository, api_url=ctx.api_url)

        run = run_checks(config, ctx=ctx)
        baseline_path = resolve_baseline_path(inputs, config.root, ctx)
        baseline = read_baseline_state(baseline_path) if baseline_path is not None else None
        rows = merge_with_baseline(build_summary_rows(run.results), baseline.data if baseline else None)

        report_path = json_file_reporter(run, report_file=inputs.report_file, cwd=config.root, silent=True)
        log_event(
            ctx,
            "info",
            "action",
            "processed",
            entries=len(run.results),
            has_failures=run.stats.has_failures,
        )
        append_step_summary(render_markdown_table(rows), env)
        table_html = render_html_table(rows)
        set_output("report-json", dumps_json({"rows": [row.to_dict() for row in rows], "stats": run.stats.to_dict()}), env)
        set_output("report-table", table_html, env)
        set_output("has-failures", str(run.stats.has_failures).lower(), env)
        set_output("report-file", str(report_path), env)

        updated = False
        if baseline_path is not None:
            outcome = reconcile_baseline(
                ctx,
                client,
                baseline_path=baseline_path,
                rows=rows,
                previous_content=baseline.raw if baseline else None,
                has_failures=run.stats.has_failures,
                update_enabled=inputs.update_baseline,
                protected_patterns=parse_protected_branch_patterns(inputs.baseline_protected_branches),
                branch_prefix=inputs.update_branch_prefix,
                pr_title=inputs.update_pr_title,
                pr_body=inputs.update_pr_body,
                commit_retry=commit_retry,
                verify_retry=verify_retry,
            )
            updated = outcome.updated
            if outcome.pr_number is not None:
                set_output("baseline-update-pr-number", str(outcome.pr_number), env)
                set_output("baseline-update-pr-url", str(outcome.pr_url or ""), env)
        set_output("baseline-updated", str(updated).lower(), env)

        pull_request = ctx.pull_request
        existing = find_existing_report_comment(client, pull_request) if client and pull_request else None
        wants_comment = should_comment(
            has_failures=run.stats.has_failures,
            pull_request=pull_request,
            event_action=ctx.event_action,
            existing_comment=existing,
            comment_on_failure=inputs.comment_on_pr,
            comment_on_open=inputs.comment_on_pr_always,
            comment_each_run=inputs.comment_on_pr_each_run,
        )
        if client is not None and wants_comment:
            log_event(
                ctx,
                "info",
                "action",
                "comment",
                failure=run.stats.has_failures,
                existing_comment=existing is not None,
            )
            comment_on_pull_request(
                client,
                pull_request,
                comment_body(run.stats.has_failures, table_html),
                existing_comment=existing,
                lookup_existing=False,
                ctx=ctx,
            )

        if run.stats.has_failures:
            annotate("error", FAILURE_MESSAGE)
            return ERR_FAILED
        return OK
    except OverweightError as exc:
        log_event(ctx, "error", "action", "failed", kind=exc.kind, error=exc.message)
        annotate("error", exc.message)
        return exc.code
    except Exception as exc:
        message = f"internal error: {exc}"
        log_event(ctx, "error", "action", "failed", kind="internal", error=message)
        annotate("error", message)
        return ERR_FAILED


def main() -> int:
    return run_action()


if __name__ == "__main__":
    raise SystemExit(main())
