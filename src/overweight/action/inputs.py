"""GitHub Actions plumbing: ``INPUT_*`` variables, step outputs, summary and annotations."""

from __future__ import annotations

import os
import sys
import uuid
from dataclasses import dataclass
from typing import Mapping

from ..errors import KIND_USAGE, OverweightError
from ..reporters.json_reporter import DEFAULT_REPORT_FILE

_TRUE = {"true", "True", "TRUE"}
_FALSE = {"false", "False", "FALSE"}


@dataclass(frozen=True)
class ActionInputs:
    github_token: str = ""
    config: str = ""
    files: str = ""
    working_directory: str = ""
    report_file: str = DEFAULT_REPORT_FILE
    update_baseline: bool = False
    baseline_report_path: str = ""
    baseline_protected_branches: str = ""
    update_pr_title: str = ""
    update_pr_body: str = ""
    update_branch_prefix: str = ""
    comment_on_pr: bool = True
    comment_on_pr_always: bool = False
    comment_on_pr_each_run: bool = False


def _input_key(name: str) -> str:
    return f"INPUT_{name.replace(' ', '_').upper()}"


def get_input(environ: Mapping[str, str], name: str) -> str:
    return environ.get(_input_key(name), "").strip()


def get_boolean_input(environ: Mapping[str, str], name: str, default: bool) -> bool:
    raw = get_input(environ, name)
    if not raw:
        return default
    if raw in _TRUE:
        return True
    if raw in _FALSE:
        return False
    raise OverweightError(
        f"Input does not meet YAML 1.2 \"Core Schema\" specification: {name}. "
        "Support boolean input list: `true | True | TRUE | false | False | FALSE`",
        kind=KIND_USAGE,
    )


def read_inputs(environ: Mapping[str, str] | None = None) -> ActionInputs:
    env = os.environ if environ is None else environ
    return ActionInputs(
        github_token=get_input(env, "github-token"),
        config=get_input(env, "config"),
        files=get_input(env, "files"),
        working_directory=get_input(env, "working-directory"),
        report_file=get_input(env, "report-file") or DEFAULT_REPORT_FILE,
        update_baseline=get_boolean_input(env, "update-baseline", False),
        baseline_report_path=get_input(env, "baseline-report-path"),
        baseline_protected_branches=get_input(env, "baseline-protected-branches"),
        update_pr_title=get_input(env, "update-pr-title"),
        update_pr_body=get_input(env, "update-pr-body"),
        update_branch_prefix=get_input(env, "update-branch-prefix"),
        comment_on_pr=get_boolean_input(env, "comment-on-pr", True),
        comment_on_pr_always=get_boolean_input(env, "comment-on-pr-always", False),
        comment_on_pr_each_run=get_boolean_input(env, "comment-on-pr-each-run", False),
    )


def set_output(name: str, value: str, environ: Mapping[str, str] | None = None) -> None:
    env = os.environ if environ is None else environ
    path = env.get("GITHUB_OUTPUT")
    if not path:
        # Outside of GitHub Actions, print the output instead.
        print(f"OUTPUT {name}={value}")
        return
    delimiter = f"ghadelimiter_{uuid.uuid4()}"
    with open(path, "a", encoding="utf-8") as handle:
        handle.write(f"{name}<<{delimiter}\n{value}\n{delimiter}\n")


def append_step_summary(markdown: str, environ: Mapping[str, str] | None = None) -> None:
    env = os.environ if environ is None else environ
    path = env.get("GITHUB_STEP_SUMMARY")
    if not path:
        return
    with open(path, "a", encoding="utf-8", errors="replace") as handle:
        handle.write(markdown)
        handle.write("\n")


def _escape_annotation(message: str) -> str:
    return message.replace("%", "%25").replace("\r", "%0D").replace("\n", "%0A")


def annotate(level: str, message: str) -> None:
    """Workflow command such as ``::error::`` for ``level`` in warning/error/notice."""
    sys.stdout.write(f"::{level}::{_escape_annotation(message)}\n")
