from __future__ import annotations

import re
from pathlib import Path

import pytest
from helpers import FakeGitHub
from hypothesis import given
from hypothesis import strategies as st

from overweight.action.branch import (
    build_update_branch_name,
    ensure_creatable_branch_name,
    flatten_branch_name,
    is_branch_protected,
    parse_protected_branch_patterns,
    resolve_base_branch,
)
from overweight.core.context import RunContext, branch_name_from_env
from overweight.errors import GitHubApiError


def _ctx(tmp_path: Path, event: dict | None = None) -> RunContext:
    return RunContext(run_id="42", cwd=tmp_path, workspace=tmp_path, repository="acme/web", event=event or {}, quiet=True)


def test_protected_patterns_default_and_custom() -> None:
    assert parse_protected_branch_patterns("") == ["main", "master"]
    assert parse_protected_branch_patterns("   ") == ["main", "master"]
    assert parse_protected_branch_patterns(" release/*, ,develop ") == ["release/*", "develop"]


@pytest.mark.parametrize(
    ("branch", "protected"),
    [("main", True), ("master", True), ("release/1.2", True), ("feature/main", False), ("", False)],
)
def test_branch_protection_matching(branch: str, protected: bool) -> None:
    assert is_branch_protected(branch, ["main", "master", "release/*"]) is protected


def test_wildcard_protects_everything() -> None:
    assert is_branch_protected("anything/at/all", ["*"])


def test_update_branch_name_tiers() -> None:
    assert build_update_branch_name("overweight/baseline/", 7, "feature/x", "99") == "overweight/baseline/pr-7"
    assert build_update_branch_name(None, None, "feature/new thing!", "99") == "overweight/baseline/feature-new-thing-"
    assert build_update_branch_name("ci", None, "", "99") == "ci/run-99"


@given(st.text(min_size=1, max_size=40))
def test_sanitized_suffix_only_has_safe_characters(branch: str) -> None:
    name = build_update_branch_name("p", None, branch, "1")
    assert re.fullmatch(r"p/[0-9A-Za-z._-]+", name)


def test_flatten_branch_name() -> None:
    assert flatten_branch_name("overweight/baseline/pr-7") == "overweight-baseline-pr-7"
    assert flatten_branch_name("a//b/-c") == "a-b-c"


def test_creatable_name_is_kept_when_no_prefix_exists() -> None:
    client = FakeGitHub()
    assert ensure_creatable_branch_name(client, "overweight/baseline/pr-7") == "overweight/baseline/pr-7"
    assert [args for name, args in client.calls] == [("overweight",), ("overweight/baseline",)]


def test_creatable_name_flattens_on_prefix_collision() -> None:
    client = FakeGitHub(branches={"main": "sha", "overweight/baseline": "sha"})
    assert ensure_creatable_branch_name(client, "overweight/baseline/pr-7") == "overweight-baseline-pr-7"


def test_creatable_name_propagates_unexpected_errors() -> None:
    class Broken(FakeGitHub):
        def get_ref(self, branch: str) -> dict:
            raise GitHubApiError("boom", status=500)

    with pytest.raises(GitHubApiError):
        ensure_creatable_branch_name(Broken(), "a/b")
    assert ensure_creatable_branch_name(Broken(), "single") == "single"


def test_base_branch_prefers_pull_request(tmp_path: Path) -> None:
    client = FakeGitHub(default_branch="trunk")
    event = {"pull_request": {"number": 3, "base": {"ref": "develop"}}}
    assert resolve_base_branch(_ctx(tmp_path, event), client) == "develop"
    assert client.calls == []
    assert resolve_base_branch(_ctx(tmp_path), client) == "trunk"


def test_base_branch_falls_back_to_main(tmp_path: Path) -> None:
    client = FakeGitHub(default_branch="trunk")
    client.fail_default_branch = True
    assert resolve_base_branch(_ctx(tmp_path), client) == "main"
    assert resolve_base_branch(_ctx(tmp_path), None) == "main"


def test_branch_name_from_environment() -> None:
    assert branch_name_from_env({"GITHUB_REF_NAME": "feature/x", "GITHUB_REF": "refs/heads/other"}) == "feature/x"
    assert branch_name_from_env({"GITHUB_REF": "refs/heads/feature/deep/x"}) == "feature/deep/x"
    assert branch_name_from_env({"GITHUB_REF": "refs/pull/7/merge"}) == "merge"
    assert branch_name_from_env({}) == ""
