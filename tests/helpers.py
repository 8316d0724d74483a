from __future__ import annotations

import base64
from pathlib import Path
from typing import Any

from overweight.errors import GitHubApiError


def write_bytes(path: Path, size: int, fill: bytes = b"a") -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(fill * size)
    return path


def _not_found(path: str) -> GitHubApiError:
    return GitHubApiError(f"GitHub API GET {path} failed (404): Not Found", status=404, path=path)


class FakeGitHub:
    """In-memory stand-in for ``GitHubClient`` that records every call."""

    def __init__(self, *, branches: dict[str, str] | None = None, default_branch: str = "main") -> None:
        self.branches: dict[str, str] = dict(branches if branches is not None else {"main": "base-sha"})
        self.files: dict[tuple[str, str], dict[str, Any]] = {}
        self.pulls: list[dict[str, Any]] = []
        self.comments: list[dict[str, Any]] = []
        self.default_branch = default_branch
        self.calls: list[tuple[str, tuple[Any, ...]]] = []
        self.writes: list[tuple[str, tuple[Any, ...]]] = []
        self.put_failures: list[GitHubApiError] = []
        self.invisible_ref_reads = 0
        self.fail_pull_listing = False
        self.fail_default_branch = False
        self.comment_error: GitHubApiError | None = None

    def _record(self, name: str, *args: Any, write: bool = False) -> None:
        self.calls.append((name, args))
        if write:
            self.writes.append((name, args))

    def get_ref(self, branch: str) -> dict[str, Any]:
        self._record("get_ref", branch)
        if branch not in self.branches:
            raise _not_found(f"/git/ref/heads/{branch}")
        if self.invisible_ref_reads > 0 and branch != self.default_branch:
            self.invisible_ref_reads -= 1
            raise _not_found(f"/git/ref/heads/{branch}")
        return {"ref": f"refs/heads/{branch}", "object": {"sha": self.branches[branch]}}

    def create_ref(self, branch: str, sha: str) -> dict[str, Any]:
        self._record("create_ref", branch, sha, write=True)
        if branch in self.branches:
            raise GitHubApiError("Reference already exists", status=422, path="/git/refs")
        self.branches[branch] = sha
        return {"ref": f"refs/heads/{branch}", "object": {"sha": sha}}

    def get_file(self, path: str, ref: str) -> dict[str, Any]:
        self._record("get_file", path, ref)
        entry = self.files.get((ref, path))
        if entry is None:
            raise _not_found(f"/contents/{path}")
        return entry

    def put_file(
        self,
        path: str,
        content: str,
        branch: str,
        message: str,
        sha: str | None = None,
        identity: dict[str, str] | None = None,
    ) -> dict[str, Any]:
        self._record("put_file", path, content, branch, message, sha, write=True)
        if self.put_failures:
            raise self.put_failures.pop(0)
        new_sha = f"sha-{len(self.writes)}"
        self.files[(branch, path)] = {
            "type": "file",
            "sha": new_sha,
            "content": base64.b64encode(content.encode("utf-8")).decode("ascii"),
            "identity": identity,
        }
        return {"content": {"sha": new_sha}}

    def list_open_pulls(self, head_branch: str) -> list[dict[str, Any]]:
        self._record("list_open_pulls", head_branch)
        if self.fail_pull_listing:
            raise GitHubApiError("GitHub API GET /pulls failed (500): boom", status=500, path="/pulls")
        return [pull for pull in self.pulls if pull["head"]["ref"] == head_branch][:1]

    def create_pull(self, head: str, base: str, title: str, body: str) -> dict[str, Any]:
        self._record("create_pull", head, base, title, body, write=True)
        number = 100 + len(self.pulls)
        pull = {
            "number": number,
            "html_url": f"https://github.com/acme/web/pull/{number}",
            "head": {"ref": head},
            "base": {"ref": base},
            "title": title,
            "body": body,
        }
        self.pulls.append(pull)
        return pull

    def get_default_branch(self) -> str:
        self._record("get_default_branch")
        if self.fail_default_branch:
            raise GitHubApiError("GitHub API GET  failed (500): boom", status=500, path="")
        return self.default_branch

    def list_issue_comments(self, issue_number: int) -> list[dict[str, Any]]:
        self._record("list_issue_comments", issue_number)
        return [comment for comment in self.comments if comment["issue"] == issue_number]

    def create_issue_comment(self, issue_number: int, body: str) -> dict[str, Any]:
        self._record("create_issue_comment", issue_number, body, write=True)
        if self.comment_error is not None:
            raise self.comment_error
        comment = {
            "id": 900 + len(self.comments),
            "issue": issue_number,
            "body": body,
            "user": {"type": "Bot"},
            "updated_at": "2026-01-01T00:00:00Z",
        }
        self.comments.append(comment)
        return comment

    def update_issue_comment(self, comment_id: int, body: str) -> dict[str, Any]:
        self._record("update_issue_comment", comment_id, body, write=True)
        if self.comment_error is not None:
            raise self.comment_error
        for comment in self.comments:
            if comment["id"] == comment_id:
                comment["body"] = body
                return comment
        raise _not_found(f"/issues/comments/{comment_id}")


