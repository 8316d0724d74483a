"""Minimal GitHub REST client covering refs, contents, pulls and issue comments."""

from __future__ import annotations

import base64
import json
import urllib.error
import urllib.parse
import urllib.request
from typing import Any

from ..errors import GitHubApiError

API_VERSION = "2022-11-28"
DEFAULT_TIMEOUT_SECONDS = 30


class GitHubClient:
    def __init__(
        self,
        token: str,
        repository: str,
        api_url: str = "https://api.github.com",
        timeout_seconds: int = DEFAULT_TIMEOUT_SECONDS,
    ) -> None:
        if "/" not in repository:
            raise GitHubApiError(f"repository must be <owner>/<repo>, got `{repository}`", status=0)
        self.token = token
        self.owner, self.repo = repository.split("/", 1)
        self.api_url = api_url.rstrip("/")
        self.timeout_seconds = timeout_seconds

    def _request(
        self,
        method: str,
        path: str,
        payload: dict[str, Any] | None = None,
        query: dict[str, Any] | None = None,
    ) -> Any:
        url = f"{self.api_url}/repos/{self.owner}/{self.repo}{path}"
        if query:
            url = f"{url}?{urllib.parse.urlencode(query)}"
        data = json.dumps(payload).encode("utf-8") if payload is not None else None
        req = urllib.request.Request(url, data=data, method=method)
        req.add_header("Accept", "application/vnd.github+json")
        req.add_header("Authorization", f"Bearer {self.token}")
        req.add_header("X-GitHub-Api-Version", API_VERSION)
        req.add_header("User-Agent", "overweight")
        if data is not None:
            req.add_header("Content-Type", "application/json")
        try:
            with urllib.request.urlopen(req, timeout=self.timeout_seconds) as resp:  # nosec - api_url comes from the runner
                body = resp.read().decode("utf-8")
        except urllib.error.HTTPError as exc:
            detail = exc.read().decode("utf-8", errors="replace")
            try:
                message = json.loads(detail).get("message", detail)
            except (ValueError, AttributeError):
                message = detail
            raise GitHubApiError(
                f"GitHub API {method} {path} failed ({exc.code}): {message}", status=exc.code, path=path
            ) from exc
        except urllib.error.URLError as exc:
            raise GitHubApiError(f"GitHub API {method} {path} unreachable: {exc.reason}", status=0, path=path) from exc
        return json.loads(body) if body else None

    def get_ref(self, branch: str) -> dict[str, Any]:
        return self._request("GET", f"/git/ref/heads/{urllib.parse.quote(branch, safe='/')}")

    def create_ref(self, branch: str, sha: str) -> dict[str, Any]:
        return self._request("POST", "/git/refs", {"ref": f"refs/heads/{branch}", "sha": sha})

    def get_file(self, path: str, ref: str) -> dict[str, Any] | list[Any]:
        return self._request("GET", f"/contents/{urllib.parse.quote(path, safe='/')}", query={"ref": ref})

    def put_file(
        self,
        path: str,
        content: str,
        branch: str,
        message: str,
        sha: str | None = None,
        identity: dict[str, str] | None = None,
    ) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "message": message,
            "content": base64.b64encode(content.encode("utf-8")).decode("ascii"),
            "branch": branch,
        }
        if sha:
            payload["sha"] = sha
        if identity:
            payload["committer"] = identity
            payload["author"] = identity
        return self._request("PUT", f"/contents/{urllib.parse.quote(path, safe='/')}", payload)

    def list_open_pulls(self, head_branch: str) -> list[dict[str, Any]]:
        query = {"head": f"{self.owner}:{head_branch}", "state": "open", "per_page": 1}
        return self._request("GET", "/pulls", query=query) or []

    def create_pull(self, head: str, base: str, title: str, body: str) -> dict[str, Any]:
        return self._request("POST", "/pulls", {"head": head, "base": base, "title": title, "body": body})

    def get_default_branch(self) -> str:
        return str(self._request("GET", "")["default_branch"])

    def list_issue_comments(self, issue_number: int) -> list[dict[str, Any]]:
        return self._request("GET", f"/issues/{issue_number}/comments", query={"per_page": 100}) or []

    def create_issue_comment(self, issue_number: int, body: str) -> dict[str, Any]:
        return self._request("POST", f"/issues/{issue_number}/comments", {"body": body})

    def update_issue_comment(self, comment_id: int, body: str) -> dict[str, Any]:
        return self._request("PATCH", f"/issues/comments/{comment_id}", {"body": body})
