from __future__ import annotations

from dataclasses import dataclass

from .exit_codes import ERR_FAILED

KIND_CONFIG = "config_error"
KIND_USAGE = "usage_error"
KIND_UNKNOWN_TESTER = "unknown_tester"
KIND_TESTER_CONTRACT = "tester_contract"
KIND_BASELINE_IO = "baseline_io"
KIND_GITHUB_API = "github_api"


@dataclass
class OverweightError(Exception):
    message: str
    code: int = ERR_FAILED
    kind: str = KIND_CONFIG

    def __str__(self) -> str:
        return self.message


@dataclass
class GitHubApiError(OverweightError):
    status: int = 0
    path: str = ""
    kind: str = KIND_GITHUB_API

    @property
    def not_found(self) -> bool:
        return self.status == 404
