from __future__ import annotations

import os
import socket
from pathlib import Path

import pytest
from helpers import FakeGitHub
from hypothesis import settings

_MARKERS = {"unit", "integration"}
_CI_ENV_PREFIXES = ("GITHUB_", "INPUT_", "OVERWEIGHT_")

settings.register_profile("overweight", deadline=None, max_examples=100)
settings.load_profile("overweight")


def pytest_collection_modifyitems(items: list[pytest.Item]) -> None:
    for item in items:
        if not any(item.get_closest_marker(name) for name in _MARKERS):
            item.add_marker("unit")


@pytest.fixture(autouse=True)
def isolated_ci_env(monkeypatch: pytest.MonkeyPatch) -> None:
    # Runner variables would leak into RunContext.from_env and read_inputs.
    for name in list(os.environ):
        if name.startswith(_CI_ENV_PREFIXES):
            monkeypatch.delenv(name, raising=False)


@pytest.fixture(autouse=True)
def offline(request: pytest.FixtureRequest, monkeypatch: pytest.MonkeyPatch) -> None:
    if request.node.get_closest_marker("integration"):
        return

    def _refuse(*_args: object, **_kwargs: object) -> None:
        raise RuntimeError(f"{request.node.nodeid} tried to open a network connection")

    monkeypatch.setattr(socket, "create_connection", _refuse)
    monkeypatch.setattr(socket.socket, "connect", _refuse)


@pytest.fixture
def fake_github() -> FakeGitHub:
    return FakeGitHub()


@pytest.fixture
def project(tmp_path: Path) -> Path:
    root = tmp_path / "project"
    (root / "dist").mkdir(parents=True)
    return root
