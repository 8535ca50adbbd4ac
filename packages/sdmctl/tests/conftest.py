from __future__ import annotations

import json
import socket
from pathlib import Path
from typing import Callable

import pytest
from hypothesis import settings
from hypothesis.database import DirectoryBasedExampleDatabase

from sdmctl.config.loader import SdmConfiguration, load_configuration
from sdmctl.sdm.project import Project
from sdmctl.sdm.push import Push, PushListenerInvocation

_ALLOWED_MARKERS = {"unit", "integration", "slow"}

_ROOT = Path(__file__).resolve().parents[3]
_HYPOTHESIS_DB = _ROOT / "artifacts/sdmctl/.hypothesis/examples"
_HYPOTHESIS_DB.parent.mkdir(parents=True, exist_ok=True)
settings.register_profile("sdm", database=DirectoryBasedExampleDatabase(_HYPOTHESIS_DB))
settings.load_profile("sdm")


def pytest_collection_modifyitems(items: list[pytest.Item]) -> None:
    for item in items:
        names = {mark.name for mark in item.iter_markers()}
        if not names.intersection(_ALLOWED_MARKERS):
            item.add_marker("unit")


@pytest.fixture(autouse=True)
def no_network_for_unit(request: pytest.FixtureRequest, monkeypatch: pytest.MonkeyPatch) -> None:
    if request.node.get_closest_marker("integration") or request.node.get_closest_marker("slow"):
        return

    def _blocked(*_args: object, **_kwargs: object) -> socket.socket:
        raise RuntimeError("network disabled in unit tests")

    def _blocked_connect(*_args: object, **_kwargs: object) -> None:
        raise RuntimeError("network disabled in unit tests")

    monkeypatch.setattr(socket, "create_connection", _blocked)
    monkeypatch.setattr(socket.socket, "connect", _blocked_connect)


@pytest.fixture
def configuration() -> SdmConfiguration:
    return load_configuration(env={})


@pytest.fixture
def make_project(tmp_path: Path) -> Callable[..., Project]:
    def _make(files: dict[str, str] | None = None, name: str = "demo", owner: str = "atomist") -> Project:
        base = tmp_path / name
        base.mkdir(parents=True, exist_ok=True)
        for rel, content in (files or {}).items():
            path = base / rel
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content, encoding="utf-8")
        return Project(base, name=name, owner=owner)

    return _make


@pytest.fixture
def node_package() -> str:
    return json.dumps({"name": "@atomist/demo", "version": "1.2.0", "dependencies": {}}, indent=2)


@pytest.fixture
def make_pli(configuration: SdmConfiguration) -> Callable[..., PushListenerInvocation]:
    def _make(project: Project, configuration: SdmConfiguration = configuration, **push_fields: object) -> PushListenerInvocation:
        fields: dict[str, object] = {"owner": project.owner, "repo": project.name, "branch": "master", "sha": "a" * 40}
        fields.update(push_fields)
        return PushListenerInvocation(Push(**fields), project, configuration)

    return _make
