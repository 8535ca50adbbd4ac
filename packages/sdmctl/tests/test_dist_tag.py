from __future__ import annotations

from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

import pytest

from sdmctl.config.loader import NpmOptions
from sdmctl.core.process import CommandResult
from sdmctl.errors import ScriptError
from sdmctl.event import dist_tag
from sdmctl.event.dist_tag import (
    delete_dist_tag_on_branch_deletion,
    git_branch_to_npm_tag,
    git_branch_to_npm_version,
    package_name,
)
from sdmctl.sdm.registrations import CommandListenerInvocation


@pytest.mark.parametrize(
    ("branch", "expected"),
    [("feature/foo_bar@x", "branch-feature-foo-barx"), ("master", "branch-master"), ("a/b/c", "branch-a-b-c")],
)
def test_git_branch_to_npm_tag(branch: str, expected: str) -> None:
    assert git_branch_to_npm_tag(branch) == expected


def test_npm_version_has_no_path_or_scope_characters() -> None:
    assert "/" not in git_branch_to_npm_version("x/y_z@w")
    assert "@" not in git_branch_to_npm_version("x/y_z@w")


def test_package_name_requires_name(make_project) -> None:
    with pytest.raises(ScriptError) as exc:
        package_name(make_project({"package.json": "{}"}))
    assert exc.value.kind == "invalid_package_json"


def test_branch_deletion_removes_dist_tag(make_project, configuration, node_package, monkeypatch) -> None:
    project = make_project({"package.json": node_package})
    loaded: list[tuple[str, str, str | None, str | None]] = []
    commands: list[list[str]] = []

    @contextmanager
    def _loader(owner: str, repo: str, branch: str | None, token: str | None) -> Iterator[object]:
        loaded.append((owner, repo, branch, token))
        yield project

    def _run(cmd: list[str], cwd: Path | None = None, log: object = None, **_kw: object) -> CommandResult:
        commands.append(cmd)
        return CommandResult(code=0, stdout="", stderr="", duration_ms=1)

    monkeypatch.setattr(dist_tag, "run_command", _run)
    registration = delete_dist_tag_on_branch_deletion(NpmOptions(registry="r", npmrc="//r/:_authToken=x"), _loader)
    event = {"DeletedBranch": [{"name": "feature/x", "repo": {"owner": "atomist", "name": "demo", "defaultBranch": "master"}}]}
    ci = CommandListenerInvocation(parameters=None, configuration=configuration, token="tok")
    result = registration.listener(event, ci)

    assert result.ok
    assert registration.subscription == "onDeletedBranch"
    assert loaded == [("atomist", "demo", "master", "tok")]
    assert commands == [["npm", "dist-tag", "rm", "@atomist/demo", "branch-feature-x"]]
    assert project.read(".npmrc") == "//r/:_authToken=x"
