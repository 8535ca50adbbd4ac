from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Any

import pytest

from sdmctl.adapters.github import RepoRef
from sdmctl.errors import ScriptError
from sdmctl.machine import release
from sdmctl.machine.release import (
    commit_title,
    docker_image,
    execute_release_tag,
    goal_version,
    maven_project_identifier,
    node_project_identifier,
    npm_package_url,
    project_version,
    release_or_prerelease,
    release_version,
)
from sdmctl.sdm.goals import GoalInvocation, GoalState, SdmGoalEvent
from sdmctl.sdm.messages import BufferedMessageClient
from sdmctl.sdm.progress_log import StringCapturingProgressLog

NOW = datetime(2018, 9, 4, 13, 5, 6, tzinfo=timezone.utc)


@pytest.mark.parametrize(
    ("version", "expected"),
    [("1.2.3-20180904130506", "1.2.3"), ("1.2.3-feature.x.20180904", "1.2.3"), ("1.2.3", "1.2.3"), ("0.1.0-M.1", "0.1.0")],
)
def test_release_version_strips_prerelease(version: str, expected: str) -> None:
    assert release_version(version) == expected


def test_release_or_prerelease_prefers_milestone_tags() -> None:
    assert release_or_prerelease("1.2.0", ["1.2.0-M.2", "other"]) == "1.2.0-M.2"
    assert release_or_prerelease("1.2.0", ("1.2.0-RC.1",)) == "1.2.0-RC.1"
    assert release_or_prerelease("1.2.0", ["1.2.0-beta.1", "1.2.0"]) == "1.2.0"
    assert release_or_prerelease("1.2.0", ["1x2y0-M.1"]) == "1.2.0"


def test_project_version_on_default_and_feature_branches() -> None:
    assert project_version("1.2.3", "master", "master", now=NOW) == "1.2.3-20180904130506"
    assert project_version("1.2.3", "feature/thing", "master", now=NOW) == "1.2.3-feature.thing.20180904130506"


def test_artifact_locations() -> None:
    assert npm_package_url("https://r.example", "@atomist/sdm", "1.0.0") == "https://r.example/@atomist/sdm/-/@atomist/sdm-1.0.0.tgz"
    assert docker_image("atomist", "sdm", "1.0.0") == "atomist/sdm:1.0.0"


def test_commit_title_is_first_line() -> None:
    assert commit_title("Fix thing\n\nMore detail\nhere") == "Fix thing"
    assert commit_title("Single") == "Single"


def test_node_project_identifier(make_project) -> None:
    project = make_project({"package.json": json.dumps({"name": "@atomist/demo", "version": "1.4.0"})})
    identity = node_project_identifier(project)
    assert (identity.name, identity.version) == ("@atomist/demo", "1.4.0")


@pytest.mark.parametrize(("files", "kind"), [({}, "missing_package_json"), ({"package.json": "{"}, "invalid_package_json"), ({"package.json": "{}"}, "invalid_package_json")])
def test_node_project_identifier_errors(make_project, files: dict[str, str], kind: str) -> None:
    with pytest.raises(ScriptError) as exc:
        node_project_identifier(make_project(files))
    assert exc.value.kind == kind


def test_maven_project_identifier_reads_namespaced_pom(make_project) -> None:
    pom = (
        '<project xmlns="http://maven.apache.org/POM/4.0.0">'
        "<parent><version>2.0.0</version></parent>"
        "<artifactId>spring-thing</artifactId><version>1.1.0-SNAPSHOT</version>"
        "</project>"
    )
    identity = maven_project_identifier(make_project({"pom.xml": pom}))
    assert (identity.name, identity.version) == ("spring-thing", "1.1.0-SNAPSHOT")


def test_maven_project_identifier_falls_back_to_parent_version(make_project) -> None:
    pom = "<project><parent><version>2.0.0</version></parent><artifactId>x</artifactId></project>"
    assert maven_project_identifier(make_project({"pom.xml": pom})).version == "2.0.0"


def _invocation(project, configuration, data: str | None = None) -> GoalInvocation:
    event = SdmGoalEvent(
        goal_set="release",
        goal_set_id="gs-1",
        unique_name="tag-release",
        name="tag release",
        environment="2-prod/",
        state=GoalState.IN_PROCESS,
        sha="0123456789abcdef",
        branch="master",
        repo=RepoRef("atomist", project.name),
        data=data,
    )
    return GoalInvocation(
        goal_event=event,
        configuration=configuration,
        project=project,
        progress_log=StringCapturingProgressLog(),
        messages=BufferedMessageClient(),
        token="t",
    )


def test_goal_version_prefers_goal_data(make_project, configuration, node_package) -> None:
    project = make_project({"package.json": node_package})
    assert goal_version(_invocation(project, configuration, data=json.dumps({"version": "1.2.0-20180904"}))) == "1.2.0-20180904"
    assert goal_version(_invocation(project, configuration, data="not json")) == "1.2.0"
    assert goal_version(_invocation(project, configuration)) == "1.2.0"


class _RecordingClient:
    def __init__(self) -> None:
        self.calls: list[tuple[str, RepoRef, dict[str, Any]]] = []

    def create_tag(self, ref: RepoRef, tag: dict[str, Any]) -> None:
        self.calls.append(("tag", ref, tag))

    def create_tag_reference(self, ref: RepoRef, tag: dict[str, Any]) -> None:
        self.calls.append(("ref", ref, tag))

    def create_release(self, ref: RepoRef, payload: dict[str, Any]) -> None:
        self.calls.append(("release", ref, payload))


def test_release_tag_creates_tag_reference_and_release(make_project, configuration, node_package, monkeypatch) -> None:
    project = make_project({"package.json": node_package})
    monkeypatch.setattr(release, "head_commit_message", lambda project, sha: "Polish docs\n\nDetails")
    client = _RecordingClient()
    gi = _invocation(project, configuration, data=json.dumps({"version": "1.2.0-20180904130506"}))
    result = execute_release_tag(client_factory=lambda _gi: client)(gi)

    assert result.ok
    assert result.target_url == "https://github.com/atomist/demo/releases/tag/1.2.0"
    kinds = [c[0] for c in client.calls]
    assert kinds == ["tag", "ref", "release"]
    tag = client.calls[0][2]
    assert tag["tag"] == "1.2.0"
    assert tag["object"] == "0123456789abcdef"
    assert tag["message"] == "Polish docs\n\nDetails"
    assert client.calls[2][2] == {"tag_name": "1.2.0", "name": "1.2.0: Polish docs"}
