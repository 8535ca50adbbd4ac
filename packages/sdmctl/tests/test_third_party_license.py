from __future__ import annotations

import json
from pathlib import Path

from sdmctl.autofix import third_party_license
from sdmctl.autofix.third_party_license import (
    LICENSE_FILE_NAME,
    add_third_party_license_transform,
    group_by_license,
    normalize_license,
    render_third_party_licenses,
)
from sdmctl.core.process import CommandResult

DEPENDENCIES = {
    "left-pad@1.3.0": {"licenses": "WTFPL", "repository": "https://github.com/stevemao/left-pad", "publisher": "azer"},
    "@atomist/sdm@1.0.0": {"licenses": "Apache 2.0", "repository": "https://github.com/atomist/sdm"},
    "dual@2.0.0": {"licenses": ["MIT", "(Apache-2.0)"]},
    "guessed@0.1.0": {"licenses": "MIT*"},
}


def test_normalize_license() -> None:
    assert normalize_license("Apache 2.0") == "Apache-2.0"
    assert normalize_license("MIT*") == "MIT"
    assert normalize_license("(MIT OR Apache-2.0)") == "MIT OR Apache-2.0"


def test_group_by_license_splits_dual_licenses() -> None:
    grouped = group_by_license(DEPENDENCIES)
    assert sorted(grouped) == ["Apache-2.0", "MIT", "WTFPL"]
    assert [d["name"] for d in grouped["MIT"]] == ["dual@2.0.0", "guessed@0.1.0"]
    assert [d["name"] for d in grouped["Apache-2.0"]] == ["@atomist/sdm@1.0.0", "dual@2.0.0"]


def test_render_third_party_licenses() -> None:
    text = render_third_party_licenses("@atomist/demo", DEPENDENCIES)
    assert text.startswith("# @atomist/demo\n")
    assert "|Apache-2.0|2|\n|MIT|2|\n|WTFPL|1|" in text
    assert "|`@atomist/sdm`|`1.0.0`||[https://github.com/atomist/sdm](https://github.com/atomist/sdm)|" in text
    assert "|`left-pad`|`1.3.0`|azer|" in text
    assert text.index("#### Apache-2.0") < text.index("#### MIT") < text.index("#### WTFPL")


def test_transform_writes_license_file(make_project, monkeypatch) -> None:
    project = make_project({"package.json": json.dumps({"name": "@atomist/demo"}), "package-lock.json": "{}", "node_modules/x/index.js": ""})
    commands: list[list[str]] = []

    def _run(cmd: list[str], cwd: Path | None = None, **_kw: object) -> CommandResult:
        commands.append(cmd)
        stdout = json.dumps(DEPENDENCIES) if cmd[:2] == ["npx", "license-checker"] else ""
        return CommandResult(code=0, stdout=stdout, stderr="", duration_ms=1)

    monkeypatch.setattr(third_party_license, "run_command", _run)
    add_third_party_license_transform(project)
    assert commands[0] == ["npm", "ci"]
    assert commands[1] == ["npx", "license-checker", "--production", "--json"]
    assert (project.read(LICENSE_FILE_NAME) or "").startswith("# @atomist/demo\n")
    assert not project.has_directory("node_modules")


def test_transform_leaves_project_when_install_fails(make_project, monkeypatch) -> None:
    project = make_project({"package.json": "{}"})
    commands: list[list[str]] = []

    def _run(cmd: list[str], **_kw: object) -> CommandResult:
        commands.append(cmd)
        return CommandResult(code=1, stdout="", stderr="boom", duration_ms=1)

    monkeypatch.setattr(third_party_license, "run_command", _run)
    add_third_party_license_transform(project)
    assert commands == [["npm", "i"]]
    assert not project.has_file(LICENSE_FILE_NAME)
