from __future__ import annotations

import json
import os
import subprocess
import sys
from pathlib import Path

import pytest

from sdmctl import __version__
from sdmctl.autofix.header import APACHE_HEADER
from sdmctl.cli.main import build_parser, main
from sdmctl.exit_codes import ERR_CONFIG, ERR_USAGE, ERR_VALIDATION

SRC = Path(__file__).resolve().parents[1] / "src"


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ("CI", "SDMCTL_CONFIG", "SDM_LOCAL_MODE", "SDM_ENVIRONMENT", "GITHUB_TOKEN", "RUN_ID"):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def node_project(tmp_path: Path) -> Path:
    base = tmp_path / "demo"
    base.mkdir()
    (base / "package.json").write_text(json.dumps({"name": "@atomist/demo", "version": "1.2.0"}, indent=2) + "\n", encoding="utf-8")
    (base / "index.ts").write_text("export const a = 1;\n", encoding="utf-8")
    return base


def _run_json(capsys: pytest.CaptureFixture[str], *argv: str) -> tuple[int, dict[str, object]]:
    code = main(["--run-id", "test-run", *argv])
    out = capsys.readouterr().out
    return code, json.loads(out)


def _push_args(project: Path) -> list[str]:
    return ["--project", str(project), "--branch", "master", "--sha", "abc123"]


def test_parser_registers_every_command() -> None:
    choices = build_parser()._subparsers._group_actions[0].choices
    assert set(choices) >= {
        "version", "config", "plan", "goal", "autofix", "header", "dockerfile", "inspect", "k8s",
        "release", "tag", "approve", "cancel-approval", "du", "badge", "transform",
    }


def test_version_json(capsys) -> None:
    code, payload = _run_json(capsys, "version", "--json")
    assert code == 0
    assert payload["tool"] == "sdmctl"
    assert payload["schema_version"] == 1
    assert payload["status"] == "ok"
    assert payload["run_id"] == "test-run"
    assert payload["sdmctl_version"] == __version__
    assert payload["sdm_name"] == "atomist-sdm"


def test_version_text(capsys) -> None:
    assert main(["--format", "text", "version"]) == 0
    assert capsys.readouterr().out.startswith(f"sdmctl {__version__} (atomist-sdm, git ")


def test_conflicting_output_flags(capsys) -> None:
    assert main(["--format", "text", "--json", "version"]) == ERR_CONFIG
    err = json.loads(capsys.readouterr().err.strip().splitlines()[-1])
    assert err["status"] == "error"
    assert err["errors"][0]["code"] == ERR_CONFIG


def test_config_dump_redacts_secrets(capsys, monkeypatch) -> None:
    monkeypatch.setenv("GITHUB_TOKEN", "ghp_secret")
    code, payload = _run_json(capsys, "config", "dump", "--json")
    assert code == 0
    assert payload["config"]["github"]["token"] == "***"
    code, payload = _run_json(capsys, "config", "dump", "--show-secrets", "--json")
    assert payload["config"]["github"]["token"] == "ghp_secret"


def test_config_validate_reports_schema_errors(capsys, tmp_path: Path) -> None:
    bad = tmp_path / "bad.yaml"
    bad.write_text("cache:\n  enabled: maybe\n", encoding="utf-8")
    code, payload = _run_json(capsys, "config", "validate", "--file", str(bad), "--json")
    assert code == ERR_CONFIG
    assert payload["status"] == "error"
    assert any(str(e).startswith("cache.enabled:") for e in payload["errors"])


def test_invalid_config_override_fails_before_running(capsys, tmp_path: Path) -> None:
    bad = tmp_path / "bad.yaml"
    bad.write_text("local_mode: nope\n", encoding="utf-8")
    assert main(["--json", "--config", str(bad), "version"]) == ERR_CONFIG
    err = json.loads(capsys.readouterr().err.strip().splitlines()[-1])
    assert err["errors"][0]["kind"] == "config_invalid"


def test_k8s_namespace_and_ingress(capsys) -> None:
    code, payload = _run_json(capsys, "k8s", "namespace", "--repo", "atomist-internal-sdm", "--environment", "testing", "--json")
    assert code == 0
    assert payload["namespace"] == "sdm-testing"
    code, payload = _run_json(capsys, "k8s", "ingress", "--repo", "card-automation", "--ns", "production", "--json")
    assert payload["ingress"] == {"host": "pusher.atomist.com", "path": "/", "tlsSecret": "star-atomist-com"}
    assert main(["--format", "text", "k8s", "ingress", "--repo", "nothing", "--ns", "production"]) == 0
    assert capsys.readouterr().out.strip() == "no ingress"


def test_k8s_deployment_for_project(capsys, node_project: Path) -> None:
    code, payload = _run_json(capsys, "k8s", "deployment", *_push_args(node_project), "--environment", "production", "--json")
    assert code == 0
    deployment = payload["deployment"]
    assert deployment["name"] == "demo"
    assert deployment["ns"] == "production"
    assert deployment["port"] == 2866
    assert deployment["replicas"] == 3


def test_plan_for_node_project(capsys, node_project: Path) -> None:
    code, payload = _run_json(capsys, "plan", *_push_args(node_project), "--json")
    assert code == 0
    assert payload["rule"] == "Release Build"
    assert payload["goal_set"] == "Build with Release"
    assert payload["sets_goals"] is True
    goals = {g["unique_name"]: g for g in payload["goals"]}
    assert goals["build"]["preconditions"] == ["autofix", "version"]
    assert goals["version"]["fulfillment"] == "npm-versioner"
    assert payload["push"] == {"repo": "atomist/demo", "branch": "master", "sha": "abc123"}


def test_plan_for_non_node_project(capsys, tmp_path: Path) -> None:
    code, payload = _run_json(capsys, "plan", "--project", str(tmp_path), "--branch", "master", "--sha", "x", "--json")
    assert code == 0
    assert payload["rule"] == "Non Node repository"
    assert payload["sets_goals"] is False
    assert payload["goals"] == []


def test_missing_project_is_a_usage_error(capsys, tmp_path: Path) -> None:
    assert main(["--json", "plan", "--project", str(tmp_path / "missing")]) == ERR_USAGE
    err = json.loads(capsys.readouterr().err.strip().splitlines()[-1])
    assert err["errors"][0]["kind"] == "project_missing"


def test_goal_list_and_run_version(capsys, node_project: Path) -> None:
    code, payload = _run_json(capsys, "goal", "list", "--json")
    assert code == 0
    assert "kubernetes-deploy-production-approval" in {g["unique_name"] for g in payload["goals"]}
    assert "Build with Release" in {s["name"] for s in payload["goal_sets"]}
    code, payload = _run_json(capsys, "goal", "run", "version", *_push_args(node_project), "--json")
    assert code == 0
    assert payload["goal"] == "version"
    assert str(payload["result"]["data"]["version"]).startswith("1.2.0-")


def test_goal_run_unknown_goal(capsys, node_project: Path) -> None:
    assert main(["goal", "run", "nope", *_push_args(node_project)]) == ERR_USAGE
    assert "unknown goal 'nope'" in capsys.readouterr().err


def test_goal_run_rejects_invalid_data(capsys, node_project: Path) -> None:
    with pytest.raises(SystemExit) as exc:
        main(["goal", "run", "version", *_push_args(node_project), "--data", "{not json"])
    assert exc.value.code == 2


def test_header_check_and_add(capsys, node_project: Path) -> None:
    code, payload = _run_json(capsys, "header", "check", "--project", str(node_project), "--json")
    assert code == ERR_VALIDATION
    assert payload["missing"] == ["index.ts"]
    code, payload = _run_json(capsys, "header", "add", "--project", str(node_project), "--json")
    assert code == 0
    assert payload["added"] == ["index.ts"]
    assert (node_project / "index.ts").read_text(encoding="utf-8").startswith(APACHE_HEADER)
    code, payload = _run_json(capsys, "header", "check", "--project", str(node_project), "--json")
    assert code == 0


def test_header_unsupported_license(capsys, node_project: Path) -> None:
    assert main(["--json", "header", "add", "--project", str(node_project), "--license", "gpl"]) == ERR_USAGE
    err = json.loads(capsys.readouterr().err.strip().splitlines()[-1])
    assert err["errors"][0]["kind"] == "unsupported_license"


def test_dockerfile_update(capsys, tmp_path: Path) -> None:
    dockerfile = tmp_path / "Dockerfile"
    dockerfile.write_text("RUN npm install -g npm@5.0.0\n", encoding="utf-8")
    code, payload = _run_json(capsys, "dockerfile", "update", "--file", str(dockerfile), "--module", "npm", "--version", "6.1.0", "--dry-run", "--json")
    assert code == 0
    assert payload["changed"] is True
    assert dockerfile.read_text(encoding="utf-8") == "RUN npm install -g npm@5.0.0\n"
    code, payload = _run_json(capsys, "dockerfile", "update", "--file", str(dockerfile), "--module", "npm", "--version", "6.1.0", "--json")
    assert dockerfile.read_text(encoding="utf-8") == "RUN npm install -g npm@6.1.0\n"


def test_release_version(capsys, node_project: Path) -> None:
    code, payload = _run_json(capsys, "release", "version", "--release-of", "1.2.0-20180101", "--tag", "1.2.0-M.1", "--json")
    assert code == 0
    assert payload == {**payload, "kind": "release", "version": "1.2.0-M.1"}
    code, payload = _run_json(capsys, "release", "version", *_push_args(node_project), "--json")
    assert payload["kind"] == "prerelease"
    assert str(payload["version"]).startswith("1.2.0-")


def test_transform_list_and_run(capsys, node_project: Path) -> None:
    code, payload = _run_json(capsys, "transform", "list", "--json")
    assert code == 0
    assert "UpdatePackageAuthor" in {t["name"] for t in payload["transforms"]}
    code, payload = _run_json(capsys, "transform", "run", "UpdatePackageAuthor", "--project", str(node_project), "--json")
    assert code == 0
    assert payload["edit"]["message"] == "Update NPM package author to Atomist"
    assert payload["committed"] is False
    author = json.loads((node_project / "package.json").read_text(encoding="utf-8"))["author"]
    assert author["name"] == "Atomist"


def test_transform_run_rejects_unknown_parameters(capsys, node_project: Path) -> None:
    assert main(["--json", "transform", "run", "addHeader", "--project", str(node_project), "--param", "nope=1"]) == ERR_USAGE
    err = json.loads(capsys.readouterr().err.strip().splitlines()[-1])
    assert err["errors"][0]["kind"] == "invalid_param"
    assert main(["transform", "run", "missing", "--project", str(node_project)]) == ERR_USAGE


def test_badge(capsys) -> None:
    code, payload = _run_json(capsys, "badge", "--owner", "atomist", "--repo", "demo", "--workspace-id", "T1", "--json")
    assert code == 0
    assert str(payload["url"]).startswith("http://badge.atomist.com/T1/atomist/demo/")


def test_approve_writes_updated_goal(capsys, tmp_path: Path) -> None:
    goal = {
        "goal_set": "Deploy",
        "goal_set_id": "gs-1",
        "unique_name": "kubernetes-deploy-testing-approval",
        "state": "waiting_for_approval",
        "sha": "abcdef0",
        "branch": "master",
        "repo": {"owner": "atomist", "name": "demo"},
        "version": 1,
    }
    goals_file = tmp_path / "goals.json"
    goals_file.write_text(json.dumps(goal), encoding="utf-8")
    out_file = tmp_path / "approved.json"
    code, payload = _run_json(
        capsys,
        "approve",
        "--goals-file", str(goals_file),
        "--goal-set-id", "gs-1",
        "--goal", "kubernetes-deploy-testing-approval",
        "--out-file", str(out_file),
        "--json",
    )
    assert code == 0
    written = json.loads(out_file.read_text(encoding="utf-8"))
    assert written["version"] == 2
    assert json.loads(written["data"]) == {"approved": True}
    assert payload["goal"]["provenance"][0]["name"] == "ApproveSdmGoalCommand"
    assert payload["goal"]["provenance"][0]["correlation_id"] == "test-run"


def test_approve_missing_goals_file(capsys, tmp_path: Path) -> None:
    argv = ["approve", "--goals-file", str(tmp_path / "none.json"), "--goal-set-id", "g", "--goal", "x"]
    assert main(argv) == ERR_USAGE


def test_autofix_list(capsys, node_project: Path) -> None:
    code, payload = _run_json(capsys, "autofix", "list", *_push_args(node_project), "--json")
    assert code == 0
    rows = {row["name"]: row["applicable"] for row in payload["autofixes"]}
    assert rows["Third party licenses"] is True
    assert rows["Dockerfile NPM install"] is False


def test_module_entrypoint_runs_in_subprocess(tmp_path: Path) -> None:
    env = {**os.environ, "PYTHONPATH": str(SRC)}
    env.pop("CI", None)
    proc = subprocess.run(
        [sys.executable, "-m", "sdmctl.cli", "--json", "--cwd", str(tmp_path), "version"],
        capture_output=True,
        text=True,
        check=False,
        env=env,
    )
    assert proc.returncode == 0, proc.stderr
    assert json.loads(proc.stdout)["tool"] == "sdmctl"
