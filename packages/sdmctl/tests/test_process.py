from __future__ import annotations

import subprocess
from pathlib import Path

from sdmctl.config.loader import DockerOptions
from sdmctl.core import process
from sdmctl.core.context import RunContext
from sdmctl.core.git import clone_url
from sdmctl.core.process import CommandResult, redact_command, run_command
from sdmctl.machine import release
from sdmctl.machine.release import docker_login


def test_redact_command_masks_passwords_and_url_credentials() -> None:
    assert redact_command(["docker", "login", "--username", "u", "--password", "s3cr3t"]) == (
        "docker login --username u --password ***"
    )
    assert redact_command(["tool", "--token=abc", "--password-stdin"]) == "tool --token=*** --password-stdin"
    assert redact_command(["git", "clone", clone_url("atomist", "demo", "ghp_x")]) == (
        "git clone https://***@github.com/atomist/demo.git"
    )
    assert redact_command(["git", "clone", clone_url("atomist", "demo")]) == "git clone https://github.com/atomist/demo.git"


def test_verbose_command_log_never_contains_secrets(configuration, monkeypatch, capsys) -> None:
    seen: dict[str, object] = {}

    def _run(cmd: list[str], **kwargs: object) -> subprocess.CompletedProcess[str]:
        seen.update(kwargs)
        return subprocess.CompletedProcess(cmd, 0, "", "")

    monkeypatch.setattr(process.subprocess, "run", _run)
    ctx = RunContext(
        run_id="r1",
        repo_root=Path("."),
        output_format="text",
        verbose=True,
        quiet=False,
        log_json=False,
        git_sha="",
        git_dirty=False,
        config=configuration,
    )
    run_command(["docker", "login", "--username", "u", "--password", "s3cr3t-pw"], ctx=ctx)
    run_command(["git", "push", clone_url("atomist", "demo", "ghp_secret")], ctx=ctx, stdin="piped")
    err = capsys.readouterr().err
    assert "action=run-command" in err
    assert "s3cr3t-pw" not in err
    assert "ghp_secret" not in err
    assert seen["input"] == "piped"


def test_docker_login_passes_password_on_stdin(monkeypatch) -> None:
    calls: list[tuple[list[str], object]] = []

    def _run(cmd: list[str], cwd: Path | None = None, **kwargs: object) -> CommandResult:
        calls.append((cmd, kwargs.get("stdin")))
        return CommandResult(0, "", "", 1)

    monkeypatch.setattr(release, "run_command", _run)

    class _Invocation:
        progress_log = None
        ctx = None

    docker_login(DockerOptions(registry="atomist", user="bot", password="hunter2"), _Invocation())  # type: ignore[arg-type]
    cmd, stdin = calls[0]
    assert cmd == ["docker", "login", "--username", "bot", "--password-stdin"]
    assert stdin == "hunter2"
