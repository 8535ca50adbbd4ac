from __future__ import annotations

import re
import subprocess
import time
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from ..exit_codes import ERR_TIMEOUT
from .logging import log_event

if TYPE_CHECKING:
    from ..sdm.progress_log import ProgressLog
    from .context import RunContext


_SECRET_FLAGS = frozenset({"--password", "--token"})
_URL_USERINFO = re.compile(r"(https?://)[^/@\s]+@")


def redact_url_credentials(text: str) -> str:
    return _URL_USERINFO.sub(r"\1***@", text)


def redact_command(cmd: list[str]) -> str:
    """Render a command for logs with passwords, tokens and URL credentials masked."""
    out: list[str] = []
    hide_next = False
    for arg in cmd:
        if hide_next:
            out.append("***")
            hide_next = False
            continue
        flag, sep, _ = arg.partition("=")
        if flag in _SECRET_FLAGS:
            out.append(f"{flag}=***" if sep else arg)
            hide_next = not sep
            continue
        out.append(redact_url_credentials(arg))
    return " ".join(out)


@dataclass(frozen=True)
class CommandResult:
    code: int
    stdout: str
    stderr: str
    duration_ms: int

    @property
    def combined_output(self) -> str:
        return (self.stdout + self.stderr).strip()

    @property
    def ok(self) -> bool:
        return self.code == 0


def run_command(
    cmd: list[str],
    cwd: Path | None = None,
    env: dict[str, str] | None = None,
    timeout_seconds: int = 0,
    log: ProgressLog | None = None,
    ctx: RunContext | None = None,
    stdin: str | None = None,
) -> CommandResult:
    started = time.monotonic()
    try:
        proc = subprocess.run(
            cmd,
            cwd=cwd,
            env=env,
            input=stdin,
            text=True,
            capture_output=True,
            check=False,
            timeout=(timeout_seconds if timeout_seconds > 0 else None),
        )
        result = CommandResult(
            code=proc.returncode,
            stdout=proc.stdout or "",
            stderr=proc.stderr or "",
            duration_ms=int((time.monotonic() - started) * 1000),
        )
    except subprocess.TimeoutExpired as exc:
        result = CommandResult(
            code=ERR_TIMEOUT,
            stdout=_decode(exc.stdout),
            stderr=(_decode(exc.stderr) + f"\ncommand timed out after {timeout_seconds}s").strip(),
            duration_ms=int((time.monotonic() - started) * 1000),
        )
    except FileNotFoundError as exc:
        result = CommandResult(code=127, stdout="", stderr=str(exc), duration_ms=0)
    if log is not None:
        log.write(result.stdout)
        log.write(result.stderr)
    log_event(
        ctx,
        "debug",
        "process",
        "run-command",
        command=redact_command(cmd),
        cwd=str(cwd or "."),
        code=result.code,
        duration_ms=result.duration_ms,
    )
    return result


def run_chain(
    steps: list[list[str]],
    cwd: Path | None = None,
    env: dict[str, str] | None = None,
    log: ProgressLog | None = None,
    ctx: RunContext | None = None,
) -> CommandResult:
    """Run commands in order, stopping at the first non-zero exit."""
    result = CommandResult(0, "", "", 0)
    for cmd in steps:
        result = run_command(cmd, cwd=cwd, env=env, log=log, ctx=ctx)
        if result.code != 0:
            return result
    return result


def _decode(raw: str | bytes | None) -> str:
    if raw is None:
        return ""
    if isinstance(raw, bytes):
        return raw.decode("utf-8", errors="replace")
    return raw
