from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from .process import CommandResult, run_command

if TYPE_CHECKING:
    from ..sdm.progress_log import ProgressLog


@dataclass(frozen=True)
class GitContext:
    sha: str
    is_dirty: bool


def read_git_context(repo_root: Path) -> GitContext:
    sha_res = run_command(["git", "rev-parse", "--short", "HEAD"], repo_root)
    sha = sha_res.stdout.strip() if sha_res.code == 0 else "unknown"
    dirty_res = run_command(["git", "status", "--porcelain"], repo_root)
    is_dirty = bool(dirty_res.stdout.strip()) if dirty_res.code == 0 else True
    return GitContext(sha=sha or "unknown", is_dirty=is_dirty)


def is_clean(repo_root: Path) -> bool:
    res = run_command(["git", "status", "--porcelain"], repo_root)
    return res.code == 0 and not res.stdout.strip()


def commit_all(repo_root: Path, message: str, log: ProgressLog | None = None) -> CommandResult:
    added = run_command(["git", "add", "--all", "."], repo_root, log=log)
    if added.code != 0:
        return added
    return run_command(["git", "commit", "--message", message], repo_root, log=log)


def push(repo_root: Path, *args: str, log: ProgressLog | None = None) -> CommandResult:
    return run_command(["git", "push", *args], repo_root, log=log)


def clone_url(owner: str, repo: str, token: str | None = None, host: str = "github.com") -> str:
    if token:
        return f"https://{token}@{host}/{owner}/{repo}.git"
    return f"https://{host}/{owner}/{repo}.git"
