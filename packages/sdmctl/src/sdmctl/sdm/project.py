from __future__ import annotations

import os
import shutil
import tempfile
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator

from ..core.git import clone_url
from ..core.process import redact_url_credentials, run_command
from ..errors import ScriptError
from ..exit_codes import ERR_PREREQ
from .globs import glob_match

IGNORED_DIRS = frozenset({".git", "node_modules"})


@dataclass
class Project:
    base_dir: Path
    name: str = ""
    owner: str = ""

    def __post_init__(self) -> None:
        self.base_dir = Path(self.base_dir).resolve()
        if not self.name:
            self.name = self.base_dir.name

    def path(self, rel: str) -> Path:
        return self.base_dir / rel

    def has_file(self, rel: str) -> bool:
        return self.path(rel).is_file()

    def has_directory(self, rel: str) -> bool:
        return self.path(rel).is_dir()

    def read(self, rel: str) -> str | None:
        p = self.path(rel)
        if not p.is_file():
            return None
        return p.read_text(encoding="utf-8")

    def write(self, rel: str, content: str) -> None:
        p = self.path(rel)
        p.parent.mkdir(parents=True, exist_ok=True)
        p.write_text(content, encoding="utf-8")

    def move(self, rel: str, new_rel: str) -> None:
        dest = self.path(new_rel)
        dest.parent.mkdir(parents=True, exist_ok=True)
        self.path(rel).rename(dest)

    def delete_directory(self, rel: str) -> None:
        shutil.rmtree(self.path(rel), ignore_errors=True)

    def all_files(self) -> list[str]:
        out: list[str] = []
        for root, dirs, files in os.walk(self.base_dir):
            dirs[:] = sorted(d for d in dirs if d not in IGNORED_DIRS)
            rel_root = Path(root).relative_to(self.base_dir)
            for name in files:
                out.append((rel_root / name).as_posix() if rel_root.parts else name)
        return sorted(out)

    def files(self, glob: str) -> list[str]:
        return [rel for rel in self.all_files() if glob_match(rel, glob)]

    def file_exists(self, glob: str) -> bool:
        return any(glob_match(rel, glob) for rel in self.all_files())


@contextmanager
def cloned_project(owner: str, repo: str, branch: str | None = None, token: str | None = None) -> Iterator[Project]:
    """Shallow-clone a GitHub repository into a temporary directory for the duration of the block."""
    with tempfile.TemporaryDirectory(prefix=f"{repo}-") as tmp:
        dest = Path(tmp) / repo
        args = ["git", "clone", "--depth", "1"]
        if branch:
            args += ["--branch", branch]
        result = run_command([*args, clone_url(owner, repo, token), str(dest)])
        if result.code != 0:
            detail = redact_url_credentials(result.stderr.strip())
            raise ScriptError(f"failed to clone {owner}/{repo}: {detail}", ERR_PREREQ, kind="clone_failed")
        yield Project(dest, name=repo, owner=owner)
