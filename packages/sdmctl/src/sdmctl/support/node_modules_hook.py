from __future__ import annotations

import os
import shutil
from pathlib import Path

from ..core.logging import log_event
from ..core.process import run_command
from ..sdm.goals import GoalInvocation, HookPhase
from ..sdm.project import Project


def node_modules_cache_file(cache_dir: str, goal_set_id: str) -> Path:
    return Path(cache_dir) / f"{goal_set_id}-node_modules.tar.gz"


def npm_install_command(project: Project) -> list[str]:
    return ["npm", "ci"] if project.has_file("package-lock.json") else ["npm", "install"]


def node_modules_project_hook(project: Project, gi: GoalInvocation, phase: HookPhase) -> None:
    """Restore or install node_modules before a goal runs, caching the result per goal set."""
    if not project.has_file("package.json") or phase is not HookPhase.PRE:
        return
    if project.has_directory("node_modules"):
        return
    cache = gi.configuration.cache
    cache_file = node_modules_cache_file(cache.path, gi.goal_event.goal_set_id)
    requires_install = True
    if cache.enabled and cache_file.is_file():
        restored = run_command(["tar", "-xf", str(cache_file)], cwd=project.base_dir, log=gi.progress_log, ctx=gi.ctx)
        requires_install = restored.code != 0
    installed = False
    if requires_install:
        env = {**os.environ, "NODE_ENV": "development"}
        result = run_command(npm_install_command(project), cwd=project.base_dir, env=env, log=gi.progress_log, ctx=gi.ctx)
        installed = result.code == 0
        log_event(gi.ctx, "info", "node-modules", "install", project=project.name, code=result.code)
    if installed and cache.enabled:
        cache_file.parent.mkdir(parents=True, exist_ok=True)
        temp_file = cache_file.with_name(f"{cache_file.name}.{os.getpid()}")
        archived = run_command(
            ["tar", "-zcf", str(temp_file), "node_modules"], cwd=project.base_dir, log=gi.progress_log, ctx=gi.ctx
        )
        if archived.code == 0:
            shutil.move(str(temp_file), str(cache_file))
