"""Publish Homebrew formulae for npm packages to the owner's tap repository."""

from __future__ import annotations

import hashlib
from pathlib import Path

from ..core import git
from ..core.logging import log_event
from ..errors import ScriptError
from ..sdm.goals import ExecuteGoalResult, GoalExecutor, GoalInvocation
from ..sdm.progress_log import DelimitedProgressLog
from ..sdm.project import Project, cloned_project
from ..sdm.push_tests import all_satisfied, push_test
from ..support.push_tests import IS_NODE
from .goals import DeliveryGoals
from .release import (
    download_npm_package,
    goal_version,
    release_or_prerelease,
    remove_tree,
)

HOMEBREW_FORMULA_GLOB = ".atomist/homebrew/*.rb"

HAS_HOMEBREW_FORMULA = push_test(
    "Has Homebrew formula template",
    lambda pli: pli.project.file_exists(HOMEBREW_FORMULA_GLOB),
)


def file_sha256(path: Path) -> str:
    digest = hashlib.sha256()
    with path.open("rb") as fh:
        for chunk in iter(lambda: fh.read(65536), b""):
            digest.update(chunk)
    return digest.hexdigest()


def render_formula(template: str, url: str, version: str, sha256: str) -> str:
    return template.replace("%URL%", url).replace("%VERSION%", version).replace("%SHA256%", sha256)


def render_formulae(project: Project, url: str, version: str, sha256: str) -> dict[str, str]:
    return {
        Path(rel).name: render_formula(project.read(rel) or "", url, version, sha256)
        for rel in project.files(HOMEBREW_FORMULA_GLOB)
    }


def update_tap(tap: Project, formulae: dict[str, str], project_name: str, log: DelimitedProgressLog) -> ExecuteGoalResult:
    for name, content in formulae.items():
        log.write(f"Updating Formula/{name}")
        tap.write(f"Formula/{name}", content)
    message = f"Update formula from {project_name}\n\nFormula updated: {' '.join(formulae)}\n"
    committed = git.commit_all(tap.base_dir, message, log=log)
    if not committed.ok:
        return ExecuteGoalResult(code=committed.code, message=committed.stderr.strip() or None)
    pushed = git.push(tap.base_dir, log=log)
    return ExecuteGoalResult(code=pushed.code, message=None if pushed.ok else pushed.stderr.strip() or None)


def execute_release_homebrew(tap_repo: str = "homebrew-tap") -> GoalExecutor:
    """Create the Homebrew formulae of the project and commit them to the tap."""

    def _execute(gi: GoalInvocation) -> ExecuteGoalResult:
        log = DelimitedProgressLog(gi.progress_log)
        project = gi.project
        try:
            version = release_or_prerelease(goal_version(gi), gi.goal_event.tags)
            package = download_npm_package(project, gi, version, gi.configuration.npm.registry)
            log.write(f"Creating Homebrew formula for {project.name} version {version}")
            sha = file_sha256(package.path)
            log.write(f"Calculated SHA256 for {package.path.name}: {sha}")
            remove_tree(package.path.parent)
            formulae = render_formulae(project, package.url, version, sha)
            owner = gi.goal_event.repo.owner
            log.write(f"Cloning {owner}/{tap_repo}")
            with cloned_project(owner, tap_repo, token=gi.token or gi.configuration.github_token) as tap:
                return update_tap(tap, formulae, project.name, log)
        except (ScriptError, OSError) as exc:
            message = f"Failed to update Homebrew formulae: {exc}"
            log_event(gi.ctx, "error", "homebrew", "release", detail=message)
            log.write(message)
            raise

    return _execute


def add_homebrew_support(goals: DeliveryGoals, tap_repo: str = "homebrew-tap") -> None:
    goals.release_homebrew.with_fulfillment(
        "homebrew-release",
        execute_release_homebrew(tap_repo),
        all_satisfied(IS_NODE, HAS_HOMEBREW_FORMULA),
    )
