"""Remove the npm dist-tag of a branch once the branch is deleted."""

from __future__ import annotations

import json
from contextlib import AbstractContextManager
from typing import Any, Callable

from ..config.loader import NpmOptions
from ..core.logging import log_event
from ..core.process import CommandResult, run_command
from ..errors import ScriptError
from ..exit_codes import ERR_VALIDATION
from ..sdm.progress_log import ProgressLog
from ..sdm.project import Project, cloned_project
from ..sdm.registrations import CommandListenerInvocation, EventHandlerRegistration

ProjectLoader = Callable[[str, str, "str | None", "str | None"], AbstractContextManager[Project]]


def git_branch_to_npm_version(branch: str) -> str:
    return branch.replace("/", "-").replace("_", "-").replace("@", "")


def git_branch_to_npm_tag(branch: str) -> str:
    return f"branch-{git_branch_to_npm_version(branch)}"


def package_name(project: Project) -> str:
    raw = project.read("package.json")
    if raw is None:
        raise ScriptError(f"{project.name} does not have a package.json", ERR_VALIDATION, kind="missing_package_json")
    try:
        name = json.loads(raw).get("name")
    except json.JSONDecodeError as exc:
        raise ScriptError(f"Unable to parse package.json '{raw}': {exc}", ERR_VALIDATION, kind="invalid_package_json") from exc
    if not name:
        raise ScriptError(f"Unable to get NPM package name from package.json '{raw}'", ERR_VALIDATION, kind="invalid_package_json")
    return str(name)


def configure_npmrc(options: NpmOptions, project: Project) -> None:
    if options.npmrc:
        project.write(".npmrc", options.npmrc)


def delete_branch_tag(branch: str, project: Project, options: NpmOptions, log: ProgressLog | None = None) -> CommandResult:
    name = package_name(project)
    tag = git_branch_to_npm_tag(branch)
    configure_npmrc(options, project)
    result = run_command(["npm", "dist-tag", "rm", name, tag], cwd=project.base_dir, log=log)
    log_event(None, "info", "dist-tag", "delete", package=name, tag=tag, code=result.code)
    return result


def delete_dist_tag_on_branch_deletion(
    options: NpmOptions, project_loader: ProjectLoader = cloned_project
) -> EventHandlerRegistration:
    def _listener(event: dict[str, Any], ci: CommandListenerInvocation[Any]) -> CommandResult:
        deleted = event["DeletedBranch"][0]
        repo = deleted["repo"]
        token = ci.token or ci.configuration.github_token
        with project_loader(repo["owner"], repo["name"], repo.get("defaultBranch"), token) as project:
            return delete_branch_tag(deleted["name"], project, options)

    return EventHandlerRegistration(
        name="DeleteDistTagOnBranchDeletion",
        listener=_listener,
        subscription="onDeletedBranch",
        description="Delete a NPM dist-tag when a branch gets deleted",
        tags=("branch", "npm", "dist-tag"),
    )
