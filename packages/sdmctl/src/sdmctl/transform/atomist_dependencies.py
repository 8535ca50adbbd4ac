from __future__ import annotations

import json
import os
import time
from dataclasses import dataclass
from typing import Any, Callable

from ..autofix.dockerfile import npm_show_version
from ..core.git import is_clean
from ..core.process import run_command
from ..sdm.messages import BufferedMessageClient
from ..sdm.project import Project
from ..sdm.registrations import CodeTransformRegistration, CommandListenerInvocation, EditMode
from ..sdm.slack import code_line
from .package_author import dump_package_json

DRY_RUN_MESSAGE = "[atomist:dry-run]"
ATOMIST_SCOPE = "@atomist/"

VersionLookup = Callable[[str], "str | None"]


@dataclass
class UpdateAtomistDependenciesParameters:
    tag: str = "latest"
    commit_message: str | None = None


def update_dependencies(
    deps: dict[str, str],
    tag: str,
    lookup: VersionLookup = npm_show_version,
    messages: BufferedMessageClient | None = None,
) -> list[str]:
    """Bump every @atomist/* entry of `deps` in place; returns one line per changed dependency."""
    version_range = "^" if tag == "latest" else ""
    changes: list[str] = []
    for name in list(deps):
        if not name.startswith(ATOMIST_SCOPE):
            continue
        resolved = lookup(f"{name}@{tag}")
        if not resolved:
            continue
        old_version = deps[name]
        version = f"{version_range}{resolved}"
        if old_version != version:
            deps[name] = version
            changes.append(f"{name} {old_version} > {version}")
            if messages is not None:
                messages.respond(f"Updated {code_line(name)} from {code_line(old_version)} to {code_line(version)}")
    return changes


def update_atomist_dependencies_transform(
    project: Project,
    ci: CommandListenerInvocation[Any],
    lookup: VersionLookup = npm_show_version,
) -> Project:
    params: UpdateAtomistDependenciesParameters = ci.parameters or UpdateAtomistDependenciesParameters()
    pj = json.loads(project.read("package.json") or "{}")
    ci.messages.respond(f"Updating @atomist NPM dependencies of {code_line(str(pj.get('name', project.name)))}")
    changes: list[str] = []
    for section in ("dependencies", "devDependencies"):
        if isinstance(pj.get(section), dict):
            changes.extend(update_dependencies(pj[section], params.tag, lookup, ci.messages))
    project.write("package.json", dump_package_json(pj))
    if not is_clean(project.base_dir):
        ci.messages.respond(f"Versions updated. Running {code_line('npm install')}")
        run_command(["npm", "i"], cwd=project.base_dir, env={**os.environ, "NODE_ENV": "development"}, ctx=ci.ctx)
    params.commit_message = f"Update @atomist NPM dependencies to tag {params.tag}\n\n" + "\n".join(changes) + f"\n\n{DRY_RUN_MESSAGE}"
    return project


def _branch_commit(ci: CommandListenerInvocation[Any]) -> EditMode:
    params: UpdateAtomistDependenciesParameters = ci.parameters
    return EditMode(
        message=params.commit_message or "Update @atomist NPM dependencies",
        branch=f"atomist-update-{params.tag}-{int(time.time() * 1000)}",
    )


TRY_TO_UPDATE_ATOMIST_DEPENDENCIES = CodeTransformRegistration(
    name="UpdateAtomistDependencies",
    transform=update_atomist_dependencies_transform,
    description="Update @atomist NPM dependencies",
    intent=("update atomist dependencies", "update deps"),
    parameters_maker=UpdateAtomistDependenciesParameters,
    transform_presentation=_branch_commit,
)
