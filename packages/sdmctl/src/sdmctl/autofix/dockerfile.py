from __future__ import annotations

import re
from typing import Any, Callable

from ..core.logging import log_event
from ..core.process import run_command
from ..sdm.progress_log import StringCapturingProgressLog
from ..sdm.project import Project
from ..sdm.push_tests import TO_DEFAULT_BRANCH, all_satisfied, has_file
from ..sdm.registrations import AutofixRegistration, CommandListenerInvocation

VersionLookup = Callable[[str], "str | None"]


def update_npm_install(content: str, module: str, version: str) -> str:
    pattern = re.compile(
        r"npm(\s+(?:.*\s+)?)(?:i|install|add)(\s+(?:.*\s+)?)" + re.escape(module) + r"(?:@\S+)?(.*)"
    )
    return pattern.sub(
        lambda m: f"npm{m.group(1)}install{m.group(2)}{module}@{version}{m.group(3)}",
        content,
        count=1,
    )


def npm_show_version(module: str) -> str | None:
    log = StringCapturingProgressLog()
    result = run_command(["npm", "show", module, "version"], log=log)
    if result.code != 0:
        return None
    return log.log.strip() or None


def update_to_latest_version(module: str, content: str, lookup: VersionLookup = npm_show_version) -> str:
    version = lookup(module)
    if version is None:
        return content
    log_event(None, "info", "dockerfile", "update-npm-install", module=module, version=version)
    return update_npm_install(content, module, version)


def npm_dockerfile_fix(*modules: str, lookup: VersionLookup = npm_show_version) -> AutofixRegistration:
    def _transform(project: Project, ci: CommandListenerInvocation[Any]) -> Project:
        content = project.read("Dockerfile")
        if content is None:
            return project
        updated = content
        for module in modules:
            updated = update_to_latest_version(module, updated, lookup)
        if updated != content:
            project.write("Dockerfile", updated)
        return project

    return AutofixRegistration(
        name="Dockerfile NPM install",
        push_test=all_satisfied(has_file("Dockerfile"), TO_DEFAULT_BRANCH),
        transform=_transform,
    )
