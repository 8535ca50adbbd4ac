from __future__ import annotations

from importlib import resources
from typing import Any

from ..sdm.project import Project
from ..sdm.registrations import AutofixRegistration, CommandListenerInvocation

COMMUNITY_FILES = ("CODE_OF_CONDUCT.md", "CONTRIBUTING.md")


def packaged_file(name: str) -> str:
    return resources.files("sdmctl.resources").joinpath(name).read_text(encoding="utf-8")


def add_community_files_to_project(project: Project, ci: CommandListenerInvocation[Any] | None = None) -> Project:
    for name in COMMUNITY_FILES:
        project.write(name, packaged_file(name))
    return project


ADD_COMMUNITY_FILES = AutofixRegistration(name="Add Community Files", transform=add_community_files_to_project)
