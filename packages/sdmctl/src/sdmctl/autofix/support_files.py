from __future__ import annotations

import time
from typing import Any

from ..core.logging import log_event
from ..sdm.project import Project
from ..sdm.push_tests import TO_DEFAULT_BRANCH
from ..sdm.registrations import (
    AutofixRegistration,
    CodeTransformRegistration,
    CommandListenerInvocation,
    EditMode,
)
from .community_files import packaged_file

SUPPORT_FILES = ("tslint.json",)
BUILD_AWARE_MARKER = "[atomist:build-aware]"


def update_support_files_in_project(project: Project, ci: CommandListenerInvocation[Any] | None = None) -> Project:
    for name in SUPPORT_FILES:
        if not project.has_file(name):
            log_event(None, "debug", "support-files", "skip", project=project.name, file=name)
            continue
        try:
            project.write(name, packaged_file(name))
        except OSError as exc:
            log_event(None, "error", "support-files", "update", project=project.name, file=name, error=str(exc))
    return project


def _auto_merge_branch_commit(ci: CommandListenerInvocation[Any]) -> EditMode:
    return EditMode(
        message=f"Update TypeScript support files\n\n{BUILD_AWARE_MARKER}\n",
        branch=f"atomist-update-support-files-{int(time.time() * 1000)}",
        auto_merge="successful-check:rebase",
    )


UPDATE_SUPPORT_FILES_FIX = AutofixRegistration(
    name="Update support files",
    push_test=TO_DEFAULT_BRANCH,
    transform=update_support_files_in_project,
)

UPDATE_SUPPORT_FILES_TRANSFORM = CodeTransformRegistration(
    name="UpdateSupportFilesAndFix",
    transform=update_support_files_in_project,
    description="Update the TypeScript support files",
    intent=("update support files",),
    transform_presentation=_auto_merge_branch_commit,
)
