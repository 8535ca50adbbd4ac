from __future__ import annotations

import json
from typing import Any

from ..core.logging import log_event
from ..sdm.project import Project
from ..sdm.registrations import CodeTransformRegistration, CommandListenerInvocation, EditMode

ATOMIST_AUTHOR = {
    "name": "Atomist",
    "email": "support@atomist.com",
    "url": "https://atomist.com/",
}


def dump_package_json(payload: dict[str, Any]) -> str:
    return json.dumps(payload, indent=2, ensure_ascii=False) + "\n"


def update_package_author(content: str) -> str:
    payload = json.loads(content)
    payload["author"] = dict(ATOMIST_AUTHOR)
    return dump_package_json(payload)


def update_package_author_transform(project: Project, ci: CommandListenerInvocation[Any]) -> Project:
    try:
        project.write("package.json", update_package_author(project.read("package.json") or ""))
    except (json.JSONDecodeError, TypeError) as exc:
        ci.messages.respond(":atomist_build_failed: Updating atomist author in package.json failed")
        log_event(ci.ctx, "error", "package-author", "update", project=project.name, error=str(exc))
    return project


UPDATE_PACKAGE_AUTHOR = CodeTransformRegistration(
    name="UpdatePackageAuthor",
    transform=update_package_author_transform,
    description="Update NPM Package author",
    intent=("update package author",),
    transform_presentation=lambda ci: EditMode(message="Update NPM package author to Atomist", branch="master"),
)
