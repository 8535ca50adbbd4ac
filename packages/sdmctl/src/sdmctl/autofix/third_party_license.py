"""Render runtime dependency licenses into legal/THIRD_PARTY.md."""

from __future__ import annotations

import json
from typing import Any, Mapping

from ..core.logging import log_event
from ..core.process import run_command
from ..sdm.project import Project
from ..sdm.push_tests import PushTest
from ..sdm.registrations import AutofixRegistration, CommandListenerInvocation
from ..support.push_tests import IS_NODE

LICENSE_FILE_NAME = "legal/THIRD_PARTY.md"
LICENSE_MAPPING = {"Apache 2.0": "Apache-2.0"}
LICENSE_TABLE_HEADER = "| Name | Version | Publisher | Repository |\n|------|---------|-----------|------------|"
SUMMARY_TABLE_HEADER = "| License | Count |\n|---------|-------|"


def normalize_license(raw: str) -> str:
    license_id = raw[:-1] if raw.endswith("*") else raw
    if license_id.startswith("(") and license_id.endswith(")"):
        license_id = license_id[1:-1]
    return LICENSE_MAPPING.get(license_id, license_id)


def group_by_license(dependencies: Mapping[str, Mapping[str, Any]]) -> dict[str, list[dict[str, Any]]]:
    grouped: dict[str, list[dict[str, Any]]] = {}
    for key, info in dependencies.items():
        licenses = info.get("licenses", "UNKNOWN")
        for raw in licenses if isinstance(licenses, list) else [licenses]:
            grouped.setdefault(normalize_license(str(raw)), []).append({**info, "name": key})
    return grouped


def _dependency_row(dep: Mapping[str, Any]) -> str:
    ix = dep["name"].rfind("@")
    name, version = dep["name"][:ix], dep["name"][ix + 1 :]
    repository = dep.get("repository") or ""
    return f"|`{name}`|`{version}`|{dep.get('publisher') or ''}|[{repository}]({repository})|"


def render_third_party_licenses(package_name: str, dependencies: Mapping[str, Mapping[str, Any]]) -> str:
    grouped = group_by_license(dependencies)
    summary = sorted(f"|{license_id}|{len(deps)}|" for license_id, deps in grouped.items())
    details = sorted(
        f"\n#### {license_id}\n\n{LICENSE_TABLE_HEADER}\n" + "\n".join(_dependency_row(d) for d in deps)
        for license_id, deps in grouped.items()
    )
    return f"""# {package_name}

This page details all runtime OSS dependencies of `{package_name}`.

## Licenses

### Summary

{SUMMARY_TABLE_HEADER}
{chr(10).join(summary)}
{chr(10).join(details)}

## Contact

Please send any questions or inquires to [oss@atomist.com](mailto:oss@atomist.com).

---

Created by [Atomist][atomist].
Need Help?  [Join our Slack team][slack].

[atomist]: https://atomist.com/ (Atomist - Development Automation)
[slack]: https://join.atomist.com/ (Atomist Community Slack)
"""


def add_third_party_license_transform(project: Project, ci: CommandListenerInvocation[Any] | None = None) -> Project:
    ctx = ci.ctx if ci is not None else None
    install = ["npm", "ci"] if project.has_file("package-lock.json") else ["npm", "i"]
    if run_command(install, cwd=project.base_dir, ctx=ctx).code != 0:
        return project
    pj = json.loads(project.read("package.json") or "{}")
    checked = run_command(["npx", "license-checker", "--production", "--json"], cwd=project.base_dir, ctx=ctx)
    try:
        dependencies = json.loads(checked.stdout) if checked.code == 0 else None
    except json.JSONDecodeError:
        dependencies = None
    if not isinstance(dependencies, dict):
        log_event(ctx, "error", "third-party-license", "license-checker", project=project.name, code=checked.code)
        return project
    project.delete_directory("node_modules")
    project.write(LICENSE_FILE_NAME, render_third_party_licenses(str(pj.get("name", project.name)), dependencies))
    return project


def add_third_party_license(push_test: PushTest) -> AutofixRegistration:
    return AutofixRegistration(name="Third party licenses", push_test=push_test, transform=add_third_party_license_transform)


ADD_THIRD_PARTY_LICENSE = add_third_party_license(IS_NODE)
