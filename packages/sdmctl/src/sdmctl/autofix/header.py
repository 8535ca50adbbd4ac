"""License header detection and insertion."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterator

from ..core.logging import log_event
from ..sdm.globs import glob_match
from ..sdm.project import Project
from ..sdm.registrations import CodeTransformRegistration, CommandListenerInvocation, EditMode

C_FAMILY_LANGUAGE_SOURCE_FILES = "**/*.{d,php,cs,go,groovy,java,js,kt,scala,sc,swift,ts}"
TSLINT_DISABLE = "/* tslint:disable */"

APACHE_HEADER = """/*
 * Copyright © 2018 Atomist, Inc.
 *
 * Licensed under the Apache License, Version 2.0 (the "License");
 * you may not use this file except in compliance with the License.
 * You may obtain a copy of the License at
 *
 *     http://www.apache.org/licenses/LICENSE-2.0
 *
 * Unless required by applicable law or agreed to in writing, software
 * distributed under the License is distributed on an "AS IS" BASIS,
 * WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
 * See the License for the specific language governing permissions and
 * limitations under the License.
 */"""


@dataclass
class AddHeaderParameters:
    glob: str = C_FAMILY_LANGUAGE_SOURCE_FILES
    exclude_glob: str | None = None
    license: str = "apache"
    commit_message: str = "Add missing license headers"
    branch: str | None = None

    @property
    def header(self) -> str:
        if self.license == "apache":
            return APACHE_HEADER
        raise ValueError(f"'{self.license}' is not a supported license")


@dataclass
class HeaderSummary:
    matched: list[str] = field(default_factory=list)
    added: list[str] = field(default_factory=list)
    different: list[str] = field(default_factory=list)

    def to_payload(self) -> dict[str, object]:
        return {"matched": self.matched, "added": self.added, "different": self.different}


def _separate_prefix_lines(content: str) -> tuple[str, str]:
    if content.startswith("#!"):
        first, _, rest = content.partition("\n")
        return first + "\n", rest
    return "", content


def has_different_header(header: str, content: str) -> bool:
    check = _separate_prefix_lines(content)[1]
    if check.startswith("/*"):
        return not (check.startswith(header) or check.startswith(TSLINT_DISABLE))
    return False


def _classify(project: Project, params: AddHeaderParameters) -> Iterator[tuple[str, str, str]]:
    header = params.header
    for rel in project.files(params.glob):
        if params.exclude_glob and glob_match(rel, params.exclude_glob):
            continue
        content = project.read(rel) or ""
        if header in content:
            yield rel, "present", content
        elif has_different_header(header, content):
            yield rel, "different", content
        else:
            yield rel, "missing", content


def check_headers(project: Project, params: AddHeaderParameters | None = None) -> HeaderSummary:
    """Report files missing the header (as `added`) without touching the project."""
    summary = HeaderSummary()
    for rel, status, _ in _classify(project, params or AddHeaderParameters()):
        summary.matched.append(rel)
        if status == "different":
            summary.different.append(rel)
        elif status == "missing":
            summary.added.append(rel)
    return summary


def add_header_transform(project: Project, ci: CommandListenerInvocation[Any]) -> HeaderSummary:
    params: AddHeaderParameters = ci.parameters or AddHeaderParameters()
    summary = HeaderSummary()
    for rel, status, content in _classify(project, params):
        summary.matched.append(rel)
        if status == "different":
            summary.different.append(rel)
        elif status == "missing":
            prefix, rest = _separate_prefix_lines(content)
            project.write(rel, prefix + params.header + "\n\n" + rest)
            summary.added.append(rel)
    log_event(
        ci.ctx,
        "info",
        "header",
        "add",
        project=project.name,
        matched=len(summary.matched),
        added=len(summary.added),
        different=len(summary.different),
    )
    return summary


def _presentation(ci: CommandListenerInvocation[Any]) -> EditMode:
    params: AddHeaderParameters = ci.parameters
    return EditMode(message=params.commit_message, branch=params.branch or "add-license-headers")


ADD_APACHE_LICENSE_TRANSFORM = CodeTransformRegistration(
    name="addHeader",
    transform=add_header_transform,
    description="Add missing license headers",
    intent=("add license headers",),
    parameters_maker=AddHeaderParameters,
    transform_presentation=_presentation,
)
