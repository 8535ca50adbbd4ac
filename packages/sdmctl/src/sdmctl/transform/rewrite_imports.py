from __future__ import annotations

import re
import time
from dataclasses import dataclass
from typing import Any

from ..sdm.project import Project
from ..sdm.registrations import AutofixRegistration, CodeTransformRegistration, CommandListenerInvocation, EditMode
from ..support.push_tests import IS_TYPESCRIPT

DEFAULT_MODULES = "@atomist/automation-client,@atomist/sdm,@atomist/sdm-core"


@dataclass
class RewriteImportsParameters:
    module: str = DEFAULT_MODULES
    commit_message: str | None = None


def _import_pattern(module: str) -> re.Pattern[str]:
    return re.compile(
        r'import\s*?{([\sa-zA-Z,-]*?)}\s*from\s*"' + re.escape(module) + r'(?:/.*"|");',
        re.IGNORECASE,
    )


def rewrite_imports(content: str, module: str) -> str:
    """Collapse every named import from `module` or its deep paths into one import from the module index."""
    names: list[str] = []
    statements: list[str] = []
    for match in _import_pattern(module).finditer(content):
        names.extend(part.strip() for part in match.group(1).split(","))
        statements.append(match.group(0))
    if not statements:
        return content
    if len(names) > 1:
        members = sorted(dict.fromkeys(n for n in names if n), key=lambda n: (n.lower(), n))
        joined = ",\n    ".join(members)
        replacement = f'import {{\n    {joined},\n}} from "{module}";'
    else:
        replacement = f'import {{ {names[0]} }} from "{module}";'
    out = content.replace(statements[0], replacement, 1)
    for statement in statements[1:]:
        out = out.replace(f"{statement}\n", "", 1)
    return out


def rewrite_imports_transform(project: Project, ci: CommandListenerInvocation[Any]) -> Project:
    params: RewriteImportsParameters = ci.parameters or RewriteImportsParameters()
    modules = [m.strip() for m in params.module.split(",") if m.strip()]
    for rel in project.files("**/*.ts"):
        content = project.read(rel) or ""
        updated = content
        for module in modules:
            updated = rewrite_imports(updated, module)
        if updated != content:
            project.write(rel, updated)
    return project


def _branch_commit(ci: CommandListenerInvocation[Any]) -> EditMode:
    params: RewriteImportsParameters = ci.parameters
    return EditMode(
        message=params.commit_message or "Rewrite imports",
        branch=f"rewrite-imports-{int(time.time() * 1000)}",
    )


REWRITE_IMPORTS = CodeTransformRegistration(
    name="RewriteImports",
    transform=rewrite_imports_transform,
    description="Rewrite imports to come from index",
    intent=("rewrite imports",),
    parameters_maker=RewriteImportsParameters,
    transform_presentation=_branch_commit,
)

TYPESCRIPT_IMPORTS = AutofixRegistration(
    name="TypeScript imports",
    transform=rewrite_imports_transform,
    push_test=IS_TYPESCRIPT,
    parameters=RewriteImportsParameters(commit_message="Autofix: TypeScript imports"),
)
