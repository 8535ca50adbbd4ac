"""TSLint inspection and autofix."""

from __future__ import annotations

import json
import os
from importlib import resources
from typing import Any

from ..core.logging import log_event
from ..core.process import run_command
from ..sdm.project import Project
from ..sdm.push_tests import all_satisfied, has_file
from ..sdm.registrations import (
    AutofixRegistration,
    CodeInspectionRegistration,
    CommandListenerInvocation,
)
from ..sdm.review import ProjectReview, ReviewComment, SourceLocation
from ..support.push_tests import IS_TYPESCRIPT

TSLINT_JSON = "tslint.json"
MAX_COMMENTS = 20


def tslint_review_comment(detail: str, severity: str = "error", source_location: SourceLocation | None = None) -> ReviewComment:
    return ReviewComment(
        severity=severity,
        detail=detail,
        category="lint",
        subcategory="tslint",
        source_location=source_location,
    )


def map_tslint_results_to_review_comments(tslint_output: str, base_dir: str) -> list[ReviewComment]:
    try:
        results = json.loads(tslint_output)
    except json.JSONDecodeError as exc:
        log_event(None, "error", "tslint", "parse", detail=f"Failed to parse TSLint output '{tslint_output}': {exc}")
        return []
    if not isinstance(results, list):
        log_event(None, "error", "tslint", "parse", detail=f"Unexpected TSLint output '{tslint_output}': expected a list")
        return []
    prefix = base_dir + os.sep
    try:
        return [_review_comment(result, prefix) for result in results]
    except (KeyError, TypeError, ValueError, AttributeError) as exc:
        log_event(None, "error", "tslint", "parse", detail=f"Unexpected TSLint result in '{tslint_output}': {exc!r}")
        return []


def _review_comment(result: dict[str, Any], prefix: str) -> ReviewComment:
    start = result["startPosition"]
    return tslint_review_comment(
        str(result["failure"]),
        "error" if result.get("ruleSeverity") == "ERROR" else "warn",
        SourceLocation(
            path=str(result["name"]).replace(prefix, "", 1),
            offset=int(start["position"]),
            column_from1=int(start["character"]) + 1,
            line_from1=int(start["line"]) + 1,
        ),
    )


def truncate_comments(comments: list[ReviewComment], max_comments: int = MAX_COMMENTS) -> list[ReviewComment]:
    if len(comments) <= max_comments:
        return comments
    omitted = len(comments) - max_comments
    more = tslint_review_comment(f"{omitted} additional errors and/or warnings were omitted from this report")
    return [*comments[:max_comments], more]


def run_tslint_on_project(project: Project, ci: CommandListenerInvocation[Any] | None = None) -> ProjectReview:
    ctx = ci.ctx if ci is not None else None
    review = ProjectReview(repo=project.name)
    if not project.has_file(TSLINT_JSON):
        return review
    cwd = str(project.base_dir)
    config = resources.files("sdmctl.resources") / TSLINT_JSON
    args = ["npx", "tslint", "--config", str(config), "--format", "json", "--project", cwd, "--force"]
    log_event(ctx, "debug", "tslint", "run", project=project.name, cwd=cwd)
    result = run_command(args, cwd=project.base_dir, ctx=ctx)
    if result.code != 0:
        log_event(ctx, "error", "tslint", "run", detail=f"Failed to run TSLint: {result.stderr.strip()}", code=result.code)
        return review
    if result.stderr:
        log_event(ctx, "debug", "tslint", "stderr", detail=result.stderr.strip())
    review.comments.extend(truncate_comments(map_tslint_results_to_review_comments(result.stdout, cwd)))
    return review


def tslint_fix_transform(project: Project, ci: CommandListenerInvocation[Any] | None = None) -> Project:
    ctx = ci.ctx if ci is not None else None
    result = run_command(
        ["npx", "tslint", "--fix", "--config", TSLINT_JSON, "--project", "."],
        cwd=project.base_dir,
        ctx=ctx,
    )
    log_event(ctx, "info", "tslint", "fix", project=project.name, code=result.code)
    return project


RUN_TSLINT = CodeInspectionRegistration(name="Run TSLint on project", inspection=run_tslint_on_project)

TSLINT_FIX = AutofixRegistration(
    name="tslint",
    push_test=all_satisfied(IS_TYPESCRIPT, has_file(TSLINT_JSON)),
    transform=tslint_fix_transform,
)
