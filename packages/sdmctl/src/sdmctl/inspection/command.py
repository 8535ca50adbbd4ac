from __future__ import annotations

import argparse
from pathlib import Path

from ..cli.output import build_base_payload, emit_result
from ..cli.shared import command_invocation, project_from_args
from ..core.context import RunContext
from ..errors import ScriptError
from ..exit_codes import ERR_USAGE
from ..sdm.review import ReviewComment
from .review_comments import sort_review_comments
from .tslint import map_tslint_results_to_review_comments, run_tslint_on_project, truncate_comments


def _comment_line(comment: ReviewComment) -> str:
    loc = comment.source_location
    where = "" if loc is None else f"{loc.path}:{loc.line_from1 or 0}:{loc.column_from1 or 0} "
    return f"{comment.severity:<5} {where}{comment.detail}"


def run_inspect_command(ctx: RunContext, ns: argparse.Namespace) -> int:
    if ns.inspect_cmd != "tslint":
        return 2
    project = project_from_args(ctx, ns)
    if ns.results:
        results = Path(ns.results)
        if not results.is_file():
            raise ScriptError(f"TSLint results file not found: {results}", ERR_USAGE, kind="results_missing")
        comments = truncate_comments(
            map_tslint_results_to_review_comments(results.read_text(encoding="utf-8"), str(project.base_dir))
        )
    else:
        comments = run_tslint_on_project(project, command_invocation(ctx, None)).comments
    ordered = sort_review_comments(comments)
    errors = sum(1 for c in ordered if c.severity == "error")
    payload = {
        **build_base_payload(ctx, "ok" if not errors else "error"),
        "project": project.name,
        "errors": errors,
        "comments": [c.to_payload() for c in ordered],
    }
    text = "\n".join([*(_comment_line(c) for c in ordered), f"{len(ordered)} comments, {errors} errors"])
    emit_result(ctx, payload, ns.json, text)
    return 0 if not errors else 1


def configure_inspect_parser(sub: argparse._SubParsersAction[argparse.ArgumentParser]) -> None:
    p = sub.add_parser("inspect", help="code inspection commands")
    inspect_sub = p.add_subparsers(dest="inspect_cmd", required=True)
    tslint = inspect_sub.add_parser("tslint", help="run TSLint and report review comments")
    tslint.add_argument("--project", default=".", help="project directory")
    tslint.add_argument("--repo", help="project name (defaults to the directory name)")
    tslint.add_argument("--owner", default="atomist", help="repository owner")
    tslint.add_argument("--results", help="map an existing `tslint --format json` output file instead of running TSLint")
    tslint.add_argument("--json", action="store_true", help="emit JSON output")
