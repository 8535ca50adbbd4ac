from __future__ import annotations

import argparse
from pathlib import Path

from ..cli.output import build_base_payload, emit_result
from ..cli.shared import add_project_arguments, command_invocation, goal_invocation, project_from_args, push_invocation
from ..core.context import RunContext
from ..errors import ScriptError
from ..exit_codes import ERR_USAGE, ERR_VALIDATION
from ..sdm.progress_log import StringCapturingProgressLog
from .dockerfile import update_npm_install, update_to_latest_version
from .header import AddHeaderParameters, HeaderSummary, add_header_transform, check_headers


def _header_parameters(ns: argparse.Namespace) -> AddHeaderParameters:
    params = AddHeaderParameters(glob=ns.glob, exclude_glob=ns.exclude_glob, license=ns.license)
    try:
        params.header
    except ValueError as exc:
        raise ScriptError(str(exc), ERR_USAGE, kind="unsupported_license") from exc
    return params


def _summary_text(summary: HeaderSummary, verb: str) -> str:
    lines = [f"matched={len(summary.matched)} {verb}={len(summary.added)} different={len(summary.different)}"]
    lines.extend(f"{verb}: {rel}" for rel in summary.added)
    lines.extend(f"different header: {rel}" for rel in summary.different)
    return "\n".join(lines)


def run_header_command(ctx: RunContext, ns: argparse.Namespace) -> int:
    project = project_from_args(ctx, ns)
    params = _header_parameters(ns)
    if ns.header_cmd == "check":
        summary = check_headers(project, params)
        status = "ok" if not summary.added else "error"
        payload = {**build_base_payload(ctx, status), "project": project.name, "missing": summary.added, **summary.to_payload()}
        emit_result(ctx, payload, ns.json, _summary_text(summary, "missing"))
        return 0 if not summary.added else ERR_VALIDATION
    if ns.header_cmd == "add":
        summary = add_header_transform(project, command_invocation(ctx, params))
        payload = {**build_base_payload(ctx), "project": project.name, **summary.to_payload()}
        emit_result(ctx, payload, ns.json, _summary_text(summary, "added"))
        return 0
    return 2


def run_dockerfile_command(ctx: RunContext, ns: argparse.Namespace) -> int:
    if ns.dockerfile_cmd != "update":
        return 2
    path = Path(ns.file)
    if not path.is_absolute():
        path = ctx.repo_root / path
    if not path.is_file():
        raise ScriptError(f"Dockerfile not found: {path}", ERR_USAGE, kind="dockerfile_missing")
    content = path.read_text(encoding="utf-8")
    updated = content
    for module in ns.module:
        updated = update_npm_install(updated, module, ns.version) if ns.version else update_to_latest_version(module, updated)
    changed = updated != content
    if changed and not ns.dry_run:
        path.write_text(updated, encoding="utf-8")
    payload = {**build_base_payload(ctx), "file": str(path), "modules": ns.module, "changed": changed, "dry_run": ns.dry_run}
    emit_result(ctx, payload, ns.json, f"{path}: {'updated' if changed else 'unchanged'}")
    return 0


def run_autofix_command(ctx: RunContext, ns: argparse.Namespace) -> int:
    from ..machine.machine import create_machine

    _, goals = create_machine(ctx.config)
    pli = push_invocation(ctx, ns)
    applicable = goals.autofix.applicable(pli)
    if ns.autofix_cmd == "list":
        names = {a.name for a in applicable}
        rows = [{"name": a.name, "applicable": a.name in names} for a in goals.autofix.autofixes]
        payload = {**build_base_payload(ctx), "project": pli.project.name, "autofixes": rows}
        text = "\n".join(f"{'*' if row['applicable'] else '-'} {row['name']}" for row in rows)
        emit_result(ctx, payload, ns.json, text)
        return 0
    if ns.autofix_cmd == "run":
        selected = [a for a in applicable if not ns.name or a.name in ns.name]
        unknown = sorted(set(ns.name or ()) - {a.name for a in goals.autofix.autofixes})
        if unknown:
            raise ScriptError(f"unknown autofix: {', '.join(unknown)}", ERR_USAGE, kind="autofix_unknown")
        log = StringCapturingProgressLog()
        gi = goal_invocation(ctx, goals.autofix, "autofix", pli, log)
        result = goals.autofix.apply(gi, selected)
        payload = {**build_base_payload(ctx), "project": pli.project.name, "result": result.to_payload(), "log": log.log}
        emit_result(ctx, payload, ns.json, result.message or "")
        return result.code
    return 2


def configure_autofix_parser(sub: argparse._SubParsersAction[argparse.ArgumentParser]) -> None:
    p = sub.add_parser("autofix", help="list or apply the machine's autofixes to a local project")
    autofix_sub = p.add_subparsers(dest="autofix_cmd", required=True)
    list_p = autofix_sub.add_parser("list", help="list autofixes and whether they apply to the project")
    run_p = autofix_sub.add_parser("run", help="apply autofixes to the project")
    run_p.add_argument("--name", action="append", help="only apply the named autofix; repeat for several")
    for q in (list_p, run_p):
        add_project_arguments(q)
        q.add_argument("--json", action="store_true", help="emit JSON output")


def configure_header_parser(sub: argparse._SubParsersAction[argparse.ArgumentParser]) -> None:
    p = sub.add_parser("header", help="license header commands")
    header_sub = p.add_subparsers(dest="header_cmd", required=True)
    check = header_sub.add_parser("check", help="report source files missing the license header")
    add = header_sub.add_parser("add", help="add the license header to source files missing it")
    defaults = AddHeaderParameters()
    for q in (check, add):
        q.add_argument("--project", default=".", help="project directory")
        q.add_argument("--repo", help="project name (defaults to the directory name)")
        q.add_argument("--owner", default="atomist", help="repository owner")
        q.add_argument("--glob", default=defaults.glob, help="files to consider")
        q.add_argument("--exclude-glob", default=None, help="files to skip")
        q.add_argument("--license", default=defaults.license, help="license header to apply")
        q.add_argument("--json", action="store_true", help="emit JSON output")


def configure_dockerfile_parser(sub: argparse._SubParsersAction[argparse.ArgumentParser]) -> None:
    p = sub.add_parser("dockerfile", help="Dockerfile maintenance commands")
    docker_sub = p.add_subparsers(dest="dockerfile_cmd", required=True)
    update = docker_sub.add_parser("update", help="pin `npm install` of modules to a version")
    update.add_argument("--file", default="Dockerfile", help="Dockerfile path")
    update.add_argument("--module", action="append", required=True, help="npm module; repeat for several")
    update.add_argument("--version", help="version to pin (defaults to `npm show <module> version`)")
    update.add_argument("--dry-run", action="store_true", help="report without writing")
    update.add_argument("--json", action="store_true", help="emit JSON output")
