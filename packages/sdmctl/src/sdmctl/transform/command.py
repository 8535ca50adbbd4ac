from __future__ import annotations

import argparse
import dataclasses

from ..cli.output import build_base_payload, emit_result, render_messages
from ..cli.shared import command_invocation, project_from_args
from ..core import git
from ..core.context import RunContext
from ..errors import ScriptError
from ..exit_codes import ERR_FAILED, ERR_USAGE
from ..machine.machine import create_machine
from ..sdm.registrations import CodeTransformRegistration


def _parameters(registration: CodeTransformRegistration, pairs: list[str]) -> object:
    values: dict[str, str] = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep:
            raise ScriptError(f"--param expects key=value, got '{pair}'", ERR_USAGE, kind="invalid_param")
        values[key.replace("-", "_")] = value
    if registration.parameters_maker is None:
        if values:
            raise ScriptError(f"{registration.name} takes no parameters", ERR_USAGE, kind="invalid_param")
        return None
    params = registration.parameters_maker()
    known = {f.name for f in dataclasses.fields(params)}
    unknown = sorted(set(values) - known)
    if unknown:
        raise ScriptError(f"unknown parameter(s) for {registration.name}: {', '.join(unknown)}", ERR_USAGE, kind="invalid_param")
    return dataclasses.replace(params, **values)


def run_transform_command(ctx: RunContext, ns: argparse.Namespace) -> int:
    sdm, _ = create_machine(ctx.config)
    if ns.transform_cmd == "list":
        rows = [{"name": t.name, "description": t.description, "intent": list(t.intent)} for t in sdm.code_transforms]
        payload = {**build_base_payload(ctx), "transforms": rows}
        emit_result(ctx, payload, ns.json, "\n".join(f"{r['name']}: {r['description'] or '-'}" for r in rows))
        return 0
    if ns.transform_cmd != "run":
        return 2
    registration = sdm.find_code_transform(ns.name)
    if registration is None:
        raise ScriptError(f"unknown code transform: {ns.name}", ERR_USAGE, kind="transform_unknown")
    project = project_from_args(ctx, ns)
    ci = command_invocation(ctx, _parameters(registration, ns.param))
    result = registration.transform(project, ci)
    edit = registration.transform_presentation(ci) if registration.transform_presentation else None
    message = edit.message if edit else f"Apply code transform {registration.name}"
    committed = False
    if ns.commit and not git.is_clean(project.base_dir):
        outcome = git.commit_all(project.base_dir, message)
        if not outcome.ok:
            raise ScriptError(f"commit failed: {outcome.combined_output}", ERR_FAILED, kind="commit_failed")
        committed = True
    payload = {
        **build_base_payload(ctx),
        "transform": registration.name,
        "project": project.name,
        "edit": dataclasses.asdict(edit) if edit else None,
        "committed": committed,
        "summary": result.to_payload() if hasattr(result, "to_payload") else None,
        "messages": ci.messages.to_payload(),
    }
    text = render_messages(ci.messages) or f"{registration.name}: applied to {project.name}"
    emit_result(ctx, payload, ns.json, text)
    return 0


def configure_transform_parser(sub: argparse._SubParsersAction[argparse.ArgumentParser]) -> None:
    p = sub.add_parser("transform", help="code transform commands")
    transform_sub = p.add_subparsers(dest="transform_cmd", required=True)
    list_p = transform_sub.add_parser("list", help="list registered code transforms")
    list_p.add_argument("--json", action="store_true", help="emit JSON output")
    run_p = transform_sub.add_parser("run", help="apply a code transform to a local project")
    run_p.add_argument("name", help="code transform name")
    run_p.add_argument("--project", default=".", help="project directory")
    run_p.add_argument("--repo", help="project name (defaults to the directory name)")
    run_p.add_argument("--owner", default="atomist", help="repository owner")
    run_p.add_argument("--param", action="append", default=[], help="transform parameter as key=value")
    run_p.add_argument("--commit", action="store_true", help="commit the changes with the transform's message")
    run_p.add_argument("--json", action="store_true", help="emit JSON output")
