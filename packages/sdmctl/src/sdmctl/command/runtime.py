from __future__ import annotations

import argparse
from pathlib import Path

from ..cli.output import build_base_payload, emit_result, render_messages
from ..cli.shared import command_invocation
from ..core.context import RunContext
from ..core.serialize import dumps_json
from ..errors import ScriptError
from ..exit_codes import ERR_USAGE
from ..machine.machine import create_machine
from ..sdm.goals import GoalState
from ..sdm.machine import SoftwareDeliveryMachine
from ..sdm.registrations import CommandHandlerRegistration, CommandListenerInvocation
from .approval import APPROVE_COMMAND_NAME, CANCEL_COMMAND_NAME, ApprovalParameters, goal_file_lookup
from .badge import BadgeParameters
from .tag import CreateTagParameters


def _command(sdm: SoftwareDeliveryMachine, name: str) -> CommandHandlerRegistration:
    registration = sdm.find_command(name)
    if registration is None:
        raise ScriptError(f"command {name} is not registered", ERR_USAGE, kind="command_unknown")
    return registration


def _emit_messages(ctx: RunContext, ns: argparse.Namespace, ci: CommandListenerInvocation[object], **fields: object) -> None:
    payload = {**build_base_payload(ctx), **fields, "messages": ci.messages.to_payload()}
    emit_result(ctx, payload, ns.json, render_messages(ci.messages))


def run_tag_command(ctx: RunContext, ns: argparse.Namespace) -> int:
    if ns.tag_cmd != "create":
        return 2
    sdm, _ = create_machine(ctx.config)
    params = CreateTagParameters(owner=ns.owner, repo=ns.repo, name=ns.name, sha=ns.sha, branch=ns.branch)
    ci = command_invocation(ctx, params)
    result = _command(sdm, "CreateTag").listener(ci)
    _emit_messages(ctx, ns, ci, tag=ns.name, repo=f"{ns.owner}/{ns.repo}")
    return result.code


def run_approval_command(ctx: RunContext, ns: argparse.Namespace) -> int:
    goals_file = Path(ns.goals_file)
    if not goals_file.is_file():
        raise ScriptError(f"goals file not found: {goals_file}", ERR_USAGE, kind="goals_file_missing")
    sdm, _ = create_machine(ctx.config, goal_lookup=goal_file_lookup(goals_file))
    name = APPROVE_COMMAND_NAME if ns.cmd == "approve" else CANCEL_COMMAND_NAME
    params = ApprovalParameters(
        goal_set_id=ns.goal_set_id,
        goal_unique_name=ns.goal,
        goal_state=GoalState(ns.state),
        msg_id=ns.msg_id,
    )
    ci = command_invocation(ctx, params)
    updated = _command(sdm, name).listener(ci)
    if ns.out_file:
        Path(ns.out_file).write_text(dumps_json(updated.to_payload(), pretty=True) + "\n", encoding="utf-8")
    _emit_messages(ctx, ns, ci, goal=updated.to_payload())
    return 0


def run_du_command(ctx: RunContext, ns: argparse.Namespace) -> int:
    sdm, _ = create_machine(ctx.config)
    ci = command_invocation(ctx, None)
    code = _command(sdm, "DiskUsageCommandRegistration").listener(ci)
    _emit_messages(ctx, ns, ci, code=code)
    return code


def run_badge_command(ctx: RunContext, ns: argparse.Namespace) -> int:
    sdm, _ = create_machine(ctx.config)
    ci = command_invocation(ctx, BadgeParameters(owner=ns.owner, repo=ns.repo), workspace_id=ns.workspace_id)
    badge = _command(sdm, "CreateSdmGoalBadgeUrl").listener(ci)
    _emit_messages(ctx, ns, ci, url=badge)
    return 0


def configure_tag_parser(sub: argparse._SubParsersAction[argparse.ArgumentParser]) -> None:
    p = sub.add_parser("tag", help="GitHub tag commands")
    tag_sub = p.add_subparsers(dest="tag_cmd", required=True)
    create = tag_sub.add_parser("create", help="create an annotated tag on a branch tip or commit")
    create.add_argument("--owner", required=True)
    create.add_argument("--repo", required=True)
    create.add_argument("--name", required=True, help="tag name")
    create.add_argument("--sha", help="commit to tag (defaults to the branch tip)")
    create.add_argument("--branch", help="branch to tag (defaults to the default branch)")
    create.add_argument("--json", action="store_true", help="emit JSON output")


def configure_approval_parsers(sub: argparse._SubParsersAction[argparse.ArgumentParser]) -> None:
    approve = sub.add_parser("approve", help="approve a goal waiting for approval")
    cancel = sub.add_parser("cancel-approval", help="revert the approval of a goal")
    for q, default_state in ((approve, GoalState.WAITING_FOR_APPROVAL), (cancel, GoalState.APPROVED)):
        q.add_argument("--goals-file", required=True, help="JSON file holding the goal event(s)")
        q.add_argument("--goal-set-id", required=True)
        q.add_argument("--goal", required=True, help="goal unique name")
        q.add_argument("--state", default=default_state.value, choices=[s.value for s in GoalState])
        q.add_argument("--msg-id", help="chat message id to update")
        q.add_argument("--out-file", help="write the updated goal event to this file")
        q.add_argument("--json", action="store_true", help="emit JSON output")


def configure_du_parser(sub: argparse._SubParsersAction[argparse.ArgumentParser]) -> None:
    p = sub.add_parser("du", help="report disk usage of the machine")
    p.add_argument("--json", action="store_true", help="emit JSON output")


def configure_badge_parser(sub: argparse._SubParsersAction[argparse.ArgumentParser]) -> None:
    p = sub.add_parser("badge", help="create a goal set badge url for a repository")
    p.add_argument("--owner", required=True)
    p.add_argument("--repo", required=True)
    p.add_argument("--workspace-id", default="", help="workspace (team) id")
    p.add_argument("--json", action="store_true", help="emit JSON output")
