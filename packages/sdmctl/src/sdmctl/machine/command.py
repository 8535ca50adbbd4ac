from __future__ import annotations

import argparse
import json

from ..cli.output import build_base_payload, emit_result
from ..cli.shared import add_project_arguments, goal_invocation, project_from_args, push_from_args, push_invocation
from ..core.context import RunContext
from ..errors import ScriptError
from ..exit_codes import ERR_USAGE
from ..sdm.goals import PRODUCTION_ENVIRONMENT, STAGING_ENVIRONMENT, GoalState
from ..sdm.progress_log import StringCapturingProgressLog
from ..sdm.push import PushListenerInvocation
from ..support.push_tests import is_maven_project
from .goals import DeliveryGoals
from .k8_support import deployment_data, ingress_from_goal, namespace_from_goal
from .machine import create_machine
from .release import (
    maven_project_identifier,
    node_project_identifier,
    project_version,
    release_or_prerelease,
    release_version,
)

ENVIRONMENT_ALIASES = {
    "testing": STAGING_ENVIRONMENT,
    "staging": STAGING_ENVIRONMENT,
    "production": PRODUCTION_ENVIRONMENT,
    "prod": PRODUCTION_ENVIRONMENT,
}


def _environment(raw: str) -> str:
    return ENVIRONMENT_ALIASES.get(raw, raw)


def _goal_row(goal, pli: PushListenerInvocation | None = None) -> dict[str, object]:
    row: dict[str, object] = {
        **goal.definition.to_payload(),
        "fulfillments": [f.name for f in goal.fulfillments],
    }
    if pli is not None:
        fulfillment = goal.fulfillment_for(pli)
        row["fulfillment"] = fulfillment.name if fulfillment else None
    return row


def _find_goal(goals: DeliveryGoals, name: str):
    goal = goals.find(name)
    if goal is None:
        known = ", ".join(sorted(g.unique_name for g in goals.all_goals))
        raise ScriptError(f"unknown goal '{name}' (known: {known})", ERR_USAGE, kind="goal_unknown")
    return goal


def run_plan_command(ctx: RunContext, ns: argparse.Namespace) -> int:
    sdm, _ = create_machine(ctx.config)
    pli = push_invocation(ctx, ns)
    rule = sdm.plan(pli)
    planned = rule.goals.planned if rule is not None else ()
    payload = {
        **build_base_payload(ctx),
        "push": {"repo": pli.push.slug, "branch": pli.push.branch, "sha": pli.push.sha},
        "rule": rule.name if rule is not None else None,
        "goal_set": rule.goals.name if rule is not None else None,
        "sets_goals": bool(rule is not None and rule.sets_goals),
        "goals": [{**_goal_row(p.goal, pli), "preconditions": list(p.preconditions)} for p in planned],
    }
    lines = [f"{pli.push.slug}@{pli.push.branch}: {payload['rule'] or 'no rule matched'}"]
    if rule is not None:
        lines.append(f"goal set: {rule.goals.name}")
        for p in planned:
            after = f" (after {', '.join(p.preconditions)})" if p.preconditions else ""
            lines.append(f"- {p.goal.unique_name}{after}")
    emit_result(ctx, payload, ns.json, "\n".join(lines))
    return 0


def run_goal_command(ctx: RunContext, ns: argparse.Namespace) -> int:
    _, goals = create_machine(ctx.config)
    if ns.goal_cmd == "list":
        payload = {
            **build_base_payload(ctx),
            "goals": [_goal_row(g) for g in sorted(goals.all_goals, key=lambda g: g.unique_name)],
            "goal_sets": [s.to_payload() for s in goals.goal_sets],
        }
        lines = [f"{g.unique_name}: {', '.join(f.name for f in g.fulfillments) or '-'}" for g in goals.all_goals]
        lines.extend(f"[{s.name}] {' '.join(g.unique_name for g in s.goals)}" for s in goals.goal_sets)
        emit_result(ctx, payload, ns.json, "\n".join(lines))
        return 0
    if ns.goal_cmd == "run":
        goal = _find_goal(goals, ns.name)
        pli = push_invocation(ctx, ns)
        log = StringCapturingProgressLog()
        gi = goal_invocation(ctx, goal, ns.goal_set, pli, log, data=ns.data)
        result = goal.execute(gi, pli)
        state = result.state or (GoalState.SUCCESS if result.ok else GoalState.FAILURE)
        payload = {
            **build_base_payload(ctx, "ok" if result.ok else "error"),
            "goal": goal.unique_name,
            "result": result.to_payload(),
            "log": log.log,
            "messages": gi.messages.to_payload(),
        }
        emit_result(ctx, payload, ns.json, f"{goal.unique_name}: {state.value}{': ' + result.message if result.message else ''}")
        return result.code
    return 2


def run_k8s_command(ctx: RunContext, ns: argparse.Namespace) -> int:
    if ns.k8s_cmd == "namespace":
        value: object = namespace_from_goal(ns.repo, _environment(ns.environment))
        text = str(value)
    elif ns.k8s_cmd == "ingress":
        value = ingress_from_goal(ns.repo, ns.ns)
        text = "no ingress" if value is None else " ".join(f"{k}={v}" for k, v in sorted(value.items()))
    elif ns.k8s_cmd == "deployment":
        pli = push_invocation(ctx, ns)
        goals = create_machine(ctx.config)[1]
        goal = goals.production_deployment if _environment(ns.environment) == PRODUCTION_ENVIRONMENT else goals.staging_deployment
        event = goal_invocation(ctx, goal, "kubernetes", pli, StringCapturingProgressLog()).goal_event
        value = deployment_data(event.evolve(environment=_environment(ns.environment)), pli.project, ctx.config)
        text = " ".join(f"{k}={v}" for k, v in sorted(value.items()))
    else:
        return 2
    emit_result(ctx, {**build_base_payload(ctx), ns.k8s_cmd: value}, ns.json, text)
    return 0


def run_release_command(ctx: RunContext, ns: argparse.Namespace) -> int:
    if ns.release_cmd != "version":
        return 2
    if ns.release_of:
        version = release_or_prerelease(release_version(ns.release_of), ns.tag)
        kind = "release"
    else:
        project = project_from_args(ctx, ns)
        push = push_from_args(ns, project)
        maven = is_maven_project(project)
        identity = (maven_project_identifier if maven else node_project_identifier)(project)
        base = ns.base or (identity.version.replace("-SNAPSHOT", "") if maven else identity.version)
        version = project_version(base, push.branch, push.default_branch)
        kind = "prerelease"
    emit_result(ctx, {**build_base_payload(ctx), "kind": kind, "version": version}, ns.json, version)
    return 0


def _json_data(raw: str | None) -> str | None:
    if raw is None:
        return None
    try:
        json.loads(raw)
    except json.JSONDecodeError as exc:
        raise argparse.ArgumentTypeError(f"not valid JSON: {exc}") from exc
    return raw


def configure_plan_parser(sub: argparse._SubParsersAction[argparse.ArgumentParser]) -> None:
    p = sub.add_parser("plan", help="show the push rule and goal set chosen for a push of a local project")
    add_project_arguments(p)
    p.add_argument("--json", action="store_true", help="emit JSON output")


def configure_goal_parser(sub: argparse._SubParsersAction[argparse.ArgumentParser]) -> None:
    p = sub.add_parser("goal", help="goal commands")
    goal_sub = p.add_subparsers(dest="goal_cmd", required=True)
    list_p = goal_sub.add_parser("list", help="list goals, their fulfillments and goal sets")
    list_p.add_argument("--json", action="store_true", help="emit JSON output")
    run_p = goal_sub.add_parser("run", help="execute one goal against a local project")
    run_p.add_argument("name", help="goal unique name")
    run_p.add_argument("--goal-set", default="manual", help="goal set name recorded on the goal event")
    run_p.add_argument("--data", type=_json_data, help="goal data as JSON, e.g. '{\"version\": \"1.2.3\"}'")
    add_project_arguments(run_p)
    run_p.add_argument("--json", action="store_true", help="emit JSON output")


def configure_k8s_parser(sub: argparse._SubParsersAction[argparse.ArgumentParser]) -> None:
    p = sub.add_parser("k8s", help="Kubernetes deployment data derived from repository names")
    k8s_sub = p.add_subparsers(dest="k8s_cmd", required=True)
    namespace = k8s_sub.add_parser("namespace", help="namespace for a repository and environment")
    namespace.add_argument("--repo", required=True)
    namespace.add_argument("--environment", default="testing", help="testing|production or a goal environment")
    ingress = k8s_sub.add_parser("ingress", help="ingress for a repository in a namespace")
    ingress.add_argument("--repo", required=True)
    ingress.add_argument("--ns", required=True)
    deployment = k8s_sub.add_parser("deployment", help="deployment data for a local project")
    add_project_arguments(deployment)
    deployment.add_argument("--environment", default="testing", help="testing|production or a goal environment")
    for q in (namespace, ingress, deployment):
        q.add_argument("--json", action="store_true", help="emit JSON output")


def configure_release_parser(sub: argparse._SubParsersAction[argparse.ArgumentParser]) -> None:
    p = sub.add_parser("release", help="release helpers")
    release_sub = p.add_subparsers(dest="release_cmd", required=True)
    version = release_sub.add_parser("version", help="compute a prerelease or release version")
    add_project_arguments(version)
    version.add_argument("--base", help="base version (defaults to the project's version)")
    version.add_argument("--release-of", help="prerelease version to turn into its release version")
    version.add_argument("--json", action="store_true", help="emit JSON output")
