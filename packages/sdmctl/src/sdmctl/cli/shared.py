"""Helpers shared by command modules: local projects, pushes and invocations."""

from __future__ import annotations

import argparse
import uuid
from pathlib import Path

from ..adapters.github import RepoRef
from ..core.context import RunContext
from ..core.process import run_command
from ..errors import ScriptError
from ..exit_codes import ERR_USAGE
from ..sdm.goals import Goal, GoalInvocation, GoalState, SdmGoalEvent
from ..sdm.messages import BufferedMessageClient
from ..sdm.progress_log import ProgressLog
from ..sdm.project import Project
from ..sdm.push import Commit, Push, PushListenerInvocation
from ..sdm.registrations import CommandListenerInvocation


def add_project_arguments(p: argparse.ArgumentParser) -> None:
    p.add_argument("--project", default=".", help="project directory")
    p.add_argument("--owner", default="atomist", help="repository owner")
    p.add_argument("--repo", help="repository name (defaults to the project directory name)")
    p.add_argument("--branch", help="pushed branch (defaults to the checked out branch)")
    p.add_argument("--default-branch", default="master", help="repository default branch")
    p.add_argument("--sha", help="pushed commit sha (defaults to HEAD)")
    p.add_argument("--tag", action="append", default=[], help="tag on the pushed commit")
    p.add_argument("--changed", action="append", default=None, help="changed file; repeat for several")
    p.add_argument("--workspace-id", default="", help="workspace (team) id")


def project_from_args(ctx: RunContext, ns: argparse.Namespace) -> Project:
    base = Path(ns.project)
    if not base.is_absolute():
        base = ctx.repo_root / base
    if not base.is_dir():
        raise ScriptError(f"project directory not found: {base}", ERR_USAGE, kind="project_missing")
    return Project(base, name=ns.repo or "", owner=ns.owner)


def _git_value(project: Project, *args: str) -> str:
    result = run_command(["git", *args], project.base_dir)
    return result.stdout.strip() if result.ok else ""


def push_from_args(ns: argparse.Namespace, project: Project) -> Push:
    branch = ns.branch or _git_value(project, "rev-parse", "--abbrev-ref", "HEAD") or ns.default_branch
    sha = ns.sha or _git_value(project, "rev-parse", "HEAD")
    message = _git_value(project, "log", "-1", "--format=%B") if sha else ""
    return Push(
        owner=ns.owner,
        repo=project.name,
        branch=branch,
        default_branch=ns.default_branch,
        sha=sha,
        commits=(Commit(sha, message),) if sha else (),
        workspace_id=ns.workspace_id,
        tags=tuple(ns.tag),
        changed_files=tuple(ns.changed) if ns.changed is not None else None,
    )


def push_invocation(ctx: RunContext, ns: argparse.Namespace) -> PushListenerInvocation:
    project = project_from_args(ctx, ns)
    return PushListenerInvocation(push_from_args(ns, project), project, ctx.config)


def command_invocation(ctx: RunContext, parameters: object, workspace_id: str = "") -> CommandListenerInvocation[object]:
    return CommandListenerInvocation(
        parameters=parameters,
        configuration=ctx.config,
        workspace_id=workspace_id,
        token=ctx.config.github_token,
        ctx=ctx,
    )


def goal_event_for(goal: Goal, goal_set: str, push: Push, data: str | None = None) -> SdmGoalEvent:
    return SdmGoalEvent(
        goal_set=goal_set,
        goal_set_id=str(uuid.uuid4()),
        unique_name=goal.unique_name,
        name=goal.name,
        environment=goal.environment,
        state=GoalState.IN_PROCESS,
        sha=push.sha,
        branch=push.branch,
        repo=RepoRef(push.owner, push.repo, push.sha, push.branch),
        data=data,
        tags=push.tags,
    )


def goal_invocation(
    ctx: RunContext,
    goal: Goal,
    goal_set: str,
    pli: PushListenerInvocation,
    progress_log: ProgressLog,
    data: str | None = None,
) -> GoalInvocation:
    return GoalInvocation(
        goal_event=goal_event_for(goal, goal_set, pli.push, data),
        configuration=ctx.config,
        project=pli.project,
        progress_log=progress_log,
        messages=BufferedMessageClient(),
        token=ctx.config.github_token,
        ctx=ctx,
        push=pli.push,
    )
