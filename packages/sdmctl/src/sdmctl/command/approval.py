"""Approve goals waiting for approval, or revert an approval."""

from __future__ import annotations

import json
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import Callable

from ..core.clock import epoch_millis
from ..errors import ScriptError
from ..exit_codes import ERR_VALIDATION
from ..sdm.goals import GoalState, Provenance, SdmGoalEvent
from ..sdm.registrations import CommandHandlerRegistration, CommandListenerInvocation
from ..sdm.slack import bold, channel, code_line, italic, success_message, url, warning_message

GOAL_ROOT_TYPE = "SdmGoal"
APPROVE_COMMAND_NAME = "ApproveSdmGoalCommand"
CANCEL_COMMAND_NAME = "CancelApproveSdmGoalCommand"


@dataclass(frozen=True)
class ApprovalParameters:
    goal_set_id: str
    goal_unique_name: str
    goal_state: GoalState
    msg_id: str | None = None


GoalLookup = Callable[[ApprovalParameters], SdmGoalEvent]


def goal_file_lookup(path: Path) -> GoalLookup:
    """Find the goal in a JSON file holding one goal event or a list of them."""

    def _lookup(params: ApprovalParameters) -> SdmGoalEvent:
        try:
            raw = json.loads(path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as exc:
            raise ScriptError(f"goals file {path} is not valid JSON: {exc}", ERR_VALIDATION, kind="invalid_goal") from exc
        rows = raw if isinstance(raw, list) else [raw]
        for row in rows:
            goal = SdmGoalEvent.from_payload(row)
            if (
                goal.goal_set_id == params.goal_set_id
                and goal.unique_name == params.goal_unique_name
                and goal.state == params.goal_state
            ):
                return goal
        raise ScriptError(
            f"no goal {params.goal_unique_name} in state {params.goal_state.value} for goal set {params.goal_set_id}",
            ERR_VALIDATION,
            kind="goal_not_found",
        )

    return _lookup


def _provenance(ci: CommandListenerInvocation[ApprovalParameters], operation: str, ts: int) -> Provenance:
    return Provenance(
        name=operation,
        registration=ci.configuration.name,
        version=ci.configuration.version,
        correlation_id=ci.ctx.run_id if ci.ctx is not None else str(uuid.uuid4()),
        ts=ts,
    )


def _updated(goal: SdmGoalEvent, prov: Provenance) -> SdmGoalEvent:
    return goal.evolve(ts=prov.ts, version=goal.version + 1, provenance=(*goal.provenance, prov))


def _goal_text(goal: SdmGoalEvent) -> str:
    return (
        f"goal {italic(url(goal.url, goal.name))} on {code_line(goal.sha[:7])} "
        f"of {bold(f'{goal.repo.owner}/{goal.repo.repo}')}"
    )


def _approval_channel(goal: SdmGoalEvent) -> str:
    return channel(goal.approval.channel_id) if goal.approval is not None else ""


def approve_goal(goal: SdmGoalEvent, ci: CommandListenerInvocation[ApprovalParameters], ts: int | None = None) -> SdmGoalEvent:
    prov = _provenance(ci, APPROVE_COMMAND_NAME, ts if ts is not None else epoch_millis())
    updated = _updated(goal, prov).evolve(data=json.dumps({"approved": True}))
    ci.messages.send(updated, GOAL_ROOT_TYPE)
    ci.messages.respond(
        success_message(
            "Approve Goal",
            f"Successfully approved {_goal_text(goal)}",
            footer=f"{ci.configuration.footer} | {goal.goal_set} | {goal.goal_set_id[:7]} | {_approval_channel(goal)}",
        ),
        message_id=ci.parameters.msg_id,
    )
    return updated


def cancel_goal_approval(
    goal: SdmGoalEvent, ci: CommandListenerInvocation[ApprovalParameters], ts: int | None = None
) -> SdmGoalEvent:
    prov = _provenance(ci, CANCEL_COMMAND_NAME, ts if ts is not None else epoch_millis())
    updated = _updated(goal, prov)
    if ci.parameters.goal_state is GoalState.APPROVED:
        updated = updated.evolve(state=GoalState.WAITING_FOR_APPROVAL, approval=None)
    elif ci.parameters.goal_state is GoalState.PRE_APPROVED:
        updated = updated.evolve(state=GoalState.WAITING_FOR_PRE_APPROVAL, pre_approval=None)
    ci.messages.send(updated, GOAL_ROOT_TYPE)
    ci.messages.respond(
        warning_message(
            "Approve Goal",
            f"Successfully canceled approval of {_goal_text(goal)} | {_approval_channel(goal)}",
            footer=f"{ci.configuration.footer} | {goal.goal_set} | {goal.goal_set_id[:7]}",
        ),
        message_id=ci.parameters.msg_id,
    )
    return updated


def approval_command(lookup: GoalLookup) -> CommandHandlerRegistration:
    return CommandHandlerRegistration(
        name=APPROVE_COMMAND_NAME,
        listener=lambda ci: approve_goal(lookup(ci.parameters), ci),
        parameters_maker=ApprovalParameters,
    )


def cancel_approval_command(lookup: GoalLookup) -> CommandHandlerRegistration:
    return CommandHandlerRegistration(
        name=CANCEL_COMMAND_NAME,
        listener=lambda ci: cancel_goal_approval(lookup(ci.parameters), ci),
        parameters_maker=ApprovalParameters,
    )
