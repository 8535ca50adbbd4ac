from __future__ import annotations

import json
from pathlib import Path

import pytest

from sdmctl.adapters.github import RepoRef
from sdmctl.command.approval import (
    GOAL_ROOT_TYPE,
    ApprovalParameters,
    approve_goal,
    cancel_goal_approval,
    goal_file_lookup,
)
from sdmctl.errors import ScriptError
from sdmctl.exit_codes import ERR_VALIDATION
from sdmctl.sdm.goals import GoalApproval, GoalState, SdmGoalEvent
from sdmctl.sdm.registrations import CommandListenerInvocation


def _goal(state: GoalState = GoalState.WAITING_FOR_APPROVAL) -> SdmGoalEvent:
    return SdmGoalEvent(
        goal_set="Deploy",
        goal_set_id="5f2c9a1b-aaaa",
        unique_name="kubernetes-deploy-testing-approval",
        name="deploy to `testing`",
        environment="1-staging/",
        state=state,
        sha="0123456789",
        branch="master",
        repo=RepoRef("atomist", "demo"),
        url="https://app.atomist.com/goal",
        version=3,
        approval=GoalApproval(channel_id="C1", user_id="U1"),
        pre_approval=GoalApproval(channel_id="C2", user_id="U2"),
    )


def _ci(configuration, state: GoalState) -> CommandListenerInvocation[ApprovalParameters]:
    params = ApprovalParameters(goal_set_id="5f2c9a1b-aaaa", goal_unique_name="kubernetes-deploy-testing-approval", goal_state=state, msg_id="m1")
    return CommandListenerInvocation(parameters=params, configuration=configuration)


def test_approve_goal_records_approval(configuration) -> None:
    ci = _ci(configuration, GoalState.WAITING_FOR_APPROVAL)
    updated = approve_goal(_goal(), ci, ts=1000)
    assert json.loads(updated.data or "") == {"approved": True}
    assert updated.version == 4
    assert updated.ts == 1000
    assert updated.state is GoalState.WAITING_FOR_APPROVAL
    assert updated.provenance[-1].name == "ApproveSdmGoalCommand"
    assert updated.provenance[-1].registration == configuration.name
    assert ci.messages.events(GOAL_ROOT_TYPE) == [updated]
    [response] = [m for m in ci.messages.sent if m.delivery == "respond"]
    assert response.message_id == "m1"
    assert "Successfully approved" in ci.messages.texts()[0]


def test_cancel_approved_goal_reverts_to_waiting(configuration) -> None:
    updated = cancel_goal_approval(_goal(GoalState.APPROVED), _ci(configuration, GoalState.APPROVED), ts=5)
    assert updated.state is GoalState.WAITING_FOR_APPROVAL
    assert updated.approval is None
    assert updated.pre_approval is not None
    assert updated.provenance[-1].name == "CancelApproveSdmGoalCommand"


def test_cancel_pre_approved_goal_reverts_to_waiting_for_pre_approval(configuration) -> None:
    updated = cancel_goal_approval(_goal(GoalState.PRE_APPROVED), _ci(configuration, GoalState.PRE_APPROVED), ts=5)
    assert updated.state is GoalState.WAITING_FOR_PRE_APPROVAL
    assert updated.pre_approval is None
    assert updated.approval is not None


def test_goal_file_lookup(tmp_path: Path) -> None:
    other = _goal().evolve(unique_name="other")
    path = tmp_path / "goals.json"
    path.write_text(json.dumps([other.to_payload(), _goal().to_payload()]), encoding="utf-8")
    params = ApprovalParameters("5f2c9a1b-aaaa", "kubernetes-deploy-testing-approval", GoalState.WAITING_FOR_APPROVAL)
    found = goal_file_lookup(path)(params)
    assert found.unique_name == "kubernetes-deploy-testing-approval"
    assert found.repo.slug == "atomist/demo"
    assert found.approval == GoalApproval("C1", "U1")
    with pytest.raises(ScriptError) as exc:
        goal_file_lookup(path)(ApprovalParameters("5f2c9a1b-aaaa", "kubernetes-deploy-testing-approval", GoalState.APPROVED))
    assert exc.value.kind == "goal_not_found"


def test_goal_event_payload_survives_a_trip_through_json() -> None:
    goal = _goal()
    assert SdmGoalEvent.from_payload(json.loads(json.dumps(goal.to_payload()))) == goal


@pytest.mark.parametrize(
    "payload",
    [
        "not an object",
        {"repo": "atomist/demo"},
        {"state": "bogus"},
        {"provenance": ["x"]},
        {"ts": "yesterday"},
    ],
)
def test_malformed_goal_events_are_validation_errors(payload: object) -> None:
    with pytest.raises(ScriptError) as exc:
        SdmGoalEvent.from_payload(payload)
    assert (exc.value.kind, exc.value.code) == ("invalid_goal", ERR_VALIDATION)


def test_goal_file_lookup_rejects_invalid_json(tmp_path: Path) -> None:
    path = tmp_path / "goals.json"
    path.write_text("{not json", encoding="utf-8")
    params = ApprovalParameters("5f2c9a1b-aaaa", "kubernetes-deploy-testing-approval", GoalState.WAITING_FOR_APPROVAL)
    with pytest.raises(ScriptError) as exc:
        goal_file_lookup(path)(params)
    assert exc.value.kind == "invalid_goal"
