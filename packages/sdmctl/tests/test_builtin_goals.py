from __future__ import annotations

from sdmctl.adapters.github import RepoRef
from sdmctl.inspection.review_comments import APPROVE_GOAL_IF_ERROR_COMMENTS, FAIL_GOAL_IF_ERROR_COMMENTS
from sdmctl.sdm.builtin_goals import AutofixGoal, CodeInspectionGoal, KubernetesDeployGoal, PushImpactGoal
from sdmctl.sdm.goals import (
    ExecuteGoalResult,
    Goal,
    GoalDefinition,
    GoalInvocation,
    GoalState,
    HookPhase,
    SdmGoalEvent,
)
from sdmctl.sdm.messages import BufferedMessageClient
from sdmctl.sdm.progress_log import StringCapturingProgressLog
from sdmctl.sdm.push_tests import has_file
from sdmctl.sdm.registrations import AutofixRegistration, CodeInspectionRegistration
from sdmctl.sdm.review import ProjectReview, ReviewComment


def _gi(project, configuration, goal: Goal) -> GoalInvocation:
    event = SdmGoalEvent(
        goal_set="Check",
        goal_set_id="gs-1",
        unique_name=goal.unique_name,
        name=goal.name,
        environment=goal.environment,
        state=GoalState.IN_PROCESS,
        sha="abc",
        branch="master",
        repo=RepoRef("atomist", project.name),
    )
    return GoalInvocation(event, configuration, project, StringCapturingProgressLog(), BufferedMessageClient())


def test_autofix_goal_applies_only_applicable_fixes(make_project, make_pli, configuration) -> None:
    project = make_project({"package.json": "{}"})
    goal = (
        AutofixGoal()
        .with_autofix(AutofixRegistration("touch", lambda p, ci: p.write("touched.txt", "x"), push_test=has_file("package.json")))
        .with_autofix(AutofixRegistration("never", lambda p, ci: p.write("never.txt", "x"), push_test=has_file("pom.xml")))
        .with_autofix(AutofixRegistration("noop", lambda p, ci: p))
    )
    pli = make_pli(project)
    assert [a.name for a in goal.applicable(pli)] == ["touch", "noop"]
    gi = _gi(project, configuration, goal)
    result = goal.execute(gi, pli)
    assert result.ok
    assert result.data == {"applied": ["touch"]}
    assert project.has_file("touched.txt") and not project.has_file("never.txt")
    assert "Autofix 'touch' changed the project" in gi.progress_log.log


def test_autofix_goal_without_changes(make_project, make_pli, configuration) -> None:
    project = make_project()
    goal = AutofixGoal()
    result = goal.execute(_gi(project, configuration, goal), make_pli(project))
    assert result.message == "No autofixes applied"


def _inspection(*comments: ReviewComment) -> CodeInspectionRegistration:
    return CodeInspectionRegistration("fixed", lambda project, ci: ProjectReview(repo=project.name, comments=list(comments)))


def _comment(severity: str) -> ReviewComment:
    return ReviewComment(severity=severity, detail="d", category="lint", subcategory="tslint")


def test_inspection_goal_fails_on_error_comments(make_project, make_pli, configuration) -> None:
    project = make_project()
    goal = CodeInspectionGoal().with_inspection(_inspection(_comment("error"), _comment("warn"))).with_listener(FAIL_GOAL_IF_ERROR_COMMENTS)
    result = goal.execute(_gi(project, configuration, goal), make_pli(project))
    assert result.code == 1
    assert result.data is not None and result.data["response"] == "fail_goals"
    assert len(result.data["comments"]) == 2


def test_inspection_goal_strongest_response_wins(make_project, make_pli, configuration) -> None:
    project = make_project()
    goal = (
        CodeInspectionGoal()
        .with_inspection(_inspection(_comment("error")))
        .with_listener(APPROVE_GOAL_IF_ERROR_COMMENTS)
        .with_listener(FAIL_GOAL_IF_ERROR_COMMENTS)
    )
    assert goal.execute(_gi(project, configuration, goal), make_pli(project)).code == 1
    approval_only = CodeInspectionGoal().with_inspection(_inspection(_comment("error"))).with_listener(APPROVE_GOAL_IF_ERROR_COMMENTS)
    result = approval_only.execute(_gi(project, configuration, approval_only), make_pli(project))
    assert result.ok
    assert result.state is GoalState.WAITING_FOR_APPROVAL


def test_push_impact_stops_at_first_failure(make_project, make_pli, configuration) -> None:
    project = make_project()
    seen: list[str] = []
    goal = (
        PushImpactGoal()
        .with_listener(lambda pli: seen.append("a"))
        .with_listener(lambda pli: ExecuteGoalResult(code=3, message="nope"))
        .with_listener(lambda pli: seen.append("c"))
    )
    result = goal.execute(_gi(project, configuration, goal), make_pli(project))
    assert result.code == 3
    assert seen == ["a"]


def test_kubernetes_deploy_goal_requests_deployment(make_project, make_pli, configuration) -> None:
    project = make_project()
    goal = KubernetesDeployGoal("testing", approval=True)
    assert goal.unique_name == "kubernetes-deploy-testing-approval"
    assert goal.environment == "1-staging/"
    assert goal.definition.approval_required
    assert goal.executor_for(make_pli(project)) is None
    goal.with_deployment(lambda event, p: {"name": event.repo.repo, "ns": "testing"})
    result = goal.execute(_gi(project, configuration, goal), make_pli(project))
    assert result.state is GoalState.REQUESTED
    assert result.data == {"kubernetes": {"name": "demo", "ns": "testing"}}


def test_goal_without_fulfillment_is_skipped(make_project, make_pli, configuration) -> None:
    project = make_project()
    goal = Goal(GoalDefinition("build")).with_fulfillment("maven", lambda gi: ExecuteGoalResult(), has_file("pom.xml"))
    result = goal.execute(_gi(project, configuration, goal), make_pli(project))
    assert result.state is GoalState.SKIPPED


def test_project_hooks_wrap_execution(make_project, make_pli, configuration) -> None:
    project = make_project()
    phases: list[str] = []
    goal = (
        Goal(GoalDefinition("build"))
        .with_fulfillment("run", lambda gi: phases.append("run") or ExecuteGoalResult())
        .with_project_hook(lambda p, gi, phase: phases.append(phase.value))
    )
    goal.execute(_gi(project, configuration, goal), make_pli(project))
    assert phases == [HookPhase.PRE.value, "run", HookPhase.POST.value]
