"""Goal kinds with built-in execution: autofix, inspection, push impact and Kubernetes deploy."""

from __future__ import annotations

import hashlib
from typing import TYPE_CHECKING, Callable

from ..core.logging import log_event
from .goals import (
    PRODUCTION_ENVIRONMENT,
    STAGING_ENVIRONMENT,
    ExecuteGoalResult,
    Goal,
    GoalDefinition,
    GoalExecutor,
    GoalInvocation,
    GoalState,
    SdmGoalEvent,
)
from .registrations import (
    AutofixRegistration,
    CodeInspectionRegistration,
    CommandListenerInvocation,
    ReviewListenerInvocation,
    ReviewListenerRegistration,
)
from .review import ProjectReview, PushImpactResponse, ReviewComment

if TYPE_CHECKING:
    from .project import Project
    from .push import PushListenerInvocation

PushImpactListener = Callable[["PushListenerInvocation"], "ExecuteGoalResult | None"]
DeploymentDataCallback = Callable[[SdmGoalEvent, "Project"], "dict[str, object]"]

_RESPONSE_RANK = {
    PushImpactResponse.PROCEED: 0,
    PushImpactResponse.REQUIRE_APPROVAL_TO_PROCEED: 1,
    PushImpactResponse.FAIL_GOALS: 2,
}


def _fingerprint(project: Project) -> dict[str, str]:
    return {rel: hashlib.sha256(project.path(rel).read_bytes()).hexdigest() for rel in project.all_files()}


def _invocation(gi: GoalInvocation, parameters: object = None) -> CommandListenerInvocation[object]:
    return CommandListenerInvocation(
        parameters=parameters,
        configuration=gi.configuration,
        messages=gi.messages,
        token=gi.token,
        ctx=gi.ctx,
    )


class AutofixGoal(Goal):
    def __init__(self) -> None:
        super().__init__(
            GoalDefinition(
                unique_name="autofix",
                display_name="autofix",
                working_description="Applying autofixes",
                completed_description="No autofixes applied",
                failed_description="Autofixes failed",
            )
        )
        self.autofixes: list[AutofixRegistration] = []

    def with_autofix(self, registration: AutofixRegistration) -> AutofixGoal:
        self.autofixes.append(registration)
        return self

    def applicable(self, pli: PushListenerInvocation) -> list[AutofixRegistration]:
        return [a for a in self.autofixes if a.push_test is None or a.push_test(pli)]

    def executor_for(self, pli: PushListenerInvocation) -> GoalExecutor | None:
        autofixes = self.applicable(pli)
        return lambda gi: self.apply(gi, autofixes)

    def apply(self, gi: GoalInvocation, autofixes: list[AutofixRegistration]) -> ExecuteGoalResult:
        applied: list[str] = []
        for autofix in autofixes:
            before = _fingerprint(gi.project)
            autofix.transform(gi.project, _invocation(gi, autofix.parameters))
            changed = _fingerprint(gi.project) != before
            if changed:
                applied.append(autofix.name)
                gi.progress_log.write(f"Autofix '{autofix.name}' changed the project\n")
            log_event(gi.ctx, "info", "autofix", "apply", autofix=autofix.name, changed=changed)
        if not applied:
            return ExecuteGoalResult(message="No autofixes applied")
        return ExecuteGoalResult(message=f"Applied autofixes: {', '.join(applied)}", data={"applied": applied})


class CodeInspectionGoal(Goal):
    def __init__(self) -> None:
        super().__init__(
            GoalDefinition(
                unique_name="code-inspection",
                display_name="code inspection",
                working_description="Running code inspections",
                completed_description="Code inspections passed",
                failed_description="Code inspections failed",
            )
        )
        self.inspections: list[CodeInspectionRegistration] = []
        self.listeners: list[ReviewListenerRegistration] = []

    def with_inspection(self, registration: CodeInspectionRegistration) -> CodeInspectionGoal:
        self.inspections.append(registration)
        return self

    def with_listener(self, registration: ReviewListenerRegistration) -> CodeInspectionGoal:
        self.listeners.append(registration)
        return self

    def executor_for(self, pli: PushListenerInvocation) -> GoalExecutor | None:
        return lambda gi: self.inspect(gi, pli)

    def inspect(self, gi: GoalInvocation, pli: PushListenerInvocation | None = None) -> ExecuteGoalResult:
        comments: list[ReviewComment] = []
        for registration in self.inspections:
            review = registration.inspection(gi.project, _invocation(gi))
            comments.extend(review.comments)
            log_event(gi.ctx, "info", "inspection", "run", inspection=registration.name, comments=len(review.comments))
        merged = ProjectReview(repo=gi.goal_event.repo.slug, comments=comments)
        response = PushImpactResponse.PROCEED
        for listener in self.listeners:
            candidate = listener.listener(ReviewListenerInvocation(review=merged, pli=pli))
            if _RESPONSE_RANK[candidate] > _RESPONSE_RANK[response]:
                response = candidate
        data: dict[str, object] = {"comments": [c.to_payload() for c in comments], "response": response.value}
        if response is PushImpactResponse.FAIL_GOALS:
            return ExecuteGoalResult(code=1, message=f"Code inspections reported {len(comments)} comments", data=data)
        if response is PushImpactResponse.REQUIRE_APPROVAL_TO_PROCEED:
            return ExecuteGoalResult(
                message="Code inspections require approval",
                state=GoalState.WAITING_FOR_APPROVAL,
                data=data,
            )
        return ExecuteGoalResult(message=f"Code inspections reported {len(comments)} comments", data=data)


class PushImpactGoal(Goal):
    def __init__(self) -> None:
        super().__init__(
            GoalDefinition(
                unique_name="push-impact",
                display_name="push impact",
                working_description="Analyzing push impact",
                completed_description="Push impact analyzed",
                failed_description="Push impact analysis failed",
            )
        )
        self.listeners: list[PushImpactListener] = []

    def with_listener(self, listener: PushImpactListener) -> PushImpactGoal:
        self.listeners.append(listener)
        return self

    def executor_for(self, pli: PushListenerInvocation) -> GoalExecutor | None:
        return lambda gi: self.react(pli)

    def react(self, pli: PushListenerInvocation) -> ExecuteGoalResult:
        for listener in self.listeners:
            result = listener(pli)
            if result is not None and not result.ok:
                return result
        return ExecuteGoalResult()


class KubernetesDeployGoal(Goal):
    def __init__(self, environment: str, approval: bool = False) -> None:
        suffix = "-approval" if approval else ""
        super().__init__(
            GoalDefinition(
                unique_name=f"kubernetes-deploy-{environment}{suffix}",
                display_name=f"deploy to `{environment}`",
                environment=STAGING_ENVIRONMENT if environment == "testing" else PRODUCTION_ENVIRONMENT,
                working_description=f"Deploying to `{environment}`",
                completed_description=f"Deployed to `{environment}`",
                failed_description=f"Deployment to `{environment}` failed",
                waiting_for_approval_description=f"Successfully deployed to `{environment}`",
                approval_required=approval,
            )
        )
        self.deploy_environment = environment
        self.approval = approval
        self.callbacks: list[DeploymentDataCallback] = []

    def with_deployment(self, callback: DeploymentDataCallback) -> KubernetesDeployGoal:
        self.callbacks.append(callback)
        return self

    def deployment_data(self, goal_event: SdmGoalEvent, project: Project) -> dict[str, object]:
        data: dict[str, object] = {}
        for callback in self.callbacks:
            data.update(callback(goal_event, project))
        return data

    def executor_for(self, pli: PushListenerInvocation) -> GoalExecutor | None:
        if not self.callbacks:
            return None
        return self._request

    def _request(self, gi: GoalInvocation) -> ExecuteGoalResult:
        data = self.deployment_data(gi.goal_event, gi.project)
        gi.progress_log.write(f"Requesting deployment of {data.get('name')} to namespace {data.get('ns')}\n")
        return ExecuteGoalResult(
            message=f"Requested Kubernetes deployment to `{self.deploy_environment}`",
            state=GoalState.REQUESTED,
            data={"kubernetes": data},
        )
