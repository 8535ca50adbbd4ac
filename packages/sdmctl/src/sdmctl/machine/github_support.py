from __future__ import annotations

from ..command.tag import tag_payload
from ..sdm.goals import ExecuteGoalResult, GoalExecutor, GoalInvocation
from .goals import DeliveryGoals
from .release import ClientFactory, commit_title, execute_release_tag, github_client_for, goal_version, head_commit_message


def execute_tag(client_factory: ClientFactory = github_client_for) -> GoalExecutor:
    """Tag the pushed commit with the version calculated for it."""

    def _execute(gi: GoalInvocation) -> ExecuteGoalResult:
        version = goal_version(gi)
        message = head_commit_message(gi.project, gi.goal_event.sha) or f"Version {version}"
        tag = tag_payload(version, gi.goal_event.sha, commit_title(message))
        client = client_factory(gi)
        client.create_tag(gi.id, tag)
        client.create_tag_reference(gi.id, tag)
        return ExecuteGoalResult(message=f"Tagged {gi.goal_event.sha[:7]} with {version}")

    return _execute


def add_github_support(goals: DeliveryGoals) -> None:
    goals.release_tag.with_fulfillment("tagRelease", execute_release_tag())
    goals.tag.with_fulfillment("tag", execute_tag())
