"""Team conventions: upper case issue, pull request and commit titles."""

from __future__ import annotations

from typing import Any, Callable

from ..adapters.github import GitHubClient, RepoRef
from ..autofix.community_files import ADD_COMMUNITY_FILES
from ..autofix.support_files import UPDATE_SUPPORT_FILES_FIX
from ..config.loader import SdmConfiguration
from ..core.logging import log_event
from ..sdm.goals import ExecuteGoalResult
from ..sdm.machine import SoftwareDeliveryMachine
from ..sdm.push import Commit, PushListenerInvocation
from ..sdm.slack import bold, code_line, warning_message
from .goals import DeliveryGoals

MAX_COMMIT_TITLE = 50


def is_upper_case(message: str | None) -> bool:
    return bool(message) and message[0] == message[0].upper()


def upper_first(text: str) -> str:
    return text[:1].upper() + text[1:]


def truncate_commit_message(message: str) -> str:
    title = message.split("\n", 1)[0]
    if len(title) > MAX_COMMIT_TITLE:
        return title[: MAX_COMMIT_TITLE - 3] + "..."
    return title


def upper_case_title(issue: dict[str, Any], client: GitHubClient, ref: RepoRef) -> bool:
    """Rewrite the title of an issue or pull request to start upper case; returns whether it changed."""
    title = issue.get("title") or ""
    if is_upper_case(title):
        return False
    client.update_issue(ref, int(issue["number"]), {"title": upper_first(title), "body": issue.get("body")})
    log_event(None, "info", "team-policies", "upper-case-title", repo=ref.slug, number=issue["number"])
    return True


def lowercase_commit_warning(pli: PushListenerInvocation, commits: list[Commit], footer: str) -> dict[str, object]:
    push = pli.push
    plural = len(commits) > 1
    noun, verb = ("commits", "don't") if plural else ("commit", "doesn't")
    listing = "\n".join(f"{code_line(c.sha[:7])} {truncate_commit_message(c.message)}" for c in commits)
    text = (
        "Please make sure that your commit messages start with an upper case letter.\n\n"
        f"The following {noun} in {bold(f'{push.owner}/{push.repo}/{push.branch}')} {verb} follow that standard:\n\n"
        f"{listing}"
    )
    return warning_message("Commit Message", text, footer=footer)


def commit_message_listener(configuration: SdmConfiguration) -> Callable[[PushListenerInvocation], ExecuteGoalResult]:
    def _listener(pli: PushListenerInvocation) -> ExecuteGoalResult:
        commits = [c for c in pli.push.commits if not is_upper_case(c.message)]
        if pli.push.screen_name and commits:
            pli.messages.address_users(
                lowercase_commit_warning(pli, commits, configuration.footer),
                pli.push.screen_name,
                message_id=f"team_policies/commit_messages/{pli.push.sha}",
            )
        return ExecuteGoalResult()

    return _listener


def _issue_listener(client_factory: Callable[[], GitHubClient]) -> Callable[[dict[str, Any]], bool]:
    def _listener(issue: dict[str, Any]) -> bool:
        repo = issue["repo"]
        return upper_case_title(issue, client_factory(), RepoRef(repo["owner"], repo["name"]))

    return _listener


def add_team_policies(sdm: SoftwareDeliveryMachine, goals: DeliveryGoals) -> None:
    configuration = sdm.configuration

    def client() -> GitHubClient:
        return GitHubClient(configuration.github_token, configuration.github_api_url)

    sdm.add_new_issue_listener(_issue_listener(client))
    sdm.add_pull_request_listener(_issue_listener(client))
    goals.push_impact.with_listener(commit_message_listener(configuration))
    goals.autofix.with_autofix(ADD_COMMUNITY_FILES).with_autofix(UPDATE_SUPPORT_FILES_FIX)
