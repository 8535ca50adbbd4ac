from __future__ import annotations

from dataclasses import dataclass

from ..adapters.github import GitHubClient, RepoRef
from ..core.clock import utc_now_iso
from ..core.logging import log_event
from ..errors import ScriptError
from ..exit_codes import ERR_VALIDATION
from ..sdm.goals import ExecuteGoalResult
from ..sdm.registrations import CommandHandlerRegistration, CommandListenerInvocation
from ..sdm.slack import code_line, success_message

TAGGER = {"name": "Atomist", "email": "info@atomist.com"}


@dataclass(frozen=True)
class CreateTagParameters:
    owner: str
    repo: str
    name: str
    sha: str | None = None
    branch: str | None = None
    provider_id: str = "github"


def tag_payload(name: str, sha: str, message: str | None = None, date: str | None = None) -> dict[str, object]:
    return {
        "tag": name,
        "message": message or f"Created tag {name}",
        "object": sha,
        "type": "commit",
        "tagger": {**TAGGER, "date": date or utc_now_iso()},
    }


def create_tag(ci: CommandListenerInvocation[CreateTagParameters], client: GitHubClient | None = None) -> ExecuteGoalResult:
    params = ci.parameters
    client = client or GitHubClient(ci.token or ci.configuration.github_token, ci.configuration.github_api_url)
    ref = RepoRef(params.owner, params.repo)
    tips = client.branch_tips(ref)
    branch = params.branch or tips.default_branch
    sha = params.sha or tips.tip_of(branch)
    if not sha:
        raise ScriptError(f"branch {branch} not found in {ref.slug}", ERR_VALIDATION, kind="branch_not_found")
    target = RepoRef(params.owner, params.repo, sha, branch)
    tag = tag_payload(params.name, sha)
    client.create_tag(target, tag)
    client.create_tag_reference(target, tag)
    log_event(ci.ctx, "info", "command", "create-tag", repo=ref.slug, tag=params.name, sha=sha)
    ci.messages.respond(
        success_message(
            "Create Tag",
            f"Successfully created tag {code_line(params.name)} on commit {code_line(sha[:7])}",
        )
    )
    return ExecuteGoalResult()


CREATE_TAG = CommandHandlerRegistration(
    name="CreateTag",
    listener=create_tag,
    description="Create tag on GitHub",
    intent=("create tag",),
    parameters_maker=CreateTagParameters,
)
