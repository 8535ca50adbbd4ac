from __future__ import annotations

import uuid
from dataclasses import dataclass

from ..sdm.registrations import CommandHandlerRegistration, CommandListenerInvocation
from ..sdm.slack import bold, code_block, success_message

BADGE_ROOT_TYPE = "SdmGoalSetBadge"


@dataclass(frozen=True)
class BadgeParameters:
    owner: str
    repo: str
    provider_id: str = "github"


def badge_url(base_url: str, workspace_id: str, owner: str, repo: str, token: str) -> str:
    return f"{base_url.rstrip('/')}/{workspace_id}/{owner}/{repo}/{token}"


def badge_markdown(url: str, workspace_id: str) -> str:
    return f"[![atomist sdm goals]({url})](https://app.atomist.com/workspace/{workspace_id})"


def create_badge_url(ci: CommandListenerInvocation[BadgeParameters], token: str | None = None) -> str:
    params = ci.parameters
    token = token or uuid.uuid4().hex
    ci.messages.send(
        {"repo": {"name": params.repo, "owner": params.owner, "providerId": params.provider_id}, "token": token},
        BADGE_ROOT_TYPE,
    )
    url = badge_url(ci.configuration.badge_url, ci.workspace_id, params.owner, params.repo, token)
    text = (
        f"Successfully created a new badge url for {bold(f'{params.owner}/{params.repo}')}.\n\n"
        f"{url}\n\n"
        "Use the following Markdown snippet to embed the badge into your `README.md`:\n\n"
        f"{code_block(badge_markdown(url, ci.workspace_id))}"
    )
    ci.messages.respond(success_message("Badge Url", text, footer=ci.configuration.footer))
    return url


CREATE_BADGE_URL = CommandHandlerRegistration(
    name="CreateSdmGoalBadgeUrl",
    listener=create_badge_url,
    description="Create a badge url to put into your project's README.md",
    intent=("create badge url",),
    parameters_maker=BadgeParameters,
)
