from __future__ import annotations

from dataclasses import dataclass
from typing import Callable

from ..adapters.github import GitHubClient, RepoRef
from ..core.logging import log_event
from ..sdm.project import Project
from ..sdm.push import PushListenerInvocation

AUTOMATION_CLIENT_TAGS = ("atomist", "nodejs", "typescript", "automation")


@dataclass(frozen=True)
class Tags:
    repo: str
    tags: tuple[str, ...]


Tagger = Callable[[Project], Tags]


def automation_client_tagger(project: Project) -> Tags:
    return Tags(repo=f"{project.owner}/{project.name}" if project.owner else project.name, tags=AUTOMATION_CLIENT_TAGS)


def tag_repo(tagger: Tagger, client_factory: Callable[[PushListenerInvocation], GitHubClient]) -> Callable[[PushListenerInvocation], Tags]:
    def _listener(pli: PushListenerInvocation) -> Tags:
        tags = tagger(pli.project)
        client_factory(pli).replace_topics(RepoRef(pli.push.owner, pli.push.repo), sorted(tags.tags))
        log_event(None, "info", "tagger", "tag-repo", repo=pli.push.slug, tags=",".join(tags.tags))
        return tags

    return _listener
