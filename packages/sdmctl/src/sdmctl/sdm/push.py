from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from .messages import BufferedMessageClient

if TYPE_CHECKING:
    from ..config.loader import SdmConfiguration
    from .project import Project


@dataclass(frozen=True)
class Commit:
    sha: str
    message: str


@dataclass(frozen=True)
class Push:
    owner: str
    repo: str
    branch: str
    default_branch: str = "master"
    sha: str = ""
    commits: tuple[Commit, ...] = ()
    workspace_id: str = ""
    screen_name: str | None = None
    tags: tuple[str, ...] = ()
    changed_files: tuple[str, ...] | None = None
    provider_id: str = "github"

    @property
    def slug(self) -> str:
        return f"{self.owner}/{self.repo}"


@dataclass
class PushListenerInvocation:
    push: Push
    project: Project
    configuration: SdmConfiguration
    messages: BufferedMessageClient = field(default_factory=BufferedMessageClient)
