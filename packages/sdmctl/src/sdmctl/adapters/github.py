"""GitHub REST API adapter."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable

from ..core.network import http_json
from ..errors import ScriptError
from ..exit_codes import ERR_CONFIG

Transport = Callable[..., Any]


@dataclass(frozen=True)
class RepoRef:
    owner: str
    repo: str
    sha: str | None = None
    branch: str | None = None

    @property
    def slug(self) -> str:
        return f"{self.owner}/{self.repo}"

    @property
    def url(self) -> str:
        return f"https://github.com/{self.owner}/{self.repo}"


@dataclass(frozen=True)
class BranchTips:
    default_branch: str
    tips: dict[str, str]

    def tip_of(self, branch: str) -> str | None:
        return self.tips.get(branch)


class GitHubClient:
    def __init__(self, token: str | None, api_url: str = "https://api.github.com", transport: Transport = http_json) -> None:
        self._token = token
        self._api_url = api_url.rstrip("/")
        self._transport = transport

    def _call(self, method: str, path: str, payload: dict[str, Any] | None = None) -> Any:
        if not self._token:
            raise ScriptError("GitHub token is not configured; set GITHUB_TOKEN", ERR_CONFIG, kind="missing_token")
        headers = {"Authorization": f"token {self._token}", "User-Agent": "sdmctl"}
        return self._transport(method, f"{self._api_url}{path}", payload, headers)

    def branch_tips(self, ref: RepoRef) -> BranchTips:
        repo = self._call("GET", f"/repos/{ref.slug}")
        branches = self._call("GET", f"/repos/{ref.slug}/branches?per_page=100")
        tips = {str(row["name"]): str(row["commit"]["sha"]) for row in branches}
        return BranchTips(default_branch=str(repo.get("default_branch", "master")), tips=tips)

    def create_tag(self, ref: RepoRef, tag: dict[str, Any]) -> Any:
        return self._call("POST", f"/repos/{ref.slug}/git/tags", tag)

    def create_tag_reference(self, ref: RepoRef, tag: dict[str, Any]) -> Any:
        return self._call("POST", f"/repos/{ref.slug}/git/refs", {"ref": f"refs/tags/{tag['tag']}", "sha": tag["object"]})

    def create_status(self, ref: RepoRef, status: dict[str, Any]) -> Any:
        return self._call("POST", f"/repos/{ref.slug}/statuses/{ref.sha}", status)

    def create_release(self, ref: RepoRef, release: dict[str, Any]) -> Any:
        return self._call("POST", f"/repos/{ref.slug}/releases", release)

    def update_issue(self, ref: RepoRef, number: int, issue: dict[str, Any]) -> Any:
        return self._call("PATCH", f"/repos/{ref.slug}/issues/{number}", issue)

    def replace_topics(self, ref: RepoRef, names: list[str]) -> Any:
        return self._call("PUT", f"/repos/{ref.slug}/topics", {"names": names})
