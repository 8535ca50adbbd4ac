"""Release goal executors: npm package, Docker image, release tag, docs and version increment."""

from __future__ import annotations

import json
import os
import re
import shutil
import tempfile
import uuid
import xml.etree.ElementTree as ET
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Iterable

from ..adapters.github import GitHubClient
from ..command.tag import tag_payload
from ..config.loader import DockerOptions, NpmOptions
from ..core import git
from ..core.logging import log_event
from ..core.process import CommandResult, run_chain, run_command
from ..errors import ScriptError
from ..exit_codes import ERR_CONFIG, ERR_VALIDATION
from ..sdm.goals import ExecuteGoalResult, GoalExecutor, GoalInvocation
from ..sdm.progress_log import DelimitedProgressLog
from ..sdm.project import Project

NPM_PACKAGE_STATUS_CONTEXT = "npm/atomist/package"

Preparation = Callable[[Project, GoalInvocation], ExecuteGoalResult]
ClientFactory = Callable[[GoalInvocation], GitHubClient]


@dataclass(frozen=True)
class ProjectIdentity:
    name: str
    version: str


ProjectIdentifier = Callable[[Project], ProjectIdentity]


def release_version(version: str) -> str:
    return re.sub(r"-.*", "", version, count=1)


def release_or_prerelease(version: str, tags: Iterable[str]) -> str:
    """Prefer a milestone or release-candidate tag of the version among the pushed tags."""
    pattern = re.compile(rf"^{re.escape(version)}-(M|RC)\.\d+$")
    for tag in tags:
        if pattern.match(tag):
            return tag
    return version


def npm_package_url(registry: str, name: str, version: str) -> str:
    return f"{registry}/{name}/-/{name}-{version}.tgz"


def docker_image(registry: str, name: str, version: str) -> str:
    return f"{registry}/{name}:{version}"


def project_version(base_version: str, branch: str, default_branch: str, now: datetime | None = None) -> str:
    """Timestamped pre-release version; branches other than the default one are named in it."""
    stamp = (now or datetime.now(timezone.utc)).strftime("%Y%m%d%H%M%S")
    clean_branch = branch.replace("/", ".")
    suffix = "" if branch == default_branch else f"{clean_branch}."
    return f"{base_version}-{suffix}{stamp}"


def node_project_identifier(project: Project) -> ProjectIdentity:
    raw = project.read("package.json")
    if raw is None:
        raise ScriptError("NPM project does not have a package.json", ERR_VALIDATION, kind="missing_package_json")
    try:
        pj = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ScriptError(f"Unable to parse package.json '{raw}': {exc}", ERR_VALIDATION, kind="invalid_package_json") from exc
    if not pj.get("name"):
        raise ScriptError(f"Unable to get NPM package name from package.json '{raw}'", ERR_VALIDATION, kind="invalid_package_json")
    return ProjectIdentity(name=str(pj["name"]), version=str(pj.get("version", "0.0.0")))


def maven_project_identifier(project: Project) -> ProjectIdentity:
    raw = project.read("pom.xml")
    if raw is None:
        raise ScriptError("Maven project does not have a pom.xml", ERR_VALIDATION, kind="missing_pom")
    try:
        root = ET.fromstring(raw)
    except ET.ParseError as exc:
        raise ScriptError(f"Unable to parse pom.xml: {exc}", ERR_VALIDATION, kind="invalid_pom") from exc
    ns = {"m": root.tag[1:].split("}")[0]} if root.tag.startswith("{") else {}
    prefix = "m:" if ns else ""
    artifact = root.findtext(f"{prefix}artifactId", default="", namespaces=ns)
    version = root.findtext(f"{prefix}version", default="", namespaces=ns)
    if not version:
        version = root.findtext(f"{prefix}parent/{prefix}version", default="0.0.0", namespaces=ns)
    return ProjectIdentity(name=artifact or project.name, version=version)


def goal_version(gi: GoalInvocation, identifier: ProjectIdentifier = node_project_identifier) -> str:
    """Version recorded by the version goal in the goal data, else the project's own version."""
    if gi.goal_event.data:
        try:
            data = json.loads(gi.goal_event.data)
        except json.JSONDecodeError:
            data = None
        if isinstance(data, dict) and data.get("version"):
            return str(data["version"])
    return identifier(gi.project).version


def default_branch(gi: GoalInvocation) -> str:
    return gi.push.default_branch if gi.push is not None else "master"


def github_client_for(gi: GoalInvocation) -> GitHubClient:
    return GitHubClient(gi.token or gi.configuration.github_token, gi.configuration.github_api_url)


def goal_result(result: CommandResult) -> ExecuteGoalResult:
    if result.ok:
        return ExecuteGoalResult()
    return ExecuteGoalResult(code=result.code, message=result.stderr.strip() or None)


def run_preparations(preparations: Iterable[Preparation], gi: GoalInvocation) -> ExecuteGoalResult:
    for preparation in preparations:
        result = preparation(gi.project, gi)
        if not result.ok:
            return result
    return ExecuteGoalResult()


@dataclass(frozen=True)
class DownloadedPackage:
    path: Path
    url: str


def download_npm_package(project: Project, gi: GoalInvocation, version: str, registry: str) -> DownloadedPackage:
    name = node_project_identifier(project).name
    url = npm_package_url(registry, name, version)
    tmp_dir = Path(os.environ.get("TMPDIR", tempfile.gettempdir())) / f"{project.name}-{uuid.uuid4()}"
    tgz = tmp_dir / "package.tgz"
    result = run_command(
        ["curl", "--output", str(tgz), "--silent", "--fail", "--create-dirs", url],
        log=gi.progress_log,
        ctx=gi.ctx,
    )
    if not result.ok:
        raise ScriptError(f"failed to download {url}", result.code, kind="download_failed")
    return DownloadedPackage(path=tgz, url=url)


def npm_release_preparation(options: NpmOptions) -> Preparation:
    """Replace the checkout with the published pre-release package and give it the release version."""

    def _prepare(project: Project, gi: GoalInvocation) -> ExecuteGoalResult:
        if not options.registry:
            raise ScriptError("No NPM registry defined in NPM options", ERR_CONFIG, kind="config_invalid")
        version = goal_version(gi)
        package = download_npm_package(project, gi, version, options.registry)
        tmp_dir = package.path.parent
        steps: list[tuple[list[str], Path | None]] = [
            (["tar", "-x", "-z", "-f", str(package.path)], tmp_dir),
            (["bash", "-c", "rm -r *"], project.base_dir),
            (["cp", "-r", "package/.", str(project.base_dir)], tmp_dir),
            (["npm", "--no-git-tag-version", "version", release_version(version)], project.base_dir),
            (["rm", "-rf", str(tmp_dir)], None),
        ]
        for cmd, cwd in steps:
            result = run_command(cmd, cwd=cwd, log=gi.progress_log, ctx=gi.ctx)
            if not result.ok:
                return goal_result(result)
        return ExecuteGoalResult()

    return _prepare


def execute_release_npm(
    options: NpmOptions,
    identifier: ProjectIdentifier = node_project_identifier,
    preparations: Iterable[Preparation] | None = None,
    client_factory: ClientFactory = github_client_for,
) -> GoalExecutor:
    steps = list(preparations) if preparations is not None else [npm_release_preparation(options)]

    def _execute(gi: GoalInvocation) -> ExecuteGoalResult:
        if not options.npmrc:
            raise ScriptError("No npmrc defined in NPM options", ERR_CONFIG, kind="config_invalid")
        project = gi.project
        project.write(".npmrc", options.npmrc)
        prepared = run_preparations(steps, gi)
        if not prepared.ok:
            return prepared
        published = run_command(
            ["npm", "publish", "--registry", options.registry, "--access", options.access or "restricted"],
            cwd=project.base_dir,
            log=gi.progress_log,
            ctx=gi.ctx,
        )
        if not published.ok:
            return goal_result(published)
        identity = identifier(project)
        url = npm_package_url(options.registry, identity.name, identity.version)
        client_factory(gi).create_status(
            gi.id,
            {"context": NPM_PACKAGE_STATUS_CONTEXT, "description": "NPM package", "target_url": url, "state": "success"},
        )
        log_event(gi.ctx, "info", "release", "npm", package=identity.name, version=identity.version)
        return ExecuteGoalResult(target_url=url)

    return _execute


def docker_login(options: DockerOptions, gi: GoalInvocation) -> CommandResult:
    return run_command(
        ["docker", "login", "--username", options.user or "", "--password-stdin"],
        log=gi.progress_log,
        ctx=gi.ctx,
        stdin=options.password or "",
    )


def docker_release_preparation(options: DockerOptions) -> Preparation:
    def _prepare(project: Project, gi: GoalInvocation) -> ExecuteGoalResult:
        image = docker_image(options.registry, project.name, goal_version(gi))
        login = docker_login(options, gi)
        if not login.ok:
            return goal_result(login)
        return goal_result(run_command(["docker", "pull", image], log=gi.progress_log, ctx=gi.ctx))

    return _prepare


def execute_release_docker(options: DockerOptions, preparations: Iterable[Preparation] | None = None) -> GoalExecutor:
    steps = list(preparations) if preparations is not None else [docker_release_preparation(options)]

    def _execute(gi: GoalInvocation) -> ExecuteGoalResult:
        if not options.registry:
            raise ScriptError("No registry defined in Docker options", ERR_CONFIG, kind="config_invalid")
        prepared = run_preparations(steps, gi)
        if not prepared.ok:
            return prepared
        version = goal_version(gi)
        name = gi.goal_event.repo.repo
        image = docker_image(options.registry, name, version)
        tag = docker_image(options.registry, name, release_version(version))
        return goal_result(
            run_chain(
                [["docker", "tag", image, tag], ["docker", "push", tag], ["docker", "rmi", tag]],
                log=gi.progress_log,
                ctx=gi.ctx,
            )
        )

    return _execute


def commit_title(message: str) -> str:
    return re.sub(r"\n[\s\S]*", "", message, count=1)


def head_commit_message(project: Project, sha: str) -> str:
    result = run_command(["git", "log", "-1", "--format=%B", sha or "HEAD"], cwd=project.base_dir)
    return result.stdout.strip() if result.ok else ""


def execute_release_tag(client_factory: ClientFactory = github_client_for) -> GoalExecutor:
    """Create the semantic version tag and a GitHub release for it."""

    def _execute(gi: GoalInvocation) -> ExecuteGoalResult:
        version = release_version(goal_version(gi))
        message = head_commit_message(gi.project, gi.goal_event.sha) or f"Release {version}"
        client = client_factory(gi)
        tag = tag_payload(version, gi.goal_event.sha, message)
        client.create_tag(gi.id, tag)
        client.create_tag_reference(gi.id, tag)
        client.create_release(gi.id, {"tag_name": version, "name": f"{version}: {commit_title(message)}"})
        return ExecuteGoalResult(target_url=f"{gi.id.url}/releases/tag/{version}")

    return _execute


def typedoc_dir(base_dir: Path) -> Path:
    return base_dir / "build" / "typedoc"


def docs_release_preparation(project: Project, gi: GoalInvocation) -> ExecuteGoalResult:
    return goal_result(
        run_chain(
            [
                ["npm", "ci"],
                ["npm", "run", "compile"],
                ["npm", "run", "typedoc"],
                ["touch", str(typedoc_dir(project.base_dir) / ".nojekyll")],
            ],
            cwd=project.base_dir,
            log=gi.progress_log,
            ctx=gi.ctx,
        )
    )


def execute_release_docs(preparations: Iterable[Preparation] = (docs_release_preparation,)) -> GoalExecutor:
    """Publish TypeDoc output to the gh-pages branch."""
    steps = list(preparations)

    def _execute(gi: GoalInvocation) -> ExecuteGoalResult:
        prepared = run_preparations(steps, gi)
        if not prepared.ok:
            return prepared
        version = release_version(goal_version(gi))
        doc_dir = typedoc_dir(gi.project.base_dir)
        owner, repo = gi.goal_event.repo.owner, gi.goal_event.repo.repo
        remote = git.clone_url(owner, repo, gi.token or gi.configuration.github_token)
        result = run_chain(
            [
                ["git", "init"],
                ["git", "add", "--all", "."],
                ["git", "commit", "--message", f"Publishing TypeDoc for version {version}"],
                ["git", "checkout", "-b", "gh-pages"],
                ["git", "remote", "add", "origin", remote],
                ["git", "push", "--force", "--set-upstream", "origin", "gh-pages"],
            ],
            cwd=doc_dir,
            log=gi.progress_log,
            ctx=gi.ctx,
        )
        if not result.ok:
            return goal_result(result)
        return ExecuteGoalResult(target_url=f"https://{owner}.github.io/{repo}")

    return _execute


NPM_INCREMENT_PATCH = ("npm", "version", "--no-git-tag-version", "patch")


def execute_release_version(
    identifier: ProjectIdentifier = node_project_identifier,
    increment_command: tuple[str, ...] = NPM_INCREMENT_PATCH,
) -> GoalExecutor:
    """Increment the patch level of the project version after a release."""

    def _execute(gi: GoalInvocation) -> ExecuteGoalResult:
        version = release_version(goal_version(gi, identifier))
        current = identifier(gi.project).version
        if current != version:
            message = f"package version ({current}) seems to have already been incremented after {version} release"
            DelimitedProgressLog(gi.progress_log).write(message)
            log_event(gi.ctx, "debug", "release", "version", detail=message)
            return ExecuteGoalResult(message=message)
        incremented = run_command(list(increment_command), cwd=gi.project.base_dir, log=gi.progress_log, ctx=gi.ctx)
        if not incremented.ok:
            return goal_result(incremented)
        committed = git.commit_all(gi.project.base_dir, f"Increment version after {version} release", log=gi.progress_log)
        if not committed.ok:
            return goal_result(committed)
        return goal_result(git.push(gi.project.base_dir, log=gi.progress_log))

    return _execute


def remove_tree(path: Path) -> None:
    shutil.rmtree(path, ignore_errors=True)
