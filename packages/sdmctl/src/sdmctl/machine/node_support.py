"""Node.js implementations of the delivery goals."""

from __future__ import annotations

import shlex

from ..adapters.github import GitHubClient
from ..autofix.atomist_header import ADD_ATOMIST_TYPESCRIPT_HEADER
from ..autofix.dockerfile import npm_dockerfile_fix
from ..autofix.third_party_license import ADD_THIRD_PARTY_LICENSE
from ..config.loader import NpmOptions
from ..core.logging import log_event
from ..core.process import run_command
from ..event.dist_tag import delete_dist_tag_on_branch_deletion
from ..inspection.tslint import TSLINT_FIX
from ..sdm.goals import ExecuteGoalResult, GoalExecutor, GoalInvocation
from ..sdm.machine import SoftwareDeliveryMachine
from ..sdm.project import Project
from ..sdm.push import PushListenerInvocation
from ..sdm.push_tests import all_satisfied, not_
from ..support.node_modules_hook import node_modules_project_hook
from ..support.push_tests import HAS_PACKAGE_LOCK, IS_MAVEN, IS_NODE
from ..support.tagger import automation_client_tagger, tag_repo
from ..transform.atomist_dependencies import TRY_TO_UPDATE_ATOMIST_DEPENDENCIES
from ..transform.package_author import UPDATE_PACKAGE_AUTHOR
from ..transform.rewrite_imports import REWRITE_IMPORTS, TYPESCRIPT_IMPORTS
from .docker_support import execute_docker_build
from .goals import DeliveryGoals
from .k8_support import kubernetes_deployment_data
from .release import (
    NPM_PACKAGE_STATUS_CONTEXT,
    ClientFactory,
    Preparation,
    default_branch,
    execute_release_docs,
    execute_release_npm,
    execute_release_version,
    github_client_for,
    goal_result,
    goal_version,
    node_project_identifier,
    npm_package_url,
    project_version,
    run_preparations,
)
from .smoke_test import execute_smoke_tests

NODE_PUSH_TEST = all_satisfied(IS_NODE, not_(IS_MAVEN))


def node_versioner(gi: GoalInvocation) -> ExecuteGoalResult:
    identity = node_project_identifier(gi.project)
    version = project_version(identity.version, gi.goal_event.branch, default_branch(gi))
    gi.progress_log.write(f"Calculated version {version}\n")
    return ExecuteGoalResult(message=f"Version {version}", data={"version": version})


def npm_version_preparation(project: Project, gi: GoalInvocation) -> ExecuteGoalResult:
    return goal_result(
        run_command(
            ["npm", "--no-git-tag-version", "version", goal_version(gi)],
            cwd=project.base_dir,
            log=gi.progress_log,
            ctx=gi.ctx,
        )
    )


def npm_compile_preparation(project: Project, gi: GoalInvocation) -> ExecuteGoalResult:
    return goal_result(run_command(["npm", "run", "compile"], cwd=project.base_dir, log=gi.progress_log, ctx=gi.ctx))


NPM_PREPARATIONS: tuple[Preparation, ...] = (npm_version_preparation, npm_compile_preparation)


def node_builder(command: str) -> GoalExecutor:
    def _execute(gi: GoalInvocation) -> ExecuteGoalResult:
        prepared = run_preparations((npm_version_preparation,), gi)
        if not prepared.ok:
            return prepared
        result = run_command(shlex.split(command), cwd=gi.project.base_dir, log=gi.progress_log, ctx=gi.ctx)
        log_event(gi.ctx, "info", "build", "node", command=command, code=result.code)
        return goal_result(result)

    return _execute


def execute_publish(
    options: NpmOptions,
    preparations: tuple[Preparation, ...] = NPM_PREPARATIONS,
    client_factory: ClientFactory = github_client_for,
) -> GoalExecutor:
    """Publish the pre-release package of the push to the registry."""

    def _execute(gi: GoalInvocation) -> ExecuteGoalResult:
        prepared = run_preparations(preparations, gi)
        if not prepared.ok:
            return prepared
        if options.npmrc:
            gi.project.write(".npmrc", options.npmrc)
        published = run_command(
            ["npm", "publish", "--registry", options.registry, "--access", options.access or "restricted"],
            cwd=gi.project.base_dir,
            log=gi.progress_log,
            ctx=gi.ctx,
        )
        if not published.ok:
            return goal_result(published)
        identity = node_project_identifier(gi.project)
        url = npm_package_url(options.registry, identity.name, identity.version)
        client_factory(gi).create_status(
            gi.id,
            {"context": NPM_PACKAGE_STATUS_CONTEXT, "description": "NPM package", "target_url": url, "state": "success"},
        )
        return ExecuteGoalResult(target_url=url)

    return _execute


def add_node_support(sdm: SoftwareDeliveryMachine, goals: DeliveryGoals) -> None:
    configuration = sdm.configuration

    goals.version.with_fulfillment("npm-versioner", node_versioner, NODE_PUSH_TEST)

    (
        goals.autofix.with_autofix(ADD_ATOMIST_TYPESCRIPT_HEADER)
        .with_autofix(TSLINT_FIX)
        .with_autofix(TYPESCRIPT_IMPORTS)
        .with_autofix(ADD_THIRD_PARTY_LICENSE)
        .with_autofix(npm_dockerfile_fix("npm", "@atomist/cli"))
        .with_project_hook(node_modules_project_hook)
    )

    goals.build.with_fulfillment(
        "npm-run-build", node_builder("npm run build"), all_satisfied(NODE_PUSH_TEST, HAS_PACKAGE_LOCK)
    ).with_project_hook(node_modules_project_hook)

    goals.publish.with_fulfillment("npm-publish", execute_publish(configuration.npm), NODE_PUSH_TEST).with_project_hook(
        node_modules_project_hook
    )
    goals.publish_with_approval.with_fulfillment(
        "npm-publish", execute_publish(configuration.npm), NODE_PUSH_TEST
    ).with_project_hook(node_modules_project_hook)

    goals.docker_build.with_fulfillment(
        "npm-docker-build",
        execute_docker_build(configuration.docker, NPM_PREPARATIONS, push=True),
        NODE_PUSH_TEST,
    ).with_project_hook(node_modules_project_hook)

    goals.release_npm.with_fulfillment("npm-release", execute_release_npm(configuration.npm), NODE_PUSH_TEST)
    goals.smoke_test.with_fulfillment("npm-smoke-test", execute_smoke_tests(configuration.smoke_test), NODE_PUSH_TEST)
    goals.release_docs.with_fulfillment("npm-docs-release", execute_release_docs(), NODE_PUSH_TEST)
    goals.release_version.with_fulfillment("npm-release-version", execute_release_version(), NODE_PUSH_TEST)

    deployment = kubernetes_deployment_data(configuration)
    goals.staging_deployment.with_deployment(deployment)
    goals.production_deployment.with_deployment(deployment)
    goals.production_deployment_with_approval.with_deployment(deployment)

    def _client(pli: PushListenerInvocation) -> GitHubClient:
        return GitHubClient(configuration.github_token, configuration.github_api_url)

    sdm.add_first_push_listener(tag_repo(automation_client_tagger, _client))
    sdm.add_event(delete_dist_tag_on_branch_deletion(configuration.npm))
    (
        sdm.add_code_transform_command(TRY_TO_UPDATE_ATOMIST_DEPENDENCIES)
        .add_code_transform_command(UPDATE_PACKAGE_AUTHOR)
        .add_code_transform_command(REWRITE_IMPORTS)
    )
