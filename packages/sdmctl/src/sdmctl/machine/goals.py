"""Goal definitions and the goal sets push rules choose from."""

from __future__ import annotations

from dataclasses import dataclass

from ..sdm.builtin_goals import AutofixGoal, CodeInspectionGoal, KubernetesDeployGoal, PushImpactGoal
from ..sdm.goals import (
    INDEPENDENT_OF_ENVIRONMENT,
    PRODUCTION_ENVIRONMENT,
    Goal,
    GoalDefinition,
    Goals,
    goals,
)


def _release_goal(unique_name: str, display: str, working: str, completed: str, failed: str, *deps: Goal, isolated: bool = True) -> Goal:
    return Goal(
        GoalDefinition(
            unique_name=unique_name,
            environment=PRODUCTION_ENVIRONMENT,
            display_name=display,
            working_description=working,
            completed_description=completed,
            failed_description=failed,
            isolated=isolated,
        ),
        *deps,
    )


@dataclass(frozen=True)
class DeliveryGoals:
    auto_code_inspection: CodeInspectionGoal
    push_impact: PushImpactGoal
    version: Goal
    autofix: AutofixGoal
    build: Goal
    tag: Goal
    docker_build: Goal
    fingerprint: Goal
    staging_deployment: KubernetesDeployGoal
    production_deployment: KubernetesDeployGoal
    production_deployment_with_approval: KubernetesDeployGoal
    release_changelog: Goal
    publish: Goal
    publish_with_approval: Goal
    release_npm: Goal
    release_docker: Goal
    release_tag: Goal
    release_docs: Goal
    release_version: Goal
    release_homebrew: Goal
    smoke_test: Goal
    check: Goals
    local: Goals
    build_goals: Goals
    build_release: Goals
    docker: Goals
    docker_release: Goals
    kubernetes_deploy: Goals
    simplified_kubernetes_deploy: Goals

    @property
    def goal_sets(self) -> tuple[Goals, ...]:
        return (
            self.check,
            self.local,
            self.build_goals,
            self.build_release,
            self.docker,
            self.docker_release,
            self.kubernetes_deploy,
            self.simplified_kubernetes_deploy,
        )

    @property
    def all_goals(self) -> tuple[Goal, ...]:
        return tuple(
            g
            for g in vars(self).values()
            if isinstance(g, Goal)
        )

    def find(self, unique_name: str) -> Goal | None:
        return next((g for g in self.all_goals if g.unique_name == unique_name), None)


def create_goals() -> DeliveryGoals:
    """Build a fresh set of goals; fulfillments are attached later by the language support modules."""
    auto_code_inspection = CodeInspectionGoal()
    push_impact = PushImpactGoal()
    version = Goal(GoalDefinition("version", "version", working_description="Calculating version", completed_description="Versioned", failed_description="Couldn't version"))
    autofix = AutofixGoal()
    build = Goal(GoalDefinition("build", "build", working_description="Building", completed_description="Build successful", failed_description="Build failed"))
    tag = Goal(GoalDefinition("tag", "tag", working_description="Tagging", completed_description="Tagged", failed_description="Failed to create Tag"))
    docker_build = Goal(
        GoalDefinition(
            "docker-build",
            "docker build",
            working_description="Running Docker build",
            completed_description="Docker build successful",
            failed_description="Docker build failed",
            isolated=True,
        )
    )
    fingerprint = Goal(GoalDefinition("fingerprint", "fingerprint", working_description="Running fingerprint calculations", completed_description="Fingerprinted"))

    staging_deployment = KubernetesDeployGoal("testing", approval=True)
    production_deployment = KubernetesDeployGoal("production")
    production_deployment_with_approval = KubernetesDeployGoal("production", approval=True)
    release_changelog = Goal(
        GoalDefinition(
            "release-changelog",
            "update changelog",
            environment=PRODUCTION_ENVIRONMENT,
            working_description="Updating changelog",
            completed_description="Updated changelog",
            failed_description="Updating changelog failed",
        )
    )

    publish_definition = GoalDefinition(
        unique_name="publish",
        environment=INDEPENDENT_OF_ENVIRONMENT,
        display_name="publish",
        working_description="Publishing",
        completed_description="Published",
        failed_description="Publish failed",
        isolated=True,
    )
    publish = Goal(publish_definition, build, docker_build)
    publish_with_approval = Goal(
        GoalDefinition(
            unique_name="publish-approval",
            environment=INDEPENDENT_OF_ENVIRONMENT,
            display_name="publish",
            working_description="Publishing",
            completed_description="Published",
            failed_description="Publish failed",
            isolated=True,
            approval_required=True,
        ),
        build,
        docker_build,
    )

    release_npm = _release_goal("release-npm", "release NPM package", "Releasing NPM package", "Released NPM package", "Release NPM package failure")
    release_docker = _release_goal("release-docker", "release Docker image", "Releasing Docker image", "Released Docker image", "Release Docker image failure")
    release_tag = _release_goal("release-tag", "create release tag", "Creating release tag", "Created release tag", "Creating release tag failure", isolated=False)
    release_docs = _release_goal("release-docs", "publish docs", "Publishing docs", "Published docs", "Publishing docs failure")
    release_version = _release_goal(
        "release-version",
        "increment version",
        "Incrementing version",
        "Incremented version",
        "Incrementing version failure",
        release_changelog,
        isolated=False,
    )
    release_homebrew = _release_goal(
        "release-homebrew",
        "release Homebrew formula",
        "Releasing Homebrew formula",
        "Released Homebrew formula",
        "Release Homebrew formula failure",
    )
    smoke_test = _release_goal("smoke-test", "smoke test", "Running smoke tests", "Run smoke tests", "Smoke test failure", build)

    release_five = (release_npm, release_docker, release_docs, release_changelog, release_version)

    check = goals("Check").plan(autofix, auto_code_inspection, push_impact, fingerprint)

    local = (
        goals("Local Build")
        .plan(check)
        .plan(version).after(autofix)
        .plan(build).after(autofix, version)
    )

    build_goals = (
        goals("Build")
        .plan(check)
        .plan(version).after(autofix)
        .plan(build).after(autofix, version)
        .plan(tag, publish).after(build)
    )

    build_release = (
        goals("Build with Release")
        .plan(check)
        .plan(version).after(autofix)
        .plan(build).after(autofix, version)
        .plan(tag).after(build)
        .plan(publish_with_approval).after(build)
        .plan(release_npm, release_docs, release_changelog, release_version).after(publish_with_approval)
        .plan(release_tag).after(release_npm)
    )

    docker = goals("Docker Build").plan(build_goals).plan(docker_build).after(build)

    docker_release = (
        goals("Docker Build with Release")
        .plan(check)
        .plan(version).after(autofix)
        .plan(build).after(autofix, version)
        .plan(docker_build).after(build)
        .plan(tag).after(docker_build)
        .plan(publish_with_approval).after(build, docker_build)
        .plan(*release_five).after(publish_with_approval)
        .plan(release_tag).after(release_npm, release_docker)
    )

    kubernetes_deploy = (
        goals("Deploy")
        .plan(docker)
        .plan(staging_deployment).after(docker_build)
        .plan(production_deployment).after(staging_deployment)
        .plan(*release_five).after(production_deployment)
        .plan(release_tag).after(release_npm, release_docker)
    )

    simplified_kubernetes_deploy = (
        goals("Simplified Deploy")
        .plan(docker)
        .plan(production_deployment_with_approval).after(docker_build)
        .plan(*release_five).after(production_deployment_with_approval)
        .plan(release_tag).after(release_npm, release_docker)
    )

    return DeliveryGoals(
        auto_code_inspection=auto_code_inspection,
        push_impact=push_impact,
        version=version,
        autofix=autofix,
        build=build,
        tag=tag,
        docker_build=docker_build,
        fingerprint=fingerprint,
        staging_deployment=staging_deployment,
        production_deployment=production_deployment,
        production_deployment_with_approval=production_deployment_with_approval,
        release_changelog=release_changelog,
        publish=publish,
        publish_with_approval=publish_with_approval,
        release_npm=release_npm,
        release_docker=release_docker,
        release_tag=release_tag,
        release_docs=release_docs,
        release_version=release_version,
        release_homebrew=release_homebrew,
        smoke_test=smoke_test,
        check=check,
        local=local,
        build_goals=build_goals,
        build_release=build_release,
        docker=docker,
        docker_release=docker_release,
        kubernetes_deploy=kubernetes_deploy,
        simplified_kubernetes_deploy=simplified_kubernetes_deploy,
    )
