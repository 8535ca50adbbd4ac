"""Maven implementations of the delivery goals."""

from __future__ import annotations

from ..config.loader import DockerOptions
from ..core.process import run_command
from ..sdm.goals import SUCCESS, ExecuteGoalResult, GoalExecutor, GoalInvocation
from ..sdm.project import Project
from ..support.push_tests import IS_MAVEN
from .docker_support import execute_docker_build
from .goals import DeliveryGoals
from .release import (
    Preparation,
    default_branch,
    execute_release_version,
    goal_result,
    goal_version,
    maven_project_identifier,
    project_version,
)

MAVEN_INCREMENT_VERSION = (
    "./mvnw",
    "build-helper:parse-version",
    "versions:set",
    "-DnewVersion=${parsedVersion.majorVersion}.${parsedVersion.minorVersion}."
    "${parsedVersion.nextIncrementalVersion}-${parsedVersion.qualifier}",
    "versions:commit",
)


def maven_command(project: Project) -> str:
    return "./mvnw" if project.has_file("mvnw") else "mvn"


def maven_args(*names: str) -> list[str]:
    return [f"-D{name}" for name in names]


def maven_versioner(gi: GoalInvocation) -> ExecuteGoalResult:
    identity = maven_project_identifier(gi.project)
    base = identity.version.replace("-SNAPSHOT", "")
    version = project_version(base, gi.goal_event.branch, default_branch(gi))
    gi.progress_log.write(f"Calculated version {version}\n")
    return ExecuteGoalResult(message=f"Version {version}", data={"version": version})


def maven_version_preparation(project: Project, gi: GoalInvocation) -> ExecuteGoalResult:
    version = goal_version(gi, maven_project_identifier)
    return goal_result(
        run_command(
            [maven_command(project), "versions:set", f"-DnewVersion={version}", "versions:commit"],
            cwd=project.base_dir,
            log=gi.progress_log,
            ctx=gi.ctx,
        )
    )


def maven_package(*args: str) -> GoalExecutor:
    def _execute(gi: GoalInvocation) -> ExecuteGoalResult:
        project = gi.project
        return goal_result(
            run_command(
                [maven_command(project), "package", *maven_args(*args)],
                cwd=project.base_dir,
                log=gi.progress_log,
                ctx=gi.ctx,
            )
        )

    return _execute


def maven_compile_preparation(*args: str) -> Preparation:
    package = maven_package(*args)
    return lambda project, gi: package(gi)


def _success(gi: GoalInvocation) -> ExecuteGoalResult:
    return SUCCESS


def add_maven_support(goals: DeliveryGoals, docker_options: DockerOptions) -> None:
    goals.build.with_fulfillment("mvn-package", maven_package("skip.npm", "skip.webpack"), IS_MAVEN)
    goals.version.with_fulfillment("mvn-versioner", maven_versioner, IS_MAVEN)
    goals.docker_build.with_fulfillment(
        "mvn-docker-build",
        execute_docker_build(
            docker_options,
            (maven_version_preparation, maven_compile_preparation("skipTests", "skip.npm", "skip.webpack")),
            identifier=maven_project_identifier,
        ),
        IS_MAVEN,
    )
    goals.release_version.with_fulfillment(
        "mvn-release-version",
        execute_release_version(maven_project_identifier, MAVEN_INCREMENT_VERSION),
        IS_MAVEN,
    )
    goals.publish.with_fulfillment("mvn-publish", _success, IS_MAVEN)
    goals.release_docs.with_fulfillment("mvn-docs-release", _success, IS_MAVEN)
    goals.release_npm.with_fulfillment("mvn-release", _success, IS_MAVEN)
