from __future__ import annotations

from typing import Iterable

from ..config.loader import DockerOptions
from ..core.logging import log_event
from ..core.process import run_command
from ..sdm.goals import ExecuteGoalResult, GoalExecutor, GoalInvocation
from ..support.push_tests import HAS_DOCKERFILE
from .goals import DeliveryGoals
from .release import (
    Preparation,
    ProjectIdentifier,
    docker_image,
    docker_login,
    execute_release_docker,
    goal_result,
    goal_version,
    node_project_identifier,
    run_preparations,
)


def execute_docker_build(
    options: DockerOptions,
    preparations: Iterable[Preparation] = (),
    push: bool = True,
    identifier: ProjectIdentifier = node_project_identifier,
) -> GoalExecutor:
    steps = list(preparations)

    def _execute(gi: GoalInvocation) -> ExecuteGoalResult:
        prepared = run_preparations(steps, gi)
        if not prepared.ok:
            return prepared
        image = docker_image(options.registry, gi.goal_event.repo.repo, goal_version(gi, identifier))
        cwd = gi.project.base_dir
        built = run_command(["docker", "build", ".", "-f", "Dockerfile", "-t", image], cwd=cwd, log=gi.progress_log, ctx=gi.ctx)
        if not built.ok:
            return goal_result(built)
        if push:
            if options.user and options.password:
                login = docker_login(options, gi)
                if not login.ok:
                    return goal_result(login)
            pushed = run_command(["docker", "push", image], log=gi.progress_log, ctx=gi.ctx)
            if not pushed.ok:
                return goal_result(pushed)
        log_event(gi.ctx, "info", "docker", "build", image=image, pushed=push)
        return ExecuteGoalResult(message=f"Built Docker image {image}", data={"image": image})

    return _execute


def add_docker_support(goals: DeliveryGoals, options: DockerOptions) -> None:
    goals.release_docker.with_fulfillment("docker-release", execute_release_docker(options), HAS_DOCKERFILE)
