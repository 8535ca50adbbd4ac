"""Kubernetes namespace, ingress and deployment data derived from repository naming conventions."""

from __future__ import annotations

import re
from typing import Callable

from ..config.loader import SdmConfiguration
from ..core.logging import log_event
from ..sdm.goals import PRODUCTION_ENVIRONMENT, STAGING_ENVIRONMENT, SdmGoalEvent
from ..sdm.project import Project
from ..support.push_tests import is_maven_project

_SDM_NAME = re.compile(r"-sdm$")
_INGRESS_HOSTS = {
    "card-automation": "pusher",
    "intercom-automation": "intercom",
    "rolar": "rolar",
}


def _same_environment(environment: str, expected: str) -> bool:
    return environment.rstrip("/") == expected.rstrip("/")


def namespace_from_goal(name: str, environment: str) -> str:
    if name == "atomist-internal-sdm":
        if _same_environment(environment, STAGING_ENVIRONMENT):
            return "sdm-testing"
        if _same_environment(environment, PRODUCTION_ENVIRONMENT):
            return "sdm"
    elif _SDM_NAME.search(name) and name not in {"sample-sdm", "spring-sdm"}:
        return "sdm"
    elif name == "k8-automation":
        return "k8-automation"
    elif _same_environment(environment, STAGING_ENVIRONMENT):
        return "testing"
    elif _same_environment(environment, PRODUCTION_ENVIRONMENT):
        return "production"
    log_event(None, "debug", "k8s", "namespace", detail=f"Unmatched goal.environment using default namespace: {environment}")
    return "default"


def ingress_from_goal(repo: str, ns: str) -> dict[str, str] | None:
    tail = "com" if ns == "production" else "services"
    if repo == "sdm-automation":
        return {"host": f"badge.atomist.{tail}", "path": "/"}
    host = _INGRESS_HOSTS.get(repo)
    if host is None:
        return None
    return {"host": f"{host}.atomist.{tail}", "path": "/", "tlsSecret": f"star-atomist-{tail}"}


def deployment_data(goal: SdmGoalEvent, project: Project, configuration: SdmConfiguration) -> dict[str, object]:
    ns = namespace_from_goal(goal.repo.repo, goal.environment)
    return {
        "name": goal.repo.repo,
        "environment": configuration.environment.split("_")[0],
        "port": 8080 if is_maven_project(project) else 2866,
        "ns": ns,
        "imagePullSecret": configuration.image_pull_secret,
        "replicas": 3 if ns == "production" else 1,
        **(ingress_from_goal(goal.repo.repo, ns) or {}),
    }


def kubernetes_deployment_data(configuration: SdmConfiguration) -> Callable[[SdmGoalEvent, Project], dict[str, object]]:
    return lambda goal, project: deployment_data(goal, project, configuration)
