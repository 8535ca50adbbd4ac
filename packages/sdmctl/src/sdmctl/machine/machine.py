"""The configured software delivery machine."""

from __future__ import annotations

from ..autofix.header import ADD_APACHE_LICENSE_TRANSFORM
from ..autofix.support_files import UPDATE_SUPPORT_FILES_TRANSFORM
from ..autofix.test_naming import RENAME_TEST
from ..command.approval import GoalLookup, approval_command, cancel_approval_command
from ..command.badge import CREATE_BADGE_URL
from ..command.disk_usage import DISK_USAGE_COMMAND
from ..command.tag import CREATE_TAG
from ..config.loader import SdmConfiguration
from ..inspection.review_comments import FAIL_GOAL_IF_ERROR_COMMENTS
from ..inspection.tslint import RUN_TSLINT
from ..sdm.goals import DO_NOT_SET_ANY_GOALS, NO_GOALS
from ..sdm.machine import PushRule, SoftwareDeliveryMachine, when_push_satisfies
from ..sdm.push_tests import IS_IN_LOCAL_MODE, TO_DEFAULT_BRANCH, all_satisfied, any_satisfied, not_
from ..support.push_tests import (
    HAS_DOCKERFILE,
    HAS_TRAVIS_FILE,
    IS_ATOMIST_AUTOMATION_CLIENT,
    IS_DEPLOY_ENABLED,
    IS_MAVEN,
    IS_NODE,
    MATERIAL_CHANGE_TO_JAVA_REPO,
    MATERIAL_CHANGE_TO_NODE_REPO,
    is_named,
    is_sdm_enabled,
    is_team,
)
from .docker_support import add_docker_support
from .github_support import add_github_support
from .goals import DeliveryGoals, create_goals
from .homebrew_support import add_homebrew_support
from .maven_support import add_maven_support
from .node_support import add_node_support
from .team_policies import add_team_policies

MACHINE_NAME = "Atomist Software Delivery Machine"
SIMPLIFIED_DEPLOY_REPOS = ("k8-automation", "atomist-sdm", "atomist-internal-sdm")


def push_rules(configuration: SdmConfiguration, goals: DeliveryGoals) -> list[PushRule]:
    node_or_maven = any_satisfied(IS_NODE, IS_MAVEN)
    return [
        when_push_satisfies(not_(IS_NODE)).it_means("Non Node repository").set_goals(DO_NOT_SET_ANY_GOALS),
        when_push_satisfies(IS_NODE, IS_IN_LOCAL_MODE).it_means("Node repository in local mode").set_goals(goals.local),
        when_push_satisfies(not_(is_sdm_enabled(configuration.name)), is_team(configuration.community_team))
        .it_means("Node repository in atomist team that we are already building in atomist-community")
        .set_goals(DO_NOT_SET_ANY_GOALS),
        when_push_satisfies(all_satisfied(IS_NODE, not_(IS_MAVEN)), not_(MATERIAL_CHANGE_TO_NODE_REPO))
        .it_means("No Material Change")
        .set_goals(NO_GOALS),
        when_push_satisfies(IS_MAVEN, not_(MATERIAL_CHANGE_TO_JAVA_REPO)).it_means("No Material Change").set_goals(NO_GOALS),
        when_push_satisfies(IS_NODE, HAS_TRAVIS_FILE).it_means("Just Checking").set_goals(goals.check),
        when_push_satisfies(
            IS_NODE,
            HAS_DOCKERFILE,
            TO_DEFAULT_BRANCH,
            IS_ATOMIST_AUTOMATION_CLIENT,
            is_named(*SIMPLIFIED_DEPLOY_REPOS),
        )
        .it_means("Simplified Deploy")
        .set_goals(goals.simplified_kubernetes_deploy),
        when_push_satisfies(node_or_maven, HAS_DOCKERFILE, TO_DEFAULT_BRANCH, IS_DEPLOY_ENABLED)
        .it_means("Deploy")
        .set_goals(goals.kubernetes_deploy),
        when_push_satisfies(node_or_maven, HAS_DOCKERFILE, TO_DEFAULT_BRANCH)
        .it_means("Docker Release Build")
        .set_goals(goals.docker_release),
        when_push_satisfies(node_or_maven, HAS_DOCKERFILE).it_means("Docker Build").set_goals(goals.docker),
        when_push_satisfies(IS_NODE, not_(HAS_DOCKERFILE), TO_DEFAULT_BRANCH)
        .it_means("Release Build")
        .set_goals(goals.build_release),
        when_push_satisfies(IS_NODE, not_(HAS_DOCKERFILE)).it_means("Build").set_goals(goals.build_goals),
    ]


def create_machine(
    configuration: SdmConfiguration, goal_lookup: GoalLookup | None = None
) -> tuple[SoftwareDeliveryMachine, DeliveryGoals]:
    goals = create_goals()
    sdm = SoftwareDeliveryMachine(name=MACHINE_NAME, configuration=configuration)
    sdm.add_rules(*push_rules(configuration, goals))

    sdm.add_command(CREATE_TAG).add_command(DISK_USAGE_COMMAND).add_command(CREATE_BADGE_URL)
    if goal_lookup is not None:
        sdm.add_command(approval_command(goal_lookup)).add_command(cancel_approval_command(goal_lookup))
    (
        sdm.add_code_transform_command(ADD_APACHE_LICENSE_TRANSFORM)
        .add_code_transform_command(UPDATE_SUPPORT_FILES_TRANSFORM)
        .add_code_transform_command(RENAME_TEST)
    )

    goals.auto_code_inspection.with_inspection(RUN_TSLINT).with_listener(FAIL_GOAL_IF_ERROR_COMMENTS)

    add_github_support(goals)
    add_docker_support(goals, configuration.docker)
    add_maven_support(goals, configuration.docker)
    add_node_support(sdm, goals)
    add_homebrew_support(goals, configuration.homebrew_tap_repo)
    add_team_policies(sdm, goals)

    sdm.add_goal_approval_request_voter(configuration.approval_team)
    return sdm, goals
