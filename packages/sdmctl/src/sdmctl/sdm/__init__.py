"""Declarative delivery API the machine configuration is written against."""

from __future__ import annotations

from .builtin_goals import AutofixGoal, CodeInspectionGoal, KubernetesDeployGoal, PushImpactGoal
from .goals import (
    DO_NOT_SET_ANY_GOALS,
    INDEPENDENT_OF_ENVIRONMENT,
    NO_GOALS,
    PRODUCTION_ENVIRONMENT,
    STAGING_ENVIRONMENT,
    SUCCESS,
    ExecuteGoalResult,
    Goal,
    GoalDefinition,
    GoalInvocation,
    Goals,
    GoalState,
    HookPhase,
    SdmGoalEvent,
    goals,
)
from .machine import PushRule, SoftwareDeliveryMachine, when_push_satisfies
from .messages import BufferedMessageClient
from .progress_log import StringCapturingProgressLog
from .project import Project
from .push import Commit, Push, PushListenerInvocation
from .push_tests import (
    IS_IN_LOCAL_MODE,
    TO_DEFAULT_BRANCH,
    PushTest,
    all_satisfied,
    any_satisfied,
    has_file,
    has_file_containing,
    not_,
    push_test,
)
from .registrations import (
    AutofixRegistration,
    CodeInspectionRegistration,
    CodeTransformRegistration,
    CommandHandlerRegistration,
    CommandListenerInvocation,
    EditMode,
    EventHandlerRegistration,
    ReviewListenerRegistration,
)
from .review import ProjectReview, PushImpactResponse, ReviewComment, SourceLocation

__all__ = [
    "AutofixGoal",
    "AutofixRegistration",
    "BufferedMessageClient",
    "CodeInspectionGoal",
    "CodeInspectionRegistration",
    "CodeTransformRegistration",
    "CommandHandlerRegistration",
    "CommandListenerInvocation",
    "Commit",
    "DO_NOT_SET_ANY_GOALS",
    "EditMode",
    "EventHandlerRegistration",
    "ExecuteGoalResult",
    "Goal",
    "GoalDefinition",
    "GoalInvocation",
    "GoalState",
    "Goals",
    "HookPhase",
    "INDEPENDENT_OF_ENVIRONMENT",
    "IS_IN_LOCAL_MODE",
    "KubernetesDeployGoal",
    "NO_GOALS",
    "PRODUCTION_ENVIRONMENT",
    "Project",
    "ProjectReview",
    "Push",
    "PushImpactGoal",
    "PushImpactResponse",
    "PushListenerInvocation",
    "PushRule",
    "PushTest",
    "ReviewComment",
    "ReviewListenerRegistration",
    "STAGING_ENVIRONMENT",
    "SUCCESS",
    "SdmGoalEvent",
    "SoftwareDeliveryMachine",
    "SourceLocation",
    "StringCapturingProgressLog",
    "TO_DEFAULT_BRANCH",
    "all_satisfied",
    "any_satisfied",
    "goals",
    "has_file",
    "has_file_containing",
    "not_",
    "push_test",
    "when_push_satisfies",
]
