from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import TYPE_CHECKING, Callable, Union

from ..adapters.github import RepoRef
from ..errors import ScriptError
from ..exit_codes import ERR_VALIDATION
from .push_tests import PushTest

if TYPE_CHECKING:
    from ..config.loader import SdmConfiguration
    from ..core.context import RunContext
    from .messages import BufferedMessageClient
    from .progress_log import ProgressLog
    from .project import Project
    from .push import Push, PushListenerInvocation

INDEPENDENT_OF_ENVIRONMENT = "0-code/"
STAGING_ENVIRONMENT = "1-staging/"
PRODUCTION_ENVIRONMENT = "2-prod/"


class GoalState(str, Enum):
    PLANNED = "planned"
    REQUESTED = "requested"
    IN_PROCESS = "in_process"
    WAITING_FOR_APPROVAL = "waiting_for_approval"
    APPROVED = "approved"
    WAITING_FOR_PRE_APPROVAL = "waiting_for_pre_approval"
    PRE_APPROVED = "pre_approved"
    SUCCESS = "success"
    FAILURE = "failure"
    SKIPPED = "skipped"
    CANCELED = "canceled"
    STOPPED = "stopped"


class HookPhase(str, Enum):
    PRE = "pre"
    POST = "post"


@dataclass(frozen=True)
class GoalDefinition:
    unique_name: str
    display_name: str = ""
    environment: str = INDEPENDENT_OF_ENVIRONMENT
    working_description: str = ""
    completed_description: str = ""
    failed_description: str = ""
    waiting_for_approval_description: str = ""
    isolated: bool = False
    approval_required: bool = False

    def to_payload(self) -> dict[str, object]:
        return {
            "unique_name": self.unique_name,
            "display_name": self.display_name or self.unique_name,
            "environment": self.environment,
            "isolated": self.isolated,
            "approval_required": self.approval_required,
        }


@dataclass(frozen=True)
class ExecuteGoalResult:
    code: int = 0
    message: str | None = None
    target_url: str | None = None
    state: GoalState | None = None
    data: dict[str, object] | None = None

    @property
    def ok(self) -> bool:
        return self.code == 0

    def to_payload(self) -> dict[str, object]:
        return {
            "code": self.code,
            "message": self.message,
            "target_url": self.target_url,
            "state": self.state.value if self.state else (GoalState.SUCCESS if self.ok else GoalState.FAILURE).value,
            "data": self.data,
        }


SUCCESS = ExecuteGoalResult()


@dataclass(frozen=True)
class Provenance:
    name: str
    registration: str
    version: str
    correlation_id: str
    ts: int


@dataclass(frozen=True)
class GoalApproval:
    channel_id: str = ""
    user_id: str = ""


@dataclass(frozen=True)
class SdmGoalEvent:
    goal_set: str
    goal_set_id: str
    unique_name: str
    name: str
    environment: str
    state: GoalState
    sha: str
    branch: str
    repo: RepoRef
    url: str = ""
    description: str = ""
    ts: int = 0
    version: int = 1
    provenance: tuple[Provenance, ...] = ()
    data: str | None = None
    approval: GoalApproval | None = None
    pre_approval: GoalApproval | None = None
    tags: tuple[str, ...] = ()

    @classmethod
    def from_payload(cls, payload: object) -> "SdmGoalEvent":
        try:
            return cls._from_payload(payload)
        except (AttributeError, TypeError, ValueError) as exc:
            raise ScriptError(f"invalid goal event: {exc}", ERR_VALIDATION, kind="invalid_goal") from exc

    @classmethod
    def _from_payload(cls, payload: object) -> "SdmGoalEvent":
        if not isinstance(payload, dict):
            raise TypeError("goal event must be a JSON object")
        repo = payload.get("repo") or {}
        if not isinstance(repo, dict):
            raise TypeError("repo must be a JSON object")

        def _approval(raw: object) -> GoalApproval | None:
            if not isinstance(raw, dict):
                return None
            return GoalApproval(channel_id=str(raw.get("channel_id", "")), user_id=str(raw.get("user_id", "")))

        return cls(
            goal_set=str(payload.get("goal_set", "")),
            goal_set_id=str(payload.get("goal_set_id", "")),
            unique_name=str(payload.get("unique_name", "")),
            name=str(payload.get("name", payload.get("unique_name", ""))),
            environment=str(payload.get("environment", INDEPENDENT_OF_ENVIRONMENT)),
            state=GoalState(str(payload.get("state", GoalState.REQUESTED.value))),
            sha=str(payload.get("sha", "")),
            branch=str(payload.get("branch", "")),
            repo=RepoRef(owner=str(repo.get("owner", "")), repo=str(repo.get("name", ""))),
            url=str(payload.get("url", "")),
            description=str(payload.get("description", "")),
            ts=int(payload.get("ts", 0) or 0),
            version=int(payload.get("version", 1) or 1),
            provenance=tuple(Provenance(**p) for p in payload.get("provenance", []) or []),
            data=payload.get("data") if isinstance(payload.get("data"), str) else None,
            approval=_approval(payload.get("approval")),
            pre_approval=_approval(payload.get("pre_approval")),
            tags=tuple(str(t) for t in payload.get("tags", []) or []),
        )

    def to_payload(self) -> dict[str, object]:
        def _approval(a: GoalApproval | None) -> dict[str, str] | None:
            return None if a is None else {"channel_id": a.channel_id, "user_id": a.user_id}

        return {
            "goal_set": self.goal_set,
            "goal_set_id": self.goal_set_id,
            "unique_name": self.unique_name,
            "name": self.name,
            "environment": self.environment,
            "state": self.state.value,
            "sha": self.sha,
            "branch": self.branch,
            "repo": {"owner": self.repo.owner, "name": self.repo.repo},
            "url": self.url,
            "description": self.description,
            "ts": self.ts,
            "version": self.version,
            "provenance": [vars(p) for p in self.provenance],
            "data": self.data,
            "approval": _approval(self.approval),
            "pre_approval": _approval(self.pre_approval),
            "tags": list(self.tags),
        }

    def evolve(self, **changes: object) -> "SdmGoalEvent":
        return replace(self, **changes)


@dataclass
class GoalInvocation:
    goal_event: SdmGoalEvent
    configuration: SdmConfiguration
    project: Project
    progress_log: ProgressLog
    messages: BufferedMessageClient
    token: str | None = None
    ctx: RunContext | None = None
    push: Push | None = None

    @property
    def id(self) -> RepoRef:
        return RepoRef(self.goal_event.repo.owner, self.goal_event.repo.repo, self.goal_event.sha, self.goal_event.branch)


GoalExecutor = Callable[[GoalInvocation], ExecuteGoalResult]
GoalProjectHook = Callable[["Project", GoalInvocation, HookPhase], None]


@dataclass(frozen=True)
class Fulfillment:
    name: str
    goal_executor: GoalExecutor
    push_test: PushTest | None = None


class Goal:
    def __init__(self, definition: GoalDefinition, *dependencies: Goal) -> None:
        self.definition = definition
        self.dependencies: tuple[Goal, ...] = tuple(dependencies)
        self.fulfillments: list[Fulfillment] = []
        self.project_hooks: list[GoalProjectHook] = []

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.unique_name!r})"

    @property
    def unique_name(self) -> str:
        return self.definition.unique_name

    @property
    def name(self) -> str:
        return self.definition.display_name or self.definition.unique_name

    @property
    def environment(self) -> str:
        return self.definition.environment

    def with_fulfillment(self, name: str, goal_executor: GoalExecutor, push_test: PushTest | None = None) -> Goal:
        self.fulfillments.append(Fulfillment(name, goal_executor, push_test))
        return self

    def with_project_hook(self, hook: GoalProjectHook) -> Goal:
        self.project_hooks.append(hook)
        return self

    def fulfillment_for(self, pli: PushListenerInvocation) -> Fulfillment | None:
        for fulfillment in self.fulfillments:
            if fulfillment.push_test is None or fulfillment.push_test(pli):
                return fulfillment
        return None

    def executor_for(self, pli: PushListenerInvocation) -> GoalExecutor | None:
        fulfillment = self.fulfillment_for(pli)
        return fulfillment.goal_executor if fulfillment else None

    def execute(self, gi: GoalInvocation, pli: PushListenerInvocation) -> ExecuteGoalResult:
        executor = self.executor_for(pli)
        if executor is None:
            return ExecuteGoalResult(
                code=0,
                message=f"No fulfillment of goal '{self.unique_name}' applies to this push",
                state=GoalState.SKIPPED,
            )
        for hook in self.project_hooks:
            hook(gi.project, gi, HookPhase.PRE)
        result = executor(gi)
        for hook in self.project_hooks:
            hook(gi.project, gi, HookPhase.POST)
        return result


GoalComponent = Union[Goal, "Goals"]


@dataclass(frozen=True)
class PlannedGoal:
    goal: Goal
    after: tuple[Goal, ...] = ()

    @property
    def preconditions(self) -> tuple[str, ...]:
        names = [g.unique_name for g in self.goal.dependencies] + [g.unique_name for g in self.after]
        return tuple(dict.fromkeys(names))


class Goals:
    """Named goal set; records member goals and their preconditions as plain data."""

    def __init__(self, name: str) -> None:
        self.name = name
        self._planned: list[PlannedGoal] = []
        self._last: list[int] = []

    def __repr__(self) -> str:
        return f"Goals({self.name!r}, {[p.goal.unique_name for p in self._planned]})"

    def plan(self, *components: GoalComponent) -> Goals:
        self._last = []
        for component in components:
            planned = component.planned if isinstance(component, Goals) else (PlannedGoal(component),)
            for item in planned:
                self._last.append(self._add(item))
        return self

    def after(self, *goals: Goal) -> Goals:
        for index in self._last:
            current = self._planned[index]
            self._planned[index] = PlannedGoal(current.goal, current.after + tuple(goals))
        return self

    def _add(self, item: PlannedGoal) -> int:
        for index, existing in enumerate(self._planned):
            if existing.goal is item.goal:
                self._planned[index] = PlannedGoal(existing.goal, existing.after + item.after)
                return index
        self._planned.append(item)
        return len(self._planned) - 1

    @property
    def planned(self) -> tuple[PlannedGoal, ...]:
        return tuple(self._planned)

    @property
    def goals(self) -> tuple[Goal, ...]:
        return tuple(p.goal for p in self._planned)

    def find(self, unique_name: str) -> Goal | None:
        for goal in self.goals:
            if goal.unique_name == unique_name:
                return goal
        return None

    def preconditions_of(self, goal: Goal) -> tuple[str, ...]:
        for planned in self._planned:
            if planned.goal is goal:
                return planned.preconditions
        return ()

    def to_payload(self) -> dict[str, object]:
        return {
            "name": self.name,
            "goals": [
                {**p.goal.definition.to_payload(), "preconditions": list(p.preconditions)}
                for p in self._planned
            ],
        }


def goals(name: str) -> Goals:
    return Goals(name)


NO_GOALS = Goals("No action needed")
DO_NOT_SET_ANY_GOALS = Goals("Do not set any goals")
