from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Callable

from ..core.logging import log_event
from .goals import DO_NOT_SET_ANY_GOALS, Goals
from .push_tests import PushTest

if TYPE_CHECKING:
    from ..config.loader import SdmConfiguration
    from .push import PushListenerInvocation
    from .registrations import (
        CodeTransformRegistration,
        CommandHandlerRegistration,
        EventHandlerRegistration,
    )

FirstPushListener = Callable[["PushListenerInvocation"], object]
IssueListener = Callable[[dict[str, object]], object]


@dataclass(frozen=True)
class PushRule:
    name: str
    push_tests: tuple[PushTest, ...]
    goals: Goals

    def matches(self, pli: PushListenerInvocation) -> bool:
        return all(test(pli) for test in self.push_tests)

    @property
    def sets_goals(self) -> bool:
        return self.goals is not DO_NOT_SET_ANY_GOALS


@dataclass(frozen=True)
class _PendingRule:
    push_tests: tuple[PushTest, ...]
    name: str = ""

    def it_means(self, name: str) -> _PendingRule:
        return _PendingRule(self.push_tests, name)

    def set_goals(self, goal_set: Goals) -> PushRule:
        return PushRule(self.name or goal_set.name, self.push_tests, goal_set)


def when_push_satisfies(*push_tests: PushTest) -> _PendingRule:
    return _PendingRule(tuple(push_tests))


@dataclass
class SoftwareDeliveryMachine:
    name: str
    configuration: SdmConfiguration
    rules: list[PushRule] = field(default_factory=list)
    commands: list[CommandHandlerRegistration] = field(default_factory=list)
    code_transforms: list[CodeTransformRegistration] = field(default_factory=list)
    events: list[EventHandlerRegistration] = field(default_factory=list)
    first_push_listeners: list[FirstPushListener] = field(default_factory=list)
    new_issue_listeners: list[IssueListener] = field(default_factory=list)
    pull_request_listeners: list[IssueListener] = field(default_factory=list)
    approval_voters: list[str] = field(default_factory=list)

    def add_rules(self, *rules: PushRule) -> SoftwareDeliveryMachine:
        self.rules.extend(rules)
        return self

    def add_command(self, registration: CommandHandlerRegistration) -> SoftwareDeliveryMachine:
        self.commands.append(registration)
        return self

    def add_code_transform_command(self, registration: CodeTransformRegistration) -> SoftwareDeliveryMachine:
        self.code_transforms.append(registration)
        return self

    def add_event(self, registration: EventHandlerRegistration) -> SoftwareDeliveryMachine:
        self.events.append(registration)
        return self

    def add_first_push_listener(self, listener: FirstPushListener) -> SoftwareDeliveryMachine:
        self.first_push_listeners.append(listener)
        return self

    def add_new_issue_listener(self, listener: IssueListener) -> SoftwareDeliveryMachine:
        self.new_issue_listeners.append(listener)
        return self

    def add_pull_request_listener(self, listener: IssueListener) -> SoftwareDeliveryMachine:
        self.pull_request_listeners.append(listener)
        return self

    def add_goal_approval_request_voter(self, github_team: str) -> SoftwareDeliveryMachine:
        self.approval_voters.append(github_team)
        return self

    def plan(self, pli: PushListenerInvocation) -> PushRule | None:
        for rule in self.rules:
            if rule.matches(pli):
                log_event(None, "debug", "machine", "plan", rule=rule.name, repo=pli.push.slug)
                return rule
        return None

    def find_command(self, name: str) -> CommandHandlerRegistration | None:
        return next((c for c in self.commands if c.name == name), None)

    def find_code_transform(self, name: str) -> CodeTransformRegistration | None:
        return next((t for t in self.code_transforms if t.name == name), None)

    def find_event(self, name: str) -> EventHandlerRegistration | None:
        return next((e for e in self.events if e.name == name), None)
