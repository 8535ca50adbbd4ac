from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable, Generic, TypeVar

from .messages import BufferedMessageClient
from .push_tests import PushTest

if TYPE_CHECKING:
    from ..config.loader import SdmConfiguration
    from ..core.context import RunContext
    from .project import Project
    from .push import PushListenerInvocation
    from .review import ProjectReview, PushImpactResponse

P = TypeVar("P")


@dataclass
class CommandListenerInvocation(Generic[P]):
    parameters: P
    configuration: SdmConfiguration
    messages: BufferedMessageClient = field(default_factory=BufferedMessageClient)
    workspace_id: str = ""
    token: str | None = None
    ctx: RunContext | None = None


@dataclass(frozen=True)
class EditMode:
    message: str
    branch: str
    auto_merge: str | None = None


@dataclass(frozen=True)
class ReviewListenerInvocation:
    review: ProjectReview
    pli: PushListenerInvocation | None = None


CodeTransform = Callable[["Project", CommandListenerInvocation[Any]], object]
CodeInspection = Callable[["Project", CommandListenerInvocation[Any]], "ProjectReview"]
ReviewListener = Callable[[ReviewListenerInvocation], "PushImpactResponse"]
CommandListener = Callable[[CommandListenerInvocation[Any]], object]
EventListener = Callable[[dict[str, Any], CommandListenerInvocation[Any]], object]


@dataclass(frozen=True)
class AutofixRegistration:
    name: str
    transform: CodeTransform
    push_test: PushTest | None = None
    parameters: object | None = None


@dataclass(frozen=True)
class CodeTransformRegistration:
    name: str
    transform: CodeTransform
    description: str = ""
    intent: tuple[str, ...] = ()
    parameters_maker: Callable[[], object] | None = None
    transform_presentation: Callable[[CommandListenerInvocation[Any]], EditMode] | None = None


@dataclass(frozen=True)
class CommandHandlerRegistration:
    name: str
    listener: CommandListener
    description: str = ""
    intent: tuple[str, ...] = ()
    parameters_maker: Callable[..., object] | None = None


@dataclass(frozen=True)
class EventHandlerRegistration:
    name: str
    listener: EventListener
    subscription: str
    description: str = ""
    tags: tuple[str, ...] = ()


@dataclass(frozen=True)
class CodeInspectionRegistration:
    name: str
    inspection: CodeInspection


@dataclass(frozen=True)
class ReviewListenerRegistration:
    name: str
    listener: ReviewListener
