from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Literal

Severity = Literal["error", "warn", "info"]


@dataclass(frozen=True)
class SourceLocation:
    path: str
    offset: int = 0
    line_from1: int | None = None
    column_from1: int | None = None


@dataclass(frozen=True)
class ReviewComment:
    severity: str
    detail: str
    category: str
    subcategory: str
    source_location: SourceLocation | None = None

    def to_payload(self) -> dict[str, object]:
        loc = self.source_location
        return {
            "severity": self.severity,
            "detail": self.detail,
            "category": self.category,
            "subcategory": self.subcategory,
            "source_location": None
            if loc is None
            else {
                "path": loc.path,
                "offset": loc.offset,
                "line_from1": loc.line_from1,
                "column_from1": loc.column_from1,
            },
        }


@dataclass
class ProjectReview:
    repo: str
    comments: list[ReviewComment] = field(default_factory=list)


class PushImpactResponse(str, Enum):
    PROCEED = "proceed"
    REQUIRE_APPROVAL_TO_PROCEED = "require_approval_to_proceed"
    FAIL_GOALS = "fail_goals"
