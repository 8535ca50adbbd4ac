from __future__ import annotations

from functools import cmp_to_key
from typing import Iterable

from ..core.logging import log_event
from ..sdm.registrations import ReviewListener, ReviewListenerInvocation, ReviewListenerRegistration
from ..sdm.review import PushImpactResponse, ReviewComment

SEVERITIES = ("error", "warn", "info")


def _severity_rank(severity: str) -> int:
    return SEVERITIES.index(severity) if severity in SEVERITIES else len(SEVERITIES)


def _cmp(a: str | int, b: str | int) -> int:
    return (a > b) - (a < b)  # type: ignore[operator]


def _text_cmp(a: str, b: str) -> int:
    # case-insensitive first, code point order breaks ties
    return _cmp(a.casefold(), b.casefold()) or _cmp(a, b)


def review_comment_sorter(a: ReviewComment, b: ReviewComment) -> int:
    if a.severity != b.severity:
        ranked = _severity_rank(a.severity) - _severity_rank(b.severity)
        if ranked:
            return -1 if ranked < 0 else 1
        return _text_cmp(a.severity, b.severity)
    if a.category != b.category:
        return _text_cmp(a.category, b.category)
    if a.subcategory != b.subcategory:
        return _text_cmp(a.subcategory, b.subcategory)
    la, lb = a.source_location, b.source_location
    if la is None and lb is None:
        return 0
    if la is None:
        return -1
    if lb is None:
        return 1
    if la.path != lb.path:
        return _text_cmp(la.path, lb.path)
    return _cmp(la.offset, lb.offset)


def sort_review_comments(comments: Iterable[ReviewComment]) -> list[ReviewComment]:
    return sorted(comments, key=cmp_to_key(review_comment_sorter))


def errors_exist_review_listener(response_if_error: PushImpactResponse) -> ReviewListener:
    def _listener(rli: ReviewListenerInvocation) -> PushImpactResponse:
        if any(c.severity == "error" for c in rli.review.comments):
            return response_if_error
        return PushImpactResponse.PROCEED

    return _listener


def _fail_goals_if_comments(rli: ReviewListenerInvocation) -> PushImpactResponse:
    if rli.review.comments:
        log_event(None, "debug", "inspection", "fail-goals", comments=len(rli.review.comments))
        return PushImpactResponse.FAIL_GOALS
    return PushImpactResponse.PROCEED


FAIL_GOAL_IF_ERROR_COMMENTS = ReviewListenerRegistration(
    name="Fail goal if any code inspections result in comments with severity error",
    listener=errors_exist_review_listener(PushImpactResponse.FAIL_GOALS),
)

APPROVE_GOAL_IF_ERROR_COMMENTS = ReviewListenerRegistration(
    name="Require approval if any code inspections result in comments with severity error",
    listener=errors_exist_review_listener(PushImpactResponse.REQUIRE_APPROVAL_TO_PROCEED),
)

FAIL_GOALS_IF_COMMENTS = ReviewListenerRegistration(
    name="Fail Goals if any code inspections result in comments",
    listener=_fail_goals_if_comments,
)
