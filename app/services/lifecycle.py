"""
Issue Lifecycle

Pure state machine for issue status. Two kinds of events drive it:

- NewOccurrence: the same fingerprint was logged again. The issue becomes
  open; a resolved or closed issue is reopened and loses its resolution stamp.
- AdminTransition: an admin moved the issue to a status explicitly. Any of
  open/resolved/closed may move to any other.

The store reads the current row, calls apply_event, and writes the result,
so every rule lives here rather than in query code.
"""
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Optional, Union

from app.exceptions import InvalidInputError
from app.models.base import ISSUE_LEVELS, ISSUE_STATUSES, LEVEL_RANK, TERMINAL_STATUSES


@dataclass(frozen=True)
class IssueState:
    status: str
    level: str
    resolved_by: Optional[str] = None
    resolved_at: Optional[datetime] = None

    @classmethod
    def from_issue(cls, issue) -> 'IssueState':
        return cls(
            status=issue.status,
            level=issue.level,
            resolved_by=issue.resolved_by,
            resolved_at=issue.resolved_at,
        )


@dataclass(frozen=True)
class NewOccurrence:
    level: str
    at: datetime


@dataclass(frozen=True)
class AdminTransition:
    to: str
    at: datetime
    actor: Optional[str] = None


IssueEventType = Union[NewOccurrence, AdminTransition]


def validate_status(status: str) -> str:
    if not isinstance(status, str) or status not in ISSUE_STATUSES:
        raise InvalidInputError(
            f"Invalid status '{status}'",
            details={'field': 'status', 'allowed': ISSUE_STATUSES}
        )
    return status


def validate_level(level: str) -> str:
    if not isinstance(level, str) or level not in LEVEL_RANK:
        raise InvalidInputError(
            f"Invalid level '{level}'",
            details={'field': 'level', 'allowed': ISSUE_LEVELS}
        )
    return level


def higher_level(current: str, incoming: str) -> str:
    """Return the more severe of two levels"""
    return incoming if LEVEL_RANK[incoming] > LEVEL_RANK.get(current, -1) else current


def apply_event(state: IssueState, event: IssueEventType) -> IssueState:
    """Compute the issue state after an event"""
    if isinstance(event, NewOccurrence):
        return IssueState(
            status='open',
            level=higher_level(state.level, validate_level(event.level)),
            resolved_by=None,
            resolved_at=None,
        )

    if isinstance(event, AdminTransition):
        target = validate_status(event.to)
        if target == 'open':
            return replace(state, status='open', resolved_by=None, resolved_at=None)
        return replace(
            state,
            status=target,
            resolved_at=event.at,
            resolved_by=event.actor if event.actor is not None else state.resolved_by,
        )

    raise TypeError(f"Unsupported lifecycle event: {event!r}")


def is_reopen(before: IssueState, after: IssueState) -> bool:
    """True when a terminal issue came back to open"""
    return before.status in TERMINAL_STATUSES and after.status == 'open'
