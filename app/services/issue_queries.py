"""
Issue Queries
Read-only listing and stats rollups for the admin dashboard
"""
from typing import Optional, List, Dict, Any

from flask import current_app
from sqlalchemy import func, or_

from app import db, cache
from app.constants import STATS_CACHE_KEY, ISSUES_PAGE_LIMIT_DEFAULT, ISSUES_PAGE_LIMIT_MAX
from app.exceptions import InvalidInputError
from app.models import Issue, ISSUE_LEVELS, ISSUE_STATUSES
from app.services.lifecycle import validate_level, validate_status


def _clamp_limit(limit) -> int:
    default = current_app.config.get('ISSUES_PAGE_LIMIT_DEFAULT', ISSUES_PAGE_LIMIT_DEFAULT)
    cap = current_app.config.get('ISSUES_PAGE_LIMIT_MAX', ISSUES_PAGE_LIMIT_MAX)
    if limit is None:
        return default
    try:
        return max(1, min(int(limit), cap))
    except (TypeError, ValueError):
        raise InvalidInputError(f"Invalid limit '{limit}'", details={'field': 'limit'})


def _filtered_query(status=None, level=None, search=None):
    query = Issue.query

    if status:
        query = query.filter(Issue.status == validate_status(status))
    if level:
        query = query.filter(Issue.level == validate_level(level))
    if search and search.strip():
        term = search.strip()
        query = query.filter(or_(
            Issue.title.icontains(term, autoescape=True),
            Issue.message.icontains(term, autoescape=True),
        ))

    return query


def get_issues(
    status: Optional[str] = None,
    level: Optional[str] = None,
    search: Optional[str] = None,
    limit: Optional[int] = None,
    offset: int = 0,
) -> List[Issue]:
    """
    List issues, most recently seen first.

    Ties on last_seen_at are broken by id so that consecutive pages over the
    same data never repeat or skip a row.

    Args:
        status: Filter by status
        level: Filter by level
        search: Case-insensitive substring of title or message
        limit: Page size (default 20, capped at 100)
        offset: Rows to skip

    Raises:
        InvalidInputError: Unknown status or level
    """
    limit = _clamp_limit(limit)
    try:
        offset = max(0, int(offset or 0))
    except (TypeError, ValueError):
        raise InvalidInputError(f"Invalid offset '{offset}'", details={'field': 'offset'})

    return _filtered_query(status, level, search).order_by(
        Issue.last_seen_at.desc(), Issue.id.desc()
    ).offset(offset).limit(limit).all()


def count_issues(status: Optional[str] = None, level: Optional[str] = None,
                 search: Optional[str] = None) -> int:
    """Total matching issues, for pagination"""
    return _filtered_query(status, level, search).count()


def _compute_issue_stats() -> Dict[str, Any]:
    status_counts = dict(
        db.session.query(Issue.status, func.count(Issue.id)).group_by(Issue.status).all()
    )
    level_counts = dict(
        db.session.query(Issue.level, func.count(Issue.id)).group_by(Issue.level).all()
    )

    stats = {status: status_counts.get(status, 0) for status in ISSUE_STATUSES}
    stats['total'] = sum(status_counts.values())
    stats['by_level'] = {level: level_counts.get(level, 0) for level in ISSUE_LEVELS}
    return stats


def get_issue_stats() -> Dict[str, Any]:
    """
    Issue counts by status and level.

    Returns:
        {'total', 'open', 'resolved', 'closed', 'by_level': {'error', 'warning', 'info', 'debug'}}
    """
    cached = cache.get(STATS_CACHE_KEY)
    if cached is not None:
        return cached

    stats = _compute_issue_stats()
    cache.set(STATS_CACHE_KEY, stats, timeout=current_app.config.get('CACHE_TTL_STATS', 60))
    return stats
