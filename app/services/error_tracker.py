"""
Self-Hosted Error Tracking Service

Groups raw error reports into deduplicated issues by fingerprint, counts
occurrences, reopens resolved issues when they recur, and writes the
notification outbox in the same transaction.

Usage:
    from app.services.error_tracker import log_error, capture_exception

    issue_id = log_error('PaymentError', 'Card declined', level='warning')

    try:
        risky_operation()
    except Exception as e:
        capture_exception(e)
"""
import json
import logging
import traceback
from collections import namedtuple
from typing import Optional, Dict, Any, List

from flask import current_app, request, has_request_context, session
from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError, OperationalError

from app import db, cache
from app.constants import (
    SENSITIVE_FIELDS, STATS_CACHE_KEY, ISSUE_EVENTS_LIMIT_DEFAULT,
    TITLE_MAX_LENGTH, MESSAGE_MAX_LENGTH, STACK_MAX_LENGTH,
    URL_MAX_LENGTH, USER_AGENT_MAX_LENGTH
)
from app.exceptions import StoreUnavailableError
from app.models import Issue, IssueEvent, IssueNotification, _utc_now_naive
from app.services.admin_settings import get_admin_settings, should_notify
from app.services.fingerprint import generate_fingerprint, validate_fingerprint
from app.services.lifecycle import (
    IssueState, NewOccurrence, AdminTransition,
    apply_event, is_reopen, validate_level, validate_status
)

logger = logging.getLogger('issuedesk.errors')

LOG_LEVELS = {
    'error': logging.ERROR,
    'warning': logging.WARNING,
    'info': logging.INFO,
    'debug': logging.DEBUG,
}

# A concurrent first occurrence fails once with a duplicate key or a deadlock; the retry then updates
MAX_WRITE_ATTEMPTS = 3

# MySQL deadlock and lock wait timeout; the transaction is rolled back and can be retried
LOCK_CONFLICT_CODES = (1213, 1205)

OccurrenceResult = namedtuple('OccurrenceResult', 'issue_id created reopened notification_id')


def _truncate(value: Optional[str], limit: int) -> Optional[str]:
    if value is None:
        return None
    value = str(value)
    return value if len(value) <= limit else value[:limit]


def _sanitize_data(data: Dict[str, Any]) -> Dict[str, Any]:
    """Remove sensitive fields from data"""
    if not data:
        return {}

    sanitized = {}
    for key, value in data.items():
        key_lower = key.lower()
        if any(sensitive in key_lower for sensitive in SENSITIVE_FIELDS):
            sanitized[key] = '[REDACTED]'
        elif isinstance(value, dict):
            sanitized[key] = _sanitize_data(value)
        elif isinstance(value, str) and len(value) > 1000:
            sanitized[key] = value[:1000] + '...[truncated]'
        else:
            sanitized[key] = value
    return sanitized


def _get_request_context() -> Dict[str, Any]:
    """Extract context from current request"""
    context = {
        'endpoint': None,
        'method': None,
        'url': None,
        'user_agent': None,
        'user_id': None,
        'headers': {},
        'data': {}
    }

    if not has_request_context():
        return context

    try:
        context['endpoint'] = request.endpoint
        context['method'] = request.method
        context['url'] = request.url[:URL_MAX_LENGTH] if request.url else None
        context['user_agent'] = request.headers.get('User-Agent')
        context['user_id'] = session.get('user_id')
        context['headers'] = _sanitize_data(dict(request.headers))

        if request.is_json:
            context['data'] = _sanitize_data(request.get_json(silent=True) or {})
        elif request.form:
            context['data'] = _sanitize_data(dict(request.form))
        elif request.args:
            context['data'] = _sanitize_data(dict(request.args))

    except Exception as e:
        logger.warning(f"Failed to extract request context: {e}")

    return context


def _merge_tags(existing: List[str], incoming: List[str]) -> List[str]:
    merged = list(existing)
    for tag in incoming:
        if tag not in merged:
            merged.append(tag)
    return merged


def _is_lock_conflict(error: OperationalError) -> bool:
    args = getattr(error.orig, 'args', None) or ()
    return bool(args) and args[0] in LOCK_CONFLICT_CODES


def _find_issue_for_update(fingerprint: str) -> Optional[Issue]:
    """Load an issue by fingerprint, row-locked for the rest of the transaction"""
    return db.session.execute(
        select(Issue).where(Issue.fingerprint == fingerprint).with_for_update()
    ).scalar_one_or_none()


def _create_issue(fingerprint, title, message, level, stack, url, user_agent,
                  user_id, tags, metadata, now) -> Issue:
    issue = Issue(
        fingerprint=fingerprint,
        title=_truncate(title, TITLE_MAX_LENGTH),
        message=_truncate(message, MESSAGE_MAX_LENGTH),
        stack=_truncate(stack, STACK_MAX_LENGTH),
        level=level,
        status='open',
        url=url,
        user_agent=user_agent,
        user_id=user_id,
        environment=current_app.config.get('ENVIRONMENT', 'production'),
        tags=json.dumps(tags),
        metadata_json=json.dumps(metadata),
        occurrence_count=1,
        first_seen_at=now,
        last_seen_at=now,
        created_at=now,
        updated_at=now,
    )
    db.session.add(issue)
    # Surfaces a duplicate fingerprint as IntegrityError before anything else is written
    db.session.flush()
    return issue


def _record_occurrence(issue: Issue, level, url, user_agent, user_id, tags, metadata, now):
    """
    Apply a recurrence to an existing issue.

    The counter is incremented by the database, not from the value read here.

    Returns:
        Tuple of (reopened, level after escalation)
    """
    before = IssueState.from_issue(issue)
    after = apply_event(before, NewOccurrence(level=level, at=now))

    merged_metadata = dict(issue.metadata_dict)
    merged_metadata.update(metadata)
    merged_metadata['last_occurrence'] = {
        'url': url,
        'user_agent': user_agent,
        'user_id': user_id,
        'timestamp': now.isoformat(),
    }
    seen_at = max(now, issue.last_seen_at) if issue.last_seen_at else now

    db.session.execute(
        update(Issue)
        .where(Issue.id == issue.id)
        .values(
            occurrence_count=Issue.occurrence_count + 1,
            last_seen_at=seen_at,
            updated_at=now,
            status=after.status,
            level=after.level,
            resolved_by=after.resolved_by,
            resolved_at=after.resolved_at,
            tags=json.dumps(_merge_tags(issue.tag_list, tags)),
            metadata_json=json.dumps(merged_metadata),
        )
        .execution_options(synchronize_session=False)
    )
    return is_reopen(before, after), after.level


def _write_occurrence(fingerprint, title, message, level, stack, url, user_agent,
                      user_id, tags, metadata, settings) -> OccurrenceResult:
    """Find-or-create-or-update one occurrence; caller owns commit/rollback"""
    now = _utc_now_naive()

    issue = _find_issue_for_update(fingerprint)
    if issue is None:
        issue = _create_issue(fingerprint, title, message, level, stack, url,
                              user_agent, user_id, tags, metadata, now)
        kind = 'new_issue'
        effective_level = level
    else:
        reopened, effective_level = _record_occurrence(
            issue, level, url, user_agent, user_id, tags, metadata, now
        )
        kind = 'reopened' if reopened else None

    db.session.add(IssueEvent(
        issue_id=issue.id,
        fingerprint=fingerprint,
        level=level,
        message=_truncate(message, MESSAGE_MAX_LENGTH),
        url=url,
        user_id=user_id,
        user_agent=user_agent,
        metadata_json=json.dumps(metadata),
        created_at=now,
    ))

    notification = None
    if kind and should_notify(settings, effective_level):
        notification = IssueNotification(
            issue_id=issue.id,
            kind=kind,
            level=effective_level,
            title=issue.title,
            message=issue.message,
            status='pending',
            created_at=now,
        )
        db.session.add(notification)

    db.session.flush()
    return OccurrenceResult(
        issue_id=issue.id,
        created=kind == 'new_issue',
        reopened=kind == 'reopened',
        notification_id=notification.id if notification else None,
    )


def log_error(
    title: str,
    message: str,
    level: str = 'error',
    stack: Optional[str] = None,
    url: Optional[str] = None,
    user_agent: Optional[str] = None,
    user_id=None,
    tags: Optional[List[str]] = None,
    metadata: Optional[Dict[str, Any]] = None,
    fingerprint: Optional[str] = None,
) -> int:
    """
    Record an error occurrence and return the ID of its issue.

    Args:
        title: Error title (e.g. exception class name)
        message: Error message
        level: 'error', 'warning', 'info' or 'debug'
        stack: Optional stack trace, used for grouping
        url: Request URL the error happened on
        user_agent: Client user agent
        user_id: User associated with the originating request
        tags: Labels to attach; unioned across occurrences
        metadata: Extra context; merged across occurrences
        fingerprint: Explicit grouping key, overriding the computed one

    Returns:
        Issue ID

    Raises:
        InvalidInputError: Empty title/message, unknown level or bad fingerprint
        StoreUnavailableError: Database unreachable (the report is not dropped silently)
    """
    validate_level(level)
    computed = generate_fingerprint(title, message, stack)
    fingerprint = validate_fingerprint(fingerprint) if fingerprint is not None else computed

    url = _truncate(url, URL_MAX_LENGTH)
    user_agent = _truncate(user_agent, USER_AGENT_MAX_LENGTH)
    user_id = str(user_id) if user_id is not None else None
    tags = [str(tag) for tag in (tags or [])]
    metadata = dict(metadata or {})

    result = None
    try:
        settings = get_admin_settings()
        for attempt in range(1, MAX_WRITE_ATTEMPTS + 1):
            try:
                result = _write_occurrence(fingerprint, title, message, level, stack, url,
                                           user_agent, user_id, tags, metadata, settings)
                db.session.commit()
                break
            except IntegrityError:
                db.session.rollback()
                if attempt == MAX_WRITE_ATTEMPTS:
                    raise
                logger.info(f"Concurrent first occurrence of {fingerprint}; retrying as update")
            except OperationalError as e:
                db.session.rollback()
                if not _is_lock_conflict(e) or attempt == MAX_WRITE_ATTEMPTS:
                    raise
                logger.info(f"Lock conflict on {fingerprint} ({e.orig.args[0]}); retrying")
    except OperationalError as e:
        db.session.rollback()
        logger.error(f"Issue store unavailable while logging '{title}': {e}")
        raise StoreUnavailableError(details={'fingerprint': fingerprint}) from e

    cache.delete(STATS_CACHE_KEY)

    if result.notification_id and current_app.config.get('NOTIFICATION_QUEUE_ENABLED'):
        from app.jobs.queue import enqueue_issue_notification
        enqueue_issue_notification(result.notification_id)

    state = 'new' if result.created else ('reopened' if result.reopened else 'recurring')
    logger.log(
        LOG_LEVELS[level],
        f"[{title}] {message.splitlines()[0][:200]} (Issue #{result.issue_id}, {state})",
        extra={'issue_id': result.issue_id, 'fingerprint': fingerprint}
    )
    return result.issue_id


def log_warning(title: str, message: str, **options) -> int:
    return log_error(title, message, level='warning', **options)


def log_info(title: str, message: str, **options) -> int:
    return log_error(title, message, level='info', **options)


def log_debug(title: str, message: str, **options) -> int:
    return log_error(title, message, level='debug', **options)


def capture_exception(
    exception: BaseException,
    level: str = 'error',
    extra: Optional[Dict[str, Any]] = None
) -> Optional[int]:
    """
    Capture an exception raised while serving a request.

    Tracking failures are logged and swallowed so they never replace the
    original error.

    Returns:
        Issue ID if stored successfully, None otherwise
    """
    try:
        title = type(exception).__name__
        message = str(exception) or title
        stack = ''.join(traceback.format_exception(type(exception), exception, exception.__traceback__))

        context = _get_request_context()
        tags = ['server-error']
        if context['endpoint']:
            tags.append(f"endpoint:{context['endpoint']}")

        metadata = {
            'endpoint': context['endpoint'],
            'method': context['method'],
            'headers': context['headers'],
            'data': context['data'],
        }
        if extra:
            metadata.update(extra)

        return log_error(
            title,
            message,
            level=level,
            stack=stack,
            url=context['url'],
            user_agent=context['user_agent'],
            user_id=context['user_id'],
            tags=tags,
            metadata=metadata,
        )

    except Exception as e:
        logger.exception(f"Failed to capture exception: {e}")
        return None


def get_issue_by_id(issue_id) -> Optional[Issue]:
    """Return an issue or None when it does not exist"""
    try:
        issue_id = int(issue_id)
    except (TypeError, ValueError):
        return None
    return db.session.get(Issue, issue_id)


def get_issue_events(issue_id: int, limit: int = ISSUE_EVENTS_LIMIT_DEFAULT) -> List[IssueEvent]:
    """Most recent raw occurrences of an issue"""
    return IssueEvent.query.filter(
        IssueEvent.issue_id == issue_id
    ).order_by(IssueEvent.created_at.desc(), IssueEvent.id.desc()).limit(max(1, limit)).all()


def update_issue_status(issue_id, status: str, resolved_by=None) -> bool:
    """
    Move an issue to a status on behalf of an admin.

    Returns:
        True if updated, False if the issue does not exist

    Raises:
        InvalidInputError: Unknown status
        StoreUnavailableError: Database unreachable
    """
    validate_status(status)
    try:
        issue_id = int(issue_id)
    except (TypeError, ValueError):
        return False

    now = _utc_now_naive()
    try:
        issue = db.session.execute(
            select(Issue).where(Issue.id == issue_id).with_for_update()
        ).scalar_one_or_none()
        if issue is None:
            db.session.rollback()
            return False

        actor = str(resolved_by) if resolved_by is not None else None
        after = apply_event(IssueState.from_issue(issue), AdminTransition(to=status, at=now, actor=actor))

        issue.status = after.status
        issue.resolved_by = after.resolved_by
        issue.resolved_at = after.resolved_at
        issue.updated_at = now
        db.session.commit()
    except OperationalError as e:
        db.session.rollback()
        raise StoreUnavailableError(details={'issue_id': issue_id}) from e

    cache.delete(STATS_CACHE_KEY)
    logger.info(f"Issue #{issue_id} marked {status}" + (f" by {actor}" if actor else ""))
    return True
