"""
Issue Actions

Entry points used by routes and other callers. Every admin action checks the
session role before touching the store; log_error_action is open to any
caller and only borrows the session's user for attribution.
"""
import logging
from typing import Optional, List, Dict, Any

from app.models import Issue, AdminSettings
from app.services import error_tracker, issue_queries, admin_settings
from app.services.auth import require_admin, get_current_user

logger = logging.getLogger('issuedesk')


def log_error_action(title: str, message: str, **options) -> int:
    """Record an error, attributing it to the signed-in user when none is given"""
    if options.get('user_id') is None:
        try:
            user = get_current_user()
            if user:
                options['user_id'] = user.id
        except Exception as e:
            # Attribution is optional; the report itself must still be stored
            logger.debug(f"Session lookup failed while logging error: {e}")

    return error_tracker.log_error(title, message, **options)


def update_issue_status_action(issue_id, status: str, resolved_by=None) -> bool:
    admin = require_admin()
    actor = resolved_by if resolved_by is not None else admin.id
    return error_tracker.update_issue_status(issue_id, status, actor)


def get_issues_action(**filters) -> List[Issue]:
    require_admin()
    return issue_queries.get_issues(**filters)


def count_issues_action(**filters) -> int:
    require_admin()
    return issue_queries.count_issues(**filters)


def get_issue_by_id_action(issue_id) -> Optional[Issue]:
    require_admin()
    return error_tracker.get_issue_by_id(issue_id)


def get_issue_events_action(issue_id, limit: Optional[int] = None) -> list:
    require_admin()
    if limit is None:
        return error_tracker.get_issue_events(issue_id)
    return error_tracker.get_issue_events(issue_id, limit=limit)


def get_issue_stats_action() -> Dict[str, Any]:
    require_admin()
    return issue_queries.get_issue_stats()


def get_admin_settings_action() -> AdminSettings:
    require_admin()
    return admin_settings.get_admin_settings()


def update_admin_settings_action(enabled: bool, level: str) -> AdminSettings:
    admin = require_admin()
    settings = admin_settings.update_admin_settings(enabled, level)
    logger.info(f"Admin settings changed by user #{admin.id}")
    return settings
