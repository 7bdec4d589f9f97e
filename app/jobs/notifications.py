"""
Notification Background Jobs
Handles async issue alert delivery via RQ
"""
import logging
from typing import Dict, Any, Optional

from flask import has_app_context

logger = logging.getLogger('issuedesk')


def _run_in_app_context(func, *args, **kwargs):
    """Jobs run inside the worker process; reuse an app context only when one exists"""
    if has_app_context():
        return func(*args, **kwargs)

    from app import create_app
    app = create_app()
    with app.app_context():
        return func(*args, **kwargs)


def deliver_issue_notification_job(notification_id: int) -> Dict[str, Any]:
    """
    Background job to deliver one issue alert from the outbox.

    Args:
        notification_id: ID of the IssueNotification row

    Returns:
        Dict with delivery results
    """
    from app.services.notifier import deliver_issue_notification

    result = _run_in_app_context(deliver_issue_notification, notification_id)
    logger.info(f"[JOB] Issue notification {notification_id}: {result}")
    return result


def drain_notification_outbox_job(limit: Optional[int] = None) -> Dict[str, Any]:
    """
    Background job to deliver every pending outbox row.

    Picks up rows whose enqueue failed or whose earlier attempts failed.
    """
    from app.services.notifier import deliver_pending_notifications

    if limit is None:
        result = _run_in_app_context(deliver_pending_notifications)
    else:
        result = _run_in_app_context(deliver_pending_notifications, limit=limit)
    logger.info(f"[JOB] Outbox drain: {result}")
    return result
