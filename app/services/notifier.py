"""
Notification Service
Delivers issue alert emails from the issue_notifications outbox

log_error only writes outbox rows; this module is the consumer. Delivery
problems are recorded on the row and never reach the logging path.
"""
import logging
from typing import Dict, Any, List

from flask import current_app

from app import db
from app.constants import NOTIFICATION_MAX_ATTEMPTS, NOTIFICATION_DRAIN_BATCH
from app.models import IssueNotification, User, _utc_now_naive
from app.services.email import send_issue_alert

logger = logging.getLogger('issuedesk')


def get_admin_recipients() -> List[User]:
    """Active admins with an email address"""
    return User.query.filter(
        User.role == 'admin',
        User.is_active.is_(True),
        User.email.isnot(None)
    ).order_by(User.id).all()


def deliver_issue_notification(notification_id: int) -> Dict[str, Any]:
    """
    Send one outbox row to every admin.

    Outcomes:
        sent     at least one admin received the alert
        skipped  there are no admins to notify
        failed   every send failed NOTIFICATION_MAX_ATTEMPTS times
        pending  every send failed, attempts remain

    Returns:
        Dict with the notification status and per-recipient counts
    """
    notification = db.session.get(IssueNotification, notification_id)
    if not notification:
        logger.error(f"Issue notification {notification_id} not found")
        return {'error': 'Notification not found'}

    if notification.status != 'pending':
        return {'skipped': True, 'reason': f'Already {notification.status}', 'status': notification.status}

    recipients = get_admin_recipients()
    if not recipients:
        notification.status = 'skipped'
        notification.last_error = 'No admin recipients'
        db.session.commit()
        logger.warning(f"No admin recipients for issue notification {notification_id}")
        return {'status': 'skipped', 'total': 0, 'success': 0, 'failed': 0}

    success = 0
    for admin in recipients:
        if send_issue_alert(
            admin.email,
            admin.name or 'Admin',
            notification.issue_id,
            notification.kind,
            notification.level,
            notification.title,
            notification.message,
        ):
            success += 1

    failed = len(recipients) - success
    notification.attempts = (notification.attempts or 0) + 1
    max_attempts = current_app.config.get('NOTIFICATION_MAX_ATTEMPTS', NOTIFICATION_MAX_ATTEMPTS)

    if success:
        notification.status = 'sent'
        notification.delivered_at = _utc_now_naive()
        notification.last_error = None if not failed else f'{failed} of {len(recipients)} sends failed'
    else:
        notification.last_error = f'All {len(recipients)} sends failed'
        if notification.attempts >= max_attempts:
            notification.status = 'failed'

    db.session.commit()

    logger.info(
        f"Issue #{notification.issue_id} {notification.kind} alert: "
        f"{success}/{len(recipients)} delivered ({notification.status})"
    )
    return {
        'status': notification.status,
        'total': len(recipients),
        'success': success,
        'failed': failed,
    }


def deliver_pending_notifications(limit: int = NOTIFICATION_DRAIN_BATCH) -> Dict[str, Any]:
    """Drain pending outbox rows, oldest first"""
    pending_ids = [
        row.id for row in IssueNotification.query.filter(
            IssueNotification.status == 'pending'
        ).order_by(IssueNotification.created_at, IssueNotification.id).limit(limit).all()
    ]

    summary = {'processed': 0, 'sent': 0, 'failed': 0, 'skipped': 0, 'pending': 0}
    for notification_id in pending_ids:
        result = deliver_issue_notification(notification_id)
        status = result.get('status')
        summary['processed'] += 1
        if status in summary:
            summary[status] += 1

    if pending_ids:
        logger.info(f"Drained {summary['processed']} issue notifications: {summary}")
    return summary
