"""
Background Jobs Package
Uses Redis Queue (RQ) for async task processing
"""
from app.jobs.notifications import (
    deliver_issue_notification_job,
    drain_notification_outbox_job,
)

__all__ = [
    'deliver_issue_notification_job',
    'drain_notification_outbox_job',
]
