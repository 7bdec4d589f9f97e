"""
Models package - exports all models and constants

Usage:
    from app.models import Issue, IssueEvent, IssueNotification, AdminSettings, User
    from app.models import ISSUE_LEVELS, ISSUE_STATUSES, ...
"""

# Base utilities and constants
from app.models.base import (
    _utc_now_naive,
    ISSUE_LEVELS,
    LEVEL_RANK,
    ISSUE_STATUSES,
    TERMINAL_STATUSES,
    USER_ROLES,
    DEFAULT_SETTINGS_ID,
    DEFAULT_NOTIFICATION_LEVEL,
)

# User models
from app.models.user import User

# System models
from app.models.system import AdminSettings

# Issue tracking models
from app.models.issues import (
    Issue,
    IssueEvent,
    IssueNotification,
)

__all__ = [
    # Utilities
    '_utc_now_naive',
    # Constants
    'ISSUE_LEVELS',
    'LEVEL_RANK',
    'ISSUE_STATUSES',
    'TERMINAL_STATUSES',
    'USER_ROLES',
    'DEFAULT_SETTINGS_ID',
    'DEFAULT_NOTIFICATION_LEVEL',
    # Models
    'User',
    'AdminSettings',
    'Issue',
    'IssueEvent',
    'IssueNotification',
]
