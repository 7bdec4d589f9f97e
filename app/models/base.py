"""
Base utilities and constants for models
"""
import json
from datetime import datetime, timezone


def _utc_now_naive():
    """Get current UTC time as a naive datetime"""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _isoformat(dt):
    return dt.isoformat() if dt else None


def _load_json(value, default):
    """Decode a JSON text column, falling back to default on empty/corrupt data"""
    if not value:
        return default
    try:
        return json.loads(value)
    except (TypeError, ValueError):
        return default


# Issue severity levels, least to most severe
ISSUE_LEVELS = ['debug', 'info', 'warning', 'error']
LEVEL_RANK = {level: rank for rank, level in enumerate(ISSUE_LEVELS)}

# Issue lifecycle statuses
ISSUE_STATUSES = ['open', 'resolved', 'closed']
TERMINAL_STATUSES = ('resolved', 'closed')

# User roles
USER_ROLES = ['user', 'admin']

# Admin settings defaults
DEFAULT_SETTINGS_ID = 'default'
DEFAULT_NOTIFICATION_LEVEL = 'error'
