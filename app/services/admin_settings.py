"""
Admin Settings Service
Singleton row controlling issue alert emails
"""
import logging

from sqlalchemy.exc import IntegrityError

from app import db
from app.models import AdminSettings, DEFAULT_SETTINGS_ID, DEFAULT_NOTIFICATION_LEVEL, LEVEL_RANK
from app.services.lifecycle import validate_level

logger = logging.getLogger('issuedesk')


def get_admin_settings() -> AdminSettings:
    """
    Return the settings row, creating it with defaults on first read.

    Two requests may race to create the row; the loser re-reads the winner's.
    """
    settings = db.session.get(AdminSettings, DEFAULT_SETTINGS_ID)
    if settings:
        return settings

    settings = AdminSettings(
        id=DEFAULT_SETTINGS_ID,
        email_notifications_enabled=True,
        notification_level=DEFAULT_NOTIFICATION_LEVEL,
    )
    db.session.add(settings)
    try:
        db.session.commit()
        logger.info("Created default admin settings")
    except IntegrityError:
        db.session.rollback()
        settings = db.session.get(AdminSettings, DEFAULT_SETTINGS_ID)
    return settings


def update_admin_settings(enabled: bool, level: str) -> AdminSettings:
    """Update notification settings in place"""
    validate_level(level)
    settings = get_admin_settings()
    settings.email_notifications_enabled = bool(enabled)
    settings.notification_level = level
    db.session.commit()
    logger.info(f"Admin settings updated: notifications={'on' if enabled else 'off'}, level>={level}")
    return settings


def should_notify(settings: AdminSettings, level: str) -> bool:
    """Whether an issue at this level crosses the alert threshold"""
    if not settings or not settings.email_notifications_enabled:
        return False
    threshold = LEVEL_RANK.get(settings.notification_level, LEVEL_RANK[DEFAULT_NOTIFICATION_LEVEL])
    return LEVEL_RANK.get(level, -1) >= threshold
