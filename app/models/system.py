"""
System models: AdminSettings
"""
from app import db
from app.models.base import (
    _utc_now_naive, _isoformat,
    DEFAULT_SETTINGS_ID, DEFAULT_NOTIFICATION_LEVEL
)


class AdminSettings(db.Model):
    """Singleton row controlling issue alert emails"""
    __tablename__ = 'admin_settings'

    id = db.Column(db.String(20), primary_key=True, default=DEFAULT_SETTINGS_ID)
    email_notifications_enabled = db.Column(db.Boolean, nullable=False, default=True)
    notification_level = db.Column(db.String(10), nullable=False, default=DEFAULT_NOTIFICATION_LEVEL)

    created_at = db.Column(db.DateTime, default=_utc_now_naive)
    updated_at = db.Column(db.DateTime, default=_utc_now_naive, onupdate=_utc_now_naive)

    def to_dict(self):
        return {
            'email_notifications_enabled': self.email_notifications_enabled,
            'notification_level': self.notification_level,
            'updated_at': _isoformat(self.updated_at),
        }

    def __repr__(self):
        return f'<AdminSettings {self.notification_level} enabled={self.email_notifications_enabled}>'
