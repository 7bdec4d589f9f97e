"""
Tests for Admin Settings Service
"""
import pytest

from app import db
from app.exceptions import InvalidInputError
from app.models import AdminSettings
from app.services.admin_settings import get_admin_settings, update_admin_settings, should_notify


class TestGetAdminSettings:

    def test_created_lazily_with_defaults(self, app):
        assert AdminSettings.query.count() == 0

        settings = get_admin_settings()

        assert settings.id == 'default'
        assert settings.email_notifications_enabled is True
        assert settings.notification_level == 'error'
        assert AdminSettings.query.count() == 1

    def test_returns_existing_row(self, app):
        first = get_admin_settings()
        second = get_admin_settings()
        assert first is second
        assert AdminSettings.query.count() == 1


class TestUpdateAdminSettings:

    def test_update_persists(self, app):
        update_admin_settings(False, 'warning')
        db.session.expire_all()

        settings = get_admin_settings()
        assert settings.email_notifications_enabled is False
        assert settings.notification_level == 'warning'

    def test_invalid_level_rejected(self, app):
        with pytest.raises(InvalidInputError):
            update_admin_settings(True, 'critical')
        assert get_admin_settings().notification_level == 'error'


class TestShouldNotify:

    @pytest.mark.parametrize('threshold,level,expected', [
        ('error', 'error', True),
        ('error', 'warning', False),
        ('warning', 'error', True),
        ('warning', 'warning', True),
        ('warning', 'info', False),
        ('debug', 'debug', True),
    ])
    def test_threshold(self, app, threshold, level, expected):
        settings = update_admin_settings(True, threshold)
        assert should_notify(settings, level) is expected

    def test_disabled_never_notifies(self, app):
        settings = update_admin_settings(False, 'debug')
        assert should_notify(settings, 'error') is False

    def test_missing_settings(self):
        assert should_notify(None, 'error') is False
