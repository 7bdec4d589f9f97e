"""
Tests for issue actions
Every admin action must check the session before touching the store
"""
from contextlib import contextmanager

import pytest
from flask import session

from app import db
from app.exceptions import AuthenticationError, AuthorizationError
from app.models import Issue
from app.services.error_tracker import log_error
from app.services.issue_actions import (
    log_error_action, update_issue_status_action, get_issues_action, count_issues_action,
    get_issue_by_id_action, get_issue_events_action, get_issue_stats_action,
    get_admin_settings_action, update_admin_settings_action,
)


@contextmanager
def signed_in(app, user=None):
    with app.test_request_context('/'):
        if user is not None:
            session['user_id'] = user.id
        yield


ADMIN_ACTIONS = [
    lambda: update_issue_status_action(1, 'resolved'),
    lambda: get_issues_action(),
    lambda: count_issues_action(),
    lambda: get_issue_by_id_action(1),
    lambda: get_issue_events_action(1),
    lambda: get_issue_stats_action(),
    lambda: get_admin_settings_action(),
    lambda: update_admin_settings_action(True, 'warning'),
]


class TestAuthorization:

    @pytest.mark.parametrize('action', ADMIN_ACTIONS)
    def test_anonymous_rejected(self, app, action):
        with signed_in(app):
            with pytest.raises(AuthenticationError):
                action()

    @pytest.mark.parametrize('action', ADMIN_ACTIONS)
    def test_non_admin_rejected(self, app, regular_user, action):
        with signed_in(app, regular_user):
            with pytest.raises(AuthorizationError):
                action()

    def test_deactivated_admin_rejected(self, app, admin_user):
        admin_user.is_active = False
        db.session.commit()
        with signed_in(app, admin_user):
            with pytest.raises(AuthenticationError):
                get_issues_action()

    def test_rejected_status_change_leaves_issue(self, app, regular_user):
        issue_id = log_error('E', 'm')
        with signed_in(app, regular_user):
            with pytest.raises(AuthorizationError):
                update_issue_status_action(issue_id, 'closed')
        assert db.session.get(Issue, issue_id).status == 'open'


class TestAdminActions:

    def test_status_change_records_acting_admin(self, app, admin_user):
        issue_id = log_error('E', 'm')
        with signed_in(app, admin_user):
            assert update_issue_status_action(issue_id, 'resolved') is True

        issue = db.session.get(Issue, issue_id)
        assert issue.status == 'resolved'
        assert issue.resolved_by == str(admin_user.id)

    def test_explicit_resolver_wins(self, app, admin_user):
        issue_id = log_error('E', 'm')
        with signed_in(app, admin_user):
            update_issue_status_action(issue_id, 'closed', resolved_by='release-bot')
        assert db.session.get(Issue, issue_id).resolved_by == 'release-bot'

    def test_reads(self, app, admin_user):
        issue_id = log_error('E', 'm', level='warning')
        with signed_in(app, admin_user):
            assert [i.id for i in get_issues_action(level='warning')] == [issue_id]
            assert count_issues_action(status='open') == 1
            assert get_issue_by_id_action(issue_id).id == issue_id
            assert len(get_issue_events_action(issue_id, limit=5)) == 1
            assert get_issue_stats_action()['total'] == 1

    def test_settings_round_trip(self, app, admin_user):
        with signed_in(app, admin_user):
            assert get_admin_settings_action().notification_level == 'error'
            settings = update_admin_settings_action(False, 'info')
        assert settings.email_notifications_enabled is False
        assert settings.notification_level == 'info'


class TestLogErrorAction:

    def test_open_to_anonymous(self, app):
        with signed_in(app):
            issue_id = log_error_action('E', 'm')
        assert db.session.get(Issue, issue_id).user_id is None

    def test_attributes_signed_in_user(self, app, regular_user):
        with signed_in(app, regular_user):
            issue_id = log_error_action('E', 'm')
        assert db.session.get(Issue, issue_id).user_id == str(regular_user.id)

    def test_explicit_user_id_kept(self, app, regular_user):
        with signed_in(app, regular_user):
            issue_id = log_error_action('E', 'm', user_id='customer-77')
        assert db.session.get(Issue, issue_id).user_id == 'customer-77'

    def test_works_outside_request(self, app):
        """Background jobs have no session"""
        issue_id = log_error_action('JobError', 'nightly export failed')
        assert db.session.get(Issue, issue_id).title == 'JobError'
