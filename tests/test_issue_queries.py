"""
Tests for issue listing, search and stats
"""
from datetime import timedelta

import pytest

from app import db
from app.exceptions import InvalidInputError
from app.models import Issue, _utc_now_naive
from app.services.error_tracker import log_error, update_issue_status
from app.services.issue_queries import get_issues, count_issues, get_issue_stats


def _seed(count, level='error', prefix='Error'):
    return [log_error(f'{prefix}{i}', f'message {i}', level=level) for i in range(count)]


class TestGetIssues:
    """Tests for get_issues"""

    def test_most_recent_first(self, app):
        old = log_error('Old', 'old')
        new = log_error('New', 'new')
        log_error('Old', 'old')  # recurrence moves it back to the top

        assert [issue.id for issue in get_issues()] == [old, new]

    def test_ties_broken_by_id(self, app):
        ids = _seed(3)
        same_time = _utc_now_naive()
        db.session.execute(Issue.__table__.update().values(last_seen_at=same_time))
        db.session.commit()

        assert [issue.id for issue in get_issues()] == sorted(ids, reverse=True)

    def test_default_limit(self, app):
        _seed(25)
        assert len(get_issues()) == 20

    def test_limit_capped(self, app):
        _seed(105)
        assert len(get_issues(limit=500)) == 100

    def test_limit_floor(self, app):
        _seed(3)
        assert len(get_issues(limit=0)) == 1

    def test_invalid_limit_and_offset(self, app):
        with pytest.raises(InvalidInputError):
            get_issues(limit='many')
        with pytest.raises(InvalidInputError):
            get_issues(offset='later')

    def test_pages_do_not_overlap(self, app):
        ids = _seed(7)
        # Collapse timestamps so ordering relies on the id tie-break
        db.session.execute(Issue.__table__.update().values(last_seen_at=_utc_now_naive()))
        db.session.commit()

        pages = [get_issues(limit=3, offset=offset) for offset in (0, 3, 6)]
        seen = [issue.id for page in pages for issue in page]
        assert len(seen) == len(set(seen)) == 7
        assert set(seen) == set(ids)

    def test_filter_by_status(self, app):
        open_id, resolved_id = _seed(2)
        update_issue_status(resolved_id, 'resolved')

        assert [i.id for i in get_issues(status='resolved')] == [resolved_id]
        assert [i.id for i in get_issues(status='open')] == [open_id]

    def test_filter_by_level(self, app):
        warning_id = log_error('W', 'slow query', level='warning')
        log_error('E', 'crash', level='error')

        assert [i.id for i in get_issues(level='warning')] == [warning_id]

    def test_invalid_filters(self, app):
        with pytest.raises(InvalidInputError):
            get_issues(status='archived')
        with pytest.raises(InvalidInputError):
            get_issues(level='fatal')

    def test_search_title_and_message_case_insensitive(self, app):
        by_title = log_error('PaymentDeclined', 'card rejected')
        by_message = log_error('GatewayError', 'upstream PAYMENT service down')
        log_error('Unrelated', 'nothing here')

        found = {i.id for i in get_issues(search='payment')}
        assert found == {by_title, by_message}

    def test_search_wildcards_are_literal(self, app):
        literal = log_error('Quota', 'usage at 100% of plan')
        log_error('Other', 'usage at 100 of plan')

        assert [i.id for i in get_issues(search='100%')] == [literal]
        assert get_issues(search='_') == []

    def test_blank_search_ignored(self, app):
        _seed(2)
        assert len(get_issues(search='   ')) == 2

    def test_count_matches_filters(self, app):
        _seed(4, level='warning')
        _seed(2, level='error', prefix='Crash')
        assert count_issues() == 6
        assert count_issues(level='warning') == 4
        assert count_issues(search='crash') == 2


class TestIssueStats:
    """Tests for get_issue_stats"""

    def test_empty(self, app):
        stats = get_issue_stats()
        assert stats == {
            'open': 0, 'resolved': 0, 'closed': 0, 'total': 0,
            'by_level': {'debug': 0, 'info': 0, 'warning': 0, 'error': 0},
        }

    def test_counts_by_status_and_level(self, app):
        a, b, c = _seed(3)
        log_error('W', 'w', level='warning')
        update_issue_status(a, 'resolved')
        update_issue_status(b, 'closed')

        stats = get_issue_stats()
        assert stats['open'] == 2
        assert stats['resolved'] == 1
        assert stats['closed'] == 1
        assert stats['total'] == 4
        assert stats['by_level']['error'] == 3
        assert stats['by_level']['warning'] == 1

    def test_status_counts_sum_to_total(self, app):
        ids = _seed(5)
        update_issue_status(ids[0], 'closed')
        stats = get_issue_stats()
        assert stats['open'] + stats['resolved'] + stats['closed'] == stats['total']
        assert sum(stats['by_level'].values()) == stats['total']

    def test_reopen_reflected(self, app):
        issue_id = log_error('E', 'm')
        update_issue_status(issue_id, 'resolved')
        log_error('E', 'm')

        stats = get_issue_stats()
        assert stats['open'] == 1
        assert stats['resolved'] == 0

    def test_cached_value_invalidated_on_write(self, app):
        """With a real cache, writes drop the cached rollup"""
        from app import cache
        from app.constants import STATS_CACHE_KEY

        app.config['CACHE_TYPE'] = 'SimpleCache'
        cache.init_app(app)
        try:
            assert get_issue_stats()['total'] == 0
            assert cache.get(STATS_CACHE_KEY) is not None

            log_error('E', 'm')
            assert cache.get(STATS_CACHE_KEY) is None
            assert get_issue_stats()['total'] == 1
        finally:
            cache.clear()
            app.config['CACHE_TYPE'] = 'NullCache'
            cache.init_app(app)
