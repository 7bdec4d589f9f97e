"""
Tests for Background Jobs
"""
from unittest.mock import patch, MagicMock

from app.models import IssueNotification
from app.services.error_tracker import log_error


class TestQueueConfiguration:
    """Tests for queue configuration"""

    def test_queue_names_defined(self):
        """Test queue names are properly defined"""
        from app.jobs.queue import QUEUE_HIGH, QUEUE_DEFAULT, QUEUE_LOW

        assert QUEUE_HIGH == 'high'
        assert QUEUE_DEFAULT == 'default'
        assert QUEUE_LOW == 'low'

    @patch('app.jobs.queue.Redis')
    def test_get_redis_connection(self, mock_redis):
        """Test Redis connection factory"""
        from app.jobs.queue import get_redis_connection

        mock_redis.from_url.return_value = MagicMock()
        get_redis_connection()

        mock_redis.from_url.assert_called_once()

    @patch('app.jobs.queue.get_redis_connection')
    @patch('app.jobs.queue.Queue')
    def test_get_queue(self, mock_queue_class, mock_redis):
        """Test queue factory"""
        from app.jobs.queue import get_queue, QUEUE_DEFAULT

        mock_redis.return_value = MagicMock()
        get_queue(QUEUE_DEFAULT)

        mock_queue_class.assert_called_once_with(QUEUE_DEFAULT, connection=mock_redis.return_value)

    @patch('app.jobs.queue.get_queue')
    def test_enqueue_job(self, mock_get_queue):
        """Test job enqueueing"""
        from app.jobs.queue import enqueue_job

        mock_queue = MagicMock()
        mock_queue.enqueue.return_value = MagicMock(id='test-job-123')
        mock_get_queue.return_value = mock_queue

        def sample_job():
            pass

        job = enqueue_job(sample_job, queue_name='default')

        assert job.id == 'test-job-123'
        mock_queue.enqueue.assert_called_once_with(sample_job, job_timeout=300)

    @patch('app.jobs.queue.get_queue')
    def test_enqueue_job_failure(self, mock_get_queue):
        """Test job enqueueing handles failures"""
        from app.jobs.queue import enqueue_job

        mock_get_queue.side_effect = Exception("Redis connection failed")

        assert enqueue_job(lambda: None) is None


class TestNotificationEnqueue:
    """Tests for the outbox enqueue helpers"""

    @patch('app.jobs.queue.enqueue_job')
    def test_issue_notification_goes_to_high_queue(self, mock_enqueue):
        from app.jobs.queue import enqueue_issue_notification, QUEUE_HIGH, NOTIFICATION_TIMEOUT
        from app.jobs.notifications import deliver_issue_notification_job

        enqueue_issue_notification(42)

        mock_enqueue.assert_called_once_with(
            deliver_issue_notification_job, 42,
            queue_name=QUEUE_HIGH, timeout=NOTIFICATION_TIMEOUT
        )

    @patch('app.jobs.queue.enqueue_job')
    def test_outbox_drain_goes_to_default_queue(self, mock_enqueue):
        from app.jobs.queue import enqueue_outbox_drain, QUEUE_DEFAULT
        from app.jobs.notifications import drain_notification_outbox_job

        enqueue_outbox_drain(limit=10)

        mock_enqueue.assert_called_once_with(
            drain_notification_outbox_job, limit=10, queue_name=QUEUE_DEFAULT
        )


class TestNotificationJobs:
    """Jobs reuse the current app context when one exists"""

    @patch('app.services.notifier.send_issue_alert', return_value=True)
    def test_deliver_job(self, mock_send, app, admin_user):
        from app.jobs.notifications import deliver_issue_notification_job

        log_error('E', 'm')
        row = IssueNotification.query.one()

        result = deliver_issue_notification_job(row.id)

        assert result['status'] == 'sent'
        mock_send.assert_called_once()

    @patch('app.services.notifier.send_issue_alert', return_value=True)
    def test_drain_job(self, mock_send, app, admin_user):
        from app.jobs.notifications import drain_notification_outbox_job

        log_error('A', 'a')
        log_error('B', 'b')

        assert drain_notification_outbox_job()['sent'] == 2

    def test_drain_job_limit(self, app):
        from app.jobs.notifications import drain_notification_outbox_job

        with patch('app.services.notifier.deliver_pending_notifications',
                   return_value={'processed': 0}) as mock_drain:
            drain_notification_outbox_job(limit=5)

        mock_drain.assert_called_once_with(limit=5)


class TestQueueStats:

    @patch('app.jobs.queue.get_redis_connection')
    @patch('app.jobs.queue.Queue')
    def test_stats_for_every_queue(self, mock_queue_class, mock_redis):
        from app.jobs.queue import get_queue_stats

        queue = MagicMock(count=4)
        queue.failed_job_registry.count = 1
        queue.scheduled_job_registry.count = 0
        queue.started_job_registry.count = 2
        mock_queue_class.return_value = queue

        stats = get_queue_stats()

        assert set(stats) == {'high', 'default', 'low'}
        assert stats['high'] == {'count': 4, 'failed': 1, 'scheduled': 0, 'started': 2}
