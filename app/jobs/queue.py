"""
Redis Queue Configuration and Helpers
"""
import os
import logging
from typing import Optional, Callable
from redis import Redis
from rq import Queue
from rq.job import Job

logger = logging.getLogger('issuedesk')

# Queue names
QUEUE_HIGH = 'high'      # Issue alert delivery
QUEUE_DEFAULT = 'default'  # Outbox drains
QUEUE_LOW = 'low'        # Non-urgent maintenance

# Default job timeout (seconds)
DEFAULT_TIMEOUT = 300  # 5 minutes
NOTIFICATION_TIMEOUT = 60  # 1 minute for notifications


def get_redis_connection() -> Redis:
    """Get Redis connection for queues."""
    redis_url = os.getenv('REDIS_URL', 'redis://localhost:6379/0')
    return Redis.from_url(redis_url)


def get_queue(name: str = QUEUE_DEFAULT) -> Queue:
    """Get a queue by name."""
    return Queue(name, connection=get_redis_connection())


def enqueue_job(
    func: Callable,
    *args,
    queue_name: str = QUEUE_DEFAULT,
    timeout: int = DEFAULT_TIMEOUT,
    **kwargs
) -> Optional[Job]:
    """
    Enqueue a job for background processing.

    Args:
        func: The function to execute
        *args: Positional arguments for the function
        queue_name: Queue to use (high, default, low)
        timeout: Job timeout in seconds
        **kwargs: Keyword arguments for the function

    Returns:
        Job object or None if queueing fails
    """
    try:
        queue = get_queue(queue_name)
        job = queue.enqueue(
            func,
            *args,
            job_timeout=timeout,
            **kwargs
        )
        logger.debug(f"Enqueued job {job.id} to {queue_name} queue")
        return job
    except Exception as e:
        logger.error(f"Failed to enqueue job: {e}")
        return None


def enqueue_issue_notification(notification_id: int) -> Optional[Job]:
    """
    Enqueue delivery of one outbox row (high priority).

    A None return leaves the row pending for the next outbox drain.
    """
    from app.jobs.notifications import deliver_issue_notification_job

    return enqueue_job(
        deliver_issue_notification_job,
        notification_id,
        queue_name=QUEUE_HIGH,
        timeout=NOTIFICATION_TIMEOUT
    )


def enqueue_outbox_drain(limit: Optional[int] = None) -> Optional[Job]:
    """Enqueue a sweep of all pending outbox rows."""
    from app.jobs.notifications import drain_notification_outbox_job

    return enqueue_job(
        drain_notification_outbox_job,
        limit=limit,
        queue_name=QUEUE_DEFAULT
    )


def get_queue_stats() -> dict:
    """Get statistics about all queues."""
    redis = get_redis_connection()
    stats = {}

    for queue_name in [QUEUE_HIGH, QUEUE_DEFAULT, QUEUE_LOW]:
        queue = Queue(queue_name, connection=redis)
        stats[queue_name] = {
            'count': queue.count,
            'failed': queue.failed_job_registry.count,
            'scheduled': queue.scheduled_job_registry.count,
            'started': queue.started_job_registry.count,
        }

    return stats
