"""
Health Check Service
Provides dependency health checks for monitoring and observability
"""
import time
from datetime import datetime, timezone
from typing import Dict, Any


def check_database() -> Dict[str, Any]:
    """
    Check database connectivity and measure latency.

    Returns:
        Dict with status, latency_ms, and optional error
    """
    from app import db

    start = time.time()
    try:
        db.session.execute(db.text('SELECT 1'))
        latency = (time.time() - start) * 1000
        return {
            'status': 'healthy',
            'latency_ms': round(latency, 2)
        }
    except Exception as e:
        db.session.rollback()
        return {
            'status': 'unhealthy',
            'error': str(e)[:200]
        }


def check_cache() -> Dict[str, Any]:
    """
    Check cache connectivity and measure latency.

    Returns:
        Dict with status, type, latency_ms, and optional error
    """
    from flask import current_app
    from app import cache

    start = time.time()
    try:
        cache_type = current_app.config.get('CACHE_TYPE', 'SimpleCache')

        if cache_type == 'RedisCache':
            cache.set('_health_check', '1', timeout=5)
            if cache.get('_health_check') == '1':
                latency = (time.time() - start) * 1000
                return {
                    'status': 'healthy',
                    'type': 'redis',
                    'latency_ms': round(latency, 2)
                }
            return {
                'status': 'unhealthy',
                'type': 'redis',
                'error': 'Redis read/write failed'
            }

        latency = (time.time() - start) * 1000
        return {
            'status': 'healthy',
            'type': cache_type,
            'latency_ms': round(latency, 2)
        }
    except Exception as e:
        return {
            'status': 'unhealthy',
            'type': 'unknown',
            'error': str(e)[:200]
        }


def check_notification_queue() -> Dict[str, Any]:
    """
    Check the Redis queue used for issue alerts.

    Returns:
        Dict with status, latency_ms, and optional error
    """
    from app.jobs.queue import get_queue_stats

    start = time.time()
    try:
        queues = get_queue_stats()
        latency = (time.time() - start) * 1000
        return {
            'status': 'healthy',
            'latency_ms': round(latency, 2),
            'queues': queues
        }
    except Exception as e:
        return {
            'status': 'unhealthy',
            'error': str(e)[:200]
        }


def check_notification_outbox() -> Dict[str, Any]:
    """Count outbox rows still waiting for delivery"""
    from app.models import IssueNotification

    try:
        pending = IssueNotification.query.filter_by(status='pending').count()
        failed = IssueNotification.query.filter_by(status='failed').count()
        return {
            'status': 'healthy',
            'pending': pending,
            'failed': failed
        }
    except Exception as e:
        return {
            'status': 'unhealthy',
            'error': str(e)[:200]
        }


def get_full_health_status(include_slow_checks: bool = True) -> Dict[str, Any]:
    """
    Get comprehensive health status of all dependencies.

    Args:
        include_slow_checks: Whether to include the queue and outbox checks.
                           Set to False for quick liveness checks

    Returns:
        Dict with overall status and individual dependency statuses
    """
    from flask import current_app

    health = {
        'status': 'healthy',
        'timestamp': datetime.now(timezone.utc).isoformat(),
        'version': current_app.config.get('APP_VERSION', '1.0.0'),
        'dependencies': {}
    }

    # Database is critical: ingest cannot work without it
    health['dependencies']['database'] = check_database()
    if health['dependencies']['database']['status'] != 'healthy':
        health['status'] = 'unhealthy'

    health['dependencies']['cache'] = check_cache()
    if health['dependencies']['cache']['status'] != 'healthy':
        if health['status'] == 'healthy':
            health['status'] = 'degraded'

    if include_slow_checks:
        if current_app.config.get('NOTIFICATION_QUEUE_ENABLED'):
            health['dependencies']['queue'] = check_notification_queue()
            if health['dependencies']['queue']['status'] != 'healthy':
                if health['status'] == 'healthy':
                    health['status'] = 'degraded'

        if health['dependencies']['database']['status'] == 'healthy':
            health['dependencies']['outbox'] = check_notification_outbox()

    return health


def get_liveness_status() -> Dict[str, Any]:
    """Quick liveness check (database and cache only)."""
    return get_full_health_status(include_slow_checks=False)


def get_readiness_status() -> Dict[str, Any]:
    """Full readiness check, including the alert queue and outbox backlog."""
    return get_full_health_status(include_slow_checks=True)
