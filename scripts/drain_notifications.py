#!/usr/bin/env python3
"""
Deliver pending issue alerts from the outbox.

Run from cron when the RQ worker is not deployed, or to flush rows whose
enqueue failed.

Usage:
    python scripts/drain_notifications.py             # Deliver now
    python scripts/drain_notifications.py --limit 200
    python scripts/drain_notifications.py --enqueue   # Hand the drain to the RQ worker
"""
import sys
import os
import argparse
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from app import create_app
from app.constants import NOTIFICATION_DRAIN_BATCH


def main():
    parser = argparse.ArgumentParser(description='Deliver pending issue notifications')
    parser.add_argument('--limit', type=int, default=NOTIFICATION_DRAIN_BATCH,
                        help='Maximum rows to process')
    parser.add_argument('--enqueue', action='store_true',
                        help='Queue the drain for the worker instead of running it here')
    args = parser.parse_args()

    app = create_app()
    with app.app_context():
        if args.enqueue:
            from app.jobs.queue import enqueue_outbox_drain
            job = enqueue_outbox_drain(limit=args.limit)
            if job is None:
                print("Failed to enqueue outbox drain")
                sys.exit(1)
            print(f"Enqueued outbox drain job {job.id}")
            return

        from app.services.notifier import deliver_pending_notifications
        summary = deliver_pending_notifications(limit=args.limit)

    print(
        f"Processed {summary['processed']}: {summary['sent']} sent, "
        f"{summary['pending']} pending, {summary['failed']} failed, {summary['skipped']} skipped"
    )


if __name__ == '__main__':
    main()
