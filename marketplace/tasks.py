"""
Marketplace Celery Tasks

Redelivery of notifications whose post-commit dispatch failed.
"""

import logging

from celery import shared_task


logger = logging.getLogger(__name__)


@shared_task(bind=True, max_retries=3, queue="notification_tasks")
def retry_failed_notifications_task(self, limit=100):
    """
    Redeliver failed notification outbox rows.

    Scheduled every few minutes through the Celery beat schedule.

    Returns:
        dict: {"retried", "sent", "failed"} counts
    """
    from infrastructure.container import container

    logger.info("Retrying failed notifications")
    summary = container.notification_service().retry_failed(limit=limit)
    logger.info(f"Notification retry finished: {summary}")
    return summary
