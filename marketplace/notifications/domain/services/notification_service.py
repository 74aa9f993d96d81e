"""
NotificationService - Transactional Outbox

Business operations call ``enqueue`` inside their transaction. The row is
dispatched once the transaction commits; if the dispatcher fails the row is
marked failed and picked up again by ``retry_failed``. Nothing here ever
propagates a delivery failure to the caller.
"""

import logging
from datetime import timedelta
from typing import Any, Dict, Optional

from django.conf import settings
from django.db import DatabaseError, transaction
from django.db.models import Q
from django.utils import timezone

from infrastructure.notifications import Notification, NotificationDeliveryError, NotificationDispatcherInterface
from marketplace.infra.observability.metrics import notifications_dispatched_total
from marketplace.notifications.domain.models.outbox import NotificationOutbox
from marketplace.services.base import BaseService

logger = logging.getLogger(__name__)

STALE_PENDING_AFTER = timedelta(minutes=5)


class NotificationTypes:
    ORDER_CREATED = "order_created"
    ORDER_CONFIRMED = "order_confirmed"
    ORDER_PREPARING = "order_preparing"
    ORDER_SHIPPED = "order_shipped"
    ORDER_DELIVERED = "order_delivered"
    ORDER_CANCELLED = "order_cancelled"
    NEW_PRODUCT_REVIEW = "new_product_review"
    NEW_SUPPLIER_REVIEW = "new_supplier_review"
    SUPPLIER_REPLY = "supplier_reply"

    @classmethod
    def for_order_status(cls, status: str) -> str:
        return f"order_{status}"


class NotificationService(BaseService):
    """
    Service for recording and dispatching user notifications.

    Dependencies:
    - NotificationDispatcherInterface: delivery channel (event bus or mock)
    """

    def __init__(self, dispatcher: NotificationDispatcherInterface = None):
        super().__init__()
        if dispatcher is None:
            from infrastructure.container import get_notification_dispatcher

            dispatcher = get_notification_dispatcher()
        self.dispatcher = dispatcher

    def enqueue(self, recipient_id, notification_type: str, data: Dict[str, Any]) -> Optional[NotificationOutbox]:
        """
        Record a notification and schedule its dispatch after commit.

        The insert runs in a savepoint: if it fails the error is logged and
        the surrounding business transaction is unaffected.

        Returns:
            The outbox row, or None if it could not be written
        """
        try:
            with transaction.atomic():
                entry = NotificationOutbox.objects.create(
                    recipient_id=recipient_id,
                    notification_type=notification_type,
                    data=data,
                )
        except DatabaseError as e:
            self.logger.error(
                f"Failed to record {notification_type} notification for user {recipient_id}: {e}", exc_info=True
            )
            return None

        transaction.on_commit(lambda: self.deliver(entry.id), robust=True)
        self.logger.debug(f"Queued {notification_type} notification {entry.id} for user {recipient_id}")
        return entry

    def deliver(self, entry_id: int) -> bool:
        """
        Dispatch one outbox row and record the outcome on it.

        Returns:
            True if delivered (or already delivered), False otherwise
        """
        entry = NotificationOutbox.objects.filter(id=entry_id).first()
        if entry is None:
            self.logger.warning(f"Notification {entry_id} vanished before dispatch")
            return False
        if entry.status == NotificationOutbox.STATUS_SENT:
            return True

        notification = Notification(
            user_id=str(entry.recipient_id),
            notification_type=entry.notification_type,
            data=entry.data,
        )

        entry.attempts += 1
        try:
            self.dispatcher.send(notification)
        except NotificationDeliveryError as e:
            entry.status = NotificationOutbox.STATUS_FAILED
            entry.last_error = str(e)
            entry.save(update_fields=["status", "attempts", "last_error"])
            notifications_dispatched_total.labels(status="failed").inc()
            self.logger.error(
                f"Notification {entry.id} ({entry.notification_type}) to user {entry.recipient_id} "
                f"failed on attempt {entry.attempts}: {e}"
            )
            return False

        entry.status = NotificationOutbox.STATUS_SENT
        entry.sent_at = timezone.now()
        entry.last_error = ""
        entry.save(update_fields=["status", "attempts", "last_error", "sent_at"])
        notifications_dispatched_total.labels(status="sent").inc()
        self.logger.info(f"Notification {entry.id} ({entry.notification_type}) sent to user {entry.recipient_id}")
        return True

    @BaseService.log_performance
    def retry_failed(self, max_attempts: Optional[int] = None, limit: int = 100) -> Dict[str, int]:
        """
        Redeliver failed (and stale pending) rows that still have attempts left.

        Returns:
            {"retried", "sent", "failed"} counts
        """
        if max_attempts is None:
            max_attempts = getattr(settings, "INFRASTRUCTURE", {}).get("NOTIFICATION_MAX_ATTEMPTS", 5)
        # Pending rows younger than this may still be waiting for their on_commit dispatch
        stale_before = timezone.now() - STALE_PENDING_AFTER

        entry_ids = list(
            NotificationOutbox.objects.filter(
                Q(status=NotificationOutbox.STATUS_FAILED)
                | Q(status=NotificationOutbox.STATUS_PENDING, created_at__lt=stale_before),
                attempts__lt=max_attempts,
            )
            .order_by("created_at")
            .values_list("id", flat=True)[:limit]
        )

        sent = 0
        for entry_id in entry_ids:
            if self.deliver(entry_id):
                sent += 1

        summary = {"retried": len(entry_ids), "sent": sent, "failed": len(entry_ids) - sent}
        if entry_ids:
            self.logger.info(f"Notification retry pass: {summary}")
        return summary
