from datetime import timedelta
from unittest.mock import patch

import pytest
from django.db import DatabaseError
from django.test import TestCase, override_settings
from django.utils import timezone

from infrastructure.container import container
from marketplace.models import NotificationOutbox
from marketplace.notifications.domain.services.notification_service import NotificationTypes
from marketplace.services import NotificationService
from marketplace.tasks import retry_failed_notifications_task
from marketplace.tests.factories import UserFactory


class NotificationServiceTestBase(TestCase):
    def setUp(self):
        container.configure_for_testing()
        self.dispatcher = container.notification_dispatcher()
        self.service = container.notification_service()
        self.user = UserFactory()

    def tearDown(self):
        container.reset()

    def enqueue(self, notification_type=NotificationTypes.ORDER_CREATED, data=None):
        return self.service.enqueue(self.user.id, notification_type, data or {"order_number": "ORD-1-001"})


class EnqueueTest(NotificationServiceTestBase):
    def test_delivered_after_commit(self):
        with self.captureOnCommitCallbacks(execute=True) as callbacks:
            entry = self.enqueue()
            self.assertEqual(self.dispatcher.sent, [])

        self.assertEqual(len(callbacks), 1)
        entry.refresh_from_db()
        self.assertEqual(entry.status, NotificationOutbox.STATUS_SENT)
        self.assertEqual(entry.attempts, 1)
        self.assertIsNotNone(entry.sent_at)

        sent = self.dispatcher.sent_to(self.user.id)
        self.assertEqual(len(sent), 1)
        self.assertEqual(sent[0].notification_type, "order_created")
        self.assertEqual(sent[0].data, {"order_number": "ORD-1-001"})

    def test_failed_dispatch_marks_row_failed(self):
        self.dispatcher.fail = True

        with self.captureOnCommitCallbacks(execute=True):
            entry = self.enqueue()

        entry.refresh_from_db()
        self.assertEqual(entry.status, NotificationOutbox.STATUS_FAILED)
        self.assertEqual(entry.attempts, 1)
        self.assertIn("configured to fail", entry.last_error)
        self.assertEqual(self.dispatcher.sent, [])

    def test_outbox_write_failure_is_swallowed(self):
        with patch.object(NotificationOutbox.objects, "create", side_effect=DatabaseError("disk full")):
            entry = self.enqueue()

        self.assertIsNone(entry)

    def test_deliver_is_idempotent(self):
        with self.captureOnCommitCallbacks(execute=True):
            entry = self.enqueue()

        self.assertTrue(self.service.deliver(entry.id))
        self.assertEqual(len(self.dispatcher.sent), 1)

    def test_deliver_missing_row(self):
        self.assertFalse(self.service.deliver(999999))

    def test_status_notification_type(self):
        self.assertEqual(NotificationTypes.for_order_status("shipped"), NotificationTypes.ORDER_SHIPPED)


class RetryFailedTest(NotificationServiceTestBase):
    def failed_entry(self, attempts=1):
        return NotificationOutbox.objects.create(
            recipient=self.user,
            notification_type=NotificationTypes.ORDER_SHIPPED,
            data={"order_number": "ORD-1-002"},
            status=NotificationOutbox.STATUS_FAILED,
            attempts=attempts,
            last_error="Mock dispatcher configured to fail",
        )

    def test_retry_delivers_failed_rows(self):
        entry = self.failed_entry()

        summary = self.service.retry_failed()

        self.assertEqual(summary, {"retried": 1, "sent": 1, "failed": 0})
        entry.refresh_from_db()
        self.assertEqual(entry.status, NotificationOutbox.STATUS_SENT)
        self.assertEqual(entry.attempts, 2)
        self.assertEqual(entry.last_error, "")

    def test_retry_while_dispatcher_still_down(self):
        entry = self.failed_entry()
        self.dispatcher.fail = True

        summary = self.service.retry_failed()

        self.assertEqual(summary, {"retried": 1, "sent": 0, "failed": 1})
        entry.refresh_from_db()
        self.assertEqual(entry.status, NotificationOutbox.STATUS_FAILED)
        self.assertEqual(entry.attempts, 2)

    def test_exhausted_rows_are_skipped(self):
        self.failed_entry(attempts=5)

        summary = self.service.retry_failed(max_attempts=5)

        self.assertEqual(summary["retried"], 0)
        self.assertEqual(self.dispatcher.sent, [])

    @override_settings(INFRASTRUCTURE={"NOTIFICATION_BACKEND": "mock", "NOTIFICATION_MAX_ATTEMPTS": 2})
    def test_max_attempts_from_settings(self):
        self.failed_entry(attempts=2)

        self.assertEqual(self.service.retry_failed()["retried"], 0)

    def test_stale_pending_rows_are_retried(self):
        entry = NotificationOutbox.objects.create(
            recipient=self.user, notification_type=NotificationTypes.ORDER_CREATED, data={}
        )
        fresh = NotificationOutbox.objects.create(
            recipient=self.user, notification_type=NotificationTypes.ORDER_CREATED, data={}
        )
        NotificationOutbox.objects.filter(id=entry.id).update(created_at=timezone.now() - timedelta(minutes=10))

        summary = self.service.retry_failed()

        self.assertEqual(summary["retried"], 1)
        entry.refresh_from_db()
        fresh.refresh_from_db()
        self.assertEqual(entry.status, NotificationOutbox.STATUS_SENT)
        self.assertEqual(fresh.status, NotificationOutbox.STATUS_PENDING)

    def test_celery_task_runs_retry_pass(self):
        self.failed_entry()

        result = retry_failed_notifications_task.apply(kwargs={"limit": 10})

        self.assertEqual(result.get(), {"retried": 1, "sent": 1, "failed": 0})
        self.assertEqual(len(self.dispatcher.sent_to(self.user.id)), 1)


@pytest.mark.unit
def test_service_uses_container_dispatcher_by_default():
    container.configure_for_testing()
    try:
        service = NotificationService()
        assert service.dispatcher is container.notification_dispatcher()
    finally:
        container.reset()
