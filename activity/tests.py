from unittest.mock import patch

from django.db import DatabaseError
from django.test import RequestFactory, TestCase
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APIClient

from marketplace.tests.factories import AdminFactory, UserFactory

from .models import ActivityLog
from .services import ActivityLogService


class ActivityLogServiceTest(TestCase):
    def setUp(self):
        self.service = ActivityLogService()
        self.user = UserFactory()

    def test_log_activity(self):
        entry = self.service.log_activity(
            action="order_created",
            resource="order",
            resource_id="b7c2a0de-1111-2222-3333-444455556666",
            user=self.user,
            metadata={"order_number": "ORD-1700000000000-001"},
        )

        self.assertIsNotNone(entry)
        entry.refresh_from_db()
        self.assertEqual(entry.user, self.user)
        self.assertEqual(entry.resource_id, "b7c2a0de-1111-2222-3333-444455556666")
        self.assertEqual(entry.metadata, {"order_number": "ORD-1700000000000-001"})

    def test_request_metadata(self):
        request = RequestFactory().get(
            "/", HTTP_X_FORWARDED_FOR="203.0.113.9, 10.0.0.1", HTTP_USER_AGENT="pytest-agent"
        )

        entry = self.service.log_activity(action="viewed", resource="product", resource_id=1, request=request)

        self.assertEqual(entry.ip_address, "203.0.113.9")
        self.assertEqual(entry.user_agent, "pytest-agent")
        self.assertIsNone(entry.user)
        self.assertEqual(entry.resource_id, "1")

    def test_write_failure_returns_none(self):
        with patch.object(ActivityLog.objects, "create", side_effect=DatabaseError("read only")):
            entry = self.service.log_activity(action="order_created", resource="order", user=self.user)

        self.assertIsNone(entry)

    def test_history_filters(self):
        other = UserFactory()
        self.service.log_activity(action="order_created", resource="order", resource_id="a", user=self.user)
        self.service.log_activity(action="product_stock_updated", resource="product", resource_id="p", user=self.user)
        self.service.log_activity(action="order_created", resource="order", resource_id="b", user=other)

        self.assertEqual(self.service.history(user=self.user).count(), 2)
        self.assertEqual(self.service.history(user=self.user, resource="order").count(), 1)
        self.assertEqual(self.service.history(resource="order").count(), 2)
        self.assertEqual(self.service.history(resource_id="p").get().action, "product_stock_updated")


class ActivityHistoryViewTest(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.user = UserFactory()
        self.url = reverse("activity:history")
        service = ActivityLogService()
        service.log_activity(action="order_created", resource="order", resource_id="o1", user=self.user)
        service.log_activity(action="order_cancelled", resource="order", resource_id="o1", user=self.user)
        service.log_activity(action="order_created", resource="order", resource_id="o2", user=UserFactory())

    def test_own_history(self):
        self.client.force_authenticate(user=self.user)

        response = self.client.get(self.url)

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data["results"]), 2)
        self.assertEqual(response.data["results"][0]["user_email"], self.user.email)

    def test_limit(self):
        self.client.force_authenticate(user=self.user)

        response = self.client.get(self.url, {"limit": 1})

        self.assertEqual(len(response.data["results"]), 1)

    def test_invalid_limit(self):
        self.client.force_authenticate(user=self.user)

        response = self.client.get(self.url, {"limit": 0})

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_other_user_requires_admin(self):
        self.client.force_authenticate(user=UserFactory())

        response = self.client.get(self.url, {"user_id": str(self.user.id)})

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_admin_reads_other_user(self):
        self.client.force_authenticate(user=AdminFactory())

        response = self.client.get(self.url, {"user_id": str(self.user.id), "resource_id": "o1"})

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data["results"]), 2)

    def test_requires_authentication(self):
        response = self.client.get(self.url)

        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
