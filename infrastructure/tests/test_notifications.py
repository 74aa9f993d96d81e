"""
Notification Dispatcher Tests
==============================
"""

from unittest.mock import MagicMock, patch

from django.test import TestCase, override_settings

from infrastructure.notifications import (
    EventBusNotificationDispatcher,
    MockNotificationDispatcher,
    Notification,
    NotificationDeliveryError,
    NotificationFactory,
)
from infrastructure.notifications.event_bus_dispatcher import NOTIFICATION_EVENT


class NotificationFactoryTest(TestCase):
    @override_settings(INFRASTRUCTURE={"NOTIFICATION_BACKEND": "mock"})
    def test_create_from_settings(self):
        self.assertIsInstance(NotificationFactory.create(), MockNotificationDispatcher)

    @patch("infrastructure.notifications.event_bus_dispatcher.get_event_bus")
    def test_create_event_bus(self, mock_get_event_bus):
        dispatcher = NotificationFactory.create("event_bus")

        self.assertIsInstance(dispatcher, EventBusNotificationDispatcher)
        self.assertIs(dispatcher.event_bus, mock_get_event_bus.return_value)

    def test_invalid_backend(self):
        with self.assertRaises(ValueError) as context:
            NotificationFactory.create("carrier_pigeon")

        self.assertIn("Invalid notification backend", str(context.exception))


class MockNotificationDispatcherTest(TestCase):
    def setUp(self):
        self.dispatcher = MockNotificationDispatcher()

    def test_records_notifications(self):
        self.dispatcher.send(Notification(user_id="u1", notification_type="order_created", data={"n": 1}))
        self.dispatcher.send(Notification(user_id="u2", notification_type="order_shipped"))

        self.assertEqual(len(self.dispatcher.sent), 2)
        self.assertEqual([n.notification_type for n in self.dispatcher.sent_to("u1")], ["order_created"])

        self.dispatcher.clear()
        self.assertEqual(self.dispatcher.sent, [])

    def test_simulated_outage(self):
        self.dispatcher.fail = True

        with self.assertRaises(NotificationDeliveryError):
            self.dispatcher.send(Notification(user_id="u1", notification_type="order_created"))

        self.assertEqual(self.dispatcher.sent, [])


class EventBusNotificationDispatcherTest(TestCase):
    def setUp(self):
        self.event_bus = MagicMock()
        self.dispatcher = EventBusNotificationDispatcher(event_bus=self.event_bus)
        self.notification = Notification(
            user_id="4f7d2c1e-0000-0000-0000-000000000001",
            notification_type="supplier_reply",
            data={"review_id": 7},
        )

    def test_publishes_notification_event(self):
        self.event_bus.publish.return_value = True

        self.dispatcher.send(self.notification)

        self.event_bus.publish.assert_called_once_with(
            NOTIFICATION_EVENT,
            {
                "user_id": "4f7d2c1e-0000-0000-0000-000000000001",
                "type": "supplier_reply",
                "data": {"review_id": 7},
            },
        )

    def test_rejected_publish_raises(self):
        self.event_bus.publish.return_value = False

        with self.assertRaises(NotificationDeliveryError):
            self.dispatcher.send(self.notification)
